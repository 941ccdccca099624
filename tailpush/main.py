#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
tailpush 入口
- 监控文件新增行并通过 WebSocket 推送给客户端
- 可在延迟后切换到第二个文件
- 心跳保活、日志轮转
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from .config import Config
from .logger import get_logger, setup
from .server import run

log = get_logger("main")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="tailpush", description="通过 WebSocket 实时推送文件新增的行")
    p.add_argument("files", nargs="*", help="要监控的文件；第二个文件会在延迟后接替第一个")
    p.add_argument("--addr", help="监听地址 host:port，例如 :8080")
    p.add_argument("--config", help="YAML 配置文件路径")
    p.add_argument("--demo", action="store_true", help="定时向文件追加演示行")
    return p.parse_args(argv)


def apply_args(cfg: Config, args: argparse.Namespace) -> Config:
    if args.files:
        cfg.files = list(args.files)
    if args.addr:
        host, _, port = args.addr.rpartition(":")
        cfg.host = host or "0.0.0.0"
        cfg.port = int(port)
    if args.demo:
        cfg.demo_enabled = True
    return cfg


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        cfg = apply_args(Config.load(args.config), args).validate()
    except (ValueError, FileNotFoundError) as e:
        log.error("配置错误：%s", e)
        return 1
    setup(cfg)
    try:
        asyncio.run(run(cfg))
    except KeyboardInterrupt:
        log.info("收到退出信号，正在关闭...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
