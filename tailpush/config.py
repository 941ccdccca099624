import os
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

CONFIG_FILE = os.environ.get("TAILPUSH_CONFIG", "config/settings.yml")


class Config:
    def __init__(self, raw: Optional[Dict[str, Any]] = None):
        cfg = raw or {}

        server = cfg.get("server") or {}
        self.host: str = server.get("host", "0.0.0.0")
        self.port: int = int(server.get("port", 8080))
        self.ws_path: str = server.get("path", "/ws")
        self.max_message_size: int = int(server.get("max_message_size", 512))

        tail = cfg.get("tail") or {}
        self.files: List[str] = [str(p) for p in tail.get("files") or []]
        self.switch_after: float = float(tail.get("switch_after_seconds", 20))
        self.poll_interval: float = float(tail.get("poll_interval", 0.2))
        self.queue_size: int = int(tail.get("queue_size", 10))
        self.start_at_end: bool = bool(tail.get("start_at_end", True))

        liveness = cfg.get("liveness") or {}
        self.write_wait: float = float(liveness.get("write_wait", 10))
        self.pong_wait: float = float(liveness.get("pong_wait", 60))
        # 心跳周期默认取超时的 9/10
        period = liveness.get("ping_period")
        self.ping_period: float = float(period) if period is not None else self.pong_wait * 9 / 10

        demo = cfg.get("demo") or {}
        self.demo_enabled: bool = bool(demo.get("enabled", False))
        self.demo_period: float = float(demo.get("period", 5))

        log = cfg.get("log") or {}
        self.log_level: str = str(log.get("level", "INFO")).upper()
        self.log_dir: Optional[str] = log.get("dir", "logs")
        self.log_timezone: str = log.get("timezone", "UTC")
        self.log_backup_count: int = int(log.get("backup_count", 14))

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        path = path or CONFIG_FILE
        if not Path(path).is_file():
            if path != CONFIG_FILE:
                raise FileNotFoundError(f"配置文件不存在: {path}")
            return cls()
        with open(path, encoding="utf-8") as f:
            return cls(yaml.safe_load(f) or {})

    def validate(self):
        if not self.files:
            raise ValueError("未指定要监控的文件")
        if len(self.files) > 2:
            raise ValueError("最多只能指定两个文件（主文件 + 切换文件）")
        for name in ("write_wait", "pong_wait", "ping_period", "poll_interval", "switch_after"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} 必须大于 0")
        if self.ping_period >= self.pong_wait:
            raise ValueError("ping_period 必须小于 pong_wait")
        if self.queue_size < 1:
            raise ValueError("queue_size 至少为 1")
        if self.max_message_size < 1:
            raise ValueError("max_message_size 至少为 1")
        return self
