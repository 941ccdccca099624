import asyncio
import functools
from http import HTTPStatus
from urllib.parse import parse_qs, urlsplit

from websockets.asyncio.server import serve

from .config import Config
from .demo import append_forever
from .logger import get_logger
from .page import read_file_if_modified, render_home
from .session import Session, parse_resume_hint

log = get_logger("server")


def route(config: Config, connection, request):
    path = urlsplit(request.path).path
    if path == config.ws_path:
        return None
    if path != "/":
        return connection.respond(HTTPStatus.NOT_FOUND, "Not found\n")
    try:
        data, last_mod = read_file_if_modified(config.files[0])
        text = data.decode("utf-8", errors="replace")
    except OSError as e:
        text, last_mod = str(e), 0
    host = request.headers.get("Host", f"{config.host}:{config.port}")
    response = connection.respond(HTTPStatus.OK, render_home(host, config.ws_path, text, last_mod))
    del response.headers["Content-Type"]
    response.headers["Content-Type"] = "text/html; charset=utf-8"
    return response


async def handle(connection, config: Config):
    query = parse_qs(urlsplit(connection.request.path).query)
    hint = parse_resume_hint(query.get("lastMod", [None])[0])
    log.info("客户端已连接：%s", connection.remote_address)
    await Session(connection, config, hint).run()


def build_server(config: Config):
    # 心跳由会话自己负责，关闭库自带的 keepalive
    return serve(functools.partial(handle, config=config), config.host, config.port,
                 process_request=functools.partial(route, config),
                 ping_interval=None,
                 max_size=config.max_message_size,
                 close_timeout=config.write_wait)


async def run(config: Config):
    demo = None
    async with build_server(config) as server:
        log.info("tailpush 启动成功，监听 %s:%d，监控文件：%s",
                 config.host, config.port, ", ".join(config.files))
        if config.demo_enabled:
            demo = asyncio.create_task(append_forever(config.files, config.demo_period))
        try:
            await server.serve_forever()
        finally:
            if demo is not None:
                demo.cancel()
