"""通过 WebSocket 实时推送文件新增行"""
__version__ = "0.1.0"
