import os, logging, time
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
import coloredlogs
import pytz

ROOT = "tailpush"
FMT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FILE_FMT = "%(asctime)s [%(levelname)s] %(name)s %(funcName)s:%(lineno)d | %(message)s"

_tz = pytz.utc


def _converter(*args):
    return datetime.fromtimestamp(args[-1], _tz).timetuple()


logging.Formatter.converter = _converter


class SamplingFilter(logging.Filter):
    """带 sample 键的记录在窗口期内只放行一条"""

    def __init__(self, window: float = 300):
        super().__init__()
        self.window = window
        self._last = {}

    def filter(self, record):
        key = getattr(record, "sample", None)
        if not key:
            return True
        now = time.time()
        last = self._last.get(key)
        if last is not None and now - last < self.window:
            return False
        self._last[key] = now
        return True


_sampler = SamplingFilter()


def _install(parent: logging.Logger, level: str):
    parent.setLevel(logging.DEBUG)
    coloredlogs.install(level=level, logger=parent, fmt=FMT)
    for h in parent.handlers:
        h.addFilter(_sampler)


def get_logger(name: str) -> logging.Logger:
    parent = logging.getLogger(ROOT)
    if not parent.handlers:
        _install(parent, "INFO")
    return parent.getChild(name)


def setup(cfg) -> logging.Logger:
    global _tz
    _tz = pytz.timezone(cfg.log_timezone)
    parent = logging.getLogger(ROOT)
    _install(parent, cfg.log_level)
    if cfg.log_dir and not any(isinstance(h, TimedRotatingFileHandler) for h in parent.handlers):
        os.makedirs(cfg.log_dir, exist_ok=True)
        file_handler = TimedRotatingFileHandler(os.path.join(cfg.log_dir, "tailpush.log"),
                                                when="midnight", backupCount=cfg.log_backup_count,
                                                encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FMT))
        file_handler.addFilter(_sampler)
        parent.addHandler(file_handler)
    return parent
