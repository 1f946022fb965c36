import os, sys, logging
from datetime import datetime
from typing import Optional

import coloredlogs
import pytz

from .errors import StartupError

ROOT = "logyard"
LOG_FILE_NAME = "logyard"
CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s %(funcName)s:%(lineno)d | %(message)s"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT}.{name}")


class RollingLogHandler(logging.Handler):
    """Writes formatted records through a :class:`~logyard.rolling.RollingWriter`."""

    terminator = "\n"

    def __init__(self, writer, level=logging.NOTSET):
        super().__init__(level)
        self.writer = writer

    def emit(self, record):
        try:
            msg = self.format(record) + self.terminator
            self.writer.write(msg.encode("utf-8"))
            self.writer.flush()
        except Exception:
            self.handleError(record)

    def close(self):
        self.acquire()
        try:
            self.writer.close()
        finally:
            self.release()
        super().close()


def _converter(tz):
    return staticmethod(lambda ts: datetime.fromtimestamp(ts, tz).timetuple())


def setup_logging(cfg) -> logging.Logger:
    """Configure the ``logyard`` logger tree from ``cfg``.

    ``-l`` sends colored output to stderr, ``-cl`` writes into
    ``<capture_dir>/<id>-logyard.log`` (rolled when ``-rl`` is set).
    With neither, records are dropped.
    """
    from .rolling import RollingWriter

    logger = logging.getLogger(ROOT)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    logging.Formatter.converter = _converter(pytz.timezone(cfg.log_timezone))
    level = getattr(logging, cfg.log_level.upper(), logging.INFO)

    if cfg.logging:
        coloredlogs.install(level=level, logger=logger, stream=sys.stderr, fmt=CONSOLE_FORMAT)

    if cfg.capture_logs:
        try:
            os.makedirs(cfg.capture_dir, exist_ok=True)
        except OSError as e:
            raise StartupError(f"failed to create capture directory: {e}") from e
        path = os.path.join(cfg.capture_dir, f"{cfg.capture_id}-{LOG_FILE_NAME}.log")
        if cfg.rolling:
            file_handler: Optional[logging.Handler] = RollingLogHandler(
                RollingWriter(path, cfg.chunk_bytes))
        else:
            try:
                file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
            except OSError as e:
                raise StartupError(f"failed to create log file {path!r}: {e}") from e
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
