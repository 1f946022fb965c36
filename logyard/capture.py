"""
Capture mode: copy stdin byte for byte into a log file, rolled or not.
"""
import os
import sys
from typing import BinaryIO, Optional

from .errors import StartupError
from .logger import get_logger
from .rolling import RollingWriter

log = get_logger("capture")

COPY_SIZE = 64 * 1024


def open_capture(cfg):
    if cfg.rolling:
        path = os.path.join(cfg.capture_dir, cfg.capture_id, cfg.capture_id)
        log.info("Creating rolling capture: %r", path)
        return RollingWriter(path, cfg.chunk_bytes)
    path = os.path.join(cfg.capture_dir, cfg.capture_id + ".log")
    log.info("Creating capture file: %r", path)
    try:
        os.makedirs(cfg.capture_dir, exist_ok=True)
        return open(path, "wb")
    except OSError as e:
        raise StartupError(f"failed to create capture file: {e}") from e


def copy_stream(src: BinaryIO, dst) -> int:
    """Copy ``src`` into ``dst`` until EOF, returning the byte count."""
    read = getattr(src, "read1", src.read)
    total = 0
    while True:
        data = read(COPY_SIZE)
        if not data:
            return total
        dst.write(data)
        total += len(data)


def run_capture(cfg, stdin: Optional[BinaryIO] = None) -> int:
    src = stdin if stdin is not None else sys.stdin.buffer
    with open_capture(cfg) as dst:
        total = copy_stream(src, dst)
    log.info("Capture %r finished: %d bytes", cfg.capture_id, total)
    return total
