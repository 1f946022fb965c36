"""
Size bounded rolling output files.

``RollingWriter("captures/abc/abc")`` writes ``captures/abc/abc-000.log``,
then ``abc-001.log`` once the next write would push the current chunk past
``max_bytes``, and so on.  A write is never split across two chunks.
"""
import os
from typing import BinaryIO, List, Optional

from .errors import RotationError
from .logger import get_logger

log = get_logger("rolling")

SUFFIX = ".log"


class RollingWriter:
    def __init__(self, base_path: str, max_bytes: int):
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if not base_path.endswith(SUFFIX):
            base_path += SUFFIX
        self.base_path = base_path
        self.max_bytes = max_bytes
        self._dir, name = os.path.split(base_path)
        self._stem = name[:-len(SUFFIX)]
        self._index = -1
        self._file: Optional[BinaryIO] = None
        self._size = 0
        self.chunks: List[str] = []

    @property
    def current_path(self) -> Optional[str]:
        return self.chunks[-1] if self.chunks else None

    @property
    def current_size(self) -> int:
        return self._size

    def write(self, data: bytes) -> int:
        if self._file is None or (self._size and self._size + len(data) > self.max_bytes):
            self._rotate()
        self._file.write(data)
        self._size += len(data)
        return len(data)

    def _rotate(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
        try:
            os.makedirs(self._dir or os.curdir, exist_ok=True)
        except OSError as e:
            raise RotationError(f"cannot create chunk directory {self._dir!r}: {e}") from e
        while True:
            self._index += 1
            path = os.path.join(self._dir, "%s-%03d%s" % (self._stem, self._index, SUFFIX))
            try:
                self._file = open(path, "xb")
                break
            except FileExistsError:
                continue
            except OSError as e:
                raise RotationError(f"cannot open chunk {path!r}: {e}") from e
        self._size = 0
        self.chunks.append(path)
        log.debug("Opened chunk %r", path)

    def flush(self) -> None:
        if self._file is not None:
            self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
