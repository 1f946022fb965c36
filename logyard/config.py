import os, sys, yaml
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import pytz

from .errors import ConfigError, ResolutionError, StartupError
from .paths import HOME_MARKER, resolve

DEFAULT_PORT = 23212
DEFAULT_CAPTURE_DIR = HOME_MARKER + "captures/"


def default_capture_id() -> str:
    """UTC second of the current year, so ids sort by start time within a year."""
    now = datetime.now(timezone.utc)
    year_start = datetime(now.year, 1, 1, tzinfo=timezone.utc)
    return str(int((now - year_start).total_seconds()))


@dataclass(frozen=True)
class Config:
    # server mode
    host: str = ""
    port: int = DEFAULT_PORT
    poll_interval_ms: int = 2000
    sources: str = DEFAULT_CAPTURE_DIR
    read_buffer_size: int = 2048
    shutdown_timeout: float = 10.0
    # general
    capture_id: str = field(default_factory=default_capture_id)
    home: str = ""
    logging: bool = False
    capture_logs: bool = False
    rolling: bool = False
    chunk_mb: int = 10
    log_level: str = "INFO"
    log_timezone: str = "UTC"
    # capture mode
    capture: bool = False
    capture_dir: str = DEFAULT_CAPTURE_DIR
    # demo mode
    demo_lines: int = -1
    max_demo_sleep_ms: int = 500

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def chunk_bytes(self) -> int:
        return self.chunk_mb * 1024 * 1024

    def validate(self) -> "Config":
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"port out of range: {self.port}")
        if self.poll_interval_ms <= 0:
            raise ConfigError("polling interval must be positive")
        if self.chunk_mb <= 0:
            raise ConfigError("chunk size must be positive")
        if self.read_buffer_size <= 0:
            raise ConfigError("read buffer size must be positive")
        if self.max_demo_sleep_ms < 0:
            raise ConfigError("demo sleep must not be negative")
        if self.shutdown_timeout <= 0:
            raise ConfigError("shutdown timeout must be positive")
        if not self.capture_id or os.sep in self.capture_id or "/" in self.capture_id:
            raise ConfigError(f"invalid capture id: {self.capture_id!r}")
        try:
            pytz.timezone(self.log_timezone)
        except pytz.UnknownTimeZoneError as e:
            raise ConfigError(f"unknown log timezone: {self.log_timezone}") from e
        return self

    def resolved(self) -> "Config":
        """Copy with ``home`` and ``capture_dir`` made absolute, trailing separator included."""
        home = self.home
        if not home:
            entry = sys.argv[0] if sys.argv and sys.argv[0] else ""
            if not entry:
                raise StartupError("cannot determine home directory")
            home = os.path.dirname(os.path.abspath(entry))
        try:
            home = _with_sep(resolve(home, os.curdir))
            capture_dir = _with_sep(resolve(self.capture_dir, home))
        except ResolutionError as e:
            raise StartupError(f"failed to resolve path: {e}") from e
        return replace(self, home=home, capture_dir=capture_dir)


def _with_sep(path: str) -> str:
    return path if path.endswith(os.sep) else path + os.sep


def load_config(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Config:
    """Defaults, then the YAML settings file, then command line overrides."""
    values: Dict[str, Any] = {}
    if path:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot read config file {path!r}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"config file {path!r} must hold a mapping")
        values.update(data)
    values.update({k: v for k, v in (overrides or {}).items() if v is not None})
    known = {f.name for f in fields(Config)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
    if "capture_id" in values:
        values["capture_id"] = str(values["capture_id"])
    try:
        return Config(**values).validate()
    except TypeError as e:
        raise ConfigError(f"invalid config value: {e}") from e
