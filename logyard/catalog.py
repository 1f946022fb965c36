"""
Turns the comma separated ``-src`` list into the catalog of tailable sources.

Roots keep the order they were given in.  A directory root carries the
``.log`` files found anywhere below it as ``children``; intermediate
directories are walked but never recorded.  Nothing found here is fatal:
every skipped entry is logged and reported as a diagnostic.
"""
import logging
import os
import stat
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .errors import ResolutionError
from .logger import get_logger
from .paths import resolve

log = get_logger("catalog")

LOG_SUFFIX = ".log"


@dataclass(frozen=True)
class RawSource:
    raw_path: str
    abs_path: str
    valid: bool


@dataclass(frozen=True)
class ValidSource:
    path: str
    is_directory: bool
    info: os.stat_result
    children: Optional[Tuple["ValidSource", ...]] = None

    def leaves(self) -> Iterator["ValidSource"]:
        if not self.is_directory:
            yield self
            return
        for child in self.children or ():
            if not child.is_directory:
                yield child


def parse_sources(source_list: str, home: str) -> List[RawSource]:
    raw_sources: List[RawSource] = []
    for token in source_list.split(","):
        try:
            raw_sources.append(RawSource(token, resolve(token, home), True))
        except ResolutionError as e:
            log.warning("failed to resolve source path: %s", e)
            raw_sources.append(RawSource(token, "", False))
    log.info("Resolved sources: %s", [s.abs_path for s in raw_sources if s.valid])
    return raw_sources


def build_catalog(raw_sources: List[RawSource],
                  diagnostics: Optional[List[str]] = None) -> List[ValidSource]:
    """Stat every valid raw source and walk the directories among them.

    Human readable reasons for each skipped entry are appended to
    ``diagnostics`` when a list is given, and logged either way.
    """
    def skip(level: int, msg: str, *args) -> None:
        log.log(level, msg, *args)
        if diagnostics is not None:
            diagnostics.append(msg % args)

    catalog: List[ValidSource] = []
    for src in raw_sources:
        if not src.valid:
            continue
        try:
            info = os.stat(src.abs_path)
        except OSError as e:
            skip(logging.ERROR, "failed stat %r: %s", src.abs_path, e)
            continue
        is_dir = stat.S_ISDIR(info.st_mode)
        if not is_dir and not src.abs_path.endswith(LOG_SUFFIX):
            skip(logging.WARNING, "not a log file or directory %r", src.abs_path)
            continue
        if not is_dir:
            catalog.append(ValidSource(src.abs_path, False, info))
            log.info("Confirmed source: %r", src.abs_path)
            continue
        log.info("Walking %r", src.abs_path)
        children: List[ValidSource] = []
        _walk(src.abs_path, children, skip)
        catalog.append(ValidSource(src.abs_path, True, info, tuple(children)))
        log.info("Confirmed source: %r (%d log files)", src.abs_path, len(children))
    return catalog


def _scan(path: str, skip) -> Optional[Iterator[os.DirEntry]]:
    try:
        with os.scandir(path) as it:
            return iter(list(it))
    except OSError as e:
        skip(logging.ERROR, "Found problematic path %r, skipping its subtree: %s", path, e)
        return None


def _walk(top: str, found: List[ValidSource], skip) -> None:
    # Depth first with an explicit stack, so tree depth is not bounded by
    # the recursion limit. An unreadable directory ends the walk of that
    # subtree only; siblings and everything collected so far are kept.
    first = _scan(top, skip)
    stack = [first] if first is not None else []
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            skip(logging.ERROR, "Found problematic path %r: %s", entry.path, e)
            continue
        if is_dir:
            entries = _scan(entry.path, skip)
            if entries is not None:
                stack.append(entries)
            continue
        if not entry.name.endswith(LOG_SUFFIX):
            continue
        try:
            info = os.stat(entry.path)
        except OSError as e:
            skip(logging.ERROR, "failed stat %r: %s", entry.path, e)
            continue
        if not stat.S_ISREG(info.st_mode):
            continue
        found.append(ValidSource(entry.path, False, info))
        log.debug("Found sub-source: %r", entry.path)


def iter_leaves(catalog: List[ValidSource]) -> Iterator[ValidSource]:
    for src in catalog:
        yield from src.leaves()

