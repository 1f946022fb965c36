"""
Expansion of the ``app://`` home marker in user supplied paths.

Nothing here touches the filesystem: whether a resolved path exists is
decided later, when the source catalog is built.
"""
import os
from .errors import ResolutionError

HOME_MARKER = "app://"


def resolve(raw: str, home: str) -> str:
    """Return the absolute, normalized form of ``raw``.

    A leading ``app://`` is replaced by ``home``; anything else is taken
    relative to the current working directory.
    """
    path = raw.strip()
    if not path:
        raise ResolutionError(raw, "empty path")
    if path.startswith(HOME_MARKER):
        path = os.path.join(home, path[len(HOME_MARKER):])
    if "\x00" in path:
        raise ResolutionError(raw, "embedded null byte")
    try:
        return os.path.abspath(path)
    except (OSError, ValueError) as e:
        # abspath needs the working directory for relative input
        raise ResolutionError(raw, str(e)) from e


def to_display(path: str, home: str) -> str:
    """Inverse of :func:`resolve` for paths under ``home``, used for presentation only."""
    home = os.path.abspath(home)
    path = os.path.abspath(path)
    try:
        inside = os.path.commonpath([home, path]) == home
    except ValueError:
        # different drives on Windows
        inside = False
    if not inside:
        return path
    rel = os.path.relpath(path, home)
    if rel == os.curdir:
        return HOME_MARKER
    return HOME_MARKER + rel.replace(os.sep, "/")
