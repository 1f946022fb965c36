"""
Listing and viewer pages, plus the cache that holds the rendered listing.
"""
import html
import os
import threading
from typing import Iterable, Tuple
from urllib.parse import quote

from .catalog import ValidSource
from .logger import get_logger

log = get_logger("pages")

SOURCES_PLACEHOLDER = "<!--SOURCES-->"
PATH_PLACEHOLDER = "<!--PATH-->"

INDEX_HTML = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>logyard</title>
<style>
body { font-family: sans-serif; margin: 2em; }
h3 { margin-bottom: .3em; }
a.stop { float: right; color: #a00; }
</style>
</head>
<body>
<a class="stop" href="/$">stop server</a>
<h1>logyard</h1>
<ul>
<!--SOURCES-->
</ul>
</body>
</html>
"""

VIEWER_HTML = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title><!--PATH--></title>
<style>
body { margin: 0; font-family: sans-serif; }
header { padding: .5em 1em; background: #222; color: #eee; }
header a { color: #9cf; }
#log { margin: 0; padding: 1em; font-family: monospace; white-space: pre-wrap; }
#status { float: right; }
</style>
</head>
<body>
<header><a href="/">logyard</a> / <!--PATH--> <span id="status">connecting</span></header>
<pre id="log"></pre>
<script>
(function () {
  var out = document.getElementById("log");
  var status = document.getElementById("status");
  var scheme = location.protocol === "https:" ? "wss://" : "ws://";
  var ws = new WebSocket(scheme + location.host + location.pathname.replace(/\\/$/, "") + "/$");
  ws.onopen = function () { status.textContent = "live"; };
  ws.onclose = function () { status.textContent = "closed"; };
  ws.onmessage = function (ev) {
    var follow = window.innerHeight + window.scrollY >= document.body.scrollHeight - 4;
    out.appendChild(document.createTextNode(ev.data + "\\n"));
    if (follow) { window.scrollTo(0, document.body.scrollHeight); }
  };
})();
</script>
</body>
</html>
"""

_GROUP = "<li><h3>%s</h3><ul>%s</ul></li>"
_LINK = '<li><a href="%s">%s</a></li>'


def endpoint_path(path: str) -> str:
    """URL path of the viewer page for the file at ``path``."""
    path = path.replace("\\", "/")
    if path.startswith("/"):
        path = path[1:]
    return "/src/" + path


def stream_path(path: str) -> str:
    return endpoint_path(path) + "/$"


def _link(path: str, label: str) -> str:
    return _LINK % (html.escape(quote(endpoint_path(path))), html.escape(label))


def render_listing(catalog: Iterable[ValidSource]) -> bytes:
    parts = []
    for src in catalog:
        if not src.is_directory:
            parts.append(_link(src.path, src.path))
            continue
        links = "".join(_link(leaf.path, os.path.relpath(leaf.path, src.path))
                        for leaf in src.leaves())
        parts.append(_GROUP % (html.escape(src.path), links))
    return INDEX_HTML.replace(SOURCES_PLACEHOLDER, "".join(parts), 1).encode("utf-8")


def render_viewer(path: str) -> bytes:
    return VIEWER_HTML.replace(PATH_PLACEHOLDER, html.escape(path)).encode("utf-8")


class PageCache:
    """Holds the rendered listing page.

    The page is only ever replaced as a whole, so ``current()`` always
    returns a complete snapshot no matter how many readers race a swap.
    """

    def __init__(self, page: bytes = b""):
        self._lock = threading.Lock()
        self._snapshot: Tuple[int, bytes] = (0, bytes(page))

    def swap(self, page: bytes) -> int:
        with self._lock:
            version = self._snapshot[0] + 1
            self._snapshot = (version, bytes(page))
        log.debug("Listing page swapped, version %d (%d bytes)", version, len(page))
        return version

    def current(self) -> bytes:
        return self._snapshot[1]

    @property
    def version(self) -> int:
        return self._snapshot[0]
