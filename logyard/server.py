#!/usr/bin/env python3
"""
Server mode: one listening socket answering plain HTTP for the pages and
websocket upgrades for the live tails.

    /                       listing of every source
    /$                      stop the server, redirect to /
    /src/<path>             viewer page for one log file
    /src/<path>/$           websocket streaming that file
"""
import asyncio
import os
import signal
from contextlib import suppress
from http import HTTPStatus
from typing import Dict, List, Optional
from urllib.parse import unquote, urlsplit

from websockets.asyncio.server import ServerConnection, serve
from websockets.datastructures import Headers
from websockets.http11 import Request, Response

from .catalog import ValidSource, build_catalog, iter_leaves, parse_sources
from .config import Config
from .errors import StartupError
from .logger import get_logger
from .pages import PageCache, endpoint_path, render_listing, render_viewer, stream_path
from .tail import TailSession

log = get_logger("server")

SHUTDOWN_PATH = "/$"
HTML = "text/html; charset=utf-8"
TEXT = "text/plain; charset=utf-8"


def _response(status: HTTPStatus, body: bytes, content_type: str = TEXT, extra=()) -> Response:
    headers = Headers([
        ("Content-Type", content_type),
        ("Content-Length", str(len(body))),
        ("Connection", "close"),
        *extra,
    ])
    return Response(status.value, status.phrase, headers, body)


def _is_upgrade(request: Request) -> bool:
    return request.headers.get("Upgrade", "").lower() == "websocket"


class Dispatcher:
    def __init__(self, cfg: Config, catalog: List[ValidSource], pages: PageCache):
        self.cfg = cfg
        self.pages = pages
        self.port: Optional[int] = None
        self.started = asyncio.Event()
        self._stop = asyncio.Event()
        self._viewers: Dict[str, bytes] = {}
        self._streams: Dict[str, ValidSource] = {}
        for leaf in iter_leaves(catalog):
            self.register(leaf)

    def register(self, leaf: ValidSource) -> None:
        path = endpoint_path(leaf.path)
        if path in self._viewers:
            log.warning("Endpoint %s registered twice, last one wins", path)
        self._viewers[path] = render_viewer(leaf.path)
        self._streams[stream_path(leaf.path)] = leaf
        log.info("Endpoint %s", path)

    @property
    def endpoints(self) -> List[str]:
        return list(self._viewers)

    def shutdown(self) -> None:
        self._stop.set()

    async def _route(self, connection: ServerConnection, request: Request) -> Optional[Response]:
        path = unquote(urlsplit(request.path).path)
        if path in self._streams and _is_upgrade(request):
            return None
        log.info("[%s]", path)
        if path == "/":
            return _response(HTTPStatus.OK, self.pages.current(), HTML)
        if path == SHUTDOWN_PATH:
            asyncio.get_running_loop().call_soon(self.shutdown)
            return _response(HTTPStatus.FOUND, b"", extra=[("Location", "/")])
        page = self._viewers.get(path)
        if page is not None:
            return _response(HTTPStatus.OK, page, HTML)
        return _response(HTTPStatus.NOT_FOUND, b"Not Found\n")

    async def _handle(self, connection: ServerConnection) -> None:
        path = unquote(urlsplit(connection.request.path).path)
        source = self._streams[path]
        tag = f"[{path}]"
        log.info("%s Viewer connected from %s", tag, connection.remote_address)
        session = TailSession(source.path, connection, self.cfg.poll_interval,
                              self.cfg.read_buffer_size, tag)
        await session.run()

    async def run(self, install_signals: bool = True) -> None:
        loop = asyncio.get_running_loop()
        try:
            server = await serve(self._handle, self.cfg.host or None, self.cfg.port,
                                 process_request=self._route)
        except OSError as e:
            raise StartupError(f"cannot listen on port {self.cfg.port}: {e}") from e
        self.port = server.sockets[0].getsockname()[1]
        log.info("Starting server on port %d", self.port)
        signals = []
        if install_signals:
            for sig in (signal.SIGINT, signal.SIGTERM):
                with suppress(NotImplementedError, RuntimeError, ValueError):
                    loop.add_signal_handler(sig, self.shutdown)
                    signals.append(sig)
        self.started.set()
        try:
            await self._stop.wait()
        finally:
            for sig in signals:
                loop.remove_signal_handler(sig)
            log.info("Shutting down...")
            server.close()
            try:
                await asyncio.wait_for(server.wait_closed(), self.cfg.shutdown_timeout)
            except asyncio.TimeoutError:
                log.critical("Server did not stop within %.1fs, exiting", self.cfg.shutdown_timeout)
                os._exit(1)
        log.info("Shutdown complete. Ending server mode.")


def build_pages(cfg: Config):
    log.info("Resolving sources: %r", cfg.sources)
    catalog = build_catalog(parse_sources(cfg.sources, cfg.home))
    log.info("Building home with %d root sources.", len(catalog))
    return catalog, PageCache(render_listing(catalog))


async def run_server(cfg: Config) -> None:
    catalog, pages = build_pages(cfg)
    await Dispatcher(cfg, catalog, pages).run()
