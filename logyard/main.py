#!/usr/bin/env python3
"""
logyard entry point.

    logyard -src app://captures/,/var/log/app.log      serve live tails
    producer | logyard -c -rl -id nightly              capture stdin
    logyard -demo 100                                  fake traffic on stdout
"""
import argparse
import asyncio
import sys
from typing import Any, Dict, List, Optional

from .capture import run_capture
from .config import load_config
from .demo import run_demo
from .errors import LogyardError
from .logger import get_logger, setup_logging
from .paths import to_display
from .server import run_server

log = get_logger("main")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="logyard", description="Stream live log files to the browser.")
    p.add_argument("--config", help="YAML settings file; command line flags take precedence")
    # general
    p.add_argument("-id", dest="capture_id",
                   help="unique identifier for generated files (default: UTC second of the current year)")
    p.add_argument("-hdir", dest="home",
                   help="home directory, aliased as app:// in other paths (default: installation directory)")
    p.add_argument("-l", dest="logging", action="store_true", default=None,
                   help="enable logyard's own logging to stderr")
    p.add_argument("-cl", dest="capture_logs", action="store_true", default=None,
                   help="write logyard's own logs into a capture file")
    p.add_argument("-rl", dest="rolling", action="store_true", default=None,
                   help="roll log and capture files after -chunkmb megabytes")
    p.add_argument("-chunkmb", dest="chunk_mb", type=int, help="max rolling file size in megabytes")
    p.add_argument("-loglevel", dest="log_level", help="own log level (default: INFO)")
    # server mode
    p.add_argument("-host", dest="host", help="interface to listen on (default: all)")
    p.add_argument("-port", dest="port", type=int, help="port for the web UI")
    p.add_argument("-polling", dest="poll_interval_ms", type=int,
                   help="polling interval in milliseconds when streaming a file")
    p.add_argument("-src", dest="sources",
                   help="comma separated files or directories to scan for .log files")
    # capture mode
    p.add_argument("-c", dest="capture", action="store_true", default=None, help="capture mode")
    p.add_argument("-cdir", dest="capture_dir", help="directory for capture files")
    # demo mode
    p.add_argument("-demo", dest="demo_lines", type=int,
                   help="print this many demo lines to stdout, 0 for no limit")
    p.add_argument("-maxDemoInterval", dest="max_demo_sleep_ms", type=int,
                   help="max milliseconds to sleep between demo lines")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    overrides: Dict[str, Any] = {k: v for k, v in vars(args).items() if k != "config"}
    try:
        cfg = load_config(args.config, overrides).resolved()
        setup_logging(cfg)
        log.info("Initializing with args: %s", sys.argv if argv is None else argv)
        log.info("Resources initialized. Working under %r", cfg.home)
        if cfg.demo_lines >= 0:
            log.info("Starting demo mode. Iterations: %d. Sleep: %d", cfg.demo_lines, cfg.max_demo_sleep_ms)
            run_demo(cfg.demo_lines, cfg.max_demo_sleep_ms)
        elif cfg.capture:
            log.info("Starting capture mode. Capture id: %r. Capture path: %r",
                     cfg.capture_id, to_display(cfg.capture_dir, cfg.home))
            run_capture(cfg)
        else:
            log.info("Starting server mode.")
            asyncio.run(run_server(cfg))
    except (LogyardError, OSError) as e:
        log.critical("%s", e)
        print(f"logyard: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        log.info("Interrupted")
        return 130
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
