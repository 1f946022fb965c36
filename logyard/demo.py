import random, sys, time, logging
from typing import Callable, Optional

FORMAT = "Demo log line %d. Sample string: %r"
SAMPLE = "this string will appear %d times :)"


def demo_logger(stream=None) -> logging.Logger:
    logger = logging.getLogger("logyard-demo")
    logger.propagate = False
    logger.setLevel(logging.INFO)
    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
        logger.addHandler(handler)
    return logger


def demo_line(i: int, rng: random.Random) -> str:
    # min of three draws skews towards short lines
    n = min(rng.randrange(12), rng.randrange(12), rng.randrange(12)) + 1
    return FORMAT % (i, " ".join([SAMPLE % n] * n))


def run_demo(lines: int, max_sleep_ms: int, logger: Optional[logging.Logger] = None,
             rng: Optional[random.Random] = None,
             sleep: Callable[[float], None] = time.sleep) -> int:
    """Emit ``lines`` fake log lines, or forever when ``lines`` is 0."""
    logger = logger or demo_logger()
    rng = rng or random.Random()
    i = 0
    while lines == 0 or i < lines:
        if max_sleep_ms:
            sleep(rng.randrange(max_sleep_ms) / 1000.0)
        logger.info(demo_line(i, rng))
        i += 1
    return i
