"""
Launcher Release — Logger and external step timing.

RELEASE_LOG_LEVEL picks the level (default INFO).
"""

import logging
import os
import time
from contextlib import contextmanager
from typing import Generator

LOG_LEVEL = os.getenv("RELEASE_LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)-7s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("launcher_release")


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


@contextmanager
def step_timer(step_name: str) -> Generator[None, None, None]:
    """Log an external step's start and duration, including when it raises."""
    logger.info("▶ %s", step_name)
    start = time.perf_counter()
    try:
        yield
    except Exception:
        logger.error("✗ %s failed after %.0f ms", step_name, _elapsed_ms(start))
        raise
    logger.info("✔ %s done in %.0f ms", step_name, _elapsed_ms(start))
