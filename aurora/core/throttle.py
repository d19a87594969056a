"""Delay primitives used between paced backend requests."""

import time
from typing import Callable

# Blocks the caller for at least the given number of milliseconds
Throttle = Callable[[int], None]


def sleep_throttle(milliseconds: int) -> None:
    time.sleep(milliseconds / 1000.0)
