from __future__ import annotations

import random

ERROR_DELAY_SCALE_MS = 1_000
TXN_DELAY_SCALE_US = 100_000


def error_delay_ms(rng: random.Random, max_delay: int) -> int:
    """Sleep before the next error, in milliseconds: [0, max_delay * 1000)."""
    if max_delay == 0:
        return 0
    return rng.randrange(max_delay * ERROR_DELAY_SCALE_MS)


def txn_delay_us(rng: random.Random, max_delay: int) -> int:
    """Sleep before the next transaction, in microseconds: [0, max_delay * 100000)."""
    if max_delay == 0:
        return 0
    return rng.randrange(max_delay * TXN_DELAY_SCALE_US)


def draw_depth(rng: random.Random) -> int:
    return rng.randrange(2)
