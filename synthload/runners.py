from __future__ import annotations

import random
import time
from typing import Optional

from .delays import draw_depth, error_delay_ms, txn_delay_us
from .otel_setup import ReportingClient
from .spans import build_span_tree, emit_span_tree


class SyntheticError(Exception):
    pass


def error_message(label: str, seq: int, sleep: int) -> str:
    return f"Synthetic error: name = {label}, seq = seq_{seq}, sleep = {sleep}"


def transaction_name(label: str, seq: int, sleep: int) -> str:
    return f"tx: name = {label}, seq = seq_{seq}, sleep = {sleep}, level = 0"


def run_errors(
    client: ReportingClient,
    label: str,
    count: int,
    max_delay: int,
    *,
    rng: Optional[random.Random] = None,
) -> None:
    rng = rng or random.Random()

    for seq in range(count):
        sleep_ms = error_delay_ms(rng, max_delay)
        client.capture_error(SyntheticError(error_message(label, seq, sleep_ms)))
        if sleep_ms > 0:
            time.sleep(sleep_ms / 1000.0)


def run_transactions(
    client: ReportingClient,
    label: str,
    count: int,
    max_delay: int,
    *,
    rng: Optional[random.Random] = None,
) -> None:
    rng = rng or random.Random()

    for seq in range(count):
        sleep_us = txn_delay_us(rng, max_delay)
        depth = draw_depth(rng)

        tree = build_span_tree(transaction_name(label, seq, sleep_us), depth)
        emit_span_tree(client.tracer, tree)
        client.record_transaction()

        if sleep_us > 0:
            time.sleep(sleep_us / 1_000_000.0)
