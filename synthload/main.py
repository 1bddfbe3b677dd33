#!/usr/bin/env python3
"""Run synthetic error and transaction load against a telemetry endpoint.

Load shape comes from the environment (SL_DSN, SL_RUNNERS, SL_ERRORS,
SL_TRANSACTIONS, SL_DELAY). For every runner index two threads are started:
one reports synthetic errors, the other emits nested transaction traces.
The process exits once every thread has finished.

Usage:
  SL_DSN=localhost:4317 SL_RUNNERS=4 python -m synthload --insecure
  SL_DSN=http://localhost:4318/v1/traces python -m synthload --protocol http --metrics-port 9464
"""

from __future__ import annotations

import argparse
import os
import random
import sys
import threading
from typing import Callable, List, Optional, Sequence

from .config import Config, ConfigError, configure
from .otel_setup import ClientOptions, ReportingClient, init_client
from .runners import run_errors, run_transactions

RunFn = Callable[..., None]


class RunnerPanic(Exception):
    def __init__(self, label: str):
        super().__init__(f"runner {label} failed")
        self.label = label


class RunnerThread(threading.Thread):
    """Thread that keeps the exception of its target for the joiner."""

    def __init__(self, label: str, fn: RunFn, *args, **kwargs):
        super().__init__(name=label)
        self.label = label
        self._fn = fn
        self._fn_args = args
        self._fn_kwargs = kwargs
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        try:
            self._fn(*self._fn_args, **self._fn_kwargs)
        except Exception as exc:
            self.error = exc


def runner_label(role: str, index: int, pid: Optional[int] = None) -> str:
    return f"{role}_{index}_{os.getpid() if pid is None else pid}"


def start_runners(
    cfg: Config,
    client: ReportingClient,
    *,
    seed: Optional[int] = None,
    error_fn: RunFn = run_errors,
    txn_fn: RunFn = run_transactions,
) -> List[RunnerThread]:
    # One private RNG per thread; random.Random is not shared across threads.
    seeder = random.Random(seed)

    pending: List[RunnerThread] = []
    for i in range(cfg.runners):
        pending.append(RunnerThread(
            runner_label("err", i), error_fn, client, runner_label("err", i), cfg.errors, cfg.delay,
            rng=random.Random(seeder.getrandbits(64)),
        ))
        pending.append(RunnerThread(
            runner_label("txn", i), txn_fn, client, runner_label("txn", i), cfg.transactions, cfg.delay,
            rng=random.Random(seeder.getrandbits(64)),
        ))

    started: List[RunnerThread] = []
    try:
        for t in pending:
            t.start()
            started.append(t)
    except Exception:
        # Runners already emitting must finish before the client is shut down.
        for t in started:
            t.join()
        raise
    return started


def join_runners(threads: Sequence[RunnerThread]) -> None:
    for t in threads:
        t.join()

    for t in threads:
        if t.error is not None:
            raise RunnerPanic(t.label) from t.error


def _print_config(cfg: Config) -> None:
    print(f"DSN: {cfg.endpoint}")
    print(f"Runners: {cfg.runners}")
    print(f"Errors: {cfg.errors}")
    print(f"Transactions: {cfg.transactions}")
    print(f"Delay max: {cfg.delay}")


def _sample_rate(value: str) -> float:
    rate = float(value)
    if not 0.0 <= rate <= 1.0:
        raise argparse.ArgumentTypeError(f"sample rate must be within [0, 1], got {rate}")
    return rate


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="synthload", description=__doc__.splitlines()[0])
    ap.add_argument("--service-name", default=ClientOptions.service_name, help="Resource service.name")
    ap.add_argument("--protocol", choices=("grpc", "http"), default=ClientOptions.protocol,
                    help="OTLP transport used to reach SL_DSN")
    ap.add_argument("--insecure", action="store_true", help="Use insecure gRPC (no TLS)")
    ap.add_argument("--sample-rate", type=_sample_rate, default=ClientOptions.sample_rate,
                    help="Fraction of traces kept, 0..1")
    ap.add_argument("--metrics-port", type=int, default=None,
                    help="Serve emitted-event counters for Prometheus on this port")
    ap.add_argument("--seed", type=int, default=None, help="RNG seed for delays and depths")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = configure()
    except ConfigError as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        return 1

    _print_config(cfg)

    options = ClientOptions(
        service_name=args.service_name,
        protocol=args.protocol,
        insecure=bool(args.insecure),
        sample_rate=args.sample_rate,
        metrics_port=args.metrics_port,
    )
    client = init_client(cfg.endpoint, options)

    try:
        threads = start_runners(cfg, client, seed=args.seed)
        join_runners(threads)
    except RunnerPanic as exc:
        sys.stderr.write(f"ERROR: {exc}: {exc.__cause__!r}\n")
        return 1
    finally:
        client.shutdown()

    print("done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
