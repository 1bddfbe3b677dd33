"""Load-shape configuration read from the environment.

Variables:
  SL_DSN           telemetry endpoint (required)
  SL_RUNNERS       number of runner pairs (default 2)
  SL_ERRORS        error events per runner (default 2)
  SL_TRANSACTIONS  transactions per runner (default 5)
  SL_DELAY         max randomized delay unit (default 2)
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

DSN_ENV = "SL_DSN"
RUNNERS_ENV = "SL_RUNNERS"
ERRORS_ENV = "SL_ERRORS"
TXN_ENV = "SL_TRANSACTIONS"
DELAY_ENV = "SL_DELAY"

DEFAULT_RUNNERS = 2
DEFAULT_ERRORS = 2
DEFAULT_TRANSACTIONS = 5
DEFAULT_DELAY = 2

U32_MAX = 2**32 - 1

_UNSIGNED_RE = re.compile(r"\+?[0-9]+")


class ConfigError(Exception):
    pass


class MissingRequiredSetting(ConfigError):
    def __init__(self, name: str):
        super().__init__(f"${name} is not set")
        self.name = name


class InvalidSettingFormat(ConfigError):
    def __init__(self, name: str, value: str):
        super().__init__(f"${name} must be an unsigned integer, got {value!r}")
        self.name = name
        self.value = value


@dataclass(frozen=True)
class Config:
    endpoint: str
    runners: int
    errors: int
    transactions: int
    delay: int


def _parse_u32(name: str, value: str) -> int:
    if not _UNSIGNED_RE.fullmatch(value):
        raise InvalidSettingFormat(name, value)
    n = int(value)
    if n > U32_MAX:
        raise InvalidSettingFormat(name, value)
    return n


def _load_u32(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if value is None:
        print(f"${name} not set, using default: {default}")
        return default
    return _parse_u32(name, value)


def configure(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Resolve the full configuration or raise ConfigError.

    Absent numeric settings fall back to their defaults with a notice on
    stdout. The endpoint has no default.
    """
    env = os.environ if environ is None else environ

    endpoint = env.get(DSN_ENV)
    if endpoint is None:
        raise MissingRequiredSetting(DSN_ENV)

    return Config(
        endpoint=endpoint,
        runners=_load_u32(env, RUNNERS_ENV, DEFAULT_RUNNERS),
        errors=_load_u32(env, ERRORS_ENV, DEFAULT_ERRORS),
        transactions=_load_u32(env, TXN_ENV, DEFAULT_TRANSACTIONS),
        delay=_load_u32(env, DELAY_ENV, DEFAULT_DELAY),
    )
