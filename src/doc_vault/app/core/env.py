"""Deployment environment for doc-vault.

The environment only picks logging defaults (plain text with DEBUG locally,
JSON with INFO in prod). Storage behaviour never depends on it.
"""

from __future__ import annotations

import os
import warnings
from enum import StrEnum
from functools import cache
from typing import Mapping, NamedTuple

# Checked in order; the first one set wins.
ENV_VARS = ("DOCVAULT_ENV", "APP_ENV")


class Env(StrEnum):
    LOCAL = "local"
    DEV = "dev"
    TEST = "test"
    PROD = "prod"


_ALIASES: dict[Env, tuple[str, ...]] = {
    Env.LOCAL: ("local",),
    Env.DEV: ("dev", "development"),
    Env.TEST: ("test", "testing", "ci"),
    Env.PROD: ("prod", "production"),
}
_BY_SPELLING = {spelling: env for env, spellings in _ALIASES.items() for spelling in spellings}


def normalize_env(raw: str | None) -> Env | None:
    """Map a spelling such as ``"Production"`` to an :class:`Env`, or ``None``."""
    if not raw:
        return None
    return _BY_SPELLING.get(raw.strip().lower())


def resolve_env(environ: Mapping[str, str] = os.environ) -> Env:
    """Environment named by the first of ``ENV_VARS`` that is set.

    An unknown spelling warns and falls back to LOCAL, as does no setting.
    """
    raw = next((environ[name] for name in ENV_VARS if environ.get(name)), None)
    env = normalize_env(raw)
    if env is not None:
        return env
    if raw:
        warnings.warn(
            f"Unrecognized environment '{raw}' in {'/'.join(ENV_VARS)}, using 'local'.",
            RuntimeWarning,
            stacklevel=2,
        )
    return Env.LOCAL


@cache
def get_env() -> Env:
    return resolve_env()


class EnvFlags(NamedTuple):
    env: Env
    is_local: bool
    is_dev: bool
    is_test: bool
    is_prod: bool


def get_env_flags(env: Env | None = None) -> EnvFlags:
    e = env or get_env()
    return EnvFlags(e, *(e is member for member in (Env.LOCAL, Env.DEV, Env.TEST, Env.PROD)))


ENV: Env = get_env()
IS_LOCAL, IS_DEV, IS_TEST, IS_PROD = get_env_flags(ENV)[1:]
