"""Environment helpers shared across runtime modules."""

from __future__ import annotations

from typing import Mapping, MutableMapping, Optional

TRUTHY = {"1", "true", "yes", "on"}
FALSY = {"0", "false", "no", "off"}

EnvMapping = Mapping[str, str] | MutableMapping[str, str]


def _normalize(value: str | None) -> str:
    return (value or "").strip().lower()


def env_flag(value: str | None, *, default: bool = False) -> bool:
    token = _normalize(value)
    if not token:
        return default
    if token in TRUTHY:
        return True
    if token in FALSY:
        return False
    return default


def env_str(env: EnvMapping, key: str, default: Optional[str] = None) -> Optional[str]:
    """Return a stripped value; empty strings count as unset."""

    raw = env.get(key)
    if raw is None:
        return default
    value = raw.strip()
    return value or default


def env_float(env: EnvMapping, key: str, default: float) -> float:
    raw = env_str(env, key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid float for {key}: {raw!r}") from exc


def env_int(env: EnvMapping, key: str, default: int) -> int:
    raw = env_str(env, key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer for {key}: {raw!r}") from exc


__all__ = [
    "TRUTHY",
    "FALSY",
    "env_flag",
    "env_str",
    "env_float",
    "env_int",
]
