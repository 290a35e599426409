"""
Field precedence used when merging a stored profile with computed totals.

``pick`` is the ordered fallback chain: computed value, stored value,
default. The first truthy candidate wins, so a computed ``0`` loses to a
non-zero stored value. Dashboards depend on that precedence.
"""
from typing import Any, Callable

Candidate = Any | Callable[[], Any]


def _resolve(candidate: Candidate) -> Any:
    return candidate() if callable(candidate) else candidate


def pick(*candidates: Candidate) -> Any:
    """First truthy candidate, else the last one (the default)."""
    value = None
    for candidate in candidates:
        value = _resolve(candidate)
        if value:
            return value
    return value


def coalesce(value: Any, default: Any) -> Any:
    """``value`` unless it is missing (None); zero and empty values are kept."""
    return default if value is None else value


def flag(data: dict, name: str) -> bool:
    return bool(data.get(name) or False)


def status_label(data: dict) -> str:
    return "active" if data.get("isVerified") else "pending"
