"""Payload guards for daemon JSON responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any


def expect_dict(value: object, context: str) -> dict:
    if isinstance(value, dict):
        return value
    value_type = type(value).__name__
    raise ValueError(f"{context} has unexpected type '{value_type}'")


def expect_list_of_dicts(value: object, context: str) -> list[dict]:
    if not isinstance(value, list):
        value_type = type(value).__name__
        raise ValueError(f"{context} has unexpected type '{value_type}'")
    return [expect_dict(item, f"{context}[{idx}]") for idx, item in enumerate(value)]


def optional_dict(container: dict, key: str, context: str) -> dict:
    value = container.get(key, {})
    if value is None:
        return {}
    return expect_dict(value, f"{context}.{key}")


def optional_list_of_dicts(container: dict, key: str, context: str) -> list[dict]:
    value = container.get(key, [])
    if value is None:
        return []
    return expect_list_of_dicts(value, f"{context}.{key}")


def optional_int(container: dict, key: str, context: str) -> int | None:
    value = container.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"{context}.{key} expected numeric value, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{context}.{key} expected numeric value, got {value!r}")


def int_or_zero(container: dict, key: str, context: str) -> int:
    value = optional_int(container, key, context)
    return 0 if value is None else value


def float_or_zero(container: dict, key: str, context: str) -> float:
    value = container.get(key)
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{context}.{key} expected numeric value, got {value!r}")


def optional_str(container: dict, key: str) -> str:
    value = container.get(key)
    return "" if value is None else str(value)


def optional_timestamp(container: dict, key: str) -> datetime | None:
    """Parse a .NET style ISO timestamp (up to 7 fractional digits, optional Z)."""
    value: Any = container.get(key)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    head, sep, tail = text.partition(".")
    if sep:
        digits = ""
        rest = tail
        while rest and rest[0].isdigit():
            digits += rest[0]
            rest = rest[1:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest}"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
