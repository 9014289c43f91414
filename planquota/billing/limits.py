"""Numeric plan limits: either a bounded count or unlimited.

Storage and wire formats keep the historical ``-1`` sentinel for "unlimited";
inside the engine every limit is a ``Limit`` value so sign checks never leak
into business logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import PlainSerializer, PlainValidator

UNLIMITED_SENTINEL = -1


@dataclass(frozen=True, slots=True)
class Unlimited:
    """No ceiling on usage."""

    def __str__(self) -> str:
        return "unlimited"


@dataclass(frozen=True, slots=True)
class Bounded:
    """A non-negative ceiling on usage."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int) or self.value < 0:
            msg = f"Bounded limit must be a non-negative integer, got {self.value!r}"
            raise ValueError(msg)

    def __str__(self) -> str:
        return str(self.value)


Limit = Unlimited | Bounded

UNLIMITED = Unlimited()


def limit_from_wire(value: Any) -> Limit:
    """Parse a stored limit: ``-1`` is unlimited, other ints must be >= 0."""
    if isinstance(value, Unlimited | Bounded):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"Limit must be an integer, got {value!r}"
        raise ValueError(msg)
    if value == UNLIMITED_SENTINEL:
        return UNLIMITED
    if value < 0:
        msg = f"Limit must be >= 0 or {UNLIMITED_SENTINEL} (unlimited), got {value}"
        raise ValueError(msg)
    return Bounded(value)


def limit_to_wire(limit: Limit) -> int:
    if isinstance(limit, Unlimited):
        return UNLIMITED_SENTINEL
    return limit.value


def is_exceeded(usage: int, limit: Limit) -> bool:
    """True once usage has reached a bounded limit. Never true when unlimited."""
    if isinstance(limit, Unlimited):
        return False
    return usage >= limit.value


def remaining(usage: int, limit: Limit) -> int | None:
    """Units left before the limit is reached; ``None`` when unlimited."""
    if isinstance(limit, Unlimited):
        return None
    return max(0, limit.value - usage)


# Pydantic field type: validates from the wire int, serializes back to it
LimitField = Annotated[
    Limit,
    PlainValidator(limit_from_wire, json_schema_input_type=int),
    PlainSerializer(limit_to_wire, return_type=int),
]
