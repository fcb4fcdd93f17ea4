"""Idempotency levels of procedures."""

from __future__ import annotations

import enum
from typing import Any, Optional

__all__ = ["IdempotencyLevel"]


class IdempotencyLevel(enum.IntEnum):
    """How idempotent a procedure is.

    The values match ``google.protobuf.MethodOptions.IdempotencyLevel``.
    Integers outside the known set are accepted and kept as-is.
    """

    UNKNOWN = 0
    NO_SIDE_EFFECTS = 1
    IDEMPOTENT = 2

    @classmethod
    def _missing_(cls, value: Any) -> Optional["IdempotencyLevel"]:
        if isinstance(value, int) and not isinstance(value, bool):
            member = int.__new__(cls, value)
            member._name_ = f"IDEMPOTENCY_{value}"
            member._value_ = value
            return member
        return None

    def __str__(self) -> str:
        return _LABELS.get(int(self), f"idempotency_{int(self)}")

    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)


_LABELS = {
    0: "idempotency_unknown",
    1: "no_side_effects",
    2: "idempotent",
}