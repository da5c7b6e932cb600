"""Typed integer counters and their delta arithmetic."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass


class NumericKind(enum.Enum):
    """Closed set of integer kinds a counter field may carry.

    ``INT`` and ``UINT`` are the machine-width kinds (64 bits).
    """

    INT8 = (8, True)
    INT16 = (16, True)
    INT32 = (32, True)
    INT64 = (64, True)
    UINT8 = (8, False)
    UINT16 = (16, False)
    UINT32 = (32, False)
    UINT64 = (64, False)
    INT = (64, True, "int")
    UINT = (64, False, "uint")

    @property
    def bits(self) -> int:
        return self.value[0]

    @property
    def signed(self) -> bool:
        return self.value[1]

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def wrap(self, value: int) -> int:
        """Reduce an arbitrary integer into this kind's range."""
        value &= (1 << self.bits) - 1
        if self.signed and value > self.max_value:
            value -= 1 << self.bits
        return value


@dataclass(frozen=True)
class Counter:
    """An integer value tagged with its numeric kind."""

    kind: NumericKind
    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", self.kind.wrap(int(self.value)))

    def delta(self, previous: Counter, factor: float = 1.0) -> Counter:
        """Return ``(self - previous) * factor`` in this counter's kind.

        Subtraction wraps like the kind's native arithmetic; the scaled
        result is truncated toward zero before being cast back.
        """
        raw = self.kind.wrap(self.value - self.kind.wrap(previous.value))
        if factor == 1.0:
            return Counter(self.kind, raw)
        scaled = float(raw) * factor
        if not math.isfinite(scaled):
            return Counter(self.kind, 0)
        return Counter(self.kind, int(scaled))

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"Counter({self.kind.name}, {self.value})"


def int8(value: int) -> Counter:
    return Counter(NumericKind.INT8, value)


def int16(value: int) -> Counter:
    return Counter(NumericKind.INT16, value)


def int32(value: int) -> Counter:
    return Counter(NumericKind.INT32, value)


def int64(value: int) -> Counter:
    return Counter(NumericKind.INT64, value)


def uint8(value: int) -> Counter:
    return Counter(NumericKind.UINT8, value)


def uint16(value: int) -> Counter:
    return Counter(NumericKind.UINT16, value)


def uint32(value: int) -> Counter:
    return Counter(NumericKind.UINT32, value)


def uint64(value: int) -> Counter:
    return Counter(NumericKind.UINT64, value)


def machine_int(value: int) -> Counter:
    return Counter(NumericKind.INT, value)


def machine_uint(value: int) -> Counter:
    return Counter(NumericKind.UINT, value)


def plain(value: object) -> object:
    """Unwrap a :class:`Counter` into a builtin int; other values pass through."""
    if isinstance(value, Counter):
        return value.value
    return value
