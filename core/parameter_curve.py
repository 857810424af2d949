"""Exponential mapping between slider position and resolution multiplier.

The curve is ``m = a * exp(b * p) + c`` with ``a`` the step size,
``c = minimum - a`` and ``b = ln((maximum - minimum) / a + 1)`` so that
``p = 0`` lands on ``minimum`` and ``p = 1`` on ``maximum``. Shrinking the
step compresses the curve towards ``minimum``.

The backend exchanges the multiplier as a fixed-point integer scaled by
:data:`RESOLUTION_SCALE`.
"""

from __future__ import annotations

import math

RESOLUTION_SCALE = 1024


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def encode_resolution(multiplier: float) -> int:
    """Fixed-point wire value for a multiplier, ties rounded up."""
    return int(_round_half_up(float(multiplier) * RESOLUTION_SCALE))


def decode_resolution(raw: int) -> float:
    """Multiplier recovered from a wire value, at one decimal digit.

    Ties round up: ``256`` is exactly ``0.25`` and decodes to ``0.3``.
    """
    return _round_half_up(10.0 * float(raw) / RESOLUTION_SCALE) / 10.0


def format_multiplier(multiplier: float) -> str:
    return f"{float(multiplier):.1f}"


class ParameterCurve:
    """Bidirectional slider-position <-> multiplier mapping."""

    def __init__(self, minimum: float = 0.01, maximum: float = 3.0, step: float = 0.1) -> None:
        minimum = float(minimum)
        maximum = float(maximum)
        step = float(step)
        if not minimum < maximum:
            raise ValueError("minimum must be smaller than maximum")
        if step <= 0:
            raise ValueError("step must be positive")
        self._min = minimum
        self._max = maximum
        self._a = step
        self._c = minimum - step
        self._b = math.log((maximum - minimum) / step + 1.0)

    @property
    def minimum(self) -> float:
        return self._min

    @property
    def maximum(self) -> float:
        return self._max

    @property
    def step(self) -> float:
        return self._a

    def clamp(self, multiplier: float) -> float:
        return min(max(float(multiplier), self._min), self._max)

    def to_multiplier(self, position: float) -> float:
        p = min(max(float(position), 0.0), 1.0)
        # Endpoints are returned exactly; exp/log would leave a few ulps of error.
        if p == 0.0:
            return self._min
        if p == 1.0:
            return self._max
        return self._a * math.exp(self._b * p) + self._c

    def to_position(self, multiplier: float) -> float:
        m = self.clamp(multiplier)
        if m == self._min:
            return 0.0
        if m == self._max:
            return 1.0
        p = math.log((m - self._c) / self._a) / self._b
        return min(max(p, 0.0), 1.0)

    def __repr__(self) -> str:
        return f"ParameterCurve(minimum={self._min!r}, maximum={self._max!r}, step={self._a!r})"


__all__ = [
    "ParameterCurve",
    "RESOLUTION_SCALE",
    "decode_resolution",
    "encode_resolution",
    "format_multiplier",
]
