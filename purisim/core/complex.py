"""Immutable complex scalar."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


Number = Union[int, float, complex, "ComplexNumber"]


def _normalize(x: float) -> float:
    # Collapse -0.0 so equality checks on zero entries behave
    return 0.0 if x == 0 else float(x)


@dataclass(frozen=True)
class ComplexNumber:
    """Complex scalar value ``re + i·im``. Every operation returns a new instance."""
    re: float = 0.0
    im: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "re", _normalize(self.re))
        object.__setattr__(self, "im", _normalize(self.im))

    @classmethod
    def coerce(cls, value: Number) -> ComplexNumber:
        if isinstance(value, ComplexNumber):
            return value
        c = complex(value)
        return cls(c.real, c.imag)

    @classmethod
    def zero(cls) -> ComplexNumber:
        return cls(0.0, 0.0)

    @classmethod
    def one(cls) -> ComplexNumber:
        return cls(1.0, 0.0)

    def add(self, other: Number) -> ComplexNumber:
        o = ComplexNumber.coerce(other)
        return ComplexNumber(self.re + o.re, self.im + o.im)

    def sub(self, other: Number) -> ComplexNumber:
        o = ComplexNumber.coerce(other)
        return ComplexNumber(self.re - o.re, self.im - o.im)

    def mul(self, other: Number) -> ComplexNumber:
        o = ComplexNumber.coerce(other)
        return ComplexNumber(self.re * o.re - self.im * o.im,
                             self.re * o.im + self.im * o.re)

    def div(self, other: Number) -> ComplexNumber:
        o = ComplexNumber.coerce(other)
        denom = o.re * o.re + o.im * o.im
        if denom == 0:
            raise ZeroDivisionError("complex division by zero")
        return ComplexNumber((self.re * o.re + self.im * o.im) / denom,
                             (self.im * o.re - self.re * o.im) / denom)

    def conjugate(self) -> ComplexNumber:
        return ComplexNumber(self.re, -self.im)

    def abs2(self) -> float:
        return self.re * self.re + self.im * self.im

    def __complex__(self) -> complex:
        return complex(self.re, self.im)

    __add__ = add
    __sub__ = sub
    __mul__ = mul
    __truediv__ = div

    def __radd__(self, other: Number) -> ComplexNumber:
        return ComplexNumber.coerce(other).add(self)

    def __rmul__(self, other: Number) -> ComplexNumber:
        return ComplexNumber.coerce(other).mul(self)

    def __neg__(self) -> ComplexNumber:
        return ComplexNumber(-self.re, -self.im)

    def isclose(self, other: Number, atol: float = 1e-10) -> bool:
        o = ComplexNumber.coerce(other)
        return abs(self.re - o.re) <= atol and abs(self.im - o.im) <= atol

    def __repr__(self) -> str:
        return f"ComplexNumber({self.re:g}{self.im:+g}j)"
