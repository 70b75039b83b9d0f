# multibias/measures.py
"""
Effect measures and their conversion to the risk ratio scale.

  RR   risk or rate ratio, used as is
  OR   odds ratio; sqrt(OR) when the outcome is common (VanderWeele 2017)
  HR   hazard ratio; (1 - 0.5**sqrt(HR)) / (1 - 0.5**sqrt(1/HR)) when common
  MD   standardized mean difference d; exp(0.91 * d) (Chinn 2000)
  OLS  linear regression coefficient; rescaled by delta / sd to an MD

An outcome is "rare" when it is below roughly 15% at end of follow-up.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import ClassVar, Union

from .errors import InvalidEstimate


@dataclass(frozen=True)
class Estimate:
    value: float

    measure: ClassVar[str] = ""
    null: ClassVar[float] = 1.0

    def to_rr(self) -> float:
        raise NotImplementedError

    def like(self, value: float) -> "Estimate":
        """Same measure and options, different value (for CI limits)."""
        return replace(self, value=value)


@dataclass(frozen=True)
class RR(Estimate):
    measure: ClassVar[str] = "RR"

    def to_rr(self) -> float:
        return float(self.value)


@dataclass(frozen=True)
class OR(Estimate):
    rare: bool

    measure: ClassVar[str] = "OR"

    def __post_init__(self) -> None:
        if self.rare is None:
            raise InvalidEstimate("Must specify whether the outcome is rare for an odds ratio.")

    def to_rr(self) -> float:
        if self.rare:
            return float(self.value)
        return math.sqrt(self.value)


@dataclass(frozen=True)
class HR(Estimate):
    rare: bool

    measure: ClassVar[str] = "HR"

    def __post_init__(self) -> None:
        if self.rare is None:
            raise InvalidEstimate("Must specify whether the outcome is rare for a hazard ratio.")

    def to_rr(self) -> float:
        if self.rare:
            return float(self.value)
        hr = float(self.value)
        return (1.0 - 0.5 ** math.sqrt(hr)) / (1.0 - 0.5 ** math.sqrt(1.0 / hr))


@dataclass(frozen=True)
class MD(Estimate):
    measure: ClassVar[str] = "MD"
    null: ClassVar[float] = 0.0

    def to_rr(self) -> float:
        return math.exp(0.91 * self.value)


@dataclass(frozen=True)
class OLS(Estimate):
    sd: float

    measure: ClassVar[str] = "OLS"
    null: ClassVar[float] = 0.0

    def __post_init__(self) -> None:
        if self.sd is None or not self.sd > 0:
            raise InvalidEstimate("The outcome standard deviation must be positive.")

    def to_md(self, delta: float = 1.0) -> MD:
        return MD(self.value * delta / self.sd)

    def to_rr(self, delta: float = 1.0) -> float:
        return self.to_md(delta).to_rr()


Measure = Union[float, Estimate]


def to_rr(x: Measure) -> float:
    """Convert an estimate to the risk ratio scale; plain numbers are taken as RRs."""
    if isinstance(x, Estimate):
        return x.to_rr()
    return float(x)
