# multibias/contingency.py
from __future__ import annotations
from dataclasses import dataclass
import numpy as np
import pandas as pd

from .errors import InvalidEstimate

@dataclass(frozen=True)
class Contingency2x2:
    # rows: exposed (X=1), unexposed (X=0); columns: diseased (D=1), not diseased (D=0)
    a: int  # n11: exposed & diseased
    b: int  # n10: exposed & not diseased
    c: int  # n01: unexposed & diseased
    d: int  # n00: unexposed & not diseased

    def __post_init__(self) -> None:
        if min(self.a, self.b, self.c, self.d) < 0:
            raise InvalidEstimate("Negative cell counts are impossible.")

    @classmethod
    def from_counts(cls, n11: int, n10: int, n01: int, n00: int) -> "Contingency2x2":
        return cls(a=n11, b=n10, c=n01, d=n00)

    @property
    def n_exposed(self) -> int:
        return self.a + self.b

    @property
    def n_unexposed(self) -> int:
        return self.c + self.d

    @property
    def total(self) -> int:
        return self.a + self.b + self.c + self.d

    def as_array(self) -> np.ndarray:
        return np.array([[self.a, self.b], [self.c, self.d]], dtype=int)

def build_2x2(
    cohort: pd.DataFrame,
    *,
    exposure_col: str,
    outcome_col: str,
    exposed_value: str,
    unexposed_value: str,
    outcome_positive_value: float = 1.0,
) -> Contingency2x2:
    """
    Counts a 2x2 table from one row per subject:
            D=1   D=0
    X=1      a     b
    X=0      c     d
    Rows missing exposure or outcome are dropped; other exposure values are ignored.
    """
    missing = [col for col in (exposure_col, outcome_col) if col not in cohort.columns]
    if missing:
        raise KeyError(f"Column(s) not found: {missing}")

    df = cohort[[exposure_col, outcome_col]].dropna()
    exposure = df[exposure_col].astype(str)
    event = df[outcome_col] == outcome_positive_value

    counts = pd.crosstab(exposure, event)
    counts = counts.reindex(
        index=[str(exposed_value), str(unexposed_value)], columns=[True, False], fill_value=0
    )

    (a, b), (c, d) = counts.to_numpy().tolist()
    return Contingency2x2(a=int(a), b=int(b), c=int(c), d=int(d))
