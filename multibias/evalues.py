# multibias/evalues.py
"""
E-values for a single source of unmeasured confounding (VanderWeele & Ding, 2017).

The E-value is the minimum strength of association, on the risk ratio
scale, that an unmeasured confounder would need to have with both the
exposure and the outcome to fully explain away an observed association.
Only the confidence limit closer to the true value gets an E-value.
"""
from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import pandas as pd
from scipy.optimize import brentq
from scipy.stats import norm

from .contingency import Contingency2x2
from .diagnostics import Sink, emit
from .errors import (
    EstimateOutsideInterval,
    InvalidEstimate,
    InvalidInterval,
    SearchDidNotConverge,
)
from .measures import HR, MD, OLS, OR, RR, Estimate

# root search settings shared with the multi-bias search
XTOL = 1e-12
RTOL = 1e-10
MAXITER = 200


@dataclass(frozen=True)
class EValues:
    """Observed values (ratio scale) and their E-values; None means not applicable."""

    measure: str
    point: float
    lower: Optional[float]
    upper: Optional[float]
    evalue_point: float
    evalue_lower: Optional[float]
    evalue_upper: Optional[float]

    @property
    def evalues(self) -> Dict[str, Optional[float]]:
        return {"point": self.evalue_point, "lower": self.evalue_lower, "upper": self.evalue_upper}

    def summary(self) -> float:
        return self.evalue_point

    def as_dict(self) -> Dict[str, Any]:
        return {
            "measure": self.measure,
            "values": {"point": self.point, "lower": self.lower, "upper": self.upper},
            "evalues": self.evalues,
        }

    def to_frame(self) -> pd.DataFrame:
        rows = [
            [self.point, self.lower, self.upper],
            [self.evalue_point, self.evalue_lower, self.evalue_upper],
        ]
        return pd.DataFrame(
            rows, index=[self.measure, "E-values"], columns=["point", "lower", "upper"], dtype=float
        )


def threshold(x: Optional[float], true: float = 1.0) -> Optional[float]:
    """
    E-value for a single risk ratio `x`, shifting it to `true`.
    Apparently preventive ratios (x <= 1) are handled through their reciprocals.
    """
    if x is None:
        return None
    if not x > 0 or not math.isfinite(x):
        raise InvalidEstimate(f"The risk ratio must be positive and finite, got {x!r}")
    if not true > 0 or not math.isfinite(true):
        raise InvalidEstimate(f"The true value must be a positive finite ratio, got {true!r}")

    if x <= 1:
        x = 1.0 / x
        true = 1.0 / true

    # standard case: causal effect is toward null
    if true <= x:
        return (x + math.sqrt(x * (x - true))) / true

    # causal effect is away from null
    rat = true / x
    return rat + math.sqrt(rat * (rat - 1.0))


def solve_increasing(
    fn: Callable[[float], float], lo: float, hi: float, what: str = "E-value"
) -> float:
    """Root of an increasing function on [lo, hi]; fails instead of guessing."""
    try:
        root, info = brentq(fn, lo, hi, xtol=XTOL, rtol=RTOL, maxiter=MAXITER, full_output=True, disp=False)
    except ValueError as e:
        raise SearchDidNotConverge(f"Could not bracket the {what} in [{lo:g}, {hi:g}]: {e}") from e
    if not info.converged:
        raise SearchDidNotConverge(
            f"Search for the {what} did not converge after {info.iterations} iterations ({info.flag})."
        )
    return float(root)


def _check_positive(name: str, x: Optional[float]) -> None:
    if x is None:
        return
    if not isinstance(x, numbers.Real) or isinstance(x, bool):
        raise InvalidEstimate(f"{name} must be a number, got {x!r}")
    if not math.isfinite(x) or x <= 0:
        raise InvalidEstimate(f"{name} must be a positive finite ratio, got {x!r}")


def check_observed(est: float, lo: Optional[float], hi: Optional[float], true: float) -> None:
    _check_positive("Point estimate", est)
    _check_positive("Lower confidence limit", lo)
    _check_positive("Upper confidence limit", hi)
    _check_positive("True value", true)

    if lo is not None and hi is not None and lo > hi:
        raise InvalidInterval("Lower confidence limit should be less than upper confidence limit")
    if (lo is not None and est < lo) or (hi is not None and est > hi):
        raise EstimateOutsideInterval("Point estimate should be inside confidence interval")


def ci_evalues(
    est: float,
    lo: Optional[float],
    hi: Optional[float],
    true: float,
    solve: Callable[[float], float],
    sink: Optional[Sink] = None,
) -> tuple[float, Optional[float], Optional[float]]:
    """
    E-values for the point estimate and the confidence limit nearer `true`.
    `solve(x)` gives the E-value of a value x that lies strictly on one side of `true`.
    """
    e_point = 1.0 if est == true else solve(est)
    e_lo: Optional[float] = None
    e_hi: Optional[float] = None

    if lo is None and hi is None:
        return e_point, e_lo, e_hi

    crossed = False
    if est > true:
        if lo is not None:
            crossed = lo <= true
            e_lo = 1.0 if crossed else solve(lo)
    elif est < true:
        if hi is not None:
            crossed = hi >= true
            e_hi = 1.0 if crossed else solve(hi)
    else:
        e_lo = 1.0

    if crossed:
        emit("Confidence interval crosses the true value, so its E-value is 1.", sink)
    return e_point, e_lo, e_hi


def evalues_rr(
    est: float,
    lo: Optional[float] = None,
    hi: Optional[float] = None,
    true: float = 1.0,
    *,
    sink: Optional[Sink] = None,
    measure: str = "RR",
) -> EValues:
    """E-values for a risk ratio or rate ratio and its confidence limits."""
    check_observed(est, lo, hi, true)

    if true != 1:
        emit(
            'You are calculating a "non-null" E-value, i.e., an E-value for the minimum '
            "amount of unmeasured confounding needed to move the estimate and confidence "
            "interval to your specified true value rather than to the null value.",
            sink,
        )

    e_point, e_lo, e_hi = ci_evalues(est, lo, hi, true, lambda x: threshold(x, true), sink)
    return EValues(
        measure=measure,
        point=float(est),
        lower=None if lo is None else float(lo),
        upper=None if hi is None else float(hi),
        evalue_point=e_point,
        evalue_lower=e_lo,
        evalue_upper=e_hi,
    )


def _ratio_to_rr(name: str, x: Optional[float], template: Estimate) -> Optional[float]:
    if x is None:
        return None
    _check_positive(name, x)
    return template.like(x).to_rr()


def evalues_or(
    est: float,
    lo: Optional[float] = None,
    hi: Optional[float] = None,
    *,
    rare: bool,
    true: float = 1.0,
    sink: Optional[Sink] = None,
) -> EValues:
    """
    E-values for an odds ratio. With a common outcome (rare=False) the odds
    ratio is converted to an approximate risk ratio by its square root.
    """
    _check_positive("Odds ratio", est)
    o = OR(est, rare=rare)
    return evalues_rr(
        o.to_rr(),
        _ratio_to_rr("Lower confidence limit", lo, o),
        _ratio_to_rr("Upper confidence limit", hi, o),
        _ratio_to_rr("True value", true, o),
        sink=sink,
    )


def evalues_hr(
    est: float,
    lo: Optional[float] = None,
    hi: Optional[float] = None,
    *,
    rare: bool,
    true: float = 1.0,
    sink: Optional[Sink] = None,
) -> EValues:
    """E-values for a hazard ratio, approximately converted when the outcome is common."""
    _check_positive("Hazard ratio", est)
    h = HR(est, rare=rare)
    return evalues_rr(
        h.to_rr(),
        _ratio_to_rr("Lower confidence limit", lo, h),
        _ratio_to_rr("Upper confidence limit", hi, h),
        _ratio_to_rr("True value", true, h),
        sink=sink,
    )


def evalues_md(
    est: float,
    se: Optional[float] = None,
    true: float = 0.0,
    *,
    sink: Optional[Sink] = None,
) -> EValues:
    """
    E-values for a standardized mean difference (Cohen's d), through the
    approximate conversion RR = exp(0.91 * d) and limits exp(0.91 * d -/+ 1.78 * se).
    """
    if se is not None and se < 0:
        raise InvalidEstimate("Standard error cannot be negative")

    lo = hi = None
    if se is not None:
        lo = math.exp(0.91 * est - 1.78 * se)
        hi = math.exp(0.91 * est + 1.78 * se)

    return evalues_rr(MD(est).to_rr(), lo, hi, MD(true).to_rr(), sink=sink)


def evalues_ols(
    est: float,
    se: Optional[float] = None,
    *,
    sd: float,
    delta: float = 1.0,
    true: float = 0.0,
    sink: Optional[Sink] = None,
) -> EValues:
    """
    E-values for a linear regression coefficient with continuous exposure and
    outcome. `delta` is the exposure contrast of interest and `sd` the outcome
    (or residual) standard deviation, treated as known.
    """
    if se is not None and se < 0:
        raise InvalidEstimate("Standard error cannot be negative")
    if delta < 0:
        delta = -delta
        emit("Recoding delta to be positive", sink)

    ols = OLS(est, sd=sd)
    md_se = None if se is None else OLS(se, sd=sd).to_md(delta).value
    return evalues_md(ols.to_md(delta).value, md_se, true, sink=sink)


def _value(x: Any) -> Optional[float]:
    if isinstance(x, Estimate):
        return float(x.value)
    return x


def evalue(
    est: Estimate,
    lo: Any = None,
    hi: Any = None,
    *,
    se: Optional[float] = None,
    delta: float = 1.0,
    true: Optional[float] = None,
    sink: Optional[Sink] = None,
) -> EValues:
    """
    E-value for an estimate built with RR(), OR(), HR(), MD() or OLS().
    Confidence limits that are plain numbers are taken on the scale of `est`;
    `true` defaults to the null of that scale (1 for ratios, 0 for differences).
    """
    if not isinstance(est, Estimate):
        raise InvalidEstimate(
            "Effect measure must be specified: wrap the estimate in RR(), OR(), HR(), MD() or OLS()."
        )
    lo, hi = _value(lo), _value(hi)
    if true is None:
        true = est.null

    if isinstance(est, RR):
        return evalues_rr(est.value, lo, hi, true, sink=sink)
    if isinstance(est, OR):
        return evalues_or(est.value, lo, hi, rare=est.rare, true=true, sink=sink)
    if isinstance(est, HR):
        return evalues_hr(est.value, lo, hi, rare=est.rare, true=true, sink=sink)
    if isinstance(est, OLS):
        return evalues_ols(est.value, se, sd=est.sd, delta=delta, true=true, sink=sink)
    if isinstance(est, MD):
        return evalues_md(est.value, se, true, sink=sink)
    raise InvalidEstimate(f"Unsupported effect measure: {type(est).__name__}")


def evalues_rd(
    n11: int,
    n10: int,
    n01: int,
    n00: int,
    true: float = 0.0,
    alpha: float = 0.05,
) -> Dict[str, float]:
    """
    E-values for a population-standardized risk difference and its lower
    confidence limit (Ding & VanderWeele, 2016). The exposure must be coded
    so that the risk difference is positive.
    """
    t = Contingency2x2.from_counts(n11, n10, n01, n00)

    N, N1, N0 = t.total, t.n_exposed, t.n_unexposed
    if N1 == 0 or N0 == 0:
        raise InvalidEstimate("Both exposure groups must contain subjects.")

    f = N1 / N          # P(X = 1)
    p1 = t.a / N1       # P(D = 1 | X = 1)
    p0 = t.c / N0       # P(D = 1 | X = 0)

    if p1 < p0:
        raise InvalidEstimate("RD < 0; please relabel the exposure such that the risk difference > 0.")
    if p1 - p0 <= true:
        raise InvalidEstimate("For risk difference, true value must be less than or equal to point estimate.")
    if p0 == 0:
        raise InvalidEstimate("The risk among the unexposed must be positive.")

    s2_f = f * (1 - f) / N
    s2_p1 = p1 * (1 - p1) / N1
    s2_p0 = p0 * (1 - p0) / N0
    diff = p0 * (1 - f) - p1 * f

    # bias factor that shifts the standardized RD exactly to `true`
    est_bf = (math.sqrt((true + diff) ** 2 + 4 * p1 * p0 * f * (1 - f)) - (true + diff)) / (2 * p0 * f)

    z = float(norm.ppf(1 - alpha / 2))
    lower_ci = p1 - p0 - z * math.sqrt(s2_p1 + s2_p0)

    out = {
        "risk_difference": p1 - p0,
        "risk_difference_ci_low": lower_ci,
        "true": true,
        "evalue_point": threshold(est_bf),
    }

    if lower_ci <= true:
        out["evalue_lower"] = 1.0
        return out

    def _lower_limit_gap(bf: float) -> float:
        rd = p1 - p0 * bf
        f_bf = f + (1 - f) / bf
        var = (s2_p1 + s2_p0 * bf ** 2) * f_bf ** 2 + rd ** 2 * (1 - 1 / bf) ** 2 * s2_f
        return true - (rd * f_bf - z * math.sqrt(var))

    # the lower limit reaches `true` at or before the point-estimate bias factor
    if _lower_limit_gap(est_bf) <= 0:
        bf = est_bf
    else:
        bf = solve_increasing(_lower_limit_gap, 1.0, est_bf, what="risk difference E-value")

    out["evalue_lower"] = threshold(bf)
    return out
