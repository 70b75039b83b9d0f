# multibias/metrics.py
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional
import math

from scipy.stats import norm

from .contingency import Contingency2x2


def _z(alpha: float) -> float:
    return float(norm.ppf(1.0 - alpha / 2.0))


def _apply_cc(
    t: Contingency2x2, cc: Optional[float]
) -> tuple[float, float, float, float]:
    """
    Apply continuity correction ONLY if explicitly provided.
    If any cell is zero and cc is None -> return NaNs to signal undefined ratios.
    """
    a, b, c, d = t.a, t.b, t.c, t.d
    if min(a, b, c, d) == 0:
        if cc is None:
            return (float("nan"), float("nan"), float("nan"), float("nan"))
        return (a + cc, b + cc, c + cc, d + cc)
    return (float(a), float(b), float(c), float(d))


def _undefined(*cells: float) -> bool:
    return any(math.isnan(x) or x <= 0 for x in cells)


def _ratio_result(
    key: str,
    est: float,
    log_se: Optional[float],
    alpha: float,
    cc: Optional[float],
) -> Dict[str, Any]:
    if math.isnan(est) or log_se is None:
        lo = hi = float("nan")
    else:
        z = _z(alpha)
        lo = math.exp(math.log(est) - z * log_se)
        hi = math.exp(math.log(est) + z * log_se)
    return {
        key: float(est),
        f"{key}_ci_low": float(lo),
        f"{key}_ci_high": float(hi),
        "alpha": alpha,
        "continuity_correction": cc,
    }


def odds_ratio_and_ci(
    t: Contingency2x2,
    *,
    alpha: float = 0.05,
    continuity_correction: Optional[float] = None,
) -> Dict[str, Any]:
    """Odds ratio with Woolf (log) confidence limits."""
    a, b, c, d = _apply_cc(t, continuity_correction)
    # a zero cell left after correction makes the ratio or its SE undefined
    if _undefined(a, b, c, d):
        return _ratio_result("odds_ratio", float("nan"), None, alpha, continuity_correction)

    or_ = (a * d) / (b * c)
    se = math.sqrt(1.0 / a + 1.0 / b + 1.0 / c + 1.0 / d)
    return _ratio_result("odds_ratio", or_, se, alpha, continuity_correction)


def relative_risk_and_ci(
    t: Contingency2x2,
    *,
    alpha: float = 0.05,
    continuity_correction: Optional[float] = None,
) -> Dict[str, Any]:
    """Risk ratio with Katz (log) confidence limits."""
    a, b, c, d = _apply_cc(t, continuity_correction)
    # the Katz SE needs diseased counts in both groups
    if _undefined(a, c):
        return _ratio_result("relative_risk", float("nan"), None, alpha, continuity_correction)

    rr = (a / (a + b)) / (c / (c + d))

    # Katz log(RR) SE
    se = math.sqrt((1.0 / a) - (1.0 / (a + b)) + (1.0 / c) - (1.0 / (c + d)))
    return _ratio_result("relative_risk", rr, se, alpha, continuity_correction)


def two_by_two_rr(
    n11: int, n10: int, n01: int, n00: int, alpha: float = 0.05
) -> Dict[str, float]:
    """
    Risk ratio and confidence limits from cell counts
    (n11 exposed & diseased, n10 exposed & not, n01 unexposed & diseased, n00 unexposed & not).
    Hammond and Holl (1958): two_by_two_rr(397, 78557, 51, 108778) gives
    RR 10.73 with limits 8.02 and 14.36.
    """
    res = relative_risk_and_ci(Contingency2x2.from_counts(n11, n10, n01, n00), alpha=alpha)
    return {
        "point": res["relative_risk"],
        "lower": res["relative_risk_ci_low"],
        "upper": res["relative_risk_ci_high"],
    }


def compute_table_metrics(
    t: Contingency2x2,
    *,
    alpha: float = 0.05,
    continuity_correction: Optional[float] = None,
) -> Dict[str, Any]:
    out: Dict[str, Any] = {"table": asdict(t)}
    out.update(odds_ratio_and_ci(t, alpha=alpha, continuity_correction=continuity_correction))
    out.update(relative_risk_and_ci(t, alpha=alpha, continuity_correction=continuity_correction))
    return out
