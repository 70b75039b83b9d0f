# multibias/multi.py
"""
Multi-bias E-values (Smith, Mathur & VanderWeele, 2021).

The multi-bias E-value is the smallest value k that every sensitivity
parameter of a set of biases would need to take, all at once, for the
composed bound to shift the observed ratio to the true value. The bound
is non-decreasing in k and equals 1 at k = 1, so the inversion is a
one-dimensional root search.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Callable, Optional, Tuple

from .bounds import evaluate_bound
from .diagnostics import Sink, emit
from .errors import InvalidEstimate, SearchDidNotConverge
from .evalues import EValues, check_observed, ci_evalues, solve_increasing, threshold
from .measures import HR, OR, RR, Estimate
from .registry import BiasSet, as_bias_set

logger = logging.getLogger(__name__)

# largest uniform bias strength the bracket may grow to
MAX_STRENGTH = 1e15


def uniform_bound(biases: BiasSet, k: float) -> float:
    """Bound with every sensitivity parameter set to k."""
    return evaluate_bound(biases, {name: k for name in biases.names})


def _search_strength(biases: BiasSet, target: float) -> float:
    """Smallest k >= 1 with uniform_bound(k) == target (target > 1)."""
    hi = 2.0
    while uniform_bound(biases, hi) < target:
        hi *= 2.0
        if hi > MAX_STRENGTH:
            raise SearchDidNotConverge(
                f"The bound does not reach {target:g} for bias strengths up to {MAX_STRENGTH:g}."
            )

    log_target = math.log(target)
    return solve_increasing(
        lambda k: math.log(uniform_bound(biases, k)) - log_target,
        1.0,
        hi,
        what="multi-bias E-value",
    )


def _solver(biases: BiasSet, true: float) -> Callable[[float], float]:
    terms = biases.terms
    if len(terms) == 1:
        if terms[0].is_pair:
            # x*y/(x+y-1) at x = y = k has the single-bias E-value as its inverse
            return lambda x: threshold(x, true)
        return lambda x: max(x / true, true / x)

    return lambda x: _search_strength(biases, max(x / true, true / x))


def _odds_scale(biases: BiasSet) -> bool:
    mis = biases.get("misclassification")
    return mis is not None and mis.axis == "exposure" and not mis.rare_outcome


def _observed_scale(
    biases: BiasSet, est: Any, lo: Any, hi: Any, true: Any
) -> Tuple[str, float, Optional[float], Optional[float], float]:
    raw = [x.value if isinstance(x, Estimate) else x for x in (est, lo, hi, true)]
    check_observed(*raw)
    r_est, r_lo, r_hi, r_true = raw

    if _odds_scale(biases):
        if not isinstance(est, OR):
            raise InvalidEstimate(
                "With exposure misclassification and a common outcome the bound applies "
                "to the odds ratio; pass the estimate as OR(value, rare=False)."
            )
        return "OR", float(r_est), r_lo, r_hi, float(r_true)

    if not isinstance(est, Estimate):
        return "RR", float(r_est), r_lo, r_hi, float(r_true)

    if not isinstance(est, (RR, OR, HR)):
        raise InvalidEstimate(
            f"Multi-bias E-values need a ratio estimate (RR, OR or HR), got {type(est).__name__}."
        )

    def conv(x: Optional[float]) -> Optional[float]:
        return None if x is None else est.like(x).to_rr()

    return "RR", est.to_rr(), conv(r_lo), conv(r_hi), conv(r_true)


def multi_evalue(
    biases: Any,
    est: Any,
    lo: Any = None,
    hi: Any = None,
    true: Any = 1.0,
    *,
    verbose: bool = False,
    sink: Optional[Sink] = None,
) -> EValues:
    """
    Multi-bias E-values for an observed ratio and the confidence limit nearer `true`.

    `est` is a risk ratio (plain number or RR()), or an OR()/HR() converted to
    the risk ratio scale. Limits and `true` given as plain numbers are on the
    scale of `est`.

        biases = multi_bias(confounding(), selection("general", "increased risk"),
                            misclassification("exposure", rare_outcome=True, rare_exposure=False))
        multi_evalue(biases, est=RR(4), lo=2.5, hi=6)
    """
    bs = as_bias_set(biases)
    measure, est_, lo_, hi_, true_ = _observed_scale(bs, est, lo, hi, true)

    if true_ != 1:
        emit(
            'You are calculating a "non-null" E-value, i.e., an E-value for the minimum '
            "amount of bias needed to move the estimate and confidence interval to your "
            "specified true value rather than to the null value.",
            sink,
        )

    e_point, e_lo, e_hi = ci_evalues(est_, lo_, hi_, true_, _solver(bs, true_), sink)
    logger.debug("multi_evalue %s est=%r -> %r", bs.kinds, est_, e_point)

    if verbose:
        labels = ", ".join(p.label for p in bs.parameters)
        emit(
            f"The multi-bias E-value of {e_point:.4g} is the value that each of {labels} "
            "would all need to equal simultaneously to explain away the point estimate.",
            sink,
        )

    return EValues(
        measure=measure,
        point=est_,
        lower=lo_,
        upper=hi_,
        evalue_point=e_point,
        evalue_lower=e_lo,
        evalue_upper=e_hi,
    )
