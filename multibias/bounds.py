# multibias/bounds.py
from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping, Optional

from .diagnostics import Sink, emit
from .errors import InvalidParameterValue
from .registry import BiasSet, BoundTerm, as_bias_set

logger = logging.getLogger(__name__)


def bounding_factor(x: float, y: float) -> float:
    """Joint bounding factor of two risk ratios: x*y / (x + y - 1)."""
    return (x * y) / (x + y - 1.0)


def _term_value(term: BoundTerm, values: Mapping[str, float]) -> float:
    if term.is_pair:
        x, y = (values[n] for n in term.names)
        return bounding_factor(x, y)
    return values[term.names[0]]


def _clean_values(
    biases: BiasSet, params: Mapping[str, Any], sink: Optional[Sink]
) -> Dict[str, float]:
    biases.require(params)

    values: Dict[str, float] = {}
    for name in biases.names:
        raw = params[name]
        try:
            v = float(raw)
        except (TypeError, ValueError) as e:
            raise InvalidParameterValue(f"{name} must be a number, got {raw!r}") from e
        if not math.isfinite(v) or v <= 0:
            raise InvalidParameterValue(f"{name} must be a positive finite ratio, got {raw!r}")
        if v < 1:
            emit(f"{name} = {v:g} is below 1; using its reciprocal {1.0 / v:g}.", sink)
            v = 1.0 / v
        values[name] = v

    extra = [k for k in params if k not in values]
    if extra:
        emit(f"Ignoring parameter(s) not used by these biases: {', '.join(extra)}", sink)

    return values


def evaluate_bound(biases: BiasSet, values: Mapping[str, float]) -> float:
    """Product of the bound terms for already validated parameter values."""
    out = 1.0
    for term in biases.terms:
        out *= _term_value(term, values)
    return out


def multi_bound(
    biases: Any,
    params: Optional[Mapping[str, Any]] = None,
    *,
    sink: Optional[Sink] = None,
    **kwargs: Any,
) -> float:
    """
    Bound on the ratio of observed to true risk ratio for a set of biases.

    Parameter values can be given as a mapping, as keywords, or both:

        biases = multi_bias(confounding(), selection("general", "increased risk"))
        multi_bound(biases, RRAUc=1.5, RRUcY=2, RRUsYA1=2.5, RRSUsA1=1.25)

    Every parameter listed by `biases.parameters` is required. Values below 1
    are replaced by their reciprocal; keys not used by the biases are ignored.
    """
    bs = as_bias_set(biases)
    merged: Dict[str, Any] = dict(params or {})
    merged.update(kwargs)

    values = _clean_values(bs, merged, sink)
    bound = evaluate_bound(bs, values)
    logger.debug("multi_bound %s -> %r", bs.kinds, bound)
    return bound
