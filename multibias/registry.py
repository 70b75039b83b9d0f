# multibias/registry.py
"""
Composition of several biases into one bound.

A BiasSet is the ordered combination of at most one confounding, one
selection and one misclassification bias. From it we derive

  * the sensitivity parameters the user must supply (identifier, printed
    label, owning bias, scale), and
  * the terms whose product is the bound on the ratio of observed to
    true risk ratio.

Each term is either a single parameter, or a pair (x, y) that enters
through the bounding factor x*y / (x + y - 1).

The order of selection and misclassification matters. When selection
comes first (or targets the selected population) misclassification is
measured among the selected, and its parameters are conditional on S=1.
When misclassification comes first, selection acts on the misclassified
variable and the selection labels refer to Y* or A*.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import pandas as pd

from .biases import Bias, Confounding, Misclassification, Selection
from .errors import DuplicateBiasKind, InvalidBiasConfiguration, MissingParameter


@dataclass(frozen=True)
class BiasParameter:
    name: str   # keyword used to pass the value, e.g. "RRUcY"
    label: str  # printed form, e.g. "RR_UcY"
    bias: str   # owning bias
    scale: str = "RR"


@dataclass(frozen=True)
class BoundTerm:
    bias: str
    names: Tuple[str, ...]

    @property
    def is_pair(self) -> bool:
        return len(self.names) == 2


_STRATA = {
    None: (1, 0),
    "increased risk": (1,),
    "decreased risk": (0,),
}


def _confounding_terms(joint: bool) -> List[Tuple[BoundTerm, List[BiasParameter]]]:
    if joint:
        owner = "confounding and selection"
        p = [
            BiasParameter("RRAUscS", "RR_AUsc|S", owner),
            BiasParameter("RRUscYS", "RR_UscY|S", owner),
        ]
    else:
        owner = "confounding"
        p = [
            BiasParameter("RRAUc", "RR_AUc", owner),
            BiasParameter("RRUcY", "RR_UcY", owner),
        ]
    return [(BoundTerm(owner, tuple(x.name for x in p)), p)]


def _selection_terms(
    sel: Selection, mis: Optional[Misclassification], mis_first: bool
) -> List[Tuple[BoundTerm, List[BiasParameter]]]:
    if sel.target == "selected":
        p = [
            BiasParameter("RRAUsS", "RR_AUs|S", "selection"),
            BiasParameter("RRUsYS", "RR_UsY|S", "selection"),
        ]
        return [(BoundTerm("selection", tuple(x.name for x in p)), p)]

    star_y = "*" if mis_first and mis is not None and mis.axis == "outcome" else ""
    star_a = "*" if mis_first and mis is not None and mis.axis == "exposure" else ""

    out = []
    for a in _STRATA[sel.direction]:
        p = [BiasParameter(f"RRUsYA{a}", f"RR_UsY{star_y}|A{star_a}={a}", "selection")]
        if not sel.simplify:
            p.append(BiasParameter(f"RRSUsA{a}", f"RR_SUs|A{star_a}={a}", "selection"))
        out.append((BoundTerm("selection", tuple(x.name for x in p)), p))
    return out


def _misclassification_terms(
    mis: Misclassification, among_selected: bool
) -> List[Tuple[BoundTerm, List[BiasParameter]]]:
    suffix = "S" if among_selected else ""
    cond = ",S" if among_selected else ""

    if mis.axis == "outcome":
        p = BiasParameter("RRAYy" + suffix, "RR_AY*|y" + cond, "misclassification")
    else:
        scale = "RR" if mis.rare_exposure else "OR"
        p = BiasParameter(
            f"{scale}YAa{suffix}", f"{scale}_YA*|a{cond}", "misclassification", scale=scale
        )
    return [(BoundTerm("misclassification", (p.name,)), [p])]


def _derive(biases: Tuple[Bias, ...]) -> Tuple[Tuple[BiasParameter, ...], Tuple[BoundTerm, ...]]:
    kinds = [b.kind for b in biases]
    conf = next((b for b in biases if isinstance(b, Confounding)), None)
    sel = next((b for b in biases if isinstance(b, Selection)), None)
    mis = next((b for b in biases if isinstance(b, Misclassification)), None)

    selected = sel is not None and sel.target == "selected"
    # confounding and selection in the selected population share one U
    joint = conf is not None and selected

    sel_first = (
        sel is not None
        and mis is not None
        and (selected or kinds.index("selection") < kinds.index("misclassification"))
    )
    mis_first = sel is not None and mis is not None and not sel_first

    pieces: List[Tuple[BoundTerm, List[BiasParameter]]] = []
    joint_done = False
    for b in biases:
        if isinstance(b, Confounding) or (joint and isinstance(b, Selection)):
            if joint:
                if not joint_done:
                    pieces.extend(_confounding_terms(joint=True))
                    joint_done = True
            else:
                pieces.extend(_confounding_terms(joint=False))
        elif isinstance(b, Selection):
            pieces.extend(_selection_terms(b, mis, mis_first))
        else:
            pieces.extend(_misclassification_terms(b, among_selected=sel_first))

    params = tuple(p for _, ps in pieces for p in ps)
    terms = tuple(t for t, _ in pieces)
    return params, terms


@dataclass(frozen=True)
class BiasSet:
    biases: Tuple[Bias, ...]

    def __iter__(self) -> Iterator[Bias]:
        return iter(self.biases)

    def __len__(self) -> int:
        return len(self.biases)

    @property
    def kinds(self) -> Tuple[str, ...]:
        return tuple(b.kind for b in self.biases)

    def get(self, kind: str) -> Optional[Bias]:
        return next((b for b in self.biases if b.kind == kind), None)

    @cached_property
    def _derived(self) -> Tuple[Tuple[BiasParameter, ...], Tuple[BoundTerm, ...]]:
        return _derive(self.biases)

    @property
    def parameters(self) -> Tuple[BiasParameter, ...]:
        return self._derived[0]

    @property
    def terms(self) -> Tuple[BoundTerm, ...]:
        return self._derived[1]

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.parameters)

    def require(self, values: Mapping[str, Any]) -> None:
        missing = [n for n in self.names if n not in values or values[n] is None]
        if missing:
            raise MissingParameter(missing)

    def summary(self) -> pd.DataFrame:
        return pd.DataFrame(describe(self), columns=["bias", "output", "argument"])


def multi_bias(*biases: Bias) -> BiasSet:
    """
    Combine biases, in the order they are assumed to arise, e.g.
    multi_bias(confounding(), selection("general"), misclassification("outcome")).
    """
    if not biases:
        raise InvalidBiasConfiguration("At least one bias must be given.")

    seen = set()
    for b in biases:
        if not isinstance(b, (Confounding, Selection, Misclassification)):
            raise InvalidBiasConfiguration(
                f"Arguments must be biases created with confounding(), selection() "
                f"or misclassification(); got {type(b).__name__}."
            )
        if b.kind in seen:
            raise DuplicateBiasKind(b.kind)
        seen.add(b.kind)

    return BiasSet(tuple(biases))


def as_bias_set(biases: Any) -> BiasSet:
    if isinstance(biases, BiasSet):
        return biases
    if isinstance(biases, (Confounding, Selection, Misclassification)):
        return multi_bias(biases)
    if isinstance(biases, (list, tuple)):
        return multi_bias(*biases)
    raise InvalidBiasConfiguration(
        f"Expected a bias set from multi_bias(), got {type(biases).__name__}."
    )


def describe(biases: Any) -> List[Dict[str, str]]:
    bs = as_bias_set(biases)
    return [{"bias": p.bias, "output": p.label, "argument": p.name} for p in bs.parameters]
