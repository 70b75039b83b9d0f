# multibias/biases.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

from .diagnostics import Sink, emit
from .errors import InvalidBiasConfiguration

SELECTION_OPTIONS = ("general", "selected", "increased risk", "decreased risk", "S = U")
MISCLASSIFICATION_AXES = ("outcome", "exposure")


@dataclass(frozen=True)
class Confounding:
    verbose: bool = field(default=False, compare=False)

    kind: ClassVar[str] = "confounding"


@dataclass(frozen=True)
class Selection:
    """
    Selection bias.

    target:    "general" (effect in the total population) or "selected"
               (effect among the selected only).
    direction: None, "increased risk" or "decreased risk"; an assumption about
               how selection relates to outcome risk that drops one stratum.
    simplify:  the "S = U" simplification, where the selection indicator is
               itself the unmeasured factor.
    """

    target: str = "general"
    direction: Optional[str] = None
    simplify: bool = False
    verbose: bool = field(default=False, compare=False)
    sink: Optional[Sink] = field(default=None, compare=False, repr=False)

    kind: ClassVar[str] = "selection"

    def __post_init__(self) -> None:
        if self.target not in {"general", "selected"}:
            raise InvalidBiasConfiguration(
                f"Invalid selection target: {self.target!r}. Expected 'general' or 'selected'."
            )
        if self.direction not in {None, "increased risk", "decreased risk"}:
            raise InvalidBiasConfiguration(
                f"Invalid selection direction: {self.direction!r}. "
                "Expected 'increased risk', 'decreased risk' or None."
            )
        if not isinstance(self.simplify, bool):
            raise InvalidBiasConfiguration(
                f"Selection simplify must be True or False, got {self.simplify!r}."
            )
        if self.target == "selected" and self.direction is not None:
            raise InvalidBiasConfiguration(
                f"Selection option {self.direction!r} is not available when the target "
                "is the selected population."
            )
        if self.target == "selected" and self.simplify:
            raise InvalidBiasConfiguration(
                "Selection option 'S = U' is not available when the target is the "
                "selected population."
            )

        if self.verbose:
            if self.target == "selected":
                emit("Bounds for selection bias in the selected population refer to "
                     "the causal effect among the selected only.", self.sink)
            if self.direction == "increased risk":
                emit("Assuming selection is associated with increased risk of the outcome "
                     "among the exposed and decreased risk among the unexposed.", self.sink)
            if self.direction == "decreased risk":
                emit("Assuming selection is associated with decreased risk of the outcome "
                     "among the exposed and increased risk among the unexposed.", self.sink)
            if self.simplify:
                emit("Assuming the selection indicator is itself the unmeasured "
                     "factor (S = U).", self.sink)


@dataclass(frozen=True)
class Misclassification:
    axis: str = "outcome"
    rare_outcome: Optional[bool] = None
    rare_exposure: Optional[bool] = None
    verbose: bool = field(default=False, compare=False)
    sink: Optional[Sink] = field(default=None, compare=False, repr=False)

    kind: ClassVar[str] = "misclassification"

    def __post_init__(self) -> None:
        if self.axis not in MISCLASSIFICATION_AXES:
            raise InvalidBiasConfiguration(
                f"Invalid misclassification type: {self.axis!r}. Expected 'outcome' or 'exposure'."
            )
        for name, value in (("rare_outcome", self.rare_outcome), ("rare_exposure", self.rare_exposure)):
            if value is not None and not isinstance(value, bool):
                raise InvalidBiasConfiguration(f"{name} must be True or False, got {value!r}.")
        if self.axis == "exposure":
            missing = [
                name
                for name, value in (("rare_outcome", self.rare_outcome), ("rare_exposure", self.rare_exposure))
                if value is None
            ]
            if missing:
                raise InvalidBiasConfiguration(
                    "Exposure misclassification requires "
                    + " and ".join(missing)
                    + " to be given (True or False)."
                )
        else:
            given = [
                name
                for name, value in (("rare_outcome", self.rare_outcome), ("rare_exposure", self.rare_exposure))
                if value is not None
            ]
            if given:
                raise InvalidBiasConfiguration(
                    f"Option(s) {', '.join(given)} only apply to exposure misclassification."
                )

        if self.verbose and self.axis == "exposure":
            if not self.rare_outcome:
                emit("The outcome is not rare, so the bound for exposure misclassification "
                     "applies to the odds ratio; supply an odds ratio estimate.", self.sink)
            if self.rare_exposure:
                emit("The exposure is rare, so misclassification odds ratios are "
                     "approximated by risk ratios.", self.sink)


Bias = Union[Confounding, Selection, Misclassification]


def confounding(verbose: bool = False) -> Confounding:
    return Confounding(verbose=verbose)


def selection(*options: str, verbose: bool = False, sink: Optional[Sink] = None) -> Selection:
    """
    Build a Selection bias from option strings, e.g.
    selection("general", "increased risk") or selection("selected").
    With no options, selection is "general". Verbose notes go to the logger and `sink`.
    """
    unknown = [o for o in options if o not in SELECTION_OPTIONS]
    if unknown:
        raise InvalidBiasConfiguration(
            f"Unsupported selection option(s): {unknown}. Expected any of {list(SELECTION_OPTIONS)}."
        )
    if "general" in options and "selected" in options:
        raise InvalidBiasConfiguration("Selection can't be both 'general' and 'selected'.")
    if "increased risk" in options and "decreased risk" in options:
        raise InvalidBiasConfiguration(
            "Selection can't be both 'increased risk' and 'decreased risk'."
        )

    direction = None
    for d in ("increased risk", "decreased risk"):
        if d in options:
            direction = d

    return Selection(
        target="selected" if "selected" in options else "general",
        direction=direction,
        simplify="S = U" in options,
        verbose=verbose,
        sink=sink,
    )


def misclassification(
    axis: str,
    *,
    rare_outcome: Optional[bool] = None,
    rare_exposure: Optional[bool] = None,
    verbose: bool = False,
    sink: Optional[Sink] = None,
) -> Misclassification:
    return Misclassification(
        axis=axis,
        rare_outcome=rare_outcome,
        rare_exposure=rare_exposure,
        verbose=verbose,
        sink=sink,
    )


def bias_from_record(rec: Dict[str, Any], sink: Optional[Sink] = None) -> Bias:
    """
    Build one bias from a JSON-style record:
      {"bias": "confounding"}
      {"bias": "selection", "options": ["general", "increased risk"]}
      {"bias": "misclassification", "axis": "exposure", "rare_outcome": true, "rare_exposure": false}
    """
    if not isinstance(rec, dict) or "bias" not in rec:
        raise InvalidBiasConfiguration(f"Each bias must be an object with a 'bias' key, got: {rec!r}")

    kind = rec["bias"]
    verbose = bool(rec.get("verbose", False))

    if kind == "confounding":
        return confounding(verbose=verbose)
    if kind == "selection":
        opts = rec.get("options", [])
        if isinstance(opts, str):
            opts = [opts]
        return selection(*opts, verbose=verbose, sink=sink)
    if kind == "misclassification":
        if "axis" not in rec:
            raise InvalidBiasConfiguration("Misclassification requires 'axis' ('outcome' or 'exposure').")
        return misclassification(
            rec["axis"],
            rare_outcome=rec.get("rare_outcome"),
            rare_exposure=rec.get("rare_exposure"),
            verbose=verbose,
            sink=sink,
        )
    raise InvalidBiasConfiguration(f"Unsupported bias: {kind!r}")


def biases_from_records(records: List[Dict[str, Any]], sink: Optional[Sink] = None) -> List[Bias]:
    if not isinstance(records, list):
        raise InvalidBiasConfiguration("Biases must be a JSON list of objects.")
    return [bias_from_record(r, sink) for r in records]
