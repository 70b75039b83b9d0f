# multibias/errors.py
from __future__ import annotations

from typing import Iterable, Tuple


class MultiBiasError(Exception):
    """Base class for every error raised by multibias."""


class InvalidBiasConfiguration(MultiBiasError, ValueError):
    pass


class DuplicateBiasKind(MultiBiasError, ValueError):
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Only one {kind} bias may be included in a set of biases.")


class MissingParameter(MultiBiasError, ValueError):
    """
    Raised when a bound is requested without every sensitivity parameter.
    `names` holds all missing identifiers, in the order the bias set lists them.
    """

    def __init__(self, names: Iterable[str]):
        self.names: Tuple[str, ...] = tuple(names)
        super().__init__(
            "Missing sensitivity parameter(s): " + ", ".join(self.names)
        )


class InvalidParameterValue(MultiBiasError, ValueError):
    pass


class InvalidEstimate(MultiBiasError, ValueError):
    pass


class InvalidInterval(MultiBiasError, ValueError):
    pass


class EstimateOutsideInterval(MultiBiasError, ValueError):
    pass


class SearchDidNotConverge(MultiBiasError, ArithmeticError):
    pass
