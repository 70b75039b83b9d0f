# multibias/__init__.py

import logging

from .biases import (
    Confounding,
    Misclassification,
    Selection,
    confounding,
    misclassification,
    selection,
)
from .registry import BiasParameter, BiasSet, describe, multi_bias
from .bounds import bounding_factor, multi_bound
from .evalues import (
    EValues,
    evalue,
    evalues_hr,
    evalues_md,
    evalues_ols,
    evalues_or,
    evalues_rd,
    evalues_rr,
    threshold,
)
from .multi import multi_evalue
from .measures import HR, MD, OLS, OR, RR, to_rr
from .contingency import Contingency2x2, build_2x2
from .metrics import odds_ratio_and_ci, relative_risk_and_ci, two_by_two_rr
from .io import read_table
from .errors import (
    DuplicateBiasKind,
    EstimateOutsideInterval,
    InvalidBiasConfiguration,
    InvalidEstimate,
    InvalidInterval,
    InvalidParameterValue,
    MissingParameter,
    MultiBiasError,
    SearchDidNotConverge,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Confounding",
    "Selection",
    "Misclassification",
    "confounding",
    "selection",
    "misclassification",
    "BiasParameter",
    "BiasSet",
    "multi_bias",
    "describe",
    "bounding_factor",
    "multi_bound",
    "multi_evalue",
    "EValues",
    "threshold",
    "evalue",
    "evalues_rr",
    "evalues_or",
    "evalues_hr",
    "evalues_md",
    "evalues_ols",
    "evalues_rd",
    "RR",
    "OR",
    "HR",
    "MD",
    "OLS",
    "to_rr",
    "Contingency2x2",
    "build_2x2",
    "odds_ratio_and_ci",
    "relative_risk_and_ci",
    "two_by_two_rr",
    "read_table",
    "MultiBiasError",
    "InvalidBiasConfiguration",
    "DuplicateBiasKind",
    "MissingParameter",
    "InvalidParameterValue",
    "InvalidEstimate",
    "InvalidInterval",
    "EstimateOutsideInterval",
    "SearchDidNotConverge",
]
