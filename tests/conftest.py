import itertools

import pytest

from multibias.biases import confounding, misclassification, selection
from multibias.registry import multi_bias

SELECTIONS = [
    selection("general"),
    selection("general", "increased risk"),
    selection("general", "decreased risk"),
    selection("general", "S = U"),
    selection("general", "increased risk", "S = U"),
    selection("general", "decreased risk", "S = U"),
    selection("selected"),
]
MISCLASSIFICATIONS = [
    misclassification("outcome"),
    misclassification("exposure", rare_outcome=True, rare_exposure=True),
    misclassification("exposure", rare_outcome=True, rare_exposure=False),
    misclassification("exposure", rare_outcome=False, rare_exposure=True),
    misclassification("exposure", rare_outcome=False, rare_exposure=False),
]


@pytest.fixture(scope="session")
def all_bias_sets():
    """Every valid bias set: each subset of kinds, every variant, every order."""
    options = [[confounding()], SELECTIONS, MISCLASSIFICATIONS]
    out = []
    for r in (1, 2, 3):
        for kinds in itertools.combinations(options, r):
            for combo in itertools.product(*kinds):
                for order in itertools.permutations(combo):
                    out.append(multi_bias(*order))
    return out


@pytest.fixture
def reference_biases():
    return multi_bias(
        confounding(),
        selection("general", "increased risk"),
        misclassification("exposure", rare_outcome=True, rare_exposure=False),
    )
