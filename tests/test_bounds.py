import math

import pytest

from multibias.biases import confounding, misclassification, selection
from multibias.bounds import bounding_factor, multi_bound
from multibias.errors import InvalidParameterValue, MissingParameter
from multibias.registry import multi_bias

REFERENCE = dict(RRUcY=2, RRAUc=1.5, RRSUsA1=1.25, RRUsYA1=2.5, ORYAaS=1.75)


def test_bounding_factor():
    assert bounding_factor(1, 1) == 1
    assert bounding_factor(2, 2) == pytest.approx(4 / 3)
    assert bounding_factor(1.5, 2) == pytest.approx(1.2)


def test_reference_bound(reference_biases):
    # 1.2 * (3.125 / 2.75) * 1.75
    b = multi_bound(reference_biases, **REFERENCE)
    assert b == pytest.approx(105 / 44, rel=1e-12)
    assert b == pytest.approx(2.3863636363636, rel=1e-12)


def test_mapping_and_keywords_combine(reference_biases):
    params = dict(REFERENCE)
    orya = params.pop("ORYAaS")
    assert multi_bound(reference_biases, params, ORYAaS=orya) == multi_bound(
        reference_biases, **REFERENCE
    )


def test_confounding_only_is_bias_factor():
    assert multi_bound(multi_bias(confounding()), RRAUc=3, RRUcY=4) == pytest.approx(12 / 6)


def test_identity_for_every_bias_set(all_bias_sets):
    for biases in all_bias_sets:
        assert multi_bound(biases, {name: 1 for name in biases.names}) == 1.0


def test_monotone_in_each_parameter(all_bias_sets):
    grid = [1.0, 1.1, 1.5, 2.0, 3.0, 8.0, 50.0]
    for biases in all_bias_sets:
        for name in biases.names:
            base = {n: 1.7 for n in biases.names}
            values = []
            for x in grid:
                base[name] = x
                values.append(multi_bound(biases, base))
            assert all(a <= b for a, b in zip(values, values[1:])), (biases, name)


def test_values_below_one_use_reciprocal():
    biases = multi_bias(confounding())
    assert multi_bound(biases, RRAUc=0.5, RRUcY=0.25) == pytest.approx(
        multi_bound(biases, RRAUc=2, RRUcY=4)
    )


def test_missing_parameters_named_exactly(reference_biases):
    with pytest.raises(MissingParameter) as exc:
        multi_bound(reference_biases, RRUcY=2, RRAUc=1.5)
    assert exc.value.names == ("RRUsYA1", "RRSUsA1", "ORYAaS")
    assert "ORYAaS" in str(exc.value)


def test_none_counts_as_missing():
    with pytest.raises(MissingParameter) as exc:
        multi_bound(multi_bias(misclassification("outcome")), RRAYy=None)
    assert exc.value.names == ("RRAYy",)


@pytest.mark.parametrize("bad", [0, -1.5, float("nan"), float("inf"), "strong"])
def test_invalid_parameter_values(bad):
    with pytest.raises(InvalidParameterValue):
        multi_bound(multi_bias(confounding()), RRAUc=bad, RRUcY=2)


def test_extra_parameters_ignored_with_message():
    messages = []
    b = multi_bound(multi_bias(misclassification("outcome")), RRAYy=1.4, RRUcY=9, sink=messages.append)
    assert b == pytest.approx(1.4)
    assert any("RRUcY" in m for m in messages)


def test_joint_confounding_selection_bound():
    biases = multi_bias(confounding(), selection("selected"))
    assert multi_bound(biases, RRAUscS=2, RRUscYS=3) == pytest.approx(6 / 4)


def test_simplified_selection_is_product_of_outcome_ratios():
    biases = multi_bias(selection("general", "S = U"))
    assert multi_bound(biases, RRUsYA1=1.5, RRUsYA0=2) == pytest.approx(3.0)
    assert math.isclose(multi_bound(biases, RRUsYA1=1, RRUsYA0=1), 1.0)
