import math

import pytest

from multibias.contingency import Contingency2x2
from multibias.metrics import (
    compute_table_metrics,
    odds_ratio_and_ci,
    relative_risk_and_ci,
    two_by_two_rr,
)


def test_zero_exposed_cases_undefined_without_correction():
    # no smokers among the cases
    t = Contingency2x2.from_counts(0, 120, 14, 260)
    for res in (odds_ratio_and_ci(t), relative_risk_and_ci(t)):
        assert all(math.isnan(v) for k, v in res.items() if k not in ("alpha", "continuity_correction"))


@pytest.mark.parametrize("counts", [(5, 0, 5, 20), (5, 3, 0, 20), (0, 8, 6, 40)])
def test_zero_cell_with_zero_correction_is_undefined(counts):
    t = Contingency2x2.from_counts(*counts)
    or_res = odds_ratio_and_ci(t, continuity_correction=0.0)
    assert math.isnan(or_res["odds_ratio"])
    assert math.isnan(or_res["odds_ratio_ci_low"])

    rr_res = relative_risk_and_ci(t, continuity_correction=0.0)
    if counts[0] == 0 or counts[2] == 0:
        assert math.isnan(rr_res["relative_risk"])
        assert math.isnan(rr_res["relative_risk_ci_high"])
    else:
        assert rr_res["relative_risk"] == pytest.approx((5 / 5) / (5 / 25))


def test_half_correction_gives_finite_interval():
    t = Contingency2x2.from_counts(0, 120, 14, 260)
    res = odds_ratio_and_ci(t, continuity_correction=0.5)
    assert res["odds_ratio"] == pytest.approx((0.5 * 260.5) / (120.5 * 14.5))
    assert res["odds_ratio_ci_low"] < res["odds_ratio"] < res["odds_ratio_ci_high"]


def test_rr_matches_cell_risks():
    t = Contingency2x2(a=10, b=20, c=30, d=40)
    res = relative_risk_and_ci(t)
    assert res["relative_risk"] == pytest.approx((10 / 30) / (30 / 70))
    assert res["relative_risk_ci_low"] < res["relative_risk"] < res["relative_risk_ci_high"]


def test_two_by_two_rr_hammond_holl():
    res = two_by_two_rr(397, 78557, 51, 108778)
    assert res["point"] == pytest.approx(10.729780, rel=1e-6)
    assert res["lower"] == pytest.approx(8.017457, rel=1e-5)
    assert res["upper"] == pytest.approx(14.359688, rel=1e-5)


def test_narrower_alpha_widens_interval():
    wide = two_by_two_rr(397, 78557, 51, 108778, alpha=0.01)
    narrow = two_by_two_rr(397, 78557, 51, 108778, alpha=0.05)
    assert wide["lower"] < narrow["lower"]
    assert wide["upper"] > narrow["upper"]


def test_compute_table_metrics_keys():
    out = compute_table_metrics(Contingency2x2(a=10, b=20, c=30, d=40))
    assert out["table"] == {"a": 10, "b": 20, "c": 30, "d": 40}
    assert "odds_ratio" in out
    assert "relative_risk" in out
