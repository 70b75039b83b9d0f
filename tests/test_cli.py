import json

import pandas as pd
import pytest

from multibias.cli import main
from multibias.evalues import threshold

BIASES = [
    {"bias": "confounding"},
    {"bias": "selection", "options": ["general", "increased risk"]},
    {"bias": "misclassification", "axis": "exposure", "rare_outcome": True, "rare_exposure": False},
]


def run(capsys, *argv):
    main(list(argv))
    return json.loads(capsys.readouterr().out)


@pytest.fixture
def biases_file(tmp_path):
    p = tmp_path / "biases.json"
    p.write_text(json.dumps(BIASES), encoding="utf-8")
    return str(p)


def test_evalue_mode(capsys):
    out = run(capsys, "--est", "0.8", "--lo", "0.71", "--hi", "0.91")
    assert out["inputs"]["mode"] == "evalue"
    assert out["result"]["evalues"]["point"] == pytest.approx(threshold(0.8))
    assert out["result"]["evalues"]["lower"] is None


def test_evalue_mode_common_odds_ratio(capsys):
    out = run(capsys, "--measure", "OR", "--est", "4", "--common")
    assert out["result"]["evalues"]["point"] == pytest.approx(threshold(2))


def test_describe_mode(capsys, biases_file):
    out = run(capsys, "--mode", "describe", "--biases-file", biases_file)
    assert [row["argument"] for row in out["parameters"]] == [
        "RRAUc",
        "RRUcY",
        "RRUsYA1",
        "RRSUsA1",
        "ORYAaS",
    ]


def test_bound_mode_with_params(capsys, biases_file, tmp_path):
    params = tmp_path / "params.json"
    params.write_text(json.dumps({"RRAUc": 1.5, "RRUcY": 2, "RRUsYA1": 2.5, "RRSUsA1": 1.25}))
    out = run(
        capsys,
        "--mode", "bound",
        "--biases-file", biases_file,
        "--params-file", str(params),
        "--param", "ORYAaS=1.75",
    )
    assert out["bound"] == pytest.approx(105 / 44)


def test_multi_evalue_mode(capsys):
    out = run(
        capsys,
        "--mode", "multi-evalue",
        "--biases-json", json.dumps(BIASES),
        "--est", "4", "--lo", "2.5", "--hi", "6",
        "--verbose",
    )
    ev = out["result"]["evalues"]
    assert 1 < ev["lower"] < ev["point"]
    assert ev["upper"] is None
    assert any("RR_AUc" in m for m in out["messages"])


def test_twoxtwo_mode_from_counts(capsys):
    out = run(capsys, "--mode", "twoxtwo", "--counts", "397", "78557", "51", "108778")
    assert out["metrics"]["relative_risk"] == pytest.approx(10.729780, rel=1e-6)
    assert out["evalues"]["evalues"]["point"] > 1


def test_twoxtwo_mode_from_data(capsys, tmp_path):
    data = tmp_path / "cohort.csv"
    pd.DataFrame(
        {"smoker": ["yes", "yes", "yes", "no", "no", "no", "no"], "cancer": [1, 1, 0, 1, 0, 0, 0]}
    ).to_csv(data, index=False)
    out = run(
        capsys,
        "--mode", "twoxtwo",
        "--data", str(data),
        "--exposure-col", "smoker",
        "--outcome-col", "cancer",
        "--exposed", "yes",
        "--unexposed", "no",
    )
    assert out["metrics"]["table"] == {"a": 2, "b": 1, "c": 1, "d": 3}


def test_rd_mode(capsys):
    out = run(capsys, "--mode", "rd", "--counts", "397", "78557", "51", "108778")
    assert 1 < out["result"]["evalue_lower"] < out["result"]["evalue_point"]


def test_missing_estimate_is_an_error():
    with pytest.raises(ValueError, match="--est"):
        main(["--mode", "multi-evalue", "--biases-json", "[]"])


def test_bad_param_flag(biases_file):
    with pytest.raises(ValueError, match="NAME=VALUE"):
        main(["--mode", "bound", "--biases-file", biases_file, "--param", "RRAUc"])


def test_twoxtwo_zero_cell_without_correction(capsys):
    out = run(
        capsys,
        "--mode", "twoxtwo",
        "--counts", "5", "3", "0", "20",
        "--continuity-correction", "0",
    )
    assert out["metrics"]["relative_risk"] != out["metrics"]["relative_risk"]
    assert out["metrics"]["odds_ratio"] != out["metrics"]["odds_ratio"]
    assert "evalues" not in out


def test_bias_notes_are_reported(capsys):
    records = [{"bias": "selection", "options": ["general", "decreased risk"], "verbose": True}]
    out = run(capsys, "--mode", "describe", "--biases-json", json.dumps(records))
    assert any("decreased risk" in m for m in out["messages"])
