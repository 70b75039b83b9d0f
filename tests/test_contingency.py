import pandas as pd
import pytest

from multibias.contingency import Contingency2x2, build_2x2
from multibias.errors import InvalidEstimate

def test_table_shape():
    t = Contingency2x2(a=1,b=2,c=3,d=4)
    arr = t.as_array()
    assert arr.shape == (2,2)
    assert arr[0,0] == 1
    assert t.n_exposed == 3
    assert t.total == 10

def test_from_counts_uses_exposed_diseased_first():
    t = Contingency2x2.from_counts(397, 78557, 51, 108778)
    assert (t.a, t.b, t.c, t.d) == (397, 78557, 51, 108778)

def test_negative_counts_rejected():
    with pytest.raises(InvalidEstimate):
        Contingency2x2(a=-1, b=2, c=3, d=4)

def test_build_2x2_counts_and_drops_missing():
    df = pd.DataFrame(
        {
            "smoker": ["yes", "yes", "yes", "no", "no", "no", "no", None, "former"],
            "cancer": [1, 1, 0, 1, 0, 0, 0, 1, 1],
        }
    )
    t = build_2x2(df, exposure_col="smoker", outcome_col="cancer", exposed_value="yes", unexposed_value="no")
    assert (t.a, t.b, t.c, t.d) == (2, 1, 1, 3)

def test_build_2x2_empty_cells_are_zero():
    df = pd.DataFrame({"x": [1, 1, 0], "y": [1, 1, 1]})
    t = build_2x2(df, exposure_col="x", outcome_col="y", exposed_value="1", unexposed_value="0")
    assert (t.a, t.b, t.c, t.d) == (2, 0, 1, 0)

def test_build_2x2_missing_column():
    df = pd.DataFrame({"x": [1, 0]})
    with pytest.raises(KeyError):
        build_2x2(df, exposure_col="x", outcome_col="y", exposed_value="1", unexposed_value="0")
