from __future__ import annotations
import json
from pathlib import Path
from typing import Any
import pandas as pd

def read_table(path: str) -> pd.DataFrame:
    p = Path(path)
    suf = p.suffix.lower()
    if suf in [".csv"]:
        return pd.read_csv(p)
    if suf in [".xlsx", ".xls"]:
        return pd.read_excel(p)
    raise ValueError(f"Unsupported file type: {suf}. Expected .csv or .xlsx")

def parse_json(s: str, what: str) -> Any:
    # Strip whitespace and optional UTF-8 BOM
    s = s.strip().lstrip("\ufeff")
    try:
        return json.loads(s)
    except json.JSONDecodeError as e:
        raise ValueError(f"Could not parse {what} as JSON. Details: {e}") from e

def read_json(path: str, what: str) -> Any:
    with open(path, "r", encoding="utf-8-sig") as f:
        return parse_json(f.read(), what)
