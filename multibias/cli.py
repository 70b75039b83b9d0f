# multibias/cli.py
from __future__ import annotations

import argparse
import json
import math
from typing import Any, Dict, List, Optional

from .biases import biases_from_records
from .bounds import multi_bound
from .contingency import Contingency2x2, build_2x2
from .diagnostics import Sink, collect
from .evalues import evalue, evalues_rd, evalues_rr
from .io import parse_json, read_json, read_table
from .measures import HR, MD, OLS, OR, RR, Estimate
from .metrics import compute_table_metrics
from .multi import multi_evalue
from .registry import BiasSet, describe, multi_bias


def _load_biases(
    biases_json: Optional[str], biases_file: Optional[str], sink: Optional[Sink] = None
) -> BiasSet:
    """
    biases file format (list of objects, in the order the biases arise):
      [
        {"bias": "confounding"},
        {"bias": "selection", "options": ["general", "increased risk"]},
        {"bias": "misclassification", "axis": "exposure", "rare_outcome": true, "rare_exposure": false}
      ]
    """
    if biases_file:
        records = read_json(biases_file, "biases")
    elif biases_json:
        records = parse_json(biases_json, "biases")
    else:
        raise ValueError("Provide --biases-file (recommended) or --biases-json.")
    return multi_bias(*biases_from_records(records, sink))


def _parse_param(s: str) -> tuple[str, float]:
    name, sep, value = s.partition("=")
    if not sep or not name.strip():
        raise ValueError(f"Parameters must look like NAME=VALUE, got: {s!r}")
    try:
        return name.strip(), float(value)
    except ValueError as e:
        raise ValueError(f"Parameter {name.strip()} must be numeric, got: {value!r}") from e


def _load_params(params_file: Optional[str], params: Optional[List[str]]) -> Dict[str, float]:
    """
    params file format (object of identifier -> value):
      {"RRAUc": 1.5, "RRUcY": 2, "RRUsYA1": 2.5, "RRSUsA1": 1.25, "ORYAaS": 1.75}
    --param NAME=VALUE flags override the file.
    """
    out: Dict[str, float] = {}
    if params_file:
        obj = read_json(params_file, "parameters")
        if not isinstance(obj, dict):
            raise ValueError("Parameters must be a JSON object of NAME: VALUE.")
        out.update(obj)
    for p in params or []:
        name, value = _parse_param(p)
        out[name] = value
    return out


def _estimate(args: argparse.Namespace) -> Estimate:
    m = args.measure
    if m == "RR":
        return RR(args.est)
    if m == "OR":
        return OR(args.est, rare=args.rare)
    if m == "HR":
        return HR(args.est, rare=args.rare)
    if m == "MD":
        return MD(args.est)
    if args.sd is None:
        raise ValueError("--sd is required for --measure OLS.")
    return OLS(args.est, sd=args.sd)


def _table(args: argparse.Namespace) -> Contingency2x2:
    if args.counts:
        return Contingency2x2.from_counts(*args.counts)
    if not args.data:
        raise ValueError("Provide --counts N11 N10 N01 N00 or --data with column options.")
    for opt in ("exposure_col", "outcome_col", "exposed", "unexposed"):
        if getattr(args, opt) is None:
            raise ValueError(f"--{opt.replace('_', '-')} is required with --data.")
    return build_2x2(
        read_table(args.data),
        exposure_col=args.exposure_col,
        outcome_col=args.outcome_col,
        exposed_value=args.exposed,
        unexposed_value=args.unexposed,
        outcome_positive_value=args.outcome_positive,
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser("multibias")

    ap.add_argument(
        "--mode",
        choices=["evalue", "multi-evalue", "bound", "describe", "twoxtwo", "rd"],
        default="evalue",
        help="Analysis mode (default: evalue).",
    )

    # Observed estimate
    ap.add_argument("--measure", choices=["RR", "OR", "HR", "MD", "OLS"], default="RR")
    ap.add_argument("--est", type=float, default=None, help="Point estimate.")
    ap.add_argument("--lo", type=float, default=None, help="Lower confidence limit (scale of --est).")
    ap.add_argument("--hi", type=float, default=None, help="Upper confidence limit (scale of --est).")
    ap.add_argument("--se", type=float, default=None, help="Standard error (MD and OLS).")
    ap.add_argument("--sd", type=float, default=None, help="Outcome standard deviation (OLS).")
    ap.add_argument("--delta", type=float, default=1.0, help="Exposure contrast (OLS).")
    ap.add_argument("--true", type=float, default=None, help="True value to shift to (default: null).")
    ap.add_argument("--rare", dest="rare", action="store_true", help="Outcome is rare (<15%%), for OR and HR.")
    ap.add_argument("--common", dest="rare", action="store_false", help="Outcome is common, for OR and HR.")
    ap.set_defaults(rare=None)

    # Biases and parameters: use files to avoid shell escaping pain
    ap.add_argument("--biases-file", default=None, help="Path to biases.json (recommended).")
    ap.add_argument("--biases-json", default=None, help="JSON string listing the biases.")
    ap.add_argument("--params-file", default=None, help="Path to params.json.")
    ap.add_argument("--param", action="append", default=None, help="NAME=VALUE; may be repeated.")
    ap.add_argument("--verbose", action="store_true", help="Include explanatory messages.")

    # Two-by-two tables
    ap.add_argument("--counts", type=int, nargs=4, default=None, metavar=("N11", "N10", "N01", "N00"))
    ap.add_argument("--data", default=None, help="CSV/XLSX with one row per subject.")
    ap.add_argument("--exposure-col", default=None)
    ap.add_argument("--outcome-col", default=None)
    ap.add_argument("--exposed", default=None)
    ap.add_argument("--unexposed", default=None)
    ap.add_argument("--outcome-positive", type=float, default=1.0)
    ap.add_argument("--alpha", type=float, default=0.05)
    ap.add_argument(
        "--continuity-correction",
        type=float,
        default=None,
        help="Optional continuity correction (e.g., 0.5). If omitted, zero cells yield NaN metrics.",
    )
    return ap


def main(argv: Optional[List[str]] = None) -> None:
    ap = build_parser()
    args = ap.parse_args(argv)

    messages, sink = collect()
    out: Dict[str, Any] = {"inputs": {k: v for k, v in vars(args).items() if v is not None}}

    if args.mode in {"evalue", "multi-evalue"} and args.est is None:
        raise ValueError(f"--est is required for --mode {args.mode}.")

    if args.mode == "evalue":
        res = evalue(
            _estimate(args), args.lo, args.hi, se=args.se, delta=args.delta, true=args.true, sink=sink
        )
        out["result"] = res.as_dict()

    elif args.mode == "multi-evalue":
        biases = _load_biases(args.biases_json, args.biases_file, sink)
        est: Any = args.est if args.measure == "RR" else _estimate(args)
        res = multi_evalue(
            biases,
            est,
            args.lo,
            args.hi,
            1.0 if args.true is None else args.true,
            verbose=args.verbose,
            sink=sink,
        )
        out["parameters"] = describe(biases)
        out["result"] = res.as_dict()

    elif args.mode == "bound":
        biases = _load_biases(args.biases_json, args.biases_file, sink)
        params = _load_params(args.params_file, args.param)
        out["parameters"] = describe(biases)
        out["bound"] = multi_bound(biases, params, sink=sink)

    elif args.mode == "describe":
        out["parameters"] = describe(_load_biases(args.biases_json, args.biases_file, sink))

    elif args.mode == "twoxtwo":
        t = _table(args)
        metrics = compute_table_metrics(
            t, alpha=args.alpha, continuity_correction=args.continuity_correction
        )
        out["metrics"] = metrics
        rr = metrics["relative_risk"]
        if math.isfinite(rr):
            out["evalues"] = evalues_rr(
                rr,
                metrics["relative_risk_ci_low"],
                metrics["relative_risk_ci_high"],
                1.0 if args.true is None else args.true,
                sink=sink,
            ).as_dict()

    else:
        if not args.counts:
            raise ValueError("--counts N11 N10 N01 N00 is required for --mode rd.")
        out["result"] = evalues_rd(
            *args.counts, true=0.0 if args.true is None else args.true, alpha=args.alpha
        )

    if messages:
        out["messages"] = messages

    print(json.dumps(out, indent=2, default=str))


if __name__ == "__main__":
    main()
