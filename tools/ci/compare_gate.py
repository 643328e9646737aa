"""CI gate: compare a performance run against a stored baseline.

Reads current metrics from a CSV (name,value[,direction]), posts them to
/api/comparisons and prints the verdict as JSON.

Usage:
    python -m tools.ci.compare_gate --baseline-id bl-checkout results.csv

Env vars:
- PERF_BASELINE_API_URL
- PERF_BASELINE_API_KEY

Exit codes:
- 0: comparison ran, no regression
- 1: overall outcome is REGRESSION (or INCONCLUSIVE with --fail-on-inconclusive)
- 2: bad input or request error
"""

from __future__ import annotations

import argparse
import csv
import json
import sys
from typing import Any

from tools.ci.perf_http import ApiError, post_json

EXIT_OK = 0
EXIT_REGRESSION = 1
EXIT_ERROR = 2


def read_metrics_csv(path: str) -> list[dict[str, Any]]:
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames or not {"name", "value"} <= set(reader.fieldnames):
            raise ValueError(f"{path}: expected columns name,value[,direction]")
        metrics = []
        for line_no, row in enumerate(reader, start=2):
            try:
                value = float(row["value"])
            except (TypeError, ValueError):
                raise ValueError(f"{path}:{line_no}: value {row['value']!r} is not a number") from None
            metric: dict[str, Any] = {"name": (row["name"] or "").strip(), "value": value}
            direction = (row.get("direction") or "").strip()
            if direction:
                metric["direction"] = direction
            metrics.append(metric)
    if not metrics:
        raise ValueError(f"{path}: no metrics")
    return metrics


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fail CI when a performance run regresses against its baseline.")
    parser.add_argument("csv_path", help="CSV with name,value[,direction] columns")
    parser.add_argument("--baseline-id", required=True)
    parser.add_argument("--confidence-threshold", type=float, default=None)
    parser.add_argument("--comparison-id", default=None)
    parser.add_argument("--fail-on-inconclusive", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        metrics = read_metrics_csv(args.csv_path)
    except (OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    payload: dict[str, Any] = {"baseline_id": args.baseline_id, "metrics": metrics}
    if args.confidence_threshold is not None:
        payload["confidence_threshold"] = args.confidence_threshold
    if args.comparison_id:
        payload["comparison_id"] = args.comparison_id

    try:
        resp = post_json("/api/comparisons", payload)
    except (ApiError, RuntimeError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    result = resp.get("result") or {}
    outcome = str(result.get("overall_outcome") or "")
    print(json.dumps({
        "trace_id": resp.get("trace_id"),
        "baseline_id": result.get("baseline_id"),
        "comparison_id": result.get("id"),
        "overall_outcome": outcome,
        "overall_confidence": result.get("overall_confidence"),
        "fingerprint": resp.get("fingerprint"),
        "metrics": {r.get("metric_name"): r.get("outcome") for r in result.get("metric_results") or []},
    }, indent=2))

    if not outcome:
        print("ERROR: response has no overall_outcome", file=sys.stderr)
        return EXIT_ERROR
    if outcome == "REGRESSION":
        print("FAIL: performance regression detected", file=sys.stderr)
        return EXIT_REGRESSION
    if outcome == "INCONCLUSIVE" and args.fail_on_inconclusive:
        print("FAIL: comparison inconclusive", file=sys.stderr)
        return EXIT_REGRESSION
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
