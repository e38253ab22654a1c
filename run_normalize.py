"""
run_normalize
-------------
Tiny CLI to run the normalizers over JSON files and print the result.

Usage:
    python run_normalize.py session <session.json> [--positions]
    # session.json: {"session": {...}, "assignments": [...], "companyId": 1}
    # --positions also resolves workplace positions from DATABASE_URL

    python run_normalize.py posapi <endpoint.json>
    # prints the default request mapping derived from the endpoint
"""

from __future__ import annotations

import sys
import json
from pathlib import Path
from time import perf_counter

from normalize.session import normalize_employment_session
from posapi.request_defaults import derive_endpoint_request_mapping_defaults


def _checkpoint(label: str, t0: float | None = None) -> float:
    """
    Print a progress checkpoint and optionally the elapsed time since t0.
    Returns a fresh timestamp so you can chain checkpoints.
    """
    now = perf_counter()
    if t0 is None:
        print(f"[chk] {label}", file=sys.stderr)
    else:
        print(f"[chk] {label}  (Δ {now - t0:.2f}s)", file=sys.stderr)
    return now


def _jsonable(obj):
    """Position maps are keyed by numbers; JSON wants string keys."""
    if isinstance(obj, dict):
        return {str(k): _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_jsonable(v) for v in obj]
    return obj


def run_session(path: str, with_positions: bool = False) -> dict:
    t0 = _checkpoint(f"read {path}")
    payload = json.loads(Path(path).read_text())
    session = payload.get("session")
    assignments = payload.get("assignments") or []

    if with_positions:
        # imported lazily so the plain path never touches the DB layer
        from positions_adaptor import normalize_session_with_positions

        t0 = _checkpoint("normalize + position lookup", t0)
        out = normalize_session_with_positions(session, assignments, payload.get("companyId"))
    else:
        t0 = _checkpoint("normalize", t0)
        out = normalize_employment_session(session, assignments)
    _checkpoint("done", t0)
    return out


def run_posapi(path: str):
    t0 = _checkpoint(f"read {path}")
    endpoint = json.loads(Path(path).read_text())
    out = derive_endpoint_request_mapping_defaults(endpoint)
    _checkpoint("done", t0)
    return out


def main(argv: list[str]) -> int:
    if len(argv) < 2 or argv[0] not in ("session", "posapi"):
        print(__doc__, file=sys.stderr)
        return 2
    kind, path = argv[0], argv[1]
    if not Path(path).exists():
        print(f"❌ no such file: {path}", file=sys.stderr)
        return 1

    if kind == "session":
        result = run_session(path, with_positions="--positions" in argv[2:])
    else:
        result = run_posapi(path)
    print(json.dumps(_jsonable(result), indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
