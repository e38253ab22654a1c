"""
merge.position_map
------------------
Builds and applies the workplace -> position lookup.

Merge policy (no confidence, no overwrite):
    an existing non-null positionId/positionName always wins;
    an incoming value only fills a slot that is still None.

Usage:
    pos_map = build_workplace_position_map(assignments, seed=db_map)
    enriched = [apply_workplace_position(a, pos_map) for a in assignments]
"""

from __future__ import annotations
from typing import Any, Dict, Iterable

from normalize.common import normalize_numeric_id, normalize_text, first_of
from .rules import WORKPLACE_ID_KEYS, POSITION_ID_KEYS, POSITION_NAME_KEYS


def _entry(position_id, position_name) -> Dict[str, Any]:
    return {"positionId": position_id, "positionName": position_name}


def merge_position_entry(existing: Dict[str, Any] | None, position_id, position_name) -> Dict[str, Any]:
    """Fill the gaps of `existing` with the incoming id/name."""
    existing = existing or {}
    pid = existing.get("positionId")
    pname = existing.get("positionName")
    return _entry(
        pid if pid is not None else position_id,
        pname if pname is not None else position_name,
    )


def build_workplace_position_map(assignments: Iterable[Any] | None = None,
                                 seed: Dict[Any, Dict[str, Any]] | None = None) -> Dict[Any, Dict[str, Any]]:
    """
    Layer position data found on `assignments` over a copy of `seed`.
    The first assignment seen for a workplace sets its values; later ones only fill gaps.
    """
    pos_map: Dict[Any, Dict[str, Any]] = {}
    # "5" and 5 name the same workplace once the map has been through JSON
    for key, entry in (seed or {}).items():
        workplace_id = normalize_numeric_id(key)
        if workplace_id is None or not isinstance(entry, dict):
            continue
        pos_map[workplace_id] = merge_position_entry(
            pos_map.get(workplace_id), entry.get("positionId"), entry.get("positionName")
        )
    for assignment in assignments or []:
        if not isinstance(assignment, dict):
            continue
        workplace_id = normalize_numeric_id(first_of(assignment, WORKPLACE_ID_KEYS))
        if workplace_id is None:
            continue
        position_id = normalize_numeric_id(first_of(assignment, POSITION_ID_KEYS))
        position_name = normalize_text(first_of(assignment, POSITION_NAME_KEYS))
        pos_map[workplace_id] = merge_position_entry(pos_map.get(workplace_id), position_id, position_name)
    return pos_map


def apply_workplace_position(assignment: Dict[str, Any] | None,
                             position_map: Dict[Any, Dict[str, Any]] | None) -> Dict[str, Any]:
    """
    Return a copy of `assignment` carrying the resolved position.
    Map values come first, then the assignment's own fields. Keys are only
    written when the resolved value is not None.
    """
    assignment = assignment if isinstance(assignment, dict) else {}
    position_map = position_map or {}
    workplace_id = normalize_numeric_id(first_of(assignment, WORKPLACE_ID_KEYS))
    mapped = None
    if workplace_id is not None:
        mapped = position_map.get(workplace_id)
        if mapped is None:
            mapped = position_map.get(str(workplace_id))
    mapped = mapped or {}

    raw_id = mapped.get("positionId")
    if raw_id is None:
        raw_id = first_of(assignment, POSITION_ID_KEYS)
    resolved_id = normalize_numeric_id(raw_id)

    resolved_name = normalize_text(mapped.get("positionName"))
    if resolved_name is None:
        resolved_name = normalize_text(first_of(assignment, POSITION_NAME_KEYS))

    out = dict(assignment)
    if resolved_id is not None:
        out["workplace_position_id"] = resolved_id
        out["workplacePositionId"] = resolved_id
    if resolved_name is not None:
        out["workplace_position_name"] = resolved_name
        out["workplacePositionName"] = resolved_name
    return out


def derive_workplace_positions_from_assignments(assignments: Iterable[Any] | None = None) -> Dict[Any, Dict[str, Any]]:
    """Position map keyed purely off an assignment list (no seed, no DB)."""
    return build_workplace_position_map(assignments)
