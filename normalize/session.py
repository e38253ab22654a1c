"""
normalize.session
-----------------
Reconciles a raw employment session with its workplace assignments.

Usage:
    session = normalize_employment_session(raw_session, raw_assignments)

The result is a copy of the session with resolved workplace/session ids,
a de-duplicated hydrated assignment list, every session id seen, and a
workplace -> position map. Nothing here raises on malformed input.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable

from merge import rules
from merge.position_map import derive_workplace_positions_from_assignments
from .assignments import WorkplaceAssignment, normalize_workplace_assignments
from .common import normalize_numeric_id, trim_or_null, first_of, collect_unique


def _pick(source: dict, defaults: dict, keys, use_defaults: bool) -> Any:
    value = first_of(source, keys)
    if value is None and use_defaults:
        value = first_of(defaults, keys)
    return value


def build_normalized_assignment(source: Any, defaults: Dict[str, Any] | None = None,
                                fallback_meta: bool = False) -> WorkplaceAssignment | None:
    """
    Hydrate one assignment from `source`, falling back to `defaults`.

    fallback_meta gates company/branch/department/workplace name/position.
    The workplace id and the session id always fall back, the latter all the
    way down to the default workplace id. Returns None when no session id
    can be found.
    """
    source = source if isinstance(source, dict) else {}
    defaults = defaults if isinstance(defaults, dict) else {}

    session_id = normalize_numeric_id(first_of(source, rules.SESSION_ID_KEYS))
    if session_id is None:
        session_id = normalize_numeric_id(first_of(defaults, rules.SESSION_ID_FALLBACK_KEYS))
    if session_id is None:
        return None

    def num(keys, always=False):
        return normalize_numeric_id(_pick(source, defaults, keys, always or fallback_meta))

    def name(keys):
        return trim_or_null(_pick(source, defaults, keys, fallback_meta))

    return WorkplaceAssignment(
        company_id=num(rules.COMPANY_ID_KEYS),
        company_name=name(rules.COMPANY_NAME_KEYS),
        branch_id=num(rules.BRANCH_ID_KEYS),
        branch_name=name(rules.BRANCH_NAME_KEYS),
        department_id=num(rules.DEPARTMENT_ID_KEYS),
        department_name=name(rules.DEPARTMENT_NAME_KEYS),
        workplace_id=num(rules.SESSION_WORKPLACE_ID_KEYS, always=True),
        workplace_name=name(rules.WORKPLACE_NAME_KEYS),
        workplace_session_id=session_id,
        workplace_position_id=num(rules.ASSIGNMENT_POSITION_ID_KEYS),
        workplace_position_name=name(rules.ASSIGNMENT_POSITION_NAME_KEYS),
    )


def normalize_employment_session(session: Any, assignments: Iterable[Any] | None = None) -> Any:
    """
    Entry point: returns the enriched session dict, or `session` unchanged
    when it is not a dict (None stays None).
    """
    if not isinstance(session, dict):
        return session

    result = normalize_workplace_assignments(assignments)
    normalized = result["assignments"]
    session_ids = result["sessionIds"]

    fallback_workplace_id = normalize_numeric_id(first_of(session, rules.SESSION_WORKPLACE_ID_KEYS))
    if fallback_workplace_id is None and normalized:
        fallback_workplace_id = normalized[0]["workplace_id"]

    fallback_session_id = normalize_numeric_id(first_of(session, rules.SESSION_ID_KEYS))
    if fallback_session_id is None and session_ids:
        fallback_session_id = session_ids[0]

    position_id = normalize_numeric_id(first_of(session, rules.SESSION_POSITION_ID_KEYS))
    position_name = trim_or_null(first_of(session, rules.SESSION_POSITION_NAME_KEYS))

    fallback_defaults = {
        **session,
        "workplace_id": fallback_workplace_id,
        "workplaceId": fallback_workplace_id,
        "workplace_session_id": fallback_session_id,
        "workplaceSessionId": fallback_session_id,
        "workplace_position_id": position_id,
        "workplacePositionId": position_id,
        "workplace_position_name": position_name,
        "workplacePositionName": position_name,
    }

    hydrated: list[WorkplaceAssignment] = []
    seen: set = set()
    for raw in normalized:
        item = build_normalized_assignment(raw, fallback_defaults, fallback_meta=False)
        if item is None or item.key in seen:
            continue
        seen.add(item.key)
        hydrated.append(item)

    # A session with its own ids but no assignment list still gets one assignment
    if not hydrated and fallback_session_id is not None:
        item = build_normalized_assignment(session, fallback_defaults, fallback_meta=True)
        if item is not None:
            hydrated.append(item)

    combined_session_ids = collect_unique([*session_ids, fallback_session_id])

    matched = next((a for a in hydrated if a.workplace_session_id == fallback_session_id), None)
    if matched is None:
        matched = next((a for a in hydrated if a.workplace_id == fallback_workplace_id), None)

    resolved_position_id = position_id
    if resolved_position_id is None and matched is not None:
        resolved_position_id = normalize_numeric_id(matched.workplace_position_id)
    resolved_position_name = position_name
    if resolved_position_name is None and matched is not None:
        resolved_position_name = trim_or_null(matched.workplace_position_name)

    records = [a.to_record() for a in hydrated]
    position_map = derive_workplace_positions_from_assignments(records)

    return {
        **session,
        "workplace_id": fallback_workplace_id,
        "workplace_session_id": fallback_session_id,
        "workplace_position_id": resolved_position_id,
        "workplacePositionId": resolved_position_id,
        "workplace_position_name": resolved_position_name,
        "workplacePositionName": resolved_position_name,
        "workplace_assignments": records,
        "workplace_session_ids": combined_session_ids,
        "workplace_position_map": position_map,
        "workplacePositionMap": position_map,
    }
