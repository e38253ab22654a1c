# positions_adaptor.py
import os
import logging
from dotenv import load_dotenv
from sqlalchemy import create_engine, text, bindparam
from sqlalchemy.exc import SQLAlchemyError

from normalize.common import normalize_numeric_id, normalize_text, first_of, collect_unique
from normalize.session import normalize_employment_session
from merge.rules import WORKPLACE_ID_KEYS, COMPANY_ID_KEYS, SESSION_WORKPLACE_ID_KEYS
from merge.position_map import (
    build_workplace_position_map,
    apply_workplace_position,
    derive_workplace_positions_from_assignments,
)

# ---------------- Env & engine ----------------
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite://")


def _company_id_setting(raw, default=0):
    """A malformed GLOBAL_COMPANY_ID falls back to `default` instead of failing the import."""
    cid = normalize_numeric_id(raw)
    return default if cid is None else cid


GLOBAL_COMPANY_ID = _company_id_setting(os.getenv("GLOBAL_COMPANY_ID"))

log = logging.getLogger("workplace.positions")

_engine = None


class PositionLookupFailed(Exception):
    """The code_workplace / code_position read did not complete."""


def get_engine():
    """Create the SQLAlchemy engine once, on first use."""
    global _engine
    if _engine is None:
        _engine = create_engine(DATABASE_URL, pool_pre_ping=True)
    return _engine


_WORKPLACE_SQL = text(
    """
    SELECT workplace_id, workplace_position_id, workplace_name, workplace_ner, company_id
      FROM code_workplace
     WHERE workplace_id IN :workplace_ids
       AND company_id IN :company_ids
       AND (deleted_at IS NULL OR deleted_at IN (0, ''))
    """
).bindparams(
    bindparam("workplace_ids", expanding=True),
    bindparam("company_ids", expanding=True),
)

_POSITION_SQL = text(
    """
    SELECT position_id, position_name, company_id
      FROM code_position
     WHERE position_id IN :position_ids
       AND company_id IN :company_ids
       AND (deleted_at IS NULL OR deleted_at IN (0, ''))
    """
).bindparams(
    bindparam("position_ids", expanding=True),
    bindparam("company_ids", expanding=True),
)


def _company_scope(assignments, company_id):
    return collect_unique([
        GLOBAL_COMPANY_ID,
        normalize_numeric_id(company_id),
        *(normalize_numeric_id(first_of(a, COMPANY_ID_KEYS)) for a in assignments),
    ])


def _read_positions(engine, workplace_ids, company_ids):
    """Return {workplace_id: {positionId, positionName}} from code_workplace/code_position."""
    base_map = {}
    position_ids = []
    try:
        with engine.connect() as conn:
            rows = conn.execute(
                _WORKPLACE_SQL,
                {"workplace_ids": workplace_ids, "company_ids": company_ids},
            ).mappings().all()
            for row in rows:
                wid = normalize_numeric_id(row["workplace_id"])
                if wid is None:
                    continue
                pid = normalize_numeric_id(row["workplace_position_id"])
                if pid is not None and pid not in position_ids:
                    position_ids.append(pid)
                label = row["workplace_name"]
                if label is None:
                    label = row["workplace_ner"]
                base_map[wid] = {"positionId": pid, "positionName": normalize_text(label)}

            names = {}
            if position_ids:
                rows = conn.execute(
                    _POSITION_SQL,
                    {"position_ids": position_ids, "company_ids": company_ids},
                ).mappings().all()
                for row in rows:
                    pid = normalize_numeric_id(row["position_id"])
                    label = normalize_text(row["position_name"])
                    if pid is not None and label:
                        names[pid] = label
    except SQLAlchemyError as e:
        raise PositionLookupFailed(f"position lookup failed for workplaces {workplace_ids}") from e

    log.debug("position lookup workplaces=%d positions=%d", len(base_map), len(names))

    # code_position names only stand in when the workplace row had no label
    for wid, info in base_map.items():
        if info["positionName"] is None and info["positionId"] in names:
            base_map[wid] = {**info, "positionName": names[info["positionId"]]}
    return base_map


def resolve_workplace_positions_for_assignments(assignments=None, company_id=None, *, engine=None):
    """
    Enrich raw assignment dicts with their workplace position.
    Returns {"assignments": [...], "workplacePositionMap": {...}}.
    Read-only; raises PositionLookupFailed if the DB read fails.
    """
    assignments = [a for a in (assignments or []) if isinstance(a, dict)]

    workplace_ids = collect_unique(normalize_numeric_id(first_of(a, WORKPLACE_ID_KEYS)) for a in assignments)

    if not workplace_ids:
        return {
            "assignments": assignments,
            "workplacePositionMap": build_workplace_position_map(assignments),
        }

    base_map = _read_positions(
        engine or get_engine(), workplace_ids, _company_scope(assignments, company_id)
    )

    merged = build_workplace_position_map(assignments, base_map)
    enriched = [apply_workplace_position(a, merged) for a in assignments]
    return {
        "assignments": enriched,
        "workplacePositionMap": build_workplace_position_map(enriched, merged),
    }


def _session_assignments(session):
    assignments = session.get("workplace_assignments") if isinstance(session, dict) else None
    return [a for a in assignments or [] if isinstance(a, dict)]


def resolve_workplace_positions(session, company_id=None, *, engine=None):
    """
    Position map for every workplace a session touches.
    A failed lookup is logged and the map derived from the assignments is returned.
    """
    assignments = _session_assignments(session)
    seed = derive_workplace_positions_from_assignments(assignments)
    if not isinstance(session, dict):
        return seed

    # The session's own workplace counts even when no assignment names it
    session_wid = normalize_numeric_id(first_of(session, SESSION_WORKPLACE_ID_KEYS))
    if session_wid is not None and session_wid not in seed:
        assignments = assignments + [{
            "workplace_id": session_wid,
            "workplace_position_id": session.get("workplace_position_id"),
            "workplace_position_name": session.get("workplace_position_name"),
        }]

    if company_id is None:
        company_id = first_of(session, COMPANY_ID_KEYS)
    try:
        result = resolve_workplace_positions_for_assignments(assignments, company_id, engine=engine)
    except PositionLookupFailed as e:
        log.warning("Failed to resolve workplace positions: %s (%s)", e, e.__cause__)
        return seed
    return result["workplacePositionMap"]


def normalize_session_with_positions(session, assignments=None, company_id=None, *, engine=None):
    """
    normalize_employment_session + DB position enrichment of the hydrated assignments.
    On a failed lookup the plain normalized session is returned.
    """
    normalized = normalize_employment_session(session, assignments)
    if not isinstance(normalized, dict):
        return normalized

    if company_id is None:
        company_id = first_of(normalized, COMPANY_ID_KEYS)
    try:
        result = resolve_workplace_positions_for_assignments(
            normalized["workplace_assignments"], company_id, engine=engine
        )
    except PositionLookupFailed as e:
        log.warning("Failed to resolve workplace positions: %s (%s)", e, e.__cause__)
        return normalized

    position_map = result["workplacePositionMap"]
    out = {
        **normalized,
        "workplace_assignments": result["assignments"],
        "workplace_position_map": position_map,
        "workplacePositionMap": position_map,
    }

    entry = position_map.get(normalized["workplace_id"]) or {}
    if out["workplace_position_id"] is None and entry.get("positionId") is not None:
        out["workplace_position_id"] = out["workplacePositionId"] = entry["positionId"]
    if out["workplace_position_name"] is None and entry.get("positionName") is not None:
        out["workplace_position_name"] = out["workplacePositionName"] = entry["positionName"]
    return out
