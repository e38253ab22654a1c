"""
normalize.assignments
---------------------
Canonical workplace assignment model plus the list normalizer that
projects raw assignment rows onto (workplace_id, workplace_session_id)
and drops duplicates.
"""

from __future__ import annotations
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .common import normalize_numeric_id, first_of, collect_unique


class WorkplaceAssignment(BaseModel):
    """
    One employment assignment to a workplace at a point in time.
    Stored once in snake_case; `to_record()` emits the camelCase aliases too.
    Names are kept as given (trimmed when they are strings).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    company_id: int | float | None = None
    company_name: Any = None
    branch_id: int | float | None = None
    branch_name: Any = None
    department_id: int | float | None = None
    department_name: Any = None
    workplace_id: int | float | None = None
    workplace_name: Any = None
    workplace_session_id: int | float | None = None
    workplace_position_id: int | float | None = None
    workplace_position_name: Any = None

    @property
    def key(self) -> tuple:
        return (self.workplace_id, self.workplace_session_id)

    def to_record(self) -> dict:
        """Serialize with every field under both its snake_case and camelCase key."""
        return {**self.model_dump(), **self.model_dump(by_alias=True)}


def normalize_workplace_assignments(assignments: Iterable[Any] | None = None) -> dict[str, list]:
    """
    Project raw assignments onto normalized (workplace_id, workplace_session_id).
    Output: {"assignments": [...], "sessionIds": [...]}
      - entries without either id are discarded
      - the first entry per id pair wins
      - other fields are copied through untouched
    """
    out: list[dict] = []
    seen: set = set()

    for raw in assignments or []:
        if not isinstance(raw, dict):
            continue
        workplace_id = normalize_numeric_id(raw.get("workplace_id"))
        session_id = normalize_numeric_id(
            first_of(raw, ["workplace_session_id", "workplaceSessionId"])
        )
        if workplace_id is None or session_id is None:
            continue
        key = (workplace_id, session_id)
        if key in seen:
            continue
        seen.add(key)
        out.append({**raw, "workplace_id": workplace_id, "workplace_session_id": session_id})

    return {
        "assignments": out,
        "sessionIds": collect_unique(a["workplace_session_id"] for a in out),
    }
