"""
posapi.field_source
-------------------
Parse, canonicalize and re-encode POSAPI mapping selections.

A selection says where one request field gets its value from:
    column      {"type": "column", "table": "...", "column": "..."}
    literal     {"type": "literal", "value": ...}
    env         {"type": "env", "envVar": "..."}
    session     {"type": "session", "sessionVar": "..."}
    expression  {"type": "expression", "expression": "..."}
Any of them may carry an "aggregation" tag.

Stored values may also be compact strings: "qty" is a column of the
primary table, "orders.total" is table.column, "{{POS_TOKEN}}" is an env var.
"""

from __future__ import annotations
import re
from typing import Any, Dict

SELECTION_TYPES = ("column", "literal", "env", "session", "expression")

# Payload field carried by each non-column type
PAYLOAD_KEYS = {
    "literal": "value",
    "env": "envVar",
    "session": "sessionVar",
    "expression": "expression",
}

_ENV_RX = re.compile(r"^\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}$")
_IDENT_RX = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _empty_source() -> Dict[str, Any]:
    return {
        "table": "",
        "column": "",
        "raw": "",
        "type": "column",
        "envVar": "",
        "sessionVar": "",
        "expression": "",
        "value": None,
        "aggregation": "",
    }


def _infer_type(selection: Dict[str, Any]) -> str:
    declared = selection.get("type")
    if isinstance(declared, str) and declared.strip().lower() in SELECTION_TYPES:
        return declared.strip().lower()
    if not _blank(selection.get("envVar")):
        return "env"
    if not _blank(selection.get("sessionVar")):
        return "session"
    if not _blank(selection.get("expression")):
        return "expression"
    if selection.get("value") is not None or selection.get("literal") is not None:
        return "literal"
    return "column"


def parse_field_source(value: Any, primary_table_name: str = "") -> Dict[str, Any]:
    """
    Split a stored selection into its parts. Never raises.
    Output keys: table, column, raw, type, envVar, sessionVar, expression, value, aggregation
    """
    out = _empty_source()
    if value is None:
        return out

    if isinstance(value, dict):
        literal = value.get("value")
        if literal is None:
            literal = value.get("literal")
        out.update(
            type=_infer_type(value),
            table=_text(value.get("table")),
            column=_text(value.get("column")),
            envVar=_text(value.get("envVar")),
            sessionVar=_text(value.get("sessionVar")),
            expression=_text(value.get("expression")),
            value=literal,
            aggregation=_text(value.get("aggregation")),
        )
        out["raw"] = out["column"]
        return out

    if isinstance(value, str):
        txt = value.strip()
        out["raw"] = txt
        m = _ENV_RX.match(txt)
        if m:
            out.update(type="env", envVar=m.group(1))
            return out
        parts = txt.split(".")
        primary = (primary_table_name or "").strip()
        if primary and len(parts) > 1 and parts[0] == primary:
            out["column"] = ".".join(parts[1:])
        elif len(parts) >= 2 and _IDENT_RX.match(parts[0]):
            out["table"] = parts[0]
            out["column"] = ".".join(parts[1:])
        else:
            out["column"] = txt
        return out

    out["raw"] = str(value).lower() if isinstance(value, bool) else str(value)
    return out


def normalize_mapping_selection(value: Any, primary_table_name: str = "") -> Dict[str, Any]:
    """Canonicalize any stored selection into exactly one tagged shape."""
    parsed = parse_field_source(value, primary_table_name)
    kind = parsed["type"]
    if kind == "column":
        selection = {"type": "column", "table": parsed["table"], "column": parsed["column"]}
    else:
        key = PAYLOAD_KEYS[kind]
        payload = parsed[key]
        selection = {"type": kind, key: "" if payload is None else payload}
    if parsed["aggregation"]:
        selection["aggregation"] = parsed["aggregation"]
    return selection


def build_mapping_value(selection: Any, preserve_type: bool = False):
    """
    Encode a selection for storage.
      - column without table/aggregation -> "column"
      - column with table, no aggregation -> "table.column"
      - blank non-column selection        -> ""
      - everything else                   -> the tagged dict
    preserve_type=True always returns the tagged dict.
    """
    sel = normalize_mapping_selection(selection)
    kind = sel["type"]
    aggregation = sel.get("aggregation")

    if kind != "column":
        key = PAYLOAD_KEYS[kind]
        if _blank(sel[key]) and not preserve_type:
            return ""
        out = {"type": kind, key: sel[key]}
        if aggregation:
            out["aggregation"] = aggregation
        return out

    table, column = sel["table"], sel["column"]
    if not preserve_type and not aggregation:
        if column and not table:
            return column
        if column and table:
            return f"{table}.{column}"
        if not table:
            return {}
    out = {"type": "column", "table": table, "column": column}
    if aggregation:
        out["aggregation"] = aggregation
    return out


def has_mapping_provided_value(value: Any) -> bool:
    """True when a stored mapping value actually selects something."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if not isinstance(value, dict) or not value:
        return False
    kind = value.get("type")
    if kind == "literal":
        return not _blank(value.get("value")) or not _blank(value.get("literal"))
    if kind in PAYLOAD_KEYS:
        return not _blank(value.get(PAYLOAD_KEYS[kind]))
    if kind is None:
        for key in ("value", "envVar", "sessionVar", "expression"):
            if not _blank(value.get(key)):
                return True
    return not _blank(value.get("column")) or not _blank(value.get("table"))
