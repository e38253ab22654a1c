"""
posapi.request_defaults
-----------------------
Turns the field mappings declared on a POSAPI endpoint into default
request mappings for the configuration UI, and merges those defaults into
an existing configuration without overwriting anything already set.

Field paths are dotted, with "[]" marking repeated objects:
    totalAmount                  -> root field
    receipts[].items[].qty       -> "qty" inside the items objects
    receipts[].payments[].type   -> "type" inside the payments objects

Usage:
    defaults = derive_endpoint_request_mapping_defaults(endpoint)
    result = merge_pos_api_mapping_defaults(current_mapping, defaults)
    if result["changed"]: save(result["value"])
"""

from __future__ import annotations
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from .endpoints import with_endpoint_metadata
from .field_source import build_mapping_value, has_mapping_provided_value, normalize_mapping_selection
from .fields import (
    ROOT_REQUEST_KEYS, ITEM_REQUEST_KEYS, PAYMENT_REQUEST_KEYS, RECEIPT_REQUEST_KEYS, LEGACY_SECTIONS,
)

# Nested buckets in match order, with the keys each legacy section accepts
BUCKETS = [
    ("items", ITEM_REQUEST_KEYS),
    ("payments", PAYMENT_REQUEST_KEYS),
    ("receipts", RECEIPT_REQUEST_KEYS),
]


class PathToken(NamedTuple):
    key: str
    is_array: bool


def tokenize_field_path(path: Any) -> List[PathToken]:
    """'receipts[].items[].qty' -> [receipts(array), items(array), qty]"""
    if not isinstance(path, str) or not path.strip():
        return []
    tokens = []
    for segment in path.split("."):
        seg = segment.strip()
        if not seg:
            continue
        if seg.endswith("[]"):
            tokens.append(PathToken(seg[:-2], True))
        else:
            tokens.append(PathToken(seg, False))
    return tokens


def tokens_to_path(tokens: List[PathToken]) -> str:
    return ".".join(f"{t.key}{'[]' if t.is_array else ''}" for t in tokens or [])


def strip_prefix(tokens: List[PathToken], prefix: List[PathToken]) -> Optional[List[PathToken]]:
    """Tokens left after `prefix` (keys compared, array flags ignored), else None."""
    if not tokens or not prefix or len(tokens) < len(prefix):
        return None
    for token, expected in zip(tokens, prefix):
        if token.key != expected.key:
            return None
    return tokens[len(prefix):]


def _field_key(path: str) -> str:
    return path.replace("[]", "")


def normalize_nested_paths_map(nested_paths: Any = None, supports_items: bool = False) -> Dict[str, str]:
    """Default nested-object prefixes, overridden by any non-blank configured path."""
    paths = {}
    if supports_items:
        paths["items"] = "receipts[].items[]"
    paths["payments"] = "receipts[].payments[]" if supports_items else "payments[]"
    paths["receipts"] = "receipts[]"
    if isinstance(nested_paths, dict):
        for key, value in nested_paths.items():
            if isinstance(value, str) and value.strip():
                paths[key] = value.strip()
    return paths


def classify_field_path(path: str, nested_paths: Dict[str, str]) -> Tuple[Optional[str], str]:
    """
    Return (bucket, field_key) for a request field path.
    bucket is "items", "payments", "receipts", or None for a root field.
    """
    tokens = tokenize_field_path(path)
    for bucket, _ in BUCKETS:
        remainder = strip_prefix(tokens, tokenize_field_path(nested_paths.get(bucket, "")))
        if remainder is not None:
            return bucket, _field_key(tokens_to_path(remainder))
    return None, _field_key(path or "")


def _coerce_entry(entry: Any):
    """Return the stored mapping value for an entry, or None when it is excluded or blank."""
    if entry is None:
        return None
    selection = entry
    if isinstance(entry, dict):
        if entry.get("applyToBody", True) is False:
            return None
        if "selection" in entry:
            selection = entry["selection"]
    normalized = normalize_mapping_selection(selection if selection is not None else {})
    if not has_mapping_provided_value(normalized):
        return None
    value = build_mapping_value(normalized, preserve_type=True)
    return value if has_mapping_provided_value(value) else None


def _collect_entries(endpoint: Dict[str, Any]) -> List[Tuple[str, Any]]:
    entries = []
    for source in ("requestFieldMappings", "requestMappings"):
        mapping = endpoint.get(source)
        if isinstance(mapping, dict):
            entries.extend(mapping.items())
    env_map = endpoint.get("requestEnvMap")
    if isinstance(env_map, dict):
        for path, env_entry in env_map.items():
            if not path:
                continue
            env_var = env_entry if isinstance(env_entry, str) else (
                env_entry.get("envVar") if isinstance(env_entry, dict) else None
            )
            if not env_var:
                continue
            apply = bool(env_entry.get("applyToBody")) if isinstance(env_entry, dict) and "applyToBody" in env_entry else True
            entries.append((path, {"type": "env", "envVar": env_var, "applyToBody": apply}))
    return entries


def build_endpoint_request_mapping_defaults(endpoint: Any, nested_paths: Any = None,
                                            supports_items: bool = False) -> Optional[Dict[str, Any]]:
    """
    Build {root fields..., objectFields, itemFields, paymentFields, receiptFields}
    from an endpoint's mappings. Returns None when nothing maps.
    """
    if not isinstance(endpoint, dict):
        return None
    paths = normalize_nested_paths_map(nested_paths, supports_items)
    object_keys = {
        bucket: tokens_to_path(tokenize_field_path(paths.get(bucket, ""))) or bucket
        for bucket, _ in BUCKETS
    }

    entries = _collect_entries(endpoint)
    if not entries:
        return None

    root: Dict[str, Any] = {}
    object_fields: Dict[str, Dict[str, Any]] = {}
    legacy: Dict[str, Dict[str, Any]] = {section: {} for section in LEGACY_SECTIONS.values()}
    known = dict(BUCKETS)

    for path, raw in entries:
        if not path:
            continue
        value = _coerce_entry(raw)
        if value is None:
            continue
        bucket, key = classify_field_path(path, paths)
        if not key:
            continue
        if bucket is None:
            if key in ROOT_REQUEST_KEYS:
                root[key] = value
            continue
        if key in known[bucket]:
            legacy[LEGACY_SECTIONS[bucket]][key] = value
        object_fields.setdefault(object_keys[bucket], {})[key] = value

    result = dict(root)
    if object_fields:
        result["objectFields"] = object_fields
    for section, fields in legacy.items():
        if fields:
            result[section] = fields
    return result or None


def derive_endpoint_request_mapping_defaults(endpoint: Any) -> Optional[Dict[str, Any]]:
    """Same as build_endpoint_request_mapping_defaults, reading nested paths and item support off the endpoint."""
    if not isinstance(endpoint, dict):
        return None
    meta = with_endpoint_metadata(endpoint)
    nested = endpoint.get("nestedPaths")
    if nested is None:
        nested = endpoint.get("nestedObjectPaths")
    return build_endpoint_request_mapping_defaults(meta, nested, meta["supportsItems"])


# ---------- Merge ----------

def _as_section(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def merge_mapping_section(current: Any, defaults: Any) -> Tuple[Dict[str, Any], bool]:
    """Fill blank fields of `current` from `defaults`. Returns (merged, changed)."""
    merged = dict(_as_section(current))
    changed = False
    for key, value in _as_section(defaults).items():
        if not has_mapping_provided_value(merged.get(key)) and has_mapping_provided_value(value):
            merged[key] = value
            changed = True
    return merged, changed


def merge_pos_api_mapping_defaults(current_mapping: Any = None, defaults: Any = None) -> Dict[str, Any]:
    """
    Layer `defaults` under `current_mapping`; existing non-blank values are never replaced.
    Returns {"changed": bool, "value": mapping}. When nothing changed, `value`
    is the original object.
    """
    defaults = _as_section(defaults)
    nxt = dict(_as_section(current_mapping))
    changed = False

    nested_sections = ["objectFields", *LEGACY_SECTIONS.values()]
    for key, value in defaults.items():
        if key in nested_sections:
            continue
        if not has_mapping_provided_value(nxt.get(key)) and has_mapping_provided_value(value):
            nxt[key] = value
            changed = True

    if defaults.get("objectFields"):
        object_fields = dict(_as_section(nxt.get("objectFields")))
        for object_key, fields in _as_section(defaults["objectFields"]).items():
            merged, section_changed = merge_mapping_section(object_fields.get(object_key), fields)
            if section_changed:
                object_fields[object_key] = merged
                changed = True
        if object_fields:
            nxt["objectFields"] = object_fields

    for section in LEGACY_SECTIONS.values():
        if not defaults.get(section):
            continue
        merged, section_changed = merge_mapping_section(nxt.get(section), defaults[section])
        if section_changed:
            nxt[section] = merged
            changed = True

    return {"changed": changed, "value": nxt if changed else current_mapping}
