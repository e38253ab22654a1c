import pytest

from posapi.field_source import (
    build_mapping_value,
    has_mapping_provided_value,
    normalize_mapping_selection,
    parse_field_source,
)


def test_parse_bare_column() -> None:
    parsed = parse_field_source("qty")
    assert (parsed["type"], parsed["table"], parsed["column"]) == ("column", "", "qty")


def test_parse_table_column() -> None:
    parsed = parse_field_source(" orders.total_amount ")
    assert (parsed["table"], parsed["column"], parsed["raw"]) == ("orders", "total_amount", "orders.total_amount")


def test_parse_strips_primary_table() -> None:
    parsed = parse_field_source("transactions.total", "transactions")
    assert (parsed["table"], parsed["column"]) == ("", "total")


def test_parse_env_placeholder() -> None:
    parsed = parse_field_source("{{ POS_TOKEN }}")
    assert (parsed["type"], parsed["envVar"]) == ("env", "POS_TOKEN")


def test_parse_field_path_is_one_column() -> None:
    parsed = parse_field_source("receipts[].items[].qty")
    assert (parsed["table"], parsed["column"]) == ("", "receipts[].items[].qty")


def test_parse_scalars_and_none() -> None:
    assert parse_field_source(42)["raw"] == "42"
    assert parse_field_source(42)["column"] == ""
    assert parse_field_source(True)["raw"] == "true"
    assert parse_field_source(None)["raw"] == ""


@pytest.mark.parametrize(
    "selection, expected_type",
    [
        ({"envVar": "TOKEN"}, "env"),
        ({"sessionVar": "user_id"}, "session"),
        ({"expression": "qty * price"}, "expression"),
        ({"value": 0}, "literal"),
        ({"table": "t", "column": "c"}, "column"),
        ({"type": "Literal", "literal": "abc"}, "literal"),
        ({"type": "bogus", "envVar": "X"}, "env"),
    ],
)
def test_parse_infers_type(selection, expected_type) -> None:
    assert parse_field_source(selection)["type"] == expected_type


def test_normalize_selection_shapes() -> None:
    assert normalize_mapping_selection("orders.total") == {"type": "column", "table": "orders", "column": "total"}
    assert normalize_mapping_selection({"type": "literal", "literal": "abc"}) == {"type": "literal", "value": "abc"}
    assert normalize_mapping_selection({"envVar": "X", "aggregation": "sum"}) == {
        "type": "env", "envVar": "X", "aggregation": "sum",
    }


def test_bare_column_compacts_to_a_string() -> None:
    selection = {"type": "column", "table": "", "column": "qty"}

    assert build_mapping_value(selection, preserve_type=False) == "qty"
    assert build_mapping_value(selection, preserve_type=True) == selection


def test_table_column_compacts_to_dotted_string() -> None:
    assert build_mapping_value({"table": "orders", "column": "total"}) == "orders.total"


def test_aggregation_keeps_the_object_form() -> None:
    assert build_mapping_value({"table": "lines", "column": "qty", "aggregation": "sum"}) == {
        "type": "column", "table": "lines", "column": "qty", "aggregation": "sum",
    }


def test_blank_selections() -> None:
    assert build_mapping_value({"type": "env", "envVar": " "}) == ""
    assert build_mapping_value({"type": "env", "envVar": ""}, preserve_type=True) == {"type": "env", "envVar": ""}
    assert build_mapping_value(None) == {}


@pytest.mark.parametrize(
    "selection",
    [
        {"type": "column", "table": "lines", "column": "qty"},
        {"type": "literal", "value": 0},
        {"type": "session", "sessionVar": "branch_id", "aggregation": "max"},
        {"type": "expression", "expression": "qty * price"},
    ],
)
def test_preserved_values_decode_to_the_same_selection(selection) -> None:
    encoded = build_mapping_value(selection, preserve_type=True)
    assert normalize_mapping_selection(encoded) == normalize_mapping_selection(selection)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, False),
        ("", False),
        ("  qty ", True),
        ({}, False),
        ({"type": "column", "table": "", "column": ""}, False),
        ({"type": "column", "table": "t", "column": ""}, True),
        ({"type": "env", "envVar": ""}, False),
        ({"type": "literal", "value": 0}, True),
        ({"sessionVar": "user"}, True),
        (5, False),
    ],
)
def test_has_mapping_provided_value(value, expected) -> None:
    assert has_mapping_provided_value(value) is expected
