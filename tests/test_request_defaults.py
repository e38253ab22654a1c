from posapi.endpoints import normalise_endpoint_list, normalise_endpoint_usage, with_endpoint_metadata
from posapi.request_defaults import (
    PathToken,
    build_endpoint_request_mapping_defaults,
    classify_field_path,
    derive_endpoint_request_mapping_defaults,
    merge_pos_api_mapping_defaults,
    normalize_nested_paths_map,
    strip_prefix,
    tokenize_field_path,
)


def _column(column, table=""):
    return {"type": "column", "table": table, "column": column}


def test_tokenize_field_path() -> None:
    assert tokenize_field_path("receipts[].items[].qty") == [
        PathToken("receipts", True),
        PathToken("items", True),
        PathToken("qty", False),
    ]
    assert tokenize_field_path("  ") == []
    assert tokenize_field_path(None) == []


def test_strip_prefix_ignores_array_flags() -> None:
    tokens = tokenize_field_path("receipts.items[].qty")
    assert strip_prefix(tokens, tokenize_field_path("receipts[].items[]")) == [PathToken("qty", False)]
    assert strip_prefix(tokens, tokenize_field_path("payments[]")) is None


def test_nested_paths_defaults_and_overrides() -> None:
    assert normalize_nested_paths_map(None, supports_items=False) == {
        "payments": "payments[]",
        "receipts": "receipts[]",
    }
    assert normalize_nested_paths_map({"payments": " pays[] ", "receipts": ""}, supports_items=True) == {
        "items": "receipts[].items[]",
        "payments": "pays[]",
        "receipts": "receipts[]",
    }


def test_item_path_lands_in_items_bucket() -> None:
    paths = normalize_nested_paths_map(supports_items=True)

    assert classify_field_path("receipts[].items[].qty", paths) == ("items", "qty")
    assert classify_field_path("receipts[].payments[].data.rrn", paths) == ("payments", "data.rrn")
    assert classify_field_path("receipts[].totalVAT", paths) == ("receipts", "totalVAT")
    assert classify_field_path("totalAmount", paths) == (None, "totalAmount")


def test_build_defaults_for_item_endpoint() -> None:
    endpoint = {
        "requestFieldMappings": {
            "totalAmount": "total_amount",
            "receipts[].items[].qty": {"table": "lines", "column": "qty"},
            "receipts[].items[].extraFlag": "flag",
            "receipts[].payments[].type": {"type": "literal", "value": "CASH"},
            "unknownRoot": "x",
            "posNo": {"selection": "pos_no", "applyToBody": False},
            "branchNo": {"type": "env", "envVar": ""},
        },
        "requestMappings": {"receipts[].totalVAT": "vat"},
        "requestEnvMap": {
            "merchantTin": "MERCHANT_TIN",
            "districtCode": {"envVar": "DISTRICT", "applyToBody": False},
        },
    }

    out = build_endpoint_request_mapping_defaults(endpoint, supports_items=True)

    assert out == {
        "totalAmount": _column("total_amount"),
        "merchantTin": {"type": "env", "envVar": "MERCHANT_TIN"},
        "objectFields": {
            "receipts[].items[]": {"qty": _column("qty", "lines"), "extraFlag": _column("flag")},
            "receipts[].payments[]": {"type": {"type": "literal", "value": "CASH"}},
            "receipts[]": {"totalVAT": _column("vat")},
        },
        "itemFields": {"qty": _column("qty", "lines")},
        "paymentFields": {"type": {"type": "literal", "value": "CASH"}},
        "receiptFields": {"totalVAT": _column("vat")},
    }


def test_build_defaults_without_mappings() -> None:
    assert build_endpoint_request_mapping_defaults({}) is None
    assert build_endpoint_request_mapping_defaults("nope") is None
    assert build_endpoint_request_mapping_defaults({"requestFieldMappings": {"unknown": "x"}}) is None


def test_derive_uses_endpoint_item_support() -> None:
    mappings = {"requestFieldMappings": {"receipts[].items[].qty": "qty"}}

    txn = derive_endpoint_request_mapping_defaults({**mappings, "usage": "Transaction", "supportsItems": True})
    info = derive_endpoint_request_mapping_defaults({**mappings, "usage": "info", "supportsItems": True})

    assert txn["itemFields"] == {"qty": _column("qty")}
    assert info == {"objectFields": {"receipts[]": {"items.qty": _column("qty")}}}


def test_merge_only_fills_blank_slots() -> None:
    current = {
        "totalAmount": "existing",
        "objectFields": {"receipts[]": {"totalVAT": ""}},
    }
    defaults = {
        "totalAmount": _column("total_amount"),
        "posNo": _column("pos_no"),
        "objectFields": {"receipts[]": {"totalVAT": _column("vat")}},
        "receiptFields": {"totalVAT": _column("vat")},
    }

    result = merge_pos_api_mapping_defaults(current, defaults)

    assert result["changed"] is True
    assert result["value"] == {
        "totalAmount": "existing",
        "posNo": _column("pos_no"),
        "objectFields": {"receipts[]": {"totalVAT": _column("vat")}},
        "receiptFields": {"totalVAT": _column("vat")},
    }
    assert current["objectFields"] == {"receipts[]": {"totalVAT": ""}}


def test_merge_reports_no_change() -> None:
    current = {"totalAmount": "existing", "itemFields": {"qty": "qty"}}

    result = merge_pos_api_mapping_defaults(current, {"totalAmount": "other", "itemFields": {"qty": "q2"}})

    assert result == {"changed": False, "value": current}
    assert result["value"] is current


def test_endpoint_metadata() -> None:
    assert normalise_endpoint_usage(" ADMIN ") == "admin"
    assert normalise_endpoint_usage(None) == "other"
    assert normalise_endpoint_list([" B2C", "B2C", 3, ""], ["X"]) == ["B2C"]
    assert normalise_endpoint_list(None, ["X"]) == ["X"]

    meta = with_endpoint_metadata({"usage": "transaction", "supportsItems": True, "paymentMethods": ["CASH"]})
    assert meta["supportsItems"] is True
    assert meta["enableReceiptItems"] is True
    assert meta["enablePaymentMethods"] is True
    assert meta["paymentMethods"] == ["CASH"]

    other = with_endpoint_metadata({"usage": "lookup", "supportsItems": True, "paymentMethods": ["CASH"]})
    assert other["usage"] == "other"
    assert other["supportsItems"] is False
    assert other["paymentMethods"] == []
