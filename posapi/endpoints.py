"""
posapi.endpoints
----------------
Endpoint descriptor cleanup: usage classification and the feature toggles
that only transaction endpoints may enable.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List

ENDPOINT_USAGES = ("transaction", "info", "admin")


def normalise_endpoint_usage(value: Any) -> str:
    usage = value.strip().lower() if isinstance(value, str) else ""
    return usage if usage in ENDPOINT_USAGES else "other"


def normalise_endpoint_list(values: Any, fallback: Iterable[str]) -> List[str]:
    """Trimmed, de-duplicated strings; `fallback` when nothing usable is left."""
    fallback = list(fallback)
    source = values if isinstance(values, list) else fallback
    cleaned = [v.strip() for v in source if isinstance(v, str) and v.strip()]
    return list(dict.fromkeys(cleaned or fallback))


def with_endpoint_metadata(endpoint: Any) -> Any:
    """
    Copy of `endpoint` with usage and feature toggles resolved.
    Non-transaction endpoints never support items, receipt types, tax types
    or payment methods. Non-dict input is returned unchanged.
    """
    if not isinstance(endpoint, dict):
        return endpoint

    usage = normalise_endpoint_usage(endpoint.get("usage"))
    is_txn = usage == "transaction"

    receipt_types = endpoint.get("receiptTypes") if isinstance(endpoint.get("receiptTypes"), list) else []
    tax_types = endpoint.get("taxTypes")
    if not isinstance(tax_types, list):
        tax_types = endpoint.get("receiptTaxTypes") if isinstance(endpoint.get("receiptTaxTypes"), list) else []
    payment_methods = endpoint.get("paymentMethods") if isinstance(endpoint.get("paymentMethods"), list) else []

    receipt_types_on = is_txn and (endpoint.get("enableReceiptTypes") is True or len(receipt_types) > 0)
    tax_types_on = is_txn and (endpoint.get("enableReceiptTaxTypes") is True or len(tax_types) > 0)
    payment_methods_on = is_txn and (endpoint.get("enablePaymentMethods") is True or len(payment_methods) > 0)
    supports_items = is_txn and endpoint.get("supportsItems") is True
    items_on = supports_items and endpoint.get("enableReceiptItems") is not False

    return {
        **endpoint,
        "usage": usage,
        "defaultForForm": is_txn and bool(endpoint.get("defaultForForm")),
        "supportsMultipleReceipts": is_txn and bool(endpoint.get("supportsMultipleReceipts")),
        "supportsMultiplePayments": is_txn and bool(endpoint.get("supportsMultiplePayments")),
        "supportsItems": supports_items,
        "enableReceiptTypes": receipt_types_on,
        "allowMultipleReceiptTypes": receipt_types_on and endpoint.get("allowMultipleReceiptTypes") is not False,
        "receiptTypes": normalise_endpoint_list(receipt_types, []) if receipt_types_on else [],
        "enableReceiptTaxTypes": tax_types_on,
        "allowMultipleReceiptTaxTypes": tax_types_on and endpoint.get("allowMultipleReceiptTaxTypes") is not False,
        "receiptTaxTypes": normalise_endpoint_list(tax_types, []) if tax_types_on else [],
        "enablePaymentMethods": payment_methods_on,
        "allowMultiplePaymentMethods": payment_methods_on and endpoint.get("allowMultiplePaymentMethods") is not False,
        "paymentMethods": normalise_endpoint_list(payment_methods, []) if payment_methods_on else [],
        "enableReceiptItems": items_on,
        "allowMultipleReceiptItems": items_on and endpoint.get("allowMultipleReceiptItems") is not False,
    }
