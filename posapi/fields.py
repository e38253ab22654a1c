"""
posapi.fields
-------------
Known POSAPI request field keys, per body section.

- ROOT fields live directly on the request body.
- ITEM / PAYMENT / RECEIPT fields live inside the repeated nested objects.
- *_KEYS are the lookup sets used when mirroring mapped fields into the
  flat legacy sections (itemFields / paymentFields / receiptFields).
"""

POS_API_FIELDS = [
    ("totalAmount", "Total amount"),
    ("totalVAT", "Total VAT"),
    ("totalCityTax", "Total city tax"),
    ("customerTin", "Customer TIN"),
    ("consumerNo", "Consumer number"),
    ("taxType", "Tax type"),
    ("lotNo", "Lot number (pharmacy)"),
    ("branchNo", "Branch number"),
    ("posNo", "POS number"),
    ("merchantTin", "Merchant TIN override"),
    ("districtCode", "District code"),
    ("itemsField", "Items array column"),
    ("paymentsField", "Payments array column"),
    ("receiptsField", "Receipts array column"),
    ("paymentType", "Default payment type column"),
    ("taxTypeField", "Header tax type column"),
    ("classificationCodeField", "Classification code column"),
]

POS_API_ITEM_FIELDS = [
    ("name", "Item name"),
    ("description", "Item description"),
    ("qty", "Quantity"),
    ("price", "Unit price"),
    ("totalAmount", "Line total amount"),
    ("totalVAT", "Line VAT"),
    ("totalCityTax", "Line city tax"),
    ("taxType", "Line tax type"),
    ("classificationCode", "Classification code"),
    ("taxProductCode", "Tax product code"),
    ("barCode", "Barcode"),
    ("measureUnit", "Measure unit"),
]

POS_API_PAYMENT_FIELDS = [
    ("type", "Payment type"),
    ("paidAmount", "Paid amount"),
    ("amount", "Amount (legacy)"),
    ("status", "Status"),
    ("currency", "Currency"),
    ("method", "Method"),
    ("reference", "Reference number"),
    ("data.terminalID", "Terminal ID"),
    ("data.rrn", "RRN"),
    ("data.maskedCardNumber", "Masked card number"),
    ("data.easy", "Easy Bank flag"),
]

POS_API_RECEIPT_FIELDS = [
    ("totalAmount", "Receipt total amount"),
    ("totalVAT", "Receipt total VAT"),
    ("totalCityTax", "Receipt total city tax"),
    ("taxType", "Receipt tax type"),
    ("items", "Receipt items path"),
    ("payments", "Receipt payments path"),
    ("description", "Receipt description"),
]

ROOT_REQUEST_KEYS = frozenset(key for key, _ in POS_API_FIELDS)
ITEM_REQUEST_KEYS = frozenset(key for key, _ in POS_API_ITEM_FIELDS)
PAYMENT_REQUEST_KEYS = frozenset(key for key, _ in POS_API_PAYMENT_FIELDS)
RECEIPT_REQUEST_KEYS = frozenset(key for key, _ in POS_API_RECEIPT_FIELDS)

# Flat legacy section per nested bucket
LEGACY_SECTIONS = {
    "items": "itemFields",
    "payments": "paymentFields",
    "receipts": "receiptFields",
}
