"""
Response Normalizer

Coerces untrusted model JSON into a TransactionAnalysis.

IMPORTANT: This module never raises. A missing or malformed field
degrades to its default; only a wholly missing JSON payload is an
error, and that is detected before we get here.

There are two entry points because the two extraction paths default
differently: the image path fills in `expense` when the model gives
no usable type, the text path leaves the type unset. Both behaviors
are relied on by the chat flow.
"""

import math
from typing import Any, Mapping, Optional

from src.models.transaction import (
    DEFAULT_CATEGORIES,
    TRANSACTION_CATEGORIES,
    TransactionAnalysis,
    TransactionType,
)
from src.providers.parsing import parse_vernacular_amount


DEFAULT_DESCRIPTION = "Transaction"
IMAGE_DEFAULT_CONFIDENCE = 0.8
TEXT_DEFAULT_CONFIDENCE = 0.7

# Models mix camelCase and snake_case; accept both
_FIELD_ALIASES = {
    "vendorName": ("vendorName", "vendor_name", "vendor"),
    "transactionDate": ("transactionDate", "transaction_date", "date"),
    "paymentMethod": ("paymentMethod", "payment_method"),
}


def _is_finite_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # JSON integers are unbounded; too large for a float is not a usable number
        return False


def _coerce_amount(value: Any) -> float:
    if _is_finite_number(value):
        return abs(float(value))
    if isinstance(value, str):
        parsed = parse_vernacular_amount(value)
        if parsed is not None and math.isfinite(parsed):
            return abs(parsed)
    return 0.0


def _coerce_type(value: Any) -> Optional[TransactionType]:
    if value == TransactionType.INCOME.value:
        return TransactionType.INCOME
    if value == TransactionType.EXPENSE.value:
        return TransactionType.EXPENSE
    return None


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _lookup(raw: Mapping[str, Any], key: str) -> Any:
    for alias in _FIELD_ALIASES.get(key, (key,)):
        if alias in raw and raw[alias] is not None:
            return raw[alias]
    return None


def _canonical_category(
    value: Any,
    transaction_type: Optional[TransactionType],
) -> Optional[str]:
    """
    Match a category against the taxonomy, case-insensitively.

    With a known type only that type's list is searched; with no type
    either list is accepted. Returns None when nothing matches.
    """
    text = _optional_text(value)
    if text is None:
        return None
    if transaction_type is None:
        candidates = [c for cats in TRANSACTION_CATEGORIES.values() for c in cats]
    else:
        candidates = list(TRANSACTION_CATEGORIES[transaction_type])
    lowered = text.lower()
    for candidate in candidates:
        if candidate.lower() == lowered:
            return candidate
    return None


def _confidence(value: Any, default: float) -> float:
    if _is_finite_number(value) and 0.0 <= value <= 1.0:
        return float(value)
    return default


def _normalize(
    raw: Any,
    fallback_type: Optional[TransactionType],
    default_description: str,
    default_confidence: float,
) -> TransactionAnalysis:
    if not isinstance(raw, Mapping):
        raw = {}

    transaction_type = _coerce_type(raw.get("type")) or fallback_type

    category = _canonical_category(raw.get("category"), transaction_type)
    if category is None and transaction_type is not None:
        category = DEFAULT_CATEGORIES[transaction_type]

    return TransactionAnalysis(
        amount=_coerce_amount(raw.get("amount")),
        type=transaction_type,
        category=category,
        subcategory=_optional_text(raw.get("subcategory")),
        description=_optional_text(raw.get("description")) or default_description,
        vendor_name=_optional_text(_lookup(raw, "vendorName")),
        transaction_date=_optional_text(_lookup(raw, "transactionDate")),
        payment_method=_optional_text(_lookup(raw, "paymentMethod")),
        confidence=_confidence(raw.get("confidence"), default_confidence),
    )


def normalize_analysis(
    raw: Any,
    fallback_type: Optional[TransactionType] = TransactionType.EXPENSE,
) -> TransactionAnalysis:
    """
    Normalize output from the receipt-image path.

    `{}` becomes amount 0, type expense, category "Others",
    description "Transaction", confidence 0.8.
    """
    return _normalize(
        raw,
        fallback_type=fallback_type,
        default_description=DEFAULT_DESCRIPTION,
        default_confidence=IMAGE_DEFAULT_CONFIDENCE,
    )


def normalize_text_analysis(raw: Any, message: str) -> TransactionAnalysis:
    """
    Normalize output from the free-text path.

    The type stays None when the model does not give one, and the
    original message stands in for a missing description.
    """
    return _normalize(
        raw,
        fallback_type=None,
        default_description=_optional_text(message) or DEFAULT_DESCRIPTION,
        default_confidence=TEXT_DEFAULT_CONFIDENCE,
    )
