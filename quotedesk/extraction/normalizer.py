"""Decoding and normalization of raw extraction payloads.

The completion service returns loosely-typed JSON that only roughly matches
VisionExtractionResult. Decoding never raises: every field degrades to
absent or a default, derived totals are backfilled from line items, and the
paths of everything that had to be guessed are reported alongside the result.
"""

import logging
import math
import re
from collections.abc import Mapping
from typing import Any, get_args

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from quotedesk.extraction.schema import (
    ExtractedDocumentData,
    ExtractedDocumentType,
    ExtractedItem,
    PartyInfo,
    VisionExtractionResult,
)

logger = logging.getLogger(__name__)

DOCUMENT_TYPES: tuple[str, ...] = get_args(ExtractedDocumentType)
CRITICAL_FIELDS: tuple[str, ...] = ("client.name", "currency", "items")

_NUMBER = re.compile(r"[-+]?\d[\d.,]*(?:[eE][-+]?\d+)?")
_COMMA_GROUPS = re.compile(r"[-+]?\d{1,3}(?:,\d{3})+")
_DOT_GROUPS = re.compile(r"[-+]?\d{1,3}(?:\.\d{3}){2,}")


class DecodeResult(BaseModel):
    """Normalized result plus a record of what was guessed.

    Attributes:
        result: Normalized extraction result (always usable)
        defaulted: Paths of fields that were absent, unparseable, synthesised
            or backfilled
        decode_error: Set when the payload was not a JSON object at all
    """

    result: VisionExtractionResult
    defaulted: list[str] = Field(default_factory=list)
    decode_error: str | None = None

    @property
    def guessed(self) -> bool:
        """True when any part of the result is a default rather than service data."""
        return bool(self.defaulted) or self.decode_error is not None


def _pick(raw: Mapping[str, Any], key: str) -> Any:
    """Read a snake_case key, falling back to its camelCase spelling."""
    value = raw.get(key)
    if value is None:
        value = raw.get(to_camel(key))
    return value


def _plain_number(token: str) -> str:
    """Drop thousands separators from a number token.

    With both separators the last one is the decimal point. A single comma
    that does not group thousands is a decimal comma.
    """
    token = token.rstrip(".,")
    if "," in token and "." in token:
        if token.rfind(",") > token.rfind("."):
            return token.replace(".", "").replace(",", ".")
        return token.replace(",", "")
    if token.count(",") == 1 and not _COMMA_GROUPS.fullmatch(token):
        return token.replace(",", ".")
    if _DOT_GROUPS.fullmatch(token):
        return token.replace(".", "")
    return token.replace(",", "")


def to_float(value: Any) -> float | None:
    """Parse a number from a number or string, tolerating symbols and separators.

    A string must hold exactly one number; currency symbols, codes and
    whitespace around it are ignored. Returns None for missing, boolean,
    non-finite or unparseable input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        tokens = _NUMBER.findall(value)
        if len(tokens) != 1:
            return None
        try:
            number = float(_plain_number(tokens[0]))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _to_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return None


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _decode_party(raw: Any) -> PartyInfo | None:
    if not isinstance(raw, Mapping):
        return None
    return PartyInfo(
        name=_to_text(raw.get("name")),
        address=_to_text(raw.get("address")),
        phone=_to_text(raw.get("phone")),
        email=_to_text(raw.get("email")),
    )


def _decode_item(raw: Any, index: int, defaulted: list[str]) -> ExtractedItem:
    path = f"data.items[{index}]"
    if isinstance(raw, str):
        raw = {"description": raw}
    elif not isinstance(raw, Mapping):
        raw = {}

    description = _to_text(raw.get("description"))
    if description is None:
        description = f"Item {index + 1}"
        defaulted.append(f"{path}.description")

    quantity = to_float(raw.get("quantity"))
    unit_price = to_float(_pick(raw, "unit_price"))
    amount = to_float(raw.get("amount"))
    if amount is None and quantity is not None and unit_price is not None:
        amount = quantity * unit_price
        defaulted.append(f"{path}.amount")

    return ExtractedItem(
        description=description, quantity=quantity, unit_price=unit_price, amount=amount
    )


def _decode_data(
    raw: Mapping[str, Any], missing_fields: list[str], defaulted: list[str]
) -> ExtractedDocumentData:
    raw_items = raw.get("items")
    if not isinstance(raw_items, list):
        raw_items = []
        if "items" not in missing_fields:
            missing_fields.append("items")
        defaulted.append("data.items")

    items = [_decode_item(item, index, defaulted) for index, item in enumerate(raw_items)]

    currency = _to_text(raw.get("currency"))
    data = ExtractedDocumentData(
        business=_decode_party(raw.get("business")),
        client=_decode_party(raw.get("client")),
        document_number=_to_text(_pick(raw, "document_number")),
        date=_to_text(raw.get("date")),
        due_date=_to_text(_pick(raw, "due_date")),
        valid_until=_to_text(_pick(raw, "valid_until")),
        currency=currency.upper() if currency else None,
        items=items,
        subtotal=to_float(raw.get("subtotal")),
        tax_rate=to_float(_pick(raw, "tax_rate")),
        tax_amount=to_float(_pick(raw, "tax_amount")),
        delivery_charge=to_float(_pick(raw, "delivery_charge")),
        total=to_float(raw.get("total")),
        notes=_to_text(raw.get("notes")),
        payment_terms=_to_text(_pick(raw, "payment_terms")),
    )
    backfill_totals(data, defaulted)
    return data


def backfill_totals(data: ExtractedDocumentData, defaulted: list[str] | None = None) -> None:
    """Fill subtotal, tax_amount and total from line items where absent.

    Order matters: subtotal (only when the item sum is positive), then
    tax_amount = subtotal * tax_rate, then total = subtotal + tax + delivery.
    """
    if defaulted is None:
        defaulted = []

    if data.subtotal is None and data.items:
        calculated = sum(item.amount or 0.0 for item in data.items)
        if calculated > 0:
            data.subtotal = calculated
            defaulted.append("data.subtotal")

    if data.tax_amount is None and data.subtotal is not None and data.tax_rate is not None:
        data.tax_amount = data.subtotal * data.tax_rate
        defaulted.append("data.taxAmount")

    if data.total is None and data.subtotal is not None:
        data.total = data.subtotal + (data.tax_amount or 0.0) + (data.delivery_charge or 0.0)
        defaulted.append("data.total")


def _detect_missing(data: ExtractedDocumentData, missing_fields: list[str]) -> None:
    absent = {
        "client.name": data.client is None or not data.client.name,
        "currency": not data.currency,
        "items": not data.items,
    }
    for field in CRITICAL_FIELDS:
        if absent[field] and field not in missing_fields:
            missing_fields.append(field)


def decode_extraction(raw: Any) -> DecodeResult:
    """Decode a raw service payload into a normalized VisionExtractionResult.

    Args:
        raw: Parsed JSON from the completion service (any shape)

    Returns:
        DecodeResult with the normalized result and the guessed field paths
    """
    if not isinstance(raw, Mapping):
        logger.warning(f"Extraction payload is not an object: {type(raw).__name__}")
        return DecodeResult(
            result=VisionExtractionResult(),
            defaulted=["success", "documentType", "confidence", "missingFields"],
            decode_error=f"Expected a JSON object, got {type(raw).__name__}",
        )

    defaulted: list[str] = []

    raw_success = raw.get("success")
    if raw_success is None:
        defaulted.append("success")
    success = _to_bool(raw_success)

    document_type = _pick(raw, "document_type")
    if document_type not in DOCUMENT_TYPES:
        defaulted.append("documentType")
        document_type = "unknown"

    confidence = to_float(raw.get("confidence"))
    if confidence is None:
        defaulted.append("confidence")
        confidence = 0.0
    elif not 0.0 <= confidence <= 1.0:
        defaulted.append("confidence")
        confidence = min(max(confidence, 0.0), 1.0)

    raw_missing = _pick(raw, "missing_fields")
    if isinstance(raw_missing, list):
        missing_fields = [field for field in raw_missing if isinstance(field, str)]
    else:
        defaulted.append("missingFields")
        missing_fields = []

    result = VisionExtractionResult(
        success=success,
        document_type=document_type,
        confidence=confidence,
        missing_fields=list(dict.fromkeys(missing_fields)),
        raw_text=_to_text(_pick(raw, "raw_text")),
        error=_to_text(raw.get("error")),
        provider=_to_text(raw.get("provider")),
    )

    raw_data = raw.get("data")
    if not result.success or not isinstance(raw_data, Mapping):
        if raw_data is None:
            defaulted.append("data")
        return DecodeResult(result=result, defaulted=defaulted)

    data = _decode_data(raw_data, result.missing_fields, defaulted)
    _detect_missing(data, result.missing_fields)
    result.data = data
    return DecodeResult(result=result, defaulted=defaulted)


def normalize_extraction(raw: Any) -> VisionExtractionResult:
    """Tolerant shortcut for decode_extraction that drops the guess report."""
    return decode_extraction(raw).result
