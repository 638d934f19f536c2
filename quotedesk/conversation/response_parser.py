"""Single-message parser for assistant replies.

Fallback for when the conversation parser finds nothing usable: reads one
assistant message that already lays out a quote or invoice (line items,
bullets, delivery/tax lines).
"""

import re

from quotedesk.conversation.rules import parse_price
from quotedesk.conversation.schema import (
    AdditionalCharge,
    ConversationItem,
    ParsedDocument,
    PartySummary,
)

_FLAGS = re.IGNORECASE
_AMOUNT = r"[₦$€£]?\s*(\d[\d,]*(?:\.\d+)?)"

DEFAULT_BUSINESS_NAME = "Your Business"
DEFAULT_CLIENT_NAME = "Customer"
DEFAULT_CURRENCY = "USD"

CREATE_KEYWORDS = (
    "create",
    "generate",
    "make",
    "build",
    "prepare",
    "actually create",
    "go on",
    "do it",
    "now create",
)

_BUSINESS_PATTERNS = (
    re.compile(
        r"(?:invoice\s+for|quote\s+for|from|business|company)[\s:]+([^\n,]+?)"
        r"(?:[\n,]|\s+located\s+at|\s+address)",
        _FLAGS,
    ),
    re.compile(r"([A-Z][A-Za-z&' ]+?),?\s+located\s+at", _FLAGS),
)
_CLIENT_PATTERNS = (
    re.compile(
        r"(?:bill\s+to|client|customer)(?:\s+is)?[:\s]+([^\n]+?)"
        r"(?:\n|\s+located\s+at|\s+address|\s+he\s+is|\s+she\s+is|\s+they\s+are|$)",
        _FLAGS,
    ),
)
_LOCATED = re.compile(
    r"(?:located\s+at|address\s*:)\s*([^\n]+?)\s*"
    r"(?=\n|\bcustomer\b|\bclient\b|\bbill\s+to\b|$)",
    _FLAGS,
)
_UNITS_ITEM = re.compile(r"(\d+)\s+units?\s+of\s+([^@\n]+?)\s+at\s+" + _AMOUNT, _FLAGS)
_BULLET_ITEM = re.compile(
    r"^\s*[-•*]\s*([^:₦$€£\n]+?)\s*[:\-–]\s*" + _AMOUNT, _FLAGS | re.MULTILINE
)
_DELIVERY = re.compile(r"\b(?:delivery|shipping)\b[^\n:]*:\s*" + _AMOUNT, _FLAGS)
_TAX = re.compile(r"\b(?:tax|vat)\b[^\n:]*:\s*" + _AMOUNT, _FLAGS)

_NOT_ITEMS = ("subtotal", "total", "delivery", "shipping", "tax", "vat")


def _first_group(patterns: tuple[re.Pattern[str], ...], text: str) -> str:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return ""


def _detect_currency(text: str) -> str | None:
    if "₦" in text or "NGN" in text:
        return "NGN"
    if "$" in text or "USD" in text:
        return "USD"
    if "€" in text or "EUR" in text:
        return "EUR"
    if "£" in text or "GBP" in text:
        return "GBP"
    return None


def _extract_items(text: str) -> list[ConversationItem]:
    items: list[ConversationItem] = []

    for match in _UNITS_ITEM.finditer(text):
        price = parse_price(match.group(3))
        if price is not None:
            items.append(
                ConversationItem(
                    description=match.group(2).strip(),
                    quantity=float(match.group(1)),
                    unit_price=price,
                )
            )

    for match in _BULLET_ITEM.finditer(text):
        description = match.group(1).strip()
        lowered = description.lower()
        if any(word in lowered for word in _NOT_ITEMS) or _UNITS_ITEM.search(match.group(0)):
            continue
        price = parse_price(match.group(2))
        if price is not None:
            items.append(ConversationItem(description=description, quantity=1, unit_price=price))

    return items


def _extract_charges(text: str) -> list[AdditionalCharge]:
    charges = []
    for description, pattern in (("Delivery", _DELIVERY), ("Tax", _TAX)):
        match = pattern.search(text)
        if match:
            amount = parse_price(match.group(1))
            if amount is not None:
                charges.append(AdditionalCharge(description=description, amount=amount))
    return charges


def parse_ai_response(response: str) -> ParsedDocument | None:
    """Parse one assistant message into a quote or invoice.

    The message must mention 'invoice' or 'quote' (a message mentioning both
    is a quote) and contain at least one line item.

    Returns:
        ParsedDocument, or None if the message does not describe a document
    """
    lowered = response.lower()
    is_quote = "quote" in lowered
    is_invoice = "invoice" in lowered and not is_quote
    if not is_invoice and not is_quote:
        return None

    items = _extract_items(response)
    if not items:
        return None

    located = [match.group(1).strip() for match in _LOCATED.finditer(response)]
    business_address = located[0] if located else ""
    client_address = next(
        (address for address in located[1:] if address != business_address), ""
    )

    business_name = _first_group(_BUSINESS_PATTERNS, response)
    client_name = _first_group(_CLIENT_PATTERNS, response)
    currency = _detect_currency(response)
    defaulted = [
        path
        for path, value in (
            ("business.name", business_name),
            ("client.name", client_name),
            ("currency", currency),
        )
        if not value
    ]

    charges = _extract_charges(response)
    return ParsedDocument(
        type="invoice" if is_invoice else "quote",
        business=PartySummary(
            name=business_name or DEFAULT_BUSINESS_NAME, address=business_address
        ),
        client=PartySummary(name=client_name or DEFAULT_CLIENT_NAME, address=client_address),
        items=items,
        additional_charges=charges or None,
        currency=currency or DEFAULT_CURRENCY,
        defaulted=defaulted,
    )


def should_create_document(user_message: str, ai_response: str) -> bool:
    """Check whether a turn asks for a document and the reply contains one.

    True when the user used a creation keyword and the reply either shows
    totals for an invoice/quote or lists line items.
    """
    lower_user = user_message.lower()
    lower_ai = ai_response.lower()

    has_create_intent = any(keyword in lower_user for keyword in CREATE_KEYWORDS)

    mentions_document = "invoice" in lower_ai or "quote" in lower_ai
    has_structured_data = mentions_document and any(
        word in lower_ai for word in ("subtotal", "total", "amount")
    )
    has_line_items = (
        "units of" in lower_ai
        or "quantity" in lower_ai
        or ("-" in lower_ai and ("₦" in lower_ai or "$" in lower_ai))
    )

    return has_create_intent and (has_structured_data or has_line_items)
