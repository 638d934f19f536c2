"""Heuristic extraction rules for multi-turn chat transcripts.

Each rule looks for one kind of fact (business name, line items, currency,
payment details, ...) in the whole transcript and records it on a shared
ConversationExtraction. Rules are independent and run in list order; a rule
may read what an earlier rule found (payment details fall back to the
business name), so DEFAULT_RULES order matters.

These are regular expressions, not a grammar: missing a fact is normal and
handled by the chat loop asking a follow-up question.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Sequence

from quotedesk.conversation.schema import ConversationExtraction, ConversationItem, PaymentDetails

_FLAGS = re.IGNORECASE

_THOUSANDS = re.compile(r"\d{1,3}(?:,\d{3})+(?:\.\d+)?")


def parse_price(number: str, suffix: str | None = None) -> float | None:
    """Parse a price such as '5,000', '1.5' or '2,5' with an optional 'k' suffix.

    A single comma not grouping thousands is read as a decimal separator.

    Returns:
        The price, or None if the text is not a number
    """
    number = number.strip().rstrip(",")
    if _THOUSANDS.fullmatch(number):
        number = number.replace(",", "")
    elif number.count(",") == 1 and "." not in number:
        number = number.replace(",", ".")
    else:
        number = number.replace(",", "")

    try:
        value = float(number)
    except ValueError:
        return None

    if suffix and suffix.lower() == "k":
        value *= 1000
    return value


def _clean(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip().rstrip(".").strip()


class ExtractionRule(ABC):
    """One independent extraction step over a transcript."""

    name: str = "rule"

    @abstractmethod
    def apply(self, text: str, draft: ConversationExtraction) -> None:
        """Record whatever this rule finds in text on draft."""


class BusinessNameRule(ExtractionRule):
    """Issuer name: 'my business name is X', 'for X business', 'X located at'."""

    name = "business_name"

    patterns: Sequence[re.Pattern[str]] = (
        re.compile(
            r"\bbusiness(?:'s)?\s+"
            r"(?:name\s+is|name\s*:|is\s+called|is\s+named|named|called|name|is)?\s*"
            r"([A-Z][A-Za-z&'\- ]*?)\s*(?:[,.\n]|\blocated\b|\bbusiness\b|$)",
            _FLAGS,
        ),
        re.compile(r"\bfor\s+([A-Z][A-Za-z&' ]+?)\s+business\b", _FLAGS),
        # Capitalised words right before "located"; case-sensitive on purpose
        re.compile(r"\b([A-Z][A-Za-z&']*(?: [A-Z][A-Za-z&']*)*),?\s+(?:is\s+)?located\b"),
    )

    def apply(self, text: str, draft: ConversationExtraction) -> None:
        for pattern in self.patterns:
            match = pattern.search(text)
            if match and _clean(match.group(1)):
                draft.business.name = _clean(match.group(1))
                return


class BusinessAddressRule(ExtractionRule):
    """First 'located at ...' phrase, up to three comma-separated parts."""

    name = "business_address"

    pattern = re.compile(r"\blocated\s+at\s+([^,\n]+(?:,\s*[^,\n]+){0,2})", _FLAGS)

    def apply(self, text: str, draft: ConversationExtraction) -> None:
        match = self.pattern.search(text)
        if match:
            draft.business.address = _clean(match.group(1))


class ClientNameRule(ExtractionRule):
    """Recipient name after 'client', 'customer', 'bill to' or 'deliver to'."""

    name = "client_name"

    pattern = re.compile(
        r"\b(?:client|customer|bill\s+to|deliver\s+to)\b(?:'s\s+name)?"
        r"(?:\s+(?:name\s+is|is\s+called|is|named|called))?\s*:?\s+"
        r"([A-Z][A-Za-z&'\- ]*?)\s*(?:[,.\n]|\blocated\b|$)",
        _FLAGS,
    )

    def apply(self, text: str, draft: ConversationExtraction) -> None:
        match = self.pattern.search(text)
        if match:
            draft.client.name = _clean(match.group(1))


class ClientAddressRule(ExtractionRule):
    """'located at' phrase on the same line as a client mention."""

    name = "client_address"

    pattern = re.compile(
        r"\b(?:client|customer)\b[^\n]*?\blocated\s+at\s+([^,\n]+)", _FLAGS
    )

    def apply(self, text: str, draft: ConversationExtraction) -> None:
        match = self.pattern.search(text)
        if match:
            draft.client.address = _clean(match.group(1))


class CurrencyRule(ExtractionRule):
    """First currency whose symbol, code or name appears in the transcript.

    Checked in order, so a transcript mentioning naira and dollars is NGN.
    """

    name = "currency"

    markers: Sequence[tuple[str, re.Pattern[str]]] = (
        ("NGN", re.compile(r"\bnaira\b|₦|\bNGN\b", _FLAGS)),
        ("USD", re.compile(r"\$|\bUSD\b|\bdollars?\b", _FLAGS)),
        ("EUR", re.compile(r"€|\bEUR\b|\beuros?\b", _FLAGS)),
        ("GBP", re.compile(r"£|\bGBP\b", _FLAGS)),
    )

    def apply(self, text: str, draft: ConversationExtraction) -> None:
        for code, pattern in self.markers:
            if pattern.search(text):
                draft.currency = code
                return


class LineItemRule(ExtractionRule):
    """Quantities with prices.

    '25 units of bread at 1.5k' gives a described item; '10 units at 5000'
    gives a generic 'Item'. All matches are kept, described items first.
    """

    name = "line_items"

    _price = r"[₦$€£]?\s*(\d[\d,]*(?:\.\d+)?)\s*(k\b)?"

    described = re.compile(
        r"(\d+(?:\.\d+)?)\s+units?\s+of\s+([^,\n]+?)\s+(?:selling\s+at|at|for|@)\s+" + _price,
        _FLAGS,
    )
    undescribed = re.compile(r"(\d+(?:\.\d+)?)\s+units?\s+(?:at|for|@)\s+" + _price, _FLAGS)

    def apply(self, text: str, draft: ConversationExtraction) -> None:
        for match in self.described.finditer(text):
            price = parse_price(match.group(3), match.group(4))
            if price is not None:
                draft.items.append(
                    ConversationItem(
                        description=_clean(match.group(2)),
                        quantity=float(match.group(1)),
                        unit_price=price,
                    )
                )

        for match in self.undescribed.finditer(text):
            price = parse_price(match.group(2), match.group(3))
            if price is not None:
                draft.items.append(
                    ConversationItem(
                        description="Item", quantity=float(match.group(1)), unit_price=price
                    )
                )


class DeliveryPercentageRule(ExtractionRule):
    """Delivery cost as a percentage, on the same sentence as 'delivery'."""

    name = "delivery_percentage"

    pattern = re.compile(r"\bdelivery\b[^.\n]*?(\d+(?:\.\d+)?)\s*%", _FLAGS)

    def apply(self, text: str, draft: ConversationExtraction) -> None:
        match = self.pattern.search(text)
        if match:
            draft.delivery_cost_percentage = float(match.group(1))


class DeliveryDateRule(ExtractionRule):
    """'delivery date: ...' or a delivery phrase naming a weekday, week or month."""

    name = "delivery_date"

    patterns: Sequence[re.Pattern[str]] = (
        re.compile(r"\bdelivery\s+date\s*[:\-]?\s*([A-Za-z0-9][^\n]*)", _FLAGS),
        re.compile(
            r"\bdeliver(?:y|ed)?\b[:\s]+([^,\n]*?\b(?:monday|tuesday|wednesday|thursday"
            r"|friday|saturday|sunday|week|month)\b[^\n]*)",
            _FLAGS,
        ),
    )

    def apply(self, text: str, draft: ConversationExtraction) -> None:
        for pattern in self.patterns:
            match = pattern.search(text)
            if match and _clean(match.group(1)):
                draft.delivery_date = _clean(match.group(1))
                return


class DueDateRule(ExtractionRule):
    """Payment due date: 'due date: ...', 'due by ...', 'payment due ...'."""

    name = "due_date"

    pattern = re.compile(
        r"\b(?:due\s+date|due\s+on|due\s+by|payment\s+due(?:\s+date)?)\s*[:\-]?\s*"
        r"([A-Za-z0-9][^\n,]*)",
        _FLAGS,
    )

    def apply(self, text: str, draft: ConversationExtraction) -> None:
        match = self.pattern.search(text)
        if match and _clean(match.group(1)):
            draft.due_date = _clean(match.group(1))


class PaymentTermsRule(ExtractionRule):
    """'payment terms: ...' or 'payment before/after/upon ...'."""

    name = "payment_terms"

    pattern = re.compile(
        r"\bpayment\s+(?:terms?\s*(?:are|is)?\s*[:\-]?\s*([A-Za-z0-9][^\n]*)"
        r"|((?:before|after|upon)\s+[^\n]+))",
        _FLAGS,
    )

    def apply(self, text: str, draft: ConversationExtraction) -> None:
        match = self.pattern.search(text)
        if match:
            terms = _clean(match.group(1) or match.group(2))
            if terms:
                draft.payment_terms = terms


class PaymentDetailsRule(ExtractionRule):
    """Bank transfer details; only recorded when an account number is found.

    The account name falls back to the business name, so this rule runs after
    BusinessNameRule.
    """

    name = "payment_details"

    account_number_patterns: Sequence[re.Pattern[str]] = (
        re.compile(r"\baccount\s+(?:number|no\.?|details?)\s*[:\-]?\s*(\d{10,})", _FLAGS),
        re.compile(r"\b(\d{10})\b"),
    )
    bank = re.compile(
        r"\bbank\b(?:\s+name)?\s*(?::|-|\bis\b)\s*([A-Z][A-Za-z&' ]*?)\s*"
        r"(?:[,\n]|\bbusiness\b|\baccount\b|$)",
        _FLAGS,
    )
    account_name = re.compile(
        r"\b(?:account\s+name\s*[:\-]?|business\s+name\s*:)\s*([A-Z][A-Za-z&' ]*?)\s*(?:[,\n]|$)",
        _FLAGS,
    )

    def apply(self, text: str, draft: ConversationExtraction) -> None:
        account_number = None
        for pattern in self.account_number_patterns:
            match = pattern.search(text)
            if match:
                account_number = match.group(1)
                break
        if account_number is None:
            return

        bank_match = self.bank.search(text)
        name_match = self.account_name.search(text)
        draft.payment_details = PaymentDetails(
            account_number=account_number,
            bank=_clean(bank_match.group(1)) if bank_match else "",
            account_name=_clean(name_match.group(1)) if name_match else draft.business.name,
        )


DEFAULT_RULES: tuple[ExtractionRule, ...] = (
    BusinessNameRule(),
    BusinessAddressRule(),
    ClientNameRule(),
    ClientAddressRule(),
    CurrencyRule(),
    LineItemRule(),
    DeliveryPercentageRule(),
    DeliveryDateRule(),
    DueDateRule(),
    PaymentTermsRule(),
    PaymentDetailsRule(),
)
