"""Multi-turn conversation parser.

Runs the ordered extraction rules over a whole chat transcript to assemble a
quote/invoice without a model call. Used for text conversations; uploaded
images go through the extraction providers instead.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from quotedesk.conversation.rules import DEFAULT_RULES, ExtractionRule
from quotedesk.conversation.schema import ChatMessage, ConversationExtraction
from quotedesk.extraction.schema import DocumentType

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_NAME = "Customer"

Messages = Sequence[ChatMessage | Mapping[str, Any]]


def transcript_of(messages: Messages) -> str:
    """Join message contents, one per line, in conversation order."""
    contents = []
    for message in messages:
        if isinstance(message, ChatMessage):
            contents.append(message.content)
        else:
            contents.append(str(message.get("content") or ""))
    return "\n".join(contents)


def classify_document_type(messages: Messages, default: DocumentType = "invoice") -> DocumentType:
    """Decide whether a conversation is about a quote or an invoice.

    Only an unambiguous mention counts: 'invoice' without 'quote' or the
    reverse. Both or neither gives the default.
    """
    text = transcript_of(messages).lower()
    mentions_invoice = "invoice" in text
    mentions_quote = "quote" in text
    if mentions_invoice and not mentions_quote:
        return "invoice"
    if mentions_quote and not mentions_invoice:
        return "quote"
    return default


class ConversationParser:
    """Heuristic extractor for quote/invoice data in chat transcripts."""

    def __init__(
        self,
        rules: Sequence[ExtractionRule] | None = None,
        default_currency: str = "NGN",
        default_client_name: str = DEFAULT_CLIENT_NAME,
    ) -> None:
        """Initialize parser.

        Args:
            rules: Extraction rules in the order they run (defaults to DEFAULT_RULES)
            default_currency: Currency used when the transcript names none
            default_client_name: Client name used when none is found
        """
        self.rules = tuple(rules) if rules is not None else DEFAULT_RULES
        self.default_currency = default_currency
        self.default_client_name = default_client_name

    def extract(self, messages: Messages) -> ConversationExtraction:
        """Run every rule and return what was found, without defaults or checks.

        A rule that raises is logged and skipped; the others still run.
        """
        text = transcript_of(messages)
        draft = ConversationExtraction()
        for rule in self.rules:
            try:
                rule.apply(text, draft)
            except Exception as e:
                logger.warning(f"Rule {rule.name} failed: {e}")
        return draft

    def parse(self, messages: Messages) -> ConversationExtraction | None:
        """Extract a usable document from a conversation.

        Args:
            messages: Chat turns in order

        Missing client name and currency are filled with the parser's defaults
        and listed in ``defaulted``.

        Returns:
            ConversationExtraction when a business name and at least one line
            item were found, otherwise None
        """
        draft = self.extract(messages)

        if not draft.business.name or not draft.items:
            logger.info(
                f"Conversation parse incomplete: business={bool(draft.business.name)} "
                f"items={len(draft.items)}"
            )
            return None

        if not draft.client.name:
            draft.client.name = self.default_client_name
            draft.defaulted.append("client.name")
        if not draft.currency:
            draft.currency = self.default_currency
            draft.defaulted.append("currency")

        logger.info(
            f"Parsed conversation: {len(draft.items)} item(s), currency={draft.currency}"
        )
        return draft
