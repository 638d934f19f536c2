"""Unit tests for single-message assistant reply parsing."""

from quotedesk.conversation.response_parser import parse_ai_response, should_create_document

INVOICE_REPLY = (
    "Here is your invoice for Sunrise Bakery, located at 12 Allen Avenue\n"
    "Bill to: Mary Johnson\n"
    "- 25 units of bread at ₦1,500\n"
    "- Cake decoration: ₦5,000\n"
    "Delivery: ₦2,000\n"
    "Subtotal: ₦42,500\n"
    "Total: ₦44,500"
)


class TestParseAiResponse:
    """Test parsing of one assistant message."""

    def test_invoice_reply(self) -> None:
        """Items, parties, charges and currency are read from the reply."""
        document = parse_ai_response(INVOICE_REPLY)

        assert document is not None
        assert document.type == "invoice"
        assert document.business.name == "Sunrise Bakery"
        assert document.business.address == "12 Allen Avenue"
        assert document.client.name == "Mary Johnson"
        assert document.currency == "NGN"
        assert [(i.description, i.quantity, i.unit_price) for i in document.items] == [
            ("bread", 25.0, 1500.0),
            ("Cake decoration", 1.0, 5000.0),
        ]
        assert document.additional_charges is not None
        assert [(c.description, c.amount) for c in document.additional_charges] == [
            ("Delivery", 2000.0)
        ]
        assert document.subtotal == 42500.0
        assert document.total == 44500.0
        assert document.defaulted == []

    def test_quote_defaults(self) -> None:
        """Missing parties and currency fall back to defaults."""
        document = parse_ai_response("Here's a quote:\n- Logo design: 500\n- Website: 1,200")

        assert document is not None
        assert document.type == "quote"
        assert document.business.name == "Your Business"
        assert document.client.name == "Customer"
        assert document.currency == "USD"
        assert document.subtotal == 1700.0
        assert document.defaulted == ["business.name", "client.name", "currency"]
        assert document.additional_charges is None

    def test_totals_lines_are_not_items(self) -> None:
        """Bulleted subtotal, tax and total lines are skipped as items."""
        reply = "Quote:\n- Consulting: $1000\n- Tax: $75\n- Total: $1075\nTax: $75"

        document = parse_ai_response(reply)

        assert document is not None
        assert [i.description for i in document.items] == ["Consulting"]
        assert document.additional_charges is not None
        assert document.additional_charges[0].description == "Tax"
        assert document.total == 1075.0

    def test_mentions_both_types_is_quote(self) -> None:
        """A reply mentioning quote and invoice is a quote."""
        document = parse_ai_response("Quote (not an invoice yet):\n- Logo: 500")

        assert document is not None
        assert document.type == "quote"

    def test_no_document_mentioned(self) -> None:
        """Replies not about a quote or invoice give None."""
        assert parse_ai_response("Sure:\n- Logo: 500") is None

    def test_no_items(self) -> None:
        """A document without items gives None."""
        assert parse_ai_response("Your invoice is almost ready.") is None


class TestShouldCreateDocument:
    """Test the creation-intent check."""

    def test_create_intent_with_totals(self) -> None:
        """A creation keyword plus a reply with totals means create."""
        assert should_create_document("Please create the invoice", INVOICE_REPLY) is True

    def test_create_intent_with_line_items(self) -> None:
        """A creation keyword plus line items means create."""
        assert should_create_document("go on", "10 units of rice at 500 each") is True

    def test_no_create_intent(self) -> None:
        """Without a creation keyword nothing is created."""
        assert should_create_document("thanks", INVOICE_REPLY) is False

    def test_reply_without_document(self) -> None:
        """A creation keyword alone is not enough."""
        assert should_create_document("make it", "Sounds good! What are the items?") is False
