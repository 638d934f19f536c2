"""Unit tests for the conversation extraction rules."""

import pytest

from quotedesk.conversation.rules import (
    BusinessAddressRule,
    BusinessNameRule,
    ClientAddressRule,
    ClientNameRule,
    CurrencyRule,
    DeliveryDateRule,
    DeliveryPercentageRule,
    DueDateRule,
    ExtractionRule,
    LineItemRule,
    PaymentDetailsRule,
    PaymentTermsRule,
    parse_price,
)
from quotedesk.conversation.schema import ConversationExtraction


def _apply(rule: ExtractionRule, text: str) -> ConversationExtraction:
    draft = ConversationExtraction()
    rule.apply(text, draft)
    return draft


class TestParsePrice:
    """Test price parsing."""

    @pytest.mark.parametrize(
        ("number", "suffix", "expected"),
        [
            ("5000", None, 5000.0),
            ("5,000", None, 5000.0),
            ("1,000,000", None, 1000000.0),
            ("1,250.50", None, 1250.5),
            ("2,5", None, 2.5),
            ("1.5", "k", 1500.0),
            ("20", "K", 20000.0),
        ],
    )
    def test_valid_prices(self, number: str, suffix: str | None, expected: float) -> None:
        """Separators and the k suffix are understood."""
        assert parse_price(number, suffix) == expected

    def test_invalid_price(self) -> None:
        """Non-numbers give None."""
        assert parse_price("abc") is None


class TestBusinessRules:
    """Test issuer name and address rules."""

    def test_business_name_is(self) -> None:
        """'My business name is X' gives X."""
        draft = _apply(BusinessNameRule(), "My business name is Sunrise Bakery, in Lagos")
        assert draft.business.name == "Sunrise Bakery"

    def test_for_x_business(self) -> None:
        """'for X business' gives X."""
        draft = _apply(BusinessNameRule(), "Create an invoice for Sunrise Bakery business.")
        assert draft.business.name == "Sunrise Bakery"

    def test_capitalised_name_before_located(self) -> None:
        """Capitalised words before 'located' are the business name."""
        draft = _apply(BusinessNameRule(), "We are Mama Put Kitchen located at 5 Broad Street")
        assert draft.business.name == "Mama Put Kitchen"

    def test_no_business_name(self) -> None:
        """Nothing matching leaves the name empty."""
        draft = _apply(BusinessNameRule(), "hello there")
        assert draft.business.name == ""

    def test_business_address(self) -> None:
        """'located at' captures up to three comma-separated parts."""
        draft = _apply(
            BusinessAddressRule(), "We are located at 12 Allen Avenue, Ikeja, Lagos, Nigeria"
        )
        assert draft.business.address == "12 Allen Avenue, Ikeja, Lagos"


class TestClientRules:
    """Test recipient name and address rules."""

    @pytest.mark.parametrize(
        "text",
        [
            "Client: Mary Johnson.",
            "The client is Mary Johnson, thanks",
            "customer name is Mary Johnson\nnext line",
            "Bill to Mary Johnson",
        ],
    )
    def test_client_name(self, text: str) -> None:
        """Common phrasings give the client name."""
        assert _apply(ClientNameRule(), text).client.name == "Mary Johnson"

    def test_client_address(self) -> None:
        """'located at' on the client's line is the client address."""
        draft = _apply(ClientAddressRule(), "The client is Acme, located at 3 Marina, Lagos")
        assert draft.client.address == "3 Marina"


class TestCurrencyRule:
    """Test currency detection."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Each costs ₦5000", "NGN"),
            ("prices are in naira", "NGN"),
            ("Price is ₦5000 or $10", "NGN"),
            ("Total 200 dollars", "USD"),
            ("Charge it in euros", "EUR"),
            ("Bill in GBP please", "GBP"),
        ],
    )
    def test_detects_currency(self, text: str, expected: str) -> None:
        """Symbols, codes and names are detected in priority order."""
        assert _apply(CurrencyRule(), text).currency == expected

    def test_no_currency(self) -> None:
        """No marker leaves the currency unset."""
        assert _apply(CurrencyRule(), "10 units at 500").currency is None


class TestLineItemRule:
    """Test line item extraction."""

    def test_described_items(self) -> None:
        """'N units of X at P' gives described items."""
        text = "25 units of bread loaves at 1.5k and 10 units of meat pies for 800."
        items = _apply(LineItemRule(), text).items

        assert [(i.description, i.quantity, i.unit_price) for i in items] == [
            ("bread loaves", 25.0, 1500.0),
            ("meat pies", 10.0, 800.0),
        ]

    def test_at_sign_and_currency_symbol(self) -> None:
        """'@' and currency symbols before prices are accepted."""
        items = _apply(LineItemRule(), "3 units of cake @ ₦2,000").items

        assert items[0].description == "cake"
        assert items[0].unit_price == 2000.0

    def test_selling_at(self) -> None:
        """'selling at' introduces the price."""
        items = _apply(LineItemRule(), "5 units of chairs selling at 2k").items

        assert items[0].description == "chairs"
        assert items[0].unit_price == 2000.0

    def test_undescribed_item(self) -> None:
        """'N units at P' gives a generic item."""
        items = _apply(LineItemRule(), "I need 10 units at 5000").items

        assert len(items) == 1
        assert items[0].description == "Item"
        assert items[0].quantity == 10.0
        assert items[0].amount == 50000.0

    def test_no_items(self) -> None:
        """Quantities without prices are ignored."""
        assert _apply(LineItemRule(), "I sell bread").items == []


class TestDeliveryAndPaymentRules:
    """Test delivery, due date and payment rules."""

    def test_delivery_percentage(self) -> None:
        """Percentage in a delivery sentence is captured."""
        draft = _apply(DeliveryPercentageRule(), "The delivery fee should be 10% of subtotal")
        assert draft.delivery_cost_percentage == 10.0

    def test_delivery_date_label(self) -> None:
        """'Delivery date:' captures the rest of the line."""
        draft = _apply(DeliveryDateRule(), "Delivery date: March 3rd\nThanks")
        assert draft.delivery_date == "March 3rd"

    def test_delivery_weekday(self) -> None:
        """A delivery phrase naming a weekday is a delivery date."""
        draft = _apply(DeliveryDateRule(), "Delivery by next Friday")
        assert draft.delivery_date == "by next Friday"

    def test_delivery_question_is_not_a_date(self) -> None:
        """A question about delivery is not captured."""
        draft = _apply(DeliveryDateRule(), "Any delivery charges?")
        assert draft.delivery_date is None

    def test_due_date(self) -> None:
        """'due on' captures the date."""
        draft = _apply(DueDateRule(), "The invoice is due on 2025-02-01.")
        assert draft.due_date == "2025-02-01"

    def test_payment_terms_label(self) -> None:
        """'Payment terms:' captures the terms."""
        draft = _apply(PaymentTermsRule(), "Payment terms: 50% upfront")
        assert draft.payment_terms == "50% upfront"

    def test_payment_after(self) -> None:
        """'payment after ...' is captured as terms."""
        draft = _apply(PaymentTermsRule(), "Full payment after delivery")
        assert draft.payment_terms == "after delivery"


class TestPaymentDetailsRule:
    """Test bank detail extraction."""

    def test_full_details(self) -> None:
        """Bank, account number and account name are captured."""
        text = "Bank: Zenith Bank\nAccount number: 1234567890\nAccount name: Sunrise Ventures"
        details = _apply(PaymentDetailsRule(), text).payment_details

        assert details is not None
        assert details.bank == "Zenith Bank"
        assert details.account_number == "1234567890"
        assert details.account_name == "Sunrise Ventures"

    def test_account_name_falls_back_to_business(self) -> None:
        """Without an account name the business name is used."""
        draft = ConversationExtraction()
        draft.business.name = "Sunrise Bakery"

        PaymentDetailsRule().apply("Pay into 0123456789 at GTBank", draft)

        assert draft.payment_details is not None
        assert draft.payment_details.account_number == "0123456789"
        assert draft.payment_details.bank == ""
        assert draft.payment_details.account_name == "Sunrise Bakery"

    def test_requires_account_number(self) -> None:
        """No account number means no payment details."""
        draft = _apply(PaymentDetailsRule(), "Bank: Zenith Bank")
        assert draft.payment_details is None
