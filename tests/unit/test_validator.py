"""Unit tests for document completeness validation.

Tests cover:
- Required, optional and conditional field checks per document type
- Item and currency warnings
- Severity levels and auto-create decision
- Injected requirement tables
"""

import pytest
from pydantic import ValidationError

from quotedesk.extraction.schema import ExtractedDocumentData, ExtractedItem, PartyInfo
from quotedesk.extraction.validator import (
    NO_CURRENCY_WARNING,
    NO_DATA_WARNING,
    NO_ITEMS_WARNING,
    DocumentValidator,
    FieldRequirement,
    has_minimum_viable_data,
    resolve_field,
    validate_document,
)


@pytest.fixture
def complete_quote() -> ExtractedDocumentData:
    """Quote with every required and optional field present."""
    return ExtractedDocumentData(
        business=PartyInfo(name="Sunrise Bakery"),
        client=PartyInfo(
            name="Acme", address="1 Marina, Lagos", email="a@acme.com", phone="0800"
        ),
        currency="USD",
        items=[ExtractedItem(description="Cake", quantity=2, unit_price=50, amount=100)],
        notes="Thanks",
        valid_until="2025-03-01",
    )


class TestResolveField:
    """Test dotted path resolution."""

    def test_nested_path(self) -> None:
        """Dotted paths walk nested mappings."""
        assert resolve_field({"client": {"name": "Acme"}}, "client.name") == "Acme"

    def test_missing_parent(self) -> None:
        """A missing parent resolves to None."""
        assert resolve_field({"client": None}, "client.name") is None

    def test_camel_case_spelling(self) -> None:
        """snake_case paths match camelCase keys."""
        assert resolve_field({"dueDate": "2025-02-01"}, "due_date") == "2025-02-01"

    def test_empty_items_is_absent(self) -> None:
        """An empty items list counts as absent."""
        assert resolve_field({"items": []}, "items") is None
        assert resolve_field({"items": [{"description": "A"}]}, "items") == [{"description": "A"}]


class TestDocumentValidator:
    """Test validation verdicts."""

    def test_no_data(self) -> None:
        """None input lists every required field with an error."""
        result = validate_document(None, "quote")

        assert result.is_complete is False
        assert result.can_auto_create is False
        assert result.missing_required == ["client.name", "items", "currency"]
        assert result.warnings == [NO_DATA_WARNING]
        assert result.severity == "error"

    def test_complete_quote_can_auto_create(self, complete_quote: ExtractedDocumentData) -> None:
        """A quote with everything present is complete with no severity."""
        result = validate_document(complete_quote, "quote")

        assert result.is_complete is True
        assert result.can_auto_create is True
        assert result.missing_required == []
        assert result.missing_optional == []
        assert result.warnings == []
        assert result.severity == "none"

    def test_missing_optional_is_warning(self) -> None:
        """Missing optional fields keep the record complete but raise a warning."""
        data = ExtractedDocumentData(
            client=PartyInfo(name="Acme"),
            currency="USD",
            items=[ExtractedItem(description="Cake", amount=100)],
        )

        result = validate_document(data, "quote")

        assert result.is_complete is True
        assert result.can_auto_create is True
        assert "client.address" in result.missing_optional
        assert "valid_until" in result.missing_optional
        assert result.severity == "warning"

    def test_invoice_requires_due_date(self, complete_quote: ExtractedDocumentData) -> None:
        """Invoices need a due date on top of the quote requirements."""
        result = validate_document(complete_quote, "invoice")

        assert result.missing_required == ["due_date"]
        assert result.severity == "error"

    def test_due_date_makes_payment_terms_required(self) -> None:
        """A due date without payment terms makes payment_terms required."""
        data = {
            "client": {"name": "Acme"},
            "currency": "NGN",
            "dueDate": "2025-02-01",
            "items": [{"description": "Cake", "amount": 100}],
        }

        result = validate_document(data, "invoice")

        assert result.missing_required == ["payment_terms"]
        assert result.is_complete is False

    def test_complete_invoice(self) -> None:
        """Due date and payment terms together complete an invoice."""
        data = ExtractedDocumentData(
            client=PartyInfo(name="Acme"),
            currency="NGN",
            due_date="2025-02-01",
            payment_terms="Net 30",
            items=[ExtractedItem(description="Cake", quantity=1, unit_price=100)],
        )

        result = validate_document(data, "invoice")

        assert result.is_complete is True
        assert result.missing_required == []

    def test_incomplete_items_warn(self, complete_quote: ExtractedDocumentData) -> None:
        """Items without description or pricing are counted in a warning."""
        complete_quote.items.extend(
            [ExtractedItem(description="No price"), ExtractedItem(amount=20)]
        )

        result = validate_document(complete_quote, "quote")

        assert result.warnings == ["2 item(s) missing description or pricing information"]
        assert result.is_complete is True
        assert result.can_auto_create is False
        assert result.severity == "warning"

    def test_missing_items_and_currency(self) -> None:
        """Missing items and currency produce both warnings."""
        data = ExtractedDocumentData(client=PartyInfo(name="Acme"))

        result = validate_document(data, "quote")

        assert result.missing_required == ["items", "currency"]
        assert NO_ITEMS_WARNING in result.warnings
        assert NO_CURRENCY_WARNING in result.warnings

    def test_mapping_read_as_record(self) -> None:
        """Plain mappings are coerced like canonical records."""
        data = {
            "client": {"name": "Acme"},
            "currency": "USD",
            "items": [{"description": "Cake", "quantity": "2", "unitPrice": "50"}],
        }

        result = validate_document(data, "quote")

        assert result.missing_required == []
        assert result.warnings == []

    def test_malformed_mapping_rejected(self) -> None:
        """A mapping that is not a record raises ValidationError."""
        with pytest.raises(ValidationError):
            validate_document({"items": "Cake"}, "quote")

    def test_required_fields_not_duplicated(self) -> None:
        """Every required path appears at most once."""
        result = validate_document({}, "invoice")

        assert len(result.missing_required) == len(set(result.missing_required))

    def test_unknown_document_type(self) -> None:
        """Types missing from the table raise ValueError."""
        validator = DocumentValidator()

        with pytest.raises(ValueError, match="Unknown document type"):
            validator.validate({}, "receipt")  # type: ignore[arg-type]

    def test_injected_requirements(self) -> None:
        """A custom table replaces the defaults."""
        validator = DocumentValidator({"quote": FieldRequirement(required=("business.name",))})

        result = validator.validate({"items": [{"description": "A", "amount": 1}]}, "quote")

        assert result.missing_required == ["business.name"]
        with pytest.raises(ValueError):
            validator.requirement_for("invoice")


class TestHasMinimumViableData:
    """Test the minimum data check."""

    def test_minimum_present(self, complete_quote: ExtractedDocumentData) -> None:
        """Client name, items and currency are enough."""
        assert has_minimum_viable_data(complete_quote) is True

    def test_none(self) -> None:
        """No data is not viable."""
        assert has_minimum_viable_data(None) is False

    def test_missing_currency(self, complete_quote: ExtractedDocumentData) -> None:
        """Currency is part of the minimum."""
        complete_quote.currency = None
        assert has_minimum_viable_data(complete_quote) is False
