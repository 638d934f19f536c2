"""Canonical quote/invoice data models for extraction.

Attributes are snake_case; the camelCase names used by the completion
service and the web client are accepted as aliases and used on output.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DocumentType = Literal["quote", "invoice"]
ExtractedDocumentType = Literal["invoice", "quote", "receipt", "business_card", "unknown"]
Severity = Literal["none", "warning", "error"]


class CamelModel(BaseModel):
    """Base model accepting both snake_case and camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class PartyInfo(CamelModel):
    """Issuer or recipient contact details."""

    name: str | None = Field(None, description="Person or company name")
    address: str | None = Field(None, description="Postal address")
    phone: str | None = Field(None, description="Phone number")
    email: str | None = Field(None, description="Email address")


class ExtractedItem(CamelModel):
    """One line item; quantity, unit_price and amount are mutually derivable."""

    description: str | None = Field(None, description="Product or service description")
    quantity: float | None = Field(None, description="Number of units")
    unit_price: float | None = Field(None, description="Price per unit")
    amount: float | None = Field(None, description="Line total (quantity x unit price)")


class ExtractedDocumentData(CamelModel):
    """Best-effort understanding of a quote or invoice being assembled.

    Transient: built per conversation or upload, mutated by normalization and
    merging, discarded once the document is persisted.
    """

    business: PartyInfo | None = Field(None, description="Issuer")
    client: PartyInfo | None = Field(None, description="Recipient")

    document_number: str | None = Field(None, description="Quote/invoice number")
    date: str | None = Field(None, description="Issue date (YYYY-MM-DD)")
    due_date: str | None = Field(None, description="Payment due date")
    valid_until: str | None = Field(None, description="Quote validity date")
    currency: str | None = Field(None, description="Currency code (e.g., USD, NGN)")

    items: list[ExtractedItem] = Field(default_factory=list, description="Line items")

    # Financial details
    subtotal: float | None = Field(None, description="Sum of line amounts")
    tax_rate: float | None = Field(None, description="Tax rate as a fraction (0.075 = 7.5%)")
    tax_amount: float | None = Field(None, description="Tax amount")
    delivery_charge: float | None = Field(None, description="Delivery/shipping charge")
    total: float | None = Field(None, description="Subtotal + tax + delivery")

    notes: str | None = Field(None, description="Free-text notes")
    payment_terms: str | None = Field(None, description="Payment terms (e.g., Net 30)")


class VisionExtractionResult(CamelModel):
    """Result of one adapter call, normalized.

    Attributes:
        success: Whether the service recognised a business document
        document_type: Detected kind of document
        confidence: Service-reported confidence (0-1)
        data: Canonical record, None when extraction failed
        missing_fields: Dotted paths of fields that could not be extracted
        raw_text: Text the service read from the document, if returned
        error: Human-readable failure description
        provider: Name of provider that produced the result
    """

    success: bool = False
    document_type: ExtractedDocumentType = "unknown"
    confidence: float = Field(0.0, ge=0, le=1)
    data: ExtractedDocumentData | None = None
    missing_fields: list[str] = Field(default_factory=list)
    raw_text: str | None = None
    error: str | None = None
    provider: str | None = None


class ValidationResult(CamelModel):
    """Completeness verdict for a canonical record. Derived, never persisted."""

    is_complete: bool = False
    can_auto_create: bool = False
    missing_required: list[str] = Field(default_factory=list)
    missing_optional: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    severity: Severity = "none"
