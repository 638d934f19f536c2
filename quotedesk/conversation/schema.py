"""Data models for chat transcripts and conversation-derived documents."""

from pydantic import BaseModel, Field

from quotedesk.extraction.schema import DocumentType, ValidationResult, VisionExtractionResult


class ChatMessage(BaseModel):
    """One chat turn."""

    role: str = Field(..., description="'user' or 'assistant'")
    content: str = Field("", description="Message text")


class PartySummary(BaseModel):
    """Name and address of the issuer or recipient, as found in text."""

    name: str = ""
    address: str = ""


class ConversationItem(BaseModel):
    """A line item stated in conversation."""

    description: str
    quantity: float
    unit_price: float

    @property
    def amount(self) -> float:
        return self.quantity * self.unit_price


class PaymentDetails(BaseModel):
    """Bank transfer details given in conversation."""

    account_number: str
    bank: str = ""
    account_name: str = ""


class ConversationExtraction(BaseModel):
    """Everything the heuristic rules found in a transcript.

    Rules fill this in place; empty strings and None mean "not found".
    """

    business: PartySummary = Field(default_factory=PartySummary)
    client: PartySummary = Field(default_factory=PartySummary)
    items: list[ConversationItem] = Field(default_factory=list)
    currency: str | None = None
    delivery_cost_percentage: float | None = None
    delivery_date: str | None = None
    due_date: str | None = None
    payment_terms: str | None = None
    payment_details: PaymentDetails | None = None
    defaulted: list[str] = Field(
        default_factory=list, description="Paths filled with a default rather than found"
    )


class AdditionalCharge(BaseModel):
    """A charge on top of the line items (delivery, tax)."""

    description: str
    amount: float


class ParsedDocument(BaseModel):
    """A quote or invoice assembled from chat text, ready for validation.

    Fields listed in defaulted hold placeholders for display only; they are
    dropped from the canonical record so validation still reports them.
    """

    type: DocumentType
    business: PartySummary
    client: PartySummary
    items: list[ConversationItem]
    additional_charges: list[AdditionalCharge] | None = None
    currency: str
    notes: str | None = None
    due_date: str | None = None
    payment_terms: str | None = None
    defaulted: list[str] = Field(default_factory=list)

    @property
    def subtotal(self) -> float:
        return sum(item.amount for item in self.items)

    @property
    def total(self) -> float:
        charges = sum(charge.amount for charge in self.additional_charges or [])
        return self.subtotal + charges


class DocumentDraft(BaseModel):
    """Pre-filled creation form data handed to the document screen.

    Attributes:
        document_type: 'quote' or 'invoice'
        client_name: Recipient name
        currency: Currency code
        items: Line items
        tax_rate: Tax as a percentage of the subtotal
        notes: Notes block (payment, delivery, bank details)
        total: Grand total shown in the chat reply
    """

    document_type: DocumentType
    client_name: str
    currency: str
    items: list[ConversationItem]
    tax_rate: float = 0.0
    notes: str = ""
    total: float = 0.0


class ChatReply(BaseModel):
    """Assistant reply for one chat turn.

    form_payload is set only when a document is ready to be reviewed.
    """

    content: str
    document_type: DocumentType | None = None
    form_payload: str | None = None
    draft: DocumentDraft | None = None
    validation: ValidationResult | None = None
    extraction: VisionExtractionResult | None = None
