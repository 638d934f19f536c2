"""Conversions between parsed documents, canonical records and form drafts."""

import json
from urllib.parse import quote

from quotedesk.conversation.schema import (
    AdditionalCharge,
    ConversationExtraction,
    ConversationItem,
    DocumentDraft,
    ParsedDocument,
)
from quotedesk.extraction.normalizer import backfill_totals
from quotedesk.extraction.schema import (
    DocumentType,
    ExtractedDocumentData,
    ExtractedItem,
    PartyInfo,
)


def document_from_conversation(
    extraction: ConversationExtraction, document_type: DocumentType
) -> ParsedDocument:
    """Turn conversation findings into a document.

    A delivery percentage becomes a delivery charge on the subtotal; payment
    terms, delivery date and bank details are collected into the notes.
    """
    subtotal = sum(item.amount for item in extraction.items)

    charges = []
    if extraction.delivery_cost_percentage:
        charges.append(
            AdditionalCharge(
                description="Delivery",
                amount=subtotal * (extraction.delivery_cost_percentage / 100),
            )
        )

    note_parts = []
    if extraction.payment_terms:
        note_parts.append(f"Payment: {extraction.payment_terms}")
    if extraction.delivery_date:
        note_parts.append(f"Delivery: {extraction.delivery_date}")
    if extraction.payment_details:
        details = extraction.payment_details
        note_parts.append(f"Bank: {details.bank}")
        note_parts.append(f"Account: {details.account_number}")
        note_parts.append(f"Account Name: {details.account_name}")

    return ParsedDocument(
        type=document_type,
        business=extraction.business,
        client=extraction.client,
        items=extraction.items,
        additional_charges=charges or None,
        currency=extraction.currency or "",
        notes="\n".join(note_parts) or None,
        due_date=extraction.due_date,
        payment_terms=extraction.payment_terms,
        defaulted=list(extraction.defaulted),
    )


def _charge(document: ParsedDocument, keyword: str) -> float | None:
    for charge in document.additional_charges or []:
        if keyword in charge.description.lower():
            return charge.amount
    return None


def _found(document: ParsedDocument, path: str, value: str) -> str | None:
    if path in document.defaulted:
        return None
    return value or None


def to_document_data(document: ParsedDocument) -> ExtractedDocumentData:
    """Build the canonical record for validation, with totals backfilled.

    Placeholder values listed in document.defaulted are left out.
    """
    data = ExtractedDocumentData(
        business=PartyInfo(
            name=_found(document, "business.name", document.business.name),
            address=document.business.address or None,
        ),
        client=PartyInfo(
            name=_found(document, "client.name", document.client.name),
            address=document.client.address or None,
        ),
        currency=_found(document, "currency", document.currency),
        due_date=document.due_date,
        items=[
            ExtractedItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=item.amount,
            )
            for item in document.items
        ],
        tax_amount=_charge(document, "tax"),
        delivery_charge=_charge(document, "delivery"),
        notes=document.notes,
        payment_terms=document.payment_terms,
    )
    backfill_totals(data)
    return data


def draft_from_document(document: ParsedDocument) -> DocumentDraft:
    """Form draft for a parsed document; tax becomes a percentage of the subtotal."""
    subtotal = document.subtotal
    tax = _charge(document, "tax")
    tax_rate = (tax / subtotal) * 100 if tax and subtotal else 0.0

    return DocumentDraft(
        document_type=document.type,
        client_name=document.client.name,
        currency=document.currency,
        items=document.items,
        tax_rate=tax_rate,
        notes=document.notes or "",
        total=document.total,
    )


def draft_from_document_data(
    data: ExtractedDocumentData, document_type: DocumentType
) -> DocumentDraft:
    """Form draft for a canonical record (e.g., from an uploaded image)."""
    items = []
    for item in data.items:
        quantity = item.quantity or 1.0
        if item.unit_price is not None:
            unit_price = item.unit_price
        else:
            unit_price = (item.amount or 0.0) / quantity
        items.append(
            ConversationItem(
                description=item.description or "Item", quantity=quantity, unit_price=unit_price
            )
        )

    notes = [part for part in (data.notes, data.payment_terms) if part]
    return DocumentDraft(
        document_type=document_type,
        client_name=data.client.name if data.client and data.client.name else "",
        currency=data.currency or "",
        items=items,
        tax_rate=(data.tax_rate or 0.0) * 100,
        notes="\n".join(notes),
        total=data.total or 0.0,
    )


def encode_form_payload(draft: DocumentDraft) -> str:
    """URL-encoded JSON handed to the document creation screen."""
    payload = {
        "client_name": draft.client_name,
        "currency": draft.currency,
        "items": [item.model_dump() for item in draft.items],
        "tax_rate": draft.tax_rate,
        "notes": draft.notes,
    }
    return quote(json.dumps(payload), safe="-_.!~*'()")
