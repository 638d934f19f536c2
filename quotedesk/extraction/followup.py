"""User-facing chat text for incomplete or freshly extracted documents."""

from collections.abc import Mapping, Sequence
from types import MappingProxyType

from quotedesk.extraction.schema import VisionExtractionResult

ALL_PRESENT_MESSAGE = "All required information is present!"

DEFAULT_FIELD_DESCRIPTIONS: Mapping[str, str] = MappingProxyType(
    {
        "client.name": "the client's name or company name",
        "client.address": "the client's address",
        "client.email": "the client's email address",
        "client.phone": "the client's phone number",
        "due_date": "the payment due date",
        "dueDate": "the payment due date",
        "currency": "the currency (e.g., USD, NGN, EUR, GBP)",
        "items": "the line items (products/services with quantities and prices)",
        "payment_terms": "payment terms (e.g., Net 30, Due on receipt)",
        "notes": "any additional notes or instructions",
        "valid_until": "how long this quote is valid",
        "business.name": "your business/company name",
    }
)


class FollowUpQuestionGenerator:
    """Turns missing field paths into a clarification prompt."""

    def __init__(self, field_descriptions: Mapping[str, str] | None = None) -> None:
        """Initialize generator.

        Args:
            field_descriptions: Field path to phrase mapping
                (defaults to DEFAULT_FIELD_DESCRIPTIONS)
        """
        self.field_descriptions = (
            field_descriptions if field_descriptions is not None else DEFAULT_FIELD_DESCRIPTIONS
        )

    def generate(self, missing_fields: Sequence[str], document_type: str) -> str:
        """Build a follow-up question for the missing fields.

        Unknown field paths are dropped. If none are known, a generic request
        for clarification is returned instead of an empty list.
        """
        if not missing_fields:
            return ALL_PRESENT_MESSAGE

        questions = [
            f"• {self.field_descriptions[field]}"
            for field in missing_fields
            if field in self.field_descriptions
        ]

        if not questions:
            return (
                f"I extracted most of the {document_type} data, but need some clarification. "
                "Please provide the missing information."
            )

        bullets = "\n".join(questions)
        return (
            f"I've extracted most of the {document_type} information, "
            f"but I need a few more details:\n\n{bullets}\n\n"
            f"Please provide these details so I can create the {document_type}."
        )


_default_generator = FollowUpQuestionGenerator()


def generate_follow_up_question(missing_fields: Sequence[str], document_type: str) -> str:
    """Generate a follow-up question with the default field descriptions."""
    return _default_generator.generate(missing_fields, document_type)


def _format_number(value: float) -> str:
    return f"{value:g}" if value == int(value) else f"{value:.2f}"


def format_vision_response(result: VisionExtractionResult) -> str:
    """Summarise an extraction result as a chat message."""
    if not result.success:
        return f"⚠️ Could not extract data from image: {result.error or 'Unknown error'}"

    data = result.data
    lines = [
        f"✅ Extracted {result.document_type} data "
        f"({round(result.confidence * 100)}% confidence)",
        "",
    ]

    if data and data.client and data.client.name:
        lines.append(f"**Client:** {data.client.name}")
    if data and data.business and data.business.name:
        lines.append(f"**Business:** {data.business.name}")
    if data and data.currency:
        lines.append(f"**Currency:** {data.currency}")

    if data and data.items:
        lines.extend(["", "**Items:**"])
        for index, item in enumerate(data.items, start=1):
            line = f"{index}. {item.description}"
            if item.quantity:
                line += f" (x{_format_number(item.quantity)})"
            if item.unit_price:
                line += f" @ {_format_number(item.unit_price)}"
            if item.amount:
                line += f" = {_format_number(item.amount)}"
            lines.append(line)

    if data and data.total:
        lines.extend(["", f"**Total:** {data.currency or ''} {_format_number(data.total)}"])

    lines.append("")
    if result.missing_fields:
        lines.append(f"⚠️ **Missing information:** {', '.join(result.missing_fields)}")
        lines.append("Please provide these details to complete the document.")
    else:
        lines.append("✅ All required information extracted! Ready to create document.")

    return "\n".join(lines)
