"""Completeness validation for extracted quote/invoice data.

Decides whether a canonical record is complete enough to create a document
without asking the user anything else. Field requirements are plain
configuration, injected into DocumentValidator so alternate rule sets can be
tested without touching module state.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from quotedesk.extraction.schema import DocumentType, ExtractedDocumentData, ValidationResult

logger = logging.getLogger(__name__)

NO_DATA_WARNING = "No data could be extracted from the document"
NO_ITEMS_WARNING = "No line items found in the document"
NO_CURRENCY_WARNING = "Currency not detected - please specify (USD, NGN, EUR, etc.)"


class ConditionalRequirement(BaseModel):
    """A field that becomes required when any trigger field is present."""

    model_config = ConfigDict(frozen=True)

    field: str
    required_if: tuple[str, ...]


class FieldRequirement(BaseModel):
    """Required, optional and conditional fields for one document type."""

    model_config = ConfigDict(frozen=True)

    required: tuple[str, ...]
    optional: tuple[str, ...] = ()
    conditional: tuple[ConditionalRequirement, ...] = ()


DEFAULT_REQUIREMENTS: Mapping[str, FieldRequirement] = MappingProxyType(
    {
        "quote": FieldRequirement(
            required=("client.name", "items", "currency"),
            optional=(
                "client.address",
                "client.email",
                "client.phone",
                "notes",
                "valid_until",
                "business.name",
            ),
        ),
        "invoice": FieldRequirement(
            required=("client.name", "items", "currency", "due_date"),
            optional=(
                "client.address",
                "client.email",
                "payment_terms",
                "notes",
                "business.name",
            ),
            conditional=(
                ConditionalRequirement(field="payment_terms", required_if=("due_date",)),
            ),
        ),
    }
)


def _lookup(obj: Mapping[str, Any], key: str) -> Any:
    value = obj.get(key)
    if value is None:
        value = obj.get(to_camel(key))
    return value


def resolve_field(data: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted field path against a record.

    `items` resolves only to a non-empty list. Every path segment also matches
    its camelCase spelling, so `due_date` reads `dueDate` and `valid_until`
    reads `validUntil`.

    Args:
        data: Record as a mapping (model dump or raw JSON)
        path: Dotted path such as 'client.name'

    Returns:
        The value found, or None
    """
    if path == "items":
        items = data.get("items")
        return items if isinstance(items, list) and items else None

    current: Any = data
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = _lookup(current, part)
    return current


def _item_is_incomplete(item: Any) -> bool:
    if not isinstance(item, Mapping):
        return True
    has_price = bool(_lookup(item, "amount")) or (
        bool(_lookup(item, "quantity")) and bool(_lookup(item, "unit_price"))
    )
    return not _lookup(item, "description") or not has_price


class DocumentValidator:
    """Validates canonical records against a per-type requirement table."""

    def __init__(self, requirements: Mapping[str, FieldRequirement] | None = None) -> None:
        """Initialize validator.

        Args:
            requirements: Requirement table keyed by document type
                (defaults to DEFAULT_REQUIREMENTS)
        """
        self.requirements = requirements if requirements is not None else DEFAULT_REQUIREMENTS

    def requirement_for(self, document_type: str) -> FieldRequirement:
        """Get the requirement entry for a document type.

        Raises:
            ValueError: If the table has no entry for the type
        """
        try:
            return self.requirements[document_type]
        except KeyError:
            available = ", ".join(self.requirements)
            raise ValueError(
                f"Unknown document type: '{document_type}'. Available types: {available}"
            ) from None

    def validate(
        self,
        data: ExtractedDocumentData | Mapping[str, Any] | None,
        document_type: DocumentType,
    ) -> ValidationResult:
        """Validate extracted data for a document type.

        Args:
            data: Canonical record, raw mapping, or None when nothing was extracted
            document_type: 'quote' or 'invoice'

        Returns:
            ValidationResult with missing fields, warnings and severity

        Raises:
            pydantic.ValidationError: If a mapping is not a valid record
        """
        requirements = self.requirement_for(document_type)

        if data is None:
            return ValidationResult(
                missing_required=list(requirements.required),
                warnings=[NO_DATA_WARNING],
                severity="error",
            )

        if not isinstance(data, ExtractedDocumentData):
            data = ExtractedDocumentData.model_validate(data)
        record = data.model_dump()

        missing_required = [
            path for path in requirements.required if not resolve_field(record, path)
        ]
        missing_optional = [
            path for path in requirements.optional if not resolve_field(record, path)
        ]
        warnings: list[str] = []

        items = resolve_field(record, "items")
        if not items:
            if "items" not in missing_required:
                missing_required.append("items")
            warnings.append(NO_ITEMS_WARNING)
        else:
            incomplete = sum(1 for item in items if _item_is_incomplete(item))
            if incomplete:
                warnings.append(f"{incomplete} item(s) missing description or pricing information")

        if not resolve_field(record, "currency"):
            warnings.append(NO_CURRENCY_WARNING)

        for condition in requirements.conditional:
            triggered = any(resolve_field(record, field) for field in condition.required_if)
            if triggered and not resolve_field(record, condition.field):
                if condition.field not in missing_required:
                    missing_required.append(condition.field)

        is_complete = not missing_required
        if missing_required:
            severity = "error"
        elif warnings or missing_optional:
            severity = "warning"
        else:
            severity = "none"

        logger.debug(
            f"Validated {document_type}: severity={severity} missing={missing_required}"
        )
        return ValidationResult(
            is_complete=is_complete,
            can_auto_create=is_complete and not warnings,
            missing_required=missing_required,
            missing_optional=missing_optional,
            warnings=warnings,
            severity=severity,
        )


_default_validator = DocumentValidator()


def validate_document(
    data: ExtractedDocumentData | Mapping[str, Any] | None,
    document_type: DocumentType,
) -> ValidationResult:
    """Validate with the default requirement table."""
    return _default_validator.validate(data, document_type)


def has_minimum_viable_data(data: ExtractedDocumentData | None) -> bool:
    """Check that client name, at least one item and currency are present."""
    if data is None:
        return False
    return bool(data.client and data.client.name and data.items and data.currency)
