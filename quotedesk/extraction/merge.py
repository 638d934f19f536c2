"""Merging user corrections into an extracted record."""

from collections.abc import Mapping
from typing import Any

from quotedesk.extraction.schema import ExtractedDocumentData

PARTY_FIELDS = ("business", "client")


def _present(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def merge_document_data(
    extracted: ExtractedDocumentData,
    updates: ExtractedDocumentData | Mapping[str, Any],
) -> ExtractedDocumentData:
    """Shallow-merge updates into an extracted record.

    Business and client details merge key by key, so a corrected client name
    keeps the previously extracted email. A supplied items list replaces the
    old one wholesale. Any other field is taken from updates when present
    there (set and not None), otherwise kept.

    Args:
        extracted: Current record (left unchanged)
        updates: Partial record, as a model or a snake/camelCase mapping

    Returns:
        New merged ExtractedDocumentData
    """
    if isinstance(updates, ExtractedDocumentData):
        patch = updates.model_dump(exclude_unset=True)
    else:
        patch = ExtractedDocumentData.model_validate(updates).model_dump(exclude_unset=True)

    merged = extracted.model_dump()

    for key, value in _present(patch).items():
        if key in PARTY_FIELDS:
            merged[key] = {**(merged.get(key) or {}), **_present(value)}
        else:
            merged[key] = value

    return ExtractedDocumentData.model_validate(merged)
