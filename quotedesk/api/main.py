"""FastAPI application for quote/invoice extraction.

Provides:
- Health, readiness and Prometheus metrics endpoints
- Image upload extraction with validation and a chat-ready reply
- Validation, merge and conversation parsing endpoints for the chat client

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import base64
import logging
import time
from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, Request, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from quotedesk.api import metrics
from quotedesk.conversation.assistant import DocumentAssistant
from quotedesk.conversation.drafts import (
    document_from_conversation,
    draft_from_document,
    encode_form_payload,
    to_document_data,
)
from quotedesk.conversation.parser import ConversationParser, classify_document_type
from quotedesk.conversation.schema import (
    ChatMessage,
    ConversationExtraction,
    DocumentDraft,
    ParsedDocument,
)
from quotedesk.extraction.factory import create_extraction_provider
from quotedesk.extraction.followup import FollowUpQuestionGenerator
from quotedesk.extraction.merge import merge_document_data
from quotedesk.extraction.schema import (
    DocumentType,
    ExtractedDocumentData,
    ValidationResult,
    VisionExtractionResult,
)
from quotedesk.extraction.validator import DocumentValidator, has_minimum_viable_data
from quotedesk.shared.config import get_settings
from quotedesk.shared.logging import configure_logging

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Quotedesk",
    description="Quote and invoice extraction API for chat-driven document creation",
    version=settings.service_version,
)

extraction_provider = create_extraction_provider(settings)
validator = DocumentValidator()
follow_up = FollowUpQuestionGenerator()
conversation_parser = ConversationParser(default_currency=settings.default_currency)
assistant = DocumentAssistant(
    settings,
    parser=conversation_parser,
    validator=validator,
    follow_up=follow_up,
    provider=extraction_provider,
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Record request count and duration per method and endpoint."""
    # Skip metrics for /metrics endpoint itself
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code,
    ).inc()

    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=request.url.path,
    ).observe(duration)

    return response


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    provider: str
    provider_available: bool


class ExtractResponse(BaseModel):
    """Upload extraction response."""

    document_type: DocumentType | None = None
    message: str
    extraction: VisionExtractionResult | None = None
    validation: ValidationResult | None = None
    form_payload: str | None = None


class ValidateRequest(BaseModel):
    """Record to validate against a document type's requirements."""

    document_type: DocumentType
    data: ExtractedDocumentData | None = None


class ValidateResponse(BaseModel):
    """Validation outcome with the question to ask the user, if any."""

    validation: ValidationResult
    follow_up_question: str | None = None
    has_minimum_viable_data: bool


class MergeRequest(BaseModel):
    """Extracted record plus the fields the user supplied afterwards."""

    data: ExtractedDocumentData
    updates: dict[str, Any] = Field(default_factory=dict)


class ConversationRequest(BaseModel):
    """Chat transcript, oldest message first."""

    messages: list[ChatMessage] = Field(..., min_length=1)


class ConversationResponse(BaseModel):
    """Conversation parse result.

    extraction and everything derived from it are null when the transcript
    has no business name or no line items yet.
    """

    document_type: DocumentType
    extraction: ConversationExtraction | None = None
    document: ParsedDocument | None = None
    draft: DocumentDraft | None = None
    validation: ValidationResult | None = None
    form_payload: str | None = None


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """Health check endpoint for liveness probe."""
    return HealthResponse(
        status="healthy", version=settings.service_version, service=settings.service_name
    )


@app.get("/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check() -> ReadinessResponse:
    """Readiness check; reports whether the extraction provider is usable.

    The service stays ready without a provider since validation, merging and
    conversation parsing do not need one.
    """
    return ReadinessResponse(
        ready=True,
        provider=extraction_provider.provider_name,
        provider_available=extraction_provider.is_available(),
    )


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint."""
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


@app.post("/api/v1/documents/extract", response_model=ExtractResponse, tags=["Documents"])
async def extract_document(
    file: UploadFile = File(..., description="Image of a quote or invoice"),  # noqa: B008
    document_type: DocumentType | None = Form(  # noqa: B008
        None, description="Validate as this type instead of the detected one"
    ),
    prompt: str | None = Form(None, description="Extra instruction for the model"),  # noqa: B008
) -> ExtractResponse:
    """Extract a quote or invoice from an uploaded image.

    ## Usage

    ```bash
    curl -X POST "http://localhost:8000/api/v1/documents/extract" \\
      -F "file=@invoice.png" -F "document_type=invoice"
    ```

    The response message is either a summary of the extracted document or a
    follow-up question listing what is still missing. Extraction failures are
    reported in `extraction.error` with status 200.

    Raises:
        HTTPException: 400 if the file is missing, empty or not an image
    """
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No filename provided")

    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type: {file.content_type}. Only images are supported.",
        )

    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file")

    metrics.document_upload_size_bytes.observe(len(content))

    provider_name = extraction_provider.provider_name
    logger.info(f"Extracting {file.filename} ({len(content)} bytes) with {provider_name}")
    start_time = time.time()
    # Provider calls block (HTTP and retry backoff), keep them off the event loop
    reply = await run_in_threadpool(
        assistant.handle_upload,
        base64.b64encode(content).decode("ascii"),
        file.content_type,
        prompt=prompt,
        document_type=document_type,
    )
    metrics.extraction_duration_seconds.labels(provider=provider_name).observe(
        time.time() - start_time
    )

    extraction_ok = reply.extraction is not None and reply.extraction.success
    metrics.extraction_requests_total.labels(
        status="success" if extraction_ok else "failed", provider=provider_name
    ).inc()
    if reply.validation is not None and reply.document_type is not None:
        metrics.validation_results_total.labels(
            document_type=reply.document_type, severity=reply.validation.severity
        ).inc()

    return ExtractResponse(
        document_type=reply.document_type,
        message=reply.content,
        extraction=reply.extraction,
        validation=reply.validation,
        form_payload=reply.form_payload,
    )


@app.post("/api/v1/documents/validate", response_model=ValidateResponse, tags=["Documents"])
def validate_document_data(request: ValidateRequest) -> ValidateResponse:
    """Validate a record and produce the follow-up question for missing fields."""
    validation = validator.validate(request.data, request.document_type)
    metrics.validation_results_total.labels(
        document_type=request.document_type, severity=validation.severity
    ).inc()

    question = None
    if not validation.is_complete:
        question = follow_up.generate(validation.missing_required, request.document_type)

    return ValidateResponse(
        validation=validation,
        follow_up_question=question,
        has_minimum_viable_data=has_minimum_viable_data(request.data),
    )


@app.post("/api/v1/documents/merge", response_model=ExtractedDocumentData, tags=["Documents"])
def merge_document(request: MergeRequest) -> ExtractedDocumentData:
    """Apply user-supplied updates to an extracted record."""
    return merge_document_data(request.data, request.updates)


@app.post(
    "/api/v1/conversations/parse", response_model=ConversationResponse, tags=["Conversations"]
)
def parse_conversation(request: ConversationRequest) -> ConversationResponse:
    """Parse a chat transcript into a draft quote or invoice."""
    document_type = classify_document_type(request.messages, settings.default_document_type)
    extraction = conversation_parser.parse(request.messages)
    if extraction is None:
        metrics.conversation_parses_total.labels(outcome="incomplete").inc()
        return ConversationResponse(document_type=document_type)

    metrics.conversation_parses_total.labels(outcome="parsed").inc()
    document = document_from_conversation(extraction, document_type)
    validation = validator.validate(to_document_data(document), document.type)
    draft = draft_from_document(document)
    return ConversationResponse(
        document_type=document.type,
        extraction=extraction,
        document=document,
        draft=draft,
        validation=validation,
        form_payload=encode_form_payload(draft) if validation.is_complete else None,
    )
