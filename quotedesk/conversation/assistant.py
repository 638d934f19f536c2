"""Chat assistant that turns conversations and uploads into document drafts.

Composes the conversation parser, the single-message fallback parser, the
extraction providers, the validator and the follow-up generator. The chat
completion itself is supplied by the caller.
"""

import logging
from collections.abc import Callable, Sequence

from quotedesk.conversation.drafts import (
    document_from_conversation,
    draft_from_document,
    draft_from_document_data,
    encode_form_payload,
    to_document_data,
)
from quotedesk.conversation.parser import ConversationParser, classify_document_type
from quotedesk.conversation.response_parser import parse_ai_response, should_create_document
from quotedesk.conversation.schema import ChatMessage, ChatReply, ParsedDocument
from quotedesk.extraction.base import ExtractionProvider
from quotedesk.extraction.cancellation import CancellationToken
from quotedesk.extraction.followup import FollowUpQuestionGenerator, format_vision_response
from quotedesk.extraction.schema import DocumentType
from quotedesk.extraction.validator import DocumentValidator
from quotedesk.shared.config import Settings

logger = logging.getLogger(__name__)

ERROR_REPLY = "Sorry, I encountered an error. Please try again."
UNPARSED_NOTICE = (
    "⚠️ I couldn't parse the document data. Please provide more details or create manually."
)

# (history, user_message) -> (assistant reply, whether the service asks to create a document)
ChatCompletion = Callable[[Sequence[ChatMessage], str], tuple[str, bool]]


class DocumentAssistant:
    """Turn-level orchestration for the document chat."""

    def __init__(
        self,
        settings: Settings,
        parser: ConversationParser | None = None,
        validator: DocumentValidator | None = None,
        follow_up: FollowUpQuestionGenerator | None = None,
        provider: ExtractionProvider | None = None,
    ) -> None:
        """Initialize assistant.

        Args:
            settings: Application settings
            parser: Conversation parser (defaults use settings.default_currency)
            validator: Document validator with the requirement table
            follow_up: Follow-up question generator
            provider: Extraction provider, required only for uploads
        """
        self.settings = settings
        self.parser = parser or ConversationParser(default_currency=settings.default_currency)
        self.validator = validator or DocumentValidator()
        self.follow_up = follow_up or FollowUpQuestionGenerator()
        self.provider = provider

    def parse_conversation(self, messages: Sequence[ChatMessage]) -> ParsedDocument | None:
        """Assemble a document from a whole conversation, or None."""
        extraction = self.parser.parse(messages)
        if extraction is None:
            return None
        document_type = classify_document_type(messages, self.settings.default_document_type)
        return document_from_conversation(extraction, document_type)

    def _parse_with_fallbacks(
        self, history: Sequence[ChatMessage], messages: Sequence[ChatMessage], ai_response: str
    ) -> ParsedDocument | None:
        document = self.parse_conversation(messages)
        if document is not None:
            return document

        document = parse_ai_response(ai_response)
        if document is not None:
            logger.info("Parsed document from current assistant reply")
            return document

        previous = next((m for m in reversed(history) if m.role == "assistant"), None)
        if previous is not None:
            document = parse_ai_response(previous.content)
            if document is not None:
                logger.info("Parsed document from previous assistant reply")
        return document

    def handle_text_turn(
        self,
        history: Sequence[ChatMessage],
        user_message: str,
        ai_response: str,
        should_create: bool = False,
    ) -> ChatReply:
        """Decide what to show for one text turn.

        Args:
            history: Earlier turns, oldest first
            user_message: What the user just said
            ai_response: The chat model's reply to it
            should_create: Creation flag reported by the chat service

        Returns:
            ChatReply with the plain reply, a follow-up question, or a
            prepared document with its form payload
        """
        if not (should_create or should_create_document(user_message, ai_response)):
            return ChatReply(content=ai_response)

        messages = [
            *history,
            ChatMessage(role="user", content=user_message),
            ChatMessage(role="assistant", content=ai_response),
        ]
        document = self._parse_with_fallbacks(history, messages, ai_response)
        if document is None:
            logger.info("No document data found in conversation")
            return ChatReply(content=f"{ai_response}\n\n{UNPARSED_NOTICE}")

        validation = self.validator.validate(to_document_data(document), document.type)
        draft = draft_from_document(document)

        if not validation.is_complete:
            question = self.follow_up.generate(validation.missing_required, document.type)
            return ChatReply(
                content=question,
                document_type=document.type,
                draft=draft,
                validation=validation,
            )

        content = (
            f"✓ I've prepared the {document.type} for you!\n\n"
            f"Client: {document.client.name}\n"
            f"Total: {document.currency} {document.total:.2f}\n\n"
            "Click the button below to review and save it."
        )
        return ChatReply(
            content=content,
            document_type=document.type,
            form_payload=encode_form_payload(draft),
            draft=draft,
            validation=validation,
        )

    def send_turn(
        self,
        history: Sequence[ChatMessage],
        user_message: str,
        complete: ChatCompletion,
    ) -> ChatReply:
        """Run a full text turn: chat completion, then document handling.

        Any error is logged and answered with a generic apology.
        """
        try:
            ai_response, should_create = complete(history, user_message)
            return self.handle_text_turn(history, user_message, ai_response, should_create)
        except Exception as e:
            logger.error(f"Chat turn failed: {e}", exc_info=True)
            return ChatReply(content=ERROR_REPLY)

    def handle_upload(
        self,
        image_base64: str,
        mime_type: str,
        prompt: str | None = None,
        document_type: DocumentType | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ChatReply:
        """Extract a document from an uploaded image and answer in chat.

        Args:
            image_base64: Base64-encoded image
            mime_type: Image MIME type
            prompt: Optional user instruction sent with the image
            document_type: Type to validate against; detected type otherwise
            cancel_token: Token the caller sets to abandon the extraction

        Returns:
            ChatReply with the extraction summary or a follow-up question

        Raises:
            RuntimeError: If no extraction provider is configured
        """
        if self.provider is None:
            raise RuntimeError("No extraction provider configured")

        result = self.provider.extract_from_image(image_base64, mime_type, prompt, cancel_token)
        if not result.success:
            return ChatReply(content=format_vision_response(result), extraction=result)

        if document_type is None:
            if result.document_type in ("quote", "invoice"):
                document_type = result.document_type
            else:
                document_type = self.settings.default_document_type

        validation = self.validator.validate(result.data, document_type)
        if not validation.is_complete:
            return ChatReply(
                content=self.follow_up.generate(validation.missing_required, document_type),
                document_type=document_type,
                validation=validation,
                extraction=result,
            )

        draft = draft_from_document_data(result.data, document_type)
        return ChatReply(
            content=format_vision_response(result),
            document_type=document_type,
            form_payload=encode_form_payload(draft),
            draft=draft,
            validation=validation,
            extraction=result,
        )
