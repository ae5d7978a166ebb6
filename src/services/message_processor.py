"""Conversation handling for inbound Messenger events.

MessageProcessor routes each event to postback or text handling and sends
the resulting replies in order. It owns the per-user name capture flow:

- A user without a name is asked for one until an introduction such as
  "My name is Rupa" is recognized, or they tap Skip.
- A named user's text is matched against keyword intents; unmatched text is
  answered by the completion service and dressed in a random variant.

Collaborators (messaging, profiles, completions, composer, matcher) are
injected, with process-wide defaults resolved lazily.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import logfire

from src.config import get_settings
from src.constants import (
    ATTACHMENT_ACK_TEXT,
    GENERIC_ACK_TEXT,
    PAYLOAD_IMAGE,
    PAYLOAD_MENU,
    PAYLOAD_SKIP_NAME,
    PAYLOAD_VOICE,
    PLACEHOLDER_NAME,
    POSTBACK_PAYLOADS,
    SKIP_NAME_ACK_TEXT,
)
from src.logging_config import mask_pii
from src.models.message_models import OutboundMessage, SendResult
from src.models.messenger import InboundEvent, MessageEvent, PostbackEvent
from src.models.user_models import UserProfile
from src.services.completion_service import CompletionClient, get_completion_client
from src.services.intent_matcher import Intent, IntentMatcher, extract_name
from src.services.messaging_protocol import MessagingService, get_messaging_service
from src.services.profile_store import ProfileStore, get_profile_store
from src.services.reply_composer import ReplyComposer

logger = logging.getLogger(__name__)

IntentHandler = Callable[[UserProfile, str], Awaitable[list[OutboundMessage]]]


class MessageProcessorError(Exception):
    """Base exception for MessageProcessor errors."""

    pass


class UnhandledIntentError(MessageProcessorError):
    """Raised when the matcher yields an intent with no registered handler."""

    pass


class MessageProcessor:
    """Decide and send replies for inbound conversational events.

    Example:
        >>> processor = MessageProcessor()
        >>> await processor.process(PostbackEvent(sender_id="u1", payload="MENU"))

        # With in-memory collaborators for testing:
        >>> processor = MessageProcessor(
        ...     messaging_service=RecordingMessagingService(),
        ...     profile_store=InMemoryProfileStore(),
        ...     completion_client=mock_completion,
        ...     composer=ReplyComposer(rng=random.Random(7)),
        ... )
    """

    def __init__(
        self,
        messaging_service: MessagingService | None = None,
        profile_store: ProfileStore | None = None,
        completion_client: CompletionClient | None = None,
        composer: ReplyComposer | None = None,
        intent_matcher: IntentMatcher | None = None,
    ):
        """Initialize the message processor.

        Args:
            messaging_service: Delivers outbound messages. Defaults to the
                               Facebook service for the configured page token.
            profile_store: Per-user memory. Defaults to the process-wide store.
            completion_client: Answers fallback text. Defaults to the
                               process-wide client.
            composer: Builds replies. Defaults to one configured with the
                      voice sample URL from settings.
            intent_matcher: Keyword classifier. Defaults to the built-in rules.
        """
        self._messaging_service = messaging_service
        self._profile_store = profile_store
        self._completion_client = completion_client
        self._composer = composer
        self.intent_matcher = intent_matcher or IntentMatcher()

        self._intent_handlers: dict[Intent, IntentHandler] = {
            Intent.MENU: self._reply_menu,
            Intent.TIME: self._reply_time,
            Intent.DATE: self._reply_date,
            Intent.IMAGE: self._reply_image,
            Intent.VOICE: self._reply_voice,
            Intent.FALLBACK: self._reply_completion,
        }
        self._postback_handlers: dict[str, Callable[[str], Awaitable[list[SendResult]]]] = {
            PAYLOAD_MENU: self._postback_menu,
            PAYLOAD_IMAGE: self._postback_image,
            PAYLOAD_VOICE: self._postback_voice,
            PAYLOAD_SKIP_NAME: self._postback_skip_name,
        }

    @property
    def messaging_service(self) -> MessagingService:
        if self._messaging_service is None:
            self._messaging_service = get_messaging_service(
                get_settings().facebook_page_access_token
            )
        return self._messaging_service

    @property
    def profile_store(self) -> ProfileStore:
        if self._profile_store is None:
            self._profile_store = get_profile_store()
        return self._profile_store

    @property
    def completion_client(self) -> CompletionClient:
        if self._completion_client is None:
            self._completion_client = get_completion_client()
        return self._completion_client

    @property
    def composer(self) -> ReplyComposer:
        if self._composer is None:
            self._composer = ReplyComposer(
                voice_sample_url=get_settings().voice_sample_url
            )
        return self._composer

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def process(self, event: InboundEvent) -> list[SendResult]:
        """Route one event and send its replies.

        Returns:
            One SendResult per outbound message, in send order.
        """
        if isinstance(event, PostbackEvent):
            return await self.handle_postback(event.sender_id, event.payload)

        if event.is_echo:
            logger.debug("Ignoring echo of our own message")
            return []

        if event.quick_reply_payload in POSTBACK_PAYLOADS:
            return await self.handle_postback(event.sender_id, event.quick_reply_payload)

        text = (event.text or "").strip()
        if text:
            return await self.handle_text(event.sender_id, text)

        if event.has_attachment:
            return await self._send_all(
                event.sender_id, [self.composer.text(ATTACHMENT_ACK_TEXT)]
            )

        logger.debug("Message event carried neither text nor attachments")
        return []

    # ------------------------------------------------------------------
    # Text handling
    # ------------------------------------------------------------------

    async def handle_text(self, sender_id: str, text: str) -> list[SendResult]:
        """Handle free text from a user.

        Users without a name go through name capture; named users get
        keyword intents or a completion reply.
        """
        profile = self.profile_store.touch(sender_id)

        if not profile.has_name:
            name = extract_name(text)
            if name is None:
                return await self._send_all(sender_id, [self.composer.name_prompt()])
            profile = self.profile_store.set_name(sender_id, name)
            logfire.info("Captured user name", sender_id=mask_pii(sender_id))
            return await self._send_all(
                sender_id, [self.composer.name_captured(profile.display_name)]
            )

        intent = self.intent_matcher.match(text)
        handler = self._intent_handlers.get(intent)
        if handler is None:
            raise UnhandledIntentError(f"No handler registered for intent: {intent}")

        messages = await handler(profile, text)
        logfire.info(
            "Text handled",
            sender_id=mask_pii(sender_id),
            intent=intent.value,
            reply_count=len(messages),
        )
        return await self._send_all(sender_id, messages)

    async def _reply_menu(self, profile: UserProfile, text: str) -> list[OutboundMessage]:
        return [self.composer.menu()]

    async def _reply_time(self, profile: UserProfile, text: str) -> list[OutboundMessage]:
        return [self.composer.current_time()]

    async def _reply_date(self, profile: UserProfile, text: str) -> list[OutboundMessage]:
        return [self.composer.current_date()]

    async def _reply_image(self, profile: UserProfile, text: str) -> list[OutboundMessage]:
        return [self.composer.random_image()]

    async def _reply_voice(self, profile: UserProfile, text: str) -> list[OutboundMessage]:
        return [self.composer.voice()]

    async def _reply_completion(
        self, profile: UserProfile, text: str
    ) -> list[OutboundMessage]:
        reply = await self.completion_client.complete(text, profile.display_name)
        return self.composer.completion_reply(reply)

    # ------------------------------------------------------------------
    # Postback handling
    # ------------------------------------------------------------------

    async def handle_postback(self, sender_id: str, payload: str) -> list[SendResult]:
        """Run the canned action for a postback tag.

        Unknown tags get a generic acknowledgement.
        """
        self.profile_store.get(sender_id)
        handler = self._postback_handlers.get(payload)
        if handler is None:
            logger.info("Unknown postback payload %r", payload)
            return await self._send_all(sender_id, [self.composer.text(GENERIC_ACK_TEXT)])
        return await handler(sender_id)

    async def _postback_menu(self, sender_id: str) -> list[SendResult]:
        return await self._send_all(sender_id, [self.composer.menu()])

    async def _postback_image(self, sender_id: str) -> list[SendResult]:
        return await self._send_all(sender_id, [self.composer.random_image()])

    async def _postback_voice(self, sender_id: str) -> list[SendResult]:
        return await self._send_all(sender_id, [self.composer.voice()])

    async def _postback_skip_name(self, sender_id: str) -> list[SendResult]:
        self.profile_store.set_name(sender_id, PLACEHOLDER_NAME)
        return await self._send_all(
            sender_id,
            [self.composer.text(SKIP_NAME_ACK_TEXT), self.composer.menu()],
        )

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def _send_all(
        self, sender_id: str, messages: list[OutboundMessage]
    ) -> list[SendResult]:
        """Send messages one after another; failures do not stop the sequence."""
        results = []
        for message in messages:
            result = await self.messaging_service.send(sender_id, message)
            if not result.ok:
                logger.warning(
                    "Delivery of %s failed: %s", type(message).__name__, result.error
                )
            results.append(result)
        return results


_message_processor: MessageProcessor | None = None


def get_message_processor() -> MessageProcessor:
    """Get the process-wide message processor."""
    global _message_processor
    if _message_processor is None:
        _message_processor = MessageProcessor()
    return _message_processor


def reset_message_processor() -> None:
    """Reset the global message processor (primarily for testing)."""
    global _message_processor
    _message_processor = None
