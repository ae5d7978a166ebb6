"""Unpack webhook batches into inbound events and dispatch them.

Only the first messaging event of each entry is considered. Entries without
events, and events that do not have the expected shape, are skipped one by
one so the rest of the batch is still handled.
"""

import logging
from typing import Any

from src.models.message_models import SendResult
from src.models.messenger import (
    InboundEvent,
    MessageEvent,
    MessengerWebhookPayload,
    PostbackEvent,
)
from src.services.message_processor import MessageProcessor

logger = logging.getLogger(__name__)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str | None:
    if isinstance(value, str):
        return value or None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def parse_messaging_event(raw: Any) -> InboundEvent | None:
    """Turn one raw messaging event into an InboundEvent.

    Returns:
        PostbackEvent when a postback payload is present, MessageEvent when
        a message is present, otherwise None.
    """
    if not isinstance(raw, dict):
        return None

    sender_id = _as_str(_as_dict(raw.get("sender")).get("id"))
    if sender_id is None:
        return None

    payload = _as_str(_as_dict(raw.get("postback")).get("payload"))
    if payload is not None:
        return PostbackEvent(sender_id=sender_id, payload=payload)

    message = raw.get("message")
    if not isinstance(message, dict):
        return None

    text = message.get("text")
    return MessageEvent(
        sender_id=sender_id,
        text=text if isinstance(text, str) else None,
        has_attachment=bool(message.get("attachments")),
        quick_reply_payload=_as_str(_as_dict(message.get("quick_reply")).get("payload")),
        is_echo=message.get("is_echo") is True,
    )


def extract_events(entries: list[Any]) -> list[InboundEvent]:
    """Extract the first messaging event of every entry in a batch."""
    events: list[InboundEvent] = []
    for entry in entries:
        messaging = _as_dict(entry).get("messaging")
        if not isinstance(messaging, list) or not messaging:
            logger.debug("Skipping entry without a messaging event list")
            continue
        if len(messaging) > 1:
            # TODO: decide whether later events in an entry should be handled
            logger.info("Entry has %d events; handling only the first", len(messaging))
        event = parse_messaging_event(messaging[0])
        if event is None:
            logger.debug("Skipping unrecognized messaging event")
            continue
        events.append(event)
    return events


async def dispatch_batch(
    payload: MessengerWebhookPayload, processor: MessageProcessor
) -> list[SendResult]:
    """Process every event of a batch in order.

    Exceptions propagate to the caller so the webhook can report failure.
    """
    results: list[SendResult] = []
    for event in extract_events(payload.entry):
        results.extend(await processor.process(event))
    return results
