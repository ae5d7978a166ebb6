"""Outgoing Send API message shapes.

Each shape knows how to render the ``message`` body of a Send API request.
Text-bearing shapes are sent with ``messaging_type: RESPONSE``; attachments
go out without a messaging type.
"""

from typing import Any, ClassVar, NamedTuple

from pydantic import BaseModel, Field

from src.constants import MESSAGING_TYPE_RESPONSE


class QuickReplyOption(BaseModel):
    """A tappable suggested reply."""

    title: str
    payload: str


class PostbackButton(BaseModel):
    """A button that sends a postback payload when clicked."""

    title: str
    payload: str


class OutboundMessage(BaseModel):
    """Base class for every message shape the bot can send."""

    messaging_type: ClassVar[str | None] = None

    def to_message_body(self) -> dict[str, Any]:
        raise NotImplementedError


class TextMessage(OutboundMessage):
    """Plain text reply."""

    messaging_type: ClassVar[str | None] = MESSAGING_TYPE_RESPONSE

    text: str

    def to_message_body(self) -> dict[str, Any]:
        return {"text": self.text}


class QuickRepliesMessage(OutboundMessage):
    """Text followed by an ordered set of quick replies."""

    messaging_type: ClassVar[str | None] = MESSAGING_TYPE_RESPONSE

    text: str
    options: list[QuickReplyOption] = Field(default_factory=list)

    def to_message_body(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "quick_replies": [
                {
                    "content_type": "text",
                    "title": option.title,
                    "payload": option.payload,
                }
                for option in self.options
            ],
        }


class ButtonTemplateMessage(OutboundMessage):
    """Text wrapped in a button template with postback buttons."""

    messaging_type: ClassVar[str | None] = MESSAGING_TYPE_RESPONSE

    text: str
    buttons: list[PostbackButton] = Field(default_factory=list)

    def to_message_body(self) -> dict[str, Any]:
        return {
            "attachment": {
                "type": "template",
                "payload": {
                    "template_type": "button",
                    "text": self.text,
                    "buttons": [
                        {
                            "type": "postback",
                            "title": button.title,
                            "payload": button.payload,
                        }
                        for button in self.buttons
                    ],
                },
            }
        }


class ImageAttachment(OutboundMessage):
    """Image sent by URL."""

    url: str

    def to_message_body(self) -> dict[str, Any]:
        return {
            "attachment": {
                "type": "image",
                "payload": {"url": self.url, "is_reusable": True},
            }
        }


class AudioAttachment(OutboundMessage):
    """Audio clip sent by URL."""

    url: str

    def to_message_body(self) -> dict[str, Any]:
        return {"attachment": {"type": "audio", "payload": {"url": self.url}}}


class SendResult(NamedTuple):
    """Outcome of a single Send API call.

    Attributes:
        ok: Whether the platform accepted the message.
        status_code: HTTP status, None when no response was received.
        message_id: Platform message id on success.
        error: Short description of the failure, None on success.
    """

    ok: bool
    status_code: int | None = None
    message_id: str | None = None
    error: str | None = None
