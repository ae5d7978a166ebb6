"""Incoming Facebook Messenger webhook models."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class MessengerWebhookPayload(BaseModel):
    """Facebook webhook payload."""

    object: str
    entry: list[Any] = Field(default_factory=list)


class PostbackEvent(BaseModel):
    """Button click carrying a fixed payload tag."""

    kind: Literal["postback"] = "postback"
    sender_id: str
    payload: str


class MessageEvent(BaseModel):
    """Incoming message: free text, quick-reply tap and/or attachments."""

    kind: Literal["message"] = "message"
    sender_id: str
    text: str | None = None
    has_attachment: bool = False
    quick_reply_payload: str | None = None
    is_echo: bool = False


InboundEvent = Annotated[PostbackEvent | MessageEvent, Field(discriminator="kind")]
