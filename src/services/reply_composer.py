"""Build outbound replies and draw cosmetic variants.

All randomness flows through an injectable RandomSource so tests can pin
each branch. ``random.Random`` satisfies the protocol.
"""

from __future__ import annotations

import locale
import logging
import random
from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, TypeVar

from src.constants import (
    BUTTON_TEMPLATE_PROBABILITY,
    DATE_TEMPLATE,
    IMAGE_FOLLOW_UP_PROBABILITY,
    MENU_TEXT,
    NAME_CAPTURED_TEMPLATE,
    NAME_PROMPT_TEXT,
    PAYLOAD_CUTE,
    PAYLOAD_IMAGE,
    PAYLOAD_MENU,
    PAYLOAD_SKIP_NAME,
    PAYLOAD_VOICE,
    SAFE_IMAGE_POOL,
    TIME_TEMPLATE,
    VOICE_NOT_CONFIGURED_TEXT,
)
from src.models.message_models import (
    AudioAttachment,
    ButtonTemplateMessage,
    ImageAttachment,
    OutboundMessage,
    PostbackButton,
    QuickRepliesMessage,
    QuickReplyOption,
    TextMessage,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def use_runtime_locale() -> bool:
    """Adopt the environment's LC_TIME so time and date replies use its format.

    Returns False, leaving the current locale in place, when the environment
    names a locale the system does not have.
    """
    try:
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error as e:
        logger.warning("Could not apply runtime time locale: %s", e)
        return False
    return True


class RandomSource(Protocol):
    """Source of random decisions."""

    def random(self) -> float: ...

    def choice(self, seq: Sequence[T]) -> T: ...


MENU_OPTIONS = [
    QuickReplyOption(title="Cute Text", payload=PAYLOAD_CUTE),
    QuickReplyOption(title="Send Image", payload=PAYLOAD_IMAGE),
    QuickReplyOption(title="Voice Note", payload=PAYLOAD_VOICE),
]

START_OPTIONS = [
    QuickReplyOption(title="Show Menu", payload=PAYLOAD_MENU),
    QuickReplyOption(title="Send Image", payload=PAYLOAD_IMAGE),
]

SKIP_OPTIONS = [QuickReplyOption(title="Skip", payload=PAYLOAD_SKIP_NAME)]

ENGAGEMENT_BUTTONS = [
    PostbackButton(title="Send Image 📸", payload=PAYLOAD_IMAGE),
    PostbackButton(title="Voice Note 🎙️", payload=PAYLOAD_VOICE),
]


class ReplyComposer:
    """Compose the fixed reply shapes the bot sends."""

    def __init__(
        self,
        rng: RandomSource | None = None,
        image_pool: Sequence[str] = SAFE_IMAGE_POOL,
        voice_sample_url: str | None = None,
        image_follow_up_probability: float = IMAGE_FOLLOW_UP_PROBABILITY,
        button_template_probability: float = BUTTON_TEMPLATE_PROBABILITY,
    ):
        """
        Args:
            rng: Random decision source; a fresh random.Random by default
            image_pool: URLs random images are drawn from
            voice_sample_url: Audio clip for voice replies, if configured
            image_follow_up_probability: Chance a completion reply is
                followed by an image
            button_template_probability: Chance, among the remaining draws,
                that a completion reply is wrapped in buttons
        """
        if not image_pool:
            raise ValueError("image_pool must not be empty")
        self.rng: RandomSource = rng or random.Random()
        self.image_pool = tuple(image_pool)
        self.voice_sample_url = voice_sample_url
        self.image_follow_up_probability = image_follow_up_probability
        self.button_template_probability = button_template_probability

    def text(self, text: str) -> TextMessage:
        return TextMessage(text=text)

    def menu(self) -> QuickRepliesMessage:
        return QuickRepliesMessage(text=MENU_TEXT, options=list(MENU_OPTIONS))

    def name_prompt(self) -> QuickRepliesMessage:
        return QuickRepliesMessage(text=NAME_PROMPT_TEXT, options=list(SKIP_OPTIONS))

    def name_captured(self, name: str) -> QuickRepliesMessage:
        return QuickRepliesMessage(
            text=NAME_CAPTURED_TEMPLATE.format(name=name),
            options=list(START_OPTIONS),
        )

    def random_image(self) -> ImageAttachment:
        return ImageAttachment(url=self.rng.choice(self.image_pool))

    def voice(self) -> OutboundMessage:
        """Voice note, or a hint that no audio sample is configured."""
        if self.voice_sample_url:
            return AudioAttachment(url=self.voice_sample_url)
        return TextMessage(text=VOICE_NOT_CONFIGURED_TEXT)

    def current_time(self, now: datetime | None = None) -> TextMessage:
        # %X / %x follow the process locale and local timezone
        now = now or datetime.now()
        return TextMessage(text=TIME_TEMPLATE.format(time=now.strftime("%X")))

    def current_date(self, now: datetime | None = None) -> TextMessage:
        now = now or datetime.now()
        return TextMessage(text=DATE_TEMPLATE.format(date=now.strftime("%x")))

    def completion_reply(self, reply: str) -> list[OutboundMessage]:
        """
        Wrap completion text in one of the cosmetic variants.

        Draws are taken in order: first the image follow-up, then (only if
        that missed) the button template. Plain text otherwise.

        Returns:
            Messages to send, in order.
        """
        if self.rng.random() < self.image_follow_up_probability:
            return [TextMessage(text=reply), self.random_image()]
        if self.rng.random() < self.button_template_probability:
            return [ButtonTemplateMessage(text=reply, buttons=list(ENGAGEMENT_BUTTONS))]
        return [TextMessage(text=reply)]
