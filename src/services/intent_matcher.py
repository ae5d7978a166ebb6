"""Keyword intent matching and name capture.

Classification is plain substring containment over lowercased, NFC-normalized
text, evaluated in a fixed priority order. Keyword sets mix English and
Bengali synonyms; any member of a set selects its intent.
"""

import re
import unicodedata
from enum import Enum

from src.constants import MAX_NAME_LENGTH_CHARS


class Intent(str, Enum):
    """Intents a named user's free text can resolve to."""

    MENU = "menu"
    TIME = "time"
    DATE = "date"
    IMAGE = "image"
    VOICE = "voice"
    FALLBACK = "fallback"


# Ordered (intent, keywords) rules; first match wins.
KEYWORD_INTENTS: list[tuple[Intent, tuple[str, ...]]] = [
    (Intent.MENU, ("menu", "মেনু")),
    # য় has a precomposed and a nukta spelling; both normalize to the same form
    (Intent.TIME, ("time", "সময়", "\u09b8\u09ae\u09df")),
    (Intent.DATE, ("date", "তারিখ")),
    (Intent.IMAGE, ("image", "ইমেজ", "photo", "ছবি")),
    (Intent.VOICE, ("voice", "ভয়েস", "\u09ad\u09df\u09c7\u09b8", "audio")),
]

# Longer phrasings come first so "আমার নামটা" is not cut short by "আমার নাম".
NAME_CAPTURE_PATTERN = re.compile(
    r"(?<!\w)(?:my\s+name\s+is|আমার\s+নামটা|আমার\s+নাম|i\s+am)\s+",
    re.IGNORECASE,
)

_NAME_TERMINATORS = re.compile(r"[.,!]")


def normalize_text(text: str) -> str:
    """Lowercase and NFC-normalize text for keyword comparison."""
    return unicodedata.normalize("NFC", text).lower()


def extract_name(text: str) -> str | None:
    """
    Pull a display name out of an introduction.

    Takes whatever follows the last name-capture phrasing, cut at the first
    ".", "," or "!", stripped and truncated to MAX_NAME_LENGTH_CHARS.

    Examples:
        >>> extract_name("My name is Rupa!")
        'Rupa'
        >>> extract_name("hello there") is None
        True

    Returns:
        The captured name, or None when no phrasing matches or nothing
        usable follows it.
    """
    matches = list(NAME_CAPTURE_PATTERN.finditer(text))
    if not matches:
        return None

    tail = text[matches[-1].end() :]
    name = _NAME_TERMINATORS.split(tail, maxsplit=1)[0].strip()
    name = name[:MAX_NAME_LENGTH_CHARS].strip()
    return name or None


class IntentMatcher:
    """Classify free text against ordered keyword rules."""

    def __init__(
        self, rules: list[tuple[Intent, tuple[str, ...]]] | None = None
    ) -> None:
        """
        Args:
            rules: Ordered (intent, keywords) pairs. Defaults to KEYWORD_INTENTS.
        """
        self._rules = [
            (intent, tuple(normalize_text(k) for k in keywords))
            for intent, keywords in (rules if rules is not None else KEYWORD_INTENTS)
        ]

    @property
    def intents(self) -> list[Intent]:
        return [intent for intent, _ in self._rules]

    def match(self, text: str) -> Intent:
        """Return the first intent whose keywords appear in the text."""
        lowered = normalize_text(text)
        for intent, keywords in self._rules:
            if any(keyword in lowered for keyword in keywords):
                return intent
        return Intent.FALLBACK
