"""Application-wide constants.

This module centralizes canned texts, endpoints and tuning values so that
handlers and composers share a single source of truth.
"""

# =============================================================================
# Facebook API
# =============================================================================

# Facebook Graph API version
FACEBOOK_GRAPH_API_VERSION = "v20.0"

# Send API endpoint (access token goes in the query string)
FACEBOOK_SEND_API_URL = (
    f"https://graph.facebook.com/{FACEBOOK_GRAPH_API_VERSION}/me/messages"
)

# Timeout for Facebook Graph API calls (seconds)
FACEBOOK_API_TIMEOUT_SECONDS = 10.0

# Messaging type attached to text-bearing replies
MESSAGING_TYPE_RESPONSE = "RESPONSE"

# Response bodies are truncated to this many characters in logs
LOGGED_RESPONSE_BODY_CHARS = 500

# =============================================================================
# Completion API
# =============================================================================

OPENAI_CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"

DEFAULT_COMPLETION_MODEL = "gpt-3.5-turbo"

COMPLETION_MAX_TOKENS = 120

COMPLETION_TEMPERATURE = 0.9

# Timeout for completion API calls (seconds)
COMPLETION_TIMEOUT_SECONDS = 30.0

COMPLETION_FALLBACK_REPLY = "Hmm, say that again na? 😊"

# =============================================================================
# Profiles
# =============================================================================

# Name used when the user skips introductions or before one is captured
PLACEHOLDER_NAME = "প্রিয়"

MAX_NAME_LENGTH_CHARS = 30

# =============================================================================
# Postback payload tags
# =============================================================================

PAYLOAD_MENU = "MENU"
PAYLOAD_IMAGE = "IMAGE"
PAYLOAD_VOICE = "VOICE"
PAYLOAD_SKIP_NAME = "SKIP_NAME"
PAYLOAD_CUTE = "CUTE"

POSTBACK_PAYLOADS = frozenset(
    {PAYLOAD_MENU, PAYLOAD_IMAGE, PAYLOAD_VOICE, PAYLOAD_SKIP_NAME}
)

# =============================================================================
# Cosmetic variety
# =============================================================================

# Probability of following a completion reply with a pooled image
IMAGE_FOLLOW_UP_PROBABILITY = 0.2

# Probability (of the remaining draws) of wrapping the reply in buttons
BUTTON_TEMPLATE_PROBABILITY = 0.25

SAFE_IMAGE_POOL = (
    "https://images.unsplash.com/photo-1500530855697-b586d89ba3ee?q=80&w=1200&auto=format",
    "https://images.unsplash.com/photo-1511988617509-a57c8a288659?q=80&w=1200&auto=format",
    "https://images.unsplash.com/photo-1500534314209-a25ddb2bd429?q=80&w=1200&auto=format",
)

# =============================================================================
# Canned replies
# =============================================================================

ROOT_STATUS_TEXT = "SweetMix Messenger Bot is running 💖"

ATTACHMENT_ACK_TEXT = "Nice! Got your attachment 😄"
GENERIC_ACK_TEXT = "Got it! 😊"
VOICE_NOT_CONFIGURED_TEXT = "Set VOICE_SAMPLE_URL in .env to send voice notes 🎙️"
NAME_PROMPT_TEXT = "Hey! তোমার নাম কী? (Type: ‘আমার নাম …’ or ‘My name is …’)"
NAME_CAPTURED_TEMPLATE = "Cute name, {name}! 💖 Shall we start?"
SKIP_NAME_ACK_TEXT = f"Alright! I’ll call you {PLACEHOLDER_NAME} 💖"
MENU_TEXT = "Pick one, sweetie 💞"
TIME_TEMPLATE = "Time now: {time} ⏰"
DATE_TEMPLATE = "Date: {date} 📅"

# =============================================================================
# Server
# =============================================================================

DEFAULT_PORT = 3000
