"""Send messages to Facebook Graph API service."""

import time
from typing import Any

import httpx
import logfire

from src.config import get_settings
from src.constants import FACEBOOK_SEND_API_URL, LOGGED_RESPONSE_BODY_CHARS
from src.logging_config import mask_pii
from src.models.message_models import OutboundMessage, SendResult


def build_send_payload(recipient_id: str, message: OutboundMessage) -> dict[str, Any]:
    """Wrap a message shape in the Send API envelope."""
    payload: dict[str, Any] = {"recipient": {"id": recipient_id}}
    if message.messaging_type:
        payload["messaging_type"] = message.messaging_type
    payload["message"] = message.to_message_body()
    return payload


async def send_message(
    page_access_token: str,
    recipient_id: str,
    message: OutboundMessage,
) -> SendResult:
    """
    Send one message via the Facebook Send API.

    Makes a single attempt. Failures are logged and reported through the
    returned SendResult, never raised.

    Args:
        page_access_token: Facebook Page access token
        recipient_id: Facebook user ID (PSID) to send message to
        message: Message shape to send

    Returns:
        SendResult describing the outcome
    """
    start_time = time.time()
    message_type = type(message).__name__

    logfire.info(
        "Sending Facebook message",
        recipient_id=mask_pii(recipient_id),
        message_type=message_type,
    )

    params = {"access_token": page_access_token}
    payload = build_send_payload(recipient_id, message)

    try:
        settings = get_settings()
        async with httpx.AsyncClient(
            timeout=settings.facebook_api_timeout_seconds
        ) as client:
            response = await client.post(
                FACEBOOK_SEND_API_URL, params=params, json=payload
            )
    except httpx.RequestError as e:
        elapsed = time.time() - start_time
        logfire.error(
            "Facebook API request error",
            recipient_id=mask_pii(recipient_id),
            message_type=message_type,
            error=str(e),
            error_type=type(e).__name__,
            response_time_ms=elapsed * 1000,
        )
        return SendResult(ok=False, error=f"{type(e).__name__}: {e}")

    elapsed = time.time() - start_time

    if response.is_success:
        try:
            data = response.json()
        except ValueError:
            data = None
        message_id = data.get("message_id") if isinstance(data, dict) else None
        logfire.info(
            "Facebook message sent successfully",
            recipient_id=mask_pii(recipient_id),
            message_type=message_type,
            status_code=response.status_code,
            message_id=message_id,
            response_time_ms=elapsed * 1000,
        )
        return SendResult(
            ok=True, status_code=response.status_code, message_id=message_id
        )

    body = response.text[:LOGGED_RESPONSE_BODY_CHARS]
    logfire.error(
        "Facebook message send failed",
        recipient_id=mask_pii(recipient_id),
        message_type=message_type,
        status_code=response.status_code,
        response_body=body,
        response_time_ms=elapsed * 1000,
    )
    return SendResult(ok=False, status_code=response.status_code, error=body)
