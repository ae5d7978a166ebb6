"""Facebook webhook endpoints.

GET answers the subscription handshake; POST receives batches of
conversational events. Events are handled inline and the platform is told
200 once the batch has been processed, whatever happened to individual
replies. Only an unexpected exception turns into a 500.
"""

import hmac
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from src.config import get_settings
from src.models.messenger import MessengerWebhookPayload
from src.services.event_dispatcher import dispatch_batch
from src.services.message_processor import MessageProcessor, get_message_processor

logger = logging.getLogger(__name__)
router = APIRouter()


def verify_challenge(
    mode: str | None,
    token: str | None,
    challenge: str | None,
    expected_token: str,
) -> str | None:
    """Return the challenge to echo, or None when verification fails."""
    if mode != "subscribe" or token is None:
        return None
    if not hmac.compare_digest(token.encode("utf-8"), expected_token.encode("utf-8")):
        return None
    return challenge or ""


@router.get("")
async def verify_webhook(request: Request):
    """Facebook webhook verification endpoint."""
    settings = get_settings()

    challenge = verify_challenge(
        mode=request.query_params.get("hub.mode"),
        token=request.query_params.get("hub.verify_token"),
        challenge=request.query_params.get("hub.challenge"),
        expected_token=settings.facebook_verify_token,
    )

    if challenge is not None:
        logger.info("Webhook verified successfully")
        return PlainTextResponse(challenge)

    logger.warning("Webhook verification failed")
    return Response(status_code=403)


@router.post("")
async def handle_webhook(
    request: Request,
    processor: MessageProcessor = Depends(get_message_processor),
):
    """Handle incoming Facebook Messenger webhook events."""
    try:
        body = await request.json()

        try:
            payload = MessengerWebhookPayload.model_validate(body)
        except ValidationError:
            logger.info("Ignoring webhook body that is not a page batch")
            return Response(status_code=404)

        if payload.object != "page":
            logger.info("Ignoring webhook for non-page object %r", payload.object)
            return Response(status_code=404)

        results = await dispatch_batch(payload, processor)
        failed = sum(1 for result in results if not result.ok)
        if failed:
            logger.warning("%d of %d replies were not delivered", failed, len(results))

        return {"status": "ok"}
    except Exception as e:
        logger.error("Error processing webhook batch: %s", e, exc_info=True)
        return Response(status_code=500)
