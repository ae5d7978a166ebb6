"""Messaging abstraction protocols for decoupling from Facebook API.

This module provides a Protocol-based abstraction for messaging services,
allowing the conversation handler to:
- Send any outbound message shape without knowing the transport
- Run against an in-memory recorder in tests and the local chat CLI
- Support dependency injection for cleaner architecture
"""

from typing import Protocol

from src.models.message_models import OutboundMessage, SendResult


class MessagingService(Protocol):
    """Protocol for delivering outbound messages to a user."""

    async def send(
        self,
        recipient_id: str,
        message: OutboundMessage,
    ) -> SendResult:
        """Send message to recipient.

        Args:
            recipient_id: Platform-specific user identifier
            message: Message shape to deliver

        Returns:
            SendResult for the single delivery attempt
        """
        ...


class FacebookMessagingService:
    """Facebook Messenger implementation of MessagingService.

    Example:
        >>> service = FacebookMessagingService(page_access_token="...")
        >>> result = await service.send("user123", TextMessage(text="Hello!"))
        >>> result.ok
        True
    """

    def __init__(self, page_access_token: str):
        """Initialize with Facebook Page access token.

        Args:
            page_access_token: Facebook Page access token for API calls
        """
        if not page_access_token:
            raise ValueError("page_access_token is required")
        self._token = page_access_token

    async def send(self, recipient_id: str, message: OutboundMessage) -> SendResult:
        from src.services.facebook_service import send_message

        return await send_message(
            page_access_token=self._token,
            recipient_id=recipient_id,
            message=message,
        )


class RecordingMessagingService:
    """In-memory implementation that records every message it is given.

    Used by tests in place of the Facebook service.

    Example:
        >>> service = RecordingMessagingService()
        >>> await service.send("user123", TextMessage(text="Test message"))
        >>> service.sent_messages
        [('user123', TextMessage(text='Test message'))]
    """

    def __init__(self, should_fail_send: bool = False):
        """Initialize recorder.

        Args:
            should_fail_send: Whether send should report a failed delivery
        """
        self._should_fail_send = should_fail_send
        self.sent_messages: list[tuple[str, OutboundMessage]] = []

    async def send(self, recipient_id: str, message: OutboundMessage) -> SendResult:
        """Record sent message and return configured result."""
        self.sent_messages.append((recipient_id, message))
        if self._should_fail_send:
            return SendResult(ok=False, status_code=500, error="simulated failure")
        return SendResult(ok=True, status_code=200)

    def messages_for(self, recipient_id: str) -> list[OutboundMessage]:
        return [m for rid, m in self.sent_messages if rid == recipient_id]


def get_messaging_service(page_access_token: str) -> FacebookMessagingService:
    """Factory function to get a MessagingService implementation.

    Args:
        page_access_token: Facebook Page access token

    Returns:
        MessagingService implementation (currently Facebook)
    """
    return FacebookMessagingService(page_access_token=page_access_token)
