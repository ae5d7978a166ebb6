"""Tests for Facebook service."""

import json

import httpx
import pytest
import respx

from src.constants import FACEBOOK_SEND_API_URL
from src.models.message_models import (
    AudioAttachment,
    ButtonTemplateMessage,
    ImageAttachment,
    PostbackButton,
    QuickRepliesMessage,
    QuickReplyOption,
    SendResult,
    TextMessage,
)
from src.services.facebook_service import build_send_payload, send_message
from src.services.messaging_protocol import (
    FacebookMessagingService,
    RecordingMessagingService,
    get_messaging_service,
)


class TestBuildSendPayload:
    """Test the Send API envelope."""

    def test_text_envelope(self):
        payload = build_send_payload("user-1", TextMessage(text="hi"))

        assert payload == {
            "recipient": {"id": "user-1"},
            "messaging_type": "RESPONSE",
            "message": {"text": "hi"},
        }

    def test_quick_replies_envelope(self):
        message = QuickRepliesMessage(
            text="Pick",
            options=[QuickReplyOption(title="Skip", payload="SKIP_NAME")],
        )

        payload = build_send_payload("user-1", message)

        assert payload["messaging_type"] == "RESPONSE"
        assert payload["message"]["quick_replies"] == [
            {"content_type": "text", "title": "Skip", "payload": "SKIP_NAME"}
        ]

    def test_button_template_envelope(self):
        message = ButtonTemplateMessage(
            text="hello",
            buttons=[PostbackButton(title="Send Image 📸", payload="IMAGE")],
        )

        payload = build_send_payload("user-1", message)

        template = payload["message"]["attachment"]
        assert template["type"] == "template"
        assert template["payload"]["template_type"] == "button"
        assert template["payload"]["text"] == "hello"
        assert template["payload"]["buttons"] == [
            {"type": "postback", "title": "Send Image 📸", "payload": "IMAGE"}
        ]

    def test_attachments_have_no_messaging_type(self):
        image = build_send_payload("user-1", ImageAttachment(url="https://x/a.jpg"))
        audio = build_send_payload("user-1", AudioAttachment(url="https://x/a.mp3"))

        assert "messaging_type" not in image
        assert "messaging_type" not in audio
        assert image["message"]["attachment"]["payload"] == {
            "url": "https://x/a.jpg",
            "is_reusable": True,
        }
        assert audio["message"]["attachment"] == {
            "type": "audio",
            "payload": {"url": "https://x/a.mp3"},
        }


class TestSendMessage:
    """Test send_message() function."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_send_message_valid_inputs(self, mock_settings):
        """Test send_message() posts the envelope with the access token."""
        route = respx.post(FACEBOOK_SEND_API_URL).mock(
            return_value=httpx.Response(
                200, json={"recipient_id": "user-123", "message_id": "mid.1"}
            )
        )

        result = await send_message(
            page_access_token="test-token",
            recipient_id="user-123",
            message=TextMessage(text="Hello, this is a test message"),
        )

        assert route.called
        request = respx.calls.last.request
        assert request.method == "POST"
        assert request.url.host == "graph.facebook.com"
        assert request.url.path == "/v20.0/me/messages"
        assert request.url.params["access_token"] == "test-token"

        payload = json.loads(request.content.decode("utf-8"))
        assert payload["recipient"]["id"] == "user-123"
        assert payload["message"]["text"] == "Hello, this is a test message"

        assert result == SendResult(ok=True, status_code=200, message_id="mid.1")

    @pytest.mark.asyncio
    @respx.mock
    async def test_send_message_error_status_is_swallowed(self, mock_settings, mock_logfire):
        """Non-success status is logged with the body and reported, not raised."""
        respx.post(FACEBOOK_SEND_API_URL).mock(
            return_value=httpx.Response(
                400, json={"error": {"message": "Invalid access token"}}
            )
        )

        result = await send_message(
            page_access_token="invalid-token",
            recipient_id="user-123",
            message=TextMessage(text="Test message"),
        )

        assert result.ok is False
        assert result.status_code == 400
        assert "Invalid access token" in result.error
        mock_logfire.error.assert_called_once()
        kwargs = mock_logfire.error.call_args.kwargs
        assert kwargs["status_code"] == 400
        assert "Invalid access token" in kwargs["response_body"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_send_message_network_error_is_swallowed(self, mock_settings):
        """Transport errors become a failed result."""
        respx.post(FACEBOOK_SEND_API_URL).mock(
            side_effect=httpx.ConnectError("Connection failed")
        )

        result = await send_message(
            page_access_token="test-token",
            recipient_id="user-123",
            message=TextMessage(text="Test message"),
        )

        assert result.ok is False
        assert result.status_code is None
        assert "ConnectError" in result.error

    @pytest.mark.asyncio
    @respx.mock
    async def test_send_message_single_attempt(self, mock_settings):
        """Failures are not retried."""
        route = respx.post(FACEBOOK_SEND_API_URL).mock(
            return_value=httpx.Response(500, text="oops")
        )

        await send_message(
            page_access_token="test-token",
            recipient_id="user-123",
            message=ImageAttachment(url="https://x/a.jpg"),
        )

        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_recipient_is_masked_in_logs(self, mock_settings, mock_logfire):
        respx.post(FACEBOOK_SEND_API_URL).mock(
            return_value=httpx.Response(200, json={"message_id": "mid.2"})
        )

        await send_message(
            page_access_token="test-token",
            recipient_id="1234567890",
            message=TextMessage(text="hi"),
        )

        logged = [c.kwargs["recipient_id"] for c in mock_logfire.info.call_args_list]
        assert logged and all(r == "12******90" for r in logged)


class TestMessagingServices:
    """Test MessagingService implementations."""

    def test_facebook_service_requires_token(self):
        with pytest.raises(ValueError):
            FacebookMessagingService(page_access_token="")

    def test_factory_returns_facebook_service(self):
        assert isinstance(get_messaging_service("token"), FacebookMessagingService)

    @pytest.mark.asyncio
    @respx.mock
    async def test_facebook_service_sends(self, mock_settings):
        respx.post(FACEBOOK_SEND_API_URL).mock(
            return_value=httpx.Response(200, json={"message_id": "mid.3"})
        )
        service = FacebookMessagingService(page_access_token="token")

        result = await service.send("user-1", TextMessage(text="hi"))

        assert result.ok is True
        assert result.message_id == "mid.3"

    @pytest.mark.asyncio
    async def test_recording_service(self):
        service = RecordingMessagingService()

        result = await service.send("user-1", TextMessage(text="hi"))

        assert result.ok is True
        assert service.sent_messages == [("user-1", TextMessage(text="hi"))]
        assert service.messages_for("other") == []
