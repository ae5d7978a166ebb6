"""Shared pytest fixtures and configuration.

Fixture Categories:
1. Collaborators: recording_messaging, profile_store, mock_completion_client
2. Randomness: fixed_random (deterministic RandomSource factory)
3. Processor: make_processor (MessageProcessor wired to in-memory collaborators)
4. Infrastructure: mock_settings, mock_logfire, test_client, respx_mock
"""

import os
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")
# Required settings so get_settings() works without a .env file
os.environ.setdefault("FACEBOOK_PAGE_ACCESS_TOKEN", "test-page-token")
os.environ.setdefault("FACEBOOK_VERIFY_TOKEN", "test-verify-token")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")

import respx

from src.services.completion_service import CompletionClient
from src.services.messaging_protocol import RecordingMessagingService
from src.services.message_processor import MessageProcessor
from src.services.profile_store import InMemoryProfileStore
from src.services.reply_composer import ReplyComposer

# Draw that misses both cosmetic branches (plain text reply)
PLAIN_TEXT_DRAW = 0.99


class FixedRandom:
    """RandomSource returning scripted draws and a fixed pool index."""

    def __init__(self, draws=(PLAIN_TEXT_DRAW,), choice_index: int = 0):
        self._draws = list(draws)
        self._position = 0
        self.choice_index = choice_index
        self.random_calls = 0

    def random(self) -> float:
        value = self._draws[min(self._position, len(self._draws) - 1)]
        self._position += 1
        self.random_calls += 1
        return value

    def choice(self, seq):
        return seq[self.choice_index % len(seq)]


@pytest.fixture
def respx_mock():
    """Respx mock fixture for HTTP mocking."""
    with respx.mock:
        yield respx


@pytest.fixture
def fixed_random():
    """Factory for deterministic random sources."""
    return FixedRandom


@pytest.fixture
def recording_messaging():
    """Messaging service that records every outbound message."""
    return RecordingMessagingService()


@pytest.fixture
def profile_store():
    """Fresh in-memory profile store."""
    return InMemoryProfileStore()


@pytest.fixture
def mock_completion_client():
    """CompletionClient mock answering every prompt with a fixed reply."""
    client = AsyncMock(spec=CompletionClient)
    client.complete = AsyncMock(return_value="Tumi khub sweet! 💖")
    return client


@pytest.fixture
def make_processor(recording_messaging, profile_store, mock_completion_client):
    """Build a MessageProcessor wired to in-memory collaborators.

    Keyword arguments:
        draws: scripted random() values for the cosmetic variant draw
        choice_index: pool index returned by choice()
        voice_sample_url: configured audio clip, None for the hint text
    """

    def _make(draws=(PLAIN_TEXT_DRAW,), choice_index=0, voice_sample_url=None):
        composer = ReplyComposer(
            rng=FixedRandom(draws=draws, choice_index=choice_index),
            voice_sample_url=voice_sample_url,
        )
        return MessageProcessor(
            messaging_service=recording_messaging,
            profile_store=profile_store,
            completion_client=mock_completion_client,
            composer=composer,
        )

    return _make


@pytest.fixture
def named_user(profile_store):
    """A user who has already told the bot their name."""
    profile_store.set_name("user-1", "Rupa")
    return "user-1"


@pytest.fixture
def mock_settings(monkeypatch):
    """Mock application settings."""
    from src.config import Settings

    settings = Settings(
        facebook_page_access_token="test-page-token",
        facebook_verify_token="test-verify-token",
        openai_api_key="test-openai-key",
        voice_sample_url=None,
        env="local",
        logfire_token=None,
    )

    monkeypatch.setattr("src.config.get_settings", lambda: settings)
    # Patch where get_settings is used so request handlers see the mock
    monkeypatch.setattr("src.main.get_settings", lambda: settings)
    monkeypatch.setattr("src.api.webhook.get_settings", lambda: settings)
    monkeypatch.setattr("src.logging_config.get_settings", lambda: settings)
    monkeypatch.setattr("src.services.facebook_service.get_settings", lambda: settings)
    monkeypatch.setattr("src.services.completion_service.get_settings", lambda: settings)
    monkeypatch.setattr("src.services.message_processor.get_settings", lambda: settings)
    return settings


@pytest.fixture
def mock_logfire(monkeypatch):
    """
    Mock Logfire for testing without actual logging.

    Patches the module-level logfire imports in our code so calls can be
    asserted on.
    """
    from contextlib import contextmanager

    @contextmanager
    def mock_span(*args, **kwargs):
        yield {}

    mock_logfire_module = MagicMock()
    mock_logfire_module.info = Mock()
    mock_logfire_module.debug = Mock()
    mock_logfire_module.warning = Mock()
    mock_logfire_module.error = Mock()
    mock_logfire_module.span = mock_span
    mock_logfire_module.configure = Mock()
    mock_logfire_module.instrument_fastapi = Mock()
    mock_logfire_module.instrument_pydantic = Mock()

    monkeypatch.setattr("src.main.logfire", mock_logfire_module)
    monkeypatch.setattr("src.logging_config.logfire", mock_logfire_module)
    monkeypatch.setattr("src.services.facebook_service.logfire", mock_logfire_module)
    monkeypatch.setattr("src.services.completion_service.logfire", mock_logfire_module)
    monkeypatch.setattr("src.services.profile_store.logfire", mock_logfire_module)
    monkeypatch.setattr("src.services.message_processor.logfire", mock_logfire_module)

    return mock_logfire_module


@pytest.fixture
def test_client(mock_settings, mock_logfire):
    """FastAPI TestClient for E2E tests."""
    from fastapi.testclient import TestClient

    from src.main import app

    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def override_processor(make_processor):
    """Route webhook requests through an in-memory MessageProcessor."""
    from src.main import app
    from src.services.message_processor import get_message_processor

    def _override(**kwargs) -> MessageProcessor:
        processor = make_processor(**kwargs)
        app.dependency_overrides[get_message_processor] = lambda: processor
        return processor

    yield _override
    app.dependency_overrides.clear()
