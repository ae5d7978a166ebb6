"""Typer CLI: run the server or chat with the bot locally."""

import os

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent.parent
from dotenv import load_dotenv

load_dotenv(_project_root / ".env")
load_dotenv(_project_root / ".env.local")

import asyncio
from typing import Optional

import questionary
import typer

from src.config import get_settings
from src.constants import DEFAULT_COMPLETION_MODEL, POSTBACK_PAYLOADS
from src.models.message_models import (
    AudioAttachment,
    ButtonTemplateMessage,
    ImageAttachment,
    OutboundMessage,
    QuickRepliesMessage,
    SendResult,
    TextMessage,
)
from src.models.messenger import MessageEvent, PostbackEvent
from src.services.message_processor import MessageProcessor
from src.services.profile_store import InMemoryProfileStore
from src.services.reply_composer import ReplyComposer, use_runtime_locale

app = typer.Typer(help="SweetMix Messenger Bot")

LOCAL_SENDER_ID = "local-user"


def render_message(message: OutboundMessage) -> str:
    """Human-readable rendering of an outbound message for the terminal."""
    if isinstance(message, QuickRepliesMessage):
        options = " | ".join(f"{o.title} [{o.payload}]" for o in message.options)
        return f"{message.text}\n  quick replies: {options}"
    if isinstance(message, ButtonTemplateMessage):
        buttons = " | ".join(f"{b.title} [{b.payload}]" for b in message.buttons)
        return f"{message.text}\n  buttons: {buttons}"
    if isinstance(message, ImageAttachment):
        return f"[image] {message.url}"
    if isinstance(message, AudioAttachment):
        return f"[audio] {message.url}"
    if isinstance(message, TextMessage):
        return message.text
    return repr(message)


class ConsoleMessagingService:
    """MessagingService that prints replies instead of calling Facebook."""

    async def send(self, recipient_id: str, message: OutboundMessage) -> SendResult:
        typer.echo(typer.style("Bot: ", fg=typer.colors.MAGENTA) + render_message(message))
        return SendResult(ok=True)


class EchoCompletionClient:
    """Offline stand-in for the completion service."""

    async def complete(self, text: str, name: str | None = None) -> str:
        return f"{name}, you said: {text}"


def parse_local_input(text: str) -> MessageEvent | PostbackEvent:
    """Map a typed line to an event; "/TAG" simulates a button click."""
    if text.startswith("/") and text[1:].upper() in POSTBACK_PAYLOADS:
        return PostbackEvent(sender_id=LOCAL_SENDER_ID, payload=text[1:].upper())
    return MessageEvent(sender_id=LOCAL_SENDER_ID, text=text)


async def _chat_loop(processor: MessageProcessor) -> None:
    typer.echo(
        "\nChat with the bot (type 'quit' or press Enter on an empty line to exit).\n"
        "Simulate button clicks with /MENU, /IMAGE, /VOICE or /SKIP_NAME.\n"
    )
    while True:
        line = await questionary.text("You:").ask_async()
        if line is None or not line.strip() or line.strip().lower() == "quit":
            break
        try:
            await processor.process(parse_local_input(line.strip()))
        except Exception as e:
            typer.echo(f"Error: {e}", err=True)
    typer.echo("Bye! 💖\n")


@app.command()
def chat(
    offline: bool = typer.Option(
        False, "--offline", help="Echo replies instead of calling the completion API"
    ),
):
    """Chat with the bot in the terminal. No Facebook required."""
    voice_sample_url = os.getenv("VOICE_SAMPLE_URL") or None
    if offline:
        completion_client = EchoCompletionClient()
    else:
        from src.services.completion_service import CompletionClient

        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            typer.echo("OPENAI_API_KEY is not set; use --offline to chat without it.", err=True)
            raise typer.Exit(1)
        completion_client = CompletionClient(
            api_key=api_key,
            model=os.getenv("OPENAI_MODEL") or DEFAULT_COMPLETION_MODEL,
            timeout=float(os.getenv("COMPLETION_TIMEOUT_SECONDS", "30")),
        )

    processor = MessageProcessor(
        messaging_service=ConsoleMessagingService(),
        profile_store=InMemoryProfileStore(),
        completion_client=completion_client,
        composer=ReplyComposer(voice_sample_url=voice_sample_url),
    )
    use_runtime_locale()
    asyncio.run(_chat_loop(processor))


@app.command()
def serve(
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Listen port (defaults to the PORT setting)"
    ),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the webhook server."""
    import uvicorn

    listen_port = port or get_settings().port
    typer.echo(f"🚀 Bot up on :{listen_port}")
    uvicorn.run("src.main:app", host="0.0.0.0", port=listen_port, reload=reload)


if __name__ == "__main__":
    app()
