"""FastAPI application initialization."""

from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration

from src.api import health, webhook
from src.config import get_settings
from src.constants import ROOT_STATUS_TEXT
from src.logging_config import setup_logfire
from src.services.profile_store import get_profile_store
from src.services.reply_composer import use_runtime_locale


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()

    setup_logfire(app)
    use_runtime_locale()

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            send_default_pii=False,
            integrations=[FastApiIntegration()],
        )

    # Profiles live exactly as long as the process
    app.state.profile_store = get_profile_store()

    logfire.info(
        "Application startup complete",
        model=settings.openai_model,
        environment=settings.env,
        voice_configured=bool(settings.voice_sample_url),
    )

    yield

    logfire.info(
        "Application shutdown complete",
        known_users=len(app.state.profile_store),
    )


app = FastAPI(
    title="SweetMix Messenger Bot",
    description="Flirty-but-safe Bengali-English Messenger bot backed by a chat completion API",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(webhook.router, prefix="/webhook", tags=["webhook"])


@app.get("/", response_class=PlainTextResponse)
def root():
    """Root endpoint."""
    return ROOT_STATUS_TEXT


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.env == "local",
    )
