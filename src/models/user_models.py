"""Pydantic models for in-memory user profiles."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.constants import PLACEHOLDER_NAME


class UserProfile(BaseModel):
    """What the bot remembers about a Messenger user for this process."""

    sender_id: str = Field(..., description="Facebook User ID (PSID)")
    name: str | None = Field(
        default=None, description="Captured display name (None while awaiting one)"
    )
    last_seen: datetime = Field(default_factory=datetime.now)

    @property
    def has_name(self) -> bool:
        return bool(self.name)

    @property
    def display_name(self) -> str:
        """Name to address the user by, falling back to the placeholder."""
        return self.name or PLACEHOLDER_NAME
