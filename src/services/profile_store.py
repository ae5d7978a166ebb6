"""Process-lifetime user profile store.

Profiles live in memory from process start to process stop. Swapping in a
persistent backend only requires another ProfileStore implementation.
"""

from datetime import datetime
from typing import Protocol

import logfire

from src.models.user_models import UserProfile


class ProfileStore(Protocol):
    """Lookup/update contract used by the conversation handler."""

    def get(self, sender_id: str) -> UserProfile: ...

    def set_name(self, sender_id: str, name: str) -> UserProfile: ...

    def touch(self, sender_id: str) -> UserProfile: ...

    def reset(self, sender_id: str | None = None) -> None: ...


class InMemoryProfileStore:
    """Dict-backed profile store.

    Lookups for unknown users create a default profile lazily and never
    raise. Concurrent updates for the same user are not coordinated.
    """

    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}

    def get(self, sender_id: str) -> UserProfile:
        """Return the profile for a user, creating it on first sight."""
        profile = self._profiles.get(sender_id)
        if profile is None:
            profile = UserProfile(sender_id=sender_id)
            self._profiles[sender_id] = profile
            logfire.debug("Created user profile", profile_count=len(self._profiles))
        return profile

    def set_name(self, sender_id: str, name: str) -> UserProfile:
        profile = self.get(sender_id)
        profile.name = name
        return profile

    def touch(self, sender_id: str) -> UserProfile:
        """Record that the user was just seen."""
        profile = self.get(sender_id)
        profile.last_seen = datetime.now()
        return profile

    def __contains__(self, sender_id: str) -> bool:
        return sender_id in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def reset(self, sender_id: str | None = None) -> None:
        """Forget profiles.

        Args:
            sender_id: If provided, forget only this user. Otherwise forget all.
        """
        if sender_id:
            self._profiles.pop(sender_id, None)
        else:
            self._profiles.clear()


# Global instance
_profile_store: InMemoryProfileStore | None = None


def get_profile_store() -> InMemoryProfileStore:
    """Get the process-wide profile store."""
    global _profile_store
    if _profile_store is None:
        _profile_store = InMemoryProfileStore()
    return _profile_store


def reset_profile_store() -> None:
    """Reset the global profile store (primarily for testing)."""
    global _profile_store
    _profile_store = None
