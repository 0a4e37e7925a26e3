"""
Whole - Remote Data Gateway.

QuoteGateway is the contract every controller depends on. Controllers get
a gateway injected; they never reach for the Supabase client themselves,
so tests can swap in an in-memory fake.

SupabaseGateway implements the contract over these tables:
- quotes                 bilingual quotes (categories is a text[] column)
- liked_quotes           (user_id, quote_id) rows
- users                  user profiles incl. subscription state
- userpreferences        categories + notification settings
- onboarding_sessions    in-progress onboarding state (JSONB)

Every method either succeeds or raises GatewayError. No partial results.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterable, Protocol

from whole.db.adapter import DatabaseAdapter
from whole.errors import GatewayError
from whole.models.entities import LikedQuote, Quote, QuoteCategory, UserPreferences, UserProfile

logger = logging.getLogger(__name__)


class QuoteGateway(Protocol):
    """Remote CRUD operations over quotes, likes, profiles and preferences."""

    async def fetch_quotes(self, categories: Iterable[QuoteCategory]) -> list[Quote]: ...

    async def fetch_liked_quote_ids(self, user_id: str) -> list[str]: ...

    async def like_quote(self, quote_id: str, user_id: str) -> None: ...

    async def unlike_quote(self, quote_id: str, user_id: str) -> None: ...

    async def insert_user_profile(self, profile: UserProfile) -> None: ...

    async def insert_user_preferences(self, preferences: UserPreferences) -> None: ...

    async def fetch_user_profile(self, user_id: str) -> UserProfile: ...

    async def fetch_user_preferences(self, user_id: str) -> UserPreferences: ...

    async def update_user_preferences(self, user_id: str, fields: dict[str, Any]) -> None: ...

    async def update_user_profile(self, user_id: str, fields: dict[str, Any]) -> None: ...

    async def load_onboarding_session(self, user_id: str) -> dict | None: ...

    async def save_onboarding_session(self, user_id: str, state: dict) -> None: ...

    async def clear_onboarding_session(self, user_id: str) -> None: ...


@contextmanager
def _remote(operation: str):
    """Translate any client exception into GatewayError."""
    try:
        yield
    except GatewayError:
        raise
    except Exception as e:
        logger.error(f"{operation} failed: {e}")
        raise GatewayError(operation, str(e)) from e


class SupabaseGateway:
    """QuoteGateway backed by Supabase."""

    QUOTES = "quotes"
    LIKED_QUOTES = "liked_quotes"
    USERS = "users"
    PREFERENCES = "userpreferences"
    ONBOARDING_SESSIONS = "onboarding_sessions"

    def __init__(self, db: DatabaseAdapter | None = None):
        self._db = db

    @property
    def db(self) -> DatabaseAdapter:
        if self._db is None:
            from whole.db.client import get_client

            self._db = get_client()
        return self._db

    # -------------------------------------------------------------------------
    # Quotes & likes
    # -------------------------------------------------------------------------

    async def fetch_quotes(self, categories: Iterable[QuoteCategory]) -> list[Quote]:
        """Quotes tagged with any of the given categories, oldest first."""
        values = [QuoteCategory(c).value for c in categories]
        with _remote("fetch_quotes"):
            response = (
                self.db.table(self.QUOTES)
                .select("*")
                .overlaps("categories", values)
                .order("created_at")
                .execute()
            )
            return [Quote.model_validate(row) for row in response.data]

    async def fetch_liked_quote_ids(self, user_id: str) -> list[str]:
        with _remote("fetch_liked_quote_ids"):
            response = (
                self.db.table(self.LIKED_QUOTES)
                .select("*")
                .eq("user_id", user_id)
                .execute()
            )
            return [LikedQuote.model_validate(row).quote_id for row in response.data]

    async def like_quote(self, quote_id: str, user_id: str) -> None:
        with _remote("like_quote"):
            self.db.table(self.LIKED_QUOTES).insert(
                {"user_id": user_id, "quote_id": quote_id}
            ).execute()

    async def unlike_quote(self, quote_id: str, user_id: str) -> None:
        with _remote("unlike_quote"):
            (
                self.db.table(self.LIKED_QUOTES)
                .delete()
                .eq("user_id", user_id)
                .eq("quote_id", quote_id)
                .execute()
            )

    # -------------------------------------------------------------------------
    # Profile & preferences
    # -------------------------------------------------------------------------

    async def insert_user_profile(self, profile: UserProfile) -> None:
        """Upsert so a retried onboarding commit does not trip the primary key."""
        with _remote("insert_user_profile"):
            self.db.table(self.USERS).upsert(
                profile.model_dump(mode="json", exclude_none=True)
            ).execute()

    async def insert_user_preferences(self, preferences: UserPreferences) -> None:
        with _remote("insert_user_preferences"):
            self.db.table(self.PREFERENCES).upsert(
                preferences.model_dump(mode="json")
            ).execute()

    async def fetch_user_profile(self, user_id: str) -> UserProfile:
        with _remote("fetch_user_profile"):
            response = (
                self.db.table(self.USERS)
                .select("*")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
            if not response.data:
                raise GatewayError("fetch_user_profile", f"No user profile found for {user_id}")
            return UserProfile.model_validate(response.data[0])

    async def fetch_user_preferences(self, user_id: str) -> UserPreferences:
        with _remote("fetch_user_preferences"):
            response = (
                self.db.table(self.PREFERENCES)
                .select("*")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
            if not response.data:
                raise GatewayError("fetch_user_preferences", f"No preferences found for {user_id}")
            return UserPreferences.model_validate(response.data[0])

    async def update_user_preferences(self, user_id: str, fields: dict[str, Any]) -> None:
        with _remote("update_user_preferences"):
            self.db.table(self.PREFERENCES).update(fields).eq("user_id", user_id).execute()

    async def update_user_profile(self, user_id: str, fields: dict[str, Any]) -> None:
        updates = {**fields, "updated_at": datetime.now(timezone.utc).isoformat()}
        with _remote("update_user_profile"):
            self.db.table(self.USERS).update(updates).eq("id", user_id).execute()

    # -------------------------------------------------------------------------
    # Onboarding sessions
    # -------------------------------------------------------------------------

    async def load_onboarding_session(self, user_id: str) -> dict | None:
        with _remote("load_onboarding_session"):
            response = (
                self.db.table(self.ONBOARDING_SESSIONS)
                .select("*")
                .eq("user_id", user_id)
                .execute()
            )
            if not response.data:
                return None
            return response.data[0]["state"]

    async def save_onboarding_session(self, user_id: str, state: dict) -> None:
        with _remote("save_onboarding_session"):
            self.db.table(self.ONBOARDING_SESSIONS).upsert({
                "user_id": user_id,
                "state": state,
                "current_step": state.get("current_step"),
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }).execute()

    async def clear_onboarding_session(self, user_id: str) -> None:
        with _remote("clear_onboarding_session"):
            self.db.table(self.ONBOARDING_SESSIONS).delete().eq("user_id", user_id).execute()
