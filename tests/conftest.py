"""
Pytest configuration and fixtures for Whole tests.
"""

import asyncio
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

# Set test environment before importing whole modules
os.environ["WHOLE_ENV"] = "development"
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-key-not-real")

from whole.errors import GatewayError
from whole.models.entities import (
    Quote,
    QuoteCategory,
    SubscriptionStatus,
    UserPreferences,
    UserProfile,
)
from whole.widget import SharedDefaults, WidgetBridge


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_quotes(count: int, categories: list[QuoteCategory] | None = None) -> list[Quote]:
    """Build `count` distinct quotes."""
    categories = categories or [QuoteCategory.INSPIRATION]
    return [
        Quote(
            id=f"q{i}",
            english_text=f"Sample Quote {i + 1}",
            chinese_text=f"示例语录 {i + 1}",
            categories=categories,
        )
        for i in range(count)
    ]


# ---------------------------------------------------------------------------
# FakeGateway: in-memory QuoteGateway with failure injection
# ---------------------------------------------------------------------------


class FakeGateway:
    """
    In-memory QuoteGateway.

    - fail_on(op, ids=None) makes `op` raise GatewayError (optionally only
      for some quote ids) until clear_failures()
    - hold(op, quote_id) returns an asyncio.Event the call waits on, so
      tests can control the order in which remote calls resolve
    - calls records every (op, *args)
    """

    def __init__(self, quotes: list[Quote] | None = None):
        self.quotes = list(quotes or [])
        self.liked: dict[str, set[str]] = {}
        self.profiles: dict[str, UserProfile] = {}
        self.preferences: dict[str, UserPreferences] = {}
        self.sessions: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self._failures: dict[str, set[str] | None] = {}
        self._holds: dict[tuple[str, str], asyncio.Event] = {}

    def fail_on(self, op: str, ids: set[str] | None = None) -> None:
        self._failures[op] = set(ids) if ids else None

    def clear_failures(self) -> None:
        self._failures.clear()

    def hold(self, op: str, key: str) -> asyncio.Event:
        event = asyncio.Event()
        self._holds[(op, key)] = event
        return event

    def ops(self, op: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == op]

    async def _enter(self, op: str, key: str = "", *args) -> None:
        self.calls.append((op, *args))
        event = self._holds.get((op, key))
        if event is not None:
            await event.wait()
        if op in self._failures:
            ids = self._failures[op]
            if ids is None or key in ids:
                raise GatewayError(op, "simulated failure")

    async def fetch_quotes(self, categories):
        await self._enter("fetch_quotes", "", list(categories))
        wanted = set(categories)
        return [q for q in self.quotes if wanted.intersection(q.categories)]

    async def fetch_liked_quote_ids(self, user_id):
        await self._enter("fetch_liked_quote_ids", user_id, user_id)
        return sorted(self.liked.get(user_id, set()))

    async def like_quote(self, quote_id, user_id):
        await self._enter("like_quote", quote_id, quote_id, user_id)
        self.liked.setdefault(user_id, set()).add(quote_id)

    async def unlike_quote(self, quote_id, user_id):
        await self._enter("unlike_quote", quote_id, quote_id, user_id)
        self.liked.setdefault(user_id, set()).discard(quote_id)

    async def insert_user_profile(self, profile):
        await self._enter("insert_user_profile", profile.id, profile)
        self.profiles[profile.id] = profile

    async def insert_user_preferences(self, preferences):
        await self._enter("insert_user_preferences", preferences.user_id, preferences)
        self.preferences[preferences.user_id] = preferences

    async def fetch_user_profile(self, user_id):
        await self._enter("fetch_user_profile", user_id, user_id)
        if user_id not in self.profiles:
            raise GatewayError("fetch_user_profile", "not found")
        return self.profiles[user_id]

    async def fetch_user_preferences(self, user_id):
        await self._enter("fetch_user_preferences", user_id, user_id)
        if user_id not in self.preferences:
            raise GatewayError("fetch_user_preferences", "not found")
        return self.preferences[user_id]

    async def update_user_preferences(self, user_id, fields):
        await self._enter("update_user_preferences", user_id, user_id, fields)
        current = self.preferences[user_id].model_dump()
        self.preferences[user_id] = UserPreferences.model_validate({**current, **fields})

    async def update_user_profile(self, user_id, fields):
        await self._enter("update_user_profile", user_id, user_id, fields)
        current = self.profiles[user_id].model_dump()
        self.profiles[user_id] = UserProfile.model_validate({**current, **fields})

    async def load_onboarding_session(self, user_id):
        await self._enter("load_onboarding_session", user_id, user_id)
        return self.sessions.get(user_id)

    async def save_onboarding_session(self, user_id, state):
        await self._enter("save_onboarding_session", user_id, user_id)
        self.sessions[user_id] = state

    async def clear_onboarding_session(self, user_id):
        await self._enter("clear_onboarding_session", user_id, user_id)
        self.sessions.pop(user_id, None)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def gateway():
    """Fake gateway holding 20 inspiration quotes."""
    return FakeGateway(make_quotes(20))


@pytest.fixture
def widget(tmp_path):
    """Widget bridge backed by a temp shared-defaults file."""
    return WidgetBridge(SharedDefaults(tmp_path / "group.shared.json"))


@pytest.fixture
def free_profile():
    return UserProfile(id="user-1", email="sample@wholeapp.com")


@pytest.fixture
def trial_profile():
    return UserProfile(
        id="user-1",
        email="sample@wholeapp.com",
        trial_end_date=NOW + timedelta(days=3),
    )


@pytest.fixture
def yearly_profile():
    return UserProfile(
        id="user-1",
        email="sample@wholeapp.com",
        subscription_status=SubscriptionStatus.YEARLY,
        subscription_start_date=NOW - timedelta(days=30),
        subscription_end_date=NOW + timedelta(days=335),
    )


@pytest.fixture
def sample_preferences():
    return UserPreferences(
        user_id="user-1",
        selected_categories=[QuoteCategory.INSPIRATION, QuoteCategory.WISDOM],
        notification_time="08:00",
        notifications_enabled=True,
    )


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    # Mock table operations
    mock_table = MagicMock()
    for method in ("select", "insert", "upsert", "update", "delete", "eq", "overlaps", "order", "limit"):
        getattr(mock_table, method).return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])

    mock_client.table.return_value = mock_table

    return mock_client
