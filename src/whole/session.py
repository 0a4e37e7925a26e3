"""
Whole - Quote Session.

Wires the feed, like synchronizer, widget bridge and preferences together
for one signed-in user. Collaborators are passed in; nothing here is a
process-wide singleton.

Usage:
    session = QuoteSession(gateway, WidgetBridge.from_settings())
    await session.start(user_id)
    session.feed.advance(3)
    await session.likes.like(session.feed.current_quote().id)
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from whole.db.gateway import QuoteGateway
from whole.entitlement import apply_subscription_update, can_use_theme, is_premium
from whole.errors import GatewayError, InvalidInputError, LikesFetchError, RemoteError
from whole.feed import DEFAULT_FREE_QUOTA, QuoteFeed
from whole.likes import LikeSynchronizer
from whole.models.entities import (
    DEFAULT_CATEGORIES,
    FREE_THEME,
    AppTheme,
    SubscriptionUpdate,
    UserPreferences,
    UserProfile,
)
from whole.preferences import PreferencesService
from whole.widget import WidgetBridge

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QuoteSession:
    """Everything the quote browsing screen needs for one user."""

    def __init__(
        self,
        gateway: QuoteGateway,
        widget: WidgetBridge,
        clock: Callable[[], datetime] = utc_now,
        quota: int = DEFAULT_FREE_QUOTA,
    ):
        self.gateway = gateway
        self.widget = widget
        self.clock = clock

        self.profile: UserProfile | None = None
        self.preferences: PreferencesService | None = None
        self.theme: AppTheme = widget.selected_theme()
        self.likes_error: LikesFetchError | None = None

        self.feed = QuoteFeed(gateway, widget, is_premium=self.is_premium, quota=quota)
        self.likes = LikeSynchronizer(gateway)

    async def start(self, user_id: str) -> None:
        """
        Load profile, preferences, likes and the feed, then show the first quote.

        Profile/preferences failures abort with RemoteError. A likes failure
        only degrades the session (likes_error is set).
        """
        try:
            self.profile = await self.gateway.fetch_user_profile(user_id)
            preferences = await self.gateway.fetch_user_preferences(user_id)
        except GatewayError as e:
            raise RemoteError("Couldn't load your account. Please try again.") from e

        self.preferences = PreferencesService(self.gateway, preferences, widget=self.widget)

        try:
            await self.likes.fetch_all(user_id)
            self.likes_error = None
        except LikesFetchError as e:
            logger.warning(f"Continuing without liked-quote sync: {e}")
            self.likes_error = e

        await self.reload_feed()

    async def reload_feed(self) -> None:
        """Reload quotes for the current category selection."""
        if self.preferences is None:
            raise InvalidInputError("Session not started")
        await self.feed.load_feed(self._categories(self.preferences.preferences))

    @staticmethod
    def _categories(preferences: UserPreferences):
        return preferences.selected_categories or list(DEFAULT_CATEGORIES)

    # -------------------------------------------------------------------------
    # Entitlement
    # -------------------------------------------------------------------------

    def is_premium(self) -> bool:
        return is_premium(self.profile, self.clock())

    @property
    def show_paywall_cta(self) -> bool:
        return self.feed.upsell_requested and not self.is_premium()

    async def apply_subscription_update(self, update: SubscriptionUpdate) -> UserProfile:
        """Purchase/restore completed: persist it, then lift the quota if premium now."""
        if self.profile is None:
            raise InvalidInputError("No signed-in user to update")
        self.profile = await apply_subscription_update(self.gateway, self.profile, update)
        if self.is_premium():
            self.feed.reset_quota()
        return self.profile

    # -------------------------------------------------------------------------
    # Customization
    # -------------------------------------------------------------------------

    def can_use_theme(self, theme: AppTheme) -> bool:
        return can_use_theme(self.profile, theme, self.clock())

    def select_theme(self, theme: AppTheme) -> bool:
        """Switch theme if allowed. Returns False when the paywall should show instead."""
        if not self.can_use_theme(theme):
            return False
        self.theme = theme
        self.widget.publish_preferences(theme=theme)
        return True

    def effective_theme(self) -> AppTheme:
        """A lapsed trial falls back to the free theme."""
        return self.theme if self.can_use_theme(self.theme) else FREE_THEME
