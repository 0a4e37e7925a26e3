"""
Whole - Preference updates from the settings screens.

Each update is written remotely first and applied locally only once the
write succeeded. Last write wins; there is no merge.
"""

import logging
from typing import Any, Iterable

from whole.db.gateway import QuoteGateway
from whole.errors import GatewayError, InvalidInputError, PreferencesUpdateError
from whole.models.entities import QuoteCategory, UserPreferences, parse_notification_time
from whole.widget import WidgetBridge

logger = logging.getLogger(__name__)


class PreferencesService:
    """Categories and notification settings for the signed-in user."""

    def __init__(
        self,
        gateway: QuoteGateway,
        preferences: UserPreferences,
        widget: WidgetBridge | None = None,
    ):
        self.gateway = gateway
        self.preferences = preferences
        self.widget = widget

    async def update_categories(self, categories: Iterable[QuoteCategory]) -> UserPreferences:
        """Change the feed categories. The caller reloads the feed afterwards."""
        selected = list(dict.fromkeys(QuoteCategory(c) for c in categories))
        selected = [c for c in selected if c is not QuoteCategory.UNKNOWN]
        if not selected:
            raise InvalidInputError("Select at least one category")

        await self._update({"selected_categories": [c.value for c in selected]})
        if self.widget is not None:
            self.widget.publish_preferences(categories=selected)
        return self.preferences

    async def update_notification_time(self, value: str) -> UserPreferences:
        """Daily quote notification time, HH:MM."""
        return await self._update({"notification_time": parse_notification_time(value)})

    async def update_notifications_enabled(self, enabled: bool) -> UserPreferences:
        return await self._update({"notifications_enabled": enabled})

    async def _update(self, fields: dict[str, Any]) -> UserPreferences:
        user_id = self.preferences.user_id
        try:
            await self.gateway.update_user_preferences(user_id, fields)
        except GatewayError as e:
            raise PreferencesUpdateError("Couldn't save your settings. Please try again.") from e

        self.preferences = UserPreferences.model_validate({**self.preferences.model_dump(), **fields})
        logger.info(f"Preferences updated for {user_id}: {sorted(fields)}")
        return self.preferences
