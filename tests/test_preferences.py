"""
Tests for preference updates.
"""

import asyncio

import pytest

from conftest import FakeGateway
from whole.errors import InvalidInputError, PreferencesUpdateError
from whole.models.entities import QuoteCategory
from whole.preferences import PreferencesService


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


@pytest.fixture
def service(sample_preferences, widget):
    gateway = FakeGateway()
    gateway.preferences[sample_preferences.user_id] = sample_preferences
    return PreferencesService(gateway, sample_preferences, widget=widget)


class TestCategories:
    def test_update_writes_and_applies(self, service, widget):
        prefs = _run(service.update_categories([QuoteCategory.LOVE, QuoteCategory.LOVE, QuoteCategory.LIFE]))

        assert prefs.selected_categories == [QuoteCategory.LOVE, QuoteCategory.LIFE]
        stored = service.gateway.preferences["user-1"]
        assert stored.selected_categories == [QuoteCategory.LOVE, QuoteCategory.LIFE]
        assert widget.preferred_categories() == [QuoteCategory.LOVE, QuoteCategory.LIFE]

    def test_empty_selection_rejected(self, service):
        with pytest.raises(InvalidInputError):
            _run(service.update_categories([]))
        assert service.gateway.ops("update_user_preferences") == []

    def test_unknown_only_rejected(self, service):
        with pytest.raises(InvalidInputError):
            _run(service.update_categories(["not-a-category"]))

    def test_failure_keeps_local_preferences(self, service, sample_preferences, widget):
        service.gateway.fail_on("update_user_preferences")

        with pytest.raises(PreferencesUpdateError):
            _run(service.update_categories([QuoteCategory.OPTIMISM]))

        assert service.preferences == sample_preferences
        assert widget.preferred_categories() == [QuoteCategory.INSPIRATION]


class TestNotifications:
    def test_time(self, service):
        assert _run(service.update_notification_time("21:45")).notification_time == "21:45"

    def test_bad_time_never_sent(self, service):
        with pytest.raises(InvalidInputError):
            _run(service.update_notification_time("9pm"))
        assert service.gateway.ops("update_user_preferences") == []

    def test_toggle(self, service):
        prefs = _run(service.update_notifications_enabled(False))
        assert prefs.notifications_enabled is False
        assert service.gateway.preferences["user-1"].notifications_enabled is False
