"""
Tests for premium entitlement.
"""

import asyncio
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from conftest import NOW, FakeGateway
from whole.entitlement import (
    apply_subscription_update,
    can_use_theme,
    is_premium,
    trial_reminder_at,
)
from whole.errors import SubscriptionUpdateError
from whole.models.entities import AppTheme, SubscriptionStatus, SubscriptionUpdate, UserProfile


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


def _profile(status: SubscriptionStatus, trial_end: datetime | None = None) -> UserProfile:
    return UserProfile(id="u", email="u@example.com", subscription_status=status, trial_end_date=trial_end)


class TestIsPremium:
    """is_premium(profile, now) truth table."""

    @pytest.mark.parametrize("status", [SubscriptionStatus.TRIAL, SubscriptionStatus.MONTHLY, SubscriptionStatus.YEARLY])
    def test_non_free_status_is_premium(self, status):
        assert is_premium(_profile(status), NOW) is True
        assert is_premium(_profile(status, NOW - timedelta(days=10)), NOW) is True

    def test_free_without_trial(self):
        assert is_premium(_profile(SubscriptionStatus.FREE), NOW) is False

    def test_free_with_running_trial(self):
        assert is_premium(_profile(SubscriptionStatus.FREE, NOW + timedelta(seconds=1)), NOW) is True

    def test_free_with_expired_trial(self):
        assert is_premium(_profile(SubscriptionStatus.FREE, NOW - timedelta(seconds=1)), NOW) is False

    def test_trial_ending_exactly_now_is_not_premium(self):
        assert is_premium(_profile(SubscriptionStatus.FREE, NOW), NOW) is False

    def test_no_profile(self):
        assert is_premium(None, NOW) is False

    def test_trial_lapses_as_time_moves(self, trial_profile):
        """Same profile, later clock: the result must change."""
        assert is_premium(trial_profile, NOW) is True
        assert is_premium(trial_profile, NOW + timedelta(days=4)) is False

    def test_naive_trial_end_from_storage_treated_as_utc(self):
        profile = UserProfile.model_validate({
            "id": "u",
            "email": "u@example.com",
            "subscription_status": "free",
            "trial_end_date": "2025-06-01T13:00:00",
        })
        assert is_premium(profile, NOW) is True

    def test_paid_plan_past_end_date_still_premium(self):
        """Kept behavior: status alone decides for paid plans."""
        profile = UserProfile(
            id="u",
            email="u@example.com",
            subscription_status=SubscriptionStatus.MONTHLY,
            subscription_end_date=NOW - timedelta(days=60),
        )
        assert is_premium(profile, NOW) is True


class TestThemes:
    def test_free_theme_always_available(self, free_profile):
        assert can_use_theme(free_profile, AppTheme.SERENE_MINIMALISM, NOW)

    def test_other_themes_need_premium(self, free_profile, yearly_profile):
        assert not can_use_theme(free_profile, AppTheme.ELEGANT_MONOCHROME, NOW)
        assert can_use_theme(yearly_profile, AppTheme.ELEGANT_MONOCHROME, NOW)


class TestTrialReminder:
    def test_day_before_trial_end(self, trial_profile):
        assert trial_reminder_at(trial_profile) == trial_profile.trial_end_date - timedelta(hours=24)

    def test_no_trial(self, free_profile, yearly_profile):
        assert trial_reminder_at(free_profile) is None
        assert trial_reminder_at(yearly_profile) is None

    def test_lead_time_from_settings(self, trial_profile, monkeypatch):
        monkeypatch.setattr("whole.entitlement.settings", SimpleNamespace(trial_reminder_hours=48))
        assert trial_reminder_at(trial_profile) == trial_profile.trial_end_date - timedelta(hours=48)

    def test_explicit_lead_time(self, trial_profile):
        assert trial_reminder_at(trial_profile, hours_before=2) == trial_profile.trial_end_date - timedelta(hours=2)


class TestApplySubscriptionUpdate:
    def test_writes_back_then_reflects(self, free_profile):
        gateway = FakeGateway()
        gateway.profiles[free_profile.id] = free_profile
        update = SubscriptionUpdate(
            subscription_status=SubscriptionStatus.YEARLY,
            subscription_start_date=NOW,
            subscription_end_date=NOW + timedelta(days=365),
        )

        updated = _run(apply_subscription_update(gateway, free_profile, update))

        assert updated.subscription_status == SubscriptionStatus.YEARLY
        assert is_premium(updated, NOW)
        assert gateway.profiles[free_profile.id].subscription_status == SubscriptionStatus.YEARLY
        assert free_profile.subscription_status == SubscriptionStatus.FREE

    def test_failed_write_raises_and_keeps_old_profile(self, free_profile):
        gateway = FakeGateway()
        gateway.profiles[free_profile.id] = free_profile
        gateway.fail_on("update_user_profile")
        update = SubscriptionUpdate(subscription_status=SubscriptionStatus.MONTHLY)

        with pytest.raises(SubscriptionUpdateError):
            _run(apply_subscription_update(gateway, free_profile, update))

        assert gateway.profiles[free_profile.id].subscription_status == SubscriptionStatus.FREE
