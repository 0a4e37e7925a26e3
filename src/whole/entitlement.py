"""
Whole - Entitlement.

Premium status is a pure function of (subscription_status, trial_end_date, now).
Never cache the result: `now` moves on its own, so a trial can lapse while
nothing in the profile changes. Call is_premium() at every gating point
(feed slice, customization, paywall CTA).
"""

import logging
from datetime import datetime, timedelta

from whole.config import settings
from whole.db.gateway import QuoteGateway
from whole.errors import GatewayError, SubscriptionUpdateError
from whole.models.entities import (
    FREE_THEME,
    AppTheme,
    SubscriptionStatus,
    SubscriptionUpdate,
    UserProfile,
    ensure_utc,
)

logger = logging.getLogger(__name__)


def is_premium(profile: UserProfile | None, now: datetime) -> bool:
    """
    True if the user may browse without a quota and customize.

    - Any non-free status is premium, even a paid plan whose
      subscription_end_date has passed.
    - A free user is premium while the trial is still running
      (trial_end_date strictly after now).
    """
    if profile is None:
        return False
    if profile.subscription_status != SubscriptionStatus.FREE:
        return True
    if profile.trial_end_date is None:
        return False
    return profile.trial_end_date > ensure_utc(now)


def can_use_theme(profile: UserProfile | None, theme: AppTheme, now: datetime) -> bool:
    """The free theme is open to everyone; the rest need premium."""
    return theme == FREE_THEME or is_premium(profile, now)


def trial_reminder_at(profile: UserProfile | None, hours_before: int | None = None) -> datetime | None:
    """
    When to remind a trial user that the trial is about to end.

    Defaults to settings.trial_reminder_hours before the trial end.
    """
    if profile is None or profile.trial_end_date is None:
        return None
    if profile.subscription_status != SubscriptionStatus.FREE:
        return None
    if hours_before is None:
        hours_before = settings.trial_reminder_hours
    return profile.trial_end_date - timedelta(hours=hours_before)


async def apply_subscription_update(
    gateway: QuoteGateway,
    profile: UserProfile,
    update: SubscriptionUpdate,
) -> UserProfile:
    """
    Write a purchase/restore result back to the profile.

    The returned profile is what is_premium() should be evaluated against
    from now on. If the write fails the caller keeps the old profile.
    """
    fields = update.model_dump(mode="json")
    try:
        await gateway.update_user_profile(profile.id, fields)
    except GatewayError as e:
        raise SubscriptionUpdateError(
            "Couldn't update your subscription. Please try restoring your purchase again."
        ) from e

    logger.info(
        f"Subscription updated for {profile.id}: "
        f"{profile.subscription_status.value} -> {update.subscription_status.value}"
    )
    return profile.model_copy(update=update.model_dump())
