"""
Onboarding Payload Definition.

The payload is what onboarding hands to the rest of the app: the initial
profile row and the initial preferences row, both built from the state.
"""

from dataclasses import dataclass

from whole.models.entities import (
    DEFAULT_CATEGORIES,
    QuoteCategory,
    SubscriptionStatus,
    UserPreferences,
    UserProfile,
)

from .state import OnboardingState


@dataclass
class OnboardingPayload:
    """Profile + preferences written by the onboarding commit."""
    profile: UserProfile
    preferences: UserPreferences

    def to_dict(self) -> dict:
        return {
            "profile": self.profile.model_dump(mode="json"),
            "preferences": self.preferences.model_dump(mode="json"),
        }


def build_payload_from_state(state: OnboardingState, user_id: str, email: str) -> OnboardingPayload:
    """
    Build the profile and preferences rows.

    Empty text fields become None. New users start on the free plan with
    no trial. With no category selected the default set is used so the
    feed has something to load.
    """
    categories = [QuoteCategory(c) for c in state.selected_categories]
    categories = [c for c in categories if c is not QuoteCategory.UNKNOWN]

    profile = UserProfile(
        id=user_id,
        email=email,
        name=state.name.strip() or None,
        gender=state.gender.strip() or None,
        goals=list(state.goals) or None,
        subscription_status=SubscriptionStatus.FREE,
    )
    preferences = UserPreferences(
        user_id=user_id,
        selected_categories=categories or list(DEFAULT_CATEGORIES),
        notification_time=state.notification_time,
        notifications_enabled=state.notifications_enabled,
    )
    return OnboardingPayload(profile=profile, preferences=preferences)
