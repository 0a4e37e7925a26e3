"""
Whole Onboarding.

Isolated module for new user setup. Walks the user through a fixed step
sequence and writes the initial profile and preferences.

Steps (standard):
welcome → widget_intro → preferences → notification_preferences →
subscription_intro → completed
"""

from .state import OnboardingState, OnboardingStep, CommitPhase
from .payload import OnboardingPayload
from .flow import OnboardingFlow

__all__ = [
    "OnboardingState",
    "OnboardingStep",
    "CommitPhase",
    "OnboardingPayload",
    "OnboardingFlow",
]
