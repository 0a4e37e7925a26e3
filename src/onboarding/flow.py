"""
Onboarding Flow Controller.

Drives the step sequence (next / previous / skip), collects input, and
commits the result as a two-phase saga:

    1. insert profile       fails → PROFILE_FAILED, nothing written
    2. insert preferences   fails → PREFERENCES_FAILED, profile stays written

There is no compensating delete of the profile. Calling commit() again
after PREFERENCES_FAILED only retries step 2.
"""

import logging
from typing import Iterable

from whole.db.gateway import QuoteGateway
from whole.errors import (
    GatewayError,
    InvalidInputError,
    OnboardingCommitError,
    StepNotSkippableError,
)
from whole.models.entities import QuoteCategory, parse_notification_time

from .payload import OnboardingPayload, build_payload_from_state
from .state import (
    CommitPhase,
    OnboardingState,
    OnboardingStep,
    can_skip_step,
    clear_step_input,
    get_next_step,
    get_previous_step,
    is_ready_to_commit,
)

logger = logging.getLogger(__name__)


class OnboardingFlow:
    """Resumable onboarding state machine."""

    def __init__(
        self,
        gateway: QuoteGateway,
        state: OnboardingState | None = None,
        variant: str = "standard",
    ):
        self.gateway = gateway
        self.state = state or OnboardingState(variant=variant)
        self.payload: OnboardingPayload | None = None

    @classmethod
    async def resume(cls, gateway: QuoteGateway, user_id: str, variant: str = "standard") -> "OnboardingFlow":
        """
        Load a saved session for the user, or start a new one.

        A missing, unreadable or unloadable session starts over at WELCOME.
        """
        state = None
        try:
            saved = await gateway.load_onboarding_session(user_id)
            if saved:
                state = OnboardingState.from_dict(saved)
        except GatewayError as e:
            logger.warning(f"Failed to load onboarding session: {e}")
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable onboarding session for {user_id}: {e}")

        if state is None:
            state = OnboardingState(user_id=user_id, variant=variant)
        state.user_id = user_id
        return cls(gateway, state)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    @property
    def current_step(self) -> OnboardingStep:
        return self.state.current_step

    @property
    def is_completed(self) -> bool:
        return self.state.current_step == OnboardingStep.COMPLETED

    def next(self) -> OnboardingStep:
        """Advance one step. No-op at COMPLETED."""
        self.state.current_step = get_next_step(self.state)
        return self.state.current_step

    def previous(self) -> OnboardingStep:
        """Go back one step. No-op at the first step and at COMPLETED."""
        self.state.current_step = get_previous_step(self.state)
        return self.state.current_step

    def skip(self, step: OnboardingStep) -> OnboardingStep:
        """Clear the current step's input and advance."""
        if step != self.state.current_step:
            raise StepNotSkippableError(
                f"Can only skip the current step ({self.state.current_step.value}), not {step.value}"
            )
        if not can_skip_step(step):
            raise StepNotSkippableError(f"Step {step.value} cannot be skipped")

        clear_step_input(self.state, step)
        return self.next()

    # -------------------------------------------------------------------------
    # Collected input
    # -------------------------------------------------------------------------

    def select_categories(self, categories: Iterable[QuoteCategory]) -> None:
        selected = [QuoteCategory(c) for c in categories]
        self.state.selected_categories = list(
            dict.fromkeys(c.value for c in selected if c is not QuoteCategory.UNKNOWN)
        )

    def set_name(self, name: str) -> None:
        self.state.name = name.strip()

    def set_gender(self, gender: str) -> None:
        self.state.gender = gender.strip()

    def set_goals(self, goals: Iterable[str]) -> None:
        self.state.goals = list(dict.fromkeys(g.strip() for g in goals if g.strip()))

    def set_notifications(self, enabled: bool, time: str | None = None) -> None:
        self.state.notifications_enabled = enabled
        if time is not None:
            self.state.notification_time = parse_notification_time(time)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def checkpoint(self) -> bool:
        """Save progress so onboarding can resume later. Best-effort."""
        if not self.state.user_id:
            return False
        try:
            await self.gateway.save_onboarding_session(self.state.user_id, self.state.to_dict())
        except GatewayError as e:
            logger.warning(f"Failed to save onboarding session: {e}")
            return False
        return True

    async def commit(self, user_id: str, email: str) -> OnboardingPayload:
        """
        Write profile, then preferences.

        Only allowed once the last step before COMPLETED is reached. Raises
        OnboardingCommitError with the failed phase. On success the
        flow is COMPLETED and the saved session is cleared.
        """
        if self.state.commit_phase == CommitPhase.COMMITTED and self.payload is not None:
            return self.payload
        if not user_id:
            raise InvalidInputError("Cannot commit onboarding without a user id")
        if not is_ready_to_commit(self.state):
            raise InvalidInputError(
                f"Cannot commit onboarding from step {self.state.current_step.value}"
            )

        self.state.user_id = user_id
        payload = build_payload_from_state(self.state, user_id, email)

        if self.state.commit_phase != CommitPhase.PREFERENCES_FAILED:
            try:
                await self.gateway.insert_user_profile(payload.profile)
            except GatewayError as e:
                self.state.commit_phase = CommitPhase.PROFILE_FAILED
                raise OnboardingCommitError(
                    CommitPhase.PROFILE_FAILED,
                    "Couldn't save your profile. Please try again.",
                ) from e
        else:
            logger.info(f"Profile for {user_id} already saved, retrying preferences only")

        try:
            await self.gateway.insert_user_preferences(payload.preferences)
        except GatewayError as e:
            self.state.commit_phase = CommitPhase.PREFERENCES_FAILED
            raise OnboardingCommitError(
                CommitPhase.PREFERENCES_FAILED,
                "Your profile was saved but your preferences weren't. Please try again.",
            ) from e

        self.state.commit_phase = CommitPhase.COMMITTED
        self.state.current_step = OnboardingStep.COMPLETED
        self.state.completed = True
        self.payload = payload
        logger.info(f"Onboarding committed for {user_id}")

        try:
            await self.gateway.clear_onboarding_session(user_id)
        except GatewayError as e:
            logger.warning(f"Failed to clear onboarding session: {e}")

        return payload
