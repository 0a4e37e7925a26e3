"""
Onboarding State Management.

Tracks the current step and everything collected so far. State is
serializable so an interrupted onboarding can resume where it stopped
(persisted to the onboarding_sessions table).

Two step orderings exist. STANDARD_STEPS collects categories, name,
gender and goals on a single preferences screen; DETAILED_STEPS gives each
its own screen. Both end in COMPLETED, which is only reachable by walking
through every step before it.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
import json

from whole.models.entities import DEFAULT_NOTIFICATION_TIME


class OnboardingStep(Enum):
    """Onboarding screens."""
    WELCOME = "welcome"
    WIDGET_INTRO = "widget_intro"
    PREFERENCES = "preferences"                      # Standard: categories + name/gender/goals
    CATEGORIES = "categories"                        # Detailed variant
    NAME = "name"                                    # Detailed variant
    GENDER = "gender"                                # Detailed variant
    GOALS = "goals"                                  # Detailed variant
    NOTIFICATION_PREFERENCES = "notification_preferences"
    SUBSCRIPTION_INTRO = "subscription_intro"
    COMPLETED = "completed"                          # Terminal, sticky


class CommitPhase(Enum):
    """Progress of the two-step profile → preferences write."""
    NOT_STARTED = "not_started"
    PROFILE_FAILED = "profile_failed"          # Nothing saved
    PREFERENCES_FAILED = "preferences_failed"  # Profile saved, preferences not
    COMMITTED = "committed"


STANDARD_STEPS: tuple[OnboardingStep, ...] = (
    OnboardingStep.WELCOME,
    OnboardingStep.WIDGET_INTRO,
    OnboardingStep.PREFERENCES,
    OnboardingStep.NOTIFICATION_PREFERENCES,
    OnboardingStep.SUBSCRIPTION_INTRO,
    OnboardingStep.COMPLETED,
)

DETAILED_STEPS: tuple[OnboardingStep, ...] = (
    OnboardingStep.WELCOME,
    OnboardingStep.WIDGET_INTRO,
    OnboardingStep.CATEGORIES,
    OnboardingStep.NAME,
    OnboardingStep.GENDER,
    OnboardingStep.GOALS,
    OnboardingStep.NOTIFICATION_PREFERENCES,
    OnboardingStep.SUBSCRIPTION_INTRO,
    OnboardingStep.COMPLETED,
)

STEP_ORDERINGS = {
    "standard": STANDARD_STEPS,
    "detailed": DETAILED_STEPS,
}

# Categories are mandatory (the feed can't load without them), so neither
# PREFERENCES nor CATEGORIES is here.
SKIPPABLE_STEPS = {
    OnboardingStep.NAME,
    OnboardingStep.GENDER,
    OnboardingStep.GOALS,
    OnboardingStep.NOTIFICATION_PREFERENCES,
}


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class OnboardingState:
    """
    Onboarding session state.

    Persisted as JSONB while onboarding is in progress; discarded once
    the commit succeeds.
    """
    user_id: str = ""
    variant: str = "standard"
    current_step: OnboardingStep = OnboardingStep.WELCOME

    # Collected input
    selected_categories: list[str] = field(default_factory=list)
    name: str = ""
    gender: str = ""
    goals: list[str] = field(default_factory=list)
    notifications_enabled: bool = True
    notification_time: str = DEFAULT_NOTIFICATION_TIME

    # Commit progress
    commit_phase: CommitPhase = CommitPhase.NOT_STARTED
    completed: bool = False

    # Metadata
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self):
        """Set timestamps if not provided."""
        if self.variant not in STEP_ORDERINGS:
            raise ValueError(f"Unknown onboarding variant: {self.variant}")
        now = _utc_iso()
        if not self.created_at:
            self.created_at = now
        if not self.updated_at:
            self.updated_at = now

    @property
    def steps(self) -> tuple[OnboardingStep, ...]:
        return STEP_ORDERINGS[self.variant]

    def to_dict(self) -> dict:
        """Serialize state to dict for JSON storage."""
        data = asdict(self)
        data["current_step"] = self.current_step.value
        data["commit_phase"] = self.commit_phase.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "OnboardingState":
        """Deserialize state from dict."""
        data = dict(data)
        if "current_step" in data:
            data["current_step"] = OnboardingStep(data["current_step"])
        if "commit_phase" in data:
            data["commit_phase"] = CommitPhase(data["commit_phase"])
        state = cls(**data)
        if state.current_step not in state.steps:
            raise ValueError(
                f"Step {state.current_step.value} is not part of the {state.variant} flow"
            )
        return state

    def to_json(self) -> str:
        """Serialize state to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "OnboardingState":
        """Deserialize state from JSON string."""
        return cls.from_dict(json.loads(json_str))


def get_next_step(state: OnboardingState) -> OnboardingStep:
    """The step after the current one, or the current step at the end."""
    steps = state.steps
    idx = steps.index(state.current_step)
    if idx + 1 < len(steps):
        return steps[idx + 1]
    return state.current_step


def get_previous_step(state: OnboardingState) -> OnboardingStep:
    """
    The step before the current one.

    Stays put at the first step and at COMPLETED (terminal is sticky).
    """
    if state.current_step == OnboardingStep.COMPLETED:
        return state.current_step
    steps = state.steps
    idx = steps.index(state.current_step)
    if idx > 0:
        return steps[idx - 1]
    return state.current_step


def can_skip_step(step: OnboardingStep) -> bool:
    """Check if a step can be skipped."""
    return step in SKIPPABLE_STEPS


def clear_step_input(state: OnboardingState, step: OnboardingStep) -> None:
    """Empty whatever the given step collected."""
    if step == OnboardingStep.NAME:
        state.name = ""
    elif step == OnboardingStep.GENDER:
        state.gender = ""
    elif step == OnboardingStep.GOALS:
        state.goals = []
    elif step == OnboardingStep.NOTIFICATION_PREFERENCES:
        state.notifications_enabled = False
        state.notification_time = DEFAULT_NOTIFICATION_TIME


def is_ready_to_commit(state: OnboardingState) -> bool:
    """Every step before COMPLETED has been visited or skipped."""
    return state.current_step in state.steps[-2:]


def get_completed_steps(state: OnboardingState) -> list[str]:
    """Names of the steps before the current one."""
    steps = state.steps
    return [step.value for step in steps[: steps.index(state.current_step)]]
