"""
Whole - Data Models.

These models map to the Supabase tables (quotes, liked_quotes, users,
userpreferences). Field names match the column names so rows can be
validated directly and dumped back for inserts.
"""

import re
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from whole.errors import InvalidInputError


_TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
DEFAULT_NOTIFICATION_TIME = "08:00"


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps as UTC so comparisons never mix naive and aware."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _coerce_categories(values):
    """Map raw category strings case-insensitively, unknown ones to UNKNOWN."""
    if values is None:
        return []
    return [v if isinstance(v, QuoteCategory) else QuoteCategory(v) for v in values]


def parse_notification_time(value: str) -> str:
    """Validate an HH:MM time of day (24h)."""
    value = value.strip()
    if not _TIME_OF_DAY.match(value):
        raise InvalidInputError(f"Notification time must be HH:MM, got {value!r}")
    return value


# =============================================================================
# Enums
# =============================================================================


class QuoteCategory(str, Enum):
    """Quote categories. Unrecognised values decode to UNKNOWN."""

    INSPIRATION = "Inspiration"
    MOTIVATION = "Motivation"
    LOVE = "Love"
    WISDOM = "Wisdom"
    LIFE = "Life"
    HAPPINESS = "Happiness"
    COMPASSION = "Compassion"
    FRIENDS_AND_FAMILY = "Friends & Family"
    OPTIMISM = "Optimism"
    UNKNOWN = "Unknown"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.casefold() == value.casefold():
                    return member
        return cls.UNKNOWN

    @classmethod
    def selectable(cls) -> list["QuoteCategory"]:
        """Categories a user can pick (everything but UNKNOWN)."""
        return [c for c in cls if c is not cls.UNKNOWN]


DEFAULT_CATEGORIES = [QuoteCategory.INSPIRATION]


class SubscriptionStatus(str, Enum):
    """Subscription status stored on the user profile."""

    FREE = "free"
    TRIAL = "trial"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class AppTheme(str, Enum):
    """Card themes. Only the first one is free."""

    SERENE_MINIMALISM = "sereneMinimalism"
    ELEGANT_MONOCHROME = "elegantMonochrome"
    SOFT_PASTEL_ELEGANCE = "softPastelElegance"

    @property
    def display_name(self) -> str:
        return {
            AppTheme.SERENE_MINIMALISM: "Serene Minimalism",
            AppTheme.ELEGANT_MONOCHROME: "Elegant Monochrome",
            AppTheme.SOFT_PASTEL_ELEGANCE: "Soft Pastel Elegance",
        }[self]


FREE_THEME = AppTheme.SERENE_MINIMALISM


# =============================================================================
# Core Entities
# =============================================================================


class Quote(BaseModel):
    """A bilingual quote from the quotes table. Immutable once fetched."""

    model_config = ConfigDict(frozen=True)

    id: str
    english_text: str
    chinese_text: str
    categories: list[QuoteCategory] = Field(default_factory=list)
    created_at: datetime | None = None
    created_by: str | None = None

    @field_validator("created_at")
    @classmethod
    def _utc(cls, v):
        return ensure_utc(v)

    @field_validator("categories", mode="before")
    @classmethod
    def _categories(cls, v):
        return _coerce_categories(v)


class LikedQuote(BaseModel):
    """Row in liked_quotes."""

    id: str | None = None
    user_id: str
    quote_id: str
    created_at: datetime | None = None


class UserProfile(BaseModel):
    """
    User profile from the users table.

    Written once at the end of onboarding and again whenever a
    purchase/restore reports a new subscription state.
    """

    id: str
    email: str
    name: str | None = None
    gender: str | None = None
    goals: list[str] | None = None
    subscription_status: SubscriptionStatus = SubscriptionStatus.FREE
    trial_end_date: datetime | None = None
    subscription_start_date: datetime | None = None
    subscription_end_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator(
        "trial_end_date",
        "subscription_start_date",
        "subscription_end_date",
        "created_at",
        "updated_at",
    )
    @classmethod
    def _utc(cls, v):
        return ensure_utc(v)


class UserPreferences(BaseModel):
    """Row in userpreferences."""

    user_id: str
    selected_categories: list[QuoteCategory] = Field(default_factory=list)
    notification_time: str = DEFAULT_NOTIFICATION_TIME
    notifications_enabled: bool = True

    @field_validator("selected_categories", mode="before")
    @classmethod
    def _categories(cls, v):
        return _coerce_categories(v)

    @field_validator("notification_time")
    @classmethod
    def _time_of_day(cls, v: str) -> str:
        return parse_notification_time(v)


class SubscriptionUpdate(BaseModel):
    """Subscription state reported by a purchase or restore."""

    subscription_status: SubscriptionStatus
    trial_end_date: datetime | None = None
    subscription_start_date: datetime | None = None
    subscription_end_date: datetime | None = None

    @field_validator("trial_end_date", "subscription_start_date", "subscription_end_date")
    @classmethod
    def _utc(cls, v):
        return ensure_utc(v)
