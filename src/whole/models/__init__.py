from whole.models.entities import (
    DEFAULT_CATEGORIES,
    FREE_THEME,
    AppTheme,
    LikedQuote,
    Quote,
    QuoteCategory,
    SubscriptionStatus,
    SubscriptionUpdate,
    UserPreferences,
    UserProfile,
)

__all__ = [
    "DEFAULT_CATEGORIES",
    "FREE_THEME",
    "AppTheme",
    "LikedQuote",
    "Quote",
    "QuoteCategory",
    "SubscriptionStatus",
    "SubscriptionUpdate",
    "UserPreferences",
    "UserProfile",
]
