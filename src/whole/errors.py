"""
Whole - Error types.

Three kinds of failure reach callers:
- Remote failures (network/service): RemoteError subclasses, always retryable
- Validation failures: InvalidInputError (also a ValueError)
- Local-state corruption: never raised, treated as "absent" where it occurs

GatewayError is what gateway implementations raise; controllers translate it
into the RemoteError subclass for the operation they were performing.
"""


class WholeError(Exception):
    """Base class for all Whole errors."""


class GatewayError(WholeError):
    """A remote data gateway call failed."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}" if detail else f"{operation} failed")


class RemoteError(WholeError):
    """
    Recoverable remote failure surfaced to the UI layer.

    `message` is user-facing; the original GatewayError is chained as __cause__.
    """

    retryable = True

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class FeedLoadError(RemoteError):
    """Loading quotes failed; the previous feed is still installed."""


class LikesFetchError(RemoteError):
    """Fetching the liked-quote set failed; the previous set is still installed."""


class LikeSyncError(RemoteError):
    """A like/unlike was rejected remotely and rolled back locally."""

    def __init__(self, operation: str, quote_id: str, message: str | None = None):
        self.operation = operation
        self.quote_id = quote_id
        super().__init__(message or f"Failed to {operation} quote {quote_id}")


class PreferencesUpdateError(RemoteError):
    """A preferences update was not saved."""


class SubscriptionUpdateError(RemoteError):
    """A purchase/restore result could not be written back to the profile."""


class OnboardingCommitError(RemoteError):
    """
    One phase of the onboarding commit failed.

    `phase` tells the caller whether the profile write failed (nothing was
    saved) or the preferences write failed (profile already saved).
    """

    def __init__(self, phase, message: str):
        self.phase = phase
        super().__init__(message)


class InvalidInputError(WholeError, ValueError):
    """Caller passed something the operation cannot accept."""


class StepNotSkippableError(InvalidInputError):
    """skip() was called for a step that cannot be skipped."""
