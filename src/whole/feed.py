"""
Whole - Quote Feed.

Owns the quote sequence the user swipes through and the free-tier quota.

Free users see the first `quota` quotes. Moving to a position at or past
the quota flips `reached_limit` and `upsell_requested` together, once. The
flags stay set until reset_quota(), so swiping back and forth across the
boundary doesn't re-trigger the paywall.

Every position change is pushed to the widget bridge before advance()
returns.
"""

import logging
from typing import Callable, Iterable

from whole.db.gateway import QuoteGateway
from whole.errors import FeedLoadError, GatewayError, InvalidInputError
from whole.models.entities import Quote, QuoteCategory
from whole.widget import WidgetBridge

logger = logging.getLogger(__name__)

DEFAULT_FREE_QUOTA = 10


class QuoteFeed:
    """Quote sequence + position + free-tier quota."""

    def __init__(
        self,
        gateway: QuoteGateway,
        widget: WidgetBridge,
        is_premium: Callable[[], bool],
        quota: int = DEFAULT_FREE_QUOTA,
    ):
        """
        Args:
            gateway: Remote data gateway
            widget: Bridge notified on every position change
            is_premium: Evaluated on every access, never cached
            quota: Positions a free user may browse
        """
        self.gateway = gateway
        self.widget = widget
        self._is_premium = is_premium
        self.quota = quota

        self.quotes: list[Quote] = []
        self.index = 0
        self.reached_limit = False
        self.upsell_requested = False

    async def load_feed(self, categories: Iterable[QuoteCategory]) -> list[Quote]:
        """
        Replace the feed with quotes for these categories.

        Resets the position, not the quota, and hands the new first quote to
        the widget. On failure the previous feed is left exactly as it was.
        """
        categories = list(categories)
        if not categories:
            raise InvalidInputError("Select at least one category to load quotes")

        try:
            quotes = await self.gateway.fetch_quotes(categories)
        except GatewayError as e:
            raise FeedLoadError("Failed to load quotes. Tap to retry.") from e

        self.quotes = list(quotes)
        self.index = 0
        self.publish_current()
        logger.info(f"Loaded {len(self.quotes)} quotes for {[c.value for c in categories]}")
        return self.quotes

    def visible_slice(self) -> list[Quote]:
        """Everything for premium users, the first `quota` quotes otherwise."""
        if self._is_premium():
            return list(self.quotes)
        return self.quotes[: min(self.quota, len(self.quotes))]

    def is_interactive(self, index: int) -> bool:
        """Quotes outside the visible slice are rendered disabled."""
        return 0 <= index < len(self.visible_slice())

    def current_quote(self) -> Quote | None:
        if not self.quotes:
            return None
        return self.quotes[self.index]

    def advance(self, index: int) -> bool:
        """
        Move to `index` and publish that quote to the widget.

        Returns True only on the call that crosses the quota boundary.
        """
        if not 0 <= index < len(self.quotes):
            raise InvalidInputError(f"Index {index} outside feed of {len(self.quotes)} quotes")

        self.index = index
        self.widget.publish(self.quotes[index])

        if index >= self.quota and not self.reached_limit and not self._is_premium():
            self.reached_limit = True
            self.upsell_requested = True
            logger.info(f"Free quota of {self.quota} reached at index {index}")
            return True
        return False

    def publish_current(self) -> Quote | None:
        """Publish the quote at the current position. No-op on an empty feed."""
        quote = self.current_quote()
        if quote is not None:
            self.widget.publish(quote)
        return quote

    def acknowledge_upsell(self) -> None:
        """The paywall was shown. The limit itself stays reached."""
        self.upsell_requested = False

    def reset_quota(self) -> None:
        """New day, or the user just became premium."""
        self.reached_limit = False
        self.upsell_requested = False
