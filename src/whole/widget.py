"""
Whole - Widget Bridge.

The home-screen widget runs in its own process and can't call Supabase.
The app hands it data through a small JSON key-value file in the shared
app-group container (SharedDefaults):

    widgetDailyQuote     the quote the user is currently looking at
    preferredCategories  the user's selected categories
    selectedTheme        card theme

The app is the only writer. Writes go to a temp file that is renamed over
the shared file, so the widget never sees half a file. Anything missing or
unreadable is "no value", never an error.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from whole.models.entities import (
    DEFAULT_CATEGORIES,
    FREE_THEME,
    AppTheme,
    Quote,
    QuoteCategory,
)

logger = logging.getLogger(__name__)


PLACEHOLDER_QUOTE = Quote(
    id="placeholder",
    english_text="Stay hungry, stay foolish.",
    chinese_text="求知若饥，虚心若愚。",
    categories=[QuoteCategory.INSPIRATION],
)


class SharedDefaults:
    """JSON key-value store shared between the app and the widget."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            # ValueError covers bad JSON and bytes that are not UTF-8
            logger.warning(f"Shared defaults unreadable at {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Overwrite one key, leaving the others as they were."""
        data = self._load()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._write(data)

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".defaults-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


@dataclass
class WidgetEntry:
    """What the widget renders, and when it should ask again."""

    date: datetime
    quote: Quote
    theme: AppTheme
    next_refresh: datetime


class WidgetBridge:
    """One-way, best-effort hand-off of the current quote to the widget."""

    QUOTE_KEY = "widgetDailyQuote"
    CATEGORIES_KEY = "preferredCategories"
    THEME_KEY = "selectedTheme"

    def __init__(self, defaults: SharedDefaults):
        self.defaults = defaults

    @classmethod
    def from_settings(cls) -> "WidgetBridge":
        from whole.config import settings

        return cls(SharedDefaults(settings.widget_defaults_path))

    # -------------------------------------------------------------------------
    # App side (writer)
    # -------------------------------------------------------------------------

    def publish(self, quote: Quote) -> None:
        """Overwrite the slot with this quote."""
        self.defaults.set(self.QUOTE_KEY, quote.model_dump(mode="json"))
        logger.debug(f"Widget quote -> {quote.id}")

    def publish_preferences(
        self,
        categories: Iterable[QuoteCategory] | None = None,
        theme: AppTheme | None = None,
    ) -> None:
        if categories is not None:
            self.defaults.set(self.CATEGORIES_KEY, [QuoteCategory(c).value for c in categories])
        if theme is not None:
            self.defaults.set(self.THEME_KEY, AppTheme(theme).value)

    # -------------------------------------------------------------------------
    # Widget side (reader)
    # -------------------------------------------------------------------------

    def read(self) -> Quote | None:
        """The last published quote, or None if absent or corrupt."""
        raw = self.defaults.get(self.QUOTE_KEY)
        if raw is None:
            return None
        try:
            return Quote.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable widget quote: {e.error_count()} errors")
            return None

    def preferred_categories(self) -> list[QuoteCategory]:
        raw = self.defaults.get(self.CATEGORIES_KEY)
        if not isinstance(raw, list):
            return list(DEFAULT_CATEGORIES)
        categories = [QuoteCategory(c) for c in raw if isinstance(c, str)]
        categories = [c for c in categories if c is not QuoteCategory.UNKNOWN]
        return categories or list(DEFAULT_CATEGORIES)

    def selected_theme(self) -> AppTheme:
        raw = self.defaults.get(self.THEME_KEY)
        try:
            return AppTheme(raw)
        except ValueError:
            return FREE_THEME

    def entry(self, now: datetime | None = None) -> WidgetEntry:
        """
        Build the widget timeline entry.

        Falls back to the placeholder quote. The widget refreshes at the
        next midnight (UTC).
        """
        now = now or datetime.now(timezone.utc)
        next_midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
        return WidgetEntry(
            date=now,
            quote=self.read() or PLACEHOLDER_QUOTE,
            theme=self.selected_theme(),
            next_refresh=next_midnight,
        )
