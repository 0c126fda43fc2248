from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable

import httpx

from homebase.schemas import QuoteData, WidgetResult, WidgetState
from homebase.settings import Settings
from homebase.storage import KeyValueStorage, PersistedValue, load_text, run_blocking, save_text

logger = logging.getLogger(__name__)

DAILY_QUOTE_KEY = "dailyQuote"
LAST_QUOTE_FETCH_KEY = "lastQuoteFetch"

FALLBACK_QUOTES = [
    ("The greatest glory in living lies not in never falling, but in rising every time we fall.", "Nelson Mandela"),
    ("The way to get started is to quit talking and begin doing.", "Walt Disney"),
    ("Your time is limited, so don't waste it living someone else's life.", "Steve Jobs"),
    ("If life were predictable it would cease to be life, and be without flavor.", "Eleanor Roosevelt"),
    ("If you look at what you have in life, you'll always have more.", "Oprah Winfrey"),
    ("Life is what happens when you're busy making other plans.", "John Lennon"),
    ("The future belongs to those who believe in the beauty of their dreams.", "Eleanor Roosevelt"),
    ("It is during our darkest moments that we must focus to see the light.", "Aristotle"),
    ("Whoever is happy will make others happy too.", "Anne Frank"),
    ("Do not go where the path may lead, go instead where there is no path and leave a trail.", "Ralph Waldo Emerson"),
    ("Success is not final, failure is not fatal: it is the courage to continue that counts.", "Winston Churchill"),
    ("The only impossible journey is the one you never begin.", "Tony Robbins"),
    ("In the middle of difficulty lies opportunity.", "Albert Einstein"),
    ("Believe you can and you're halfway there.", "Theodore Roosevelt"),
    ("The only way to do great work is to love what you do.", "Steve Jobs"),
    ("Innovation distinguishes between a leader and a follower.", "Steve Jobs"),
    ("Stay hungry, stay foolish.", "Steve Jobs"),
    ("The best time to plant a tree was 20 years ago. The second best time is now.", "Chinese Proverb"),
    ("Don't watch the clock; do what it does. Keep going.", "Sam Levenson"),
    ("Everything you've ever wanted is on the other side of fear.", "George Addair"),
]


def _parse_zenquotes(payload: Any):
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        return payload[0].get("q"), payload[0].get("a")
    return None


def _parse_quotable(payload: Any):
    if isinstance(payload, list) and payload:
        payload = payload[0]
    if isinstance(payload, dict):
        return payload.get("content"), payload.get("author")
    return None


@dataclass(frozen=True)
class QuoteProvider:
    name: str
    url: str
    parse: Callable[[Any], Any]


def build_providers(settings: Settings) -> list[QuoteProvider]:
    providers = []
    if settings.quote_primary_url:
        providers.append(QuoteProvider("zenquotes", settings.quote_primary_url, _parse_zenquotes))
    if settings.quote_secondary_url:
        providers.append(QuoteProvider("quotable", settings.quote_secondary_url, _parse_quotable))
    return providers


class FixedWindowRateLimiter:
    """Allows ``limit`` hits per window; the count resets on fixed window boundaries."""

    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._window_start = clock()
        self._count = 0

    def _roll(self) -> None:
        elapsed = self._clock() - self._window_start
        if elapsed >= self.window_seconds:
            self._window_start += (elapsed // self.window_seconds) * self.window_seconds
            self._count = 0

    @property
    def remaining(self) -> int:
        self._roll()
        return max(0, self.limit - self._count)

    def exhausted(self) -> bool:
        return self.remaining <= 0

    def record(self) -> None:
        self._roll()
        self._count += 1


class QuoteService:
    def __init__(
        self,
        storage: KeyValueStorage,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] | None = None,
    ):
        self.storage = storage
        self.settings = settings
        self.providers = build_providers(settings)
        self.rate_limiter = FixedWindowRateLimiter(
            settings.quote_rate_limit,
            settings.quote_rate_window_seconds,
            clock=clock,
        )
        self.state = WidgetState.IDLE
        self._cache = PersistedValue(storage, DAILY_QUOTE_KEY, QuoteData)
        self._transport = transport
        self._rng = rng or random.Random()
        self._today = today or settings.today
        self._generation = 0

    def fallback_quote(self) -> QuoteData:
        content, author = self._rng.choice(FALLBACK_QUOTES)
        return QuoteData(content=content, author=author, date_added=datetime.now(timezone.utc))

    async def daily_quote(self) -> WidgetResult:
        """Today's quote: the cached one when it was fetched today, otherwise a fresh one."""
        today_iso = self._today().isoformat()
        cached = await run_blocking(self._cache.load)
        last_fetch = await run_blocking(load_text, self.storage, LAST_QUOTE_FETCH_KEY)
        if cached is not None and last_fetch == today_iso:
            self.state = WidgetState.CACHED
            return _result(cached, WidgetState.CACHED, "cache")
        result = await self.refresh()
        await run_blocking(save_text, self.storage, LAST_QUOTE_FETCH_KEY, today_iso)
        return result

    async def refresh(self) -> WidgetResult:
        if self.rate_limiter.exhausted():
            cached = await run_blocking(self._cache.load)
            notice = "Rate limit reached. Please wait before requesting a new quote."
            if cached is not None:
                return _result(cached, WidgetState.CACHED, "cache", notice)
            return _result(self.fallback_quote(), WidgetState.FALLBACK, "fallback", notice)

        # The slot is taken before any await so overlapping refreshes see it.
        if self.providers:
            self.rate_limiter.record()
        self._generation += 1
        generation = self._generation
        self.state = WidgetState.FETCHING

        quote, source = await self._fetch_from_providers()
        if quote is None:
            quote = self.fallback_quote()
            state, source = WidgetState.FALLBACK, "fallback"
            notice = "Offline quote: showing inspirational quote from our collection."
        else:
            state, notice = WidgetState.SUCCEEDED, "Quote refreshed"

        if generation == self._generation:
            await run_blocking(self._cache.save, quote)
            self.state = state
        else:
            logger.debug("Discarding superseded quote fetch %s", generation)
        return _result(quote, state, source, notice)

    async def _fetch_from_providers(self):
        if not self.providers:
            return None, None
        async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds, transport=self._transport) as client:
            for provider in self.providers:
                try:
                    response = await client.get(provider.url)
                    response.raise_for_status()
                    parsed = provider.parse(response.json())
                except (httpx.HTTPError, ValueError) as exc:
                    logger.info("Quote provider %s failed: %s", provider.name, exc)
                    continue
                content, author = parsed or (None, None)
                if not content:
                    logger.info("Quote provider %s returned no quote", provider.name)
                    continue
                quote = QuoteData(
                    content=str(content).strip(),
                    author=str(author or "Unknown").strip(),
                    date_added=datetime.now(timezone.utc),
                )
                return quote, provider.name
        return None, None


def _result(quote: QuoteData, state: WidgetState, source: str, notice: str | None = None) -> WidgetResult:
    return WidgetResult(value=quote.model_dump(mode="json", by_alias=True), state=state, source=source, notice=notice)
