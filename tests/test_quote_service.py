import asyncio
import random
import unittest
from datetime import date

import httpx

from homebase.schemas import QuoteData, WidgetState
from homebase.services.quote_service import FALLBACK_QUOTES, FixedWindowRateLimiter, QuoteService
from homebase.settings import Settings
from homebase.storage import PersistedValue, load_text

from storage_helpers import make_storage

PRIMARY = "https://quotes-primary.test/api/random"
SECONDARY = "https://quotes-secondary.test/random"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class QuoteServiceTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.storage = make_storage(self)
        self.calls = []
        self.responses = {}
        self.clock = FakeClock()
        self.today = date(2025, 3, 10)

    def _handler(self, request):
        url = str(request.url)
        self.calls.append(url)
        status, payload = self.responses.get(url, (503, {"error": "down"}))
        return httpx.Response(status, json=payload)

    def _service(self, primary=PRIMARY, secondary=SECONDARY):
        settings = Settings(_env_file=None, quote_primary_url=primary, quote_secondary_url=secondary)
        return QuoteService(
            self.storage,
            settings,
            transport=httpx.MockTransport(self._handler),
            rng=random.Random(7),
            clock=self.clock,
            today=lambda: self.today,
        )

    async def test_primary_provider_is_normalized(self):
        self.responses[PRIMARY] = (200, [{"q": "Act now.", "a": "Anon", "h": "<p>"}])
        result = await self._service().refresh()
        self.assertEqual(result.state, WidgetState.SUCCEEDED)
        self.assertEqual(result.source, "zenquotes")
        self.assertEqual((result.value["content"], result.value["author"]), ("Act now.", "Anon"))
        self.assertEqual(self.calls, [PRIMARY])

    async def test_secondary_provider_used_when_primary_fails(self):
        self.responses[PRIMARY] = (200, [])
        self.responses[SECONDARY] = (200, {"content": "Second wind.", "author": "B"})
        service = self._service()
        result = await service.refresh()
        self.assertEqual(result.source, "quotable")
        self.assertEqual(result.value["content"], "Second wind.")
        self.assertEqual(service.state, WidgetState.SUCCEEDED)

    async def test_both_providers_failing_falls_back_to_static_quote(self):
        service = self._service()
        result = await service.refresh()
        self.assertEqual(result.state, WidgetState.FALLBACK)
        self.assertIn((result.value["content"], result.value["author"]), FALLBACK_QUOTES)
        self.assertEqual(self.calls, [PRIMARY, SECONDARY])
        self.assertEqual(service.rate_limiter.remaining, 4)
        self.assertIsNotNone(result.notice)

    async def test_no_network_attempt_does_not_count_toward_limit(self):
        service = self._service(primary=None, secondary=None)
        result = await service.refresh()
        self.assertEqual(result.state, WidgetState.FALLBACK)
        self.assertEqual(self.calls, [])
        self.assertEqual(service.rate_limiter.remaining, 5)

    async def test_rate_limit_allows_five_refreshes_per_window(self):
        self.responses[PRIMARY] = (200, [{"q": "Again.", "a": "C"}])
        service = self._service()
        for _ in range(5):
            await service.refresh()
        limited = await service.refresh()
        self.assertEqual(len(self.calls), 5)
        self.assertIn("Rate limit", limited.notice)
        self.assertEqual(limited.value["content"], "Again.")

        self.clock.now += 60
        result = await service.refresh()
        self.assertEqual(result.state, WidgetState.SUCCEEDED)
        self.assertEqual(len(self.calls), 6)

    async def test_daily_quote_is_cached_for_the_day(self):
        self.responses[PRIMARY] = (200, [{"q": "Today.", "a": "D"}])
        service = self._service()
        first = await service.daily_quote()
        self.assertEqual(first.state, WidgetState.SUCCEEDED)
        self.assertEqual(load_text(self.storage, "lastQuoteFetch"), "2025-03-10")

        self.responses[PRIMARY] = (200, [{"q": "Tomorrow.", "a": "E"}])
        second = await service.daily_quote()
        self.assertEqual(second.state, WidgetState.CACHED)
        self.assertEqual(second.value["content"], "Today.")
        self.assertEqual(len(self.calls), 1)

        self.today = date(2025, 3, 11)
        third = await service.daily_quote()
        self.assertEqual(third.value["content"], "Tomorrow.")
        self.assertEqual(len(self.calls), 2)

    async def test_overlapping_refreshes_share_the_rate_limit(self):
        async def slow_handler(request):
            self.calls.append(str(request.url))
            await asyncio.sleep(0.01)
            return httpx.Response(200, json=[{"q": "Together.", "a": "F"}])

        settings = Settings(_env_file=None, quote_primary_url=PRIMARY, quote_secondary_url=SECONDARY)
        service = QuoteService(
            self.storage,
            settings,
            transport=httpx.MockTransport(slow_handler),
            clock=self.clock,
            today=lambda: self.today,
        )
        results = await asyncio.gather(*(service.refresh() for _ in range(10)))
        self.assertEqual(len(self.calls), 5)
        limited = [result for result in results if result.notice and "Rate limit" in result.notice]
        self.assertEqual(len(limited), 5)
        self.assertEqual(service.rate_limiter.remaining, 0)

    async def test_superseded_refresh_does_not_overwrite_newer_result(self):
        entered = asyncio.Event()
        release = asyncio.Event()

        async def handler(request):
            self.calls.append(str(request.url))
            if len(self.calls) == 1:
                entered.set()
                await release.wait()
                return httpx.Response(503, json={"error": "late"})
            return httpx.Response(200, json=[{"q": "Newest.", "a": "G"}])

        settings = Settings(_env_file=None, quote_primary_url=PRIMARY, quote_secondary_url=None)
        service = QuoteService(
            self.storage,
            settings,
            transport=httpx.MockTransport(handler),
            clock=self.clock,
            today=lambda: self.today,
        )
        older = asyncio.create_task(service.refresh())
        await entered.wait()
        newer = await service.refresh()
        release.set()
        stale = await older

        self.assertEqual(newer.state, WidgetState.SUCCEEDED)
        self.assertEqual(stale.state, WidgetState.FALLBACK)
        self.assertEqual(service.state, WidgetState.SUCCEEDED)
        cached = PersistedValue(self.storage, "dailyQuote", QuoteData).load()
        self.assertEqual(cached.content, "Newest.")


class TestFixedWindowRateLimiter(unittest.TestCase):
    def test_counter_resets_on_fixed_boundaries(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(2, 60, clock=clock)
        clock.now += 50
        limiter.record()
        limiter.record()
        self.assertTrue(limiter.exhausted())
        # The window started at t=1000, not at the first hit.
        clock.now += 10
        self.assertEqual(limiter.remaining, 2)
        limiter.record()
        clock.now += 59
        self.assertEqual(limiter.remaining, 1)


if __name__ == "__main__":
    unittest.main()
