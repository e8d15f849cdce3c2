import asyncio
import unittest

import httpx

from api.client import StorefrontClient
from api.errors import NetworkFailure
from cart.events import CatalogChanged, Notice
from catalog.debouncer import SearchDebouncer
from catalog.store import ProductCatalogStore
from fakes import API_BASE, FakeBackend, FakeScheduler, FakeSearch, make_product


class DebouncerTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.scheduler = FakeScheduler()
        self.catalog = ProductCatalogStore()
        self.events = []
        self.search = FakeSearch(
            {
                "ab": [make_product("AB")],
                "abc": [make_product("ABC")],
            }
        )
        self.debouncer = SearchDebouncer(
            self.search,
            self.catalog,
            delay=0.5,
            emit=self.events.append,
            scheduler=self.scheduler,
        )

    def type_at(self, timeline):
        """Feed (seconds, text) keystrokes, advancing the fake clock between them."""
        for at, text in timeline:
            self.scheduler.advance(at - self.scheduler.now)
            self.debouncer.on_input(text)

    async def test_burst_within_window_searches_once(self):
        self.type_at([(0.0, "a"), (0.1, "ab"), (0.4, "abc")])
        self.scheduler.advance(0.49)
        self.assertEqual(self.search.calls, [])

        self.scheduler.advance(0.01)
        await self.debouncer.drain()

        self.assertEqual(self.search.calls, ["abc"])
        self.assertEqual([p.id for p in self.catalog.products], ["ABC"])
        self.assertEqual(self.catalog.query, "abc")
        self.assertIn(CatalogChanged("abc"), self.events)

    async def test_pause_longer_than_window_fires_intermediate_search(self):
        # "ab" has been quiet for 500ms by t=600ms, so it goes out before "abc"
        self.type_at([(0.0, "a"), (0.1, "ab"), (0.7, "abc")])
        self.scheduler.advance(0.5)
        await self.debouncer.drain()

        self.assertEqual(self.search.calls, ["ab", "abc"])
        self.assertEqual(self.catalog.query, "abc")
        self.assertEqual([p.id for p in self.catalog.products], ["ABC"])

    async def test_on_input_cancels_previous_token(self):
        first = self.debouncer.on_input("a")
        second = self.debouncer.on_input("ab")

        self.assertTrue(first.cancelled)
        self.assertFalse(second.cancelled)
        self.assertIs(self.debouncer.pending, second)
        self.assertEqual(self.scheduler.active, 1)

    async def test_cancelled_token_never_searches(self):
        token = self.debouncer.on_input("abc")
        token.cancel()
        self.scheduler.advance(1.0)
        await self.debouncer.drain()

        self.assertEqual(self.search.calls, [])
        self.assertFalse(token.fired)
        self.assertIsNone(self.debouncer.pending)

    async def test_tokens_are_numbered_when_issued(self):
        token = self.debouncer.on_input("ab")
        self.assertIsNone(token.seq)
        self.scheduler.advance(0.5)
        self.assertEqual(token.seq, 1)
        self.assertEqual(self.debouncer.latest_seq, 1)
        await self.debouncer.drain()

    async def test_stale_response_is_discarded(self):
        self.search.held = True
        self.type_at([(0.0, "ab")])
        self.scheduler.advance(0.5)
        await asyncio.sleep(0)
        self.debouncer.on_input("abc")
        self.scheduler.advance(0.5)
        await asyncio.sleep(0)
        self.assertEqual(self.search.calls, ["ab", "abc"])

        # newer query answers first, then the slow older one
        self.search.respond("abc", [make_product("ABC")])
        await asyncio.sleep(0)
        self.search.respond("ab", [make_product("AB")])
        await self.debouncer.drain()

        self.assertEqual([p.id for p in self.catalog.products], ["ABC"])
        self.assertEqual(self.catalog.query, "abc")
        self.assertEqual(self.debouncer.discarded, 1)

    async def test_stale_failure_is_not_reported(self):
        self.search.held = True
        self.debouncer.on_input("ab")
        self.scheduler.advance(0.5)
        await asyncio.sleep(0)
        self.debouncer.on_input("abc")
        self.scheduler.advance(0.5)
        await asyncio.sleep(0)

        self.search.fail("ab", NetworkFailure("timeout"))
        self.search.respond("abc", [make_product("ABC")])
        await self.debouncer.drain()

        self.assertEqual([e for e in self.events if isinstance(e, Notice)], [])
        self.assertEqual(self.catalog.query, "abc")

    async def test_failure_keeps_last_good_catalog(self):
        self.catalog.replace([make_product("OLD")])
        self.search.held = True
        self.debouncer.on_input("x")
        self.scheduler.advance(0.5)
        await asyncio.sleep(0)

        self.search.fail("x", NetworkFailure("Something went wrong. Failed to fetch products."))
        await self.debouncer.drain()

        self.assertEqual([p.id for p in self.catalog.products], ["OLD"])
        [notice] = [e for e in self.events if isinstance(e, Notice)]
        self.assertEqual(notice.severity, "error")

    async def test_cancel_makes_in_flight_response_stale(self):
        self.search.held = True
        self.debouncer.on_input("ab")
        self.scheduler.advance(0.5)
        await asyncio.sleep(0)

        self.debouncer.cancel()
        self.search.respond("ab", [make_product("AB")])
        await self.debouncer.drain()

        self.assertFalse(self.catalog.loaded)

    async def test_empty_text_is_a_valid_search(self):
        self.search.results[""] = [make_product("P1"), make_product("P2")]
        self.debouncer.on_input("")
        self.scheduler.advance(0.5)
        await self.debouncer.drain()

        self.assertEqual(self.search.calls, [""])
        self.assertEqual(len(self.catalog), 2)

    async def test_uses_running_loop_by_default(self):
        debouncer = SearchDebouncer(self.search, self.catalog, delay=0.01)
        debouncer.on_input("a")
        debouncer.on_input("abc")
        await asyncio.sleep(0.05)
        await debouncer.drain()

        self.assertEqual(self.search.calls, ["abc"])


class DebouncerOverHttpTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.backend = FakeBackend()
        self.client = StorefrontClient(API_BASE, transport=self.backend.transport())
        self.scheduler = FakeScheduler()
        self.catalog = ProductCatalogStore()
        self.events = []
        self.debouncer = SearchDebouncer(
            self.client.search_products,
            self.catalog,
            emit=self.events.append,
            scheduler=self.scheduler,
        )

    async def asyncTearDown(self):
        await self.client.aclose()

    async def test_not_found_yields_empty_catalog_without_notice(self):
        self.catalog.replace([make_product("OLD")])
        self.debouncer.on_input("no such thing")
        self.scheduler.advance(0.5)
        await self.debouncer.drain()

        self.assertTrue(self.catalog.loaded)
        self.assertEqual(self.catalog.products, [])
        self.assertEqual([e for e in self.events if isinstance(e, Notice)], [])

    async def test_server_error_surfaces_server_message(self):
        self.backend.fail(
            "GET",
            "/products/search",
            500,
            {"success": False, "message": "Search index unavailable"},
        )
        self.debouncer.on_input("phone")
        self.scheduler.advance(0.5)
        await self.debouncer.drain()

        [notice] = [e for e in self.events if isinstance(e, Notice)]
        self.assertEqual(notice.message, "Search index unavailable")
        self.assertEqual(notice.severity, "error")

    async def test_search_hits_endpoint_with_value(self):
        self.debouncer.on_input("ball")
        self.scheduler.advance(0.5)
        await self.debouncer.drain()

        request = self.backend.requests[-1]
        self.assertEqual(request.url.params["value"], "ball")
        self.assertEqual([p.name for p in self.catalog.products], ["Basketball"])

    async def test_search_with_default_transport_error(self):
        def broken(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with StorefrontClient(API_BASE, transport=httpx.MockTransport(broken)) as client:
            debouncer = SearchDebouncer(
                client.search_products,
                self.catalog,
                emit=self.events.append,
                scheduler=self.scheduler,
            )
            debouncer.on_input("phone")
            self.scheduler.advance(0.5)
            await debouncer.drain()

        [notice] = [e for e in self.events if isinstance(e, Notice)]
        self.assertEqual(notice.message, "Something went wrong. Failed to fetch products.")

    async def test_wrong_shaped_search_answer_keeps_catalog(self):
        self.catalog.replace([make_product("OLD")])
        self.backend.fail("GET", "/products/search", 200, {"success": True})
        self.debouncer.on_input("phone")
        self.scheduler.advance(0.5)
        await self.debouncer.drain()

        self.assertEqual([p.id for p in self.catalog.products], ["OLD"])
        [notice] = [e for e in self.events if isinstance(e, Notice)]
        self.assertEqual(notice.message, "Something went wrong. Failed to fetch products.")
