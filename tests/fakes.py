"""In-memory fakes for testing.

FakeScheduler replaces the event loop clock for the debouncer, FakeCartApi
and FakeSearch stand in for the remote API with controllable timing, and
FakeBackend is an httpx.MockTransport handler speaking the real wire format.
"""

from __future__ import annotations

import asyncio
import json
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from api.errors import StorefrontError
from api.models import CartEntry, Product

API_BASE = "https://qkart.test/api/v1"

PRODUCTS_JSON = [
    {
        "name": "iPhone XR",
        "category": "Phones",
        "cost": 100,
        "rating": 4,
        "image": "https://i.imgur.com/lulqWzW.jpg",
        "_id": "P1",
    },
    {
        "name": "Basketball",
        "category": "Sports",
        "cost": 50,
        "rating": 5,
        "image": "https://i.imgur.com/lulqWzW.jpg",
        "_id": "P2",
    },
    {
        "name": "Tan Leatherette Weekender Duffle",
        "category": "Fashion",
        "cost": 150.5,
        "rating": 4,
        "image": "https://crio-directus-assets.s3.ap-south-1.amazonaws.com/ff071a1c.png",
        "_id": "P3",
    },
]


def make_product(pid: str, cost="100", name: Optional[str] = None) -> Product:
    return Product(
        id=pid,
        name=name or f"Product {pid}",
        category="Misc",
        cost=Decimal(cost),
        rating=3,
        image_url=f"https://img.test/{pid}.png",
    )


class FakeTimer:
    def __init__(self, when: float, callback: Callable[[], Any]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock: timers only fire when the test calls advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: List[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], Any]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [
                t for t in self._timers if not t.cancelled and t.when <= target + 1e-9
            ]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self.now = target

    @property
    def active(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)


class FakeCartApi:
    """
    Server-side cart kept in a dict. While held, update_cart calls block
    until release(), so tests can interleave user intents with responses.
    """

    def __init__(self, entries: Tuple[Tuple[str, int], ...] = ()) -> None:
        self.server: Dict[str, int] = dict(entries)
        self.calls: List[Tuple[str, int]] = []
        # consumed one per call; None lets that call succeed
        self.failures: List[Optional[StorefrontError]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._gate: Optional[asyncio.Event] = None
        # while set, fetch_cart answers with the cart as it was when called
        self.fetch_gate: Optional[asyncio.Event] = None

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
        self._gate = None

    def snapshot(self) -> List[CartEntry]:
        return [CartEntry(pid, qty) for pid, qty in self.server.items()]

    async def fetch_cart(self) -> List[CartEntry]:
        snapshot = self.snapshot()
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        return snapshot

    async def update_cart(self, product_id: str, qty: int) -> List[CartEntry]:
        self.calls.append((product_id, qty))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            while self._gate is not None:
                await self._gate.wait()
            if self.failures:
                error = self.failures.pop(0)
                if error is not None:
                    raise error
            if qty <= 0:
                self.server.pop(product_id, None)
            else:
                self.server[product_id] = qty
            return self.snapshot()
        finally:
            self.in_flight -= 1


class FakeSearch:
    """
    Search function double. Answers straight from ``results`` unless held,
    in which case each call waits until the test responds to it.
    """

    def __init__(self, results: Optional[Dict[str, List[Product]]] = None) -> None:
        self.results = results or {}
        self.calls: List[str] = []
        self.held = False
        self.waiting: Dict[str, asyncio.Future] = {}

    async def __call__(self, text: str) -> List[Product]:
        self.calls.append(text)
        if self.held:
            future = asyncio.get_running_loop().create_future()
            self.waiting[text] = future
            return await future
        return list(self.results.get(text, []))

    def respond(self, text: str, products: List[Product]) -> None:
        self.waiting.pop(text).set_result(products)

    def fail(self, text: str, error: StorefrontError) -> None:
        self.waiting.pop(text).set_exception(error)


class FakeBackend:
    """httpx.MockTransport handler imitating the storefront REST API."""

    def __init__(self) -> None:
        self.products: List[Dict[str, Any]] = [dict(p) for p in PRODUCTS_JSON]
        self.cart: Dict[str, int] = {}
        self.users: Dict[str, str] = {"crio.do": "learnbydoing"}
        self.token = "jwt-token-123"
        self.balance = 5000
        self.requests: List[httpx.Request] = []
        self.overrides: Dict[Tuple[str, str], Tuple[int, Any]] = {}

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def fail(self, method: str, path: str, status: int, body: Any = None) -> None:
        self.overrides[(method, path)] = (status, body)

    def paths(self) -> List[str]:
        return [f"{r.method} {r.url.path.removeprefix('/api/v1')}" for r in self.requests]

    def _cart_json(self) -> List[Dict[str, Any]]:
        return [{"productId": pid, "qty": qty} for pid, qty in self.cart.items()]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/v1")
        method = request.method

        override = self.overrides.get((method, path))
        if override is not None:
            status, body = override
            if body is None:
                return httpx.Response(status, text="<html>Bad Gateway</html>")
            return httpx.Response(status, json=body)

        if method == "GET" and path == "/products":
            return httpx.Response(200, json=self.products)

        if method == "GET" and path == "/products/search":
            value = request.url.params.get("value", "").lower()
            found = [
                p
                for p in self.products
                if value in p["name"].lower() or value in p["category"].lower()
            ]
            if not found:
                return httpx.Response(404, json=[])
            return httpx.Response(200, json=found)

        if path == "/cart":
            if request.headers.get("Authorization") != f"Bearer {self.token}":
                return httpx.Response(
                    401,
                    json={
                        "success": False,
                        "message": "Protected route, Oauth2 Bearer token not found",
                    },
                )
            if method == "POST":
                body = json.loads(request.content)
                if body["qty"] <= 0:
                    self.cart.pop(body["productId"], None)
                else:
                    self.cart[body["productId"]] = body["qty"]
            return httpx.Response(200, json=self._cart_json())

        if method == "POST" and path == "/auth/login":
            body = json.loads(request.content)
            if self.users.get(body["username"]) != body["password"]:
                return httpx.Response(
                    400, json={"success": False, "message": "Password is incorrect"}
                )
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "token": self.token,
                    "username": body["username"],
                    "balance": self.balance,
                },
            )

        if method == "POST" and path == "/auth/register":
            body = json.loads(request.content)
            if body["username"] in self.users:
                return httpx.Response(
                    400,
                    json={"success": False, "message": "Username is already taken"},
                )
            self.users[body["username"]] = body["password"]
            return httpx.Response(201, json={"success": True})

        return httpx.Response(404, json={"success": False, "message": "Unknown route"})
