# async client for the storefront REST API
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar

import httpx

from api.errors import NetworkFailure, NotFound
from api.models import CartEntry, LoginResult, Product
from utils.logger import get_logger

_logger = get_logger(__name__)

PRODUCTS_FALLBACK = "Something went wrong. Failed to fetch products."
CART_FALLBACK = "Something went wrong. Failed to fetch cart items."
LOGIN_FALLBACK = (
    "Something went wrong. Check that the backend is running, "
    "reachable and returns valid JSON."
)
REGISTER_FALLBACK = "Something went wrong. Registration failed."

T = TypeVar("T")

# raised by the model decoders when a 2xx body has the wrong shape
_SHAPE_ERRORS = (TypeError, KeyError, ValueError, AttributeError, ArithmeticError)


class TokenSource(Protocol):
    token: Optional[str]


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return None


def _decode(data: Any, decode: Callable[[Any], T], fallback: str) -> T:
    try:
        return decode(data)
    except _SHAPE_ERRORS as e:
        _logger.error(f"Malformed response body: {e!r}")
        raise NetworkFailure(fallback) from e


def _rows(data: Any) -> List[Any]:
    if not isinstance(data, list):
        raise TypeError(f"expected a JSON array, got {type(data).__name__}")
    return data


def _products(data: Any) -> List[Product]:
    return [Product.from_json(row) for row in _rows(data)]


def _cart(data: Any) -> List[CartEntry]:
    entries = [CartEntry.from_json(row) for row in _rows(data)]
    return [e for e in entries if e.qty > 0]


class StorefrontClient:
    """
    Thin wrapper over httpx.AsyncClient, one method per API endpoint.

    The session is read on every request, so logging in or out does not
    require rebuilding the client. Pass ``transport`` to swap the network
    for an in-process handler (``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[TokenSource] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._session = session
        kwargs: Dict[str, Any] = {"base_url": base_url, "transport": transport}
        if timeout is not None:
            kwargs["timeout"] = timeout
        self._http = httpx.AsyncClient(**kwargs)

    async def __aenter__(self) -> "StorefrontClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> Dict[str, str]:
        token = self._session.token if self._session is not None else None
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        url: str,
        fallback: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._http.request(
                method, url, params=params, json=json, headers=self._headers()
            )
        except httpx.RequestError as e:
            _logger.error(f"{method} {url} failed: {e!r}")
            raise NetworkFailure(fallback) from e

        _logger.debug(f"{method} {url} -> {response.status_code}")
        if response.status_code == 404:
            raise NotFound(_server_message(response) or "Not found")
        if not response.is_success:
            raise NetworkFailure(
                _server_message(response) or fallback, status=response.status_code
            )
        try:
            return response.json()
        except ValueError as e:
            raise NetworkFailure(fallback, status=response.status_code) from e

    # ---------------------------
    # Products
    # ---------------------------

    async def fetch_products(self) -> List[Product]:
        try:
            data = await self._request("GET", "/products", PRODUCTS_FALLBACK)
        except NotFound as e:
            raise NetworkFailure(PRODUCTS_FALLBACK, status=404) from e
        return _decode(data, _products, PRODUCTS_FALLBACK)

    async def search_products(self, text: str) -> List[Product]:
        """A 404 means nothing matched; it yields an empty list."""
        try:
            data = await self._request(
                "GET", "/products/search", PRODUCTS_FALLBACK, params={"value": text}
            )
        except NotFound:
            return []
        return _decode(data, _products, PRODUCTS_FALLBACK)

    # ---------------------------
    # Cart
    # ---------------------------

    async def fetch_cart(self) -> List[CartEntry]:
        try:
            data = await self._request("GET", "/cart", CART_FALLBACK)
        except NotFound as e:
            raise NetworkFailure(CART_FALLBACK, status=404) from e
        return _decode(data, _cart, CART_FALLBACK)

    async def update_cart(self, product_id: str, qty: int) -> List[CartEntry]:
        """
        Set the absolute quantity of one product. qty 0 removes it.
        Returns the server's full cart snapshot.
        """
        try:
            data = await self._request(
                "POST",
                "/cart",
                PRODUCTS_FALLBACK,
                json={"productId": product_id, "qty": max(qty, 0)},
            )
        except NotFound as e:
            raise NetworkFailure(e.message, status=404) from e
        return _decode(data, _cart, PRODUCTS_FALLBACK)

    # ---------------------------
    # Auth
    # ---------------------------

    async def login(self, username: str, password: str) -> LoginResult:
        try:
            data = await self._request(
                "POST",
                "/auth/login",
                LOGIN_FALLBACK,
                json={"username": username, "password": password},
            )
        except NotFound as e:
            raise NetworkFailure(LOGIN_FALLBACK, status=404) from e
        return _decode(data, LoginResult.from_json, LOGIN_FALLBACK)

    async def register(self, username: str, password: str) -> None:
        try:
            await self._request(
                "POST",
                "/auth/register",
                REGISTER_FALLBACK,
                json={"username": username, "password": password},
            )
        except NotFound as e:
            raise NetworkFailure(REGISTER_FALLBACK, status=404) from e
