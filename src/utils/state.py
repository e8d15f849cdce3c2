from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

import httpx

import db.crud as crud
from api.client import StorefrontClient
from api.errors import StorefrontError
from api.models import CartItem, LoginResult, OrderSummary, Product
from cart.coordinator import CartMutationCoordinator
from cart.events import CartChanged, CatalogChanged, Event, Notice
from cart.pricing import totals
from cart.reconciler import reconcile
from cart.stores import CartEntryStore
from catalog.debouncer import Scheduler, SearchDebouncer
from catalog.store import ProductCatalogStore
from utils.config import Settings
from utils.logger import get_logger
from utils.validators import validate_login, validate_registration

_logger = get_logger(__name__)

SESSION_KEYS = ("username", "token", "balance")


@dataclass
class SessionContext:
    """
    The logged-in user, persisted locally so a restart keeps the login.

    Fields:
      - username: name the user logged in with
      - token: bearer token attached to every API request
      - balance: wallet balance reported by the server at login
    """

    username: Optional[str] = None
    token: Optional[str] = None
    balance: Optional[Decimal] = None

    @property
    def is_active(self) -> bool:
        return bool(self.token)

    async def start(self, result: LoginResult) -> None:
        """Adopt a successful login and persist it."""
        self.username = result.username
        self.token = result.token
        self.balance = result.balance
        await crud.put_values(
            {
                "username": self.username,
                "token": self.token,
                "balance": str(self.balance) if self.balance is not None else None,
            }
        )
        _logger.info(f"Session started for {self.username}")

    async def restore(self) -> bool:
        """Load a persisted session. Returns True if one was found."""
        values = await crud.get_values(SESSION_KEYS)
        if not values.get("token"):
            return False
        self.username = values.get("username")
        self.token = values["token"]
        balance = values.get("balance")
        self.balance = Decimal(balance) if balance else None
        _logger.info(f"Session restored for {self.username}")
        return True

    async def end(self) -> None:
        """Forget the session in memory and on disk."""
        if self.username:
            _logger.info(f"Session ended for {self.username}")
        self.username = None
        self.token = None
        self.balance = None
        await crud.delete_values(SESSION_KEYS)


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens: the session, the
    API client, both stores and the two engines that write to them.
    Cart items and the order summary are derived on every read.
    """

    settings: Settings = field(default_factory=Settings)
    transport: Optional[httpx.AsyncBaseTransport] = None
    scheduler: Optional[Scheduler] = None

    session: SessionContext = field(init=False)
    client: StorefrontClient = field(init=False)
    catalog: ProductCatalogStore = field(init=False)
    cart: CartEntryStore = field(init=False)
    coordinator: CartMutationCoordinator = field(init=False)
    debouncer: SearchDebouncer = field(init=False)

    def __post_init__(self) -> None:
        self.session = SessionContext()
        self.client = StorefrontClient(
            self.settings.api_endpoint,
            session=self.session,
            timeout=self.settings.http_timeout,
            transport=self.transport,
        )
        self.catalog = ProductCatalogStore()
        self.cart = CartEntryStore()
        self._listeners = []
        self.coordinator = CartMutationCoordinator(
            self.client,
            self.cart,
            catalog=self.catalog,
            session=self.session,
            emit=self._emit,
        )
        self.debouncer = SearchDebouncer(
            self.client.search_products,
            self.catalog,
            delay=self.settings.search_debounce_seconds,
            emit=self._emit,
            scheduler=self.scheduler,
        )

    # ---------------------------
    # Signals
    # ---------------------------

    def subscribe(self, listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: Event) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _report(self, error: StorefrontError) -> None:
        self._emit(Notice.from_error(error))

    # ---------------------------
    # Derived views
    # ---------------------------

    @property
    def products(self) -> List[Product]:
        return self.catalog.products

    @property
    def cart_items(self) -> List[CartItem]:
        return reconcile(self.cart.entries(), self.catalog.products)

    @property
    def summary(self) -> OrderSummary:
        return totals(self.cart_items, self.settings.shipping_charge)

    @property
    def is_ready(self) -> bool:
        """Both catalog and cart have loaded at least once."""
        if not self.session.is_active:
            return self.catalog.loaded
        return self.catalog.loaded and self.cart.loaded

    # ---------------------------
    # Loading
    # ---------------------------

    async def load_catalog(self) -> bool:
        """
        Fetch the full catalog. Shares the search sequence, so a search
        issued while this is in flight wins, whichever answer lands last.
        """
        seq = self.debouncer.issue()
        try:
            products = await self.client.fetch_products()
        except StorefrontError as e:
            if not self.debouncer.is_latest(seq):
                return False
            _logger.error(f"Catalog fetch failed: {e.message}")
            self._report(e)
            return False
        if not self.debouncer.is_latest(seq):
            _logger.debug(f"Discarding full catalog #{seq}, a newer search was issued")
            return False
        self.catalog.replace(products)
        self._emit(CatalogChanged())
        return True

    async def load_cart(self) -> bool:
        if not self.session.is_active:
            return False
        try:
            await self.coordinator.refresh()
        except StorefrontError as e:
            _logger.error(f"Cart fetch failed: {e.message}")
            self._report(e)
            return False
        return True

    async def load(self) -> None:
        """Fetch catalog and cart concurrently; neither waits for the other."""
        await asyncio.gather(self.load_catalog(), self.load_cart())

    # ---------------------------
    # Auth
    # ---------------------------

    async def restore_session(self) -> bool:
        return await self.session.restore()

    async def login(self, username: str, password: str) -> bool:
        try:
            validate_login(username, password)
            result = await self.client.login(username, password)
        except StorefrontError as e:
            self._report(e)
            return False
        await self.session.start(result)
        self._emit(Notice("Logged in successfully", "information"))
        return True

    async def register(self, username: str, password: str, confirm_password: str) -> bool:
        try:
            validate_registration(username, password, confirm_password)
            await self.client.register(username, password)
        except StorefrontError as e:
            self._report(e)
            return False
        self._emit(Notice("Registered successfully", "information"))
        return True

    async def logout(self) -> None:
        self.coordinator.cancel_all()
        self.debouncer.cancel()
        await self.session.end()
        self.cart.clear()
        self._emit(CartChanged())

    async def close(self) -> None:
        self.coordinator.cancel_all()
        self.debouncer.cancel()
        await self.client.aclose()
