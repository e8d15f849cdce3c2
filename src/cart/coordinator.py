"""
Turns cart intents (add, increment, decrement, remove) into remote cart
mutations while keeping the local CartEntryStore optimistically current.

Mutations for one product never overlap on the wire. While a request is in
flight, further intents for the same product only move its desired
quantity; once the request settles the latest desired quantity is sent if
it differs from what the server now has. The last value the user asked for
is therefore the last value written, and a burst of clicks costs at most
two round-trips.

Every cart round-trip (GET or POST) is numbered when it starts, and a
snapshot is only applied if no round-trip started after it has already been
applied. A slow GET can therefore never undo a mutation the server has
confirmed in the meantime.

The wire contract only knows absolute quantities (POST /cart with qty, 0
meaning remove), so every request carries the resulting quantity, never a
delta.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol

from api.errors import DuplicateOperation, StorefrontError, ValidationFailure
from api.models import CartEntry
from cart.events import CartChanged, Emit, Notice, ignore
from cart.stores import CartEntryStore
from catalog.store import ProductCatalogStore
from utils.logger import get_logger
from utils.validators import validate_quantity

_logger = get_logger(__name__)


class CartApi(Protocol):
    async def fetch_cart(self) -> List[CartEntry]: ...

    async def update_cart(self, product_id: str, qty: int) -> List[CartEntry]: ...


class SessionGate(Protocol):
    @property
    def is_active(self) -> bool: ...


class ProductState(Enum):
    ABSENT = "absent"
    PENDING_ADD = "pending_add"
    PRESENT = "present"
    PENDING_UPDATE = "pending_update"
    PENDING_REMOVE = "pending_remove"


@dataclass
class _Mutation:
    start: int  # server quantity before this chain of requests
    confirmed: int  # last quantity the server acknowledged
    desired: int  # latest quantity the user asked for
    position: Optional[int] = None  # place in the cart, restored on rollback
    task: Optional[asyncio.Task] = field(default=None, repr=False)


class CartMutationCoordinator:
    def __init__(
        self,
        api: CartApi,
        entries: CartEntryStore,
        catalog: Optional[ProductCatalogStore] = None,
        session: Optional[SessionGate] = None,
        emit: Emit = ignore,
    ):
        self._api = api
        self._entries = entries
        self._catalog = catalog
        self._session = session
        self.emit = emit
        self._pending: Dict[str, _Mutation] = {}
        self._round_trips = 0
        self._applied = 0

    # ---------------------------
    # Queries
    # ---------------------------

    def state_of(self, product_id: str) -> ProductState:
        mutation = self._pending.get(product_id)
        if mutation is None:
            if product_id in self._entries:
                return ProductState.PRESENT
            return ProductState.ABSENT
        if mutation.desired <= 0:
            return ProductState.PENDING_REMOVE
        if mutation.confirmed <= 0:
            return ProductState.PENDING_ADD
        return ProductState.PENDING_UPDATE

    def is_pending(self, product_id: str) -> bool:
        return product_id in self._pending

    # ---------------------------
    # Intents
    # ---------------------------

    def add_to_cart(self, product_id: str) -> Optional[asyncio.Task]:
        """
        Put one unit of a product in the cart.
        Returns the task carrying the remote call, or None if nothing was sent.
        """
        if not self._check_session():
            return None
        if self._catalog is not None and product_id not in self._catalog:
            self._warn(ValidationFailure("Product is no longer available"))
            return None
        if self._entries.quantity(product_id) > 0:
            # the UI should steer the user to the quantity controls instead
            _logger.info(f"Duplicate add for {product_id} ignored")
            self._warn(DuplicateOperation(product_id))
            return None
        return self._schedule(product_id, 1)

    def increment_quantity(self, product_id: str) -> Optional[asyncio.Task]:
        return self._step(product_id, +1)

    def decrement_quantity(self, product_id: str) -> Optional[asyncio.Task]:
        return self._step(product_id, -1)

    def remove_from_cart(self, product_id: str) -> Optional[asyncio.Task]:
        return self.set_quantity(product_id, 0)

    def set_quantity(self, product_id: str, quantity: int) -> Optional[asyncio.Task]:
        """quantity >= 1 upserts, quantity <= 0 removes the entry."""
        try:
            quantity = validate_quantity(quantity)
        except ValidationFailure as e:
            self._warn(e)
            return None
        if not self._check_session():
            return None

        quantity = max(quantity, 0)
        if quantity == self._entries.quantity(product_id):
            mutation = self._pending.get(product_id)
            return mutation.task if mutation else None
        return self._schedule(product_id, quantity)

    # ---------------------------
    # Lifecycle
    # ---------------------------

    async def refresh(self) -> None:
        """Reload the cart from the server, keeping in-flight intents visible."""
        seq = self._begin_round_trip()
        snapshot = await self._api.fetch_cart()
        if not self._apply_snapshot(seq, snapshot):
            _logger.debug(f"Dropping cart snapshot #{seq}, #{self._applied} is newer")
            return
        self.emit(CartChanged())

    async def drain(self) -> None:
        """Wait until no mutation is in flight."""
        while self._pending:
            tasks = [m.task for m in self._pending.values() if m.task is not None]
            await asyncio.gather(*tasks, return_exceptions=True)

    def cancel_all(self) -> None:
        """Abandon in-flight mutations, e.g. on logout. Their results are discarded."""
        pending, self._pending = self._pending, {}
        for mutation in pending.values():
            if mutation.task is not None:
                mutation.task.cancel()

    # ---------------------------
    # Internals
    # ---------------------------

    def _step(self, product_id: str, delta: int) -> Optional[asyncio.Task]:
        current = self._entries.quantity(product_id)
        if current == 0:
            self._warn(ValidationFailure("Item is not in the cart"))
            return None
        return self.set_quantity(product_id, current + delta)

    def _check_session(self) -> bool:
        if self._session is not None and not self._session.is_active:
            self._warn(ValidationFailure("Login to add an item to the Cart"))
            return False
        return True

    def _warn(self, error: StorefrontError) -> None:
        self.emit(Notice.from_error(error))

    def _schedule(self, product_id: str, quantity: int) -> asyncio.Task:
        mutation = self._pending.get(product_id)
        if mutation is None:
            current = self._entries.quantity(product_id)
            mutation = _Mutation(
                start=current,
                confirmed=current,
                desired=quantity,
                position=self._entries.position(product_id),
            )
            self._pending[product_id] = mutation
        else:
            mutation.desired = quantity

        self._entries.set_quantity(product_id, quantity)
        self.emit(CartChanged(product_id))

        if mutation.task is None:
            mutation.task = asyncio.create_task(self._flush(product_id, mutation))
        return mutation.task

    def _begin_round_trip(self) -> int:
        self._round_trips += 1
        return self._round_trips

    def _apply_snapshot(self, seq: int, snapshot: List[CartEntry]) -> bool:
        """Replace the store with a server snapshot unless a newer one already landed."""
        if seq < self._applied:
            return False
        self._applied = seq
        self._entries.replace(snapshot)
        self._overlay_pending()
        return True

    def _overlay_pending(self) -> None:
        for product_id, mutation in self._pending.items():
            self._entries.set_quantity(product_id, mutation.desired)

    def _release(self, product_id: str, mutation: _Mutation) -> None:
        if self._pending.get(product_id) is mutation:
            del self._pending[product_id]

    async def _flush(self, product_id: str, mutation: _Mutation) -> None:
        sent = mutation.confirmed
        try:
            while mutation.desired != sent:
                sent = mutation.desired
                seq = self._begin_round_trip()
                _logger.debug(f"POST /cart #{seq} {product_id} qty={sent}")
                try:
                    snapshot = await self._api.update_cart(product_id, sent)
                except StorefrontError as e:
                    _logger.warning(
                        f"Cart update for {product_id} failed, "
                        f"reverting to qty={mutation.confirmed}: {e.message}"
                    )
                    self._release(product_id, mutation)
                    self._entries.set_quantity(
                        product_id, mutation.confirmed, position=mutation.position
                    )
                    self.emit(CartChanged(product_id))
                    self._warn(e)
                    return

                if self._pending.get(product_id) is not mutation:
                    # cancelled or superseded by a fresh session
                    return
                mutation.confirmed = sent
                if not self._apply_snapshot(seq, snapshot):
                    # a newer snapshot is in place; only this product's write is news
                    self._entries.set_quantity(product_id, mutation.desired)
                self.emit(CartChanged(product_id))

            if mutation.start == 0 and sent > 0:
                self.emit(Notice("Product added to cart.", "information"))
        finally:
            self._release(product_id, mutation)
