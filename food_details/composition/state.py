from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, NoReturn, Optional

from food_details.composition.pricing import cart_total
from food_details.errors import CompositionStateError, FoodLookupError, SubmissionError
from food_details.models.food_models import (
    CatalogExtra,
    CompositionSnapshot,
    CompositionStatus,
    Extra,
    Food,
    Order,
)


FetchFood = Callable[[int], Optional[Food]]
PlaceOrder = Callable[[Order], Any]
Listener = Callable[[CompositionSnapshot], None]


class CompositionState:
    """
    In-memory composition of one food screen: the loaded food, its extras
    with user-chosen quantities and the food quantity.

    Lifecycle:
        uninitialized -> loading -> ready -> submitting -> completed
                                                        -> submission_failed
    A failed load goes back to uninitialized. submission_failed behaves like
    ready: the next mutation or confirmation moves back to ready.

    Collaborators are plain callables so the host can plug the HTTP services
    in and tests can plug fakes in.

    Every check-and-transition runs under one re-entrant lock, so a host
    serving requests from a threadpool cannot confirm the same composition
    twice or lose quantity updates. The lock is not held across collaborator
    calls; the loading/submitting status is what keeps other callers out
    while a call is in flight.
    """

    def __init__(self, fetch_food: FetchFood, place_order: PlaceOrder) -> None:
        self._fetch_food = fetch_food
        self._place_order = place_order
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

        self.status = CompositionStatus.UNINITIALIZED
        self._food: Optional[Food] = None
        self._extras: List[Extra] = []
        self._extras_by_id: Dict[int, Extra] = {}
        self._food_quantity = 1

    # ----------------- read side -----------------

    @property
    def food(self) -> Optional[Food]:
        return self._food

    @property
    def food_quantity(self) -> int:
        return self._food_quantity

    @property
    def extras(self) -> List[Extra]:
        with self._lock:
            return [extra.model_copy() for extra in self._extras]

    @property
    def total(self) -> Optional[float]:
        with self._lock:
            if self._food is None:
                return None
            return cart_total(self._food, self._food_quantity, self._extras)

    def snapshot(self) -> CompositionSnapshot:
        with self._lock:
            return CompositionSnapshot(
                status=self.status,
                food=self._food,
                extras=self.extras,
                food_quantity=self._food_quantity,
                total=self.total,
            )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener` for every state change. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    def _enter(self, status: CompositionStatus, fallback: CompositionStatus) -> None:
        # A listener failing on entry must not strand the composition in a
        # transient state nobody will ever leave.
        self.status = status
        try:
            self._notify()
        except Exception:
            self.status = fallback
            raise

    def _fail(self, status: CompositionStatus, error: Exception) -> NoReturn:
        # `error` wins over anything a listener raises; the listener's
        # exception stays attached as its __context__.
        self.status = status
        try:
            self._notify()
        finally:
            raise error

    def _require_mutable(self, action: str) -> None:
        if self.status == CompositionStatus.SUBMISSION_FAILED:
            self.status = CompositionStatus.READY
        if self.status != CompositionStatus.READY:
            raise CompositionStateError(f"cannot {action} while {self.status.value}")

    # ----------------- load -----------------

    def load(self, food_id: int) -> CompositionSnapshot:
        with self._lock:
            if self.status != CompositionStatus.UNINITIALIZED:
                raise CompositionStateError(f"cannot load while {self.status.value}")
            self._enter(CompositionStatus.LOADING, CompositionStatus.UNINITIALIZED)

        try:
            food = self._fetch_food(food_id)
        except FoodLookupError as exc:
            with self._lock:
                self._fail(CompositionStatus.UNINITIALIZED, exc)
        except Exception as exc:
            error = FoodLookupError(f"Food lookup failed: {exc}", food_id=food_id)
            error.__cause__ = exc
            with self._lock:
                self._fail(CompositionStatus.UNINITIALIZED, error)

        with self._lock:
            if food is None:
                self._fail(
                    CompositionStatus.UNINITIALIZED,
                    FoodLookupError(f"Food {food_id} not found", food_id=food_id, not_found=True),
                )

            # Server-side quantities are never trusted; the stored food keeps
            # only the catalog view of its extras.
            catalog = [
                CatalogExtra(id=extra.id, name=extra.name, value=extra.value)
                for extra in food.extras
            ]
            self._food = food.model_copy(update={"extras": catalog})
            self._extras = [Extra(**entry.model_dump(), quantity=0) for entry in catalog]
            self._extras_by_id = {extra.id: extra for extra in self._extras}
            self._food_quantity = 1

            self.status = CompositionStatus.READY
            self._notify()
            return self.snapshot()

    # ----------------- mutators -----------------

    def increment_extra(self, extra_id: int) -> None:
        with self._lock:
            self._require_mutable("change extras")
            extra = self._extras_by_id.get(extra_id)
            if extra is not None:
                extra.quantity += 1
            self._notify()

    def decrement_extra(self, extra_id: int) -> None:
        with self._lock:
            self._require_mutable("change extras")
            extra = self._extras_by_id.get(extra_id)
            if extra is not None and extra.quantity > 0:
                extra.quantity -= 1
            self._notify()

    def increment_food(self) -> None:
        with self._lock:
            self._require_mutable("change food quantity")
            self._food_quantity += 1
            self._notify()

    def decrement_food(self) -> None:
        with self._lock:
            self._require_mutable("change food quantity")
            if self._food_quantity > 1:
                self._food_quantity -= 1
            self._notify()

    # ----------------- submission -----------------

    def build_order(self) -> Order:
        with self._lock:
            if self._food is None:
                raise CompositionStateError("no food loaded")
            return Order(
                id=self._food.id,
                name=self._food.name,
                description=self._food.description,
                price=self._food.price,
                image_url=self._food.image_url,
                extras=self.extras,
            )

    def confirm_order(self) -> List[Any]:
        """
        Submit one order per unit of food quantity, one call at a time.

        Stops at the first failing call and raises SubmissionError; orders
        already submitted stay submitted. Returns the collaborator responses
        in submission order.
        """
        with self._lock:
            self._require_mutable("confirm order")
            order = self.build_order()
            count = self._food_quantity
            self._enter(CompositionStatus.SUBMITTING, CompositionStatus.READY)

        results: List[Any] = []
        for position in range(1, count + 1):
            try:
                results.append(self._place_order(order.model_copy(deep=True)))
            except Exception as exc:
                error = SubmissionError(
                    f"Order {position} of {count} failed: {exc}",
                    submitted=position - 1,
                    failed_order=position,
                )
                error.__cause__ = exc
                with self._lock:
                    self._fail(CompositionStatus.SUBMISSION_FAILED, error)

        with self._lock:
            self.status = CompositionStatus.COMPLETED
            self._notify()
        return results
