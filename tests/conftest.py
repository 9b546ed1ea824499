import os

# Must be in place before food_details.main is imported.
os.environ.setdefault("API_KEYS", "test-key")
os.environ.setdefault("FOOD_API_URL", "http://food-api.test")

from typing import Any, Dict, List  # noqa: E402

import pytest  # noqa: E402

from food_details.composition.state import CompositionState  # noqa: E402
from food_details.models.food_models import Food, Order  # noqa: E402


FOOD_PAYLOAD: Dict[str, Any] = {
    "id": 1,
    "name": "Ao molho",
    "description": "Macarrão ao molho branco, fughi e cheiro verde das montanhas.",
    "price": 19.9,
    "category": 1,
    "image_url": "https://storage.example.com/food/ao_molho.png",
    "thumbnail_url": "https://storage.example.com/food/ao_molho_thumb.png",
    "extras": [
        {"id": 1, "name": "Bacon", "value": 1.5, "quantity": 4},
        {"id": 2, "name": "Frango", "value": 2.0},
    ],
}


class FakeFoodBackend:
    """Records calls and plays the lookup / order collaborators."""

    def __init__(self, food: Any = None, fail_on: int = 0) -> None:
        self.food = Food.model_validate(FOOD_PAYLOAD) if food is None else food
        self.fail_on = fail_on
        self.lookups: List[int] = []
        self.orders: List[Order] = []
        self.attempts = 0

    def fetch_food(self, food_id: int) -> Food:
        self.lookups.append(food_id)
        return self.food

    def place_order(self, order: Order) -> Dict[str, Any]:
        self.attempts += 1
        if self.attempts == self.fail_on:
            raise ConnectionError("backend down")
        self.orders.append(order)
        return {"id": len(self.orders)}


@pytest.fixture
def backend() -> FakeFoodBackend:
    return FakeFoodBackend()


@pytest.fixture
def composition(backend: FakeFoodBackend) -> CompositionState:
    state = CompositionState(fetch_food=backend.fetch_food, place_order=backend.place_order)
    state.load(1)
    return state
