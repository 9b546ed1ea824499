from __future__ import annotations

from typing import Iterable

from food_details.models.food_models import Extra, Food


def extras_total(extras: Iterable[Extra]) -> float:
    return sum((extra.value * extra.quantity for extra in extras), 0.0)


def cart_total(food: Food, food_quantity: int, extras: Iterable[Extra]) -> float:
    """
    Total price of the current composition.

    Always derived from the inputs; callers must not keep the result around
    as state, since any quantity change invalidates it.
    """
    return food.price * food_quantity + extras_total(extras)
