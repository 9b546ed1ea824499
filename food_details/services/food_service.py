import time
from typing import Any, Optional

import requests
from pydantic import ValidationError

from food_details import config
from food_details.errors import FoodLookupError
from food_details.models.food_models import Food
from food_details.observability.logging_loki import loki

SERVICE = "food_service"


def _lookup_failed(
    food_id: int,
    start: float,
    message: str,
    session_id: Optional[str],
    not_found: bool = False,
) -> FoodLookupError:
    loki.event(
        "error",
        "service_error",
        SERVICE,
        food_id=food_id,
        session_id=session_id,
        start=start,
        outcome="not_found" if not_found else "error",
        error=message,
    )
    return FoodLookupError(message, food_id=food_id, not_found=not_found)


def _matching_food(data: Any, food_id: int) -> Any:
    # json-server style backends answer list queries with an array
    if isinstance(data, list):
        return next(
            (item for item in data if isinstance(item, dict) and str(item.get("id")) == str(food_id)),
            None,
        )
    if isinstance(data, dict) and data and str(data.get("id")) != str(food_id):
        return None
    return data


def fetch_food(food_id: int, session_id: Optional[str] = None) -> Food:
    """
    GET {FOOD_API_URL}/foods/{food_id} and validate it into a Food.

    Raises FoodLookupError when the backend is not configured or unreachable,
    when it has no food with that id, or when the payload does not validate.
    """
    if not config.FOOD_API_URL:
        loki.event(
            "error",
            "service_missing_config",
            SERVICE,
            food_id=food_id,
            session_id=session_id,
            detail="FOOD_API_URL not set",
        )
        raise FoodLookupError("FOOD_API_URL is not configured", food_id=food_id)

    start = time.perf_counter()
    loki.event("info", "service_call", SERVICE, io="out", food_id=food_id, session_id=session_id)

    url = f"{config.FOOD_API_URL.rstrip('/')}/foods/{food_id}"

    try:
        resp = requests.get(url, timeout=config.FOOD_API_TIMEOUT)
    except requests.RequestException as exc:
        raise _lookup_failed(
            food_id, start, f"Error communicating with food backend: {exc}", session_id
        ) from exc

    if resp.status_code == 404:
        raise _lookup_failed(food_id, start, f"Food {food_id} not found", session_id, not_found=True)

    try:
        resp.raise_for_status()
        data = resp.json()
    except (requests.HTTPError, ValueError) as exc:
        raise _lookup_failed(food_id, start, f"Food backend error: {exc}", session_id) from exc

    data = _matching_food(data, food_id)
    if not data:
        raise _lookup_failed(food_id, start, f"Food {food_id} not found", session_id, not_found=True)

    try:
        food = Food.model_validate(data)
    except ValidationError as ve:
        raise _lookup_failed(food_id, start, f"Invalid food payload: {ve}", session_id) from ve

    loki.event(
        "info",
        "service_return",
        SERVICE,
        io="in",
        food_id=food_id,
        session_id=session_id,
        start=start,
        extras=len(food.extras),
    )
    return food
