import time
from typing import Dict, Any, Optional

import requests

from food_details import config
from food_details.errors import SubmissionError
from food_details.models.food_models import Order
from food_details.observability.logging_loki import loki

SERVICE = "order_service"


def place_order(order: Order, session_id: Optional[str] = None) -> Dict[str, Any]:
    """POST one order to {FOOD_API_URL}/orders. The response body is opaque to us."""
    if not config.FOOD_API_URL:
        loki.event(
            "error",
            "service_missing_config",
            SERVICE,
            food_id=order.id,
            session_id=session_id,
            detail="FOOD_API_URL not set",
        )
        raise SubmissionError("FOOD_API_URL is not configured")

    start = time.perf_counter()
    loki.event(
        "info",
        "service_call",
        SERVICE,
        io="out",
        food_id=order.id,
        session_id=session_id,
        extras_selected=sum(e.quantity for e in order.extras),
    )

    url = f"{config.FOOD_API_URL.rstrip('/')}/orders"

    try:
        resp = requests.post(url, json=order.model_dump(), timeout=config.FOOD_API_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as exc:
        loki.event(
            "error",
            "service_error",
            SERVICE,
            food_id=order.id,
            session_id=session_id,
            start=start,
            outcome="error",
            error=str(exc),
        )
        raise SubmissionError(f"Order submission failed: {exc}") from exc

    try:
        data = resp.json()
    except ValueError:
        data = {}

    loki.event(
        "info",
        "service_return",
        SERVICE,
        io="in",
        food_id=order.id,
        session_id=session_id,
        start=start,
        raw_shape=type(data).__name__,
    )
    return data if isinstance(data, dict) else {"result": data}
