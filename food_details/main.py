# food_details/main.py
from __future__ import annotations

import time
from functools import partial
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel

from food_details import config
from food_details.composition.state import CompositionState
from food_details.errors import CompositionStateError, FoodLookupError, SubmissionError
from food_details.models.food_models import CompositionSnapshot
from food_details.observability.logging_loki import loki
from food_details.services import food_service, order_service
from food_details.session.session_manager import (
    Session,
    discard_session,
    get_session,
    new_session_id,
    save_session,
)


API_KEYS = config.load_api_keys()


async def require_api_key(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
) -> str:
    """
    Simple API key protection.

    - Expects the client to send:  X-API-Key: <key>
    - Compares it against the configured API_KEYS set.
    """
    if x_api_key is None:
        raise HTTPException(
            status_code=401,
            detail="Missing API key header 'X-API-Key'",
        )

    if x_api_key not in API_KEYS:
        raise HTTPException(
            status_code=403,
            detail="Invalid API key",
        )

    return x_api_key


# ------------------------------------------------------
#  Pydantic Models (Host Input/Output)
# ------------------------------------------------------

class CreateCompositionRequest(BaseModel):
    food_id: int


class CompositionResponse(BaseModel):
    session_id: str
    composition: CompositionSnapshot


class ConfirmResponse(BaseModel):
    session_id: str
    submitted: int
    orders: List[Dict[str, Any]]


# ------------------------------------------------------
#  FastAPI App
# ------------------------------------------------------

app = FastAPI(title="Food Details - order composition")

protected = [Depends(require_api_key)]


def _log_event(level: str, event_type: str, session_id: str, **fields: Any) -> None:
    io = {"input": "in", "output": "out"}.get(event_type, "none")
    loki.event(level, event_type, "host", io=io, session_id=session_id, **fields)


def _require_session(session_id: str) -> Session:
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'")
    return session


def _respond(session: Session) -> CompositionResponse:
    return CompositionResponse(
        session_id=session.session_id,
        composition=session.composition.snapshot(),
    )


def _mutate(session_id: str, action: str, extra_id: Optional[int] = None) -> CompositionResponse:
    session = _require_session(session_id)
    composition = session.composition
    _log_event("info", "input", session_id, action=action, extra_id=extra_id)

    try:
        if action == "increment_extra":
            composition.increment_extra(extra_id)
        elif action == "decrement_extra":
            composition.decrement_extra(extra_id)
        elif action == "increment_food":
            composition.increment_food()
        else:
            composition.decrement_food()
    except CompositionStateError as exc:
        _log_event("error", "error", session_id, action=action, error=str(exc))
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    return _respond(session)


@app.get("/health")
def health_check() -> Dict[str, Any]:
    return {
        "status": "ok",
        "service": "food_details",
        "food_api_url": config.FOOD_API_URL,
    }


@app.post(
    "/compositions",
    response_model=CompositionResponse,
    status_code=201,
    dependencies=protected,
)
def create_composition(req: CreateCompositionRequest) -> CompositionResponse:
    start = time.perf_counter()
    session_id = new_session_id()

    composition = CompositionState(
        fetch_food=partial(food_service.fetch_food, session_id=session_id),
        place_order=partial(order_service.place_order, session_id=session_id),
    )

    _log_event("info", "input", session_id, action="load", food_id=req.food_id)
    try:
        composition.load(req.food_id)
    except FoodLookupError as exc:
        _log_event("error", "error", session_id, action="load", food_id=req.food_id, error=str(exc))
        raise HTTPException(status_code=404 if exc.not_found else 502, detail=str(exc)) from exc

    session = save_session(Session(session_id=session_id, composition=composition))

    _log_event("info", "output", session_id, action="load", start=start)
    return _respond(session)


@app.get("/compositions/{session_id}", response_model=CompositionResponse, dependencies=protected)
def read_composition(session_id: str) -> CompositionResponse:
    return _respond(_require_session(session_id))


@app.post(
    "/compositions/{session_id}/extras/{extra_id}/increment",
    response_model=CompositionResponse,
    dependencies=protected,
)
def increment_extra(session_id: str, extra_id: int) -> CompositionResponse:
    return _mutate(session_id, "increment_extra", extra_id)


@app.post(
    "/compositions/{session_id}/extras/{extra_id}/decrement",
    response_model=CompositionResponse,
    dependencies=protected,
)
def decrement_extra(session_id: str, extra_id: int) -> CompositionResponse:
    return _mutate(session_id, "decrement_extra", extra_id)


@app.post(
    "/compositions/{session_id}/food/increment",
    response_model=CompositionResponse,
    dependencies=protected,
)
def increment_food(session_id: str) -> CompositionResponse:
    return _mutate(session_id, "increment_food")


@app.post(
    "/compositions/{session_id}/food/decrement",
    response_model=CompositionResponse,
    dependencies=protected,
)
def decrement_food(session_id: str) -> CompositionResponse:
    return _mutate(session_id, "decrement_food")


@app.post(
    "/compositions/{session_id}/confirm",
    response_model=ConfirmResponse,
    dependencies=protected,
)
def confirm_composition(session_id: str) -> ConfirmResponse:
    start = time.perf_counter()
    session = _require_session(session_id)
    _log_event(
        "info",
        "input",
        session_id,
        action="confirm",
        food_quantity=session.composition.food_quantity,
    )

    try:
        orders = session.composition.confirm_order()
    except CompositionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except SubmissionError as exc:
        _log_event(
            "error",
            "error",
            session_id,
            action="confirm",
            submitted=exc.submitted,
            failed_order=exc.failed_order,
            error=str(exc),
        )
        raise HTTPException(
            status_code=502,
            detail={
                "message": str(exc),
                "submitted": exc.submitted,
                "failed_order": exc.failed_order,
            },
        ) from exc

    # A confirmed composition is finished; the screen starts over with a new load.
    discard_session(session_id)

    _log_event("info", "output", session_id, action="confirm", submitted=len(orders), start=start)

    return ConfirmResponse(
        session_id=session_id,
        submitted=len(orders),
        orders=[o if isinstance(o, dict) else {"result": o} for o in orders],
    )


@app.delete("/compositions/{session_id}", status_code=204, dependencies=protected)
def delete_composition(session_id: str) -> None:
    _require_session(session_id)
    discard_session(session_id)
    _log_event("info", "output", session_id, action="discard")
