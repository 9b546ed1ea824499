from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from food_details import config
from food_details.composition.state import CompositionState


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Session(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    session_id: str
    composition: CompositionState
    created_at: datetime = Field(default_factory=_utcnow)
    last_active_at: datetime = Field(default_factory=_utcnow)


SESSION_STORE: Dict[str, Session] = {}


def new_session_id() -> str:
    return f"sess-{uuid.uuid4().hex}"


def evict_expired(now: Optional[datetime] = None) -> List[str]:
    """Drop sessions idle for longer than SESSION_TTL_SECONDS. Returns the evicted ids."""
    cutoff = (now or _utcnow()) - timedelta(seconds=config.SESSION_TTL_SECONDS)
    expired = [sid for sid, s in list(SESSION_STORE.items()) if s.last_active_at < cutoff]
    for sid in expired:
        SESSION_STORE.pop(sid, None)
    return expired


def save_session(session: Session) -> Session:
    evict_expired()
    SESSION_STORE[session.session_id] = session
    return session


def get_session(session_id: str) -> Optional[Session]:
    evict_expired()
    session = SESSION_STORE.get(session_id)
    if session is not None:
        session.last_active_at = _utcnow()
    return session


def discard_session(session_id: str) -> bool:
    return SESSION_STORE.pop(session_id, None) is not None
