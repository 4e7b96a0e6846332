from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Category(str, Enum):
    SESSIONS = "sessions"
    EVENTS = "events"
    PERFORMANCE = "performance"
    INTERACTIONS = "interactions"


# most recent N kept per category
RETENTION = {
    Category.SESSIONS: 1000,
    Category.EVENTS: 10000,
    Category.PERFORMANCE: 1000,
    Category.INTERACTIONS: 1000,
}


def utcnow() -> datetime:
    """Current UTC instant truncated to milliseconds (wire precision)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


def isoformat(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Record(BaseModel):
    # extra keys ride along untouched; records never change after append
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    id: Optional[str] = None
    timestamp: Optional[datetime] = None
    session_id: Optional[str] = None
    user_id: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Pageview(Record):
    type: Literal["pageview"] = "pageview"
    session_time: Any = None
    is_returning: Optional[bool] = None


class Event(Record):
    type: Literal["event"] = "event"
    action: Optional[str] = None


class PerformanceSample(Record):
    type: Literal["performance"] = "performance"
    load_time: Any = None
    render_time: Any = None
    interaction_delay: Any = None


class Interaction(Record):
    action: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


CATEGORY_MODELS: Dict[Category, Type[Record]] = {
    Category.SESSIONS: Pageview,
    Category.EVENTS: Event,
    Category.PERFORMANCE: PerformanceSample,
    Category.INTERACTIONS: Interaction,
}

# POST /analytics discriminator -> category
TYPE_CATEGORIES = {
    "pageview": Category.SESSIONS,
    "event": Category.EVENTS,
    "performance": Category.PERFORMANCE,
}


class InteractionIn(BaseModel):
    action: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ProcessRequest(BaseModel):
    type: Optional[str] = None
    data: Any = None
    options: Optional[Dict[str, Any]] = None
