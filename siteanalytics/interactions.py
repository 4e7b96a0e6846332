from __future__ import annotations
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from .events import Interaction

DEFAULT_LIMIT = 50


def parse_limit(raw: Optional[str]) -> int:
    """Positive integer from the query string; anything else means DEFAULT_LIMIT."""
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return limit if limit > 0 else DEFAULT_LIMIT


def recent(interactions: Sequence[Interaction], limit: int = DEFAULT_LIMIT, action: Optional[str] = None) -> List[Interaction]:
    """Newest first. `interactions` must be in insertion order."""
    matching = [i for i in interactions if i.action == action] if action else list(interactions)
    return list(reversed(matching[-limit:]))


def stats(interactions: Sequence[Interaction], now: datetime, action: Optional[str] = None) -> Dict[str, Any]:
    hour_ago = now - timedelta(hours=1)
    filtered = [i for i in interactions if i.action == action] if action else interactions
    return {
        "total": len(interactions),
        "filtered": len(filtered),
        "actions": list(dict.fromkeys(i.action for i in interactions)),
        "lastHour": sum(1 for i in interactions if i.timestamp is not None and i.timestamp > hour_ago),
    }
