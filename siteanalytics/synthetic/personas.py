from __future__ import annotations
import random
import uuid
from typing import Dict, List


def _ids(prefix: str):
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def _perf(session_id: str) -> Dict:
    return {
        "type": "performance",
        "sessionId": session_id,
        "loadTime": round(random.uniform(300, 1800), 1),
        "renderTime": round(random.uniform(50, 400), 1),
        "interactionDelay": round(random.uniform(5, 120), 1),
    }


def reader(uid="u_reader", pages=5) -> List[Dict]:
    """Long sessions, scrolls and clicks through, no conversion."""
    sid = _ids("s_reader")
    ev = []
    for _ in range(pages):
        ev.append({"type": "pageview", "userId": uid, "sessionId": sid, "sessionTime": random.randint(60, 300)})
        ev.append({"type": "event", "sessionId": sid, "action": random.choice(["scroll", "read_more", "click"])})
    ev.append(_perf(sid))
    return ev


def bouncer(pages=3) -> List[Dict]:
    """Anonymous single-page visits, nothing else."""
    ev = []
    for _ in range(pages):
        ev.append({"type": "pageview", "sessionId": _ids("s_bounce"), "sessionTime": random.randint(1, 8)})
    return ev


def converter(uid="u_converter") -> List[Dict]:
    """Lands, browses pricing, hits get_started."""
    sid = _ids("s_conv")
    return [
        {"type": "pageview", "userId": uid, "sessionId": sid, "sessionTime": random.randint(30, 120)},
        {"type": "event", "sessionId": sid, "action": "view_pricing"},
        {"type": "event", "sessionId": sid, "action": "get_started"},
        _perf(sid),
    ]


def returning(uid="u_returning", visits=3) -> List[Dict]:
    """Same user across several visits, flagged returning after the first."""
    ev = []
    for i in range(visits):
        sid = _ids("s_ret")
        ev.append({"type": "pageview", "userId": uid, "sessionId": sid, "isReturning": i > 0, "sessionTime": random.randint(20, 90)})
        ev.append({"type": "event", "sessionId": sid, "action": "click"})
    return ev
