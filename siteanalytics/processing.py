from __future__ import annotations
import json
import math
import re
from typing import Any, Dict, Optional

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class UnknownProcessingType(ValueError):
    pass


def _is_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_finite(v) -> bool:
    if not _is_number(v):
        return False
    try:
        return math.isfinite(v)
    except OverflowError:
        return False


def calculation(data: Any, options: Optional[Dict[str, Any]] = None):
    if isinstance(data, list) and data and all(_is_finite(n) for n in data):
        total = sum(data)
        # finite inputs can still overflow to inf once summed
        if _is_finite(total):
            return {
                "sum": total,
                "average": total / len(data),
                "maximum": max(data),
                "minimum": min(data),
                "count": len(data),
            }
    return {"error": "Invalid data for calculation"}


def _sort_key(item):
    # numbers before everything else, the rest by their JSON text
    if _is_number(item):
        return (0, item, "")
    return (1, 0, item if isinstance(item, str) else json.dumps(item, sort_keys=True))


def _unique(items: list) -> list:
    seen = set()
    out = []
    for item in items:
        key = json.dumps(item, sort_keys=True)
        if key not in seen:
            seen.add(key)
            out.append(item)
    return out


def transformation(data: Any, options: Optional[Dict[str, Any]] = None):
    how = (options or {}).get("transform") or "uppercase"

    if isinstance(data, str):
        if how == "uppercase":
            return data.upper()
        if how == "lowercase":
            return data.lower()
        if how == "reverse":
            return data[::-1]
        if how == "wordcount":
            return {"words": len(re.split(r"\s+", data)), "characters": len(data)}
        return data

    if isinstance(data, list):
        if how == "sort":
            return sorted(data, key=_sort_key)
        if how == "reverse":
            return data[::-1]
        if how == "unique":
            return _unique(data)
        return data

    return data


def _is_blank(data) -> bool:
    return data is None or data is False or data == "" or (_is_number(data) and data == 0)


def validation(data: Any, options: Optional[Dict[str, Any]] = None):
    rules = (options or {}).get("rules") or {}
    errors = []

    if rules.get("required") and _is_blank(data):
        errors.append("Field is required")

    if isinstance(data, str):
        min_len = rules.get("minLength")
        if min_len and len(data) < min_len:
            errors.append(f"Minimum length is {min_len}")
        max_len = rules.get("maxLength")
        if max_len and len(data) > max_len:
            errors.append(f"Maximum length is {max_len}")
        pattern = rules.get("pattern")
        if pattern and not re.search(pattern, data):
            errors.append("Pattern validation failed")
        if rules.get("type") == "email" and not EMAIL_RE.match(data):
            errors.append("Invalid email format")

    return {"valid": not errors, "errors": errors, "value": data}


PROCESSORS = {
    "calculation": calculation,
    "transformation": transformation,
    "validation": validation,
}


def process(kind: Optional[str], data: Any, options: Optional[Dict[str, Any]] = None):
    try:
        fn = PROCESSORS[kind]
    except KeyError:
        raise UnknownProcessingType(f"Unknown processing type: {kind!r}") from None
    return fn(data, options)
