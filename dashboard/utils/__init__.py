"""Shared value helpers used by the connectors and normalizers."""

import math


def safe_int(v):
    """Safely convert a value to int, returning None on failure."""
    if v is None or isinstance(v, bool):
        return None
    try:
        return int(float(v))
    except (ValueError, TypeError, OverflowError):
        return None


def safe_float(v):
    """Safely convert a value to float, returning None on failure."""
    if v is None or isinstance(v, bool):
        return None
    try:
        f = float(v)
    except (ValueError, TypeError):
        return None
    return f if math.isfinite(f) else None


def as_str(v, default: str = "") -> str:
    """Text value of a record field. Lists collapse to a comma-joined string."""
    if v is None:
        return default
    if isinstance(v, list):
        return ", ".join(str(x) for x in v if x not in (None, ""))
    return str(v).strip()


def as_optional_str(v) -> str | None:
    s = as_str(v)
    return s or None


def as_list(v) -> list[str]:
    """List of non-empty strings from a multi-select list or a CSV string."""
    if v is None:
        return []
    if isinstance(v, list):
        return [str(x).strip() for x in v if x is not None and str(x).strip()]
    return [part.strip() for part in str(v).split(",") if part.strip()]


def as_bool(v) -> bool:
    """Checkbox value. Airtable omits unchecked boxes; strings like "Yes" count."""
    if isinstance(v, str):
        return v.strip().lower() in {"true", "yes", "1", "y", "checked"}
    return bool(v)


def first_attachment_url(v) -> str | None:
    """URL of the first attachment in an attachment field, or a plain URL string."""
    if isinstance(v, str):
        return v.strip() or None
    if isinstance(v, list) and v:
        head = v[0]
        if isinstance(head, dict):
            return head.get("url") or None
        if isinstance(head, str):
            return head or None
    return None
