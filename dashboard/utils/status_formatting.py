"""Display labels for facial-analysis and lead statuses."""

NOT_STARTED = "not-started"

_STATUS_LABELS = {
    "new": "New",
    "contacted": "Contacted",
    "scheduled": "Scheduled",
    "converted": "Converted",
}


def format_facial_status(status: str | None) -> str:
    """Human label for a facial-analysis status.

    Empty, None and "not-started" all read as "Pending".
    """
    if status is None:
        return "Pending"
    normalized = str(status).strip()
    lowered = normalized.lower()
    if not normalized or lowered in (NOT_STARTED, "pending"):
        return "Pending"
    if lowered in ("ready", "ready for review"):
        return "Ready for Review"
    if "reviewed" in lowered:
        return "Patient Reviewed"
    return normalized[:1].upper() + normalized[1:].lower()


def format_client_status(status: str) -> str:
    return _STATUS_LABELS.get(status, status.capitalize())
