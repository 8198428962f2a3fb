"""History normalizer - Contact History rows into ContactHistoryEntry.

Each Contact History row links to exactly one client through the link
field of its source table ("Web Popup Lead" or "Patient"). Rows with no
link are dropped here and never reach a client. Contact type and outcome
are free text in the source and are reduced to fixed vocabularies by
keyword matching.
"""

from datetime import datetime

from ..schemas.clients import ContactHistoryEntry, RawRecord, link_field_for
from ..utils import as_str
from ..utils.timestamps import parse_timestamp, utcnow

# Checked in order, first match wins; anything else is a call
_TYPE_KEYWORDS = (
    (("email",), "email"),
    (("text",), "text"),
    (("person", "meeting"), "meeting"),
)

# Checked in order, first match wins; anything else was reached
_OUTCOME_KEYWORDS = (
    (("voicemail",), "voicemail"),
    (("no-show", "no show"), "no-show"),
    (("no answer", "no-answer"), "no-answer"),
    (("scheduled",), "scheduled"),
    (("replied",), "replied"),
    (("sent",), "sent"),
    (("attended",), "attended"),
    (("cancelled", "canceled"), "cancelled"),
)


def _match(text: str, table: tuple, default: str) -> str:
    text = text.lower()
    for keywords, value in table:
        if any(k in text for k in keywords):
            return value
    return default


def normalize_contact_type(raw) -> str:
    return _match(as_str(raw), _TYPE_KEYWORDS, "call")


def normalize_outcome(raw) -> str:
    return _match(as_str(raw), _OUTCOME_KEYWORDS, "reached")


def resolve_lead_id(fields: dict, table_source: str) -> str | None:
    """First id in the row's link field, or None when there is no usable link."""
    linked = fields.get(link_field_for(table_source))
    if not isinstance(linked, list) or not linked:
        return None
    head = linked[0]
    if not isinstance(head, str) or not head.strip():
        return None
    return head.strip()


def normalize_history_record(
    record: RawRecord, table_source: str, now: datetime | None = None
) -> ContactHistoryEntry | None:
    """One Contact History row, or None if it cannot be tied to a client.

    The entry date falls back from the "Date" field to the row's creation
    time, then to ``now`` (the fetch time).
    """
    fields = record.fields
    lead_id = resolve_lead_id(fields, table_source)
    if lead_id is None:
        return None

    date = (
        parse_timestamp(fields.get("Date"))
        or parse_timestamp(record.created_time)
        or now
        or utcnow()
    )
    return ContactHistoryEntry(
        id=record.id,
        lead_id=lead_id,
        type=normalize_contact_type(fields.get("Contact Type")),
        outcome=normalize_outcome(fields.get("Outcome")),
        notes=as_str(fields.get("Notes")),
        date=date,
    )


def normalize_history(
    records: list[RawRecord], table_source: str, now: datetime | None = None
) -> list[ContactHistoryEntry]:
    """Normalize a batch, keeping source order and dropping unlinked rows."""
    now = now or utcnow()
    entries = []
    for record in records:
        entry = normalize_history_record(record, table_source, now)
        if entry is not None:
            entries.append(entry)
    return entries
