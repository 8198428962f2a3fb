"""
schemas/clients.py - Canonical Client, ContactHistoryEntry and Provider models

Raw record-source rows (RawRecord) never leave the normalizers; everything
downstream works with these frozen models.

Business Rules:
- table_source is stamped at normalization time and never changes
- last_contact always equals contact_history[0].date, or None when the
  history is empty
- A history entry always carries a non-empty lead_id
- Multi-value fields and contact_history are tuples, so a stored Client
  cannot be changed in place

Called by: connectors/record_source.py, services/*, state.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ── Table sources ────────────────────────────────────────────────────

TableSource = Literal["Web Popup Leads", "Patients"]

LEADS_TABLE: TableSource = "Web Popup Leads"
PATIENTS_TABLE: TableSource = "Patients"
TABLE_SOURCES: tuple[TableSource, ...] = (LEADS_TABLE, PATIENTS_TABLE)

# Contact History link field pointing back at each source table
LINK_FIELDS: dict[str, str] = {
    LEADS_TABLE: "Web Popup Lead",
    PATIENTS_TABLE: "Patient",
}

ClientStatus = Literal["new", "contacted", "scheduled", "converted"]
Priority = Literal["high", "medium", "low"]
ContactType = Literal["call", "email", "text", "meeting"]
ContactOutcome = Literal[
    "reached",
    "voicemail",
    "no-answer",
    "scheduled",
    "sent",
    "replied",
    "attended",
    "no-show",
    "cancelled",
]

CLIENT_STATUSES: tuple[str, ...] = ("new", "contacted", "scheduled", "converted")


def link_field_for(table_source: str) -> str:
    try:
        return LINK_FIELDS[table_source]
    except KeyError:
        raise ValueError(f"Unknown table source: {table_source!r}") from None


# ── Raw records ──────────────────────────────────────────────────────


class RawRecord(BaseModel):
    """A record as the backend returns it: id + free-form fields."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    fields: dict[str, Any] = Field(default_factory=dict)
    created_time: str | None = Field(default=None, alias="createdTime")


# ── Contact history ──────────────────────────────────────────────────


class ContactHistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    lead_id: str = Field(min_length=1)
    type: ContactType = "call"
    outcome: ContactOutcome = "reached"
    notes: str = ""
    date: datetime


class ContactLogEntry(BaseModel):
    """A new contact event entered by the provider, before it is saved."""

    type: ContactType
    outcome: ContactOutcome
    notes: str = ""


# ── Client ───────────────────────────────────────────────────────────


class Client(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    table_source: TableSource

    name: str = ""
    email: str = ""
    phone: str = ""
    zip_code: str | None = None
    age: int | None = None
    age_range: str | None = None
    date_of_birth: str | None = None

    goals: tuple[str, ...] = ()
    concerns: tuple[str, ...] = ()
    areas: tuple[str, ...] = ()
    aesthetic_goals: str = ""
    skin_type: str | None = None
    skin_tone: str | None = None
    ethnic_background: str | None = None

    engagement_level: str | None = None
    cases_viewed_count: int | None = None
    total_cases_available: int | None = None
    concerns_explored: tuple[str, ...] = ()
    photos_liked: int = 0
    photos_viewed: int = 0
    treatments_viewed: tuple[str, ...] = ()

    source: str = ""
    status: ClientStatus = "new"
    priority: Priority = "medium"
    created_at: str = ""
    notes: str = ""
    appointment_date: str | None = None
    treatment_received: str | None = None
    revenue: float | None = None
    is_real: bool = True

    facial_analysis_status: str | None = None
    front_photo: str | None = None
    front_photo_loaded: bool = False
    all_issues: str = ""
    interested_issues: str = ""
    which_regions: str = ""
    skin_complaints: str = ""
    processed_areas_of_interest: str = ""
    areas_of_interest_from_form: str = ""

    archived: bool = False
    offer_claimed: bool = False

    contact_history: tuple[ContactHistoryEntry, ...] = ()
    last_contact: datetime | None = None

    @model_validator(mode="after")
    def _last_contact_matches_history(self) -> Client:
        expected = self.contact_history[0].date if self.contact_history else None
        if self.last_contact != expected:
            raise ValueError("last_contact must equal the newest contact_history date")
        return self

    @property
    def is_patient(self) -> bool:
        return self.table_source == PATIENTS_TABLE

    def with_contact_history(self, history: list[ContactHistoryEntry]) -> Client:
        """Copy of this client carrying ``history`` (already newest-first)."""
        history = tuple(history)
        return self.model_copy(
            update={
                "contact_history": history,
                "last_contact": history[0].date if history else None,
            }
        )


# ── Provider ─────────────────────────────────────────────────────────


class Provider(BaseModel):
    """The clinic whose dashboard this is. Extra source fields pass through."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    name: str = ""
    code: str = ""
    logo: str | list[dict[str, Any]] | None = None

    def get(self, key: str, default: Any = None) -> Any:
        """Field lookup by source label, e.g. provider.get("Form Link")."""
        if key in type(self).model_fields:
            value = getattr(self, key)
            return default if value is None else value
        return (self.model_extra or {}).get(key, default)
