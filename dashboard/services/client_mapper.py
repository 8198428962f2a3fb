"""Client normalizer - raw leads / patients rows into the canonical Client.

The two source tables carry different field sets: "Web Popup Leads" rows
come from the website treatment-finder form, "Patients" rows from the
facial-analysis intake. map_record_to_client() is a total function over
both shapes; every Client field gets a default so nothing downstream ever
branches on the source table again.

Pure: no network, no mutation of the input record.
"""

from collections.abc import Callable
from datetime import date
from typing import Any

from ..schemas.clients import LEADS_TABLE, PATIENTS_TABLE, Client, RawRecord
from ..utils import (
    as_bool,
    as_list,
    as_optional_str,
    as_str,
    first_attachment_url,
    safe_float,
    safe_int,
)
from ..utils.timestamps import age_from_birthdate

_PRIORITIES = {"high", "medium", "low"}

# Substring → status, checked in order
_STATUS_KEYWORDS = (
    ("convert", "converted"),
    ("schedul", "scheduled"),
    ("contact", "contacted"),
    ("new", "new"),
)


def _first(fields: dict, *keys: str) -> Any:
    """Value of the first key present with a non-empty value."""
    for key in keys:
        value = fields.get(key)
        if value not in (None, "", []):
            return value
    return None


def normalize_status(raw_status: Any, contacted: Any = None) -> str:
    s = as_str(raw_status).lower()
    for keyword, status in _STATUS_KEYWORDS:
        if keyword in s:
            return status
    return "contacted" if as_bool(contacted) else "new"


def normalize_priority(raw_priority: Any, engagement_level: str | None) -> str:
    p = as_str(raw_priority).lower()
    if p in _PRIORITIES:
        return p
    level = (engagement_level or "").lower()
    if "high" in level:
        return "high"
    if "low" in level:
        return "low"
    return "medium"


def _common_fields(record: RawRecord) -> dict:
    f = record.fields
    engagement = as_optional_str(f.get("Engagement Level"))
    return {
        "email": as_str(_first(f, "Email", "Email Address")),
        "status": normalize_status(f.get("Status"), f.get("Contacted")),
        "priority": normalize_priority(f.get("Priority"), engagement),
        "engagement_level": engagement,
        "created_at": as_str(_first(f, "Created", "Date Created")) or (record.created_time or ""),
        "notes": as_str(f.get("Notes")),
        "archived": as_bool(f.get("Archived")),
    }


def _lead_fields(record: RawRecord, today: date | None) -> dict:
    f = record.fields
    name = as_str(f.get("Name"))
    if not name:
        name = " ".join(
            part for part in (as_str(f.get("First Name")), as_str(f.get("Last Name"))) if part
        )
    age = safe_int(f.get("Age"))
    return {
        "name": name,
        "phone": as_str(_first(f, "Phone Number", "Phone")),
        "zip_code": as_optional_str(f.get("Zip Code")),
        "age": age,
        "age_range": as_optional_str(f.get("Age Range")),
        "goals": as_list(f.get("Goals")),
        "concerns": as_list(f.get("Concerns")),
        "areas": as_list(f.get("Areas")),
        "aesthetic_goals": as_str(f.get("Aesthetic Goals")),
        "skin_type": as_optional_str(f.get("Skin Type")),
        "skin_tone": as_optional_str(f.get("Skin Tone")),
        "ethnic_background": as_optional_str(f.get("Ethnic Background")),
        "cases_viewed_count": safe_int(f.get("Cases Viewed Count")),
        "total_cases_available": safe_int(f.get("Total Cases Available")),
        "concerns_explored": as_list(f.get("Concerns Explored")),
        "photos_liked": safe_int(f.get("Photos Liked")) or 0,
        "photos_viewed": safe_int(f.get("Photos Viewed")) or 0,
        "treatments_viewed": as_list(f.get("Treatments Viewed")),
        "source": as_str(f.get("Source")) or "Website",
        "is_real": not as_bool(f.get("Test Record")),
        "offer_claimed": as_bool(f.get("Coupons Claimed")),
    }


def _patient_fields(record: RawRecord, today: date | None) -> dict:
    f = record.fields
    dob = as_optional_str(f.get("Date of Birth"))
    age = safe_int(f.get("Age"))
    if age is None and dob:
        age = age_from_birthdate(dob, today)
    interested = as_str(f.get("Interested Issues"))
    regions = as_str(f.get("Which Regions"))
    front_photo = first_attachment_url(f.get("Front Photo"))
    return {
        "name": as_str(_first(f, "Patient Name", "Name")),
        "phone": as_str(_first(f, "Phone", "Phone Number")),
        "zip_code": as_optional_str(f.get("Zip Code")),
        "age": age,
        "date_of_birth": dob,
        "goals": as_list(interested),
        "concerns": as_list(f.get("Skin Complaints")),
        "areas": as_list(regions),
        "skin_type": as_optional_str(f.get("Skin Type")),
        "skin_tone": as_optional_str(f.get("Skin Tone")),
        "facial_analysis_status": as_optional_str(f.get("Pending/Opened")),
        "front_photo": front_photo,
        "front_photo_loaded": front_photo is not None,
        "all_issues": as_str(f.get("All Issues")),
        "interested_issues": interested,
        "which_regions": regions,
        "skin_complaints": as_str(f.get("Skin Complaints")),
        "processed_areas_of_interest": as_str(f.get("Processed Areas of Interest")),
        "areas_of_interest_from_form": as_str(f.get("Areas of Interest (from Form)")),
        "appointment_date": as_optional_str(f.get("Appointment Date")),
        "treatment_received": as_optional_str(f.get("Treatment Received")),
        "revenue": safe_float(f.get("Revenue")),
        "source": as_str(f.get("Source")) or "Facial Analysis",
        "offer_claimed": as_bool(f.get("Offer Claimed")),
    }


_FIELD_MAPPERS: dict[str, Callable[[RawRecord, date | None], dict]] = {
    LEADS_TABLE: _lead_fields,
    PATIENTS_TABLE: _patient_fields,
}


def map_record_to_client(
    record: RawRecord, table_source: str, today: date | None = None
) -> Client:
    """Normalize one raw row. ``table_source`` is stamped, never inferred."""
    try:
        mapper = _FIELD_MAPPERS[table_source]
    except KeyError:
        raise ValueError(f"Unknown table source: {table_source!r}") from None

    values = _common_fields(record)
    values.update(mapper(record, today))
    return Client(id=record.id, table_source=table_source, **values)


def map_records(
    records: list[RawRecord], table_source: str, today: date | None = None
) -> list[Client]:
    return [map_record_to_client(r, table_source, today) for r in records]
