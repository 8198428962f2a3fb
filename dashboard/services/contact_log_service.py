"""
contact_log_service.py - Provider actions on a client record

Logs contact attempts and updates status / archive / offer flags. These
write straight to the record source; the store's client list picks the
changes up on its next refresh.

Business Rules:
- The client's table_source decides the history link field and the table
  that is patched
- Contact type and outcome are written with the record source's labels
- Any status other than "new" also ticks the Contacted checkbox
- A facial-analysis status of "not-started" is stored as an empty value
- Coupon / offer claims exist on leads only
- Scan invites carry the provider's telehealth scan link

Called by: __main__.py (client actions and invites)
Depends on: connectors/record_source.py, schemas/clients.py,
            utils/provider_helpers.py
"""

from loguru import logger

from ..connectors.record_source import RecordSourceClient
from ..schemas.clients import (
    LEADS_TABLE,
    PATIENTS_TABLE,
    Client,
    ContactLogEntry,
    Provider,
    link_field_for,
)
from ..utils.provider_helpers import get_telehealth_scan_link
from ..utils.status_formatting import NOT_STARTED, format_client_status
from ..utils.timestamps import utcnow

CONTACT_TYPE_LABELS = {
    "call": "Phone Call",
    "email": "Email",
    "text": "Text Message",
    "meeting": "In-Person",
}

OUTCOME_LABELS = {
    "reached": "Reached",
    "voicemail": "Left Voicemail",
    "no-answer": "No Answer",
    "scheduled": "Scheduled Appointment",
    "sent": "Sent",
    "replied": "Replied",
    "attended": "Attended",
    "no-show": "No-Show",
    "cancelled": "Cancelled",
}


async def save_contact_log(
    source: RecordSourceClient, client: Client, entry: ContactLogEntry
) -> str:
    """Create a Contact History row for ``client``. Returns the new record id."""
    fields = {
        link_field_for(client.table_source): [client.id],
        "Contact Type": CONTACT_TYPE_LABELS.get(entry.type, "Phone Call"),
        "Outcome": OUTCOME_LABELS.get(entry.outcome, "Reached"),
        "Notes": entry.notes,
        "Date": utcnow().isoformat(),
    }
    record_id = await source.create_contact_history(fields)
    logger.info("Logged {} ({}) for {} {}", entry.type, entry.outcome, client.table_source, client.id)
    return record_id


async def update_client_status(source: RecordSourceClient, client: Client, status: str) -> None:
    fields = {
        "Status": format_client_status(status),
        "Contacted": status != "new",
    }
    await source.patch_record(client.table_source, client.id, fields)


async def archive_client(source: RecordSourceClient, client: Client, archived: bool) -> None:
    await source.patch_record(client.table_source, client.id, {"Archived": archived})
    logger.info("{} client {}", "Archived" if archived else "Unarchived", client.id)


async def update_facial_analysis_status(
    source: RecordSourceClient, client_id: str, status: str | None
) -> None:
    value = "" if not status or status == NOT_STARTED else status
    await source.patch_record(PATIENTS_TABLE, client_id, {"Pending/Opened": value})


async def update_offer_claimed(source: RecordSourceClient, client: Client, claimed: bool) -> None:
    """Mark a lead's coupon as redeemed. Only the provider should do this."""
    if client.table_source != LEADS_TABLE:
        raise ValueError(f"Offer claims apply to {LEADS_TABLE} only, not {client.table_source}")
    await source.update_coupon_claimed(client.id, claimed)


async def update_client_notes(source: RecordSourceClient, client: Client, notes: str) -> bool:
    """Replace the client's Notes field. Returns False if the backend refused it."""
    return await source.update_record(client.id, client.table_source, {"Notes": notes})


async def send_scan_invite(
    source: RecordSourceClient, provider: Provider, phone: str, name: str = ""
) -> bool:
    """Text a prospective client the provider's facial-analysis scan link."""
    greeting = f"Hi {name}," if name else "Hi,"
    clinic = provider.name or "your provider"
    message = (
        f"{greeting} {clinic} invited you to a virtual facial analysis: "
        f"{get_telehealth_scan_link(provider)}"
    )
    sent = await source.send_sms_notification(phone, message, "", LEADS_TABLE)
    if not sent:
        logger.warning("Scan invite SMS to {} was not accepted", phone)
    return sent
