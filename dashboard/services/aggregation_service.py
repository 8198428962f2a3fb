"""
aggregation_service.py - Client aggregation and contact-history enrichment

Builds the provider's full client list from both source tables and attaches
each client's contact history, newest first, plus the derived last-contact
timestamp.

Business Rules:
- No provider id means no fetch and an empty list
- Clients come from leads first, then patients
- The client fetch and the history fetch start together; history is only
  consumed after both have settled
- A failed client fetch fails the refresh; a failed history fetch degrades
  it to clients without history
- History rows are grouped by lead id and stably sorted by date, newest
  first; last_contact is the first entry's date
- Every refresh returns new Client objects; earlier results are untouched

Called by: state.py (DashboardStore.refresh)
Depends on: connectors/record_source.py, services/client_mapper.py,
            services/history_normalizer.py
"""

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Literal, TypeVar

from loguru import logger

from ..connectors.record_source import RecordSourceClient
from ..schemas.clients import LEADS_TABLE, PATIENTS_TABLE, Client, ContactHistoryEntry
from ..utils.timestamps import utcnow
from .client_mapper import map_records
from .history_normalizer import normalize_history

RefreshStatus = Literal["ok", "degraded", "failed"]

P = TypeVar("P")
S = TypeVar("S")


# ── Primary / secondary join ─────────────────────────────────────────


@dataclass(frozen=True)
class JoinResult(Generic[P, S]):
    """Outcome of a primary + secondary join that did not fail outright."""

    primary: P
    secondary: S
    secondary_error: Exception | None = None

    @property
    def status(self) -> RefreshStatus:
        return "degraded" if self.secondary_error is not None else "ok"


async def join_with_fallback(
    primary: Awaitable[P], secondary: Awaitable[S], fallback: S
) -> JoinResult[P, S]:
    """Run both awaitables concurrently and combine their outcomes.

    - both succeed: JoinResult with both values, status "ok"
    - primary fails: the primary's exception is raised
    - secondary fails: ``fallback`` stands in, status "degraded"

    Both always run to completion; neither is cancelled by the other.
    """
    p, s = await asyncio.gather(primary, secondary, return_exceptions=True)

    if isinstance(p, BaseException):
        raise p
    if isinstance(s, Exception):
        return JoinResult(primary=p, secondary=fallback, secondary_error=s)
    if isinstance(s, BaseException):
        raise s
    return JoinResult(primary=p, secondary=s)


# ── History grouping ─────────────────────────────────────────────────


def group_history_by_client(
    entries: list[ContactHistoryEntry],
) -> dict[str, list[ContactHistoryEntry]]:
    """lead_id → entries, in the order they were fetched."""
    groups: dict[str, list[ContactHistoryEntry]] = {}
    for entry in entries:
        if not entry.lead_id:
            continue
        groups.setdefault(entry.lead_id, []).append(entry)
    return groups


def sort_history(entries: list[ContactHistoryEntry]) -> list[ContactHistoryEntry]:
    """Newest first. Equal dates keep their fetch order (sorted() is stable)."""
    return sorted(entries, key=lambda e: e.date, reverse=True)


def attach_history(
    clients: list[Client], groups: dict[str, list[ContactHistoryEntry]]
) -> list[Client]:
    """New client list with each client's sorted history and last contact."""
    return [c.with_contact_history(sort_history(groups.get(c.id, []))) for c in clients]


# ── Fetch phases ─────────────────────────────────────────────────────


async def fetch_clients(source: RecordSourceClient, provider_id: str) -> list[Client]:
    leads_records, patients_records = await asyncio.gather(
        source.fetch_records(LEADS_TABLE, provider_id),
        source.fetch_records(PATIENTS_TABLE, provider_id),
    )
    return map_records(leads_records, LEADS_TABLE) + map_records(patients_records, PATIENTS_TABLE)


async def fetch_contact_history(
    source: RecordSourceClient, provider_id: str, now: datetime | None = None
) -> list[ContactHistoryEntry]:
    now = now or utcnow()
    leads_history, patients_history = await asyncio.gather(
        source.fetch_history(LEADS_TABLE, provider_id),
        source.fetch_history(PATIENTS_TABLE, provider_id),
    )
    return normalize_history(leads_history, LEADS_TABLE, now) + normalize_history(
        patients_history, PATIENTS_TABLE, now
    )


# ── Orchestrator ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class AggregationResult:
    status: RefreshStatus
    clients: list[Client] = field(default_factory=list)
    history_error: str | None = None


async def aggregate_clients(
    source: RecordSourceClient, provider_id: str | None
) -> AggregationResult:
    """Enriched client list for one provider.

    Raises whatever the client fetch or client normalization raised; a
    history failure is reported through ``status="degraded"`` instead.
    """
    if not provider_id:
        return AggregationResult(status="ok", clients=[])

    joined = await join_with_fallback(
        fetch_clients(source, provider_id),
        fetch_contact_history(source, provider_id),
        fallback=[],
    )

    history_error = None
    if joined.secondary_error is not None:
        history_error = str(joined.secondary_error) or type(joined.secondary_error).__name__
        logger.warning(
            "Failed to fetch contact history for provider {}: {}", provider_id, history_error
        )

    clients = attach_history(joined.primary, group_history_by_client(joined.secondary))
    logger.info(
        "Aggregated {} clients ({} history entries) for provider {} [{}]",
        len(clients),
        len(joined.secondary),
        provider_id,
        joined.status,
    )
    return AggregationResult(status=joined.status, clients=clients, history_error=history_error)
