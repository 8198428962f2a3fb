"""
conftest.py - Shared test fixtures for the dashboard

Provides raw record factories, a record-source double backed by
AsyncMock, and an httpx MockTransport-backed RecordSourceClient.

Business Rules:
- No test touches the network: HTTP goes through httpx.MockTransport
- The record-source double serves fixed rows per table

Called by: all test files via pytest autodiscovery
Depends on: dashboard.connectors.record_source, dashboard.schemas.clients
"""

import os

os.environ["APP_ENV"] = "test"  # Must be set before importing dashboard modules
os.environ["BACKEND_API_URL"] = "https://backend.test"

from unittest.mock import AsyncMock

import httpx
import pytest

from dashboard.connectors.record_source import RecordSourceClient
from dashboard.schemas.clients import LEADS_TABLE, PATIENTS_TABLE, RawRecord

BASE_URL = "https://backend.test"


def raw(record_id: str, fields: dict | None = None, created_time: str | None = None) -> RawRecord:
    return RawRecord(id=record_id, fields=fields or {}, createdTime=created_time)


def history_row(record_id: str, link_field: str, lead_id: str | None, date: str | None, **fields) -> RawRecord:
    f = dict(fields)
    if lead_id is not None:
        f[link_field] = [lead_id]
    if date is not None:
        f["Date"] = date
    return raw(record_id, f)


@pytest.fixture()
def make_record():
    return raw


@pytest.fixture()
def make_history_row():
    return history_row


# ── Scenario: provider P with leads L1, L2 and patient P1 ────────────


@pytest.fixture()
def scenario_records() -> dict:
    return {
        LEADS_TABLE: [
            raw("L1", {"Name": "Lena Lead", "Email": "lena@example.com", "Status": "New"}),
            raw("L2", {"Name": "Liam Lead", "Email": "liam@example.com", "Contacted": True}),
        ],
        PATIENTS_TABLE: [
            raw("P1", {"Patient Name": "Pat Patient", "Pending/Opened": "Ready"}),
        ],
    }


@pytest.fixture()
def scenario_history() -> dict:
    return {
        LEADS_TABLE: [
            history_row("H1", "Web Popup Lead", "L1", "2024-01-01", **{"Contact Type": "Phone Call"}),
            history_row("H2", "Web Popup Lead", "L1", "2024-03-01", **{"Contact Type": "Email"}),
        ],
        PATIENTS_TABLE: [
            history_row("H3", "Patient", "P1", "2024-02-01", Outcome="Left Voicemail"),
        ],
    }


def build_source(records: dict, history: dict | Exception | None = None) -> AsyncMock:
    """AsyncMock record source serving ``records`` / ``history`` per table."""
    source = AsyncMock(spec=RecordSourceClient)

    async def fetch_records(table_name, provider_id, *args, **kwargs):
        if isinstance(records, Exception):
            raise records
        return list(records.get(table_name, []))

    async def fetch_history(table_source, provider_id):
        if isinstance(history, Exception):
            raise history
        return list((history or {}).get(table_source, []))

    source.fetch_records.side_effect = fetch_records
    source.fetch_history.side_effect = fetch_history
    return source


@pytest.fixture()
def fake_source(scenario_records, scenario_history):
    return build_source(scenario_records, scenario_history)


# ── HTTP-level client ────────────────────────────────────────────────


@pytest.fixture()
def http_source():
    """Factory: RecordSourceClient whose requests go to ``handler``."""
    clients = []

    def _make(handler) -> RecordSourceClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(http)
        return RecordSourceClient(base_url=BASE_URL, http=http)

    return _make


@pytest.fixture()
def source_factory():
    return build_source
