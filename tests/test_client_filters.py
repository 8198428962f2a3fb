"""
tests/test_client_filters.py - Tests for services/client_filters.py

Covers view scoping, search, filters, sort order (missing values last)
and pagination.

Called by: pytest
Depends on: dashboard.services.client_filters
"""

from datetime import datetime, timezone

import pytest

from dashboard.schemas.clients import Client, ContactHistoryEntry
from dashboard.schemas.dashboard import FilterState, PaginationState, SortState
from dashboard.services.client_filters import (
    apply_filters,
    apply_search,
    apply_view,
    filter_clients,
    page_count,
    paginate,
    sort_clients,
)


def _client(client_id, table="Web Popup Leads", last=None, **kw) -> Client:
    c = Client(id=client_id, table_source=table, **kw)
    if last is not None:
        entry = ContactHistoryEntry(id=f"h-{client_id}", lead_id=client_id, date=last)
        c = c.with_contact_history([entry])
    return c


@pytest.fixture()
def clients():
    return [
        _client("a", name="Ann Lee", email="ann@example.com", phone="555-0101", age=28,
                source="Instagram", status="new",
                last=datetime(2024, 1, 5, tzinfo=timezone.utc)),
        _client("b", name="bob Stone", email="bob@example.com", phone="(555) 0102", age=45,
                source="Website", status="converted",
                last=datetime(2024, 3, 5, tzinfo=timezone.utc)),
        _client("c", table="Patients", name="Cara Diaz", age=None, source="Facial Analysis",
                status="scheduled", facial_analysis_status="ready"),
        _client("d", name="Dee Archived", status="contacted", archived=True),
    ]


# ── Views ────────────────────────────────────────────────────────────


def test_list_view_hides_archived(clients):
    assert [c.id for c in apply_view(clients, "list")] == ["a", "b", "c"]


def test_archived_view(clients):
    assert [c.id for c in apply_view(clients, "archived")] == ["d"]


def test_facial_analysis_view_is_patients_only(clients):
    assert [c.id for c in apply_view(clients, "facial-analysis")] == ["c"]


# ── Search ───────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "query, expected",
    [
        ("ann", ["a"]),
        ("BOB@", ["b"]),
        ("0102", ["b"]),
        ("555", ["a", "b"]),
        ("", ["a", "b", "c", "d"]),
        ("zzz", []),
    ],
)
def test_search(clients, query, expected):
    assert [c.id for c in apply_search(clients, query)] == expected


# ── Filters ──────────────────────────────────────────────────────────


def test_source_filter_case_insensitive(clients):
    assert [c.id for c in apply_filters(clients, FilterState(source="website"))] == ["b"]


def test_age_bounds_exclude_unknown_age(clients):
    result = apply_filters(clients, FilterState(age_min=20, age_max=40))
    assert [c.id for c in result] == ["a"]


def test_analysis_status_uses_formatted_label(clients):
    result = apply_filters(clients, FilterState(analysis_status="Ready for Review"))
    assert [c.id for c in result] == ["c"]


def test_lead_stage(clients):
    assert [c.id for c in apply_filters(clients, FilterState(lead_stage="converted"))] == ["b"]


def test_age_bounds_must_be_ordered():
    with pytest.raises(ValueError):
        FilterState(age_min=50, age_max=20)


# ── Sorting ──────────────────────────────────────────────────────────


def test_default_sort_last_contact_desc_missing_last(clients):
    result = sort_clients(clients, SortState())
    assert [c.id for c in result] == ["b", "a", "c", "d"]


def test_last_contact_asc_missing_still_last(clients):
    result = sort_clients(clients, SortState(field="last_contact", order="asc"))
    assert [c.id for c in result] == ["a", "b", "c", "d"]


def test_name_sort_ignores_case(clients):
    result = sort_clients(clients, SortState(field="name", order="asc"))
    assert [c.id for c in result] == ["a", "b", "c", "d"]


def test_status_sort_follows_pipeline_order(clients):
    result = sort_clients(clients, SortState(field="status", order="asc"))
    assert [c.status for c in result] == ["new", "contacted", "scheduled", "converted"]


def test_age_sort_desc(clients):
    result = sort_clients(clients, SortState(field="age", order="desc"))
    assert [c.id for c in result] == ["b", "a", "c", "d"]


# ── Pagination ───────────────────────────────────────────────────────


def test_paginate(clients):
    pagination = PaginationState(current_page=2, items_per_page=3)
    assert [c.id for c in paginate(clients, pagination)] == ["d"]
    assert page_count(len(clients), pagination) == 2
    assert page_count(0, pagination) == 1


def test_filter_clients_composes(clients):
    result = filter_clients(
        clients, view="list", query="555", sort=SortState(field="name", order="desc")
    )
    assert [c.id for c in result] == ["b", "a"]
