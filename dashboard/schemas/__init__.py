"""
schemas/ - Pydantic models shared by the pipeline, the store and the CLI

clients.py holds the canonical entities (Client, ContactHistoryEntry,
Provider) and the raw record shape; dashboard.py holds the view, filter,
sort and pagination selections.
"""

from .clients import (
    CLIENT_STATUSES,
    LEADS_TABLE,
    LINK_FIELDS,
    PATIENTS_TABLE,
    TABLE_SOURCES,
    Client,
    ContactHistoryEntry,
    ContactLogEntry,
    Provider,
    RawRecord,
    TableSource,
    link_field_for,
)
from .dashboard import FilterState, PaginationState, SortState, ViewType

__all__ = [
    "CLIENT_STATUSES",
    "LEADS_TABLE",
    "LINK_FIELDS",
    "PATIENTS_TABLE",
    "TABLE_SOURCES",
    "Client",
    "ContactHistoryEntry",
    "ContactLogEntry",
    "FilterState",
    "PaginationState",
    "Provider",
    "RawRecord",
    "SortState",
    "TableSource",
    "ViewType",
    "link_field_for",
]
