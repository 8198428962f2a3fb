"""Client list view logic: view scoping, search, filters, sort, pagination.

Operates on the aggregated list held by the store and never mutates it.

Business Rules:
- Archived clients only show in the archived view
- The facial-analysis view shows patients only
- Search matches name, email or phone, case-insensitively
- Clients with an unknown age are excluded once an age bound is set
- Missing sort values go last in both directions
"""

from ..schemas.clients import CLIENT_STATUSES, Client
from ..schemas.dashboard import FilterState, PaginationState, SortState
from ..utils.status_formatting import format_facial_status

_STATUS_RANK = {status: i for i, status in enumerate(CLIENT_STATUSES)}


def apply_view(clients: list[Client], view: str) -> list[Client]:
    if view == "archived":
        return [c for c in clients if c.archived]
    if view == "facial-analysis":
        return [c for c in clients if not c.archived and c.is_patient]
    return [c for c in clients if not c.archived]


def apply_search(clients: list[Client], query: str) -> list[Client]:
    q = (query or "").strip().lower()
    if not q:
        return list(clients)
    digits = "".join(ch for ch in q if ch.isdigit())
    matched = []
    for c in clients:
        if q in c.name.lower() or q in c.email.lower():
            matched.append(c)
        elif digits and digits in "".join(ch for ch in c.phone if ch.isdigit()):
            matched.append(c)
    return matched


def apply_filters(clients: list[Client], filters: FilterState) -> list[Client]:
    if filters.is_empty:
        return list(clients)

    source = filters.source.strip().lower()
    analysis = format_facial_status(filters.analysis_status) if filters.analysis_status else ""
    stage = filters.lead_stage.strip().lower()

    result = []
    for c in clients:
        if source and c.source.lower() != source:
            continue
        if filters.age_min is not None or filters.age_max is not None:
            if c.age is None:
                continue
            if filters.age_min is not None and c.age < filters.age_min:
                continue
            if filters.age_max is not None and c.age > filters.age_max:
                continue
        if analysis and format_facial_status(c.facial_analysis_status) != analysis:
            continue
        if stage and c.status != stage:
            continue
        result.append(c)
    return result


def _sort_value(client: Client, field: str):
    if field == "status":
        return _STATUS_RANK.get(client.status)
    if field == "name":
        return client.name.lower() or None
    if field == "facial_analysis_status":
        return format_facial_status(client.facial_analysis_status)
    if field == "created_at":
        return client.created_at or None
    return getattr(client, field)


def sort_clients(clients: list[Client], sort: SortState) -> list[Client]:
    present = [c for c in clients if _sort_value(c, sort.field) is not None]
    missing = [c for c in clients if _sort_value(c, sort.field) is None]
    present.sort(key=lambda c: _sort_value(c, sort.field), reverse=sort.order == "desc")
    return present + missing


def paginate(clients: list[Client], pagination: PaginationState) -> list[Client]:
    start = (pagination.current_page - 1) * pagination.items_per_page
    return clients[start : start + pagination.items_per_page]


def page_count(total: int, pagination: PaginationState) -> int:
    return max(1, -(-total // pagination.items_per_page))


def filter_clients(
    clients: list[Client],
    view: str = "list",
    query: str = "",
    filters: FilterState | None = None,
    sort: SortState | None = None,
) -> list[Client]:
    """View, search, filter and sort in one pass; pagination is separate."""
    result = apply_view(clients, view)
    result = apply_search(result, query)
    result = apply_filters(result, filters or FilterState())
    return sort_clients(result, sort or SortState())
