"""
state.py - Dashboard state store

Holds the current provider, the aggregated client list and the view /
search / filter / sort / page selections the dashboard reads. The store is
created by the composition root and handed to whatever renders it; there
is no module-level instance.

Business Rules:
- Assigning a provider (including a different one) runs exactly one refresh
- Clearing the provider empties the client list without fetching
- A fatal refresh clears the client list and records the error string
- A degraded refresh (history unavailable) is still a success
- Only the most recently started refresh may write results; a refresh
  that finishes after a newer one started is discarded
- Subscribers are called with the store after every state change

Called by: __main__.py
Depends on: services/aggregation_service.py, services/client_filters.py
"""

from collections.abc import Awaitable, Callable

from loguru import logger

from .connectors.record_source import RecordSourceClient
from .schemas.clients import Client, Provider
from .schemas.dashboard import FilterState, PaginationState, SortState, ViewType
from .services.aggregation_service import AggregationResult, RefreshStatus, aggregate_clients
from .services.client_filters import filter_clients, paginate

Aggregator = Callable[[RecordSourceClient, str | None], Awaitable[AggregationResult]]
Subscriber = Callable[["DashboardStore"], None]

DEFAULT_ERROR = "Failed to load clients"


class DashboardStore:
    def __init__(self, source: RecordSourceClient, aggregator: Aggregator = aggregate_clients):
        self._source = source
        self._aggregate = aggregator

        self._provider: Provider | None = None
        self._clients: list[Client] = []
        self._current_view: ViewType = "list"
        self._search_query = ""
        self._filters = FilterState()
        self._sort = SortState()
        self._pagination = PaginationState()
        self._loading = False
        self._error: str | None = None
        self._last_status: RefreshStatus | None = None

        self._generation = 0
        self._subscribers: list[Subscriber] = []

    # ── Read contract ────────────────────────────────────────────────

    @property
    def provider(self) -> Provider | None:
        return self._provider

    @property
    def clients(self) -> list[Client]:
        return list(self._clients)

    @property
    def current_view(self) -> ViewType:
        return self._current_view

    @property
    def search_query(self) -> str:
        return self._search_query

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def sort(self) -> SortState:
        return self._sort

    @property
    def pagination(self) -> PaginationState:
        return self._pagination

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def last_status(self) -> RefreshStatus | None:
        return self._last_status

    def visible_clients(self) -> list[Client]:
        """Clients for the current view, search, filters and sort."""
        return filter_clients(
            self._clients, self._current_view, self._search_query, self._filters, self._sort
        )

    def page_clients(self) -> list[Client]:
        return paginate(self.visible_clients(), self._pagination)

    # ── Subscription ─────────────────────────────────────────────────

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self)

    # ── Provider lifecycle ───────────────────────────────────────────

    async def set_provider(self, provider: Provider | None) -> None:
        self._provider = provider
        if provider is None:
            self.clear_clients()
            return
        logger.info("Provider set: {} ({})", provider.name or provider.id, provider.id)
        await self.refresh()

    def clear_clients(self) -> None:
        """Empty the list now; any in-flight refresh is discarded on completion."""
        self._generation += 1
        self._clients = []
        self._loading = False
        self._notify()

    async def refresh(self, provider_id: str | None = None) -> None:
        """One aggregation run. Results land in the store, never returned.

        Record-source and normalization failures are recorded as
        ``error`` rather than raised.
        """
        provider_id = provider_id or (self._provider.id if self._provider else None)
        if not provider_id:
            self.clear_clients()
            return

        self._generation += 1
        generation = self._generation
        self._loading = True
        self._error = None
        self._notify()

        try:
            result = await self._aggregate(self._source, provider_id)
        except Exception as e:
            if generation != self._generation:
                logger.debug("Discarding failed stale refresh for provider {}", provider_id)
                return
            logger.error("Failed to fetch clients for provider {}: {}", provider_id, e)
            self._error = str(e) or DEFAULT_ERROR
            self._clients = []
            self._last_status = "failed"
            self._loading = False
            self._notify()
            return

        if generation != self._generation:
            logger.debug("Discarding stale refresh for provider {}", provider_id)
            return
        self._clients = list(result.clients)
        self._last_status = result.status
        self._loading = False
        self._notify()

    # ── Selections ───────────────────────────────────────────────────

    def set_view(self, view: ViewType) -> None:
        self._current_view = view
        self._pagination = self._pagination.model_copy(update={"current_page": 1})
        self._notify()

    def set_search_query(self, query: str) -> None:
        self._search_query = query
        self._pagination = self._pagination.model_copy(update={"current_page": 1})
        self._notify()

    def set_filters(self, filters: FilterState | Callable[[FilterState], FilterState]) -> None:
        self._filters = filters(self._filters) if callable(filters) else filters
        self._pagination = self._pagination.model_copy(update={"current_page": 1})
        self._notify()

    def set_sort(self, sort: SortState | Callable[[SortState], SortState]) -> None:
        self._sort = sort(self._sort) if callable(sort) else sort
        self._notify()

    def set_page(self, page: int, items_per_page: int | None = None) -> None:
        self._pagination = PaginationState(
            current_page=page,
            items_per_page=items_per_page or self._pagination.items_per_page,
        )
        self._notify()
