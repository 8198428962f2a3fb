"""Record source connector - the dashboard backend's table API.

All reads and writes go through the backend (``settings.backend_api_url``),
which fronts the "Web Popup Leads", "Patients", "Contact History" and
"Offers" tables. Reads are always scoped by provider id, never by an
enumerated list of record ids, so request URLs stay bounded no matter how
many clients a provider has.

No method retries: the dashboard refresh cycle is the retry.

Called by: services/aggregation_service.py, services/contact_log_service.py,
           __main__.py
Depends on: http_client.py, schemas/clients.py, httpx
"""

from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

from ..config import settings
from ..exceptions import ProviderNotFoundError, RecordSourceError
from ..http_client import get_http
from ..schemas.clients import Provider, RawRecord

# "URI Too Long" - the backend's request-size limit
STATUS_REQUEST_TOO_LARGE = 414


class RecordSourceClient:
    """Async client for the dashboard backend."""

    PROVIDER_PATH = "/api/dashboard/provider"
    RECORDS_PATH = "/api/dashboard/leads"
    HISTORY_PATH = "/api/dashboard/contact-history"
    UPDATE_RECORD_PATH = "/api/dashboard/update-record"
    TABLE_RECORD_PATH = "/api/dashboard/records/{table}/{record_id}"
    COUPON_PATH = "/api/dashboard/leads/{record_id}/coupon-claimed"
    SMS_PATH = "/api/dashboard/sms"
    HELP_REQUESTS_PATH = "/api/dashboard/help-requests"
    OFFERS_PATH = "/api/dashboard/offers"

    def __init__(
        self,
        base_url: str | None = None,
        http: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self._http = http

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http if self._http is not None else get_http()

    # ── Transport helpers ────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: list[tuple[str, str]] | dict | None = None,
        json: Any = None,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            return await self.http.request(
                method, url, params=params, json=json, timeout=self.timeout
            )
        except httpx.HTTPError as e:
            raise RecordSourceError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _parse_json(resp: httpx.Response) -> Any:
        content_type = resp.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise RecordSourceError(
                f"Expected JSON but got {content_type or 'no content type'}. "
                f"Response: {resp.text[:100]}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise RecordSourceError(
                f"Invalid JSON body: {e}", status_code=resp.status_code
            ) from e

    @classmethod
    def _error_message(cls, resp: httpx.Response, default: str) -> str:
        """Backend error text: error.message, then message, then ``default``."""
        try:
            body = cls._parse_json(resp)
        except RecordSourceError:
            return default
        if not isinstance(body, dict):
            return default
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if body.get("message"):
            return str(body["message"])
        if isinstance(err, str) and err:
            return err
        return default

    @staticmethod
    def _records(body: Any) -> list[RawRecord]:
        records = body.get("records") if isinstance(body, dict) else None
        if not isinstance(records, list):
            return []
        return [RawRecord.model_validate(r) for r in records]

    # ── Reads ────────────────────────────────────────────────────────

    async def fetch_provider_by_code(self, provider_code: str) -> Provider:
        resp = await self._request(
            "GET", self.PROVIDER_PATH, params={"providerCode": provider_code}
        )
        if not resp.is_success:
            msg = self._error_message(resp, f"Provider not found: {provider_code}")
            raise ProviderNotFoundError(msg, status_code=resp.status_code)

        body = self._parse_json(resp)
        data = body.get("provider") if isinstance(body, dict) else None
        if not data:
            raise ProviderNotFoundError(f"Provider not found: {provider_code}")
        return Provider.model_validate(data)

    async def fetch_records(
        self,
        table_name: str,
        provider_id: str,
        filter_formula: str | None = None,
        fields: list[str] | None = None,
    ) -> list[RawRecord]:
        """All records of ``table_name`` belonging to ``provider_id``."""
        params: list[tuple[str, str]] = [("tableName", table_name)]
        if filter_formula:
            params.append(("filterFormula", filter_formula))
        if provider_id:
            params.append(("providerId", provider_id))
        for field in fields or ():
            params.append(("fields[]", field))

        resp = await self._request("GET", self.RECORDS_PATH, params=params)
        if not resp.is_success:
            msg = self._error_message(resp, resp.reason_phrase)
            raise RecordSourceError(
                f"API error for {table_name}: {resp.status_code} {msg}",
                status_code=resp.status_code,
            )

        records = self._records(self._parse_json(resp))
        logger.debug("Fetched {} {} records for provider {}", len(records), table_name, provider_id)
        return records

    async def fetch_history(self, table_source: str, provider_id: str) -> list[RawRecord]:
        """Raw Contact History rows linked to ``table_source`` for a provider.

        A 414 (request too large) is a soft failure and returns [] so the
        refresh can continue without history.
        """
        if not provider_id:
            return []

        resp = await self._request(
            "GET",
            self.HISTORY_PATH,
            params={"tableSource": table_source, "providerId": provider_id},
        )
        if resp.status_code == STATUS_REQUEST_TOO_LARGE:
            logger.warning(
                "Contact history for {} temporarily unavailable (414 URI too long)",
                table_source,
            )
            return []
        if not resp.is_success:
            msg = self._error_message(resp, resp.reason_phrase)
            raise RecordSourceError(
                f"Contact history error for {table_source}: {resp.status_code} {msg}",
                status_code=resp.status_code,
            )

        return self._records(self._parse_json(resp))

    async def fetch_offers(self) -> list[RawRecord]:
        resp = await self._request("GET", self.OFFERS_PATH)
        if not resp.is_success:
            raise RecordSourceError(
                self._error_message(resp, "Failed to fetch offers"),
                status_code=resp.status_code,
            )
        return self._records(self._parse_json(resp))

    # ── Writes ───────────────────────────────────────────────────────

    async def update_record(self, record_id: str, table_name: str, fields: dict) -> bool:
        """Generic field update. Returns False instead of raising on a bad status."""
        resp = await self._request(
            "POST",
            self.UPDATE_RECORD_PATH,
            json={"recordId": record_id, "tableName": table_name, "fields": fields},
        )
        if not resp.is_success:
            logger.warning("update-record {} in {} returned {}", record_id, table_name, resp.status_code)
        return resp.is_success

    async def patch_record(self, table_name: str, record_id: str, fields: dict) -> None:
        path = self.TABLE_RECORD_PATH.format(
            table=quote(table_name, safe=""), record_id=quote(record_id, safe="")
        )
        resp = await self._request("PATCH", path, json={"fields": fields})
        if not resp.is_success:
            raise RecordSourceError(
                self._error_message(resp, f"Failed to update {table_name} record {record_id}"),
                status_code=resp.status_code,
            )

    async def create_contact_history(self, fields: dict) -> str:
        """Create a Contact History row. Returns the new record id."""
        resp = await self._request("POST", self.HISTORY_PATH, json={"fields": fields})
        if not resp.is_success:
            raise RecordSourceError(
                self._error_message(resp, "Failed to create contact history record"),
                status_code=resp.status_code,
            )
        body = self._parse_json(resp)
        if not isinstance(body, dict):
            raise RecordSourceError("Contact history response was not an object")
        record = body.get("record") or {}
        record_id = record.get("id") or body.get("id")
        if not record_id:
            raise RecordSourceError("Contact history response had no record id")
        return record_id

    async def update_coupon_claimed(self, record_id: str, claimed: bool) -> None:
        path = self.COUPON_PATH.format(record_id=quote(record_id, safe=""))
        resp = await self._request("PATCH", path, json={"claimed": claimed})
        if not resp.is_success:
            raise RecordSourceError(
                self._error_message(
                    resp, f"Failed to update coupon claimed: {resp.reason_phrase}"
                ),
                status_code=resp.status_code,
            )

    async def send_sms_notification(
        self, phone: str, message: str, lead_id: str, table_source: str
    ) -> bool:
        resp = await self._request(
            "POST",
            self.SMS_PATH,
            json={
                "phone": phone,
                "message": message,
                "leadId": lead_id,
                "tableSource": table_source,
            },
        )
        return resp.is_success

    async def submit_help_request(
        self, name: str, email: str, message: str, provider_id: str
    ) -> bool:
        fields = {
            "Name": name,
            "Email": email,
            "Message": message,
            "Provider Id": provider_id,
        }
        resp = await self._request("POST", self.HELP_REQUESTS_PATH, json={"fields": fields})
        return resp.is_success
