"""
tests/test_record_source.py - Tests for connectors/record_source.py

Mocks the backend with httpx.MockTransport to test request shape, status
handling (including the 414 soft failure on history) and write endpoints.

Called by: pytest
Depends on: dashboard.connectors.record_source
"""

import json

import httpx
import pytest

from dashboard.exceptions import ProviderNotFoundError, RecordSourceError
from dashboard.schemas.clients import LEADS_TABLE, PATIENTS_TABLE


def _json(status: int, body) -> httpx.Response:
    return httpx.Response(status, json=body)


# ── fetch_records ────────────────────────────────────────────────────


class TestFetchRecords:
    @pytest.mark.asyncio
    async def test_request_is_scoped_by_provider(self, http_source):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json(200, {"success": True, "records": [
                {"id": "recA", "fields": {"Name": "A"}, "createdTime": "2024-01-01T00:00:00.000Z"},
            ]})

        source = http_source(handler)
        records = await source.fetch_records(LEADS_TABLE, "provP")

        assert len(seen) == 1
        req = seen[0]
        assert req.method == "GET"
        assert req.url.path == "/api/dashboard/leads"
        assert req.url.params["tableName"] == LEADS_TABLE
        assert req.url.params["providerId"] == "provP"
        assert "leadIds" not in req.url.params
        assert records[0].id == "recA"
        assert records[0].fields == {"Name": "A"}
        assert records[0].created_time == "2024-01-01T00:00:00.000Z"

    @pytest.mark.asyncio
    async def test_optional_filter_and_fields(self, http_source):
        seen = []

        def handler(request):
            seen.append(request)
            return _json(200, {"records": []})

        source = http_source(handler)
        await source.fetch_records(
            PATIENTS_TABLE, "provP", filter_formula="{Archived}=0", fields=["Name", "Email"]
        )
        params = seen[0].url.params
        assert params["filterFormula"] == "{Archived}=0"
        assert params.get_list("fields[]") == ["Name", "Email"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"records": None}, {"records": "nope"}])
    async def test_missing_records_is_empty(self, http_source, body):
        source = http_source(lambda r: _json(200, body))
        assert await source.fetch_records(LEADS_TABLE, "provP") == []

    @pytest.mark.asyncio
    async def test_error_status_raises_with_message(self, http_source):
        source = http_source(lambda r: _json(500, {"message": "Airtable unavailable"}))
        with pytest.raises(RecordSourceError) as exc:
            await source.fetch_records(PATIENTS_TABLE, "provP")
        assert exc.value.status_code == 500
        assert "API error for Patients: 500 Airtable unavailable" in str(exc.value)

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self, http_source):
        source = http_source(
            lambda r: httpx.Response(200, text="<html>oops</html>", headers={"content-type": "text/html"})
        )
        with pytest.raises(RecordSourceError, match="Expected JSON"):
            await source.fetch_records(LEADS_TABLE, "provP")

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self, http_source):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        source = http_source(handler)
        with pytest.raises(RecordSourceError, match="connection refused"):
            await source.fetch_records(LEADS_TABLE, "provP")


# ── fetch_history ────────────────────────────────────────────────────


class TestFetchHistory:
    @pytest.mark.asyncio
    async def test_request_params(self, http_source):
        seen = []

        def handler(request):
            seen.append(request)
            return _json(200, {"records": [{"id": "H1", "fields": {"Patient": ["P1"]}}]})

        source = http_source(handler)
        records = await source.fetch_history(PATIENTS_TABLE, "provP")

        assert seen[0].url.path == "/api/dashboard/contact-history"
        assert seen[0].url.params["tableSource"] == PATIENTS_TABLE
        assert seen[0].url.params["providerId"] == "provP"
        assert [r.id for r in records] == ["H1"]

    @pytest.mark.asyncio
    async def test_request_too_large_is_soft_failure(self, http_source):
        source = http_source(lambda r: _json(414, {"message": "URI Too Long"}))
        assert await source.fetch_history(LEADS_TABLE, "provP") == []

    @pytest.mark.asyncio
    async def test_other_error_status_raises(self, http_source):
        source = http_source(lambda r: _json(503, {"error": {"message": "down"}}))
        with pytest.raises(RecordSourceError, match="down"):
            await source.fetch_history(LEADS_TABLE, "provP")

    @pytest.mark.asyncio
    async def test_no_provider_makes_no_request(self, http_source):
        calls = []
        source = http_source(lambda r: calls.append(r) or _json(200, {"records": []}))
        assert await source.fetch_history(LEADS_TABLE, "") == []
        assert calls == []


# ── Provider lookup ──────────────────────────────────────────────────


class TestFetchProvider:
    @pytest.mark.asyncio
    async def test_found(self, http_source):
        seen = []

        def handler(request):
            seen.append(request)
            return _json(200, {"provider": {
                "id": "recProv", "name": "Glow Clinic", "code": "GLOW", "Form Link": "https://f.example",
            }})

        provider = await http_source(handler).fetch_provider_by_code("GLOW")
        assert seen[0].url.params["providerCode"] == "GLOW"
        assert provider.id == "recProv"
        assert provider.name == "Glow Clinic"
        assert provider.get("Form Link") == "https://f.example"

    @pytest.mark.asyncio
    async def test_not_found(self, http_source):
        source = http_source(lambda r: _json(404, {}))
        with pytest.raises(ProviderNotFoundError, match="Provider not found: NOPE"):
            await source.fetch_provider_by_code("NOPE")


# ── Writes ───────────────────────────────────────────────────────────


class TestWrites:
    @pytest.mark.asyncio
    async def test_patch_record_path_and_body(self, http_source):
        seen = []

        def handler(request):
            seen.append(request)
            return _json(200, {"success": True})

        await http_source(handler).patch_record(LEADS_TABLE, "recL1", {"Archived": True})
        req = seen[0]
        assert req.method == "PATCH"
        assert req.url.raw_path == b"/api/dashboard/records/Web%20Popup%20Leads/recL1"
        assert json.loads(req.content) == {"fields": {"Archived": True}}

    @pytest.mark.asyncio
    async def test_patch_record_failure_raises(self, http_source):
        source = http_source(lambda r: _json(422, {"error": {"message": "Unknown field"}}))
        with pytest.raises(RecordSourceError, match="Unknown field"):
            await source.patch_record(PATIENTS_TABLE, "recP1", {"Bogus": 1})

    @pytest.mark.asyncio
    async def test_update_record_returns_flag(self, http_source):
        assert await http_source(lambda r: _json(200, {})).update_record("r1", LEADS_TABLE, {"A": 1})
        assert not await http_source(lambda r: _json(500, {})).update_record("r1", LEADS_TABLE, {"A": 1})

    @pytest.mark.asyncio
    async def test_create_contact_history_returns_id(self, http_source):
        seen = []

        def handler(request):
            seen.append(request)
            return _json(200, {"record": {"id": "recNew"}})

        record_id = await http_source(handler).create_contact_history({"Patient": ["P1"]})
        assert record_id == "recNew"
        assert seen[0].method == "POST"
        assert json.loads(seen[0].content) == {"fields": {"Patient": ["P1"]}}

    @pytest.mark.asyncio
    async def test_coupon_claimed(self, http_source):
        seen = []

        def handler(request):
            seen.append(request)
            return _json(200, {})

        await http_source(handler).update_coupon_claimed("recL1", True)
        assert seen[0].url.path == "/api/dashboard/leads/recL1/coupon-claimed"
        assert json.loads(seen[0].content) == {"claimed": True}

    @pytest.mark.asyncio
    async def test_help_request_fields(self, http_source):
        seen = []

        def handler(request):
            seen.append(request)
            return _json(200, {})

        ok = await http_source(handler).submit_help_request("Ann", "ann@example.com", "Help", "provP")
        assert ok is True
        assert json.loads(seen[0].content)["fields"]["Provider Id"] == "provP"

    @pytest.mark.asyncio
    async def test_fetch_offers(self, http_source):
        source = http_source(lambda r: _json(200, {"records": [{"id": "off1", "fields": {}}]}))
        offers = await source.fetch_offers()
        assert [o.id for o in offers] == ["off1"]
