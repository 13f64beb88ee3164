from decimal import Decimal

import pytest


QUOTATION = {
    "customer_name": "Acme Fabrication",
    "title": "Stainless mixing tank",
    "items": [
        {"description": "Tank shell", "category": "material", "quantity": "2", "unit_price": "50"},
        {"description": "Welding", "category": "labor", "quantity": "1", "unit_price": "200"},
    ],
}


async def create_quotation(client, **headers):
    res = await client.post("/quotations", json=QUOTATION, headers=headers)
    assert res.status_code == 200
    return res.json()["data"]


class TestEnvelope:
    @pytest.mark.asyncio
    async def test_health_check(self, client):
        res = await client.get("/")
        assert res.status_code == 200
        assert res.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client):
        res = await client.get("/", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"

        res = await client.get("/")
        assert res.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_create_returns_success_envelope(self, client):
        res = await client.post("/quotations", json=QUOTATION)

        body = res.json()
        assert body["success"] is True
        assert body["message"] == "Quotation created successfully"
        assert body["data"]["quotation_number"].startswith("QUO-")
        assert Decimal(body["data"]["total"]) == Decimal("325.50")

    @pytest.mark.asyncio
    async def test_unknown_quotation(self, client):
        res = await client.get("/quotations/999")

        assert res.status_code == 404
        body = res.json()
        assert body["success"] is False
        assert body["error_code"] == "QUOTATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_invalid_transition_names_unmet_condition(self, client):
        q = await create_quotation(client)

        res = await client.post(f"/quotations/{q['id']}/convert-to-sales-order", json={})

        assert res.status_code == 409
        body = res.json()
        assert body["error_code"] == "INVALID_TRANSITION"
        assert body["details"]["unmet"] == "po_received"

    @pytest.mark.asyncio
    async def test_request_validation(self, client):
        res = await client.post("/quotations", json={"title": "No customer"})

        assert res.status_code == 422
        assert res.json()["error_code"] == "VALIDATION_ERROR"


class TestQuotationEndpoints:
    @pytest.mark.asyncio
    async def test_next_revision_preview(self, client):
        res = await client.get("/quotations/revisions/next", params={"current": "1.9", "kind": "minor"})
        assert res.json()["data"]["next"] == "1.10"

        res = await client.get("/quotations/revisions/next", params={"current": "Rev Z", "kind": "major"})
        assert res.json()["data"]["next"] == "Rev AA"

        res = await client.get("/quotations/revisions/next", params={"current": "1.0", "kind": "patch"})
        assert res.status_code == 400

    @pytest.mark.asyncio
    async def test_actor_header_is_recorded(self, client):
        await create_quotation(client, **{"X-Actor": "dana"})

        res = await client.get("/activities", params={"actor": "dana"})

        data = res.json()["data"]
        assert data["total"] == 1
        assert data["items"][0]["code"] == "CREATE_QUOTATION"

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, client):
        q = await create_quotation(client)

        res = await client.patch(f"/quotations/{q['id']}", json={"title": "Changed", "version": q["version"] + 5})

        assert res.status_code == 409


class TestPipelineOverHttp:
    @pytest.mark.asyncio
    async def test_quotation_to_completed_sales_order(self, client):
        q = await create_quotation(client)
        qid = q["id"]

        res = await client.post("/drawings", json={"quotation_id": qid, "drawing_type": "General Arrangement"})
        drawing = res.json()["data"]
        for approval in drawing["approvals"]:
            res = await client.post(
                f"/drawings/{drawing['id']}/approvals/{approval['id']}/decision",
                json={"approved": True},
            )
            assert res.status_code == 200
        assert res.json()["data"]["fully_approved"] is True

        res = await client.post("/boqs", json={"quotation_id": qid})
        assert res.status_code == 200

        res = await client.post(f"/quotations/{qid}/send")
        assert res.json()["data"]["status"] == "sent"

        res = await client.post(f"/quotations/{qid}/po", json={"po_number": "PO-778"})
        assert res.json()["data"]["po_received"] is True

        res = await client.post(f"/quotations/{qid}/convert-to-sales-order", json={})
        conversion = res.json()["data"]
        assert conversion["created"] is True
        assert conversion["quotation"]["status"] == "completed"

        # Converting again returns the existing sales order.
        res = await client.post(f"/quotations/{qid}/convert-to-sales-order", json={})
        assert res.json()["data"]["created"] is False
        assert res.json()["data"]["sales_order_id"] == conversion["sales_order_id"]

        so_id = conversion["sales_order_id"]
        res = await client.get(f"/sales-orders/{so_id}")
        assert res.json()["data"]["customer_po"] == "PO-778"

        res = await client.post("/work-orders", json={"sales_order_id": so_id})
        wo = res.json()["data"]
        for status in ("in_progress", "completed", "quality_approved"):
            res = await client.patch(f"/work-orders/{wo['id']}/status", json={"status": status, "version": wo["version"]})
            assert res.status_code == 200
            wo = res.json()["data"]
        assert wo["progress"] == 100

        res = await client.get(f"/sales-orders/{so_id}")
        assert res.json()["data"]["status"] == "completed"
