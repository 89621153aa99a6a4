"""API tests for the invoice lifecycle.

Covers:
  - Create with number allocation and server-side totals
  - Draft-only edit and delete
  - Issue and cancel transitions, including rejected ones
  - List filters, authentication and permission checks
  - Duplicate-number backstop
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import update

from factucr.models.tenant.invoice_sequence import InvoiceSequence

pytestmark = [pytest.mark.api, pytest.mark.asyncio]


class TestCreate:
    async def test_create_draft(self, draft_invoice):
        assert draft_invoice["invoice_number"] == "INV-001"
        assert draft_invoice["status"] == "Draft"
        assert Decimal(draft_invoice["subtotal"]) == Decimal("20.00")
        assert Decimal(draft_invoice["total_tax"]) == Decimal("2.60")
        assert Decimal(draft_invoice["grand_total"]) == Decimal("22.60")
        line = draft_invoice["details"][0]
        assert line["line_number"] == 1
        assert Decimal(line["item_total"]) == Decimal("22.60")

    async def test_numbers_are_sequential(self, invoice_payload, client: AsyncClient, auth_headers, customer, product, draft_invoice):
        resp = await client.post(
            "/api/invoices/", json=invoice_payload(customer.id, product.id), headers=auth_headers
        )
        assert resp.status_code == 201
        assert resp.json()["invoice_number"] == "INV-002"

    async def test_client_status_is_ignored(self, invoice_payload, client: AsyncClient, auth_headers, customer, product):
        payload = invoice_payload(customer.id, product.id, status="Issued")
        resp = await client.post("/api/invoices/", json=payload, headers=auth_headers)
        assert resp.status_code == 201
        assert resp.json()["status"] == "Draft"

    async def test_unit_price_defaults_to_catalogue(self, invoice_payload, client: AsyncClient, auth_headers, customer, goods_product):
        payload = invoice_payload(customer.id, goods_product.id)
        payload["details"] = [{"product_id": goods_product.id, "quantity": "1", "item_discount": "500.00"}]
        resp = await client.post("/api/invoices/", json=payload, headers=auth_headers)

        assert resp.status_code == 201
        body = resp.json()
        assert Decimal(body["details"][0]["unit_price"]) == Decimal("45000.00")
        assert Decimal(body["total_discount"]) == Decimal("500.00")
        assert Decimal(body["total_tax"]) == Decimal("5785.00")
        assert Decimal(body["grand_total"]) == Decimal("50285.00")

    async def test_unknown_product(self, invoice_payload, client: AsyncClient, auth_headers, customer, product):
        customer_id, product_id = customer.id, product.id
        payload = invoice_payload(customer_id, "00000000-0000-0000-0000-000000000000")
        resp = await client.post("/api/invoices/", json=payload, headers=auth_headers)

        assert resp.status_code == 422
        assert resp.json()["error"]["details"]["field"] == "details.1.product_id"

        # The failed request consumed no number
        resp = await client.post(
            "/api/invoices/", json=invoice_payload(customer_id, product_id), headers=auth_headers
        )
        assert resp.json()["invoice_number"] == "INV-001"

    async def test_unknown_customer(self, invoice_payload, client: AsyncClient, auth_headers, product):
        payload = invoice_payload("missing-customer", product.id)
        resp = await client.post("/api/invoices/", json=payload, headers=auth_headers)
        assert resp.status_code == 422
        assert resp.json()["error"]["details"]["field"] == "customer_id"

    async def test_discount_above_subtotal(self, invoice_payload, client: AsyncClient, auth_headers, customer, product):
        payload = invoice_payload(customer.id, product.id)
        payload["details"][0]["item_discount"] = "25.00"
        resp = await client.post("/api/invoices/", json=payload, headers=auth_headers)
        assert resp.status_code == 422

    async def test_empty_lines(self, invoice_payload, client: AsyncClient, auth_headers, customer, product):
        payload = invoice_payload(customer.id, product.id, details=[])
        resp = await client.post("/api/invoices/", json=payload, headers=auth_headers)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_duplicate_number_backstop(self, invoice_payload, client: AsyncClient, db_session, auth_headers, customer, product, draft_invoice):
        # Force the counter behind the data so the next number collides
        await db_session.execute(update(InvoiceSequence).values(current_number=0))
        await db_session.commit()

        resp = await client.post(
            "/api/invoices/", json=invoice_payload(customer.id, product.id), headers=auth_headers
        )
        assert resp.status_code == 409
        error = resp.json()["error"]
        assert error["code"] == "CONCURRENT_MODIFICATION"
        assert error["details"]["retry"] is True


class TestEditAndDelete:
    async def test_update_recomputes(self, invoice_payload, client: AsyncClient, auth_headers, customer, product, draft_invoice):
        payload = invoice_payload(customer.id, product.id, observations="Orden de compra 4411")
        payload["details"] = [
            {"product_id": product.id, "quantity": "3"},
            {"product_id": product.id, "quantity": "1", "unit_price": "5.00"},
        ]
        resp = await client.put(f"/api/invoices/{draft_invoice['id']}", json=payload, headers=auth_headers)

        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["invoice_number"] == "INV-001"
        assert [d["line_number"] for d in body["details"]] == [1, 2]
        assert Decimal(body["subtotal"]) == Decimal("35.00")
        assert Decimal(body["total_tax"]) == Decimal("4.55")
        assert Decimal(body["grand_total"]) == Decimal("39.55")
        assert body["observations"] == "Orden de compra 4411"

    async def test_delete_draft(self, invoice_payload, client: AsyncClient, auth_headers, customer, product, draft_invoice):
        # Read ids up front: the 404 below rolls back the shared test session,
        # which expires loaded ORM objects.
        customer_id, product_id = customer.id, product.id
        resp = await client.delete(f"/api/invoices/{draft_invoice['id']}", headers=auth_headers)
        assert resp.status_code == 204

        resp = await client.get(f"/api/invoices/{draft_invoice['id']}", headers=auth_headers)
        assert resp.status_code == 404

        # Numbers of deleted drafts are not reused
        resp = await client.post(
            "/api/invoices/", json=invoice_payload(customer_id, product_id), headers=auth_headers
        )
        assert resp.json()["invoice_number"] == "INV-002"

    async def test_issued_cannot_be_edited_or_deleted(self, invoice_payload, client: AsyncClient, auth_headers, customer, product, draft_invoice):
        invoice_id = draft_invoice["id"]
        await client.post(f"/api/invoices/{invoice_id}/issue", headers=auth_headers)

        resp = await client.put(
            f"/api/invoices/{invoice_id}", json=invoice_payload(customer.id, product.id), headers=auth_headers
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "INVALID_STATE_TRANSITION"

        resp = await client.delete(f"/api/invoices/{invoice_id}", headers=auth_headers)
        assert resp.status_code == 409

        resp = await client.get(f"/api/invoices/{invoice_id}", headers=auth_headers)
        assert resp.json()["status"] == "Issued"
        assert Decimal(resp.json()["grand_total"]) == Decimal("22.60")


class TestTransitions:
    async def test_issue(self, client: AsyncClient, auth_headers, draft_invoice):
        resp = await client.post(f"/api/invoices/{draft_invoice['id']}/issue", headers=auth_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "Issued"
        assert body["issue_date"] is not None
        assert body["issued_at"] is not None

    async def test_issue_twice(self, client: AsyncClient, auth_headers, draft_invoice):
        url = f"/api/invoices/{draft_invoice['id']}/issue"
        await client.post(url, headers=auth_headers)
        resp = await client.post(url, headers=auth_headers)

        assert resp.status_code == 409
        assert resp.json()["error"]["details"] == {"action": "issue", "current_status": "Issued"}

    async def test_cancel_issued(self, client: AsyncClient, auth_headers, draft_invoice):
        invoice_id = draft_invoice["id"]
        await client.post(f"/api/invoices/{invoice_id}/issue", headers=auth_headers)
        resp = await client.post(
            f"/api/invoices/{invoice_id}/cancel", json={"reason": "Error en el precio"}, headers=auth_headers
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "Cancelled"
        assert body["cancellation_reason"] == "Error en el precio"
        assert body["cancelled_at"] is not None

    async def test_cancel_draft(self, client: AsyncClient, auth_headers, draft_invoice):
        resp = await client.post(
            f"/api/invoices/{draft_invoice['id']}/cancel", json={"reason": "Duplicada"}, headers=auth_headers
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "Cancelled"

    async def test_cancel_requires_reason(self, client: AsyncClient, auth_headers, draft_invoice):
        invoice_id = draft_invoice["id"]
        resp = await client.post(f"/api/invoices/{invoice_id}/cancel", json={"reason": "  "}, headers=auth_headers)
        assert resp.status_code == 422

        resp = await client.get(f"/api/invoices/{invoice_id}", headers=auth_headers)
        assert resp.json()["status"] == "Draft"

    async def test_cancel_twice(self, client: AsyncClient, auth_headers, draft_invoice):
        url = f"/api/invoices/{draft_invoice['id']}/cancel"
        await client.post(url, json={"reason": "Duplicada"}, headers=auth_headers)
        resp = await client.post(url, json={"reason": "Otra vez"}, headers=auth_headers)
        assert resp.status_code == 409

    async def test_cancelled_cannot_be_issued(self, client: AsyncClient, auth_headers, draft_invoice):
        invoice_id = draft_invoice["id"]
        await client.post(f"/api/invoices/{invoice_id}/cancel", json={"reason": "Duplicada"}, headers=auth_headers)
        resp = await client.post(f"/api/invoices/{invoice_id}/issue", headers=auth_headers)
        assert resp.status_code == 409

    async def test_issue_keeps_line_and_header_amounts(self, client: AsyncClient, auth_headers, invoice_payload, customer, product, goods_product):
        payload = invoice_payload(
            customer.id,
            product.id,
            details=[
                {"product_id": product.id, "quantity": "3", "unit_price": "10.00", "item_discount": "1.50"},
                {"product_id": goods_product.id, "quantity": "1.250", "item_discount": "0"},
            ],
        )
        created = (await client.post("/api/invoices/", json=payload, headers=auth_headers)).json()
        invoice_id = created["id"]

        def amounts(invoice: dict) -> tuple:
            lines = [
                (d["line_number"], d["item_subtotal"], d["item_tax"], d["item_total"])
                for d in invoice["details"]
            ]
            header = tuple(
                invoice[k] for k in ("subtotal", "total_discount", "total_tax", "grand_total")
            )
            return sorted(lines), header

        before = amounts((await client.get(f"/api/invoices/{invoice_id}", headers=auth_headers)).json())
        resp = await client.post(f"/api/invoices/{invoice_id}/issue", headers=auth_headers)
        assert resp.status_code == 200
        after = amounts((await client.get(f"/api/invoices/{invoice_id}", headers=auth_headers)).json())

        assert after == before
        assert len(before[0]) == 2

    async def test_transitions_are_logged(self, client: AsyncClient, auth_headers, draft_invoice):
        invoice_id = draft_invoice["id"]
        await client.post(f"/api/invoices/{invoice_id}/issue", headers=auth_headers)

        resp = await client.get(
            "/api/activity/", params={"entity_type": "invoice"}, headers=auth_headers
        )
        assert resp.status_code == 200
        actions = {item["action"] for item in resp.json()["items"]}
        assert {"created", "issued"} <= actions


class TestQueries:
    async def test_not_found(self, client: AsyncClient, auth_headers, test_user):
        resp = await client.get("/api/invoices/does-not-exist", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    async def test_list_filters(self, invoice_payload, client: AsyncClient, auth_headers, customer, product, draft_invoice):
        resp = await client.post(
            "/api/invoices/", json=invoice_payload(customer.id, product.id), headers=auth_headers
        )
        second_id = resp.json()["id"]
        await client.post(f"/api/invoices/{second_id}/issue", headers=auth_headers)

        resp = await client.get("/api/invoices/", headers=auth_headers)
        body = resp.json()
        assert body["total"] == 2
        assert [i["invoice_number"] for i in body["items"]] == ["INV-002", "INV-001"]

        resp = await client.get("/api/invoices/", params={"status": "Issued"}, headers=auth_headers)
        assert [i["id"] for i in resp.json()["items"]] == [second_id]

        resp = await client.get("/api/invoices/", params={"search": "sabana"}, headers=auth_headers)
        assert resp.json()["total"] == 2

        resp = await client.get("/api/invoices/", params={"limit": 1}, headers=auth_headers)
        assert resp.json()["total"] == 2
        assert len(resp.json()["items"]) == 1


class TestAccess:
    async def test_missing_token(self, client: AsyncClient):
        resp = await client.get("/api/invoices/")
        assert resp.status_code == 401

    async def test_invalid_token(self, client: AsyncClient):
        resp = await client.get("/api/invoices/", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "HTTP_401"

    async def test_missing_permission(self, invoice_payload, client: AsyncClient, accountant_headers, customer, product):
        resp = await client.post(
            "/api/invoices/", json=invoice_payload(customer.id, product.id), headers=accountant_headers
        )
        assert resp.status_code == 403

    async def test_read_permission(self, client: AsyncClient, accountant_headers, draft_invoice):
        resp = await client.get(f"/api/invoices/{draft_invoice['id']}", headers=accountant_headers)
        assert resp.status_code == 200
