"""Tests for the Clave and the FacturaElectronica / MensajeReceptor export."""

import xml.etree.ElementTree as ET
from datetime import date, datetime
from decimal import Decimal

import pytest
from httpx import AsyncClient

from factucr.middleware.exceptions import ValidationError
from factucr.services.clave import Clave, consecutive_of, normalize_legal_id
from factucr.services.einvoice_xml import (
    INVOICE_NS,
    RECEIVER_MESSAGE_NS,
    ElectronicInvoice,
    Party,
    ReceiverMessage,
    emission_datetime,
    render_receiver_message,
)

NS = {"fe": INVOICE_NS}


@pytest.mark.unit
class TestClave:
    def test_layout(self):
        clave = Clave(
            legal_id="3-101-123456",
            issue_date=date(2024, 3, 15),
            consecutive=8,
            security_code="12345678",
        )
        value = str(clave)

        assert value == "506" "01" "3101123456" "1" "240315" "0000000008" "1" "12345678"
        assert value.isdigit()

    def test_consecutive_of(self):
        assert consecutive_of("INV-008") == 8
        assert consecutive_of("INV-1000") == 1000
        with pytest.raises(ValidationError):
            consecutive_of("INV-")

    def test_normalize_legal_id(self):
        assert normalize_legal_id("1 0234 0567") == "102340567"
        with pytest.raises(ValidationError):
            normalize_legal_id("3-101-ABC")

    @pytest.mark.parametrize("code", ["1234567", "123456789", "abcdefgh", None])
    def test_bad_security_code(self, code):
        with pytest.raises(ValidationError):
            Clave(legal_id="3101123456", issue_date=date(2024, 1, 1), consecutive=1, security_code=code)

    def test_consecutive_overflow(self):
        with pytest.raises(ValidationError):
            Clave(legal_id="3101123456", issue_date=date(2024, 1, 1), consecutive=10**10, security_code="00000001")


@pytest.mark.unit
class TestDocumentTypes:
    def test_mandatory_fields_enforced(self):
        with pytest.raises(TypeError):
            Party(name="Ana", id_type="01", id_number="102340567")  # type: ignore[call-arg]

        with pytest.raises(TypeError):
            ElectronicInvoice(clave="506", activity_code="620100000000")  # type: ignore[call-arg]

    def test_emission_datetime_is_costa_rica_time(self):
        assert emission_datetime(date(2024, 3, 15)).isoformat() == "2024-03-15T00:00:00-06:00"

    def test_receiver_message_escapes_text(self):
        doc = ReceiverMessage(
            clave="50601310112345612403150000000001112345678",
            issuer_id="3101123456",
            issued_at=datetime.fromisoformat("2024-03-15T00:00:00-06:00"),
            message="1",
            detail="Aceptada <sin> observaciones & más",
            total_tax=Decimal("2.6"),
            total_invoice=Decimal("22.6"),
            receiver_id="3101654321",
            receiver_consecutive="INV-001",
        )
        content = render_receiver_message(doc)

        assert content.startswith(b"<?xml")
        assert b"&lt;sin&gt;" in content and b"&amp;" in content
        root = ET.fromstring(content)
        ns = {"mr": RECEIVER_MESSAGE_NS}
        assert root.find("mr:DetalleMensaje", ns).text == "Aceptada <sin> observaciones & más"
        assert root.find("mr:MontoTotalImpuesto", ns).text == "2.60"
        assert root.find("mr:TotalFactura", ns).text == "22.60"


@pytest.mark.api
class TestExportEndpoints:
    @pytest.mark.asyncio
    async def test_export_issued_invoice(
        self, client: AsyncClient, auth_headers, invoice_payload, customer, product, goods_product, company_profile
    ):
        payload = invoice_payload(customer.id, product.id, issue_date="2024-03-15", payment_method="Transfer")
        payload["details"].append({"product_id": goods_product.id, "quantity": "1", "item_discount": "500.00"})
        invoice = (await client.post("/api/invoices/", json=payload, headers=auth_headers)).json()
        issued = (await client.post(f"/api/invoices/{invoice['id']}/issue", headers=auth_headers)).json()
        assert issued["issue_date"] == "2024-03-15"

        resp = await client.get(f"/api/invoices/{invoice['id']}/xml", headers=auth_headers)

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/xml")
        assert "factura-INV-001.xml" in resp.headers["content-disposition"]

        root = ET.fromstring(resp.content)
        assert root.tag == f"{{{INVOICE_NS}}}FacturaElectronica"

        clave = root.find("fe:Clave", NS).text
        prefix = "506" "01" "3101123456" "1" "240315" "0000000001" "1"
        assert clave.startswith(prefix)
        assert len(clave) == len(prefix) + 8 and clave.isdigit()
        assert root.find("fe:NumeroConsecutivo", NS).text == "INV-001"
        assert root.find("fe:FechaEmision", NS).text == "2024-03-15T00:00:00-06:00"
        assert root.find("fe:MedioPago", NS).text == "04"
        assert root.find("fe:CondicionVenta", NS).text == "01"
        assert root.find("fe:Emisor/fe:Identificacion/fe:Numero", NS).text == "3101123456"
        assert root.find("fe:Receptor/fe:Identificacion/fe:Tipo", NS).text == "02"

        lines = root.findall("fe:DetalleServicio/fe:LineaDetalle", NS)
        assert [line.find("fe:NumeroLinea", NS).text for line in lines] == ["1", "2"]
        assert lines[0].find("fe:Descuento", NS) is None
        assert lines[1].find("fe:Descuento/fe:MontoDescuento", NS).text == "500.00"
        # Product names are escaped, not injected
        assert lines[1].find("fe:Detalle", NS).text == "Cable UTP Cat6 <305 m>"

        summary = root.find("fe:ResumenFactura", NS)
        assert summary.find("fe:TotalServGravados", NS).text == "20.00"
        assert summary.find("fe:TotalMercanciasGravadas", NS).text == "45000.00"
        assert summary.find("fe:TotalVenta", NS).text == "45020.00"
        assert summary.find("fe:TotalDescuentos", NS).text == "500.00"
        assert summary.find("fe:TotalVentaNeta", NS).text == "44520.00"
        assert summary.find("fe:TotalImpuesto", NS).text == "5787.60"
        assert summary.find("fe:TotalComprobante", NS).text == "50307.60"

    @pytest.mark.asyncio
    async def test_export_is_stable(self, client: AsyncClient, auth_headers, draft_invoice, company_profile):
        invoice_id = draft_invoice["id"]
        await client.post(f"/api/invoices/{invoice_id}/issue", headers=auth_headers)

        first = await client.get(f"/api/invoices/{invoice_id}/xml", headers=auth_headers)
        second = await client.get(f"/api/invoices/{invoice_id}/xml", headers=auth_headers)
        assert first.content == second.content

    @pytest.mark.asyncio
    async def test_receiver_message(self, client: AsyncClient, auth_headers, draft_invoice, company_profile):
        invoice_id = draft_invoice["id"]
        await client.post(f"/api/invoices/{invoice_id}/issue", headers=auth_headers)

        resp = await client.get(f"/api/invoices/{invoice_id}/xml/response", headers=auth_headers)

        assert resp.status_code == 200
        root = ET.fromstring(resp.content)
        ns = {"mr": RECEIVER_MESSAGE_NS}
        assert root.find("mr:NumeroCedulaEmisor", ns).text == "3101123456"
        assert root.find("mr:NumeroCedulaReceptor", ns).text == "3101654321"
        assert root.find("mr:MontoTotalImpuesto", ns).text == "2.60"
        assert root.find("mr:TotalFactura", ns).text == "22.60"

    @pytest.mark.asyncio
    async def test_receiver_message_export_is_logged(self, client: AsyncClient, auth_headers, draft_invoice, company_profile):
        invoice_id = draft_invoice["id"]
        await client.post(f"/api/invoices/{invoice_id}/issue", headers=auth_headers)
        await client.get(f"/api/invoices/{invoice_id}/xml/response", headers=auth_headers)

        resp = await client.get("/api/activity/", params={"action": "exported"}, headers=auth_headers)

        [entry] = resp.json()["items"]
        assert entry["entity_id"] == invoice_id
        assert entry["details"]["document"] == "MensajeReceptor"
        assert entry["details"]["clave"].startswith("506")

    @pytest.mark.asyncio
    async def test_draft_cannot_be_exported(self, client: AsyncClient, auth_headers, draft_invoice, company_profile):
        resp = await client.get(f"/api/invoices/{draft_invoice['id']}/xml", headers=auth_headers)
        assert resp.status_code == 409
        assert resp.json()["error"]["details"]["action"] == "export"

    @pytest.mark.asyncio
    async def test_cancelled_cannot_be_exported(self, client: AsyncClient, auth_headers, draft_invoice, company_profile):
        invoice_id = draft_invoice["id"]
        await client.post(f"/api/invoices/{invoice_id}/issue", headers=auth_headers)
        await client.post(f"/api/invoices/{invoice_id}/cancel", json={"reason": "Anulada"}, headers=auth_headers)

        resp = await client.get(f"/api/invoices/{invoice_id}/xml", headers=auth_headers)
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_requires_company_profile(self, client: AsyncClient, auth_headers, draft_invoice):
        invoice_id = draft_invoice["id"]
        await client.post(f"/api/invoices/{invoice_id}/issue", headers=auth_headers)

        resp = await client.get(f"/api/invoices/{invoice_id}/xml", headers=auth_headers)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "COMPANY_PROFILE_MISSING"
