"""Invoice router.

Endpoints:
    GET    /api/invoices/                    List invoices (filters + pagination)
    POST   /api/invoices/                    Create a Draft invoice
    GET    /api/invoices/{id}                Invoice with lines
    PUT    /api/invoices/{id}                Replace header + lines (Draft only)
    DELETE /api/invoices/{id}                Delete (Draft only)
    POST   /api/invoices/{id}/issue          Draft → Issued
    POST   /api/invoices/{id}/cancel         Draft | Issued → Cancelled
    GET    /api/invoices/{id}/xml            FacturaElectronica XML (Issued only)
    GET    /api/invoices/{id}/xml/response   MensajeReceptor XML (Issued only)
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from factucr.auth.deps import require_permission
from factucr.config import settings
from factucr.database import get_tenant_db
from factucr.middleware.exceptions import ValidationError
from factucr.models.public.user import User
from factucr.models.tenant.company_profile import CompanyProfile
from factucr.models.tenant.customer import Customer
from factucr.models.tenant.invoice import Invoice, InvoiceStatus
from factucr.schemas.common import PaginatedResponse
from factucr.schemas.invoice import (
    InvoiceCancel,
    InvoiceCreate,
    InvoiceLineOut,
    InvoiceOut,
    InvoiceSummary,
    InvoiceUpdate,
)
from factucr.services import invoice_state, invoicing
from factucr.services.einvoice_xml import (
    build_invoice_document,
    build_receiver_message,
    render_invoice,
    render_receiver_message,
)
from factucr.utils.activity import log_activity

logger = logging.getLogger(__name__)

router = APIRouter()

XML_MEDIA_TYPE = "application/xml"


def _to_out(invoice: Invoice) -> InvoiceOut:
    return InvoiceOut(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        customer_id=invoice.customer_id,
        customer_name=invoice.customer.name if invoice.customer else None,
        status=invoice.status,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        payment_method=invoice.payment_method,
        sale_condition=invoice.sale_condition,
        credit_days=invoice.credit_days,
        observations=invoice.observations,
        subtotal=invoice.subtotal,
        total_discount=invoice.total_discount,
        total_tax=invoice.total_tax,
        grand_total=invoice.grand_total,
        cancellation_reason=invoice.cancellation_reason,
        issued_at=invoice.issued_at,
        cancelled_at=invoice.cancelled_at,
        created_by=invoice.created_by,
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
        details=[
            InvoiceLineOut(
                id=d.id,
                line_number=d.line_number,
                product_id=d.product_id,
                product_code=d.product.code if d.product else None,
                product_name=d.product.name if d.product else None,
                quantity=d.quantity,
                unit_price=d.unit_price,
                tax_rate=d.tax_rate,
                item_discount=d.item_discount,
                item_subtotal=d.item_subtotal,
                item_tax=d.item_tax,
                item_total=d.item_total,
            )
            for d in invoice.details
        ],
    )


# ── GET /api/invoices/ ───────────────────────────────────────

@router.get("/", response_model=PaginatedResponse[InvoiceSummary])
async def list_invoices(
    search: str | None = Query(None, description="Invoice number or customer name"),
    status: InvoiceStatus | None = None,
    customer_id: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(require_permission("invoice.read")),
):
    """List invoices, newest first."""
    base_stmt = select(Invoice).join(Customer, Customer.id == Invoice.customer_id)
    if search:
        pattern = f"%{search.lower()}%"
        base_stmt = base_stmt.where(
            or_(
                func.lower(Invoice.invoice_number).like(pattern),
                func.lower(Customer.name).like(pattern),
            )
        )
    if status:
        base_stmt = base_stmt.where(Invoice.status == status.value)
    if customer_id:
        base_stmt = base_stmt.where(Invoice.customer_id == customer_id)
    if start_date:
        base_stmt = base_stmt.where(Invoice.issue_date >= start_date)
    if end_date:
        base_stmt = base_stmt.where(Invoice.issue_date <= end_date)

    count_stmt = select(func.count()).select_from(base_stmt.subquery())
    total = await db.scalar(count_stmt) or 0

    items_stmt = base_stmt.order_by(Invoice.created_at.desc()).limit(limit).offset(offset)
    result = await db.execute(items_stmt)
    invoices = result.scalars().all()

    items = [
        InvoiceSummary(
            id=inv.id,
            invoice_number=inv.invoice_number,
            customer_id=inv.customer_id,
            customer_name=inv.customer.name if inv.customer else None,
            status=inv.status,
            issue_date=inv.issue_date,
            due_date=inv.due_date,
            grand_total=inv.grand_total,
            created_at=inv.created_at,
        )
        for inv in invoices
    ]

    return PaginatedResponse(items=items, total=total, limit=limit, offset=offset)


# ── POST /api/invoices/ ──────────────────────────────────────

@router.post("/", response_model=InvoiceOut, status_code=201)
async def create_invoice(
    body: InvoiceCreate,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("invoice.write")),
):
    """Create a Draft invoice; the number is allocated atomically."""
    invoice = await invoicing.create_invoice(db, body, user)
    return _to_out(invoice)


# ── GET /api/invoices/{invoice_id} ───────────────────────────

@router.get("/{invoice_id}", response_model=InvoiceOut)
async def get_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(require_permission("invoice.read")),
):
    invoice = await invoicing.get_invoice(db, invoice_id)
    return _to_out(invoice)


# ── PUT /api/invoices/{invoice_id} ───────────────────────────

@router.put("/{invoice_id}", response_model=InvoiceOut)
async def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("invoice.write")),
):
    """Replace the header and every line of a Draft invoice."""
    invoice = await invoicing.update_invoice(db, invoice_id, body, user)
    return _to_out(invoice)


# ── DELETE /api/invoices/{invoice_id} ────────────────────────

@router.delete("/{invoice_id}", status_code=204)
async def delete_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("invoice.delete")),
):
    await invoicing.delete_invoice(db, invoice_id, user)
    return Response(status_code=204)


# ── Lifecycle transitions ────────────────────────────────────

@router.post("/{invoice_id}/issue", response_model=InvoiceOut)
async def issue_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("invoice.issue")),
):
    invoice = await invoicing.issue_invoice(db, invoice_id, user)
    return _to_out(invoice)


@router.post("/{invoice_id}/cancel", response_model=InvoiceOut)
async def cancel_invoice(
    invoice_id: str,
    body: InvoiceCancel,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("invoice.cancel")),
):
    invoice = await invoicing.cancel_invoice(db, invoice_id, body.reason, user)
    return _to_out(invoice)


# ── Electronic invoice export ────────────────────────────────

async def _export_context(db: AsyncSession, invoice_id: str) -> tuple[Invoice, CompanyProfile]:
    invoice = await invoicing.get_invoice(db, invoice_id)
    invoice_state.ensure_allowed(invoice, "export")

    company = (await db.execute(select(CompanyProfile).limit(1))).scalar_one_or_none()
    if company is None:
        raise ValidationError(
            "Company profile must be configured before exporting invoices",
            error_code="COMPANY_PROFILE_MISSING",
        )
    return invoice, company


@router.get("/{invoice_id}/xml")
async def export_invoice_xml(
    invoice_id: str,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("invoice.export")),
):
    """FacturaElectronica document for an issued invoice."""
    invoice, company = await _export_context(db, invoice_id)
    document = build_invoice_document(
        invoice, company, activity_code=company.activity_code or settings.einvoice_activity_code
    )
    content = render_invoice(document)

    await log_activity(
        db, user,
        action="exported",
        entity_type="invoice",
        entity_id=invoice.id,
        entity_code=invoice.invoice_number,
        summary=f"Exported electronic invoice {invoice.invoice_number}",
        details={"clave": document.clave, "document": "FacturaElectronica"},
    )
    logger.info(
        f"Electronic invoice exported for {invoice.invoice_number}",
        extra={"invoice_id": invoice.id, "clave": document.clave},
    )
    return Response(
        content=content,
        media_type=XML_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="factura-{invoice.invoice_number}.xml"'},
    )


@router.get("/{invoice_id}/xml/response")
async def export_receiver_message_xml(
    invoice_id: str,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("invoice.export")),
):
    """MensajeReceptor acceptance document for an issued invoice."""
    invoice, company = await _export_context(db, invoice_id)
    message = build_receiver_message(invoice, company)
    content = render_receiver_message(message)

    await log_activity(
        db, user,
        action="exported",
        entity_type="invoice",
        entity_id=invoice.id,
        entity_code=invoice.invoice_number,
        summary=f"Exported receiver message for {invoice.invoice_number}",
        details={"clave": message.clave, "document": "MensajeReceptor"},
    )
    return Response(
        content=content,
        media_type=XML_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="respuesta-{invoice.invoice_number}.xml"'},
    )
