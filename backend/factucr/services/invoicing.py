"""Invoice service: create, edit, delete, issue and cancel.

Each public function runs inside the caller's transaction (the request
session from get_tenant_db) and flushes before returning, so constraint
violations surface here rather than at commit time.

Create is one atomic unit: validate references → compute lines →
allocate the number (locks the sequence row) → insert invoice + lines.
"""

import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from factucr.middleware.exceptions import (
    ConcurrencyError,
    ResourceNotFoundError,
    ValidationError,
)
from factucr.models.public.user import User
from factucr.models.tenant.customer import Customer
from factucr.models.tenant.invoice import Invoice, InvoiceDetail, InvoiceStatus
from factucr.models.tenant.product_service import ProductService
from factucr.schemas.invoice import InvoiceCreate, InvoiceLineIn, InvoiceUpdate
from factucr.services import invoice_state
from factucr.services.totals import InvoiceTotals, compute_line, sum_lines
from factucr.utils.activity import log_activity
from factucr.utils.numbering import allocate_invoice_number

logger = logging.getLogger(__name__)


# ── Lookups ──────────────────────────────────────────────────

async def get_invoice(
    db: AsyncSession,
    invoice_id: str,
    *,
    for_update: bool = False,
) -> Invoice:
    """Load an invoice (with lines and customer) or raise 404.

    `for_update` locks the row so status checks and the write that
    follows cannot interleave with another request.
    """
    stmt = select(Invoice).where(Invoice.id == invoice_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    invoice = (await db.execute(stmt)).scalar_one_or_none()
    if invoice is None:
        raise ResourceNotFoundError("Invoice", invoice_id)
    return invoice


async def _load_customer(db: AsyncSession, customer_id: str) -> Customer:
    customer = await db.get(Customer, customer_id)
    if customer is None:
        raise ValidationError(f"Unknown customer: {customer_id}", field="customer_id")
    return customer


async def _build_lines(
    db: AsyncSession,
    lines: Sequence[InvoiceLineIn],
) -> tuple[list[InvoiceDetail], InvoiceTotals]:
    """Validate and price a complete line set. Nothing is added to the session."""
    if not lines:
        raise ValidationError("An invoice needs at least one line", field="details")

    product_ids = {line.product_id for line in lines}
    result = await db.execute(
        select(ProductService).where(ProductService.id.in_(product_ids))
    )
    products = {p.id: p for p in result.scalars().all()}

    details: list[InvoiceDetail] = []
    computed = []
    for number, line in enumerate(lines, start=1):
        product = products.get(line.product_id)
        if product is None:
            raise ValidationError(
                f"Unknown product: {line.product_id}",
                field=f"details.{number}.product_id",
            )

        unit_price = product.unit_price if line.unit_price is None else line.unit_price
        totals = compute_line(
            quantity=line.quantity,
            unit_price=unit_price,
            tax_rate=product.tax_rate,
            discount=line.item_discount,
            line_number=number,
        )
        computed.append(totals)
        details.append(
            InvoiceDetail(
                line_number=number,
                product_id=product.id,
                product=product,
                quantity=totals.quantity,
                unit_price=totals.unit_price,
                tax_rate=totals.tax_rate,
                item_discount=totals.discount,
                item_subtotal=totals.subtotal,
                item_tax=totals.tax,
                item_total=totals.total,
            )
        )

    return details, sum_lines(computed)


def _apply_header(invoice: Invoice, body: InvoiceCreate, customer: Customer) -> None:
    invoice.customer_id = customer.id
    invoice.customer = customer
    invoice.issue_date = body.issue_date
    invoice.due_date = body.due_date
    invoice.payment_method = body.payment_method.value
    invoice.sale_condition = body.sale_condition.value
    invoice.credit_days = body.credit_days
    invoice.observations = body.observations


def _apply_totals(invoice: Invoice, totals: InvoiceTotals) -> None:
    invoice.subtotal = totals.subtotal
    invoice.total_discount = totals.total_discount
    invoice.total_tax = totals.total_tax
    invoice.grand_total = totals.grand_total


async def _flush(db: AsyncSession) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        # Unique invoice_number lost to a concurrent creation
        raise ConcurrencyError("Invoice number already taken, please retry") from exc


# ── Mutations ────────────────────────────────────────────────

async def create_invoice(db: AsyncSession, body: InvoiceCreate, user: User) -> Invoice:
    """Create a Draft invoice with a freshly allocated number."""
    customer = await _load_customer(db, body.customer_id)
    details, totals = await _build_lines(db, body.details)

    number = await allocate_invoice_number(db)
    invoice = Invoice(
        invoice_number=number,
        status=InvoiceStatus.DRAFT.value,
        created_by=user.id,
        details=details,
    )
    _apply_header(invoice, body, customer)
    _apply_totals(invoice, totals)
    db.add(invoice)
    await _flush(db)

    await log_activity(
        db, user,
        action="created",
        entity_type="invoice",
        entity_id=invoice.id,
        entity_code=invoice.invoice_number,
        summary=f"Created draft {invoice.invoice_number} for {customer.name}",
        details={"grand_total": str(invoice.grand_total), "lines": len(details)},
    )
    logger.info(
        f"Invoice {invoice.invoice_number} created",
        extra={"invoice_id": invoice.id, "grand_total": str(invoice.grand_total)},
    )
    return invoice


async def update_invoice(
    db: AsyncSession,
    invoice_id: str,
    body: InvoiceUpdate,
    user: User,
) -> Invoice:
    """Replace header and all lines of a Draft invoice, recomputing totals."""
    invoice = await get_invoice(db, invoice_id, for_update=True)
    invoice_state.ensure_allowed(invoice, "edit")

    customer = await _load_customer(db, body.customer_id)
    details, totals = await _build_lines(db, body.details)

    _apply_header(invoice, body, customer)
    invoice.details.clear()
    await db.flush()
    invoice.details.extend(details)
    _apply_totals(invoice, totals)
    await _flush(db)

    await log_activity(
        db, user,
        action="updated",
        entity_type="invoice",
        entity_id=invoice.id,
        entity_code=invoice.invoice_number,
        summary=f"Updated draft {invoice.invoice_number}",
        details={"grand_total": str(invoice.grand_total), "lines": len(details)},
    )
    return invoice


async def delete_invoice(db: AsyncSession, invoice_id: str, user: User) -> None:
    """Delete a Draft invoice and its lines. The number is not reused."""
    invoice = await get_invoice(db, invoice_id, for_update=True)
    invoice_state.ensure_allowed(invoice, "delete")

    await log_activity(
        db, user,
        action="deleted",
        entity_type="invoice",
        entity_id=invoice.id,
        entity_code=invoice.invoice_number,
        summary=f"Deleted draft {invoice.invoice_number}",
    )
    await db.delete(invoice)
    await db.flush()


async def issue_invoice(db: AsyncSession, invoice_id: str, user: User) -> Invoice:
    """Draft → Issued."""
    invoice = await get_invoice(db, invoice_id, for_update=True)
    invoice_state.issue(invoice)
    await db.flush()

    await log_activity(
        db, user,
        action="issued",
        entity_type="invoice",
        entity_id=invoice.id,
        entity_code=invoice.invoice_number,
        summary=f"Issued {invoice.invoice_number}",
        details={"issue_date": invoice.issue_date.isoformat()},
    )
    logger.info(
        f"Invoice {invoice.invoice_number} issued",
        extra={"invoice_id": invoice.id},
    )
    return invoice


async def cancel_invoice(
    db: AsyncSession,
    invoice_id: str,
    reason: str | None,
    user: User,
) -> Invoice:
    """Draft | Issued → Cancelled, with a mandatory reason."""
    invoice = await get_invoice(db, invoice_id, for_update=True)
    previous_status = invoice.status
    invoice_state.cancel(invoice, reason)
    await db.flush()

    await log_activity(
        db, user,
        action="cancelled",
        entity_type="invoice",
        entity_id=invoice.id,
        entity_code=invoice.invoice_number,
        summary=f"Cancelled {invoice.invoice_number}: {invoice.cancellation_reason}",
        details={"previous_status": previous_status},
    )
    logger.info(
        f"Invoice {invoice.invoice_number} cancelled",
        extra={"invoice_id": invoice.id, "previous_status": previous_status},
    )
    return invoice
