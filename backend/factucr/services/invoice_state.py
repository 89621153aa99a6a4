"""Invoice lifecycle rules.

    Draft ──issue──▶ Issued
      │                │
      └────cancel──────┴──▶ Cancelled

Only Draft invoices can be edited or deleted. Nothing returns to Draft,
and an invoice is issued at most once. A failed guard raises
StateConflictError and leaves the invoice untouched.
"""

import secrets
from datetime import date, datetime

from factucr.middleware.exceptions import StateConflictError, ValidationError
from factucr.models.tenant.invoice import Invoice, InvoiceStatus

# action → statuses it may start from
ALLOWED_FROM: dict[str, frozenset[InvoiceStatus]] = {
    "edit": frozenset({InvoiceStatus.DRAFT}),
    "delete": frozenset({InvoiceStatus.DRAFT}),
    "issue": frozenset({InvoiceStatus.DRAFT}),
    "cancel": frozenset({InvoiceStatus.DRAFT, InvoiceStatus.ISSUED}),
    "export": frozenset({InvoiceStatus.ISSUED}),
}


def ensure_allowed(invoice: Invoice, action: str) -> None:
    """Raise StateConflictError unless `action` is legal in the current status."""
    if InvoiceStatus(invoice.status) not in ALLOWED_FROM[action]:
        raise StateConflictError(action=action, current_status=invoice.status)


def issue(invoice: Invoice, today: date | None = None) -> None:
    ensure_allowed(invoice, "issue")
    issue_date = invoice.issue_date or today or date.today()
    if invoice.due_date is not None and invoice.due_date < issue_date:
        raise ValidationError("Due date is before the issue date", field="due_date")

    invoice.issue_date = issue_date
    invoice.status = InvoiceStatus.ISSUED.value
    invoice.issued_at = datetime.utcnow()
    invoice.security_code = f"{secrets.randbelow(10**8):08d}"


def cancel(invoice: Invoice, reason: str | None) -> None:
    ensure_allowed(invoice, "cancel")
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A cancellation reason is required", field="reason")

    invoice.status = InvoiceStatus.CANCELLED.value
    invoice.cancellation_reason = reason
    invoice.cancelled_at = datetime.utcnow()
