"""Tests for the invoice lifecycle rules (pure, no database)."""

from datetime import date, timedelta

import pytest

from factucr.middleware.exceptions import StateConflictError, ValidationError
from factucr.models.tenant.invoice import Invoice, InvoiceStatus
from factucr.services import invoice_state


def _invoice(status: InvoiceStatus = InvoiceStatus.DRAFT, **kwargs) -> Invoice:
    return Invoice(invoice_number="INV-001", status=status.value, **kwargs)


@pytest.mark.unit
class TestGuards:
    @pytest.mark.parametrize("action", ["edit", "delete", "issue", "cancel"])
    def test_draft_allows(self, action):
        invoice_state.ensure_allowed(_invoice(), action)

    def test_draft_cannot_be_exported(self):
        with pytest.raises(StateConflictError):
            invoice_state.ensure_allowed(_invoice(), "export")

    @pytest.mark.parametrize("action", ["edit", "delete", "issue"])
    def test_issued_is_frozen(self, action):
        with pytest.raises(StateConflictError) as exc_info:
            invoice_state.ensure_allowed(_invoice(InvoiceStatus.ISSUED), action)
        assert exc_info.value.details == {"action": action, "current_status": "Issued"}

    @pytest.mark.parametrize("action", ["edit", "delete", "issue", "cancel", "export"])
    def test_cancelled_is_terminal(self, action):
        with pytest.raises(StateConflictError):
            invoice_state.ensure_allowed(_invoice(InvoiceStatus.CANCELLED), action)


@pytest.mark.unit
class TestIssue:
    def test_issue_sets_date_and_code(self):
        invoice = _invoice()
        invoice_state.issue(invoice, today=date(2024, 3, 15))

        assert invoice.status == "Issued"
        assert invoice.issue_date == date(2024, 3, 15)
        assert invoice.issued_at is not None
        assert len(invoice.security_code) == 8 and invoice.security_code.isdigit()

    def test_issue_keeps_explicit_date(self):
        invoice = _invoice(issue_date=date(2024, 1, 2))
        invoice_state.issue(invoice, today=date(2024, 3, 15))
        assert invoice.issue_date == date(2024, 1, 2)

    def test_due_before_issue_is_rejected_without_mutation(self):
        today = date(2024, 3, 15)
        invoice = _invoice(due_date=today - timedelta(days=1))

        with pytest.raises(ValidationError):
            invoice_state.issue(invoice, today=today)

        assert invoice.status == "Draft"
        assert invoice.issue_date is None
        assert invoice.security_code is None

    def test_issue_twice(self):
        invoice = _invoice()
        invoice_state.issue(invoice)
        with pytest.raises(StateConflictError):
            invoice_state.issue(invoice)


@pytest.mark.unit
class TestCancel:
    @pytest.mark.parametrize("status", [InvoiceStatus.DRAFT, InvoiceStatus.ISSUED])
    def test_cancel(self, status):
        invoice = _invoice(status)
        invoice_state.cancel(invoice, "  Cliente devolvió la mercadería ")

        assert invoice.status == "Cancelled"
        assert invoice.cancellation_reason == "Cliente devolvió la mercadería"
        assert invoice.cancelled_at is not None

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reason_required(self, reason):
        invoice = _invoice(InvoiceStatus.ISSUED)
        with pytest.raises(ValidationError) as exc_info:
            invoice_state.cancel(invoice, reason)

        assert exc_info.value.field == "reason"
        assert invoice.status == "Issued"
        assert invoice.cancelled_at is None

    def test_state_checked_before_reason(self):
        with pytest.raises(StateConflictError):
            invoice_state.cancel(_invoice(InvoiceStatus.CANCELLED), None)
