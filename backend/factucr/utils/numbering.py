"""Invoice number allocation.

Numbers look like `INV-001`: a literal prefix followed by a zero-padded
sequence. Width is a minimum, so `INV-999` is followed by `INV-1000`.

The sequence lives in `invoice_sequences` (one row per prefix). Callers
must allocate inside the transaction that inserts the invoice; the
counter row stays locked until that transaction ends, which makes
allocate + insert a single indivisible step. The unique constraint on
`invoices.invoice_number` is the backstop if anything slips through.

First use of a prefix seeds the counter from the most recently created
invoice carrying that prefix (existing data from before the counter
existed). That number must parse strictly; anything else is rejected
rather than guessed. Invoices under other prefixes never affect it.
"""

import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from factucr.config import settings
from factucr.middleware.exceptions import ConcurrencyError, ValidationError
from factucr.models.tenant.invoice import Invoice
from factucr.models.tenant.invoice_sequence import InvoiceSequence

logger = logging.getLogger(__name__)


def format_invoice_number(prefix: str, number: int, width: int) -> str:
    """`format_invoice_number("INV-", 8, 3)` → `"INV-008"`."""
    if number < 1:
        raise ValueError(f"Invoice sequence must start at 1, got {number}")
    return f"{prefix}{number:0{width}d}"


def parse_invoice_number(invoice_number: str, prefix: str) -> int:
    """Return the numeric suffix of `invoice_number`.

    Raises ValidationError when the number does not consist of exactly
    `prefix` followed by digits.
    """
    match = re.fullmatch(rf"{re.escape(prefix)}(\d+)", invoice_number)
    if not match:
        raise ValidationError(
            f"Invoice number {invoice_number!r} does not match the "
            f"{prefix!r} numbering scheme",
            field="invoice_number",
            error_code="INVALID_INVOICE_NUMBER",
        )
    return int(match.group(1))


def next_invoice_number(last_number: str | None, prefix: str, width: int) -> str:
    """Number that follows `last_number`; the first one when there is none."""
    last = parse_invoice_number(last_number, prefix) if last_number else 0
    return format_invoice_number(prefix, last + 1, width)


async def _last_created_number(db: AsyncSession, prefix: str) -> str | None:
    """Number of the most recently created invoice under `prefix`."""
    result = await db.execute(
        select(Invoice.invoice_number)
        .where(Invoice.invoice_number.startswith(prefix, autoescape=True))
        .order_by(Invoice.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _lock_sequence(db: AsyncSession, prefix: str) -> InvoiceSequence:
    result = await db.execute(
        select(InvoiceSequence)
        .where(InvoiceSequence.prefix == prefix)
        .with_for_update()
    )
    sequence = result.scalar_one_or_none()
    if sequence is not None:
        return sequence

    last_number = await _last_created_number(db, prefix)
    start = parse_invoice_number(last_number, prefix) if last_number else 0
    sequence = InvoiceSequence(prefix=prefix, current_number=start)
    db.add(sequence)
    try:
        await db.flush()
    except IntegrityError as exc:
        # Another transaction created the counter row first
        raise ConcurrencyError("Invoice sequence was initialised concurrently, please retry") from exc

    logger.info(
        f"Seeded invoice sequence {prefix!r} at {start}",
        extra={"prefix": prefix, "seed_from": last_number},
    )
    return sequence


async def allocate_invoice_number(
    db: AsyncSession,
    prefix: str | None = None,
    width: int | None = None,
) -> str:
    """Reserve and return the next invoice number.

    Args:
        db: Tenant-scoped session; the caller's transaction must also
            insert the invoice that receives the number.
        prefix: Number prefix (defaults to settings.invoice_number_prefix)
        width: Minimum digits of the sequence (defaults to settings.invoice_number_width)

    Returns:
        The reserved number, e.g. "INV-008"
    """
    prefix = settings.invoice_number_prefix if prefix is None else prefix
    width = settings.invoice_number_width if width is None else width

    sequence = await _lock_sequence(db, prefix)
    sequence.current_number += 1
    number = format_invoice_number(prefix, sequence.current_number, width)
    await db.flush()

    logger.info(f"Allocated invoice number {number}", extra={"invoice_number": number})
    return number
