"""Line-item and invoice total computation.

Rounding policy: every monetary value of a line is rounded to 2 decimal
places with ROUND_HALF_UP, in this order:

    subtotal = round(quantity × unit_price)
    tax      = round((subtotal − discount) × tax_rate / 100)
    total    = subtotal − discount + tax

Invoice totals are plain sums of the rounded line values, so
`grand_total == subtotal − total_discount + total_tax` and
`grand_total == Σ item_total` hold exactly.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from factucr.middleware.exceptions import ValidationError

CENT = Decimal("0.01")
QUANTITY_STEP = Decimal("0.001")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineTotals:
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    discount: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    total_discount: Decimal
    total_tax: Decimal
    grand_total: Decimal


def compute_line(
    quantity: Decimal,
    unit_price: Decimal,
    tax_rate: Decimal,
    discount: Decimal = ZERO,
    line_number: int | None = None,
) -> LineTotals:
    """Compute one line; raises ValidationError for impossible inputs."""
    field = f"details.{line_number}" if line_number is not None else "details"

    quantity = Decimal(quantity).quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)
    unit_price = money(unit_price)
    discount = money(discount)
    tax_rate = Decimal(tax_rate)

    if quantity <= 0:
        raise ValidationError("Quantity must be greater than zero", field=f"{field}.quantity")
    if unit_price < 0:
        raise ValidationError("Unit price cannot be negative", field=f"{field}.unit_price")
    if discount < 0:
        raise ValidationError("Discount cannot be negative", field=f"{field}.item_discount")
    if not ZERO <= tax_rate <= HUNDRED:
        raise ValidationError("Tax rate must be between 0 and 100", field=f"{field}.tax_rate")

    subtotal = money(quantity * unit_price)
    if discount > subtotal:
        raise ValidationError(
            f"Discount {discount} exceeds line subtotal {subtotal}",
            field=f"{field}.item_discount",
        )

    tax = money((subtotal - discount) * tax_rate / HUNDRED)
    return LineTotals(
        quantity=quantity,
        unit_price=unit_price,
        tax_rate=tax_rate,
        discount=discount,
        subtotal=subtotal,
        tax=tax,
        total=subtotal - discount + tax,
    )


def sum_lines(lines: Iterable[LineTotals]) -> InvoiceTotals:
    lines = list(lines)
    if not lines:
        raise ValidationError("An invoice needs at least one line", field="details")

    subtotal = sum((line.subtotal for line in lines), ZERO)
    discount = sum((line.discount for line in lines), ZERO)
    tax = sum((line.tax for line in lines), ZERO)
    return InvoiceTotals(
        subtotal=subtotal,
        total_discount=discount,
        total_tax=tax,
        grand_total=subtotal - discount + tax,
    )
