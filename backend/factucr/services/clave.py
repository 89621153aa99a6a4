"""Clave: the numeric key of a Costa Rican electronic document.

Layout (left to right):

    506          country code
    01           document type (01 = factura electrónica)
    <legal id>   issuer cédula, dashes and spaces removed
    1            situation
    yymmdd       issue date
    0000000008   consecutive, 10 digits
    1            situation type
    12345678     security code, 8 digits (reserved when the invoice is issued)
"""

import re
from dataclasses import dataclass
from datetime import date

from factucr.middleware.exceptions import ValidationError

COUNTRY_CODE = "506"
DOCUMENT_TYPE_INVOICE = "01"
SITUATION_NORMAL = "1"
CONSECUTIVE_WIDTH = 10


def normalize_legal_id(legal_id: str) -> str:
    digits = re.sub(r"[-\s]", "", legal_id or "")
    if not digits.isdigit():
        raise ValidationError(
            f"Legal id {legal_id!r} must contain only digits, dashes and spaces",
            field="legal_id",
        )
    return digits


def consecutive_of(invoice_number: str) -> int:
    """Trailing digits of an invoice number (`INV-008` → 8)."""
    match = re.search(r"(\d+)$", invoice_number)
    if not match:
        raise ValidationError(
            f"Invoice number {invoice_number!r} has no numeric consecutive",
            field="invoice_number",
        )
    return int(match.group(1))


@dataclass(frozen=True, kw_only=True)
class Clave:
    legal_id: str
    issue_date: date
    consecutive: int
    security_code: str
    document_type: str = DOCUMENT_TYPE_INVOICE
    situation: str = SITUATION_NORMAL

    def __post_init__(self):
        if not 0 < self.consecutive < 10 ** CONSECUTIVE_WIDTH:
            raise ValidationError(
                f"Consecutive {self.consecutive} does not fit in {CONSECUTIVE_WIDTH} digits",
                field="invoice_number",
            )
        if not re.fullmatch(r"\d{8}", self.security_code or ""):
            raise ValidationError("Security code must be 8 digits", field="security_code")

    def __str__(self) -> str:
        return (
            COUNTRY_CODE
            + self.document_type
            + normalize_legal_id(self.legal_id)
            + self.situation
            + self.issue_date.strftime("%y%m%d")
            + f"{self.consecutive:0{CONSECUTIVE_WIDTH}d}"
            + self.situation
            + self.security_code
        )
