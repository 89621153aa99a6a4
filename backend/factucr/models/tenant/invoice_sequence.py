"""InvoiceSequence: per-prefix counter behind invoice numbering.

`current_number` is the last number handed out. The row is read
FOR UPDATE inside the transaction that inserts the invoice, so two
concurrent creations serialise on it instead of computing the same
"next" number.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from factucr.database import TenantBase


class InvoiceSequence(TenantBase):
    __tablename__ = "invoice_sequences"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    prefix: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    current_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
