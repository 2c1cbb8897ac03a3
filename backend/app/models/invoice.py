"""
Invoice model for resident billing.

WHAT: SQLAlchemy model representing a charge issued to a resident.

WHY: Invoices are created by the association's admin workflows and paid
by residents through Stripe Checkout. This service only ever reads them
and moves their status to PAID after a verified payment.

HOW: Uses SQLAlchemy 2.0 with:
- String UUID primary key (matches the portal's uuid ids)
- Owner column for the owning-user filter on every query
- Plain string status so statuses added by admin tooling stay opaque
- Amount with two-decimal precision
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlalchemy import (
    Column,
    String,
    Date,
    Numeric,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped

from app.models.base import Base, CreatedAtMixin, new_uuid


class InvoiceStatus(str, Enum):
    """
    Invoice statuses this service acts on.

    The store may hold other statuses (e.g. set by admin tooling); they are
    treated like UNPAID for payment purposes. PAID is terminal.
    """

    UNPAID = "unpaid"
    PAID = "paid"


class Invoice(Base, CreatedAtMixin):
    """
    Invoice owned by a single resident.

    Attributes:
        id: Primary key (uuid string)
        user_id: Owning resident
        title: Human readable title shown on the checkout page
        amount: Amount due in the portal currency (immutable)
        due_date: Payment due date
        status: Payment status (see InvoiceStatus)
        created_at: Record creation timestamp
    """

    __tablename__ = "invoices"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_invoices_amount_positive"),
    )

    id: Mapped[str] = Column(String(36), primary_key=True, default=new_uuid)

    user_id: Mapped[Optional[str]] = Column(
        String(36),
        nullable=True,
        index=True,
        comment="Owning resident (auth user id)",
    )

    title: Mapped[str] = Column(String(255), nullable=False)

    amount: Mapped[Decimal] = Column(
        Numeric(10, 2),
        nullable=False,
        comment="Amount due, at most two decimal places",
    )

    due_date: Mapped[date] = Column(Date, nullable=False)

    status: Mapped[Optional[str]] = Column(
        String(32),
        nullable=True,
        default=InvoiceStatus.UNPAID.value,
        server_default=InvoiceStatus.UNPAID.value,
        index=True,
    )

    @property
    def is_paid(self) -> bool:
        """Check if invoice is settled."""
        return self.status == InvoiceStatus.PAID.value

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, user_id={self.user_id}, status={self.status})>"
