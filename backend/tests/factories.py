"""
Test factories and in-memory fakes.

WHY: Factories provide a consistent, reusable way to create test invoices.
The fakes implement the payment service's capabilities (authenticator,
invoice store, payment gateway) without a network or a database, so the
service rules can be tested in isolation.
"""

import itertools
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedIdentity
from app.core.exceptions import GatewayUnavailableError, TokenInvalidError
from app.models.invoice import Invoice, InvoiceStatus
from app.services.stripe_service import CheckoutLineItem, CheckoutSession


RESIDENT_ID = "7f1c2a9e-0b7d-4c11-9d2e-3a8b5c6d7e8f"
RESIDENT_EMAIL = "resident@example.com"
NEIGHBOUR_ID = "2b9d4e6f-1a3c-4e5f-8a7b-9c0d1e2f3a4b"


class InvoiceFactory:
    """
    Factory for creating Invoice rows.

    WHY: Centralizes invoice creation so tests only state what matters
    to them (owner, amount, status).
    """

    @staticmethod
    async def create(
        session: AsyncSession,
        user_id: str,
        title: str = "Monthly maintenance",
        amount: Decimal = Decimal("45.00"),
        due_date: Optional[date] = None,
        status: Optional[str] = InvoiceStatus.UNPAID.value,
        id: Optional[str] = None,
    ) -> Invoice:
        """
        Create an invoice for testing.

        Args:
            session: Database session
            user_id: Owning resident
            title: Invoice title
            amount: Amount due
            due_date: Due date (defaults to two weeks from today)
            status: Payment status
            id: Explicit id (generated when omitted)

        Returns:
            Created Invoice instance
        """
        invoice = Invoice(
            user_id=user_id,
            title=title,
            amount=amount,
            due_date=due_date or date.today() + timedelta(days=14),
            status=status,
        )
        if id is not None:
            invoice.id = id
        session.add(invoice)
        await session.commit()
        await session.refresh(invoice)
        return invoice


# ============================================================================
# Capability fakes
# ============================================================================


class FakeAuthenticator:
    """Maps known tokens to identities; everything else is rejected."""

    def __init__(self, identities: Optional[Dict[str, AuthenticatedIdentity]] = None):
        self.identities = dict(identities or {})

    async def verify(self, token: str) -> AuthenticatedIdentity:
        if token not in self.identities:
            raise TokenInvalidError(message="Invalid token")
        return self.identities[token]


@dataclass
class StoredInvoice:
    id: str
    user_id: str
    title: str
    amount: Decimal
    due_date: date = field(default_factory=date.today)
    status: Optional[str] = InvoiceStatus.UNPAID.value


class InMemoryInvoiceStore:
    """
    Invoice store with the same filtering rules as InvoiceDAO.

    Set `fail` to make every call raise a database error.
    """

    def __init__(self, invoices: Sequence[StoredInvoice] = ()):
        self.invoices: Dict[str, StoredInvoice] = {inv.id: inv for inv in invoices}
        self.fail = False
        self.mark_paid_calls: List[List[str]] = []

    def _check(self) -> None:
        if self.fail:
            raise OperationalError("SELECT 1", {}, Exception("database is down"))

    def add(self, invoice: StoredInvoice) -> StoredInvoice:
        self.invoices[invoice.id] = invoice
        return invoice

    def status_of(self, invoice_id: str) -> Optional[str]:
        return self.invoices[invoice_id].status

    async def list_payable(
        self, user_id: str, invoice_ids: Optional[Sequence[str]] = None
    ) -> List[StoredInvoice]:
        self._check()
        rows = [
            inv
            for inv in self.invoices.values()
            if inv.user_id == user_id
            and inv.status != InvoiceStatus.PAID.value
            and (invoice_ids is None or inv.id in invoice_ids)
        ]
        return sorted(rows, key=lambda inv: (inv.due_date, inv.id))

    async def mark_paid(self, user_id: str, invoice_ids: Sequence[str]) -> int:
        self._check()
        self.mark_paid_calls.append(list(invoice_ids))
        updated = 0
        for invoice_id in invoice_ids:
            inv = self.invoices.get(invoice_id)
            if inv and inv.user_id == user_id and inv.status != InvoiceStatus.PAID.value:
                inv.status = InvoiceStatus.PAID.value
                updated += 1
        return updated


class FakePaymentGateway:
    """
    In-memory stand-in for StripeGateway.

    Sessions start unpaid; call complete() to simulate the payer finishing
    checkout. Set `error` to make every call raise it.
    """

    def __init__(self, customers: Optional[Dict[str, str]] = None):
        self.customers: Dict[str, str] = dict(customers or {})
        self.sessions: Dict[str, CheckoutSession] = {}
        self.created: List[dict] = []
        self.error: Optional[Exception] = None
        self._ids = itertools.count(1)

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    async def find_customer(self, email: str) -> Optional[str]:
        self._check()
        return self.customers.get(email)

    async def create_checkout_session(
        self,
        line_items: List[CheckoutLineItem],
        metadata: dict,
        success_url: str,
        cancel_url: str,
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> CheckoutSession:
        self._check()
        session_id = f"cs_test_{next(self._ids)}"
        self.created.append(
            {
                "line_items": line_items,
                "metadata": dict(metadata),
                "success_url": success_url,
                "cancel_url": cancel_url,
                "customer_id": customer_id,
                "customer_email": customer_email,
                "locale": locale,
            }
        )
        session = CheckoutSession(
            id=session_id,
            url=f"https://checkout.stripe.com/c/pay/{session_id}",
            payment_status="unpaid",
            metadata=dict(metadata),
            customer_id=customer_id,
            amount_total=sum(item.unit_amount * item.quantity for item in line_items),
            currency=line_items[0].currency if line_items else None,
        )
        self.sessions[session_id] = session
        return session

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        self._check()
        if session_id not in self.sessions:
            raise GatewayUnavailableError(f"No such checkout.session: '{session_id}'")
        return self.sessions[session_id]

    def complete(self, session_id: str) -> None:
        self.sessions[session_id].payment_status = "paid"

    def add_session(
        self,
        session_id: str,
        metadata: dict,
        payment_status: str = "paid",
    ) -> CheckoutSession:
        """Register a session created outside this fake (e.g. by hand in the dashboard)."""
        session = CheckoutSession(
            id=session_id,
            url=None,
            payment_status=payment_status,
            metadata=dict(metadata),
        )
        self.sessions[session_id] = session
        return session
