"""
Invoice Data Access Object (DAO).

WHAT: Database operations for the Invoice model.

WHY: Every query here is scoped to the owning user. The payment flow never
loads an invoice by id alone, so a client-supplied id can only ever match
the caller's own rows (OWASP A01: Broken Access Control).

HOW: Extends BaseDAO with:
- Payable invoice selection (owner + not paid + optional id list)
- A single conditional bulk update for settling invoices
"""

from typing import List, Optional, Sequence
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.invoice import Invoice, InvoiceStatus


class InvoiceDAO(BaseDAO[Invoice]):
    """
    Data Access Object for Invoice model.

    Also serves as the invoice store capability of InvoicePaymentService.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Invoice, session)

    async def list_payable(
        self,
        user_id: str,
        invoice_ids: Optional[Sequence[str]] = None,
    ) -> List[Invoice]:
        """
        Get the user's invoices that can still be paid.

        WHAT: Owner-scoped, not-paid invoices, optionally restricted to ids.

        WHY: Filtering server-side is the backstop against paying foreign
        or already settled invoices. Rows with a NULL status count as
        payable, hence IS DISTINCT FROM instead of !=.

        Args:
            user_id: Owning user
            invoice_ids: Restrict to these ids; None means all, an empty
                list matches nothing

        Returns:
            Payable invoices ordered by due date
        """
        query = select(Invoice).where(
            Invoice.user_id == user_id,
            Invoice.status.is_distinct_from(InvoiceStatus.PAID.value),
        )
        if invoice_ids is not None:
            query = query.where(Invoice.id.in_(list(invoice_ids)))

        result = await self.session.execute(
            query.order_by(Invoice.due_date.asc(), Invoice.id.asc())
        )
        return list(result.scalars().all())

    async def mark_paid(self, user_id: str, invoice_ids: Sequence[str]) -> int:
        """
        Settle invoices in one conditional statement.

        WHAT: UPDATE invoices SET status='paid'
              WHERE id IN (...) AND user_id = :user AND status IS DISTINCT FROM 'paid'

        WHY: A single set-oriented update is atomic per statement and
        idempotent: running it again leaves the same end state. The status
        condition only keeps already settled rows out of the row count.

        Invoice objects already loaded in this session are not refreshed.

        Args:
            user_id: Owning user (defense in depth beyond the metadata check)
            invoice_ids: Invoices referenced by the verified checkout session

        Returns:
            Number of invoices that changed to paid by this call
        """
        if not invoice_ids:
            return 0

        result = await self.session.execute(
            update(Invoice)
            .where(
                Invoice.id.in_(list(invoice_ids)),
                Invoice.user_id == user_id,
                Invoice.status.is_distinct_from(InvoiceStatus.PAID.value),
            )
            .values(status=InvoiceStatus.PAID.value)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount or 0
