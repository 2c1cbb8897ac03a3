"""
Unit tests for Invoice DAO.

WHAT: Tests for InvoiceDAO database operations.

WHY: Verifies that:
1. Payable invoices are scoped to the owner and exclude paid ones
2. Rows with a NULL status still count as payable
3. mark_paid only touches the owner's unpaid rows and is repeatable

HOW: Uses pytest-asyncio with an in-memory SQLite database.
"""

import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy import select, update

from app.dao.invoice import InvoiceDAO
from app.models.invoice import Invoice, InvoiceStatus
from tests.factories import InvoiceFactory, NEIGHBOUR_ID, RESIDENT_ID


async def _statuses(session) -> dict:
    """Read statuses straight from the table."""
    result = await session.execute(select(Invoice.id, Invoice.status))
    return {row.id: row.status for row in result}


async def _clear_status(session, invoice_id: str) -> None:
    """Set status to NULL; the ORM would apply the column default instead."""
    await session.execute(
        update(Invoice).where(Invoice.id == invoice_id).values(status=None)
    )


class TestInvoiceDAOCreate:
    """Tests for invoice creation."""

    @pytest.mark.asyncio
    async def test_create_invoice_defaults(self, db_session):
        invoice_dao = InvoiceDAO(db_session)

        invoice = await invoice_dao.create(
            user_id=RESIDENT_ID,
            title="Šildymas",
            amount=Decimal("45.00"),
            due_date=date(2026, 1, 10),
        )

        assert len(invoice.id) == 36
        assert invoice.status == InvoiceStatus.UNPAID.value
        assert invoice.amount == Decimal("45.00")
        assert invoice.created_at is not None
        assert not invoice.is_paid


class TestListPayable:
    """Tests for payable invoice selection."""

    @pytest.mark.asyncio
    async def test_owner_unpaid_invoices_ordered_by_due_date(self, db_session):
        later = await InvoiceFactory.create(db_session, RESIDENT_ID, due_date=date(2026, 2, 1))
        sooner = await InvoiceFactory.create(db_session, RESIDENT_ID, due_date=date(2026, 1, 1))
        await InvoiceFactory.create(db_session, RESIDENT_ID, status=InvoiceStatus.PAID.value)
        await InvoiceFactory.create(db_session, NEIGHBOUR_ID)

        invoices = await InvoiceDAO(db_session).list_payable(RESIDENT_ID)

        assert [inv.id for inv in invoices] == [sooner.id, later.id]

    @pytest.mark.asyncio
    async def test_restricts_to_requested_ids(self, db_session):
        wanted = await InvoiceFactory.create(db_session, RESIDENT_ID)
        await InvoiceFactory.create(db_session, RESIDENT_ID)
        foreign = await InvoiceFactory.create(db_session, NEIGHBOUR_ID)

        invoices = await InvoiceDAO(db_session).list_payable(
            RESIDENT_ID, [wanted.id, foreign.id]
        )

        assert [inv.id for inv in invoices] == [wanted.id]

    @pytest.mark.asyncio
    async def test_null_and_other_statuses_are_payable(self, db_session):
        no_status = await InvoiceFactory.create(db_session, RESIDENT_ID)
        await _clear_status(db_session, no_status.id)
        overdue = await InvoiceFactory.create(db_session, RESIDENT_ID, status="overdue")

        invoices = await InvoiceDAO(db_session).list_payable(RESIDENT_ID)

        assert {inv.id for inv in invoices} == {no_status.id, overdue.id}

    @pytest.mark.asyncio
    async def test_none_means_all_and_empty_list_matches_nothing(self, db_session):
        await InvoiceFactory.create(db_session, RESIDENT_ID)
        await InvoiceFactory.create(db_session, RESIDENT_ID)
        invoice_dao = InvoiceDAO(db_session)

        assert len(await invoice_dao.list_payable(RESIDENT_ID)) == 2
        assert await invoice_dao.list_payable(RESIDENT_ID, []) == []


class TestMarkPaid:
    """Tests for the conditional bulk update."""

    @pytest.mark.asyncio
    async def test_marks_owner_invoices_paid(self, db_session):
        first = await InvoiceFactory.create(db_session, RESIDENT_ID)
        second = await InvoiceFactory.create(db_session, RESIDENT_ID)
        untouched = await InvoiceFactory.create(db_session, RESIDENT_ID)

        updated = await InvoiceDAO(db_session).mark_paid(RESIDENT_ID, [first.id, second.id])

        assert updated == 2
        statuses = await _statuses(db_session)
        assert statuses[first.id] == InvoiceStatus.PAID.value
        assert statuses[second.id] == InvoiceStatus.PAID.value
        assert statuses[untouched.id] == InvoiceStatus.UNPAID.value

    @pytest.mark.asyncio
    async def test_foreign_invoices_are_not_touched(self, db_session):
        foreign = await InvoiceFactory.create(db_session, NEIGHBOUR_ID)

        updated = await InvoiceDAO(db_session).mark_paid(RESIDENT_ID, [foreign.id])

        assert updated == 0
        assert (await _statuses(db_session))[foreign.id] == InvoiceStatus.UNPAID.value

    @pytest.mark.asyncio
    async def test_repeat_is_idempotent(self, db_session):
        invoice = await InvoiceFactory.create(db_session, RESIDENT_ID)
        invoice_dao = InvoiceDAO(db_session)

        assert await invoice_dao.mark_paid(RESIDENT_ID, [invoice.id]) == 1
        assert await invoice_dao.mark_paid(RESIDENT_ID, [invoice.id]) == 0
        assert (await _statuses(db_session))[invoice.id] == InvoiceStatus.PAID.value

    @pytest.mark.asyncio
    async def test_null_status_is_settled(self, db_session):
        invoice = await InvoiceFactory.create(db_session, RESIDENT_ID)
        await _clear_status(db_session, invoice.id)

        assert await InvoiceDAO(db_session).mark_paid(RESIDENT_ID, [invoice.id]) == 1

    @pytest.mark.asyncio
    async def test_empty_list_is_a_noop(self, db_session):
        assert await InvoiceDAO(db_session).mark_paid(RESIDENT_ID, []) == 0
