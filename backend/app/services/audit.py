"""
Audit logging service.

WHAT: Service layer for writing payment audit entries with request context.

WHY: Moving money must leave a trail that support staff can read back:
who started a checkout for which invoices, and which invoices a verified
payment settled. This service provides:
- Simplified interface for the two payment events
- Automatic context extraction from request middleware
- Best-effort writes that never break the payment flow

HOW: Uses the AuditLogDAO for persistence and RequestContext middleware
for automatic IP/user-agent capture.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.audit_log import AuditLogDAO
from app.models.audit_log import AuditLog, AuditAction
from app.middleware.request_context import get_request_context


# Logger for audit service errors (not audit events themselves)
logger = logging.getLogger(__name__)


class AuditService:
    """
    Service for creating audit log entries.

    Example:
        audit = AuditService(db)
        await audit.log_invoices_paid(user_id, session_id, invoice_ids, updated=2)
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize audit service with database session.

        Args:
            session: Async database session for audit log persistence
        """
        self.dao = AuditLogDAO(session)

    def _get_context(self) -> tuple[Optional[str], Optional[str]]:
        """
        Get IP address and user agent from request context.

        Returns:
            Tuple of (ip_address, user_agent), both may be None
        """
        ctx = get_request_context()
        if ctx:
            return ctx.ip_address, ctx.user_agent
        return None, None

    async def log_event(
        self,
        action: AuditAction,
        table_name: str,
        user_id: Optional[str] = None,
        record_id: Optional[str] = None,
        details: Optional[str] = None,
        new_values: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """
        Log a generic audit event.

        Args:
            action: Type of event (from AuditAction enum)
            table_name: Table the event concerns
            user_id: User who performed the action
            record_id: Specific record (or external session) id
            details: Short human-readable description
            new_values: Values written or referenced by the event

        Returns:
            Created AuditLog or None if logging failed

        Note:
            This method never raises. A failed audit write is reported to
            the application logger and the payment operation continues.
            The INSERT runs inside a SAVEPOINT, so a failure rolls back the
            audit row only and keeps the caller's invoice update.
        """
        try:
            ip_address, user_agent = self._get_context()
            async with self.dao.session.begin_nested():
                return await self.dao.create(
                    action=action,
                    table_name=table_name,
                    record_id=record_id,
                    user_id=user_id,
                    details=details,
                    new_values=new_values,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
        except Exception as e:
            logger.error(f"Failed to create audit log: {e}", exc_info=True)
            return None

    async def log_session_created(
        self,
        user_id: str,
        session_id: str,
        invoice_ids: List[str],
        amount_total: int,
        currency: str,
    ) -> Optional[AuditLog]:
        """Log creation of a checkout session for the given invoices."""
        return await self.log_event(
            action=AuditAction.PAYMENT_SESSION_CREATED,
            table_name="invoices",
            user_id=user_id,
            record_id=session_id,
            details=f"Checkout session created for {len(invoice_ids)} invoice(s)",
            new_values={
                "invoice_ids": invoice_ids,
                "amount_total": amount_total,
                "currency": currency,
            },
        )

    async def log_invoices_paid(
        self,
        user_id: str,
        session_id: str,
        invoice_ids: List[str],
        updated: int,
    ) -> Optional[AuditLog]:
        """Log invoices settled by a verified checkout session."""
        return await self.log_event(
            action=AuditAction.INVOICES_PAID,
            table_name="invoices",
            user_id=user_id,
            record_id=session_id,
            details=f"{updated} invoice(s) marked as paid",
            new_values={"status": "paid", "invoice_ids": invoice_ids},
        )
