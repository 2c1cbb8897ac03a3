"""
Audit Log Data Access Object (DAO).

WHAT: Data access layer for audit log operations.

HOW: Append-only; there are deliberately no update or delete methods.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog, AuditAction


class AuditLogDAO:
    """Data Access Object for audit log operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        action: AuditAction,
        table_name: Optional[str] = None,
        record_id: Optional[str] = None,
        user_id: Optional[str] = None,
        details: Optional[str] = None,
        new_values: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """
        Create a new audit log entry.

        Args:
            action: Type of event
            table_name: Affected table
            record_id: Affected record id
            user_id: Acting user
            details: Short description
            new_values: Values written or referenced by the event
            ip_address: Client IP address
            user_agent: Client browser/application info

        Returns:
            Created AuditLog instance
        """
        log = AuditLog(
            action=action,
            table_name=table_name,
            record_id=record_id,
            user_id=user_id,
            details=details,
            new_values=new_values,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(log)
        await self.session.flush()
        await self.session.refresh(log)
        return log
