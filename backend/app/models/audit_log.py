"""
Audit Log Model.

WHAT: SQLAlchemy model for the portal's append-only audit trail.

WHY: Money moving through the portal has to be traceable after the fact:
who opened a checkout for which invoices, and when those invoices were
settled. Entries carry the request's IP address and user agent for
forensics (OWASP A09).

HOW: Same layout as the portal's `audit_log` table. JSON column holds
the new values (session id, invoice ids, totals).
"""

import enum
from sqlalchemy import Column, String, Text, JSON, Enum

from app.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class AuditAction(str, enum.Enum):
    """Auditable payment events."""

    PAYMENT_SESSION_CREATED = "PAYMENT_SESSION_CREATED"
    INVOICES_PAID = "INVOICES_PAID"


class AuditLog(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """
    Immutable audit log entry.

    Attributes:
        action: Event type
        table_name: Affected table
        record_id: Affected record (checkout session id, or None for bulk)
        user_id: Acting user
        details: Short human-readable description
        new_values: Values written or referenced by the event
        ip_address: Client IP address from request context
        user_agent: Client user agent from request context
    """

    __tablename__ = "audit_log"

    action = Column(
        Enum(
            AuditAction,
            name="auditaction",
            native_enum=False,
            length=64,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
        ),
        nullable=False,
        index=True,
    )
    table_name = Column(String(100), nullable=True, index=True)
    record_id = Column(String(255), nullable=True, index=True)
    user_id = Column(String(36), nullable=True, index=True)
    details = Column(Text, nullable=True)
    new_values = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)  # IPv6 max length
    user_agent = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, action={self.action}, "
            f"user_id={self.user_id}, record_id={self.record_id})>"
        )
