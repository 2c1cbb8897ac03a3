"""
SQLAlchemy models package.

WHY: Importing every model here registers its table on Base.metadata, which
Alembic autogenerate and the test fixtures rely on.
"""

from app.models.base import Base
from app.models.invoice import Invoice, InvoiceStatus
from app.models.audit_log import AuditLog, AuditAction

__all__ = [
    "Base",
    "Invoice",
    "InvoiceStatus",
    "AuditLog",
    "AuditAction",
]
