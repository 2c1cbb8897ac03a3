"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and business logic,
making the codebase more testable and maintainable.
"""

from app.dao.base import BaseDAO
from app.dao.audit_log import AuditLogDAO
from app.dao.invoice import InvoiceDAO

__all__ = [
    "BaseDAO",
    "AuditLogDAO",
    "InvoiceDAO",
]
