"""
Business logic services package.

WHY: Services contain business logic separated from API routes and data access,
following the three-layer architecture (API → Service → DAO).
"""

from app.services.audit import AuditService
from app.services.invoice_payment_service import (
    InvoicePaymentService,
    InvoiceSelection,
)
from app.services.stripe_service import StripeGateway, get_payment_gateway

__all__ = [
    "AuditService",
    "InvoicePaymentService",
    "InvoiceSelection",
    "StripeGateway",
    "get_payment_gateway",
]
