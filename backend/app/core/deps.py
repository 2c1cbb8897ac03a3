"""
FastAPI dependencies for the payment endpoints.

WHY: Dependencies wire the production capabilities (JWT authenticator,
InvoiceDAO, Stripe gateway) into InvoicePaymentService. Tests swap any of
them with app.dependency_overrides.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import JWTAuthenticator, get_authenticator
from app.dao.invoice import InvoiceDAO
from app.db.session import get_db
from app.services.audit import AuditService
from app.services.invoice_payment_service import InvoicePaymentService
from app.services.stripe_service import StripeGateway, get_payment_gateway


# HTTP Bearer token security scheme
# WHY: auto_error=False so a missing header reaches the service, which
# answers with the payment endpoints' own error body instead of a 403
security = HTTPBearer(auto_error=False)


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """
    Extract the raw bearer token, if any.

    Returns:
        Token string, or None when the Authorization header is absent
    """
    if credentials is None:
        return None
    return credentials.credentials


async def get_invoice_payment_service(
    db: AsyncSession = Depends(get_db),
    authenticator: JWTAuthenticator = Depends(get_authenticator),
    gateway: StripeGateway = Depends(get_payment_gateway),
) -> InvoicePaymentService:
    """
    Build the payment service for the current request.

    Usage:
        @router.post("/create-invoice-payment")
        async def create(service: InvoicePaymentService = Depends(get_invoice_payment_service)):
            ...
    """
    return InvoicePaymentService(
        authenticator=authenticator,
        store=InvoiceDAO(db),
        gateway=gateway,
        audit=AuditService(db),
    )
