"""
Invoice payment API endpoints.

WHAT: The two calls of the invoice payment round-trip:
1. create-invoice-payment: open a Stripe Checkout for unpaid invoices
2. verify-invoice-payment: settle the invoices after the success redirect

WHY: The portal frontend redirects to Stripe with the URL from (1) and calls
(2) with the session_id Stripe appends to the success URL. Both calls are
safe to retry.

HOW: Thin FastAPI handlers; all rules live in InvoicePaymentService. Every
failure is a PaymentFlowError rendered as HTTP 500 {"error": message} by
the registered exception handler.
"""

from typing import Optional
from fastapi import APIRouter, Body, Depends, Request, status

from app.core.deps import get_bearer_token, get_invoice_payment_service
from app.schemas.payment import (
    CreateInvoicePaymentRequest,
    VerifyInvoicePaymentRequest,
    PaymentSessionResponse,
    VerifyPaymentResponse,
)
from app.services.invoice_payment_service import (
    InvoicePaymentService,
    InvoiceSelection,
)


router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/create-invoice-payment",
    response_model=PaymentSessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Create invoice checkout",
    description="Create a Stripe Checkout Session for one, several, or all unpaid invoices",
)
async def create_invoice_payment(
    request: Request,
    payload: Optional[CreateInvoicePaymentRequest] = Body(default=None),
    token: Optional[str] = Depends(get_bearer_token),
    service: InvoicePaymentService = Depends(get_invoice_payment_service),
) -> PaymentSessionResponse:
    """
    Start a checkout for the caller's unpaid invoices.

    WHAT: Returns the hosted checkout URL and the session id.

    WHY: The browser's Origin header decides where Stripe sends the user
    back, so preview deployments of the portal return to themselves.

    Args:
        request: Incoming request (for the Origin header)
        payload: Invoice selection; empty pays all unpaid invoices
        token: Bearer token
        service: Invoice payment service

    Returns:
        Checkout URL and session id

    Raises:
        PaymentFlowError (500): On any failure, body {"error": message}
    """
    payload = payload or CreateInvoicePaymentRequest()
    selection = InvoiceSelection.from_request(
        invoice_id=payload.invoice_id,
        invoice_ids=payload.invoice_ids,
    )

    result = await service.create_payment_session(
        token=token,
        selection=selection,
        origin=request.headers.get("origin"),
    )

    return PaymentSessionResponse(url=result.url, session_id=result.session_id)


@router.post(
    "/verify-invoice-payment",
    response_model=VerifyPaymentResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Verify invoice checkout",
    description="Re-check a Checkout Session with Stripe and mark its invoices as paid",
)
async def verify_invoice_payment(
    payload: Optional[VerifyInvoicePaymentRequest] = Body(default=None),
    token: Optional[str] = Depends(get_bearer_token),
    service: InvoicePaymentService = Depends(get_invoice_payment_service),
) -> VerifyPaymentResponse:
    """
    Verify a checkout and settle its invoices.

    Returns 200 with success=false while the payment is still pending.
    Repeating the call after success is a no-op that returns success again.

    Raises:
        PaymentFlowError (500): On any failure, body {"error": message}
    """
    session_id = payload.session_id if payload else None

    result = await service.verify_payment_session(token=token, session_id=session_id)

    if not result.success:
        return VerifyPaymentResponse(success=False, message=result.message)

    return VerifyPaymentResponse(
        success=True,
        message=result.message,
        invoice_ids=result.invoice_ids,
    )
