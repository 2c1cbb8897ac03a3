"""
Invoice API endpoints.

WHAT: Read-only view of the caller's unpaid invoices.

WHY: The Invoices page lists what is still owed and the total that the
"pay all" button will charge.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status

from app.core.deps import get_bearer_token, get_invoice_payment_service
from app.schemas.invoice import UnpaidInvoiceResponse, UnpaidInvoicesResponse
from app.services.invoice_payment_service import InvoicePaymentService


router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get(
    "/unpaid",
    response_model=UnpaidInvoicesResponse,
    status_code=status.HTTP_200_OK,
    summary="List unpaid invoices",
    description="List the caller's invoices that are not paid yet, ordered by due date",
)
async def list_unpaid_invoices(
    token: Optional[str] = Depends(get_bearer_token),
    service: InvoicePaymentService = Depends(get_invoice_payment_service),
) -> UnpaidInvoicesResponse:
    """
    List unpaid invoices with their total.

    Raises:
        PaymentFlowError (500): Missing or rejected credentials, store failure
    """
    summary = await service.list_unpaid_invoices(token)

    return UnpaidInvoicesResponse(
        items=[UnpaidInvoiceResponse.model_validate(invoice) for invoice in summary.items],
        total_amount=summary.total_amount,
    )
