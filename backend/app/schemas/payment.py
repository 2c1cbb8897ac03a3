"""
Invoice payment schemas for API request/response validation.

WHAT: Pydantic schemas for the create/verify payment endpoints.

WHY: The portal frontend sends and reads camelCase keys (invoiceIds,
sessionId). Fields are snake_case in Python and aliased on the wire.

HOW: Uses Pydantic v2 with Field aliases and populate_by_name, so tests and
services can also build the models with Python names.
"""

from typing import Optional, List

from pydantic import BaseModel, Field, ConfigDict


# ============================================================================
# Request Schemas
# ============================================================================


class CreateInvoicePaymentRequest(BaseModel):
    """
    Schema for starting an invoice checkout.

    Selection precedence: invoiceId "all", then invoiceIds, then a single
    invoiceId. An empty body pays every unpaid invoice.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    invoice_id: Optional[str] = Field(
        default=None,
        alias="invoiceId",
        description='Single invoice id, or "all" for every unpaid invoice',
    )
    invoice_ids: Optional[List[str]] = Field(
        default=None,
        alias="invoiceIds",
        description="Explicit list of invoice ids to pay",
    )


class VerifyInvoicePaymentRequest(BaseModel):
    """
    Schema for verifying a checkout after the success redirect.

    The session id is optional here so that a missing value is reported
    with the payment endpoints' error body.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    session_id: Optional[str] = Field(
        default=None,
        alias="sessionId",
        description="Stripe Checkout Session ID from the success URL",
    )


# ============================================================================
# Response Schemas
# ============================================================================


class PaymentSessionResponse(BaseModel):
    """Schema for a created checkout session."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(description="Hosted checkout URL to redirect the user to")
    session_id: str = Field(alias="sessionId", description="Stripe Checkout Session ID")


class VerifyPaymentResponse(BaseModel):
    """
    Schema for a verification outcome.

    `success: false` means the payment is not completed yet; invoiceIds is
    only present on success.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    invoice_ids: Optional[List[str]] = Field(
        default=None,
        alias="invoiceIds",
        description="Invoices covered by the verified session",
    )
