"""
Stripe payment gateway for invoice checkout.

WHAT: Adapter between the invoice payment flow and the Stripe API:
customer lookup, Checkout Session creation, and Checkout Session retrieval.

WHY: The payment flow only needs three gateway operations. Keeping the
Stripe SDK behind this adapter means:
1. The payment service is tested with an in-memory fake gateway
2. SDK errors are translated in exactly one place
3. The API key and version are passed per request instead of through
   module-level SDK state

HOW: Uses the Stripe Python SDK with:
- Customer.list(email=..., limit=1) to reuse existing customers
- Checkout Sessions in payment mode for the hosted payment page
- Checkout Session retrieval as the only source of payment status

Design decisions:
- Hosted Checkout over direct charges: PCI scope stays with Stripe
- Re-fetch session state on verification: client-supplied status is never trusted
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import stripe

from app.core.config import settings
from app.core.exceptions import GatewayUnavailableError

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================


@dataclass(frozen=True)
class CheckoutLineItem:
    """
    One invoice on the hosted payment page.

    WHAT: Gateway-neutral line item; StripeGateway turns it into price_data.
    """

    name: str
    """Product name shown to the payer (the invoice title)."""

    description: str
    """Secondary text under the product name."""

    unit_amount: int
    """Amount in minor currency units (cents)."""

    currency: str
    """Lowercase ISO currency code."""

    quantity: int = 1


@dataclass
class CheckoutSession:
    """
    Represents a Stripe Checkout Session.

    WHAT: Data container for the session fields the payment flow reads.

    WHY: Callers never touch SDK objects, so tests can build sessions directly.
    """

    id: str
    """Stripe Checkout Session ID (cs_xxx)."""

    url: Optional[str] = None
    """URL to redirect the user to for payment."""

    payment_status: Optional[str] = None
    """paid, unpaid or no_payment_required. Only paid is actionable."""

    metadata: Dict[str, str] = field(default_factory=dict)
    """Metadata written at creation (invoice_ids, user_id)."""

    customer_id: Optional[str] = None
    """Associated customer ID."""

    amount_total: Optional[int] = None
    """Total amount in minor units."""

    currency: Optional[str] = None
    """Currency code."""


def _to_checkout_session(session: Any) -> CheckoutSession:
    """Convert an SDK Checkout Session object into a CheckoutSession."""
    metadata = getattr(session, "metadata", None) or {}
    return CheckoutSession(
        id=session.id,
        url=getattr(session, "url", None),
        payment_status=getattr(session, "payment_status", None),
        metadata={key: str(metadata[key]) for key in metadata.keys()},
        customer_id=getattr(session, "customer", None),
        amount_total=getattr(session, "amount_total", None),
        currency=getattr(session, "currency", None),
    )


# ============================================================================
# Stripe Gateway
# ============================================================================


class StripeGateway:
    """
    Payment gateway backed by Stripe Checkout.

    WHAT: Implements the PaymentGateway capability of InvoicePaymentService.

    HOW: Every SDK call receives api_key and stripe_version explicitly.
    Any stripe.StripeError is logged and re-raised as GatewayUnavailableError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_version: Optional[str] = None,
    ):
        """
        Initialize Stripe gateway.

        Args:
            api_key: Stripe secret key; operations fail when it is missing
            api_version: Pinned Stripe API version (defaults to settings)
        """
        self.api_key = api_key
        self.api_version = api_version or settings.STRIPE_API_VERSION

    def _request_options(self) -> Dict[str, Any]:
        if not self.api_key:
            raise GatewayUnavailableError("STRIPE_SECRET_KEY is not set")
        return {"api_key": self.api_key, "stripe_version": self.api_version}

    async def find_customer(self, email: str) -> Optional[str]:
        """
        Look up an existing Stripe customer by email.

        WHY: Reusing the customer keeps a resident's payments under one
        Stripe record instead of creating a new customer per checkout.

        Args:
            email: Email of the authenticated user

        Returns:
            Customer ID (cus_xxx) of the first match, or None

        Raises:
            GatewayUnavailableError: If the Stripe API call fails
        """
        options = self._request_options()
        try:
            customers = stripe.Customer.list(email=email, limit=1, **options)
        except stripe.StripeError as e:
            logger.error(f"Stripe customer lookup error: {e}")
            raise GatewayUnavailableError(
                "Failed to look up payment customer", stripe_error=str(e)
            ) from e

        if customers.data:
            return customers.data[0].id
        return None

    async def create_checkout_session(
        self,
        line_items: List[CheckoutLineItem],
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> CheckoutSession:
        """
        Create a Checkout Session covering one or more invoices.

        WHAT: Creates a hosted checkout page in payment mode.

        HOW: Either `customer` or `customer_email` is sent, never both;
        with only an email Stripe creates the customer itself.

        Args:
            line_items: One entry per invoice
            metadata: Session metadata (invoice_ids, user_id)
            success_url: Redirect after payment; may contain {CHECKOUT_SESSION_ID}
            cancel_url: Redirect if the user abandons checkout
            customer_id: Existing Stripe customer
            customer_email: Email for a new customer when customer_id is None
            locale: Checkout page language

        Returns:
            CheckoutSession with id and redirect URL

        Raises:
            GatewayUnavailableError: If the Stripe API call fails
        """
        options = self._request_options()
        params: Dict[str, Any] = {
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": item.currency,
                        "product_data": {
                            "name": item.name,
                            "description": item.description,
                        },
                        "unit_amount": item.unit_amount,
                    },
                    "quantity": item.quantity,
                }
                for item in line_items
            ],
            "metadata": metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if customer_id:
            params["customer"] = customer_id
        else:
            params["customer_email"] = customer_email
        if locale:
            params["locale"] = locale

        try:
            session = stripe.checkout.Session.create(**params, **options)
        except stripe.StripeError as e:
            logger.error(
                f"Stripe checkout session error: {e}",
                extra={"line_item_count": len(line_items)},
            )
            raise GatewayUnavailableError(
                "Failed to create checkout session", stripe_error=str(e)
            ) from e

        logger.info(
            f"Created checkout session {session.id}",
            extra={
                "checkout_session_id": session.id,
                "line_item_count": len(line_items),
            },
        )
        return _to_checkout_session(session)

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """
        Retrieve a Checkout Session from Stripe.

        Args:
            session_id: Stripe Checkout Session ID

        Returns:
            CheckoutSession with current payment status and metadata

        Raises:
            GatewayUnavailableError: If the session cannot be retrieved
        """
        options = self._request_options()
        try:
            session = stripe.checkout.Session.retrieve(session_id, **options)
        except stripe.StripeError as e:
            logger.error(
                f"Failed to retrieve checkout session: {e}",
                extra={"checkout_session_id": session_id},
            )
            raise GatewayUnavailableError(
                "Failed to retrieve checkout session", stripe_error=str(e)
            ) from e

        return _to_checkout_session(session)


def get_payment_gateway() -> StripeGateway:
    """FastAPI dependency returning the Stripe gateway configured from settings."""
    return StripeGateway(api_key=settings.STRIPE_SECRET_KEY)
