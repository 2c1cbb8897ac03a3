"""
Invoice payment reconciliation service.

WHAT: Business logic for paying invoices through Stripe Checkout:
- create_payment_session: bundle a user's unpaid invoices into one checkout
- verify_payment_session: settle the invoices of a paid checkout
- list_unpaid_invoices: the unpaid summary shown next to the pay button

WHY: Money must be applied exactly once per invoice no matter how often the
browser retries. The service therefore:
1. Derives everything from server-side state (the invoice table and the
   re-fetched Stripe session), never from client-asserted status
2. Carries the invoice list between the two calls only in session metadata
3. Settles invoices with one conditional update that is safe to repeat

HOW: The three collaborators (authenticator, invoice store, payment
gateway) are injected as capabilities. FastAPI dependencies wire the JWT
authenticator, InvoiceDAO and StripeGateway; tests pass in-memory fakes.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from app.core.auth import AuthenticatedIdentity
from app.core.config import settings
from app.core.exceptions import (
    AuthenticationError,
    IdentityMismatchError,
    InvalidInvoiceAmountError,
    MissingCredentialError,
    MissingInvoiceMetadataError,
    MissingSessionIdError,
    NoPayableInvoicesError,
    StoreUnavailableError,
    TooManyInvoicesError,
    UnauthenticatedError,
)
from app.core.step_logger import StepLogger
from app.services.audit import AuditService
from app.services.stripe_service import CheckoutLineItem, CheckoutSession

logger = logging.getLogger(__name__)

ALL_INVOICES = "all"
PAID_STATUS = "paid"

# Stripe rejects metadata values longer than this
METADATA_VALUE_MAX_LENGTH = 500


# ============================================================================
# Capabilities
# ============================================================================


class PayableInvoice(Protocol):
    id: str
    title: str
    amount: Decimal


class Authenticator(Protocol):
    """Turns a bearer token into an identity or raises AuthenticationError."""

    async def verify(self, token: str) -> AuthenticatedIdentity: ...


class InvoiceStore(Protocol):
    """Owner-scoped invoice reads and the settle operation."""

    async def list_payable(
        self, user_id: str, invoice_ids: Optional[Sequence[str]] = None
    ) -> Sequence[PayableInvoice]: ...

    async def mark_paid(self, user_id: str, invoice_ids: Sequence[str]) -> int: ...


class PaymentGateway(Protocol):
    """Hosted checkout provider."""

    async def find_customer(self, email: str) -> Optional[str]: ...

    async def create_checkout_session(
        self,
        line_items: List[CheckoutLineItem],
        metadata: dict,
        success_url: str,
        cancel_url: str,
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> CheckoutSession: ...

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession: ...


# ============================================================================
# Value Objects
# ============================================================================


@dataclass(frozen=True)
class InvoiceSelection:
    """
    Which invoices the user asked to pay.

    `invoice_ids` of None means every unpaid invoice of the caller. An
    explicit tuple, even an empty one, restricts the checkout to those ids.
    """

    invoice_ids: Optional[Tuple[str, ...]] = None

    @property
    def is_all(self) -> bool:
        return self.invoice_ids is None

    @classmethod
    def from_request(
        cls,
        invoice_id: Optional[str] = None,
        invoice_ids: Optional[Sequence[str]] = None,
    ) -> "InvoiceSelection":
        """
        Build a selection from the request body fields.

        Precedence: invoiceId "all" wins over everything, then a non-empty
        invoiceIds list, then a single invoiceId. Nothing selected means all.
        A list of blank ids stays an explicit selection that matches nothing.
        """
        if invoice_id == ALL_INVOICES:
            return cls()
        if invoice_ids:
            # Preserve order, drop duplicates and blanks
            return cls(tuple(dict.fromkeys(i for i in invoice_ids if i and i.strip())))
        if invoice_id:
            return cls((invoice_id,))
        return cls()


@dataclass
class PaymentSessionResult:
    url: str
    session_id: str


@dataclass
class VerificationResult:
    success: bool
    message: str
    invoice_ids: List[str] = field(default_factory=list)
    updated_count: int = 0


@dataclass
class UnpaidInvoicesSummary:
    items: List[Any]
    total_amount: Decimal


def to_minor_units(amount: Any) -> int:
    """
    Convert a money amount to integer minor units (cents).

    WHY: Floating point rounding could charge a resident one cent more or
    less than the invoice says. The conversion is exact or it fails.

    Raises:
        InvalidInvoiceAmountError: Amount is not positive or has more
            than two decimal places
    """
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise InvalidInvoiceAmountError(amount=str(amount)) from e

    if not value.is_finite() or value <= 0:
        raise InvalidInvoiceAmountError(amount=str(amount))

    cents = value * 100
    if cents != cents.to_integral_value():
        raise InvalidInvoiceAmountError(amount=str(amount))
    return int(cents)


def parse_invoice_ids(raw: Optional[str]) -> List[str]:
    """Split the comma-joined metadata value, ignoring blanks."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


# ============================================================================
# Service
# ============================================================================


class InvoicePaymentService:
    """
    Session Initiator and Payment Verifier for invoice payments.

    Example:
        service = InvoicePaymentService(
            authenticator=get_authenticator(),
            store=InvoiceDAO(db),
            gateway=StripeGateway(api_key),
            audit=AuditService(db),
        )
        result = await service.create_payment_session(token, selection, origin)
    """

    def __init__(
        self,
        authenticator: Authenticator,
        store: InvoiceStore,
        gateway: PaymentGateway,
        audit: Optional[AuditService] = None,
        currency: Optional[str] = None,
        locale: Optional[str] = None,
        portal_url: Optional[str] = None,
        invoices_path: Optional[str] = None,
    ):
        self.authenticator = authenticator
        self.store = store
        self.gateway = gateway
        self.audit = audit
        self.currency = (currency or settings.PAYMENT_CURRENCY).lower()
        self.locale = locale or settings.CHECKOUT_LOCALE
        self.portal_url = portal_url or settings.PORTAL_URL
        self.invoices_path = invoices_path or settings.INVOICES_PATH

    # ========================================================================
    # Helpers
    # ========================================================================

    async def _authenticate(
        self,
        token: Optional[str],
        require_email: bool = True,
    ) -> AuthenticatedIdentity:
        """
        Resolve the bearer token to an identity, failing closed.

        Raises:
            MissingCredentialError: No token
            UnauthenticatedError: Token rejected, or email required but absent
        """
        if not token:
            raise MissingCredentialError()

        try:
            identity = await self.authenticator.verify(token)
        except AuthenticationError as e:
            raise UnauthenticatedError(f"Authentication error: {e.message}") from e

        if identity is None or not identity.user_id:
            raise UnauthenticatedError("User not authenticated")
        if require_email and not identity.email:
            raise UnauthenticatedError()
        return identity

    def _line_item(self, invoice: PayableInvoice) -> CheckoutLineItem:
        return CheckoutLineItem(
            name=invoice.title,
            description=f"Sąskaita: {invoice.title} (ID: {str(invoice.id)[:8]})",
            unit_amount=to_minor_units(invoice.amount),
            currency=self.currency,
        )

    def _redirect_urls(self, origin: Optional[str]) -> Tuple[str, str]:
        base = f"{(origin or self.portal_url).rstrip('/')}{self.invoices_path}"
        success_url = f"{base}?payment=success&session_id={{CHECKOUT_SESSION_ID}}"
        cancel_url = f"{base}?payment=cancelled"
        return success_url, cancel_url

    async def _list_payable(
        self, user_id: str, invoice_ids: Optional[Sequence[str]] = None
    ) -> Sequence[PayableInvoice]:
        try:
            return await self.store.list_payable(user_id, invoice_ids)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching invoices: {e}", extra={"user_id": user_id})
            raise StoreUnavailableError("Error fetching invoices") from e

    # ========================================================================
    # Session Initiator
    # ========================================================================

    async def create_payment_session(
        self,
        token: Optional[str],
        selection: InvoiceSelection,
        origin: Optional[str] = None,
    ) -> PaymentSessionResult:
        """
        Create one Checkout Session for the selected unpaid invoices.

        WHAT: Validates the caller, loads the payable invoices, and opens a
        hosted checkout with one line item per invoice.

        WHY: Invoice ids and the owner are written into session metadata,
        which the verifier later trusts instead of anything the client sends.

        Args:
            token: Bearer token from the Authorization header
            selection: Requested invoices (InvoiceSelection() means all unpaid)
            origin: Request Origin, used to build the redirect URLs

        Returns:
            PaymentSessionResult with the checkout URL and session id

        Raises:
            MissingCredentialError, UnauthenticatedError,
            NoPayableInvoicesError, InvalidInvoiceAmountError,
            TooManyInvoicesError, StoreUnavailableError,
            GatewayUnavailableError
        """
        log = StepLogger("CREATE-INVOICE-PAYMENT", logger)
        log.step("Function started")
        with log.failures():
            identity = await self._authenticate(token, require_email=True)
            log.step("User authenticated", user_id=identity.user_id)

            invoices = await self._list_payable(
                identity.user_id, selection.invoice_ids
            )
            if not invoices:
                raise NoPayableInvoicesError()

            line_items = [self._line_item(invoice) for invoice in invoices]
            invoice_ids = sorted(str(invoice.id) for invoice in invoices)
            metadata_invoice_ids = ",".join(invoice_ids)
            if len(metadata_invoice_ids) > METADATA_VALUE_MAX_LENGTH:
                raise TooManyInvoicesError(count=len(invoice_ids))
            amount_total = sum(item.unit_amount for item in line_items)
            log.step(
                "Invoices found",
                count=len(invoices),
                invoice_ids=invoice_ids,
                amount_total=amount_total,
            )

            customer_id = await self.gateway.find_customer(identity.email)
            if customer_id:
                log.step("Existing customer found", customer_id=customer_id)

            success_url, cancel_url = self._redirect_urls(origin)
            session = await self.gateway.create_checkout_session(
                line_items=line_items,
                metadata={
                    "invoice_ids": metadata_invoice_ids,
                    "user_id": identity.user_id,
                },
                success_url=success_url,
                cancel_url=cancel_url,
                customer_id=customer_id,
                customer_email=None if customer_id else identity.email,
                locale=self.locale,
            )
            log.step("Checkout session created", session_id=session.id)

            if self.audit is not None:
                await self.audit.log_session_created(
                    user_id=identity.user_id,
                    session_id=session.id,
                    invoice_ids=invoice_ids,
                    amount_total=amount_total,
                    currency=self.currency,
                )

            return PaymentSessionResult(url=session.url, session_id=session.id)

    # ========================================================================
    # Payment Verifier
    # ========================================================================

    async def verify_payment_session(
        self,
        token: Optional[str],
        session_id: Optional[str],
    ) -> VerificationResult:
        """
        Settle the invoices of a paid Checkout Session.

        WHAT: Re-fetches the session from Stripe and, if it is paid and
        belongs to the caller, marks its metadata invoices as paid.

        WHY: Safe to call any number of times. A second call finds the
        invoices already paid and changes nothing.

        Args:
            token: Bearer token from the Authorization header
            session_id: Checkout Session id from the success redirect

        Returns:
            VerificationResult; success is False while payment is pending

        Raises:
            MissingCredentialError, UnauthenticatedError,
            MissingSessionIdError, IdentityMismatchError,
            MissingInvoiceMetadataError, StoreUnavailableError,
            GatewayUnavailableError
        """
        log = StepLogger("VERIFY-INVOICE-PAYMENT", logger)
        log.step("Function started")
        with log.failures():
            identity = await self._authenticate(token, require_email=False)
            log.step("User authenticated", user_id=identity.user_id)

            if not session_id:
                raise MissingSessionIdError()
            log.step("Session ID received", session_id=session_id)

            session = await self.gateway.retrieve_checkout_session(session_id)
            log.step(
                "Session retrieved",
                status=session.payment_status,
                metadata=session.metadata,
            )

            if session.payment_status != PAID_STATUS:
                return VerificationResult(success=False, message="Payment not completed")

            if session.metadata.get("user_id") != identity.user_id:
                raise IdentityMismatchError()

            invoice_ids = parse_invoice_ids(session.metadata.get("invoice_ids"))
            if not invoice_ids:
                raise MissingInvoiceMetadataError()
            log.step("Invoices to update", invoice_ids=invoice_ids)

            try:
                updated = await self.store.mark_paid(identity.user_id, invoice_ids)
            except SQLAlchemyError as e:
                logger.error(
                    f"Error updating invoices: {e}",
                    extra={"user_id": identity.user_id, "checkout_session_id": session_id},
                )
                raise StoreUnavailableError("Error updating invoices") from e
            log.step("Invoices updated successfully", updated=updated)

            if updated and self.audit is not None:
                await self.audit.log_invoices_paid(
                    user_id=identity.user_id,
                    session_id=session_id,
                    invoice_ids=invoice_ids,
                    updated=updated,
                )

            return VerificationResult(
                success=True,
                message="Payment verified and invoices updated",
                invoice_ids=invoice_ids,
                updated_count=updated,
            )

    # ========================================================================
    # Listing
    # ========================================================================

    async def list_unpaid_invoices(self, token: Optional[str]) -> UnpaidInvoicesSummary:
        """
        Get the caller's unpaid invoices and their total.

        Raises:
            MissingCredentialError, UnauthenticatedError, StoreUnavailableError
        """
        identity = await self._authenticate(token, require_email=True)
        invoices = list(await self._list_payable(identity.user_id))
        total = sum((Decimal(str(invoice.amount)) for invoice in invoices), Decimal("0"))
        return UnpaidInvoicesSummary(items=invoices, total_amount=total)
