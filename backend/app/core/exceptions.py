"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No sensitive data leaks in error messages (OWASP A04)

IMPORTANT: NEVER use base Exception class. Always use custom exceptions.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHY: Centralizing exception handling in a base class ensures consistent
    error responses, HTTP status code mapping, and prevents sensitive data
    leaks in error messages.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def safe_context(self) -> Dict[str, Any]:
        """
        Return context with sensitive fields removed.

        WHY: Context ends up in responses and log records; credentials and
        keys must never leave the process through either.
        """
        sensitive_fields = {"password", "token", "secret", "key", "api_key", "email"}
        return {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        filtered_context = self.safe_context()

        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Authentication Exceptions (OWASP A07)
# ============================================================================


class AuthenticationError(AppException):
    """
    Raised when a bearer token cannot be turned into an identity.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "Authentication failed"


class TokenExpiredError(AuthenticationError):
    """Raised when the access token has expired."""

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """
    Raised when the access token is malformed, has an invalid signature,
    or lacks the claims needed to identify the user.
    """

    default_message = "Token is invalid"


# ============================================================================
# Invoice Payment Exceptions
# ============================================================================


class PaymentFlowError(AppException):
    """
    Base exception for the invoice payment endpoints.

    WHY: The portal frontend treats every payment failure the same way:
    it reads a single human-readable `error` string and shows it in a toast.
    The only non-error outcome with `success: false` is a pending payment,
    which is returned as a normal response, not raised.

    HTTP Status: 500 Internal Server Error
    Body: {"error": "<message>"}
    """

    status_code = 500
    default_message = "Payment processing failed"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class MissingCredentialError(PaymentFlowError):
    """Raised when the request carries no bearer credential."""

    default_message = "No authorization header provided"


class UnauthenticatedError(PaymentFlowError):
    """
    Raised when the credential is rejected or resolves to an identity
    without an email address.
    """

    default_message = "User not authenticated or email not available"


class NoPayableInvoicesError(PaymentFlowError):
    """
    Raised when the owner/status filtered invoice selection is empty.

    WHY: Prevents creating zero-amount sessions and paying for another
    user's invoices; the ownership filter is applied in the query, so
    foreign, unknown and already-paid ids all end up here.
    """

    default_message = "No unpaid invoices found"


class InvalidInvoiceAmountError(PaymentFlowError):
    """
    Raised when an invoice amount cannot be expressed exactly in minor
    currency units (non-positive or more than two decimal places).
    """

    default_message = "Invoice amount cannot be charged"


class TooManyInvoicesError(PaymentFlowError):
    """
    Raised when the selected invoice ids do not fit into one checkout
    session's metadata value (500 characters on Stripe).
    """

    default_message = "Too many invoices selected for one payment"


class MissingSessionIdError(PaymentFlowError):
    """Raised when verification is requested without a session id."""

    default_message = "Session ID is required"


class IdentityMismatchError(PaymentFlowError):
    """
    Raised when a checkout session was created for a different user.

    WHY: Without this check any authenticated user could replay a session
    id and mark someone else's invoices as paid.
    """

    default_message = "User ID mismatch"


class MissingInvoiceMetadataError(PaymentFlowError):
    """Raised when a checkout session carries no invoice id list."""

    default_message = "No invoice IDs in session metadata"


class GatewayUnavailableError(PaymentFlowError):
    """
    Raised when a payment gateway call fails.

    Wraps every Stripe SDK error (network, authentication, unknown
    session id) so callers only deal with one failure type.
    """

    default_message = "Payment gateway error"


class StoreUnavailableError(PaymentFlowError):
    """Raised when the invoice store query or update fails."""

    default_message = "Invoice store error"
