"""
Tests for custom exception hierarchy.

WHY: Exception testing ensures:
1. Exceptions serialize correctly without leaking sensitive data
2. Payment errors render as {"error": message} with HTTP 500
3. Exception handlers work as expected
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.exceptions import (
    AppException,
    AuthenticationError,
    GatewayUnavailableError,
    IdentityMismatchError,
    InvalidInvoiceAmountError,
    MissingCredentialError,
    MissingInvoiceMetadataError,
    MissingSessionIdError,
    NoPayableInvoicesError,
    PaymentFlowError,
    StoreUnavailableError,
    TokenExpiredError,
    TokenInvalidError,
    UnauthenticatedError,
)
from app.core.exception_handlers import app_exception_handler


class TestAppException:
    """Test base AppException class."""

    def test_default_message(self):
        exc = AppException()
        assert exc.message == "An unexpected error occurred"
        assert exc.status_code == 500

    def test_custom_status_code(self):
        assert AppException(status_code=418).status_code == 418

    def test_to_dict_filters_sensitive_data(self):
        exc = AppException(
            message="Test error",
            user_id="user-1",
            token="abc123",
            api_key="sk_live",
            email="resident@example.com",
        )

        result = exc.to_dict()

        assert result["error"] == "AppException"
        assert result["message"] == "Test error"
        assert result["details"] == {"user_id": "user-1"}

    def test_authentication_errors_are_401(self):
        assert AuthenticationError().status_code == 401
        assert TokenExpiredError().message == "Token has expired"
        assert isinstance(TokenInvalidError(), AuthenticationError)


class TestPaymentFlowErrors:
    """Payment errors share one response shape."""

    @pytest.mark.parametrize(
        "exc_class, message",
        [
            (MissingCredentialError, "No authorization header provided"),
            (UnauthenticatedError, "User not authenticated or email not available"),
            (NoPayableInvoicesError, "No unpaid invoices found"),
            (MissingSessionIdError, "Session ID is required"),
            (IdentityMismatchError, "User ID mismatch"),
            (MissingInvoiceMetadataError, "No invoice IDs in session metadata"),
        ],
    )
    def test_default_messages(self, exc_class, message):
        exc = exc_class()

        assert isinstance(exc, PaymentFlowError)
        assert exc.status_code == 500
        assert exc.to_dict() == {"error": message}

    def test_context_never_reaches_body(self):
        exc = InvalidInvoiceAmountError(amount="1.005")

        assert exc.to_dict() == {"error": exc.message}
        assert exc.context == {"amount": "1.005"}

    def test_custom_messages(self):
        assert GatewayUnavailableError("STRIPE_SECRET_KEY is not set").to_dict() == {
            "error": "STRIPE_SECRET_KEY is not set"
        }
        assert StoreUnavailableError().message == "Invoice store error"


class TestExceptionHandler:
    def test_payment_error_rendering(self):
        app = FastAPI()
        app.add_exception_handler(AppException, app_exception_handler)

        @app.get("/boom")
        async def boom():
            raise IdentityMismatchError()

        response = TestClient(app).get("/boom")

        assert response.status_code == 500
        assert response.json() == {"error": "User ID mismatch"}

    def test_structured_rendering_for_other_errors(self):
        app = FastAPI()
        app.add_exception_handler(AppException, app_exception_handler)

        @app.get("/denied")
        async def denied():
            raise TokenExpiredError()

        response = TestClient(app).get("/denied")

        assert response.status_code == 401
        assert response.json()["error"] == "TokenExpiredError"
