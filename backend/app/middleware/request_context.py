"""
Request context middleware.

WHAT: Captures the request id, client IP and user agent of every request
and exposes them to code that has no access to the Request object.

WHY: Payment audit entries record where a checkout was started or verified
from, and the request id ties the `[CREATE-INVOICE-PAYMENT]` and
`[VERIFY-INVOICE-PAYMENT]` log lines of one call together.

HOW: The context is stored on request.state and in a ContextVar, which is
isolated per asyncio task, so concurrent requests never see each other's
context.
"""

import ipaddress
import re
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


REQUEST_ID_HEADER = "X-Request-ID"

# Width of audit_log.ip_address (longest IPv6 text form)
MAX_IP_LENGTH = 45

# Accept caller-supplied ids only if they look like an id, not a payload
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


@dataclass(frozen=True)
class RequestContext:
    """Request-scoped data for audit entries and log correlation."""

    request_id: str
    ip_address: str
    user_agent: Optional[str]
    path: str
    method: str


_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "request_context", default=None
)


def get_request_context() -> Optional[RequestContext]:
    """
    Get the context of the request being handled.

    Returns:
        RequestContext inside a request, None in scripts and background code
    """
    return _request_context.get()


def _valid_ip(value: Optional[str]) -> Optional[str]:
    """Return the header value if it parses as an IPv4/IPv6 address."""
    if not value:
        return None
    candidate = value.strip()
    if len(candidate) > MAX_IP_LENGTH:
        return None
    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        return None
    return candidate


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address, honouring proxy headers.

    HOW: Checks in order:
    1. X-Real-IP (set by nginx-style proxies)
    2. X-Forwarded-For (first, leftmost entry is the original client)
    3. The TCP peer address

    Security Note:
        Both headers can be forged unless the deployment's proxy overwrites
        them. The value is used for audit context only, never for access
        decisions. Header values that are not an IP address are skipped, so
        the result always fits the audit column.
    """
    x_real_ip = _valid_ip(request.headers.get("X-Real-IP"))
    if x_real_ip:
        return x_real_ip

    x_forwarded_for = request.headers.get("X-Forwarded-For")
    if x_forwarded_for:
        forwarded = _valid_ip(x_forwarded_for.split(",")[0])
        if forwarded:
            return forwarded

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def get_user_agent(request: Request) -> Optional[str]:
    """Return the User-Agent header, if any."""
    return request.headers.get("User-Agent")


def _resolve_request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER)
    if incoming and _REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that captures and stores request context.

    A request id sent by an upstream proxy in X-Request-ID is reused so the
    id stays the same across hops; otherwise a UUID4 is generated. The id is
    echoed back in the response header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        context = RequestContext(
            request_id=_resolve_request_id(request),
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
            path=request.url.path,
            method=request.method,
        )
        request.state.context = context
        token = _request_context.set(context)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = context.request_id
            return response
        finally:
            _request_context.reset(token)
