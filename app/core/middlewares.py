from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
import traceback
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.config import Settings
from app.core.exceptions import AppBaseException, RateLimitException
from app.core.logging import get_logger
from app.core.metrics import RATE_LIMITED
from app.core.rate_limit import FixedWindowRateLimiter

logger = get_logger("middlewares")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}
CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, Authorization"
CORS_MAX_AGE = "600"


def get_client_identifier(request: Request) -> str:
    """Get client identifier, considering proxy headers"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def apply_default_headers(response: Response, request: Request, settings: Settings) -> Response:
    """
    Attach the CORS and security headers every response must carry.
    """
    origins = settings.get_cors_origins()
    request_origin = request.headers.get("origin")

    if not origins or "*" in origins:
        allow_origin = "*"
    elif request_origin in origins:
        allow_origin = request_origin
    else:
        allow_origin = origins[0]

    response.headers["Access-Control-Allow-Origin"] = allow_origin
    response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
    response.headers["Access-Control-Max-Age"] = CORS_MAX_AGE
    if allow_origin != "*":
        response.headers["Vary"] = "Origin"

    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    return response


async def exception_handler(request: Request, exception: Exception) -> JSONResponse:
    """
    Global exception handler for all endpoints.
    """
    path = request.url.path
    method = request.method
    client_host = request.client.host if request.client else "unknown"

    if isinstance(exception, AppBaseException):
        log_extra = {
            "status_code": exception.status_code,
            "error_code": exception.code,
            "request_path": path,
            "request_method": method,
            "client_host": client_host
        }
        log = logger.error if exception.status_code >= 500 else logger.warning
        log(
            f"Error processing request {method} {path} from {client_host}: "
            f"{exception.code}: {exception.message}",
            extra=log_extra
        )
        return JSONResponse(
            status_code=exception.status_code,
            content=exception.to_payload(),
            headers=exception.headers or None
        )

    exception_type = type(exception).__name__
    exception_str = str(exception)

    logger.error(
        f"Unhandled exception processing request {method} {path} from {client_host}: "
        f"{exception_type}: {exception_str}",
        extra={
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "exception_type": exception_type,
            "stacktrace": traceback.format_exc(),
            "request_path": path,
            "request_method": method,
            "client_host": client_host
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "ok": False,
            "error": "server_error",
            "detail": f"Unexpected error: {exception_type}"
        }
    )


class ErrorHandlingMiddleware:
    """
    Middleware for global exception handling across the application.

    Once the response has started nothing more can be sent, so a failure
    after that point (or while writing the error response) is only logged.
    """
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        request = Request(scope, receive=receive)

        try:
            await self.app(scope, receive, tracking_send)
        except Exception as exc:
            if response_started:
                logger.error(
                    f"Error after response started for {request.method} {request.url.path}: "
                    f"{type(exc).__name__}: {exc}"
                )
                return
            response = await exception_handler(request, exc)
            try:
                await response(scope, receive, send)
            except Exception as write_exc:
                logger.error(f"Could not write error response: {type(write_exc).__name__}: {write_exc}")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware to limit the number of chat requests per client identifier.
    """
    def __init__(self, app: ASGIApp, rate_limiter: FixedWindowRateLimiter, path: str = "/api/chat"):
        super().__init__(app)
        self.rate_limiter = rate_limiter
        self.path = path

    async def dispatch(self, request: Request, call_next):
        if request.method == "POST" and request.url.path == self.path:
            key = get_client_identifier(request)

            if not self.rate_limiter.check(key):
                RATE_LIMITED.inc()
                rate_info = self.rate_limiter.get_info(key)
                exc = RateLimitException(
                    message=f"Rate limit exceeded: {rate_info.total} requests per "
                            f"{self.rate_limiter.window_seconds:g} seconds",
                    retry_after=rate_info.reset,
                    details={
                        "limit": rate_info.total,
                        "remaining": rate_info.remaining
                    }
                )
                return await exception_handler(request, exc)

        response = await call_next(request)
        return response


class DefaultHeadersMiddleware(BaseHTTPMiddleware):
    """
    Outermost middleware: answers CORS preflight and stamps the default
    headers onto every response, including error responses.
    """
    def __init__(self, app: ASGIApp, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=status.HTTP_204_NO_CONTENT)
        else:
            response = await call_next(request)

        return apply_default_headers(response, request, self.settings)
