"""
Logging Middleware for Request/Response Logging

This middleware logs all HTTP requests and responses for observability.
It captures:
- Request method and path
- Response status code
- Request processing time
- Client IP address

Design Decisions:
- Uses Starlette's BaseHTTPMiddleware for compatibility
- Logs to standard Python logging (can be configured to send to external services)
- Rate-limited requests are logged too, the middleware sits outside the gate
"""

import logging
import time

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

# Configure logger
# In production, configure this to send logs to centralized logging service
logger = logging.getLogger("url_shortener")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Width of the visitors.ip column, long enough for IPv6
MAX_IP_LENGTH = 45


def configure_logging(level: str = "INFO") -> None:
    """
    Install a basic handler on the root logger.

    Does nothing if the root logger already has handlers (uvicorn, pytest).

    Args:
        level: Log level name, e.g. "INFO" or "DEBUG"
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Handles proxies and load balancers by checking X-Forwarded-For header.

    Args:
        request: FastAPI Request object

    Returns:
        IP address as string, cut to MAX_IP_LENGTH
    """
    # Check for forwarded IP (from proxy/load balancer)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded_for.split(",")[0].strip()[:MAX_IP_LENGTH]

    # Fallback to direct client IP
    return request.client.host if request.client else "unknown"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and responses.

    It wraps the request/response cycle to add logging without
    modifying endpoint code.
    """

    async def dispatch(self, request: Request, call_next):
        client_ip = get_client_ip(request)
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time

        # Format: METHOD PATH STATUS_CODE PROCESS_TIME_MS CLIENT_IP
        logger.info(
            f"{request.method} {request.url.path} "
            f"{response.status_code} {process_time*1000:.2f}ms "
            f"IP:{client_ip}"
        )

        response.headers["X-Process-Time"] = str(process_time)

        return response


def add_logging_middleware(app: FastAPI) -> None:
    """
    Add logging middleware to FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(LoggingMiddleware)
