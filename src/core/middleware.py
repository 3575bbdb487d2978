"""
Custom middleware for the FastAPI application.
"""
import time
import logging
from typing import Iterable
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import uuid

from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging request and response information.
    """
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Request {request_id} started: {request.method} {request.url.path} from {client_host}")

        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request {request_id} failed: {request.method} {request.url.path} "
                f"- Error: {type(e).__name__} - Duration: {process_time:.4f}s"
            )
            raise

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            f"Request {request_id} completed: {request.method} {request.url.path} "
            f"- Status: {response.status_code} - Duration: {process_time:.4f}s"
        )
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-client rate limiting for a set of paths.

    This is a simple in-memory limiter; counters are per process. Clients
    whose requests have all left the window are dropped, at most once per
    window.
    """
    def __init__(self, app: ASGIApp, paths: Iterable[str], rate_limit: int = 3, window_seconds: int = 60):
        super().__init__(app)
        self.paths = frozenset(paths)
        self.rate_limit = rate_limit
        self.window_seconds = window_seconds
        self.requests = {}  # (IP, path) -> [timestamp1, timestamp2, ...]
        self.last_prune = 0.0

    def prune(self, now: float) -> None:
        """Forget every client with no request inside the window."""
        stale = [
            key for key, timestamps in self.requests.items()
            if not timestamps or now - timestamps[-1] >= self.window_seconds
        ]
        for key in stale:
            del self.requests[key]
        self.last_prune = now

    async def dispatch(self, request: Request, call_next):
        if request.url.path not in self.paths:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        key = (client_ip, request.url.path)
        now = time.time()

        if now - self.last_prune >= self.window_seconds:
            self.prune(now)

        recent = [
            timestamp for timestamp in self.requests.get(key, [])
            if now - timestamp < self.window_seconds
        ]

        if len(recent) >= self.rate_limit:
            self.requests[key] = recent
            logger.warning(f"Rate limit exceeded for IP {client_ip} on {request.url.path}")
            return JSONResponse(status_code=429, content={"detail": "Too many requests"})

        recent.append(now)
        self.requests[key] = recent

        return await call_next(request)


def setup_middlewares(app):
    """
    Set up all custom middlewares for the application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(
        RateLimitMiddleware,
        paths=["/api/v1/auth/reset-password"],
        rate_limit=settings.reset_rate_limit,
        window_seconds=settings.reset_rate_window_seconds,
    )
    app.add_middleware(RequestLoggingMiddleware)
