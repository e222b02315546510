import asyncio

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp


class ConcurrencyLimitMiddleware(BaseHTTPMiddleware):
    """Caps the number of requests processed at once.

    Requests over the limit wait for a free slot instead of being rejected.
    The semaphore is shared by every request the app serves.
    """

    def __init__(self, app: ASGIApp, limit: int = 64):
        super().__init__(app)
        if limit < 1:
            raise ValueError("concurrency limit must be at least 1")
        self.limit = limit
        self.in_flight = 0
        self._semaphore = asyncio.Semaphore(limit)

    async def dispatch(self, request: Request, call_next) -> Response:
        async with self._semaphore:
            self.in_flight += 1
            try:
                return await call_next(request)
            finally:
                self.in_flight -= 1
