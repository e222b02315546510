import asyncio

from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.logging_config import get_logger

logger = get_logger(__name__)


class TimeoutMiddleware:
    """Aborts requests that take longer than ``timeout`` seconds with a 408.

    Expiry cancels the downstream task; its partial work is discarded.
    """

    def __init__(self, app: ASGIApp, timeout: float = 30.0):
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_wrapper), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{scope['method']} {scope['path']} timed out after {self.timeout}s")
            if response_started:
                # Headers are already on the wire; the connection is dropped
                return
            await Response(status_code=408)(scope, receive, send)
