"""Runs the application under uvicorn until a shutdown trigger fires.

uvicorn's own signal handling is disabled; the shutdown coordinator owns
SIGINT/SIGTERM and tells the server to drain.
"""

import asyncio
import contextlib
from typing import Awaitable, Optional

import uvicorn
from fastapi import FastAPI

from app.core.config import Settings
from app.core.logging_config import get_logger
from app.core.shutdown import shutdown_signal

logger = get_logger(__name__)


class ManagedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the caller."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


def build_server(app: FastAPI, config: Settings) -> ManagedServer:
    server_config = uvicorn.Config(
        app,
        host=config.HOST,
        port=config.PORT,
        log_config=None,
        timeout_graceful_shutdown=config.GRACEFUL_SHUTDOWN_TIMEOUT,
    )
    return ManagedServer(server_config)


async def serve(
    app: FastAPI,
    config: Settings,
    shutdown_trigger: Optional[Awaitable] = None,
) -> None:
    """Serve ``app`` until ``shutdown_trigger`` completes, then drain.

    Args:
        app: The ASGI application
        config: Listener and drain settings
        shutdown_trigger: Awaitable that completes when the server should
            stop; defaults to waiting for SIGINT/SIGTERM

    Raises:
        RuntimeError: The server stopped without ever starting
    """
    server = build_server(app, config)
    logger.info(f"Starting {config.PROJECT_NAME} on {config.HOST}:{config.PORT}")

    serve_task = asyncio.create_task(server.serve())
    trigger_task = asyncio.ensure_future(
        shutdown_trigger if shutdown_trigger is not None else shutdown_signal()
    )

    try:
        done, _ = await asyncio.wait(
            {serve_task, trigger_task}, return_when=asyncio.FIRST_COMPLETED
        )
    except BaseException:
        serve_task.cancel()
        trigger_task.cancel()
        raise

    if serve_task in done:
        trigger_task.cancel()
        serve_task.result()
        if not server.started:
            raise RuntimeError(f"Server failed to start on {config.HOST}:{config.PORT}")
        return

    # Stop accepting connections and wait for in-flight requests
    server.should_exit = True
    await serve_task
    logger.info("Server drained")
