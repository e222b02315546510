"""Graceful shutdown on SIGINT / SIGTERM."""

import asyncio
import os
import signal
from enum import Enum
from typing import Any, Dict, List, Optional

from app.core.logging_config import get_logger

logger = get_logger(__name__)


class ServerState(str, Enum):
    SERVING = "serving"
    DRAINING = "draining"


def terminate_signal_supported() -> bool:
    """Whether the platform can deliver a terminate signal to this process."""
    return os.name == "posix" and hasattr(signal, "SIGTERM")


class ShutdownCoordinator:
    """Moves the server from SERVING to DRAINING when a stop signal arrives.

    Without terminate-signal support only SIGINT is watched; the terminate
    trigger then never fires.
    """

    def __init__(self):
        self.state = ServerState.SERVING
        self.received_signal: Optional[signal.Signals] = None
        self._stopped = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_handlers: Dict[signal.Signals, Any] = {}
        self._previous_handlers: Dict[signal.Signals, Any] = {}

    @staticmethod
    def watched_signals() -> List[signal.Signals]:
        signals = [signal.SIGINT]
        if terminate_signal_supported():
            signals.append(signal.SIGTERM)
        return signals

    def install(self) -> None:
        self._loop = asyncio.get_running_loop()
        for sig in self.watched_signals():
            previous = signal.getsignal(sig)
            try:
                self._loop.add_signal_handler(sig, self.trigger, sig)
                self._loop_handlers[sig] = previous
            except (NotImplementedError, RuntimeError):
                # Loops without add_signal_handler (e.g. Windows proactor)
                self._previous_handlers[sig] = signal.signal(sig, self._signal_handler)

    def _signal_handler(self, signum, frame) -> None:
        self._loop.call_soon_threadsafe(self.trigger, signal.Signals(signum))

    def uninstall(self) -> None:
        for sig, previous in self._loop_handlers.items():
            # remove_signal_handler leaves SIG_DFL (default_int_handler for SIGINT) behind
            self._loop.remove_signal_handler(sig)
            if previous is not None:
                signal.signal(sig, previous)
        self._loop_handlers.clear()
        for sig, previous in self._previous_handlers.items():
            signal.signal(sig, previous)
        self._previous_handlers.clear()

    def trigger(self, sig: Optional[signal.Signals] = None) -> None:
        if self.state is ServerState.DRAINING:
            return
        self.state = ServerState.DRAINING
        self.received_signal = sig
        logger.info("Application stop signal received, starting graceful shutdown")
        self._stopped.set()

    async def wait(self) -> Optional[signal.Signals]:
        await self._stopped.wait()
        return self.received_signal


async def shutdown_signal(coordinator: Optional[ShutdownCoordinator] = None) -> Optional[signal.Signals]:
    """Wait for SIGINT or SIGTERM and return the signal received."""
    coordinator = coordinator or ShutdownCoordinator()
    coordinator.install()
    try:
        return await coordinator.wait()
    finally:
        coordinator.uninstall()
