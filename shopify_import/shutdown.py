"""Graceful shutdown for a running import.

The first SIGINT/SIGTERM sets a flag that the driver checks between products,
so the product being written is committed or rolled back as a whole. A second
signal exits immediately.
"""

import signal
import sys
import threading
from typing import Optional

from shopify_import.logging_config import get_logger

__all__ = [
    "ShutdownHandler",
    "get_shutdown_handler",
    "shutdown_requested",
]

logger = get_logger("shutdown")


class ShutdownHandler:
    """Turns SIGINT/SIGTERM into a flag polled by the import loop.

    Usage:
        handler = get_shutdown_handler().install()
        try:
            while not handler.shutdown_requested:
                ...
        finally:
            handler.uninstall()
    """

    _instance: Optional["ShutdownHandler"] = None
    _lock = threading.Lock()

    def __init__(self) -> None:
        self._shutdown_requested = threading.Event()
        self._original_sigint = None
        self._original_sigterm = None
        self._installed = False

    @classmethod
    def get_instance(cls) -> "ShutdownHandler":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def install(self) -> "ShutdownHandler":
        """Install signal handlers.

        Returns:
            Self for chaining
        """
        if self._installed:
            return self

        self._original_sigint = signal.getsignal(signal.SIGINT)
        self._original_sigterm = signal.getsignal(signal.SIGTERM)

        signal.signal(signal.SIGINT, self._handle_signal)
        signal.signal(signal.SIGTERM, self._handle_signal)

        self._installed = True
        return self

    def uninstall(self) -> None:
        """Restore original signal handlers."""
        if not self._installed:
            return

        if self._original_sigint is not None:
            signal.signal(signal.SIGINT, self._original_sigint)
        if self._original_sigterm is not None:
            signal.signal(signal.SIGTERM, self._original_sigterm)

        self._installed = False

    def _handle_signal(self, signum: int, frame) -> None:
        signal_name = "SIGINT" if signum == signal.SIGINT else "SIGTERM"
        logger.warning(
            f"Received {signal_name}, stopping after the current product "
            "(send again to force quit)"
        )
        self._shutdown_requested.set()

        # Second signal exits without waiting
        signal.signal(signum, self._force_exit)

    def _force_exit(self, signum: int, frame) -> None:
        logger.error("Force quitting")
        sys.exit(1)

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested.is_set()

    def request_shutdown(self) -> None:
        """Set the flag without a signal (used by tests and embedding code)."""
        self._shutdown_requested.set()

    def reset(self) -> None:
        """Reset shutdown state (for testing or reuse)."""
        self._shutdown_requested.clear()


def get_shutdown_handler() -> ShutdownHandler:
    """Get the global shutdown handler instance."""
    return ShutdownHandler.get_instance()


def shutdown_requested() -> bool:
    return get_shutdown_handler().shutdown_requested
