"""Background task that evicts expired label sessions."""

import asyncio
import logging
import os

from services.session_store import SessionStore

LOGGER = logging.getLogger(__name__)
DEFAULT_SWEEP_SECONDS = float(os.getenv("SESSION_SWEEP_SECONDS", "300"))


class SessionSweeper:
    """Purge expired sessions from a store on a fixed interval."""

    def __init__(self, store: SessionStore, interval_seconds: float = DEFAULT_SWEEP_SECONDS) -> None:
        """
        Args:
            store: Session store shared by the application.
            interval_seconds: Seconds to sleep between sweeps.
        """
        self._store = store
        self.interval_seconds = interval_seconds

    def sweep(self) -> int:
        """Run a single sweep and return the number of evicted sessions."""
        return self._store.purge_expired()

    async def run_periodic_cleanup(self) -> None:
        """Repeatedly sweep the store until cancelled."""
        while True:
            try:
                await asyncio.sleep(self.interval_seconds)
                self.sweep()
            except asyncio.CancelledError:
                break
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception("Session sweep failed; retrying on the next tick")
