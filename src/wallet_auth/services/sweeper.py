"""Background reclamation of expired nonce challenges.

Expiry is enforced when a challenge is read, so the sweeper only frees
storage. Disabling it never lets an expired nonce through.
"""

from __future__ import annotations

import asyncio
import logging

from wallet_auth.core.errors import NonceStoreError
from wallet_auth.services.nonce_store import NonceStore

logger = logging.getLogger(__name__)


class NonceSweeper:
    """Periodically purges expired challenges from a nonce store."""

    def __init__(self, store: NonceStore, interval_seconds: float) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background purge loop."""
        if self.interval_seconds <= 0:
            return

        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background purge loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def sweep_once(self) -> int:
        """Purge expired challenges once and return how many were removed."""
        removed = await asyncio.to_thread(self.store.purge_expired)
        if removed:
            logger.debug("Purged %d expired nonce challenges", removed)
        return removed

    async def _run(self) -> None:
        interval = max(0.1, float(self.interval_seconds))

        while not self._stopping.is_set():
            try:
                await self.sweep_once()
            except NonceStoreError as e:
                logger.warning("NonceSweeper could not purge challenges: %s", e)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except TimeoutError:
                continue
