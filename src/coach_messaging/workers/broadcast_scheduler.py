"""Broadcast scheduler: one background loop that fires due broadcasts."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import timedelta

from coach_messaging.application.ports.clock import Clock, SystemClock
from coach_messaging.application.uow import UnitOfWork
from coach_messaging.config import settings
from coach_messaging.infrastructure.db.uow import session_uow
from coach_messaging.services import broadcast_service

logger = logging.getLogger(__name__)

UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]


class BroadcastScheduler:
    """Periodic sweep over scheduled broadcasts.

    Each due broadcast is triggered in its own unit of work through
    ``broadcast_service.trigger_broadcast``, the same guarded entry point used
    by send-now, so the sweep racing a manual trigger cannot double fan-out.
    Every pass first fails broadcasts whose ``sending`` lease expired, so a
    crashed worker never strands one.
    """

    def __init__(
        self,
        uow_factory: UoWFactory,
        clock: Clock,
        *,
        poll_interval: float,
        batch_size: int,
        sending_lease: float = 900.0,
        shutdown_timeout: float = 30.0,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._poll_interval = poll_interval
        self._batch_size = batch_size
        self._sending_lease = timedelta(seconds=sending_lease)
        self._shutdown_timeout = shutdown_timeout
        self._stopping = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    async def run_once(self) -> int:
        """Fire every broadcast due now. Return how many this pass claimed."""
        async with self._uow_factory() as uow:
            await broadcast_service.recover_stale_broadcasts(uow, self._clock, self._sending_lease)

        async with self._uow_factory() as uow:
            due = await uow.group_messages.list_due(self._clock.now(), self._batch_size)

        fired = 0
        for group_message in due:
            if self._stopping.is_set():
                break
            try:
                async with self._uow_factory() as uow:
                    outcome = await broadcast_service.trigger_broadcast(
                        group_message.id, uow, self._clock,
                    )
            except Exception:
                logger.exception("Failed to process broadcast %s", group_message.id)
                continue
            if outcome is not None:
                fired += 1
                logger.info(
                    "Broadcast %s -> %s (delivered=%d failed=%d)",
                    group_message.id,
                    outcome.group_message.status,
                    outcome.result.delivered,
                    len(outcome.result.failed),
                )
        return fired

    async def run_forever(self) -> None:
        # First pass runs immediately so already-due broadcasts don't wait a full interval.
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("Broadcast scheduler loop error")
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self._poll_interval)
            except TimeoutError:
                pass

    async def start(self) -> None:
        if self._task is not None:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self.run_forever(), name="broadcast-scheduler")
        logger.info(
            "Broadcast scheduler started (poll=%.1fs, batch=%d)",
            self._poll_interval,
            self._batch_size,
        )

    async def stop(self) -> None:
        """Let the broadcast in flight finish, then stop.

        After ``shutdown_timeout`` the loop is cancelled; the interrupted
        broadcast is moved to ``failed`` by ``trigger_broadcast``.
        """
        if self._task is None:
            return
        self._stopping.set()
        try:
            await asyncio.wait_for(self._task, timeout=self._shutdown_timeout)
        except TimeoutError:
            logger.warning("Broadcast scheduler did not stop within %.1fs, cancelled", self._shutdown_timeout)
        self._task = None
        logger.info("Broadcast scheduler stopped")


def build_scheduler() -> BroadcastScheduler:
    return BroadcastScheduler(
        session_uow,
        SystemClock(),
        poll_interval=settings.BROADCAST_POLL_INTERVAL,
        batch_size=settings.BROADCAST_BATCH_SIZE,
        sending_lease=settings.BROADCAST_SENDING_LEASE,
        shutdown_timeout=settings.BROADCAST_SHUTDOWN_TIMEOUT,
    )


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(build_scheduler().run_forever())


if __name__ == "__main__":
    main()
