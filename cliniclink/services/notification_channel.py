import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from cliniclink.core.clock import local_now
from cliniclink.services.email_service import send_email_sync
from cliniclink.services.scheduling import NotificationEvent

logger = logging.getLogger(__name__)


class NotificationChannel(Protocol):
    def schedule(self, recipient: str, event: NotificationEvent) -> str:
        """Register ``event`` for delivery and return an opaque registration id."""
        ...


class EmailNotificationChannel:
    """Fire-and-forget delivery by email on the running event loop.

    Events without ``fire_at`` go out immediately; the rest sleep until their
    local fire time. Pending timers live in memory only and are cancelled by
    ``aclose()`` at shutdown.
    """

    def __init__(self, clock: Callable[[], datetime] = local_now) -> None:
        self._clock = clock
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, recipient: str, event: NotificationEvent) -> str:
        registration = str(uuid4())
        delay = 0.0
        if event.fire_at is not None:
            delay = max(0.0, (event.fire_at - self._clock()).total_seconds())
        task = asyncio.get_running_loop().create_task(
            self._deliver(registration, recipient, event, delay)
        )
        self._tasks[registration] = task
        task.add_done_callback(lambda _t: self._tasks.pop(registration, None))
        logger.debug(
            "Scheduled notification %s for appointment %s in %.0fs",
            registration,
            event.appointment_id,
            delay,
        )
        return registration

    async def _deliver(
        self, registration: str, recipient: str, event: NotificationEvent, delay: float
    ) -> None:
        if delay:
            await asyncio.sleep(delay)
        sent = await asyncio.to_thread(send_email_sync, recipient, event.title, event.body)
        if not sent:
            logger.info(
                "Notification %s for appointment %s not delivered: %s",
                registration,
                event.appointment_id,
                event.title,
            )

    async def aclose(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
