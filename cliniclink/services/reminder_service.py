import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from cliniclink.core.db import run_store
from cliniclink.models.appointment import Appointment
from cliniclink.models.reminder import ReminderPreference
from cliniclink.services.appointment_service import (
    get_user_appointment,
    list_appointments_for_user,
)
from cliniclink.services.notification_channel import NotificationChannel
from cliniclink.services.scheduling import (
    NotificationEvent,
    annotate_reminders,
    derive_notification_events,
    upcoming,
)

logger = logging.getLogger(__name__)


@dataclass
class ReminderToggle:
    appointment_id: int
    enabled: bool
    events: list[NotificationEvent] = field(default_factory=list)


async def get_preferences(session: AsyncSession, user_id: int) -> dict[int, bool]:
    """The user's appointment id -> notify flag map. Missing ids mean False."""
    result = await run_store(
        session.execute(
            select(ReminderPreference.appointment_id, ReminderPreference.enabled).where(
                ReminderPreference.user_id == user_id
            )
        )
    )
    return {appointment_id: enabled for appointment_id, enabled in result.all()}


def _insert_for(session: AsyncSession):
    if session.get_bind().dialect.name == "postgresql":
        return postgresql_insert
    return sqlite_insert


async def set_preference(
    session: AsyncSession, user_id: int, appointment_id: int, enabled: bool
) -> None:
    """Merge one entry into the user's map; other entries are left untouched.

    A single upsert on the (user, appointment) constraint, so two first-time
    toggles racing each other both land on the same row.
    """
    insert = _insert_for(session)
    stmt = (
        insert(ReminderPreference)
        .values(user_id=user_id, appointment_id=appointment_id, enabled=enabled)
        .on_conflict_do_update(
            index_elements=["user_id", "appointment_id"],
            set_={"enabled": enabled},
        )
    )
    await run_store(session.execute(stmt))


async def list_upcoming_with_reminders(
    session: AsyncSession, user_id: int, now: datetime
) -> list[tuple[Appointment, bool]]:
    appointments = upcoming(await list_appointments_for_user(session, user_id), now)
    preferences = await get_preferences(session, user_id)
    return annotate_reminders(appointments, preferences)


async def toggle_reminder(
    session: AsyncSession, user_id: int, appointment_id: int, now: datetime
) -> ReminderToggle:
    """Flip the reminder flag and commit it.

    Turning the reminder on returns the events to hand to the notification
    channel; turning it off returns none.
    """
    appointment = await get_user_appointment(session, appointment_id, user_id)
    preferences = await get_preferences(session, user_id)
    enabled = not preferences.get(appointment_id, False)
    await set_preference(session, user_id, appointment_id, enabled)
    # The flag is the source of truth; persist it before any hand-off.
    await run_store(session.commit())
    logger.info("Reminder for appointment %s set to %s by user %s", appointment_id, enabled, user_id)
    events = derive_notification_events(appointment, now) if enabled else []
    return ReminderToggle(appointment_id=appointment_id, enabled=enabled, events=events)


def dispatch_events(
    channel: NotificationChannel, recipient: str, events: list[NotificationEvent]
) -> list[str]:
    """Hand events to the channel. Failures are logged, never raised."""
    registrations: list[str] = []
    for event in events:
        try:
            registrations.append(channel.schedule(recipient, event))
        except Exception as e:
            logger.exception(
                "Notification hand-off failed for appointment %s (%s): %s",
                event.appointment_id,
                event.title,
                e,
            )
    return registrations
