"""Scheduling rules: slot legality, spacing conflicts, reminder events and
cancellation cut-off.

Everything here is pure: callers pass in the current local time and whatever
appointments they fetched, and get back a decision or a derived list. The
store-backed services in ``appointment_service`` and ``reminder_service``
wrap these with queries and writes.
"""

import datetime as dt
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from cliniclink.core.clock import LocalSlot
from cliniclink.core.config import settings
from cliniclink.core.exceptions import (
    CancellationTooLate,
    MissingFields,
    NonBusinessDay,
    OutsideBusinessHours,
    PastTime,
    SlotConflict,
    Unauthenticated,
)
from cliniclink.models.appointment import Appointment
from cliniclink.services.doctor_catalog import Doctor

ALL_DOCTORS = "all"


@dataclass(frozen=True)
class NotificationEvent:
    """A reminder to hand to the notification channel. ``fire_at`` of None means now."""

    appointment_id: int
    title: str
    body: str
    fire_at: datetime | None = None


def _hour_label(hour: int) -> str:
    return f"{hour % 12 or 12}:00 {'AM' if hour < 12 else 'PM'}"


def _weekday_span() -> str:
    names = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
    days = sorted(settings.business_weekdays_set)
    if not days:
        return "on business days"
    return f"{names[days[0]]} to {names[days[-1]]}"


def check_slot_rules(slot: LocalSlot, now: datetime) -> None:
    """Future-time, business-hours and business-day checks, in that order."""
    if slot.instant <= now:
        raise PastTime()
    start = dt.time(settings.business_start_hour, 0)
    end = dt.time(settings.business_end_hour, 0)
    if not (start <= slot.time < end):
        raise OutsideBusinessHours(
            "Appointments can only be booked between "
            f"{_hour_label(settings.business_start_hour)} and {_hour_label(settings.business_end_hour)}."
        )
    if slot.date.weekday() not in settings.business_weekdays_set:
        raise NonBusinessDay(f"Appointments can only be booked {_weekday_span()}.")


def find_conflict(slot: LocalSlot, existing: Iterable[Appointment]) -> Appointment | None:
    """First appointment closer than the minimum spacing to ``slot``, if any.

    ``existing`` should already be scoped to one doctor and date; the window is
    symmetric and a gap of exactly the minimum spacing is allowed.
    """
    window = timedelta(minutes=settings.min_spacing_minutes)
    candidate = slot.instant
    for appointment in existing:
        if abs(appointment.instant - candidate) < window:
            return appointment
    return None


def validate_booking(
    slot: LocalSlot,
    doctor: Doctor | None,
    reason: str | None,
    existing: Iterable[Appointment],
    user_id: int | None,
    now: datetime,
) -> None:
    """Raise the first BookingRejected that applies; return None when the slot can be booked."""
    check_slot_rules(slot, now)
    if doctor is None or not (reason or "").strip():
        raise MissingFields()
    if find_conflict(slot, existing) is not None:
        raise SlotConflict(
            f"Another appointment is already booked within {settings.min_spacing_minutes} minutes."
        )
    if user_id is None:
        raise Unauthenticated()


def is_slot_open(slot: LocalSlot, existing: Iterable[Appointment], now: datetime) -> bool:
    try:
        check_slot_rules(slot, now)
    except (PastTime, OutsideBusinessHours, NonBusinessDay):
        return False
    return find_conflict(slot, existing) is None


def candidate_slots(day: dt.date) -> list[LocalSlot]:
    """Every start time on ``day`` within business hours, stepping slot_step_minutes."""
    if day.weekday() not in settings.business_weekdays_set:
        return []
    start = datetime.combine(day, dt.time(settings.business_start_hour, 0))
    end = datetime.combine(day, dt.time(settings.business_end_hour, 0))
    step = timedelta(minutes=settings.slot_step_minutes)
    slots: list[LocalSlot] = []
    current = start
    while current < end:
        slots.append(LocalSlot(current.date(), current.time()))
        current += step
    return slots


# --- Listing ---


def upcoming(appointments: Iterable[Appointment], now: datetime) -> list[Appointment]:
    """Appointments strictly after ``now``, earliest first."""
    return sorted((a for a in appointments if a.instant > now), key=lambda a: a.instant)


def derive_filtered(
    appointments: Iterable[Appointment],
    doctor_name: str | None = None,
    from_dt: datetime | None = None,
    to_dt: datetime | None = None,
) -> list[Appointment]:
    """History view: filter by doctor name and an inclusive range.

    The range only applies when both ends are given.
    """
    result = list(appointments)
    if doctor_name and doctor_name != ALL_DOCTORS:
        result = [a for a in result if a.doctor_name == doctor_name]
    if from_dt is not None and to_dt is not None:
        result = [a for a in result if from_dt <= a.instant <= to_dt]
    return sorted(result, key=lambda a: a.instant)


def doctor_options(appointments: Iterable[Appointment]) -> list[str]:
    """Distinct doctor names in first-seen order."""
    return list(dict.fromkeys(a.doctor_name for a in appointments))


# --- Reminders & cancellation ---


def derive_notification_events(appointment: Appointment, now: datetime) -> list[NotificationEvent]:
    events = [
        NotificationEvent(
            appointment_id=appointment.id,
            title="Reminder Set!",
            body=(
                f"You will be reminded {settings.reminder_lead_hours} hours before "
                f"your appointment with {appointment.doctor_name}"
            ),
        )
    ]
    fire_at = appointment.instant - timedelta(hours=settings.reminder_lead_hours)
    if fire_at > now:
        events.append(
            NotificationEvent(
                appointment_id=appointment.id,
                title="Upcoming Appointment",
                body=(
                    f"You have an appointment with {appointment.doctor_name} "
                    f"at {appointment.time.strftime('%H:%M')}"
                ),
                fire_at=fire_at,
            )
        )
    return events


def ensure_cancellable(appointment: Appointment, now: datetime) -> None:
    notice = timedelta(hours=settings.cancellation_notice_hours)
    if appointment.instant - now < notice:
        raise CancellationTooLate(
            "Appointments can only be cancelled at least "
            f"{settings.cancellation_notice_hours} hours in advance."
        )


def annotate_reminders(
    appointments: Sequence[Appointment], preferences: dict[int, bool]
) -> list[tuple[Appointment, bool]]:
    return [(a, preferences.get(a.id, False)) for a in appointments]
