import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from cliniclink.core.clock import LocalSlot
from cliniclink.core.db import run_store
from cliniclink.core.exceptions import BookingRejected, NotFound
from cliniclink.models.appointment import Appointment, AppointmentCreate
from cliniclink.models.reminder import ReminderPreference
from cliniclink.services.doctor_catalog import get_doctor
from cliniclink.services.scheduling import ensure_cancellable, validate_booking
from cliniclink.services.slot_service import get_doctor_appointments_on_date

logger = logging.getLogger(__name__)


async def create_appointment(
    session: AsyncSession, user_id: int | None, data: AppointmentCreate, now: datetime
) -> Appointment:
    """Validate the requested slot and persist it.

    Raises a BookingRejected subclass on the first failing rule; nothing is
    written unless every rule passes.
    """
    slot = LocalSlot(data.date, data.time)
    doctor = get_doctor(data.doctor_id)
    existing: list[Appointment] = []
    if doctor is not None:
        existing = await get_doctor_appointments_on_date(session, doctor.id, slot.date)
    try:
        validate_booking(slot, doctor, data.reason, existing, user_id, now)
    except BookingRejected as e:
        logger.info("Booking rejected (%s): doctor=%s slot=%s", e.code, data.doctor_id, slot)
        raise
    appointment = Appointment(
        user_id=user_id,
        doctor_id=doctor.id,
        doctor_name=doctor.name,
        specialty=doctor.specialty,
        date=slot.date,
        time=slot.time,
        reason=data.reason.strip(),
    )
    session.add(appointment)
    await run_store(session.flush())
    await run_store(session.refresh(appointment))
    logger.info("Booked appointment %s: doctor=%s slot=%s", appointment.id, doctor.id, slot)
    return appointment


async def list_appointments_for_user(session: AsyncSession, user_id: int) -> list[Appointment]:
    result = await run_store(
        session.execute(
            select(Appointment)
            .where(Appointment.user_id == user_id)
            .order_by(Appointment.date, Appointment.time)
        )
    )
    return list(result.scalars().all())


async def get_user_appointment(
    session: AsyncSession, appointment_id: int, user_id: int
) -> Appointment:
    result = await run_store(
        session.execute(
            select(Appointment).where(
                Appointment.id == appointment_id,
                Appointment.user_id == user_id,
            )
        )
    )
    appointment = result.scalar_one_or_none()
    if not appointment:
        raise NotFound()
    return appointment


async def cancel_appointment(
    session: AsyncSession, appointment_id: int, user_id: int, now: datetime
) -> None:
    """Delete the appointment and every reminder entry pointing at it."""
    appointment = await get_user_appointment(session, appointment_id, user_id)
    ensure_cancellable(appointment, now)
    await run_store(
        session.execute(
            delete(ReminderPreference).where(ReminderPreference.appointment_id == appointment_id)
        )
    )
    await run_store(session.delete(appointment))
    await run_store(session.flush())
    logger.info("Cancelled appointment %s for user %s", appointment_id, user_id)
