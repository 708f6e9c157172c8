import datetime as dt
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cliniclink.core.db import run_store
from cliniclink.models.appointment import Appointment
from cliniclink.services.scheduling import candidate_slots, is_slot_open


async def get_doctor_appointments_on_date(
    session: AsyncSession, doctor_id: str, day: dt.date
) -> list[Appointment]:
    """Existing bookings for one doctor on one date; the conflict check never looks wider."""
    result = await run_store(
        session.execute(
            select(Appointment).where(
                Appointment.doctor_id == doctor_id,
                Appointment.date == day,
            )
        )
    )
    return list(result.scalars().all())


async def get_available_slots_for_date(
    session: AsyncSession, doctor_id: str, day: dt.date, now: datetime
) -> list[tuple[datetime, bool]]:
    """Returns list of (slot_start, available) in local clinic time."""
    slots = candidate_slots(day)
    if not slots:
        return []
    existing = await get_doctor_appointments_on_date(session, doctor_id, day)
    return [(s.instant, is_slot_open(s, existing, now)) for s in slots]
