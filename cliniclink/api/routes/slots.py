import datetime as dt
from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cliniclink.api.deps import get_clock, get_session
from cliniclink.api.schemas.appointment import AvailableSlotsResponse, SlotInfo
from cliniclink.core.exceptions import NotFound
from cliniclink.services.doctor_catalog import get_doctor
from cliniclink.services.slot_service import get_available_slots_for_date

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=AvailableSlotsResponse)
async def available_slots(
    doctor_id: str = Query(...),
    date_param: dt.date = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AvailableSlotsResponse:
    """Candidate start times for one doctor and date (local clinic time), each with availability."""
    doctor = get_doctor(doctor_id)
    if doctor is None:
        raise NotFound("Unknown doctor")
    slots_with_availability = await get_available_slots_for_date(
        session, doctor.id, date_param, now=clock()
    )
    return AvailableSlotsResponse(
        doctor_id=doctor.id,
        date=date_param.isoformat(),
        slots=[SlotInfo(start=s, available=avail) for s, avail in slots_with_availability],
    )
