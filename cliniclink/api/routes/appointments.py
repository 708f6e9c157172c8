import logging
from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cliniclink.api.deps import (
    get_clock,
    get_current_user,
    get_notification_channel,
    get_optional_user,
    get_session,
)
from cliniclink.api.schemas.appointment import (
    BookAppointmentRequest,
    HistoryResponse,
    NotificationEventPublic,
    ReminderToggleResponse,
    UpcomingAppointmentsResponse,
)
from cliniclink.core.clock import to_local_naive
from cliniclink.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentPublic,
    UpcomingAppointmentPublic,
)
from cliniclink.models.user import User
from cliniclink.services.appointment_service import (
    cancel_appointment,
    create_appointment,
    list_appointments_for_user,
)
from cliniclink.services.notification_channel import NotificationChannel
from cliniclink.services.reminder_service import (
    dispatch_events,
    list_upcoming_with_reminders,
    toggle_reminder,
)
from cliniclink.services.scheduling import derive_filtered, doctor_options

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


def _to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic(
        id=a.id,
        user_id=a.user_id,
        doctor_id=a.doctor_id,
        doctor_name=a.doctor_name,
        specialty=a.specialty,
        date=a.date,
        time=a.time,
        reason=a.reason,
        created_at=a.created_at,
    )


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    body: BookAppointmentRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User | None = Depends(get_optional_user),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AppointmentPublic:
    data = AppointmentCreate(
        doctor_id=body.doctor_id, date=body.date, time=body.time, reason=body.reason
    )
    user_id = current_user.id if current_user else None
    appointment = await create_appointment(session, user_id, data, now=clock())
    return _to_public(appointment)


@router.get("/upcoming", response_model=UpcomingAppointmentsResponse)
async def list_upcoming(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> UpcomingAppointmentsResponse:
    rows = await list_upcoming_with_reminders(session, current_user.id, now=clock())
    return UpcomingAppointmentsResponse(
        appointments=[
            UpcomingAppointmentPublic(**_to_public(a).model_dump(), reminder=enabled)
            for a, enabled in rows
        ]
    )


@router.get("/history", response_model=HistoryResponse)
async def appointment_history(
    doctor: str | None = Query(None, description='Doctor display name, or "all"'),
    from_dt: datetime | None = Query(None),
    to_dt: datetime | None = Query(None),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> HistoryResponse:
    appointments = await list_appointments_for_user(session, current_user.id)
    # Offsets are converted to clinic wall-clock time before comparing.
    if from_dt is not None:
        from_dt = to_local_naive(from_dt)
    if to_dt is not None:
        to_dt = to_local_naive(to_dt)
    filtered = derive_filtered(appointments, doctor_name=doctor, from_dt=from_dt, to_dt=to_dt)
    return HistoryResponse(
        doctors=doctor_options(appointments),
        appointments=[_to_public(a) for a in filtered],
    )


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_my_appointment(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> None:
    await cancel_appointment(session, appointment_id, current_user.id, now=clock())


@router.post("/{appointment_id}/reminder", response_model=ReminderToggleResponse)
async def toggle_my_reminder(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    clock: Callable[[], datetime] = Depends(get_clock),
    channel: NotificationChannel = Depends(get_notification_channel),
) -> ReminderToggleResponse:
    result = await toggle_reminder(session, current_user.id, appointment_id, now=clock())
    dispatch_events(channel, current_user.email, result.events)
    return ReminderToggleResponse(
        appointment_id=result.appointment_id,
        enabled=result.enabled,
        events=[
            NotificationEventPublic(title=e.title, body=e.body, fire_at=e.fire_at)
            for e in result.events
        ],
    )
