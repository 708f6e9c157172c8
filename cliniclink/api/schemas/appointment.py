import datetime as dt
from datetime import datetime

from pydantic import BaseModel, field_validator

from cliniclink.models.appointment import AppointmentPublic, UpcomingAppointmentPublic


class SlotInfo(BaseModel):
    start: datetime  # local clinic time
    available: bool


class AvailableSlotsResponse(BaseModel):
    doctor_id: str
    date: str  # YYYY-MM-DD
    slots: list[SlotInfo]


class BookAppointmentRequest(BaseModel):
    doctor_id: str | None = None
    date: dt.date
    time: dt.time
    reason: str | None = None

    @field_validator("time")
    @classmethod
    def minute_precision(cls, v: dt.time) -> dt.time:
        if v.second or v.microsecond:
            raise ValueError("time must have minute precision (HH:MM)")
        if v.tzinfo is not None:
            raise ValueError("time must be local clinic time without an offset")
        return v


class UpcomingAppointmentsResponse(BaseModel):
    appointments: list[UpcomingAppointmentPublic]


class HistoryResponse(BaseModel):
    doctors: list[str]
    appointments: list[AppointmentPublic]


class NotificationEventPublic(BaseModel):
    title: str
    body: str
    fire_at: datetime | None = None  # None = delivered immediately


class ReminderToggleResponse(BaseModel):
    appointment_id: int
    enabled: bool
    events: list[NotificationEventPublic]
