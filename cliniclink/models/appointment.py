import datetime as dt
from datetime import datetime

from sqlalchemy import DateTime, Index
from sqlmodel import Field, SQLModel

from cliniclink.core.clock import LocalSlot, utc_naive_now


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_doctor_id_date", "doctor_id", "date"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    doctor_id: str
    doctor_name: str
    specialty: str
    date: dt.date  # local clinic date
    time: dt.time  # local clinic time-of-day, minute precision
    reason: str
    # naive UTC, stored as TIMESTAMP WITHOUT TIME ZONE
    created_at: datetime = Field(default_factory=utc_naive_now, sa_type=DateTime)

    @property
    def slot(self) -> LocalSlot:
        return LocalSlot(self.date, self.time)

    @property
    def instant(self) -> datetime:
        return self.slot.instant


class AppointmentCreate(SQLModel):
    doctor_id: str | None = None
    date: dt.date
    time: dt.time
    reason: str | None = None


class AppointmentPublic(SQLModel):
    id: int
    user_id: int
    doctor_id: str
    doctor_name: str
    specialty: str
    date: dt.date
    time: dt.time
    reason: str
    created_at: datetime


class UpcomingAppointmentPublic(AppointmentPublic):
    reminder: bool = False
