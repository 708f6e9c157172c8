from cliniclink.models.user import User, UserCreate, UserPublic, UserUpdate
from cliniclink.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentPublic,
    UpcomingAppointmentPublic,
)
from cliniclink.models.reminder import ReminderPreference

__all__ = [
    "User",
    "UserCreate",
    "UserPublic",
    "UserUpdate",
    "Appointment",
    "AppointmentCreate",
    "AppointmentPublic",
    "UpcomingAppointmentPublic",
    "ReminderPreference",
]
