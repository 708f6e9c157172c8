from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class ReminderPreference(SQLModel, table=True):
    """One entry of a user's appointment id -> "notify me" map."""

    __tablename__ = "reminder_preferences"
    __table_args__ = (UniqueConstraint("user_id", "appointment_id", name="uq_reminder_user_appointment"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    appointment_id: int = Field(index=True)
    enabled: bool = False
