"""Local civil time for the clinic.

Appointment dates and times are wall-clock values in the clinic's zone and are
stored without an offset. They are combined into naive local datetimes and only
ever compared with ``local_now()``, never with the UTC ``created_at`` stamps the
store writes.
"""

import datetime as dt
from dataclasses import dataclass
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from cliniclink.core.config import settings


def local_now() -> datetime:
    """Current clinic wall-clock time as a naive datetime (minute arithmetic safe)."""
    if settings.clinic_timezone:
        return datetime.now(ZoneInfo(settings.clinic_timezone)).replace(tzinfo=None)
    return datetime.now()


def to_local_naive(value: datetime) -> datetime:
    """Clinic wall-clock reading of ``value``; naive values are taken as already local."""
    if value.tzinfo is None:
        return value
    if settings.clinic_timezone:
        return value.astimezone(ZoneInfo(settings.clinic_timezone)).replace(tzinfo=None)
    return value.astimezone().replace(tzinfo=None)


def utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


@dataclass(frozen=True, order=True)
class LocalSlot:
    date: dt.date
    time: dt.time

    @property
    def instant(self) -> datetime:
        return datetime.combine(self.date, self.time)

    @property
    def weekday(self) -> int:
        """Day of week with Sunday=0 ... Saturday=6."""
        return (self.date.weekday() + 1) % 7

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {self.time.strftime('%H:%M')}"
