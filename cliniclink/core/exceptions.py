"""Domain errors surfaced to API callers.

Every error carries a stable ``code`` and HTTP status; the global exception
handler in ``cliniclink.main`` renders them as ``{"detail": ..., "code": ...}``.
"""

from fastapi import status


class ClinicError(Exception):
    code = "ClinicError"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Request could not be completed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


# --- Booking validation ---


class BookingRejected(ClinicError):
    status_code = 422


class PastTime(BookingRejected):
    code = "PastTime"
    message = "You cannot book an appointment in the past."


class OutsideBusinessHours(BookingRejected):
    code = "OutsideBusinessHours"
    message = "Appointments can only be booked between 9:00 AM and 5:00 PM."


class NonBusinessDay(BookingRejected):
    code = "NonBusinessDay"
    message = "Appointments can only be booked Monday to Friday."


class MissingFields(BookingRejected):
    code = "MissingFields"
    message = "Please choose a doctor and enter a reason for the visit."


class SlotConflict(BookingRejected):
    code = "SlotConflict"
    status_code = status.HTTP_409_CONFLICT
    message = "Another appointment is already booked within 45 minutes."


class Unauthenticated(BookingRejected):
    code = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Please log in to book an appointment."


# --- Cancellation ---


class CancellationTooLate(ClinicError):
    code = "CancellationTooLate"
    status_code = status.HTTP_409_CONFLICT
    message = "Appointments can only be cancelled at least 24 hours in advance."


# --- Store ---


class NotFound(ClinicError):
    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Appointment not found or not yours."


class StoreUnavailable(ClinicError):
    code = "StoreUnavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "The appointment store is unavailable. Please try again."
