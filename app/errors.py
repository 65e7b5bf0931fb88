# app/errors.py
"""
Scheduling errors.
Raised in scheduling.py and turned into HTTP responses by the handler in main.py.
"""


class SchedulingError(Exception):
    """Base class for all user-facing scheduling errors."""

    status_code = 400
    detail = "Request could not be processed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.detail
        super().__init__(self.detail)


class ValidationFailed(SchedulingError):
    status_code = 422
    detail = "Validation fails"


class InvalidProvider(SchedulingError):
    status_code = 400
    detail = "You can only create appointments with providers"


class SelfBookingNotAllowed(SchedulingError):
    status_code = 400
    detail = "Provider cannot create an appointment with itself"


class PastDateNotAllowed(SchedulingError):
    status_code = 422
    detail = "Past dates are not permitted"


class SlotUnavailable(SchedulingError):
    status_code = 409
    detail = "Appointment date is not available"


class NotFound(SchedulingError):
    status_code = 404
    detail = "Appointment not found"


class Forbidden(SchedulingError):
    status_code = 403
    detail = "You don't have permission to cancel this appointment"


class CancellationWindowExpired(SchedulingError):
    status_code = 400
    detail = "You can only cancel appointments 2 hours in advance"
