"""Error hierarchy for the scheduling engine.

Every kind carries a stable ``code`` and an HTTP status so the API layer can
tell callers apart "fix your input" (400), "unknown id" (404), "this truly
clashes" (409) and "try again later" (503).
"""


class SchedulingError(Exception):
    """Base exception for all scheduling errors."""

    code = "scheduling_error"
    status_code = 400

    def __init__(self, message: str, **context):
        self.message = message
        self.context = context
        super().__init__(message)

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message, **self.context}


class InvalidInput(SchedulingError):
    """Malformed day/time, zero-length slot, empty or cross-college course list."""

    code = "invalid_input"
    status_code = 400


class NotFound(SchedulingError):
    """Unknown student, course, semester or slot."""

    code = "not_found"
    status_code = 404


class ScheduleConflict(SchedulingError):
    """Two slots overlap on the same weekday."""

    code = "schedule_conflict"
    status_code = 409

    def __init__(self, message: str, conflicting_with=None, **context):
        self.conflicting_with = conflicting_with
        super().__init__(message, conflicting_with=conflicting_with, **context)


class DuplicateEnrollment(SchedulingError):
    """Student already holds (or requested twice) a course in the semester."""

    code = "duplicate_enrollment"
    status_code = 409

    def __init__(self, message: str, course_ids=None):
        self.course_ids = list(course_ids or [])
        super().__init__(message, course_ids=self.course_ids)


class LockUnavailable(SchedulingError):
    """Lease could not be acquired within the retry budget."""

    code = "lock_unavailable"
    status_code = 503

    def __init__(self, message: str, resource: str):
        self.resource = resource
        super().__init__(message, resource=resource)
