"""Scheduling error taxonomy.

Every error carries the HTTP status the public surface maps it to, so the
routers can translate without knowing which layer raised it.
"""


class SchedulingError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(SchedulingError, ValueError):
    """Malformed or missing input. Never retried.

    Also a ``ValueError`` so pydantic validators can raise it directly.
    """
    status_code = 400


class NotFoundError(SchedulingError):
    status_code = 404


class ConflictError(SchedulingError):
    """Slot overlap, lost booking race or a state rule violation."""
    status_code = 409


class InvalidTransitionError(ConflictError):
    status_code = 422

    def __init__(self, current: str, target: str | None = None, detail: str | None = None):
        if detail is None:
            if target is None:
                detail = f'Appointment with status "{current}" cannot be changed.'
            else:
                detail = f'Cannot change appointment status from "{current}" to "{target}".'
        super().__init__(detail)
        self.current = current
        self.target = target


class DependencyError(SchedulingError):
    """Storage or external service failure. Callers may retry."""
    status_code = 500
