"""Errors raised while offboarding a user's calendar."""


class OffboardingError(Exception):
    """Base class for offboarding failures."""


class AuthError(OffboardingError):
    """Bearer token could not be acquired. Fatal."""


class UserNotFoundError(OffboardingError):
    """Directory lookup for the target user failed. Fatal."""


class FetchError(OffboardingError):
    """A page of the event listing could not be retrieved. Fatal."""


class CancelError(OffboardingError):
    """A single event could not be cancelled. Counted, not fatal."""

    def __init__(self, message: str, event_id: str = None, status_code: int = None):
        super().__init__(message)
        self.event_id = event_id
        self.status_code = status_code
