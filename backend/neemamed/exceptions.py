class NeemaMedError(Exception):
    """Base class for every error raised by the portal backend."""

    def __init__(self, reason: str, details: dict = None):
        self.reason = reason
        self.details = details or {}
        super().__init__(reason)


class StoreError(NeemaMedError):
    """The underlying storage failed to read or persist a collection."""


class DomainError(NeemaMedError):
    """Expected, recoverable condition the caller is meant to handle."""


class NotFoundError(DomainError):
    pass


class AlreadyExistsError(DomainError):
    pass


class InvalidCredentialsError(DomainError):
    def __init__(self, reason: str = "Invalid email or password", details: dict = None):
        super().__init__(reason, details)


class NoSessionError(DomainError):
    def __init__(self, reason: str = "No active session", details: dict = None):
        super().__init__(reason, details)


class AccessDeniedError(DomainError):
    pass


class ValidationFailedError(DomainError):
    pass
