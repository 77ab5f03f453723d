"""Custom exceptions for the clientdesk backend."""


class ClientDeskError(Exception):
    """Base class for errors raised by the core services."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TooManyAttemptsError(ClientDeskError):
    """Raised when an identifier has used up its login attempts for the window.

    ``just_reached`` is True when the failing attempt itself consumed the last
    slot, and False when the attempt was rejected before verification.
    """

    def __init__(self, identifier: str, attempts: int, just_reached: bool):
        self.identifier = identifier
        self.attempts = attempts
        self.just_reached = just_reached
        if just_reached:
            message = "Too many failed login attempts, your account is locked. Please try again later"
        else:
            message = "Too many login attempts. Please try again later"
        super().__init__(message)


class InvalidCredentialsError(ClientDeskError):
    """Raised when the supplied email/password pair does not verify."""

    def __init__(self, identifier: str, attempts: int):
        self.identifier = identifier
        self.attempts = attempts
        super().__init__("Wrong email or password")


class InvalidArgumentError(ClientDeskError):
    """Raised for malformed listing input (page size, unknown fields)."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class NotFoundError(ClientDeskError):
    """Raised when a record does not exist."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")
