"""Error taxonomy shared by every autoinvite component."""


class AutoInviteError(Exception):
    """Base class for all autoinvite errors."""


class ConfigError(AutoInviteError):
    """The configuration file is missing or malformed. Fatal at startup."""


class AuthError(AutoInviteError):
    """An account could not be authenticated. The account is skipped."""


class TransportError(AutoInviteError):
    """A single request to the homeserver failed."""

    def __init__(self, message: str, status_code: str | None = None):
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(AutoInviteError):
    """A durable record could not be written."""


class HandlerError(AutoInviteError):
    """Handling of one event failed. Isolated per event by the dispatcher."""
