"""
Queue Driver Errors

Every error raised by the driver derives from IronQueueError so callers
can catch the whole family at a service boundary.
"""

from typing import Optional


class IronQueueError(Exception):
    """Base class for queue driver errors."""
    pass


class ConfigurationError(IronQueueError):
    """Raised when the driver is missing a collaborator it needs (e.g. no encrypter)."""
    pass


class DecryptionError(IronQueueError):
    """Raised when an encrypted payload cannot be decrypted."""
    pass


class MalformedPayloadError(IronQueueError):
    """Raised when a (decrypted) payload is not a valid job envelope."""
    pass


class HostedServiceFault(IronQueueError):
    """
    Raised for any error returned by IronMQ.

    Attributes:
        status_code: HTTP status returned by IronMQ, None for transport errors
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class JobNotRegisteredError(IronQueueError):
    """Raised when a job names a handler the dispatcher does not know."""
    pass
