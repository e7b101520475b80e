"""
Exceptions raised by the protocol matching engine.

Only operational failures raise. Violations, warnings and
contraindications are returned as data.
"""

from typing import Optional


class ProtocolMatchingError(Exception):
    """Base class for matching engine errors."""
    pass


class InvalidRequest(ProtocolMatchingError):
    """Matching request is missing required input."""
    pass


class ConfigurationError(ProtocolMatchingError):
    """Weights, thresholds or settings are invalid."""
    pass


class RepositoryError(ProtocolMatchingError):
    """
    Protocol repository failed or timed out.

    Attributes:
        cause: Underlying exception, if any
        transient: True when a retry may succeed (timeouts, connection resets, 5xx)
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None, transient: bool = False):
        super().__init__(message)
        self.cause = cause
        self.transient = transient
        if cause is not None:
            self.__cause__ = cause
