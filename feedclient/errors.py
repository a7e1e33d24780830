"""Error taxonomy for the subscription client"""

from typing import Optional

NO_RESPONSE = "the feed service did not respond"
UNEXPECTED_RESPONSE = "unexpected response from the feed service"


class FeedClientError(Exception):
    """Base class for failures handled by the controller and feed session"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def user_message(self) -> str:
        """Message worth showing to the user"""
        return self.message


class ValidationError(FeedClientError):
    """Empty or malformed input, caught before any network call"""


class NetworkError(FeedClientError):
    """Transport failure - no response was received"""

    @property
    def user_message(self):
        return NO_RESPONSE


class ServerError(FeedClientError):
    """A response arrived carrying an application-level error"""

    def __init__(self, message: str, status_code: Optional[int] = None, server_message: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.server_message = server_message

    @property
    def user_message(self):
        return self.server_message or UNEXPECTED_RESPONSE


class TimeoutWarning(Warning):
    """No response within the watchdog interval. Observational, never raised."""

    def __init__(self, operation: str, timeout: float):
        super().__init__(f"{operation} still pending after {timeout:g}s")
        self.operation = operation
        self.timeout = timeout
