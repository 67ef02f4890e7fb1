"""
Error taxonomy for the click-to-call flow.

Every failure reaches the caller once, as one of these, with the stage it
came from (config, login, call or request) so the UI can steer the user.
"""


class ClickToCallError(Exception):
    """Base exception for click-to-call failures."""

    error_code = "click_to_call_error"

    def __init__(self, message: str, origin: str = "call", status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.origin = origin
        self.status_code = status_code

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "error_code": self.error_code,
            "origin": self.origin,
        }


class ConfigurationError(ClickToCallError):
    """Tenant, extension or password missing from preferences."""

    error_code = "configuration_error"

    def __init__(self, message: str):
        super().__init__(message, origin="config")


class AuthenticationError(ClickToCallError):
    """Login endpoint rejected the credentials."""

    error_code = "authentication_error"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, origin="login", status_code=status_code)


class SessionExpiredError(ClickToCallError):
    """Call request was redirected back to the login page."""

    error_code = "session_expired"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, origin="call", status_code=status_code)


class NetworkError(ClickToCallError):
    """Transport failure talking to the vendor host."""

    error_code = "network_error"


class CallFailedError(ClickToCallError):
    """Call endpoint answered with a non-success status."""

    error_code = "call_failed"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, origin="call", status_code=status_code)


class InvalidPhoneNumberError(ClickToCallError):
    error_code = "invalid_phone_number"

    def __init__(self, message: str):
        super().__init__(message, origin="request")


class CallInProgressError(ClickToCallError):
    """A second call was requested while one is still in flight."""

    error_code = "call_in_progress"

    def __init__(self, message: str = "A call is already being placed. Please wait."):
        super().__init__(message, origin="request")
