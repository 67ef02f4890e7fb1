from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class SessionState(str, Enum):
    """Vendor session lifecycle, re-derived from the cookie jar."""

    LOGGED_OUT = "logged_out"
    LOGGING_IN = "logging_in"
    LOGGED_IN = "logged_in"


class SessionCredentials(BaseModel):
    """Tenant login read from preferences for the lifetime of one call."""

    tenant: str
    extension: str
    password: SecretStr

    def is_complete(self) -> bool:
        return bool(self.tenant and self.extension and self.password.get_secret_value())


class CookieInfo(BaseModel):
    """Diagnostic view of a vendor cookie (value truncated)."""

    name: str
    value_preview: str
    domain: str
    path: str
    secure: bool


class LoginResult(BaseModel):
    status_code: int
    final_url: str
    session_cookie_created: bool
    cookie_names: list[str] = Field(default_factory=list)
    warning: str | None = None


class CallOutcome(BaseModel):
    """Vendor response to a successful click-to-call request."""

    success: bool = True
    message: str = "Call initiated"
    destination: str
    response: str = ""


class CallResult(BaseModel):
    """What the orchestrator returns to the caller after a placed call."""

    success: bool = True
    message: str
    phone_number: str
    destination: str
    extension: str
    response: str = ""
    session_warning: str | None = None
    history_recorded: bool = True


class LoginCheckResult(BaseModel):
    is_valid: bool
    warning: str | None = None
    error: str | None = None


class LoginStatus(BaseModel):
    is_logged_in: bool
    session_state: SessionState
    has_credentials: bool
    cached_is_logged_in: bool
    tenant: str | None = None
    extension: str | None = None


class Preferences(BaseModel):
    """Snapshot of the user preference keys, camelCase on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    tenant: str = ""
    extension: str = ""
    password: SecretStr = SecretStr("")
    dial_prefix: str = Field(default="", alias="dialPrefix")
    click_to_call_enabled: bool = Field(default=True, alias="clickToCallEnabled")
    click_to_call_disabled_sites: list[str] = Field(
        default_factory=list, alias="clickToCallDisabledSites"
    )
    is_logged_in: bool = Field(default=False, alias="isLoggedIn")
    debug_logging: bool = Field(default=False, alias="debugLogging")
    use_sidebar: bool = Field(default=True, alias="useSidebar")

    def credentials(self) -> SessionCredentials:
        return SessionCredentials(
            tenant=self.tenant, extension=self.extension, password=self.password
        )


class CallHistoryEntry(BaseModel):
    """One placed call; (phone_number, timestamp) is the natural key."""

    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(alias="phoneNumber")
    timestamp: str
    note: str = ""

    def parsed_timestamp(self) -> datetime:
        return datetime.fromisoformat(self.timestamp)


class ActivityLogEntry(BaseModel):
    timestamp: str
    level: Literal["info", "success", "warning", "error"]
    message: str
    details: Any | None = None
