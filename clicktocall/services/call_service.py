"""
Call Service - orchestrates one click-to-call request.

Order of operations for place_call:
1. Read credentials and dial prefix (configuration error if incomplete)
2. Log in through the vendor session client
3. Mark the logged-in indicator in preferences
4. Prefix the number
5. Place the call, then record the un-prefixed number in history

Only one call runs at a time; a second request while one is in flight is
rejected with CallInProgressError.
"""

import asyncio

from clicktocall.config import settings
from clicktocall.infrastructure.audit import activity_log as default_activity_log
from clicktocall.infrastructure.observability.logging import get_logger
from clicktocall.models.domain.session_domain import (
    CallResult,
    LoginCheckResult,
    LoginStatus,
    SessionCredentials,
    SessionState,
)
from clicktocall.recognition.resolver import to_dialable
from clicktocall.services.call_errors import (
    CallInProgressError,
    ClickToCallError,
    ConfigurationError,
    InvalidPhoneNumberError,
)
from clicktocall.services.call_history_service import call_history_service
from clicktocall.services.preferences_service import preferences_service
from clicktocall.services.vendor_session_client import vendor_session_client

logger = get_logger(__name__)

MISSING_CREDENTIALS_MESSAGE = "Please configure your Vaspian credentials in the extension popup"


def apply_dial_prefix(phone_number: str, dial_prefix: str | None) -> str:
    """Prepend the outbound prefix; an empty prefix dials the number as-is."""
    return f"{dial_prefix}{phone_number}" if dial_prefix else phone_number


class CallService:
    def __init__(self, session_client=None, preferences=None, history=None, activity=None):
        self.session_client = session_client or vendor_session_client
        self.preferences = preferences or preferences_service
        self.history = history or call_history_service
        self.activity = activity or default_activity_log
        self._in_flight = asyncio.Lock()

    @property
    def call_in_progress(self) -> bool:
        return self._in_flight.locked()

    async def place_call(self, raw_number: str) -> CallResult:
        """
        Place a call to `raw_number` from the configured extension.

        Raises:
            CallInProgressError: Another call is still running
            InvalidPhoneNumberError: Nothing dialable in `raw_number`
            ConfigurationError: Tenant, extension or password missing
            AuthenticationError, NetworkError: Login step failed
            SessionExpiredError, CallFailedError, NetworkError: Call step failed
        """
        if self._in_flight.locked():
            await self.activity.warning(f"Call request for {raw_number} rejected: call in progress")
            raise CallInProgressError()

        async with self._in_flight:
            try:
                return await self._place_call(raw_number)
            except ClickToCallError as e:
                await self.activity.error(
                    f"Click-to-call failed: {e.message}",
                    details={"error_code": e.error_code, "origin": e.origin},
                )
                raise

    async def _place_call(self, raw_number: str) -> CallResult:
        phone_number = to_dialable(raw_number)
        if not phone_number:
            raise InvalidPhoneNumberError("Please enter a phone number")

        await self.activity.info(f"Starting click-to-call for: {phone_number}")

        prefs = await self.preferences.get_preferences()
        await self.activity.info(
            f"Retrieved settings: tenant={prefs.tenant}, extension={prefs.extension}, "
            f"prefix={prefs.dial_prefix or 'none'}"
        )

        credentials = prefs.credentials()
        if not credentials.is_complete():
            raise ConfigurationError(MISSING_CREDENTIALS_MESSAGE)

        await self.activity.info("Attempting login to Vaspian...")
        login_result = await self.session_client.login(credentials)
        await self.activity.success("Login successful")

        await self.preferences.set_logged_in(True)

        destination = apply_dial_prefix(phone_number, prefs.dial_prefix)
        await self.activity.info(
            f"Initiating call to: {destination} (original: {phone_number}) "
            f"from extension: {credentials.extension}"
        )

        outcome = await self.session_client.call(credentials.extension, destination)
        await self.activity.success(f"Call successfully initiated to {phone_number}")

        history_recorded = True
        try:
            await self.history.append(phone_number)
        except Exception as e:
            # The call is already ringing; report the bookkeeping failure instead
            history_recorded = False
            await self.activity.error(f"Failed to save call history: {e}")

        logger.info(
            "Call placed",
            extension=credentials.extension,
            destination=destination,
            history_recorded=history_recorded,
        )

        return CallResult(
            message=outcome.message,
            phone_number=phone_number,
            destination=destination,
            extension=credentials.extension,
            response=outcome.response,
            session_warning=login_result.warning,
            history_recorded=history_recorded,
        )

    async def test_login(self, tenant: str, extension: str, password: str) -> LoginCheckResult:
        """Validate credentials without storing them; updates the logged-in indicator."""
        await self.activity.info("Testing login credentials...")
        credentials = SessionCredentials(tenant=tenant, extension=extension, password=password)

        if not credentials.is_complete():
            await self.preferences.set_logged_in(False)
            return LoginCheckResult(is_valid=False, error="Tenant, extension and password are required")

        try:
            result = await self.session_client.login(credentials)
        except ClickToCallError as e:
            await self.activity.error("Credential test failed")
            await self.preferences.set_logged_in(False)
            return LoginCheckResult(is_valid=False, error=e.message)

        await self.activity.success("Credential test successful")
        await self.preferences.set_logged_in(True)
        return LoginCheckResult(is_valid=True, warning=result.warning)

    async def get_login_status(self) -> LoginStatus:
        """
        Report readiness from the cookie jar, correcting the cached indicator.
        """
        prefs = await self.preferences.get_preferences()
        state = self.session_client.session_state()
        has_credentials = prefs.credentials().is_complete()
        is_logged_in = has_credentials and state == SessionState.LOGGED_IN

        if prefs.is_logged_in != is_logged_in and state != SessionState.LOGGING_IN:
            logger.info(
                "Correcting cached login indicator",
                cached=prefs.is_logged_in,
                derived=is_logged_in,
            )
            await self.preferences.set_logged_in(is_logged_in)

        return LoginStatus(
            is_logged_in=is_logged_in,
            session_state=state,
            has_credentials=has_credentials,
            cached_is_logged_in=prefs.is_logged_in,
            tenant=prefs.tenant or None,
            extension=prefs.extension or None,
        )

    async def logout(self) -> None:
        """Drop the vendor session, stored credentials and call history."""
        await self.activity.info("Logging out...")
        try:
            await self.session_client.logout()

            raw = await self.preferences.get_raw(("dialPrefix",))
            await self.preferences.set_preferences(
                tenant="",
                extension="",
                password="",
                dialPrefix=raw.get("dialPrefix", settings.DEFAULT_DIAL_PREFIX),
                isLoggedIn=False,
            )
            await self.history.clear()
        except Exception as e:
            await self.activity.error(f"Logout failed: {e}")
            raise

        await self.activity.success("Logged out successfully - credentials and history cleared")


# Global instance
call_service = CallService()
