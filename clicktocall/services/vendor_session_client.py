"""
Vendor Session Client - login/call exchange against the web PBX.

The session lives entirely in cookies set by the vendor host. The client
keeps one cookie jar for the process and derives its session state from that
jar instead of trusting an in-memory flag.

Wire contract:
    POST {login_path}?tenantWebName=/{tenant}&UserID={extension}&Password={password}
    POST {call_path}?origExt={extension}&destExt={number}
Both carry the cookie jar and follow redirects. A call that ends up on a
login-looking URL means the session expired.
"""

import re
from http.cookiejar import Cookie
from urllib.parse import quote

import httpx

from clicktocall.config import settings
from clicktocall.infrastructure.audit import activity_log as default_activity_log
from clicktocall.infrastructure.observability.logging import get_logger
from clicktocall.models.domain.session_domain import (
    CallOutcome,
    CookieInfo,
    LoginResult,
    SessionCredentials,
    SessionState,
)
from clicktocall.services.call_errors import (
    AuthenticationError,
    CallFailedError,
    NetworkError,
    SessionExpiredError,
)

logger = get_logger(__name__)

LOGIN_FAILED_MESSAGE = "Login failed. Please check your credentials."
SESSION_EXPIRED_MESSAGE = "Session expired. Please log in again."
NO_SESSION_COOKIE_WARNING = "Login succeeded but no new session cookie was set"

COOKIE_PREVIEW_LENGTH = 20
_PASSWORD_PARAM = re.compile(r"Password=[^&]+")

# Characters encodeURIComponent leaves alone beyond the unreserved set
_PASSWORD_SAFE_CHARS = "!*'()"


def redact_password(url: str) -> str:
    return _PASSWORD_PARAM.sub("Password=***", url)


def looks_like_login_url(url: httpx.URL) -> bool:
    return "login" in url.path.lower()


class VendorSessionClient:
    """
    Session state machine over the vendor cookie jar.

    LOGGED_OUT -> LOGGING_IN -> LOGGED_IN on a successful login;
    back to LOGGED_OUT on login failure, detected expiry or logout.
    """

    def __init__(
        self,
        base_url: str | None = None,
        login_path: str | None = None,
        call_path: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        activity=None,
    ):
        self.base_url = (base_url or settings.VENDOR_BASE_URL).rstrip("/")
        self.login_path = login_path or settings.VENDOR_LOGIN_PATH
        self.call_path = call_path or settings.VENDOR_CALL_PATH
        self.host = httpx.URL(self.base_url).host
        self.timeout = timeout or settings.VENDOR_REQUEST_TIMEOUT
        self.activity = activity or default_activity_log
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._login_in_flight = False

    @property
    def client(self) -> httpx.AsyncClient:
        """Shared client; its cookie jar is the session store."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Cookie jar inspection
    # ------------------------------------------------------------------

    def _cookie_matches_host(self, cookie: Cookie) -> bool:
        domain = cookie.domain.lstrip(".")
        return self.host == domain or self.host.endswith("." + domain)

    def host_cookies(self) -> list[Cookie]:
        return [cookie for cookie in self.client.cookies.jar if self._cookie_matches_host(cookie)]

    def describe_cookies(self) -> list[CookieInfo]:
        return [
            CookieInfo(
                name=cookie.name,
                value_preview=(cookie.value or "")[:COOKIE_PREVIEW_LENGTH],
                domain=cookie.domain,
                path=cookie.path,
                secure=bool(cookie.secure),
            )
            for cookie in self.host_cookies()
        ]

    def session_state(self) -> SessionState:
        """Current state, re-derived from the jar on every call."""
        if self._login_in_flight:
            return SessionState.LOGGING_IN
        if self.host_cookies():
            return SessionState.LOGGED_IN
        return SessionState.LOGGED_OUT

    def _drop_host_cookies(self) -> list[str]:
        removed = []
        for cookie in self.host_cookies():
            self.client.cookies.delete(cookie.name, domain=cookie.domain, path=cookie.path)
            removed.append(cookie.name)
        return removed

    async def _log_cookies(self, label: str) -> list[Cookie]:
        cookies = self.host_cookies()
        await self.activity.info(f"Cookies {label}: {len(cookies)} cookies")
        if cookies:
            await self.activity.info(f"Cookie names: {', '.join(c.name for c in cookies)}")
        return cookies

    async def _log_response(self, label: str, response: httpx.Response) -> str:
        await self.activity.info(
            f"{label} response: {response.status_code} {response.reason_phrase}"
        )
        await self.activity.info(f"Response URL: {redact_password(str(response.url))}")
        body = response.text
        if body:
            await self.activity.info(f"{label} response body ({len(body)} chars): {body}")
        else:
            await self.activity.info(f"{label} response body: (empty)")
        return body

    # ------------------------------------------------------------------
    # Protocol steps
    # ------------------------------------------------------------------

    def login_url(self, credentials: SessionCredentials) -> str:
        password = quote(credentials.password.get_secret_value(), safe=_PASSWORD_SAFE_CHARS)
        return (
            f"{self.base_url}{self.login_path}"
            f"?tenantWebName=/{credentials.tenant}"
            f"&UserID={credentials.extension}"
            f"&Password={password}"
        )

    def call_url(self, extension: str, destination: str) -> str:
        return f"{self.base_url}{self.call_path}?origExt={extension}&destExt={destination}"

    async def login(self, credentials: SessionCredentials) -> LoginResult:
        """
        Authenticate and establish the cookie session.

        Raises:
            NetworkError: Transport failure reaching the login endpoint
            AuthenticationError: Login endpoint returned a non-success status
        """
        url = self.login_url(credentials)
        await self.activity.info(f"Login URL: {redact_password(url)}")

        before = await self._log_cookies("before login")
        before_values = {(c.name, c.value) for c in before}

        self._login_in_flight = True
        try:
            await self.activity.info("Sending login request...")
            response = await self.client.post(url)
        except httpx.RequestError as exc:
            self._drop_host_cookies()
            await self.activity.error(
                f"Login network error: {exc}", details={"error_type": type(exc).__name__}
            )
            raise NetworkError(
                f"Login failed: network error ({exc})", origin="login"
            ) from exc
        finally:
            self._login_in_flight = False

        after = self.host_cookies()
        await self.activity.info(f"Cookies after login: {len(after)} cookies")
        for info in self.describe_cookies():
            await self.activity.info(
                f"Cookie {info.name}: value={info.value_preview}..., "
                f"path={info.path}, secure={info.secure}"
            )
        await self._log_response("Login", response)

        if not response.is_success:
            self._drop_host_cookies()
            await self.activity.error(
                f"Login failed with status: {response.status_code} {response.reason_phrase}"
            )
            raise AuthenticationError(LOGIN_FAILED_MESSAGE, status_code=response.status_code)

        created = any((c.name, c.value) not in before_values for c in after)
        warning = None
        if not created:
            warning = NO_SESSION_COOKIE_WARNING
            await self.activity.warning(warning)

        await self.activity.success("Login request completed successfully")
        logger.info(
            "Vendor login succeeded",
            host=self.host,
            status_code=response.status_code,
            session_cookie_created=created,
        )

        return LoginResult(
            status_code=response.status_code,
            final_url=redact_password(str(response.url)),
            session_cookie_created=created,
            cookie_names=[c.name for c in after],
            warning=warning,
        )

    async def call(self, extension: str, destination: str) -> CallOutcome:
        """
        Ask the PBX to ring `extension` and connect it to `destination`.

        Raises:
            NetworkError: Transport failure reaching the call endpoint
            SessionExpiredError: The request was bounced to the login page
            CallFailedError: Non-success status with the session intact
        """
        url = self.call_url(extension, destination)
        await self.activity.info(f"Call URL: {url}")

        cookies = await self._log_cookies("before call")
        if not cookies:
            await self.activity.warning("No cookies found! This will likely fail.")

        try:
            await self.activity.info("Sending click-to-call request...")
            response = await self.client.post(url)
        except httpx.RequestError as exc:
            await self.activity.error(
                f"Call network error: {exc}", details={"error_type": type(exc).__name__}
            )
            raise NetworkError(f"Call failed: network error ({exc})", origin="call") from exc

        await self.activity.info(f"Response headers: {dict(response.headers)}")
        body = await self._log_response("Call", response)

        if looks_like_login_url(response.url):
            removed = self._drop_host_cookies()
            await self.activity.error(
                "Session expired or cookies not sent properly",
                details={"final_url": str(response.url), "removed_cookies": removed},
            )
            logger.warning("Vendor session expired", host=self.host)
            raise SessionExpiredError(SESSION_EXPIRED_MESSAGE, status_code=response.status_code)

        if not response.is_success:
            message = f"Call failed: {response.status_code} {response.reason_phrase}"
            await self.activity.error(message)
            raise CallFailedError(message, status_code=response.status_code)

        await self.activity.success("Call request completed successfully")
        return CallOutcome(destination=destination, response=body)

    async def logout(self) -> list[str]:
        """
        Remove every vendor cookie individually.

        Returns:
            list[str]: Names of the removed cookies
        """
        removed = []
        for name in self._drop_host_cookies():
            removed.append(name)
            await self.activity.info(f"Removed cookie: {name}")

        remaining = self.host_cookies()
        if remaining:
            raise RuntimeError(
                f"Vendor cookies still present after logout: {[c.name for c in remaining]}"
            )
        return removed


# Global instance
vendor_session_client = VendorSessionClient()
