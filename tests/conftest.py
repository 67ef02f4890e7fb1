import httpx
import pytest

from clicktocall.infrastructure.audit.activity_log import ActivityLog
from clicktocall.services.call_history_service import CallHistoryService
from clicktocall.services.call_service import CallService
from clicktocall.services.preferences_service import PreferencesService
from clicktocall.services.vendor_session_client import VendorSessionClient

VENDOR_BASE_URL = "https://pbx.example.net"
LOGIN_PATH = "/webadmin/en/user/jsp/ProcessLogin.jsp"
CALL_PATH = "/webadmin/en/user/jsp/ProcessClickToCall.jsp"


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool:
        self.store[key] = value
        return True

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def delete(self, key: str) -> bool:
        return self.store.pop(key, None) is not None

    async def ping(self) -> bool:
        return True


class FakeVendor:
    """Scriptable stand-in for the PBX web endpoints."""

    def __init__(self):
        self.login_status = 200
        self.set_session_cookie = True
        self.call_status = 200
        self.call_redirects_to_login = False
        self.fail_login_transport = False
        self.fail_call_transport = False
        self.requests: list[httpx.Request] = []
        self._session_counter = 0

    def login_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == LOGIN_PATH and r.method == "POST"]

    def call_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == CALL_PATH]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == LOGIN_PATH:
            if request.method == "GET":
                return httpx.Response(200, text="<form>Please log in</form>")
            if self.fail_login_transport:
                raise httpx.ConnectError("connection refused", request=request)
            headers = {}
            if self.login_status == 200 and self.set_session_cookie:
                self._session_counter += 1
                headers["set-cookie"] = f"JSESSIONID=session{self._session_counter}; Path=/"
            return httpx.Response(self.login_status, headers=headers, text="OK")

        if request.url.path == CALL_PATH:
            if self.fail_call_transport:
                raise httpx.ReadTimeout("timed out", request=request)
            if self.call_redirects_to_login:
                return httpx.Response(302, headers={"location": LOGIN_PATH})
            return httpx.Response(self.call_status, text="Call placed")

        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def activity(fake_redis):
    log = ActivityLog(store=fake_redis)
    log.set_enabled(True)
    return log


@pytest.fixture
def preferences(fake_redis):
    return PreferencesService(store=fake_redis)


@pytest.fixture
def history(fake_redis, activity):
    return CallHistoryService(store=fake_redis, activity=activity)


@pytest.fixture
def vendor():
    return FakeVendor()


@pytest.fixture
def session_client(vendor, activity):
    return VendorSessionClient(
        base_url=VENDOR_BASE_URL,
        login_path=LOGIN_PATH,
        call_path=CALL_PATH,
        transport=vendor.transport(),
        activity=activity,
    )


@pytest.fixture
def calls(session_client, preferences, history, activity):
    return CallService(
        session_client=session_client,
        preferences=preferences,
        history=history,
        activity=activity,
    )
