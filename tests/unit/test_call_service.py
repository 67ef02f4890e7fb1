"""
Tests for the call orchestrator: credentials, login, prefix, call, history.
"""

import asyncio

import pytest

from clicktocall.models.domain.session_domain import CallOutcome, LoginResult, SessionState
from clicktocall.services.call_errors import (
    AuthenticationError,
    CallInProgressError,
    ConfigurationError,
    InvalidPhoneNumberError,
    SessionExpiredError,
)
from clicktocall.services.call_service import (
    MISSING_CREDENTIALS_MESSAGE,
    CallService,
    apply_dial_prefix,
)


async def _configure(preferences, dial_prefix="8"):
    await preferences.set_preferences(
        tenant="acme", extension="1001", password="secret", dialPrefix=dial_prefix
    )


def test_apply_dial_prefix():
    assert apply_dial_prefix("7169234121", "8") == "87169234121"
    assert apply_dial_prefix("7169234121", "") == "7169234121"
    assert apply_dial_prefix("7169234121", None) == "7169234121"


@pytest.mark.asyncio
async def test_place_call_prefixes_wire_number_but_not_history(calls, preferences, history, vendor):
    await _configure(preferences)

    result = await calls.place_call("(716) 923-4121")

    assert result.success is True
    assert result.phone_number == "7169234121"
    assert result.destination == "87169234121"
    assert result.extension == "1001"
    assert result.history_recorded is True

    [call_request] = vendor.call_requests()
    assert call_request.url.params["destExt"] == "87169234121"
    assert call_request.url.params["origExt"] == "1001"

    [entry] = await history.list_entries()
    assert entry.phone_number == "7169234121"
    assert entry.note == ""

    prefs = await preferences.get_preferences()
    assert prefs.is_logged_in is True


@pytest.mark.asyncio
async def test_login_happens_before_the_call(calls, preferences, vendor):
    await _configure(preferences)

    await calls.place_call("7169234121")

    paths = [request.url.path for request in vendor.requests]
    assert paths == [calls.session_client.login_path, calls.session_client.call_path]


@pytest.mark.asyncio
async def test_vanity_number_is_dialled_as_digits(calls, preferences, vendor):
    await _configure(preferences, dial_prefix="")

    result = await calls.place_call("1-855-VASPIAN")

    assert result.destination == "18558277426"
    assert vendor.call_requests()[0].url.params["destExt"] == "18558277426"


@pytest.mark.asyncio
async def test_missing_credentials_fail_without_network(calls, preferences, vendor, history):
    await preferences.set_preferences(tenant="acme", extension="1001")

    with pytest.raises(ConfigurationError) as exc_info:
        await calls.place_call("7169234121")

    assert exc_info.value.message == MISSING_CREDENTIALS_MESSAGE
    assert exc_info.value.origin == "config"
    assert vendor.requests == []
    assert await history.list_entries() == []


@pytest.mark.asyncio
async def test_empty_number_is_rejected(calls, vendor):
    with pytest.raises(InvalidPhoneNumberError):
        await calls.place_call(" (-) ")

    assert vendor.requests == []


@pytest.mark.asyncio
async def test_login_failure_stops_before_call(calls, preferences, vendor, history):
    await _configure(preferences)
    vendor.login_status = 403

    with pytest.raises(AuthenticationError):
        await calls.place_call("7169234121")

    assert vendor.call_requests() == []
    assert await history.list_entries() == []
    assert (await preferences.get_preferences()).is_logged_in is False


@pytest.mark.asyncio
async def test_expired_session_is_not_recorded(calls, preferences, vendor, history):
    await _configure(preferences)
    vendor.set_session_cookie = False
    vendor.call_redirects_to_login = True

    with pytest.raises(SessionExpiredError):
        await calls.place_call("7169234121")

    assert await history.list_entries() == []


@pytest.mark.asyncio
async def test_errors_are_recorded_in_activity_log(calls, preferences, vendor, activity):
    await _configure(preferences)
    vendor.login_status = 500

    with pytest.raises(AuthenticationError):
        await calls.place_call("7169234121")

    errors = [e for e in await activity.entries() if e.level == "error"]
    assert errors[-1].message == "Click-to-call failed: Login failed. Please check your credentials."
    assert errors[-1].details == {"error_code": "authentication_error", "origin": "login"}


@pytest.mark.asyncio
async def test_history_failure_is_reported_not_raised(session_client, preferences, activity):
    class BrokenHistory:
        async def append(self, phone_number, note=""):
            raise RuntimeError("disk full")

    await _configure(preferences)
    service = CallService(
        session_client=session_client,
        preferences=preferences,
        history=BrokenHistory(),
        activity=activity,
    )

    result = await service.place_call("7169234121")

    assert result.success is True
    assert result.history_recorded is False


@pytest.mark.asyncio
async def test_second_call_while_one_is_in_flight_is_rejected(preferences, history, activity):
    release = asyncio.Event()

    class SlowSessionClient:
        def __init__(self):
            self.calls = []

        async def login(self, credentials):
            await release.wait()
            return LoginResult(status_code=200, final_url="", session_cookie_created=True)

        async def call(self, extension, destination):
            self.calls.append(destination)
            return CallOutcome(destination=destination)

    await _configure(preferences)
    client = SlowSessionClient()
    service = CallService(
        session_client=client, preferences=preferences, history=history, activity=activity
    )

    first = asyncio.create_task(service.place_call("7169234121"))
    while not service.call_in_progress:
        await asyncio.sleep(0)

    with pytest.raises(CallInProgressError):
        await service.place_call("5855550100")

    release.set()
    result = await first

    assert result.phone_number == "7169234121"
    assert client.calls == ["87169234121"]
    assert service.call_in_progress is False


@pytest.mark.asyncio
async def test_test_login_reports_validity(calls, preferences, vendor):
    result = await calls.test_login("acme", "1001", "secret")
    assert result.is_valid is True
    assert (await preferences.get_preferences()).is_logged_in is True

    vendor.login_status = 401
    result = await calls.test_login("acme", "1001", "wrong")
    assert result.is_valid is False
    assert result.error == "Login failed. Please check your credentials."
    assert (await preferences.get_preferences()).is_logged_in is False


@pytest.mark.asyncio
async def test_test_login_rejects_blank_fields_without_network(calls, vendor):
    result = await calls.test_login("acme", "", "secret")

    assert result.is_valid is False
    assert vendor.requests == []


@pytest.mark.asyncio
async def test_login_status_follows_cookie_jar(calls, preferences):
    await _configure(preferences)
    await calls.place_call("7169234121")

    status = await calls.get_login_status()
    assert status.is_logged_in is True
    assert status.session_state == SessionState.LOGGED_IN
    assert status.tenant == "acme"

    # Cookies vanish behind the cached flag's back
    await calls.session_client.logout()

    status = await calls.get_login_status()
    assert status.is_logged_in is False
    assert status.cached_is_logged_in is True
    assert (await preferences.get_preferences()).is_logged_in is False


@pytest.mark.asyncio
async def test_logout_clears_credentials_and_history_but_keeps_prefix(calls, preferences, history):
    await _configure(preferences, dial_prefix="9")
    await calls.place_call("7169234121")

    await calls.logout()

    prefs = await preferences.get_preferences()
    assert prefs.tenant == ""
    assert prefs.extension == ""
    assert prefs.password.get_secret_value() == ""
    assert prefs.dial_prefix == "9"
    assert prefs.is_logged_in is False
    assert await history.list_entries() == []
    assert calls.session_client.session_state() == SessionState.LOGGED_OUT
