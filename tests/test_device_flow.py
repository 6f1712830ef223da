"""Tests for the OAuth device flow login."""

import asyncio
import io

import httpx
import pytest
from rich.console import Console

from spongewallet.device_flow import (
    CLIENT_ID,
    DEVICE_CODE_GRANT,
    DeviceFlowAuthenticator,
    DeviceFlowState,
    NullBrowserOpener,
    NullClipboard,
)
from spongewallet.exceptions import AccessDeniedError, DeviceCodeExpiredError, DeviceFlowError

from .conftest import AGENT_ID, API_KEY, BASE_URL

AUTHORIZATION_PATH = "/api/oauth/device/authorization"
TOKEN_PATH = "/api/oauth/device/token"
VERIFICATION_URI = "https://wallet.test/device"


class FakeTime:
    """A clock that only moves when the flow sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingClipboard:
    def __init__(self) -> None:
        self.copied = []

    def copy(self, text: str) -> None:
        self.copied.append(text)


class RecordingBrowser:
    def __init__(self) -> None:
        self.opened = []

    def open(self, url: str) -> None:
        self.opened.append(url)


class BrokenClipboard:
    def copy(self, text: str) -> None:
        raise RuntimeError("no clipboard on this machine")


class BrokenBrowser:
    def open(self, url: str) -> None:
        raise OSError("no display")


def device_code(expires_in=900, interval=5):
    return {
        "deviceCode": "dev-code-1",
        "userCode": "ABCD-1234",
        "verificationUri": VERIFICATION_URI,
        "expiresIn": expires_in,
        "interval": interval,
    }


def token(agent_id=AGENT_ID):
    payload = {"accessToken": "at-1", "tokenType": "Bearer", "apiKey": API_KEY}
    if agent_id is not None:
        payload["agentId"] = agent_id
    return payload


def pending(error="authorization_pending"):
    return {"error": error}


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def clipboard():
    return RecordingClipboard()


@pytest.fixture
def browser():
    return RecordingBrowser()


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def saved():
    return []


@pytest.fixture
def make_authenticator(api, fake_time, clipboard, browser, output, saved):
    def make(**overrides):
        kwargs = dict(
            base_url=BASE_URL,
            clipboard=clipboard,
            browser=browser,
            console=Console(file=output, force_terminal=False),
            sleep=fake_time.sleep,
            clock=fake_time.clock,
            transport=api.transport,
            save=saved.append,
        )
        kwargs.update(overrides)
        return DeviceFlowAuthenticator(**kwargs)

    return make


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_pending_then_approved(self, api, make_authenticator, fake_time, clipboard, browser):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, status_code=400, json=pending())
        api.add("POST", TOKEN_PATH, status_code=400, json=pending())
        api.add("POST", TOKEN_PATH, json=token())
        auth = make_authenticator()

        result = await auth.authenticate(agent_name="Trading Bot")

        assert result.api_key == API_KEY
        assert auth.state is DeviceFlowState.SUCCEEDED
        assert len(api.calls("POST", TOKEN_PATH)) == 3
        assert fake_time.sleeps == [5, 5, 5]
        assert clipboard.copied == ["ABCD-1234"]
        assert browser.opened == [VERIFICATION_URI]

    @pytest.mark.asyncio
    async def test_request_bodies(self, api, make_authenticator):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, json=token())

        await make_authenticator().authenticate(testnet=True, agent_name="Bot", key_type="agent")

        (authorization,) = api.calls("POST", AUTHORIZATION_PATH)
        body = api.body(authorization)
        assert body["clientId"] == CLIENT_ID
        assert body["testnet"] is True
        assert body["agentName"] == "Bot"
        assert body["keyType"] == "agent"

        (poll,) = api.calls("POST", TOKEN_PATH)
        assert api.body(poll) == {"grantType": DEVICE_CODE_GRANT, "deviceCode": "dev-code-1", "clientId": CLIENT_ID}

    @pytest.mark.asyncio
    async def test_optional_fields_are_omitted(self, api, make_authenticator):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, json=token())

        await make_authenticator().authenticate()

        body = api.body(api.calls("POST", AUTHORIZATION_PATH)[0])
        assert "testnet" not in body
        assert "agentName" not in body
        assert "keyType" not in body

    @pytest.mark.asyncio
    async def test_slow_down_widens_interval(self, api, make_authenticator, fake_time):
        """Test that slow_down adds five seconds to every later poll."""
        poll_times = []

        def record(request):
            if request.url.path == TOKEN_PATH:
                poll_times.append(fake_time.now)

        api.on_request = record
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, status_code=400, json=pending("slow_down"))
        api.add("POST", TOKEN_PATH, json=token())

        await make_authenticator().authenticate()

        assert fake_time.sleeps == [5, 10]
        assert poll_times[1] - poll_times[0] >= 10


class TestFailures:
    @pytest.mark.asyncio
    async def test_access_denied(self, api, make_authenticator, saved):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, status_code=400, json=pending("access_denied"))
        auth = make_authenticator()

        with pytest.raises(AccessDeniedError):
            await auth.authenticate()

        assert auth.state is DeviceFlowState.DENIED
        assert len(api.calls("POST", TOKEN_PATH)) == 1
        assert saved == []

    @pytest.mark.asyncio
    async def test_expired_token(self, api, make_authenticator):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, status_code=400, json=pending("expired_token"))
        auth = make_authenticator()

        with pytest.raises(DeviceCodeExpiredError):
            await auth.authenticate()

        assert auth.state is DeviceFlowState.EXPIRED

    @pytest.mark.asyncio
    async def test_unknown_error(self, api, make_authenticator):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add(
            "POST",
            TOKEN_PATH,
            status_code=400,
            json={"error": "invalid_grant", "error_description": "Device code not recognised"},
        )
        auth = make_authenticator()

        with pytest.raises(DeviceFlowError) as exc_info:
            await auth.authenticate()

        assert str(exc_info.value) == "Authentication failed: Device code not recognised"
        assert auth.state is DeviceFlowState.FAILED

    @pytest.mark.asyncio
    async def test_deadline_passes(self, api, make_authenticator, fake_time):
        """Test that polling stops once the code lifetime has elapsed."""
        api.add("POST", AUTHORIZATION_PATH, json=device_code(expires_in=10, interval=5))
        api.add("POST", TOKEN_PATH, status_code=400, json=pending())
        auth = make_authenticator()

        with pytest.raises(DeviceCodeExpiredError):
            await auth.authenticate()

        assert len(api.calls("POST", TOKEN_PATH)) == 2
        assert auth.state is DeviceFlowState.EXPIRED

    @pytest.mark.asyncio
    async def test_authorization_rejected(self, api, make_authenticator):
        api.add("POST", AUTHORIZATION_PATH, status_code=500, content=b"upstream down")
        auth = make_authenticator()

        with pytest.raises(DeviceFlowError) as exc_info:
            await auth.authenticate()

        assert "Failed to start device flow" in str(exc_info.value)
        assert "upstream down" in str(exc_info.value)
        assert auth.state is DeviceFlowState.FAILED
        assert api.calls("POST", TOKEN_PATH) == []

    @pytest.mark.asyncio
    async def test_runs_only_once(self, api, make_authenticator):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, json=token())
        auth = make_authenticator()
        await auth.authenticate()

        with pytest.raises(DeviceFlowError):
            await auth.authenticate()

        assert len(api.calls("POST", AUTHORIZATION_PATH)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_calls_start_one_flow(self, api, make_authenticator):
        """Test that a second call made while the first awaits the server is rejected."""
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, json=token())

        async def slow_handler(request):
            await asyncio.sleep(0)
            return api.handler(request)

        auth = make_authenticator(transport=httpx.MockTransport(slow_handler))

        results = await asyncio.gather(auth.authenticate(), auth.authenticate(), return_exceptions=True)

        assert results[0].api_key == API_KEY
        assert isinstance(results[1], DeviceFlowError)
        assert len(api.calls("POST", AUTHORIZATION_PATH)) == 1


class TestPresentation:
    @pytest.mark.asyncio
    async def test_clipboard_and_browser_failures_are_tolerated(self, api, make_authenticator, output):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, json=token())
        auth = make_authenticator(clipboard=BrokenClipboard(), browser=BrokenBrowser())

        await auth.authenticate()

        assert auth.state is DeviceFlowState.SUCCEEDED
        assert "ABCD-1234" in output.getvalue()

    @pytest.mark.asyncio
    async def test_no_browser(self, api, make_authenticator, browser, output):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, json=token())

        await make_authenticator().authenticate(no_browser=True)

        assert browser.opened == []
        assert VERIFICATION_URI in output.getvalue()

    @pytest.mark.asyncio
    async def test_master_key_guidance(self, api, make_authenticator, output):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, json=token(agent_id=None))

        await make_authenticator(clipboard=NullClipboard(), browser=NullBrowserOpener()).authenticate(
            key_type="master"
        )

        assert "SPONGE_MASTER_KEY" in output.getvalue()


class TestPersistence:
    @pytest.mark.asyncio
    async def test_agent_key_is_saved(self, api, make_authenticator, saved):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, json=token())

        await make_authenticator().authenticate(testnet=True, agent_name="Trading Bot")

        (credentials,) = saved
        assert credentials.api_key == API_KEY
        assert credentials.agent_id == AGENT_ID
        assert credentials.agent_name == "Trading Bot"
        assert credentials.testnet is True
        assert credentials.base_url == BASE_URL

    @pytest.mark.asyncio
    async def test_key_without_agent_is_not_saved(self, api, make_authenticator, saved):
        api.add("POST", AUTHORIZATION_PATH, json=device_code())
        api.add("POST", TOKEN_PATH, json=token(agent_id=None))

        await make_authenticator().authenticate(key_type="master")

        assert saved == []
