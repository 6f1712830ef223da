"""Tests for the spongewallet CLI."""

from datetime import datetime, timezone

import pytest
from typer.testing import CliRunner

from spongewallet import cli
from spongewallet.credentials import load_credentials, save_credentials
from spongewallet.exceptions import DeviceFlowError
from spongewallet.models import Credentials
from spongewallet.version import __version__

from .conftest import AGENT_ID, API_KEY, BASE_URL

runner = CliRunner()


@pytest.fixture
def logged_in():
    save_credentials(
        Credentials(
            api_key=API_KEY,
            agent_id=AGENT_ID,
            agent_name="Trading Bot",
            testnet=True,
            created_at=datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc),
        )
    )


@pytest.fixture
def login_calls(monkeypatch):
    calls = []

    async def fake_device_flow_auth(**kwargs):
        calls.append(kwargs)

    monkeypatch.setattr(cli, "device_flow_auth", fake_device_flow_auth)
    return calls


class TestVersionAndHelp:
    @pytest.mark.parametrize("args", [["--version"], ["-v"], ["version"]])
    def test_version(self, args):
        result = runner.invoke(cli.app, args)

        assert result.exit_code == 0
        assert f"spongewallet v{__version__}" in result.output

    @pytest.mark.parametrize("args", [["--help"], ["-h"], ["help"]])
    def test_help_lists_commands(self, args):
        result = runner.invoke(cli.app, args)

        assert result.exit_code == 0
        assert "login" in result.output
        assert "whoami" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(cli.app, [])

        assert result.exit_code == 0
        assert "login" in result.output


class TestWhoamiLogout:
    def test_whoami_logged_out(self):
        result = runner.invoke(cli.app, ["whoami"])

        assert result.exit_code == 0
        assert "Not logged in." in result.output

    def test_whoami_logged_in(self, logged_in):
        result = runner.invoke(cli.app, ["whoami"])

        assert result.exit_code == 0
        assert AGENT_ID in result.output
        assert "Trading Bot" in result.output
        assert API_KEY[:20] in result.output
        assert API_KEY not in result.output
        assert "Testnet only" in result.output

    def test_logout(self, logged_in):
        result = runner.invoke(cli.app, ["logout"])

        assert result.exit_code == 0
        assert "Logged out successfully." in result.output
        assert load_credentials() is None

    def test_logout_when_logged_out(self):
        result = runner.invoke(cli.app, ["logout"])

        assert result.exit_code == 0
        assert "Not logged in." in result.output


class TestLogin:
    def test_defaults(self, login_calls):
        result = runner.invoke(cli.app, ["login"])

        assert result.exit_code == 0
        assert login_calls == [
            {
                "base_url": "https://api.wallet.paysponge.com",
                "no_browser": False,
                "testnet": None,
                "key_type": None,
            }
        ]

    def test_options_are_passed_through(self, login_calls):
        result = runner.invoke(cli.app, ["login", "-t", "--no-browser", "--base-url", BASE_URL, "--master"])

        assert result.exit_code == 0
        assert login_calls == [{"base_url": BASE_URL, "no_browser": True, "testnet": True, "key_type": "master"}]

    def test_base_url_from_env(self, login_calls, monkeypatch):
        monkeypatch.setenv("SPONGE_API_URL", BASE_URL)

        runner.invoke(cli.app, ["login"])

        assert login_calls[0]["base_url"] == BASE_URL

    def test_failure_exits_1(self, monkeypatch):
        async def failing_device_flow_auth(**kwargs):
            raise DeviceFlowError("Access denied by user")

        monkeypatch.setattr(cli, "device_flow_auth", failing_device_flow_auth)

        result = runner.invoke(cli.app, ["login"])

        assert result.exit_code == 1
        assert "Login failed" in result.output


class TestMcpCommand:
    def test_without_key_exits_1(self):
        result = runner.invoke(cli.app, ["mcp"])

        assert result.exit_code == 1
        assert "No API key found" in result.output


class TestMain:
    def test_no_args_exits_0(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["spongewallet"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 0

    def test_unhandled_error_exits_1(self, monkeypatch):
        def broken_app():
            raise RuntimeError("boom")

        monkeypatch.setattr(cli, "app", broken_app)

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 1
