"""
OAuth device flow login.

    1. POST /api/oauth/device/authorization  -> device code + user code
    2. Show the verification URL and code (clipboard, browser best-effort)
    3. POST /api/oauth/device/token until approved, denied or expired
    4. Persist credentials for agent keys

The flow is single-shot: one :class:`DeviceFlowAuthenticator` runs one
login and ends in a terminal :class:`DeviceFlowState`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

import httpx
import pyperclip
import typer
from pydantic import ValidationError
from rich.console import Console

from .config import API_KEY_ENV, DEFAULT_BASE_URL, MASTER_KEY_ENV, REQUEST_TIMEOUT
from .credentials import get_credentials_path, save_credentials
from .exceptions import AccessDeniedError, DeviceCodeExpiredError, DeviceFlowError
from .models import Credentials, DeviceCodeResponse, DeviceFlowErrorBody, TokenResponse

logger = logging.getLogger("spongewallet.device_flow")

CLIENT_ID = "spongewallet-sdk"
SCOPE = "wallet:read wallet:write transaction:sign"
DEVICE_CODE_GRANT = "urn:ietf:params:oauth:grant-type:device_code"

# Seconds added to the poll interval on every slow_down
SLOW_DOWN_INCREMENT = 5


class DeviceFlowState(str, Enum):
    INIT = "init"
    CODE_REQUESTED = "code_requested"
    AWAITING_APPROVAL = "awaiting_approval"
    SUCCEEDED = "succeeded"
    DENIED = "denied"
    EXPIRED = "expired"
    FAILED = "failed"


# ═══════════════════════════════════════
# CAPABILITIES
# ═══════════════════════════════════════


class Clipboard(Protocol):
    def copy(self, text: str) -> None: ...


class BrowserOpener(Protocol):
    def open(self, url: str) -> None: ...


class PyperclipClipboard:
    """System clipboard via pyperclip."""

    def copy(self, text: str) -> None:
        pyperclip.copy(text)


class TyperBrowserOpener:
    """Default browser via ``typer.launch``."""

    def open(self, url: str) -> None:
        if typer.launch(url) != 0:
            raise OSError(f"Could not launch a browser for {url}")


class NullClipboard:
    def copy(self, text: str) -> None:
        pass


class NullBrowserOpener:
    def open(self, url: str) -> None:
        pass


# ═══════════════════════════════════════
# AUTHENTICATOR
# ═══════════════════════════════════════


class DeviceFlowAuthenticator:
    """Runs one device flow login.

    Every outside effect is injectable so the flow can run without a
    terminal, a browser or a real clock::

        auth = DeviceFlowAuthenticator(clipboard=NullClipboard(), browser=NullBrowserOpener())
        token = await auth.authenticate(agent_name="Trading Bot")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        clipboard: Optional[Clipboard] = None,
        browser: Optional[BrowserOpener] = None,
        console: Optional[Console] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        save: Optional[Callable[[Credentials], Path]] = save_credentials,
    ) -> None:
        """
        Args:
            base_url: Base URL of the SpongeWallet API.
            clipboard: Where the user code is copied. Defaults to the system clipboard.
            browser: Opens the verification URL. Defaults to the system browser.
            console: Rich console for user-facing output.
            sleep: Awaitable sleep, in seconds.
            clock: Monotonic clock, in seconds.
            transport: Optional httpx transport.
            save: Persists credentials; ``None`` disables persistence.
        """
        self.base_url = base_url.rstrip("/")
        self.clipboard = clipboard if clipboard is not None else PyperclipClipboard()
        self.browser = browser if browser is not None else TyperBrowserOpener()
        self.console = console if console is not None else Console()
        self._sleep = sleep
        self._clock = clock
        self._transport = transport
        self._save = save
        self.state = DeviceFlowState.INIT
        self._started = False

    async def authenticate(
        self,
        testnet: Optional[bool] = None,
        agent_name: Optional[str] = None,
        key_type: Optional[str] = None,
        no_browser: bool = False,
    ) -> TokenResponse:
        """Run the flow to completion.

        Args:
            testnet: Ask for a testnet-only agent.
            agent_name: Name of the agent to create for a new user.
            key_type: ``"agent"`` (default) or ``"master"``.
            no_browser: Do not try to open the verification URL.

        Returns:
            The :class:`TokenResponse` issued by the server.

        Raises:
            AccessDeniedError: The user denied the request.
            DeviceCodeExpiredError: The code expired before approval.
            DeviceFlowError: Any other failure.
        """
        # Claimed before any await
        if self._started:
            raise DeviceFlowError(f"Device flow already ran (state: {self.state.value})")
        self._started = True

        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=REQUEST_TIMEOUT,
            transport=self._transport,
        ) as client:
            try:
                self.console.print("Starting authentication...\n")
                code = await self._request_device_code(client, testnet, agent_name, key_type)
                self.state = DeviceFlowState.CODE_REQUESTED

                self._present(code, no_browser)
                self.state = DeviceFlowState.AWAITING_APPROVAL

                token = await self._poll_for_token(client, code)
            except AccessDeniedError:
                self.state = DeviceFlowState.DENIED
                raise
            except DeviceCodeExpiredError:
                self.state = DeviceFlowState.EXPIRED
                raise
            except DeviceFlowError:
                self.state = DeviceFlowState.FAILED
                raise
            except httpx.HTTPError as e:
                self.state = DeviceFlowState.FAILED
                raise DeviceFlowError(f"Network error during authentication: {e}") from e
            except ValueError as e:
                self.state = DeviceFlowState.FAILED
                raise DeviceFlowError(f"Unexpected response during authentication: {e}") from e

        self.state = DeviceFlowState.SUCCEEDED
        self._persist(token, testnet, agent_name)
        self._print_success(token, key_type)
        return token

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _request_device_code(
        self,
        client: httpx.AsyncClient,
        testnet: Optional[bool],
        agent_name: Optional[str],
        key_type: Optional[str],
    ) -> DeviceCodeResponse:
        body: Dict[str, Any] = {"clientId": CLIENT_ID, "scope": SCOPE}
        if testnet is not None:
            body["testnet"] = testnet
        if agent_name is not None:
            body["agentName"] = agent_name
        if key_type is not None:
            body["keyType"] = key_type

        response = await client.post("/api/oauth/device/authorization", json=body)
        if not response.is_success:
            raise DeviceFlowError(f"Failed to start device flow: {response.text}")

        code = DeviceCodeResponse.model_validate(response.json())
        logger.debug(f"Device code issued, expires in {code.expires_in}s, interval {code.interval}s")
        return code

    def _present(self, code: DeviceCodeResponse, no_browser: bool) -> None:
        self.console.print("To authenticate, visit:")
        self.console.print(f"  [bold]{code.verification_uri}[/bold]\n")
        self.console.print(f"Enter this code: [bold cyan]{code.user_code}[/bold cyan]\n")

        try:
            self.clipboard.copy(code.user_code)
            self.console.print("(Code copied to clipboard)\n")
        except Exception as e:
            logger.debug(f"Clipboard unavailable: {e}")

        if not no_browser:
            try:
                self.browser.open(code.verification_uri)
                self.console.print("Opening browser...\n")
            except Exception as e:
                logger.debug(f"Could not open browser: {e}")

        self.console.print("Waiting for approval...")

    async def _poll_for_token(self, client: httpx.AsyncClient, code: DeviceCodeResponse) -> TokenResponse:
        deadline = self._clock() + code.expires_in
        interval = code.interval
        body = {
            "grantType": DEVICE_CODE_GRANT,
            "deviceCode": code.device_code,
            "clientId": CLIENT_ID,
        }

        while self._clock() < deadline:
            await self._sleep(interval)

            response = await client.post("/api/oauth/device/token", json=body)
            if response.is_success:
                return TokenResponse.model_validate(response.json())

            error = _parse_error(response)
            if error.error == "authorization_pending":
                self.console.print(".", end="")
            elif error.error == "slow_down":
                interval += SLOW_DOWN_INCREMENT
                logger.debug(f"slow_down received, polling every {interval}s")
            elif error.error == "access_denied":
                raise AccessDeniedError()
            elif error.error == "expired_token":
                raise DeviceCodeExpiredError()
            else:
                detail = error.error_description or error.error or "Unknown error"
                raise DeviceFlowError(f"Authentication failed: {detail}")

        raise DeviceCodeExpiredError()

    def _persist(self, token: TokenResponse, testnet: Optional[bool], agent_name: Optional[str]) -> None:
        # Master keys carry no agent id and are never stored
        if not token.agent_id or self._save is None:
            return
        credentials = Credentials(
            api_key=token.api_key,
            agent_id=token.agent_id,
            agent_name=agent_name,
            testnet=testnet,
            created_at=datetime.now(timezone.utc),
            base_url=self.base_url if self.base_url != DEFAULT_BASE_URL else None,
        )
        self._save(credentials)

    def _print_success(self, token: TokenResponse, key_type: Optional[str]) -> None:
        is_master = key_type == "master"
        rule = "=" * 60
        self.console.print(f"\n{rule}")
        self.console.print("[green]Authentication successful![/green]\n")
        self.console.print(f"Your {'master ' if is_master else ''}API key: {token.api_key}\n")
        if is_master:
            self.console.print("Use this key to create agents programmatically:")
            self.console.print(f"  - Set {MASTER_KEY_ENV} environment variable, or")
            self.console.print("  - Pass directly: SpongeAdmin(api_key='...')\n")
        else:
            self.console.print("Save this key for other machines/deployments:")
            self.console.print(f"  - Set {API_KEY_ENV} environment variable, or")
            self.console.print("  - Pass directly: SpongeWallet.connect(api_key='...')\n")
            if token.agent_id and self._save is not None:
                self.console.print(f"Key cached locally at {get_credentials_path()}")
        self.console.print(f"{rule}\n")


def _parse_error(response: httpx.Response) -> DeviceFlowErrorBody:
    try:
        return DeviceFlowErrorBody.model_validate(response.json())
    except (ValueError, ValidationError):
        return DeviceFlowErrorBody()


async def device_flow_auth(
    base_url: str = DEFAULT_BASE_URL,
    no_browser: bool = False,
    testnet: Optional[bool] = None,
    agent_name: Optional[str] = None,
    key_type: Optional[str] = None,
) -> TokenResponse:
    """Log in interactively with the system clipboard, browser and console."""
    authenticator = DeviceFlowAuthenticator(base_url=base_url)
    return await authenticator.authenticate(
        testnet=testnet,
        agent_name=agent_name,
        key_type=key_type,
        no_browser=no_browser,
    )
