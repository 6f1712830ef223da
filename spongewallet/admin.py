"""SpongeWallet SDK: master-key management client."""

from __future__ import annotations

import os
from typing import Any, List, Optional

import httpx

from .agents import AgentsApi
from .client import SpongeWallet
from .config import BASE_URL_ENV, DEFAULT_BASE_URL, MASTER_KEY_ENV
from .device_flow import DeviceFlowAuthenticator
from .exceptions import AuthenticationError
from .http import HttpClient
from .models import Agent, CreatedAgent


class SpongeAdmin:
    """Create and manage agents with a master API key.

    Example::

        admin = SpongeAdmin("sponge_master_...")
        created = await admin.create_agent("trading-bot-1")
        wallet = await SpongeWallet.connect(api_key=created.api_key)

    Get a master key from the dashboard or with :meth:`connect`.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialise the admin client.

        Args:
            api_key: Master API key. Defaults to ``SPONGE_MASTER_KEY``.
            base_url: API base URL. Defaults to ``SPONGE_API_URL`` or the
                hosted API.
            transport: Optional httpx transport.

        Raises:
            AuthenticationError: If no master key is given or configured.
        """
        api_key = api_key or os.environ.get(MASTER_KEY_ENV)
        if not api_key:
            raise AuthenticationError(
                401,
                "missing_master_key",
                f"No master key given. Pass api_key or set {MASTER_KEY_ENV}.",
            )
        self._base_url = (base_url or os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL).rstrip("/")
        self._transport = transport
        self._http = HttpClient(api_key, base_url=self._base_url, transport=transport)
        self._agents = AgentsApi(self._http)

    @classmethod
    async def connect(
        cls,
        base_url: Optional[str] = None,
        no_browser: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        authenticator: Optional[DeviceFlowAuthenticator] = None,
    ) -> SpongeAdmin:
        """Log in through the device flow and get a master key.

        The master key is printed once and never stored locally.
        """
        base_url = (base_url or os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL).rstrip("/")
        if authenticator is None:
            authenticator = DeviceFlowAuthenticator(base_url=base_url, transport=transport)
        token = await authenticator.authenticate(key_type="master", no_browser=no_browser)
        return cls(api_key=token.api_key, base_url=base_url, transport=transport)

    async def create_agent(self, name: str, **options: Any) -> CreatedAgent:
        """Create an agent with wallets.

        Returns:
            The :class:`CreatedAgent`, including the new agent's API key.
        """
        return await self._agents.create(name, **options)

    async def list_agents(self) -> List[Agent]:
        return await self._agents.list()

    async def delete_agent(self, agent_id: str) -> None:
        await self._agents.delete(agent_id)

    async def create_wallet(self, name: str, **options: Any) -> SpongeWallet:
        """Create an agent and return a wallet session connected to it."""
        created = await self.create_agent(name, **options)
        return await SpongeWallet.connect(
            api_key=created.api_key,
            agent_id=created.agent.id,
            base_url=self._base_url,
            transport=self._transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> SpongeAdmin:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
