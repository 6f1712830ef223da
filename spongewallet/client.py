"""SpongeWallet SDK: the agent wallet client."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

import httpx
from pydantic import ValidationError

from .agents import AgentsApi
from .config import resolve_session_config
from .credentials import save_credentials
from .device_flow import DeviceFlowAuthenticator
from .exceptions import AgentResolutionError, SpongeError
from .http import HttpClient
from .mcp import create_mcp_config
from .models import (
    Agent,
    Balance,
    ConnectOptions,
    Credentials,
    DetailedChainBalance,
    FundingRequestResponse,
    McpConfig,
    OnrampCryptoResponse,
    SignupBonusClaimResponse,
    SolanaTokenSearchResponse,
    SolanaTokensResponse,
    SpongeResponse,
    SubmitTransaction,
    TransactionHistoryDetailed,
    TransactionResult,
    TransactionStatus,
    X402PaymentResponse,
)
from .public_tools import PublicToolsApi
from .tools import ToolExecutor, create_tools
from .transactions import TransactionsApi
from .wallets import WalletsApi

logger = logging.getLogger("spongewallet.client")

DEFAULT_AGENT_NAME = "Default Agent"


class SpongeWallet:
    """A session bound to one agent and its wallets.

    Example::

        import asyncio
        from spongewallet import SpongeWallet

        async def main():
            async with await SpongeWallet.connect() as wallet:
                print(await wallet.get_address("base"))
                print(await wallet.get_balances())

        asyncio.run(main())
    """

    def __init__(self, http: HttpClient, agent_id: str) -> None:
        """Bind a session to an already authenticated transport.

        Use :meth:`connect` unless you manage keys and agent ids yourself.
        """
        self._http = http
        self._agent_id = agent_id
        self._agents = AgentsApi(http)
        self._wallets = WalletsApi(http)
        self._transactions = TransactionsApi(http, agent_id)
        self._public_tools = PublicToolsApi(http)
        # Full map from get_addresses(); single-chain lookups are kept apart
        self._address_cache: Optional[Dict[str, str]] = None
        self._chain_addresses: Dict[str, str] = {}

    @classmethod
    async def connect(
        cls,
        name: Optional[str] = None,
        agent_id: Optional[str] = None,
        api_key: Optional[str] = None,
        testnet: Optional[bool] = None,
        base_url: Optional[str] = None,
        no_browser: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        authenticator: Optional[DeviceFlowAuthenticator] = None,
    ) -> SpongeWallet:
        """Connect to SpongeWallet.

        The API key is taken from ``api_key``, then ``SPONGE_API_KEY``, then
        the local credential file. With none of those, an interactive device
        flow login runs. If the agent id is still unknown it is looked up
        from the key and the session is saved locally.

        Args:
            name: Agent name used when the login creates a new agent.
            agent_id: Agent id, if already known.
            api_key: Agent API key.
            testnet: Ask for a testnet-only agent on login.
            base_url: API base URL override.
            no_browser: Do not open a browser during login.
            transport: Optional httpx transport, e.g. for tests.
            authenticator: Device flow authenticator to use instead of the
                interactive default.

        Raises:
            DeviceFlowError: If the login fails.
            AgentResolutionError: If no agent can be resolved for the key.
        """
        options = ConnectOptions(
            name=name,
            agent_id=agent_id,
            api_key=api_key,
            testnet=testnet,
            base_url=base_url,
            no_browser=no_browser,
        )
        session = resolve_session_config(
            api_key=options.api_key,
            agent_id=options.agent_id,
            base_url=options.base_url,
        )
        resolved_key = session.api_key
        resolved_agent_id = session.agent_id

        if not resolved_key:
            logger.info("No API key found, starting device flow login")
            if authenticator is None:
                authenticator = DeviceFlowAuthenticator(base_url=session.base_url, transport=transport)
            token = await authenticator.authenticate(
                testnet=options.testnet,
                agent_name=options.name or DEFAULT_AGENT_NAME,
                no_browser=options.no_browser,
            )
            resolved_key = token.api_key
            resolved_agent_id = token.agent_id

        http = HttpClient(resolved_key, base_url=session.base_url, transport=transport)

        if not resolved_agent_id:
            try:
                agent = await AgentsApi(http).get_current()
            except (SpongeError, httpx.HTTPError, ValidationError) as e:
                await http.aclose()
                raise AgentResolutionError(
                    "Failed to get agent info. The API key may be invalid or expired."
                ) from e
            resolved_agent_id = agent.id
            save_credentials(
                Credentials(
                    api_key=resolved_key,
                    agent_id=agent.id,
                    agent_name=agent.name,
                    testnet=options.testnet,
                    created_at=datetime.now(timezone.utc),
                    base_url=None if session.is_default_base_url else session.base_url,
                )
            )

        logger.debug(f"Connected as agent {resolved_agent_id} ({session.base_url})")
        return cls(http, resolved_agent_id)

    @property
    def agent_id(self) -> str:
        return self._agent_id

    @property
    def base_url(self) -> str:
        return self._http.base_url

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    def address(self, chain: str) -> Optional[str]:
        """Cached address on ``chain``, or ``None`` until it is fetched."""
        if self._address_cache is not None and chain in self._address_cache:
            return self._address_cache[chain]
        return self._chain_addresses.get(chain)

    async def get_address(self, chain: str) -> Optional[str]:
        """Get the wallet address on ``chain``, fetching it if not cached."""
        cached = self.address(chain)
        if cached:
            return cached

        address = await self._wallets.get_address(self._agent_id, chain)
        if address:
            self._chain_addresses[chain] = address
        return address

    async def get_addresses(self) -> Dict[str, str]:
        """Get every wallet address, keyed by chain. Fetched once per session."""
        if self._address_cache is None:
            self._address_cache = await self._wallets.get_all_addresses(self._agent_id)
        return dict(self._address_cache)

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def get_balance(self, chain: str) -> Balance:
        """Get the balance on one chain. Empty if the agent has no wallet there."""
        for wallet in await self._wallets.list(self._agent_id):
            if wallet.chain_name == chain:
                return await self._wallets.get_balance(wallet.id)
        return {}

    async def get_balances(self) -> Dict[str, Balance]:
        return await self._wallets.get_all_balances(self._agent_id)

    async def get_detailed_balances(
        self,
        chain: Optional[str] = None,
        allowed_chains: Optional[Iterable[str]] = None,
        only_usdc: bool = False,
    ) -> Dict[str, DetailedChainBalance]:
        return await self._public_tools.get_detailed_balances(chain, allowed_chains, only_usdc)

    # ------------------------------------------------------------------
    # Transfers & swaps
    # ------------------------------------------------------------------

    async def transfer(self, chain: str, to: str, amount: str, currency: str) -> TransactionResult:
        """Transfer tokens.

        Example::

            tx = await wallet.transfer(chain="base", to="0x742d...", amount="10", currency="USDC")
            print(tx.tx_hash)
        """
        return await self._transactions.transfer(chain, to, amount, currency)

    async def evm_transfer(self, chain: str, to: str, amount: str, currency: str) -> SubmitTransaction:
        return await self._public_tools.evm_transfer(chain, to, amount, currency)

    async def solana_transfer(self, chain: str, to: str, amount: str, currency: str) -> SubmitTransaction:
        return await self._public_tools.solana_transfer(chain, to, amount, currency)

    async def swap(
        self,
        chain: str,
        input_token: str,
        output_token: str,
        amount: str,
        slippage_bps: Optional[int] = None,
    ) -> TransactionResult:
        """Swap tokens on Solana via Jupiter."""
        return await self._transactions.swap(chain, input_token, output_token, amount, slippage_bps)

    async def withdraw_to_main_wallet(self, chain: str, amount: str, currency: Optional[str] = None) -> Any:
        return await self._public_tools.withdraw_to_main_wallet(chain, amount, currency)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def get_transaction_status(self, tx_hash: str, chain: str) -> TransactionStatus:
        return await self._transactions.get_status(tx_hash, chain)

    async def get_transaction_history(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[TransactionStatus]:
        return await self._transactions.get_history(limit, offset)

    async def get_transaction_history_detailed(
        self,
        limit: Optional[int] = None,
        chain: Optional[str] = None,
    ) -> TransactionHistoryDetailed:
        return await self._public_tools.get_transaction_history_detailed(limit, chain)

    # ------------------------------------------------------------------
    # Solana tokens
    # ------------------------------------------------------------------

    async def get_solana_tokens(self, chain: str) -> SolanaTokensResponse:
        return await self._public_tools.get_solana_tokens(chain)

    async def search_solana_tokens(self, query: str, limit: Optional[int] = None) -> SolanaTokenSearchResponse:
        return await self._public_tools.search_solana_tokens(query, limit)

    # ------------------------------------------------------------------
    # Funding
    # ------------------------------------------------------------------

    async def request_funding(
        self,
        amount: str,
        reason: Optional[str] = None,
        chain: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> FundingRequestResponse:
        return await self._public_tools.request_funding(amount, reason, chain, currency)

    async def onramp_crypto(self, wallet_address: str, **options: Any) -> OnrampCryptoResponse:
        """Create a fiat-to-USDC onramp link into ``wallet_address``."""
        return await self._public_tools.create_onramp_link(wallet_address=wallet_address, **options)

    async def claim_signup_bonus(self) -> SignupBonusClaimResponse:
        return await self._public_tools.claim_signup_bonus()

    # ------------------------------------------------------------------
    # Paid APIs & x402
    # ------------------------------------------------------------------

    async def sponge(self, request: Mapping[str, Any]) -> SpongeResponse:
        return await self._public_tools.sponge(request)

    async def create_x402_payment(self, **options: Any) -> X402PaymentResponse:
        return await self._public_tools.create_x402_payment(**options)

    # ------------------------------------------------------------------
    # Trading & plans
    # ------------------------------------------------------------------

    async def hyperliquid(self, action: str, **params: Any) -> Any:
        return await self._public_tools.hyperliquid(action, **params)

    async def submit_plan(
        self,
        title: str,
        steps: List[Mapping[str, Any]],
        reasoning: Optional[str] = None,
    ) -> Any:
        return await self._public_tools.submit_plan(title, steps, reasoning)

    async def approve_plan(self, plan_id: str) -> Any:
        return await self._public_tools.approve_plan(plan_id)

    async def propose_trade(self, input_token: str, output_token: str, amount: str, reason: str) -> Any:
        return await self._public_tools.propose_trade(input_token, output_token, amount, reason)

    # ------------------------------------------------------------------
    # Key vault
    # ------------------------------------------------------------------

    async def store_key(
        self,
        service: str,
        key: str,
        label: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Store a third-party API key for ``service`` in the agent's vault."""
        return await self._public_tools.store_key(service, key, label, metadata)

    async def list_keys(self) -> Any:
        return await self._public_tools.list_keys()

    async def get_key_value(self, service: str) -> Any:
        return await self._public_tools.get_key_value(service)

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------

    async def create_agent(self, name: str, **options: Any) -> Agent:
        """Create another agent. Only the agent is returned, not its key."""
        created = await self._agents.create(name, **options)
        return created.agent

    async def get_agents(self) -> List[Agent]:
        return await self._agents.list()

    async def get_agent(self) -> Agent:
        """Get the agent this session is bound to."""
        return await self._agents.get_current()

    # ------------------------------------------------------------------
    # Integrations
    # ------------------------------------------------------------------

    def mcp(self) -> McpConfig:
        """MCP server config for agent frameworks that speak MCP over HTTP."""
        return create_mcp_config(self._http.api_key, self._http.base_url)

    def tools(self) -> ToolExecutor:
        """Tool definitions and executor for the Anthropic SDK."""
        return create_tools(self._http, self._agent_id)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> SpongeWallet:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
