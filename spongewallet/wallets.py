"""Wallets API."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import TypeAdapter

from .chains import chain_id, chain_name
from .http import HttpClient
from .models import Balance, Wallet, WalletBalanceResponse

_WALLET_LIST = TypeAdapter(List[Wallet])


class WalletsApi:
    """Per-chain wallets of an agent, their addresses and balances.

    Wallets on chains this SDK does not know by id are skipped when results
    are keyed by chain name.
    """

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def list(self, agent_id: str, include_balances: bool = False) -> List[Wallet]:
        """List all wallets of an agent.

        Args:
            agent_id: The agent's ID.
            include_balances: Also populate ``balance`` / ``symbol`` fields.
        """
        params = {"agentId": agent_id}
        if include_balances:
            params["includeBalances"] = "true"
        data = await self._http.get("/api/wallets", params)
        return _WALLET_LIST.validate_python(data)

    async def get(self, wallet_id: str) -> Wallet:
        data = await self._http.get(f"/api/wallets/{wallet_id}")
        return Wallet.model_validate(data)

    async def get_balance(self, wallet_id: str, numeric_chain_id: Optional[int] = None) -> Balance:
        """Get the balance of one wallet as ``{symbol: formatted amount}``.

        The native balance comes first, followed by every token balance.
        """
        params = {}
        if numeric_chain_id is not None:
            params["chainId"] = str(numeric_chain_id)
        data = await self._http.get(f"/api/wallets/{wallet_id}/balance", params)
        parsed = WalletBalanceResponse.model_validate(data)

        balance: Balance = {parsed.symbol: parsed.balance_formatted}
        for token in parsed.token_balances or []:
            balance[token.symbol] = token.formatted
        return balance

    async def get_all_balances(self, agent_id: str) -> Dict[str, Balance]:
        """Get the native balance of every wallet, keyed by chain name."""
        wallets = await self.list(agent_id, include_balances=True)

        balances: Dict[str, Balance] = {}
        for wallet in wallets:
            name = chain_name(wallet.chain_id)
            if name is None:
                continue
            balance: Balance = {}
            if wallet.symbol and wallet.balance:
                balance[wallet.symbol] = wallet.balance
            balances[name] = balance
        return balances

    async def get_address(self, agent_id: str, chain: str) -> Optional[str]:
        """Get the agent's wallet address on ``chain``, or ``None``."""
        wanted = chain_id(chain)
        for wallet in await self.list(agent_id):
            if wallet.chain_id == wanted:
                return wallet.address
        return None

    async def get_all_addresses(self, agent_id: str) -> Dict[str, str]:
        """Get every wallet address of the agent, keyed by chain name."""
        addresses: Dict[str, str] = {}
        for wallet in await self.list(agent_id):
            name = chain_name(wallet.chain_id)
            if name is None:
                continue
            addresses[name] = wallet.address
        return addresses
