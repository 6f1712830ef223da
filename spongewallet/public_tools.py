"""
REST helpers behind the agent tools.

Balances, direct EVM/Solana transfers, Solana token lookups, funding and
onramp requests, x402 payments, paid tasks, Hyperliquid trading, plans and
trade proposals, and the agent key vault.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import TypeAdapter

from .chains import CHAIN_IDS, SOLANA_CHAINS
from .exceptions import SpongeValidationError
from .http import HttpClient
from .models import (
    CreateX402PaymentOptions,
    DetailedChainBalance,
    EvmTransferOptions,
    FundingRequestResponse,
    OnrampCryptoOptions,
    OnrampCryptoResponse,
    SignupBonusClaimResponse,
    SolanaTokenSearchResponse,
    SolanaTokensResponse,
    SolanaTransferOptions,
    SpongeResponse,
    SubmitTransaction,
    TransactionHistoryDetailed,
    X402PaymentResponse,
)

_DETAILED_BALANCES = TypeAdapter(Dict[str, DetailedChainBalance])

ALL_CHAINS = "all"


def _check_chain(chain: str, allow_all: bool = False) -> None:
    if allow_all and chain == ALL_CHAINS:
        return
    if chain not in CHAIN_IDS:
        raise SpongeValidationError(f"Unknown chain: {chain}")


def _without_none(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


class PublicToolsApi:
    """REST endpoints used by the agent tools, with typed results."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def get_detailed_balances(
        self,
        chain: Optional[str] = None,
        allowed_chains: Optional[Iterable[str]] = None,
        only_usdc: bool = False,
    ) -> Dict[str, DetailedChainBalance]:
        """Get per-token balances, keyed by chain.

        Args:
            chain: A single chain, ``"all"``, or ``None`` for the server default.
            allowed_chains: Restrict results to these chains.
            only_usdc: Only return USDC balances.
        """
        params: Dict[str, str] = {}
        if chain:
            _check_chain(chain, allow_all=True)
            params["chain"] = chain
        chains = list(allowed_chains or [])
        if chains:
            for allowed in chains:
                _check_chain(allowed)
            params["allowedChains"] = ",".join(chains)
        if only_usdc:
            params["onlyUsdc"] = "true"

        data = await self._http.get("/api/balances", params)
        return _DETAILED_BALANCES.validate_python(data)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def evm_transfer(self, chain: str, to: str, amount: str, currency: str) -> SubmitTransaction:
        """Transfer ETH or USDC on an EVM chain. ``to`` must be a 0x address."""
        options = EvmTransferOptions(chain=chain, to=to, amount=amount, currency=currency)
        data = await self._http.post("/api/transfers/evm", options.to_wire())
        return SubmitTransaction.model_validate(data)

    async def solana_transfer(self, chain: str, to: str, amount: str, currency: str) -> SubmitTransaction:
        """Transfer SOL or USDC on Solana. ``to`` must be a base58 address."""
        options = SolanaTransferOptions(chain=chain, to=to, amount=amount, currency=currency)
        data = await self._http.post("/api/transfers/solana", options.to_wire())
        return SubmitTransaction.model_validate(data)

    async def withdraw_to_main_wallet(
        self,
        chain: str,
        amount: str,
        currency: Optional[str] = None,
    ) -> Any:
        """Send funds back to the owner's main wallet.

        Args:
            chain: Chain to withdraw from.
            amount: Amount to withdraw.
            currency: ``native`` (default) or ``USDC``.
        """
        _check_chain(chain)
        if currency is not None and currency not in ("native", "USDC"):
            raise SpongeValidationError(f"Currency {currency} cannot be withdrawn")
        return await self._http.post(
            "/api/wallets/withdraw-to-main",
            _without_none({"chain": chain, "amount": amount, "currency": currency}),
        )

    # ------------------------------------------------------------------
    # Solana tokens
    # ------------------------------------------------------------------

    async def get_solana_tokens(self, chain: str) -> SolanaTokensResponse:
        """List SPL tokens held by the agent's Solana wallet."""
        if chain not in SOLANA_CHAINS:
            raise SpongeValidationError(f"{chain} is not a Solana chain")
        data = await self._http.get("/api/solana/tokens", {"chain": chain})
        return SolanaTokensResponse.model_validate(data)

    async def search_solana_tokens(self, query: str, limit: Optional[int] = None) -> SolanaTokenSearchResponse:
        """Search the Jupiter token list by symbol or name."""
        params = {"query": query}
        if limit is not None:
            params["limit"] = str(limit)
        data = await self._http.get("/api/solana/tokens/search", params)
        return SolanaTokenSearchResponse.model_validate(data)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def get_transaction_history_detailed(
        self,
        limit: Optional[int] = None,
        chain: Optional[str] = None,
    ) -> TransactionHistoryDetailed:
        params: Dict[str, str] = {}
        if limit is not None:
            params["limit"] = str(limit)
        if chain:
            _check_chain(chain)
            params["chain"] = chain
        data = await self._http.get("/api/transactions/history", params)
        return TransactionHistoryDetailed.model_validate(data)

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
        """Ask the owner for funds. Creates an approval request."""
        body = _without_none({"amount": amount, "reason": reason, "chain": chain, "currency": currency})
        data = await self._http.post("/api/funding-requests", body)
        return FundingRequestResponse.model_validate(data)

    async def create_onramp_link(
        self,
        options: Union[OnrampCryptoOptions, Mapping[str, Any], None] = None,
        **kwargs: Any,
    ) -> OnrampCryptoResponse:
        """Create a fiat-to-USDC onramp link.

        Takes an :class:`OnrampCryptoOptions`, a mapping, or its fields as
        keyword arguments (``wallet_address`` is required).
        """
        if isinstance(options, OnrampCryptoOptions):
            validated = options
        else:
            validated = OnrampCryptoOptions.model_validate({**(options or {}), **kwargs})
        data = await self._http.post("/api/onramp/crypto", validated.model_dump(exclude_none=True))
        return OnrampCryptoResponse.model_validate(data)

    async def claim_signup_bonus(self) -> SignupBonusClaimResponse:
        data = await self._http.post("/api/signup-bonus/claim", {})
        return SignupBonusClaimResponse.model_validate(data)

    # ------------------------------------------------------------------
    # Paid tasks & x402
    # ------------------------------------------------------------------

    async def sponge(self, request: Mapping[str, Any]) -> SpongeResponse:
        """Run a provider-routed paid task (search, image, llm, ...)."""
        data = await self._http.post("/api/sponge", dict(request))
        return SpongeResponse.model_validate(data)

    async def create_x402_payment(self, **options: Any) -> X402PaymentResponse:
        """Create a signed x402 payment payload.

        Keyword arguments are the fields of :class:`CreateX402PaymentOptions`
        (``chain``, ``to`` and ``amount`` are required).
        """
        validated = CreateX402PaymentOptions(**options)
        data = await self._http.post("/api/x402/payments", validated.model_dump(exclude_none=True))
        return X402PaymentResponse.model_validate(data)

    # ------------------------------------------------------------------
    # Trading & plans
    # ------------------------------------------------------------------

    async def hyperliquid(self, action: str, **params: Any) -> Any:
        """Run a Hyperliquid action (``status``, ``order``, ``positions``, ...)."""
        return await self._http.post("/api/hyperliquid", _without_none({"action": action, **params}))

    async def submit_plan(
        self,
        title: str,
        steps: List[Mapping[str, Any]],
        reasoning: Optional[str] = None,
    ) -> Any:
        """Submit a multi-step plan (1-20 swap/transfer/bridge steps) for approval."""
        if not 1 <= len(steps) <= 20:
            raise SpongeValidationError("A plan needs between 1 and 20 steps")
        body = _without_none({"title": title, "reasoning": reasoning, "steps": [dict(s) for s in steps]})
        return await self._http.post("/api/plans/submit", body)

    async def approve_plan(self, plan_id: str) -> Any:
        return await self._http.post("/api/plans/approve", {"plan_id": plan_id})

    async def propose_trade(self, input_token: str, output_token: str, amount: str, reason: str) -> Any:
        """Propose a single swap for the owner to approve."""
        return await self._http.post(
            "/api/trades/propose",
            {
                "input_token": input_token,
                "output_token": output_token,
                "amount": amount,
                "reason": reason,
            },
        )

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
        """Store (or replace) a third-party service key, encrypted at rest."""
        body = _without_none({"service": service, "key": key, "label": label, "metadata": metadata})
        return await self._http.post("/api/agent-keys", body)

    async def list_keys(self) -> Any:
        """List stored keys. Metadata only, no key values."""
        return await self._http.get("/api/agent-keys", {})

    async def get_key_value(self, service: str) -> Any:
        return await self._http.get("/api/agent-keys/value", {"service": service})
