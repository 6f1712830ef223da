"""
Transactions API: transfers, swaps, status and history.

Transfers are routed by chain family:

* Solana chains  -> ``/api/transfers/solana`` (SOL, USDC)
* Tempo chains   -> ``/api/transfers/tempo``  (pathUSD only, gas sponsored)
* EVM chains     -> ``/api/transfers/evm``    (ETH, USDC)

Currency and recipient address are checked against the family before
anything is sent.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import quote

from .chains import (
    CHAIN_IDS,
    EVM_CURRENCIES,
    SOLANA_CURRENCIES,
    TEMPO_CURRENCIES,
    is_evm_address,
    is_solana_address,
    is_solana_chain,
    is_tempo_chain,
)
from .exceptions import SpongeValidationError
from .http import HttpClient
from .models import (
    SubmitTransaction,
    SwapOptions,
    SwapResponse,
    TransactionHistoryPage,
    TransactionResult,
    TransactionStatus,
    TransactionStatusResponse,
    TransferOptions,
)

logger = logging.getLogger("spongewallet.transactions")

_PENDING_STATUSES = ("pending", "submitted")
_HISTORY_STATUSES = ("pending", "confirmed", "failed", "unknown")


def _check_currency(currency: str, chain: str, supported: frozenset) -> None:
    if currency not in supported:
        raise SpongeValidationError(f"Currency {currency} not supported on {chain}")


def _submission_result(data: object, numeric_chain_id: int) -> TransactionResult:
    parsed = SubmitTransaction.model_validate(data)
    # Only "pending"/"submitted" are surfaced as pending; failures arrive as API errors.
    status = "pending" if parsed.status in _PENDING_STATUSES else "confirmed"
    return TransactionResult(
        tx_hash=parsed.transaction_hash,
        status=status,
        explorer_url=parsed.explorer_url,
        chain_id=numeric_chain_id,
    )


class TransactionsApi:
    """Submit and track transactions for one agent."""

    def __init__(self, http: HttpClient, agent_id: str) -> None:
        self._http = http
        self._agent_id = agent_id

    async def transfer(self, chain: str, to: str, amount: str, currency: str) -> TransactionResult:
        """Transfer tokens on any supported chain.

        Args:
            chain: Chain name, e.g. ``base`` or ``solana``.
            to: Recipient address, in the chain family's format.
            amount: Human-readable amount, e.g. ``"10"`` for 10 USDC.
            currency: ``ETH``, ``SOL``, ``USDC`` or ``pathUSD``.

        Returns:
            A :class:`TransactionResult`.

        Raises:
            SpongeValidationError: If the currency or address does not fit
                the chain. Nothing is sent in that case.
        """
        options = TransferOptions(chain=chain, to=to, amount=amount, currency=currency)

        numeric_chain_id = CHAIN_IDS.get(options.chain)
        if numeric_chain_id is None:
            raise SpongeValidationError(f"Unknown chain: {options.chain}")

        if is_solana_chain(options.chain):
            _check_currency(options.currency, options.chain, SOLANA_CURRENCIES)
            if not is_solana_address(options.to):
                raise SpongeValidationError(f"Invalid Solana address: {options.to}")
            data = await self._http.post(
                "/api/transfers/solana",
                {
                    "chain": options.chain,
                    "to": options.to,
                    "amount": options.amount,
                    "currency": options.currency,
                },
            )
            return _submission_result(data, numeric_chain_id)

        if is_tempo_chain(options.chain) or options.currency in TEMPO_CURRENCIES:
            if not is_tempo_chain(options.chain) or options.currency not in TEMPO_CURRENCIES:
                raise SpongeValidationError("pathUSD transfers are only supported on Tempo chains")
            if not is_evm_address(options.to):
                raise SpongeValidationError(f"Invalid EVM address: {options.to}")
            data = await self._http.post(
                "/api/transfers/tempo",
                {
                    "chain": options.chain,
                    "to": options.to,
                    "amount": options.amount,
                    "use_gas_sponsorship": True,
                },
            )
            return _submission_result(data, numeric_chain_id)

        _check_currency(options.currency, options.chain, EVM_CURRENCIES)
        if not is_evm_address(options.to):
            raise SpongeValidationError(f"Invalid EVM address: {options.to}")
        data = await self._http.post(
            "/api/transfers/evm",
            {
                "chain": options.chain,
                "to": options.to,
                "amount": options.amount,
                "currency": options.currency,
            },
        )
        return _submission_result(data, numeric_chain_id)

    async def swap(
        self,
        chain: str,
        input_token: str,
        output_token: str,
        amount: str,
        slippage_bps: Optional[int] = None,
    ) -> TransactionResult:
        """Swap tokens on Solana via Jupiter.

        Args:
            chain: ``solana`` or ``solana-devnet``.
            input_token: Token to sell, as a symbol (``SOL``) or mint address.
            output_token: Token to buy, as a symbol or mint address.
            amount: Amount of ``input_token`` to sell.
            slippage_bps: Optional slippage tolerance in basis points (0-10000).
        """
        options = SwapOptions(
            chain=chain,
            input_token=input_token,
            output_token=output_token,
            amount=amount,
            slippage_bps=slippage_bps,
        )
        data = await self._http.post("/api/transactions/swap", options.to_wire())
        parsed = SwapResponse.model_validate(data)
        logger.debug(
            f"Swapped {parsed.input_amount} {parsed.input_token} -> "
            f"{parsed.output_amount} {parsed.output_token}"
        )
        return TransactionResult(
            tx_hash=parsed.signature,
            status="confirmed",
            explorer_url=parsed.explorer_url,
        )

    async def get_status(self, tx_hash: str, chain: str) -> TransactionStatus:
        """Get the status of a transaction by hash (EVM) or signature (Solana)."""
        if not tx_hash:
            raise SpongeValidationError("tx_hash is required")
        if chain not in CHAIN_IDS:
            raise SpongeValidationError(f"Unknown chain: {chain}")

        data = await self._http.get(
            f"/api/transactions/status/{quote(tx_hash, safe='')}",
            {"chain": chain},
        )
        parsed = TransactionStatusResponse.model_validate(data)
        return TransactionStatus(
            tx_hash=parsed.transaction_hash,
            status=parsed.status,
            block_number=parsed.block_number,
            confirmations=parsed.confirmations,
            error_message=None,
        )

    async def get_history(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[TransactionStatus]:
        """Get the agent's transaction history, newest first.

        Args:
            limit: Maximum number of transactions to return.
            offset: Number of transactions to skip.
        """
        params = {"agentId": self._agent_id}
        if limit is not None:
            params["limit"] = str(limit)
        if offset is not None:
            params["offset"] = str(offset)

        data = await self._http.get("/api/transactions", params)
        page = TransactionHistoryPage.model_validate(data)
        return [
            TransactionStatus(
                tx_hash=item.tx_hash or "",
                status=item.tx_status if item.tx_status in _HISTORY_STATUSES else "unknown",
            )
            for item in page.items
        ]
