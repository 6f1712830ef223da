"""Pydantic request and response models for the SpongeWallet SDK.

Field names are snake_case in Python. Models that talk to camelCase
endpoints derive from :class:`WireModel`, which serialises with camelCase
aliases; models whose endpoint already speaks snake_case derive from
``BaseModel`` directly.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .chains import (
    EVM_ADDRESS_PATTERN,
    SOLANA_ADDRESS_PATTERN,
    Chain,
    ChainType,
    Currency,
    EvmChain,
    SolanaChain,
    is_address,
)


def _check_uuid(value: str) -> str:
    uuid.UUID(value)
    return value


def _check_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL: {value}")
    return value


def _check_address(value: str) -> str:
    if not is_address(value):
        raise ValueError("Invalid address")
    return value


UUIDStr = Annotated[str, AfterValidator(_check_uuid)]
UrlStr = Annotated[str, AfterValidator(_check_url)]
Address = Annotated[str, AfterValidator(_check_address)]
EvmAddress = Annotated[str, Field(pattern=EVM_ADDRESS_PATTERN)]
SolanaAddress = Annotated[str, Field(pattern=SOLANA_ADDRESS_PATTERN)]


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ═══════════════════════════════════════
# CONNECT
# ═══════════════════════════════════════


class ConnectOptions(WireModel):
    """Options accepted by :meth:`SpongeWallet.connect`."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    agent_id: Optional[UUIDStr] = None
    api_key: Optional[str] = None
    testnet: Optional[bool] = None
    base_url: Optional[UrlStr] = None
    no_browser: bool = False


# ═══════════════════════════════════════
# AGENTS
# ═══════════════════════════════════════


class CreateAgentOptions(WireModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    daily_spending_limit: Optional[str] = None
    weekly_spending_limit: Optional[str] = None
    monthly_spending_limit: Optional[str] = None


class UpdateAgentOptions(WireModel):
    """Partial agent update; only the fields that are set are sent."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    daily_spending_limit: Optional[str] = None
    weekly_spending_limit: Optional[str] = None
    monthly_spending_limit: Optional[str] = None


class Agent(WireModel):
    id: UUIDStr
    name: str
    description: Optional[str] = None
    status: Literal["active", "paused", "suspended"]
    daily_spending_limit: Optional[str] = None
    weekly_spending_limit: Optional[str] = None
    monthly_spending_limit: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CreatedAgent(WireModel):
    """A freshly created agent and the API key that belongs to it."""

    agent: Agent
    api_key: str = Field(alias="mcpApiKey")


# ═══════════════════════════════════════
# WALLETS & BALANCES
# ═══════════════════════════════════════


class Wallet(WireModel):
    id: UUIDStr
    agent_id: UUIDStr
    chain_id: int
    chain_name: str
    chain_type: Optional[ChainType] = None
    address: str
    is_active: bool
    created_at: datetime
    # Populated only when listed with includeBalances
    balance: Optional[str] = None
    balance_usd_value: Optional[str] = None
    symbol: Optional[str] = None


class TokenBalance(WireModel):
    token_address: str
    symbol: str
    name: str
    decimals: int
    balance: str
    formatted: str
    usd_value: Optional[str] = None


class WalletBalanceResponse(WireModel):
    wallet_id: str
    address: str
    chain_id: int
    balance: str
    balance_formatted: str
    symbol: str
    token_balances: Optional[List[TokenBalance]] = None


class DetailedTokenBalance(WireModel):
    token: str
    amount: str
    usd_value: Optional[str] = None


class DetailedChainBalance(WireModel):
    address: str
    balances: List[DetailedTokenBalance]


# symbol -> formatted amount, e.g. {"ETH": "0.5", "USDC": "100.00"}
Balance = Dict[str, str]

# ═══════════════════════════════════════
# TRANSFERS & TRANSACTIONS
# ═══════════════════════════════════════


class TransferOptions(WireModel):
    chain: Chain
    to: Address
    amount: str
    currency: Currency


class EvmTransferOptions(WireModel):
    chain: EvmChain
    to: EvmAddress
    amount: str
    currency: Literal["ETH", "USDC"]


class SolanaTransferOptions(WireModel):
    chain: SolanaChain
    to: SolanaAddress
    amount: str
    currency: Literal["SOL", "USDC"]


class SwapOptions(WireModel):
    chain: SolanaChain
    input_token: str
    output_token: str
    amount: str
    slippage_bps: Optional[int] = Field(None, ge=0, le=10000)


class SubmitTransaction(WireModel):
    transaction_hash: str
    status: str
    explorer_url: Optional[str] = None
    message: Optional[str] = None


class SwapResponse(WireModel):
    signature: str
    input_token: str
    output_token: str
    input_amount: str
    output_amount: str
    explorer_url: Optional[str] = None


class TransactionResult(WireModel):
    tx_hash: str
    status: Literal["pending", "confirmed", "failed"]
    explorer_url: Optional[str] = None
    chain_id: Optional[int] = None


class TransactionStatus(WireModel):
    tx_hash: str
    status: Literal["pending", "confirmed", "failed", "unknown"]
    block_number: Optional[int] = None
    confirmations: Optional[int] = None
    error_message: Optional[str] = None


class TransactionStatusResponse(WireModel):
    transaction_hash: str
    status: Literal["pending", "confirmed", "failed"]
    confirmations: Optional[int] = None
    block_number: Optional[int] = None
    gas_used: Optional[str] = None
    effective_gas_price: Optional[str] = None


class TransactionHistoryItem(WireModel):
    id: str
    tx_hash: Optional[str] = None
    tx_status: str
    from_address: str
    to_address: str
    value: str
    chain_id: int
    tx_type: str
    created_at: datetime


class TransactionHistoryPage(WireModel):
    items: List[TransactionHistoryItem]
    total: int
    page: int
    per_page: int
    total_pages: int


class DetailedTransaction(WireModel):
    tx_hash: Optional[str] = None
    status: str
    from_: str = Field(alias="from")
    to: str
    value: str
    token: str
    direction: str
    chain: str
    timestamp: str


class TransactionHistoryDetailed(WireModel):
    transactions: List[DetailedTransaction]
    total: int
    has_more: bool


# ═══════════════════════════════════════
# SOLANA TOKENS
# ═══════════════════════════════════════


class SolanaTokenInfo(WireModel):
    mint: str
    symbol: str
    name: str
    decimals: int
    logo_uri: Optional[str] = Field(None, alias="logoURI")
    verified: bool


class SolanaHeldToken(SolanaTokenInfo):
    balance: str


class SolanaTokensResponse(WireModel):
    address: str
    tokens: List[SolanaHeldToken]


class SolanaTokenSearchResponse(WireModel):
    tokens: List[SolanaTokenInfo]


# ═══════════════════════════════════════
# FUNDING, ONRAMP, BONUS
# ═══════════════════════════════════════


class FundingRequestResponse(WireModel):
    success: bool
    request_id: str
    message: str
    status: str


class OnrampCryptoOptions(BaseModel):
    wallet_address: str
    provider: Optional[Literal["auto", "stripe", "coinbase"]] = None
    chain: Optional[Literal["base", "solana", "polygon"]] = None
    fiat_amount: Optional[str] = None
    fiat_currency: Optional[str] = None
    lock_wallet_address: Optional[bool] = None
    redirect_url: Optional[str] = None


class OnrampCryptoResponse(WireModel):
    success: Literal[True]
    provider: Literal["stripe", "coinbase"]
    url: str
    session_id: str
    status: Literal["initiated"]
    destination_chain: Literal["base", "solana", "polygon"]
    destination_address: str
    destination_currency: Literal["USDC"]
    client_secret: Optional[str] = None


class SignupBonusClaimResponse(WireModel):
    success: bool
    message: str
    amount: str
    currency: Literal["USDC"]
    chain: Literal["base"]
    recipient_address: str
    transaction_hash: str
    explorer_url: str


# ═══════════════════════════════════════
# PAID TASKS & x402
# ═══════════════════════════════════════


class SpongePaymentRequest(BaseModel):
    chain: str
    to: str
    token: str
    amount: str
    raw_amount: str
    decimals: int


class SpongePaymentMade(BaseModel):
    chain: str
    to: str
    amount: str
    token: str
    expires_at: str = Field(alias="expiresAt")


class SpongeResponse(BaseModel):
    summary: Optional[str] = None
    status: Literal["success", "payment_required", "error"]
    task: str
    provider: str
    data: Any = None
    image_data: Optional[str] = None
    image_mime_type: Optional[str] = None
    payment: Optional[SpongePaymentRequest] = None
    payment_made: Optional[SpongePaymentMade] = None
    wallet_balance: Optional[Dict[str, DetailedChainBalance]] = None
    next_step: Optional[str] = None
    error: Optional[str] = None
    api_error_details: Any = None
    receipt: Any = None


class X402PaymentRequirements(WireModel):
    scheme: Literal["exact"]
    network: str
    max_amount_required: str
    asset: str
    pay_to: str


class X402PaymentResponse(WireModel):
    payment_payload: Any = None
    payment_payload_base64: str
    header_name: Optional[str] = None
    payment_requirements: X402PaymentRequirements
    expires_at: str


class CreateX402PaymentOptions(BaseModel):
    chain: Chain
    to: str
    token: Optional[str] = None
    amount: str
    decimals: Optional[int] = None
    valid_for_seconds: Optional[int] = None
    resource_url: Optional[str] = None
    resource_description: Optional[str] = None
    fee_payer: Optional[str] = None
    http_method: Optional[Literal["GET", "POST"]] = None


# ═══════════════════════════════════════
# DEVICE FLOW & CREDENTIALS
# ═══════════════════════════════════════


class DeviceCodeResponse(WireModel):
    device_code: str
    user_code: str
    verification_uri: UrlStr
    expires_in: int
    interval: int


class TokenResponse(WireModel):
    access_token: str
    token_type: Literal["Bearer"]
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    agent_id: Optional[UUIDStr] = None
    api_key: str
    key_type: Optional[Literal["agent", "master"]] = None


class DeviceFlowErrorBody(WireModel):
    error: Optional[str] = None
    error_description: Optional[str] = None


class Credentials(WireModel):
    """The locally persisted session."""

    api_key: str
    agent_id: UUIDStr
    agent_name: Optional[str] = None
    testnet: Optional[bool] = None
    created_at: datetime
    base_url: Optional[UrlStr] = None


# ═══════════════════════════════════════
# MISC
# ═══════════════════════════════════════


class McpConfig(BaseModel):
    url: UrlStr
    headers: Dict[str, str]


class ApiErrorBody(WireModel):
    error: str
    message: str
    status_code: Optional[int] = None
