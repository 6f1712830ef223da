"""
Tool catalog and executor for LLM tool calling.

The catalog lives in ``tool_definitions.json`` next to this module, in the
Anthropic tool schema format. Each tool name maps to exactly one handler
that turns the tool input into one API call.

Usage::

    tools = wallet.tools()
    response = anthropic.messages.create(..., tools=tools.definitions)
    for block in response.content:
        if block.type == "tool_use":
            result = await tools.execute(block.name, block.input)
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .exceptions import SpongeValidationError
from .http import NO_CONTENT, HttpClient

logger = logging.getLogger("spongewallet.tools")

DEFINITIONS_PATH = Path(__file__).with_name("tool_definitions.json")


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_schema: Mapping[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": copy.deepcopy(dict(self.input_schema)),
        }


class ToolName(str, Enum):
    GET_BALANCE = "get_balance"
    EVM_TRANSFER = "evm_transfer"
    SOLANA_TRANSFER = "solana_transfer"
    SOLANA_SWAP = "solana_swap"
    GET_SOLANA_TOKENS = "get_solana_tokens"
    SEARCH_SOLANA_TOKENS = "search_solana_tokens"
    GET_TRANSACTION_STATUS = "get_transaction_status"
    GET_TRANSACTION_HISTORY = "get_transaction_history"
    REQUEST_FUNDING = "request_funding"
    WITHDRAW_TO_MAIN_WALLET = "withdraw_to_main_wallet"
    CREATE_CRYPTO_ONRAMP = "create_crypto_onramp"
    CLAIM_SIGNUP_BONUS = "claim_signup_bonus"
    SPONGE = "sponge"
    CREATE_X402_PAYMENT = "create_x402_payment"
    HYPERLIQUID = "hyperliquid"
    STORE_KEY = "store_key"
    GET_KEY_LIST = "get_key_list"
    GET_KEY_VALUE = "get_key_value"
    SUBMIT_PLAN = "submit_plan"
    APPROVE_PLAN = "approve_plan"
    PROPOSE_TRADE = "propose_trade"


def _load_tool_definitions(path: Path = DEFINITIONS_PATH) -> Tuple[ToolDefinition, ...]:
    """Load tool definitions from the companion JSON file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return tuple(
        ToolDefinition(name=tool["name"], description=tool["description"], input_schema=tool["input_schema"])
        for tool in data.get("tools", [])
    )


TOOL_DEFINITIONS: Tuple[ToolDefinition, ...] = _load_tool_definitions()


# ═══════════════════════════════════════
# ARGUMENTS
# ═══════════════════════════════════════


class ToolArgs(BaseModel):
    """Base for tool inputs. Unknown keys are ignored."""

    model_config = ConfigDict(populate_by_name=True)


class PassthroughArgs(ToolArgs):
    """Tool inputs that are forwarded to the API as given."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class GetBalanceArgs(ToolArgs):
    chain: Optional[str] = None
    allowed_chains: Union[List[Any], str, None] = Field(
        None, validation_alias=AliasChoices("allowedChains", "allowed_chains")
    )
    only_usdc: Optional[bool] = Field(None, validation_alias=AliasChoices("onlyUsdc", "only_usdc"))


class TransferArgs(ToolArgs):
    chain: str
    to: str
    amount: str
    currency: str


class SolanaSwapArgs(ToolArgs):
    chain: str
    input_token: str = Field(validation_alias=AliasChoices("inputToken", "input_token"))
    output_token: str = Field(validation_alias=AliasChoices("outputToken", "output_token"))
    amount: str
    slippage_bps: Optional[int] = Field(None, validation_alias=AliasChoices("slippageBps", "slippage_bps"))


class SolanaTokensArgs(ToolArgs):
    chain: str


class SearchSolanaTokensArgs(ToolArgs):
    query: str
    limit: Optional[int] = None


class TransactionStatusArgs(ToolArgs):
    # Checked in the handler so the message names the missing argument
    tx_hash: Optional[str] = Field(None, validation_alias=AliasChoices("txHash", "transaction_hash", "tx_hash"))
    chain: Optional[str] = None


class TransactionHistoryArgs(ToolArgs):
    limit: Optional[int] = None
    chain: Optional[str] = None


class RequestFundingArgs(ToolArgs):
    amount: str
    reason: Optional[str] = None
    chain: Optional[str] = None
    currency: Optional[str] = None


class WithdrawArgs(ToolArgs):
    chain: str
    amount: str
    currency: Optional[str] = None


class OnrampArgs(ToolArgs):
    wallet_address: str
    provider: Optional[str] = None
    chain: Optional[str] = None
    fiat_amount: Optional[str] = None
    fiat_currency: Optional[str] = None
    lock_wallet_address: Optional[bool] = None
    redirect_url: Optional[str] = None


class SpongeArgs(PassthroughArgs):
    task: str


class X402PaymentArgs(ToolArgs):
    chain: str
    to: str
    token: Optional[str] = None
    amount: str
    decimals: Optional[int] = None
    valid_for_seconds: Optional[int] = None
    resource_url: Optional[str] = None
    resource_description: Optional[str] = None
    fee_payer: Optional[str] = None
    http_method: Optional[str] = None


class HyperliquidArgs(PassthroughArgs):
    action: str


class StoreKeyArgs(ToolArgs):
    service: str
    key: str
    label: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class KeyValueArgs(ToolArgs):
    service: str


class SubmitPlanArgs(PassthroughArgs):
    title: str
    steps: List[Dict[str, Any]] = Field(min_length=1, max_length=20)


class ApprovePlanArgs(ToolArgs):
    plan_id: str


class ProposeTradeArgs(PassthroughArgs):
    input_token: str
    output_token: str
    amount: str
    reason: str


# ═══════════════════════════════════════
# HANDLERS
# ═══════════════════════════════════════

Handler = Callable[[HttpClient, Dict[str, Any]], Awaitable[Any]]


def _without_none(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


async def handle_get_balance(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = GetBalanceArgs.model_validate(params)
    query = {"chain": args.chain or "all"}
    if isinstance(args.allowed_chains, list):
        query["allowedChains"] = ",".join(str(chain) for chain in args.allowed_chains)
    elif args.allowed_chains:
        query["allowedChains"] = args.allowed_chains
    if args.only_usdc:
        query["onlyUsdc"] = "true"
    return await http.get("/api/balances", query)


async def handle_evm_transfer(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = TransferArgs.model_validate(params)
    return await http.post("/api/transfers/evm", args.model_dump())


async def handle_solana_transfer(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = TransferArgs.model_validate(params)
    return await http.post("/api/transfers/solana", args.model_dump())


async def handle_solana_swap(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = SolanaSwapArgs.model_validate(params)
    body = {
        "chain": args.chain,
        "inputToken": args.input_token,
        "outputToken": args.output_token,
        "amount": args.amount,
        "slippageBps": args.slippage_bps,
    }
    return await http.post("/api/transactions/swap", _without_none(body))


async def handle_get_solana_tokens(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = SolanaTokensArgs.model_validate(params)
    return await http.get("/api/solana/tokens", {"chain": args.chain})


async def handle_search_solana_tokens(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = SearchSolanaTokensArgs.model_validate(params)
    query = {"query": args.query}
    if args.limit is not None:
        query["limit"] = str(args.limit)
    return await http.get("/api/solana/tokens/search", query)


async def handle_get_transaction_status(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = TransactionStatusArgs.model_validate(params)
    if not args.tx_hash:
        raise SpongeValidationError("txHash is required")
    if not args.chain:
        raise SpongeValidationError("chain is required")
    return await http.get(
        f"/api/transactions/status/{quote(args.tx_hash, safe='')}",
        {"chain": args.chain},
    )


async def handle_get_transaction_history(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = TransactionHistoryArgs.model_validate(params)
    query = {}
    if args.limit is not None:
        query["limit"] = str(args.limit)
    if args.chain:
        query["chain"] = args.chain
    return await http.get("/api/transactions/history", query)


async def handle_request_funding(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = RequestFundingArgs.model_validate(params)
    return await http.post("/api/funding-requests", args.model_dump(exclude_none=True))


async def handle_withdraw_to_main_wallet(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = WithdrawArgs.model_validate(params)
    return await http.post("/api/wallets/withdraw-to-main", args.model_dump(exclude_none=True))


async def handle_create_crypto_onramp(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = OnrampArgs.model_validate(params)
    return await http.post("/api/onramp/crypto", args.model_dump(exclude_none=True))


async def handle_claim_signup_bonus(http: HttpClient, params: Dict[str, Any]) -> Any:
    return await http.post("/api/signup-bonus/claim", {})


async def handle_sponge(http: HttpClient, params: Dict[str, Any]) -> Any:
    SpongeArgs.model_validate(params)
    return await http.post("/api/sponge", params)


async def handle_create_x402_payment(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = X402PaymentArgs.model_validate(params)
    return await http.post("/api/x402/payments", args.model_dump(exclude_none=True))


async def handle_hyperliquid(http: HttpClient, params: Dict[str, Any]) -> Any:
    HyperliquidArgs.model_validate(params)
    return await http.post("/api/hyperliquid", params)


async def handle_store_key(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = StoreKeyArgs.model_validate(params)
    return await http.post("/api/agent-keys", args.model_dump(exclude_none=True))


async def handle_get_key_list(http: HttpClient, params: Dict[str, Any]) -> Any:
    return await http.get("/api/agent-keys", {})


async def handle_get_key_value(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = KeyValueArgs.model_validate(params)
    return await http.get("/api/agent-keys/value", {"service": args.service})


async def handle_submit_plan(http: HttpClient, params: Dict[str, Any]) -> Any:
    SubmitPlanArgs.model_validate(params)
    return await http.post("/api/plans/submit", params)


async def handle_approve_plan(http: HttpClient, params: Dict[str, Any]) -> Any:
    args = ApprovePlanArgs.model_validate(params)
    return await http.post("/api/plans/approve", {"plan_id": args.plan_id})


async def handle_propose_trade(http: HttpClient, params: Dict[str, Any]) -> Any:
    ProposeTradeArgs.model_validate(params)
    return await http.post("/api/trades/propose", params)


# Tool name → handler mapping
TOOL_HANDLERS: Dict[ToolName, Handler] = {
    ToolName.GET_BALANCE: handle_get_balance,
    ToolName.EVM_TRANSFER: handle_evm_transfer,
    ToolName.SOLANA_TRANSFER: handle_solana_transfer,
    ToolName.SOLANA_SWAP: handle_solana_swap,
    ToolName.GET_SOLANA_TOKENS: handle_get_solana_tokens,
    ToolName.SEARCH_SOLANA_TOKENS: handle_search_solana_tokens,
    ToolName.GET_TRANSACTION_STATUS: handle_get_transaction_status,
    ToolName.GET_TRANSACTION_HISTORY: handle_get_transaction_history,
    ToolName.REQUEST_FUNDING: handle_request_funding,
    ToolName.WITHDRAW_TO_MAIN_WALLET: handle_withdraw_to_main_wallet,
    ToolName.CREATE_CRYPTO_ONRAMP: handle_create_crypto_onramp,
    ToolName.CLAIM_SIGNUP_BONUS: handle_claim_signup_bonus,
    ToolName.SPONGE: handle_sponge,
    ToolName.CREATE_X402_PAYMENT: handle_create_x402_payment,
    ToolName.HYPERLIQUID: handle_hyperliquid,
    ToolName.STORE_KEY: handle_store_key,
    ToolName.GET_KEY_LIST: handle_get_key_list,
    ToolName.GET_KEY_VALUE: handle_get_key_value,
    ToolName.SUBMIT_PLAN: handle_submit_plan,
    ToolName.APPROVE_PLAN: handle_approve_plan,
    ToolName.PROPOSE_TRADE: handle_propose_trade,
}


def _check_catalog() -> None:
    names = [tool.name for tool in TOOL_DEFINITIONS]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise RuntimeError(f"Duplicate tool definitions: {', '.join(duplicates)}")

    known = {tool.value for tool in ToolName}
    unknown = sorted(set(names) - known)
    if unknown:
        raise RuntimeError(f"Tool definitions without a handler: {', '.join(unknown)}")
    missing = sorted(known - set(names))
    if missing:
        raise RuntimeError(f"Tools without a definition: {', '.join(missing)}")
    if set(TOOL_HANDLERS) != set(ToolName):
        raise RuntimeError("Every tool must have exactly one handler")


_check_catalog()


# ═══════════════════════════════════════
# EXECUTOR
# ═══════════════════════════════════════


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        problems = [
            f"{'.'.join(str(part) for part in error['loc']) or 'input'}: {error['msg']}"
            for error in exc.errors()
        ]
        return f"Invalid input: {'; '.join(problems)}"
    return str(exc) or type(exc).__name__


class ToolExecutor:
    """Runs catalog tools against the API.

    :meth:`execute` never raises. Every outcome is a result envelope::

        {"status": "success", "data": ...}
        {"status": "error", "error": "..."}
    """

    def __init__(self, http: HttpClient, agent_id: Optional[str] = None) -> None:
        self._http = http
        self.agent_id = agent_id

    @property
    def definitions(self) -> List[Dict[str, Any]]:
        """Tool definitions for the Anthropic SDK ``tools=`` argument."""
        return [tool.to_dict() for tool in TOOL_DEFINITIONS]

    async def execute(self, name: str, input: Any = None) -> Dict[str, Any]:
        """Execute a tool by name.

        Args:
            name: Tool name, as given by the model.
            input: Tool input mapping. ``None`` is treated as empty.

        Returns:
            The result envelope.
        """
        try:
            data = await self._call_tool(name, input)
        except Exception as e:
            message = _error_message(e)
            logger.warning(f"Tool {name} failed: {message}")
            return {"status": "error", "error": message}
        return {"status": "success", "data": None if data is NO_CONTENT else data}

    async def _call_tool(self, name: str, input: Any) -> Any:
        try:
            tool = ToolName(name)
        except ValueError:
            raise SpongeValidationError(f"Unknown tool: {name}") from None

        if input is None:
            args: Dict[str, Any] = {}
        elif isinstance(input, Mapping) and all(isinstance(key, str) for key in input):
            args = dict(input)
        else:
            raise SpongeValidationError("Tool input must be an object with string keys")

        logger.debug(f"Executing tool {tool.value}")
        return await TOOL_HANDLERS[tool](self._http, args)


def create_tools(http: HttpClient, agent_id: Optional[str] = None) -> ToolExecutor:
    """Create a tool executor bound to ``http``."""
    return ToolExecutor(http, agent_id)
