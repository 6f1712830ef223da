"""
SpongeWallet - Python SDK for AI agent wallets.

Quick start::

    import asyncio
    from spongewallet import SpongeWallet

    async def main():
        # Uses SPONGE_API_KEY or stored credentials, else logs in via browser
        async with await SpongeWallet.connect() as wallet:
            print(await wallet.get_addresses())
            tx = await wallet.transfer(chain="base", to="0x...", amount="10", currency="USDC")
            print(tx.tx_hash)

    asyncio.run(main())

Creating agents with a master key::

    from spongewallet import SpongeAdmin

    async with SpongeAdmin("sponge_master_...") as admin:
        wallet = await admin.create_wallet("trading-bot-1")
"""

from .admin import SpongeAdmin
from .chains import CHAIN_IDS, CHAIN_NAMES, ChainInfo, chain_id, chain_name, is_evm_chain, is_solana_chain
from .client import SpongeWallet
from .config import DEFAULT_BASE_URL, SessionConfig, resolve_session_config
from .credentials import delete_credentials, get_credentials_path, load_credentials, save_credentials
from .device_flow import (
    DeviceFlowAuthenticator,
    DeviceFlowState,
    NullBrowserOpener,
    NullClipboard,
    device_flow_auth,
)
from .exceptions import (
    AccessDeniedError,
    AgentResolutionError,
    AuthenticationError,
    DeviceCodeExpiredError,
    DeviceFlowError,
    RateLimitError,
    SpongeApiError,
    SpongeError,
    SpongeValidationError,
)
from .http import HttpClient
from .mcp import create_mcp_config
from .models import (
    Agent,
    Balance,
    CreatedAgent,
    Credentials,
    McpConfig,
    TokenResponse,
    TransactionResult,
    TransactionStatus,
    Wallet,
)
from .tools import TOOL_DEFINITIONS, ToolDefinition, ToolExecutor, create_tools
from .version import __version__

__all__ = [
    "SpongeWallet",
    "SpongeAdmin",
    "HttpClient",
    "DEFAULT_BASE_URL",
    "SessionConfig",
    "resolve_session_config",
    "CHAIN_IDS",
    "CHAIN_NAMES",
    "ChainInfo",
    "chain_id",
    "chain_name",
    "is_evm_chain",
    "is_solana_chain",
    "load_credentials",
    "save_credentials",
    "delete_credentials",
    "get_credentials_path",
    "DeviceFlowAuthenticator",
    "DeviceFlowState",
    "NullBrowserOpener",
    "NullClipboard",
    "device_flow_auth",
    "SpongeError",
    "SpongeApiError",
    "AuthenticationError",
    "RateLimitError",
    "SpongeValidationError",
    "DeviceFlowError",
    "AccessDeniedError",
    "DeviceCodeExpiredError",
    "AgentResolutionError",
    "create_mcp_config",
    "Agent",
    "Balance",
    "CreatedAgent",
    "Credentials",
    "McpConfig",
    "TokenResponse",
    "TransactionResult",
    "TransactionStatus",
    "Wallet",
    "TOOL_DEFINITIONS",
    "ToolDefinition",
    "ToolExecutor",
    "create_tools",
    "__version__",
]
