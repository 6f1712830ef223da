"""Supported chains, currencies and address formats."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Literal, Optional, Tuple

Chain = Literal[
    "ethereum",
    "base",
    "sepolia",
    "base-sepolia",
    "tempo",
    "tempo-mainnet",
    "solana",
    "solana-devnet",
]
ChainType = Literal["evm", "solana"]
Currency = Literal["ETH", "SOL", "USDC", "pathUSD"]
EvmChain = Literal["ethereum", "base", "sepolia", "base-sepolia"]
SolanaChain = Literal["solana", "solana-devnet"]

# ═══════════════════════════════════════
# CHAIN IDS
# ═══════════════════════════════════════

# Tempo ids are internal to the SpongeWallet API, not EIP-155 registrations.
CHAIN_IDS: Dict[str, int] = {
    "ethereum": 1,
    "base": 8453,
    "sepolia": 11155111,
    "base-sepolia": 84532,
    "tempo": 42431,
    "tempo-mainnet": 4217,
    "solana": 101,
    "solana-devnet": 102,
}

CHAIN_NAMES: Dict[int, str] = {chain_id: name for name, chain_id in CHAIN_IDS.items()}

CHAINS: Tuple[str, ...] = tuple(CHAIN_IDS)

EVM_CHAINS: FrozenSet[str] = frozenset({"ethereum", "base", "sepolia", "base-sepolia"})
TEMPO_CHAINS: FrozenSet[str] = frozenset({"tempo", "tempo-mainnet"})
SOLANA_CHAINS: FrozenSet[str] = frozenset({"solana", "solana-devnet"})

# ═══════════════════════════════════════
# CURRENCIES
# ═══════════════════════════════════════

CURRENCIES: Tuple[str, ...] = ("ETH", "SOL", "USDC", "pathUSD")

EVM_CURRENCIES: FrozenSet[str] = frozenset({"ETH", "USDC"})
SOLANA_CURRENCIES: FrozenSet[str] = frozenset({"SOL", "USDC"})
TEMPO_CURRENCIES: FrozenSet[str] = frozenset({"pathUSD"})

SUPPORTED_CURRENCIES: Dict[str, FrozenSet[str]] = {
    "evm": EVM_CURRENCIES,
    "tempo": TEMPO_CURRENCIES,
    "solana": SOLANA_CURRENCIES,
}

# ═══════════════════════════════════════
# ADDRESSES
# ═══════════════════════════════════════

EVM_ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
SOLANA_ADDRESS_PATTERN = r"^[1-9A-HJ-NP-Za-km-z]{32,44}$"

_EVM_ADDRESS_RE = re.compile(EVM_ADDRESS_PATTERN)
_SOLANA_ADDRESS_RE = re.compile(SOLANA_ADDRESS_PATTERN)


@dataclass(frozen=True)
class ChainInfo:
    """Static metadata for a supported chain."""

    name: str
    chain_id: int
    symbol: str
    chain_type: str
    is_testnet: bool


CHAIN_INFO: Dict[str, ChainInfo] = {
    "ethereum": ChainInfo("ethereum", 1, "ETH", "evm", False),
    "base": ChainInfo("base", 8453, "ETH", "evm", False),
    "sepolia": ChainInfo("sepolia", 11155111, "ETH", "evm", True),
    "base-sepolia": ChainInfo("base-sepolia", 84532, "ETH", "evm", True),
    "tempo": ChainInfo("tempo", 42431, "pathUSD", "evm", True),
    "tempo-mainnet": ChainInfo("tempo-mainnet", 4217, "pathUSD", "evm", False),
    "solana": ChainInfo("solana", 101, "SOL", "solana", False),
    "solana-devnet": ChainInfo("solana-devnet", 102, "SOL", "solana", True),
}


def chain_id(chain: str) -> int:
    """Get the numeric id of a chain. Raises ``KeyError`` if unknown."""
    if chain not in CHAIN_IDS:
        raise KeyError(f"Unknown chain: {chain}")
    return CHAIN_IDS[chain]


def chain_name(numeric_id: int) -> Optional[str]:
    """Get the chain name for a numeric id, or ``None`` if it is not known."""
    return CHAIN_NAMES.get(numeric_id)


def is_evm_chain(chain: str) -> bool:
    return chain in EVM_CHAINS


def is_tempo_chain(chain: str) -> bool:
    return chain in TEMPO_CHAINS


def is_solana_chain(chain: str) -> bool:
    return chain in SOLANA_CHAINS


def chain_type(chain: str) -> str:
    """``solana`` for Solana chains, ``evm`` for everything else (Tempo included)."""
    return "solana" if is_solana_chain(chain) else "evm"


def is_evm_address(address: str) -> bool:
    return bool(_EVM_ADDRESS_RE.match(address))


def is_solana_address(address: str) -> bool:
    return bool(_SOLANA_ADDRESS_RE.match(address))


def is_address(address: str) -> bool:
    """True if ``address`` is shaped like either an EVM or a Solana address."""
    return is_evm_address(address) or is_solana_address(address)
