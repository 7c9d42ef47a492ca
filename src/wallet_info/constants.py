"""Per-network asset and endpoint constants."""

from typing import TypedDict


class TokenEntry(TypedDict):
    symbol: str
    name: str
    address: str
    decimals: int


MAINNET_CHAIN_ID = 1
SEPOLIA_CHAIN_ID = 11155111

NETWORK_NAMES: dict[str, int] = {
    "mainnet": MAINNET_CHAIN_ID,
    "sepolia": SEPOLIA_CHAIN_ID,
}

NATIVE_SYMBOL = "ETH"
NATIVE_NAME = "Ether"
NATIVE_DECIMALS = 18

MAINNET_EXPLORER_URL = "https://etherscan.io"
SEPOLIA_EXPLORER_URL = "https://sepolia.etherscan.io"

MAINNET_TOKENS: list[TokenEntry] = [
    {
        "symbol": "USDT",
        "name": "Tether USD",
        "address": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
        "decimals": 6,
    },
    {
        "symbol": "USDC",
        "name": "USD Coin",
        "address": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "decimals": 6,
    },
]

SEPOLIA_TOKENS: list[TokenEntry] = [
    {
        "symbol": "USDT",
        "name": "Tether USD",
        "address": "0x0F2ea81aA9861Fb237ec85bD18c4D31a4a520a32",
        "decimals": 6,
    },
    {
        "symbol": "USDC",
        "name": "USD Coin",
        "address": "0x94a9D9AC8a22534E3FaCa9F4e7F2E2cf85d5E4C8",
        "decimals": 6,
    },
]

EXPLORER_URLS: dict[int, str] = {
    MAINNET_CHAIN_ID: MAINNET_EXPLORER_URL,
    SEPOLIA_CHAIN_ID: SEPOLIA_EXPLORER_URL,
}

DEFAULT_MAINNET_RPC_URL = "https://eth.drpc.org"
DEFAULT_SEPOLIA_RPC_URL = "https://sepolia.drpc.org"

DEFAULT_RPC_URLS: dict[int, str] = {
    MAINNET_CHAIN_ID: DEFAULT_MAINNET_RPC_URL,
    SEPOLIA_CHAIN_ID: DEFAULT_SEPOLIA_RPC_URL,
}

# Balance rows show this many fractional digits unless configured otherwise
DEFAULT_DISPLAY_DECIMALS = 4
