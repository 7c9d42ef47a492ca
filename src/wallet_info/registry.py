"""Static per-network registry of trackable assets."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .constants import (
    EXPLORER_URLS,
    MAINNET_CHAIN_ID,
    MAINNET_EXPLORER_URL,
    MAINNET_TOKENS,
    NATIVE_DECIMALS,
    NATIVE_NAME,
    NATIVE_SYMBOL,
    NETWORK_NAMES,
    SEPOLIA_CHAIN_ID,
    SEPOLIA_TOKENS,
    TokenEntry,
)
from .logger import get_logger

logger = get_logger(__name__)

Network = Hashable


@dataclass(frozen=True)
class Asset:
    """A fungible asset tracked on one network.

    ``contract_address`` is ``None`` for the network's native asset.
    """

    symbol: str
    display_name: str
    contract_address: str | None
    decimals: int
    explorer_base_url: str

    def __post_init__(self) -> None:
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise TypeError(f"decimals must be an int, got {self.decimals!r}")
        if self.decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {self.decimals}")

    @property
    def is_native(self) -> bool:
        return self.contract_address is None

    def explorer_url(self) -> str:
        """Link to the asset on the block explorer."""
        if self.contract_address is None:
            return self.explorer_base_url
        return f"{self.explorer_base_url}/token/{self.contract_address}"

    def short_address(self) -> str:
        """Truncated contract address for display, e.g. ``0xdAC1...1ec7``."""
        if self.contract_address is None:
            return ""
        return f"{self.contract_address[:6]}...{self.contract_address[-4:]}"


@dataclass(frozen=True)
class NetworkConfig:
    chain_id: int
    name: str
    native: Asset
    tokens: tuple[Asset, ...]
    explorer_base_url: str


def native_asset(explorer_base_url: str = MAINNET_EXPLORER_URL) -> Asset:
    return Asset(
        symbol=NATIVE_SYMBOL,
        display_name=NATIVE_NAME,
        contract_address=None,
        decimals=NATIVE_DECIMALS,
        explorer_base_url=explorer_base_url,
    )


# Used for networks without a registry entry so the native balance can
# still be queried.
DEFAULT_NATIVE_ASSET = native_asset()


def resolve_network(value: Network) -> Network:
    """Normalize a network identifier.

    Integers pass through, numeric strings become integers and known names
    (case-insensitive) map to their chain id. Anything else is returned
    unchanged and is simply not supported by the registry.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return int(text)
        return NETWORK_NAMES.get(text.lower(), text)
    return value


class AssetRegistry:
    """Immutable mapping from network identifier to its tracked assets.

    Built once at start-up and passed by reference; lookups never fail and
    never block.
    """

    def __init__(self, networks: Iterable[NetworkConfig]):
        self._networks: Mapping[Network, NetworkConfig] = MappingProxyType(
            {cfg.chain_id: cfg for cfg in networks}
        )

    def __contains__(self, network: object) -> bool:
        return self.is_supported(network)

    def __len__(self) -> int:
        return len(self._networks)

    @property
    def networks(self) -> tuple[Network, ...]:
        return tuple(self._networks)

    def _lookup(self, network: object) -> NetworkConfig | None:
        if isinstance(network, bool):  # True == 1 would match mainnet
            return None
        try:
            return self._networks.get(resolve_network(network))
        except TypeError:  # unhashable identifier
            return None

    def is_supported(self, network: object) -> bool:
        return self._lookup(network) is not None

    def network_config(self, network: object) -> NetworkConfig | None:
        return self._lookup(network)

    def assets_for(self, network: object) -> tuple[Asset, ...]:
        """Ordered token assets for ``network``; empty when unsupported."""
        cfg = self._lookup(network)
        if cfg is None:
            return ()
        return cfg.tokens

    def native_asset_for(self, network: object) -> Asset:
        cfg = self._lookup(network)
        if cfg is None:
            return DEFAULT_NATIVE_ASSET
        return cfg.native

    def explorer_base_url(self, network: object) -> str:
        """Explorer for ``network``; mainnet's explorer when unsupported.

        The fallback is a display default only.
        """
        cfg = self._lookup(network)
        if cfg is None:
            return EXPLORER_URLS[MAINNET_CHAIN_ID]
        return cfg.explorer_base_url


def _tokens_from_entries(
    entries: Iterable[TokenEntry], explorer_base_url: str
) -> list[Asset]:
    return [
        Asset(
            symbol=entry["symbol"],
            display_name=entry["name"],
            contract_address=entry["address"],
            decimals=entry["decimals"],
            explorer_base_url=explorer_base_url,
        )
        for entry in entries
    ]


def _merge_tokens(base: list[Asset], extra: list[Asset]) -> tuple[Asset, ...]:
    """Append ``extra`` to ``base`` skipping addresses already present."""
    combined: list[Asset] = []
    seen: set[str] = set()
    for asset in [*base, *extra]:
        normalized = (asset.contract_address or "").lower()
        if normalized in seen:
            logger.debug(
                "Skipping duplicate token %s (%s)", asset.symbol, asset.contract_address
            )
            continue
        seen.add(normalized)
        combined.append(asset)
    return tuple(combined)


def build_default_registry(
    extra_tokens: Mapping[Network, list[TokenEntry]] | None = None,
) -> AssetRegistry:
    """Build the registry from the built-in tables plus optional extras.

    Extra tokens for networks without a built-in entry are ignored, as the
    registry has no explorer for them.
    """
    extra_tokens = extra_tokens or {}
    builtin = {
        MAINNET_CHAIN_ID: ("mainnet", MAINNET_TOKENS),
        SEPOLIA_CHAIN_ID: ("sepolia", SEPOLIA_TOKENS),
    }

    for network in extra_tokens:
        if resolve_network(network) not in builtin:
            logger.warning(
                "Ignoring extra tokens for unsupported network %r", network
            )

    resolved_extras = {
        resolve_network(network): entries for network, entries in extra_tokens.items()
    }

    configs: list[NetworkConfig] = []
    for chain_id, (name, entries) in builtin.items():
        explorer = EXPLORER_URLS[chain_id]
        tokens = _merge_tokens(
            _tokens_from_entries(entries, explorer),
            _tokens_from_entries(resolved_extras.get(chain_id, []), explorer),
        )
        configs.append(
            NetworkConfig(
                chain_id=chain_id,
                name=name,
                native=native_asset(explorer),
                tokens=tokens,
                explorer_base_url=explorer,
            )
        )
    return AssetRegistry(configs)


__all__ = [
    "Asset",
    "AssetRegistry",
    "DEFAULT_NATIVE_ASSET",
    "NetworkConfig",
    "build_default_registry",
    "resolve_network",
]
