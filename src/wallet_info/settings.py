"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from web3 import Web3

from .constants import (
    DEFAULT_DISPLAY_DECIMALS,
    DEFAULT_RPC_URLS,
    MAINNET_CHAIN_ID,
    TokenEntry,
)
from .registry import resolve_network

load_dotenv()


class ExtraTokenSettings(BaseModel):
    """A token tracked in addition to the built-in registry entries."""

    symbol: str
    name: str | None = None
    address: str
    decimals: int = Field(ge=0)

    model_config = ConfigDict(extra="ignore")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not Web3.is_address(v):
            raise ValueError(f"Invalid token address: {v}")
        return v

    def as_entry(self) -> TokenEntry:
        return {
            "symbol": self.symbol,
            "name": self.name or self.symbol,
            "address": self.address,
            "decimals": self.decimals,
        }


class WalletSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with WALLET_INFO_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- account / network ---
    account_address: str | None = None
    network: int | str = MAINNET_CHAIN_ID
    rpc_url: str | None = None

    # --- RPC settings ---
    rpc_max_concurrent_calls: int = Field(default=5, ge=1)
    rpc_delay: float = Field(default=0.0, ge=0)
    rpc_jitter: float = Field(default=0.0, ge=0)
    rpc_timeout: float = Field(default=15.0, gt=0)
    rpc_max_time: float = Field(
        default=30.0,
        ge=0,
        description="Upper bound (seconds) for retrying a balance query on connection errors.",
    )

    # --- run control ---
    global_timeout_seconds: float | None = 60.0
    poll_interval: float = Field(
        default=12.0,
        gt=0,
        description="Seconds between balance refreshes in watch mode.",
    )

    # --- presentation ---
    display_decimals: int = Field(default=DEFAULT_DISPLAY_DECIMALS, ge=0, le=18)

    # --- logging ---
    log_level: str = "INFO"

    # --- registry extensions (keyed by network name or chain id) ---
    extra_tokens: dict[str, list[ExtraTokenSettings]] = Field(default_factory=dict)

    model_config = SettingsConfigDict(
        env_prefix="WALLET_INFO_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("network", mode="after")
    @classmethod
    def normalize_network(cls, v: int | str) -> int | str:
        """Turn names and numeric strings into chain ids."""
        return resolve_network(v)

    @field_validator("account_address")
    @classmethod
    def validate_account_address(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not Web3.is_address(v):
            raise ValueError(f"account_address is not a valid address: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("WALLET_INFO_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    # Try default locations
                    local_config = Path("wallet-info.toml")
                    user_config = (
                        Path.home() / ".config" / "wallet-info" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [wallet_info]
                body = data.get("wallet_info", data)
                if not isinstance(body, dict):
                    return {}
                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with RPC credentials redacted.

        Hosted RPC providers embed API keys in the URL path, query string or
        userinfo, so only the scheme, host and port are kept.
        """
        data = self.model_dump()
        if self.rpc_url:
            parts = urlsplit(self.rpc_url)
            has_userinfo = parts.username is not None or parts.password is not None
            if parts.path.strip("/") or parts.query or has_userinfo:
                host = parts.hostname or ""
                if ":" in host:
                    host = f"[{host}]"
                if parts.port is not None:
                    host = f"{host}:{parts.port}"
                data["rpc_url"] = urlunsplit(
                    (parts.scheme, host, "/***redacted***", "", "")
                )
        return data

    @property
    def account_address_required(self) -> str:
        """Get account_address, raising ValueError if not set."""
        if self.account_address is None:
            raise ValueError("account_address must be configured")
        return self.account_address

    @property
    def rpc_url_required(self) -> str:
        """Get the RPC endpoint, falling back to the network default."""
        if self.rpc_url is not None:
            return self.rpc_url
        default = (
            DEFAULT_RPC_URLS.get(self.network)
            if isinstance(self.network, int)
            else None
        )
        if default is None:
            raise ValueError(
                f"rpc_url must be configured for network {self.network!r} "
                "(no default endpoint known)"
            )
        return default

    @property
    def extra_tokens_by_network(self) -> dict[int | str, list[TokenEntry]]:
        """Extra token entries keyed by resolved network id."""
        return {
            resolve_network(key): [token.as_entry() for token in tokens]
            for key, tokens in self.extra_tokens.items()
        }
