from __future__ import annotations

import asyncio
import random
from collections.abc import Hashable

import backoff
from eth_typing import URI
from web3 import Web3
from web3.exceptions import ProviderConnectionError

from ..abi import load_erc20_abi
from ..logger import get_logger
from ..registry import resolve_network
from ..settings import WalletSettings
from .base import BalanceQueryError, BaseBalanceFetcher, validate_raw_amount

logger = get_logger(__name__)


class Web3BalanceFetcher(BaseBalanceFetcher):
    """Fetch balances over JSON-RPC with web3.

    One instance talks to one endpoint. The endpoint's chain id is read on
    first use and queries for any other network are rejected.
    """

    def __init__(self, config: WalletSettings, w3: Web3 | None = None):
        """Initialize the fetcher.

        Args:
            config: Wallet configuration
            w3: Optional pre-built Web3 instance (defaults to an HTTPProvider
                on ``config.rpc_url_required``)
        """
        self.config = config
        self.w3 = w3 or Web3(
            Web3.HTTPProvider(
                URI(config.rpc_url_required),
                request_kwargs={"timeout": config.rpc_timeout},
            )
        )
        self._chain_id: int | None = None
        self._chain_id_lock = asyncio.Lock()

        self._rpc_sem = asyncio.Semaphore(config.rpc_max_concurrent_calls)
        self._rpc_delay = config.rpc_delay  # seconds
        self._rpc_jitter = config.rpc_jitter  # seconds

        # Retry bound comes from config, so the decorator is applied per instance
        self._rpc = backoff.on_exception(
            backoff.expo,
            ProviderConnectionError,
            max_time=config.rpc_max_time,
            jitter=backoff.full_jitter,
        )(self._rpc_once)

    async def _rpc_once(self, fn, *args, **kwargs):
        """Throttle a single RPC."""
        async with self._rpc_sem:
            try:
                return await asyncio.to_thread(fn, *args, **kwargs)
            finally:
                delay = self._rpc_delay + random.random() * self._rpc_jitter
                if delay > 0:
                    await asyncio.sleep(delay)

    def _read_chain_id(self) -> int:
        return self.w3.eth.chain_id

    async def chain_id(self) -> int:
        """Chain id reported by the endpoint, fetched once and cached."""
        async with self._chain_id_lock:
            if self._chain_id is None:
                self._chain_id = await self._rpc(self._read_chain_id)
                logger.debug("RPC endpoint serves chain %d", self._chain_id)
        return self._chain_id

    async def fetch_balance(
        self, account: str, network: Hashable, asset_address: str | None
    ) -> int:
        endpoint_chain = await self.chain_id()
        if resolve_network(network) != endpoint_chain:
            raise BalanceQueryError(
                f"Endpoint serves chain {endpoint_chain}, not {network!r}"
            )

        checksum_account = self.w3.to_checksum_address(account)

        if asset_address is None:
            logger.debug("Fetching native balance for %s", checksum_account)
            balance = await self._rpc(self.w3.eth.get_balance, checksum_account)
        else:
            checksum_asset = self.w3.to_checksum_address(asset_address)
            logger.debug(
                "Fetching token %s balance for %s", checksum_asset, checksum_account
            )
            erc20_contract = self.w3.eth.contract(
                address=checksum_asset, abi=load_erc20_abi()
            )
            balance = await self._rpc(
                erc20_contract.functions.balanceOf(checksum_account).call
            )

        return validate_raw_amount(balance)
