from unittest.mock import MagicMock, PropertyMock

import pytest
from web3 import Web3
from web3.exceptions import ProviderConnectionError

from wallet_info.fetchers import BalanceQueryError, Web3BalanceFetcher
from wallet_info.settings import WalletSettings

ACCOUNT = "0x" + "ab" * 20
USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"


@pytest.fixture
def config():
    return WalletSettings(
        rpc_url="http://localhost:8545",
        rpc_delay=0,
        rpc_jitter=0,
        rpc_max_time=5,
    )


@pytest.fixture
def w3():
    mock = MagicMock()
    mock.to_checksum_address.side_effect = Web3.to_checksum_address
    mock.eth.chain_id = 1
    return mock


@pytest.mark.asyncio
async def test_native_balance_uses_get_balance(config, w3):
    w3.eth.get_balance.return_value = 2500000000000000000
    fetcher = Web3BalanceFetcher(config, w3=w3)

    balance = await fetcher.fetch_balance(ACCOUNT, 1, None)

    assert balance == 2500000000000000000
    w3.eth.get_balance.assert_called_once_with(Web3.to_checksum_address(ACCOUNT))
    w3.eth.contract.assert_not_called()


@pytest.mark.asyncio
async def test_token_balance_uses_erc20_balance_of(config, w3):
    contract = MagicMock()
    contract.functions.balanceOf.return_value.call.return_value = 1000000
    w3.eth.contract.return_value = contract
    fetcher = Web3BalanceFetcher(config, w3=w3)

    balance = await fetcher.fetch_balance(ACCOUNT, 1, USDT.lower())

    assert balance == 1000000
    _, kwargs = w3.eth.contract.call_args
    assert kwargs["address"] == USDT
    assert any(item["name"] == "balanceOf" for item in kwargs["abi"])
    contract.functions.balanceOf.assert_called_once_with(
        Web3.to_checksum_address(ACCOUNT)
    )


@pytest.mark.asyncio
async def test_wrong_chain_rejected_before_balance_query(config, w3):
    w3.eth.chain_id = 11155111
    fetcher = Web3BalanceFetcher(config, w3=w3)

    with pytest.raises(BalanceQueryError, match="serves chain 11155111, not 1"):
        await fetcher.fetch_balance(ACCOUNT, 1, None)

    w3.eth.get_balance.assert_not_called()
    w3.eth.contract.assert_not_called()


@pytest.mark.asyncio
async def test_network_name_matches_endpoint_chain(config, w3):
    w3.eth.chain_id = 11155111
    w3.eth.get_balance.return_value = 7
    fetcher = Web3BalanceFetcher(config, w3=w3)

    assert await fetcher.fetch_balance(ACCOUNT, "sepolia", None) == 7


@pytest.mark.asyncio
async def test_endpoint_chain_id_is_read_once(config, w3):
    w3.eth.get_balance.return_value = 1
    chain_id = PropertyMock(return_value=1)
    type(w3.eth).chain_id = chain_id
    fetcher = Web3BalanceFetcher(config, w3=w3)

    await fetcher.fetch_balance(ACCOUNT, 1, None)
    await fetcher.fetch_balance(ACCOUNT, 1, None)

    assert await fetcher.chain_id() == 1
    chain_id.assert_called_once_with()


@pytest.mark.asyncio
async def test_invalid_rpc_response_raises(config, w3):
    w3.eth.get_balance.return_value = "0x10"
    fetcher = Web3BalanceFetcher(config, w3=w3)

    with pytest.raises(BalanceQueryError):
        await fetcher.fetch_balance(ACCOUNT, 1, None)


@pytest.mark.asyncio
async def test_connection_errors_are_retried(config, w3):
    w3.eth.get_balance.side_effect = [ProviderConnectionError("reset"), 42]
    fetcher = Web3BalanceFetcher(config, w3=w3)

    balance = await fetcher.fetch_balance(ACCOUNT, 1, None)

    assert balance == 42
    assert w3.eth.get_balance.call_count == 2


@pytest.mark.asyncio
async def test_other_errors_are_not_retried(config, w3):
    w3.eth.get_balance.side_effect = ValueError("execution reverted")
    fetcher = Web3BalanceFetcher(config, w3=w3)

    with pytest.raises(ValueError, match="execution reverted"):
        await fetcher.fetch_balance(ACCOUNT, 1, None)

    assert w3.eth.get_balance.call_count == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_fetch_usdt_balance_integration():
    config = WalletSettings(rpc_url="https://eth.drpc.org")
    fetcher = Web3BalanceFetcher(config)

    balance = await fetcher.fetch_balance(
        "0x5754284f345afc66a98fbb0a0afe71e0f007b949", 1, USDT
    )

    assert isinstance(balance, int)
    assert balance >= 0
