import math
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from hexbytes import HexBytes
from web3 import AsyncWeb3

from yield_farm.core.constants.base import (
    GAS_BUFFER_MULTIPLIER,
    SUGGESTED_GAS_PRICE_MULTIPLIER,
    SUGGESTED_PRIORITY_FEE_MULTIPLIER,
)
from yield_farm.core.constants.chains import CHAIN_ID_LOCAL, CHAIN_ID_WESTEND_ASSET_HUB
from yield_farm.core.utils.transaction import (
    TransactionRevertedError,
    _get_transaction_from_address,
    gas_limit_transaction,
    gas_price_transaction,
    nonce_transaction,
    normalize_tx_hash,
    send_via_node,
    sign_and_broadcast,
    wait_for_transaction_receipt,
)
from yield_farm.core.utils.web3 import get_transaction_chain_id

RANDOM_USER_0 = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
TX_HASH = "0x" + "ab" * 32


def _mock_web3() -> MagicMock:
    web3 = MagicMock()
    web3.eth = MagicMock()
    web3.provider.disconnect = AsyncMock()
    return web3


class TestGetChainId:
    def test_valid_chain_id(self):
        assert get_transaction_chain_id({"chainId": 1}) == 1

    def test_chain_id_as_string(self):
        assert get_transaction_chain_id({"chainId": "420420421"}) == 420420421

    def test_empty_transaction(self):
        with pytest.raises(ValueError, match="Transaction does not contain chainId"):
            get_transaction_chain_id({})


class TestGetFromAddress:
    def test_lowercase_address_converted_to_checksum(self):
        result = _get_transaction_from_address({"from": RANDOM_USER_0.lower()})
        assert AsyncWeb3.is_checksum_address(result)
        assert result == RANDOM_USER_0

    def test_empty_transaction(self):
        with pytest.raises(
            ValueError, match="Transaction does not contain from address"
        ):
            _get_transaction_from_address({})


class TestNormalizeTxHash:
    def test_adds_prefix(self):
        assert normalize_tx_hash("ab" * 32) == TX_HASH

    def test_keeps_prefixed_string(self):
        assert normalize_tx_hash(TX_HASH) == TX_HASH

    def test_bytes_and_hexbytes(self):
        assert normalize_tx_hash(bytes.fromhex("ab" * 32)) == TX_HASH
        assert normalize_tx_hash(HexBytes(TX_HASH)) == TX_HASH


@pytest.mark.asyncio
class TestNonceTransaction:
    @patch("yield_farm.core.utils.transaction.web3s_from_chain_id")
    async def test_multiple_web3s_returns_max_nonce(self, mock_web3s_context):
        web3s = []
        for nonce in (5, 8, 6):
            web3 = _mock_web3()
            web3.eth.get_transaction_count = AsyncMock(return_value=nonce)
            web3s.append(web3)
        mock_web3s_context.return_value.__aenter__.return_value = web3s

        result = await nonce_transaction({"from": RANDOM_USER_0, "chainId": 1})

        assert result["nonce"] == 8
        for web3 in web3s:
            web3.eth.get_transaction_count.assert_called_once_with(
                RANDOM_USER_0, block_identifier="pending"
            )


@pytest.mark.asyncio
class TestGasPriceTransaction:
    @patch("yield_farm.core.utils.transaction.web3s_from_chain_id")
    async def test_westend_uses_legacy_gas_price(self, mock_web3s_context):
        web3 = _mock_web3()
        web3.eth.gas_price = AsyncMock(return_value=1_000_000_000)()
        mock_web3s_context.return_value.__aenter__.return_value = [web3]

        result = await gas_price_transaction({"chainId": CHAIN_ID_WESTEND_ASSET_HUB})

        assert result["gasPrice"] == int(1_000_000_000 * SUGGESTED_GAS_PRICE_MULTIPLIER)
        assert "maxFeePerGas" not in result
        assert "maxPriorityFeePerGas" not in result

    @patch("yield_farm.core.utils.transaction.web3s_from_chain_id")
    async def test_eip1559_chain_uses_fee_history(self, mock_web3s_context):
        block = MagicMock()
        block.baseFeePerGas = 30_000_000_000
        fee_history = MagicMock()
        fee_history.reward = [[2_000_000_000] for _ in range(10)]
        web3 = _mock_web3()
        web3.eth.get_block = AsyncMock(return_value=block)
        web3.eth.fee_history = AsyncMock(return_value=fee_history)
        mock_web3s_context.return_value.__aenter__.return_value = [web3]

        result = await gas_price_transaction({"chainId": CHAIN_ID_LOCAL})

        assert "gasPrice" not in result
        assert result["maxPriorityFeePerGas"] == int(
            2_000_000_000 * SUGGESTED_PRIORITY_FEE_MULTIPLIER
        )
        assert result["maxFeePerGas"] == int(
            30_000_000_000 * 2 + 2_000_000_000 * SUGGESTED_PRIORITY_FEE_MULTIPLIER
        )


@pytest.mark.asyncio
class TestGasLimitTransaction:
    @patch("yield_farm.core.utils.transaction.web3s_from_chain_id")
    async def test_buffers_highest_estimate(self, mock_web3s_context):
        web3_a = _mock_web3()
        web3_a.eth.estimate_gas = AsyncMock(return_value=50_000)
        web3_b = _mock_web3()
        web3_b.eth.estimate_gas = AsyncMock(side_effect=Exception("rpc down"))
        mock_web3s_context.return_value.__aenter__.return_value = [web3_a, web3_b]

        result = await gas_limit_transaction(
            {"chainId": CHAIN_ID_LOCAL, "from": RANDOM_USER_0, "gas": 1}
        )

        assert result["gas"] == math.ceil(50_000 * GAS_BUFFER_MULTIPLIER)

    @patch("yield_farm.core.utils.transaction.web3s_from_chain_id")
    async def test_all_estimates_failing_raises(self, mock_web3s_context):
        web3 = _mock_web3()
        web3.eth.estimate_gas = AsyncMock(side_effect=Exception("execution reverted"))
        mock_web3s_context.return_value.__aenter__.return_value = [web3]

        with pytest.raises(RuntimeError, match="Gas estimation failed on all RPCs"):
            await gas_limit_transaction({"chainId": CHAIN_ID_LOCAL})


@pytest.mark.asyncio
class TestSignAndBroadcast:
    async def test_fills_signs_and_broadcasts_without_waiting(self):
        transaction = {"chainId": CHAIN_ID_LOCAL, "from": RANDOM_USER_0}
        sign_callback = AsyncMock(return_value=b"\x01\x02")

        with (
            patch(
                "yield_farm.core.utils.transaction.gas_limit_transaction",
                AsyncMock(side_effect=lambda tx: {**tx, "gas": 21_000}),
            ),
            patch(
                "yield_farm.core.utils.transaction.nonce_transaction",
                AsyncMock(side_effect=lambda tx: {**tx, "nonce": 3}),
            ),
            patch(
                "yield_farm.core.utils.transaction.gas_price_transaction",
                AsyncMock(side_effect=lambda tx: {**tx, "gasPrice": 7}),
            ),
            patch(
                "yield_farm.core.utils.transaction.broadcast_transaction",
                AsyncMock(return_value=TX_HASH),
            ) as mock_broadcast,
            patch(
                "yield_farm.core.utils.transaction.wait_for_transaction_receipt",
                AsyncMock(),
            ) as mock_wait,
        ):
            result = await sign_and_broadcast(transaction, sign_callback)

        assert result == TX_HASH
        signed_tx = sign_callback.call_args.args[0]
        assert signed_tx["gas"] == 21_000
        assert signed_tx["nonce"] == 3
        assert signed_tx["gasPrice"] == 7
        mock_broadcast.assert_awaited_once_with(CHAIN_ID_LOCAL, b"\x01\x02")
        mock_wait.assert_not_called()

    async def test_missing_callback_raises(self):
        with pytest.raises(ValueError, match="sign_callback must be provided"):
            await sign_and_broadcast({"chainId": 1}, None)


@pytest.mark.asyncio
class TestSendViaNode:
    @patch("yield_farm.core.utils.transaction.web3_from_chain_id")
    async def test_uses_eth_send_transaction(self, mock_web3_context):
        web3 = _mock_web3()
        web3.eth.send_transaction = AsyncMock(return_value=HexBytes(TX_HASH))
        mock_web3_context.return_value.__aenter__.return_value = web3

        transaction = {"chainId": CHAIN_ID_LOCAL, "from": RANDOM_USER_0, "data": "0x"}
        result = await send_via_node(transaction)

        assert result == TX_HASH
        web3.eth.send_transaction.assert_awaited_once_with(transaction)

    async def test_requires_from_address(self):
        with pytest.raises(ValueError, match="from address"):
            await send_via_node({"chainId": CHAIN_ID_LOCAL})


@pytest.mark.asyncio
class TestWaitForTransactionReceipt:
    @patch("yield_farm.core.utils.transaction.web3s_from_chain_id")
    async def test_returns_successful_receipt(self, mock_web3s_context):
        web3 = _mock_web3()
        receipt = {"status": 1, "blockNumber": 10}
        web3.eth.wait_for_transaction_receipt = AsyncMock(return_value=receipt)
        web3.eth.block_number = AsyncMock(return_value=10)()
        mock_web3s_context.return_value.__aenter__.return_value = [web3]

        result = await wait_for_transaction_receipt(1, TX_HASH, poll_interval=0)

        assert result == receipt
        web3.eth.wait_for_transaction_receipt.assert_awaited_once_with(
            TX_HASH, poll_latency=0, timeout=180
        )

    @patch("yield_farm.core.utils.transaction.web3s_from_chain_id")
    async def test_reverted_receipt_raises(self, mock_web3s_context):
        web3 = _mock_web3()
        web3.eth.wait_for_transaction_receipt = AsyncMock(
            return_value={"status": 0, "blockNumber": 10}
        )
        mock_web3s_context.return_value.__aenter__.return_value = [web3]

        with pytest.raises(TransactionRevertedError) as exc_info:
            await wait_for_transaction_receipt(1, TX_HASH, poll_interval=0)

        assert exc_info.value.txn_hash == TX_HASH
        assert exc_info.value.receipt["status"] == 0
