from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger
from web3 import AsyncWeb3

from yield_farm.core.clients.protocols import (
    BatchReadError,
    ReadQuery,
    ReadResult,
    ReceiptError,
    SubmissionError,
    TransactionReceipt,
)
from yield_farm.core.config import FarmSettings, get_farm_settings
from yield_farm.core.constants.chains import CHAIN_EXPLORER_URLS
from yield_farm.core.utils.errors import short_error_message
from yield_farm.core.utils.signers import EmbeddedSigner
from yield_farm.core.utils.transaction import (
    TransactionRevertedError,
    encode_call,
    normalize_tx_hash,
    send_via_node,
    sign_and_broadcast,
    wait_for_transaction_receipt,
)
from yield_farm.core.utils.web3 import web3_from_chain_id
from yield_farm.core.utils.web3_batch import batch_web3_calls


class ChainClient:
    """web3-backed reads, writes and receipt polling for one chain."""

    def __init__(
        self,
        chain_id: int | None = None,
        settings: FarmSettings | None = None,
    ) -> None:
        self.settings = settings or get_farm_settings()
        self.chain_id = int(chain_id if chain_id is not None else self.settings.chain_id)
        self.logger = logger.bind(client=self.__class__.__name__, chain_id=self.chain_id)

    async def batch_read(self, queries: list[ReadQuery]) -> list[ReadResult]:
        if not queries:
            return []
        try:
            async with web3_from_chain_id(self.chain_id) as web3:
                factories = [self._call_factory(web3, query) for query in queries]
                values = await batch_web3_calls(
                    web3,
                    *factories,
                    fallback_to_gather=self.settings.batch_fallback,
                    return_exceptions=True,
                )
        except Exception as exc:
            self.logger.warning(f"Batched read of {len(queries)} queries failed: {exc}")
            raise BatchReadError(short_error_message(exc)) from exc

        results: list[ReadResult] = []
        for query, value in zip(queries, values, strict=True):
            if isinstance(value, BaseException):
                self.logger.debug(f"Read {query.method} on {query.target} failed: {value}")
                results.append(ReadResult(error=value))
            else:
                results.append(ReadResult(value=value))
        return results

    @staticmethod
    def _call_factory(
        web3: AsyncWeb3, query: ReadQuery
    ) -> Callable[[], Awaitable[Any]]:
        contract = web3.eth.contract(
            address=web3.to_checksum_address(query.target), abi=query.abi
        )
        fn = getattr(contract.functions, query.method)
        return lambda: fn(*query.args).call(block_identifier="latest")

    async def submit(
        self,
        target: str,
        abi: list[dict[str, Any]],
        method: str,
        args: list[Any],
        signer: EmbeddedSigner | None = None,
    ) -> str:
        try:
            if signer is not None:
                transaction = await encode_call(
                    target=target,
                    abi=abi,
                    fn_name=method,
                    args=list(args),
                    from_address=signer.address,
                    chain_id=self.chain_id,
                )
                return await sign_and_broadcast(transaction, signer.sign_transaction)

            from_address = await self.ambient_address()
            if not from_address:
                raise SubmissionError("No connected wallet available")
            transaction = await encode_call(
                target=target,
                abi=abi,
                fn_name=method,
                args=list(args),
                from_address=from_address,
                chain_id=self.chain_id,
            )
            return await send_via_node(transaction)
        except SubmissionError:
            raise
        except Exception as exc:
            self.logger.error(f"Submitting {method} to {target} failed: {exc}")
            raise SubmissionError(short_error_message(exc)) from exc

    async def wait_for_receipt(self, transaction_hash: str) -> TransactionReceipt:
        txn_hash = normalize_tx_hash(transaction_hash)
        try:
            receipt = await wait_for_transaction_receipt(
                self.chain_id,
                txn_hash,
                poll_interval=self.settings.poll_interval,
                timeout=self.settings.receipt_timeout,
                confirmations=self.settings.confirmations,
            )
        except TransactionRevertedError as exc:
            return TransactionReceipt(
                success=False,
                transaction_hash=txn_hash,
                block_number=exc.receipt.get("blockNumber"),
                raw=exc.receipt,
            )
        except Exception as exc:
            self.logger.error(f"Waiting for receipt of {txn_hash} failed: {exc}")
            raise ReceiptError(short_error_message(exc)) from exc

        status = receipt.get("status")
        return TransactionReceipt(
            success=status is None or int(status) == 1,
            transaction_hash=txn_hash,
            block_number=receipt.get("blockNumber"),
            raw=dict(receipt),
        )

    async def ambient_address(self) -> str | None:
        if self.settings.ambient_address:
            return AsyncWeb3.to_checksum_address(self.settings.ambient_address)
        try:
            async with web3_from_chain_id(self.chain_id) as web3:
                accounts = await web3.eth.accounts
        except Exception as exc:
            self.logger.debug(f"No connected wallet reported by node: {exc}")
            return None
        if not accounts:
            return None
        return AsyncWeb3.to_checksum_address(accounts[0])

    def explorer_tx_url(self, transaction_hash: str) -> str | None:
        base = self.settings.explorer_url or CHAIN_EXPLORER_URLS.get(self.chain_id)
        if not base:
            return None
        return f"{base.rstrip('/')}/tx/{transaction_hash}"
