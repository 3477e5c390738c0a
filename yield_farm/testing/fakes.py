"""In-memory doubles for the chain client and signer resolver.

Registered as a pytest plugin from the package conftest; tests tweak the
fake's attributes to script reads, submissions and receipts.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any

import pytest

import yield_farm.core.config as config
from yield_farm.core.clients.protocols import ReadResult, TransactionReceipt
from yield_farm.core.utils.signers import EmbeddedSigner

# Hardhat / anvil default account #0. Public test key, never funded on real chains.
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
AMBIENT_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
FARM_ADDRESS = "0x0000000000000000000000000000000000000001"
LP_TOKEN_ADDRESS = "0x0000000000000000000000000000000000000002"
ONE = 10**18


def tx_hash(n: int) -> str:
    return "0x" + f"{n:064x}"


class FakeChainClient:
    def __init__(self) -> None:
        self.read_values: dict[str, Any] = {
            "userInfo": (10 * ONE, 0, 0),
            "pendingRewards": 0,
            "decimals": 18,
        }
        self.read_errors: dict[str, BaseException] = {}
        self.batch_error: BaseException | None = None
        self.batch_calls: list[list[Any]] = []

        self.hashes: list[str] = []
        self.submit_error: BaseException | None = None
        self.submissions: list[dict[str, Any]] = []

        self.receipt_success = True
        self.receipt_error: BaseException | None = None
        self.receipt_gates: dict[str, asyncio.Event] = {}
        self.receipt_waits: list[str] = []

        self.ambient: str | None = AMBIENT_ADDRESS

    async def batch_read(self, queries):
        self.batch_calls.append(list(queries))
        if self.batch_error is not None:
            raise self.batch_error
        results = []
        for query in queries:
            if query.method in self.read_errors:
                results.append(ReadResult(error=self.read_errors[query.method]))
            else:
                results.append(ReadResult(value=self.read_values[query.method]))
        return results

    async def submit(self, target, abi, method, args, signer=None):
        self.submissions.append(
            {"target": target, "method": method, "args": list(args), "signer": signer}
        )
        if self.submit_error is not None:
            raise self.submit_error
        if self.hashes:
            return self.hashes.pop(0)
        return tx_hash(len(self.submissions))

    async def wait_for_receipt(self, transaction_hash):
        self.receipt_waits.append(transaction_hash)
        gate = self.receipt_gates.get(transaction_hash)
        if gate is not None:
            await gate.wait()
        if self.receipt_error is not None:
            raise self.receipt_error
        return TransactionReceipt(
            success=self.receipt_success,
            transaction_hash=transaction_hash,
            block_number=1,
        )

    async def ambient_address(self):
        return self.ambient

    def explorer_tx_url(self, transaction_hash: str) -> str:
        return f"https://explorer.test/tx/{transaction_hash}"


class StaticSignerResolver:
    def __init__(
        self,
        signer: EmbeddedSigner | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.signer = signer
        self.error = error
        self.calls = 0

    async def resolve(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.signer


@pytest.fixture
def chain_client() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def embedded_signer() -> EmbeddedSigner:
    return EmbeddedSigner.from_private_key(TEST_PRIVATE_KEY)


@pytest.fixture
def embedded_resolver(embedded_signer) -> StaticSignerResolver:
    return StaticSignerResolver(embedded_signer)


@pytest.fixture
def ambient_resolver() -> StaticSignerResolver:
    return StaticSignerResolver(None)


@pytest.fixture
def restore_global_config():
    original = copy.deepcopy(config.CONFIG)
    yield
    config.set_config(original)
