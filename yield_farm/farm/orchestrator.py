from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from yield_farm.core.clients.protocols import ChainClientProtocol
from yield_farm.core.constants.yield_farming_abi import YIELD_FARMING_ABI
from yield_farm.core.utils.errors import short_error_message
from yield_farm.core.utils.signers import (
    EmbeddedSigning,
    SignerResolverProtocol,
    SigningPath,
    resolve_signing_path,
)
from yield_farm.core.utils.state import StateCell
from yield_farm.farm.snapshot import BalanceSnapshotStore
from yield_farm.farm.types import TransactionRecord, TxKind, TxPhase

_CONTRACT_METHODS = {
    TxKind.WITHDRAW: "withdraw",
    TxKind.CLAIM_REWARD: "claimRewards",
}


class TransactionOrchestrator:
    """Submit withdraw / claim calls and follow each one to a terminal phase.

    Every submission gets its own `TransactionRecord`. Only the most recent
    record is published through ``state``; transitions of an older record
    that is still in flight are applied to that record alone and never
    overwrite the active one.
    """

    def __init__(
        self,
        chain_client: ChainClientProtocol,
        signer_resolver: SignerResolverProtocol,
        snapshot_store: BalanceSnapshotStore,
        *,
        farm_address: str,
    ) -> None:
        self.chain_client = chain_client
        self.signer_resolver = signer_resolver
        self.snapshot_store = snapshot_store
        self.farm_address = farm_address
        self.account: str | None = None

        self.state: StateCell[TransactionRecord | None] = StateCell(
            None, name="transaction"
        )
        # Fires once per record, when its hash first becomes known.
        self.submitted: StateCell[TransactionRecord | None] = StateCell(
            None, name="submitted"
        )
        self.logger = logger.bind(component=self.__class__.__name__)

    @property
    def transaction(self) -> TransactionRecord | None:
        return self.state.value

    def on_submitted(
        self, listener: Callable[[TransactionRecord | None], None]
    ) -> Callable[[], None]:
        return self.submitted.subscribe(listener)

    async def withdraw(self, amount: int) -> TransactionRecord:
        return await self.submit(TxKind.WITHDRAW, amount)

    async def claim_reward(self) -> TransactionRecord:
        return await self.submit(TxKind.CLAIM_REWARD)

    async def submit(self, kind: TxKind, amount: int | None = None) -> TransactionRecord:
        args = self._build_args(kind, amount)
        method = _CONTRACT_METHODS[kind]

        record = TransactionRecord.new(kind, amount)
        log = self.logger.bind(record_id=record.record_id, kind=str(kind))
        record = record.advance(TxPhase.AWAITING_SIGNATURE)
        self.state.set(record)

        path = await resolve_signing_path(self.signer_resolver)
        log.info(f"Submitting {method}{tuple(args)} via {type(path).__name__}")
        try:
            tx_hash = await self._submit_call(path, method, args)
        except Exception as exc:
            log.warning(f"{method} rejected: {exc}")
            return self._transition(
                record, TxPhase.FAILED, error=short_error_message(exc)
            )

        log = log.bind(hash=tx_hash)
        record = self._transition(record, TxPhase.PENDING, hash=tx_hash)
        if self._is_active(record):
            self.submitted.set(record)

        record = self._transition(record, TxPhase.CONFIRMING)
        try:
            receipt = await self.chain_client.wait_for_receipt(tx_hash)
        except Exception as exc:
            log.warning(f"Receipt wait failed: {exc}")
            return self._transition(
                record, TxPhase.FAILED, error=short_error_message(exc)
            )

        if not receipt.success:
            log.warning("Transaction reverted")
            return self._transition(
                record, TxPhase.FAILED, error=f"Transaction reverted: {tx_hash}"
            )

        record = self._transition(record, TxPhase.CONFIRMED)
        log.info("Transaction confirmed, refreshing balances")
        # Balances changed on-chain even when this record is no longer the
        # active one, so the refresh is not limited to the active record.
        ok, result = await self.snapshot_store.refresh(self.account)
        if not ok:
            log.warning(f"Balance refresh after confirmation failed: {result}")
        return record

    def _build_args(self, kind: TxKind, amount: int | None) -> list[Any]:
        if kind == TxKind.WITHDRAW:
            if amount is None or int(amount) <= 0:
                raise ValueError("withdraw requires a positive fixed-point amount")
            return [int(amount)]
        if amount is not None:
            raise ValueError("claimRewards takes no amount")
        return []

    async def _submit_call(
        self, path: SigningPath, method: str, args: list[Any]
    ) -> str:
        if isinstance(path, EmbeddedSigning):
            return await self.chain_client.submit(
                self.farm_address,
                YIELD_FARMING_ABI,
                method,
                args,
                signer=path.signer,
            )
        return await self.chain_client.submit(
            self.farm_address, YIELD_FARMING_ABI, method, args
        )

    def _is_active(self, record: TransactionRecord) -> bool:
        return record.is_same_record(self.state.value)

    def _transition(
        self,
        record: TransactionRecord,
        phase: TxPhase,
        *,
        hash: str | None = None,
        error: str | None = None,
    ) -> TransactionRecord:
        updated = record.advance(phase, hash=hash, error=error)
        if self._is_active(record):
            self.state.set(updated)
        else:
            self.logger.debug(
                f"Record {record.record_id} moved to {phase} after being superseded"
            )
        return updated
