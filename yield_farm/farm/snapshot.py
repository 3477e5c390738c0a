from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from yield_farm.core.clients.protocols import (
    ChainClientProtocol,
    ReadQuery,
    ReadResult,
)
from yield_farm.core.constants.yield_farming_abi import (
    ERC20_METADATA_ABI,
    YIELD_FARMING_ABI,
)
from yield_farm.core.utils.state import StateCell
from yield_farm.farm.types import BalanceSnapshot


def _first_of(value: Any) -> int:
    # userInfo returns a struct; the staked amount is its first member
    if isinstance(value, (list, tuple)):
        return int(value[0])
    return int(value)


_FIELDS: tuple[tuple[str, Callable[[Any], int]], ...] = (
    ("staked_amount", _first_of),
    ("pending_reward", int),
    ("decimals", int),
)


class BalanceSnapshotStore:
    """Owns the balance snapshot and replaces it as a whole on every refresh."""

    def __init__(
        self,
        chain_client: ChainClientProtocol,
        *,
        farm_address: str,
        lp_token_address: str,
    ) -> None:
        self.chain_client = chain_client
        self.farm_address = farm_address
        self.lp_token_address = lp_token_address
        self.state: StateCell[BalanceSnapshot] = StateCell(
            BalanceSnapshot.empty(), name="snapshot"
        )
        self.logger = logger.bind(component=self.__class__.__name__)

    @property
    def snapshot(self) -> BalanceSnapshot:
        return self.state.value

    def subscribe(self, listener: Callable[[BalanceSnapshot], None]):
        return self.state.subscribe(listener)

    def build_queries(self, account: str) -> list[ReadQuery]:
        return [
            ReadQuery(self.farm_address, YIELD_FARMING_ABI, "userInfo", (account,)),
            ReadQuery(
                self.farm_address, YIELD_FARMING_ABI, "pendingRewards", (account,)
            ),
            ReadQuery(self.lp_token_address, ERC20_METADATA_ABI, "decimals"),
        ]

    async def refresh(self, account: str | None) -> tuple[bool, BalanceSnapshot | str]:
        """Re-read all three values for ``account`` in one batch.

        Returns ``(True, snapshot)`` once the new snapshot is published. A
        read that fails on its own leaves that field ``None``. When the batch
        itself cannot be performed the result is ``(False, reason)`` and the
        previous snapshot stays in place.
        """
        if not account:
            return False, "no account to read balances for"

        queries = self.build_queries(account)
        try:
            results = await self.chain_client.batch_read(queries)
        except Exception as exc:
            self.logger.warning(f"Balance refresh for {account} failed: {exc}")
            return False, str(exc)

        if len(results) != len(queries):
            reason = f"expected {len(queries)} read results, got {len(results)}"
            self.logger.warning(f"Balance refresh for {account} failed: {reason}")
            return False, reason

        snapshot = self._build_snapshot(account, results)
        if snapshot.errors:
            self.logger.warning(
                f"Balance reads for {account} left fields absent: {snapshot.errors}"
            )
        self.state.set(snapshot)
        self.logger.debug(
            f"Snapshot refreshed for {account}: staked={snapshot.staked_amount} "
            f"reward={snapshot.pending_reward} decimals={snapshot.decimals}"
        )
        return True, snapshot

    def _build_snapshot(
        self, account: str, results: list[ReadResult]
    ) -> BalanceSnapshot:
        values: dict[str, int | None] = {}
        errors: dict[str, str] = {}
        for (name, decode), result in zip(_FIELDS, results, strict=True):
            if not result.ok:
                values[name] = None
                errors[name] = str(result.error)
                continue
            try:
                values[name] = decode(result.value)
            except (TypeError, ValueError, IndexError) as exc:
                values[name] = None
                errors[name] = f"undecodable {name}: {exc}"

        return BalanceSnapshot(
            staked_amount=values["staked_amount"],
            pending_reward=values["pending_reward"],
            decimals=values["decimals"],
            account=account,
            errors=errors,
            fetched_at=datetime.now(tz=UTC),
        )
