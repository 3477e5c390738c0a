from __future__ import annotations

from loguru import logger

from yield_farm.core.clients.ChainClient import ChainClient
from yield_farm.core.clients.protocols import ChainClientProtocol
from yield_farm.core.config import FarmSettings, get_farm_settings
from yield_farm.core.utils.signers import (
    ConfigSignerResolver,
    EmbeddedSigning,
    SignerResolverProtocol,
    resolve_signing_path,
)
from yield_farm.core.utils.state import StateCell
from yield_farm.farm.orchestrator import TransactionOrchestrator
from yield_farm.farm.snapshot import BalanceSnapshotStore
from yield_farm.farm.types import (
    BalanceSnapshot,
    TransactionRecord,
    TxKind,
    ValidationResult,
)
from yield_farm.farm.validator import validate_amount


class FarmSession:
    """Everything one withdraw/claim view needs, scoped to a single mount.

    Presenters read `snapshot`, `validation` and `transaction`, and subscribe
    to the matching ``*_state`` cells to be told when they change.
    """

    def __init__(
        self,
        chain_client: ChainClientProtocol,
        signer_resolver: SignerResolverProtocol,
        *,
        farm_address: str,
        lp_token_address: str,
    ) -> None:
        self.chain_client = chain_client
        self.signer_resolver = signer_resolver
        self.account: str | None = None

        self.snapshot_store = BalanceSnapshotStore(
            chain_client,
            farm_address=farm_address,
            lp_token_address=lp_token_address,
        )
        self.orchestrator = TransactionOrchestrator(
            chain_client,
            signer_resolver,
            self.snapshot_store,
            farm_address=farm_address,
        )

        self.amount_state: StateCell[str] = StateCell("", name="amount")
        self.validation_state: StateCell[ValidationResult | None] = StateCell(
            None, name="validation"
        )
        self.status_visible_state: StateCell[bool] = StateCell(
            False, name="status_visible"
        )

        self.snapshot_store.subscribe(lambda _snapshot: self._revalidate())
        self.orchestrator.on_submitted(self._reveal_status)
        self.logger = logger.bind(component=self.__class__.__name__)

    @classmethod
    def from_config(cls, settings: FarmSettings | None = None) -> FarmSession:
        settings = settings or get_farm_settings()
        farm_address, lp_token_address = settings.require_addresses()
        return cls(
            ChainClient(settings=settings),
            ConfigSignerResolver(),
            farm_address=farm_address,
            lp_token_address=lp_token_address,
        )

    @property
    def snapshot(self) -> BalanceSnapshot:
        return self.snapshot_store.snapshot

    @property
    def snapshot_state(self) -> StateCell[BalanceSnapshot]:
        return self.snapshot_store.state

    @property
    def transaction_state(self) -> StateCell[TransactionRecord | None]:
        return self.orchestrator.state

    @property
    def validation(self) -> ValidationResult | None:
        return self.validation_state.value

    @property
    def transaction(self) -> TransactionRecord | None:
        return self.orchestrator.transaction

    @property
    def status_visible(self) -> bool:
        return self.status_visible_state.value

    @property
    def can_claim(self) -> bool:
        reward = self.snapshot.pending_reward
        return reward is not None and reward > 0

    @property
    def is_submitting(self) -> bool:
        record = self.transaction
        return record is not None and record.is_awaiting_signature

    async def resolve_account(self) -> str | None:
        path = await resolve_signing_path(self.signer_resolver)
        if isinstance(path, EmbeddedSigning):
            return path.signer.address
        try:
            return await self.chain_client.ambient_address()
        except Exception as exc:
            self.logger.warning(f"Could not resolve connected wallet: {exc}")
            return None

    async def mount(self) -> BalanceSnapshot:
        self.account = await self.resolve_account()
        self.orchestrator.account = self.account
        if self.account is None:
            self.logger.warning("No embedded signer or connected wallet available")
            return self.snapshot

        ok, result = await self.snapshot_store.refresh(self.account)
        if not ok:
            self.logger.warning(f"Initial balance read failed: {result}")
        return self.snapshot

    def set_amount(self, raw_amount: str) -> ValidationResult | None:
        self.amount_state.set(raw_amount)
        return self._revalidate()

    async def submit(
        self, kind: TxKind, amount: str | None = None
    ) -> TransactionRecord | None:
        """Start a withdraw or claim.

        Returns ``None`` without touching the chain when the input does not
        validate, when decimals are still unknown, or while the previous
        submission is waiting for a signature.
        """
        if self.is_submitting:
            self.logger.info("Ignoring submit while a signature is pending")
            return None

        if kind == TxKind.CLAIM_REWARD:
            return await self.orchestrator.claim_reward()

        if amount is not None:
            self.amount_state.set(amount)
        result = validate_amount(self.amount_state.value, self.snapshot)
        self.validation_state.set(result)
        if not result.ok:
            return None
        if result.parsed_amount is None:
            self.logger.warning("LP token decimals unknown, cannot build withdrawal")
            return None
        return await self.orchestrator.withdraw(result.parsed_amount)

    def _revalidate(self) -> ValidationResult | None:
        raw = self.amount_state.value
        result = validate_amount(raw, self.snapshot) if raw else None
        self.validation_state.set(result)
        return result

    def _reveal_status(self, record: TransactionRecord | None) -> None:
        if record is not None:
            self.status_visible_state.set(True)
