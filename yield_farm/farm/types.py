"""Data model for the withdraw / claim flow (dataclasses)."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum


class TxKind(StrEnum):
    WITHDRAW = "WITHDRAW"
    CLAIM_REWARD = "CLAIM_REWARD"


class TxPhase(StrEnum):
    NOT_SUBMITTED = "NOT_SUBMITTED"
    AWAITING_SIGNATURE = "AWAITING_SIGNATURE"
    PENDING = "PENDING"
    CONFIRMING = "CONFIRMING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


TERMINAL_PHASES = frozenset({TxPhase.CONFIRMED, TxPhase.FAILED})

_ALLOWED_TRANSITIONS: dict[TxPhase, frozenset[TxPhase]] = {
    TxPhase.NOT_SUBMITTED: frozenset({TxPhase.AWAITING_SIGNATURE}),
    TxPhase.AWAITING_SIGNATURE: frozenset({TxPhase.PENDING, TxPhase.FAILED}),
    TxPhase.PENDING: frozenset({TxPhase.CONFIRMING, TxPhase.FAILED}),
    TxPhase.CONFIRMING: frozenset({TxPhase.CONFIRMED, TxPhase.FAILED}),
    TxPhase.CONFIRMED: frozenset(),
    TxPhase.FAILED: frozenset(),
}


class InvalidTransitionError(RuntimeError):
    def __init__(self, record: TransactionRecord, target: TxPhase):
        self.record = record
        self.target = target
        super().__init__(
            f"Record {record.record_id} cannot move from {record.phase} to {target}"
        )


class ValidationErrorKind(StrEnum):
    NOT_POSITIVE = "NOT_POSITIVE"
    TOO_MANY_DECIMALS = "TOO_MANY_DECIMALS"
    EXCEEDS_BALANCE = "EXCEEDS_BALANCE"


@dataclass(frozen=True)
class BalanceSnapshot:
    """Staked amount, pending reward and LP decimals for one account.

    A field is ``None`` until it has been read successfully. ``errors`` maps
    a field name to the read failure that left it empty.
    """

    staked_amount: int | None = None
    pending_reward: int | None = None
    decimals: int | None = None
    account: str | None = None
    errors: dict[str, str] = field(default_factory=dict)
    fetched_at: datetime | None = None

    @classmethod
    def empty(cls) -> BalanceSnapshot:
        return cls()

    @property
    def is_loaded(self) -> bool:
        return self.fetched_at is not None


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    parsed_amount: int | None = None
    kind: ValidationErrorKind | None = None
    message: str = ""

    @classmethod
    def valid(cls, parsed_amount: int | None) -> ValidationResult:
        return cls(ok=True, parsed_amount=parsed_amount)

    @classmethod
    def invalid(cls, kind: ValidationErrorKind, message: str) -> ValidationResult:
        return cls(ok=False, kind=kind, message=message)


_record_ids = itertools.count(1)


@dataclass(frozen=True)
class TransactionRecord:
    """One submission attempt. Replaced, never mutated, on each transition."""

    record_id: int
    kind: TxKind
    phase: TxPhase = TxPhase.NOT_SUBMITTED
    hash: str | None = None
    error: str | None = None
    amount: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @classmethod
    def new(cls, kind: TxKind, amount: int | None = None) -> TransactionRecord:
        return cls(record_id=next(_record_ids), kind=kind, amount=amount)

    def advance(
        self,
        phase: TxPhase,
        *,
        hash: str | None = None,
        error: str | None = None,
    ) -> TransactionRecord:
        if phase not in _ALLOWED_TRANSITIONS[self.phase]:
            raise InvalidTransitionError(self, phase)
        if hash is not None and self.hash is not None and hash != self.hash:
            raise InvalidTransitionError(self, phase)
        return replace(
            self,
            phase=phase,
            hash=self.hash if self.hash is not None else hash,
            error=error if phase == TxPhase.FAILED else None,
        )

    def is_same_record(self, other: TransactionRecord | None) -> bool:
        return other is not None and other.record_id == self.record_id

    @property
    def is_awaiting_signature(self) -> bool:
        return self.phase == TxPhase.AWAITING_SIGNATURE

    @property
    def is_confirming(self) -> bool:
        return self.phase == TxPhase.CONFIRMING

    @property
    def is_confirmed(self) -> bool:
        return self.phase == TxPhase.CONFIRMED

    @property
    def is_failed(self) -> bool:
        return self.phase == TxPhase.FAILED

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES
