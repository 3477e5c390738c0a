from yield_farm.farm.orchestrator import TransactionOrchestrator
from yield_farm.farm.session import FarmSession
from yield_farm.farm.snapshot import BalanceSnapshotStore
from yield_farm.farm.types import (
    BalanceSnapshot,
    InvalidTransitionError,
    TransactionRecord,
    TxKind,
    TxPhase,
    ValidationErrorKind,
    ValidationResult,
)
from yield_farm.farm.validator import validate_amount

__all__ = [
    "BalanceSnapshot",
    "BalanceSnapshotStore",
    "FarmSession",
    "InvalidTransitionError",
    "TransactionOrchestrator",
    "TransactionRecord",
    "TxKind",
    "TxPhase",
    "ValidationErrorKind",
    "ValidationResult",
    "validate_amount",
]
