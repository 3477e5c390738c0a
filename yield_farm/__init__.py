__version__ = "0.1.0"

from yield_farm.farm import (
    BalanceSnapshot,
    FarmSession,
    TransactionOrchestrator,
    TransactionRecord,
    TxKind,
    TxPhase,
    ValidationResult,
    validate_amount,
)

__all__ = [
    "__version__",
    "BalanceSnapshot",
    "FarmSession",
    "TransactionOrchestrator",
    "TransactionRecord",
    "TxKind",
    "TxPhase",
    "ValidationResult",
    "validate_amount",
]
