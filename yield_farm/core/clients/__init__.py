from yield_farm.core.clients.ChainClient import ChainClient
from yield_farm.core.clients.protocols import (
    BatchReadError,
    ChainClientError,
    ChainClientProtocol,
    ReadQuery,
    ReadResult,
    ReceiptError,
    SubmissionError,
    TransactionReceipt,
)

__all__ = [
    "ChainClient",
    "ChainClientProtocol",
    "ChainClientError",
    "BatchReadError",
    "SubmissionError",
    "ReceiptError",
    "ReadQuery",
    "ReadResult",
    "TransactionReceipt",
]
