from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from yield_farm.core.utils.signers import EmbeddedSigner


class ChainClientError(RuntimeError):
    """Base class for failures reported by a chain client."""


class BatchReadError(ChainClientError):
    """The batched read could not be performed at all."""


class SubmissionError(ChainClientError):
    """A write call was rejected before a transaction hash was produced."""


class ReceiptError(ChainClientError):
    """Waiting for a transaction receipt failed."""


@dataclass(frozen=True)
class ReadQuery:
    target: str
    abi: list[dict[str, Any]] = field(repr=False)
    method: str
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class ReadResult:
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class TransactionReceipt:
    success: bool
    transaction_hash: str
    block_number: int | None = None
    raw: dict[str, Any] | None = field(default=None, repr=False)


class ChainClientProtocol(Protocol):
    async def batch_read(self, queries: list[ReadQuery]) -> list[ReadResult]: ...

    async def submit(
        self,
        target: str,
        abi: list[dict[str, Any]],
        method: str,
        args: list[Any],
        signer: EmbeddedSigner | None = None,
    ) -> str: ...

    async def wait_for_receipt(self, transaction_hash: str) -> TransactionReceipt: ...

    async def ambient_address(self) -> str | None: ...
