from contextlib import asynccontextmanager
from typing import Any

from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3

from yield_farm.core.config import get_rpc_urls
from yield_farm.core.utils.retry import retry_async

# Only transient gateway errors and provider rate limiting are retried. Client
# errors and on-chain execution errors surface immediately.
_RETRYABLE_STATUS_CODES = {429, 502, 503, 504}
_MAX_RPC_RETRIES = 3


def _extract_http_status(exc: Exception) -> int | None:
    status = getattr(exc, "status", None)
    if isinstance(status, int):
        return status
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    response = getattr(exc, "response", None)
    if response is not None:
        code = getattr(response, "status_code", None)
        if isinstance(code, int):
            return code
    return None


def _is_retryable(exc: Exception) -> bool:
    return _extract_http_status(exc) in _RETRYABLE_STATUS_CODES


class _RetryingRpcProvider(AsyncHTTPProvider):
    def __init__(self, rpc: str, chain_id: int, request_kwargs: dict | None = None):
        super().__init__(rpc, request_kwargs=request_kwargs)
        self.chain_id = chain_id

    async def make_request(self, method, params):  # type: ignore[override]
        def _on_retry(attempt: int, exc: Exception, delay_s: float) -> None:
            logger.warning(
                f"RPC {method} on chain {self.chain_id} failed "
                f"(attempt {attempt + 1}), retrying in {delay_s:.2f}s: {exc}"
            )

        return await retry_async(
            lambda: super(_RetryingRpcProvider, self).make_request(method, params),
            max_retries=_MAX_RPC_RETRIES,
            should_retry=_is_retryable,
            on_retry=_on_retry,
        )


def _get_rpcs_for_chain_id(chain_id: int) -> list:
    mapping = get_rpc_urls()
    rpcs = mapping.get(str(chain_id))
    if rpcs is None:
        rpcs = mapping.get(chain_id)  # allow int keys
    if rpcs is None:
        raise ValueError(f"No RPCs configured for chain ID {chain_id}")
    if isinstance(rpcs, str):
        return [rpcs]
    return rpcs


def _get_web3(rpc: str, chain_id: int) -> AsyncWeb3:
    headers = AsyncHTTPProvider.get_request_headers()
    provider = _RetryingRpcProvider(
        rpc, chain_id, request_kwargs={"headers": headers}
    )
    return AsyncWeb3(provider)


def get_transaction_chain_id(transaction: dict[str, Any]) -> int:
    if "chainId" not in transaction:
        raise ValueError("Transaction does not contain chainId")
    return int(transaction["chainId"])


def get_web3s_from_chain_id(chain_id: int) -> list[AsyncWeb3]:
    rpcs = _get_rpcs_for_chain_id(chain_id)
    return [_get_web3(rpc, chain_id) for rpc in rpcs]


@asynccontextmanager
async def web3s_from_chain_id(chain_id: int):
    web3s = get_web3s_from_chain_id(chain_id)
    try:
        yield web3s
    finally:
        for web3 in web3s:
            await web3.provider.disconnect()


@asynccontextmanager
async def web3_from_chain_id(chain_id: int):
    web3s = get_web3s_from_chain_id(chain_id)
    try:
        yield web3s[0]
    finally:
        for web3 in web3s:
            await web3.provider.disconnect()
