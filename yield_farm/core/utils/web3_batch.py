from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger
from web3 import AsyncWeb3

Web3CallFactory = Callable[[], Awaitable[Any]]


class BatchUnavailableError(RuntimeError):
    """JSON-RPC batching failed and falling back to single calls is disabled."""


async def batch_web3_calls(
    web3: AsyncWeb3,
    *call_factories: Web3CallFactory,
    fallback_to_gather: bool = True,
    return_exceptions: bool = False,
) -> tuple[Any, ...]:
    """
    Execute multiple web3 reads using JSON-RPC batching when supported.

    Usage:
        staked, reward = await batch_web3_calls(
            web3,
            lambda: farm.functions.userInfo(user).call(block_identifier="latest"),
            lambda: farm.functions.pendingRewards(user).call(block_identifier="latest"),
        )

    Falls back to `asyncio.gather` if batching fails. With
    ``return_exceptions=True`` a failing call yields its exception in place
    of a value and does not affect its siblings.
    """

    if not call_factories:
        return ()

    batch = None
    try:
        batch = web3.batch_requests()
        for factory in call_factories:
            batch.add(factory())
        results = await batch.async_execute()
        return tuple(results)
    except Exception as batch_exc:
        if batch is not None:
            try:
                batch.cancel()
            except Exception as cancel_exc:  # noqa: BLE001
                logger.debug(f"Ignoring batch cancel failure: {cancel_exc}")

        if not fallback_to_gather:
            raise BatchUnavailableError(str(batch_exc)) from batch_exc

        logger.debug(f"Batch request failed, issuing calls one by one: {batch_exc}")
        try:
            results = await asyncio.gather(
                *(factory() for factory in call_factories),
                return_exceptions=return_exceptions,
            )
            return tuple(results)
        except Exception as gather_exc:
            raise gather_exc from batch_exc
