"""Terminal front-end for the withdraw / claim flow.

Usage:
  yield-farm status
  yield-farm withdraw 3.5
  yield-farm claim
  yield-farm --config other.json --log-level DEBUG status
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable

import click
from loguru import logger

from yield_farm.core.config import get_log_level, load_config
from yield_farm.core.utils.units import to_decimal_string
from yield_farm.farm.session import FarmSession
from yield_farm.farm.types import TransactionRecord, TxKind, TxPhase

LP_TOKEN_LABEL = "LP Token"


def truncate_hash(value: str, *, head: int = 6, tail: int = 4) -> str:
    if len(value) <= head + tail:
        return value
    return f"{value[:head]}...{value[-tail:]}"


def _format_amount(amount: int | None, decimals: int | None) -> str:
    if amount is None:
        return "-"
    if decimals is None:
        return f"{amount} (raw)"
    return to_decimal_string(amount, decimals)


def render_balances(session: FarmSession) -> list[str]:
    snapshot = session.snapshot
    lines = [
        f"Amount to unstake (available): "
        f"{_format_amount(snapshot.staked_amount, snapshot.decimals)} {LP_TOKEN_LABEL}"
    ]
    if session.can_claim:
        lines.append(
            f"Total reward: {_format_amount(snapshot.pending_reward, snapshot.decimals)}"
        )
    for name, error in sorted(snapshot.errors.items()):
        lines.append(f"Could not read {name}: {error}")
    return lines


def render_phase(record: TransactionRecord | None) -> str:
    if record is None or record.phase == TxPhase.NOT_SUBMITTED:
        return "No transaction submitted"
    if record.is_awaiting_signature:
        return "Confirm in wallet..."
    if record.phase in (TxPhase.PENDING, TxPhase.CONFIRMING):
        return "Waiting for confirmation..."
    if record.is_confirmed:
        return "Transaction confirmed!"
    return f"Error: {record.error}"


def render_status(
    record: TransactionRecord | None,
    explorer_url: Callable[[str], str | None] | None = None,
) -> list[str]:
    lines = ["Transaction status"]
    if record is not None and record.hash:
        url = explorer_url(record.hash) if explorer_url else None
        line = f"Transaction Hash {truncate_hash(record.hash)}"
        lines.append(f"{line} {url}" if url else line)
    else:
        lines.append("No transaction hash")
    lines.append(render_phase(record))
    return lines


def _echo_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


def _explorer_url(session: FarmSession) -> Callable[[str], str | None] | None:
    return getattr(session.chain_client, "explorer_tx_url", None)


def _make_session(ctx: click.Context) -> FarmSession:
    factory = ctx.obj.get("session_factory") if ctx.obj else None
    if factory is not None:
        return factory()
    try:
        return FarmSession.from_config()
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc


async def _run_action(
    session: FarmSession, kind: TxKind, amount: str | None
) -> TransactionRecord | None:
    await session.mount()

    if kind == TxKind.CLAIM_REWARD and not session.can_claim:
        click.echo("No reward to claim")
        return None

    last_line: list[str | None] = [None]

    def _on_change(record: TransactionRecord | None) -> None:
        line = render_phase(record)
        if line != last_line[0]:
            last_line[0] = line
            click.echo(line)

    unsubscribe = session.transaction_state.subscribe(_on_change)
    try:
        record = await session.submit(kind, amount)
    finally:
        unsubscribe()

    if record is None:
        validation = session.validation
        if validation is not None and not validation.ok:
            click.echo(f"Error: {validation.message}")
        elif validation is not None and validation.parsed_amount is None:
            click.echo("Error: LP token decimals unavailable, cannot withdraw")
        return None

    _echo_lines(render_status(record, _explorer_url(session)))
    _echo_lines(render_balances(session))
    return record


def _finish(ctx: click.Context, record: TransactionRecord | None) -> None:
    if record is None or record.is_failed:
        ctx.exit(1)


@click.group(name="yield-farm", help="Withdraw staked LP tokens and claim rewards.")
@click.option(
    "--config",
    "config_path",
    default=None,
    help="Path to config.json (defaults to the project config).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (defaults to system.log_level from config).",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    ctx.ensure_object(dict)
    if config_path:
        try:
            load_config(config_path, require_exists=True)
        except FileNotFoundError as exc:
            raise click.ClickException(str(exc)) from exc

    logger.remove()
    logger.add(sys.stderr, level=str(log_level or get_log_level()).upper())


@cli.command(name="status", help="Show staked balance and pending reward.")
@click.pass_context
def status_cmd(ctx: click.Context) -> None:
    session = _make_session(ctx)
    asyncio.run(session.mount())
    if session.account is None:
        click.echo("No wallet available")
        ctx.exit(1)
    click.echo(f"Account: {session.account}")
    _echo_lines(render_balances(session))


@cli.command(name="withdraw", help="Unstake AMOUNT LP tokens.")
@click.argument("amount")
@click.pass_context
def withdraw_cmd(ctx: click.Context, amount: str) -> None:
    session = _make_session(ctx)
    record = asyncio.run(_run_action(session, TxKind.WITHDRAW, amount))
    _finish(ctx, record)


@cli.command(name="claim", help="Claim the pending reward.")
@click.pass_context
def claim_cmd(ctx: click.Context) -> None:
    session = _make_session(ctx)
    record = asyncio.run(_run_action(session, TxKind.CLAIM_REWARD, None))
    _finish(ctx, record)


def main():
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
