#!/usr/bin/env python
"""Operational commands for id_sequences rows.

Usage:
    legacy-sync-sequences init-db
    legacy-sync-sequences ensure review_id_seq --start 500 --block-size 5
    legacy-sync-sequences show review_id_seq
    legacy-sync-sequences next review_id_seq --count 3
"""

import asyncio

import click

from legacy_sync.config import settings
from legacy_sync.db import database_scope, upgrade_database
from legacy_sync.logging import setup_logging
from legacy_sync.services.sequences import BlockIdAllocator, SequenceBlock, SequenceError, SqlCounterStore


def _echo_block(block: SequenceBlock) -> None:
    click.echo(f"name={block.name} next_block_start={block.next_block_start} block_size={block.block_size}")


@click.group()
@click.option(
    "--database-url",
    default=None,
    help="SQLAlchemy async URL of the legacy database (defaults to DATABASE_URL).",
)
@click.pass_context
def cli(ctx: click.Context, database_url: str | None) -> None:
    """Manage block-allocated identifier sequences."""
    ctx.obj = database_url or settings.database_url


@cli.command("init-db")
@click.pass_obj
def init_db(database_url: str) -> None:
    """Upgrade the database schema to the latest migration."""
    upgrade_database(database_url)
    click.echo("id_sequences table ready")


@cli.command()
@click.argument("name")
@click.option("--start", type=click.IntRange(min=1), default=1, show_default=True, help="First identifier.")
@click.option(
    "--block-size",
    type=click.IntRange(min=1),
    default=settings.default_block_size,
    show_default=True,
    help="Identifiers reserved per refill.",
)
@click.pass_obj
def ensure(database_url: str, name: str, start: int, block_size: int) -> None:
    """Provision sequence NAME; an existing row is left unchanged."""

    async def run() -> SequenceBlock:
        async with database_scope(database_url) as session_maker:
            return await SqlCounterStore(session_maker).ensure_sequence(name, start=start, block_size=block_size)

    _echo_block(asyncio.run(run()))


@cli.command()
@click.argument("name")
@click.pass_obj
def show(database_url: str, name: str) -> None:
    """Print the stored row of sequence NAME."""

    async def run() -> SequenceBlock:
        async with database_scope(database_url) as session_maker:
            return await SqlCounterStore(session_maker).get_sequence(name)

    try:
        block = asyncio.run(run())
    except SequenceError as e:
        raise click.ClickException(str(e)) from e
    _echo_block(block)


@cli.command("next")
@click.argument("name")
@click.option("--count", type=click.IntRange(min=1), default=1, show_default=True, help="Identifiers to allocate.")
@click.pass_obj
def next_ids(database_url: str, name: str, count: int) -> None:
    """Allocate COUNT identifiers from sequence NAME and print them."""

    async def run() -> list[int]:
        async with database_scope(database_url) as session_maker:
            allocator = BlockIdAllocator(
                name,
                SqlCounterStore(session_maker),
                lock_timeout=settings.sequence_lock_timeout,
            )
            return [await allocator.get_next_id() for _ in range(count)]

    try:
        ids = asyncio.run(run())
    except SequenceError as e:
        raise click.ClickException(str(e)) from e
    for value in ids:
        click.echo(value)


def main() -> None:
    """Console entry point."""
    setup_logging()
    cli()


if __name__ == "__main__":
    main()
