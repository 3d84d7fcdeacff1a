"""Counter store: transactional access to the id_sequences table.

The allocator only depends on the CounterStore / CounterTransaction
protocols. SqlCounterStore implements them on top of SQLAlchemy's asyncio
extension; tests substitute an in-memory double.
"""

from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from typing import Protocol

import structlog
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from legacy_sync.models.id_sequence import IdSequence
from legacy_sync.services.sequences.exceptions import (
    InvalidBlockSizeError,
    SequenceConflictError,
    SequenceNotFoundError,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SequenceBlock:
    """Snapshot of an id_sequences row."""

    name: str
    next_block_start: int
    block_size: int

    @property
    def next_block_end(self) -> int:
        """Value of next_block_start once this block is reserved."""
        return self.next_block_start + self.block_size

    @property
    def ids(self) -> range:
        return range(self.next_block_start, self.next_block_end)


class CounterTransaction(Protocol):
    """Read and advance operations bound to one open transaction."""

    async def read_block(self, name: str) -> SequenceBlock:
        """Read (and lock) the row for name.

        Raises:
            SequenceNotFoundError: No row for name
            InvalidBlockSizeError: Stored block_size is not positive
        """
        ...

    async def advance_block(self, name: str, next_block_start: int) -> None:
        """Write the new next_block_start; visible to others only after commit."""
        ...


class CounterStore(Protocol):
    """Source of transactions against the counter table."""

    def transaction(self) -> AbstractAsyncContextManager[CounterTransaction]:
        """Open a transaction that commits on clean exit and rolls back on error."""
        ...


def _to_block(record: IdSequence) -> SequenceBlock:
    return SequenceBlock(
        name=record.name,
        next_block_start=record.next_block_start,
        block_size=record.block_size,
    )


class SqlCounterTransaction:
    """CounterTransaction over an AsyncSession with an active transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session
        # next_block_start observed by read_block, per sequence name
        self._observed: dict[str, int] = {}

    async def read_block(self, name: str) -> SequenceBlock:
        # Row lock is held until commit/rollback; SQLite ignores FOR UPDATE
        # and relies on the guarded update in advance_block instead.
        stmt = select(IdSequence).where(IdSequence.name == name).with_for_update()
        result = await self.session.execute(stmt)
        record = result.scalars().first()
        if record is None:
            raise SequenceNotFoundError(name)

        block = _to_block(record)
        if block.block_size <= 0:
            raise InvalidBlockSizeError(name, block.block_size)

        self._observed[name] = block.next_block_start
        return block

    async def advance_block(self, name: str, next_block_start: int) -> None:
        if name not in self._observed:
            await self.read_block(name)
        expected = self._observed[name]
        if next_block_start <= expected:
            raise ValueError(
                f"Sequence '{name}' can only move forward (current {expected}, requested {next_block_start})"
            )

        stmt = (
            update(IdSequence)
            .where(IdSequence.name == name)  # type: ignore[arg-type]
            .where(IdSequence.next_block_start == expected)  # type: ignore[arg-type]
            .values(next_block_start=next_block_start)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise SequenceConflictError(name, expected)

        self._observed[name] = next_block_start


class SqlCounterStore:
    """Counter store backed by the id_sequences table.

    Usage:
        store = SqlCounterStore(session_maker)
        async with store.transaction() as tx:
            block = await tx.read_block("review_id_seq")
            await tx.advance_block("review_id_seq", block.next_block_end)
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SqlCounterTransaction]:
        # session.begin() commits when the block exits cleanly and rolls back
        # on any exception, including a failed commit
        async with self._session_maker() as session, session.begin():
            yield SqlCounterTransaction(session)

    async def get_sequence(self, name: str) -> SequenceBlock:
        """Read a row without locking it (inspection only, never for allocation)."""
        async with self._session_maker() as session:
            record = await session.get(IdSequence, name)
            if record is None:
                raise SequenceNotFoundError(name)
            return _to_block(record)

    async def ensure_sequence(self, name: str, *, start: int = 1, block_size: int = 100) -> SequenceBlock:
        """Provision a sequence row if it does not exist yet.

        Idempotent: an existing row is returned unchanged, so re-running
        provisioning never rewinds next_block_start. Not part of the
        allocation hot path.

        Args:
            name: Sequence name
            start: First identifier handed out for a new row
            block_size: Identifiers reserved per refill for a new row

        Returns:
            The stored row (existing or newly created)
        """
        if start < 1:
            raise ValueError(f"start must be >= 1, got {start}")
        if block_size <= 0:
            raise ValueError(f"block_size must be positive, got {block_size}")

        try:
            async with self._session_maker() as session, session.begin():
                record = await session.get(IdSequence, name)
                if record is not None:
                    logger.debug("Sequence already provisioned", sequence=name)
                    return _to_block(record)

                record = IdSequence(name=name, next_block_start=start, block_size=block_size)
                session.add(record)
                block = _to_block(record)
        except IntegrityError:
            # Another process inserted the row between our read and commit
            logger.info("Sequence provisioned concurrently", sequence=name)
            return await self.get_sequence(name)

        logger.info(
            "Provisioned sequence",
            sequence=name,
            next_block_start=block.next_block_start,
            block_size=block.block_size,
        )
        return block
