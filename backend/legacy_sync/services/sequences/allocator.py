"""Block (hi/lo) identifier allocator for legacy table primary keys."""

import asyncio
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from legacy_sync.services.sequences.exceptions import SequenceEventLoopError, SequenceLockTimeoutError
from legacy_sync.services.sequences.store import CounterStore, SequenceBlock

logger = structlog.get_logger(__name__)


class BlockIdAllocator:
    """Hands out unique, increasing identifiers for one named sequence.

    A whole block of identifiers is reserved in the counter store inside a
    single transaction and then served from memory until it is used up.
    Concurrent callers within the process are serialized by an asyncio lock;
    other processes are kept apart by the store's transactional
    read-and-advance, so their blocks never overlap.

    An instance belongs to one event loop: the loop of its first call. Calls
    from another running loop (e.g. a thread with its own asyncio.run) raise
    SequenceEventLoopError; give each thread its own allocator instead, the
    store keeps their blocks disjoint. Once the owning loop is closed the
    next caller's loop takes over.

    Identifiers left in a block when the process exits are never reused.
    The sequence is unique and increasing per instance, not gap-free.

    Usage:
        allocator = BlockIdAllocator("review_id_seq", SqlCounterStore(session_maker))
        review_id = await allocator.get_next_id()
    """

    def __init__(self, name: str, store: CounterStore, *, lock_timeout: float | None = None):
        if lock_timeout is not None and lock_timeout <= 0:
            raise ValueError(f"lock_timeout must be positive, got {lock_timeout}")
        self._name = name
        self._store = store
        self._lock_timeout = lock_timeout
        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_guard = threading.Lock()
        # Last identifier handed out; the next one is _cached_next_id + 1
        self._cached_next_id = 0
        # Starts at 0 so the first call refills
        self._remaining = 0
        self._refill_count = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def remaining(self) -> int:
        """Identifiers left in the current block (0 when a refill is due)."""
        # _remaining still counts the identifier issued right after the refill
        return max(self._remaining - 1, 0)

    @property
    def refill_count(self) -> int:
        """Number of blocks successfully reserved by this instance."""
        return self._refill_count

    async def get_next_id(self) -> int:
        """Return the next identifier, reserving a new block when needed.

        Raises:
            SequenceNotFoundError: Sequence row is not provisioned
            InvalidBlockSizeError: Sequence row has a non-positive block size
            SequenceLockTimeoutError: lock_timeout elapsed while waiting
            SequenceEventLoopError: Called from a loop other than the owning one
            SQLAlchemyError: Counter store transaction failed (propagated as-is)
        """
        self._bind_loop()
        async with self._locked():
            # Decrement first: the check then covers the identifier about to be issued
            self._remaining -= 1
            if self._remaining <= 0:
                await self._refill()

            self._cached_next_id += 1
            logger.debug("Issued id", sequence=self._name, id=self._cached_next_id, remaining=self.remaining)
            return self._cached_next_id

    def _bind_loop(self) -> None:
        """Adopt the running loop on first use and reject calls from any other loop."""
        loop = asyncio.get_running_loop()
        with self._loop_guard:
            if self._loop is loop:
                return
            if self._loop is not None and not self._loop.is_closed():
                raise SequenceEventLoopError(self._name)
            # The asyncio.Lock may still be bound to the closed loop
            self._lock = asyncio.Lock()
            self._loop = loop

    @asynccontextmanager
    async def _locked(self) -> AsyncIterator[None]:
        """Hold the allocator lock for the body; released on every exit path."""
        if self._lock_timeout is None:
            await self._lock.acquire()
        else:
            try:
                async with asyncio.timeout(self._lock_timeout):
                    await self._lock.acquire()
            except TimeoutError as e:
                logger.warning("Sequence lock timeout", sequence=self._name, timeout=self._lock_timeout)
                raise SequenceLockTimeoutError(self._name, self._lock_timeout) from e
        try:
            yield
        finally:
            self._lock.release()

    async def _refill(self) -> None:
        """Reserve the next block in the store, then adopt it locally.

        In-memory state changes only after the transaction commits; on failure
        _remaining stays non-positive so the next call refills again.
        """
        try:
            async with self._store.transaction() as tx:
                block: SequenceBlock = await tx.read_block(self._name)
                await tx.advance_block(self._name, block.next_block_end)
        except Exception as e:
            logger.error("Sequence refill failed", sequence=self._name, error=str(e))
            raise

        # -1 so the shared increment in get_next_id yields next_block_start
        self._cached_next_id = block.next_block_start - 1
        self._remaining = block.block_size
        self._refill_count += 1
        logger.info(
            "Reserved id block",
            sequence=self._name,
            next_block_start=block.next_block_start,
            block_size=block.block_size,
            next_block_end=block.next_block_end,
        )
