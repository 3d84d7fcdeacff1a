"""Process-wide owner of one allocator per sequence name."""

from collections.abc import Iterable

from legacy_sync.config import settings
from legacy_sync.models.enums import LegacySequence
from legacy_sync.services.sequences.allocator import BlockIdAllocator
from legacy_sync.services.sequences.store import CounterStore


class SequenceRegistry:
    """Creates and owns the allocators of a process.

    Construct once at startup and pass it to the write paths that insert
    legacy rows. Sharing a single allocator per name keeps the in-memory
    block cache effective; separate instances would still be correct but
    each would reserve its own blocks.

    A registry is for one event loop, like the allocators it owns. A worker
    thread running its own loop needs its own registry; allocators shared
    across loops raise SequenceEventLoopError.

    Usage:
        registry = SequenceRegistry.for_legacy_tables(SqlCounterStore(session_maker))
        prize_id = await registry.get_next_id(LegacySequence.PRIZE)
    """

    def __init__(
        self,
        store: CounterStore,
        *,
        names: Iterable[str] = (),
        lock_timeout: float | None = None,
    ):
        self._store = store
        self._lock_timeout = lock_timeout
        self._allocators: dict[str, BlockIdAllocator] = {}
        for name in names:
            self.get(name)

    @classmethod
    def for_legacy_tables(cls, store: CounterStore) -> "SequenceRegistry":
        """Registry pre-populated with every LegacySequence, using configured lock timeout."""
        return cls(store, names=LegacySequence, lock_timeout=settings.sequence_lock_timeout)

    @property
    def names(self) -> list[str]:
        return list(self._allocators)

    def __contains__(self, name: object) -> bool:
        return name in self._allocators

    def get(self, name: str) -> BlockIdAllocator:
        """Return the allocator for name, creating it on first use."""
        # StrEnum members and plain strings share one allocator
        key = str(name)
        allocator = self._allocators.get(key)
        if allocator is None:
            allocator = BlockIdAllocator(key, self._store, lock_timeout=self._lock_timeout)
            self._allocators[key] = allocator
        return allocator

    async def get_next_id(self, name: str) -> int:
        return await self.get(name).get_next_id()
