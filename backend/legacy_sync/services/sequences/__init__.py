"""Block-allocated unique identifiers for legacy table inserts."""

from legacy_sync.services.sequences.allocator import BlockIdAllocator
from legacy_sync.services.sequences.exceptions import (
    InvalidBlockSizeError,
    SequenceConflictError,
    SequenceError,
    SequenceEventLoopError,
    SequenceLockTimeoutError,
    SequenceNotFoundError,
)
from legacy_sync.services.sequences.registry import SequenceRegistry
from legacy_sync.services.sequences.store import (
    CounterStore,
    CounterTransaction,
    SequenceBlock,
    SqlCounterStore,
    SqlCounterTransaction,
)

__all__ = [
    "BlockIdAllocator",
    "CounterStore",
    "CounterTransaction",
    "InvalidBlockSizeError",
    "SequenceBlock",
    "SequenceConflictError",
    "SequenceError",
    "SequenceEventLoopError",
    "SequenceLockTimeoutError",
    "SequenceNotFoundError",
    "SequenceRegistry",
    "SqlCounterStore",
    "SqlCounterTransaction",
]
