"""Sequence allocation exceptions."""

from legacy_sync.services.exceptions import NotFoundError, ServiceError, ValidationError


class SequenceError(ServiceError):
    """Base sequence allocation exception."""

    pass


class SequenceNotFoundError(SequenceError, NotFoundError):
    """No id_sequences row exists for the sequence.

    Configuration error: the row must be provisioned before identifiers
    can be allocated. Never retried by the allocator.
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Sequence '{name}' is not provisioned in id_sequences")


class InvalidBlockSizeError(SequenceError, ValidationError):
    """Stored block size is not a positive integer."""

    def __init__(self, name: str, block_size: int):
        self.name = name
        self.block_size = block_size
        super().__init__(f"Sequence '{name}' has invalid block size {block_size}")


class SequenceConflictError(SequenceError):
    """Row changed between read and advance - another writer reserved the block.

    Only reachable on databases that ignore SELECT ... FOR UPDATE. The
    transaction is rolled back; retrying the call performs a fresh refill.
    """

    def __init__(self, name: str, expected_start: int):
        self.name = name
        self.expected_start = expected_start
        super().__init__(f"Sequence '{name}' moved past {expected_start} during refill")


class SequenceLockTimeoutError(SequenceError):
    """Timed out waiting for the allocator lock."""

    def __init__(self, name: str, timeout: float):
        self.name = name
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s waiting for sequence '{name}'")


class SequenceEventLoopError(SequenceError):
    """Allocator called from an event loop other than the one that owns it."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Sequence '{name}' allocator is bound to another running event loop; "
            "use one allocator per event loop"
        )
