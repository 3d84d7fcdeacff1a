"""Tests for SqlCounterStore against SQLite."""

import pytest

from legacy_sync.models.id_sequence import IdSequence
from legacy_sync.services.sequences import (
    BlockIdAllocator,
    InvalidBlockSizeError,
    SequenceBlock,
    SequenceConflictError,
    SequenceNotFoundError,
)


class TestProvisioning:
    """ensure_sequence / get_sequence."""

    async def test_ensure_creates_row(self, sql_store):
        block = await sql_store.ensure_sequence("review_id_seq", start=500, block_size=5)

        assert block == SequenceBlock(name="review_id_seq", next_block_start=500, block_size=5)
        assert await sql_store.get_sequence("review_id_seq") == block

    async def test_ensure_is_idempotent(self, sql_store):
        await sql_store.ensure_sequence("review_id_seq", start=500, block_size=5)

        block = await sql_store.ensure_sequence("review_id_seq", start=1, block_size=100)

        assert block.next_block_start == 500
        assert block.block_size == 5

    async def test_ensure_never_rewinds(self, sql_store):
        await sql_store.ensure_sequence("review_id_seq", start=500, block_size=5)
        await BlockIdAllocator("review_id_seq", sql_store).get_next_id()

        block = await sql_store.ensure_sequence("review_id_seq", start=500, block_size=5)

        assert block.next_block_start == 505

    @pytest.mark.parametrize(("start", "block_size"), [(0, 5), (1, 0), (1, -3)])
    async def test_ensure_validates_arguments(self, sql_store, start, block_size):
        with pytest.raises(ValueError):
            await sql_store.ensure_sequence("review_id_seq", start=start, block_size=block_size)

    async def test_get_missing_sequence(self, sql_store):
        with pytest.raises(SequenceNotFoundError):
            await sql_store.get_sequence("missing_seq")


class TestTransactions:
    """read_block / advance_block inside a transaction."""

    async def test_advance_visible_after_commit(self, sql_store):
        await sql_store.ensure_sequence("review_id_seq", start=500, block_size=5)

        async with sql_store.transaction() as tx:
            block = await tx.read_block("review_id_seq")
            await tx.advance_block("review_id_seq", block.next_block_end)

        assert block.ids == range(500, 505)
        assert (await sql_store.get_sequence("review_id_seq")).next_block_start == 505

    async def test_error_rolls_back_advance(self, sql_store):
        await sql_store.ensure_sequence("review_id_seq", start=500, block_size=5)

        with pytest.raises(RuntimeError):
            async with sql_store.transaction() as tx:
                block = await tx.read_block("review_id_seq")
                await tx.advance_block("review_id_seq", block.next_block_end)
                raise RuntimeError("insert failed")

        assert (await sql_store.get_sequence("review_id_seq")).next_block_start == 500

    async def test_advance_must_move_forward(self, sql_store):
        await sql_store.ensure_sequence("review_id_seq", start=500, block_size=5)

        with pytest.raises(ValueError):
            async with sql_store.transaction() as tx:
                await tx.advance_block("review_id_seq", 500)

    async def test_concurrent_advance_conflicts(self, sql_store):
        """A writer that read a stale next_block_start cannot overwrite a newer one."""
        await sql_store.ensure_sequence("review_id_seq", start=500, block_size=5)

        with pytest.raises(SequenceConflictError):
            async with sql_store.transaction() as tx:
                stale = await tx.read_block("review_id_seq")
                async with sql_store.transaction() as other:
                    fresh = await other.read_block("review_id_seq")
                    await other.advance_block("review_id_seq", fresh.next_block_end)
                await tx.advance_block("review_id_seq", stale.next_block_end)

        assert (await sql_store.get_sequence("review_id_seq")).next_block_start == 505

    async def test_read_missing_sequence(self, sql_store):
        with pytest.raises(SequenceNotFoundError):
            async with sql_store.transaction() as tx:
                await tx.read_block("missing_seq")

    async def test_read_invalid_block_size(self, sql_store, session_maker):
        async with session_maker() as session, session.begin():
            session.add(IdSequence(name="broken_seq", next_block_start=1, block_size=0))

        with pytest.raises(InvalidBlockSizeError):
            async with sql_store.transaction() as tx:
                await tx.read_block("broken_seq")


class TestAllocatorOnSql:
    """BlockIdAllocator end to end over the SQL store."""

    async def test_review_sequence_scenario(self, sql_store):
        await sql_store.ensure_sequence("review_id_seq", start=500, block_size=5)
        allocator = BlockIdAllocator("review_id_seq", sql_store)

        assert await allocator.get_next_id() == 500
        assert (await sql_store.get_sequence("review_id_seq")).next_block_start == 505

        assert [await allocator.get_next_id() for _ in range(4)] == [501, 502, 503, 504]
        assert allocator.refill_count == 1

        assert await allocator.get_next_id() == 505
        assert (await sql_store.get_sequence("review_id_seq")).next_block_start == 510

    async def test_two_instances_get_disjoint_blocks(self, sql_store):
        await sql_store.ensure_sequence("project_phase_id_seq", start=1, block_size=3)
        first = BlockIdAllocator("project_phase_id_seq", sql_store)
        second = BlockIdAllocator("project_phase_id_seq", sql_store)

        first_ids = []
        second_ids = []
        for _ in range(7):
            first_ids.append(await first.get_next_id())
            second_ids.append(await second.get_next_id())

        assert set(first_ids).isdisjoint(second_ids)
        assert first_ids == sorted(first_ids)
        assert second_ids == sorted(second_ids)
        assert first_ids[:3] == [1, 2, 3]
        assert second_ids[:3] == [4, 5, 6]

    async def test_missing_row_is_not_created(self, sql_store):
        allocator = BlockIdAllocator("prize_id_seq", sql_store)

        with pytest.raises(SequenceNotFoundError):
            await allocator.get_next_id()
        with pytest.raises(SequenceNotFoundError):
            await sql_store.get_sequence("prize_id_seq")
