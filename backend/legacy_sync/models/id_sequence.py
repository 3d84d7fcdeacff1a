"""Counter table backing block-allocated identifiers for legacy tables."""

from sqlalchemy import BigInteger
from sqlmodel import Field, SQLModel


class IdSequence(SQLModel, table=True):
    """Next unreserved identifier and block size for one named sequence.

    Rows are provisioned ahead of time (see SqlCounterStore.ensure_sequence).
    Allocators lock the row with SELECT ... FOR UPDATE, reserve
    [next_block_start, next_block_start + block_size) and advance
    next_block_start in the same transaction.
    """

    __tablename__ = "id_sequences"

    name: str = Field(primary_key=True, max_length=100)
    next_block_start: int = Field(sa_type=BigInteger, nullable=False)
    block_size: int = Field(nullable=False)
