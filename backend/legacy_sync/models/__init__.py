"""Database models."""

from sqlmodel import SQLModel

from legacy_sync.models.enums import LegacySequence
from legacy_sync.models.id_sequence import IdSequence

__all__ = [
    "SQLModel",
    "IdSequence",
    "LegacySequence",
]
