"""Enums for database models."""

from enum import StrEnum


class LegacySequence(StrEnum):
    """Sequences used to generate primary keys for legacy tables."""

    PRIZE = "prize_id_seq"
    REVIEW = "review_id_seq"
    REVIEW_ITEM = "review_item_id_seq"
    PROJECT_PHASE = "project_phase_id_seq"
