from __future__ import annotations

import logging
import math
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from xlsmart.config import Settings
from xlsmart.db.repositories import Repository

logger = logging.getLogger(__name__)

ROLE_KEYWORDS = ("engineer", "manager", "analyst", "specialist", "coordinator", "lead", "senior", "junior")
SIMILARITY_CAP = 0.95
# reviewer decisions are never overwritten by a recalculation
UNREVIEWED_STATUSES = ("auto_mapped", "manual_review")


def to_percentage(value: float) -> int:
    """Round a 0..1 similarity to an integer percentage, halves rounding up."""
    return int(math.floor(value * 100 + 0.5))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def role_similarity(first: str, second: str) -> float:
    left = first.lower().strip()
    right = second.lower().strip()
    if left == right:
        return 1.0

    left_words = left.split()
    right_words = right.split()
    total_words = max(len(left_words), len(right_words))
    if total_words == 0:
        return 0.0

    exact_word_matches = sum(1 for word in left_words if word in right_words)
    word_similarity = exact_word_matches / total_words

    substring_bonus = 0.2 if (left and right and (left in right or right in left)) else 0.0

    keyword_matches = sum(1 for keyword in ROLE_KEYWORDS if keyword in left and keyword in right)
    keyword_bonus = (keyword_matches / len(ROLE_KEYWORDS)) * 0.3

    return min(word_similarity + substring_bonus + keyword_bonus, SIMILARITY_CAP)


class ConfidenceRecalculator:
    """Overwrites model-reported mapping confidence with the deterministic score."""

    def __init__(self, session: Session, *, settings: Settings):
        self.repo = Repository(session)
        self.settings = settings

    def run(self) -> dict[str, Any]:
        mappings = self.repo.list_role_mappings()
        fixed = 0

        for mapping in mappings:
            if not mapping.original_role_title or not mapping.standardized_role_title:
                logger.info("Skipping mapping id=%s with missing role titles", mapping.id)
                continue

            similarity = role_similarity(mapping.original_role_title, mapping.standardized_role_title)
            percentage = to_percentage(similarity)
            current = mapping.mapping_confidence or 0
            if abs(percentage - current) <= self.settings.confidence_update_delta:
                continue

            needs_review = percentage < self.settings.review_confidence_threshold
            status = None
            if mapping.mapping_status in UNREVIEWED_STATUSES:
                status = "manual_review" if needs_review else "auto_mapped"

            try:
                self.repo.update_mapping_confidence(
                    mapping.id,
                    confidence=percentage,
                    requires_manual_review=needs_review,
                    source="heuristic",
                    status=status,
                )
            except SQLAlchemyError as exc:
                self.repo.session.rollback()
                logger.error("Failed to update mapping id=%s: %s", mapping.id, exc)
                continue
            fixed += 1
            logger.info(
                "Recalculated mapping id=%s '%s' -> '%s' confidence %s -> %s",
                mapping.id,
                mapping.original_role_title,
                mapping.standardized_role_title,
                current,
                percentage,
            )

        return {"mappingsFixed": fixed, "totalMappings": len(mappings)}
