from __future__ import annotations

import pytest

from xlsmart.core.confidence import SIMILARITY_CAP, role_similarity, round_half_up, to_percentage


def test_identical_titles_are_a_perfect_match() -> None:
    assert role_similarity("Network Engineer", "  network engineer ") == 1.0


def test_similarity_combines_words_substring_and_keywords() -> None:
    score = role_similarity("Senior Software Engineer", "Software Engineer")

    assert score == pytest.approx(2 / 3 + 0.2 + 0.3 / 8)
    assert to_percentage(score) == 90


def test_similarity_is_capped_below_one() -> None:
    score = role_similarity("Senior Lead Engineer Manager", "Senior Lead Engineer Manager Specialist")

    assert score == SIMILARITY_CAP


def test_unrelated_titles_score_zero() -> None:
    assert role_similarity("Chef", "Accountant") == 0.0


def test_rounding_is_half_up() -> None:
    assert round_half_up(79.5) == 80
    assert round_half_up(79.49) == 79
    assert to_percentage(0.125) == 13
    assert to_percentage(0.0) == 0
