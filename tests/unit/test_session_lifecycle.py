from __future__ import annotations

import pytest

from xlsmart.core.lifecycle import SessionLifecycle
from xlsmart.errors import InvalidStatusTransition


def test_forward_transitions_are_allowed() -> None:
    assert SessionLifecycle("uploading").can_move_to("analyzing")
    assert SessionLifecycle("analyzing").can_move_to("standardizing")
    assert SessionLifecycle("standardizing").can_move_to("completed")


def test_backward_transitions_are_rejected() -> None:
    assert not SessionLifecycle("completed").can_move_to("standardizing")
    assert not SessionLifecycle("standardizing").can_move_to("analyzing")
    assert not SessionLifecycle("analyzing").can_move_to("analyzing")


def test_error_is_reachable_from_anywhere() -> None:
    for status in ("uploading", "analyzing", "standardizing", "completed"):
        assert SessionLifecycle(status).can_move_to("error")


def test_error_can_only_be_retried() -> None:
    assert SessionLifecycle("error").can_move_to("standardizing")
    assert not SessionLifecycle("error").can_move_to("completed")


def test_require_raises_on_invalid_transition() -> None:
    with pytest.raises(InvalidStatusTransition, match="from 'completed' to 'analyzing'"):
        SessionLifecycle("completed").require("analyzing")


def test_unknown_status_is_rejected() -> None:
    with pytest.raises(ValueError):
        SessionLifecycle("analyzing").can_move_to("archived")
