import pytest

from app.safety.services.incident_status import (
    IncidentTransitionError,
    all_statuses,
    can_transition,
    is_terminal,
    sources_for,
    status_machine_map,
    validate_transition,
)


def test_status_list_contains_review_lifecycle():
    assert all_statuses() == ["pending_review", "under_review", "classified", "closed"]


def test_can_transition_for_review_path():
    assert can_transition("pending_review", "under_review") is True
    assert can_transition("under_review", "classified") is True
    assert can_transition("classified", "closed") is True


def test_reviewer_may_classify_or_close_straight_from_the_queue():
    validate_transition("pending_review", "classified")
    validate_transition("pending_review", "closed")


def test_classified_incident_can_be_resaved_or_reopened():
    validate_transition("classified", "classified")
    validate_transition("classified", "under_review")


def test_validate_transition_rejects_invalid_path():
    with pytest.raises(IncidentTransitionError, match="Invalid incident status transition"):
        validate_transition("under_review", "pending_review")


def test_closed_incident_cannot_change():
    assert is_terminal("closed") is True
    assert status_machine_map()["closed"] == []
    for target in ("pending_review", "under_review", "classified", "closed"):
        with pytest.raises(IncidentTransitionError, match="Incident is closed"):
            validate_transition("closed", target)


def test_unknown_status_is_rejected():
    with pytest.raises(IncidentTransitionError, match="Unknown incident status"):
        can_transition("archived", "closed")


def test_sources_for_lists_statuses_that_may_move():
    assert sources_for("under_review") == ("pending_review", "classified")
    assert sources_for("closed") == ("pending_review", "under_review", "classified")
    assert sources_for("pending_review") == ()
