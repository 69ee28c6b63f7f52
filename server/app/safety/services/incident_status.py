"""Case status state machine for safety incidents."""

from __future__ import annotations

from ..models.catalog import IncidentStatus


class IncidentTransitionError(ValueError):
    """Raised when an invalid case status transition is requested."""


# Statuses still waiting in the reviewer queue
PENDING_STATUSES: tuple[IncidentStatus, ...] = (
    IncidentStatus.PENDING_REVIEW,
    IncidentStatus.UNDER_REVIEW,
)

_ALLOWED_TRANSITIONS: dict[IncidentStatus, tuple[IncidentStatus, ...]] = {
    IncidentStatus.PENDING_REVIEW: (
        IncidentStatus.UNDER_REVIEW,
        IncidentStatus.CLASSIFIED,
        IncidentStatus.CLOSED,
    ),
    IncidentStatus.UNDER_REVIEW: (
        IncidentStatus.CLASSIFIED,
        IncidentStatus.CLOSED,
    ),
    IncidentStatus.CLASSIFIED: (
        IncidentStatus.CLASSIFIED,
        IncidentStatus.UNDER_REVIEW,
        IncidentStatus.CLOSED,
    ),
    IncidentStatus.CLOSED: (),
}


def _coerce_status(value: str | IncidentStatus) -> IncidentStatus:
    if isinstance(value, IncidentStatus):
        return value
    try:
        return IncidentStatus(value)
    except ValueError as exc:
        raise IncidentTransitionError(f"Unknown incident status '{value}'") from exc


def all_statuses() -> list[str]:
    return [status.value for status in IncidentStatus]


def status_machine_map() -> dict[str, list[str]]:
    return {
        source.value: [target.value for target in targets]
        for source, targets in _ALLOWED_TRANSITIONS.items()
    }


def is_terminal(status: str | IncidentStatus) -> bool:
    return not _ALLOWED_TRANSITIONS[_coerce_status(status)]


def sources_for(status_to: str | IncidentStatus) -> tuple[IncidentStatus, ...]:
    """Statuses a case may be in for a move to *status_to* to be allowed."""
    target = _coerce_status(status_to)
    return tuple(source for source, targets in _ALLOWED_TRANSITIONS.items() if target in targets)


def can_transition(
    status_from: str | IncidentStatus,
    status_to: str | IncidentStatus,
) -> bool:
    source = _coerce_status(status_from)
    target = _coerce_status(status_to)
    return target in _ALLOWED_TRANSITIONS[source]


def validate_transition(
    status_from: str | IncidentStatus,
    status_to: str | IncidentStatus,
) -> None:
    source = _coerce_status(status_from)
    target = _coerce_status(status_to)

    if source == IncidentStatus.CLOSED:
        raise IncidentTransitionError("Incident is closed and can no longer be changed.")

    allowed_targets = _ALLOWED_TRANSITIONS[source]
    if target not in allowed_targets:
        allowed_str = ", ".join(t.value for t in allowed_targets) or "none"
        raise IncidentTransitionError(
            f"Invalid incident status transition '{source.value}' -> '{target.value}'. "
            f"Allowed targets: {allowed_str}."
        )
