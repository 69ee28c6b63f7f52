"""Reviewer classification of safety incidents into OSHA-coded records."""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional
from uuid import UUID

from ..models.catalog import (
    INJURY_ICON_TO_TYPE,
    IncidentClassification,
    IncidentStatus,
    InjuryType,
    MedicalTreatment,
    RecordableChoice,
)
from ..models.incident import (
    ClassificationForm,
    ClassifyIncidentPayload,
    IncidentResponse,
    StatusBadge,
)
from .incident_status import validate_transition
from .osha_log import meets_recordability_criteria
from .status_badge import project_status

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "Failed to save classification. Please try again."


class ClassificationError(ValueError):
    """Raised when a classification cannot be saved as requested."""


@dataclass(frozen=True)
class Recordability:
    is_osha_recordable: Optional[bool]
    # None leaves the stored classification untouched
    incident_classification: Optional[IncidentClassification]


@dataclass(frozen=True)
class VisibleSections:
    outcome: bool
    medical_details: bool


_RECORDABILITY: dict[RecordableChoice, Recordability] = {
    RecordableChoice.YES: Recordability(True, IncidentClassification.INJURY),
    RecordableChoice.NO: Recordability(False, IncidentClassification.FIRST_AID_ONLY),
    RecordableChoice.NEAR_MISS: Recordability(False, IncidentClassification.NEAR_MISS),
    RecordableChoice.INVESTIGATING: Recordability(None, None),
}


def derive_recordability(choice: Optional[RecordableChoice]) -> Recordability:
    if choice is None:
        return _RECORDABILITY[RecordableChoice.INVESTIGATING]
    return _RECORDABILITY[choice]


def choice_from_record(
    is_osha_recordable: Optional[bool],
    classification: Optional[str],
) -> Optional[RecordableChoice]:
    if is_osha_recordable is True:
        return RecordableChoice.YES
    if is_osha_recordable is False:
        if classification == IncidentClassification.NEAR_MISS:
            return RecordableChoice.NEAR_MISS
        return RecordableChoice.NO
    return None


def visible_sections(choice: Optional[RecordableChoice]) -> VisibleSections:
    recordable = choice == RecordableChoice.YES
    return VisibleSections(outcome=recordable, medical_details=recordable)


def seed_form(record: IncidentResponse) -> ClassificationForm:
    """Pre-fill the classification panel from the stored record."""
    if record.injury_type is not None:
        injury_type = record.injury_type
    elif record.injury_icon is not None:
        injury_type = INJURY_ICON_TO_TYPE[record.injury_icon]
    else:
        injury_type = InjuryType.INJURY

    return ClassificationForm(
        recordable=choice_from_record(record.is_osha_recordable, record.incident_classification),
        case_number=record.case_number or "",
        is_privacy_case=record.is_privacy_case,
        outcome_death=record.resulted_in_death,
        outcome_days_away=record.resulted_in_days_away,
        outcome_transfer=record.resulted_in_transfer,
        outcome_other=record.resulted_in_other_recordable,
        days_away_from_work=record.days_away_from_work or 0,
        days_on_job_transfer=record.days_on_job_transfer or 0,
        injury_type=injury_type,
        physician_name=record.physician_name or "",
        facility_name=record.facility_name or "",
        er_visit=record.medical_treatment == MedicalTreatment.EMERGENCY_ROOM,
        hospitalized=record.medical_treatment == MedicalTreatment.HOSPITALIZED,
        corrective_actions=record.corrective_actions or "",
        corrective_actions_due=record.corrective_actions_due,
        review_notes=record.review_notes or "",
    )


def _optional(value: str) -> Optional[str]:
    value = value.strip()
    return value or None


def build_classify_payload(form: ClassificationForm, close: bool = False) -> ClassifyIncidentPayload:
    """Map the panel state to the update payload.

    Outcome and medical details are only written for a recordable case. A
    "no" or near-miss answer clears the outcome columns; "investigating"
    leaves them as stored. The form itself keeps whatever was typed.
    """
    recordability = derive_recordability(form.recordable)
    fields: dict[str, Any] = {
        "is_osha_recordable": recordability.is_osha_recordable,
        "is_privacy_case": form.is_privacy_case,
        "status": IncidentStatus.CLOSED if close else IncidentStatus.CLASSIFIED,
    }
    if recordability.incident_classification is not None:
        fields["incident_classification"] = recordability.incident_classification

    for name in ("case_number", "corrective_actions", "review_notes"):
        value = _optional(getattr(form, name))
        if value is not None:
            fields[name] = value
    if form.corrective_actions_due is not None:
        fields["corrective_actions_due"] = form.corrective_actions_due

    if form.recordable == RecordableChoice.YES:
        fields.update(
            injury_type=form.injury_type,
            resulted_in_death=form.outcome_death,
            resulted_in_days_away=form.outcome_days_away,
            resulted_in_transfer=form.outcome_transfer,
            resulted_in_other_recordable=form.outcome_other,
            days_away_from_work=form.days_away_from_work,
            days_on_job_transfer=form.days_on_job_transfer,
        )
        for name in ("physician_name", "facility_name"):
            value = _optional(getattr(form, name))
            if value is not None:
                fields[name] = value
        if form.hospitalized:
            fields["medical_treatment"] = MedicalTreatment.HOSPITALIZED
        elif form.er_visit:
            fields["medical_treatment"] = MedicalTreatment.EMERGENCY_ROOM
    elif form.recordable in (RecordableChoice.NO, RecordableChoice.NEAR_MISS):
        fields.update(
            resulted_in_death=False,
            resulted_in_days_away=False,
            resulted_in_transfer=False,
            resulted_in_other_recordable=False,
            days_away_from_work=0,
            days_on_job_transfer=0,
        )

    return ClassifyIncidentPayload(**fields)


class ClassificationSession:
    """A reviewer's open classification panel for one incident at a time."""

    def __init__(self):
        self.record: Optional[IncidentResponse] = None
        self.record_id: Optional[UUID] = None
        self.form = ClassificationForm()
        self.saving = False
        self.error: Optional[str] = None
        self.is_open = False

    def load(self, record: IncidentResponse) -> bool:
        """Show *record*; returns True when the form was re-seeded.

        The form is seeded once per record identity. Passing a fresh copy of
        the record already on screen refreshes the read-only panel but keeps
        the reviewer's edits.
        """
        self.is_open = True
        self.record = record
        if record.id == self.record_id:
            return False
        self.record_id = record.id
        self.form = seed_form(record)
        self.error = None
        return True

    def update(self, **changes) -> ClassificationForm:
        self.form = ClassificationForm.model_validate({**self.form.model_dump(), **changes})
        return self.form

    def choose(self, choice: Optional[RecordableChoice]) -> ClassificationForm:
        return self.update(recordable=choice)

    @property
    def visible_sections(self) -> VisibleSections:
        return visible_sections(self.form.recordable)

    @property
    def badge(self) -> Optional[StatusBadge]:
        if self.record is None:
            return None
        return project_status(
            self.record.status,
            self.record.is_osha_recordable,
            self.record.incident_classification,
        )

    @property
    def suggested_recordable(self) -> bool:
        return self.record is not None and meets_recordability_criteria(self.record)

    def payload(self, close: bool = False) -> ClassifyIncidentPayload:
        return build_classify_payload(self.form, close)

    async def save(
        self,
        classify_incident: Callable[[UUID, ClassifyIncidentPayload], Awaitable[Any]],
        close: bool = False,
    ) -> Optional[Any]:
        """Persist the form ("Save Classification", or "Mark as Closed" with *close*).

        Returns the updated record, or None when the call failed; ``error``
        then holds the message and the form is left as it was.
        """
        if self.record is None:
            raise ClassificationError("No incident is loaded for classification.")
        if self.saving:
            raise ClassificationError("A save is already in progress for this incident.")

        payload = self.payload(close)
        validate_transition(self.record.status, payload.status)

        self.saving = True
        self.error = None
        try:
            result = await classify_incident(self.record_id, payload)
        except Exception as e:
            logger.warning(f"Classification save failed for incident {self.record_id}: {e}")
            self.error = SAVE_FAILED_MESSAGE
            return None
        finally:
            self.saving = False

        if isinstance(result, IncidentResponse):
            self.record = result
        if close:
            self.is_open = False
        return result
