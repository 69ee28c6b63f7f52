"""Field-reporter intake wizard for safety incidents.

Four steps, three for a near miss:
1. What happened (date, time, narrative, location)
2. Who was involved (injury yes/no/near miss, injured person, witness)
3. Medical care (skipped for a near miss)
4. Review and confirm

The step functions are pure so any client can drive them; ``IntakeWizard``
wraps them with the per-session state (current step, form, submit status).
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from ..models.catalog import InjuryInvolvement
from ..models.incident import IncidentSource, IntakeForm, LogIncidentPayload

logger = logging.getLogger(__name__)

FIRST_STEP = 1
INVOLVEMENT_STEP = 2
MEDICAL_STEP = 3
REVIEW_STEP = 4

NOT_APPLICABLE_NAME = "N/A"
SUBMIT_FAILED_MESSAGE = "Failed to log incident. Please try again."


class IntakeValidationError(ValueError):
    """Raised when a wizard step is left before its required answers are given."""


def skips_medical_step(form: IntakeForm) -> bool:
    return form.injury_involvement == InjuryInvolvement.NEAR_MISS


def total_steps(form: IntakeForm) -> int:
    return REVIEW_STEP - 1 if skips_medical_step(form) else REVIEW_STEP


def progress(step: int, form: IntakeForm) -> int:
    """Position of *step* among the steps actually shown (for the progress bar)."""
    if skips_medical_step(form) and step == REVIEW_STEP:
        return REVIEW_STEP - 1
    return step


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def step_error(step: int, form: IntakeForm, source_name: Optional[str] = None) -> Optional[str]:
    """Why *step* cannot be left yet, or None when its answers are complete."""
    if step == FIRST_STEP:
        if _blank(form.what_happened):
            return "Describe what happened before continuing."
        if _blank(form.location_description) and _blank(source_name):
            return "Say where it happened before continuing."
        return None

    if step == INVOLVEMENT_STEP:
        if form.injury_involvement == InjuryInvolvement.YES and _blank(form.injured_employee_name):
            return "Enter the injured employee's name before continuing."
        return None

    if step == MEDICAL_STEP:
        return None

    if step == REVIEW_STEP:
        if not form.confirmed:
            return "Confirm the report is accurate before submitting."
        return None

    raise IntakeValidationError(f"Unknown intake step {step}")


def can_proceed(step: int, form: IntakeForm, source_name: Optional[str] = None) -> bool:
    return step_error(step, form, source_name) is None


def next_step(step: int, form: IntakeForm, source_name: Optional[str] = None) -> int:
    if step >= REVIEW_STEP:
        raise IntakeValidationError("The review step is the last step; submit the report instead.")

    error = step_error(step, form, source_name)
    if error:
        raise IntakeValidationError(error)

    if step == INVOLVEMENT_STEP and skips_medical_step(form):
        return REVIEW_STEP
    return min(step + 1, REVIEW_STEP)


def previous_step(step: int, form: IntakeForm) -> int:
    if step == REVIEW_STEP and skips_medical_step(form):
        return INVOLVEMENT_STEP
    return max(step - 1, FIRST_STEP)


def validate_form(form: IntakeForm, source_name: Optional[str] = None) -> None:
    """Run every step gate in order; raises on the first one that fails."""
    for step in (FIRST_STEP, INVOLVEMENT_STEP, REVIEW_STEP):
        error = step_error(step, form, source_name)
        if error:
            raise IntakeValidationError(error)


def _optional(value: Optional[str]) -> Optional[str]:
    if _blank(value):
        return None
    return value.strip()


def build_log_payload(form: IntakeForm, source: Optional[IncidentSource] = None) -> LogIncidentPayload:
    """Assemble the create payload for a completed wizard.

    Answers on steps the reporter never saw are dropped: injured-person
    details unless someone was hurt, medical answers for a near miss.
    """
    source = source or IncidentSource()
    injured = form.injury_involvement == InjuryInvolvement.YES
    medical_shown = not skips_medical_step(form)

    return LogIncidentPayload(
        source_type=source.source_type,
        source_id=source.source_id,
        incident_date=form.incident_date,
        incident_time=form.incident_time,
        location_description=_optional(source.source_name) or form.location_description.strip(),
        what_happened=form.what_happened.strip(),
        injured_employee_name=form.injured_employee_name.strip() if injured else NOT_APPLICABLE_NAME,
        injured_employee_job_title=_optional(form.injured_employee_job_title) if injured else None,
        injury_involved=injured,
        injury_icon=form.injury_icon if injured else None,
        body_part_affected=form.body_part_affected if injured else None,
        witness_name=_optional(form.witness_name),
        witness_contact=_optional(form.witness_contact),
        medical_treatment=form.medical_treatment if medical_shown else None,
        physician_name=_optional(form.physician_name) if medical_shown else None,
        resulted_in_days_away=form.resulted_in_days_away if medical_shown else False,
        resulted_in_transfer=form.resulted_in_transfer if medical_shown else False,
        photo_urls=[url for url in form.photo_urls if url],
    )


def _case_number_of(result: Any) -> Optional[str]:
    if result is None:
        return None
    if isinstance(result, dict):
        return result.get("case_number")
    return getattr(result, "case_number", None)


class IntakeWizard:
    """One reporter's pass through the intake wizard."""

    def __init__(self, source: Optional[IncidentSource] = None, form: Optional[IntakeForm] = None):
        self.source = source or IncidentSource()
        self.form = form or IntakeForm()
        self.step = FIRST_STEP
        self.submitting = False
        self.submitted = False
        self.case_number: Optional[str] = None
        self.error: Optional[str] = None

    @property
    def total_steps(self) -> int:
        return total_steps(self.form)

    @property
    def progress(self) -> int:
        return progress(self.step, self.form)

    @property
    def can_proceed(self) -> bool:
        return can_proceed(self.step, self.form, self.source.source_name)

    @property
    def can_submit(self) -> bool:
        return (
            self.step == REVIEW_STEP
            and self.form.confirmed
            and not self.submitting
            and not self.submitted
        )

    def update(self, **changes) -> IntakeForm:
        """Apply answers to the form, re-validating field types."""
        self.form = IntakeForm.model_validate({**self.form.model_dump(), **changes})
        return self.form

    def advance(self) -> int:
        self.step = next_step(self.step, self.form, self.source.source_name)
        return self.step

    def back(self) -> int:
        self.step = previous_step(self.step, self.form)
        return self.step

    def payload(self) -> LogIncidentPayload:
        return build_log_payload(self.form, self.source)

    async def submit(
        self,
        log_incident: Callable[[LogIncidentPayload], Awaitable[Any]],
    ) -> Optional[str]:
        """Send the report once; returns the case number, or None on failure.

        A failed call leaves the wizard on the review step with every answer
        intact and ``error`` set, so the reporter can retry.
        """
        if self.submitting:
            raise IntakeValidationError("This report is already being submitted.")
        if self.submitted:
            raise IntakeValidationError("This report was already submitted; start a new one.")
        if self.step != REVIEW_STEP:
            raise IntakeValidationError("Reports can only be submitted from the review step.")
        validate_form(self.form, self.source.source_name)

        payload = self.payload()
        self.submitting = True
        self.error = None
        try:
            result = await log_incident(payload)
        except Exception as e:
            logger.warning(f"Incident submission failed: {e}")
            self.error = SUBMIT_FAILED_MESSAGE
            return None
        finally:
            self.submitting = False

        self.case_number = _case_number_of(result)
        self.submitted = True
        return self.case_number

    def reset(self) -> bool:
        """Start over with a blank form; refused while a submit is in flight."""
        if self.submitting:
            return False
        self.form = IntakeForm()
        self.step = FIRST_STEP
        self.submitted = False
        self.case_number = None
        self.error = None
        return True
