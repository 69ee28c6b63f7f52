import asyncio
from datetime import date, time
from uuid import uuid4

import pytest

from app.safety.models.incident import IncidentSource, IntakeForm
from app.safety.services.intake_wizard import (
    NOT_APPLICABLE_NAME,
    SUBMIT_FAILED_MESSAGE,
    IntakeValidationError,
    IntakeWizard,
    build_log_payload,
    can_proceed,
    next_step,
    previous_step,
    progress,
    total_steps,
    validate_form,
)


def _step_one(**overrides):
    values = {
        "incident_date": date(2026, 3, 2),
        "incident_time": time(10, 15),
        "what_happened": "Slipped on wet plywood at the stair landing",
        "location_description": "Building A, level 2 stairs",
    }
    values.update(overrides)
    return values


def _completed_wizard(source=None, **overrides):
    wizard = IntakeWizard(source=source)
    wizard.update(**_step_one())
    wizard.update(**overrides)
    while wizard.step < 4:
        wizard.advance()
    wizard.update(confirmed=True)
    return wizard


def test_new_form_defaults_to_today_and_an_injury():
    form = IntakeForm()
    assert form.incident_date == date.today()
    assert form.incident_time is not None
    assert form.injury_involvement == "yes"
    assert form.confirmed is False


def test_step_counts_depend_on_injury_involvement():
    assert total_steps(IntakeForm(injury_involvement="yes")) == 4
    assert total_steps(IntakeForm(injury_involvement="no")) == 4
    assert total_steps(IntakeForm(injury_involvement="near_miss")) == 3


def test_step_one_requires_narrative_and_location():
    assert can_proceed(1, IntakeForm()) is False
    assert can_proceed(1, IntakeForm(what_happened="Fell", location_description="   ")) is False
    assert can_proceed(1, IntakeForm(what_happened="   ", location_description="Yard")) is False
    assert can_proceed(1, IntakeForm(what_happened="Fell", location_description="Yard")) is True


def test_source_name_stands_in_for_location():
    form = IntakeForm(what_happened="Fell")
    assert can_proceed(1, form) is False
    assert can_proceed(1, form, source_name="North Tower") is True


def test_step_two_requires_name_only_when_someone_was_hurt():
    assert can_proceed(2, IntakeForm(injury_involvement="yes")) is False
    assert can_proceed(2, IntakeForm(injury_involvement="yes", injured_employee_name="  ")) is False
    assert can_proceed(2, IntakeForm(injury_involvement="yes", injured_employee_name="Ana")) is True
    assert can_proceed(2, IntakeForm(injury_involvement="no")) is True
    assert can_proceed(2, IntakeForm(injury_involvement="near_miss")) is True


def test_medical_step_is_optional():
    assert can_proceed(3, IntakeForm()) is True


def test_review_step_requires_confirmation():
    assert can_proceed(4, IntakeForm()) is False
    assert can_proceed(4, IntakeForm(confirmed=True)) is True


def test_next_step_blocks_on_incomplete_answers():
    with pytest.raises(IntakeValidationError, match="Describe what happened"):
        next_step(1, IntakeForm(location_description="Yard"))


def test_next_step_refuses_to_leave_review_step():
    with pytest.raises(IntakeValidationError, match="last step"):
        next_step(4, IntakeForm(confirmed=True))


def test_unknown_step_is_rejected():
    with pytest.raises(IntakeValidationError, match="Unknown intake step"):
        can_proceed(7, IntakeForm())


def test_near_miss_skips_medical_step_both_ways():
    form = IntakeForm(**_step_one(), injury_involvement="near_miss")
    assert next_step(2, form) == 4
    assert previous_step(4, form) == 2
    assert progress(4, form) == 3


def test_injury_walks_every_step():
    form = IntakeForm(**_step_one(), injured_employee_name="Ana Ruiz")
    assert next_step(1, form) == 2
    assert next_step(2, form) == 3
    assert next_step(3, form) == 4
    assert previous_step(4, form) == 3
    assert previous_step(1, form) == 1


def test_wizard_back_and_forward_keeps_answers():
    wizard = IntakeWizard()
    wizard.update(**_step_one())
    assert wizard.advance() == 2
    wizard.update(injured_employee_name="Ana Ruiz", injury_icon="physical")
    assert wizard.advance() == 3
    assert wizard.back() == 2
    assert wizard.back() == 1
    assert wizard.form.injured_employee_name == "Ana Ruiz"
    assert wizard.form.what_happened.startswith("Slipped")


def test_switching_to_near_miss_shortens_the_wizard():
    wizard = IntakeWizard()
    wizard.update(**_step_one())
    wizard.advance()
    assert wizard.total_steps == 4
    wizard.update(injury_involvement="near_miss")
    assert wizard.total_steps == 3
    assert wizard.advance() == 4
    assert wizard.progress == 3


def test_confirm_toggles_submit():
    wizard = _completed_wizard(injured_employee_name="Ana Ruiz")
    assert wizard.can_submit is True
    wizard.update(confirmed=False)
    assert wizard.can_submit is False
    with pytest.raises(IntakeValidationError, match="Confirm the report"):
        validate_form(wizard.form)


def test_payload_for_uninjured_report_uses_placeholder_name():
    wizard = _completed_wizard(
        injury_involvement="no",
        injured_employee_name="Leftover typing",
        injury_icon="eye",
        body_part_affected="eye",
    )
    payload = wizard.payload()
    assert payload.injury_involved is False
    assert payload.injured_employee_name == NOT_APPLICABLE_NAME
    assert payload.injury_icon is None
    assert payload.body_part_affected is None


def test_payload_for_near_miss_drops_medical_answers():
    form = IntakeForm(
        **_step_one(),
        injury_involvement="near_miss",
        medical_treatment="physician",
        physician_name="Dr. Hale",
        resulted_in_days_away=True,
        confirmed=True,
    )
    payload = build_log_payload(form)
    assert payload.medical_treatment is None
    assert payload.physician_name is None
    assert payload.resulted_in_days_away is False
    assert payload.injured_employee_name == NOT_APPLICABLE_NAME


def test_payload_trims_text_and_carries_source():
    source_id = uuid4()
    form = IntakeForm(
        **_step_one(what_happened="  Cut on rebar  "),
        injured_employee_name="  Ana Ruiz ",
        witness_name="   ",
        confirmed=True,
    )
    payload = build_log_payload(
        form,
        IncidentSource(source_type="project", source_id=source_id, source_name="North Tower"),
    )
    assert payload.what_happened == "Cut on rebar"
    assert payload.injured_employee_name == "Ana Ruiz"
    assert payload.witness_name is None
    assert payload.source_type == "project"
    assert payload.source_id == source_id
    assert payload.location_description == "North Tower"


def test_submit_records_case_number():
    asyncio.run(_run_submit_records_case_number())


async def _run_submit_records_case_number():
    wizard = _completed_wizard(injured_employee_name="Ana Ruiz")
    sent = []

    async def _log_incident(payload):
        sent.append(payload)
        return {"id": str(uuid4()), "case_number": "2026-004"}

    assert await wizard.submit(_log_incident) == "2026-004"
    assert wizard.submitted is True
    assert wizard.submitting is False
    assert sent[0].injured_employee_name == "Ana Ruiz"


def test_submit_failure_stays_on_review_step():
    asyncio.run(_run_submit_failure_stays_on_review_step())


async def _run_submit_failure_stays_on_review_step():
    wizard = _completed_wizard(injured_employee_name="Ana Ruiz")

    async def _log_incident(payload):
        raise RuntimeError("connection reset")

    assert await wizard.submit(_log_incident) is None
    assert wizard.error == SUBMIT_FAILED_MESSAGE
    assert wizard.step == 4
    assert wizard.submitted is False
    assert wizard.form.injured_employee_name == "Ana Ruiz"
    assert wizard.can_submit is True


def test_submit_only_from_review_step():
    asyncio.run(_run_submit_only_from_review_step())


async def _run_submit_only_from_review_step():
    wizard = IntakeWizard()
    wizard.update(**_step_one())

    async def _log_incident(payload):
        raise AssertionError("should not be called")

    with pytest.raises(IntakeValidationError, match="review step"):
        await wizard.submit(_log_incident)


def test_reset_is_refused_while_submitting():
    wizard = _completed_wizard(injured_employee_name="Ana Ruiz")
    wizard.submitting = True
    assert wizard.reset() is False
    wizard.submitting = False
    assert wizard.reset() is True
    assert wizard.step == 1
    assert wizard.form.what_happened == ""


def test_second_submit_is_refused():
    asyncio.run(_run_second_submit_is_refused())


async def _run_second_submit_is_refused():
    wizard = _completed_wizard(injured_employee_name="Ana Ruiz")
    sent = []

    async def _log_incident(payload):
        sent.append(payload)
        return {"case_number": "2026-009"}

    assert await wizard.submit(_log_incident) == "2026-009"
    assert wizard.can_submit is False
    with pytest.raises(IntakeValidationError, match="already submitted"):
        await wizard.submit(_log_incident)
    assert len(sent) == 1

    assert wizard.reset() is True
    assert wizard.submitted is False
