from datetime import date
from uuid import uuid4

from app.safety.models.incident import IncidentResponse
from app.safety.services.osha_log import (
    PRIVACY_CASE_NAME,
    build_osha300_log,
    format_case_number,
    incident_to_osha300_row,
    meets_recordability_criteria,
    osha300a_totals,
)


def _record(**overrides) -> IncidentResponse:
    values = {
        "id": uuid4(),
        "workspace_id": uuid4(),
        "case_number": "2026-001",
        "incident_date": date(2026, 4, 10),
        "location_description": "Level 3 corridor",
        "what_happened": "Struck by falling conduit",
        "injured_employee_name": "Dana White",
        "injured_employee_job_title": "Carpenter",
        "injury_involved": True,
        "is_osha_recordable": True,
        "incident_classification": "injury",
        "injury_type": "injury",
        "status": "classified",
    }
    values.update(overrides)
    return IncidentResponse(**values)


def test_case_number_format():
    assert format_case_number(2026, 7) == "2026-007"
    assert format_case_number(2026, 1234) == "2026-1234"


def test_recordability_criteria():
    assert meets_recordability_criteria(_record(is_osha_recordable=None)) is False
    assert meets_recordability_criteria(_record(resulted_in_transfer=True)) is True
    assert meets_recordability_criteria(_record(medical_treatment="first_aid")) is False
    assert meets_recordability_criteria(_record(medical_treatment="hospitalized")) is True


def test_row_checks_most_serious_outcome_only():
    row = incident_to_osha300_row(
        _record(resulted_in_days_away=True, resulted_in_transfer=True, days_away_from_work=4, days_on_job_transfer=2)
    )
    assert row.days_away is True
    assert row.job_transfer is False
    assert row.other_recordable is False
    assert row.days_away_count == 4
    assert row.days_transfer_count == 2


def test_row_without_outcome_is_other_recordable():
    row = incident_to_osha300_row(_record())
    assert (row.death, row.days_away, row.job_transfer, row.other_recordable) == (False, False, False, True)


def test_privacy_case_hides_employee_name():
    row = incident_to_osha300_row(_record(is_privacy_case=True))
    assert row.employee_name == PRIVACY_CASE_NAME


def test_describe_injury_includes_type_and_body_part():
    row = incident_to_osha300_row(_record(body_part_affected="head_neck"))
    assert row.describe_injury == "Injury; Head / neck; Struck by falling conduit"


def test_log_keeps_recordable_cases_in_year_sorted_by_case_number():
    log = build_osha300_log(
        2026,
        [
            _record(case_number="2026-003"),
            _record(case_number="2026-001"),
            _record(case_number="2026-002", is_osha_recordable=False, incident_classification="first_aid_only"),
            _record(case_number="2025-019", incident_date=date(2025, 12, 30)),
        ],
    )
    assert log.year == 2026
    assert [row.case_no for row in log.rows] == ["2026-001", "2026-003"]


def test_300a_totals_match_the_log():
    records = [
        _record(case_number="2026-001", resulted_in_death=True),
        _record(case_number="2026-002", resulted_in_days_away=True, days_away_from_work=5),
        _record(case_number="2026-003", resulted_in_transfer=True, days_on_job_transfer=3, days_on_restriction=2),
        _record(case_number="2026-004", injury_type="hearing_loss"),
        _record(case_number="2026-005", injury_type=None),
        _record(case_number="2026-006", is_osha_recordable=False, incident_classification="first_aid_only"),
    ]
    totals = osha300a_totals(2026, records)
    assert totals.total_cases == 5
    assert totals.total_deaths == 1
    assert totals.total_days_away == 1
    assert totals.total_transfer == 1
    assert totals.total_other_recordable == 2
    assert totals.total_days_away_count == 5
    assert totals.total_transfer_days == 5
    assert totals.by_type.injuries == 4
    assert totals.by_type.hearing_loss == 1


def test_300a_for_empty_year():
    totals = osha300a_totals(2024, [])
    assert totals.total_cases == 0
    assert totals.by_type.injuries == 0
