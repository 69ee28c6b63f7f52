"""OSHA Form 300 log rows, Form 300A totals and case numbering."""

from typing import Iterable

from ..models.catalog import (
    BODY_PART_LABELS,
    FIRST_AID_TREATMENTS,
    INJURY_TYPE_LABELS,
    InjuryType,
)
from ..models.incident import (
    IncidentResponse,
    InjuryTypeTotals,
    OSHA300ATotals,
    OSHA300Log,
    OSHA300Row,
)

PRIVACY_CASE_NAME = "Privacy Case"

_TYPE_TOTAL_FIELDS: dict[InjuryType, str] = {
    InjuryType.INJURY: "injuries",
    InjuryType.SKIN_DISORDER: "skin_disorder",
    InjuryType.RESPIRATORY: "respiratory",
    InjuryType.POISONING: "poisoning",
    InjuryType.HEARING_LOSS: "hearing_loss",
    InjuryType.OTHER_ILLNESS: "other_illness",
}


def format_case_number(year: int, sequence: int) -> str:
    return f"{year}-{sequence:03d}"


def meets_recordability_criteria(record: IncidentResponse) -> bool:
    """Whether the stored outcome meets the general OSHA recording criteria.

    Death, days away, job transfer/restriction, another recordable outcome,
    or medical treatment beyond first aid.
    """
    if (
        record.resulted_in_death
        or record.resulted_in_days_away
        or record.resulted_in_transfer
        or record.resulted_in_other_recordable
    ):
        return True
    return record.medical_treatment is not None and record.medical_treatment not in FIRST_AID_TREATMENTS


def _describe_injury(record: IncidentResponse) -> str:
    parts = []
    if record.injury_type is not None:
        parts.append(INJURY_TYPE_LABELS[record.injury_type])
    if record.body_part_affected is not None:
        parts.append(BODY_PART_LABELS[record.body_part_affected])
    parts.append(record.what_happened)
    return "; ".join(parts)


def incident_to_osha300_row(record: IncidentResponse) -> OSHA300Row:
    """One Form 300 line. Only the most serious outcome column is checked."""
    death = record.resulted_in_death
    days_away = not death and record.resulted_in_days_away
    job_transfer = not (death or days_away) and record.resulted_in_transfer
    other_recordable = not (death or days_away or job_transfer)

    return OSHA300Row(
        case_no=record.case_number,
        employee_name=PRIVACY_CASE_NAME if record.is_privacy_case else record.injured_employee_name,
        job_title=record.injured_employee_job_title,
        date_of_injury=record.incident_date,
        where_event=record.location_description,
        describe_injury=_describe_injury(record),
        death=death,
        days_away=days_away,
        job_transfer=job_transfer,
        other_recordable=other_recordable,
        days_away_count=record.days_away_from_work or 0,
        days_transfer_count=(record.days_on_job_transfer or 0) + (record.days_on_restriction or 0),
        injury_type=record.injury_type,
    )


def _recordable(records: Iterable[IncidentResponse]) -> list[IncidentResponse]:
    return [record for record in records if record.is_osha_recordable is True]


def build_osha300_log(year: int, records: Iterable[IncidentResponse]) -> OSHA300Log:
    recordable = sorted(
        (r for r in _recordable(records) if r.incident_date.year == year),
        key=lambda r: (r.case_number or "", r.incident_date),
    )
    return OSHA300Log(year=year, rows=[incident_to_osha300_row(r) for r in recordable])


def osha300a_totals(year: int, records: Iterable[IncidentResponse]) -> OSHA300ATotals:
    """Form 300A summary, summed from the Form 300 rows so both forms agree."""
    rows = build_osha300_log(year, records).rows

    by_type = InjuryTypeTotals()
    for row in rows:
        field = _TYPE_TOTAL_FIELDS[row.injury_type or InjuryType.INJURY]
        setattr(by_type, field, getattr(by_type, field) + 1)

    return OSHA300ATotals(
        year=year,
        total_deaths=sum(1 for r in rows if r.death),
        total_days_away=sum(1 for r in rows if r.days_away),
        total_transfer=sum(1 for r in rows if r.job_transfer),
        total_other_recordable=sum(1 for r in rows if r.other_recordable),
        total_cases=len(rows),
        total_days_away_count=sum(r.days_away_count for r in rows),
        total_transfer_days=sum(r.days_transfer_count for r in rows),
        by_type=by_type,
    )
