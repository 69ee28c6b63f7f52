"""Pydantic models for the safety incident (OSHA) module."""

from datetime import date, datetime, time
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from .catalog import (
    BodyPart,
    IncidentClassification,
    IncidentStatus,
    InjuryIcon,
    InjuryInvolvement,
    InjuryType,
    MedicalTreatment,
    RecordableChoice,
    SourceType,
)

NON_RECORDABLE_CLASSIFICATIONS = (
    IncidentClassification.NEAR_MISS,
    IncidentClassification.FIRST_AID_ONLY,
)


def _now_minutes() -> time:
    return datetime.now().time().replace(second=0, microsecond=0)


def _blank_count_to_zero(value):
    if value is None:
        return 0
    if isinstance(value, str) and not value.strip():
        return 0
    return value


# ===========================================
# Status Badge
# ===========================================

class StatusBadge(BaseModel):
    """Human-readable queue status and its color class."""
    label: str
    style_class: str


# ===========================================
# Intake (field reporter)
# ===========================================

class IncidentSource(BaseModel):
    """Where the report was started from."""
    source_type: SourceType = SourceType.STANDALONE
    source_id: Optional[UUID] = None
    # Fixed location supplied by the source (project or property name)
    source_name: Optional[str] = Field(None, max_length=255)


class IntakeForm(BaseModel):
    """Answers collected by the intake wizard, all four steps."""
    # Step 1
    incident_date: date = Field(default_factory=date.today)
    incident_time: Optional[time] = Field(default_factory=_now_minutes)
    what_happened: str = ""
    location_description: str = Field("", max_length=500)
    # Step 2
    injury_involvement: InjuryInvolvement = InjuryInvolvement.YES
    injured_employee_name: str = Field("", max_length=255)
    injured_employee_job_title: str = Field("", max_length=255)
    injury_icon: Optional[InjuryIcon] = None
    body_part_affected: Optional[BodyPart] = None
    witness_name: str = Field("", max_length=255)
    witness_contact: str = Field("", max_length=255)
    photo_urls: list[str] = []
    # Step 3
    medical_treatment: Optional[MedicalTreatment] = None
    physician_name: str = Field("", max_length=255)
    resulted_in_days_away: bool = False
    resulted_in_transfer: bool = False
    # Step 4
    confirmed: bool = False


class IntakeSubmission(BaseModel):
    """Request model for submitting a completed intake wizard."""
    form: IntakeForm
    source: IncidentSource = IncidentSource()


class IntakeNavigation(BaseModel):
    """Request model for moving a wizard one step forward or back."""
    step: int = Field(1, ge=1, le=4)
    direction: Literal["next", "back"] = "next"
    form: IntakeForm
    source: IncidentSource = IncidentSource()


class IntakeStepResponse(BaseModel):
    """Where the wizard landed after a navigation request."""
    step: int
    total_steps: int
    progress: int
    can_proceed: bool


class LogIncidentPayload(BaseModel):
    """Create payload sent to the incident store."""
    source_type: SourceType
    source_id: Optional[UUID] = None
    incident_date: date
    incident_time: Optional[time] = None
    location_description: str = Field(..., min_length=1)
    what_happened: str = Field(..., min_length=1)
    injured_employee_name: str = Field(..., min_length=1, max_length=255)
    injured_employee_job_title: Optional[str] = None
    injury_involved: bool
    injury_icon: Optional[InjuryIcon] = None
    body_part_affected: Optional[BodyPart] = None
    witness_name: Optional[str] = None
    witness_contact: Optional[str] = None
    medical_treatment: Optional[MedicalTreatment] = None
    physician_name: Optional[str] = None
    facility_name: Optional[str] = None
    resulted_in_days_away: bool = False
    resulted_in_transfer: bool = False
    photo_urls: list[str] = []


# ===========================================
# Classification (reviewer)
# ===========================================

class ClassificationForm(BaseModel):
    """Reviewer's classification panel state."""
    recordable: Optional[RecordableChoice] = None
    case_number: str = Field("", max_length=50)
    is_privacy_case: bool = False
    # Outcome section
    outcome_death: bool = False
    outcome_days_away: bool = False
    outcome_transfer: bool = False
    outcome_other: bool = False
    days_away_from_work: int = Field(0, ge=0)
    days_on_job_transfer: int = Field(0, ge=0)
    injury_type: InjuryType = InjuryType.INJURY
    # Medical details section
    physician_name: str = Field("", max_length=255)
    facility_name: str = Field("", max_length=255)
    er_visit: bool = False
    hospitalized: bool = False
    # Corrective actions and notes
    corrective_actions: str = ""
    corrective_actions_due: Optional[date] = None
    review_notes: str = ""

    @field_validator("days_away_from_work", "days_on_job_transfer", mode="before")
    @classmethod
    def _blank_counts(cls, value):
        return _blank_count_to_zero(value)


class ClassificationRequest(BaseModel):
    """Request model for saving a classification ("Save" or "Mark as Closed")."""
    form: ClassificationForm
    close: bool = False


class ClassifyIncidentPayload(BaseModel):
    """Update payload sent to the incident store.

    Fields left unset are not written, so a stored value survives a save
    that does not mention it.
    """
    is_osha_recordable: Optional[bool] = None
    incident_classification: Optional[IncidentClassification] = None
    injury_type: Optional[InjuryType] = None
    resulted_in_death: Optional[bool] = None
    resulted_in_days_away: Optional[bool] = None
    resulted_in_transfer: Optional[bool] = None
    resulted_in_other_recordable: Optional[bool] = None
    days_away_from_work: Optional[int] = Field(None, ge=0)
    days_on_job_transfer: Optional[int] = Field(None, ge=0)
    medical_treatment: Optional[MedicalTreatment] = None
    physician_name: Optional[str] = None
    facility_name: Optional[str] = None
    is_privacy_case: Optional[bool] = None
    case_number: Optional[str] = None
    corrective_actions: Optional[str] = None
    corrective_actions_due: Optional[date] = None
    review_notes: Optional[str] = None
    status: IncidentStatus

    @model_validator(mode="after")
    def _check_recordability(self):
        if self.is_osha_recordable and self.incident_classification in NON_RECORDABLE_CLASSIFICATIONS:
            raise ValueError(
                f"An incident classified as '{self.incident_classification.value}' cannot be OSHA recordable"
            )
        if self.incident_classification == IncidentClassification.NEAR_MISS and self.is_osha_recordable is not False:
            raise ValueError("A near miss must be marked not OSHA recordable")
        if self.resulted_in_days_away and self.days_away_from_work is None:
            self.days_away_from_work = 0
        return self


# ===========================================
# Incident Record
# ===========================================

class IncidentResponse(BaseModel):
    """Response model for a safety incident."""
    id: UUID
    workspace_id: UUID
    case_number: Optional[str] = None
    source_type: Optional[SourceType] = None
    source_id: Optional[UUID] = None
    incident_date: date
    incident_time: Optional[time] = None
    location_description: str
    what_happened: str
    injured_employee_name: str
    injured_employee_job_title: Optional[str] = None
    injury_involved: bool
    injury_icon: Optional[InjuryIcon] = None
    body_part_affected: Optional[BodyPart] = None
    witness_name: Optional[str] = None
    witness_contact: Optional[str] = None
    photo_urls: list[str] = []
    medical_treatment: Optional[MedicalTreatment] = None
    physician_name: Optional[str] = None
    facility_name: Optional[str] = None
    is_privacy_case: bool = False
    is_osha_recordable: Optional[bool] = None
    incident_classification: Optional[IncidentClassification] = None
    injury_type: Optional[InjuryType] = None
    resulted_in_death: bool = False
    resulted_in_days_away: bool = False
    resulted_in_transfer: bool = False
    resulted_in_other_recordable: bool = False
    days_away_from_work: int = 0
    days_on_job_transfer: int = 0
    days_on_restriction: int = 0
    corrective_actions: Optional[str] = None
    corrective_actions_due: Optional[date] = None
    review_notes: Optional[str] = None
    status: IncidentStatus
    reported_by: Optional[UUID] = None
    reporter_name: Optional[str] = None
    reporter_email: Optional[str] = None
    reported_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    badge: Optional[StatusBadge] = None
    suggested_recordable: bool = False


class IncidentListResponse(BaseModel):
    """Response model for listing incidents."""
    incidents: list[IncidentResponse]
    total: int


class IncidentFilters(BaseModel):
    """Dashboard filters for the incident list."""
    year: Optional[int] = Field(None, ge=1970, le=2100)
    status: Optional[str] = None
    classification: Optional[str] = None
    source_type: Optional[str] = None
    search: Optional[str] = None


# ===========================================
# OSHA 300 / 300A
# ===========================================

class OSHA300Row(BaseModel):
    """One line of the OSHA Form 300 log."""
    case_no: Optional[str] = None
    employee_name: str
    job_title: Optional[str] = None
    date_of_injury: date
    where_event: str
    describe_injury: str
    death: bool = False
    days_away: bool = False
    job_transfer: bool = False
    other_recordable: bool = False
    days_away_count: int = 0
    days_transfer_count: int = 0
    injury_type: Optional[InjuryType] = None


class OSHA300Log(BaseModel):
    """OSHA Form 300 for one calendar year."""
    year: int
    rows: list[OSHA300Row]


class InjuryTypeTotals(BaseModel):
    injuries: int = 0
    skin_disorder: int = 0
    respiratory: int = 0
    poisoning: int = 0
    hearing_loss: int = 0
    other_illness: int = 0


class OSHA300ATotals(BaseModel):
    """OSHA Form 300A annual summary."""
    year: int
    total_deaths: int = 0
    total_days_away: int = 0
    total_transfer: int = 0
    total_other_recordable: int = 0
    total_cases: int = 0
    total_days_away_count: int = 0
    total_transfer_days: int = 0
    by_type: InjuryTypeTotals = InjuryTypeTotals()
