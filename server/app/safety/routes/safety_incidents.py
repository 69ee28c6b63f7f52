"""Safety Incident API Routes.

OSHA incident logging for construction crews:
- Intake wizard (field reporters)
- Review queue and classification (safety managers)
- OSHA Form 300 log and 300A summary
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ...database import get_connection
from ..dependencies import require_member, require_safety_manager
from ..models.catalog import IncidentStatus, catalog
from ..models.incident import (
    ClassificationRequest,
    IncidentFilters,
    IncidentListResponse,
    IncidentResponse,
    IntakeNavigation,
    IntakeStepResponse,
    IntakeSubmission,
    OSHA300ATotals,
    OSHA300Log,
)
from ..services import incident_store as store
from ..services.classification import SAVE_FAILED_MESSAGE, build_classify_payload
from ..services.incident_status import IncidentTransitionError, validate_transition
from ..services.intake_wizard import (
    SUBMIT_FAILED_MESSAGE,
    IntakeValidationError,
    build_log_payload,
    can_proceed,
    next_step,
    previous_step,
    progress,
    total_steps,
    validate_form,
)
from ..services.osha_log import build_osha300_log, osha300a_totals

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_CHANGED_MESSAGE = "Incident status changed while saving. Reload it and try again."


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _year_or_current(year: Optional[int]) -> int:
    return year or date.today().year


# ===========================================
# Intake
# ===========================================

@router.get("/catalog")
async def get_catalog(current_user=Depends(require_member)):
    """Option lists for the intake wizard and classification panel."""
    return catalog()


@router.post("/intake/navigate", response_model=IntakeStepResponse)
async def navigate_intake(
    navigation: IntakeNavigation,
    current_user=Depends(require_member),
):
    """Move the wizard forward (gated on the current step) or back."""
    source_name = navigation.source.source_name
    try:
        if navigation.direction == "next":
            step = next_step(navigation.step, navigation.form, source_name)
        else:
            step = previous_step(navigation.step, navigation.form)
    except IntakeValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return IntakeStepResponse(
        step=step,
        total_steps=total_steps(navigation.form),
        progress=progress(step, navigation.form),
        can_proceed=can_proceed(step, navigation.form, source_name),
    )


@router.post("", response_model=IncidentResponse)
async def log_incident(
    submission: IntakeSubmission,
    request: Request,
    current_user=Depends(require_member),
):
    """Submit a completed intake wizard as a new incident."""
    try:
        validate_form(submission.form, submission.source.source_name)
    except IntakeValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    payload = build_log_payload(submission.form, submission.source)

    try:
        async with get_connection() as conn:
            # Report and its audit row commit together or not at all
            async with conn.transaction():
                incident = await store.log_incident(conn, current_user.workspace_id, current_user.id, payload)
                await store.log_audit(
                    conn,
                    str(incident.id),
                    str(current_user.id),
                    "incident_reported",
                    {
                        "case_number": incident.case_number,
                        "injury_involved": incident.injury_involved,
                        "source_type": payload.source_type.value,
                    },
                    _client_ip(request),
                )
    except Exception as e:
        logger.error(f"Failed to log safety incident for user {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail=SUBMIT_FAILED_MESSAGE)

    logger.info(f"Safety incident {incident.case_number} reported by {current_user.email}")
    return incident


# ===========================================
# Lists
# ===========================================

@router.get("", response_model=IncidentListResponse)
async def list_incidents(
    year: Optional[int] = Query(None, ge=1970, le=2100),
    status: Optional[str] = None,
    classification: Optional[str] = None,
    source_type: Optional[str] = None,
    search: Optional[str] = None,
    current_user=Depends(require_safety_manager),
):
    """Dashboard list with filters."""
    filters = IncidentFilters(
        year=year,
        status=status,
        classification=classification,
        source_type=source_type,
        search=search,
    )
    async with get_connection() as conn:
        try:
            incidents = await store.list_incidents(conn, current_user.workspace_id, filters)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return IncidentListResponse(incidents=incidents, total=len(incidents))


@router.get("/mine", response_model=IncidentListResponse)
async def list_my_incidents(current_user=Depends(require_member)):
    """Reports submitted by the current user, newest first."""
    async with get_connection() as conn:
        incidents = await store.list_incidents(
            conn, current_user.workspace_id, reported_by=current_user.id
        )
    return IncidentListResponse(incidents=incidents, total=len(incidents))


@router.get("/pending", response_model=IncidentListResponse)
async def list_pending_incidents(current_user=Depends(require_safety_manager)):
    """Review queue, oldest incident first."""
    async with get_connection() as conn:
        incidents = await store.list_incidents(conn, current_user.workspace_id, pending_only=True)
    return IncidentListResponse(incidents=incidents, total=len(incidents))


# ===========================================
# OSHA Logs
# ===========================================

@router.get("/osha-300", response_model=OSHA300Log)
async def get_osha_300_log(
    year: Optional[int] = Query(None, ge=1970, le=2100),
    current_user=Depends(require_safety_manager),
):
    """OSHA Form 300 rows for a calendar year (defaults to this year)."""
    year = _year_or_current(year)
    async with get_connection() as conn:
        incidents = await store.list_incidents(
            conn,
            current_user.workspace_id,
            IncidentFilters(year=year),
            recordable_only=True,
        )
    return build_osha300_log(year, incidents)


@router.get("/osha-300a", response_model=OSHA300ATotals)
async def get_osha_300a_summary(
    year: Optional[int] = Query(None, ge=1970, le=2100),
    current_user=Depends(require_safety_manager),
):
    """OSHA Form 300A totals for a calendar year (defaults to this year)."""
    year = _year_or_current(year)
    async with get_connection() as conn:
        incidents = await store.list_incidents(
            conn,
            current_user.workspace_id,
            IncidentFilters(year=year),
            recordable_only=True,
        )
    return osha300a_totals(year, incidents)


# ===========================================
# Single Incident
# ===========================================

@router.get("/{incident_id}", response_model=IncidentResponse)
async def get_incident(
    incident_id: UUID,
    current_user=Depends(require_member),
):
    """Get a single incident. Field users only see their own reports."""
    async with get_connection() as conn:
        incident = await store.get_incident(conn, current_user.workspace_id, incident_id)

    if incident is None:
        raise HTTPException(status_code=404, detail="Incident not found")
    if not current_user.is_safety_manager and incident.reported_by != current_user.id:
        raise HTTPException(status_code=404, detail="Incident not found")
    return incident


@router.post("/{incident_id}/review", response_model=IncidentResponse)
async def start_review(
    incident_id: UUID,
    request: Request,
    current_user=Depends(require_safety_manager),
):
    """Pick a pending report up for review."""
    async with get_connection() as conn:
        incident = await store.get_incident(conn, current_user.workspace_id, incident_id)
        if incident is None:
            raise HTTPException(status_code=404, detail="Incident not found")

        try:
            validate_transition(incident.status, IncidentStatus.UNDER_REVIEW)
        except IncidentTransitionError as e:
            raise HTTPException(status_code=409, detail=str(e))

        try:
            async with conn.transaction():
                updated = await store.start_review(conn, incident_id, current_user.id)
                if updated is not None:
                    await store.log_audit(
                        conn,
                        str(incident_id),
                        str(current_user.id),
                        "review_started",
                        {"from_status": incident.status.value},
                        _client_ip(request),
                    )
        except Exception as e:
            logger.error(f"Failed to start review of safety incident {incident_id}: {e}")
            raise HTTPException(status_code=500, detail=SAVE_FAILED_MESSAGE)

    if updated is None:
        raise HTTPException(status_code=409, detail=STATUS_CHANGED_MESSAGE)
    return updated


@router.put("/{incident_id}/classification", response_model=IncidentResponse)
async def classify_incident(
    incident_id: UUID,
    classification: ClassificationRequest,
    request: Request,
    current_user=Depends(require_safety_manager),
):
    """Save the reviewer's classification, optionally closing the incident."""
    payload = build_classify_payload(classification.form, classification.close)

    async with get_connection() as conn:
        incident = await store.get_incident(conn, current_user.workspace_id, incident_id)
        if incident is None:
            raise HTTPException(status_code=404, detail="Incident not found")

        try:
            validate_transition(incident.status, payload.status)
        except IncidentTransitionError as e:
            raise HTTPException(status_code=409, detail=str(e))

        try:
            async with conn.transaction():
                updated = await store.classify_incident(conn, incident_id, current_user.id, payload)
                if updated is not None:
                    await store.log_audit(
                        conn,
                        str(incident_id),
                        str(current_user.id),
                        "incident_closed" if classification.close else "incident_classified",
                        {
                            "from_status": incident.status.value,
                            "to_status": payload.status.value,
                            "is_osha_recordable": payload.is_osha_recordable,
                            "incident_classification": (
                                payload.incident_classification.value
                                if payload.incident_classification is not None
                                else None
                            ),
                        },
                        _client_ip(request),
                    )
        except Exception as e:
            logger.error(f"Failed to classify safety incident {incident_id}: {e}")
            raise HTTPException(status_code=500, detail=SAVE_FAILED_MESSAGE)

    # Status moved on between the read and the guarded update
    if updated is None:
        raise HTTPException(status_code=409, detail=STATUS_CHANGED_MESSAGE)
    return updated
