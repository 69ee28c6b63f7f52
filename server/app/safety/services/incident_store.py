"""Persistence for safety incidents (asyncpg).

Reads are scoped by workspace; updates take an incident id the caller has
already looked up in the workspace.
"""

import json
import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from ..models.catalog import IncidentClassification, IncidentStatus
from ..models.incident import (
    ClassifyIncidentPayload,
    IncidentFilters,
    IncidentResponse,
    LogIncidentPayload,
)
from .incident_status import PENDING_STATUSES, sources_for
from .osha_log import format_case_number, meets_recordability_criteria
from .status_badge import project_status

logger = logging.getLogger(__name__)

INCIDENT_SELECT = """
    SELECT i.*, u.full_name AS reporter_name, u.email AS reporter_email
    FROM safety_incidents i
    LEFT JOIN users u ON i.reported_by = u.id
"""


def _returning_with_reporter(statement: str) -> str:
    """Wrap an INSERT/UPDATE so the changed row comes back with its reporter."""
    return f"""
        WITH changed AS ({statement} RETURNING *)
        SELECT changed.*, u.full_name AS reporter_name, u.email AS reporter_email
        FROM changed
        LEFT JOIN users u ON changed.reported_by = u.id
    """


# Dashboard classification filter -> SQL condition
CLASSIFICATION_FILTERS = {
    "recordable": "i.is_osha_recordable = true",
    "first_aid": "i.is_osha_recordable = false",
    "near_miss": f"i.incident_classification = '{IncidentClassification.NEAR_MISS.value}'",
}


def _db_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    return value


def _safe_json_loads(value, default=None):
    """Safely parse JSON from a database value."""
    if value is None:
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Failed to parse JSON: {e}")
        return default


def _utcnow() -> datetime:
    # TIMESTAMP columns store naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def row_to_response(row) -> IncidentResponse:
    """Convert a database row to IncidentResponse, with its badge."""
    data = dict(row)
    data["photo_urls"] = _safe_json_loads(data.get("photo_urls"), []) or []
    incident = IncidentResponse(**data)
    incident.badge = project_status(
        incident.status,
        incident.is_osha_recordable,
        incident.incident_classification,
    )
    incident.suggested_recordable = meets_recordability_criteria(incident)
    return incident


async def log_audit(
    conn,
    incident_id: Optional[str],
    user_id: str,
    action: str,
    details: Optional[dict] = None,
    ip_address: Optional[str] = None,
):
    """Log an action to the audit trail."""
    await conn.execute(
        """
        INSERT INTO safety_incident_audit_log (incident_id, user_id, action, details, ip_address)
        VALUES ($1, $2, $3, $4, $5)
        """,
        incident_id,
        user_id,
        action,
        json.dumps(details) if details else None,
        ip_address,
    )


async def next_case_number(conn, workspace_id: UUID, incident_date: date) -> str:
    """Next case number for the incident's calendar year in this workspace."""
    year = incident_date.year
    count = await conn.fetchval(
        """
        SELECT COUNT(*) FROM safety_incidents
        WHERE workspace_id = $1 AND incident_date BETWEEN $2 AND $3
        """,
        str(workspace_id),
        date(year, 1, 1),
        date(year, 12, 31),
    )
    return format_case_number(year, (count or 0) + 1)


async def log_incident(
    conn,
    workspace_id: UUID,
    reporter_id: UUID,
    payload: LogIncidentPayload,
) -> IncidentResponse:
    """Insert a new report in ``pending_review`` with the next case number."""
    async with conn.transaction():
        # Serialize case numbering per workspace
        await conn.execute(
            "SELECT pg_advisory_xact_lock(hashtext($1::text))",
            f"safety_case_number:{workspace_id}",
        )
        case_number = await next_case_number(conn, workspace_id, payload.incident_date)

        row = await conn.fetchrow(
            _returning_with_reporter(
                """
                INSERT INTO safety_incidents (
                    workspace_id, case_number, status, reported_by,
                    source_type, source_id, incident_date, incident_time,
                    location_description, what_happened,
                    injured_employee_name, injured_employee_job_title, injury_involved,
                    injury_icon, body_part_affected, witness_name, witness_contact,
                    medical_treatment, physician_name, facility_name,
                    resulted_in_days_away, resulted_in_transfer, photo_urls
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13,
                        $14, $15, $16, $17, $18, $19, $20, $21, $22, $23)
                """
            ),
            str(workspace_id),
            case_number,
            IncidentStatus.PENDING_REVIEW.value,
            str(reporter_id),
            _db_value(payload.source_type),
            _db_value(payload.source_id),
            payload.incident_date,
            payload.incident_time,
            payload.location_description,
            payload.what_happened,
            payload.injured_employee_name,
            payload.injured_employee_job_title,
            payload.injury_involved,
            _db_value(payload.injury_icon),
            _db_value(payload.body_part_affected),
            payload.witness_name,
            payload.witness_contact,
            _db_value(payload.medical_treatment),
            payload.physician_name,
            payload.facility_name,
            payload.resulted_in_days_away,
            payload.resulted_in_transfer,
            json.dumps(payload.photo_urls),
        )

    return row_to_response(row)


async def get_incident(conn, workspace_id: UUID, incident_id: UUID) -> Optional[IncidentResponse]:
    row = await conn.fetchrow(
        f"{INCIDENT_SELECT} WHERE i.id = $1 AND i.workspace_id = $2",
        str(incident_id),
        str(workspace_id),
    )
    if not row:
        return None
    return row_to_response(row)


async def list_incidents(
    conn,
    workspace_id: UUID,
    filters: Optional[IncidentFilters] = None,
    *,
    reported_by: Optional[UUID] = None,
    pending_only: bool = False,
    recordable_only: bool = False,
) -> list[IncidentResponse]:
    """Filtered read of the workspace's incidents.

    Pending queues are oldest first, reporter history newest report first,
    everything else newest incident first.
    """
    filters = filters or IncidentFilters()
    conditions = ["i.workspace_id = $1"]
    params: list[Any] = [str(workspace_id)]
    param_idx = 2

    if reported_by is not None:
        conditions.append(f"i.reported_by = ${param_idx}")
        params.append(str(reported_by))
        param_idx += 1

    if pending_only:
        conditions.append(f"i.status = ANY(${param_idx}::text[])")
        params.append([status.value for status in PENDING_STATUSES])
        param_idx += 1

    if recordable_only:
        conditions.append("i.is_osha_recordable = true")

    if filters.year:
        conditions.append(f"i.incident_date BETWEEN ${param_idx} AND ${param_idx + 1}")
        params.extend([date(filters.year, 1, 1), date(filters.year, 12, 31)])
        param_idx += 2

    if filters.status and filters.status != "all":
        conditions.append(f"i.status = ${param_idx}")
        params.append(filters.status)
        param_idx += 1

    if filters.source_type and filters.source_type != "all":
        conditions.append(f"i.source_type = ${param_idx}")
        params.append(filters.source_type)
        param_idx += 1

    if filters.classification and filters.classification != "all":
        condition = CLASSIFICATION_FILTERS.get(filters.classification)
        if condition is None:
            raise ValueError(
                f"Unknown classification filter '{filters.classification}'. "
                f"Allowed: all, {', '.join(CLASSIFICATION_FILTERS)}"
            )
        conditions.append(condition)

    if filters.search and filters.search.strip():
        conditions.append(
            f"(i.injured_employee_name ILIKE ${param_idx} OR i.what_happened ILIKE ${param_idx}"
            f" OR i.location_description ILIKE ${param_idx} OR COALESCE(i.case_number, '') ILIKE ${param_idx})"
        )
        params.append(f"%{filters.search.strip()}%")
        param_idx += 1

    if pending_only:
        order_by = "i.incident_date ASC"
    elif reported_by is not None:
        order_by = "i.reported_at DESC"
    elif recordable_only:
        order_by = "i.case_number ASC"
    else:
        order_by = "i.incident_date DESC"

    rows = await conn.fetch(
        f"{INCIDENT_SELECT} WHERE {' AND '.join(conditions)} ORDER BY {order_by}",
        *params,
    )
    return [row_to_response(row) for row in rows]


async def start_review(conn, incident_id: UUID, reviewer_id: UUID) -> Optional[IncidentResponse]:
    """Move a pending report into ``under_review``.

    Returns None when the stored status no longer allows the move.
    """
    row = await conn.fetchrow(
        _returning_with_reporter(
            """
            UPDATE safety_incidents
            SET status = $1, reviewed_by = $2, updated_at = $3
            WHERE id = $4 AND status = ANY($5::text[])
            """
        ),
        IncidentStatus.UNDER_REVIEW.value,
        str(reviewer_id),
        _utcnow(),
        str(incident_id),
        [status.value for status in sources_for(IncidentStatus.UNDER_REVIEW)],
    )
    if not row:
        return None
    return row_to_response(row)


async def classify_incident(
    conn,
    incident_id: UUID,
    reviewer_id: UUID,
    payload: ClassifyIncidentPayload,
) -> Optional[IncidentResponse]:
    """Write the classification fields present in *payload*.

    Only fields set on the payload are written; the reviewer and review time
    are always stamped. The write only lands while the stored status may move
    to ``payload.status``; otherwise nothing changes and None is returned.
    """
    changes = payload.model_dump(exclude_unset=True)
    now = _utcnow()
    changes.update(reviewed_by=reviewer_id, reviewed_at=now, updated_at=now)

    updates = []
    params = []
    param_idx = 1
    for column, value in changes.items():
        updates.append(f"{column} = ${param_idx}")
        params.append(_db_value(value))
        param_idx += 1

    params.append(str(incident_id))
    params.append([status.value for status in sources_for(payload.status)])
    row = await conn.fetchrow(
        _returning_with_reporter(
            f"""
            UPDATE safety_incidents
            SET {", ".join(updates)}
            WHERE id = ${param_idx} AND status = ANY(${param_idx + 1}::text[])
            """
        ),
        *params,
    )
    if not row:
        return None
    return row_to_response(row)
