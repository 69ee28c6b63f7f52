"""Status badge shown on incident cards and the classification panel header."""

from typing import Optional

from ..models.catalog import IncidentClassification, IncidentStatus
from ..models.incident import StatusBadge

CLOSED_STYLE = "text-green-600 bg-green-50 border-green-200"
RECORDABLE_STYLE = "text-red-600 bg-red-50 border-red-200"
FIRST_AID_STYLE = "text-blue-600 bg-blue-50 border-blue-200"
NEAR_MISS_STYLE = "text-gray-600 bg-gray-50 border-gray-200"
REVIEW_STYLE = "text-amber-600 bg-amber-50 border-amber-200"


def project_status(
    status: str,
    is_osha_recordable: Optional[bool],
    classification: Optional[str] = None,
) -> StatusBadge:
    """Map an incident's fields to its badge.

    First match wins: closed outranks everything and recordability outranks
    the classification tag, so a closed recordable case reads "Closed".
    """
    if status == IncidentStatus.CLOSED:
        return StatusBadge(label="Closed", style_class=CLOSED_STYLE)
    if is_osha_recordable is True:
        return StatusBadge(label="OSHA Recordable", style_class=RECORDABLE_STYLE)
    if is_osha_recordable is False or classification == IncidentClassification.FIRST_AID_ONLY:
        return StatusBadge(label="First Aid Only", style_class=FIRST_AID_STYLE)
    if classification == IncidentClassification.NEAR_MISS:
        return StatusBadge(label="Near Miss", style_class=NEAR_MISS_STYLE)
    if status == IncidentStatus.UNDER_REVIEW:
        return StatusBadge(label="Under Review", style_class=REVIEW_STYLE)
    return StatusBadge(label="Pending Review", style_class=REVIEW_STYLE)
