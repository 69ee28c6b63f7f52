"""Safety domain-specific dependencies."""

from ..core.dependencies import require_roles
from ..core.models.auth import SAFETY_MANAGER_ROLES

# Anyone in the workspace can report an incident and follow their own reports
require_member = require_roles(*SAFETY_MANAGER_ROLES, "field")

# Safety dashboard, review queue, classification and OSHA logs
require_safety_manager = require_roles(*SAFETY_MANAGER_ROLES)
