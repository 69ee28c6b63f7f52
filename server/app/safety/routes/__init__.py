"""Safety (OSHA incident) routes aggregation."""

from fastapi import APIRouter

from .safety_incidents import router as safety_incidents_router

# Create main Safety router
safety_router = APIRouter()

# Mount sub-routers
safety_router.include_router(safety_incidents_router, prefix="/incidents", tags=["safety-incidents"])

__all__ = ["safety_router", "safety_incidents_router"]
