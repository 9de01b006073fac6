from fastapi import APIRouter

from plancoach.api.v1.endpoints import sections

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(sections.router, prefix="/sections", tags=["Sections"])

__all__ = ["api_router"]
