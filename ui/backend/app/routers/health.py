"""Health and status endpoints."""

from fastapi import APIRouter, Depends

from pfp_rotator.rotation import RotationScheduler

from app.dependencies import get_generation_service, get_scheduler
from app.services.generation_service import GenerationService

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    generation: GenerationService = Depends(get_generation_service),
    scheduler: RotationScheduler = Depends(get_scheduler)
):
    """Health check endpoint with the stored image count."""
    return {
        "status": "ok",
        "imageCount": generation.image_count(),
        "scheduler": scheduler.state.value
    }


@router.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Profile Picture Rotator API",
        "docs": "/docs",
        "health": "/health"
    }
