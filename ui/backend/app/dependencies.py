"""FastAPI dependencies resolving the per-app service objects."""

from fastapi import Request

from pfp_rotator.rotation import RotationScheduler

from app.services.generation_service import GenerationService


def get_generation_service(request: Request) -> GenerationService:
    return request.app.state.generation_service


def get_scheduler(request: Request) -> RotationScheduler:
    return request.app.state.scheduler
