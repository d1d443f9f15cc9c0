from fastapi import APIRouter

from .endpoints import (
    health,
    members,
    observability,
)

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(members.router)
router.include_router(observability.router)
