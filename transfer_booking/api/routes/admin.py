"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health -- simple health check with live session count
"""

from fastapi import APIRouter, Depends

from transfer_booking.api.dependencies import get_registry
from transfer_booking.api.schemas import HealthResponse
from transfer_booking.infrastructure.sessions import SessionRegistry

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(registry: SessionRegistry = Depends(get_registry)):
    return HealthResponse(sessions=len(registry))
