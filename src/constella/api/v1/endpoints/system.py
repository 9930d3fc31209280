# src/constella/api/v1/endpoints/system.py
"""Service health endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from constella.db.time import utcnow

router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok", "timestamp": utcnow().isoformat()}
