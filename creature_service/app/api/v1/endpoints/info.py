"""
Information endpoint for API v1.

Returns the project name, API version and the storage adapter the
running service uses.  Handy for checking that a deployment picked up
the intended ``STORAGE_BACKEND``.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/", response_model=Dict[str, Any])
def get_info(request: Request) -> Dict[str, Any]:
    settings = request.app.state.settings
    service = request.app.state.creature_service
    return {
        "project": settings.project_name,
        "version": settings.api_version,
        "storage": type(service.storage).__name__,
    }
