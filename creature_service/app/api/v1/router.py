"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers under a unified prefix.  When
new endpoints are added, update this file to include their routers.
"""

from fastapi import APIRouter

from .endpoints import creatures, info

router = APIRouter()

router.include_router(creatures.router, prefix="/creatures", tags=["creatures"])
router.include_router(info.router, prefix="/info", tags=["info"])
