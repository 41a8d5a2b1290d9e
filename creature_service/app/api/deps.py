"""FastAPI dependencies shared by the endpoint modules."""

from fastapi import Request

from creature_service.app.services.creature_service import CreatureService


def get_creature_service(request: Request) -> CreatureService:
    """Return the service instance created by ``create_app``."""
    return request.app.state.creature_service
