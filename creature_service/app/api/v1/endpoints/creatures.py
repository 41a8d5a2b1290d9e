"""
Creature endpoints for API v1.

These routes expose create, read, update, delete and list over
creature records.  Errors raised by ``CreatureService`` are turned into
JSON responses by the exception handler registered in ``main``:
400 for a malformed identifier, 404 for a missing record and 500 for
storage failures.

The list route streams newline-delimited JSON, one
``{"creature": {...}}`` object per line, as records are read from
storage.  If the scan fails after the response has started, a final
``{"error": {...}}`` line is written and the stream ends.
"""

import json
import logging
from typing import Iterator

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from creature_service.app.api.deps import get_creature_service
from creature_service.app.core.errors import CreatureServiceError
from creature_service.app.schemas.creature import (
    CreateCreatureRequest,
    Creature,
    CreatureResponse,
    DeleteCreatureResponse,
    ErrorResponse,
    UpdateCreatureRequest,
)
from creature_service.app.services.creature_service import CreatureService, CreatureStream

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def _ndjson(stream: CreatureStream) -> Iterator[str]:
    with stream:
        try:
            for creature in stream:
                yield CreatureResponse(creature=creature).model_dump_json() + "\n"
        except CreatureServiceError as exc:
            logger.error("Creature list aborted: %s", exc.message)
            yield json.dumps({"error": exc.to_dict()}) + "\n"


@router.post(
    "/",
    response_model=CreatureResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
)
def create_creature(
    body: CreateCreatureRequest,
    service: CreatureService = Depends(get_creature_service),
) -> CreatureResponse:
    """Create a creature; the response carries the storage-assigned id."""
    return CreatureResponse(creature=service.create_creature(body.creature))


@router.get("/", response_class=StreamingResponse, responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}})
def list_creatures(service: CreatureService = Depends(get_creature_service)) -> StreamingResponse:
    """Stream every stored creature as newline-delimited JSON.

    Records arrive in storage order; there is no sorting, filtering or
    pagination.  An empty store yields an empty body.
    """
    stream = service.list_creatures()
    # The background task also covers a client that disconnects before
    # the first chunk, when the generator body never runs.
    return StreamingResponse(
        _ndjson(stream),
        media_type="application/x-ndjson",
        background=BackgroundTask(stream.close),
    )


@router.get("/{creature_id}", response_model=CreatureResponse, responses=_ERROR_RESPONSES)
def read_creature(
    creature_id: str,
    service: CreatureService = Depends(get_creature_service),
) -> CreatureResponse:
    """Retrieve a single creature by its identifier."""
    return CreatureResponse(creature=service.get_creature(creature_id))


@router.put("/{creature_id}", response_model=CreatureResponse, responses=_ERROR_RESPONSES)
def update_creature(
    creature_id: str,
    body: UpdateCreatureRequest,
    service: CreatureService = Depends(get_creature_service),
) -> CreatureResponse:
    """Replace all fields of an existing creature.

    The identifier in the path is authoritative; fields omitted from the
    body are stored as empty strings rather than kept.
    """
    creature = Creature(id=creature_id, **body.creature.model_dump())
    return CreatureResponse(creature=service.update_creature(creature))


@router.delete("/{creature_id}", response_model=DeleteCreatureResponse, responses=_ERROR_RESPONSES)
def delete_creature(
    creature_id: str,
    service: CreatureService = Depends(get_creature_service),
) -> DeleteCreatureResponse:
    """Delete a creature and echo back its identifier."""
    return DeleteCreatureResponse(id=service.delete_creature(creature_id))
