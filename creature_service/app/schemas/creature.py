"""
Pydantic schemas for creature records.

A creature carries a caller-assigned ``code`` (not unique, never used
for lookups), a ``name``, a ``power`` and a ``description``.  The ``id``
is assigned by storage on creation and is empty until then.  All
fields default to the empty string; apart from the identifier no field
is validated.
"""

from pydantic import BaseModel, Field


class CreatureIn(BaseModel):
    """Creature fields supplied by the caller."""

    code: str = Field("", description="Caller-assigned external code")
    name: str = Field("", description="Display name")
    power: str = Field("", description="Attribute or power of the creature")
    description: str = Field("", description="Free-form description")


class Creature(CreatureIn):
    """Full creature record as returned by the service."""

    id: str = Field("", description="Storage-assigned identifier (24 hex characters)")


class CreateCreatureRequest(BaseModel):
    creature: CreatureIn


class UpdateCreatureRequest(BaseModel):
    """Body of an update.  The identifier is taken from the URL path."""

    creature: CreatureIn


class CreatureResponse(BaseModel):
    """Envelope returned by create, read, update and each list item."""

    creature: Creature


class DeleteCreatureResponse(BaseModel):
    id: str


class ErrorResponse(BaseModel):
    detail: str
    code: str
