"""
Pydantic schema definitions for API payloads.

Schemas describe the wire shape of creature records and the
request/response envelopes of each operation.  They are separate from
``storage.StoredCreature`` so the API representation does not depend
on how records are persisted.
"""
