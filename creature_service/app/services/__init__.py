"""
Service layer abstraction.

Services encapsulate the business logic of a domain.  They receive
their storage adapter at construction time, so the same service runs
against MongoDB in production and against the in-memory adapter in
tests without changes to the API handlers.
"""
