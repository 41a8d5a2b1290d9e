"""
Application package initializer.

This package contains the HTTP entrypoint for the creature service and
its supporting layers: configuration and logging in ``core``, wire
schemas in ``schemas``, the document-store adapters in ``storage``,
the CRUD handler in ``services`` and the versioned routes in ``api``.

The application object is not created here.  Use
``creature_service.app.main:app`` (or ``create_app``) to obtain it, so
that importing the storage or service layers never opens a database
connection.
"""
