"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Before the first instance is created a
``.env`` file in the current working directory (if any) is loaded with
``python-dotenv`` so that deployments can keep their connection
strings out of the shell environment.  A missing ``.env`` file is not
an error; every field has a default.

Fields are evaluated each time ``Settings()`` is instantiated, so tests
can set environment variables with ``monkeypatch`` and build a fresh
instance without reloading the module.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv(".env")


def _env(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = field(default_factory=lambda: _env("PROJECT_NAME", "Creature Service"))
    api_version: str = field(default_factory=lambda: _env("API_VERSION", "1.0.0"))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG"))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))

    # Optional path of a log file.  When empty only console logging is
    # configured.
    log_file: str = field(default_factory=lambda: _env("LOG_FILE", ""))

    # Listener address for ``run.py``.
    host: str = field(default_factory=lambda: _env("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(_env("PORT", "4041")))

    # Which document store backs the service: ``mongo``, ``sqlite`` or
    # ``memory``.  See ``storage.factory`` for the registered names.
    storage_backend: str = field(default_factory=lambda: _env("STORAGE_BACKEND", "mongo"))

    # MongoDB connection string, database and collection names.
    mongodb_url: str = field(default_factory=lambda: _env("MONGODB_URL", "mongodb://localhost:27017"))
    mongodb_database: str = field(default_factory=lambda: _env("MONGODB_DATABASE", "creaturedb"))
    mongodb_collection: str = field(default_factory=lambda: _env("MONGODB_COLLECTION", "creatures"))

    # Path to the SQLite database file used by the ``sqlite`` backend.
    # Relative paths are resolved against the current working directory.
    database_url: str = field(default_factory=lambda: _env("DATABASE_URL", "creatures.db"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.
settings = Settings()
