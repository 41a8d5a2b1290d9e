"""Domain-specific endpoint modules for API v1."""
