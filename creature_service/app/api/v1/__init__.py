"""Version 1 of the creature service API."""
