"""Configuration, logging and error definitions shared by all layers."""
