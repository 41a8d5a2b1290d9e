"""
Top‑level package for the Creature Service.

This file makes ``creature_service`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``creature_service.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
