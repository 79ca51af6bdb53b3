"""Authenticity registry source package.

This package contains the registry components:
- config: Configuration loading and management
- registry: Registry engine, fingerprint index, collaborators, event log
"""

from __future__ import annotations

__all__: list[str] = []
