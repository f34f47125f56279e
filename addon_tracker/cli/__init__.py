"""
Command-line interface for the add-on tracker.

This module provides CLI commands for:
- Managing the add-on manifest
- Locking add-ons to their newest releases
- Installing and updating add-ons
"""

from .main import main

__all__ = [
    "main",
]
