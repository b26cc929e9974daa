"""
Testing utilities module.

Provides helpers for testing plugins built with plugkit.
"""

from .utilities import TestingModule, create_testing_application

__all__ = [
    "TestingModule",
    "create_testing_application",
]
