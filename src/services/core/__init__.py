"""
Core Services

This module contains core utility services and helpers.
"""

from .tool import *
from .wrap import check_authentication

__all__ = [
    "check_authentication",
    # Tool functions are imported with *
]
