"""
Value objects package for domain layer.
"""

from .upid import Upid

__all__ = [
    "Upid",
]
