"""
Closed enumerations used by the domain entities.
"""

from .frequency import Frequency
from .gender import Gender
from .workflow import Screen

__all__ = [
    "Frequency",
    "Gender",
    "Screen",
]
