"""
Screen states of a consultation.
"""

from enum import Enum


class Screen(str, Enum):
    """Screens a consultation session moves through."""
    INTAKE = "intake"                # Patient details and history lookup
    VOICE_CAPTURE = "voice_capture"  # Dictation ready for extraction
    REVIEW = "review"                # Extracted prescription being edited
    FINAL = "final"                  # Committed (or historical) prescription
