"""
HealthFlow: AI-assisted prescription workflow

Walks a doctor through patient intake, dictation, AI-assisted prescription
review and final dispatch, keeping patient history in a local record store.
"""

__version__ = "0.1.0"
__author__ = "HealthFlow Team"
__description__ = "AI-assisted prescription workflow"
