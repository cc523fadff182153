"""Application use cases."""

from .consultation_flow import ConsultationFlowUseCase

__all__ = ["ConsultationFlowUseCase"]
