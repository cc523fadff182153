"""
AI client factory.

This module centralizes creation of the core AI client used by the services.
It returns a direct Azure OpenAI client configured from `Settings.azure_openai`.
"""

from __future__ import annotations

from .ai_client import AzureAIClient


def get_ai_client() -> AzureAIClient:
    """Get the default AI client for the application."""
    return AzureAIClient()


__all__ = ["get_ai_client", "AzureAIClient"]
