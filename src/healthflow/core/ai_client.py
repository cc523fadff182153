"""
Simple Azure OpenAI client wrapper for core AI operations.

Design goals:
- Use Azure OpenAI only (via AsyncAzureOpenAI)
- No proxy usage

Retries and response validation are handled by the callers.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import httpx
from openai import AsyncAzureOpenAI

from .config import get_settings


class AzureAIClient:
    """
    Thin wrapper around AsyncAzureOpenAI for common AI operations.

    This client:
    - Connects directly to Azure OpenAI (no proxy)
    - Uses the deployment name from configuration
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        api_version: Optional[str] = None,
        deployment_name: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize AzureAIClient.

        If arguments are omitted, values are loaded from application settings.
        """
        settings = get_settings()

        endpoint = endpoint or settings.azure_openai.endpoint
        api_key = api_key or settings.azure_openai.api_key
        api_version = api_version or settings.azure_openai.api_version
        deployment_name = deployment_name or settings.azure_openai.deployment_name

        if not endpoint or not api_key:
            raise ValueError(
                "Azure OpenAI endpoint and API key must be configured. "
                "Set AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_API_KEY."
            )

        if not deployment_name:
            raise ValueError(
                "Azure OpenAI deployment name is required. "
                "Set AZURE_OPENAI_DEPLOYMENT_NAME."
            )

        # Azure SDK does not expect trailing slash
        normalized_endpoint = endpoint.rstrip("/")

        self._deployment_name = deployment_name
        self._client = AsyncAzureOpenAI(
            api_key=api_key,
            api_version=api_version,
            azure_endpoint=normalized_endpoint,
            # Retries belong to core.retry.call_with_retry only
            max_retries=0,
            http_client=http_client,
        )

    async def chat(
        self,
        messages: Sequence[Dict[str, str]],
        *,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ):
        """
        Generic chat completion helper.

        Args:
            messages: OpenAI chat messages list.
            model: Optional deployment name override. Defaults to configured deployment.
            temperature: Sampling temperature.
            max_tokens: Optional max tokens for the response.
            **kwargs: Passed directly to Azure OpenAI SDK.
        """
        deployment = model or self._deployment_name
        return await self._client.chat.completions.create(
            model=deployment,
            messages=list(messages),
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )

    async def complete_text(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
        temperature: float = 0.3,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Single-turn helper returning the first choice's text ("" when empty)."""
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs: Dict[str, Any] = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self.chat(
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


__all__ = ["AzureAIClient"]
