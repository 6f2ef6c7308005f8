"""
provider.py – External LLM clients. Build and return configured OpenAI-compatible clients
-----------------------------------------------------------------------------------------
In the overall data-flow this file sits at the infrastructure layer.
It is the single place where we talk to the external language-understanding platforms.
Groq, OpenAI, Anthropic and Google all expose OpenAI-compatible chat completion endpoints,
so one SDK covers every provider; only the base URL, API key and model differ, and those
live in config.json under llm.providers.

Why a *provider* module?
• Keeps third-party SDK initialisation separate from business logic.
• Offers a tiny, easily mockable `get_client()` function instead of a
  global singleton. Tests can monkey-patch this function or inject a fake
  client without importing heavy objects.
• The orchestrator only sees `ChatProvider.complete()`; it does not need to know about
  base URLs, API keys or the SDK's response objects.
"""

import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import OpenAI

from config import CONFIG
from monitoring.metrics import LLM_REQUEST_TIME, ERROR_COUNT, timed
from shared.models import ConversationMessage, LLMProvider, ToolInvocation

logger = logging.getLogger(__name__)


class LLMProviderError(RuntimeError):
    """The language-understanding provider could not produce a completion."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


def require_any_env(names: Sequence[str]) -> str:
    """
    Return the first non-empty environment variable among `names`.

    Raises:
        LLMProviderError: If none of them is set. Keys for the non-default providers
            are only checked when a request selects that provider.
    """
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    raise LLMProviderError(f"Missing API key: set one of {', '.join(names)}")


def _provider_config(provider: LLMProvider) -> Dict[str, Any]:
    try:
        return CONFIG["llm"]["providers"][provider.value]
    except KeyError:
        raise LLMProviderError(f"No configuration for LLM provider '{provider.value}'", provider.value) from None


# NOTE: Client creation is wrapped in a **function** instead of a module-level global, so
# nothing is built at import time and tests can inject a fake client.


def get_client(provider: LLMProvider = LLMProvider.GROQ) -> OpenAI:
    """
    Build and return an OpenAI SDK client pointed at the given provider's endpoint.

    Args:
        provider (LLMProvider): Which backend to target. Defaults to the free Groq endpoint.

    Returns:
        OpenAI: A ready-to-use client configured from `CONFIG` and the environment.

    Raises:
        LLMProviderError: If the provider has no configuration or its API key is missing.
    """
    provider_cfg = _provider_config(provider)
    api_key = require_any_env(provider_cfg["api_key_env"])
    return OpenAI(
        base_url=provider_cfg["base_url"],
        api_key=api_key,
        timeout=CONFIG["llm"].get("timeout", 30),  # seconds – explicit is better than implicit
        max_retries=0,
    )


class ChatProvider:
    """
    One configured language-understanding backend.

    Args:
        provider (LLMProvider): The backend this instance talks to; used for logs and metrics.
        client (OpenAI, optional): Injected client. Built lazily with `get_client()` when omitted.
        model (str, optional): Model name; defaults to the provider's model in config.json.
        settings (dict, optional): Sampling settings (max_tokens, temperature); defaults to
            CONFIG["llm"]["settings"].
    """

    def __init__(
        self,
        provider: LLMProvider = LLMProvider.GROQ,
        client: Optional[OpenAI] = None,
        model: Optional[str] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.provider = provider
        self._client = client
        self.model = model or _provider_config(provider)["model"]
        self.settings = settings if settings is not None else dict(CONFIG["llm"].get("settings", {}))

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = get_client(self.provider)
        return self._client

    def complete(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> ConversationMessage:
        """
        Request one chat completion and return the assistant message.

        Args:
            messages (List[Dict[str, Any]]): The conversation in chat completions format.
            tools (List[Dict[str, Any]], optional): Tool descriptors. When given, the provider
                may answer with tool calls (`tool_choice="auto"`); when omitted, it must answer
                with text.

        Returns:
            ConversationMessage: An assistant message carrying the text content and/or the
            tool invocations in the order the provider emitted them.

        Raises:
            LLMProviderError: On timeouts, connection failures, non-2xx answers or a
                response without choices.
        """
        kwargs: Dict[str, Any] = {}
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"

        logger.info(
            f"[ChatProvider] Requesting completion from {self.provider.value} "
            f"(model={self.model}, messages={len(messages)}, tools={len(tools or [])})"
        )
        try:
            with timed(LLM_REQUEST_TIME, provider=self.provider.value):
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    max_tokens=self.settings.get("max_tokens", 1024),
                    temperature=self.settings.get("temperature", 0.3),
                    **kwargs,
                )
        except openai.OpenAIError as exc:
            ERROR_COUNT.labels(type='llm', location=self.provider.value).inc()
            logger.error(f"[ChatProvider] {self.provider.value} request failed: {exc}", exc_info=True)
            raise LLMProviderError(f"{self.provider.value} request failed: {exc}", self.provider.value) from exc

        if not response.choices:
            ERROR_COUNT.labels(type='llm', location=self.provider.value).inc()
            raise LLMProviderError(f"{self.provider.value} returned no choices", self.provider.value)

        message = response.choices[0].message
        invocations = [
            ToolInvocation(id=call.id, name=call.function.name, arguments=call.function.arguments or "{}")
            for call in (message.tool_calls or [])
        ]
        return ConversationMessage.assistant(message.content, invocations)
