"""
AI providers for chatbot conversation summaries.

Providers are chosen from a closed registry keyed by AIProviderName and
built once when services are configured. A provider returns an AIResponse
instead of raising, so callers can fall back to a canned summary.
"""

import time
from enum import Enum
from typing import Callable, Protocol

from ollama import Client
from pydantic import BaseModel, Field

from shared import config

MAX_LLM_RETRIES = 3  # Maximum attempts for a failed chat call


class AIProviderName(str, Enum):
    OLLAMA = "ollama"


class AIResponse(BaseModel):
    success: bool
    text: str = ""
    provider: str
    model: str
    error: str | None = None


class ConversationSummary(BaseModel):
    summary: str = Field(max_length=5000, description="3-5 paragraph summary")


class AIProvider(Protocol):
    name: AIProviderName
    model: str

    def chat(
        self, messages: list[dict[str, str]], system: str | None = None
    ) -> AIResponse: ...


class OllamaProvider:
    """Local inference through an Ollama server."""

    name = AIProviderName.OLLAMA

    def __init__(
        self,
        model: str | None = None,
        host: str | None = None,
        timeout: float | None = None,
        max_retries: int = MAX_LLM_RETRIES,
    ):
        self.model = model or config.OLLAMA_MODEL
        self.max_retries = max_retries
        # Ollama calls can hang indefinitely without a client timeout
        self.client = Client(
            host=host or config.OLLAMA_HOST,
            timeout=timeout if timeout is not None else config.OLLAMA_TIMEOUT_SECONDS,
        )

    def chat(
        self, messages: list[dict[str, str]], system: str | None = None
    ) -> AIResponse:
        """
        Ask the model for a structured summary response.

        Retries with exponential backoff (1s, 2s) before giving up.

        Args:
            messages: Chat messages ({"role": ..., "content": ...})
            system: Optional system prompt prepended to the messages

        Returns:
            AIResponse with success=False and the last error if every attempt failed
        """
        chat_messages = list(messages)
        if system:
            chat_messages.insert(0, {"role": "system", "content": system})

        last_error = ""
        for attempt in range(self.max_retries):
            try:
                response = self.client.chat(
                    model=self.model,
                    messages=chat_messages,
                    format=ConversationSummary.model_json_schema(),
                    options={"temperature": 0.3},
                )
                content = response.message.content
                if not content or content.strip() == "":
                    raise ValueError("LLM returned empty response")

                data = ConversationSummary.model_validate_json(content)
                return AIResponse(
                    success=True,
                    text=data.summary,
                    provider=self.name.value,
                    model=self.model,
                )
            except Exception as e:
                last_error = str(e)
                if attempt < self.max_retries - 1:
                    wait_time = 2**attempt
                    print(
                        f"  ⚠ Attempt {attempt + 1} failed: {e}. Retrying in {wait_time}s..."
                    )
                    time.sleep(wait_time)

        return AIResponse(
            success=False,
            provider=self.name.value,
            model=self.model,
            error=f"LLM call failed after {self.max_retries} attempts: {last_error}",
        )


PROVIDER_REGISTRY: dict[AIProviderName, Callable[[], AIProvider]] = {
    AIProviderName.OLLAMA: OllamaProvider,
}


def build_ai_provider(name: str | None) -> AIProvider | None:
    """
    Build the provider configured in the ai_provider setting.

    Returns:
        Provider instance, or None when unset or not a known provider
    """
    if not name:
        return None

    try:
        provider_name = AIProviderName(name.strip().lower())
    except ValueError:
        print(f"  ⚠️  Unknown AI provider '{name}', summaries will use the fallback")
        return None

    return PROVIDER_REGISTRY[provider_name]()
