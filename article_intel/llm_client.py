"""
LLM transport for the optional AI field extractor.

LLMClient.create picks a provider from an explicit argument or the
LLM_PROVIDER environment variable. Provider SDKs are imported only when
their client is constructed, so neither SDK is a hard dependency.
"""

import json
import os
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from .exceptions import LLMClientError
from .logger import get_module_logger

logger = get_module_logger("llm_client")

# Field extraction is a reading task; small models do it well
DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
}


class LLMProvider(Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


def strip_code_fences(text: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one."""
    text = text.strip()
    if text.startswith("```"):
        text = text[3:]
        if text.lower().startswith("json"):
            text = text[4:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_json_response(text: Optional[str], provider: str) -> dict:
    """
    Parse a model response into a dict.

    Raises:
        LLMClientError: the response is empty, not JSON, or not an object
    """
    if not text:
        raise LLMClientError("Empty response from model", provider=provider)
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse {provider} response as JSON: {e}")
        raise LLMClientError(
            f"Failed to parse response as JSON: {e}",
            provider=provider,
            details={"response": text[:500]}
        )
    if not isinstance(data, dict):
        raise LLMClientError(
            f"Expected a JSON object, got {type(data).__name__}",
            provider=provider,
            details={"response": text[:500]}
        )
    return data


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    provider: str = ""

    @abstractmethod
    def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        Send a prompt to the model and return the response text.

        Args:
            prompt: The user prompt
            system_prompt: Optional system prompt

        Returns:
            The model's response text
        """

    def complete_json(self, prompt: str, system_prompt: Optional[str] = None) -> dict:
        """Send a prompt and parse the response as a JSON object."""
        return parse_json_response(self.complete(prompt, system_prompt), self.provider)


class OpenAIClient(BaseLLMClient):
    """OpenAI chat completions client."""

    provider = "openai"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise LLMClientError("OpenAI API key not provided", provider=self.provider)
        self.model = model or DEFAULT_MODELS[self.provider]

        try:
            from openai import OpenAI
        except ImportError:
            raise LLMClientError(
                "openai package not installed. Run: pip install article-intel[openai]",
                provider=self.provider
            )
        self.client = OpenAI(api_key=self.api_key)

    def _create(self, prompt: str, system_prompt: Optional[str], **extra) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0,
                **extra
            )
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise LLMClientError(
                f"OpenAI API call failed: {e}",
                provider=self.provider,
                details={"error": str(e), "model": self.model}
            )
        return response.choices[0].message.content

    def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        return self._create(prompt, system_prompt)

    def complete_json(self, prompt: str, system_prompt: Optional[str] = None) -> dict:
        text = self._create(prompt, system_prompt, response_format={"type": "json_object"})
        return parse_json_response(text, self.provider)


class AnthropicClient(BaseLLMClient):
    """Anthropic messages client."""

    provider = "anthropic"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 max_tokens: int = 8192):
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise LLMClientError("Anthropic API key not provided", provider=self.provider)
        self.model = model or DEFAULT_MODELS[self.provider]
        self.max_tokens = max_tokens

        try:
            import anthropic
        except ImportError:
            raise LLMClientError(
                "anthropic package not installed. Run: pip install article-intel[anthropic]",
                provider=self.provider
            )
        self.client = anthropic.Anthropic(api_key=self.api_key)

    def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        kwargs = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = self.client.messages.create(**kwargs)
        except Exception as e:
            logger.error(f"Anthropic API error: {e}")
            raise LLMClientError(
                f"Anthropic API call failed: {e}",
                provider=self.provider,
                details={"error": str(e), "model": self.model}
            )
        return "".join(block.text for block in response.content if getattr(block, "text", None))

    def complete_json(self, prompt: str, system_prompt: Optional[str] = None) -> dict:
        # No native JSON mode; ask for it in the prompt
        json_prompt = f"{prompt}\n\nRespond with valid JSON only, no additional text."
        return parse_json_response(self.complete(json_prompt, system_prompt), self.provider)


class LLMClient:
    """
    Factory for provider clients.

    Usage:
        client = LLMClient.create()                              # $LLM_PROVIDER or openai
        client = LLMClient.create(provider=LLMProvider.ANTHROPIC)
    """

    @staticmethod
    def create(
        provider: Optional[LLMProvider] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None
    ) -> BaseLLMClient:
        """
        Create a client for the given provider.

        Args:
            provider: LLM provider (defaults to $LLM_PROVIDER, then openai)
            api_key: API key (defaults to the provider's env var)
            model: Model name (defaults to DEFAULT_MODELS)

        Returns:
            Configured client

        Raises:
            LLMClientError: missing key or SDK
        """
        if provider is None:
            provider_str = os.getenv("LLM_PROVIDER", "openai").lower()
            try:
                provider = LLMProvider(provider_str)
            except ValueError:
                logger.warning(f"Unknown LLM_PROVIDER '{provider_str}', defaulting to openai")
                provider = LLMProvider.OPENAI

        logger.info(f"Creating LLM client for provider: {provider.value}")

        if provider == LLMProvider.ANTHROPIC:
            return AnthropicClient(api_key=api_key, model=model)
        return OpenAIClient(api_key=api_key, model=model)
