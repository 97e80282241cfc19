# arw/agents/nodes/llm.py
from __future__ import annotations
import logging
import math
from typing import Optional, Protocol

from openai import AsyncOpenAI

from agents import config
from agents.errors import ConfigurationError
from agents.models import AgentSpec, GenerationResult
from tools.templates import compose_prompt

logger = logging.getLogger(__name__)


def estimate_tokens(prompt: str) -> int:
    """
    Rough token count (characters / 4, rounded up). This is an estimate of
    what the provider bills, not a tokenizer count.
    """
    return math.ceil(len(prompt) / 4)


class TextProvider(Protocol):
    async def complete(self, model: str, prompt: str, temperature: float,
                       max_tokens: int) -> Optional[str]: ...


class GeminiProvider:
    """Gemini through its OpenAI-compatible endpoint."""

    def __init__(self, api_key: str, base_url: str = config.GEMINI_BASE_URL,
                 timeout: float = config.GEMINI_TIMEOUT_S,
                 client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0
        )

    async def complete(self, model: str, prompt: str, temperature: float,
                       max_tokens: int) -> Optional[str]:
        resp = await self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not resp.choices:
            raise ValueError("Malformed response: no choices returned")
        return resp.choices[0].message.content


class GenerationClient:
    """
    Single-call wrapper around the text provider.

    Provider failures are never raised: they come back as a failed
    GenerationResult with a zero token estimate, so a chain of calls always
    gets one result per step.
    """

    def __init__(self, api_key: str, provider: Optional[TextProvider] = None):
        self.api_key = api_key or ""
        self._provider = provider

    def validate(self) -> None:
        if not self.api_key:
            raise ConfigurationError("API key is required")

    @property
    def provider(self) -> TextProvider:
        if self._provider is None:
            self._provider = GeminiProvider(api_key=self.api_key)
        return self._provider

    async def generate(self, model: str, system_prompt: str, user_prompt: str,
                       context: str, temperature: float, max_tokens: int) -> GenerationResult:
        self.validate()
        prompt = compose_prompt(system_prompt, user_prompt, context)
        try:
            text = await self.provider.complete(model, prompt, temperature, max_tokens)
        except Exception as e:
            logger.error("Gemini API error (model=%s): %s", model, e)
            return GenerationResult.failure(str(e))
        return GenerationResult.success(text, estimate_tokens(prompt))

    async def generate_for(self, agent: AgentSpec, context: str) -> GenerationResult:
        return await self.generate(
            model=agent.model,
            system_prompt=agent.system_prompt,
            user_prompt=agent.user_prompt,
            context=context,
            temperature=agent.temperature,
            max_tokens=agent.max_tokens,
        )


async def generate_text(api_key: str, model: str, system_prompt: str, user_prompt: str,
                        context: str, temperature: float, max_tokens: int,
                        provider: Optional[TextProvider] = None) -> GenerationResult:
    """One-shot helper: raises ConfigurationError on an empty key, otherwise never raises."""
    client = GenerationClient(api_key, provider=provider)
    return await client.generate(model, system_prompt, user_prompt, context,
                                 temperature, max_tokens)

