# arw/agents/models.py
from __future__ import annotations
from datetime import datetime, timezone
from pydantic import BaseModel, Field
from typing import List, Optional

PROVIDER_LABEL = "Gemini"
ERROR_PREFIX = "Error generating content:"
EMPTY_RESPONSE = "No response generated."

class AgentSpec(BaseModel):
    id: str
    name: str
    description: str = ""
    system_prompt: str
    user_prompt: str
    model: str = "gemini-2.5-flash"
    temperature: float = Field(0.2, ge=0.0)
    max_tokens: int = Field(1500, gt=0)

class ExecutionMetric(BaseModel):
    agent_name: str
    latency: float = Field(..., ge=0.0)  # seconds
    tokens: int = Field(..., ge=0)
    provider: str = PROVIDER_LABEL
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class GenerationResult(BaseModel):
    """
    Outcome of one generation call. A failure carries the provider's message
    in `error` and is rendered as placeholder text only at the caller boundary.
    """
    text: str = ""
    tokens: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, text: Optional[str], tokens: int) -> "GenerationResult":
        return cls(text=text or EMPTY_RESPONSE, tokens=tokens)

    @classmethod
    def failure(cls, reason: str) -> "GenerationResult":
        return cls(text="", tokens=0, error=reason or "Unknown error")

    def render(self) -> str:
        if self.ok:
            return self.text
        return f"{ERROR_PREFIX} {self.error}"

class RunState(BaseModel):
    current_step: Optional[int] = None
    outputs: List[str] = Field(default_factory=list)
    metrics: List[ExecutionMetric] = Field(default_factory=list)
    running: bool = False
    context: str = ""
    failed_steps: List[int] = Field(default_factory=list)

    def snapshot(self) -> "RunState":
        return self.model_copy(deep=True)
