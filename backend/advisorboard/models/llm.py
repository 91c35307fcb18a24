"""
Pydantic models for LLM generation requests and normalized responses.

Provider results travel as values, not exceptions:

    ProviderResult = Ok[NormalizedResponse] | Err

Ok/Err are plain frozen dataclasses so they can carry exception instances.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from advisorboard.core.errors import ProviderError


class TokenUsage(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class LLMConfig(BaseModel):
    """
    Generation parameters for one provider call.

    Field ranges are not enforced here; each adapter's validate_config
    checks them so that a bad value becomes a ConfigurationError.
    """

    model_config = ConfigDict(frozen=True)

    provider: str
    model: str
    temperature: float = 0.7
    max_tokens: int = 1000
    api_key: Optional[str] = Field(default=None, repr=False)
    timeout_seconds: float = 30.0
    base_url: Optional[str] = None


class LLMOverrides(BaseModel):
    """Per-call overrides supplied by callers; unset fields keep defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    provider: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    timeout_seconds: Optional[float] = None
    api_key: Optional[str] = Field(default=None, repr=False)


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    config: LLMConfig


class NormalizedResponse(BaseModel):
    """Provider-independent successful generation."""

    model_config = ConfigDict(frozen=True)

    content: str
    usage: Optional[TokenUsage] = None
    model: str
    provider: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: ProviderError

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error


ProviderResult = Union[Ok[NormalizedResponse], Err]
