"""
Generation configuration with strong typing.
Passed explicitly to the generation collaborator; the engine keeps no
provider state of its own.
"""

from collections.abc import AsyncIterator
from enum import Enum
import os
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field


class Provider(str, Enum):
    """Where generation runs and how it answers."""

    CLOUD = "cloud"  # Streams NDJSON records
    NATIVE = "native"  # Answers with one JSON array


class GenerationConfig(BaseModel):
    """Type-safe generation collaborator configuration."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    provider: Provider = Field(default=Provider.CLOUD)
    model_name: str = Field(default="gemini-3-pro-preview")
    api_key: str | None = Field(default=None)
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)

    def __init__(self, **data):
        """Initialize config with API key from environment if not provided."""
        if data.get("api_key") is None:
            data["api_key"] = os.getenv("GEMINI_API_KEY")
        super().__init__(**data)

    @property
    def is_streaming(self) -> bool:
        """Check if the provider streams records line by line."""
        return self.provider == Provider.CLOUD.value


class GenerationSource(Protocol):
    """Contract of the generation collaborator."""

    def stream(self, prompt: str, config: GenerationConfig) -> AsyncIterator[str]:
        """Ordered text fragments of NDJSON records."""
        ...

    async def complete(self, prompt: str, config: GenerationConfig) -> str:
        """Whole response containing a JSON array of records."""
        ...
