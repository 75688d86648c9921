"""
Configuration management for the prompt optimizer.

Uses Pydantic settings for environment variable support.
"""
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

from .gateway import DEFAULT_OPTIMIZER_MODEL, DEFAULT_RESPONSE_MODEL, CompletionGateway


class OptimizerConfig(BaseSettings):
    """Optimizer settings loaded from environment variables."""

    GOOGLE_API_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_API_KEY", "API_KEY"),
        description="API key for the Gemini completion service",
    )
    GOOGLE_API_BASE: Optional[str] = None

    # Models
    OPTIMIZER_MODEL: str = DEFAULT_OPTIMIZER_MODEL
    RESPONSE_MODEL: str = DEFAULT_RESPONSE_MODEL
    THINKING_BUDGET: Optional[int] = 0

    # Prompt engineering
    TREE_OF_THOUGHT_BRANCHES: int = Field(default=3, ge=1, le=10)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def create_gateway(self) -> CompletionGateway:
        """Build the Gemini gateway described by this configuration."""
        from .gemini_gateway import GeminiCompletionGateway

        return GeminiCompletionGateway(
            api_key=self.GOOGLE_API_KEY,
            model=self.OPTIMIZER_MODEL,
            response_model=self.RESPONSE_MODEL,
            thinking_budget=self.THINKING_BUDGET,
            api_base=self.GOOGLE_API_BASE,
        )
