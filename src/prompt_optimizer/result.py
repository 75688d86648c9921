"""
Optimization results.

An optimization run ends in exactly one of two variants: a clarification
request or a successful optimization. ``HistoryEntry`` is the shape a caller
builds from a success to keep its own history; the optimizer never stores it.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Union
from uuid import uuid4

from .tokens import TokenCounts


@dataclass(frozen=True)
class ClarificationResult:
    """The optimizer needs more detail before it can rewrite the prompt."""

    question: str
    """Question to put to the user."""

    prompt_for_clarification: str
    """Prompt text that produced the question."""

    needs_clarification: bool = field(default=True, init=False)


@dataclass(frozen=True)
class OptimizationSuccess:
    """A completed optimization."""

    optimized_prompt: str
    original_token_count: int
    optimized_token_count: int
    latency_ms: int
    original_prompt_for_history: str

    needs_clarification: bool = field(default=False, init=False)

    @property
    def token_counts(self) -> TokenCounts:
        return TokenCounts(original=self.original_token_count, optimized=self.optimized_token_count)


OptimizationResult = Union[ClarificationResult, OptimizationSuccess]


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    original_prompt: str
    optimized_prompt: str
    token_counts: TokenCounts
    timestamp: str
    negative_prompt: Optional[str] = None

    @classmethod
    def from_success(
        cls,
        result: OptimizationSuccess,
        negative_prompt: Optional[str] = None,
    ) -> "HistoryEntry":
        """Build an entry for the caller's history list."""
        return cls(
            id=uuid4().hex,
            original_prompt=result.original_prompt_for_history,
            optimized_prompt=result.optimized_prompt,
            token_counts=result.token_counts,
            timestamp=datetime.now(timezone.utc).isoformat(),
            negative_prompt=negative_prompt or None,
        )
