"""Before/after token accounting."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .gateway import CompletionGateway

logger = logging.getLogger(__name__)

IMAGE_MARKER = " [IMAGE]"


@dataclass(frozen=True)
class TokenCounts:
    original: int
    optimized: int

    @property
    def saved(self) -> int:
        return self.original - self.optimized


def original_text_for_count(
    prompt: str,
    negative_prompt: Optional[str] = None,
    has_image: bool = False,
) -> str:
    """Text standing for the user's input: prompt, negative prompt, image marker."""
    return (prompt or "") + (negative_prompt or "") + (IMAGE_MARKER if has_image else "")


class TokenAccountant:
    """Counts original and optimized tokens through the gateway."""

    def __init__(self, gateway: CompletionGateway):
        self.gateway = gateway

    async def count(self, original: str, optimized: str) -> TokenCounts:
        """
        Count both texts concurrently.

        Both gateway calls are outstanding at the same time; the result is
        built once both have completed.
        """
        original_tokens, optimized_tokens = await asyncio.gather(
            self.gateway.count_tokens(original),
            self.gateway.count_tokens(optimized),
        )
        logger.debug(f"Token counts: original={original_tokens}, optimized={optimized_tokens}")
        return TokenCounts(original=original_tokens, optimized=optimized_tokens)
