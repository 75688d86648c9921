"""
Response interpreter.

Parses the optimizer model's raw payload and decides between "clarification
needed" and "optimization complete".
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, StrictBool, ValidationError

from .exceptions import EmptyResponseError, MalformedResponseError, SafetyBlockedError
from .gateway import FinishReason

logger = logging.getLogger(__name__)

FALLBACK_QUESTION = (
    "The model needs more information, but did not provide a specific question. "
    "Please rephrase your prompt with more detail."
)

_OPENING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_CLOSING_FENCE = re.compile(r"\n?```$")


class OptimizerVerdict(BaseModel):
    """Wire shape of the optimizer's JSON answer."""

    clarificationNeeded: StrictBool
    question: Optional[str] = None
    optimizedPrompt: Optional[str] = None


@dataclass(frozen=True)
class InterpretedResponse:
    """Either a clarification question or an optimized prompt, never both."""
    clarification: Optional[str] = None
    optimized_prompt: Optional[str] = None

    @property
    def needs_clarification(self) -> bool:
        return self.clarification is not None


def strip_code_fence(text: str) -> str:
    """Remove surrounding whitespace and a markdown code fence, if any."""
    text = text.strip()
    if text.startswith("```"):
        text = _OPENING_FENCE.sub("", text, count=1)
        text = _CLOSING_FENCE.sub("", text, count=1)
    return text.strip()


def interpret(raw_text: Optional[str], finish_reason: Optional[FinishReason] = None) -> InterpretedResponse:
    """
    Interpret a raw optimizer payload.

    Args:
        raw_text: Text returned by the completion gateway
        finish_reason: Finish reason reported alongside the text

    Returns:
        InterpretedResponse holding a clarification question or an optimized prompt

    Raises:
        SafetyBlockedError: Empty payload with a safety finish reason
        EmptyResponseError: Empty payload for any other reason
        MalformedResponseError: Payload is not the expected JSON object
    """
    text = strip_code_fence(raw_text or "")

    if not text:
        if finish_reason == FinishReason.SAFETY:
            logger.warning("Optimizer response blocked by safety filters")
            raise SafetyBlockedError()
        logger.warning(f"Optimizer returned an empty response (finish_reason={finish_reason})")
        raise EmptyResponseError()

    try:
        verdict = OptimizerVerdict.model_validate_json(text)
    except ValidationError as e:
        logger.error(f"Failed to parse optimizer response: {e}")
        logger.debug(f"Optimizer response was: {raw_text}")
        raise MalformedResponseError(
            f"Optimizer response does not match the expected schema: {e.error_count()} error(s)",
            raw_text=raw_text or "",
        ) from e

    if verdict.clarificationNeeded:
        return InterpretedResponse(clarification=verdict.question or FALLBACK_QUESTION)

    return InterpretedResponse(optimized_prompt=verdict.optimizedPrompt or "")
