"""
Request-for-clarification (RFQ) state machine.

States are Idle and AwaitingClarification. A clarification result opens the
RFQ; submitting folds the user's answer into a new prompt and returns to
Idle before the next run starts; cancelling discards it.
"""
import logging
from dataclasses import dataclass
from enum import Enum

from .exceptions import RfqStateError

logger = logging.getLogger(__name__)

CLARIFICATION_TEMPLATE = 'Original Prompt: "{original}"\n\nMy Clarification: "{clarification}"'


class RfqStatus(Enum):
    IDLE = "idle"
    AWAITING_CLARIFICATION = "awaiting_clarification"


@dataclass(frozen=True)
class RfqState:
    active: bool = False
    question: str = ""
    prompt_for_clarification: str = ""


def build_clarified_prompt(original: str, clarification: str) -> str:
    """Combine the prompt that triggered the RFQ with the user's answer."""
    return CLARIFICATION_TEMPLATE.format(original=original, clarification=clarification)


class RfqStateMachine:
    """Holds at most one pending clarification."""

    def __init__(self):
        self._state = RfqState()

    @property
    def state(self) -> RfqState:
        return self._state

    @property
    def status(self) -> RfqStatus:
        return RfqStatus.AWAITING_CLARIFICATION if self._state.active else RfqStatus.IDLE

    @property
    def active(self) -> bool:
        return self._state.active

    def open(self, question: str, prompt_for_clarification: str) -> RfqState:
        """
        Idle -> AwaitingClarification.

        Raises:
            RfqStateError: If a clarification is already pending
        """
        if self._state.active:
            raise RfqStateError("A clarification request is already pending.")
        self._state = RfqState(
            active=True,
            question=question,
            prompt_for_clarification=prompt_for_clarification,
        )
        logger.info(f"Clarification requested: {question}")
        return self._state

    def submit(self, clarification: str) -> str:
        """
        AwaitingClarification -> Idle, returning the prompt for the next run.

        Raises:
            RfqStateError: If no clarification is pending
        """
        if not self._state.active:
            raise RfqStateError("There is no pending clarification request to answer.")
        prompt = build_clarified_prompt(self._state.prompt_for_clarification, clarification)
        self._state = RfqState()
        return prompt

    def cancel(self) -> None:
        """
        AwaitingClarification -> Idle without starting a run.

        Raises:
            RfqStateError: If no clarification is pending
        """
        if not self._state.active:
            raise RfqStateError("There is no pending clarification request to cancel.")
        logger.info("Clarification request cancelled")
        self._state = RfqState()
