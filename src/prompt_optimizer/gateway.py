"""
Completion Gateway abstraction.

Defines the boundary to the external LLM completion service: the request
content types, the response type, the optimizer's strict output schema and
the abstract gateway every backend implements.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional
import base64
import logging

logger = logging.getLogger(__name__)

DEFAULT_OPTIMIZER_MODEL = "gemini-2.5-flash"
DEFAULT_RESPONSE_MODEL = "gemini-2.5-flash"

IMAGE_ONLY_INSTRUCTION = (
    "Analyze this image and generate a descriptive, optimized prompt based on it."
)

# Gemini response schema: required boolean verdict, optional strings.
OPTIMIZER_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "clarificationNeeded": {"type": "BOOLEAN"},
        "question": {"type": "STRING", "nullable": True},
        "optimizedPrompt": {"type": "STRING", "nullable": True},
    },
    "required": ["clarificationNeeded"],
}


class FinishReason(Enum):
    """Reasons why generation finished."""
    STOP = "stop"
    SAFETY = "safety"
    LENGTH = "length"
    OTHER = "other"


@dataclass(frozen=True)
class ImagePayload:
    """Base64-encoded image sent inline with the prompt."""
    data: str
    mime_type: str = "image/jpeg"

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass(frozen=True)
class CompletionContent:
    """Prompt text, optionally paired with an inlined image."""
    text: str
    image: Optional[ImagePayload] = None

    @classmethod
    def for_prompt(cls, text: str, image: Optional[ImagePayload] = None) -> "CompletionContent":
        """
        Build request content, substituting an analysis instruction when an
        image is sent without any text.
        """
        if image is not None and not text:
            text = IMAGE_ONLY_INSTRUCTION
        return cls(text=text, image=image)

    @property
    def has_image(self) -> bool:
        return self.image is not None


@dataclass
class CompletionResponse:
    """Raw response from the completion service."""
    text: Optional[str] = None
    finish_reason: FinishReason = FinishReason.STOP
    usage: Dict[str, int] = field(default_factory=dict)


class CompletionGateway(ABC):
    """
    Abstract base class for completion backends.

    One instance is constructed explicitly by the caller and passed into the
    pipeline; there is no module-level client.
    """

    def __init__(
        self,
        model: str = DEFAULT_OPTIMIZER_MODEL,
        response_model: str = DEFAULT_RESPONSE_MODEL,
    ):
        self.model = model
        self.response_model = response_model

        logger.info(
            f"Initialized {self.__class__.__name__} with model={model}, "
            f"response_model={response_model}"
        )

    @abstractmethod
    async def generate(
        self,
        system_instruction: str,
        content: CompletionContent,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> CompletionResponse:
        """
        Run the optimizer model once.

        Args:
            system_instruction: System instruction for the optimizer model
            content: Processed prompt, optionally with an image
            response_schema: JSON schema the output must follow

        Returns:
            CompletionResponse with the raw text and finish reason

        Raises:
            TransportFailureError: On network or service failure
        """
        pass

    @abstractmethod
    async def count_tokens(self, text: str) -> int:
        """
        Count tokens of ``text`` with the response model's tokenizer.

        Raises:
            TransportFailureError: On network or service failure
        """
        pass

    @abstractmethod
    async def generate_text(self, prompt: str) -> CompletionResponse:
        """Send a prompt to the response model and return its answer."""
        pass

    @abstractmethod
    def stream_text(self, prompt: str) -> AsyncIterator[str]:
        """Stream the response model's answer to ``prompt`` as text chunks."""
        pass
