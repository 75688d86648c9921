"""
Mock Completion Gateway for testing.
"""
from typing import Any, AsyncIterator, Callable, Dict, List, Optional
import json

from .gateway import CompletionContent, CompletionGateway, CompletionResponse, FinishReason


class MockCompletionGateway(CompletionGateway):
    """Mock gateway returning queued responses and recording every call."""

    def __init__(self, model: str = "mock-model", **kwargs):
        super().__init__(model=model, response_model=kwargs.pop("response_model", model))
        self.responses: List[CompletionResponse] = []
        self.token_counts: Dict[str, int] = {}
        self.generate_calls: List[Dict[str, Any]] = []
        self.count_calls: List[str] = []
        self.before_generate: Optional[Callable[[str, CompletionContent], None]] = None
        self.call_count = 0

    def set_response(self, response: CompletionResponse):
        """Set the next response to return."""
        self.responses = [response]

    def set_responses(self, responses: List[CompletionResponse]):
        """Set a list of responses to return in sequence."""
        self.responses = list(responses)

    def queue_verdict(self, **payload):
        """Queue a JSON verdict, e.g. ``queue_verdict(clarificationNeeded=False, optimizedPrompt="x")``."""
        self.responses.append(CompletionResponse(text=json.dumps(payload, ensure_ascii=False)))

    async def generate(
        self,
        system_instruction: str,
        content: CompletionContent,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> CompletionResponse:
        """Return the next queued response."""
        self.call_count += 1
        self.generate_calls.append({
            "system_instruction": system_instruction,
            "content": content,
            "response_schema": response_schema,
        })
        if self.before_generate is not None:
            self.before_generate(system_instruction, content)

        if self.responses:
            return self.responses.pop(0)

        return CompletionResponse(
            text=json.dumps({"clarificationNeeded": False, "optimizedPrompt": "mock prompt"}),
            finish_reason=FinishReason.STOP,
        )

    async def count_tokens(self, text: str) -> int:
        """Configured count for ``text``, else its whitespace word count."""
        self.count_calls.append(text)
        if text in self.token_counts:
            return self.token_counts[text]
        return len(text.split())

    async def generate_text(self, prompt: str) -> CompletionResponse:
        self.call_count += 1
        if self.responses:
            return self.responses.pop(0)
        return CompletionResponse(text="This is a mock response")

    async def stream_text(self, prompt: str) -> AsyncIterator[str]:
        """Yield mock chunks."""
        for chunk in ["This ", "is ", "a ", "mock ", "stream"]:
            yield chunk

    def reset(self):
        """Reset mock state."""
        self.responses = []
        self.generate_calls = []
        self.count_calls = []
        self.call_count = 0
