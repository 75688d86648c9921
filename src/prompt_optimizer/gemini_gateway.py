"""
Gemini Completion Gateway.

Talks to Google's Gemini models through the google-genai SDK's async client.
"""
import logging
import os
from typing import Any, AsyncIterator, Dict, List, Optional, Union

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .exceptions import SafetyBlockedError, TransportFailureError
from .gateway import (
    DEFAULT_OPTIMIZER_MODEL,
    DEFAULT_RESPONSE_MODEL,
    CompletionContent,
    CompletionGateway,
    CompletionResponse,
    FinishReason,
)

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (genai_errors.APIError, httpx.HTTPError, OSError)

_FINISH_REASONS = {
    types.FinishReason.STOP: FinishReason.STOP,
    types.FinishReason.SAFETY: FinishReason.SAFETY,
    types.FinishReason.MAX_TOKENS: FinishReason.LENGTH,
}


class GeminiCompletionGateway(CompletionGateway):
    """Completion gateway backed by google-genai."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_OPTIMIZER_MODEL,
        response_model: str = DEFAULT_RESPONSE_MODEL,
        thinking_budget: Optional[int] = 0,
        api_base: Optional[str] = None,
        client: Optional[genai.Client] = None,
    ):
        """
        Initialize the Gemini gateway.

        Args:
            api_key: Google API key. If None, read GOOGLE_API_KEY (or API_KEY).
            model: Model used to optimize prompts
            response_model: Model used for token counting and final answers
            thinking_budget: Thinking budget for the optimizer call; None leaves
                the model default
            api_base: Optional custom API base URL
            client: Pre-built client, mainly for tests
        """
        super().__init__(model=model, response_model=response_model)
        self.thinking_budget = thinking_budget
        self.api_base = api_base

        if client is not None:
            self.client = client
            return

        self.api_key = api_key or os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")
        if not self.api_key:
            raise ValueError(
                "Google API key is required. Set GOOGLE_API_KEY environment variable "
                "or pass api_key parameter."
            )

        client_kwargs: Dict[str, Any] = {"api_key": self.api_key}
        if api_base:
            client_kwargs["http_options"] = types.HttpOptions(base_url=api_base)
            logger.info(f"Using custom API base URL: {api_base}")
        self.client = genai.Client(**client_kwargs)

    def __repr__(self):
        return f"GeminiCompletionGateway(model={self.model}, response_model={self.response_model})"

    async def generate(
        self,
        system_instruction: str,
        content: CompletionContent,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> CompletionResponse:
        config_kwargs: Dict[str, Any] = {"system_instruction": system_instruction}
        if response_schema is not None:
            config_kwargs["response_mime_type"] = "application/json"
            config_kwargs["response_schema"] = response_schema
        if self.thinking_budget is not None:
            config_kwargs["thinking_config"] = types.ThinkingConfig(
                thinking_budget=self.thinking_budget
            )

        logger.debug(
            f"Calling {self.model} (image={content.has_image}, "
            f"prompt_chars={len(content.text)})"
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=self._to_contents(content),
                config=types.GenerateContentConfig(**config_kwargs),
            )
        except _TRANSPORT_ERRORS as e:
            raise self._wrap_error(e) from e

        return self._to_response(response)

    async def count_tokens(self, text: str) -> int:
        try:
            response = await self.client.aio.models.count_tokens(
                model=self.response_model,
                contents=text,
            )
        except _TRANSPORT_ERRORS as e:
            raise self._wrap_error(e) from e
        return response.total_tokens or 0

    async def generate_text(self, prompt: str) -> CompletionResponse:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.response_model,
                contents=prompt,
            )
        except _TRANSPORT_ERRORS as e:
            raise self._wrap_error(e) from e
        return self._to_response(response)

    async def stream_text(self, prompt: str) -> AsyncIterator[str]:
        """
        Stream the response model's answer.

        Raises:
            SafetyBlockedError: The stream ended without text and a chunk
                reported a safety block
            TransportFailureError: On network or service failure
        """
        yielded = False
        blocked = False
        try:
            stream = await self.client.aio.models.generate_content_stream(
                model=self.response_model,
                contents=prompt,
            )
            async for chunk in stream:
                if chunk.text:
                    yielded = True
                    yield chunk.text
                elif self._to_response(chunk).finish_reason == FinishReason.SAFETY:
                    blocked = True
        except _TRANSPORT_ERRORS as e:
            raise self._wrap_error(e) from e

        if blocked and not yielded:
            logger.warning("Streamed response blocked by safety filters")
            raise SafetyBlockedError("The response was blocked by the API's safety filters.")

    @staticmethod
    def _to_contents(content: CompletionContent) -> Union[str, List[types.Content]]:
        if content.image is None:
            return content.text
        return [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_text(text=content.text),
                    types.Part.from_bytes(
                        data=content.image.to_bytes(),
                        mime_type=content.image.mime_type,
                    ),
                ],
            )
        ]

    @staticmethod
    def _to_response(response: types.GenerateContentResponse) -> CompletionResponse:
        finish_reason = FinishReason.STOP
        if response.candidates:
            raw_reason = response.candidates[0].finish_reason
            if raw_reason is not None:
                finish_reason = _FINISH_REASONS.get(raw_reason, FinishReason.OTHER)
        elif response.prompt_feedback and response.prompt_feedback.block_reason:
            # Prompt rejected before any candidate was produced
            finish_reason = FinishReason.SAFETY

        usage: Dict[str, int] = {}
        if response.usage_metadata:
            usage = {
                "input_tokens": response.usage_metadata.prompt_token_count or 0,
                "output_tokens": response.usage_metadata.candidates_token_count or 0,
            }

        return CompletionResponse(text=response.text, finish_reason=finish_reason, usage=usage)

    @staticmethod
    def _wrap_error(error: Exception) -> Exception:
        logger.error(f"Gemini call failed: {type(error).__name__}: {error}")
        if "SAFETY" in str(error):
            return SafetyBlockedError()
        return TransportFailureError(f"Gemini call failed: {type(error).__name__}: {error}")
