"""
Pydantic schemas for the prompt API.

Defines request/response models for the optimize, clarify and response
endpoints. Field names are camelCase on the wire.
"""

import base64
import binascii

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Literal, Optional, Union

from prompt_optimizer import (
    ClarificationResult,
    ImagePayload,
    OptimizationRequest,
    OptimizationResult,
    OptimizationSettings,
    build_clarified_prompt,
)


class _CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @field_validator("image_input", check_fields=False)
    @classmethod
    def _check_base64(cls, value: Optional[str]) -> Optional[str]:
        if value:
            try:
                base64.b64decode(value, validate=True)
            except binascii.Error as e:
                raise ValueError(f"imageInput is not valid base64: {e}") from e
        return value


class OptimizeRequest(_CamelModel):
    """Request schema for optimizing a prompt."""

    prompt: str = Field("", description="Prompt to optimize; optional in art image mode")
    negative_prompt: Optional[str] = Field(None, description="Terms the result must avoid")
    settings: OptimizationSettings
    image_input: Optional[str] = Field(None, description="Base64-encoded JPEG image")
    original_prompt_for_history: Optional[str] = None

    def to_request(self) -> OptimizationRequest:
        return OptimizationRequest(
            prompt=self.prompt,
            settings=self.settings,
            negative_prompt=self.negative_prompt,
            image=ImagePayload(data=self.image_input) if self.image_input else None,
            original_prompt_for_history=self.original_prompt_for_history,
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "prompt": "Write a detailed step-by-step guide on how to bake a chocolate cake",
                    "settings": {
                        "hanziDensity": 50,
                        "industryGlossary": "none",
                        "classicalMode": False,
                        "advanced": {
                            "targetModel": "gemini",
                            "useXml": True,
                            "reasoningStrategy": "none",
                        },
                    },
                }
            ]
        }
    }


class ClarifyRequest(_CamelModel):
    """Request schema for answering a clarification question."""

    prompt_for_clarification: str = Field(..., description="Prompt that triggered the question")
    clarification: str = Field(..., min_length=1, description="The user's answer")
    negative_prompt: Optional[str] = None
    settings: OptimizationSettings
    image_input: Optional[str] = None

    @field_validator("clarification")
    @classmethod
    def _check_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("clarification must not be blank")
        return value

    def to_request(self) -> OptimizationRequest:
        prompt = build_clarified_prompt(self.prompt_for_clarification, self.clarification)
        return OptimizationRequest(
            prompt=prompt,
            settings=self.settings,
            negative_prompt=self.negative_prompt,
            image=ImagePayload(data=self.image_input) if self.image_input else None,
            original_prompt_for_history=self.prompt_for_clarification,
        )


class ClarificationResponse(_CamelModel):
    """The optimizer needs the user to answer a question."""

    needs_clarification: Literal[True] = True
    question: str
    prompt_for_clarification: str


class OptimizationResponse(_CamelModel):
    """A completed optimization."""

    needs_clarification: Literal[False] = False
    optimized_prompt: str
    original_tokens: int
    optimized_tokens: int
    latency: int = Field(..., description="Latency in milliseconds")
    original_prompt_for_history: str


OptimizeResult = Union[ClarificationResponse, OptimizationResponse]


def to_response(result: OptimizationResult) -> Union[ClarificationResponse, OptimizationResponse]:
    """Convert a pipeline result into its API schema."""
    if isinstance(result, ClarificationResult):
        return ClarificationResponse(
            question=result.question,
            prompt_for_clarification=result.prompt_for_clarification,
        )
    return OptimizationResponse(
        optimized_prompt=result.optimized_prompt,
        original_tokens=result.original_token_count,
        optimized_tokens=result.optimized_token_count,
        latency=result.latency_ms,
        original_prompt_for_history=result.original_prompt_for_history,
    )


class ResponseRequest(BaseModel):
    """Request schema for forwarding a prompt to the response model."""

    prompt: str


class ResponseOut(BaseModel):
    """Answer of the response model."""

    response: str


class ErrorResponse(BaseModel):
    """Error body returned for optimizer failures."""

    detail: str
    type: str
    retryable: bool
