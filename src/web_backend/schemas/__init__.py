"""
Pydantic schemas for request/response validation.
"""

from .prompt import (
    OptimizeRequest,
    ClarifyRequest,
    ClarificationResponse,
    OptimizationResponse,
    OptimizeResult,
    ResponseRequest,
    ResponseOut,
    ErrorResponse,
    to_response,
)

__all__ = [
    "OptimizeRequest",
    "ClarifyRequest",
    "ClarificationResponse",
    "OptimizationResponse",
    "OptimizeResult",
    "ResponseRequest",
    "ResponseOut",
    "ErrorResponse",
    "to_response",
]
