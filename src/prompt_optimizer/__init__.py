"""
Hanzi prompt optimizer.

Rewrites prompts into token-economical form through an LLM, with
industry-specific instructions, prompt transforms, a clarification
protocol and before/after token accounting.
"""
from .exceptions import (
    OptimizerError,
    SafetyBlockedError,
    EmptyResponseError,
    MalformedResponseError,
    TransportFailureError,
    InvalidRequestError,
    RfqStateError,
)
from .settings import (
    OptimizationSettings,
    AdvancedSettings,
    LegalSettings,
    TechSettings,
    FinanceSettings,
    MedicalSettings,
    ArtSettings,
    IndustryGlossary,
    TargetModel,
    ReasoningStrategy,
    TargetGenerator,
)
from .gateway import CompletionGateway, CompletionContent, CompletionResponse, FinishReason, ImagePayload
from .mock import MockCompletionGateway
from .instructions import compose, ComposedPrompt
from .interpreter import interpret, InterpretedResponse
from .postprocess import post_process
from .rfq import RfqStateMachine, RfqState, RfqStatus, build_clarified_prompt
from .tokens import TokenAccountant, TokenCounts
from .result import ClarificationResult, OptimizationSuccess, OptimizationResult, HistoryEntry
from .pipeline import OptimizationPipeline, OptimizationRequest, OptimizationSession

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "OptimizerError",
    "SafetyBlockedError",
    "EmptyResponseError",
    "MalformedResponseError",
    "TransportFailureError",
    "InvalidRequestError",
    "RfqStateError",
    "OptimizationSettings",
    "AdvancedSettings",
    "LegalSettings",
    "TechSettings",
    "FinanceSettings",
    "MedicalSettings",
    "ArtSettings",
    "IndustryGlossary",
    "TargetModel",
    "ReasoningStrategy",
    "TargetGenerator",
    "CompletionGateway",
    "CompletionContent",
    "CompletionResponse",
    "FinishReason",
    "ImagePayload",
    "MockCompletionGateway",
    "compose",
    "ComposedPrompt",
    "interpret",
    "InterpretedResponse",
    "post_process",
    "RfqStateMachine",
    "RfqState",
    "RfqStatus",
    "build_clarified_prompt",
    "TokenAccountant",
    "TokenCounts",
    "ClarificationResult",
    "OptimizationSuccess",
    "OptimizationResult",
    "HistoryEntry",
    "OptimizationPipeline",
    "OptimizationRequest",
    "OptimizationSession",
]
