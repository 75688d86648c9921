"""
Prompt optimization pipeline.

``OptimizationPipeline`` executes one run: compose, call the optimizer model,
interpret the verdict, post-process and count tokens. It keeps no state
between runs.

``OptimizationSession`` is the caller-side orchestrator: it owns the RFQ
state machine and replays the pending request when the user answers a
clarification question.
"""
import logging
import time
from dataclasses import dataclass, replace
from typing import AsyncIterator, Optional

from .exceptions import InvalidRequestError, RfqStateError, SafetyBlockedError
from .gateway import OPTIMIZER_RESPONSE_SCHEMA, CompletionContent, CompletionGateway, FinishReason, ImagePayload
from .instructions import compose
from .interpreter import interpret
from .postprocess import post_process
from .result import ClarificationResult, OptimizationResult, OptimizationSuccess
from .rfq import RfqStateMachine
from .settings import OptimizationSettings
from .tokens import TokenAccountant, original_text_for_count
from .transforms import DEFAULT_TREE_OF_THOUGHT_BRANCHES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimizationRequest:
    """Input of a single pipeline run."""

    prompt: str
    settings: OptimizationSettings
    negative_prompt: Optional[str] = None
    image: Optional[ImagePayload] = None
    original_prompt_for_history: Optional[str] = None

    @property
    def history_prompt(self) -> str:
        return self.original_prompt_for_history or self.prompt


class OptimizationPipeline:
    """Runs the optimizer model under the strict response-schema contract."""

    def __init__(
        self,
        gateway: CompletionGateway,
        tree_of_thought_branches: int = DEFAULT_TREE_OF_THOUGHT_BRANCHES,
    ):
        """
        Initialize the pipeline.

        Args:
            gateway: Completion gateway used for every model call
            tree_of_thought_branches: Branch count for the tree-of-thought strategy

        Raises:
            ValueError: If tree_of_thought_branches is below 1
        """
        if tree_of_thought_branches < 1:
            raise ValueError(
                f"tree_of_thought_branches must be at least 1, got {tree_of_thought_branches}"
            )
        self.gateway = gateway
        self.tree_of_thought_branches = tree_of_thought_branches
        self.token_accountant = TokenAccountant(gateway)

    async def run(self, request: OptimizationRequest) -> OptimizationResult:
        """
        Execute one optimization run.

        Args:
            request: Prompt, settings, optional negative prompt and image

        Returns:
            ClarificationResult or OptimizationSuccess

        Raises:
            InvalidRequestError: Missing prompt, or missing image in art image mode
            SafetyBlockedError, EmptyResponseError, MalformedResponseError,
            TransportFailureError: Upstream failures; never retried here
        """
        start_time = time.perf_counter()
        settings = request.settings
        image = self._validate(request)

        composed = compose(
            settings,
            request.prompt,
            has_image=image is not None,
            negative_prompt=request.negative_prompt,
            branches=self.tree_of_thought_branches,
        )
        content = CompletionContent.for_prompt(composed.processed_prompt, image)

        logger.info(
            f"Optimizing prompt (industry={settings.industry_glossary.value}, "
            f"target_model={settings.advanced.target_model.value}, "
            f"reasoning={settings.advanced.reasoning_strategy.value}, image={image is not None})"
        )
        response = await self.gateway.generate(
            composed.system_instruction,
            content,
            OPTIMIZER_RESPONSE_SCHEMA,
        )
        verdict = interpret(response.text, response.finish_reason)

        if verdict.needs_clarification:
            return ClarificationResult(
                question=verdict.clarification,
                prompt_for_clarification=request.history_prompt,
            )

        optimized_prompt = post_process(verdict.optimized_prompt, settings, request.negative_prompt)

        counts = await self.token_accountant.count(
            original_text_for_count(request.prompt, request.negative_prompt, image is not None),
            optimized_prompt,
        )
        latency_ms = round((time.perf_counter() - start_time) * 1000)
        logger.info(
            f"Optimization complete: {counts.original} -> {counts.optimized} tokens in {latency_ms}ms"
        )

        return OptimizationSuccess(
            optimized_prompt=optimized_prompt,
            original_token_count=counts.original,
            optimized_token_count=counts.optimized,
            latency_ms=latency_ms,
            original_prompt_for_history=request.history_prompt,
        )

    async def get_response(self, prompt: str) -> str:
        """
        Forward a (typically optimized) prompt to the response model.

        Returns:
            The model's answer; empty string for an empty prompt

        Raises:
            SafetyBlockedError: The answer was withheld by safety filters
        """
        if not prompt.strip():
            return ""
        response = await self.gateway.generate_text(prompt)
        if not response.text and response.finish_reason == FinishReason.SAFETY:
            raise SafetyBlockedError("The response was blocked by the API's safety filters.")
        return response.text or ""

    async def stream_response(self, prompt: str) -> AsyncIterator[str]:
        """Stream the response model's answer to ``prompt``."""
        async for chunk in self.gateway.stream_text(prompt):
            yield chunk

    @staticmethod
    def _validate(request: OptimizationRequest) -> Optional[ImagePayload]:
        """Check the request's input and return the image to send, if any."""
        if request.settings.is_art_image_mode:
            if request.image is None:
                raise InvalidRequestError("Please upload an image to generate a prompt.")
            return request.image

        if not request.prompt.strip():
            raise InvalidRequestError("Please enter a prompt to optimize.")
        if request.image is not None:
            logger.debug("Ignoring image: only the art profile in image mode sends images")
        return None


class OptimizationSession:
    """
    Serial optimize / clarify dialog around one pipeline.

    At most one clarification is pending at a time. While one is pending, a
    new optimize request is rejected; the caller must answer or cancel first.
    """

    def __init__(self, pipeline: OptimizationPipeline):
        self.pipeline = pipeline
        self.rfq = RfqStateMachine()
        self._pending: Optional[OptimizationRequest] = None

    async def optimize(
        self,
        prompt: str,
        settings: OptimizationSettings,
        negative_prompt: Optional[str] = None,
        image: Optional[ImagePayload] = None,
    ) -> OptimizationResult:
        """Start a new run from user input."""
        if self.rfq.active:
            raise RfqStateError("Answer or cancel the pending clarification first.")
        return await self._run(OptimizationRequest(
            prompt=prompt,
            settings=settings,
            negative_prompt=negative_prompt,
            image=image,
        ))

    async def clarify(self, clarification: str) -> OptimizationResult:
        """
        Answer the pending clarification and run again.

        The RFQ is reset before the new run starts, so a second ambiguity
        report opens a fresh clarification. The run keeps the history prompt
        of the request that raised the question.
        """
        pending = self._pending
        prompt = self.rfq.submit(clarification)
        self._pending = None
        return await self._run(replace(
            pending, prompt=prompt, original_prompt_for_history=pending.history_prompt,
        ))

    def cancel_clarification(self) -> None:
        """Discard the pending clarification without running anything."""
        self.rfq.cancel()
        self._pending = None

    async def _run(self, request: OptimizationRequest) -> OptimizationResult:
        result = await self.pipeline.run(request)
        if isinstance(result, ClarificationResult):
            self.rfq.open(result.question, result.prompt_for_clarification)
            self._pending = request
        return result
