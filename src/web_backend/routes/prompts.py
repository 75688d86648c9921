"""
Prompt API routes.

Handles prompt optimization, clarification answers and response forwarding.
The server is stateless: the client holds the clarification state and sends
the pending prompt back with its answer.
"""

from fastapi import APIRouter, Depends
from functools import lru_cache
import logging

from prompt_optimizer import OptimizationPipeline
from prompt_optimizer.config import OptimizerConfig

from ..schemas.prompt import (
    ClarifyRequest,
    OptimizeRequest,
    OptimizeResult,
    ResponseOut,
    ResponseRequest,
    to_response,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def get_pipeline() -> OptimizationPipeline:
    """Dependency to get the optimization pipeline (one gateway per process)."""
    config = OptimizerConfig()
    return OptimizationPipeline(
        config.create_gateway(),
        tree_of_thought_branches=config.TREE_OF_THOUGHT_BRANCHES,
    )


@router.post("/optimize", response_model=OptimizeResult)
async def optimize_prompt(
    data: OptimizeRequest,
    pipeline: OptimizationPipeline = Depends(get_pipeline),
):
    """
    Optimize a prompt.

    Returns either the optimized prompt with token counts and latency, or a
    clarification question when the prompt is ambiguous.
    """
    result = await pipeline.run(data.to_request())
    return to_response(result)


@router.post("/clarify", response_model=OptimizeResult)
async def clarify_prompt(
    data: ClarifyRequest,
    pipeline: OptimizationPipeline = Depends(get_pipeline),
):
    """
    Answer a clarification question.

    Folds the answer into the prompt that triggered the question and runs
    the optimization again. The result may be another clarification.
    """
    logger.info("Re-running optimization with clarification")
    result = await pipeline.run(data.to_request())
    return to_response(result)


@router.post("/response", response_model=ResponseOut)
async def get_response(
    data: ResponseRequest,
    pipeline: OptimizationPipeline = Depends(get_pipeline),
):
    """Send a prompt to the response model and return its answer."""
    response = await pipeline.get_response(data.prompt)
    return ResponseOut(response=response)
