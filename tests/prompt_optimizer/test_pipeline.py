"""
Tests for the optimization pipeline and session.
"""

import pytest

from prompt_optimizer import (
    ArtSettings,
    ClarificationResult,
    CompletionContent,
    CompletionResponse,
    EmptyResponseError,
    FinishReason,
    HistoryEntry,
    ImagePayload,
    IndustryGlossary,
    InvalidRequestError,
    MalformedResponseError,
    OptimizationPipeline,
    OptimizationRequest,
    OptimizationSession,
    OptimizationSettings,
    OptimizationSuccess,
    RfqStateError,
    SafetyBlockedError,
)
from prompt_optimizer.gateway import IMAGE_ONLY_INSTRUCTION, OPTIMIZER_RESPONSE_SCHEMA
from prompt_optimizer.settings import IdeaInputType
from prompt_optimizer.tokens import IMAGE_MARKER

IMAGE = ImagePayload(data="aGVsbG8=")


class TestOptimizationPipeline:

    async def test_success(self, gateway, pipeline, default_settings):
        gateway.queue_verdict(clarificationNeeded=False, optimizedPrompt="猫图")
        gateway.token_counts = {"draw a cat": 9, "猫图": 2}

        result = await pipeline.run(OptimizationRequest(prompt="draw a cat", settings=default_settings))

        assert isinstance(result, OptimizationSuccess)
        assert result.optimized_prompt == "猫图"
        assert result.original_token_count == 9
        assert result.optimized_token_count == 2
        assert result.latency_ms >= 0
        assert result.original_prompt_for_history == "draw a cat"

    async def test_sends_composed_prompt_with_schema(self, gateway, pipeline, default_settings):
        await pipeline.run(OptimizationRequest(prompt="draw a cat", settings=default_settings))

        call = gateway.generate_calls[0]
        assert call["response_schema"] == OPTIMIZER_RESPONSE_SCHEMA
        assert "<structured>draw a cat</structured>" in call["content"].text
        assert call["content"].image is None
        assert "roughly 30%" in call["system_instruction"]

    async def test_clarification(self, gateway, pipeline, default_settings):
        gateway.queue_verdict(clarificationNeeded=True, question="Which breed?")

        result = await pipeline.run(OptimizationRequest(prompt="draw a cat", settings=default_settings))

        assert isinstance(result, ClarificationResult)
        assert result.question == "Which breed?"
        assert result.prompt_for_clarification == "draw a cat"
        assert gateway.count_calls == []

    async def test_history_prompt_carried_through(self, gateway, pipeline, default_settings):
        result = await pipeline.run(OptimizationRequest(
            prompt="synthesized",
            settings=default_settings,
            original_prompt_for_history="what the user typed",
        ))

        assert result.original_prompt_for_history == "what the user typed"

    async def test_midjourney_post_processing_and_counts(self, gateway, pipeline, midjourney_settings):
        gateway.queue_verdict(clarificationNeeded=False, optimizedPrompt="<prompt>")

        result = await pipeline.run(OptimizationRequest(
            prompt="a cat", settings=midjourney_settings, negative_prompt="blurry",
        ))

        assert result.optimized_prompt == "<prompt> --no blurry --ar 16:9 --style raw --s 250"
        assert "a catblurry" in gateway.count_calls
        assert result.optimized_prompt in gateway.count_calls

    async def test_blank_prompt_rejected(self, gateway, pipeline, default_settings):
        with pytest.raises(InvalidRequestError, match="Please enter a prompt"):
            await pipeline.run(OptimizationRequest(prompt="   ", settings=default_settings))

        assert gateway.call_count == 0

    async def test_image_mode_requires_image(self, pipeline):
        settings = OptimizationSettings.defaults(
            industry_glossary=IndustryGlossary.ART,
            art=ArtSettings(idea_input_type=IdeaInputType.IMAGE),
        )

        with pytest.raises(InvalidRequestError, match="upload an image"):
            await pipeline.run(OptimizationRequest(prompt="a cat", settings=settings))

    async def test_image_mode_sends_image(self, gateway, pipeline):
        settings = OptimizationSettings.defaults(
            industry_glossary=IndustryGlossary.ART,
            art=ArtSettings(idea_input_type=IdeaInputType.IMAGE),
        )

        await pipeline.run(OptimizationRequest(prompt="", settings=settings, image=IMAGE))

        call = gateway.generate_calls[0]
        assert call["content"].image == IMAGE
        assert "You have been provided with an image" in call["system_instruction"]
        assert IMAGE_MARKER in gateway.count_calls[0] or IMAGE_MARKER in gateway.count_calls[1]

    def test_image_only_instruction_when_text_empty(self):
        content = CompletionContent.for_prompt("", IMAGE)

        assert content.text == IMAGE_ONLY_INSTRUCTION
        assert content.has_image is True

    async def test_image_ignored_outside_image_mode(self, gateway, pipeline, default_settings):
        await pipeline.run(OptimizationRequest(prompt="a cat", settings=default_settings, image=IMAGE))

        assert gateway.generate_calls[0]["content"].image is None

    async def test_empty_response(self, gateway, pipeline, default_settings):
        gateway.set_response(CompletionResponse(text=""))

        with pytest.raises(EmptyResponseError):
            await pipeline.run(OptimizationRequest(prompt="a cat", settings=default_settings))

    async def test_safety_block(self, gateway, pipeline, default_settings):
        gateway.set_response(CompletionResponse(text=None, finish_reason=FinishReason.SAFETY))

        with pytest.raises(SafetyBlockedError):
            await pipeline.run(OptimizationRequest(prompt="a cat", settings=default_settings))

    async def test_malformed_response_not_retried(self, gateway, pipeline, default_settings):
        gateway.set_response(CompletionResponse(text="not json"))

        with pytest.raises(MalformedResponseError):
            await pipeline.run(OptimizationRequest(prompt="a cat", settings=default_settings))

        assert gateway.call_count == 1

    def test_branch_count_must_be_positive(self, gateway):
        with pytest.raises(ValueError, match="at least 1"):
            OptimizationPipeline(gateway, tree_of_thought_branches=0)


class TestResponses:

    async def test_get_response(self, gateway, pipeline):
        assert await pipeline.get_response("hello") == "This is a mock response"

    async def test_get_response_blank_prompt(self, gateway, pipeline):
        assert await pipeline.get_response("  ") == ""
        assert gateway.call_count == 0

    async def test_get_response_safety(self, gateway, pipeline):
        gateway.set_response(CompletionResponse(text=None, finish_reason=FinishReason.SAFETY))

        with pytest.raises(SafetyBlockedError):
            await pipeline.get_response("hello")

    async def test_stream_response(self, pipeline):
        chunks = [chunk async for chunk in pipeline.stream_response("hello")]

        assert "".join(chunks) == "This is a mock stream"


class TestOptimizationSession:

    async def test_clarification_round_trip(self, gateway, pipeline, default_settings):
        session = OptimizationSession(pipeline)
        gateway.queue_verdict(clarificationNeeded=True, question="Q")
        gateway.queue_verdict(clarificationNeeded=False, optimizedPrompt="X")

        first = await session.optimize("draw a cat", default_settings)

        assert isinstance(first, ClarificationResult)
        assert session.rfq.active is True
        assert session.rfq.state.prompt_for_clarification == "draw a cat"

        rfq_active_during_run = []
        gateway.before_generate = lambda *_: rfq_active_during_run.append(session.rfq.active)

        second = await session.clarify("make it shorter")

        expected_prompt = 'Original Prompt: "draw a cat"\n\nMy Clarification: "make it shorter"'
        assert isinstance(second, OptimizationSuccess)
        assert second.optimized_prompt == "X"
        assert second.original_prompt_for_history == "draw a cat"
        assert rfq_active_during_run == [False]
        assert expected_prompt in gateway.generate_calls[1]["content"].text
        assert session.rfq.active is False

    async def test_second_clarification_reopens(self, gateway, pipeline, default_settings):
        session = OptimizationSession(pipeline)
        gateway.queue_verdict(clarificationNeeded=True, question="Q1")
        gateway.queue_verdict(clarificationNeeded=True, question="Q2")

        await session.optimize("draw a cat", default_settings)
        second = await session.clarify("a tabby")

        assert isinstance(second, ClarificationResult)
        assert session.rfq.state.question == "Q2"
        assert session.rfq.state.prompt_for_clarification == "draw a cat"

    async def test_nested_clarification_wraps_typed_prompt(self, gateway, pipeline, default_settings):
        session = OptimizationSession(pipeline)
        gateway.queue_verdict(clarificationNeeded=True, question="Q1")
        gateway.queue_verdict(clarificationNeeded=True, question="Q2")
        gateway.queue_verdict(clarificationNeeded=False, optimizedPrompt="X")

        await session.optimize("draw a cat", default_settings)
        await session.clarify("a tabby")
        result = await session.clarify("sitting")

        sent = gateway.generate_calls[2]["content"].text
        assert 'Original Prompt: "draw a cat"\n\nMy Clarification: "sitting"' in sent
        assert "a tabby" not in sent
        assert result.original_prompt_for_history == "draw a cat"

    async def test_clarify_keeps_settings_and_negative(self, gateway, pipeline, midjourney_settings):
        session = OptimizationSession(pipeline)
        gateway.queue_verdict(clarificationNeeded=True, question="Q")
        gateway.queue_verdict(clarificationNeeded=False, optimizedPrompt="p")

        await session.optimize("a cat", midjourney_settings, negative_prompt="blurry")
        result = await session.clarify("orange")

        assert result.optimized_prompt == "p --no blurry --ar 16:9 --style raw --s 250"

    async def test_optimize_while_pending_rejected(self, gateway, pipeline, default_settings):
        session = OptimizationSession(pipeline)
        gateway.queue_verdict(clarificationNeeded=True, question="Q")
        await session.optimize("draw a cat", default_settings)

        with pytest.raises(RfqStateError):
            await session.optimize("something else", default_settings)

        assert gateway.call_count == 1

    async def test_cancel(self, gateway, pipeline, default_settings):
        session = OptimizationSession(pipeline)
        gateway.queue_verdict(clarificationNeeded=True, question="Q")
        await session.optimize("draw a cat", default_settings)

        session.cancel_clarification()

        assert session.rfq.active is False
        assert gateway.call_count == 1
        result = await session.optimize("draw a dog", default_settings)
        assert isinstance(result, OptimizationSuccess)

    async def test_clarify_without_pending_rejected(self, pipeline):
        with pytest.raises(RfqStateError):
            await OptimizationSession(pipeline).clarify("answer")


class TestHistoryEntry:

    def test_from_success(self):
        success = OptimizationSuccess(
            optimized_prompt="猫",
            original_token_count=5,
            optimized_token_count=1,
            latency_ms=12,
            original_prompt_for_history="a cat",
        )

        entry = HistoryEntry.from_success(success, negative_prompt="")

        assert entry.original_prompt == "a cat"
        assert entry.optimized_prompt == "猫"
        assert entry.token_counts.saved == 4
        assert entry.negative_prompt is None
        assert entry.id

    def test_result_flags(self):
        clarification = ClarificationResult(question="Q", prompt_for_clarification="p")
        success = OptimizationSuccess(
            optimized_prompt="o",
            original_token_count=3,
            optimized_token_count=1,
            latency_ms=10,
            original_prompt_for_history="p",
        )

        assert clarification.needs_clarification is True
        assert success.needs_clarification is False
        assert success.token_counts.saved == 2
