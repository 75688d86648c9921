"""
Tests for the instruction composer.
"""

import pytest

from prompt_optimizer import (
    AdvancedSettings,
    ArtSettings,
    IndustryGlossary,
    OptimizationSettings,
    ReasoningStrategy,
    TargetGenerator,
    TargetModel,
    compose,
)
from prompt_optimizer.instructions import (
    CLASSICAL_MODE_CLAUSE,
    COMMON_JSON_INSTRUCTION,
    INSTRUCTION_BUILDERS,
    build_system_instruction,
    defers_negative_prompt,
)
from prompt_optimizer.settings import CodeStyle, LegalSettings, TechSettings


def _settings(**advanced) -> OptimizationSettings:
    return OptimizationSettings.defaults(advanced=AdvancedSettings(**advanced))


class TestSystemInstruction:

    def test_builder_for_every_industry(self):
        assert set(INSTRUCTION_BUILDERS) == set(IndustryGlossary)

    @pytest.mark.parametrize("industry", list(IndustryGlossary))
    def test_every_instruction_ends_with_json_contract(self, industry):
        settings = OptimizationSettings.defaults(industry_glossary=industry)

        instruction = build_system_instruction(settings, has_image=False)

        assert instruction.endswith(COMMON_JSON_INSTRUCTION)

    def test_density_interpolated(self):
        settings = OptimizationSettings.defaults(hanzi_density=75)

        assert "roughly 75%" in build_system_instruction(settings, has_image=False)

    def test_classical_mode_clause(self):
        plain = build_system_instruction(OptimizationSettings.defaults(), has_image=False)
        classical = build_system_instruction(
            OptimizationSettings.defaults(classical_mode=True), has_image=False
        )

        assert CLASSICAL_MODE_CLAUSE not in plain
        assert CLASSICAL_MODE_CLAUSE in classical

    def test_tech_knobs(self):
        settings = OptimizationSettings.defaults(
            industry_glossary=IndustryGlossary.TECH,
            tech=TechSettings(audience="expert", code_style=CodeStyle.INLINE),
        )

        instruction = build_system_instruction(settings, has_image=False)

        assert "technical audience level of 'expert'" in instruction
        assert "using inline backticks" in instruction

    def test_legal_optional_rules(self):
        settings = OptimizationSettings.defaults(
            industry_glossary=IndustryGlossary.LAW,
            legal=LegalSettings(protect_latin_terms=False, enforce_irac=True, compress_citations=False),
        )

        instruction = build_system_instruction(settings, has_image=False)

        assert "Enforce IRAC Structure" in instruction
        assert "Protect Legal Terms of Art" not in instruction
        assert "Citation Compression" not in instruction

    def test_art_image_vs_concept(self):
        settings = OptimizationSettings.defaults(industry_glossary=IndustryGlossary.ART)

        with_image = build_system_instruction(settings, has_image=True)
        without_image = build_system_instruction(settings, has_image=False)

        assert "You have been provided with an image" in with_image
        assert "You have been provided with a text concept" in without_image


class TestCompose:

    def test_deterministic(self):
        settings = _settings(target_model=TargetModel.CLAUDE, reasoning_strategy=ReasoningStrategy.REWOO)

        first = compose(settings, "Summarize this. Be brief.", has_image=False, negative_prompt="jargon")
        second = compose(settings, "Summarize this. Be brief.", has_image=False, negative_prompt="jargon")

        assert first == second

    def test_all_transforms_disabled_passes_prompt_through_model_preprocessing_only(self):
        settings = _settings(use_xml=False, target_model=TargetModel.LLAMA)

        result = compose(settings, "hello", has_image=False)

        assert result.processed_prompt == "[INST] hello [/INST]"

    def test_transform_order(self):
        settings = _settings(
            use_xml=True,
            reasoning_strategy=ReasoningStrategy.CHAIN_OF_THOUGHT,
            target_model=TargetModel.GEMINI,
        )

        processed = compose(settings, "hello", has_image=False).processed_prompt

        assert processed.startswith("Let's think step-by-step:\n1. ")
        assert processed.index("<structured>hello</structured>") < processed.index("<cot>")

    def test_tree_of_thought_wraps_tagged_text(self):
        settings = _settings(reasoning_strategy=ReasoningStrategy.TREE_OF_THOUGHT, target_model=TargetModel.LLAMA)

        processed = compose(settings, "hi", has_image=False, branches=2).processed_prompt

        assert '<branch weight="1.00"><structured>hi</structured>?option1</branch>' in processed
        assert processed.count("<branch ") == 2

    def test_negative_prompt_merged(self):
        settings = _settings(use_xml=False, target_model=TargetModel.LLAMA)

        processed = compose(settings, "a cat", has_image=False, negative_prompt="dogs").processed_prompt

        assert processed == (
            '[INST] Main Prompt: "a cat"\n\n'
            'Negative Constraints (must be avoided): "dogs" [/INST]'
        )

    def test_blank_negative_prompt_ignored(self):
        settings = _settings(use_xml=False, target_model=TargetModel.LLAMA)

        processed = compose(settings, "a cat", has_image=False, negative_prompt="   ").processed_prompt

        assert processed == "[INST] a cat [/INST]"

    def test_midjourney_defers_negative_prompt(self, midjourney_settings):
        result = compose(midjourney_settings, "a cat", has_image=False, negative_prompt="blurry")

        assert defers_negative_prompt(midjourney_settings) is True
        assert "blurry" not in result.processed_prompt
        assert "Negative Constraints" not in result.processed_prompt

    def test_other_generators_merge_negative_prompt(self):
        settings = OptimizationSettings.defaults(
            industry_glossary=IndustryGlossary.ART,
            art=ArtSettings(target_generator=TargetGenerator.DALL_E_3),
        )

        result = compose(settings, "a cat", has_image=False, negative_prompt="blurry")

        assert defers_negative_prompt(settings) is False
        assert 'Negative Constraints (must be avoided): "blurry"' in result.processed_prompt
