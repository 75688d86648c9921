"""
Prompt transformation modules.

Three independently pluggable text transforms applied to the raw prompt
before it is sent to the optimizer model:

- structural tagging, keyed by (target model, industry)
- reasoning wrapping, keyed by reasoning strategy
- target-model preprocessing, keyed by target model

Each table is an immutable mapping from an enum key to a pure function.
A key with no entry leaves the text unchanged.
"""
from types import MappingProxyType
from typing import Callable, Mapping, Tuple

from .settings import IndustryGlossary, ReasoningStrategy, TargetModel

Transform = Callable[[str], str]

DEFAULT_TREE_OF_THOUGHT_BRANCHES = 3


def identity(text: str) -> str:
    return text


# --- Structural tagging ---

XML_TAG_PRESETS: Mapping[Tuple[TargetModel, IndustryGlossary], str] = MappingProxyType({
    (TargetModel.CLAUDE, IndustryGlossary.FINANCE): (
        '<report type="financial"><timeframe>quarterly</timeframe>'
        "<sections>executive_summary,key_metrics,forecast</sections></report>"
    ),
    (TargetModel.CLAUDE, IndustryGlossary.LAW): (
        '<analysis context="legal"><jurisdiction>NY</jurisdiction>'
        "<doctrine>summary_judgment</doctrine></analysis>"
    ),
    (TargetModel.DEEPSEEK, IndustryGlossary.TECH): (
        '<spec format="markdown"><components>architecture,apis,security</components></spec>'
    ),
})


def apply_structural_tags(text: str, model: TargetModel, industry: IndustryGlossary) -> str:
    """
    Prefix a preset preamble, or wrap the text in a generic structural marker.

    Args:
        text: Prompt text
        model: Target model
        industry: Active industry profile

    Returns:
        Tagged text
    """
    preset = XML_TAG_PRESETS.get((model, industry))
    if preset:
        return f"{preset}\n{text}"
    return f"<structured>{text}</structured>"


# --- Reasoning wrapping ---

def chain_of_thought(text: str) -> str:
    """Fixed three-step exposition placed after the request it refers to."""
    return (
        f"{text}\n"
        "<cot>Step 1: Understand the request above\n"
        "Step 2: Analyze...\n"
        "Step 3: Conclude</cot>"
    )


def branch_weights(branches: int) -> list[str]:
    """Weights ``1/(i+1)`` for branch index ``i``, formatted to two decimals."""
    return [f"{1 / (i + 1):.2f}" for i in range(branches)]


def tree_of_thought(text: str, branches: int = DEFAULT_TREE_OF_THOUGHT_BRANCHES) -> str:
    """Enumerate candidate framings with monotonically decreasing weights."""
    if branches < 1:
        raise ValueError(f"tree-of-thought needs at least one branch, got {branches}")
    lines = [
        f'<branch weight="{weight}">{text}?option{i + 1}</branch>'
        for i, weight in enumerate(branch_weights(branches))
    ]
    return "<tothoughts>\n" + "\n".join(lines) + "\n</tothoughts>"


def rewoo(text: str) -> str:
    """Plan / act / solve scaffold."""
    return (
        "<rewoo>"
        "<planner>Break into: 1) Research 2) Analysis 3) Synthesis</planner>"
        f'<worker tool="web_search">Context for: {text}</worker>'
        "<solver>Combine evidence into final output</solver>"
        "</rewoo>"
    )


REASONING_MODULES: Mapping[ReasoningStrategy, Transform] = MappingProxyType({
    ReasoningStrategy.CHAIN_OF_THOUGHT: chain_of_thought,
    ReasoningStrategy.TREE_OF_THOUGHT: tree_of_thought,
    ReasoningStrategy.REWOO: rewoo,
})


def apply_reasoning_module(
    text: str,
    strategy: ReasoningStrategy,
    branches: int = DEFAULT_TREE_OF_THOUGHT_BRANCHES,
) -> str:
    """
    Wrap text in the scaffold registered for ``strategy``.

    Args:
        text: Prompt text (already tagged, if tagging is enabled)
        strategy: Reasoning strategy
        branches: Branch count for tree-of-thought

    Returns:
        Wrapped text, or the input unchanged for ``none``
    """
    if strategy == ReasoningStrategy.TREE_OF_THOUGHT:
        return tree_of_thought(text, branches)
    module = REASONING_MODULES.get(strategy, identity)
    return module(text)


# --- Target-model preprocessing ---

def _claude(text: str) -> str:
    return text.replace(". ", ".\n<thinking>") + "</thinking>"


def _deepseek(text: str) -> str:
    return f"REASONING TRACE:\n{text}\nFINAL CONCLUSION:"


def _gemini(text: str) -> str:
    return f"Let's think step-by-step:\n1. {text}\nAnswer:"


def _llama(text: str) -> str:
    return f"[INST] {text} [/INST]"


def _grok(text: str) -> str:
    return f"[prompt]\n{text}\n[response]"


def _openai(text: str) -> str:
    return (
        "You are a world-class expert prompt engineer. Your role is to refine the "
        "user's prompt for another AI. Fulfill the following request precisely and "
        f"output only the refined prompt, nothing else:\n\n{text}"
    )


MODEL_PREPROCESSORS: Mapping[TargetModel, Transform] = MappingProxyType({
    TargetModel.CLAUDE: _claude,
    TargetModel.DEEPSEEK: _deepseek,
    TargetModel.GEMINI: _gemini,
    TargetModel.LLAMA: _llama,
    TargetModel.GROK: _grok,
    TargetModel.OPENAI: _openai,
})


def apply_model_preprocessing(text: str, model: TargetModel) -> str:
    """Wrap text in the delimiters idiomatic for ``model``."""
    return MODEL_PREPROCESSORS.get(model, identity)(text)
