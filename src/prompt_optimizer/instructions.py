"""
Instruction composer.

Maps (settings, prompt, image flag, negative prompt) to the system
instruction for the optimizer model and the processed prompt body.
Pure text assembly: nothing here performs I/O.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .settings import (
    CodeStyle,
    IndustryGlossary,
    OptimizationSettings,
    ReasoningStrategy,
    TargetGenerator,
)
from .transforms import (
    DEFAULT_TREE_OF_THOUGHT_BRANCHES,
    apply_model_preprocessing,
    apply_reasoning_module,
    apply_structural_tags,
)


COMMON_JSON_INSTRUCTION = """Your entire output MUST be a single JSON object, with no markdown formatting.

If the user's prompt is ambiguous or lacks key details for a high-quality analysis, you MUST ask for clarification. Do this by setting 'clarificationNeeded' to true and providing a clear, direct question in the 'question' field.

If the prompt is clear, follow all rules strictly to create the optimized prompt. For a successful optimization, set 'clarificationNeeded' to false and provide the result in 'optimizedPrompt'. Your final JSON output must conform to the specified schema."""

CLASSICAL_MODE_CLAUSE = (
    "4.  **Classical Mode Active:** Where appropriate, use classical Chinese idioms "
    "(Chengyu, e.g., 「一目了然」 for \"user-friendly\") and radical-level compression "
    "(e.g., 「美端面」 for \"beautiful interface\") for maximum conciseness and elegance.\n"
)


@dataclass(frozen=True)
class ComposedPrompt:
    """System instruction plus the transformed prompt body."""
    system_instruction: str
    processed_prompt: str


def build_base_instruction(settings: OptimizationSettings) -> str:
    """Shared rules: preserve intent, be concise, Hanzi density, classical mode."""
    classical = CLASSICAL_MODE_CLAUSE if settings.classical_mode else ""
    return (
        "You are an expert in prompt engineering and linguistics, specializing in token "
        "optimization for Large Language Models. Your primary goal is to rephrase the user's "
        "prompt to be as concise as possible, thereby minimizing the token count, without "
        "losing any of the original prompt's intent or key information. Your output must be "
        "a ready-to-use final product.\n"
        "1.  **Preserve Intent:** The core meaning and all essential details of the original "
        "prompt must be fully retained. If the prompt contains negative constraints (e.g., "
        "things to avoid), they MUST be respected.\n"
        "2.  **Be Concise:** Aggressively eliminate redundant words, filler phrases, and "
        "conversational cruft.\n"
        "3.  **Use Hanzi:** Substitute English words with Chinese Hanzi to save tokens. The "
        f"target density for this substitution is roughly {settings.hanzi_density}%. For "
        "example, at 50%, \"A detailed step-by-step guide on how to bake a cake\" might "
        "become \"烘焙蛋糕的详细分步指南\". At 100%, it could be 「蛋糕烘焙详解」.\n"
        f"{classical}"
    )


def _build_default(settings: OptimizationSettings, has_image: bool) -> str:
    return f"{build_base_instruction(settings)}\n{COMMON_JSON_INSTRUCTION}"


def _build_tech(settings: OptimizationSettings, has_image: bool) -> str:
    tech = settings.tech
    code_format = (
        "inline backticks"
        if tech.code_style == CodeStyle.INLINE
        else "fenced code blocks with language identifiers"
    )
    return (
        "You are a senior staff software engineer and expert technical writer. Your task is "
        "to optimize a prompt for another AI, targeting a technical audience level of "
        f"'{tech.audience.value}'.\n"
        f"{build_base_instruction(settings)}\n"
        "5.  **Technical Precision:** Use precise, unambiguous technical terms. Abbreviate "
        "common terms where appropriate (e.g., \"database\" -> \"DB\", \"user interface\" "
        "-> \"UI\").\n"
        f"6.  **Code Formatting:** Present code snippets using {code_format}.\n"
        f"{COMMON_JSON_INSTRUCTION}"
    )


def _build_finance(settings: OptimizationSettings, has_image: bool) -> str:
    finance = settings.finance
    quantitative = (
        "5.  **Quantitative Focus:** Prioritize hard numbers, metrics, and data. Rephrase "
        "questions to demand quantifiable answers.\n"
        if finance.quantitative_focus else ""
    )
    return (
        "You are a chartered financial analyst (CFA) specializing in concise reporting. "
        "Optimize this prompt for a financial context.\n"
        f"{build_base_instruction(settings)}\n"
        f"{quantitative}\n"
        f"6.  **Risk Assessment:** Frame requests to include a {finance.risk_assessment.value} "
        "analysis of risks, opportunities, and mitigation strategies. Use standard financial "
        "acronyms (e.g., \"QoQ\", \"YoY\", \"CAGR\").\n"
        f"{COMMON_JSON_INSTRUCTION}"
    )


def _build_medical(settings: OptimizationSettings, has_image: bool) -> str:
    medical = settings.medical
    pii = (
        "5.  **Anonymize PII:** You MUST aggressively remove or pseudonymize any potential "
        "Personally Identifiable Information (PII) from the prompt.\n"
        if medical.anonymize_pii else ""
    )
    return (
        "You are a medical researcher and editor for a prestigious journal. Optimize this "
        "prompt for a medical or scientific context.\n"
        f"{build_base_instruction(settings)}\n"
        f"{pii}\n"
        "6.  **Evidence Level:** The prompt should request information based on a specific "
        f"level of evidence, such as '{medical.evidence_level.value}'. Use precise medical "
        "terminology (e.g., MeSH terms).\n"
        f"{COMMON_JSON_INSTRUCTION}"
    )


def _build_legal(settings: OptimizationSettings, has_image: bool) -> str:
    legal = settings.legal
    parts = [
        "You are a paralegal expert system trained on Yale and Harvard Law principles and the "
        "LSAT. Your goal is to optimize legal text for conciseness and clarity while "
        "preserving its precise meaning and adhering to the highest academic and professional "
        "standards. The output formality should be consistent with a legal "
        f"'{legal.formality.value}'.\n\n"
        f"{build_base_instruction(settings)}\n\n"
        "If the prompt is clear, follow these rules strictly to create the optimized prompt:\n"
        "1.  **Symbolic Logic (LSAT/Yale Style):** Replace common logical phrases with concise "
        "symbols:\n"
        "    - \"Therefore\" → \"∴\"\n"
        "    - \"Because\" or \"since\" → \"∵\"\n"
        "    - \"If and only if\" → \"iff\"\n"
        "    - \"For all\" or \"for every\" -> \"∀\"\n"
        "    - \"There exists\" -> \"∃\"\n"
        "    - \"Summary Judgement\" -> \"∑J\"\n"
        "2.  **Standard Abbreviations:** Use common legal abbreviations after first use where "
        "appropriate (e.g., \"Plaintiff\" → \"Pl.\", \"Defendant\" → \"Def.\", \"Section\" "
        "→ \"§\").\n"
    ]
    if legal.protect_latin_terms:
        parts.append(
            "3.  **Protect Legal Terms of Art:** Preserve exact terms from Black's Law "
            "Dictionary and other legal canons. Latin phrases (e.g., \"res ipsa loquitur\", "
            "\"habeas corpus\", \"stare decisis\", \"mens rea\") are sacrosanct and must not "
            "be altered or translated.\n"
        )
    if legal.compress_citations:
        parts.append(
            "4.  **Citation Compression:** Compress legal citations using Bluebook short-form "
            "standards where applicable (e.g., \"United States Code Title 42 Section 1983\" → "
            "\"42 U.S.C. § 1983\"; subsequent citations like \"Smith v. Jones, 123 F.3d 456, "
            "460 (1999)\" → \"Smith, 123 F.3d at 460\").\n"
        )
    if legal.enforce_irac:
        parts.append(
            "5.  **Enforce IRAC Structure:** For any prompt containing a legal argument, you "
            "must reformat it into the IRAC (Issue, Rule, Analysis, Conclusion) structure. The "
            "output must be clearly delineated:\n"
            "    [ISSUE] <Concise issue statement>\n"
            "    [RULE] <Relevant legal rule(s)>\n"
            "    [ANALYSIS] <Application of rule to facts, using symbolic logic>\n"
            "    [CONCLUSION] <Brief outcome of the analysis>\n"
        )
    parts.append(f"\n{COMMON_JSON_INSTRUCTION}")
    return "".join(parts)


def _build_art(settings: OptimizationSettings, has_image: bool) -> str:
    art = settings.art
    base = (
        "You are a world-renowned art director and prompt engineer for advanced AI image "
        "generators. Your task is to generate a new, highly-effective, and token-efficient "
        "prompt based on the user's input.\n"
        "The final prompt must be a masterclass in descriptive language, suitable for the "
        f"target generator: '{art.target_generator.value}'.\n"
        f"It must incorporate the user's desired style of '{art.artistic_style.value}', "
        f"medium of '{art.medium.value}', and color palette of '{art.color_palette_focus.value}'.\n"
        "Use evocative adjectives, cinematic terms, and specific artistic details.\n"
        f"Also apply Hanzi substitutions for about {settings.hanzi_density}% of the "
        "translatable terms to maximize token economy.\n"
        "If the user provides negative constraints, they MUST be incorporated into the final prompt."
    )
    if has_image:
        task = (
            "You have been provided with an image. Your primary goal is to analyze the image and "
            "deconstruct its visual elements (subject, composition, lighting, mood, details).\n"
            "Then, synthesize these observations with the user's optional text instructions and "
            "the specified creative controls to generate a new, optimized prompt that captures "
            "the essence of the image while adhering to the user's vision.\n"
            "The user's text prompt should be treated as a set of override instructions or "
            "additional details to incorporate."
        )
    else:
        task = (
            "You have been provided with a text concept. Your goal is to expand this concept, "
            "enriching it with creative details, and then economize it into a powerful, "
            "concise prompt."
        )
    return f"\n{base}\n{task}\n{COMMON_JSON_INSTRUCTION}"


InstructionBuilder = Callable[[OptimizationSettings, bool], str]

INSTRUCTION_BUILDERS: Dict[IndustryGlossary, InstructionBuilder] = {
    IndustryGlossary.NONE: _build_default,
    IndustryGlossary.TECH: _build_tech,
    IndustryGlossary.FINANCE: _build_finance,
    IndustryGlossary.MEDICAL: _build_medical,
    IndustryGlossary.LAW: _build_legal,
    IndustryGlossary.ART: _build_art,
}

_unhandled = set(IndustryGlossary) - set(INSTRUCTION_BUILDERS)
if _unhandled:
    raise RuntimeError(f"No instruction builder for: {sorted(i.value for i in _unhandled)}")


def build_system_instruction(settings: OptimizationSettings, has_image: bool) -> str:
    """Dispatch on the industry profile to its instruction builder."""
    return INSTRUCTION_BUILDERS[settings.industry_glossary](settings, has_image)


def defers_negative_prompt(settings: OptimizationSettings) -> bool:
    """
    True when the negative prompt is left to the generator's native syntax.

    Only art optimization targeting Midjourney does this; the post-processor
    then appends ``--no <terms>`` instead.
    """
    return (
        settings.industry_glossary == IndustryGlossary.ART
        and settings.art is not None
        and settings.art.target_generator == TargetGenerator.MIDJOURNEY
    )


def merge_negative_prompt(prompt: str, negative_prompt: str) -> str:
    return (
        f'Main Prompt: "{prompt}"\n\n'
        f'Negative Constraints (must be avoided): "{negative_prompt}"'
    )


def compose(
    settings: OptimizationSettings,
    prompt: str,
    has_image: bool,
    negative_prompt: Optional[str] = None,
    branches: int = DEFAULT_TREE_OF_THOUGHT_BRANCHES,
) -> ComposedPrompt:
    """
    Build the system instruction and the processed prompt.

    Transform order is fixed: negative-prompt merge, structural tagging,
    reasoning wrapping, target-model preprocessing. Each step works on the
    cumulative output of the previous one.

    Args:
        settings: Validated optimization settings
        prompt: Raw user prompt
        has_image: Whether an image accompanies the prompt
        negative_prompt: Optional terms to avoid
        branches: Branch count for the tree-of-thought strategy

    Returns:
        ComposedPrompt with system_instruction and processed_prompt
    """
    advanced = settings.advanced
    processed = prompt

    if negative_prompt and negative_prompt.strip() and not defers_negative_prompt(settings):
        processed = merge_negative_prompt(processed, negative_prompt)

    if advanced.use_xml:
        processed = apply_structural_tags(processed, advanced.target_model, settings.industry_glossary)

    if advanced.reasoning_strategy != ReasoningStrategy.NONE:
        processed = apply_reasoning_module(processed, advanced.reasoning_strategy, branches)

    processed = apply_model_preprocessing(processed, advanced.target_model)

    return ComposedPrompt(
        system_instruction=build_system_instruction(settings, has_image),
        processed_prompt=processed,
    )
