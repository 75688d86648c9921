"""
Deterministic post-processing of an optimized prompt.

Only the art profile has post-processing: a native negative-term directive
for Midjourney and a per-generator parameter suffix.
"""
from types import MappingProxyType
from typing import Mapping, Optional

from .settings import IndustryGlossary, OptimizationSettings, TargetGenerator

PLATFORM_PARAMETERS: Mapping[TargetGenerator, str] = MappingProxyType({
    TargetGenerator.MIDJOURNEY: " --ar 16:9 --style raw --s 250",
    TargetGenerator.DALL_E_3: ", cinematic, high detail",
    TargetGenerator.SORA: ", 4k, high quality, cinematic camera movement",
})


def post_process(
    optimized_prompt: str,
    settings: OptimizationSettings,
    negative_prompt: Optional[str] = None,
) -> str:
    """
    Apply the art profile's suffixes to a completed optimized prompt.

    The negative-term suffix always comes before the parameter suffix.

    Args:
        optimized_prompt: Prompt returned by the optimizer model
        settings: Settings of the run
        negative_prompt: Terms to avoid, if any

    Returns:
        Final prompt
    """
    art = settings.art
    if settings.industry_glossary != IndustryGlossary.ART or art is None:
        return optimized_prompt

    result = optimized_prompt
    if art.target_generator == TargetGenerator.MIDJOURNEY and negative_prompt and negative_prompt.strip():
        result += f" --no {negative_prompt.strip()}"

    if art.auto_append_parameters and art.target_generator != TargetGenerator.NONE:
        result += PLATFORM_PARAMETERS.get(art.target_generator, "")

    return result
