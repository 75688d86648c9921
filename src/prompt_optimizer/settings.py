"""
Optimization settings model.

The full configuration describing optimization intent: Hanzi density, the
industry profile and its knobs, the target model and the reasoning strategy.
Field names are snake_case in Python and camelCase on the wire.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel


class IndustryGlossary(str, Enum):
    """Industry profile selecting the system-instruction builder."""
    NONE = "none"
    TECH = "tech"
    FINANCE = "finance"
    MEDICAL = "medical"
    LAW = "law"
    ART = "art"


class TargetModel(str, Enum):
    """LLM family the optimized prompt is written for."""
    GEMINI = "gemini"
    CLAUDE = "claude"
    DEEPSEEK = "deepseek"
    LLAMA = "llama"
    GROK = "grok"
    OPENAI = "openai"


class ReasoningStrategy(str, Enum):
    """Reasoning scaffold wrapped around the prompt."""
    NONE = "none"
    CHAIN_OF_THOUGHT = "chain-of-thought"
    TREE_OF_THOUGHT = "tree-of-thought"
    REWOO = "rewoo"


class LegalFormality(str, Enum):
    BRIEF = "brief"
    MEMORANDUM = "memorandum"
    LAW_REVIEW = "law-review"


class TechAudience(str, Enum):
    LAYMAN = "layman"
    DEVELOPER = "developer"
    EXPERT = "expert"


class CodeStyle(str, Enum):
    INLINE = "inline"
    FENCED = "fenced"


class RiskAssessment(str, Enum):
    BRIEF = "brief"
    DETAILED = "detailed"


class EvidenceLevel(str, Enum):
    ANECDOTAL = "anecdotal"
    CASE_STUDY = "case-study"
    SYSTEMATIC_REVIEW = "systematic-review"


class IdeaInputType(str, Enum):
    CONCEPT = "concept"
    IMAGE = "image"


class TargetGenerator(str, Enum):
    """Downstream image generator whose native syntax may be appended."""
    NONE = "none"
    MIDJOURNEY = "midjourney"
    DALL_E_3 = "dall-e-3"
    SORA = "sora"


class ArtisticStyle(str, Enum):
    PHOTOREALISTIC = "photorealistic"
    IMPRESSIONISTIC = "impressionistic"
    SURREALIST = "surrealist"
    ABSTRACT = "abstract"
    MANGA = "manga"


class ArtMedium(str, Enum):
    OIL_PAINTING = "oil-painting"
    WATERCOLOR = "watercolor"
    DIGITAL_ART = "digital-art"
    PHOTOGRAPH = "photograph"
    SCULPTURE = "sculpture"


class ColorPaletteFocus(str, Enum):
    VIBRANT = "vibrant"
    MONOCHROMATIC = "monochromatic"
    PASTEL = "pastel"
    EARTH_TONES = "earth-tones"


class _SettingsBase(BaseModel):
    """Shared config: immutable, camelCase aliases, snake_case accepted."""

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "ignore",
    }


class AdvancedSettings(_SettingsBase):
    target_model: TargetModel = TargetModel.GEMINI
    use_xml: bool = True
    reasoning_strategy: ReasoningStrategy = ReasoningStrategy.NONE


class LegalSettings(_SettingsBase):
    formality: LegalFormality = LegalFormality.BRIEF
    protect_latin_terms: bool = True
    enforce_irac: bool = False
    compress_citations: bool = True


class TechSettings(_SettingsBase):
    audience: TechAudience = TechAudience.DEVELOPER
    code_style: CodeStyle = CodeStyle.FENCED


class FinanceSettings(_SettingsBase):
    quantitative_focus: bool = True
    risk_assessment: RiskAssessment = RiskAssessment.BRIEF


class MedicalSettings(_SettingsBase):
    anonymize_pii: bool = True
    evidence_level: EvidenceLevel = EvidenceLevel.SYSTEMATIC_REVIEW


class ArtSettings(_SettingsBase):
    idea_input_type: IdeaInputType = IdeaInputType.CONCEPT
    target_generator: TargetGenerator = TargetGenerator.NONE
    auto_append_parameters: bool = True
    artistic_style: ArtisticStyle = ArtisticStyle.PHOTOREALISTIC
    medium: ArtMedium = ArtMedium.DIGITAL_ART
    color_palette_focus: ColorPaletteFocus = ColorPaletteFocus.VIBRANT


# Industry -> name of the sub-object that must be populated when it is active.
INDUSTRY_BLOCKS = {
    IndustryGlossary.TECH: "tech",
    IndustryGlossary.FINANCE: "finance",
    IndustryGlossary.MEDICAL: "medical",
    IndustryGlossary.LAW: "legal",
    IndustryGlossary.ART: "art",
}


class OptimizationSettings(_SettingsBase):
    """
    Validated optimization settings.

    Passed by value into the pipeline and never mutated during a run. The
    per-industry block selected by ``industry_glossary`` must be present;
    the others are ignored.
    """

    hanzi_density: int = Field(30, ge=0, le=100)
    industry_glossary: IndustryGlossary = IndustryGlossary.NONE
    classical_mode: bool = False
    advanced: AdvancedSettings
    legal: Optional[LegalSettings] = None
    tech: Optional[TechSettings] = None
    finance: Optional[FinanceSettings] = None
    medical: Optional[MedicalSettings] = None
    art: Optional[ArtSettings] = None

    @model_validator(mode="after")
    def _check_active_block(self) -> "OptimizationSettings":
        block = INDUSTRY_BLOCKS.get(self.industry_glossary)
        if block is not None and getattr(self, block) is None:
            raise ValueError(
                f"industryGlossary '{self.industry_glossary.value}' requires "
                f"the '{block}' settings block"
            )
        return self

    @property
    def is_art_image_mode(self) -> bool:
        """True when the art profile is active and takes an image as input."""
        return (
            self.industry_glossary == IndustryGlossary.ART
            and self.art is not None
            and self.art.idea_input_type == IdeaInputType.IMAGE
        )

    @classmethod
    def defaults(cls, **overrides) -> "OptimizationSettings":
        """
        Build the default configuration with every industry block populated.

        Args:
            **overrides: Top-level fields to replace (snake_case names)

        Returns:
            OptimizationSettings instance
        """
        values = {
            "hanzi_density": 30,
            "industry_glossary": IndustryGlossary.NONE,
            "classical_mode": False,
            "advanced": AdvancedSettings(),
            "legal": LegalSettings(),
            "tech": TechSettings(),
            "finance": FinanceSettings(),
            "medical": MedicalSettings(),
            "art": ArtSettings(),
        }
        values.update(overrides)
        return cls(**values)
