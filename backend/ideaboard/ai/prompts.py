"""
Prompt strategies for idea analysis and build plans.

Each PromptTier maps to exactly one analysis strategy. The mapping is
checked for exhaustiveness at import time so adding a tier without a
prompt fails fast.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from ideaboard.services.plan_registry import PromptTier


@dataclass(frozen=True)
class PromptStrategy:
    """System prompt and expected JSON fields for one analysis tier."""
    tier: PromptTier
    system_prompt: str
    required_fields: Tuple[str, ...]
    max_tokens: int


_BASE_FIELDS = ("problem", "audience", "monetization")
_STANDARD_FIELDS = _BASE_FIELDS + ("competitors", "marketGaps", "demandProbability")
_ADVANCED_FIELDS = _STANDARD_FIELDS + ("potentialRisks", "marketingStrategies")

_ANALYST_INTRO = (
    "You are an expert business analyst and market researcher. Analyze the provided "
    "app idea and return a structured JSON response with the following fields:\n\n"
)

_ANALYST_OUTRO = (
    "\n\nBe specific, actionable, and realistic. "
    "Focus on what makes this idea unique and viable."
)

_FIELD_INSTRUCTIONS = {
    "problem": "- problem: A clear 2-3 sentence description of the core problem this app solves",
    "audience": "- audience: Describe the target audience in 2-3 sentences (demographics, behaviors, pain points)",
    "monetization": "- monetization: An array of 3-4 potential monetization strategies",
    "competitors": "- competitors: An array of 3-5 existing competitors or similar solutions",
    "marketGaps": "- marketGaps: An array of 3-4 specific market gaps or opportunities this app could fill",
    "demandProbability": "- demandProbability: A number between 0-100 representing the likelihood of real market demand",
    "potentialRisks": "- potentialRisks: An array of 3-5 key risks (market, technical, regulatory) with a short mitigation each",
    "marketingStrategies": "- marketingStrategies: An array of 3-5 concrete go-to-market and acquisition strategies",
}


def _system_prompt(fields: Tuple[str, ...]) -> str:
    return _ANALYST_INTRO + "\n".join(_FIELD_INSTRUCTIONS[f] for f in fields) + _ANALYST_OUTRO


ANALYSIS_STRATEGIES: Dict[PromptTier, PromptStrategy] = {
    PromptTier.BASIC: PromptStrategy(
        tier=PromptTier.BASIC,
        system_prompt=_system_prompt(_BASE_FIELDS),
        required_fields=_BASE_FIELDS,
        max_tokens=800,
    ),
    PromptTier.STANDARD: PromptStrategy(
        tier=PromptTier.STANDARD,
        system_prompt=_system_prompt(_STANDARD_FIELDS),
        required_fields=_STANDARD_FIELDS,
        max_tokens=1500,
    ),
    PromptTier.ADVANCED: PromptStrategy(
        tier=PromptTier.ADVANCED,
        system_prompt=_system_prompt(_ADVANCED_FIELDS),
        required_fields=_ADVANCED_FIELDS,
        max_tokens=2500,
    ),
}

_missing_tiers = set(PromptTier) - set(ANALYSIS_STRATEGIES)
if _missing_tiers:
    raise RuntimeError(f"No analysis strategy for tiers: {sorted(t.value for t in _missing_tiers)}")


def get_analysis_strategy(tier: PromptTier) -> PromptStrategy:
    return ANALYSIS_STRATEGIES[tier]


def analysis_user_prompt(idea: str) -> str:
    return f"Analyze this app idea: {idea}"


def missing_fields(data: Dict[str, Any], required: Tuple[str, ...]) -> List[str]:
    """Required keys absent from (or null in) a model response."""
    return [field for field in required if data.get(field) is None]


# Build plan

BUILD_PLATFORMS: Tuple[str, ...] = ("Lovable", "Bolt", "Replit", "FlutterFlow")

BUILD_PLAN_FIELDS = ("summary", "features", "phases")
BUILD_PHASE_FIELDS = ("phase", "title", "features", "prompt")


def build_plan_system_prompt(platform: str) -> str:
    return f"""You are an expert product manager and technical architect. Based on the app idea and research data, create a structured multi-phase build plan optimized for {platform}.

Return a JSON response with:
- summary: A 2-3 sentence overview of what the app will do
- features: An array of 5-7 core features for the MVP
- phases: An array of 2-3 build phases, each containing:
  - phase: Phase number (0, 1, 2)
  - title: Phase name (e.g., "Phase 1: Core Features")
  - features: Array of 2-3 features to build in this phase
  - prompt: A detailed, copy-paste ready prompt for {platform} that includes:
    * What to build in this phase
    * Technical requirements
    * UI/UX guidelines
    * Any specific platform best practices

Make the prompts specific, actionable, and optimized for {platform}. Each prompt should be self-contained and ready to paste directly into the builder."""


def _join(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value or "")


def build_plan_user_prompt(idea: str, research: Dict[str, Any], platform: str) -> str:
    return f"""
App Idea: {idea}

Research Data:
- Problem: {research.get("problem", "")}
- Audience: {research.get("audience", "")}
- Market Gaps: {_join(research.get("marketGaps"))}
- Monetization: {_join(research.get("monetization"))}

Create a {platform}-optimized build plan with detailed prompts for each phase."""
