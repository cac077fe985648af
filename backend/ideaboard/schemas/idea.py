"""
Pydantic schemas for idea analysis, build plans and usage.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Union

from ideaboard.services.plan_registry import PromptTier


class AnalyzeIdeaRequest(BaseModel):
    """Schema for submitting an idea for analysis."""
    idea: str = Field(..., min_length=10, max_length=10000, description="Free-text product idea")


class GenerationResponse(BaseModel):
    """Analysis plus the user's usage after this generation."""
    analysis: Dict[str, Any]
    plan_id: str
    tier: PromptTier
    generation_count: int
    limit: int
    remaining: int


class BuildPlanRequest(BaseModel):
    """Schema for requesting a build plan for an analyzed idea."""
    idea: str = Field(..., min_length=10, max_length=10000)
    research: Dict[str, Any] = Field(..., description="Analysis returned by /ideas/analyze")
    platform: str = Field(..., description="Lovable, Bolt, Replit or FlutterFlow")


class BuildPhase(BaseModel):
    phase: Union[int, str]
    title: str
    features: List[Any]
    prompt: str


class BuildPlanResponse(BaseModel):
    """Phased build plan with copy/paste prompts."""
    platform: str
    summary: str
    features: List[Any]
    phases: List[BuildPhase]


class UsageResponse(BaseModel):
    """Current monthly usage for the credits indicator."""
    plan_id: str
    plan_name: str
    used: int
    limit: int
    remaining: int
    is_near_limit: bool
    is_at_limit: bool
