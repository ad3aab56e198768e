"""Schemas for the cross-module strategic synthesis."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from marketing_intel.modules.schemas import Insight, ModuleOutput, Priority, Recommendation
from marketing_intel.orchestrator.schemas import ModuleFailure


class UnifiedInsights(BaseModel):
    """De-duplicated insights grouped into four fixed buckets."""

    model_config = ConfigDict(frozen=True)

    opportunities: list[Insight] = Field(default_factory=list)
    threats: list[Insight] = Field(
        default_factory=list,
        description="Threat and warning insights",
    )
    strengths: list[Insight] = Field(
        default_factory=list,
        description="Observations at high priority or above",
    )
    weaknesses: list[Insight] = Field(
        default_factory=list,
        description="Observations at medium priority",
    )


class ActionPlan(BaseModel):
    """Cross-referenced recommendations grouped by timeframe."""

    model_config = ConfigDict(frozen=True)

    immediate: list[Recommendation] = Field(default_factory=list, description="0-30 days")
    short_term: list[Recommendation] = Field(default_factory=list, description="30-90 days")
    medium_term: list[Recommendation] = Field(default_factory=list, description="90-180 days")
    long_term: list[Recommendation] = Field(default_factory=list, description="6+ months")

    def all_recommendations(self) -> list[Recommendation]:
        return [*self.immediate, *self.short_term, *self.medium_term, *self.long_term]


class ThemeDefinition(BaseModel):
    """One row of the theme -> keyword table."""

    theme: str
    keywords: list[str] = Field(..., min_length=1)
    description: Optional[str] = None


class StrategicTheme(BaseModel):
    model_config = ConfigDict(frozen=True)

    theme: str
    description: str
    supporting_modules: list[str]
    priority: Priority


class MetricCategory(str, Enum):
    FINANCIAL = "financial"
    CUSTOMER = "customer"
    MARKET = "market"
    OPERATIONAL = "operational"


class SuccessMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: str
    category: MetricCategory
    target: Optional[str] = None
    timeframe: Optional[str] = "90 days"


class StrategicSynthesis(BaseModel):
    """Aggregated report produced once per orchestration run."""

    model_config = ConfigDict(frozen=True)

    executive_summary: str
    confidence_score: float = Field(
        ...,
        description="Mean confidence of all accepted module outputs (0 if none)",
    )
    unified_insights: UnifiedInsights = Field(default_factory=UnifiedInsights)
    action_plan: ActionPlan = Field(default_factory=ActionPlan)
    themes: list[StrategicTheme] = Field(default_factory=list)
    success_metrics: list[SuccessMetric] = Field(default_factory=list)

    module_outputs: dict[str, ModuleOutput] = Field(default_factory=dict)

    # Run metadata
    agents_executed: list[str] = Field(
        default_factory=list,
        description="Names of modules whose output was accepted, in acceptance order",
    )
    stages: list[list[str]] = Field(
        default_factory=list,
        description="Module names per planned stage",
    )
    unscheduled_modules: list[str] = Field(default_factory=list)
    failures: list[ModuleFailure] = Field(default_factory=list)
    total_execution_time_ms: int = 0
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
