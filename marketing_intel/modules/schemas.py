"""Module contract schemas.

These schemas define what analysis modules consume and produce. They carry
no execution logic; the orchestrator and synthesizer work purely in terms
of these records.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ModuleCategory(str, Enum):
    """Capability category (business discipline) of a module."""

    STRATEGY = "strategy"
    INNOVATION = "innovation"
    EXECUTION = "execution"
    FINANCE = "finance"
    ORGANIZATION = "organization"
    MARKETING = "marketing"


class Priority(str, Enum):
    """Priority level shared by modules, insights and recommendations."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK: dict[Priority, int] = {
    Priority.CRITICAL: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


def is_priority_at_least(priority: Priority, threshold: Priority) -> bool:
    """True if `priority` ranks at or above `threshold`."""
    return Priority(priority).rank >= Priority(threshold).rank


class InsightType(str, Enum):
    """Classification tag of an insight."""

    OPPORTUNITY = "opportunity"
    THREAT = "threat"
    RECOMMENDATION = "recommendation"
    OBSERVATION = "observation"
    WARNING = "warning"


class Timeframe(str, Enum):
    """Fixed timeframe buckets for recommendations."""

    DAYS_0_30 = "0-30 days"
    DAYS_30_90 = "30-90 days"
    DAYS_90_180 = "90-180 days"
    MONTHS_6_12 = "6-12 months"
    YEARS_1_PLUS = "1+ years"


class ExpectedImpact(str, Enum):
    TRANSFORMATIVE = "transformative"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


IMPACT_RANK: dict[ExpectedImpact, int] = {
    ExpectedImpact.TRANSFORMATIVE: 4,
    ExpectedImpact.HIGH: 3,
    ExpectedImpact.MODERATE: 2,
    ExpectedImpact.LOW: 1,
}


class EffortLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CompetitorInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: Optional[str] = None


class CompetitorData(BaseModel):
    """Market context supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    competitors: list[CompetitorInfo] = Field(default_factory=list)
    market_size: Optional[str] = None
    growth_rate: Optional[str] = None


class FinancialData(BaseModel):
    """Financial context supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    revenue: Optional[float] = None
    employees: Optional[int] = None
    funding_stage: Optional[str] = None


class BusinessContext(BaseModel):
    """Subject of analysis, owned by the caller.

    The orchestrator never mutates an instance; between stages it builds an
    enriched copy whose `previous_analyses` also holds earlier outputs.
    """

    model_config = ConfigDict(frozen=True)

    business_id: str = Field(..., description="Identifier of the business profile")
    business_name: str
    industry: str
    business_summary: str = Field(
        default="",
        description="Free-text description of the business",
    )
    website_url: Optional[str] = None
    competitor_data: Optional[CompetitorData] = None
    financial_data: Optional[FinancialData] = None
    previous_analyses: dict[str, Any] = Field(
        default_factory=dict,
        description="Module name -> that module's prior output",
    )
    user_goals: list[str] = Field(default_factory=list)
    time_horizon: Optional[str] = Field(
        default=None,
        description="Planning horizon, e.g. '90-day' or '1-year'",
    )

    def with_previous_analyses(self, outputs: dict[str, Any]) -> "BusinessContext":
        """Return a shallow copy with `outputs` layered over previous analyses."""
        merged = {**self.previous_analyses, **outputs}
        return self.model_copy(update={"previous_analyses": merged})


class ModuleMetadata(BaseModel):
    """Static registration metadata of an analysis module."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique module key")
    category: ModuleCategory
    description: str = ""
    frameworks: list[str] = Field(
        default_factory=list,
        description="Analytical frameworks the module applies (e.g. 'Five Forces')",
    )
    dependencies: list[str] = Field(
        default_factory=list,
        description="Names of modules whose output must exist before this one runs",
    )
    priority: Priority = Priority.MEDIUM
    requires_competitor_data: bool = False
    requires_financial_data: bool = False


class Insight(BaseModel):
    """A single classified finding produced by a module."""

    model_config = ConfigDict(frozen=True)

    type: InsightType
    priority: Priority
    title: str
    description: str = ""
    confidence_score: Optional[float] = None
    supporting_data: Optional[dict[str, Any]] = None
    source_framework: Optional[str] = None


class Recommendation(BaseModel):
    """An actionable recommendation produced by a module."""

    model_config = ConfigDict(frozen=True)

    action: str
    rationale: str = ""
    priority: Priority
    timeframe: Timeframe
    expected_impact: ExpectedImpact = ExpectedImpact.MODERATE
    effort_required: EffortLevel = EffortLevel.MEDIUM
    metrics: Optional[list[str]] = Field(
        default=None,
        description="How success of this recommendation is measured",
    )

    @property
    def cross_reference_key(self) -> str:
        return self.action.lower()[:50]


class ModuleOutput(BaseModel):
    """Output of one successful module execution.

    Field types are deliberately loose on `analysis`, `insights` and
    `recommendations` so that malformed module output still constructs and is
    rejected by the output validator instead.
    """

    model_config = ConfigDict(frozen=True)

    module_name: str
    category: Optional[ModuleCategory] = None
    execution_time_ms: int = 0
    confidence_score: float = 0.0
    analysis: Any = None
    insights: Any = Field(default_factory=list)
    recommendations: Any = Field(default_factory=list)
    framework_name: Optional[str] = None
    model_used: Optional[str] = None
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
