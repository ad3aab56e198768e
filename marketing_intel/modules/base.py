"""Analysis module contract.

Every analysis module subclasses AnalysisModule, declares its static
ModuleMetadata and implements the asynchronous `analyze`. Orchestration
relies only on `metadata`, `can_run`, `analyze` and `validate`; the other
helpers serve callers that present a single module's output.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from .schemas import (
    IMPACT_RANK,
    BusinessContext,
    Insight,
    InsightType,
    ModuleMetadata,
    ModuleOutput,
    Priority,
    Recommendation,
    is_priority_at_least,
)
from .validation import validate_module_output

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.6
DETAILED_SUMMARY_CHARS = 200


class AnalysisModule(ABC):
    """Base class for analysis modules.

    Subclasses set `metadata` (class attribute or property) and implement
    `analyze`. `validate` defaults to the shared structural check and may be
    overridden for stricter, module-specific rules.
    """

    metadata: ModuleMetadata

    @property
    def name(self) -> str:
        return self.metadata.name

    @abstractmethod
    async def analyze(self, context: BusinessContext) -> ModuleOutput:
        """Run the analysis against `context` and return a ModuleOutput."""

    def validate(self, output: ModuleOutput) -> bool:
        return validate_module_output(output)

    def can_run(self, context: BusinessContext) -> bool:
        """Check required data and dependency outputs are present in `context`."""
        if self.metadata.requires_competitor_data and context.competitor_data is None:
            return False
        if self.metadata.requires_financial_data and context.financial_data is None:
            return False
        return all(dep in context.previous_analyses for dep in self.metadata.dependencies)

    def missing_requirements(self, context: BusinessContext) -> list[str]:
        """Describe why `can_run` fails, for logging."""
        missing = []
        if self.metadata.requires_competitor_data and context.competitor_data is None:
            missing.append("competitor_data")
        if self.metadata.requires_financial_data and context.financial_data is None:
            missing.append("financial_data")
        missing.extend(
            f"dependency:{dep}"
            for dep in self.metadata.dependencies
            if dep not in context.previous_analyses
        )
        return missing

    def get_top_recommendations(
        self, output: ModuleOutput, top_n: int = 5
    ) -> list[Recommendation]:
        """Recommendations sorted by priority, then expected impact."""
        ranked = sorted(
            output.recommendations,
            key=lambda r: (r.priority.rank, IMPACT_RANK[r.expected_impact]),
            reverse=True,
        )
        return ranked[:top_n]

    def get_insights(
        self,
        output: ModuleOutput,
        types: Optional[list[InsightType]] = None,
        min_priority: Optional[Priority] = None,
    ) -> list[Insight]:
        insights = list(output.insights)
        if types:
            insights = [i for i in insights if i.type in types]
        if min_priority is not None:
            insights = [i for i in insights if is_priority_at_least(i.priority, min_priority)]
        return insights

    def get_summary(self, output: ModuleOutput) -> str:
        """Plain-text summary of key insights and top recommendations."""
        top_recs = self.get_top_recommendations(output, 3)
        key_insights = self.get_insights(output, min_priority=Priority.HIGH)

        lines = [f"{self.name} Analysis Summary:", ""]
        if key_insights:
            lines.append(f"Key Insights ({len(key_insights)}):")
            for i, insight in enumerate(key_insights[:5], start=1):
                lines.append(f"{i}. [{insight.type.value.upper()}] {insight.title}")
            lines.append("")
        if top_recs:
            lines.append("Top Recommendations:")
            for i, rec in enumerate(top_recs, start=1):
                lines.append(
                    f"{i}. {rec.action} ({rec.priority.value} priority, {rec.timeframe.value})"
                )
        return "\n".join(lines).rstrip() + "\n"

    def create_output(
        self,
        analysis: Any,
        insights: list[Insight],
        recommendations: list[Recommendation],
        execution_time_ms: int,
        confidence_score: float = 0.85,
        framework_name: Optional[str] = None,
        model_used: Optional[str] = None,
    ) -> ModuleOutput:
        """Build a ModuleOutput stamped with this module's name and category."""
        return ModuleOutput(
            module_name=self.metadata.name,
            category=self.metadata.category,
            execution_time_ms=execution_time_ms,
            confidence_score=confidence_score,
            analysis=analysis,
            insights=list(insights),
            recommendations=list(recommendations),
            framework_name=framework_name,
            model_used=model_used,
        )

    def calculate_confidence(self, context: BusinessContext) -> float:
        """Heuristic confidence from how much data the context carries."""
        confidence = BASE_CONFIDENCE
        if len(context.business_summary) > DETAILED_SUMMARY_CHARS:
            confidence += 0.1
        if context.competitor_data and context.competitor_data.competitors:
            confidence += 0.1
        if context.financial_data is not None:
            confidence += 0.1
        confidence += 0.05 * min(len(context.previous_analyses), 2)
        return min(round(confidence, 4), 1.0)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.metadata.name}>"
