"""Cross-module synthesis.

Turns the accepted module outputs of one run into a StrategicSynthesis:

1. Insight merge - de-duplicate by case-insensitive title, first wins
2. Recommendation cross-reference - collapse shared actions, boost priority
3. Action plan - bucket recommendations by timeframe
4. Themes - keyword matches across at least two modules
5. Metrics - union of recommendation metrics, keyword-classified
6. Executive summary
7. Overall confidence - mean of module confidence scores

Each step is a standalone function; Synthesizer.synthesize wires them up.
Module order of the input mapping is the acceptance order of the run and
decides which duplicate is kept.
"""

import logging
from typing import Optional

from marketing_intel.modules.schemas import (
    Insight,
    InsightType,
    ModuleOutput,
    Priority,
    Recommendation,
    Timeframe,
)
from marketing_intel.orchestrator.schemas import ModuleFailure

from .schemas import (
    ActionPlan,
    MetricCategory,
    StrategicSynthesis,
    StrategicTheme,
    SuccessMetric,
    UnifiedInsights,
)
from .themes import ThemeRegistry

logger = logging.getLogger(__name__)

MIN_THEME_MODULES = 2
HIGH_PRIORITY_THEME_MODULES = 3

# Checked in order; first match wins, default operational
METRIC_KEYWORDS: list[tuple[MetricCategory, list[str]]] = [
    (MetricCategory.FINANCIAL, ["revenue", "profit", "cost"]),
    (MetricCategory.CUSTOMER, ["customer", "satisfaction", "retention"]),
    (MetricCategory.MARKET, ["market", "share", "growth"]),
]


def merge_insights(insight_lists: list[list[Insight]]) -> list[Insight]:
    """Flatten insight lists, dropping later insights with a repeated title."""
    unique: list[Insight] = []
    seen_titles: set[str] = set()
    for insights in insight_lists:
        for insight in insights:
            key = insight.title.lower()
            if key in seen_titles:
                continue
            seen_titles.add(key)
            unique.append(insight)
    return unique


def categorize_insights(insights: list[Insight]) -> UnifiedInsights:
    return UnifiedInsights(
        opportunities=[i for i in insights if i.type == InsightType.OPPORTUNITY],
        threats=[
            i for i in insights
            if i.type in (InsightType.THREAT, InsightType.WARNING)
        ],
        strengths=[
            i for i in insights
            if i.type == InsightType.OBSERVATION
            and i.priority in (Priority.CRITICAL, Priority.HIGH)
        ],
        weaknesses=[
            i for i in insights
            if i.type == InsightType.OBSERVATION and i.priority == Priority.MEDIUM
        ],
    )


def cross_reference_recommendations(
    recommendations: list[Recommendation],
) -> list[Recommendation]:
    """Collapse recommendations sharing an action key into their first member.

    The key is the first 50 characters of the lower-cased action. A group of
    more than one is raised to high priority (critical stays critical) and
    its rationale notes how many analyses confirmed it. Inputs are never
    modified; boosted entries are copies.
    """
    grouped: dict[str, list[Recommendation]] = {}
    for rec in recommendations:
        grouped.setdefault(rec.cross_reference_key, []).append(rec)

    merged: list[Recommendation] = []
    for recs in grouped.values():
        primary = recs[0]
        if len(recs) > 1:
            update = {"rationale": f"{primary.rationale} (Confirmed by {len(recs)} analyses)"}
            if primary.priority != Priority.CRITICAL:
                update["priority"] = Priority.HIGH
            primary = primary.model_copy(update=update)
        merged.append(primary)
    return merged


def build_action_plan(recommendations: list[Recommendation]) -> ActionPlan:
    return ActionPlan(
        immediate=[r for r in recommendations if r.timeframe == Timeframe.DAYS_0_30],
        short_term=[r for r in recommendations if r.timeframe == Timeframe.DAYS_30_90],
        medium_term=[r for r in recommendations if r.timeframe == Timeframe.DAYS_90_180],
        long_term=[
            r for r in recommendations
            if r.timeframe in (Timeframe.MONTHS_6_12, Timeframe.YEARS_1_PLUS)
        ],
    )


def _insight_text(output: ModuleOutput) -> str:
    return " ".join(f"{i.title} {i.description}" for i in output.insights).lower()


def identify_themes(
    outputs: dict[str, ModuleOutput],
    theme_registry: ThemeRegistry,
) -> list[StrategicTheme]:
    """Find themes whose keywords appear in the insights of several modules."""
    module_texts = {name: _insight_text(output) for name, output in outputs.items()}

    themes: list[StrategicTheme] = []
    for definition in theme_registry.list_all():
        keywords = [kw.lower() for kw in definition.keywords]
        supporting = [
            name for name, text in module_texts.items()
            if any(kw in text for kw in keywords)
        ]
        if len(supporting) < MIN_THEME_MODULES:
            continue
        themes.append(
            StrategicTheme(
                theme=definition.theme,
                description=definition.description
                or f"Multiple analyses suggest focusing on {definition.theme.lower()}",
                supporting_modules=supporting,
                priority=(
                    Priority.HIGH
                    if len(supporting) >= HIGH_PRIORITY_THEME_MODULES
                    else Priority.MEDIUM
                ),
            )
        )
    return themes


def categorize_metric(metric: str) -> MetricCategory:
    lower = metric.lower()
    for category, keywords in METRIC_KEYWORDS:
        if any(kw in lower for kw in keywords):
            return category
    return MetricCategory.OPERATIONAL


def extract_metrics(recommendations: list[Recommendation]) -> list[SuccessMetric]:
    """Union of recommendation metrics in first-seen order."""
    metrics: list[str] = []
    for rec in recommendations:
        for metric in rec.metrics or []:
            if metric not in metrics:
                metrics.append(metric)
    return [SuccessMetric(metric=m, category=categorize_metric(m)) for m in metrics]


def overall_confidence(outputs: dict[str, ModuleOutput]) -> float:
    if not outputs:
        return 0.0
    return sum(o.confidence_score for o in outputs.values()) / len(outputs)


def generate_executive_summary(
    module_count: int,
    insights: UnifiedInsights,
    themes: list[StrategicTheme],
    confidence: float,
) -> str:
    opp_count = len(insights.opportunities)
    threat_count = len(insights.threats)

    if module_count == 0:
        parts = ["No analysis module produced usable output, so no findings are available."]
    else:
        parts = [f"Strategic analysis completed using {module_count} specialized frameworks."]

    parts.append(
        f"Identified {opp_count} growth opportunities "
        f"and {threat_count} areas requiring attention."
    )
    if themes:
        parts.append(f"Key strategic themes: {', '.join(t.theme for t in themes)}.")
    parts.append(f"Confidence: {round(confidence * 100)}%.")
    return " ".join(parts)


class Synthesizer:
    """Builds a StrategicSynthesis from the accepted outputs of a run."""

    def __init__(self, theme_registry: Optional[ThemeRegistry] = None):
        self.theme_registry = theme_registry or ThemeRegistry()

    def synthesize(
        self,
        outputs: dict[str, ModuleOutput],
        execution_time_ms: int,
        stages: Optional[list[list[str]]] = None,
        failures: Optional[list[ModuleFailure]] = None,
        unscheduled: Optional[list[str]] = None,
    ) -> StrategicSynthesis:
        all_recommendations = [
            rec for output in outputs.values() for rec in output.recommendations
        ]

        unified = categorize_insights(
            merge_insights([output.insights for output in outputs.values()])
        )
        action_plan = build_action_plan(
            cross_reference_recommendations(all_recommendations)
        )
        themes = identify_themes(outputs, self.theme_registry)
        metrics = extract_metrics(all_recommendations)
        confidence = overall_confidence(outputs)
        summary = generate_executive_summary(len(outputs), unified, themes, confidence)

        logger.debug(
            f"Synthesized {len(outputs)} outputs: "
            f"{len(unified.opportunities)} opportunities, {len(unified.threats)} threats, "
            f"{len(action_plan.all_recommendations())} recommendations, {len(themes)} themes"
        )

        return StrategicSynthesis(
            executive_summary=summary,
            confidence_score=confidence,
            unified_insights=unified,
            action_plan=action_plan,
            themes=themes,
            success_metrics=metrics,
            module_outputs=dict(outputs),
            agents_executed=list(outputs.keys()),
            stages=stages or [],
            unscheduled_modules=unscheduled or [],
            failures=failures or [],
            total_execution_time_ms=execution_time_ms,
        )
