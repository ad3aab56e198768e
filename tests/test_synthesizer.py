"""Tests for the synthesis steps."""
import pytest

from marketing_intel.modules.schemas import InsightType, Priority, Timeframe
from marketing_intel.synthesis.schemas import MetricCategory, ThemeDefinition
from marketing_intel.synthesis.synthesizer import (
    Synthesizer,
    build_action_plan,
    categorize_insights,
    categorize_metric,
    cross_reference_recommendations,
    extract_metrics,
    generate_executive_summary,
    identify_themes,
    merge_insights,
    overall_confidence,
)
from marketing_intel.synthesis.themes import ThemeRegistry


@pytest.fixture
def make_output(make_module):
    def _make(name, insights=None, recommendations=None, confidence=0.8):
        module = make_module(name)
        return module.create_output(
            {'module': name},
            insights or [],
            recommendations or [],
            execution_time_ms=1,
            confidence_score=confidence,
        )
    return _make


class TestInsightMerge:
    """Tests for merge_insights and categorize_insights."""

    def test_titles_differing_by_case_merge(self, make_insight):
        first = make_insight('Expand Online Ordering', description='from A')
        second = make_insight('expand online ordering', description='from B')

        merged = merge_insights([[first], [second]])

        assert merged == [first]

    def test_order_preserved(self, make_insight):
        merged = merge_insights([
            [make_insight('One'), make_insight('Two')],
            [make_insight('Three'), make_insight('ONE')],
        ])
        assert [i.title for i in merged] == ['One', 'Two', 'Three']

    def test_categorize_insights(self, make_insight):
        insights = [
            make_insight('opp', type=InsightType.OPPORTUNITY),
            make_insight('threat', type=InsightType.THREAT),
            make_insight('warning', type=InsightType.WARNING),
            make_insight('strength-high', type=InsightType.OBSERVATION, priority=Priority.HIGH),
            make_insight('strength-critical', type=InsightType.OBSERVATION, priority=Priority.CRITICAL),
            make_insight('weakness', type=InsightType.OBSERVATION, priority=Priority.MEDIUM),
            make_insight('low-observation', type=InsightType.OBSERVATION, priority=Priority.LOW),
            make_insight('rec', type=InsightType.RECOMMENDATION),
        ]

        unified = categorize_insights(insights)

        assert [i.title for i in unified.opportunities] == ['opp']
        assert [i.title for i in unified.threats] == ['threat', 'warning']
        assert [i.title for i in unified.strengths] == ['strength-high', 'strength-critical']
        assert [i.title for i in unified.weaknesses] == ['weakness']


class TestRecommendationCrossReference:
    """Tests for cross_reference_recommendations."""

    def test_three_matching_recommendations_boosted(self, make_recommendation):
        prefix = 'Launch a customer loyalty program with tiered rewards and '
        recs = [
            make_recommendation(prefix + 'points', priority=Priority.MEDIUM),
            make_recommendation(prefix.upper() + 'perks', priority=Priority.MEDIUM),
            make_recommendation(prefix + 'discounts', priority=Priority.MEDIUM),
        ]

        merged = cross_reference_recommendations(recs)

        assert len(merged) == 1
        assert merged[0].action == prefix + 'points'
        assert merged[0].priority == Priority.HIGH
        assert 'confirmed by 3 analyses' in merged[0].rationale.lower()
        # inputs untouched
        assert recs[0].priority == Priority.MEDIUM
        assert 'Confirmed' not in recs[0].rationale

    def test_low_priority_group_raised_to_high(self, make_recommendation):
        recs = [make_recommendation('Fix the website', priority=Priority.LOW)] * 2
        assert cross_reference_recommendations(recs)[0].priority == Priority.HIGH

    def test_critical_group_stays_critical(self, make_recommendation):
        recs = [
            make_recommendation('Fix the website', priority=Priority.CRITICAL),
            make_recommendation('fix the website', priority=Priority.LOW),
        ]
        merged = cross_reference_recommendations(recs)

        assert merged[0].priority == Priority.CRITICAL
        assert merged[0].rationale.endswith('(Confirmed by 2 analyses)')

    def test_singletons_unchanged(self, make_recommendation):
        recs = [
            make_recommendation('Fix the website'),
            make_recommendation('Hire a manager'),
        ]
        assert cross_reference_recommendations(recs) == recs


class TestActionPlan:
    def test_bucketing_by_timeframe(self, make_recommendation):
        recs = [
            make_recommendation('a', timeframe=Timeframe.DAYS_0_30),
            make_recommendation('b', timeframe=Timeframe.DAYS_30_90),
            make_recommendation('c', timeframe=Timeframe.DAYS_90_180),
            make_recommendation('d', timeframe=Timeframe.MONTHS_6_12),
            make_recommendation('e', timeframe=Timeframe.YEARS_1_PLUS),
        ]

        plan = build_action_plan(recs)

        assert [r.action for r in plan.immediate] == ['a']
        assert [r.action for r in plan.short_term] == ['b']
        assert [r.action for r in plan.medium_term] == ['c']
        assert [r.action for r in plan.long_term] == ['d', 'e']


class TestThemes:
    """Tests for identify_themes."""

    def test_theme_needs_two_modules(self, make_output, make_insight):
        registry = ThemeRegistry(definitions=[
            ThemeDefinition(theme='Digital Transformation', keywords=['digital', 'online']),
        ])
        outputs = {
            'a': make_output('a', [make_insight('Go online')]),
            'b': make_output('b', [make_insight('Kitchen layout')]),
        }
        assert identify_themes(outputs, registry) == []

        outputs['c'] = make_output('c', [make_insight('x', description='DIGITAL menu boards')])
        themes = identify_themes(outputs, registry)

        assert len(themes) == 1
        assert themes[0].supporting_modules == ['a', 'c']
        assert themes[0].priority == Priority.MEDIUM
        assert themes[0].description == 'Multiple analyses suggest focusing on digital transformation'

    def test_three_modules_make_high_priority(self, make_output, make_insight):
        registry = ThemeRegistry(definitions=[
            ThemeDefinition(theme='Customer Experience', keywords=['customer']),
        ])
        outputs = {
            name: make_output(name, [make_insight(f'{name} customer finding')])
            for name in ['a', 'b', 'c']
        }

        themes = identify_themes(outputs, registry)

        assert themes[0].priority == Priority.HIGH
        assert themes[0].supporting_modules == ['a', 'b', 'c']

    def test_module_counted_once_per_theme(self, make_output, make_insight):
        registry = ThemeRegistry(definitions=[
            ThemeDefinition(theme='Market Expansion', keywords=['market', 'growth']),
        ])
        outputs = {
            'a': make_output('a', [make_insight('market growth'), make_insight('new market')]),
        }
        assert identify_themes(outputs, registry) == []


class TestMetrics:
    @pytest.mark.parametrize('metric, category', [
        ('Monthly revenue', MetricCategory.FINANCIAL),
        ('Customer acquisition cost', MetricCategory.FINANCIAL),
        ('Customer retention rate', MetricCategory.CUSTOMER),
        ('Local market share', MetricCategory.MARKET),
        ('Average ticket time', MetricCategory.OPERATIONAL),
    ])
    def test_categorize_metric(self, metric, category):
        assert categorize_metric(metric) == category

    def test_extract_metrics_deduplicates(self, make_recommendation):
        recs = [
            make_recommendation('a', metrics=['Monthly revenue', 'Online orders']),
            make_recommendation('b', metrics=['Monthly revenue']),
            make_recommendation('c'),
        ]

        metrics = extract_metrics(recs)

        assert [m.metric for m in metrics] == ['Monthly revenue', 'Online orders']
        assert metrics[0].timeframe == '90 days'


class TestSummaryAndConfidence:
    def test_overall_confidence_is_mean(self, make_output):
        outputs = {'a': make_output('a', confidence=0.9), 'b': make_output('b', confidence=0.5)}
        assert overall_confidence(outputs) == pytest.approx(0.7)
        assert overall_confidence({}) == 0.0

    def test_executive_summary(self, make_insight):
        unified = categorize_insights([
            make_insight('opp'),
            make_insight('risk', type=InsightType.THREAT),
        ])
        summary = generate_executive_summary(3, unified, [], 0.756)

        assert 'using 3 specialized frameworks' in summary
        assert 'Identified 1 growth opportunities and 1 areas requiring attention' in summary
        assert summary.endswith('Confidence: 76%.')

    def test_executive_summary_without_data(self):
        summary = generate_executive_summary(0, categorize_insights([]), [], 0.0)

        assert 'No analysis module produced usable output' in summary
        assert 'Confidence: 0%.' in summary


class TestSynthesizer:
    def test_synthesize(self, make_output, make_insight, make_recommendation):
        registry = ThemeRegistry(definitions=[
            ThemeDefinition(theme='Digital Transformation', keywords=['online']),
        ])
        outputs = {
            'a': make_output(
                'a',
                [make_insight('Online ordering gap', type=InsightType.OPPORTUNITY)],
                [make_recommendation('Add online ordering', metrics=['Online revenue'])],
                confidence=0.9,
            ),
            'b': make_output(
                'b',
                [make_insight('ONLINE ORDERING GAP', type=InsightType.THREAT)],
                [make_recommendation('add online ordering')],
                confidence=0.7,
            ),
        }

        synthesis = Synthesizer(registry).synthesize(outputs, 1234, stages=[['a', 'b']])

        assert synthesis.confidence_score == pytest.approx(0.8)
        assert len(synthesis.unified_insights.opportunities) == 1
        assert synthesis.unified_insights.threats == []
        assert len(synthesis.action_plan.immediate) == 1
        assert synthesis.action_plan.immediate[0].priority == Priority.HIGH
        assert [t.theme for t in synthesis.themes] == ['Digital Transformation']
        assert [m.category for m in synthesis.success_metrics] == [MetricCategory.FINANCIAL]
        assert synthesis.agents_executed == ['a', 'b']
        assert synthesis.total_execution_time_ms == 1234
        assert 'Key strategic themes: Digital Transformation.' in synthesis.executive_summary
