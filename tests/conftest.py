"""Shared test fixtures for the orchestration and synthesis tests."""
import asyncio

import pytest

from marketing_intel.modules.base import AnalysisModule
from marketing_intel.modules.registry import ModuleRegistry
from marketing_intel.modules.schemas import (
    BusinessContext,
    CompetitorData,
    CompetitorInfo,
    FinancialData,
    Insight,
    InsightType,
    ModuleCategory,
    ModuleMetadata,
    Priority,
    Recommendation,
    Timeframe,
)


class StubModule(AnalysisModule):
    """Analysis module with canned output for orchestration tests."""

    def __init__(
        self,
        name,
        category=ModuleCategory.STRATEGY,
        dependencies=None,
        insights=None,
        recommendations=None,
        confidence=0.8,
        delay=0.0,
        error=None,
        output=None,
        requires_competitor_data=False,
        requires_financial_data=False,
    ):
        self.metadata = ModuleMetadata(
            name=name,
            category=category,
            dependencies=dependencies or [],
            priority=Priority.MEDIUM,
            requires_competitor_data=requires_competitor_data,
            requires_financial_data=requires_financial_data,
        )
        self.insights = insights or []
        self.recommendations = recommendations or []
        self.confidence = confidence
        self.delay = delay
        self.error = error
        self.output = output
        self.seen_contexts = []
        self.cancelled = False

    async def analyze(self, context):
        self.seen_contexts.append(context)
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        if self.output is not None:
            return self.output
        return self.create_output(
            analysis={"module": self.metadata.name},
            insights=self.insights,
            recommendations=self.recommendations,
            execution_time_ms=int(self.delay * 1000),
            confidence_score=self.confidence,
        )


@pytest.fixture
def business_context():
    """Minimal business profile."""
    return BusinessContext(
        business_id='demo-123',
        business_name='Corner Bistro',
        industry='Restaurants',
        business_summary='Neighborhood bistro serving brunch and dinner.',
    )


@pytest.fixture
def rich_business_context():
    """Business profile with competitor and financial data."""
    return BusinessContext(
        business_id='demo-456',
        business_name='Corner Bistro',
        industry='Restaurants',
        business_summary='x' * 250,
        competitor_data=CompetitorData(
            competitors=[CompetitorInfo(name='Main Street Diner')],
            market_size='$12M',
        ),
        financial_data=FinancialData(revenue=850000, employees=14),
    )


@pytest.fixture
def make_module():
    """Factory for StubModule instances."""
    return StubModule


@pytest.fixture
def registry():
    return ModuleRegistry()


@pytest.fixture
def make_insight():
    def _make(title, type=InsightType.OPPORTUNITY, priority=Priority.MEDIUM, description=''):
        return Insight(type=type, priority=priority, title=title, description=description)
    return _make


@pytest.fixture
def make_recommendation():
    def _make(
        action,
        priority=Priority.MEDIUM,
        timeframe=Timeframe.DAYS_0_30,
        rationale='Supported by analysis',
        metrics=None,
    ):
        return Recommendation(
            action=action,
            rationale=rationale,
            priority=priority,
            timeframe=timeframe,
            metrics=metrics,
        )
    return _make
