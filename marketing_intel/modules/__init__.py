"""Analysis module contract and registry."""

from marketing_intel.modules.base import AnalysisModule
from marketing_intel.modules.prompt_module import PromptAnalysisModule
from marketing_intel.modules.registry import ModuleRegistry, UnknownScopeError
from marketing_intel.modules.schemas import (
    BusinessContext,
    CompetitorData,
    CompetitorInfo,
    EffortLevel,
    ExpectedImpact,
    FinancialData,
    Insight,
    InsightType,
    ModuleCategory,
    ModuleMetadata,
    ModuleOutput,
    Priority,
    Recommendation,
    Timeframe,
    is_priority_at_least,
)
from marketing_intel.modules.validation import output_problems, validate_module_output

__all__ = [
    "AnalysisModule",
    "BusinessContext",
    "CompetitorData",
    "CompetitorInfo",
    "EffortLevel",
    "ExpectedImpact",
    "FinancialData",
    "Insight",
    "InsightType",
    "ModuleCategory",
    "ModuleMetadata",
    "ModuleOutput",
    "ModuleRegistry",
    "Priority",
    "PromptAnalysisModule",
    "Recommendation",
    "Timeframe",
    "UnknownScopeError",
    "is_priority_at_least",
    "output_problems",
    "validate_module_output",
]
