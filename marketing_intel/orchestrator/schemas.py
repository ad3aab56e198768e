"""Orchestrator schemas: run configuration, scopes, plans and failures.

Plans hold live module instances, so they are dataclasses rather than
pydantic models; everything that leaves the orchestrator in a synthesis is
pydantic.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, model_validator

from marketing_intel.modules.base import AnalysisModule
from marketing_intel.modules.schemas import ModuleCategory

DEFAULT_TIMEOUT_MS = 30000
ESTIMATED_STAGE_TIME_MS = 10000


def _default_timeout_ms() -> float:
    return float(os.environ.get("MODULE_TIMEOUT_MS", DEFAULT_TIMEOUT_MS))


class OrchestratorConfig(BaseModel):
    """Per-run execution options."""

    parallel_within_stage: bool = Field(
        default=True,
        description="Run the modules of a stage concurrently (False = one by one, in plan order)",
    )
    timeout_ms: float = Field(
        default_factory=_default_timeout_ms,
        gt=0,
        description="Per-module deadline for analyze()",
    )
    min_confidence: Optional[float] = Field(
        default=None,
        ge=0,
        le=1,
        description="Outputs below this confidence are logged but still accepted",
    )


class ScopeKind(str, Enum):
    ALL = "all"
    CATEGORY = "category"
    NAMED = "named"


class ExecutionScope(BaseModel):
    """Which registered modules a run covers."""

    kind: ScopeKind = ScopeKind.ALL
    category: Optional[str] = None
    module_names: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_selector(self) -> "ExecutionScope":
        if self.kind == ScopeKind.CATEGORY and not self.category:
            raise ValueError("category scope requires a category")
        return self

    @classmethod
    def all(cls) -> "ExecutionScope":
        return cls(kind=ScopeKind.ALL)

    @classmethod
    def for_category(cls, category: Union[ModuleCategory, str]) -> "ExecutionScope":
        value = category.value if isinstance(category, ModuleCategory) else category
        return cls(kind=ScopeKind.CATEGORY, category=value)

    @classmethod
    def named(cls, names: list[str]) -> "ExecutionScope":
        return cls(kind=ScopeKind.NAMED, module_names=list(names))


class FailureReason(str, Enum):
    """Why a requested module contributed no output to a run."""

    UNMET_DEPENDENCY = "unmet_dependency"
    CAN_RUN_FAILED = "can_run_failed"
    TIMEOUT = "timeout"
    EXECUTION_FAILURE = "execution_failure"
    VALIDATION_FAILURE = "validation_failure"


class ModuleFailure(BaseModel):
    module_name: str
    reason: FailureReason
    detail: str = ""
    stage_number: Optional[int] = Field(
        default=None,
        description="Stage the module was planned into (None if never scheduled)",
    )


@dataclass
class ExecutionStage:
    """Modules that run together once all earlier stages have settled."""

    stage_number: int
    modules: list[AnalysisModule]
    # Dependency names satisfied by earlier stages
    dependencies: list[str] = field(default_factory=list)

    @property
    def module_names(self) -> list[str]:
        return [m.metadata.name for m in self.modules]


@dataclass
class ExecutionPlan:
    stages: list[ExecutionStage] = field(default_factory=list)
    unscheduled: list[AnalysisModule] = field(default_factory=list)

    @property
    def total_modules(self) -> int:
        return sum(len(s.modules) for s in self.stages)

    @property
    def estimated_time_ms(self) -> int:
        return len(self.stages) * ESTIMATED_STAGE_TIME_MS

    @property
    def unscheduled_names(self) -> list[str]:
        return [m.metadata.name for m in self.unscheduled]

    def stage_names(self) -> list[list[str]]:
        return [s.module_names for s in self.stages]
