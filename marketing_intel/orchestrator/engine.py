"""Execution engine: runs a staged plan and synthesizes the results.

The engine is the entry point for an analysis run. It:

1. Resolves the requested scope against the module registry
2. Builds a staged plan from declared dependencies
3. Runs stages one after another; modules inside a stage run concurrently,
   each under its own timeout, and the stage advances once all have settled
4. Gives each stage a copy of the context enriched with the outputs
   accepted in earlier stages
5. Checks can_run before and validate after every module call
6. Hands the accepted outputs to the synthesizer

A module that times out, raises, fails can_run or fails validation is
dropped from the run with a logged reason. Only an unknown scope is a hard
error, and it is raised before anything executes.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import ValidationError

from marketing_intel.modules.base import AnalysisModule
from marketing_intel.modules.registry import ModuleRegistry, UnknownScopeError
from marketing_intel.modules.schemas import BusinessContext, ModuleCategory, ModuleOutput
from marketing_intel.modules.validation import output_problems
from marketing_intel.synthesis.schemas import StrategicSynthesis
from marketing_intel.synthesis.synthesizer import Synthesizer

from .planner import build_execution_plan
from .schemas import (
    ExecutionPlan,
    ExecutionScope,
    ExecutionStage,
    FailureReason,
    ModuleFailure,
    OrchestratorConfig,
    ScopeKind,
)

logger = logging.getLogger(__name__)


@dataclass
class ModuleRunResult:
    """Outcome of one guarded module execution."""

    module_name: str
    output: Optional[ModuleOutput] = None
    failure: Optional[ModuleFailure] = None


class AnalysisOrchestrator:
    """Runs registered analysis modules and merges their outputs.

    Usage:
        registry = ModuleRegistry()
        orchestrator = AnalysisOrchestrator(registry)
        orchestrator.register_module(SWOTModule())
        synthesis = await orchestrator.run_all(context)
    """

    def __init__(
        self,
        registry: Optional[ModuleRegistry] = None,
        synthesizer: Optional[Synthesizer] = None,
    ):
        self.registry = registry if registry is not None else ModuleRegistry()
        self.synthesizer = synthesizer or Synthesizer()

    def register_module(self, module: AnalysisModule) -> None:
        self.registry.register(module)

    # ------------------------------------------------------------------
    # Scope entry points
    # ------------------------------------------------------------------

    async def run_all(
        self,
        context: BusinessContext,
        config: Optional[OrchestratorConfig] = None,
    ) -> StrategicSynthesis:
        """Run every registered module."""
        return await self.run_scope(ExecutionScope.all(), context, config)

    async def run_by_category(
        self,
        category: Union[ModuleCategory, str],
        context: BusinessContext,
        config: Optional[OrchestratorConfig] = None,
    ) -> StrategicSynthesis:
        """Run the modules of one capability category."""
        return await self.run_scope(ExecutionScope.for_category(category), context, config)

    async def run_named(
        self,
        names: list[str],
        context: BusinessContext,
        config: Optional[OrchestratorConfig] = None,
    ) -> StrategicSynthesis:
        """Run an explicit list of modules.

        Raises:
            UnknownScopeError: If any name is not registered
        """
        return await self.run_scope(ExecutionScope.named(names), context, config)

    def resolve_scope(self, scope: ExecutionScope) -> list[AnalysisModule]:
        """Map a scope to registered modules.

        Raises:
            UnknownScopeError: For unregistered names or unknown categories
        """
        if scope.kind == ScopeKind.ALL:
            return self.registry.list_all()
        if scope.kind == ScopeKind.CATEGORY:
            return self.registry.list_by_category(scope.category)

        unknown = [n for n in scope.module_names if n not in self.registry]
        if unknown:
            raise UnknownScopeError(
                f"Unknown modules requested: {unknown}. "
                f"Registered: {self.registry.list_keys()}"
            )
        return [self.registry.get_validated(n) for n in scope.module_names]

    def plan(self, scope: Optional[ExecutionScope] = None) -> ExecutionPlan:
        """Build the execution plan for a scope without running it."""
        return build_execution_plan(self.resolve_scope(scope or ExecutionScope.all()))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run_scope(
        self,
        scope: ExecutionScope,
        context: BusinessContext,
        config: Optional[OrchestratorConfig] = None,
    ) -> StrategicSynthesis:
        """Plan, execute and synthesize one run.

        Args:
            scope: Which modules to run
            context: Caller's business context (never mutated)
            config: Execution options (default: OrchestratorConfig())

        Returns:
            StrategicSynthesis covering every accepted module output
        """
        config = config or OrchestratorConfig()
        modules = self.resolve_scope(scope)

        start = time.time()
        plan = build_execution_plan(modules)

        failures = [
            ModuleFailure(
                module_name=m.metadata.name,
                reason=FailureReason.UNMET_DEPENDENCY,
                detail=f"dependencies {m.metadata.dependencies} not satisfiable in this run",
            )
            for m in plan.unscheduled
        ]
        outputs: dict[str, ModuleOutput] = {}

        for stage in plan.stages:
            logger.info(
                f"Executing stage {stage.stage_number} "
                f"({len(stage.modules)} modules: {stage.module_names})"
            )
            # Built before the stage starts: siblings never see each other's output
            enriched = context.with_previous_analyses(outputs)
            results = await self._run_stage(stage, enriched, config)

            for result in results:
                if result.output is not None:
                    outputs[result.module_name] = result.output
                elif result.failure is not None:
                    failures.append(result.failure)

        elapsed_ms = int((time.time() - start) * 1000)
        logger.info(
            f"Analysis complete in {elapsed_ms}ms: "
            f"{len(outputs)}/{len(modules)} modules accepted, {len(failures)} dropped"
        )

        return self.synthesizer.synthesize(
            outputs,
            elapsed_ms,
            stages=plan.stage_names(),
            failures=failures,
            unscheduled=plan.unscheduled_names,
        )

    async def _run_stage(
        self,
        stage: ExecutionStage,
        context: BusinessContext,
        config: OrchestratorConfig,
    ) -> list[ModuleRunResult]:
        """Run every module of a stage; results come back in plan order."""
        if config.parallel_within_stage and len(stage.modules) > 1:
            settled = await asyncio.gather(
                *(self._run_module(m, context, config, stage.stage_number) for m in stage.modules),
                return_exceptions=True,
            )
            for outcome in settled:
                # _run_module converts every module error, so only cancellation gets here
                if isinstance(outcome, BaseException):
                    raise outcome
            return list(settled)

        return [
            await self._run_module(m, context, config, stage.stage_number)
            for m in stage.modules
        ]

    async def _run_module(
        self,
        module: AnalysisModule,
        context: BusinessContext,
        config: OrchestratorConfig,
        stage_number: int,
    ) -> ModuleRunResult:
        """Run one module; any error it raises becomes a failure record."""
        name = module.metadata.name
        try:
            return await self._execute_module(module, context, config, stage_number)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Module {name} failed: {e}")
            return _failed(name, stage_number, FailureReason.EXECUTION_FAILURE, f"{type(e).__name__}: {e}")

    async def _execute_module(
        self,
        module: AnalysisModule,
        context: BusinessContext,
        config: OrchestratorConfig,
        stage_number: int,
    ) -> ModuleRunResult:
        """can_run check, timed analyze() call and output validation."""
        name = module.metadata.name

        if not module.can_run(context):
            missing = module.missing_requirements(context)
            logger.warning(f"Skipping module {name}: cannot run, missing {missing}")
            return _failed(name, stage_number, FailureReason.CAN_RUN_FAILED, f"missing {missing}")

        timeout_s = config.timeout_ms / 1000
        try:
            # wait_for cancels analyze() if the deadline wins
            output = await asyncio.wait_for(module.analyze(context), timeout=timeout_s)
        except asyncio.TimeoutError:
            logger.warning(f"Module {name} timed out after {config.timeout_ms:g}ms")
            return _failed(name, stage_number, FailureReason.TIMEOUT, f"exceeded {config.timeout_ms:g}ms")
        except ValidationError as e:
            # Malformed records in the module's reply
            logger.warning(f"Module {name} produced malformed records: {e}")
            return _failed(name, stage_number, FailureReason.VALIDATION_FAILURE, str(e))

        # The engine's structural check always applies; module.validate can only narrow it
        problems = output_problems(output)
        if not problems:
            try:
                if not module.validate(output):
                    problems = ["rejected by module validation"]
            except Exception as e:
                problems = [f"validate raised {type(e).__name__}: {e}"]
        if problems:
            logger.warning(f"Module {name} produced invalid output: {problems}")
            return _failed(name, stage_number, FailureReason.VALIDATION_FAILURE, "; ".join(problems))

        if config.min_confidence is not None and output.confidence_score < config.min_confidence:
            logger.warning(
                f"Module {name} confidence ({output.confidence_score}) below "
                f"threshold {config.min_confidence}"
            )

        logger.info(f"Module {name} completed in {output.execution_time_ms}ms")
        return ModuleRunResult(module_name=name, output=output)


def _failed(name: str, stage_number: int, reason: FailureReason, detail: str) -> ModuleRunResult:
    return ModuleRunResult(
        module_name=name,
        failure=ModuleFailure(
            module_name=name,
            reason=reason,
            detail=detail,
            stage_number=stage_number,
        ),
    )
