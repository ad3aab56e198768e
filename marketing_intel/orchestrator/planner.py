"""Dependency planner - groups modules into execution stages.

Repeated leveling (Kahn-style): each pass collects every remaining module
whose dependencies were all placed in strictly earlier stages. Modules whose
dependencies can never be met (missing from the request, or cyclic) are
left unscheduled instead of failing the run.

Example:
    modules: A, B (deps: A), C, D (deps: B, C)
    - Stage 0: [A, C]
    - Stage 1: [B]
    - Stage 2: [D]
"""

import logging

from marketing_intel.modules.base import AnalysisModule

from .schemas import ExecutionPlan, ExecutionStage

logger = logging.getLogger(__name__)


def build_execution_plan(modules: list[AnalysisModule]) -> ExecutionPlan:
    """Build a staged plan for `modules`.

    Input order is preserved within each stage. A module name listed more
    than once is planned once, at its first position.
    """
    pending: list[AnalysisModule] = []
    seen: set[str] = set()
    for module in modules:
        if module.metadata.name in seen:
            logger.debug(f"Ignoring duplicate module in plan request: {module.metadata.name}")
            continue
        seen.add(module.metadata.name)
        pending.append(module)

    processed: set[str] = set()
    stages: list[ExecutionStage] = []

    while pending:
        # Only dependencies resolved before this stage count, never siblings.
        ready = [
            m for m in pending
            if all(dep in processed for dep in m.metadata.dependencies)
        ]
        if not ready:
            break

        satisfied: list[str] = []
        for module in ready:
            for dep in module.metadata.dependencies:
                if dep not in satisfied:
                    satisfied.append(dep)

        stages.append(
            ExecutionStage(
                stage_number=len(stages),
                modules=ready,
                dependencies=satisfied,
            )
        )
        processed.update(m.metadata.name for m in ready)
        pending = [m for m in pending if m.metadata.name not in processed]

    plan = ExecutionPlan(stages=stages, unscheduled=pending)

    for module in plan.unscheduled:
        unmet = [d for d in module.metadata.dependencies if d not in processed]
        logger.warning(
            f"Cannot schedule module {module.metadata.name}: "
            f"unmet or cyclic dependencies {unmet}"
        )

    logger.info(
        f"Execution plan: {len(plan.stages)} stages, {plan.total_modules} modules "
        f"{plan.stage_names()}"
    )
    return plan
