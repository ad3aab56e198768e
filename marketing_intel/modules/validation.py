"""Structural validation of module output."""

import logging
from typing import Any

from pydantic import BaseModel

from .schemas import Insight, ModuleOutput, Recommendation

logger = logging.getLogger(__name__)


def output_problems(output: Any) -> list[str]:
    """List the structural problems of a candidate module output.

    Never mutates the candidate. An empty list means the output is acceptable.
    """
    if not isinstance(output, ModuleOutput):
        return [f"expected ModuleOutput, got {type(output).__name__}"]

    problems: list[str] = []
    if not output.module_name:
        problems.append("module_name is empty")
    if not output.category:
        problems.append("category is empty")

    if output.analysis is None or not isinstance(output.analysis, (dict, list, BaseModel)):
        problems.append("analysis must be a structured value")

    if not isinstance(output.insights, list):
        problems.append("insights must be a list")
    elif not all(isinstance(i, Insight) for i in output.insights):
        problems.append("insights must contain Insight records")

    if not isinstance(output.recommendations, list):
        problems.append("recommendations must be a list")
    elif not all(isinstance(r, Recommendation) for r in output.recommendations):
        problems.append("recommendations must contain Recommendation records")

    score = output.confidence_score
    if not isinstance(score, (int, float)) or isinstance(score, bool) or not 0 <= score <= 1:
        problems.append(f"confidence_score {score!r} outside [0, 1]")

    return problems


def validate_module_output(output: Any) -> bool:
    """Return True if the candidate passes the structural check."""
    problems = output_problems(output)
    if problems:
        logger.debug(f"Output rejected: {'; '.join(problems)}")
    return not problems
