"""Prompt-driven analysis modules.

A PromptAnalysisModule renders a Jinja2 prompt from the business context,
sends it to the model and turns the JSON reply into a ModuleOutput.
Concrete modules only supply metadata and prompt text.

Usage:
    class SWOTModule(PromptAnalysisModule):
        metadata = ModuleMetadata(name="swot", category=ModuleCategory.STRATEGY)
        framework_name = "SWOT"
        prompt_template = "Run a SWOT analysis for {{ context.business_name }} ..."
"""

import logging
import time
from typing import Any, Optional

import anthropic
from jinja2 import BaseLoader, Environment, StrictUndefined

from marketing_intel.llm.client import call_model, parse_llm_json_response

from .base import AnalysisModule
from .schemas import BusinessContext, Insight, ModuleOutput, Recommendation

logger = logging.getLogger(__name__)

OUTPUT_INSTRUCTIONS = """
Respond with a single JSON object and nothing else:
{
  "analysis": { ...framework-specific findings... },
  "insights": [
    {"type": "opportunity|threat|recommendation|observation|warning",
     "priority": "critical|high|medium|low",
     "title": "...", "description": "...", "confidence_score": 0.0}
  ],
  "recommendations": [
    {"action": "...", "rationale": "...",
     "priority": "critical|high|medium|low",
     "timeframe": "0-30 days|30-90 days|90-180 days|6-12 months|1+ years",
     "expected_impact": "transformative|high|moderate|low",
     "effort_required": "high|medium|low",
     "metrics": ["..."]}
  ],
  "confidence_score": 0.0
}
"""

_env = Environment(
    loader=BaseLoader(),
    autoescape=False,  # Prompts are plain text
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)
_env.filters["join_lines"] = lambda items: "\n".join(f"- {item}" for item in items)


class PromptAnalysisModule(AnalysisModule):
    """Analysis module backed by a single model call.

    Template variables: `context` (BusinessContext), `metadata`
    (ModuleMetadata) and `dependencies` (declared dependency name -> prior
    output).
    """

    prompt_template: str = ""
    system_prompt: Optional[str] = (
        "You are a senior strategy consultant. Ground every finding in the "
        "business data provided and answer in strict JSON."
    )
    framework_name: Optional[str] = None

    def __init__(
        self,
        client: Optional[anthropic.AsyncAnthropic] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    def render_prompt(self, context: BusinessContext) -> str:
        template = _env.from_string(self.prompt_template)
        dependencies = {
            dep: context.previous_analyses[dep]
            for dep in self.metadata.dependencies
            if dep in context.previous_analyses
        }
        body = template.render(
            context=context,
            metadata=self.metadata,
            dependencies=dependencies,
        )
        return f"{body.strip()}\n{OUTPUT_INSTRUCTIONS}"

    async def analyze(self, context: BusinessContext) -> ModuleOutput:
        start = time.time()
        prompt = self.render_prompt(context)
        result = await call_model(
            prompt,
            client=self.client,
            model=self.model,
            max_tokens=self.max_tokens,
            system_prompt=self.system_prompt,
            label=self.name,
        )
        data = parse_llm_json_response(result.content)
        return self.build_output(data, context, int((time.time() - start) * 1000), result.model_id)

    def build_output(
        self,
        data: dict[str, Any],
        context: BusinessContext,
        execution_time_ms: int,
        model_used: Optional[str] = None,
    ) -> ModuleOutput:
        """Convert a parsed model reply into a ModuleOutput.

        Raises:
            pydantic.ValidationError: If an insight or recommendation is malformed
        """
        insights = [Insight.model_validate(i) for i in data.get("insights") or []]
        recommendations = [
            Recommendation.model_validate(r) for r in data.get("recommendations") or []
        ]
        confidence = data.get("confidence_score")
        if confidence is None:
            confidence = self.calculate_confidence(context)

        logger.debug(
            f"[{self.name}] parsed {len(insights)} insights, "
            f"{len(recommendations)} recommendations"
        )
        return self.create_output(
            analysis=data.get("analysis", {}),
            insights=insights,
            recommendations=recommendations,
            execution_time_ms=execution_time_ms,
            confidence_score=float(confidence),
            framework_name=self.framework_name,
            model_used=model_used,
        )
