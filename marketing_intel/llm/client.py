"""Shared async client for the Anthropic Claude API.

Used by prompt-driven analysis modules. Calls are plain coroutines, so the
orchestrator's per-module timeout cancels an in-flight request rather than
leaving it running in the background.
"""

import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Optional

import anthropic

logger = logging.getLogger(__name__)

DEFAULT_ANALYSIS_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_MAX_TOKENS = 4000


def analysis_model() -> str:
    return os.environ.get("ANALYSIS_MODEL", DEFAULT_ANALYSIS_MODEL)


def analysis_max_tokens() -> int:
    return int(os.environ.get("ANALYSIS_MAX_TOKENS", DEFAULT_MAX_TOKENS))


@dataclass
class LLMCallResult:
    """Normalized response from a model call."""

    content: str
    model_id: str
    input_tokens: int
    output_tokens: int
    duration_ms: int


def get_async_anthropic_client() -> anthropic.AsyncAnthropic:
    """Create an async Anthropic client from ANTHROPIC_API_KEY.

    Raises:
        RuntimeError: If ANTHROPIC_API_KEY is not set
    """
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise RuntimeError(
            "LLM service unavailable. Set ANTHROPIC_API_KEY environment variable."
        )
    return anthropic.AsyncAnthropic(api_key=api_key)


def parse_llm_json_response(raw_text: str) -> dict:
    """Parse JSON from an LLM response, handling markdown code fences.

    Args:
        raw_text: Raw text from LLM response

    Returns:
        Parsed dict from JSON

    Raises:
        json.JSONDecodeError: If the text cannot be parsed as JSON
        ValueError: If the JSON is not an object
    """
    content = raw_text.strip()

    # Strip leading markdown fence (```json or ```)
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]

    # Strip trailing fence
    if content.endswith("```"):
        content = content.rsplit("```", 1)[0]

    parsed = json.loads(content.strip())
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


async def call_model(
    prompt: str,
    client: Optional[anthropic.AsyncAnthropic] = None,
    model: Optional[str] = None,
    max_tokens: Optional[int] = None,
    system_prompt: Optional[str] = None,
    label: str = "",
) -> LLMCallResult:
    """Send one user message to Claude and return the text reply.

    Args:
        prompt: The user message content
        client: Async client (default: built from ANTHROPIC_API_KEY)
        model: Model id (default: ANALYSIS_MODEL env or Haiku)
        max_tokens: Maximum tokens in response
        system_prompt: Optional system prompt
        label: Tag for log lines (usually the module name)

    Returns:
        LLMCallResult with the concatenated text blocks of the reply
    """
    client = client or get_async_anthropic_client()
    model = model or analysis_model()

    kwargs = {
        "model": model,
        "max_tokens": max_tokens or analysis_max_tokens(),
        "messages": [{"role": "user", "content": prompt}],
    }
    if system_prompt:
        kwargs["system"] = system_prompt

    start = time.time()
    response = await client.messages.create(**kwargs)
    duration_ms = int((time.time() - start) * 1000)

    text = "".join(
        block.text for block in response.content if getattr(block, "type", "text") == "text"
    )
    logger.debug(
        f"[{label or model}] model call complete in {duration_ms}ms "
        f"({response.usage.input_tokens} in / {response.usage.output_tokens} out)"
    )
    return LLMCallResult(
        content=text,
        model_id=model,
        input_tokens=response.usage.input_tokens,
        output_tokens=response.usage.output_tokens,
        duration_ms=duration_ms,
    )
