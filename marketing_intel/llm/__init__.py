"""LLM client helpers."""

from marketing_intel.llm.client import (
    LLMCallResult,
    call_model,
    get_async_anthropic_client,
    parse_llm_json_response,
)

__all__ = [
    "LLMCallResult",
    "call_model",
    "get_async_anthropic_client",
    "parse_llm_json_response",
]
