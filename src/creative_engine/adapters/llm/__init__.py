"""LLM provider adapters."""

from creative_engine.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from creative_engine.adapters.llm.openai import OpenAIProvider
from creative_engine.adapters.llm.stub import StubLLMProvider

__all__ = [
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "StubLLMProvider",
]
