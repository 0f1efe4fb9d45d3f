"""LLM abstraction module.

Provider implementations live in ``gemini_llm`` and ``openai_llm`` and are
imported on demand by ``factory.create_llm``.
"""

from .base import BaseLLM, LLMResponse, ToolCall

__all__ = ["BaseLLM", "LLMResponse", "ToolCall"]
