"""Base LLM interface."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from ..errors import ModelError

if TYPE_CHECKING:
    from ..conversation.models import Turn
    from ..debug.trace import RequestTrace

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 200


@dataclass
class ToolCall:
    """A function call requested by the model."""

    id: str
    name: str
    arguments: Dict[str, Any]


@dataclass
class LLMResponse:
    """One model turn: text, tool calls, or both."""

    text: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)


class BaseLLM(ABC):
    """Abstract base class for LLM providers.

    ``generate`` is the only entry point callers use. It records the request
    and response on the caller's trace and turns any provider failure into
    ``ModelError``. Instances hold no per-request state, so one model can
    serve several sessions at once.
    """

    @staticmethod
    def _record(
        trace: Optional["RequestTrace"],
        event_name: str,
        source: str,
        target: str,
        summary: str,
        metadata: Dict[str, Any],
    ):
        if not trace:
            return
        from ..debug.trace import TraceEventType

        trace.add_event(TraceEventType[event_name], source, target, summary, metadata=metadata)

    async def generate(
        self,
        turns: Sequence["Turn"],
        tools: Optional[List[Dict[str, Any]]] = None,
        trace: Optional["RequestTrace"] = None,
        source_name: str = "llm",
        **kwargs,
    ) -> LLMResponse:
        """
        Produce the next model turn for a conversation.

        Args:
            turns: Full history, system turn first
            tools: Function schemas the model may call
            trace: Request trace the call is recorded on, if any
            source_name: Calling component, for trace attribution
            **kwargs: Provider-specific options

        Returns:
            LLMResponse with text and/or tool calls

        Raises:
            ModelError: If the provider call fails for any reason
        """
        model = self.get_model_name()
        last = turns[-1].content if turns else ""
        self._record(
            trace,
            "LLM_REQUEST",
            source_name,
            model,
            f"LLM request ({len(turns)} turns)",
            {"model": model, "last_turn_preview": last[:PREVIEW_CHARS], "tool_count": len(tools or [])},
        )

        try:
            response = await self._generate_impl(turns, tools, **kwargs)
        except ModelError:
            raise
        except Exception as e:
            logger.error(f"{model} request failed: {e}")
            self._record(trace, "ERROR", model, source_name, "LLM request failed", {"error": str(e)})
            raise ModelError(f"{model} request failed: {e}") from e

        text = response.text or ""
        self._record(
            trace,
            "LLM_RESPONSE",
            model,
            source_name,
            f"LLM response (length: {len(text)})",
            {"tool_call_count": len(response.tool_calls), "response_preview": text[:PREVIEW_CHARS]},
        )
        return response

    @abstractmethod
    async def _generate_impl(
        self,
        turns: Sequence["Turn"],
        tools: Optional[List[Dict[str, Any]]] = None,
        **kwargs,
    ) -> LLMResponse:
        """Provider call behind ``generate``. May raise anything."""
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        pass
