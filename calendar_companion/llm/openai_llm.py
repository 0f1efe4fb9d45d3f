"""OpenAI LLM implementation."""

import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI

from ..conversation.models import Turn, TurnRole
from .base import BaseLLM, LLMResponse, ToolCall

logger = logging.getLogger(__name__)


class OpenAILLM(BaseLLM):
    """OpenAI LLM implementation for GPT chat models."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 2048,
        organization_id: Optional[str] = None,
    ):
        """
        Initialize OpenAI LLM.

        Args:
            api_key: OpenAI API key
            model: Model name (e.g., "gpt-4o-mini")
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            organization_id: Optional organization ID
        """
        super().__init__()
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.organization_id = organization_id

        self.client = AsyncOpenAI(
            api_key=api_key,
            organization=organization_id,
        )

    def build_messages(self, turns: Sequence[Turn]) -> List[Dict[str, Any]]:
        """
        Convert a conversation history to chat completion messages.

        Args:
            turns: Conversation history

        Returns:
            List of message dictionaries
        """
        messages: List[Dict[str, Any]] = []
        for turn in turns:
            if turn.role == TurnRole.SYSTEM:
                messages.append({"role": "system", "content": turn.content})
            elif turn.role == TurnRole.USER:
                messages.append({"role": "user", "content": turn.content})
            elif turn.tool_call:
                messages.append(
                    {
                        "role": "assistant",
                        "content": turn.content or None,
                        "tool_calls": [
                            {
                                "id": turn.tool_call.id,
                                "type": "function",
                                "function": {
                                    "name": turn.tool_call.name,
                                    "arguments": json.dumps(turn.tool_call.arguments),
                                },
                            }
                        ],
                    }
                )
            elif turn.tool_result:
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": turn.tool_result.call_id,
                        "content": turn.content,
                    }
                )
            elif turn.content:
                messages.append({"role": "assistant", "content": turn.content})
        return messages

    async def _generate_impl(
        self,
        turns: Sequence[Turn],
        tools: Optional[List[Dict[str, Any]]] = None,
        **kwargs,
    ) -> LLMResponse:
        """
        Generate a response from OpenAI.

        Args:
            turns: Conversation history
            tools: Optional list of tool schemas for function calling
            **kwargs: Additional parameters (temperature, max_tokens, model)

        Returns:
            LLMResponse with text and/or tool calls
        """
        api_params: Dict[str, Any] = {
            "model": kwargs.get("model", self.model),
            "messages": self.build_messages(turns),
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }

        if tools:
            api_params["tools"] = [
                {"type": "function", "function": tool} for tool in tools
            ]

        response = await self.client.chat.completions.create(**api_params)

        if not response.choices:
            return LLMResponse()

        message = response.choices[0].message

        tool_calls = []
        for tc in message.tool_calls or []:
            try:
                arguments = json.loads(tc.function.arguments or "{}")
            except json.JSONDecodeError:
                logger.warning(f"Tool call {tc.function.name} had unparseable arguments")
                arguments = {}
            tool_calls.append(
                ToolCall(
                    id=tc.id or str(uuid.uuid4()),
                    name=tc.function.name,
                    arguments=arguments if isinstance(arguments, dict) else {},
                )
            )

        return LLMResponse(
            text=message.content,
            tool_calls=tool_calls,
        )

    def get_model_name(self) -> str:
        """Get the model name."""
        return self.model
