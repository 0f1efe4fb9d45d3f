"""Gemini LLM implementation."""

import json
import logging
import re
import uuid
from typing import Any, Dict, List, Optional, Sequence

import google.genai as genai

from ..conversation.models import Turn, TurnRole
from .base import BaseLLM, LLMResponse, ToolCall

logger = logging.getLogger(__name__)


class GeminiLLM(BaseLLM):
    """Gemini LLM implementation for Google Gemini models."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.7,
        max_tokens: int = 2048,
        safety_settings: Optional[dict] = None,
    ):
        """
        Initialize Gemini LLM.

        Args:
            api_key: Gemini API key
            model: Model name (e.g., "gemini-2.0-flash")
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            safety_settings: Optional safety settings
        """
        super().__init__()
        self.api_key = api_key
        self.model_name = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.safety_settings = safety_settings

        self.client = genai.Client(api_key=api_key)

    def build_contents(self, turns: Sequence[Turn]) -> List[Dict[str, Any]]:
        """
        Convert a conversation history to Gemini contents.

        The system turn is left out; it travels as ``system_instruction`` in
        the generation config. A model turn that requested a tool becomes a
        ``function_call`` part and the turn answering it becomes a
        ``function_response`` part.

        Args:
            turns: Conversation history

        Returns:
            List of content dictionaries
        """
        contents: List[Dict[str, Any]] = []
        for turn in turns:
            if turn.role == TurnRole.SYSTEM:
                continue
            if turn.role == TurnRole.USER:
                contents.append({"role": "user", "parts": [{"text": turn.content}]})
            elif turn.tool_call:
                parts: List[Dict[str, Any]] = []
                if turn.content:
                    parts.append({"text": turn.content})
                parts.append(
                    {
                        "function_call": {
                            "name": turn.tool_call.name,
                            "args": turn.tool_call.arguments,
                        }
                    }
                )
                contents.append({"role": "model", "parts": parts})
            elif turn.tool_result:
                contents.append(
                    {
                        "role": "user",
                        "parts": [
                            {
                                "function_response": {
                                    "name": turn.tool_result.name,
                                    "response": {"result": turn.content},
                                }
                            }
                        ],
                    }
                )
            elif turn.content:
                contents.append({"role": "model", "parts": [{"text": turn.content}]})
        return contents

    @staticmethod
    def system_instruction(turns: Sequence[Turn]) -> Optional[str]:
        """Text of the system turns, if the history has any."""
        texts = [turn.content for turn in turns if turn.role == TurnRole.SYSTEM]
        return "\n\n".join(texts) if texts else None

    def build_config(
        self,
        tools: Optional[List[Dict[str, Any]]] = None,
        system_instruction: Optional[str] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Build the generation config, including function declarations."""
        config: Dict[str, Any] = {
            "temperature": kwargs.get("temperature", self.temperature),
            "max_output_tokens": kwargs.get("max_tokens", self.max_tokens),
        }

        if system_instruction:
            config["system_instruction"] = system_instruction

        if self.safety_settings:
            config["safety_settings"] = self.safety_settings

        if tools:
            function_declarations = []
            for tool in tools:
                declaration = {
                    "name": tool["name"],
                    "description": tool.get("description", ""),
                }
                parameters = tool.get("parameters") or {}
                # Gemini rejects OBJECT schemas without properties
                if parameters.get("properties"):
                    declaration["parameters"] = parameters
                function_declarations.append(declaration)
            config["tools"] = [{"function_declarations": function_declarations}]

        return config

    async def _generate_impl(
        self,
        turns: Sequence[Turn],
        tools: Optional[List[Dict[str, Any]]] = None,
        **kwargs,
    ) -> LLMResponse:
        """
        Generate a response from Gemini.

        Args:
            turns: Conversation history
            tools: Optional list of tool schemas for function calling
            **kwargs: Additional parameters (temperature, max_tokens)

        Returns:
            LLMResponse with text and/or tool calls
        """
        response = await self.client.aio.models.generate_content(
            model=self.model_name,
            contents=self.build_contents(turns),
            config=self.build_config(tools, system_instruction=self.system_instruction(turns), **kwargs),
        )
        return self.parse_response(response)

    def parse_response(self, response: Any) -> LLMResponse:
        """Extract text and function calls from a Gemini response."""
        tool_calls: List[ToolCall] = []
        text_parts: List[str] = []

        candidates = getattr(response, "candidates", None) or []
        if candidates:
            content = getattr(candidates[0], "content", None)
            for part in getattr(content, "parts", None) or []:
                fc = getattr(part, "function_call", None)
                if fc:
                    tool_calls.append(
                        ToolCall(
                            id=getattr(fc, "id", None) or str(uuid.uuid4()),
                            name=fc.name,
                            arguments=dict(fc.args) if fc.args else {},
                        )
                    )
                elif getattr(part, "text", None):
                    text_parts.append(part.text)

        text = "".join(text_parts) or None

        # Blocked or empty candidates carry no parts
        if text is None and not tool_calls and candidates:
            text = getattr(response, "text", None)

        # The model sometimes writes the tool call as JSON text
        if not tool_calls and text:
            parsed_tool_call = self._parse_tool_call_from_text(text)
            if parsed_tool_call:
                tool_calls.append(parsed_tool_call)
                text = None

        return LLMResponse(text=text, tool_calls=tool_calls)

    def _parse_tool_call_from_text(self, text: str) -> Optional[ToolCall]:
        """
        Attempt to parse a tool call from text response.

        Expected format: ``{"name": "tool_name", "parameters": {...}}`` (or
        ``"arguments"``), optionally surrounded by other text.

        Args:
            text: Text response from the model

        Returns:
            ToolCall if successfully parsed, None otherwise
        """
        text = text.strip()

        json_match = re.search(r'\{[^{}]*"name"[^{}]*"(?:parameters|arguments)"[^{}]*\{.*\}\s*\}', text, re.DOTALL)
        if json_match:
            text = json_match.group(0)

        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return None

        if not isinstance(data, dict) or "name" not in data:
            return None
        if "parameters" not in data and "arguments" not in data:
            return None

        parameters = data.get("parameters", data.get("arguments")) or {}
        if isinstance(parameters, str):
            try:
                parameters = json.loads(parameters)
            except json.JSONDecodeError:
                return None
        if not isinstance(parameters, dict):
            return None

        logger.debug(f"Parsed tool call from text: {data['name']} with args {parameters}")

        return ToolCall(
            id=str(uuid.uuid4()),
            name=str(data["name"]),
            arguments=parameters,
        )

    def get_model_name(self) -> str:
        """Get the model name."""
        return self.model_name
