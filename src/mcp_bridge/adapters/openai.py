"""OpenAI adapter for pure request/response transformations."""

from __future__ import annotations

import json
from typing import Any, Sequence

from openai.types.chat import ChatCompletion

from mcp_bridge.naming import sanitize
from mcp_bridge.types import ChatMessage, ChatResponse, ToolCallRequest, ToolCallResult


class OpenAIRequestAdapter:
    """Adapter for converting between generic format and OpenAI chat-completions format."""

    # round 2 goes out without tools so the model answers in text
    resend_tools = False

    def to_provider(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Convert generic messages, normalized params and tool definitions to an OpenAI request."""
        openai_messages: list[dict[str, Any]] = []
        for msg in messages:
            openai_msg: dict[str, Any] = {"role": msg["role"]}

            if msg.get("content") is not None:
                openai_msg["content"] = msg["content"]

            # Handle tool calls (for assistant messages with function calls)
            if msg.get("tool_calls"):
                openai_msg["tool_calls"] = msg["tool_calls"]
                # content must be null when tool_calls is present and there is no text
                if "content" not in openai_msg:
                    openai_msg["content"] = None

            if msg.get("tool_call_id"):
                openai_msg["tool_call_id"] = msg["tool_call_id"]

            if msg.get("name"):
                openai_msg["name"] = msg["name"]

            if "content" not in openai_msg and not openai_msg.get("tool_calls"):
                openai_msg["content"] = ""

            openai_messages.append(openai_msg)

        base_params = dict(params)
        base_params.pop("stream", None)
        extras = base_params.pop("extra", {})
        for k, v in extras.items():
            base_params.setdefault(k, v)

        request: dict[str, Any] = {"messages": openai_messages, **base_params}
        if tools:
            request["tools"] = list(tools)
            request["tool_choice"] = "auto"
        else:
            # only meaningful alongside tools
            request.pop("parallel_tool_calls", None)
        return request

    def from_provider(self, raw: ChatCompletion) -> ChatResponse:
        """Convert OpenAI response to unified ChatResponse."""
        content = ""
        tool_calls = None

        if raw.choices and raw.choices[0].message:
            message = raw.choices[0].message
            content = message.content or ""

            if message.tool_calls:
                tool_calls = [
                    ToolCallRequest(
                        id=tc.id,
                        name=tc.function.name,
                        arguments=_parse_arguments(tc.function.arguments),
                    )
                    for tc in message.tool_calls
                    if tc.type == "function"
                ] or None

        return ChatResponse(
            content=content,
            tool_calls=tool_calls,
            raw=raw,
            assistant_message=self.assistant_message_from(raw),
        )

    def assistant_message_from(self, raw: ChatCompletion) -> ChatMessage:
        """Convert OpenAI response to assistant ChatMessage."""
        if not raw.choices or not raw.choices[0].message:
            return {"role": "assistant", "content": ""}

        message = raw.choices[0].message
        chat_message: ChatMessage = {"role": "assistant"}

        if message.content:
            chat_message["content"] = message.content

        if message.tool_calls:
            chat_message["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": tc.type,
                    "function": {
                        "name": tc.function.name,
                        "arguments": tc.function.arguments,
                    },
                }
                for tc in message.tool_calls
                if tc.type == "function"
            ]
            if "content" not in chat_message:
                chat_message["content"] = None
        elif "content" not in chat_message:
            chat_message["content"] = ""

        return chat_message

    def tool_result_message(self, result: ToolCallResult) -> ChatMessage:
        """Convert ToolCallResult to an OpenAI ``role=tool`` message."""
        return {
            "role": "tool",
            "tool_call_id": result.id,
            "name": sanitize(result.tool_name),
            "content": result.content,
        }

    def tool_result_messages(self, results: Sequence[ToolCallResult]) -> list[ChatMessage]:
        return [self.tool_result_message(r) for r in results]


def _parse_arguments(raw_args: Any) -> dict[str, Any]:
    """Decode function-call arguments; malformed JSON yields an empty dict."""
    if isinstance(raw_args, dict):
        return raw_args
    if isinstance(raw_args, str) and raw_args.strip():
        try:
            parsed = json.loads(raw_args)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}
