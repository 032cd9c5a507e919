"""Anthropic adapter for pure request/response transformations."""

from __future__ import annotations

import json
from typing import Any, Sequence

from anthropic.types import Message

from mcp_bridge.types import ChatMessage, ChatResponse, ToolCallRequest, ToolCallResult

# Standard params the Messages API does not accept
_UNSUPPORTED_PARAMS = ("seed", "frequency_penalty", "presence_penalty")


def _is_tool_result_turn(msg: dict[str, Any]) -> bool:
    content = msg.get("content")
    return (
        msg.get("role") == "user"
        and isinstance(content, list)
        and bool(content)
        and all(isinstance(b, dict) and b.get("type") == "tool_result" for b in content)
    )


def _tool_use_blocks(tool_calls: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """OpenAI-form ``tool_calls`` as Anthropic ``tool_use`` blocks."""
    blocks = []
    for tc in tool_calls:
        func = tc.get("function") or {}
        raw_args = func.get("arguments")
        if isinstance(raw_args, str):
            try:
                arguments = json.loads(raw_args) if raw_args.strip() else {}
            except json.JSONDecodeError:
                arguments = {}
        else:
            arguments = raw_args or {}
        blocks.append(
            {
                "type": "tool_use",
                "id": tc.get("id"),
                "name": func.get("name"),
                "input": arguments if isinstance(arguments, dict) else {},
            }
        )
    return blocks


class AnthropicRequestAdapter:
    """Adapter for converting between generic format and Anthropic Messages format."""

    # the Messages API rejects tool blocks in history unless tools are declared
    resend_tools = True

    def __init__(self, max_tokens: int = 4096) -> None:
        self.max_tokens = max_tokens

    def to_provider(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Convert generic messages, normalized params and tool definitions to an Anthropic request."""
        anthropic_messages: list[dict[str, Any]] = []
        system_parts: list[Any] = []

        for msg in messages:
            role = msg["role"]

            # Extract system prompt from messages
            if role == "system":
                content = msg.get("content", "")
                if isinstance(content, list):
                    system_parts.extend(content)
                elif content:
                    system_parts.append(str(content))
                continue

            # Handle tool responses (OpenAI form)
            if role == "tool" or msg.get("tool_call_id"):
                block = {
                    "type": "tool_result",
                    "tool_use_id": msg["tool_call_id"],
                    "content": msg.get("content", ""),
                }
                if anthropic_messages and _is_tool_result_turn(anthropic_messages[-1]):
                    anthropic_messages[-1]["content"].append(block)
                else:
                    anthropic_messages.append({"role": "user", "content": [block]})
                continue

            anthropic_msg: dict[str, Any] = {"role": role}
            content = msg.get("content")

            if role == "assistant" and msg.get("tool_calls"):
                blocks: list[dict[str, Any]] = []
                if isinstance(content, str) and content:
                    blocks.append({"type": "text", "text": content})
                elif isinstance(content, list):
                    blocks.extend(content)
                blocks.extend(_tool_use_blocks(msg["tool_calls"]))
                anthropic_msg["content"] = blocks
            elif isinstance(content, (str, list)):
                anthropic_msg["content"] = [dict(b) for b in content] if isinstance(content, list) else content
            else:
                anthropic_msg["content"] = "" if content is None else str(content)

            # consecutive tool-result turns collapse into one user turn
            if _is_tool_result_turn(anthropic_msg) and anthropic_messages and _is_tool_result_turn(
                anthropic_messages[-1]
            ):
                anthropic_messages[-1]["content"].extend(anthropic_msg["content"])
                continue

            anthropic_messages.append(anthropic_msg)

        base_params = dict(params)
        base_params.pop("stream", None)
        extras = base_params.pop("extra", {})

        # Anthropic requires max_tokens
        base_params.setdefault("max_tokens", self.max_tokens)

        if "stop" in base_params:
            stop = base_params.pop("stop")
            base_params["stop_sequences"] = stop if isinstance(stop, list) else [stop]

        if "user" in base_params:
            base_params["metadata"] = {"user_id": base_params.pop("user")}

        for key in _UNSUPPORTED_PARAMS:
            base_params.pop(key, None)

        parallel = base_params.pop("parallel_tool_calls", None)

        if tools:
            anthropic_tools = []
            for tool in tools:
                if tool.get("type") == "function":
                    func = tool["function"]
                    anthropic_tools.append(
                        {
                            "name": func["name"],
                            "description": func.get("description", ""),
                            "input_schema": func.get("parameters", {}),
                        }
                    )
                else:
                    anthropic_tools.append(tool)
            base_params["tools"] = anthropic_tools
            if parallel is False:
                base_params["tool_choice"] = {"type": "auto", "disable_parallel_tool_use": True}

        for k, v in extras.items():
            base_params.setdefault(k, v)

        request: dict[str, Any] = {"messages": anthropic_messages, **base_params}
        if system_parts:
            if all(isinstance(p, str) for p in system_parts):
                request["system"] = "\n\n".join(system_parts)
            else:
                request["system"] = [
                    {"type": "text", "text": p} if isinstance(p, str) else p for p in system_parts
                ]
        return request

    def from_provider(self, raw: Message) -> ChatResponse:
        """Convert Anthropic response to unified ChatResponse."""
        text_parts = []
        tool_calls = []

        for block in raw.content or []:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCallRequest(
                        id=block.id,
                        name=block.name,
                        arguments=dict(block.input) if hasattr(block.input, "items") else {},
                    )
                )

        return ChatResponse(
            content="".join(text_parts),
            tool_calls=tool_calls or None,
            raw=raw,
            assistant_message=self.assistant_message_from(raw),
        )

    def assistant_message_from(self, raw: Message) -> ChatMessage:
        """Convert Anthropic response to assistant ChatMessage."""
        chat_message: ChatMessage = {"role": "assistant"}

        if not raw.content:
            chat_message["content"] = ""
            return chat_message

        text_parts = []
        tool_use_blocks = []

        for block in raw.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_use_blocks.append(
                    {
                        "type": "tool_use",
                        "id": block.id,
                        "name": block.name,
                        "input": dict(block.input) if hasattr(block.input, "items") else {},
                    }
                )

        if tool_use_blocks:
            content_list: list[dict[str, Any]] = []
            if text_parts:
                content_list.append({"type": "text", "text": "".join(text_parts)})
            content_list.extend(tool_use_blocks)
            chat_message["content"] = content_list
        else:
            chat_message["content"] = "".join(text_parts)

        return chat_message

    def tool_result_message(self, result: ToolCallResult) -> ChatMessage:
        """Convert ToolCallResult to an Anthropic user message with one tool_result block."""
        block: dict[str, Any] = {
            "type": "tool_result",
            "tool_use_id": result.id,
            "content": result.content,
        }
        if not result.ok:
            block["is_error"] = True
        return {"role": "user", "content": [block]}

    def tool_result_messages(self, results: Sequence[ToolCallResult]) -> list[ChatMessage]:
        """All results of one round as a single user turn."""
        if not results:
            return []
        blocks = [self.tool_result_message(r)["content"][0] for r in results]
        return [{"role": "user", "content": blocks}]
