"""Tests for the LLM clients and the create_llm factory, over a mocked HTTP transport."""

import httpx
import openai
import pytest

from fakes import ANTHROPIC_MESSAGES, OPENAI_CHAT, anthropic_message, openai_completion
from mcp_bridge.client import DEFAULT_SYSTEM_PROMPT, AnthropicLLM, OpenAILLM, create_llm
from mcp_bridge.errors import ConfigurationError, ProviderError
from mcp_bridge.provider import Provider, ProviderConfig
from mcp_bridge.settings import BridgeSettings

USER = [{"role": "user", "content": "What's the weather in Paris?"}]


class TestComplete:
    @pytest.mark.asyncio
    async def test_openai_injects_default_system_prompt(self, fake_http):
        fake_http.add(*OPENAI_CHAT, openai_completion("Hi!"))
        llm = OpenAILLM.from_client("gpt-4o", fake_http.openai())

        response = await llm.complete(USER, None)

        body = fake_http.bodies(*OPENAI_CHAT)[0]
        assert response.content == "Hi!"
        assert body["model"] == "gpt-4o"
        assert body["messages"][0] == {"role": "system", "content": DEFAULT_SYSTEM_PROMPT}
        assert body["messages"][1] == USER[0]
        assert "tools" not in body

    @pytest.mark.asyncio
    async def test_caller_system_message_is_kept(self, fake_http):
        fake_http.add(*OPENAI_CHAT, openai_completion("ok"))
        llm = OpenAILLM.from_client("gpt-4o", fake_http.openai())

        await llm.complete([{"role": "system", "content": "Be terse."}, *USER], None)

        messages = fake_http.bodies(*OPENAI_CHAT)[0]["messages"]
        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[0]["content"] == "Be terse."

    @pytest.mark.asyncio
    async def test_explicit_system_prompt(self, fake_http):
        fake_http.add(*ANTHROPIC_MESSAGES, anthropic_message("ok"))
        llm = AnthropicLLM.from_client("claude-3-5-sonnet-20241022", fake_http.anthropic())

        await llm.complete(USER, None, "Answer in French.")

        body = fake_http.bodies(*ANTHROPIC_MESSAGES)[0]
        assert body["system"] == "Answer in French."
        assert body["messages"] == USER

    @pytest.mark.asyncio
    async def test_anthropic_request(self, fake_http):
        fake_http.add(*ANTHROPIC_MESSAGES, anthropic_message("Sunny"))
        llm = AnthropicLLM.from_client("claude-3-5-sonnet-20241022", fake_http.anthropic(), max_tokens=512)

        response = await llm.complete(USER, [{"name": "weather", "description": "", "input_schema": {"type": "object"}}])

        request = fake_http.sent(*ANTHROPIC_MESSAGES)[0]
        body = fake_http.bodies(*ANTHROPIC_MESSAGES)[0]
        assert response.content == "Sunny"
        assert request.headers["x-api-key"] == "sk-ant-test"
        assert "anthropic-version" in request.headers
        assert body["system"] == DEFAULT_SYSTEM_PROMPT
        assert body["max_tokens"] == 512
        assert body["tools"][0]["name"] == "weather"

    @pytest.mark.asyncio
    async def test_params_flow_into_request(self, fake_http):
        fake_http.add(*OPENAI_CHAT, openai_completion("ok"))
        llm = OpenAILLM.from_client("gpt-4o", fake_http.openai())

        await llm.complete(USER, None, params={"temperature": 0.2, "seed": 7})

        body = fake_http.bodies(*OPENAI_CHAT)[0]
        assert body["temperature"] == 0.2
        assert body["seed"] == 7

    @pytest.mark.asyncio
    async def test_provider_failure_becomes_error_response(self, fake_http):
        fake_http.add(*OPENAI_CHAT, httpx.Response(500, json={"error": {"message": "upstream exploded"}}))
        llm = OpenAILLM.from_client("gpt-4o", fake_http.openai())

        response = await llm.complete(USER, None)

        assert response.is_error
        assert "upstream exploded" in response.error
        with pytest.raises(ProviderError) as exc_info:
            response.raise_for_error()
        assert isinstance(exc_info.value.original_exc, openai.InternalServerError)
        assert exc_info.value.__cause__ is exc_info.value.original_exc
        assert exc_info.value.to_dict()["code"] == "provider_error"


class TestCreateLLM:
    def test_uses_supplied_client_and_default_model(self, fake_http):
        llm = create_llm(ProviderConfig(Provider.OPENAI, client=fake_http.openai()))

        assert isinstance(llm, OpenAILLM)
        assert llm.model == BridgeSettings().default_openai_model
        assert llm.api_key == "sk-test"

    def test_anthropic_max_tokens_from_settings(self, fake_http):
        config = ProviderConfig(Provider.ANTHROPIC, model="claude-x", client=fake_http.anthropic())
        llm = create_llm(config, BridgeSettings(max_tokens=1000))

        assert isinstance(llm, AnthropicLLM)
        assert llm.model == "claude-x"
        assert llm.adapter.max_tokens == 1000

    def test_supplied_client_ignores_transport_options(self, fake_http):
        client = fake_http.openai()
        llm = create_llm(ProviderConfig(Provider.OPENAI, client=client), timeout=5.0, max_retries=3)

        assert isinstance(llm, OpenAILLM)
        assert llm._client is client

    def test_supplied_anthropic_client_keeps_max_tokens(self, fake_http):
        config = ProviderConfig(Provider.ANTHROPIC, client=fake_http.anthropic())
        llm = create_llm(config, timeout=5.0, max_tokens=256)

        assert llm.adapter.max_tokens == 256

    def test_explicit_api_key(self):
        llm = create_llm(ProviderConfig(Provider.ANTHROPIC, api_key="sk-ant-explicit"))
        assert llm.api_key == "sk-ant-explicit"

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        llm = create_llm(ProviderConfig(Provider.OPENAI))
        assert llm.api_key == "sk-env"

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            create_llm(ProviderConfig(Provider.ANTHROPIC))

    def test_unsupported_provider(self):
        with pytest.raises(ConfigurationError):
            create_llm(ProviderConfig("gemini", api_key="x"))

    def test_from_client_type_check(self, fake_http):
        with pytest.raises(TypeError):
            OpenAILLM.from_client("gpt-4o", fake_http.anthropic())
