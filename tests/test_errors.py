import httpx
import openai

from mcp_bridge.errors import ConfigurationError, ProviderError, ToolNotFound, classify_error


def _status_error(cls, status):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return cls("upstream said no", response=httpx.Response(status, request=request), body=None)


def test_rate_limit():
    err = classify_error(_status_error(openai.RateLimitError, 429))
    assert str(err).startswith("Rate-limit exceeded")
    assert "upstream said no" in str(err)


def test_api_status():
    err = classify_error(_status_error(openai.BadRequestError, 400))
    assert str(err).startswith("API error (400)")


def test_connection():
    err = classify_error(httpx.ConnectError("refused"))
    assert str(err).startswith("Connection problem")


def test_unknown_exception_keeps_original():
    original = ValueError("odd")
    err = classify_error(original)

    assert isinstance(err, ProviderError)
    assert err.original_exc is original
    assert err.__cause__ is original
    assert str(err) == "ValueError: odd"


def test_provider_error_passes_through():
    err = ProviderError("already wrapped")
    assert classify_error(err) is err


def test_structured_form():
    assert ConfigurationError("no url").to_dict() == {"code": "configuration_error", "message": "no url"}
    assert ToolNotFound("x").name == "x"
