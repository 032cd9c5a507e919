"""Tests for request parameter normalization."""

import pytest

from mcp_bridge.errors import ConfigurationError
from mcp_bridge.params import normalize_params


class TestParamsNormalization:
    """Test parameter normalization functionality."""

    def test_basic_params_normalization(self):
        """Test basic parameter normalization with core parameters."""
        params = normalize_params(
            {
                "temperature": 0.7,
                "max_tokens": 100,
                "top_p": 0.9,
                "frequency_penalty": 0.5,
                "presence_penalty": 0.2,
            }
        )

        assert params["temperature"] == 0.7
        assert params["max_tokens"] == 100
        assert params["top_p"] == 0.9
        assert params["frequency_penalty"] == 0.5
        assert params["presence_penalty"] == 0.2
        assert params["extra"] == {}

    def test_extra_params_handling(self):
        """Unknown keys move into extra."""
        params = normalize_params(
            {"temperature": 0.7, "reasoning_effort": "minimal", "verbosity": "low"}
        )

        assert params["temperature"] == 0.7
        assert params["extra"] == {"reasoning_effort": "minimal", "verbosity": "low"}

    def test_none_values_are_dropped(self):
        params = normalize_params(
            {"temperature": 0.7, "max_tokens": None, "reasoning_effort": "minimal"}
        )

        assert "max_tokens" not in params
        assert params["extra"] == {"reasoning_effort": "minimal"}

    def test_existing_extra_dict_merge(self):
        """Explicit extra wins over moved keys."""
        params = normalize_params(
            {
                "temperature": 0.7,
                "verbosity": "low",
                "extra": {"verbosity": "high", "custom": "value"},
            }
        )

        assert params["temperature"] == 0.7
        assert params["extra"] == {"verbosity": "high", "custom": "value"}

    def test_empty_normalization(self):
        assert normalize_params({}) == {"extra": {}}
        assert normalize_params(None) == {"extra": {}}

    def test_edge_case_values(self):
        """Falsy but meaningful values survive."""
        params = normalize_params({"temperature": 0.0, "max_tokens": 0, "stop": []})

        assert params["temperature"] == 0.0
        assert params["max_tokens"] == 0
        assert params["stop"] == []

    @pytest.mark.parametrize("key", ["tools", "tool_choice", "messages", "model", "stream"])
    def test_bridge_owned_keys_are_rejected(self, key):
        with pytest.raises(ConfigurationError) as exc_info:
            normalize_params({key: "anything"})
        assert key in str(exc_info.value)

    def test_bridge_owned_keys_rejected_inside_extra(self):
        with pytest.raises(ConfigurationError):
            normalize_params({"extra": {"tools": []}})

    def test_non_dict_params(self):
        with pytest.raises(ConfigurationError):
            normalize_params([("temperature", 0.1)])
