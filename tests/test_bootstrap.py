"""Tests for component wiring."""
import pytest

from counsel_ai.ai.config import AIConfig
from counsel_ai.ai.provider import GeminiProvider
from counsel_ai.ai.usage import UsageRecorder
from counsel_ai.bootstrap import MissingAPIKeyError, build_gateway, build_similarity_stack
from counsel_ai.config.settings import Settings


class TestBuildGateway:
    def test_requires_api_key(self, test_session_factory):
        with pytest.raises(MissingAPIKeyError):
            build_gateway(Settings(gemini_api_key=""), AIConfig(), test_session_factory)

    def test_wires_provider_and_usage(self, test_session_factory):
        gateway = build_gateway(Settings(gemini_api_key="test-key"), AIConfig(), test_session_factory)
        assert isinstance(gateway.provider, GeminiProvider)
        assert isinstance(gateway.usage_callback, UsageRecorder)


class TestBuildSimilarityStack:
    def test_shared_components(self, gateway, test_session_factory):
        config = AIConfig(similarity={"calls_per_minute": 30}, retry={"max_attempts": 5})
        stack = build_similarity_stack(gateway, test_session_factory, config)

        assert stack.sweep.rate_limiter is stack.rate_limiter
        assert stack.rate_limiter.min_interval_ms == 2000
        assert stack.sweep.comparator is stack.comparator
        assert stack.service.comparator is stack.comparator
        assert stack.service.cache is stack.cache
        assert stack.comparator.retry_options.max_attempts == 5
        assert stack.comparator.gateway is gateway

    def test_only_sweep_is_rate_limited(self, gateway, test_session_factory):
        stack = build_similarity_stack(gateway, test_session_factory, AIConfig())

        assert stack.sweep.rate_limiter is stack.rate_limiter
        assert not hasattr(stack.service, "rate_limiter")
