"""
Integration tests for the gateway abstraction layer.

Tests the capability registry, configuration loading, error taxonomy,
wire models and prompt construction.
"""
import base64
import dataclasses

import pytest

from genai_gateway.core.interface import BackendKind, Capability, ExtractMode, ImageStyle
from genai_gateway.core.registry import (
    CAPABILITY_TABLE,
    backends_for,
    capabilities_of,
    owns_resources,
    supports,
)
from genai_gateway.core.config import GatewayConfig, TimeoutBudgets, load_config
from genai_gateway.core.errors import (
    ErrorKind,
    GatewayError,
    GatewayAuthenticationError,
    GatewayCapabilityUnavailableError,
    GatewayNoAnswerError,
    GatewayRateLimitError,
    GatewayTimeoutError,
    GatewayTransportError,
    GatewayUpstreamRejectedError,
)
from genai_gateway.models.request import InlineData, ImagenRequest
from genai_gateway.models.response import GenerateContentResponse
from genai_gateway import prompts


class TestCapabilityRegistry:
    """Test the static capability table."""

    def test_keyed_rest_cannot_generate_images(self):
        """Keyed REST serves text and extraction only."""
        assert capabilities_of(BackendKind.KEYED_REST) == {
            Capability.TEXT_ASK,
            Capability.IMAGE_EXTRACT,
        }

    def test_chat_sdk_capabilities(self):
        """Chat SDK serves text and extraction."""
        assert supports(BackendKind.CHAT_SDK, Capability.TEXT_ASK)
        assert supports(BackendKind.CHAT_SDK, Capability.IMAGE_EXTRACT)
        assert not supports(BackendKind.CHAT_SDK, Capability.IMAGE_GENERATE)

    def test_legacy_predict_capabilities(self):
        """Legacy predict serves text and image generation."""
        assert supports(BackendKind.LEGACY_PREDICT, Capability.IMAGE_GENERATE)
        assert not supports(BackendKind.LEGACY_PREDICT, Capability.IMAGE_EXTRACT)

    def test_only_legacy_predict_generates_images(self):
        """Image generation has a single provider."""
        assert backends_for(Capability.IMAGE_GENERATE) == [BackendKind.LEGACY_PREDICT]

    def test_extract_backends(self):
        """Extraction is served by the SDK and REST backends."""
        assert set(backends_for(Capability.IMAGE_EXTRACT)) == {
            BackendKind.CHAT_SDK,
            BackendKind.KEYED_REST,
        }

    def test_table_is_immutable(self):
        """The table cannot be modified at runtime."""
        with pytest.raises(TypeError):
            CAPABILITY_TABLE[BackendKind.KEYED_REST] = frozenset()

    def test_resource_owners(self):
        """Only handle-holding backends need closing."""
        assert owns_resources(BackendKind.CHAT_SDK)
        assert owns_resources(BackendKind.LEGACY_PREDICT)
        assert not owns_resources(BackendKind.KEYED_REST)


class TestGatewayConfig:
    """Test gateway configuration loading."""

    def test_defaults(self):
        """Default config carries the documented budgets and models."""
        config = GatewayConfig()
        assert config.location == "us-central1"
        assert config.timeouts == TimeoutBudgets(ask=30.0, extract=45.0, generate_image=60.0)
        assert config.prefer_rest is False

    def test_config_is_frozen(self):
        """Config cannot be mutated after construction."""
        config = GatewayConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.project_id = "other"

    def test_load_config_from_dict(self, monkeypatch):
        """Test loading config from a nested dictionary."""
        monkeypatch.setenv("TEST_STUDIO_KEY", "key-from-env")
        config = GatewayConfig.from_dict({
            "google_cloud": {
                "project_id": "my-project",
                "location": "asia-northeast1",
                "studio_api_key": "${TEST_STUDIO_KEY}",
                "use_studio_api": "true",
                "gemini_model": "gemini-2.5-pro",
                "timeouts": {"ask": 10},
            },
        })
        assert config.project_id == "my-project"
        assert config.location == "asia-northeast1"
        assert config.api_key == "key-from-env"
        assert config.prefer_rest is True
        assert config.text_model == "gemini-2.5-pro"
        assert config.timeouts.ask == 10.0
        assert config.timeouts.extract == 45.0

    def test_load_config_from_env(self, monkeypatch):
        """Environment variables fill in the config."""
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT_ID", "env-project")
        monkeypatch.setenv("GOOGLE_AI_STUDIO_API_KEY", "env-key")
        monkeypatch.setenv("USE_GOOGLE_AI_STUDIO", "1")
        config = GatewayConfig.from_env()
        assert config.project_id == "env-project"
        assert config.api_key == "env-key"
        assert config.prefer_rest is True

    def test_load_config_from_yaml(self, tmp_path, monkeypatch):
        """Test loading config from a YAML file."""
        monkeypatch.delenv("GOOGLE_CLOUD_PROJECT_ID", raising=False)
        path = tmp_path / "gateway.yaml"
        path.write_text(
            "project_id: yaml-project\n"
            "image_model: imagen-3.0-generate-002\n"
            "persona:\n"
            "  name: Test Bot\n"
            "  language: English\n"
        )
        config = load_config(str(path))
        assert config.project_id == "yaml-project"
        assert config.image_model == "imagen-3.0-generate-002"
        assert config.persona_name == "Test Bot"
        assert config.response_language == "English"

    def test_missing_file_falls_back_to_env(self, tmp_path, monkeypatch):
        """A missing file yields the environment config."""
        monkeypatch.setenv("GOOGLE_AI_STUDIO_API_KEY", "fallback-key")
        config = load_config(str(tmp_path / "missing.yaml"))
        assert config.api_key == "fallback-key"

    def test_broken_yaml_falls_back_to_env(self, tmp_path, monkeypatch):
        """An unparsable file is logged and ignored."""
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT_ID", "env-project")
        path = tmp_path / "broken.yaml"
        path.write_text("project_id: [unterminated\n")
        config = load_config(str(path))
        assert config.project_id == "env-project"


class TestGatewayErrors:
    """Test gateway error types."""

    def test_gateway_error(self):
        """Test base gateway error."""
        error = GatewayError("Test error")
        assert str(error) == "Test error"

    def test_error_names_backend(self):
        """Backend name is part of the message."""
        error = GatewayNoAnswerError("empty", gateway="studio-rest", stage="candidates")
        assert "studio-rest" in str(error)
        assert error.stage == "candidates"
        assert error.kind is ErrorKind.NO_ANSWER

    def test_transport_subclasses(self):
        """Auth and rate limit failures are transport failures."""
        assert issubclass(GatewayAuthenticationError, GatewayTransportError)
        error = GatewayRateLimitError("slow down", retry_after=2.0)
        assert isinstance(error, GatewayTransportError)
        assert error.retry_after == 2.0

    def test_retryable(self):
        """Only transient failures are marked retryable."""
        assert GatewayTimeoutError("t").retryable
        assert GatewayNoAnswerError("n").retryable
        assert GatewayTransportError("x").retryable
        assert not GatewayUpstreamRejectedError("r").retryable
        assert not GatewayCapabilityUnavailableError("c").retryable


class TestWireModels:
    """Test request and response models."""

    def test_text_request_wire_format(self):
        """Requests serialize with camelCase keys."""
        wire = prompts.text_request("hello").to_wire()
        assert wire["contents"][0]["parts"][0]["text"] == "hello"
        assert wire["generationConfig"]["topK"] == 64
        assert wire["generationConfig"]["maxOutputTokens"] == 2048
        assert len(wire["safetySettings"]) == 4
        assert all(s["threshold"] == "BLOCK_MEDIUM_AND_ABOVE" for s in wire["safetySettings"])

    def test_image_request_inlines_image(self):
        """The image travels as base64 inline data next to the instruction."""
        wire = prompts.image_request("read this", b"\x89PNG", "image/png").to_wire()
        parts = wire["contents"][0]["parts"]
        assert parts[0] == {"text": "read this"}
        assert parts[1]["inlineData"]["mimeType"] == "image/png"
        assert base64.b64decode(parts[1]["inlineData"]["data"]) == b"\x89PNG"
        assert wire["generationConfig"]["temperature"] == 0.4

    def test_inline_data_from_bytes(self):
        """Inline data is base64 encoded."""
        data = InlineData.from_bytes(b"abc", "image/jpeg")
        assert data.data == "YWJj"

    def test_imagen_request(self):
        """Imagen request carries the fixed parameters."""
        wire = ImagenRequest(prompt="a cat").to_wire()
        assert wire["instances"] == [{"prompt": "a cat"}]
        assert wire["parameters"]["sampleCount"] == 1
        assert wire["parameters"]["aspectRatio"] == "1:1"
        assert wire["parameters"]["addWatermark"] is False

    def test_response_with_error_object(self):
        """Top-level error object is parsed."""
        reply = GenerateContentResponse.model_validate({
            "error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"},
        })
        assert reply.error.message == "API key not valid"
        assert reply.candidates == []

    def test_first_text(self):
        """First text fragment is found past non-text parts."""
        reply = GenerateContentResponse.model_validate({
            "candidates": [{
                "content": {"role": "model", "parts": [
                    {"inlineData": {"mimeType": "image/png", "data": "AA=="}},
                    {"text": "first"},
                    {"text": "second"},
                ]},
                "finishReason": "STOP",
            }],
        })
        assert reply.candidates[0].first_text() == "first"


class TestPrompts:
    """Test prompt construction."""

    def test_ask_prompt_includes_persona_and_question(self):
        """Ask prompt carries persona, user id and question."""
        config = GatewayConfig(persona_name="Luna AI", response_language="Japanese")
        prompt = prompts.ask_prompt(config, "What is Rust?", "user1")
        assert "Luna AI" in prompt
        assert "Japanese" in prompt
        assert "2000" in prompt
        assert "User ID: user1" in prompt
        assert prompt.endswith("What is Rust?")

    @pytest.mark.parametrize("mode", list(ExtractMode))
    def test_each_mode_has_distinct_instruction(self, mode):
        """Every extraction mode maps to its own template."""
        config = GatewayConfig()
        prompt = prompts.extract_prompt(config, mode, "user1")
        others = [
            prompts.extract_prompt(config, other, "user1")
            for other in ExtractMode if other is not mode
        ]
        assert prompt not in others

    def test_unknown_mode_uses_generic_instruction(self):
        """Unknown modes are not rejected."""
        prompt = prompts.extract_prompt(GatewayConfig(), "handwriting", "user1")
        assert "readable form" in prompt

    def test_image_prompt_adds_style_and_quality(self):
        """Style modifiers precede the quality block."""
        prompt = prompts.image_prompt("a fox", ImageStyle.ANIME)
        assert "a fox, anime style" in prompt
        assert "ultra-high-quality" in prompt

    def test_image_prompt_without_style(self):
        prompt = prompts.image_prompt("a fox")
        assert "description: a fox\n" in prompt
