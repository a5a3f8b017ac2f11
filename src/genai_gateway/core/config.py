"""
Configuration loading for the generative AI gateway.
"""

import os
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "us-central1"
DEFAULT_TEXT_MODEL = "gemini-2.5-flash-lite"
DEFAULT_IMAGE_MODEL = "imagen-4.0-fast-generate-preview-06-06"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class TimeoutBudgets:
    """Per-call timeout budgets in seconds."""
    ask: float = 30.0
    extract: float = 45.0
    generate_image: float = 60.0


@dataclass(frozen=True)
class GatewayConfig:
    """Complete gateway configuration. Supplied once, never mutated."""
    project_id: Optional[str] = None
    location: str = DEFAULT_LOCATION
    credentials_path: Optional[str] = None
    api_key: Optional[str] = None
    prefer_rest: bool = False
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    timeouts: TimeoutBudgets = field(default_factory=TimeoutBudgets)
    persona_name: str = "Luna AI"
    response_language: str = "Japanese"
    max_answer_chars: int = 2000

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GatewayConfig":
        """Build a config from a plain dictionary (e.g. parsed YAML)."""
        return _parse_config(data)

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Build a config from environment variables only."""
        return _default_config()


def load_config(config_path: Optional[str] = None) -> GatewayConfig:
    """
    Load gateway configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Loaded configuration
    """
    if config_path is None:
        # Try common locations
        paths = [
            Path("config/genai-gateway.yaml"),
            Path("/etc/genai-gateway/gateway.yaml"),
            Path.home() / ".config/genai-gateway/gateway.yaml",
        ]
        for p in paths:
            if p.exists():
                config_path = str(p)
                break

    if config_path is None or not Path(config_path).exists():
        logger.warning("No gateway config file found, using environment")
        return _default_config()

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        return _parse_config(data)

    except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        return _default_config()


def _expand(value: Any) -> Any:
    """Expand a ${ENV_VAR} reference."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return os.environ.get(value[2:-1], "")
    return value


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


def _parse_config(data: Dict[str, Any]) -> GatewayConfig:
    """Parse configuration dictionary."""
    # Accept both a flat mapping and one nested under "google_cloud"
    section = data.get("google_cloud", data)
    env = _default_config()

    timeout_data = section.get("timeouts", {}) or {}
    timeouts = TimeoutBudgets(
        ask=float(timeout_data.get("ask", env.timeouts.ask)),
        extract=float(timeout_data.get("extract", env.timeouts.extract)),
        generate_image=float(timeout_data.get("generate_image", env.timeouts.generate_image)),
    )

    persona = section.get("persona", {}) or {}

    return GatewayConfig(
        project_id=_expand(section.get("project_id")) or env.project_id,
        location=_expand(section.get("location")) or env.location,
        credentials_path=_expand(section.get("credentials_path")) or env.credentials_path,
        api_key=_expand(section.get("api_key", section.get("studio_api_key"))) or env.api_key,
        prefer_rest=_as_bool(_expand(section.get("prefer_rest", section.get("use_studio_api", env.prefer_rest)))),
        text_model=_expand(section.get("text_model", section.get("gemini_model"))) or env.text_model,
        image_model=_expand(section.get("image_model", section.get("imagen_model"))) or env.image_model,
        timeouts=timeouts,
        persona_name=persona.get("name", env.persona_name),
        response_language=persona.get("language", env.response_language),
        max_answer_chars=int(persona.get("max_answer_chars", env.max_answer_chars)),
    )


def _default_config() -> GatewayConfig:
    """Return configuration taken from the environment."""
    return GatewayConfig(
        project_id=os.environ.get("GOOGLE_CLOUD_PROJECT_ID") or None,
        location=os.environ.get("GOOGLE_CLOUD_LOCATION") or DEFAULT_LOCATION,
        credentials_path=os.environ.get("GOOGLE_APPLICATION_CREDENTIALS") or None,
        api_key=os.environ.get("GOOGLE_AI_STUDIO_API_KEY") or None,
        prefer_rest=_as_bool(os.environ.get("USE_GOOGLE_AI_STUDIO")),
        text_model=os.environ.get("GEMINI_MODEL") or DEFAULT_TEXT_MODEL,
        image_model=os.environ.get("IMAGEN_MODEL") or DEFAULT_IMAGE_MODEL,
    )
