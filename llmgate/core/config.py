import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from llmgate.core.errors import ConfigError
from llmgate.core.logging import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'gateways.yml'

# Public endpoints used when the configuration file does not name a base URL.
DEFAULT_GATEWAYS: Dict[str, Dict[str, str]] = {
    "openai_gateway": {
        "baseurl": "https://api.openai.com",
        "apiKey": "",
        "model": "gpt-4o-mini",
    },
    "anthropic_gateway": {
        "baseurl": "https://api.anthropic.com",
        "apiKey": "",
        "model": "claude-3-5-sonnet-20240620",
    },
    "gemini_gateway": {
        "baseurl": "https://generativelanguage.googleapis.com",
        "apiKey": "",
        "model": "gemini-pro",
    },
    "groq_gateway": {
        "baseurl": "https://api.groq.com",
        "apiKey": "",
        "model": "llama-3.1-8b-instant",
    },
    "cerebras_gateway": {
        "baseurl": "https://api.cerebras.ai",
        "apiKey": "",
        "model": "llama3.1-8b",
    },
    "huggingface_gateway": {
        "baseurl": "https://api-inference.huggingface.co",
        "apiKey": "",
        "model": "",
    },
}

# Environment variable (AppSettings field) that overrides each gateway's key.
API_KEY_OVERRIDES: Dict[str, str] = {
    "openai_gateway": "OPENAI_API_KEY",
    "anthropic_gateway": "ANTHROPIC_API_KEY",
    "gemini_gateway": "GEMINI_API_KEY",
    "groq_gateway": "GROQ_API_KEY",
    "cerebras_gateway": "CEREBRAS_API_KEY",
    "huggingface_gateway": "HUGGINGFACE_API_KEY",
}


# --- Environment-based Settings ---

class AppSettings(BaseSettings):
    """
    Process settings loaded from environment variables.
    The .env file is loaded automatically by pydantic-settings.
    """
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # --- General & Core ---
    LOG_LEVEL: str = Field("INFO", description="Log level for the gateway (e.g., DEBUG, INFO, WARNING, ERROR)")
    LOG_FILE: Optional[str] = Field(None, description="Optional: Path of a rotating JSON log file.")
    LLMGATE_CONFIG_PATH: str = Field(DEFAULT_CONFIG_PATH, description="Path to the gateway registry YAML/JSON file.")

    # --- Provider credentials ---
    OPENAI_API_KEY: Optional[str] = Field(None)
    ANTHROPIC_API_KEY: Optional[str] = Field(None)
    GEMINI_API_KEY: Optional[str] = Field(None)
    GROQ_API_KEY: Optional[str] = Field(None)
    CEREBRAS_API_KEY: Optional[str] = Field(None)
    HUGGINGFACE_API_KEY: Optional[str] = Field(None)


# --- File-based Gateway Models ---

class GatewayConfig(BaseModel):
    """Connection settings for one provider gateway."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    base_url: str = Field(..., alias="baseurl")
    api_key: str = Field("", alias="apiKey")
    default_model: str = Field("", alias="model")


class GatewaysConfig(BaseModel):
    """All configured gateways, keyed by gateway name (e.g. ``openai_gateway``)."""
    model_config = ConfigDict(frozen=True)

    registry: Dict[str, GatewayConfig] = Field(default_factory=dict)

    def get(self, name: str) -> Optional[GatewayConfig]:
        return self.registry.get(name)


# Python field names accepted in the file, mapped onto the wire aliases.
_FIELD_ALIASES = {"base_url": "baseurl", "api_key": "apiKey", "default_model": "model"}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return a new dictionary with override merged into base."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_registry(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            payload = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}") from exc

    if not isinstance(payload, dict):
        raise ConfigError(f"Configuration root of {config_path} must be a mapping.")

    # Accept the ``{"config": {"gateways": ...}}`` wrapper as well.
    if isinstance(payload.get("config"), dict):
        payload = payload["config"]

    gateways = payload.get("gateways", {}) or {}
    if not isinstance(gateways, dict):
        raise ConfigError("'gateways' must be a mapping.")
    registry = gateways.get("registry", {}) or {}
    if not isinstance(registry, dict):
        raise ConfigError("'gateways.registry' must be a mapping.")

    normalized: Dict[str, Any] = {}
    for name, entry in registry.items():
        if not isinstance(entry, dict):
            raise ConfigError(f"Gateway '{name}' must be a mapping.")
        normalized[name] = {_FIELD_ALIASES.get(key, key): value for key, value in entry.items()}
    return normalized


def load_gateways(
    path: Optional[Union[str, Path]] = None,
    api_keys: Optional[Dict[str, Optional[str]]] = None,
) -> GatewaysConfig:
    """
    Load the gateway registry from a YAML (or JSON) file.

    Entries in the file are merged over DEFAULT_GATEWAYS. ``api_keys`` maps a
    gateway name to a key that replaces the configured one when it is set.
    A missing file yields the defaults.
    """
    config_path = Path(path or DEFAULT_CONFIG_PATH)
    registry: Dict[str, Any] = {name: dict(entry) for name, entry in DEFAULT_GATEWAYS.items()}

    if config_path.exists():
        registry = _deep_merge(registry, _read_registry(config_path))
        logger.debug(f"Loaded gateway registry from {config_path}")
    else:
        logger.info(f"Gateway config '{config_path}' not found; using built-in defaults")

    for name, key in (api_keys or {}).items():
        if key and isinstance(registry.get(name), dict):
            registry[name] = {**registry[name], "apiKey": key}

    try:
        return GatewaysConfig.model_validate({"registry": registry})
    except ValidationError as e:
        raise ConfigError(f"Gateway configuration validation error: {e}") from e


# --- Main Config Object ---

class Config:
    """
    A unified configuration object.
    """
    def __init__(self, app: Optional[AppSettings] = None, gateways: Optional[GatewaysConfig] = None):
        try:
            self.app = app or AppSettings()
        except ValidationError as e:
            raise ConfigError(f"Configuration validation error: {e}") from e

        if gateways is None:
            api_keys = {
                name: getattr(self.app, field)
                for name, field in API_KEY_OVERRIDES.items()
            }
            gateways = load_gateways(self.app.LLMGATE_CONFIG_PATH, api_keys)
        self.gateways: GatewaysConfig = gateways

    def configure_logging(self) -> logging.Logger:
        """Apply LOG_LEVEL and LOG_FILE to the llmgate logger."""
        return setup_logging(self.app.LOG_LEVEL, self.app.LOG_FILE)


# --- Global Config Instance ---
_settings_instance: Optional[Config] = None


def get_settings() -> Config:
    """
    Returns a singleton instance of the Config object.
    This function controls when the settings are loaded and validated,
    making the application more testable.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Config()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached Config so the next get_settings() reloads it."""
    global _settings_instance
    _settings_instance = None
