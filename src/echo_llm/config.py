"""Configuration management for echo_llm."""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import httpx
import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.yaml")
FALLBACK_KEY_ENV = "ECHO_KEY"
MODEL_ENV = "ECHO_MODEL"


class Configuration:
    """Manages configuration and environment variables for the client."""

    def __init__(
        self,
        config_path: str | Path | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration from YAML and environment variables.

        Args:
            config_path: YAML file to load instead of the packaged default.
            overrides: Top-level sections merged over the loaded file.
        """
        self.load_env()  # Load .env for API keys
        self._config = self._load_yaml_config(config_path or DEFAULT_CONFIG_PATH)
        for section, values in (overrides or {}).items():
            if isinstance(values, dict) and isinstance(self._config.get(section), dict):
                self._config[section] = {**self._config[section], **values}
            else:
                self._config[section] = values

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    @staticmethod
    def _load_yaml_config(config_path: str | Path) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    def get_config_dict(self) -> dict[str, Any]:
        """Get a copy of the full configuration dictionary."""
        return copy.deepcopy(self._config)

    def api_key_for(self, provider: str) -> str:
        """Get the API key for a provider.

        Looks up ``<PROVIDER>_API_KEY`` first, then ``ECHO_KEY``. A missing
        key is returned as an empty string; the provider reports the
        resulting authentication failure.
        """
        env_key = f"{provider.upper()}_API_KEY"
        return os.getenv(env_key) or os.getenv(FALLBACK_KEY_ENV) or ""

    @staticmethod
    def default_model() -> str | None:
        """Get the model named by ``ECHO_MODEL``, if any."""
        return os.getenv(MODEL_ENV) or None

    def get_aliases(self) -> dict[str, str]:
        """Get the model alias table.

        Raises:
            ValueError: If the aliases section is not a mapping of strings.
        """
        aliases = self._config.get("aliases", {})
        if not isinstance(aliases, dict):
            raise ValueError("aliases must be a mapping of alias -> model")
        for alias, target in aliases.items():
            if not isinstance(target, str) or "/" not in target:
                raise ValueError(
                    f"alias '{alias}' must point to a provider/model string"
                )
        return dict(aliases)

    def get_provider_config(self, provider: str) -> dict[str, Any]:
        """Get configuration for one provider (empty if not configured)."""
        providers = self._config.get("providers", {})
        provider_config = providers.get(provider, {})
        if not isinstance(provider_config, dict):
            raise ValueError(f"providers.{provider} must be a mapping")
        return provider_config

    def get_http_timeout(self) -> httpx.Timeout:
        """Build the HTTP client timeout from the ``http`` section.

        Raises:
            ValueError: If a timeout is missing or not positive.
        """
        http_config = self._config.get("http", {})
        required_keys = [
            "connect_timeout", "read_timeout", "write_timeout", "pool_timeout"
        ]
        for key in required_keys:
            if key not in http_config:
                raise ValueError(
                    f"http.{key} must be explicitly configured in config.yaml"
                )
            if http_config[key] is not None and http_config[key] <= 0:
                raise ValueError(f"http.{key} must be positive")

        return httpx.Timeout(
            connect=http_config["connect_timeout"],
            read=http_config["read_timeout"],
            write=http_config["write_timeout"],
            pool=http_config["pool_timeout"],
        )

    def get_stream_timeout(self) -> float | None:
        """Get the default deadline for a whole stream, in seconds."""
        timeout = self._config.get("streaming", {}).get("default_timeout")
        if timeout is not None and timeout <= 0:
            raise ValueError("streaming.default_timeout must be positive or null")
        return timeout

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML."""
        return self._config.get("logging", {})
