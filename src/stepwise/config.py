from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import (
    DotEnvSettingsSource,
    EnvSettingsSource,
    JsonConfigSettingsSource,
)

DEFAULT_STEPWISE_DIR = Path(".stepwise")


class Config(BaseSettings):
    """
    Runtime configuration loaded from environment variables, .env, and JSON.
    """

    openai_api_key: Optional[SecretStr] = Field(
        default=None, description="API key for the OpenAI-compatible provider."
    )
    api_base: Optional[str] = Field(
        default=None,
        description="OpenAI-compatible base URL (e.g. http://localhost:11434/v1).",
    )
    model_name: str = Field(
        default="gpt-4o-mini", description="Model driving the agent loop."
    )
    heuristic_model_name: str = Field(
        default="gpt-4.1-nano",
        description="Small model classifying assistant turns for loop management.",
    )
    temperature: Optional[float] = Field(
        default=None, description="Sampling temperature for the main model."
    )
    max_steps: Optional[int] = Field(
        default=None, description="Default step budget; unset means unbounded."
    )
    debug: bool = Field(default=False, description="Log a trace of every step.")
    remove_think: bool = Field(
        default=False, description="Strip <think> sections from model replies."
    )
    env: str = Field(default="dev", description="Execution environment name.")
    stepwise_dir: Path = Field(
        default=DEFAULT_STEPWISE_DIR, description="Root directory for Stepwise files."
    )

    model_config = SettingsConfigDict(
        env_prefix="STEPWISE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="forbid",
    )

    @model_validator(mode="after")
    def _check_ranges(self) -> "Config":
        """
        Rejects out-of-range numeric settings.

        Returns:
            The validated configuration instance.
        """
        if self.max_steps is not None and self.max_steps <= 0:
            raise ValueError("max_steps must be positive when set.")
        if self.temperature is not None and not 0.0 <= self.temperature <= 2.0:
            raise ValueError("temperature must be between 0 and 2.")
        return self

    @staticmethod
    def _secret_to_str(secret: Optional[SecretStr]) -> Optional[str]:
        """Return the underlying secret value if present."""

        if secret is None:
            return None
        return secret.get_secret_value()

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """
        Loads configuration from a JSON file when present.

        Values from .env override the JSON file and environment variables
        override both.

        Args:
            path: Optional override path for the JSON config file. Defaults to
                ``config.json`` under the configured ``stepwise_dir``.

        Returns:
            A validated configuration object.
        """
        config_path = path or cls().get_config_path()
        if not config_path.exists():
            return cls()

        json_source = JsonConfigSettingsSource(cls, json_file=config_path)
        dotenv_source = DotEnvSettingsSource(cls)
        env_source = EnvSettingsSource(cls)
        merged: dict[str, object] = {}
        merged.update(json_source())
        merged.update(dotenv_source())
        merged.update(env_source())
        return cls.model_validate(merged)

    def get_openai_api_key(self) -> Optional[str]:
        """Returns the provider API key for runtime usage."""

        return self._secret_to_str(self.openai_api_key)

    def get_api_base(self) -> Optional[str]:
        """Returns the configured provider base URL."""

        return self.api_base

    def get_model_name(self) -> str:
        """
        Returns the configured model name.

        Returns:
            The model name string.
        """
        return self.model_name

    def get_heuristic_model_name(self) -> str:
        """Returns the loop-management model name."""

        return self.heuristic_model_name

    def get_stepwise_dir(self) -> Path:
        """
        Returns the root directory for Stepwise files.

        Returns:
            The Stepwise root directory path.
        """
        return self.stepwise_dir

    def get_config_path(self) -> Path:
        """Returns the JSON config path under the Stepwise directory."""

        return self.stepwise_dir / "config.json"
