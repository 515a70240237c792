"""
Configuration management for the commit history recorder.

This module provides centralized configuration with:
- Environment and .env overrides (nested keys use ``__``)
- Type validation and defaults
- History file layout and test runner invocation
- Logging configuration
"""

from typing import Optional, List
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings


class HistorySettings(BaseModel):
    """History file layout settings."""

    directory: str = Field(default="script", description="History directory, relative to the work tree")
    file_prefix: str = Field(default="commit-history", description="History file name prefix")
    indent: int = Field(default=2, ge=0, description="JSON indentation for history files")

    @field_validator("directory")
    @classmethod
    def validate_directory(cls, v):
        v = v.strip().replace("\\", "/").strip("/")
        if not v or v.startswith(".."):
            raise ValueError("History directory must be a path inside the repository")
        return v

    @field_validator("file_prefix")
    @classmethod
    def validate_file_prefix(cls, v):
        if not v or "/" in v or "\\" in v:
            raise ValueError("History file prefix must be a plain file name")
        return v


class RunnerSettings(BaseModel):
    """Test runner configuration settings."""

    enabled: bool = Field(default=True, description="Run the test suite on each commit")
    manifest: str = Field(default="package.json", description="Project manifest that enables the test run")
    command: List[str] = Field(
        default=["npx", "jest", "--coverage", "--json", "--passWithNoTests"],
        description="Test runner command",
    )
    output_flag: str = Field(
        default="--outputFile={path}", description="Argument that points the runner at its report file"
    )
    timeout: Optional[int] = Field(default=None, ge=1, description="Test runner timeout in seconds")

    @field_validator("command")
    @classmethod
    def validate_command(cls, v):
        if not v:
            raise ValueError("Test runner command cannot be empty")
        return v

    @field_validator("output_flag")
    @classmethod
    def validate_output_flag(cls, v):
        if "{path}" not in v:
            raise ValueError("Output flag must contain a {path} placeholder")
        return v


class GitSettings(BaseModel):
    """Git repository settings."""

    remote: str = Field(default="origin", description="Remote used to build commit URLs")


class HookSettings(BaseModel):
    """Post-commit hook settings."""

    command: str = Field(default="commit-tracker --quiet", description="Command run by the post-commit hook")


class MonitoringSettings(BaseModel):
    """Logging configuration settings."""

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log format"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()


class Settings(PydanticBaseSettings):
    """
    Main application settings.

    Values come from defaults, then ``.env``, then the environment, e.g.
    ``HISTORY__DIRECTORY=ci/history`` or ``TEST_RUNNER__ENABLED=false``.
    """

    app_name: str = Field(default="commit-tracker", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")

    history: HistorySettings = Field(default_factory=HistorySettings)
    test_runner: RunnerSettings = Field(default_factory=RunnerSettings)
    git: GitSettings = Field(default_factory=GitSettings)
    hook: HookSettings = Field(default_factory=HookSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "extra": "ignore"
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration object

    Example:
        >>> settings = get_settings()
        >>> print(settings.history.directory)
    """
    return Settings()


# Global settings instance
settings = get_settings()
