"""
Base Configuration Model.

Provides base configuration class with environment variable substitution.
"""

import os
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


# Pattern for environment variable substitution: ${VAR} or ${VAR:default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def substitute_env_vars(value: str) -> str:
    """
    Substitute environment variables in a string.

    Supports formats:
    - ${VAR} - substitutes with VAR value, empty if not set
    - ${VAR:default} - substitutes with VAR value, or 'default' if not set

    Args:
        value: String potentially containing env var references

    Returns:
        String with env vars substituted
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2)

        env_value = os.environ.get(var_name)

        if env_value is not None:
            return env_value
        elif default_value is not None:
            return default_value
        else:
            return ""

    return ENV_VAR_PATTERN.sub(replace_match, value)


def process_value(value: Any) -> Any:
    """Process a value, substituting env vars if it's a string."""
    if isinstance(value, str):
        return substitute_env_vars(value)
    elif isinstance(value, dict):
        return {k: process_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [process_value(item) for item in value]
    return value


class BaseConfig(BaseModel):
    """
    Base configuration model with common functionality.

    Features:
    - Environment variable substitution: ${VAR} or ${VAR:default}
    - Immutable by default (frozen)

    Example:
        >>> class MyConfig(BaseConfig):
        ...     treasury: str
        >>> config = MyConfig(treasury="${TREASURY:treasury}")
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        validate_default=True,
        str_strip_whitespace=True,
    )

    @model_validator(mode="before")
    @classmethod
    def substitute_environment_variables(cls, data: Any) -> Any:
        """Substitute environment variables in all string values."""
        if isinstance(data, dict):
            return process_value(data)
        return data
