"""Environment variable configuration loading.

Reads CLOSURE_BUILD_* variables and coerces them through the settings schema.
"""

import os
from typing import Any

from .schema import ENV_PREFIX, BuildSettings


def env_var_names() -> dict[str, str]:
    """Map each CLOSURE_BUILD_* variable name to its settings field."""
    return {f"{ENV_PREFIX}{name.upper()}": name for name in BuildSettings.model_fields}


class EnvironmentConfigLoader:
    """Loads configuration from CLOSURE_BUILD_* environment variables."""

    def load_env_config(self) -> dict[str, Any]:
        """Load configuration from environment variables.

        Returns:
            Coerced values for the fields actually set in the environment.

        Raises:
            ValueError: If environment variables contain invalid values.
        """
        names = env_var_names()
        env_values = {
            field: os.environ[var] for var, field in names.items() if var in os.environ
        }
        if not env_values:
            return {}

        try:
            settings = BuildSettings(**env_values)
        except Exception as e:
            env_var_list = [
                f"{var}={os.environ[var]}"
                for var, field in names.items()
                if field in env_values
            ]
            raise ValueError(
                f"Invalid environment variable values: {', '.join(env_var_list)}. "
                f"Error: {e}"
            ) from e

        return {field: getattr(settings, field) for field in env_values}
