"""Resolve the configuration path from the process environment."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def resolve_config_path(env_var: str, default_path: str | Path) -> Path:
    """Return the path named by ``env_var``, or ``default_path`` if it is unset.

    The fallback is not an error: it is reported as a warning so a missing
    variable is visible in the logs.
    """
    value = os.environ.get(env_var)
    if value:
        return Path(value)

    logger.warning(f"Environment variable {env_var} is not set, falling back to {default_path}")
    return Path(default_path)
