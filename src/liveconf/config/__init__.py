"""Configuration types that can be hot-reloaded."""

from liveconf.config.environment import resolve_config_path
from liveconf.config.loadable import Loadable
from liveconf.config.redact import is_sensitive_key, redact_secrets
from liveconf.config.yaml_config import YamlConfig, read_yaml, substitute_env

__all__ = [
    "Loadable",
    "YamlConfig",
    "is_sensitive_key",
    "read_yaml",
    "redact_secrets",
    "resolve_config_path",
    "substitute_env",
]
