"""YAML-backed configuration with environment variable injection.

Subclass ``YamlConfig`` with pydantic fields to describe a schema:

    class AppConfig(YamlConfig):
        salt: str
        salt_length: int = 16

Values of the form ``${VAR}`` or ``$VAR`` are replaced from the process
environment, so secrets can be kept out of the file itself.
"""

import os
import re
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import BaseModel, PrivateAttr, ValidationError

from liveconf.config.redact import REDACTED, is_sensitive_key
from liveconf.errors import ConfigError, ConfigNotFoundError, ConfigParseError

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings; recurse into dict/list.

    Unknown variables are left as written.
    """
    if isinstance(value, str):

        def repl(m: re.Match[str]) -> str:
            name = m.group(1) or m.group(2) or ""
            return os.environ.get(name, m.group(0))

        return _ENV_PATTERN.sub(repl, value)
    if isinstance(value, dict):
        return {k: substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [substitute_env(v) for v in value]
    return value


def read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping from ``path`` with environment substitution applied."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigNotFoundError(path) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(path, str(e)) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(path, str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(path, f"expected a mapping at top level, got {type(data).__name__}")
    return substitute_env(data)


class YamlConfig(BaseModel):
    """Base class for pydantic configuration schemas stored as YAML."""

    model_config = {"extra": "ignore"}

    _path: Path | None = PrivateAttr(default=None)

    @classmethod
    def default(cls) -> Self:
        """Return an unbound, unvalidated instance; call ``reload`` to fill it."""
        return cls.model_construct()

    @classmethod
    def load(cls, path: str | Path) -> Self:
        """Read, validate and bind a new instance from ``path``.

        Raises:
            ConfigNotFoundError: If the file does not exist.
            ConfigParseError: If the YAML is malformed or fails validation.
        """
        path = Path(path)
        data = read_yaml(path)
        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            raise ConfigParseError(path, str(e)) from e
        config._path = path
        return config

    @property
    def path(self) -> Path | None:
        return self._path

    def bind_path(self, path: str | Path) -> None:
        self._path = Path(path)

    def __repr_args__(self):
        for name, value in super().__repr_args__():
            if name is not None and isinstance(value, str) and is_sensitive_key(name):
                yield name, REDACTED
            else:
                yield name, value

    def reload(self) -> None:
        """Re-read the bound file and swap every field in one step.

        The new contents are fully parsed and validated before anything on
        ``self`` is touched, so a failure leaves the current values in place.
        """
        if self._path is None:
            raise ConfigError(f"{type(self).__name__} is not bound to a path")

        fresh = self.load(self._path)
        object.__setattr__(self, "__dict__", fresh.__dict__)
        object.__setattr__(self, "__pydantic_extra__", fresh.__pydantic_extra__)
        object.__setattr__(self, "__pydantic_fields_set__", fresh.__pydantic_fields_set__)
