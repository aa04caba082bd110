"""Runtime settings for buffered indexing."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, PositiveInt, ValidationError

from bulk_buffer.buffer import DEFAULT_BUFFER_SIZE
from bulk_buffer.domain import BackendName
from bulk_buffer.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_BACKEND_URL = "http://localhost:9200"
DEFAULT_INDEX = "bulk_buffer"
ENV_PREFIX = "BULK_BUFFER_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_INVALID_SETTINGS_ERROR = "Invalid settings from environment: {error}"


class BufferSettings(BaseModel):
    """Store buffer and backend connection settings."""

    buffer_size: PositiveInt = DEFAULT_BUFFER_SIZE
    backend: BackendName = BackendName.ELASTICSEARCH
    backend_url: str = DEFAULT_BACKEND_URL
    index: str = DEFAULT_INDEX
    timeout_s: float = 30.0
    verify_certs: bool = True
    id_field: str = "id"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"


def env_bool(name: str, *, default_value: bool, environ: Mapping[str, str] | None = None) -> bool:
    """Read a boolean value from environment variables.

    Args:
        name (str): Environment variable name.
        default_value (bool): Fallback value when missing or invalid.
        environ (Mapping[str, str] | None): Optional environment mapping.

    Returns:
        bool: Parsed boolean value.

    """
    raw = (os.environ if environ is None else environ).get(name)
    if raw is None:
        return default_value
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default_value


def settings_from_env(environ: Mapping[str, str] | None = None) -> BufferSettings:
    """Build settings from `BULK_BUFFER_*` environment variables.

    Args:
        environ (Mapping[str, str] | None): Optional environment mapping, `os.environ` by default.

    Raises:
        ConfigurationError: If one value cannot be validated.

    Returns:
        BufferSettings: Validated settings.

    """
    env = os.environ if environ is None else environ
    defaults = BufferSettings()
    values = {
        "buffer_size": env.get(f"{ENV_PREFIX}BUFFER_SIZE", defaults.buffer_size),
        "backend": env.get(f"{ENV_PREFIX}BACKEND", defaults.backend.value).strip().lower(),
        "backend_url": env.get(f"{ENV_PREFIX}BACKEND_URL", defaults.backend_url),
        "index": env.get(f"{ENV_PREFIX}INDEX", defaults.index),
        "timeout_s": env.get(f"{ENV_PREFIX}TIMEOUT_S", defaults.timeout_s),
        "verify_certs": env_bool(
            f"{ENV_PREFIX}VERIFY_CERTS",
            default_value=defaults.verify_certs,
            environ=env,
        ),
        "id_field": env.get(f"{ENV_PREFIX}ID_FIELD", defaults.id_field),
        "log_level": env.get(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level).strip().upper(),
    }
    try:
        return BufferSettings.model_validate(values)
    except ValidationError as exc:
        raise ConfigurationError(_INVALID_SETTINGS_ERROR.format(error=exc)) from exc
