"""mimemail configuration package.

What:
  Provide a cohesive import surface for configuration loading and the pydantic
  schema used by the renderer, the sender and the CLI.

Why:
  Centralising the exports shields callers from the internal layout and makes
  sure configuration always goes through schema validation.

Interfaces:
  - get_runtime_config / load_runtime_config / reset_runtime_config: Resolve
    ``mimemail.yaml`` and expose a cached runtime configuration object.
  - parse_runtime_config / dump_runtime_config: YAML text to model and back.
  - RuntimeConfig / RenderConfig / Html2TextConfig / TransportConfig /
    ValidationError / ConfigLoadError / RuntimeConfigError.
"""

from .loader import (
    ConfigLoadError,
    RuntimeConfigError,
    dump_runtime_config,
    get_runtime_config,
    load_runtime_config,
    parse_runtime_config,
    reset_runtime_config,
)
from .schema import Html2TextConfig, RenderConfig, RuntimeConfig, TransportConfig, ValidationError

__all__ = [
    "ConfigLoadError",
    "RuntimeConfigError",
    "dump_runtime_config",
    "get_runtime_config",
    "load_runtime_config",
    "parse_runtime_config",
    "reset_runtime_config",
    "Html2TextConfig",
    "RenderConfig",
    "RuntimeConfig",
    "TransportConfig",
    "ValidationError",
]
