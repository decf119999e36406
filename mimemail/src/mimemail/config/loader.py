"""Strict loader for the mimemail runtime configuration.

What:
  Locate, parse, validate and cache ``mimemail.yaml``, the file describing the
  renderer defaults and the external commands (``html2text``, ``sendmail``).

Why:
  The library is used both embedded in applications and through the CLI. The
  commands it shells out to differ between hosts, so they must be configurable
  without code changes, and a malformed file must fail loudly instead of
  silently sending mail through the wrong binary.

How:
  Resolve candidate file locations based on explicit parameters, the
  ``MIMEMAIL_CONFIG_PATH`` environment variable, and defaults. Parse YAML
  payloads with :func:`yaml.safe_load` and validate them using the Pydantic
  models from :mod:`mimemail.config.schema`.

Interfaces:
  - :func:`load_runtime_config` / :func:`get_runtime_config` /
    :func:`reset_runtime_config`: Manage discovery and caching.
  - :func:`parse_runtime_config`: Validate YAML text directly.
  - :func:`dump_runtime_config`: Serialise a model back to YAML.

Invariants:
  - An explicit or environment path that does not exist is an error; the
    built-in defaults are only used when no default location exists.
  - The cache respects explicit reload requests and the precedence order of
    candidate paths.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import yaml
from pydantic import ValidationError as _PydanticValidationError

from .schema import RuntimeConfig, ValidationError


class ConfigLoadError(Exception):
    """Base error for configuration parsing or validation failures."""


class RuntimeConfigError(ConfigLoadError):
    """Error raised when ``mimemail.yaml`` cannot be loaded or validated.

    What:
      Signal issues related to runtime configuration discovery or schema
      validation.

    Why:
      The CLI maps this error to a dedicated message and exit code so operators
      can tell a broken configuration from a failed delivery.
    """


_CONFIG_ENV = "MIMEMAIL_CONFIG_PATH"
_DEFAULT_LOCATIONS: Tuple[Path, ...] = (
    Path("mimemail.yaml"),
    Path("~/.config/mimemail/config.yaml"),
    Path("/etc/mimemail/config.yaml"),
)
_RUNTIME_CACHE: Optional[Tuple[Optional[Path], RuntimeConfig]] = None


def _required_paths(path: Optional[Path]) -> Iterable[Path]:
    """Yield the paths the caller asked for explicitly, in priority order."""

    if path is not None:
        yield path.expanduser()
    env_path = os.environ.get(_CONFIG_ENV)
    if env_path:
        yield Path(env_path).expanduser()


def _parse_config_payload(text: str, source: str) -> dict[str, Any]:
    """Parse configuration text into a dictionary payload.

    What:
      Convert raw configuration text to a Python mapping ready for validation.

    How:
      Delegate to :func:`yaml.safe_load`, wrap parsing issues in
      :class:`RuntimeConfigError` with the source for context, and verify the
      result is a mapping. An empty document means "all defaults".

    Raises:
      RuntimeConfigError: If the text is not YAML or not a mapping.
    """

    try:
        payload = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise RuntimeConfigError(f"Invalid YAML in {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise RuntimeConfigError(f"{source} must contain a mapping at the top-level")
    return payload


def parse_runtime_config(text: str, source: str = "<string>") -> RuntimeConfig:
    """Validate YAML ``text`` into a :class:`RuntimeConfig`."""

    payload = _parse_config_payload(text, source)
    try:
        return RuntimeConfig.model_validate(payload)
    except (_PydanticValidationError, ValidationError) as exc:
        raise RuntimeConfigError(f"Invalid configuration in {source}: {exc}") from exc


def _load_runtime_from_path(path: Path) -> RuntimeConfig:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RuntimeConfigError(f"Configuration file missing: {path}") from exc
    except OSError as exc:  # pragma: no cover - filesystem surface
        raise RuntimeConfigError(f"Unable to read configuration file {path}: {exc}") from exc
    return parse_runtime_config(text, str(path))


def load_runtime_config(
    path: Optional[Path | str] = None,
    *,
    reload: bool = False,
) -> RuntimeConfig:
    """Resolve, parse, and cache the runtime configuration.

    What:
      Locate the configuration using the precedence chain, parse it, and
      return a validated :class:`RuntimeConfig` instance.

    Why:
      Rendering and sending read the configuration on every call; caching
      avoids repeated disk IO while ``reload`` enables deterministic refreshes
      during tests.

    How:
      An explicit ``path`` or ``MIMEMAIL_CONFIG_PATH`` must exist. Otherwise
      the default locations are tried in order and, if none exists, the
      built-in defaults are returned (and cached).

    Args:
      path: Optional explicit location of the YAML file.
      reload: When ``True`` forces a fresh load bypassing the cache.

    Returns:
      The validated runtime configuration.

    Raises:
      RuntimeConfigError: If a requested file is missing or invalid.
    """

    global _RUNTIME_CACHE

    requested_path = Path(path).expanduser() if isinstance(path, (str, Path)) else None
    if not reload and _RUNTIME_CACHE is not None:
        cached_path, cached_config = _RUNTIME_CACHE
        if requested_path is None or cached_path == requested_path:
            return cached_config

    for candidate in _required_paths(requested_path):
        config = _load_runtime_from_path(candidate)
        _RUNTIME_CACHE = (candidate, config)
        return config

    for default in _DEFAULT_LOCATIONS:
        candidate = default.expanduser()
        if candidate.is_file():
            config = _load_runtime_from_path(candidate)
            _RUNTIME_CACHE = (candidate, config)
            return config

    config = RuntimeConfig()
    _RUNTIME_CACHE = (None, config)
    return config


def get_runtime_config() -> RuntimeConfig:
    """Return the cached runtime configuration, loading it on demand."""

    return load_runtime_config()


def reset_runtime_config() -> None:
    """Clear the runtime configuration cache.

    What:
      Reset the memoised tuple storing the last loaded configuration.

    Why:
      Test suites and long-running processes need deterministic ways to force a
      reload when configuration files change.
    """

    global _RUNTIME_CACHE
    _RUNTIME_CACHE = None


def dump_runtime_config(model: RuntimeConfig) -> bytes:
    """Serialise a :class:`RuntimeConfig` into canonical YAML bytes."""

    text = yaml.safe_dump(model.model_dump(mode="json"), sort_keys=False)
    return text.encode("utf-8")
