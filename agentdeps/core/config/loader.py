"""
Configuration loader — builds the AgentConfig for one process invocation.

Sources, lowest to highest precedence:
    1. YAML file (--config, or AGENTDEPS_CONFIG env var)
    2. Environment variables (DRY_ENABLE, DRY_FORCED_HOSTNAME, ...)
    3. CLI flags (passed in as overrides)

The YAML layout mirrors the models::

    dry_run:
      enabled: true
      forced_hostname: master-0
      forced_host_id: 3f1c...
    logging:
      level: INFO
      file: /var/log/agentdeps.log
    chroot_root: /host
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from agentdeps.core.models.config import AgentConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "AGENTDEPS_CONFIG"

# env var → (section, key); section None = top level
ENV_VARS: dict[str, tuple[str | None, str]] = {
    "DRY_ENABLE": ("dry_run", "enabled"),
    "DRY_FORCED_HOSTNAME": ("dry_run", "forced_hostname"),
    "DRY_HOST_ID": ("dry_run", "forced_host_id"),
    "GHW_CHROOT": (None, "chroot_root"),
    "AGENTDEPS_LOG_LEVEL": ("logging", "level"),
    "AGENTDEPS_LOG_FILE": ("logging", "file"),
    "AGENTDEPS_LOG_FILE_LEVEL": ("logging", "file_level"),
}


class ConfigError(Exception):
    """Raised when agent configuration is invalid or unreadable."""


def read_config_file(path: Path) -> dict[str, Any]:
    """Read and parse a YAML config file into a plain mapping.

    Raises:
        ConfigError: If the file is missing, unreadable, or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading agent config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def _set(data: dict[str, Any], section: str | None, key: str, value: Any) -> None:
    if section is None:
        data[key] = value
        return
    block = data.get(section)
    if not isinstance(block, dict):
        block = {}
    data[section] = {**block, key: value}


def load_config(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
) -> AgentConfig:
    """Load and validate the agent configuration.

    Args:
        path: Explicit YAML file. If None, AGENTDEPS_CONFIG is consulted;
            with neither, only env vars and overrides apply.
        env: Environment to read (default: os.environ).
        overrides: CLI values as ``{section: {key: value}}``, with ``""``
            as the section for top-level keys. ``None`` values are ignored.

    Returns:
        Validated AgentConfig.

    Raises:
        ConfigError: If the file or any value is invalid.
    """
    env = os.environ if env is None else env

    if path is None and env.get(CONFIG_ENV_VAR):
        path = Path(env[CONFIG_ENV_VAR])

    data: dict[str, Any] = read_config_file(path) if path is not None else {}

    for var, (section, key) in ENV_VARS.items():
        if var in env:
            _set(data, section, key, env[var])

    for section, values in (overrides or {}).items():
        for key, value in values.items():
            if value is not None:
                _set(data, section or None, key, value)

    try:
        config = AgentConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid agent configuration: {e}") from e

    return config


def config_warnings(config: AgentConfig) -> list[str]:
    """Settings that are accepted but probably not what the operator meant."""
    warnings = []
    if config.dry_run.enabled and not config.dry_run.forced_hostname:
        warnings.append("Dry-run is enabled without a forced hostname; hostname will be empty")
    if config.chroot_root and not Path(config.chroot_root).is_dir():
        warnings.append(f"Chroot root does not exist: {config.chroot_root}")
    return warnings
