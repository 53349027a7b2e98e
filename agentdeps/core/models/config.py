"""
Agent configuration models.

The dry-run block and the chroot root are the two inputs of the
dependency layer. They are built once at process start and never
change afterwards, so the models are frozen.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DryRunConfig(BaseModel):
    """Simulation settings: replace selected host queries by fixed values."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    forced_hostname: str = ""
    forced_host_id: str = ""


class LoggingConfig(BaseModel):
    """Where and how verbosely the process logs."""

    model_config = ConfigDict(frozen=True)

    level: str = "WARNING"
    file: str | None = None
    file_level: str | None = None


class AgentConfig(BaseModel):
    """Everything the entry point needs to build the dependency layer."""

    model_config = ConfigDict(frozen=True)

    dry_run: DryRunConfig = Field(default_factory=DryRunConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    chroot_root: str = ""  # empty = live filesystem root
