"""
Tests for configuration loading — YAML file, env vars, CLI overrides.
"""

from pathlib import Path

import pytest

from agentdeps.core.config.loader import (
    ConfigError,
    config_warnings,
    load_config,
    read_config_file,
)
from agentdeps.core.models.config import AgentConfig, DryRunConfig


def _write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "agent.yml"
    path.write_text(content)
    return path


class TestReadConfigFile:
    def test_empty_file(self, tmp_path):
        assert read_config_file(_write_config(tmp_path, "")) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            read_config_file(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            read_config_file(_write_config(tmp_path, "dry_run: [unclosed\n"))

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="mapping"):
            read_config_file(_write_config(tmp_path, "- a\n- b\n"))


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(env={})
        assert config == AgentConfig()
        assert not config.dry_run.enabled
        assert config.logging.level == "WARNING"
        assert config.chroot_root == ""

    def test_file(self, tmp_path):
        path = _write_config(
            tmp_path,
            "dry_run:\n"
            "  enabled: true\n"
            "  forced_hostname: master-0\n"
            "logging:\n"
            "  level: INFO\n"
            "chroot_root: /host\n",
        )
        config = load_config(path, env={})
        assert config.dry_run == DryRunConfig(enabled=True, forced_hostname="master-0")
        assert config.logging.level == "INFO"
        assert config.chroot_root == "/host"

    def test_env_vars(self):
        config = load_config(
            env={
                "DRY_ENABLE": "true",
                "DRY_FORCED_HOSTNAME": "worker-1",
                "DRY_HOST_ID": "3f1c",
                "GHW_CHROOT": "/mnt/image",
                "AGENTDEPS_LOG_LEVEL": "DEBUG",
            }
        )
        assert config.dry_run.enabled
        assert config.dry_run.forced_hostname == "worker-1"
        assert config.dry_run.forced_host_id == "3f1c"
        assert config.chroot_root == "/mnt/image"
        assert config.logging.level == "DEBUG"

    def test_env_overrides_file(self, tmp_path):
        path = _write_config(tmp_path, "dry_run:\n  enabled: true\n  forced_hostname: from-file\n")
        config = load_config(path, env={"DRY_FORCED_HOSTNAME": "from-env"})
        assert config.dry_run.enabled
        assert config.dry_run.forced_hostname == "from-env"

    def test_overrides_beat_env(self):
        config = load_config(
            env={"DRY_FORCED_HOSTNAME": "from-env", "GHW_CHROOT": "/env"},
            overrides={
                "dry_run": {"forced_hostname": "from-cli"},
                "": {"chroot_root": "/cli"},
            },
        )
        assert config.dry_run.forced_hostname == "from-cli"
        assert config.chroot_root == "/cli"

    def test_none_overrides_ignored(self):
        config = load_config(
            env={"DRY_ENABLE": "1"},
            overrides={"dry_run": {"enabled": None}, "logging": {"level": None}},
        )
        assert config.dry_run.enabled
        assert config.logging.level == "WARNING"

    def test_config_path_from_env(self, tmp_path):
        path = _write_config(tmp_path, "chroot_root: /from-file\n")
        config = load_config(env={"AGENTDEPS_CONFIG": str(path)})
        assert config.chroot_root == "/from-file"

    def test_reads_process_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("DRY_FORCED_HOSTNAME", "from-os-env")
        assert load_config().dry_run.forced_hostname == "from-os-env"

    def test_invalid_boolean(self):
        with pytest.raises(ConfigError, match="Invalid agent configuration"):
            load_config(env={"DRY_ENABLE": "maybe"})

    def test_unknown_section_shape(self, tmp_path):
        path = _write_config(tmp_path, "dry_run: yes-please\n")
        with pytest.raises(ConfigError):
            load_config(path, env={})


class TestConfigWarnings:
    def test_clean_config(self):
        assert config_warnings(AgentConfig()) == []

    def test_dry_run_without_hostname(self):
        config = AgentConfig(dry_run=DryRunConfig(enabled=True))
        warnings = config_warnings(config)
        assert len(warnings) == 1
        assert "forced hostname" in warnings[0]

    def test_missing_chroot(self, tmp_path):
        config = AgentConfig(chroot_root=str(tmp_path / "gone"))
        assert config_warnings(config) == [f"Chroot root does not exist: {tmp_path / 'gone'}"]

    def test_existing_chroot(self, tmp_path):
        assert config_warnings(AgentConfig(chroot_root=str(tmp_path))) == []
