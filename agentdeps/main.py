"""
agentdeps — CLI entrypoint.

Each command builds the dependency layer once, runs exactly one probe,
and relays the probe's stdout, stderr, and exit code verbatim.

Usage:
    python -m agentdeps.main --help
    python -m agentdeps.main free-addresses 192.168.1.0/24
    python -m agentdeps.main --dry-run --forced-hostname master-0 inventory hostname
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from agentdeps import __version__
from agentdeps.adapters.base import Dependencies
from agentdeps.core.config.loader import ConfigError, config_warnings, load_config
from agentdeps.core.models.config import AgentConfig
from agentdeps.core.models.execution import ExecutionResult
from agentdeps.core.observability.logging_config import setup_logging

logger = logging.getLogger(__name__)

# Distinct from every exit code a probe reports; _relay maps probe codes
# outside 0..254 (e.g. -1, which the OS turns into 255) to PROBE_FAILURE_EXIT_CODE
USAGE_ERROR_EXIT_CODE = 255
PROBE_FAILURE_EXIT_CODE = 1
CONFIG_ERROR_EXIT_CODE = 1


@click.group()
@click.version_option(version=__version__, prog_name="agentdeps")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to agent YAML config (default: $AGENTDEPS_CONFIG).",
)
@click.option("--log-file", default=None, help="Also log to this file.")
@click.option("--dry-run", is_flag=True, help="Simulate host identity (see --forced-hostname).")
@click.option("--forced-hostname", default=None, help="Hostname reported under dry-run.")
@click.option("--forced-host-id", default=None, help="Host id stamped on log records under dry-run.")
@click.option(
    "--chroot-root",
    default=None,
    help="Resolve hardware queries under this root instead of /.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    debug: bool,
    config_path: str | None,
    log_file: str | None,
    dry_run: bool,
    forced_hostname: str | None,
    forced_host_id: str | None,
    chroot_root: str | None,
) -> None:
    """Installer agent host probes — introspection and privileged execution."""
    ctx.ensure_object(dict)

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    else:
        level = None  # config file / AGENTDEPS_LOG_LEVEL / WARNING

    try:
        config = load_config(
            path=Path(config_path) if config_path else None,
            overrides={
                "dry_run": {
                    "enabled": True if dry_run else None,
                    "forced_hostname": forced_hostname,
                    "forced_host_id": forced_host_id,
                },
                "logging": {"level": level, "file": log_file},
                "": {"chroot_root": chroot_root},
            },
        )
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(CONFIG_ERROR_EXIT_CODE)

    # ── Logging setup (once, at process start) ──────────────────
    process_name = (ctx.invoked_subcommand or "agentdeps").replace("-", "_")
    setup_logging(
        process_name=process_name,
        level=config.logging.level,
        log_file=config.logging.file,
        log_file_level=config.logging.file_level,
        host_id=config.dry_run.forced_host_id if config.dry_run.enabled else "",
        quiet_third_party=not debug,
    )
    for warning in config_warnings(config):
        logger.warning(warning)

    ctx.obj["config"] = config


def _dependencies(ctx: click.Context) -> Dependencies:
    from agentdeps.adapters.system import new_dependencies

    config: AgentConfig = ctx.obj["config"]
    return new_dependencies(config.dry_run, config.chroot_root)


def _relay(result: ExecutionResult) -> None:
    """Write the probe's streams as-is and exit with its code.

    A code outside 0..254 cannot be told apart from the usage sentinel
    once the OS truncates it, so it is reported as a plain probe failure.
    """
    sys.stdout.write(result.stdout)
    sys.stdout.flush()
    sys.stderr.write(result.stderr)
    sys.stderr.flush()

    exit_code = result.exit_code
    if not 0 <= exit_code < USAGE_ERROR_EXIT_CODE:
        logger.warning("Probe returned out-of-range exit code %d", exit_code)
        exit_code = PROBE_FAILURE_EXIT_CODE
    sys.exit(exit_code)


# Every token, dash-prefixed or not, must reach the argument count check
@cli.command(
    "free-addresses",
    context_settings={"ignore_unknown_options": True},
    add_help_option=False,
)
@click.argument("targets", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def free_addresses(ctx: click.Context, targets: tuple[str, ...]) -> None:
    """Report unused IPv4 addresses in a subnet.

    TARGET is a CIDR or a JSON list of CIDRs. Exactly one is required.

    Examples:

        agentdeps free-addresses 192.168.1.0/24

        agentdeps free-addresses '["10.0.0.0/24", "10.0.1.0/24"]'
    """
    if len(targets) != 1:
        logger.warning(
            "Expecting exactly single argument to free_addresses. Received %d", len(targets)
        )
        sys.exit(USAGE_ERROR_EXIT_CODE)

    from agentdeps.probes import free_addresses as probe

    deps = _dependencies(ctx)
    _relay(probe.get_free_addresses(targets[0], deps, logging.getLogger("agentdeps.free_addresses")))


@cli.command()
@click.argument("sections", nargs=-1)
@click.pass_context
def inventory(ctx: click.Context, sections: tuple[str, ...]) -> None:
    """Print host facts as JSON.

    SECTIONS limits the output (hostname, interfaces, block, memory,
    product, chassis, pci, gpu). Default: all of them.
    """
    from agentdeps.probes import inventory as probe

    deps = _dependencies(ctx)
    _relay(probe.collect_inventory(",".join(sections), deps, logging.getLogger("agentdeps.inventory")))


if __name__ == "__main__":
    cli()
