"""CLI entry point for nfs-automount.

Commands:
    nfs-automount                 # Same as 'run' (what the VM extension calls)
    nfs-automount run             # Wait, scan, list exports, mount
    nfs-automount scan            # Discovery only
    nfs-automount exports HOST    # List one server's exports
    nfs-automount check           # Report missing tools
    nfs-automount status          # Show current NFS mounts
    nfs-automount config init     # Write a default config file
    nfs-automount config show     # Print the effective configuration
"""

import logging
import os
import sys
import traceback
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from nfs_automount import __version__
from nfs_automount.automounter import NFSAutoMounter, RunResult
from nfs_automount.config import (
    ENV_PREFIX,
    ConfigManager,
    LogDestination,
    MounterConfig,
    MountPolicy,
    WaitPolicy,
    default_log_file,
)
from nfs_automount.exceptions import AutoMountError
from nfs_automount.logging_config import setup_logging
from nfs_automount.modules.export_lister import ExportLister
from nfs_automount.modules.nfs_mount_manager import NFSMountManager
from nfs_automount.modules.prerequisites import PrerequisiteChecker

logger = logging.getLogger(__name__)


def _load_config(ctx: click.Context, overrides: dict | None = None) -> MounterConfig:
    """Effective config for this invocation; exits 1 on config errors."""
    try:
        return ConfigManager.load_config(ctx.obj.get("config_path"), overrides=overrides)
    except AutoMountError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(e.exit_code)


def _log_config_error(error: AutoMountError, options: dict, verbose: bool) -> None:
    """Log a configuration error through the run log.

    The configuration itself is unusable, so the log destination comes from
    the command line, then the environment, then the defaults.
    """
    destination = options.get("log_destination") or os.environ.get(
        f"{ENV_PREFIX}LOG_DESTINATION"
    )
    try:
        destination = LogDestination(destination or LogDestination.BOTH)
    except ValueError:
        destination = LogDestination.BOTH
    log_file = (
        options.get("log_file")
        or os.environ.get(f"{ENV_PREFIX}LOG_FILE")
        or default_log_file()
    )

    try:
        setup_logging(destination, log_file, verbose)
    except (OSError, ValueError):
        click.echo(f"Error: {error}", err=True)
        return
    logger.error(str(error))


def _report_unexpected(error: Exception) -> None:
    """Log an unanticipated exception with the location that raised it."""
    frames = traceback.extract_tb(error.__traceback__)
    if frames:
        where = frames[-1]
        location = f"{Path(where.filename).name}:{where.lineno} in {where.name}"
    else:
        location = "unknown location"
    logger.error(f"Unexpected error at {location}: {type(error).__name__}: {error}")
    logger.debug("Traceback:", exc_info=error)


def _print_run_summary(result: RunResult) -> None:
    console = Console()
    table = Table(title="NFS mounts")
    table.add_column("Remote")
    table.add_column("Mount point")
    table.add_column("Status")
    table.add_column("Writable")

    for mount in result.mounts:
        if mount.already_mounted:
            status = "[yellow]already mounted[/yellow]"
        elif mount.success:
            status = "[green]mounted[/green]"
        else:
            status = "[red]failed[/red]"
        writable = "-" if mount.writable is None else ("yes" if mount.writable else "no")
        table.add_row(mount.remote, mount.mount_point, status, writable)

    console.print(table)


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "config_path",
    help="Config file path (TOML)",
    type=click.Path(dir_okay=False),
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__, prog_name="nfs-automount")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """Find NFS servers on a subnet and mount their exports.

    Without a command, runs the full find-and-mount workflow, which is how a
    VM extension (that passes no arguments) invokes it.

    \b
    Examples:
        nfs-automount
        nfs-automount run --subnet 10.0.0.0/28 --policy first-success
        nfs-automount scan --subnet 10.1.0.0/24
        nfs-automount exports 10.0.0.4
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@main.command()
@click.option("--subnet", help="Subnet to scan (CIDR)", type=str)
@click.option("--port", help="NFS port (default: 2049)", type=int)
@click.option("--mount-base", help="Directory for mount points (default: /mnt)", type=str)
@click.option("--options", "mount_options", help="NFS mount options", type=str)
@click.option(
    "--policy",
    "mount_policy",
    type=click.Choice([p.value for p in MountPolicy]),
    help="Mount every share or stop after the first success",
)
@click.option(
    "--wait",
    "wait_policy",
    type=click.Choice([p.value for p in WaitPolicy]),
    help="Fixed delay or poll until a server answers",
)
@click.option("--delay", "delay_minutes", type=float, help="Fixed delay in minutes")
@click.option("--timeout", "poll_timeout_minutes", type=float, help="Poll timeout in minutes")
@click.option("--interval", "poll_interval_seconds", type=float, help="Poll interval in seconds")
@click.option("--settle", "settle_seconds", type=float, help="Delay before listing each host")
@click.option(
    "--verify/--no-verify",
    "verify_writable",
    default=None,
    help="Write a marker file to prove each mount is writable",
)
@click.option(
    "--permissive/--no-permissive",
    "permissive_permissions",
    default=None,
    help="chmod 777 mount points so unprivileged workloads can write",
)
@click.option("--sudo/--no-sudo", "use_sudo", default=None, help="Run privileged commands via sudo")
@click.option(
    "--log-to",
    "log_destination",
    type=click.Choice([d.value for d in LogDestination]),
    help="Log destination",
)
@click.option("--log-file", help="Log file path", type=click.Path(dir_okay=False))
@click.option("--summary", is_flag=True, help="Print a table of mount outcomes")
@click.pass_context
def run(ctx: click.Context, summary: bool = False, **options):
    """Wait for an NFS server, then mount its exports.

    Exits 0 on success (partial success in mount-all mode counts), 1 when no
    server was found, nothing could be mounted, or a required tool is
    missing.
    """
    try:
        config = ConfigManager.load_config(ctx.obj.get("config_path"), overrides=options)
    except AutoMountError as e:
        _log_config_error(e, options, ctx.obj.get("verbose", False))
        sys.exit(e.exit_code)

    try:
        setup_logging(config.log_destination, config.log_file, ctx.obj.get("verbose", False))
    except (OSError, ValueError) as e:
        click.echo(f"Error: cannot open log file {config.log_file}: {e}", err=True)
        sys.exit(1)

    try:
        result = NFSAutoMounter(config).run()
    except AutoMountError as e:
        logger.error(str(e))
        sys.exit(e.exit_code)
    except Exception as e:
        _report_unexpected(e)
        sys.exit(1)

    if summary:
        _print_run_summary(result)


@main.command()
@click.option("--subnet", help="Subnet to scan (CIDR)", type=str)
@click.option("--port", help="NFS port (default: 2049)", type=int)
@click.pass_context
def scan(ctx: click.Context, subnet: str | None, port: int | None):
    """Scan the subnet and print hosts with the NFS port open."""
    config = _load_config(ctx, overrides={"subnet": subnet, "port": port})
    setup_logging(LogDestination.STDOUT, verbose=ctx.obj.get("verbose", False))

    try:
        PrerequisiteChecker.ensure_all(use_sudo=config.use_sudo)
        hosts = NFSAutoMounter(config).discover()
    except AutoMountError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(e.exit_code)

    if not hosts:
        click.echo(f"No NFS servers found in range {config.subnet}.")
        sys.exit(1)

    for host in hosts:
        click.echo(host)


@main.command()
@click.argument("host")
@click.pass_context
def exports(ctx: click.Context, host: str):
    """List the exports of HOST."""
    config = _load_config(ctx)
    setup_logging(LogDestination.STDOUT, verbose=ctx.obj.get("verbose", False))

    shares = ExportLister.list_exports(host, timeout=config.command_timeout_seconds)
    if not shares:
        click.echo(f"No exports found on {host}.", err=True)
        sys.exit(1)

    for share in shares:
        click.echo(share)


@main.command()
def check():
    """Report whether the required tools are installed (installs nothing)."""
    result = PrerequisiteChecker.check_all()

    for tool in result.available:
        click.echo(f"  found    {tool}")
    for tool in result.missing:
        click.echo(f"  missing  {tool}")

    if not result.all_available:
        manager = PrerequisiteChecker.detect_package_manager()
        if manager:
            click.echo(f"\nMissing tools will be installed with {manager} on 'run'.")
        else:
            click.echo("\nNo supported package manager found (dnf, yum, apt-get).", err=True)
        sys.exit(1)


@main.command()
@click.option("--mounts-file", default="/proc/mounts", help="Mount table to read", hidden=True)
@click.pass_context
def status(ctx: click.Context, mounts_file: str):
    """Show NFS filesystems currently mounted under the mount base."""
    config = _load_config(ctx)
    base = config.mount_base.rstrip("/") + "/"

    mounts = [
        m for m in NFSMountManager.get_nfs_mounts(mounts_file) if m.mount_point.startswith(base)
    ]
    if not mounts:
        click.echo(f"No NFS mounts under {config.mount_base}.")
        return

    table = Table(title=f"NFS mounts under {config.mount_base}")
    table.add_column("Source")
    table.add_column("Mount point")
    table.add_column("Type")
    table.add_column("Options", overflow="fold")
    for m in mounts:
        table.add_row(m.source, m.mount_point, m.filesystem_type, m.mount_options)
    Console().print(table)


@main.group(name="config")
def config_group():
    """Manage the configuration file."""
    pass


@config_group.command(name="init")
@click.argument("path", required=False, type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path: str | None, force: bool):
    """Write the default configuration to PATH.

    PATH defaults to /etc/nfs-automount/config.toml.
    """
    target = Path(path) if path else ConfigManager.DEFAULT_CONFIG_FILE
    try:
        written = ConfigManager.write_default_config(target, force=force)
    except AutoMountError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(e.exit_code)
    click.echo(f"Wrote {written}")


@config_group.command(name="show")
@click.pass_context
def config_show(ctx: click.Context):
    """Print the effective configuration (defaults, file, environment)."""
    config = _load_config(ctx)
    for key, value in config.to_dict().items():
        click.echo(f"{key} = {value}")


if __name__ == "__main__":
    main()
