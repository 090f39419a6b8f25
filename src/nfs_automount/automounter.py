"""Find-and-mount workflow.

Runs the whole provisioning procedure once:

    wait -> ensure tools -> scan -> list exports -> mount -> summarize

Host- and export-scoped failures are logged and skipped. Global failures
(missing tools, no server before the deadline, nothing mountable) raise an
AutoMountError that the CLI turns into exit code 1.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from nfs_automount.config import MounterConfig, MountPolicy, WaitPolicy
from nfs_automount.exceptions import (
    NoMountableSharesError,
    NoServersFoundError,
    ReadinessTimeoutError,
    ValidationError,
)
from nfs_automount.modules.export_lister import ExportLister
from nfs_automount.modules.host_scanner import HostScanner
from nfs_automount.modules.nfs_mount_manager import (
    MountResult,
    NFSMountManager,
    is_root_export,
    mount_point_for,
    volume_name,
)
from nfs_automount.modules.prerequisites import PrerequisiteChecker
from nfs_automount.modules.readiness import wait_fixed, wait_for_hosts

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of one find-and-mount run."""

    hosts: list[str] = field(default_factory=list)
    exports: dict[str, list[str]] = field(default_factory=dict)
    mounts: list[MountResult] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> list[MountResult]:
        return [m for m in self.mounts if m.success]

    @property
    def failed(self) -> list[MountResult]:
        return [m for m in self.mounts if not m.success]

    @property
    def mountable_count(self) -> int:
        return sum(
            1 for shares in self.exports.values() for s in shares if not is_root_export(s)
        )


class NFSAutoMounter:
    """Runs the find-and-mount workflow for one configuration.

    Example:
        >>> config = ConfigManager.load_config()
        >>> result = NFSAutoMounter(config).run()
        >>> print(f"{len(result.succeeded)} shares mounted")
    """

    def __init__(
        self,
        config: MounterConfig,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self._sleep = sleep

    def discover(self) -> list[str]:
        """One scan of the configured subnet."""
        return HostScanner.scan(
            self.config.subnet,
            self.config.port,
            timeout=self.config.scan_timeout_seconds,
        )

    def wait_and_discover(self) -> list[str]:
        """Ensure tools, wait according to the wait policy, and scan.

        Raises:
            PrerequisiteError: If a required tool cannot be installed
            NoServersFoundError: If no host has the NFS port open
        """
        config = self.config

        if config.wait_policy == WaitPolicy.FIXED:
            wait_fixed(config.delay_minutes, sleep=self._sleep)
            PrerequisiteChecker.ensure_all(use_sudo=config.use_sudo)
            hosts = self.discover()
        else:
            PrerequisiteChecker.ensure_all(use_sudo=config.use_sudo)
            logger.info(
                f"Polling {config.subnet} every {config.poll_interval_seconds:g}s "
                f"for up to {config.poll_timeout_minutes:g} minutes"
            )
            try:
                hosts = wait_for_hosts(
                    self.discover,
                    timeout_seconds=config.poll_timeout_seconds,
                    interval_seconds=config.poll_interval_seconds,
                    sleep=self._sleep,
                )
            except ReadinessTimeoutError as e:
                raise NoServersFoundError(
                    f"No NFS servers found in range {config.subnet}: {e}"
                ) from e

        if not hosts:
            raise NoServersFoundError(f"No NFS servers found in range {config.subnet}.")
        return hosts

    def mount_one(self, host: str, share: str) -> MountResult:
        """Mount a single export, turning bad input into a failed result."""
        config = self.config
        try:
            return NFSMountManager.mount_export(
                host,
                share,
                mount_base=config.mount_base,
                options=config.mount_options,
                permissive=config.permissive_permissions,
                verify_writable=config.verify_writable,
                use_sudo=config.use_sudo,
                timeout=config.command_timeout_seconds,
            )
        except ValidationError as e:
            logger.error(f"Refusing to mount {host}:{share}: {e}")
            return MountResult(
                host=host,
                share=share,
                mount_point=mount_point_for(config.mount_base, host, share),
                options=config.mount_options,
                success=False,
                errors=[str(e)],
            )

    def mount_hosts(self, hosts: list[str]) -> RunResult:
        """Enumerate and mount exports of `hosts` according to the mount policy.

        Raises:
            NoMountableSharesError: If there was nothing to mount, or (in
                first-success mode) every mount attempt failed
        """
        config = self.config
        first_success = config.mount_policy == MountPolicy.FIRST_SUCCESS
        result = RunResult(hosts=list(hosts))

        for host in hosts:
            shares = ExportLister.list_exports(
                host,
                settle_seconds=config.settle_seconds,
                timeout=config.command_timeout_seconds,
                sleep=self._sleep,
            )
            result.exports[host] = shares

            for share in shares:
                if is_root_export(share):
                    logger.info(f"Skipping root export on {host}")
                    result.skipped.append(f"{host}:{share}")
                    continue

                logger.info(f"Found volume '{volume_name(share)}' on {host}")
                mount = self.mount_one(host, share)
                result.mounts.append(mount)

                if first_success and mount.success:
                    logger.info(f"Mounted {mount.remote}, stopping (policy: first-success)")
                    return result

        if result.mountable_count == 0:
            raise NoMountableSharesError(
                f"No mountable NFS shares found on {', '.join(hosts)}"
            )

        if first_success:
            raise NoMountableSharesError(
                f"Failed to mount any of {result.mountable_count} NFS shares"
            )

        if result.failed:
            logger.error(
                f"{len(result.failed)} of {len(result.mounts)} mounts failed: "
                f"{', '.join(m.remote for m in result.failed)}"
            )

        return result

    def run(self) -> RunResult:
        """Run the full workflow.

        Returns:
            RunResult describing hosts, exports and mount outcomes

        Raises:
            AutoMountError: On any fatal condition
        """
        config = self.config
        logger.info(
            f"Started execution: subnet={config.subnet} port={config.port} "
            f"wait={config.wait_policy.value} policy={config.mount_policy.value} "
            f"mount_base={config.mount_base}"
        )

        hosts = self.wait_and_discover()
        result = self.mount_hosts(hosts)

        logger.info(
            f"Finished execution: {len(result.succeeded)} mounted, "
            f"{len(result.failed)} failed, {len(result.skipped)} skipped "
            f"on {len(result.hosts)} server(s)."
        )
        return result
