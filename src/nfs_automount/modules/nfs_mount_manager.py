"""NFS mount operations for discovered exports.

This module mounts one export of one host at a deterministic local path and
reports the outcome without raising, so a failing export never stops the
mounting of its siblings.

Philosophy:
- Local operations through the OS mount facility
- Deterministic mount points: <mount base>/<host>/<volume name>
- Per-mount failures are results, not exceptions
- Fail fast only on invalid input

Security:
- Host, share path, and options are validated before use
- Commands are argument lists, never shell strings

Public API:
    NFSMountManager: Main mount operations class
    MountResult: Result of mount operation
    MountInfo: Current mount information
    mount_point_for: Mount point derivation
    is_root_export: Root export detection
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from nfs_automount.exceptions import ValidationError
from nfs_automount.modules.subprocess_helper import safe_run, with_sudo
from nfs_automount.modules.validation import (
    validate_export_path,
    validate_host,
    validate_mount_base,
    validate_mount_options,
)

logger = logging.getLogger(__name__)

# NFSv3 over TCP, 256 KiB blocks, hard retries
DEFAULT_MOUNT_OPTIONS = "rw,hard,rsize=262144,wsize=262144,vers=3,tcp"

PERMISSIVE_MODE = "777"
VERIFY_DIR = "target"
VERIFY_FILE = "junk"

NFS_FILESYSTEM_TYPES = ("nfs", "nfs4")


# Data Models
@dataclass
class MountResult:
    """Result of mount operation."""

    host: str
    share: str
    mount_point: str
    options: str
    success: bool
    writable: bool | None = None
    already_mounted: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def remote(self) -> str:
        # IPv6 servers need brackets in the mount source
        if ":" in self.host:
            return f"[{self.host}]:{self.share}"
        return f"{self.host}:{self.share}"


@dataclass
class MountInfo:
    """Current mount information."""

    source: str
    mount_point: str
    filesystem_type: str
    mount_options: str


def is_root_export(share: str) -> bool:
    """True when the export is the filesystem root, which is never mounted.

    Any spelling that names "/" counts ("//", "/.", "/./").
    """
    return share.startswith("/") and not volume_name(share)


def volume_name(share: str) -> str:
    """Final path segment of an export path ("/exports/data/" -> "data")."""
    return PurePosixPath(share).name


def mount_point_for(mount_base: str, host: str, share: str) -> str:
    """Derive the mount point for an export.

    Example:
        >>> mount_point_for("/mnt", "10.0.0.5", "/data")
        '/mnt/10.0.0.5/data'
    """
    if is_root_export(share):
        raise ValidationError("The root export '/' has no mount point")
    return str(PurePosixPath(mount_base) / host / volume_name(share))


class NFSMountManager:
    """NFS mount operations for discovered exports.

    All methods are classmethods for brick-style API.
    No instance state maintained.
    """

    COMMAND_TIMEOUT = 120

    @classmethod
    def _run_step(cls, cmd: list[str], use_sudo: bool, timeout: float | None) -> str | None:
        """Run one privileged step; return an error message or None."""
        result = safe_run(with_sudo(cmd, use_sudo), timeout=timeout)
        if result.succeeded:
            return None
        return result.error_summary()

    @classmethod
    def mount_export(
        cls,
        host: str,
        share: str,
        mount_base: str = "/mnt",
        options: str = DEFAULT_MOUNT_OPTIONS,
        permissive: bool = True,
        verify_writable: bool = True,
        use_sudo: bool = False,
        timeout: float | None = None,
        skip_mounted: bool = True,
    ) -> MountResult:
        """Mount host:share under mount_base.

        Steps:
        1. Create <mount_base>/<host>/<volume> recursively
        2. chmod 777 it (when permissive)
        3. mount -t nfs -o <options> host:share <mount point>
        4. Create target/ inside and touch target/junk (when verify_writable)

        A failed writability check is logged and recorded in the result but
        does not revert the mount.

        Args:
            host: Server address
            share: Export path on the server
            mount_base: Directory holding all mount points
            options: NFS mount options
            permissive: Make the mount point and target directory world
                writable so an unprivileged workload can use them
            verify_writable: Prove the mount is writable with a marker file
            use_sudo: Prefix privileged commands with sudo
            timeout: Per-command timeout in seconds
            skip_mounted: Report success without remounting when the mount
                point is already in the NFS mount table

        Returns:
            MountResult with success status and details

        Raises:
            ValidationError: If inputs are unsafe or share is the root export
        """
        host = validate_host(host)
        share = validate_export_path(share)
        mount_base = validate_mount_base(mount_base)
        options = validate_mount_options(options)
        timeout = timeout if timeout is not None else cls.COMMAND_TIMEOUT

        mount_point = mount_point_for(mount_base, host, share)
        result = MountResult(
            host=host,
            share=share,
            mount_point=mount_point,
            options=options,
            success=False,
        )

        if skip_mounted and cls.is_mounted(mount_point):
            logger.info(f"{mount_point} is already mounted, skipping")
            result.success = True
            result.already_mounted = True
            return result

        steps = [["mkdir", "-p", mount_point]]
        if permissive:
            steps.append(["chmod", "-R", PERMISSIVE_MODE, mount_point])
        for step in steps:
            error = cls._run_step(step, use_sudo, timeout)
            if error:
                result.errors.append(f"Preparing {mount_point} failed: {error}")
                logger.error(f"Failed to prepare mount point {mount_point}: {error}")
                return result

        logger.info(f"Mounting {result.remote} to {mount_point}...")
        error = cls._run_step(
            ["mount", "-t", "nfs", "-o", options, result.remote, mount_point],
            use_sudo,
            timeout,
        )
        if error:
            result.errors.append(error)
            logger.error(f"Failed to mount {result.remote}: {error}")
            return result

        result.success = True
        logger.info(f"Successfully mounted {result.remote} to {mount_point}")

        if verify_writable:
            result.writable = cls.verify_writable(mount_point, permissive, use_sudo, timeout)
            if not result.writable:
                result.errors.append(f"{mount_point} is not writable")

        return result

    @classmethod
    def verify_writable(
        cls,
        mount_point: str,
        permissive: bool = True,
        use_sudo: bool = False,
        timeout: float | None = None,
    ) -> bool:
        """Create <mount_point>/target/junk to prove the mount is writable.

        The directory is created with the privileged runner; the marker file
        is written by the current process so that the check reflects what an
        unprivileged workload would see.
        """
        target = Path(mount_point) / VERIFY_DIR
        steps = [["mkdir", "-p", str(target)]]
        if permissive:
            steps.append(["chmod", PERMISSIVE_MODE, str(target)])
        for step in steps:
            error = cls._run_step(step, use_sudo, timeout)
            if error:
                logger.warning(f"Could not prepare {target}: {error}")
                return False

        try:
            (target / VERIFY_FILE).touch()
        except OSError as e:
            logger.warning(f"Directory '{target}' is not user writable: {e}")
            return False

        logger.info(f"Directory '{target}' is user writable.")
        return True

    @classmethod
    def get_nfs_mounts(cls, mounts_file: str = "/proc/mounts") -> list[MountInfo]:
        """List NFS filesystems currently mounted.

        Args:
            mounts_file: Mount table in /proc/mounts format

        Returns:
            MountInfo for every nfs/nfs4 entry, in table order
        """
        try:
            with open(mounts_file) as f:
                lines = f.read().splitlines()
        except OSError as e:
            logger.warning(f"Cannot read mount table {mounts_file}: {e}")
            return []

        mounts: list[MountInfo] = []
        for line in lines:
            fields = line.split()
            if len(fields) < 4 or fields[2] not in NFS_FILESYSTEM_TYPES:
                continue
            mounts.append(
                MountInfo(
                    source=fields[0],
                    # /proc/mounts escapes spaces as \040
                    mount_point=fields[1].replace("\\040", " "),
                    filesystem_type=fields[2],
                    mount_options=fields[3],
                )
            )
        return mounts

    @classmethod
    def is_mounted(cls, mount_point: str, mounts_file: str = "/proc/mounts") -> bool:
        """True when mount_point appears in the NFS mount table."""
        normalized = os.path.normpath(mount_point)
        return any(
            os.path.normpath(m.mount_point) == normalized
            for m in cls.get_nfs_mounts(mounts_file)
        )
