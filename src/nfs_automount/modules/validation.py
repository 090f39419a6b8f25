"""Shared validation utilities for scan targets and mount inputs.

Consolidates the checks applied to configuration values and to strings that
come back from external tools before they end up on a command line.

Philosophy:
- Single source of truth for validation
- Security-first: no shell metacharacters, no path traversal
- Clear error messages with actionable guidance

Public API:
    validate_cidr: Subnet in CIDR notation
    validate_port: TCP port number
    validate_host: Address reported by the scanner
    validate_export_path: Share path reported by the export lister
    validate_mount_base: Local directory that holds all mount points
    validate_mount_options: Comma-separated NFS mount options
    ValidationError: Raised on any validation failure
"""

import ipaddress
import logging
import re
from pathlib import PurePosixPath

from nfs_automount.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Characters that must never reach a command line, even as list arguments
DANGEROUS_CHARS = [";", "&", "|", "$", "`", "(", ")", "<", ">", "\\", "'", '"', "\n", "\r", "\t"]


def validate_cidr(subnet: str) -> str:
    """Validate a subnet in CIDR notation.

    Args:
        subnet: Subnet string, e.g. "10.0.0.0/28"

    Returns:
        Normalized subnet string

    Raises:
        ValidationError: If subnet is not valid CIDR

    Example:
        >>> validate_cidr("10.0.0.0/28")
        '10.0.0.0/28'
        >>> validate_cidr("10.0.0.1/28")
        ValidationError: Subnet has host bits set
    """
    if not subnet or not isinstance(subnet, str):
        raise ValidationError("Subnet cannot be empty")

    if "/" not in subnet:
        raise ValidationError(
            f"Subnet must be in CIDR notation: '{subnet}'. Use e.g. 10.0.0.0/28"
        )

    try:
        network = ipaddress.ip_network(subnet.strip(), strict=True)
    except ValueError as e:
        if "host bits set" in str(e):
            raise ValidationError(f"Subnet has host bits set: '{subnet}'") from e
        raise ValidationError(f"Invalid CIDR subnet: '{subnet}' ({e})") from e

    return str(network)


def validate_port(port: int | str) -> int:
    """Validate a TCP port number (1-65535).

    Args:
        port: Port number, int or numeric string

    Returns:
        Port as int

    Raises:
        ValidationError: If port is not an integer in range
    """
    if isinstance(port, bool):
        raise ValidationError(f"Port must be an integer: {port!r}")

    try:
        value = int(port)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Port must be an integer: {port!r}") from e

    if value < 1 or value > 65535:
        raise ValidationError(f"Port out of range (1-65535): {value}")

    return value


def validate_host(host: str) -> str:
    """Validate a host address reported by the scanner.

    Raises:
        ValidationError: If host is not an IP address
    """
    if not host:
        raise ValidationError("Host cannot be empty")

    try:
        return str(ipaddress.ip_address(host.strip()))
    except ValueError as e:
        raise ValidationError(f"Invalid host address: '{host}'") from e


def validate_export_path(share: str) -> str:
    """Validate an export path before it is mounted.

    Args:
        share: Export path, e.g. "/exports/data"

    Returns:
        Validated export path (unchanged if valid)

    Raises:
        ValidationError: If path is relative or contains unsafe characters
    """
    if not share:
        raise ValidationError("Export path cannot be empty")

    if not share.startswith("/"):
        raise ValidationError(f"Export path must start with '/': '{share}'")

    for char in DANGEROUS_CHARS:
        if char in share:
            raise ValidationError(f"Export path contains unsafe character '{char}': '{share}'")

    if ".." in PurePosixPath(share).parts:
        raise ValidationError(f"Export path cannot contain '..': '{share}'")

    return share


def validate_mount_base(mount_base: str) -> str:
    """Validate the directory under which mount points are created.

    Raises:
        ValidationError: If path is relative, traverses, or has unsafe characters
    """
    if not mount_base:
        raise ValidationError("Mount base cannot be empty")

    if not PurePosixPath(mount_base).is_absolute():
        raise ValidationError(
            f"Mount base must be absolute path: '{mount_base}'. "
            f"Use paths like /mnt, not relative paths."
        )

    if not re.match(r"^/[a-zA-Z0-9/_.-]*$", mount_base):
        raise ValidationError(f"Mount base contains invalid characters: '{mount_base}'")

    if ".." in PurePosixPath(mount_base).parts:
        raise ValidationError(f"Mount base contains path traversal '..': '{mount_base}'")

    if not (mount_base.startswith("/mnt") or mount_base.startswith("/media")):
        logger.warning(
            f"Mount base '{mount_base}' is outside typical directories (/mnt, /media). "
            f"Ensure this is intentional."
        )

    return mount_base


def validate_mount_options(options: str) -> str:
    """Validate mount options for safe use on a command line.

    Args:
        options: Mount options string (e.g., "rw,hard,vers=3,tcp")

    Returns:
        Validated options

    Raises:
        ValidationError: If options are empty or contain invalid characters
    """
    if not options:
        raise ValidationError("Mount options cannot be empty")

    if not re.match(r"^[a-zA-Z0-9,=_.-]+$", options):
        raise ValidationError(f"Mount options contain invalid characters: '{options}'")

    return options


__all__ = [
    "ValidationError",
    "validate_cidr",
    "validate_export_path",
    "validate_host",
    "validate_mount_base",
    "validate_mount_options",
    "validate_port",
]
