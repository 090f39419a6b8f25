"""
Prerequisites Module

Makes sure the port scanner and the NFS export lister are installed before
discovery starts, installing them with the first available system package
manager when they are missing.

Security Requirements:
- No shell=True in subprocess calls
- Package names come from a fixed table, never from input
- Installation failures are surfaced, never swallowed
"""

import logging
import shutil
from dataclasses import dataclass, field
from typing import ClassVar

from nfs_automount.exceptions import PrerequisiteError
from nfs_automount.modules.subprocess_helper import safe_run, with_sudo

logger = logging.getLogger(__name__)


@dataclass
class PrerequisiteResult:
    """Result of prerequisite checks."""

    all_available: bool
    missing: list[str]
    available: list[str]
    installed: list[str] = field(default_factory=list)


class PrerequisiteChecker:
    """
    Check and install required external tools.

    Required tools:
    - nmap (host discovery)
    - showmount (export enumeration)

    Package managers are tried in order: dnf, yum, apt-get.
    """

    REQUIRED_TOOLS: ClassVar[list[str]] = ["nmap", "showmount"]

    PACKAGE_MANAGERS: ClassVar[list[str]] = ["dnf", "yum", "apt-get"]

    # manager -> tool -> package
    PACKAGES: ClassVar[dict[str, dict[str, str]]] = {
        "dnf": {"nmap": "nmap", "showmount": "nfs-utils"},
        "yum": {"nmap": "nmap", "showmount": "nfs-utils"},
        "apt-get": {"nmap": "nmap", "showmount": "nfs-common"},
    }

    INSTALL_TIMEOUT = 600

    @classmethod
    def check_tool(cls, tool_name: str) -> bool:
        """
        Check if a single tool is available in PATH.

        Security: Uses shutil.which (safe, no subprocess)
        """
        result = shutil.which(tool_name)
        if result:
            logger.debug(f"Found {tool_name} at {result}")
            return True
        logger.debug(f"Tool not found: {tool_name}")
        return False

    @classmethod
    def check_all(cls) -> PrerequisiteResult:
        """
        Check all required tools without installing anything.

        Example:
            >>> result = PrerequisiteChecker.check_all()
            >>> if not result.all_available:
            ...     print(f"Missing: {result.missing}")
        """
        missing: list[str] = []
        available: list[str] = []

        for tool in cls.REQUIRED_TOOLS:
            if cls.check_tool(tool):
                available.append(tool)
            else:
                missing.append(tool)

        return PrerequisiteResult(
            all_available=not missing,
            missing=missing,
            available=available,
        )

    @classmethod
    def detect_package_manager(cls) -> str | None:
        """Return the first supported package manager found on PATH."""
        for manager in cls.PACKAGE_MANAGERS:
            if shutil.which(manager):
                return manager
        return None

    @classmethod
    def install_command(cls, manager: str, package: str, use_sudo: bool = False) -> list[str]:
        """Build the non-interactive install command for a package."""
        if manager == "apt-get":
            cmd = ["apt-get", "install", "-y", "-q", package]
        else:
            cmd = [manager, "install", "-y", package]
        return with_sudo(cmd, use_sudo)

    @classmethod
    def install_tool(cls, tool_name: str, use_sudo: bool = False) -> None:
        """
        Install a missing tool with the first available package manager.

        Raises:
            PrerequisiteError: If no package manager is available, the
                install command fails, or the tool is still missing
        """
        manager = cls.detect_package_manager()
        if manager is None:
            raise PrerequisiteError(
                f"Cannot install '{tool_name}': no supported package manager found "
                f"(tried {', '.join(cls.PACKAGE_MANAGERS)})"
            )

        package = cls.PACKAGES[manager][tool_name]
        logger.info(f"Installing {package} with {manager} to provide '{tool_name}'")

        result = safe_run(
            cls.install_command(manager, package, use_sudo),
            timeout=cls.INSTALL_TIMEOUT,
        )
        if not result.succeeded:
            raise PrerequisiteError(
                f"Failed to install '{tool_name}' ({package}) with {manager}: "
                f"{result.error_summary()}"
            )

        if not cls.check_tool(tool_name):
            raise PrerequisiteError(
                f"'{tool_name}' still not on PATH after installing {package} with {manager}"
            )

        logger.info(f"Installed {package}")

    @classmethod
    def ensure_all(cls, use_sudo: bool = False) -> PrerequisiteResult:
        """
        Make sure every required tool is present, installing what is missing.

        Idempotent: when everything is already installed no install command
        is invoked.

        Raises:
            PrerequisiteError: If a missing tool cannot be installed
        """
        result = cls.check_all()
        if result.all_available:
            logger.info(f"All required tools present: {', '.join(result.available)}")
            return result

        logger.info(f"Missing required tools: {', '.join(result.missing)}")
        for tool in result.missing:
            cls.install_tool(tool, use_sudo=use_sudo)
            result.installed.append(tool)
            result.available.append(tool)

        result.missing = []
        result.all_available = True
        return result


def ensure_prerequisites(use_sudo: bool = False) -> PrerequisiteResult:
    """
    Ensure all prerequisites (convenience function).

    Example:
        >>> from nfs_automount.modules.prerequisites import ensure_prerequisites
        >>> ensure_prerequisites(use_sudo=True)
    """
    return PrerequisiteChecker.ensure_all(use_sudo=use_sudo)
