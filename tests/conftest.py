"""
Shared test fixtures and configuration for nfs-automount tests.

This module provides common fixtures used across all test types:
- Isolation from the host's config file and NFS_AUTOMOUNT_* variables
- Ready-made configurations that never sleep or touch /mnt
- Fake tool results for nmap, showmount and mount
"""

import logging
import os

import pytest

from nfs_automount.config import ConfigManager, LogDestination, MounterConfig, WaitPolicy
from nfs_automount.modules.subprocess_helper import SubprocessResult

# ============================================================================
# ISOLATION FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_configuration(tmp_path, monkeypatch):
    """Keep tests away from /etc/nfs-automount and the caller's environment.

    CRITICAL: a developer machine may have a real config file or exported
    NFS_AUTOMOUNT_* variables; tests must see neither.
    """
    for key in list(os.environ):
        if key.startswith("NFS_AUTOMOUNT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_FILE", tmp_path / "absent" / "config.toml")


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Undo handlers installed by setup_logging() during a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================


@pytest.fixture
def base_config(tmp_path):
    """Poll-mode configuration with a tiny wait budget and a temp log file."""
    return MounterConfig(
        subnet="10.0.0.0/28",
        wait_policy=WaitPolicy.POLL,
        poll_timeout_minutes=0,
        poll_interval_seconds=1,
        log_destination=LogDestination.STDOUT,
        log_file=str(tmp_path / "nfs-automount.log"),
    )


# ============================================================================
# TOOL RESULT FIXTURES
# ============================================================================


@pytest.fixture
def tool_result():
    """Factory for SubprocessResult objects."""

    def make(stdout="", returncode=0, stderr="", command=None):
        return SubprocessResult(
            command=command or ["tool"],
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
        )

    return make
