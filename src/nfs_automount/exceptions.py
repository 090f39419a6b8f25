"""Exception hierarchy for nfs-automount.

Every fatal condition is an AutoMountError. The CLI logs the message once and
exits with the error's exit_code. Host- and export-scoped failures are never
raised; they are recorded in result objects instead.
"""


class AutoMountError(Exception):
    """Base exception for nfs-automount errors."""

    exit_code = 1


class ConfigError(AutoMountError):
    """Raised when configuration loading or validation fails."""

    pass


class ValidationError(ConfigError):
    """Raised when an input value fails validation."""

    pass


class PrerequisiteError(AutoMountError):
    """Raised when a required tool is missing and cannot be installed."""

    pass


class ReadinessTimeoutError(AutoMountError):
    """Raised when no NFS server appeared before the poll deadline."""

    pass


class NoServersFoundError(AutoMountError):
    """Raised when discovery finds no host with the NFS port open."""

    pass


class NoMountableSharesError(AutoMountError):
    """Raised when discovered servers offered nothing that could be mounted."""

    pass
