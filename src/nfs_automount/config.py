"""Configuration management module.

Every setting the auto-mounter needs is a field of MounterConfig. Values are
layered: built-in defaults, then a TOML file, then NFS_AUTOMOUNT_* environment
variables, then command-line options. The VM extension passes no arguments,
so the first three layers are what a provisioned VM actually uses.

Config file lookup:
    1. --config PATH
    2. $NFS_AUTOMOUNT_CONFIG
    3. /etc/nfs-automount/config.toml (if present)
"""

import logging
import math
import os
import sys
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any

import tomli
import tomlkit

from nfs_automount.exceptions import ConfigError, ValidationError
from nfs_automount.modules.nfs_mount_manager import DEFAULT_MOUNT_OPTIONS
from nfs_automount.modules.validation import (
    validate_cidr,
    validate_mount_base,
    validate_mount_options,
    validate_port,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "NFS_AUTOMOUNT_"

_DURATION_FIELDS = (
    "delay_minutes",
    "poll_timeout_minutes",
    "poll_interval_seconds",
    "settle_seconds",
    "scan_timeout_seconds",
    "command_timeout_seconds",
)


class MountPolicy(str, Enum):
    """Which discovered exports get mounted."""

    MOUNT_ALL = "mount-all"
    FIRST_SUCCESS = "first-success"


class WaitPolicy(str, Enum):
    """How to wait for the NFS server before scanning."""

    FIXED = "fixed"
    POLL = "poll"


class LogDestination(str, Enum):
    """Where log lines go."""

    STDOUT = "stdout"
    FILE = "file"
    BOTH = "both"


def default_log_file() -> str:
    """/tmp/<invocation name>.log, e.g. /tmp/nfs-automount.log."""
    name = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "nfs-automount"
    return f"/tmp/{name}.log"


@dataclass
class MounterConfig:
    """nfs-automount configuration data."""

    subnet: str = "10.0.0.0/28"
    port: int = 2049
    wait_policy: WaitPolicy = WaitPolicy.POLL
    delay_minutes: float = 7
    poll_timeout_minutes: float = 15
    poll_interval_seconds: float = 30
    settle_seconds: float = 0
    mount_base: str = "/mnt"
    mount_options: str = DEFAULT_MOUNT_OPTIONS
    mount_policy: MountPolicy = MountPolicy.MOUNT_ALL
    verify_writable: bool = True
    permissive_permissions: bool = True  # 0777 mount points for test workloads
    use_sudo: bool = False
    log_destination: LogDestination = LogDestination.BOTH
    log_file: str = field(default_factory=default_log_file)
    scan_timeout_seconds: float = 300
    command_timeout_seconds: float = 120

    @property
    def poll_timeout_seconds(self) -> float:
        return self.poll_timeout_minutes * 60

    def validate(self) -> "MounterConfig":
        """Check every field, returning self for chaining.

        Raises:
            ConfigError: If any field is invalid
        """
        try:
            self.subnet = validate_cidr(self.subnet)
            self.port = validate_port(self.port)
            self.mount_base = validate_mount_base(self.mount_base)
            self.mount_options = validate_mount_options(self.mount_options)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        for name in _DURATION_FIELDS:
            if not math.isfinite(getattr(self, name)):
                raise ConfigError(f"Invalid configuration: {name} must be a finite number")

        for name in ("delay_minutes", "poll_timeout_minutes", "settle_seconds"):
            if getattr(self, name) < 0:
                raise ConfigError(f"Invalid configuration: {name} must not be negative")

        for name in ("poll_interval_seconds", "scan_timeout_seconds", "command_timeout_seconds"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"Invalid configuration: {name} must be positive")

        if not self.log_file:
            raise ConfigError("Invalid configuration: log_file cannot be empty")

        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to a TOML-friendly dictionary (enums as their values)."""
        data = asdict(self)
        return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: "MounterConfig | None" = None) -> "MounterConfig":
        """Create from dictionary, starting from `base` (default: defaults).

        Unknown keys are rejected so that typos do not silently fall back to
        defaults.

        Raises:
            ConfigError: If a key is unknown or a value has the wrong type
        """
        base = base or cls()
        known = {f.name: f for f in fields(cls)}
        updates: dict[str, Any] = {}

        for key, value in data.items():
            normalized = key.replace("-", "_")
            if normalized not in known:
                raise ConfigError(f"Unknown configuration key: '{key}'")
            updates[normalized] = _coerce(normalized, value)

        return replace(base, **updates)


# field name -> converter from str/TOML value
def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


_CONVERTERS = {
    "subnet": str,
    "port": int,
    "wait_policy": WaitPolicy,
    "delay_minutes": float,
    "poll_timeout_minutes": float,
    "poll_interval_seconds": float,
    "settle_seconds": float,
    "mount_base": str,
    "mount_options": str,
    "mount_policy": MountPolicy,
    "verify_writable": _to_bool,
    "permissive_permissions": _to_bool,
    "use_sudo": _to_bool,
    "log_destination": LogDestination,
    "log_file": str,
    "scan_timeout_seconds": float,
    "command_timeout_seconds": float,
}


def _coerce(name: str, value: Any) -> Any:
    try:
        return _CONVERTERS[name](value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for '{name}': {value!r}") from e


class ConfigManager:
    """Load and write nfs-automount configuration.

    All methods are classmethods; no instance state maintained.
    """

    DEFAULT_CONFIG_FILE = Path("/etc/nfs-automount/config.toml")
    CONFIG_ENV_VAR = f"{ENV_PREFIX}CONFIG"

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path | None:
        """Resolve which config file to read, or None for defaults only.

        Raises:
            ConfigError: If an explicitly requested file does not exist
        """
        explicit = custom_path or os.environ.get(cls.CONFIG_ENV_VAR)
        if explicit:
            path = Path(explicit).expanduser()
            if not path.is_file():
                raise ConfigError(f"Config file not found: {path}")
            return path

        if cls.DEFAULT_CONFIG_FILE.is_file():
            return cls.DEFAULT_CONFIG_FILE

        return None

    @classmethod
    def load_file(cls, path: Path, base: MounterConfig | None = None) -> MounterConfig:
        """Load a TOML config file on top of `base`.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        try:
            with open(path, "rb") as f:
                data = tomli.load(f)
        except (OSError, tomli.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load config {path}: {e}") from e

        logger.debug(f"Loaded config from: {path}")
        return MounterConfig.from_dict(data, base)

    @classmethod
    def apply_environment(
        cls, config: MounterConfig, environ: dict[str, str] | None = None
    ) -> MounterConfig:
        """Override fields from NFS_AUTOMOUNT_<FIELD> environment variables.

        Example:
            NFS_AUTOMOUNT_SUBNET=10.1.0.0/24 NFS_AUTOMOUNT_MOUNT_POLICY=first-success
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(MounterConfig):
            value = environ.get(f"{ENV_PREFIX}{f.name.upper()}")
            if value is not None and value != "":
                overrides[f.name] = value
        if overrides:
            logger.debug(f"Environment overrides: {', '.join(sorted(overrides))}")
        return MounterConfig.from_dict(overrides, config)

    @classmethod
    def load_config(
        cls,
        custom_path: str | None = None,
        overrides: dict[str, Any] | None = None,
        environ: dict[str, str] | None = None,
    ) -> MounterConfig:
        """Build the effective configuration and validate it.

        Args:
            custom_path: Config file path (optional)
            overrides: Values from command-line options; None values ignored
            environ: Environment mapping (default: os.environ)

        Returns:
            Validated MounterConfig

        Raises:
            ConfigError: If loading or validation fails
        """
        config = MounterConfig()

        path = cls.get_config_path(custom_path)
        if path is not None:
            config = cls.load_file(path, config)

        config = cls.apply_environment(config, environ)

        if overrides:
            config = MounterConfig.from_dict(
                {k: v for k, v in overrides.items() if v is not None}, config
            )

        return config.validate()

    @classmethod
    def write_default_config(cls, path: Path, force: bool = False) -> Path:
        """Write a commented TOML file holding the default configuration.

        Raises:
            ConfigError: If the file exists (without force) or cannot be written
        """
        if path.exists() and not force:
            raise ConfigError(f"Config file already exists: {path} (use --force to overwrite)")

        doc = tomlkit.document()
        doc.add(tomlkit.comment("nfs-automount configuration"))
        doc.add(tomlkit.comment(f"Every key can be overridden with {ENV_PREFIX}<KEY>"))
        doc.add(tomlkit.nl())
        for key, value in MounterConfig().to_dict().items():
            doc[key] = value

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                tomlkit.dump(doc, f)
        except OSError as e:
            raise ConfigError(f"Failed to write config {path}: {e}") from e

        logger.debug(f"Wrote default config to: {path}")
        return path
