"""Host discovery with nmap.

Finds the hosts on a subnet that have a TCP port open, using nmap's grepable
output. Parsing lives in parse_grepable_output so the rest of the package
never depends on nmap's exact formatting.

Public API:
    HostScanner: Runs the scan
    parse_grepable_output: Extract open hosts from `nmap -oG` output
"""

import logging
import re

from nfs_automount.exceptions import ValidationError
from nfs_automount.modules.subprocess_helper import safe_run
from nfs_automount.modules.validation import validate_cidr, validate_host, validate_port

logger = logging.getLogger(__name__)

NFS_PORT = 2049

# "Host: 10.0.0.4 (nfs01)	Ports: 2049/open/tcp//nfs///"
_HOST_LINE = re.compile(r"^Host:\s+(?P<address>\S+)")


def parse_grepable_output(output: str, port: int = NFS_PORT) -> list[str]:
    """Extract addresses with `port` open from nmap grepable output.

    A line counts when it starts with "Host:" and its "Ports:" field lists
    "<port>/open". Status-only lines ("Status: Up") and comments are ignored.
    Addresses are returned in scanner order without duplicates.

    Example:
        >>> parse_grepable_output("Host: 10.0.0.4 ()\\tPorts: 2049/open/tcp//nfs///")
        ['10.0.0.4']
    """
    hosts: list[str] = []
    open_marker = re.compile(rf"(?:^|[\s,]){port}/open/")

    for line in (output or "").splitlines():
        match = _HOST_LINE.match(line)
        if not match or "Ports:" not in line:
            continue

        ports_field = line.split("Ports:", 1)[1]
        if not open_marker.search(ports_field):
            continue

        try:
            address = validate_host(match.group("address"))
        except ValidationError:
            logger.debug(f"Ignoring unparsable scan line: {line!r}")
            continue

        if address not in hosts:
            hosts.append(address)

    return hosts


class HostScanner:
    """Subnet scan for hosts with a port open.

    All methods are classmethods for brick-style API.
    No instance state maintained.
    """

    SCAN_TIMEOUT = 300

    @classmethod
    def build_command(cls, subnet: str, port: int) -> list[str]:
        return ["nmap", "-p", str(port), "--open", "-oG", "-", subnet]

    @classmethod
    def scan(cls, subnet: str, port: int = NFS_PORT, timeout: float | None = None) -> list[str]:
        """Scan a subnet for hosts with `port` open.

        Args:
            subnet: Subnet in CIDR notation
            port: TCP port to scan (default: 2049)
            timeout: Scan timeout in seconds (default: SCAN_TIMEOUT)

        Returns:
            Addresses in scanner order; empty when nothing answered or the
            scanner failed

        Raises:
            ValidationError: If subnet or port is malformed
        """
        subnet = validate_cidr(subnet)
        port = validate_port(port)

        logger.info(f"Scanning IP range {subnet} for NFS servers on port {port}...")
        result = safe_run(
            cls.build_command(subnet, port),
            timeout=timeout if timeout is not None else cls.SCAN_TIMEOUT,
        )

        if not result.succeeded:
            logger.warning(f"Scan of {subnet} failed: {result.error_summary()}")
            return []

        hosts = parse_grepable_output(result.stdout, port)
        if hosts:
            logger.info(f"Found NFS servers: {' '.join(hosts)}")
        else:
            logger.info(f"No hosts with port {port} open in {subnet}")
        return hosts
