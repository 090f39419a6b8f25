"""Export enumeration with showmount.

Public API:
    ExportLister: Lists the exports of one host
    parse_showmount_output: Extract share paths from `showmount -e` output
"""

import logging
import time
from typing import Callable

from nfs_automount.modules.subprocess_helper import safe_run

logger = logging.getLogger(__name__)


def parse_showmount_output(output: str) -> list[str]:
    """Return the share paths listed by `showmount -e`.

    The first line is the "Export list for <host>:" header and is skipped.
    Each remaining line is "<path> <clients>"; only the path column is kept,
    and only when it starts with "/".

    Example:
        >>> parse_showmount_output("Export list for 10.0.0.4:\\n/data *\\n")
        ['/data']
    """
    shares: list[str] = []
    for line in (output or "").splitlines()[1:]:
        columns = line.split()
        if not columns or not columns[0].startswith("/"):
            continue
        if columns[0] not in shares:
            shares.append(columns[0])
    return shares


class ExportLister:
    """Lists NFS exports of a host.

    All methods are classmethods for brick-style API.
    """

    COMMAND_TIMEOUT = 60

    @classmethod
    def list_exports(
        cls,
        host: str,
        settle_seconds: float = 0,
        timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> list[str]:
        """List exports of `host`.

        Args:
            host: Server address
            settle_seconds: Delay before querying, lets a freshly started
                server finish registering its exports
            timeout: showmount timeout in seconds (default: COMMAND_TIMEOUT)
            sleep: Sleep function (injectable for tests)

        Returns:
            Share paths; empty when the host is unreachable or showmount fails
        """
        logger.info(f"Checking NFS shares on {host}...")

        if settle_seconds > 0:
            logger.debug(f"Waiting {settle_seconds:g}s for {host} to settle")
            sleep(settle_seconds)

        result = safe_run(
            ["showmount", "-e", host],
            timeout=timeout if timeout is not None else cls.COMMAND_TIMEOUT,
        )
        if not result.succeeded:
            logger.warning(f"Could not list exports on {host}: {result.error_summary()}")
            return []

        shares = parse_showmount_output(result.stdout)
        if shares:
            logger.info(f"Exports on {host}: {', '.join(shares)}")
        else:
            logger.info(f"No exports listed on {host}")
        return shares
