"""Readiness waits run before discovery.

Two policies:
- Fixed delay: sleep a configured number of minutes unconditionally
- Poll: call a discovery function at a fixed interval until it finds a host
  or the timeout elapses (no backoff, no jitter)

Usage:
    hosts = wait_for_hosts(
        lambda: HostScanner.scan("10.0.0.0/28", 2049),
        timeout_seconds=900,
        interval_seconds=30,
    )
"""

import logging
import math
import time
from typing import Callable

from nfs_automount.exceptions import ReadinessTimeoutError, ValidationError

logger = logging.getLogger(__name__)


def wait_fixed(minutes: float, sleep: Callable[[float], None] = time.sleep) -> None:
    """Sleep for a fixed number of minutes.

    Args:
        minutes: Delay in minutes; 0 means no wait
        sleep: Sleep function (injectable for tests)

    Raises:
        ValidationError: If minutes is negative or not finite
    """
    if not math.isfinite(minutes) or minutes < 0:
        raise ValidationError(f"Delay must be a finite, non-negative number: {minutes} minutes")

    if minutes == 0:
        logger.info("Readiness delay is 0, not waiting.")
        return

    logger.info(f"Waiting for {minutes:g} minutes for resources to be available.")
    sleep(minutes * 60)


def wait_for_hosts(
    discover: Callable[[], list[str]],
    timeout_seconds: float,
    interval_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> list[str]:
    """Poll discover() until it returns at least one host.

    Args:
        discover: Zero-argument callable returning discovered hosts
        timeout_seconds: Total wait budget; 0 means a single attempt
        interval_seconds: Fixed delay between attempts
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Returns:
        Non-empty list of hosts from the first successful attempt

    Raises:
        ValidationError: If timeout is negative, interval is not positive,
            or either is not finite
        ReadinessTimeoutError: If no host appeared before the deadline
    """
    if not math.isfinite(timeout_seconds) or timeout_seconds < 0:
        raise ValidationError(
            f"Poll timeout must be a finite, non-negative number: {timeout_seconds}s"
        )
    if not math.isfinite(interval_seconds) or interval_seconds <= 0:
        raise ValidationError(f"Poll interval must be finite and positive: {interval_seconds}s")

    deadline = clock() + timeout_seconds
    attempt = 0

    while True:
        attempt += 1
        hosts = discover()
        if hosts:
            if attempt > 1:
                logger.info(f"NFS server reachable after {attempt} attempts")
            return hosts

        remaining = deadline - clock()
        if remaining <= 0:
            break

        delay = min(interval_seconds, remaining)
        logger.info(
            f"No NFS server yet (attempt {attempt}), retrying in {delay:.0f}s "
            f"({remaining:.0f}s remaining)"
        )
        sleep(delay)

    raise ReadinessTimeoutError(
        f"Timed out after {timeout_seconds:.0f}s waiting for an NFS server "
        f"({attempt} attempts)"
    )


__all__ = ["wait_fixed", "wait_for_hosts"]
