"""
Network executor

Capabilities:
- net-ping: ICMP reachability with packet-loss summary
"""

import logging
import re
from typing import Any, Dict, List, Optional

from hostops.core.capabilities.exceptions import NonZeroExit
from hostops.core.capabilities.executors.base import CapabilityExecutor, number_param, string_param
from hostops.core.capabilities.executors.platform import Platform, detect_platform
from hostops.core.capabilities.models import CapabilityCall, CapabilityDefinition, InvocationContext
from hostops.core.capabilities.runner_base.base import CommandRunner
from hostops.core.capabilities.runner_base.validation import validate_hostname

logger = logging.getLogger(__name__)

PING_SUMMARY = re.compile(
    r"(\d+) packets transmitted, (\d+) (?:packets )?received.*?([\d.]+)% packet loss"
)
PING_RTT = re.compile(r"= ([\d.]+)/([\d.]+)/([\d.]+)")

# Extra seconds on top of ping's own deadline before the runner kills it
PING_GRACE_SECONDS = 5


class NetworkExecutor(CapabilityExecutor):
    """Network reachability checks"""

    kind = "network"

    def __init__(self, runner: CommandRunner, platform: Optional[Platform] = None):
        self.platform = platform or detect_platform()
        super().__init__(runner)

    def definitions(self) -> List[CapabilityDefinition]:
        return [
            CapabilityDefinition(
                name="net-ping",
                description="Check network connectivity to a host",
                parameters=[
                    string_param("host", "Hostname or IP address", required=True),
                    number_param("count", "Number of echo requests (1-10)",
                                 default=4, minimum=1, maximum=10),
                    number_param("timeout", "Seconds to wait for replies (1-30)",
                                 default=10, minimum=1, maximum=30),
                ],
                timeout_seconds=30 + PING_GRACE_SECONDS,
            ),
        ]

    def invoke(self, call: CapabilityCall, arguments: Dict[str, Any],
               context: InvocationContext) -> Dict[str, Any]:
        host = validate_hostname(arguments["host"])
        count = int(arguments["count"])
        timeout = int(arguments["timeout"])

        deadline_flag = "-t" if self.platform == Platform.MACOS else "-w"
        args = ["-c", str(count), deadline_flag, str(timeout), host]

        runner_timeout = min(timeout + PING_GRACE_SECONDS, context.timeout_seconds)
        result = self.runner.run("ping", args, timeout=runner_timeout)

        summary = parse_ping_summary(result.stdout)
        if summary is None:
            if result.exit_code != 0:
                raise NonZeroExit(result.exit_code, result.stderr)
            summary = {}

        return {
            "host": host,
            "count": count,
            "reachable": result.exit_code == 0,
            "output": result.stdout,
            **summary,
            "success": True,
        }


def parse_ping_summary(output: str) -> Optional[Dict[str, Any]]:
    """Extract transmitted/received/loss (and RTT if present) from ping output"""
    match = PING_SUMMARY.search(output)
    if not match:
        return None
    summary: Dict[str, Any] = {
        "packets_transmitted": int(match.group(1)),
        "packets_received": int(match.group(2)),
        "packet_loss_percent": float(match.group(3)),
    }
    rtt = PING_RTT.search(output)
    if rtt:
        summary["rtt_min_ms"] = float(rtt.group(1))
        summary["rtt_avg_ms"] = float(rtt.group(2))
        summary["rtt_max_ms"] = float(rtt.group(3))
    return summary
