"""
Performance-analysis executor

Capabilities:
- sys-iostat: One I/O sample with cumulative per-device counters
- sys-netstat: Connection counts by protocol and state

sys-iostat reports cumulative counters only. Throughput and utilization
come from the difference between two samples taken some time apart.
"""

import logging
from typing import Any, Dict, List, Optional

from hostops.core.capabilities.exceptions import OutputParseError, ProgramNotFound
from hostops.core.capabilities.executors.base import CapabilityExecutor, bool_param
from hostops.core.capabilities.executors.platform import (
    CommandKind,
    Platform,
    detect_platform,
    platform_command,
)
from hostops.core.capabilities.models import CapabilityCall, CapabilityDefinition, InvocationContext
from hostops.core.capabilities.runner_base.base import CommandRunner

logger = logging.getLogger(__name__)

SECTOR_BYTES = 512

# Virtual block devices that carry no physical I/O
SKIPPED_DEVICE_PREFIXES = ("loop", "ram", "zram", "dm-", "sr")

CONNECTION_STATES = ("LISTEN", "ESTABLISHED", "ESTAB", "TIME_WAIT", "CLOSE_WAIT", "SYN_SENT", "SYN_RECV")


class AnalysisExecutor(CapabilityExecutor):
    """I/O and network connection analysis"""

    kind = "performance-analysis"

    def __init__(self, runner: CommandRunner, platform: Optional[Platform] = None):
        self.platform = platform or detect_platform()
        super().__init__(runner)

    def definitions(self) -> List[CapabilityDefinition]:
        return [
            CapabilityDefinition(
                name="sys-iostat",
                description="Take one disk I/O sample",
                timeout_seconds=10,
            ),
            CapabilityDefinition(
                name="sys-netstat",
                description="Summarize network connections",
                parameters=[
                    bool_param("show_tcp", "Include TCP sockets", default=True),
                    bool_param("show_udp", "Include UDP sockets", default=False),
                ],
                timeout_seconds=10,
            ),
        ]

    def invoke(self, call: CapabilityCall, arguments: Dict[str, Any],
               context: InvocationContext) -> Dict[str, Any]:
        if call.name == "sys-iostat":
            return self._iostat(context)
        if call.name == "sys-netstat":
            return self._netstat(arguments["show_tcp"], arguments["show_udp"], context)
        raise KeyError(call.name)

    def _iostat(self, context: InvocationContext) -> Dict[str, Any]:
        program, args = platform_command(CommandKind.IO_SAMPLE, self.platform)
        result = self.run(program, args, context)
        if self.platform == Platform.MACOS:
            devices = parse_iostat_macos(result.stdout)
        else:
            devices = parse_diskstats(result.stdout)
        return {"devices": devices, "success": True}

    def _netstat(self, show_tcp: bool, show_udp: bool, context: InvocationContext) -> Dict[str, Any]:
        program, args = platform_command(CommandKind.NETSTAT, self.platform)
        try:
            result = self.run(program, args, context)
        except ProgramNotFound:
            if self.platform != Platform.LINUX:
                raise
            # Minimal Linux installs ship ss instead of net-tools
            result = self.run("ss", ["-tuan"], context)

        stats = parse_connections(result.stdout, show_tcp=show_tcp, show_udp=show_udp)
        return {
            "connection_stats": stats,
            "show_tcp": show_tcp,
            "show_udp": show_udp,
            "success": True,
        }


def parse_diskstats(output: str) -> Dict[str, Dict[str, int]]:
    """
    Parse /proc/diskstats

    Fields (0-based): 2 name, 5 sectors read, 9 sectors written,
    12 milliseconds spent doing I/O.
    """
    devices: Dict[str, Dict[str, int]] = {}
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 13:
            continue
        name = parts[2]
        if name.startswith(SKIPPED_DEVICE_PREFIXES):
            continue
        try:
            devices[name] = {
                "read_bytes": int(parts[5]) * SECTOR_BYTES,
                "write_bytes": int(parts[9]) * SECTOR_BYTES,
                "io_ms": int(parts[12]),
            }
        except ValueError:
            logger.debug(f"Skipping unparsable diskstats line: {line}")
    if not devices:
        raise OutputParseError("no block devices in /proc/diskstats")
    return devices


def parse_iostat_macos(output: str) -> Dict[str, Dict[str, int]]:
    """
    Parse macOS `iostat -Id` (cumulative KB/t, xfrs, MB per disk)
    """
    lines = [line for line in output.splitlines() if line.strip()]
    if len(lines) < 3:
        raise OutputParseError("unexpected iostat output")
    names = lines[0].split()
    values = lines[-1].split()
    devices: Dict[str, Dict[str, int]] = {}
    for index, name in enumerate(names):
        try:
            megabytes = float(values[index * 3 + 2])
        except (IndexError, ValueError):
            continue
        devices[name] = {"total_bytes": int(megabytes * 1024 * 1024)}
    if not devices:
        raise OutputParseError("no disks in iostat output")
    return devices


def parse_connections(output: str, show_tcp: bool = True, show_udp: bool = False) -> Dict[str, int]:
    """Count sockets from `netstat -an`/`netstat -tuan`/`ss -tuan` output"""
    stats = {"tcp": 0, "udp": 0, "listen": 0, "established": 0, "time_wait": 0, "close_wait": 0}
    for line in output.splitlines():
        parts = line.split()
        if not parts:
            continue
        proto = parts[0].lower()
        if proto.startswith("tcp"):
            if not show_tcp:
                continue
            stats["tcp"] += 1
        elif proto.startswith("udp"):
            if not show_udp:
                continue
            stats["udp"] += 1
        else:
            continue

        # ss spells states with hyphens (TIME-WAIT)
        states = (p.replace("-", "_") for p in parts)
        state = next((s for s in states if s in CONNECTION_STATES), None)
        if state == "LISTEN":
            stats["listen"] += 1
        elif state in ("ESTABLISHED", "ESTAB"):
            stats["established"] += 1
        elif state == "TIME_WAIT":
            stats["time_wait"] += 1
        elif state == "CLOSE_WAIT":
            stats["close_wait"] += 1
    stats["total"] = stats["tcp"] + stats["udp"]
    return stats
