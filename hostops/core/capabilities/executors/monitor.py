"""
Process-monitor executor

Capabilities:
- sys-proc-top: Top processes by CPU or memory
- sys-proc-stats: Process counts by state
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Optional

from hostops.core.capabilities.exceptions import ValidationError
from hostops.core.capabilities.executors.base import CapabilityExecutor, number_param, string_param
from hostops.core.capabilities.executors.platform import (
    CommandKind,
    Platform,
    detect_platform,
    platform_command,
)
from hostops.core.capabilities.executors.system_info import parse_ps_aux
from hostops.core.capabilities.models import CapabilityCall, CapabilityDefinition, InvocationContext
from hostops.core.capabilities.runner_base.base import CommandRunner

logger = logging.getLogger(__name__)

SORT_KEYS = {
    "cpu": (CommandKind.PROCESS_TOP_CPU, "cpu_percent"),
    "memory": (CommandKind.PROCESS_TOP_MEMORY, "memory_percent"),
}

# First letter of the ps STAT column
STATE_NAMES = {
    "R": "running",
    "S": "sleeping",
    "D": "uninterruptible",
    "Z": "zombie",
    "T": "stopped",
    "I": "idle",
}


class MonitorExecutor(CapabilityExecutor):
    """Process monitoring"""

    kind = "process-monitor"

    def __init__(self, runner: CommandRunner, platform: Optional[Platform] = None):
        self.platform = platform or detect_platform()
        super().__init__(runner)

    def definitions(self) -> List[CapabilityDefinition]:
        return [
            CapabilityDefinition(
                name="sys-proc-top",
                description="Show the processes using the most CPU or memory",
                parameters=[
                    string_param("sort_by", "Sort key: cpu or memory (default: cpu)", default="cpu"),
                    number_param("limit", "Number of processes to return (1-50)",
                                 default=10, minimum=1, maximum=50),
                ],
                timeout_seconds=10,
            ),
            CapabilityDefinition(
                name="sys-proc-stats",
                description="Count processes by state",
                timeout_seconds=10,
            ),
        ]

    def invoke(self, call: CapabilityCall, arguments: Dict[str, Any],
               context: InvocationContext) -> Dict[str, Any]:
        if call.name == "sys-proc-top":
            return self._top(arguments["sort_by"], int(arguments["limit"]), context)
        if call.name == "sys-proc-stats":
            return self._stats(context)
        raise KeyError(call.name)

    def _top(self, sort_by: str, limit: int, context: InvocationContext) -> Dict[str, Any]:
        if sort_by not in SORT_KEYS:
            raise ValidationError(f"sort_by must be one of {sorted(SORT_KEYS)}, got {sort_by!r}")
        kind, field = SORT_KEYS[sort_by]

        program, args = platform_command(kind, self.platform)
        result = self.run(program, args, context)
        processes = parse_ps_aux(result.stdout)
        # ps sorts already; re-sort so the result does not depend on ps flags
        processes.sort(key=lambda p: p[field], reverse=True)
        return {
            "sort_by": sort_by,
            "limit": limit,
            "processes": processes[:limit],
            "success": True,
        }

    def _stats(self, context: InvocationContext) -> Dict[str, Any]:
        program, args = platform_command(CommandKind.PROCESS_STATES, self.platform)
        result = self.run(program, args, context)
        stats = parse_process_states(result.stdout)
        stats["success"] = True
        return stats


def parse_process_states(output: str) -> Dict[str, Any]:
    """Count `ps axo pid,stat,comm` rows by the first letter of STAT"""
    counter: Counter = Counter()
    total = 0
    for line in output.splitlines()[1:]:
        parts = line.split(None, 2)
        if len(parts) < 2 or not parts[1]:
            continue
        total += 1
        counter[parts[1][0]] += 1
    return {
        "total_processes": total,
        "status_stats": dict(sorted(counter.items())),
        "zombie_processes": counter.get("Z", 0),
        "running_processes": counter.get("R", 0),
        "state_names": {code: STATE_NAMES.get(code, "other") for code in sorted(counter)},
    }
