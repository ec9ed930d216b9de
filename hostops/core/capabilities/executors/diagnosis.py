"""
Basic-diagnosis executor

Capabilities:
- sys-uptime: Uptime and load averages (boot time with detailed=true)
- sys-meminfo: Memory totals and usage percentage
- sys-cpu: One CPU sample (cumulative counters or direct usage) and core count

sys-cpu is a single snapshot. Utilization over an interval is derived by the
caller from two samples' counters.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from hostops.core.capabilities.exceptions import OutputParseError
from hostops.core.capabilities.executors.base import CapabilityExecutor, bool_param
from hostops.core.capabilities.executors.platform import (
    CommandKind,
    Platform,
    detect_platform,
    platform_command,
    platform_name,
)
from hostops.core.capabilities.models import CapabilityCall, CapabilityDefinition, InvocationContext
from hostops.core.capabilities.runner_base.base import CommandRunner

logger = logging.getLogger(__name__)

LOAD_AVERAGE = re.compile(r"load averages?:\s*([\d.]+),?\s+([\d.]+),?\s+([\d.]+)")
TOP_CPU_IDLE = re.compile(r"CPU usage:.*?([\d.]+)% idle")


class DiagnosisExecutor(CapabilityExecutor):
    """Uptime, memory and CPU snapshots"""

    kind = "basic-diagnosis"

    def __init__(self, runner: CommandRunner, platform: Optional[Platform] = None):
        self.platform = platform or detect_platform()
        super().__init__(runner)

    def definitions(self) -> List[CapabilityDefinition]:
        return [
            CapabilityDefinition(
                name="sys-uptime",
                description="Show system uptime and load averages",
                parameters=[
                    bool_param("detailed", "Also report the boot time", default=False),
                ],
                timeout_seconds=5,
            ),
            CapabilityDefinition(
                name="sys-meminfo",
                description="Show memory usage",
                timeout_seconds=5,
            ),
            CapabilityDefinition(
                name="sys-cpu",
                description="Take one CPU utilization sample",
                timeout_seconds=5,
            ),
        ]

    def invoke(self, call: CapabilityCall, arguments: Dict[str, Any],
               context: InvocationContext) -> Dict[str, Any]:
        if call.name == "sys-uptime":
            return self._uptime(arguments["detailed"], context)
        if call.name == "sys-meminfo":
            return self._meminfo(context)
        if call.name == "sys-cpu":
            return self._cpu(context)
        raise KeyError(call.name)

    def _uptime(self, detailed: bool, context: InvocationContext) -> Dict[str, Any]:
        program, args = platform_command(CommandKind.UPTIME, self.platform)
        result = self.run(program, args, context)
        text = result.stdout.strip()
        payload = {
            "uptime": text,
            "load_average": parse_load_average(text),
            "platform": platform_name(self.platform),
            "detailed": detailed,
            "success": True,
        }
        if detailed:
            program, args = platform_command(CommandKind.BOOT_TIME, self.platform)
            payload["boot_time"] = self.run(program, args, context).stdout.strip()
        return payload

    def _meminfo(self, context: InvocationContext) -> Dict[str, Any]:
        program, args = platform_command(CommandKind.MEMINFO, self.platform)
        result = self.run(program, args, context)
        if self.platform == Platform.MACOS:
            memory = parse_vm_stat(result.stdout)
        else:
            memory = parse_free(result.stdout)
        return {"memory_data": memory, "platform": platform_name(self.platform), "success": True}

    def _cpu(self, context: InvocationContext) -> Dict[str, Any]:
        program, args = platform_command(CommandKind.CPU_SAMPLE, self.platform)
        result = self.run(program, args, context)

        if self.platform == Platform.MACOS:
            sample = parse_top_cpu(result.stdout)
            program, args = platform_command(CommandKind.CPU_COUNT, self.platform)
            cores_text = self.run(program, args, context).stdout.strip()
            sample["cores"] = int(cores_text) if cores_text.isdigit() else None
        else:
            sample = parse_proc_stat(result.stdout)

        sample["success"] = True
        return sample


def parse_load_average(text: str) -> List[float]:
    match = LOAD_AVERAGE.search(text)
    if not match:
        return []
    return [float(match.group(i)) for i in (1, 2, 3)]


def parse_free(output: str) -> Dict[str, Any]:
    """
    Parse `free -b` output

    Usage is (total - available) / total when the "available" column
    exists, otherwise used / total.
    """
    lines = output.splitlines()
    if not lines:
        raise OutputParseError("empty output from free")
    header = lines[0].split()
    for line in lines[1:]:
        if not line.startswith("Mem:"):
            continue
        values = [int(v) for v in line.split()[1:]]
        columns = dict(zip(header, values))
        total = columns.get("total", 0)
        if total <= 0:
            break
        used = total - columns["available"] if "available" in columns else columns.get("used", 0)
        return {
            "total": total,
            "used": used,
            "free": columns.get("free", 0),
            "available": columns.get("available"),
            "usage_percent": round(used * 100.0 / total, 2),
        }
    raise OutputParseError("no Mem: line in free output")


def parse_vm_stat(output: str) -> Dict[str, Any]:
    """Parse macOS `vm_stat` page counts into byte totals"""
    page_size = 4096
    pages: Dict[str, int] = {}
    for line in output.splitlines():
        if "page size of" in line:
            match = re.search(r"page size of (\d+)", line)
            if match:
                page_size = int(match.group(1))
            continue
        if ":" not in line:
            continue
        key, _, value = line.partition(":")
        value = value.strip().rstrip(".")
        if value.isdigit():
            pages[key.strip()] = int(value)

    free = pages.get("Pages free", 0) + pages.get("Pages speculative", 0)
    used = (
        pages.get("Pages active", 0)
        + pages.get("Pages wired down", 0)
        + pages.get("Pages occupied by compressor", 0)
    )
    total = free + used + pages.get("Pages inactive", 0)
    if total <= 0:
        raise OutputParseError("no page counts in vm_stat output")
    return {
        "total": total * page_size,
        "used": used * page_size,
        "free": free * page_size,
        "available": (total - used) * page_size,
        "usage_percent": round(used * 100.0 / total, 2),
    }


def parse_proc_stat(output: str) -> Dict[str, Any]:
    """
    Parse /proc/stat into cumulative CPU counters

    busy = total - idle - iowait, over the first eight jiffy columns.
    """
    totals: Optional[List[int]] = None
    cores = 0
    for line in output.splitlines():
        if line.startswith("cpu "):
            totals = [int(v) for v in line.split()[1:9]]
        elif re.match(r"cpu\d+ ", line):
            cores += 1
    if totals is None or len(totals) < 4:
        raise OutputParseError("no aggregate cpu line in /proc/stat")

    total = sum(totals)
    idle = totals[3] + (totals[4] if len(totals) > 4 else 0)
    return {"busy": total - idle, "total": total, "usage_percent": None, "cores": cores or None}


def parse_top_cpu(output: str) -> Dict[str, Any]:
    """Parse the 'CPU usage' line of macOS `top -l 1`"""
    match = TOP_CPU_IDLE.search(output)
    if not match:
        raise OutputParseError("no CPU usage line in top output")
    usage = round(100.0 - float(match.group(1)), 2)
    return {"busy": None, "total": None, "usage_percent": usage}
