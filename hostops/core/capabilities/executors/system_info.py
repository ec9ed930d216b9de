"""
System-info executor

Capabilities:
- sys-uname: Kernel / OS identification
- sys-ps: Process listing with optional name and user filters
- sys-df: Filesystem usage
"""

import logging
from typing import Any, Dict, List, Optional

from hostops.core.capabilities.executors.base import CapabilityExecutor, bool_param, string_param
from hostops.core.capabilities.models import CapabilityCall, CapabilityDefinition, InvocationContext
from hostops.core.capabilities.runner_base.validation import validate_token

logger = logging.getLogger(__name__)


class SystemInfoExecutor(CapabilityExecutor):
    """Basic host information queries"""

    kind = "system-info"

    def definitions(self) -> List[CapabilityDefinition]:
        return [
            CapabilityDefinition(
                name="sys-uname",
                description="Show system information",
                parameters=[
                    bool_param("detailed", "Show all fields (uname -a)", default=False),
                ],
                timeout_seconds=5,
            ),
            CapabilityDefinition(
                name="sys-ps",
                description="List running processes",
                parameters=[
                    string_param("process_name", "Only processes whose command contains this text"),
                    string_param("user", "Only processes owned by this user"),
                ],
                timeout_seconds=10,
            ),
            CapabilityDefinition(
                name="sys-df",
                description="Show filesystem disk space usage",
                parameters=[
                    string_param("path", "Only the filesystem containing this path",
                                 path_like=True),
                    bool_param("human_readable", "Human-readable sizes", default=True),
                ],
                timeout_seconds=10,
            ),
        ]

    def invoke(self, call: CapabilityCall, arguments: Dict[str, Any],
               context: InvocationContext) -> Dict[str, Any]:
        if call.name == "sys-uname":
            return self._uname(arguments["detailed"], context)
        if call.name == "sys-ps":
            return self._ps(arguments.get("process_name"), arguments.get("user"), context)
        if call.name == "sys-df":
            return self._df(arguments.get("path"), arguments["human_readable"], context)
        raise KeyError(call.name)

    def _uname(self, detailed: bool, context: InvocationContext) -> Dict[str, Any]:
        result = self.run("uname", ["-a" if detailed else "-s"], context)
        return {"system_info": result.stdout.strip(), "detailed": detailed, "success": True}

    def _ps(self, process_name: Optional[str], user: Optional[str],
            context: InvocationContext) -> Dict[str, Any]:
        if process_name:
            validate_token(process_name, "process_name")
        if user:
            validate_token(user, "user")

        result = self.run("ps", ["aux"], context)
        processes = parse_ps_aux(result.stdout)
        if user:
            processes = [p for p in processes if p["user"] == user]
        if process_name:
            processes = [p for p in processes if process_name in p["command"]]
        return {
            "processes": processes,
            "count": len(processes),
            "filters": {"process_name": process_name, "user": user},
            "success": True,
        }

    def _df(self, path: Optional[str], human_readable: bool,
            context: InvocationContext) -> Dict[str, Any]:
        args = ["-P", "-h" if human_readable else "-k"]
        if path:
            args.append(path)
        result = self.run("df", args, context)
        return {
            "filesystems": parse_df(result.stdout),
            "human_readable": human_readable,
            "success": True,
        }


def parse_ps_aux(output: str) -> List[Dict[str, Any]]:
    """
    Parse `ps aux` output

    Columns: USER PID %CPU %MEM VSZ RSS TTY STAT START TIME COMMAND
    """
    processes = []
    for line in output.splitlines()[1:]:
        parts = line.split(None, 10)
        if len(parts) < 11:
            continue
        try:
            processes.append({
                "user": parts[0],
                "pid": int(parts[1]),
                "cpu_percent": float(parts[2]),
                "memory_percent": float(parts[3]),
                "rss_kb": int(parts[5]),
                "stat": parts[7],
                "command": parts[10],
            })
        except ValueError:
            logger.debug(f"Skipping unparsable ps line: {line}")
    return processes


def parse_df(output: str) -> List[Dict[str, Any]]:
    """Parse POSIX (`df -P`) output into one dict per filesystem"""
    filesystems = []
    for line in output.splitlines()[1:]:
        parts = line.split(None, 5)
        if len(parts) < 6 or not parts[4].endswith("%"):
            continue
        try:
            use_percent = float(parts[4].rstrip("%"))
        except ValueError:
            continue
        filesystems.append({
            "filesystem": parts[0],
            "size": parts[1],
            "used": parts[2],
            "available": parts[3],
            "use_percent": use_percent,
            "mounted_on": parts[5],
        })
    return filesystems
