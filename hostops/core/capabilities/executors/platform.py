"""
Platform detection and platform-specific command table

Each command kind maps to a program plus a fixed argument vector. Programs
must also be on the runner's allow-list to be spawned.
"""

import sys
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Platform(str, Enum):
    """Supported host platforms"""
    LINUX = "linux"
    MACOS = "macos"
    UNKNOWN = "unknown"


class CommandKind(str, Enum):
    """Host commands with platform-specific spellings"""
    UPTIME = "uptime"
    BOOT_TIME = "boot_time"
    MEMINFO = "meminfo"
    CPU_SAMPLE = "cpu_sample"
    CPU_COUNT = "cpu_count"
    NETSTAT = "netstat"
    IO_SAMPLE = "io_sample"
    PROCESS_TOP_CPU = "process_top_cpu"
    PROCESS_TOP_MEMORY = "process_top_memory"
    PROCESS_STATES = "process_states"


PLATFORM_NAMES = {
    Platform.LINUX: "Linux",
    Platform.MACOS: "macOS",
    Platform.UNKNOWN: "Unknown",
}

_COMMANDS: Dict[CommandKind, Dict[Platform, Tuple[str, List[str]]]] = {
    CommandKind.UPTIME: {
        Platform.LINUX: ("uptime", []),
        Platform.MACOS: ("uptime", []),
    },
    CommandKind.BOOT_TIME: {
        Platform.LINUX: ("uptime", ["-s"]),
        Platform.MACOS: ("sysctl", ["-n", "kern.boottime"]),
    },
    CommandKind.MEMINFO: {
        Platform.LINUX: ("free", ["-b"]),
        Platform.MACOS: ("vm_stat", []),
    },
    CommandKind.CPU_SAMPLE: {
        Platform.LINUX: ("cat", ["/proc/stat"]),
        Platform.MACOS: ("top", ["-l", "1", "-n", "0"]),
    },
    CommandKind.CPU_COUNT: {
        Platform.LINUX: ("nproc", []),
        Platform.MACOS: ("sysctl", ["-n", "hw.ncpu"]),
    },
    CommandKind.NETSTAT: {
        Platform.LINUX: ("netstat", ["-tuan"]),
        Platform.MACOS: ("netstat", ["-an"]),
    },
    CommandKind.IO_SAMPLE: {
        Platform.LINUX: ("cat", ["/proc/diskstats"]),
        Platform.MACOS: ("iostat", ["-Id"]),
    },
    CommandKind.PROCESS_TOP_CPU: {
        Platform.LINUX: ("ps", ["aux", "--sort=-%cpu"]),
        Platform.MACOS: ("ps", ["aux", "-r"]),
    },
    CommandKind.PROCESS_TOP_MEMORY: {
        Platform.LINUX: ("ps", ["aux", "--sort=-%mem"]),
        Platform.MACOS: ("ps", ["aux", "-m"]),
    },
    CommandKind.PROCESS_STATES: {
        Platform.LINUX: ("ps", ["axo", "pid,stat,comm"]),
        Platform.MACOS: ("ps", ["axo", "pid,stat,comm"]),
    },
}


def detect_platform(name: Optional[str] = None) -> Platform:
    """Map sys.platform (or ``name``) to a Platform"""
    name = name or sys.platform
    if name.startswith("linux"):
        return Platform.LINUX
    if name == "darwin":
        return Platform.MACOS
    return Platform.UNKNOWN


def platform_command(kind: CommandKind, platform: Platform) -> Tuple[str, List[str]]:
    """
    Program and argument vector for ``kind`` on ``platform``

    Unknown platforms use the Linux spelling.
    """
    table = _COMMANDS[kind]
    program, args = table.get(platform, table[Platform.LINUX])
    return program, list(args)


def platform_name(platform: Platform) -> str:
    return PLATFORM_NAMES[platform]
