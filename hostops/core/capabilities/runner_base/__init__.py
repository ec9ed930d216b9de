"""
Runner base package

Exports the command runner interface, the subprocess-backed runner and the
scripted runner used in tests.
"""

from hostops.core.capabilities.runner_base.base import CommandResult, CommandRunner
from hostops.core.capabilities.runner_base.command_runner import SafeCommandRunner
from hostops.core.capabilities.runner_base.simulated import ScriptedRunner

__all__ = [
    "CommandResult",
    "CommandRunner",
    "SafeCommandRunner",
    "ScriptedRunner",
]
