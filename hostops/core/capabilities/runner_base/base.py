"""
Runner Base Classes

Defines the abstract command runner and the result of one host command.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List


# ============================================
# Data Models
# ============================================

@dataclass
class CommandResult:
    """
    Result of one host command

    stdout/stderr are already size-capped; ``truncated`` tells whether any
    stream was cut. The exit code is the process's own.
    """
    program: str
    args: List[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    truncated: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        return " ".join([self.program] + self.args)


# ============================================
# Runner Abstract Base Class
# ============================================

class CommandRunner(ABC):
    """
    Abstract base class for command runners

    Runners execute a program with an explicit argument vector under a
    timeout. Implementations must validate every argument before any
    process exists.
    """

    @abstractmethod
    def run(self, program: str, args: List[str], timeout: float) -> CommandResult:
        """
        Execute one command

        Args:
            program: Program name from the runner's allow-list
            args: Argument vector (never joined into a shell string)
            timeout: Seconds before the process is killed

        Returns:
            CommandResult, whatever the exit code

        Raises:
            ValidationError: If the program or an argument is rejected
            ProgramNotFound: If the program is not installed
            CommandTimeoutError: If the timeout expires
        """
        pass

    @property
    @abstractmethod
    def runner_type(self) -> str:
        """Runner type identifier (e.g. "subprocess", "scripted")"""
        pass
