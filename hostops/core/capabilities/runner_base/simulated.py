"""
Scripted Runner

CommandRunner that never spawns a process. Outputs are scripted per
program (optionally per argument vector) and every call is recorded, so
executors and the diagnostic pipeline can be exercised without touching
the host.

Example:
    >>> runner = ScriptedRunner()
    >>> runner.script("cat", stdout="box\\n", args=["/etc/hostname"])
    >>> runner.run("cat", ["/etc/hostname"], timeout=5).stdout
    'box\\n'
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

from hostops.core.capabilities.exceptions import CommandTimeoutError, ProgramNotFound, ValidationError
from hostops.core.capabilities.runner_base.base import CommandResult, CommandRunner
from hostops.core.capabilities.runner_base.validation import validate_token

logger = logging.getLogger(__name__)


@dataclass
class ScriptedResponse:
    """Canned outcome for one scripted command"""
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    timeout: bool = False
    missing: bool = False


Responder = Callable[[str, List[str]], ScriptedResponse]


class ScriptedRunner(CommandRunner):
    """Runner returning canned output and recording every call"""

    def __init__(self, validate: bool = True):
        """
        Args:
            validate: Apply the same argument checks as SafeCommandRunner
        """
        self.validate = validate
        self.calls: List[Tuple[str, List[str], float]] = []
        self._responses: Dict[Tuple[str, Optional[Tuple[str, ...]]], Union[ScriptedResponse, Responder]] = {}
        self._lock = threading.Lock()

    @property
    def runner_type(self) -> str:
        return "scripted"

    def script(
        self,
        program: str,
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        args: Optional[List[str]] = None,
        timeout: bool = False,
        missing: bool = False,
    ) -> None:
        """Script the outcome of ``program`` (for ``args`` only, if given)"""
        key = (program, tuple(args) if args is not None else None)
        self._responses[key] = ScriptedResponse(stdout, stderr, exit_code, timeout, missing)

    def script_with(self, program: str, responder: Responder, args: Optional[List[str]] = None) -> None:
        """Compute the outcome with a callable, e.g. for changing samples"""
        self._responses[(program, tuple(args) if args is not None else None)] = responder

    def run(self, program: str, args: List[str], timeout: float) -> CommandResult:
        if self.validate:
            for index, arg in enumerate(args):
                validate_token(arg, f"argument {index}")

        response = self._responses.get((program, tuple(args)))
        if response is None:
            response = self._responses.get((program, None))
        if response is None:
            raise ValidationError(f"Program not allowed: {program}")

        with self._lock:
            self.calls.append((program, list(args), timeout))

        if callable(response):
            response = response(program, list(args))
        if response.missing:
            raise ProgramNotFound(program)
        if response.timeout:
            raise CommandTimeoutError(timeout, " ".join([program] + list(args)))

        logger.debug(f"Scripted command: {program} {' '.join(args)}")
        return CommandResult(
            program=program,
            args=list(args),
            exit_code=response.exit_code,
            stdout=response.stdout,
            stderr=response.stderr,
        )

    def programs_run(self) -> List[str]:
        with self._lock:
            return [program for program, _, _ in self.calls]
