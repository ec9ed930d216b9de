"""
Safe Command Runner

Runs one host command as program + argv under a hard timeout.

Security:
    - Program must be on the allow-list and resolvable on PATH
    - Every argument is checked for shell metacharacters before spawning
    - The argv list is passed to the OS directly (no shell)
    - Children get a restricted environment with a fixed C locale
    - On timeout the whole process group is killed
    - Captured output is capped per stream with a visible marker
"""

import logging
import os
import shutil
import signal
import subprocess
import threading
import time
from typing import BinaryIO, Dict, FrozenSet, Iterable, List, Optional, Tuple

from hostops.core.capabilities.exceptions import CommandTimeoutError, ProgramNotFound, ValidationError
from hostops.core.capabilities.runner_base.base import CommandResult, CommandRunner
from hostops.core.capabilities.runner_base.validation import validate_token
from hostops.core.config import get_config

logger = logging.getLogger(__name__)

# Programs the built-in capabilities are allowed to spawn
DEFAULT_ALLOWED_PROGRAMS: FrozenSet[str] = frozenset({
    "git",
    "ls", "pwd", "cat", "find",
    "uname", "ps", "df",
    "uptime", "free", "vm_stat", "sysctl", "top", "nproc",
    "iostat", "netstat", "ss",
    "ping",
})

TRUNCATION_MARKER = "\n... [truncated {count} bytes]"

# Seconds to wait for a killed child to be reaped
KILL_GRACE_SECONDS = 1.0


class SafeCommandRunner(CommandRunner):
    """
    Execute allow-listed host commands safely

    Example:
        >>> runner = SafeCommandRunner()
        >>> result = runner.run("uname", ["-s"], timeout=5)
        >>> result.stdout.strip()
        'Linux'
    """

    # Default environment variables to pass through
    DEFAULT_ENV_WHITELIST = ["PATH", "LANG", "HOME", "TMPDIR"]

    def __init__(
        self,
        allowed_programs: Optional[Iterable[str]] = None,
        max_output_bytes: Optional[int] = None,
        env_whitelist: Optional[List[str]] = None,
    ):
        """
        Initialize runner

        Args:
            allowed_programs: Program names that may be spawned
                (default: DEFAULT_ALLOWED_PROGRAMS)
            max_output_bytes: Per-stream capture cap (default from config)
            env_whitelist: Environment variables passed to children
        """
        self.allowed_programs = frozenset(
            DEFAULT_ALLOWED_PROGRAMS if allowed_programs is None else allowed_programs
        )
        self.max_output_bytes = max_output_bytes or get_config().max_output_bytes
        self.env_whitelist = env_whitelist or self.DEFAULT_ENV_WHITELIST

    @property
    def runner_type(self) -> str:
        return "subprocess"

    def run(self, program: str, args: List[str], timeout: float) -> CommandResult:
        if timeout is None or timeout <= 0:
            raise ValidationError(f"timeout must be > 0, got {timeout}")

        argv = self._build_argv(program, args)
        command_str = " ".join([program] + list(args))

        logger.info(
            f"Executing command: {program}",
            extra={"program": program, "command": command_str, "timeout": timeout}
        )

        start_time = time.monotonic()
        process = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=self._build_environment(),
            start_new_session=(os.name == "posix"),
        )
        out_reader = _CappedReader(process.stdout, self.max_output_bytes)
        err_reader = _CappedReader(process.stderr, self.max_output_bytes)
        out_reader.start()
        err_reader.start()

        deadline = start_time + timeout
        try:
            process.wait(timeout=timeout)
            # Pipes stay open while a background grandchild still holds them
            for reader in (out_reader, err_reader):
                reader.join(max(deadline - time.monotonic(), 0))
                if reader.is_alive():
                    raise subprocess.TimeoutExpired(argv, timeout)
        except subprocess.TimeoutExpired:
            self._kill(process)
            out_reader.join(KILL_GRACE_SECONDS)
            err_reader.join(KILL_GRACE_SECONDS)
            duration_ms = int((time.monotonic() - start_time) * 1000)
            logger.error(
                f"Command timeout: {program}",
                extra={"timeout": timeout, "duration_ms": duration_ms}
            )
            raise CommandTimeoutError(timeout, command_str)

        duration_ms = int((time.monotonic() - start_time) * 1000)
        out_text, out_cut = out_reader.text()
        err_text, err_cut = err_reader.text()

        logger.info(
            f"Command completed: {program}",
            extra={
                "exit_code": process.returncode,
                "duration_ms": duration_ms,
                "truncated": out_cut or err_cut,
            }
        )

        return CommandResult(
            program=program,
            args=list(args),
            exit_code=process.returncode,
            stdout=out_text,
            stderr=err_text,
            duration_ms=duration_ms,
            truncated=out_cut or err_cut,
        )

    def check_program_exists(self, program: str) -> bool:
        return program in self.allowed_programs and shutil.which(program) is not None

    # ============================================
    # Internals
    # ============================================

    def _build_argv(self, program: str, args: List[str]) -> List[str]:
        if program not in self.allowed_programs:
            raise ValidationError(f"Program not allowed: {program}")

        for index, arg in enumerate(args):
            if not isinstance(arg, str):
                raise ValidationError(f"argument {index} must be a string")
            validate_token(arg, f"argument {index}")

        resolved = shutil.which(program)
        if resolved is None:
            raise ProgramNotFound(program)
        return [resolved] + list(args)

    def _build_environment(self) -> Dict[str, str]:
        env = {}
        for var_name in self.env_whitelist:
            if var_name in os.environ:
                env[var_name] = os.environ[var_name]
        # Parsers depend on untranslated, stable output
        env["LC_ALL"] = "C"
        return env

    def _kill(self, process: subprocess.Popen) -> None:
        try:
            if os.name == "posix":
                os.killpg(process.pid, signal.SIGKILL)
            else:
                process.kill()
        except (ProcessLookupError, PermissionError):
            # Already gone
            pass
        try:
            process.wait(timeout=KILL_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning(f"Process {process.pid} did not exit after SIGKILL")


class _CappedReader(threading.Thread):
    """
    Drain one child pipe, keeping at most ``limit`` bytes

    Bytes past the limit are read and counted but not stored, so the child
    never blocks on a full pipe and memory stays bounded.
    """

    CHUNK_SIZE = 65536

    def __init__(self, stream: BinaryIO, limit: int):
        super().__init__(daemon=True)
        self.stream = stream
        self.limit = limit
        self.kept = bytearray()
        self.dropped = 0

    def run(self) -> None:
        try:
            for chunk in iter(lambda: self.stream.read1(self.CHUNK_SIZE), b""):
                room = self.limit - len(self.kept)
                if room > 0:
                    self.kept += chunk[:room]
                self.dropped += max(len(chunk) - max(room, 0), 0)
        except (OSError, ValueError) as e:
            logger.debug(f"Pipe reader stopped: {e}")
        finally:
            self.stream.close()

    def text(self) -> Tuple[str, bool]:
        text = bytes(self.kept).decode("utf-8", errors="replace")
        if self.dropped:
            return text + TRUNCATION_MARKER.format(count=self.dropped), True
        return text, False
