"""Exceptions for capability registration, dispatch and execution"""


class CapabilityError(Exception):
    """Base exception for capability-related errors"""
    pass


# ============================================
# Registry errors (hard errors)
# ============================================

class DuplicateCapability(CapabilityError):
    """A capability with the same name is already registered"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Capability already registered: {name}")


class CapabilityNotFound(CapabilityError):
    """Capability is not registered (raised by unregister)"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Capability not found: {name}")


class UnknownCapability(CapabilityError):
    """Dispatch was asked for a capability that is not registered"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown capability: {name}")


class AlreadyInitialized(CapabilityError):
    """Built-in capabilities were already loaded into the registry"""
    pass


class RegistryBusy(CapabilityError):
    """Registry lock could not be acquired within the bounded wait"""
    pass


# ============================================
# Soft errors (returned inside the result envelope)
# ============================================

class InvalidArguments(CapabilityError):
    """Call arguments do not match the capability schema"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invalid arguments: {detail}")


class ValidationError(CapabilityError):
    """Unsafe path, host or parameter rejected before spawning a process"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class CommandTimeoutError(CapabilityError):
    """Command exceeded its timeout and was killed"""

    def __init__(self, seconds: float, command: str = ""):
        self.seconds = seconds
        self.command = command
        message = f"Command timed out after {seconds:g} seconds"
        if command:
            message += f": {command}"
        super().__init__(message)


class NonZeroExit(CapabilityError):
    """Command finished with a non-zero exit code"""

    def __init__(self, code: int, stderr: str = ""):
        self.code = code
        self.stderr = stderr
        message = f"Command exited with code {code}"
        if stderr.strip():
            message += f": {stderr.strip()}"
        super().__init__(message)


class ProgramNotFound(CapabilityError):
    """Program is not installed on this host"""

    def __init__(self, program: str):
        self.program = program
        super().__init__(f"Capability unavailable on this host: '{program}' not found")


class OutputParseError(CapabilityError):
    """Command output could not be interpreted"""
    pass
