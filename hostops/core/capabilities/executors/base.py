"""
Executor Base Class

An executor implements one or more capabilities. It declares the names it
serves, returns the schema for each, and runs an invocation given already
validated arguments.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from hostops.core.capabilities.exceptions import NonZeroExit
from hostops.core.capabilities.models import (
    CapabilityCall,
    CapabilityDefinition,
    InvocationContext,
    ParameterKind,
    ParameterSpec,
)
from hostops.core.capabilities.runner_base.base import CommandResult, CommandRunner

logger = logging.getLogger(__name__)


class CapabilityExecutor(ABC):
    """
    Abstract base class for capability executors

    Subclasses define their capability set in ``definitions()`` and map each
    name to a handler method in ``invoke``. Host commands go through the
    injected CommandRunner, never through a shell.
    """

    #: Short variant name ("filesystem", "version-control", ...)
    kind: str = ""

    def __init__(self, runner: CommandRunner):
        self.runner = runner
        self._definitions: Dict[str, CapabilityDefinition] = {
            d.name: d for d in self.definitions()
        }

    @abstractmethod
    def definitions(self) -> List[CapabilityDefinition]:
        """Capability definitions served by this executor, in listing order"""
        pass

    @abstractmethod
    def invoke(
        self,
        call: CapabilityCall,
        arguments: Dict[str, Any],
        context: InvocationContext,
    ) -> Dict[str, Any]:
        """
        Run one capability

        Args:
            call: The call envelope as received
            arguments: Arguments validated against the schema
            context: Timeout bound for this invocation

        Returns:
            Structured result payload

        Raises:
            CapabilityError: On validation rejection or host failure
        """
        pass

    def supported_names(self) -> List[str]:
        return list(self._definitions)

    def schema(self, name: str) -> CapabilityDefinition:
        return self._definitions[name]

    # ============================================
    # Helpers
    # ============================================

    def run(self, program: str, args: List[str], context: InvocationContext, check: bool = True) -> CommandResult:
        """Run a host command, raising NonZeroExit on failure if ``check``"""
        result = self.runner.run(program, args, timeout=context.timeout_seconds)
        if check and result.exit_code != 0:
            raise NonZeroExit(result.exit_code, result.stderr)
        return result

    def __repr__(self) -> str:
        return f"<{type(self).__name__} names={self.supported_names()}>"


def string_param(name: str, description: str, required: bool = False,
                 default: Any = None, path_like: bool = False) -> ParameterSpec:
    return ParameterSpec(
        name=name,
        kind=ParameterKind.STRING,
        required=required,
        description=description,
        default=default,
        path_like=path_like,
    )


def number_param(name: str, description: str, required: bool = False, default: Any = None,
                 minimum: float = None, maximum: float = None) -> ParameterSpec:
    return ParameterSpec(
        name=name,
        kind=ParameterKind.NUMBER,
        required=required,
        description=description,
        default=default,
        minimum=minimum,
        maximum=maximum,
    )


def bool_param(name: str, description: str, default: Any = None) -> ParameterSpec:
    return ParameterSpec(
        name=name,
        kind=ParameterKind.BOOLEAN,
        description=description,
        default=default,
    )
