"""
Executor Dispatch - resolve, validate and run capability calls

Flow:
    execute(call)
      -> registry.lookup(call.name)        UnknownCapability raised (hard error)
      -> validate_arguments(definition)    InvalidArguments in envelope (soft)
      -> executor.invoke(...)              host failures in envelope (soft)
      -> CapabilityResult

Command execution happens outside any registry lock: lookup returns the
immutable entry and releases the read side before the executor runs.
"""

import logging
import time
from typing import Iterable, List, Optional

from hostops.core.capabilities.exceptions import (
    CapabilityError,
    CommandTimeoutError,
    UnknownCapability,
)
from hostops.core.capabilities.models import CapabilityCall, CapabilityResult, InvocationContext
from hostops.core.capabilities.registry import CapabilityRegistry
from hostops.core.capabilities.schema import validate_arguments
from hostops.core.config import HostOpsConfig, get_config

logger = logging.getLogger(__name__)

# Registry-level errors are programmer errors and are never enveloped
HARD_ERRORS = (UnknownCapability,)


class ExecutorDispatch:
    """
    Dispatches capability calls against a registry

    Example:
        >>> dispatch = ExecutorDispatch(create_registry())
        >>> result = dispatch.execute(CapabilityCall(id="1", name="fs-pwd"))
        >>> result.success
        True
    """

    def __init__(self, registry: CapabilityRegistry, config: Optional[HostOpsConfig] = None):
        self.registry = registry
        self.config = config or get_config()

    def execute(self, call: CapabilityCall, timeout: Optional[float] = None) -> CapabilityResult:
        """
        Execute one capability call

        Args:
            call: The call envelope
            timeout: Caller budget in seconds; caps the capability's own timeout

        Returns:
            CapabilityResult with either result or error populated

        Raises:
            UnknownCapability: If ``call.name`` is not registered
        """
        entry = self.registry.lookup(call.name)
        if entry is None:
            raise UnknownCapability(call.name)

        definition = entry.definition
        effective = self.config.timeout_for(definition.name, definition.timeout_seconds)
        if timeout is not None:
            effective = min(effective, timeout)

        start_time = time.monotonic()
        try:
            if effective <= 0:
                raise CommandTimeoutError(0, call.name)
            arguments = validate_arguments(definition, call.decoded_arguments())
            context = InvocationContext(call_id=call.id, timeout_seconds=effective)
            payload = entry.executor.invoke(call, arguments, context)
            result = CapabilityResult.ok(call.name, payload, call_id=call.id)
        except HARD_ERRORS:
            raise
        except CapabilityError as e:
            result = CapabilityResult.failed(call.name, str(e), call_id=call.id)
        except ValueError as e:
            # Host output that did not match the expected format
            result = CapabilityResult.failed(call.name, f"Unexpected command output: {e}", call_id=call.id)
        except OSError as e:
            result = CapabilityResult.failed(call.name, f"I/O error: {e}", call_id=call.id)

        result.duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Capability {call.name} finished in {result.duration_ms}ms",
            extra={"capability": call.name, "call_id": call.id, "success": result.success}
        )
        if not result.success:
            logger.debug(f"Capability {call.name} failed: {result.error}")
        return result

    def execute_many(self, calls: Iterable[CapabilityCall],
                     timeout: Optional[float] = None) -> List[CapabilityResult]:
        """Execute calls in order; soft errors do not stop the batch"""
        return [self.execute(call, timeout=timeout) for call in calls]

