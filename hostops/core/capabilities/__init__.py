"""
Capabilities - registry, dispatch and safe execution of host capabilities

Public API:
    CapabilityRegistry: Name -> (definition, executor) store
    ExecutorDispatch: Validates and runs CapabilityCall values
    create_registry / builtin_executors: Built-in capability set
"""

from hostops.core.capabilities.builtins import builtin_executors, create_registry
from hostops.core.capabilities.dispatch import ExecutorDispatch
from hostops.core.capabilities.exceptions import (
    AlreadyInitialized,
    CapabilityError,
    CapabilityNotFound,
    CommandTimeoutError,
    DuplicateCapability,
    InvalidArguments,
    NonZeroExit,
    ProgramNotFound,
    RegistryBusy,
    UnknownCapability,
    ValidationError,
)
from hostops.core.capabilities.models import (
    CapabilityCall,
    CapabilityDefinition,
    CapabilityResult,
    InvocationContext,
    ParameterKind,
    ParameterSpec,
)
from hostops.core.capabilities.registry import CapabilityRegistry, RegistryEntry

__all__ = [
    "CapabilityRegistry",
    "RegistryEntry",
    "ExecutorDispatch",
    "builtin_executors",
    "create_registry",
    "CapabilityCall",
    "CapabilityDefinition",
    "CapabilityResult",
    "InvocationContext",
    "ParameterKind",
    "ParameterSpec",
    "CapabilityError",
    "DuplicateCapability",
    "CapabilityNotFound",
    "UnknownCapability",
    "AlreadyInitialized",
    "RegistryBusy",
    "InvalidArguments",
    "ValidationError",
    "CommandTimeoutError",
    "NonZeroExit",
    "ProgramNotFound",
]
