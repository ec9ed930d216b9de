"""
Built-in capability set

Usage:
    from hostops.core.capabilities.builtins import create_registry

    registry = create_registry()
    dispatch = ExecutorDispatch(registry)
"""

import logging
from typing import List, Optional

from hostops.core.capabilities.executors import (
    AnalysisExecutor,
    CapabilityExecutor,
    DiagnosisExecutor,
    DoctorExecutor,
    FileSystemExecutor,
    GitExecutor,
    MonitorExecutor,
    NetworkExecutor,
    SystemInfoExecutor,
)
from hostops.core.capabilities.executors.platform import Platform
from hostops.core.capabilities.registry import CapabilityRegistry
from hostops.core.capabilities.runner_base import CommandRunner, SafeCommandRunner

logger = logging.getLogger(__name__)


def builtin_executors(
    runner: Optional[CommandRunner] = None,
    platform: Optional[Platform] = None,
) -> List[CapabilityExecutor]:
    """
    Instantiate every built-in executor over one runner

    Args:
        runner: Command runner (default: SafeCommandRunner)
        platform: Force a platform's command spellings (default: detected)
    """
    runner = runner or SafeCommandRunner()
    return [
        FileSystemExecutor(runner),
        GitExecutor(runner),
        SystemInfoExecutor(runner),
        DiagnosisExecutor(runner, platform=platform),
        MonitorExecutor(runner, platform=platform),
        AnalysisExecutor(runner, platform=platform),
        NetworkExecutor(runner, platform=platform),
        DoctorExecutor(runner),
    ]


def create_registry(
    runner: Optional[CommandRunner] = None,
    platform: Optional[Platform] = None,
) -> CapabilityRegistry:
    """New registry initialized with the built-in capability set"""
    registry = CapabilityRegistry()
    executors = builtin_executors(runner, platform)
    registry.initialize(executors)
    # sys-diagnose calls back into the registry it serves
    for executor in executors:
        if isinstance(executor, DoctorExecutor):
            executor.attach(registry)
    return registry
