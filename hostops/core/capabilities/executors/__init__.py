"""
Built-in capability executors

One executor per capability family; each serves a closed set of names.
"""

from hostops.core.capabilities.executors.analysis import AnalysisExecutor
from hostops.core.capabilities.executors.base import CapabilityExecutor
from hostops.core.capabilities.executors.diagnosis import DiagnosisExecutor
from hostops.core.capabilities.executors.doctor import DoctorExecutor
from hostops.core.capabilities.executors.filesystem import FileSystemExecutor
from hostops.core.capabilities.executors.git import GitExecutor
from hostops.core.capabilities.executors.monitor import MonitorExecutor
from hostops.core.capabilities.executors.network import NetworkExecutor
from hostops.core.capabilities.executors.system_info import SystemInfoExecutor

__all__ = [
    "CapabilityExecutor",
    "GitExecutor",
    "FileSystemExecutor",
    "SystemInfoExecutor",
    "NetworkExecutor",
    "DiagnosisExecutor",
    "DoctorExecutor",
    "MonitorExecutor",
    "AnalysisExecutor",
]
