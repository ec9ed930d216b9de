"""
Diagnosis-report executor

Capabilities:
- sys-diagnose: Run a graded diagnosis and return the structured report

The diagnosis calls the other capabilities back through the registry it is
registered in, so a remote caller can request a whole report with one
CapabilityCall.
"""

import logging
import time
from typing import Any, Dict, List

from hostops.core.capabilities.exceptions import CapabilityError, ValidationError
from hostops.core.capabilities.executors.base import CapabilityExecutor, string_param
from hostops.core.capabilities.models import CapabilityCall, CapabilityDefinition, InvocationContext
from hostops.core.capabilities.runner_base.base import CommandRunner

logger = logging.getLogger(__name__)

# mode -> DiagnosticDepth value ("deep" is the historical name for advanced)
DIAGNOSE_MODES = {
    "quick": "quick",
    "standard": "standard",
    "deep": "advanced",
    "advanced": "advanced",
}


class DoctorExecutor(CapabilityExecutor):
    """Exposes the diagnostic orchestrator as a capability"""

    kind = "diagnosis-report"

    def __init__(self, runner: CommandRunner, registry=None,
                 clock=time.monotonic, sleep=time.sleep):
        self.registry = registry
        self.clock = clock
        self.sleep = sleep
        super().__init__(runner)

    def definitions(self) -> List[CapabilityDefinition]:
        return [
            CapabilityDefinition(
                name="sys-diagnose",
                description="Run a system diagnosis and return the report",
                parameters=[
                    string_param("mode", "Depth: quick, standard or deep (default: standard)",
                                 default="standard"),
                ],
                timeout_seconds=30,
            ),
        ]

    def attach(self, registry) -> None:
        """Point the diagnosis at the registry this executor is registered in"""
        self.registry = registry

    def invoke(self, call: CapabilityCall, arguments: Dict[str, Any],
               context: InvocationContext) -> Dict[str, Any]:
        if call.name == "sys-diagnose":
            return self._diagnose(arguments["mode"], context)
        raise KeyError(call.name)

    def _diagnose(self, mode: str, context: InvocationContext) -> Dict[str, Any]:
        from hostops.core.capabilities.dispatch import ExecutorDispatch
        from hostops.core.doctor import (
            BudgetPolicy,
            DiagnosisError,
            DiagnosticDepth,
            DiagnosticOrchestrator,
            ReportFormatter,
        )

        if mode not in DIAGNOSE_MODES:
            raise ValidationError(f"mode must be one of {sorted(DIAGNOSE_MODES)}, got {mode!r}")
        if self.registry is None:
            raise CapabilityError("sys-diagnose is not attached to a registry")

        dispatch = ExecutorDispatch(self.registry)
        depth = DiagnosticDepth(DIAGNOSE_MODES[mode])
        config = depth.to_config()
        config.budget_policy = BudgetPolicy(dispatch.config.budget_policy)
        # The whole diagnosis has to fit in this call's own timeout
        config.timeout_seconds = max(1, min(config.timeout_seconds, int(context.timeout_seconds)))

        orchestrator = DiagnosticOrchestrator(dispatch, clock=self.clock, sleep=self.sleep)
        try:
            report = orchestrator.run(config)
        except DiagnosisError as e:
            raise CapabilityError(f"Diagnosis failed: {e}") from e
        report.execution_summary.depth = depth.value

        logger.info(f"sys-diagnose ({mode}) found {len(report.issues)} issue(s)")
        return {
            "diagnosis_mode": mode,
            "report": ReportFormatter().to_dict(report),
            "success": True,
        }
