"""Exceptions for diagnostic runs"""


class DiagnosisError(Exception):
    """Base exception for diagnostic errors"""
    pass


class FatalConfiguration(DiagnosisError):
    """Configuration makes a run meaningless; raised before any check runs"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Fatal diagnostic configuration: {reason}")


class DiagnosticBudgetExceeded(DiagnosisError):
    """Time budget ran out mid-sampling under the 'fail' budget policy"""

    def __init__(self, seconds: float, group: str):
        self.seconds = seconds
        self.group = group
        super().__init__(f"Diagnostic time budget of {seconds:g}s exhausted during {group}")
