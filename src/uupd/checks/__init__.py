"""Pre-flight checks run before any driver."""

from .hardware import CheckResult, run_hw_checks

__all__ = ["CheckResult", "run_hw_checks"]
