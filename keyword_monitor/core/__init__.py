# Core business logic
from .gate import GateDecision, GateReason, allow_check
from .detector import EdgeDetector
from .trial import TrialExpiryNotifier, remaining_days, severity_for
from .monitor import Monitor, TickOutcome

__all__ = [
    "GateDecision",
    "GateReason",
    "allow_check",
    "EdgeDetector",
    "TrialExpiryNotifier",
    "remaining_days",
    "severity_for",
    "Monitor",
    "TickOutcome",
]
