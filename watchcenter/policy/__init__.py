"""
Rule admission policy for Disaster Watch alerting.
"""

from .admission import AdmissionLocks
from .guards import CooldownGuard, QuotaGuard
from .matcher import Decision, RuleMatcher

__all__ = ["AdmissionLocks", "CooldownGuard", "QuotaGuard", "Decision", "RuleMatcher"]
