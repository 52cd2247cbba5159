from .confirmation import awaiting_confirmation, is_affirmation, split_confirmed
from .orchestrator import AdvisoryOrchestrator, needs_action, rule_based_insight

__all__ = [
    "AdvisoryOrchestrator",
    "awaiting_confirmation",
    "is_affirmation",
    "needs_action",
    "rule_based_insight",
    "split_confirmed",
]
