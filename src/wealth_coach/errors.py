"""Exceptions raised by the advisory core."""


class WealthCoachError(Exception):
    """Base class for all wealth coach errors."""


class ConfigurationError(WealthCoachError):
    """Raised when a required setting (e.g. the completion provider key) is missing."""


class AdvisoryError(WealthCoachError):
    """Raised when the completion provider fails while generating advice."""


class GoalNotFoundError(WealthCoachError):
    """Raised when a goal id does not resolve to a stored goal."""

    def __init__(self, goal_id: str):
        super().__init__(f"Goal not found: {goal_id}")
        self.goal_id = goal_id
