"""Storage collaborator used by the advisory core.

The core never talks to a database directly. It goes through the
:class:`Storage` protocol; :class:`InMemoryStorage` is the implementation
used by the demo app and the test suite.
"""

from datetime import datetime, timedelta
from typing import Any, Protocol

from .models import FinancialGoal, Transaction, UserPreferences, UserStats


class Storage(Protocol):
    """Read/write operations the advisory core needs."""

    def get_user_preferences(self, user_id: str) -> UserPreferences | None: ...

    def update_user_preferences(self, user_id: str, updates: dict[str, Any]) -> UserPreferences: ...

    def get_financial_goal(self, goal_id: str) -> FinancialGoal | None: ...

    def update_financial_goal(self, goal_id: str, updates: dict[str, Any]) -> FinancialGoal: ...

    def get_financial_goals(self, user_id: str) -> list[FinancialGoal]: ...

    def get_transactions(self, user_id: str, days: int) -> list[Transaction]: ...

    def get_user_stats(self, user_id: str) -> UserStats: ...


class InMemoryStorage:
    """Dict-backed storage for a single process."""

    def __init__(self):
        self.preferences: dict[str, UserPreferences] = {}
        self.goals: dict[str, FinancialGoal] = {}
        self.transactions: list[Transaction] = []

    # Seeding helpers

    def add_transaction(self, transaction: Transaction) -> Transaction:
        self.transactions.append(transaction)
        return transaction

    def add_goal(self, goal: FinancialGoal) -> FinancialGoal:
        self.goals[goal.id] = goal
        return goal

    def set_preferences(self, preferences: UserPreferences) -> UserPreferences:
        self.preferences[preferences.user_id] = preferences
        return preferences

    # Storage protocol

    def get_user_preferences(self, user_id: str) -> UserPreferences | None:
        return self.preferences.get(user_id)

    def update_user_preferences(self, user_id: str, updates: dict[str, Any]) -> UserPreferences:
        current = self.preferences.get(user_id) or UserPreferences(user_id=user_id)
        updated = current.model_copy(update=updates)
        self.preferences[user_id] = updated
        return updated

    def get_financial_goal(self, goal_id: str) -> FinancialGoal | None:
        return self.goals.get(goal_id)

    def update_financial_goal(self, goal_id: str, updates: dict[str, Any]) -> FinancialGoal:
        goal = self.goals.get(goal_id)
        if goal is None:
            raise KeyError(goal_id)
        updated = goal.model_copy(update=updates)
        self.goals[goal_id] = updated
        return updated

    def get_financial_goals(self, user_id: str) -> list[FinancialGoal]:
        return [g for g in self.goals.values() if g.user_id == user_id]

    def get_transactions(self, user_id: str, days: int) -> list[Transaction]:
        cutoff = datetime.now() - timedelta(days=days)
        rows = [t for t in self.transactions if t.user_id == user_id and t.date >= cutoff]
        return sorted(rows, key=lambda t: t.date, reverse=True)

    def get_user_stats(self, user_id: str) -> UserStats:
        """Savings from active goals, income from the last 30 days, estimates as fallback."""
        active = [g for g in self.get_financial_goals(user_id) if g.status == "active"]
        total_savings = sum(g.current_amount for g in active)
        monthly_income = sum(t.amount for t in self.get_transactions(user_id, 30) if t.type == "income")

        prefs = self.get_user_preferences(user_id)
        if prefs:
            total_savings = total_savings or (prefs.current_savings_estimate or 0)
            monthly_income = monthly_income or (prefs.monthly_income_estimate or 0)

        return UserStats(
            total_savings=total_savings,
            active_goals=len(active),
            monthly_income=monthly_income,
        )
