"""Pytest fixtures for testing."""

import itertools
import os
from datetime import datetime, timedelta

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("GEMINI_API_KEY", "test-api-key")

from wealth_coach.models import (  # noqa: E402
    FinancialGoal,
    RecentTransaction,
    Transaction,
    UserFinancialContext,
    UserPreferences,
)
from wealth_coach.storage import InMemoryStorage  # noqa: E402

USER_ID = "user-1"

_ids = itertools.count(1)


def make_transaction(amount, type="expense", category="Other", days_ago=1, user_id=USER_ID, **kwargs):
    """Build a stored transaction dated ``days_ago`` days before now."""
    return Transaction(
        id=f"tx-{next(_ids)}",
        user_id=user_id,
        amount=amount,
        type=type,
        category=category,
        date=datetime.now() - timedelta(days=days_ago),
        **kwargs,
    )


def make_goal(
    goal_id="goal-1",
    target=1000,
    current=0,
    created_days_ago=100,
    due_in_days=100,
    user_id=USER_ID,
    **kwargs,
):
    now = datetime.now()
    return FinancialGoal(
        id=goal_id,
        user_id=user_id,
        title=kwargs.pop("title", "Emergency Fund"),
        target_amount=target,
        current_amount=current,
        created_at=now - timedelta(days=created_days_ago),
        target_date=now + timedelta(days=due_in_days),
        **kwargs,
    )


@pytest.fixture
def storage():
    """Empty in-memory storage."""
    return InMemoryStorage()


@pytest.fixture
def seeded_storage(storage):
    """Storage with one month of ordinary activity for USER_ID."""
    storage.set_preferences(
        UserPreferences(
            user_id=USER_ID,
            monthly_income_estimate=5000,
            monthly_expenses_estimate=3000,
            current_savings_estimate=9000,
        )
    )
    storage.add_transaction(make_transaction(5000, type="income", category="Salary", days_ago=3))
    storage.add_transaction(make_transaction(1500, category="Rent", days_ago=5))
    storage.add_transaction(make_transaction(400, category="Groceries", days_ago=10))
    storage.add_transaction(make_transaction(200, category="Transportation", days_ago=12))
    storage.add_goal(make_goal(target=10000, current=3000))
    return storage


@pytest.fixture
def context():
    """A healthy financial snapshot that triggers no deterministic insight rule."""
    return UserFinancialContext(
        total_savings=20000,
        monthly_income=5000,
        monthly_expenses=4500,
        active_goals=1,
        age=35,
    )


@pytest.fixture
def recent(context):
    """Helper that attaches recent transactions to the context fixture."""

    def _attach(*rows):
        now = datetime.now()
        context.recent_transactions = [
            RecentTransaction(amount=amount, category=category, date=now - timedelta(days=days_ago))
            for amount, category, days_ago in rows
        ]
        return context

    return _attach
