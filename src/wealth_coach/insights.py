"""Proactive insights and the weekly summary.

Each detector looks at one pattern in the user's last 90 days of activity
and contributes zero or more :class:`ProactiveInsight` objects. Detectors
are independent and stateless; nothing here remembers what was already
shown.
"""

import logging
import math
import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from .models import (
    CategoryTotal,
    FinancialGoal,
    GoalWeeklyUpdate,
    ProactiveInsight,
    Transaction,
    WeeklySummary,
)
from .rules import RuleTable

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

ANOMALY_MULTIPLIER = 3
ANOMALY_MIN_AMOUNT = 100
ANOMALY_HIGH_AMOUNT = 500
CATEGORY_SHARE_LIMIT = 30
HOUSING_CATEGORIES = {"housing", "rent"}
MIN_SUBSCRIPTIONS = 3
DINING_LIMIT = 500
COOKING_SAVINGS_RATE = 0.6
IDLE_CASH_LIMIT = 10_000
HIGH_YIELD_APY = 0.045
DEADLINE_DAYS = 30
DEADLINE_MAX_PERCENT = 90
BUDGET_OVERRUN_FACTOR = 1.2
STREAK_MIN_RATE = 15
TREND_THRESHOLD = 10
TOP_CATEGORIES = 3

SUBSCRIPTIONS = RuleTable.from_mapping(
    {"subscription": ["subscription", "netflix", "spotify", "gym", "membership", "monthly"]}
)
DINING = RuleTable.from_mapping({"dining": ["dining", "food", "restaurant", "delivery"]})


def _insight_id() -> str:
    return f"insight_{uuid.uuid4().hex[:12]}"


def _expenses(transactions: list[Transaction], since: datetime, until: datetime | None = None) -> list[Transaction]:
    return [
        t for t in transactions
        if t.type == "expense" and t.date >= since and (until is None or t.date < until)
    ]


def _total(transactions: list[Transaction], type: str, since: datetime, until: datetime | None = None) -> float:
    return sum(
        t.amount for t in transactions
        if t.type == type and t.date >= since and (until is None or t.date < until)
    )


def _by_category(transactions: list[Transaction]) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for t in transactions:
        totals[t.category] += t.amount
    return dict(totals)


def _goal_percent(goal: FinancialGoal) -> float:
    return goal.current_amount / goal.target_amount * 100 if goal.target_amount > 0 else 0.0


# --- Detectors ---


def detect_large_expenses(transactions: list[Transaction], now: datetime) -> list[ProactiveInsight]:
    week = _expenses(transactions, now - timedelta(days=7))
    if not week:
        return []
    average = sum(t.amount for t in week) / len(week)

    insights = []
    for t in week:
        if t.amount > average * ANOMALY_MULTIPLIER and t.amount > ANOMALY_MIN_AMOUNT:
            insights.append(
                ProactiveInsight(
                    id=_insight_id(),
                    type="spending_anomaly",
                    priority="high" if t.amount > ANOMALY_HIGH_AMOUNT else "medium",
                    title="Unusual Large Purchase Detected",
                    message=f"You spent ${t.amount:,.2f} on {t.category} - 3x your average transaction.",
                    actionable=(
                        f"Review this {t.category} expense. Was it planned? Consider a spending "
                        f"alert for purchases over ${round(average * 2):,}."
                    ),
                    data={"transaction_id": t.id, "amount": t.amount, "average_amount": average},
                )
            )
    return insights


def detect_category_concentration(category_spend: dict[str, float], monthly_income: float) -> list[ProactiveInsight]:
    if monthly_income <= 0:
        return []

    insights = []
    for category, amount in category_spend.items():
        percent = amount / monthly_income * 100
        if percent > CATEGORY_SHARE_LIMIT and category.lower() not in HOUSING_CATEGORIES:
            insights.append(
                ProactiveInsight(
                    id=_insight_id(),
                    type="spending_anomaly",
                    priority="high",
                    title=f"High {category} Spending",
                    message=f"Your {category} spending is ${amount:,.0f}/month ({percent:.0f}% of income).",
                    actionable=(
                        f"This is above the recommended 20% limit. Reducing {category} spending by 25% "
                        f"would save ${round(amount * 0.25):,}/month."
                    ),
                    data={"category": category, "amount": amount, "percent_of_income": percent},
                )
            )
    return insights


def detect_subscriptions(month_expenses: list[Transaction]) -> list[ProactiveInsight]:
    subscriptions = [
        t for t in month_expenses
        if SUBSCRIPTIONS.any(t.category) or (t.description and SUBSCRIPTIONS.any(t.description))
    ]
    if len(subscriptions) < MIN_SUBSCRIPTIONS:
        return []

    total = sum(t.amount for t in subscriptions)
    return [
        ProactiveInsight(
            id=_insight_id(),
            type="savings_opportunity",
            priority="medium",
            title="Subscription Audit Recommended",
            message=f"You have {len(subscriptions)} subscriptions costing ~${total:,.0f}/month.",
            actionable=(
                "Review and cancel unused subscriptions. Cutting 2 of them could save "
                f"${round(total * 0.3):,}/month = ${round(total * 0.3 * 12):,}/year."
            ),
            data={"count": len(subscriptions), "total_cost": total},
        )
    ]


def detect_dining(month_expenses: list[Transaction]) -> list[ProactiveInsight]:
    spend = sum(t.amount for t in month_expenses if DINING.any(t.category))
    if spend <= DINING_LIMIT:
        return []

    savings = spend * COOKING_SAVINGS_RATE
    return [
        ProactiveInsight(
            id=_insight_id(),
            type="savings_opportunity",
            priority="medium",
            title="Dining Out Opportunity",
            message=f"You spent ${spend:,.0f} on dining out this month.",
            actionable=(
                f"Cooking 3 more meals a week could save ${round(savings):,}/month. "
                "Meal prep on Sundays saves time and money."
            ),
            data={"dining_spend": spend, "potential_savings": savings},
        )
    ]


def detect_idle_cash(total_savings: float) -> list[ProactiveInsight]:
    if total_savings <= IDLE_CASH_LIMIT:
        return []

    monthly_interest = total_savings * HIGH_YIELD_APY / 12
    return [
        ProactiveInsight(
            id=_insight_id(),
            type="savings_opportunity",
            priority="low",
            title="High-Yield Savings Opportunity",
            message=f"You have ${total_savings:,.0f} in savings. Are you earning 4-5% interest?",
            actionable=(
                "Move funds to a high-yield savings account (4-5% APY) to earn "
                f"${round(monthly_interest):,}/month in passive income."
            ),
            data={"total_savings": total_savings, "potential_interest": total_savings * HIGH_YIELD_APY},
        )
    ]


def detect_goal_deadlines(goals: list[FinancialGoal], monthly_income: float, now: datetime) -> list[ProactiveInsight]:
    insights = []
    for goal in goals:
        if goal.status != "active":
            continue

        days_left = math.ceil((goal.target_date - now).total_seconds() / 86400)
        remaining = goal.target_amount - goal.current_amount
        percent = _goal_percent(goal)

        if days_left <= DEADLINE_DAYS and percent < DEADLINE_MAX_PERCENT:
            monthly_needed = remaining / (max(days_left, 1) / 30)
            actionable = f"Need ${remaining:,.0f} more. Save ${round(monthly_needed):,}/month"
            if monthly_income > 0:
                extend = math.ceil(remaining / (monthly_income * 0.1))
                actionable += f" or extend the deadline by {extend} months."
            else:
                actionable += "."
            insights.append(
                ProactiveInsight(
                    id=_insight_id(),
                    type="goal_deadline",
                    priority="high",
                    title=f"Goal Deadline Approaching: {goal.title}",
                    message=f"Only {days_left} days left! You're {percent:.0f}% there.",
                    actionable=actionable,
                    data={"goal_id": goal.id, "days_remaining": days_left, "remaining": remaining},
                )
            )

        if 45 <= percent < 55:
            to_halfway = max(0.0, goal.target_amount * 0.5 - goal.current_amount)
            insights.append(
                ProactiveInsight(
                    id=_insight_id(),
                    type="achievement",
                    priority="low",
                    title=f"Almost Halfway: {goal.title}",
                    message=f"You're at {percent:.0f}%! The 50% milestone is just ${to_halfway:,.0f} away.",
                    actionable="One more push to hit 50%! Reaching this milestone gives you major momentum.",
                    data={"goal_id": goal.id, "percent_complete": percent},
                )
            )
    return insights


def detect_budget_overrun(month_expenses: list[Transaction], budget: float) -> list[ProactiveInsight]:
    spent = sum(t.amount for t in month_expenses)
    if budget <= 0 or spent <= budget * BUDGET_OVERRUN_FACTOR:
        return []

    overspend = spent - budget
    top = sorted(_by_category(month_expenses).items(), key=lambda item: item[1], reverse=True)[:TOP_CATEGORIES]
    return [
        ProactiveInsight(
            id=_insight_id(),
            type="budget_warning",
            priority="high",
            title="Budget Exceeded",
            message=(
                f"You've spent ${spent:,.0f} this month, {(spent / budget - 1) * 100:.0f}% over "
                f"your ${budget:,.0f} budget."
            ),
            actionable=(
                f"Cut back ${round(overspend):,} to stay on track. Top categories to review: "
                f"{', '.join(category for category, _ in top)}."
            ),
            data={"monthly_expenses": spent, "budget_estimate": budget, "overspend": overspend},
        )
    ]


def detect_savings_streak(transactions: list[Transaction], now: datetime) -> list[ProactiveInsight]:
    since = now - timedelta(days=90)
    income = _total(transactions, "income", since)
    expenses = _total(transactions, "expense", since)
    if income <= 0 or income <= expenses:
        return []

    rate = (income - expenses) / income * 100
    if rate < STREAK_MIN_RATE:
        return []

    monthly_savings = (income - expenses) / 3
    return [
        ProactiveInsight(
            id=_insight_id(),
            type="achievement",
            priority="low",
            title="Impressive Savings Discipline!",
            message=f"You've maintained a {rate:.0f}% savings rate for 3 months straight!",
            actionable=(
                f"At this rate you'll save ${round(monthly_savings * 12):,}/year. Keep this momentum!"
            ),
            data={"savings_rate": rate, "monthly_savings": monthly_savings},
        )
    ]


def generate_proactive_insights(storage, user_id: str, now: datetime | None = None) -> list[ProactiveInsight]:
    """Run every detector and return insights ordered high, medium, low."""
    now = now or datetime.now()
    transactions = storage.get_transactions(user_id, 90)
    goals = storage.get_financial_goals(user_id)
    prefs = storage.get_user_preferences(user_id)
    stats = storage.get_user_stats(user_id)

    monthly_income = stats.monthly_income or ((prefs.monthly_income_estimate if prefs else None) or 0)
    total_savings = stats.total_savings or ((prefs.current_savings_estimate if prefs else None) or 0)
    budget = (prefs.monthly_expenses_estimate if prefs else None) or 0
    month_expenses = _expenses(transactions, now - timedelta(days=30))

    insights: list[ProactiveInsight] = []
    insights += detect_large_expenses(transactions, now)
    insights += detect_category_concentration(_by_category(month_expenses), monthly_income)
    insights += detect_subscriptions(month_expenses)
    insights += detect_dining(month_expenses)
    insights += detect_idle_cash(total_savings)
    insights += detect_goal_deadlines(goals, monthly_income, now)
    insights += detect_budget_overrun(month_expenses, budget)
    insights += detect_savings_streak(transactions, now)

    logger.info("Generated %d insights for user %s", len(insights), user_id)
    return sorted(insights, key=lambda i: PRIORITY_ORDER[i.priority])


# --- Weekly summary ---


def percent_change(current: float, previous: float) -> float:
    """Change from ``previous`` to ``current`` in percent; 0 -> x counts as +100%."""
    if previous == 0:
        return 0.0 if current == 0 else 100.0
    return (current - previous) / abs(previous) * 100


def cash_flow_trend(current: float, previous: float) -> str:
    if previous == 0:
        if current > 0:
            return "improving"
        if current < 0:
            return "declining"
        return "stable"

    change = percent_change(current, previous)
    if change > TREND_THRESHOLD:
        return "improving"
    if change < -TREND_THRESHOLD:
        return "declining"
    return "stable"


def generate_weekly_summary(storage, user_id: str, now: datetime | None = None) -> WeeklySummary:
    """Compare the last 7 days with the 7 days before them."""
    now = now or datetime.now()
    week_start = now - timedelta(days=7)
    prior_start = now - timedelta(days=14)

    transactions = storage.get_transactions(user_id, 14)
    goals = [g for g in storage.get_financial_goals(user_id) if g.status == "active"]

    income = _total(transactions, "income", week_start)
    expenses = _total(transactions, "expense", week_start)
    previous_income = _total(transactions, "income", prior_start, week_start)
    previous_expenses = _total(transactions, "expense", prior_start, week_start)
    cash_flow = income - expenses
    previous_cash_flow = previous_income - previous_expenses

    expense_change = percent_change(expenses, previous_expenses)
    trend = cash_flow_trend(cash_flow, previous_cash_flow)

    week_spend = _by_category(_expenses(transactions, week_start))
    top_categories = [
        CategoryTotal(category=category, amount=amount)
        for category, amount in sorted(week_spend.items(), key=lambda item: item[1], reverse=True)[:TOP_CATEGORIES]
    ]

    goal_updates = []
    for goal in goals:
        contributed = sum(t.amount for t in transactions if t.goal_id == goal.id and t.date >= week_start)
        goal_updates.append(
            GoalWeeklyUpdate(
                goal_id=goal.id,
                goal_title=goal.title,
                percent_complete=_goal_percent(goal),
                contributed_this_week=contributed,
                percent_change=contributed / goal.target_amount * 100 if goal.target_amount > 0 else 0.0,
            )
        )

    highlights = []
    action_items = []

    if cash_flow > 0:
        highlights.append(f"You kept ${cash_flow:,.0f} more than you spent this week.")
    elif cash_flow < 0:
        action_items.append(f"You spent ${-cash_flow:,.0f} more than you earned this week. Pause non-essential purchases.")

    if previous_expenses > 0 and expense_change < 0:
        highlights.append(f"Spending is down {abs(expense_change):.0f}% from last week.")
    elif expense_change > 20:
        action_items.append(f"Spending rose {expense_change:.0f}% from last week. Check what changed.")

    for update in goal_updates:
        if update.contributed_this_week > 0:
            highlights.append(f'Added ${update.contributed_this_week:,.0f} to "{update.goal_title}".')

    if top_categories and expenses > 0:
        top = top_categories[0]
        action_items.append(
            f"{top.category} was your biggest category at ${top.amount:,.0f}. Set a limit for next week."
        )

    return WeeklySummary(
        period_start=week_start,
        period_end=now,
        income=income,
        expenses=expenses,
        cash_flow=cash_flow,
        previous_income=previous_income,
        previous_expenses=previous_expenses,
        previous_cash_flow=previous_cash_flow,
        income_change_percent=percent_change(income, previous_income),
        expense_change_percent=expense_change,
        trend=trend,
        top_categories=top_categories,
        goal_updates=goal_updates,
        highlights=highlights,
        action_items=action_items,
    )
