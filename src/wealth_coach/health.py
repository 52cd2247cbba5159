"""Composite 0-100 financial health score."""

import logging
from datetime import datetime, timedelta

from .models import FactorScore, HealthBreakdown, HealthScore, Transaction

logger = logging.getLogger(__name__)

WEIGHTS = {
    "savings_rate": 0.30,
    "emergency_fund": 0.25,
    "debt_ratio": 0.20,
    "net_worth_growth": 0.15,
    "budget_adherence": 0.10,
}
# Human names used in summaries, in tie-break order
FACTOR_NAMES = {
    "savings_rate": "savings rate",
    "emergency_fund": "emergency fund",
    "debt_ratio": "debt management",
    "net_worth_growth": "net worth growth",
    "budget_adherence": "budget adherence",
}
DEBT_CATEGORY_MARKERS = ("credit card", "loan", "debt", "mortgage")

GETTING_STARTED = HealthScore(
    overall=50,
    breakdown=HealthBreakdown(
        savings_rate=FactorScore(
            score=50, value=0, label="Getting Started",
            recommendation="Add your income and expenses to track your savings rate.",
        ),
        emergency_fund=FactorScore(
            score=50, value=0, label="Getting Started",
            recommendation="Tell us about your savings to calculate your emergency fund coverage.",
        ),
        debt_ratio=FactorScore(
            score=100, value=0, label="No Debt Detected",
            recommendation="Great! No debt payments found. Keep it that way!",
        ),
        net_worth_growth=FactorScore(
            score=50, value=0, label="Getting Started",
            recommendation="As you add transactions, we will track your financial growth.",
        ),
        budget_adherence=FactorScore(
            score=50, value=50, label="Getting Started",
            recommendation="Set up a budget to see how well you're sticking to it.",
        ),
    ),
    grade="Getting Started",
    summary=(
        "Welcome! Add your first transaction or set up your financial profile to get "
        "personalized insights and track your progress."
    ),
    top_priority="Start by adding a transaction or setting your monthly income in Settings.",
)


def grade_for(overall: float) -> str:
    if overall >= 90:
        return "Excellent"
    if overall >= 75:
        return "Good"
    if overall >= 60:
        return "Fair"
    if overall >= 40:
        return "Needs Improvement"
    return "Critical"


def score_savings_rate(rate: float, monthly_income: float) -> FactorScore:
    if rate >= 20:
        return FactorScore(
            score=100, value=rate, label="Excellent",
            recommendation="Outstanding! Maintain this rate for long-term wealth building.",
        )
    if rate >= 15:
        return FactorScore(
            score=85, value=rate, label="Very Good",
            recommendation="Great job! Consider increasing to 20% to accelerate your goals.",
        )
    if rate >= 10:
        return FactorScore(
            score=70, value=rate, label="Good",
            recommendation="Solid foundation. Try to reach 15% by cutting one major expense.",
        )
    if rate >= 5:
        return FactorScore(
            score=50, value=rate, label="Fair",
            recommendation=(
                f"At {rate:.1f}%, you're saving ${round(monthly_income * rate / 100):,}/month. "
                f"Target: ${round(monthly_income * 0.15):,}/month (15%)."
            ),
        )
    if rate > 0:
        return FactorScore(
            score=25, value=rate, label="Low",
            recommendation=(
                f"Only {rate:.1f}% savings rate. Review expenses now and start with "
                f"${round(monthly_income * 0.05):,}/month minimum."
            ),
        )
    return FactorScore(
        score=0, value=rate, label="Critical",
        recommendation="Expenses exceed income. Create an emergency budget and cut discretionary spending by 30%.",
    )


def score_emergency_fund(months: float, monthly_expenses: float) -> FactorScore:
    if months >= 6:
        return FactorScore(
            score=100, value=months, label="Excellent",
            recommendation="Excellent! You have 6+ months of expenses saved. Focus on investing the excess.",
        )
    if months >= 3:
        return FactorScore(
            score=75, value=months, label="Good",
            recommendation=(
                f"Good start at {months:.1f} months. Target: {6 - months:.1f} more months "
                f"(${round(monthly_expenses * (6 - months)):,})."
            ),
        )
    if months >= 1:
        return FactorScore(
            score=50, value=months, label="Fair",
            recommendation=(
                f"Only {months:.1f} months saved. Save ${round(monthly_expenses * (3 - months)):,} "
                "more for the 3-month minimum."
            ),
        )
    if months > 0:
        return FactorScore(
            score=25, value=months, label="Low",
            recommendation=(
                "Less than 1 month saved. Start your emergency fund now, targeting "
                f"${round(monthly_expenses):,}/month for 3 months."
            ),
        )
    return FactorScore(
        score=0, value=months, label="Critical",
        recommendation=(
            "No emergency fund. Start with $500-$1,000 immediately, then build to 3-6 months of "
            f"expenses (${round(monthly_expenses * 3):,}-${round(monthly_expenses * 6):,})."
        ),
    )


def score_debt_ratio(ratio: float) -> FactorScore:
    if ratio == 0:
        return FactorScore(
            score=100, value=ratio, label="Debt Free",
            recommendation="Excellent! No debt payments detected. Maximize savings and investments.",
        )
    if ratio <= 10:
        return FactorScore(
            score=90, value=ratio, label="Very Low",
            recommendation=f"Manageable at {ratio:.1f}%. Consider accelerating payoff to save on interest.",
        )
    if ratio <= 20:
        return FactorScore(
            score=75, value=ratio, label="Moderate",
            recommendation=f"{ratio:.1f}% is acceptable. Use the avalanche method to pay the highest interest debt first.",
        )
    if ratio <= 36:
        return FactorScore(
            score=50, value=ratio, label="High",
            recommendation=f"Warning: {ratio:.1f}% debt ratio. Aim for under 20% and consider debt consolidation.",
        )
    return FactorScore(
        score=20, value=ratio, label="Critical",
        recommendation=(
            f"{ratio:.1f}% debt ratio exceeds the safe limit of 36%. Stop new debt and pay "
            "minimums plus extra to the highest APR."
        ),
    )


def score_net_worth_growth(growth: float) -> FactorScore:
    if growth >= 5:
        return FactorScore(
            score=100, value=growth, label="Excellent Growth",
            recommendation=f"Amazing! {growth:.1f}% month-over-month growth. Keep this momentum!",
        )
    if growth >= 2:
        return FactorScore(
            score=80, value=growth, label="Good Growth",
            recommendation=f"Solid {growth:.1f}% growth. Compounding at this rate builds strong future wealth.",
        )
    if growth > 0:
        return FactorScore(
            score=60, value=growth, label="Positive Growth",
            recommendation=f"{growth:.1f}% growth is positive. Increase your savings rate for faster progress.",
        )
    if growth >= -2:
        return FactorScore(
            score=40, value=growth, label="Stagnant",
            recommendation="Net worth is flat. Identify one area to cut expenses or boost income this month.",
        )
    return FactorScore(
        score=20, value=growth, label="Declining",
        recommendation=f"Warning: {abs(growth):.1f}% decline. Review your major expenses now.",
    )


def score_budget_adherence(adherence: float) -> FactorScore:
    if adherence >= 95:
        label, rec = "Excellent", "Perfect budget control! You are within 5% of planned spending."
    elif adherence >= 85:
        label, rec = "Good", "Good budget adherence. Minor adjustments can get you to perfect control."
    elif adherence >= 70:
        label = "Fair"
        rec = f"{100 - adherence:.0f}% over/under budget. Track daily expenses to improve accuracy."
    else:
        label = "Poor"
        rec = "Significant budget variance. Use the 50/30/20 rule: 50% needs, 30% wants, 20% savings."
    return FactorScore(score=adherence, value=adherence, label=label, recommendation=rec)


def _sum(transactions: list[Transaction], type: str, start: datetime, end: datetime | None = None) -> float:
    return sum(
        t.amount
        for t in transactions
        if t.type == type and t.date >= start and (end is None or t.date < end)
    )


def _summary(overall: int, savings_rate: float, fund_months: float, weakest: str) -> str:
    if overall >= 90:
        return (
            f"Outstanding financial health! Your {savings_rate:.0f}% savings rate and "
            f"{fund_months:.1f}-month emergency fund show excellent discipline."
        )
    if overall >= 75:
        return f"Solid financial foundation with good habits. Focus on your {weakest} to reach excellent status."
    if overall >= 60:
        return f"Fair financial health with room for improvement. Your {weakest} needs attention first."
    if overall >= 40:
        return (
            f"Financial health needs significant improvement. Critical focus area: {weakest}. "
            "Small changes today prevent major problems tomorrow."
        )
    return (
        f"Financial health requires urgent action. Start with your {weakest} immediately "
        "and consider speaking with a financial advisor."
    )


def calculate_financial_health(storage, user_id: str, now: datetime | None = None) -> HealthScore:
    """Score a user's finances from storage data.

    Users with no transactions, no income signal and no goals get a fixed
    "Getting Started" result instead of scores computed from zeros.
    """
    now = now or datetime.now()
    stats = storage.get_user_stats(user_id)
    prefs = storage.get_user_preferences(user_id)
    transactions = storage.get_transactions(user_id, 90)
    goals = storage.get_financial_goals(user_id)

    income_estimate = (prefs.monthly_income_estimate if prefs else None) or 0
    expenses_estimate = (prefs.monthly_expenses_estimate if prefs else None) or 0
    savings_estimate = (prefs.current_savings_estimate if prefs else None) or 0

    if not transactions and not stats.monthly_income and not income_estimate and not goals:
        logger.info("No financial data for user %s, returning onboarding score", user_id)
        return GETTING_STARTED.model_copy(deep=True)

    thirty_days_ago = now - timedelta(days=30)
    sixty_days_ago = now - timedelta(days=60)

    monthly_income = stats.monthly_income or income_estimate
    recent_expenses = _sum(transactions, "expense", thirty_days_ago)
    monthly_expenses = recent_expenses if recent_expenses > 0 else expenses_estimate
    total_savings = stats.total_savings or savings_estimate

    savings_rate = (monthly_income - monthly_expenses) / monthly_income * 100 if monthly_income > 0 else 0
    fund_months = total_savings / monthly_expenses if monthly_expenses > 0 else 0

    debt_payments = sum(
        t.amount
        for t in transactions
        if t.type == "expense"
        and t.date >= thirty_days_ago
        and any(marker in t.category.lower() for marker in DEBT_CATEGORY_MARKERS)
    )
    debt_ratio = debt_payments / monthly_income * 100 if monthly_income > 0 else 0

    old_income = _sum(transactions, "income", sixty_days_ago, thirty_days_ago)
    old_expenses = _sum(transactions, "expense", sixty_days_ago, thirty_days_ago)
    monthly_growth = (monthly_income - monthly_expenses) - (old_income - old_expenses)
    growth = monthly_growth / old_income * 100 if old_income > 0 else 0

    if expenses_estimate > 0:
        adherence = max(0.0, 100 - abs((monthly_expenses - expenses_estimate) / expenses_estimate * 100))
    else:
        adherence = 50.0 if monthly_expenses > 0 else 100.0

    breakdown = HealthBreakdown(
        savings_rate=score_savings_rate(savings_rate, monthly_income),
        emergency_fund=score_emergency_fund(fund_months, monthly_expenses),
        debt_ratio=score_debt_ratio(debt_ratio),
        net_worth_growth=score_net_worth_growth(growth),
        budget_adherence=score_budget_adherence(adherence),
    )

    weighted = sum(getattr(breakdown, name).score * weight for name, weight in WEIGHTS.items())
    overall = max(0, min(100, round(weighted)))

    # min() keeps the first of equal scores, so ties resolve in table order
    weakest = min(FACTOR_NAMES, key=lambda name: getattr(breakdown, name).score)

    return HealthScore(
        overall=overall,
        breakdown=breakdown,
        grade=grade_for(overall),
        summary=_summary(overall, savings_rate, fund_months, FACTOR_NAMES[weakest]),
        top_priority=getattr(breakdown, weakest).recommendation,
    )
