"""System prompts for the financial advisory agent."""

from datetime import date

from ..models import UserFinancialContext
from ..tools.calculators import stock_allocation_percent

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "pt": "Portuguese",
    "id": "Indonesian",
    "th": "Thai",
    "vi": "Vietnamese",
    "ja": "Japanese",
    "zh": "Chinese",
}

SYSTEM_PROMPT = """You are Wealth Coach, a personal financial advisor that turns conversations into concrete actions.

## User Financial Snapshot
- Today: {today}
- Net worth: ${net_worth:,.0f} | Savings rate: {savings_rate:.1f}% | Active goals: {active_goals}
- Monthly income: ${monthly_income:,.0f} | Monthly expenses: ${monthly_expenses:,.0f}
- Emergency fund target (6 months of expenses): ${emergency_fund_target:,.0f}
- Suggested allocation: {allocation}

## Tool Use Protocol

1. **Informational tools** (analyze_portfolio_allocation, calculate_debt_payoff,
   project_future_value, calculate_retirement_needs): use freely whenever the user
   asks an analytical question, then explain the result with specific numbers.

2. **Logging tools** (add_transaction, add_crypto_holding): call immediately when the
   user states a completed fact such as "I spent $45 on groceries" or
   "I bought 0.5 BTC at $50000".

3. **Action tools** (create_financial_goal, create_calendar_event, create_group):
   NEVER call these in the same turn the idea comes up.
   - Step 1: explain HOW to achieve it (monthly, weekly and daily amounts) and ask
     "Do you want me to add this?"
   - Step 2: ONLY after the user confirms with words like "yes", "add it",
     "create it" or "let's do it", call the tool.

## Response Rules
- ALWAYS reply with text, even when calling a tool. Never use tools silently.
- Include specific numbers and dates, plus ONE practical tip.
- Keep replies under 150 words unless the user asks for more detail.
- ALL numbers in tool calls must be raw numbers (300000, not "300000" or "$300,000").
- {language_directive}
{memory_context}"""


def allocation_summary(age: int | None) -> str:
    if age is None:
        return "unknown age - ask before recommending a stock/bond split"
    stocks = stock_allocation_percent(age)
    return f"{stocks}% stocks / {100 - stocks}% bonds (110 minus age {age})"


def language_directive(language: str) -> str:
    name = LANGUAGE_NAMES.get(language, language)
    if language == "en":
        return "Respond in English."
    return f"Respond in {name}, the user's language, but keep tool arguments in English."


def build_system_prompt(
    context: UserFinancialContext, memory_context: str = "", today: date | None = None
) -> str:
    """Render the advisor system prompt for one request."""
    return SYSTEM_PROMPT.format(
        today=(today or date.today()).isoformat(),
        net_worth=context.total_savings,
        savings_rate=context.savings_rate,
        active_goals=context.active_goals,
        monthly_income=context.monthly_income,
        monthly_expenses=context.monthly_expenses,
        emergency_fund_target=context.emergency_fund_target,
        allocation=allocation_summary(context.age),
        language_directive=language_directive(context.language),
        memory_context=memory_context,
    )


INSIGHT_SYSTEM_PROMPT = "You are a financial advisor. Give concise, actionable advice."


def build_insight_prompt(context: UserFinancialContext) -> str:
    return (
        f"Based on: {context.savings_rate:.1f}% savings rate, ${context.total_savings:,.0f} saved, "
        f"{context.active_goals} active goals. Provide one specific, actionable financial tip "
        "in 25 words or less."
    )
