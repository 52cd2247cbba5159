"""Tool catalog offered to the advisory LLM.

Each tool has a pydantic argument model. The model's JSON schema is what the
LLM sees, and the same model validates whatever the LLM sends back, so a
:class:`~wealth_coach.models.ToolCall` always carries typed arguments.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, Field, ValidationError, field_validator

from ..models import ToolCall
from .calculators import (
    analyze_portfolio_allocation,
    calculate_debt_payoff,
    calculate_retirement_needs,
    project_future_value,
)

logger = logging.getLogger(__name__)

ToolKind = Literal["informational", "logging", "mutating"]


def _parse_money(value: Any) -> Any:
    """Accept "$1,200.50" style strings; anything else is left to pydantic."""
    if isinstance(value, str):
        return value.replace("$", "").replace(",", "").strip()
    return value


Money = Annotated[float, BeforeValidator(_parse_money)]


# --- Argument models ---


class CreateFinancialGoalArgs(BaseModel):
    name: str = Field(description="Short goal name, e.g. 'Emergency Fund' or 'Vacation'")
    target_amount: Money = Field(gt=0, description="Target amount as a number, no currency symbols")
    target_date: dt.date = Field(description="Target date in YYYY-MM-DD format")
    description: str | None = Field(default=None, description="Brief description of the goal")


class CreateCalendarEventArgs(BaseModel):
    title: str = Field(description="The event title")
    date: dt.date = Field(description="Date in YYYY-MM-DD format, relative dates resolved from today")
    description: str | None = Field(default=None, description="Event description")


class AddTransactionArgs(BaseModel):
    type: Literal["income", "expense"] = Field(description="Type of transaction")
    amount: Money = Field(ge=0, description="Transaction amount in dollars")
    category: str = Field(description="Transaction category, e.g. 'groceries' or 'salary'")
    description: str | None = Field(default=None, description="Transaction description")
    date: dt.date | None = Field(default=None, description="YYYY-MM-DD; defaults to today")


class CreateGroupArgs(BaseModel):
    name: str = Field(description="The group name, e.g. 'Family Budget'")
    description: str | None = Field(default=None, description="What this group is for")


class AddCryptoHoldingArgs(BaseModel):
    symbol: str = Field(description="Crypto symbol, e.g. 'BTC' or 'ETH'")
    amount: Money = Field(gt=0, description="Units of the coin owned")
    purchase_price: Money = Field(ge=0, description="Purchase price per unit in USD")

    @field_validator("symbol")
    @classmethod
    def upper_symbol(cls, v: str) -> str:
        return v.strip().upper()


class AnalyzePortfolioAllocationArgs(BaseModel):
    age: int = Field(gt=0, lt=120, description="User's age for age-based allocation")
    risk_tolerance: Literal["conservative", "moderate", "aggressive"]
    investment_amount: Money = Field(ge=0, description="Amount to allocate")


class Debt(BaseModel):
    name: str
    balance: Money = Field(ge=0)
    interest_rate: float = Field(ge=0, description="Annual interest rate as percent, e.g. 18.9")
    min_payment: Money = Field(default=0, ge=0)


class CalculateDebtPayoffArgs(BaseModel):
    debts: list[Debt] = Field(min_length=1, description="Debts with balance and interest rate")
    extra_payment: Money = Field(default=0, ge=0, description="Extra monthly payment available")


class ProjectFutureValueArgs(BaseModel):
    principal: Money = Field(ge=0, description="Initial investment amount in dollars")
    annual_rate: float = Field(description="Expected annual return as decimal, e.g. 0.07")
    years: int = Field(gt=0, description="Number of years to grow")
    monthly_contribution: Money = Field(default=0, ge=0)
    inflation_rate: float = Field(default=0.03, ge=0, description="Expected annual inflation as decimal")


class CalculateRetirementNeedsArgs(BaseModel):
    current_age: int = Field(gt=0)
    retirement_age: int = Field(gt=0)
    current_savings: Money = Field(ge=0)
    monthly_contribution: Money = Field(ge=0)
    desired_monthly_income: Money = Field(gt=0, description="In today's dollars")
    annual_return: float = Field(default=0.07, description="Expected annual return as decimal")


# --- Catalog ---


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    kind: ToolKind
    args_model: type[BaseModel]

    def as_llm_tool(self) -> dict:
        """OpenAI-style function schema, accepted by ``bind_tools``."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.args_model.model_json_schema(),
            },
        }


TOOL_CATALOG: list[ToolDefinition] = [
    ToolDefinition(
        name="create_financial_goal",
        description=(
            "Create a savings goal. Only call this AFTER you explained the plan in a previous "
            "turn, asked 'Want me to add this goal?', and the user confirmed."
        ),
        kind="mutating",
        args_model=CreateFinancialGoalArgs,
    ),
    ToolDefinition(
        name="create_calendar_event",
        description=(
            "Create a reminder or calendar event. Only call this after proposing the event and "
            "receiving the user's explicit confirmation."
        ),
        kind="mutating",
        args_model=CreateCalendarEventArgs,
    ),
    ToolDefinition(
        name="add_transaction",
        description=(
            "Record a transaction when the user states as a fact that they spent or received a "
            "specific amount ('I spent $45 on groceries'). May be called immediately. Always "
            "explain the budget impact alongside the call."
        ),
        kind="logging",
        args_model=AddTransactionArgs,
    ),
    ToolDefinition(
        name="create_group",
        description=(
            "Create a shared budgeting group. Explain the benefits first, ask 'Want me to "
            "create this group?', and only call after the user confirms."
        ),
        kind="mutating",
        args_model=CreateGroupArgs,
    ),
    ToolDefinition(
        name="add_crypto_holding",
        description=(
            "Track a crypto holding ONLY for a completed purchase with specific amounts "
            "('I bought 0.5 BTC at $50000'). Not for questions or plans."
        ),
        kind="logging",
        args_model=AddCryptoHoldingArgs,
    ),
    ToolDefinition(
        name="analyze_portfolio_allocation",
        description=(
            "Calculate an age and risk based portfolio allocation when the user asks about "
            "investment strategy. Explain the breakdown with dollar amounts afterwards."
        ),
        kind="informational",
        args_model=AnalyzePortfolioAllocationArgs,
    ),
    ToolDefinition(
        name="calculate_debt_payoff",
        description=(
            "Compare avalanche and snowball payoff when the user asks about paying off debts. "
            "Explain both methods, the interest difference and a recommendation."
        ),
        kind="informational",
        args_model=CalculateDebtPayoffArgs,
    ),
    ToolDefinition(
        name="project_future_value",
        description=(
            "Project compound growth of savings or investments over time, "
            "in future and today's dollars."
        ),
        kind="informational",
        args_model=ProjectFutureValueArgs,
    ),
    ToolDefinition(
        name="calculate_retirement_needs",
        description="Estimate the retirement nest egg needed and whether current saving is on track.",
        kind="informational",
        args_model=CalculateRetirementNeedsArgs,
    ),
]

TOOLS_BY_NAME: dict[str, ToolDefinition] = {t.name: t for t in TOOL_CATALOG}
MUTATING_TOOLS = frozenset(t.name for t in TOOL_CATALOG if t.kind == "mutating")

_CALCULATORS = {
    "analyze_portfolio_allocation": analyze_portfolio_allocation,
    "calculate_debt_payoff": calculate_debt_payoff,
    "project_future_value": project_future_value,
    "calculate_retirement_needs": calculate_retirement_needs,
}


def llm_tools() -> list[dict]:
    return [t.as_llm_tool() for t in TOOL_CATALOG]


def parse_tool_call(name: str, arguments: dict[str, Any] | None) -> ToolCall | None:
    """Validate one raw invocation; unknown tools and bad arguments give ``None``."""
    definition = TOOLS_BY_NAME.get(name)
    if definition is None:
        logger.warning("Dropping call to unknown tool %r", name)
        return None

    try:
        args = definition.args_model.model_validate(arguments or {})
    except ValidationError as e:
        logger.warning("Dropping invalid %s call: %s", name, e.errors(include_url=False))
        return None

    return ToolCall(name=name, arguments=args.model_dump(mode="json", exclude_none=True))


def parse_tool_calls(raw_calls: list[dict]) -> list[ToolCall]:
    """Turn LangChain ``AIMessage.tool_calls`` into validated :class:`ToolCall` objects."""
    parsed = []
    for raw in raw_calls:
        call = parse_tool_call(raw.get("name", ""), raw.get("args"))
        if call is not None:
            parsed.append(call)
    return parsed


def run_informational_tool(call: ToolCall) -> dict:
    """Execute a side-effect-free calculator tool locally."""
    definition = TOOLS_BY_NAME.get(call.name)
    if definition is None or definition.kind != "informational":
        raise ValueError(f"{call.name} is not an informational tool")
    return _CALCULATORS[call.name].invoke(call.arguments)
