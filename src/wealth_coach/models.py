"""Core data models for the financial advisory engine."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from .memory.models import ConversationMemory

TransactionType = Literal["income", "expense", "transfer"]
GoalStatus = Literal["active", "completed", "paused"]


# --- Stored records (owned by the storage collaborator) ---


class Transaction(BaseModel):
    """A single income, expense or transfer record."""

    id: str
    user_id: str
    amount: float = Field(ge=0)
    type: TransactionType
    category: str
    description: str | None = None
    date: datetime
    goal_id: str | None = Field(default=None, description="Goal this transaction contributes to")


class FinancialGoal(BaseModel):
    """A savings goal with a target amount and date."""

    id: str
    user_id: str
    title: str
    description: str | None = None
    target_amount: float
    current_amount: float = 0
    target_date: datetime
    created_at: datetime = Field(default_factory=datetime.now)
    status: GoalStatus = "active"
    last_checked_percent: float | None = Field(
        default=None, description="Percent complete observed on the previous progress check"
    )


class UserPreferences(BaseModel):
    """User-entered estimates plus the persisted conversation memory."""

    user_id: str
    monthly_income_estimate: float | None = None
    monthly_expenses_estimate: float | None = None
    current_savings_estimate: float | None = None
    age: int | None = None
    conversation_memory: ConversationMemory | None = None


class UserStats(BaseModel):
    """Aggregates the storage layer computes for a user."""

    total_savings: float = 0
    active_goals: int = 0
    monthly_income: float = 0


# --- Advisory input ---


class RecentTransaction(BaseModel):
    amount: float = 0
    category: str = ""
    description: str = ""
    date: datetime


class UpcomingEvent(BaseModel):
    title: str
    date: datetime
    estimated_value: float = 0


class UserFinancialContext(BaseModel):
    """Snapshot of a user's finances supplied fresh with every advisory call."""

    total_savings: float = 0
    monthly_income: float = 0
    monthly_expenses: float = 0
    active_goals: int = 0
    recent_transactions: list[RecentTransaction] = Field(default_factory=list)
    upcoming_events: list[UpcomingEvent] = Field(default_factory=list)
    language: str = "en"
    age: int | None = Field(default=None, description="Used by the age-based allocation heuristic")

    @property
    def savings_rate(self) -> float:
        """Percent of income left after expenses; 0 when there is no income."""
        if self.monthly_income <= 0:
            return 0.0
        return (self.monthly_income - self.monthly_expenses) / self.monthly_income * 100

    @property
    def emergency_fund_target(self) -> float:
        """Six months of expenses."""
        return self.monthly_expenses * 6


class ChatMessage(BaseModel):
    """One turn of the conversation."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)
    proposed_actions: list[str] = Field(
        default_factory=list,
        description="State-mutating tools the assistant proposed and is waiting to have confirmed",
    )


# --- Advisory output ---


class ToolCall(BaseModel):
    """A validated tool invocation requested by the advisory agent."""

    name: str
    arguments: dict[str, Any]


class AdviceResult(BaseModel):
    """Assistant reply plus the actions it requested."""

    response: str
    tool_calls: list[ToolCall] = Field(default_factory=list)
    pending_actions: list[ToolCall] = Field(
        default_factory=list, description="Mutating calls held until the user confirms"
    )
    cached: bool = False


# --- Financial health ---


class FactorScore(BaseModel):
    score: float
    value: float
    label: str
    recommendation: str


class HealthBreakdown(BaseModel):
    savings_rate: FactorScore
    emergency_fund: FactorScore
    debt_ratio: FactorScore
    net_worth_growth: FactorScore
    budget_adherence: FactorScore


HealthGrade = Literal[
    "Excellent", "Good", "Fair", "Needs Improvement", "Critical", "Getting Started"
]


class HealthScore(BaseModel):
    """Composite 0-100 financial health score with per-factor detail."""

    overall: int = Field(ge=0, le=100)
    breakdown: HealthBreakdown
    grade: HealthGrade
    summary: str
    top_priority: str


# --- Goals ---

MilestoneLevel = Literal["25%", "50%", "75%", "complete"]


class GoalProgress(BaseModel):
    goal_id: str
    goal_title: str
    target_amount: float
    current_amount: float
    percent_complete: float
    milestone: MilestoneLevel | None = None
    days_remaining: int
    target_date: datetime
    is_on_track: bool
    required_monthly_contribution: float
    celebration: str | None = None
    motivational_message: str
    next_milestone: str


class MilestoneEvent(BaseModel):
    type: Literal["milestone_reached", "goal_completed", "goal_at_risk", "ahead_of_schedule"]
    goal_id: str
    goal_title: str
    message: str
    action_required: str | None = None


class GoalCheckResult(BaseModel):
    progress: list[GoalProgress] = Field(default_factory=list)
    events: list[MilestoneEvent] = Field(default_factory=list)


class MilestoneStatus(BaseModel):
    level: str
    target_amount: float
    reached: bool
    percent_complete: float


class GoalMilestones(BaseModel):
    goal_title: str
    milestones: list[MilestoneStatus]


# --- Insights ---

InsightType = Literal[
    "spending_anomaly", "savings_opportunity", "goal_deadline", "budget_warning", "achievement"
]
InsightPriority = Literal["high", "medium", "low"]


class ProactiveInsight(BaseModel):
    id: str
    type: InsightType
    priority: InsightPriority
    title: str
    message: str
    actionable: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)


class CategoryTotal(BaseModel):
    category: str
    amount: float


class GoalWeeklyUpdate(BaseModel):
    goal_id: str
    goal_title: str
    percent_complete: float
    contributed_this_week: float
    percent_change: float


class WeeklySummary(BaseModel):
    period_start: datetime
    period_end: datetime
    income: float
    expenses: float
    cash_flow: float
    previous_income: float
    previous_expenses: float
    previous_cash_flow: float
    income_change_percent: float
    expense_change_percent: float
    trend: Literal["improving", "stable", "declining"]
    top_categories: list[CategoryTotal] = Field(default_factory=list)
    goal_updates: list[GoalWeeklyUpdate] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)
