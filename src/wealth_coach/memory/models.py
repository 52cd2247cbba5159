"""Durable per-user conversation memory."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from .ring_buffer import RingBuffer

STRESS_CAPACITY = 5
WINS_CAPACITY = 5
ADVICE_CAPACITY = 10

RiskTolerance = Literal["conservative", "moderate", "aggressive"]
LiteracyLevel = Literal["beginner", "intermediate", "advanced"]
DetailLevel = Literal["brief", "detailed", "comprehensive"]
AdviceOutcome = Literal["followed", "ignored", "modified", "pending"]


class LifeEvent(BaseModel):
    """A life event mentioned by the user, with an optional year."""

    event: str
    timeframe: str | None = None


class AdviceRecord(BaseModel):
    """A piece of advice the assistant gave, kept for follow-up."""

    model_config = ConfigDict(validate_assignment=True)

    topic: str
    summary: str
    date: datetime
    outcome: AdviceOutcome = "pending"


class EmotionalState(BaseModel):
    """Recent stress signals and wins, each capped to the latest few."""

    model_config = ConfigDict(validate_assignment=True)

    recent_stress_indicators: Annotated[list[str], RingBuffer(STRESS_CAPACITY)] = Field(
        default_factory=list
    )
    recent_wins: Annotated[list[str], RingBuffer(WINS_CAPACITY)] = Field(default_factory=list)
    last_assessed: datetime | None = None


class ConversationMemory(BaseModel):
    """Long-term user profile accumulated from chat turns.

    List fields only ever grow (bounded ones drop their oldest entries);
    scalar fields are set once and not overwritten by later turns.
    """

    model_config = ConfigDict(validate_assignment=True)

    financial_priorities: list[str] = Field(default_factory=list)
    investment_preferences: list[str] = Field(default_factory=list)
    life_events: list[LifeEvent] = Field(default_factory=list)
    spending_habits: list[str] = Field(default_factory=list)
    risk_tolerance: RiskTolerance | None = None
    financial_literacy_level: LiteracyLevel | None = None
    emotional_state: EmotionalState = Field(default_factory=EmotionalState)
    advice_history: Annotated[list[AdviceRecord], RingBuffer(ADVICE_CAPACITY)] = Field(
        default_factory=list
    )
    preferred_detail_level: DetailLevel | None = None
    last_updated: datetime | None = None

    def is_empty(self) -> bool:
        """Check whether nothing has been remembered yet."""
        return not (
            self.financial_priorities
            or self.investment_preferences
            or self.life_events
            or self.spending_habits
            or self.risk_tolerance
            or self.financial_literacy_level
            or self.emotional_state.recent_stress_indicators
            or self.emotional_state.recent_wins
            or self.advice_history
            or self.preferred_detail_level
        )
