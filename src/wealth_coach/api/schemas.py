"""Request and response bodies for the HTTP API."""

from typing import Literal

from pydantic import BaseModel, Field

from ..models import ChatMessage, UserFinancialContext


class AdviceRequest(BaseModel):
    """Chat turn sent by the app."""

    message: str = Field(min_length=1)
    context: UserFinancialContext = Field(default_factory=UserFinancialContext)
    history: list[ChatMessage] = Field(default_factory=list)
    user_id: str | None = Field(
        default=None, description="Enables remembered context and memory extraction for this user"
    )


class InsightRequest(BaseModel):
    context: UserFinancialContext


class InsightResponse(BaseModel):
    insight: str


class CategorizeRequest(BaseModel):
    description: str
    amount: float = 0
    type: Literal["income", "expense", "transfer"] = "expense"


class CategorizeResponse(BaseModel):
    category: str


class CategorySuggestion(BaseModel):
    category: str
    confidence: Literal["high", "medium"]
    matched_keyword: str


class CategorySuggestionsResponse(BaseModel):
    suggestions: list[CategorySuggestion]


class AdviceOutcomeRequest(BaseModel):
    topic: str
    outcome: Literal["followed", "ignored", "modified", "pending"]
