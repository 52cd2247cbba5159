"""FastAPI route handlers."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from ..agent import AdvisoryOrchestrator
from ..categorizer import categorize_transaction, suggest_categories
from ..errors import AdvisoryError, ConfigurationError, GoalNotFoundError
from ..goals import check_goal_progress, get_goal_milestones
from ..health import calculate_financial_health
from ..insights import generate_proactive_insights, generate_weekly_summary
from ..memory import ConversationMemory, extract_and_update_memory, record_advice_outcome
from ..models import (
    AdviceResult,
    GoalCheckResult,
    GoalMilestones,
    HealthScore,
    ProactiveInsight,
    WeeklySummary,
)
from ..storage import InMemoryStorage, Storage
from .schemas import (
    AdviceOutcomeRequest,
    AdviceRequest,
    CategorizeRequest,
    CategorizeResponse,
    CategorySuggestion,
    CategorySuggestionsResponse,
    InsightRequest,
    InsightResponse,
)

router = APIRouter()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Process-wide storage for the demo app; tests override get_storage
_storage = InMemoryStorage()


def get_storage() -> Storage:
    return _storage


def get_orchestrator(storage: Storage = Depends(get_storage)) -> AdvisoryOrchestrator:
    return AdvisoryOrchestrator(storage=storage)


# --- Advice ---


@router.post("/v1/advice", response_model=AdviceResult)
async def advice(
    request: AdviceRequest,
    background_tasks: BackgroundTasks,
    orchestrator: AdvisoryOrchestrator = Depends(get_orchestrator),
    storage: Storage = Depends(get_storage),
):
    """Answer one chat turn.

    Mutating tool calls the user has not confirmed yet come back in
    ``pending_actions``; the app stores their names on the assistant turn as
    ``proposed_actions`` and sends them back with the history.
    """
    logger.info("Advice request (history=%d, user=%s)", len(request.history), request.user_id)
    try:
        result = await orchestrator.generate_advice(
            request.message, request.context, request.history, user_id=request.user_id
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AdvisoryError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if request.user_id:
        background_tasks.add_task(
            extract_and_update_memory, storage, request.user_id, request.message, result.response
        )
    return result


@router.post("/v1/insight", response_model=InsightResponse)
async def insight(
    request: InsightRequest,
    orchestrator: AdvisoryOrchestrator = Depends(get_orchestrator),
):
    """One-sentence insight for the dashboard."""
    return InsightResponse(insight=await orchestrator.generate_proactive_insight(request.context))


@router.get("/v1/cost-stats")
async def cost_stats(orchestrator: AdvisoryOrchestrator = Depends(get_orchestrator)):
    return orchestrator.get_cost_stats()


# --- Health, goals, insights ---


@router.get("/v1/users/{user_id}/health", response_model=HealthScore)
async def financial_health(user_id: str, storage: Storage = Depends(get_storage)):
    return calculate_financial_health(storage, user_id)


@router.get("/v1/users/{user_id}/goals/progress", response_model=GoalCheckResult)
async def goal_progress(user_id: str, storage: Storage = Depends(get_storage)):
    return check_goal_progress(storage, user_id)


@router.get("/v1/goals/{goal_id}/milestones", response_model=GoalMilestones)
async def goal_milestones(goal_id: str, storage: Storage = Depends(get_storage)):
    try:
        return get_goal_milestones(storage, goal_id)
    except GoalNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/v1/users/{user_id}/insights", response_model=list[ProactiveInsight])
async def proactive_insights(user_id: str, storage: Storage = Depends(get_storage)):
    return generate_proactive_insights(storage, user_id)


@router.get("/v1/users/{user_id}/weekly-summary", response_model=WeeklySummary)
async def weekly_summary(user_id: str, storage: Storage = Depends(get_storage)):
    return generate_weekly_summary(storage, user_id)


# --- Conversation memory ---


@router.get("/v1/users/{user_id}/memory", response_model=ConversationMemory)
async def conversation_memory(user_id: str, storage: Storage = Depends(get_storage)):
    prefs = storage.get_user_preferences(user_id)
    return (prefs.conversation_memory if prefs else None) or ConversationMemory()


@router.post("/v1/users/{user_id}/memory/advice-outcome", status_code=204)
async def advice_outcome(
    user_id: str, request: AdviceOutcomeRequest, storage: Storage = Depends(get_storage)
):
    """Record whether the user followed the latest advice on a topic."""
    if not record_advice_outcome(storage, user_id, request.topic, request.outcome):
        raise HTTPException(status_code=404, detail=f"No advice on record for topic: {request.topic}")


# --- Categorization ---


@router.post("/v1/categorize", response_model=CategorizeResponse)
async def categorize(request: CategorizeRequest):
    return CategorizeResponse(
        category=categorize_transaction(request.description, request.amount, request.type)
    )


@router.post("/v1/categorize/suggestions", response_model=CategorySuggestionsResponse)
async def category_suggestions(request: CategorizeRequest):
    matches = suggest_categories(request.description, request.type)
    return CategorySuggestionsResponse(
        suggestions=[
            CategorySuggestion(category=m.label, confidence=m.strength, matched_keyword=m.keyword)
            for m in matches
        ]
    )
