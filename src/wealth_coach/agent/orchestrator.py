"""AI advisory orchestrator.

Builds the prompt from the user's financial snapshot and remembered context,
calls the chat model with the tool catalog bound, and turns the reply into an
:class:`~wealth_coach.models.AdviceResult`.
"""

import logging
import math
from collections import defaultdict
from datetime import datetime, timedelta

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from ..cache import ResponseCache, response_cache
from ..categorizer import DEFAULT_INCOME_CATEGORY, INCOME_CATEGORIES
from ..config import settings
from ..errors import AdvisoryError, ConfigurationError
from ..memory import get_memory_context
from ..models import AdviceResult, ChatMessage, UserFinancialContext
from ..rules import RuleTable
from ..tools import llm_tools, parse_tool_calls
from .confirmation import awaiting_confirmation, split_confirmed
from .prompts import INSIGHT_SYSTEM_PROMPT, build_insight_prompt, build_system_prompt

logger = logging.getLogger(__name__)

ACTION_INTENT = RuleTable.from_mapping(
    {
        "action": [
            "want to", "save for", "buy", "purchase", "spend", "spent", "paid", "received",
            "earned", "bought", "remind me", "schedule", "create", "add", "track", "group",
            "crypto", "bitcoin", "ethereum",
        ]
    }
)

FALLBACK_INSIGHT = "Focus on tracking your spending patterns this week."
INSIGHT_UNAVAILABLE = "AI insights unavailable - API key not configured"

SPIKE_RATIO = 1.5
SPIKE_MIN_WEEKLY = 100
CATEGORY_SHARE_LIMIT = 30
_NON_SPENDING = {*(c.lower() for c in INCOME_CATEGORIES), DEFAULT_INCOME_CATEGORY.lower()}


def estimate_tokens(text: str) -> int:
    """Rough estimate: one token per four characters."""
    return math.ceil(len(text) / 4)


def needs_action(message: str) -> bool:
    return ACTION_INTENT.any(message)


def message_text(message: BaseMessage) -> str:
    """Plain text of a chat model reply.

    Gemini may return a list of content parts instead of a string.
    """
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for item in content:
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, dict) and item.get("type", "text") == "text":
            parts.append(item.get("text", ""))
    return "".join(parts)


def spending_spike(context: UserFinancialContext, now: datetime | None = None) -> tuple[float, float] | None:
    """Return ``(recent_daily, prior_daily)`` if last week's daily spend spiked.

    Compares the last 7 days with the 23 days before them.
    """
    now = now or datetime.now()
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    recent = prior = 0.0
    for t in context.recent_transactions:
        if t.category.lower() in _NON_SPENDING:
            continue
        if t.date >= week_ago:
            recent += abs(t.amount)
        elif t.date >= month_ago:
            prior += abs(t.amount)

    recent_daily = recent / 7
    prior_daily = prior / 23
    if prior_daily > 0 and recent_daily > SPIKE_RATIO * prior_daily and recent > SPIKE_MIN_WEEKLY:
        return recent_daily, prior_daily
    return None


def dominant_category(context: UserFinancialContext, now: datetime | None = None) -> tuple[str, float] | None:
    """Largest 30-day spending category above 30% of monthly income, with its percent."""
    if context.monthly_income <= 0:
        return None

    now = now or datetime.now()
    cutoff = now - timedelta(days=30)
    totals: dict[str, float] = defaultdict(float)
    for t in context.recent_transactions:
        if t.date >= cutoff and t.category and t.category.lower() not in _NON_SPENDING:
            totals[t.category] += abs(t.amount)

    if not totals:
        return None
    category, amount = max(totals.items(), key=lambda item: item[1])
    percent = amount / context.monthly_income * 100
    if percent > CATEGORY_SHARE_LIMIT:
        return category, percent
    return None


def rule_based_insight(context: UserFinancialContext, now: datetime | None = None) -> str | None:
    """First deterministic insight that applies, in priority order."""
    rate = context.savings_rate
    target = context.emergency_fund_target

    if context.monthly_income > 0 and rate < 0:
        overspend = context.monthly_expenses - context.monthly_income
        return (
            f"You're spending ${overspend:,.0f} more than you earn each month. "
            "Cut back one major expense category this week to stop the shortfall."
        )

    if context.total_savings <= 0:
        starter = max(50, context.monthly_income * 0.05)
        return f"Start small: set aside ${starter:,.0f} this month to open your savings habit."

    if target > 0 and context.total_savings < target * 0.5:
        gap = target - context.total_savings
        return (
            f"Your emergency fund covers {context.total_savings / target * 100:.0f}% of its "
            f"${target:,.0f} target. Saving ${gap / 12:,.0f} a month fills the gap within a year."
        )

    spike = spending_spike(context, now)
    if spike:
        recent_daily, prior_daily = spike
        return (
            f"Spending jumped to ${recent_daily:,.0f}/day this week, up from ${prior_daily:,.0f}/day. "
            "Review this week's purchases before it becomes a habit."
        )

    dominant = dominant_category(context, now)
    if dominant:
        category, percent = dominant
        return (
            f"{category} takes {percent:.0f}% of your income. Trimming it by 10% frees up "
            "money for your goals."
        )

    if rate > 30 and context.total_savings >= target:
        return (
            f"Excellent {rate:.1f}% savings rate and a full emergency fund! "
            "Consider investing the excess for long-term growth."
        )

    if 20 <= rate <= 30:
        return (
            f"Your {rate:.1f}% savings rate is strong. Automate transfers on payday "
            "to push it past 30%."
        )

    if context.active_goals == 0 and context.total_savings > 0:
        return "Set 2-3 specific financial goals this month to stay motivated and track your progress."

    if context.active_goals >= 3:
        return (
            f"You have {context.active_goals} active goals. Focus extra savings on the most "
            "urgent one to finish it faster."
        )

    return None


class AdvisoryOrchestrator:
    """Generates advice and one-line insights with a Gemini chat model.

    ``llm`` and ``insight_llm`` may be any LangChain chat model; when omitted
    they are built from settings on first use.
    """

    def __init__(
        self,
        llm=None,
        insight_llm=None,
        cache: ResponseCache | None = None,
        storage=None,
    ):
        self._llm = llm
        self._insight_llm = insight_llm or llm
        self.cache = cache or response_cache
        self.storage = storage

    @property
    def configured(self) -> bool:
        return self._llm is not None or bool(settings.google_api_key)

    def _chat_model(self, temperature: float, max_tokens: int):
        return ChatGoogleGenerativeAI(
            model=settings.gemini_model,
            google_api_key=settings.google_api_key,
            temperature=temperature,
            max_output_tokens=max_tokens,
        )

    @property
    def llm(self):
        if self._llm is None:
            self._llm = self._chat_model(settings.temperature, settings.max_tokens)
        return self._llm

    @property
    def insight_llm(self):
        if self._insight_llm is None:
            self._insight_llm = self._chat_model(settings.insight_temperature, settings.insight_max_tokens)
        return self._insight_llm

    def _build_messages(
        self, system_prompt: str, user_message: str, history: list[ChatMessage]
    ) -> list[BaseMessage]:
        messages: list[BaseMessage] = [SystemMessage(content=system_prompt)]
        for msg in history[-settings.history_window:]:
            if msg.role == "user":
                messages.append(HumanMessage(content=msg.content))
            else:
                messages.append(AIMessage(content=msg.content))
        messages.append(HumanMessage(content=user_message))
        return messages

    async def generate_advice(
        self,
        user_message: str,
        context: UserFinancialContext,
        history: list[ChatMessage] | None = None,
        user_id: str | None = None,
    ) -> AdviceResult:
        """Answer one user message, possibly with tool calls.

        Raises:
            ConfigurationError: no chat model and no API key.
            AdvisoryError: the chat model call failed.
        """
        if not self.configured:
            raise ConfigurationError("Gemini API key not configured")

        history = history or []
        answers_proposal = awaiting_confirmation(history)

        # Later turns depend on conversation state the cache key does not capture
        if len(history) < 2 and not answers_proposal:
            cached = self.cache.get(user_message, context)
            if cached is not None:
                logger.info("Cache hit - skipped LLM call")
                return AdviceResult(response=cached, cached=True)

        memory_context = ""
        if self.storage is not None and user_id:
            memory_context = get_memory_context(self.storage, user_id)

        system_prompt = build_system_prompt(context, memory_context)
        messages = self._build_messages(system_prompt, user_message, history)
        tool_choice = "any" if needs_action(user_message) else "auto"

        try:
            bound = self.llm.bind_tools(llm_tools(), tool_choice=tool_choice)
            reply = await bound.ainvoke(messages)
        except Exception as e:
            logger.error("AI service error: %s", e)
            raise AdvisoryError("Failed to generate AI response") from e

        text = message_text(reply)
        calls = parse_tool_calls(getattr(reply, "tool_calls", None) or [])
        executable, pending = split_confirmed(calls, user_message, history)

        if not calls:
            token_count = estimate_tokens(system_prompt + user_message + text)
            if not answers_proposal:
                self.cache.set(user_message, context, text, token_count)
            logger.info("LLM call made - ~%d tokens", token_count)
        else:
            logger.info("LLM call with %d tool(s): %s", len(calls), ", ".join(c.name for c in calls))

        return AdviceResult(response=text, tool_calls=executable, pending_actions=pending)

    async def generate_proactive_insight(self, context: UserFinancialContext) -> str:
        """One-sentence insight: deterministic rules first, LLM tip otherwise."""
        insight = rule_based_insight(context)
        if insight:
            return insight

        if not self.configured:
            return INSIGHT_UNAVAILABLE

        cache_message = f"insight_{context.savings_rate:.0f}_{context.active_goals}"
        cached = self.cache.get(cache_message, context)
        if cached is not None:
            logger.info("Insight cache hit")
            return cached

        prompt = build_insight_prompt(context)
        try:
            reply = await self.insight_llm.ainvoke(
                [SystemMessage(content=INSIGHT_SYSTEM_PROMPT), HumanMessage(content=prompt)]
            )
        except Exception as e:
            logger.error("Proactive insight error: %s", e)
            return FALLBACK_INSIGHT

        text = message_text(reply).strip() or "Keep up the great work with your financial management!"
        self.cache.set(cache_message, context, text, estimate_tokens(prompt + text))
        logger.info("Insight LLM call made")
        return text

    def get_cost_stats(self) -> dict:
        stats = self.cache.stats()
        return {
            "cache_stats": stats,
            "estimated_savings": f"{stats['hit_rate'] * 100:.1f}% cache hit rate",
        }
