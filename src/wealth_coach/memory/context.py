"""Render remembered user facts as a system-prompt paragraph."""

import logging

from .models import ConversationMemory

logger = logging.getLogger(__name__)

MEMORY_HEADER = "\n\nREMEMBERED USER CONTEXT (from previous conversations):\n"
RECENT_ADVICE_SHOWN = 3


def render_memory(memory: ConversationMemory) -> str:
    parts: list[str] = []

    if memory.financial_priorities:
        parts.append(f"Financial priorities: {', '.join(memory.financial_priorities)}")
    if memory.investment_preferences:
        parts.append(f"Investment preferences: {', '.join(memory.investment_preferences)}")
    if memory.life_events:
        events = ", ".join(
            f"{e.event} ({e.timeframe})" if e.timeframe else e.event for e in memory.life_events
        )
        parts.append(f"Life events: {events}")
    if memory.spending_habits:
        parts.append(f"Spending habits: {', '.join(memory.spending_habits)}")
    if memory.risk_tolerance:
        parts.append(f"Risk tolerance: {memory.risk_tolerance}")
    if memory.financial_literacy_level:
        parts.append(f"Financial expertise level: {memory.financial_literacy_level}")
    if memory.preferred_detail_level:
        parts.append(f"Preferred answer length: {memory.preferred_detail_level}")

    emotional = memory.emotional_state
    if emotional.recent_stress_indicators:
        parts.append(
            f"Recent stress indicators: {', '.join(emotional.recent_stress_indicators)}"
            " - BE SUPPORTIVE AND EMPATHETIC"
        )
    if emotional.recent_wins:
        parts.append(
            f"Recent wins to celebrate: {', '.join(emotional.recent_wins)} - ACKNOWLEDGE AND ENCOURAGE"
        )

    if memory.advice_history:
        recent = ", ".join(
            f"{a.topic} ({a.date:%Y-%m-%d}, {a.outcome})"
            for a in memory.advice_history[-RECENT_ADVICE_SHOWN:]
        )
        parts.append(
            f"Recent advice given: {recent} - FOLLOW UP on pending items and maintain consistency"
        )

    if not parts:
        return ""
    return MEMORY_HEADER + "\n".join(parts)


def get_memory_context(storage, user_id: str) -> str:
    """Prompt paragraph for the user's stored memory, or "" when there is none."""
    try:
        prefs = storage.get_user_preferences(user_id)
        memory = prefs.conversation_memory if prefs else None
        if memory is None or memory.is_empty():
            return ""
        return render_memory(memory)
    except Exception as e:
        logger.error("Failed to load conversation memory for user %s: %s", user_id, e)
        return ""
