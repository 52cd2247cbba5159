"""Explain-then-confirm guard for state-changing tool calls.

A mutating call is only released when the assistant's previous turn proposed
that exact tool and the new user message affirms it. Everything else the LLM
asks to mutate is held back as a pending action, which the caller records on
the assistant turn (``ChatMessage.proposed_actions``) so the next turn can
confirm it.
"""

import logging
import re

from ..models import ChatMessage, ToolCall
from ..rules import RuleTable
from ..tools import MUTATING_TOOLS

logger = logging.getLogger(__name__)

AFFIRMATIONS = RuleTable.from_mapping(
    {
        "affirm": [
            re.compile(r"^\s*(yes|yeah|yep|yup|sure|ok|okay|confirm(ed)?|please do|do it)\b"),
            re.compile(r"\b(add it|create it|make it|set it up|go ahead|let'?s do it|sounds good)\b"),
        ]
    }
)
# A bare "no" only refuses when it opens the reply ("yes, no problem" affirms)
NEGATIONS = RuleTable.from_mapping(
    {
        "negate": [
            re.compile(r"^\s*no\b"),
            re.compile(r"\b(nope|don'?t|do not|not now|cancel|wait|stop)\b"),
        ]
    }
)


def is_affirmation(message: str) -> bool:
    return AFFIRMATIONS.any(message) and not NEGATIONS.any(message)


def proposed_actions(history: list[ChatMessage]) -> set[str]:
    """Tools the assistant proposed in the turn right before the new message."""
    previous = history[-1] if history else None
    if previous is None or previous.role != "assistant":
        return set()
    return set(previous.proposed_actions)


def awaiting_confirmation(history: list[ChatMessage]) -> bool:
    return bool(proposed_actions(history))


def split_confirmed(
    calls: list[ToolCall], user_message: str, history: list[ChatMessage]
) -> tuple[list[ToolCall], list[ToolCall]]:
    """Partition calls into ``(executable, pending)``."""
    proposed = proposed_actions(history)
    affirmed = is_affirmation(user_message)

    executable, pending = [], []
    for call in calls:
        if call.name not in MUTATING_TOOLS:
            executable.append(call)
        elif affirmed and call.name in proposed:
            executable.append(call)
        else:
            pending.append(call)

    if pending:
        logger.info("Holding %s for user confirmation", ", ".join(c.name for c in pending))
    return executable, pending
