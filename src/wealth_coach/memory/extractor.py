"""Incremental extraction of long-term user facts from chat turns."""

import logging
import re
from datetime import datetime, timedelta

from ..rules import RuleTable
from .models import AdviceOutcome, AdviceRecord, ConversationMemory, LifeEvent
from .ring_buffer import push

logger = logging.getLogger(__name__)

ADVICE_COOLDOWN = timedelta(days=7)
ADVICE_SUMMARY_CHARS = 200

# (regex, label template); the template's {0} is the captured phrase
PRIORITY_CAPTURES = [
    (re.compile(r"saving for (?:a |an )?(\w+(?:\s+\w+)?)"), "saving for {0}"),
    (re.compile(r"want to buy (?:a |an )?(\w+(?:\s+\w+)?)"), "buying {0}"),
    (re.compile(r"\bplan(?:ning (?:to |for )?| to )(\w+(?:\s+\w+)?)"), "planning {0}"),
]
RETIREMENT = RuleTable.from_mapping({"retirement planning": ["retire"]})

INVESTMENT_PREFERENCES = RuleTable.from_mapping(
    {
        "prefers conservative investments": [re.compile(r"conservative.*invest|invest.*conservative", re.S)],
        "prefers aggressive investments": [re.compile(r"aggressive.*invest|invest.*aggressive", re.S)],
        "interested in tech stocks": ["tech stock", "technology stock"],
        "interested in index funds/ETFs": ["index fund", re.compile(r"\betfs?\b")],
        "interested in cryptocurrency": ["crypto", "bitcoin", "ethereum"],
    }
)

LIFE_EVENTS = RuleTable.from_mapping(
    {
        "getting married": ["getting married", "wedding"],
        "expecting baby": ["baby", "expecting", "pregnant"],
        "buying house": ["buying house", "buying a house", "house purchase"],
        "graduating": ["graduating", "graduation"],
        "career change": ["new job", "changing job", "career change"],
    }
)
YEAR = re.compile(r"\b(202[4-9]|20[3-9]\d)\b")

SPENDING_HABITS = RuleTable.from_mapping(
    {
        "eats out frequently": ["eat out", "dining out", "restaurant"],
        "shops online frequently": ["online shopping", "amazon"],
        "impulse buyer": ["impulse buy", "impulse purchase"],
        "careful budgeter": ["budgets carefully", "track every expense"],
    }
)

RISK_TOLERANCE = RuleTable.from_mapping(
    {
        "conservative": ["risk-averse", "low risk", "safe investments"],
        "moderate": ["moderate risk", "balanced"],
        "aggressive": ["high risk", "aggressive"],
    }
)

ADVANCED_TERMS = RuleTable.from_mapping(
    {
        "etf": [re.compile(r"\betfs?\b")],
        **{
            term: [term]
            for term in [
                "rebalancing", "asset allocation", "tax-loss harvesting", "dividend yield",
                "p/e ratio", "market cap", "arbitrage", "derivatives", "options trading",
                "short selling",
            ]
        },
    }
)
INTERMEDIATE_TERMS = RuleTable.from_mapping(
    {
        term: [term]
        for term in [
            "401k", "roth ira", "index fund", "compound interest", "expense ratio",
            "diversification", "bonds", "mutual fund",
        ]
    }
)
BEGINNER_PHRASES = RuleTable.from_mapping(
    {"beginner": ["what is", "explain", "i don't understand", "confused about"]}
)

STRESS_PATTERNS = RuleTable.from_pairs(
    [
        (re.compile(r"can't (afford|pay|save)"), "affordability concern"),
        (re.compile(r"worried|anxious|stressed|scared"), "financial anxiety"),
        (re.compile(r"debt.*overwhelming|drowning in debt"), "debt stress"),
        (re.compile(r"emergency|unexpected expense|crisis"), "financial emergency"),
        (re.compile(r"lost.*job|laid off|unemployed"), "income loss"),
        (re.compile(r"behind on (payments|bills)"), "payment struggles"),
    ]
)

WIN_PATTERNS = RuleTable.from_pairs(
    [
        (re.compile(r"paid off|debt.free"), "paid off debt"),
        (re.compile(r"saved (up|enough)|reached.*goal"), "reached savings goal"),
        (re.compile(r"got.*raise|promotion|new job.*higher"), "income increase"),
        (re.compile(r"emergency fund.*complete|fully funded"), "emergency fund complete"),
        (re.compile(r"first.*investment|started investing"), "started investing"),
        (re.compile(r"under budget|saved more than"), "budget success"),
    ]
)

ADVICE_TOPICS = RuleTable.from_pairs(
    [
        (re.compile(r"recommend.*saving|should save"), "savings"),
        (re.compile(r"recommend.*invest|should invest"), "investing"),
        (re.compile(r"recommend.*pay.*debt|debt.*strategy"), "debt payoff"),
        (re.compile(r"recommend.*budget|budget.*strategy"), "budgeting"),
        (re.compile(r"emergency fund|rainy day"), "emergency fund"),
        (re.compile(r"retirement|401k|\bira\b"), "retirement"),
        (re.compile(r"tax.*strategy|tax.*saving"), "tax optimization"),
    ]
)

DETAIL_LEVEL = RuleTable.from_mapping(
    {
        "comprehensive": ["comprehensive", "in depth", "in-depth", "deep dive", "everything about"],
        "detailed": ["more detail", "in detail", "detailed", "step by step", "step-by-step"],
        "brief": ["keep it short", "be brief", "short answer", "tl;dr", "in a nutshell"],
    }
)


def _literacy_level(message: str) -> str | None:
    advanced = ADVANCED_TERMS.count(message)
    intermediate = INTERMEDIATE_TERMS.count(message)
    if advanced >= 2:
        return "advanced"
    if intermediate >= 2 or advanced >= 1:
        return "intermediate"
    if BEGINNER_PHRASES.any(message):
        return "beginner"
    return None


def extract_memory_updates(
    memory: ConversationMemory,
    user_message: str,
    ai_response: str,
    now: datetime | None = None,
) -> ConversationMemory | None:
    """Apply every detector to one chat turn.

    Returns an updated copy of ``memory``, or ``None`` when the turn added
    nothing new.
    """
    now = now or datetime.now()
    message = user_message.lower()
    response = ai_response.lower()
    combined = f"{message} {response}"

    memory = memory.model_copy(deep=True)
    updated = False

    def add_unique(field: str, value) -> None:
        nonlocal updated
        current = getattr(memory, field)
        if value not in current:
            setattr(memory, field, push(current, value))
            updated = True

    # Priorities
    for pattern, template in PRIORITY_CAPTURES:
        match = pattern.search(message)
        if match:
            add_unique("financial_priorities", template.format(match.group(1)))
    for label in RETIREMENT.matches(message):
        add_unique("financial_priorities", label)

    # Investment preferences and spending habits read both sides of the turn
    for label in INVESTMENT_PREFERENCES.matches(combined):
        add_unique("investment_preferences", label)
    for label in SPENDING_HABITS.matches(combined):
        add_unique("spending_habits", label)

    # Life events
    year = YEAR.search(message)
    known_events = {e.event for e in memory.life_events}
    for label in LIFE_EVENTS.matches(message):
        if label not in known_events:
            memory.life_events = push(
                memory.life_events, LifeEvent(event=label, timeframe=year.group(1) if year else None)
            )
            updated = True

    # Set-once fields
    if memory.risk_tolerance is None:
        risk = RISK_TOLERANCE.first_match(combined)
        if risk:
            memory.risk_tolerance = risk
            updated = True

    if memory.financial_literacy_level is None:
        level = _literacy_level(message)
        if level:
            memory.financial_literacy_level = level
            updated = True

    detail = DETAIL_LEVEL.first_match(message)
    if detail and detail != memory.preferred_detail_level:
        memory.preferred_detail_level = detail
        updated = True

    # Emotional state
    emotional = memory.emotional_state
    emotional_changed = False
    for label in STRESS_PATTERNS.matches(message):
        if label not in emotional.recent_stress_indicators:
            emotional.recent_stress_indicators = push(emotional.recent_stress_indicators, label)
            emotional_changed = True
    for label in WIN_PATTERNS.matches(combined):
        if label not in emotional.recent_wins:
            emotional.recent_wins = push(emotional.recent_wins, label)
            emotional_changed = True
    if emotional_changed:
        emotional.last_assessed = now
        updated = True

    # Advice given in the response, one entry per topic per cooldown window
    for topic in ADVICE_TOPICS.matches(response):
        recent = any(
            a.topic == topic and a.date > now - ADVICE_COOLDOWN for a in memory.advice_history
        )
        if not recent:
            memory.advice_history = push(
                memory.advice_history,
                AdviceRecord(topic=topic, summary=ai_response[:ADVICE_SUMMARY_CHARS], date=now),
            )
            updated = True

    if not updated:
        return None

    memory.last_updated = now
    return memory


def extract_and_update_memory(storage, user_id: str, user_message: str, ai_response: str) -> None:
    """Merge facts from one chat turn into the user's stored memory.

    Failures are logged and swallowed; losing a personalization signal must
    never break the chat turn.
    """
    try:
        prefs = storage.get_user_preferences(user_id)
        existing = (prefs.conversation_memory if prefs else None) or ConversationMemory()

        memory = extract_memory_updates(existing, user_message, ai_response)
        if memory is None:
            return

        storage.update_user_preferences(user_id, {"conversation_memory": memory})
        logger.info("Conversation memory updated for user %s", user_id)
    except Exception as e:
        logger.error("Conversation memory update failed for user %s: %s", user_id, e)


def record_advice_outcome(storage, user_id: str, topic: str, outcome: AdviceOutcome) -> bool:
    """Mark the most recent advice on ``topic`` with what the user did about it.

    Returns False when there is no such advice on record.
    """
    prefs = storage.get_user_preferences(user_id)
    memory = prefs.conversation_memory if prefs else None
    if memory is None:
        return False

    memory = memory.model_copy(deep=True)
    for record in reversed(memory.advice_history):
        if record.topic == topic:
            record.outcome = outcome
            storage.update_user_preferences(user_id, {"conversation_memory": memory})
            return True
    return False
