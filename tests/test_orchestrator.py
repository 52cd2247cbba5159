"""Tests for the advisory orchestrator."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage

from wealth_coach.agent import AdvisoryOrchestrator, is_affirmation, needs_action, rule_based_insight
from wealth_coach.agent.orchestrator import FALLBACK_INSIGHT, INSIGHT_UNAVAILABLE, estimate_tokens
from wealth_coach.cache import FifoCacheBackend, ResponseCache
from wealth_coach.config import settings
from wealth_coach.errors import AdvisoryError, ConfigurationError
from wealth_coach.memory import extract_and_update_memory
from wealth_coach.models import ChatMessage, UserFinancialContext

GOAL_CALL = {
    "name": "create_financial_goal",
    "args": {"name": "Vacation", "target_amount": 3000, "target_date": "2027-06-01"},
    "id": "call_1",
}
TRANSACTION_CALL = {
    "name": "add_transaction",
    "args": {"type": "expense", "amount": 45, "category": "groceries"},
    "id": "call_2",
}


def fake_llm(content="Here's my advice.", tool_calls=None):
    """Chat model double whose tool-bound and plain calls return a fixed reply."""
    reply = AIMessage(content=content, tool_calls=tool_calls or [])
    llm = MagicMock()
    llm.bind_tools.return_value.ainvoke = AsyncMock(return_value=reply)
    llm.ainvoke = AsyncMock(return_value=reply)
    return llm


def make_orchestrator(llm, storage=None):
    return AdvisoryOrchestrator(llm=llm, cache=ResponseCache(FifoCacheBackend(100)), storage=storage)


def proposal_history(*actions):
    return [
        ChatMessage(role="user", content="I want to save for a vacation"),
        ChatMessage(
            role="assistant",
            content="Save $250/month for 12 months. Want me to add this goal?",
            proposed_actions=list(actions),
        ),
    ]


class TestGenerateAdvice:
    """Tests for one advisory chat turn."""

    @pytest.mark.asyncio
    async def test_plain_answer(self, context):
        llm = fake_llm("Your savings rate is 10%.")
        result = await make_orchestrator(llm).generate_advice("How am I doing?", context)

        assert result.response == "Your savings rate is 10%."
        assert result.tool_calls == []
        assert not result.cached
        llm.bind_tools.assert_called_once()
        assert llm.bind_tools.call_args.kwargs["tool_choice"] == "auto"

    @pytest.mark.asyncio
    async def test_action_intent_forces_tool_use(self, context):
        llm = fake_llm("Logged.", [TRANSACTION_CALL])
        await make_orchestrator(llm).generate_advice("I spent $45 on groceries", context)
        assert llm.bind_tools.call_args.kwargs["tool_choice"] == "any"

    @pytest.mark.asyncio
    async def test_system_prompt_carries_snapshot(self, context):
        llm = fake_llm()
        await make_orchestrator(llm).generate_advice("How am I doing?", context)

        messages = llm.bind_tools.return_value.ainvoke.call_args.args[0]
        system = messages[0].content
        assert "Savings rate: 10.0%" in system
        assert "$27,000" in system
        assert messages[-1].content == "How am I doing?"

    @pytest.mark.asyncio
    async def test_history_window(self, context):
        """Test only the most recent turns are sent to the model."""
        llm = fake_llm()
        history = [
            ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}") for i in range(10)
        ]
        await make_orchestrator(llm).generate_advice("And now?", context, history)

        messages = llm.bind_tools.return_value.ainvoke.call_args.args[0]
        assert len(messages) == 1 + settings.history_window + 1
        assert messages[1].content == "turn 4"

    @pytest.mark.asyncio
    async def test_list_content_is_joined(self, context):
        llm = fake_llm([{"type": "text", "text": "Hello "}, {"type": "text", "text": "there"}])
        result = await make_orchestrator(llm).generate_advice("Hi", context)
        assert result.response == "Hello there"

    @pytest.mark.asyncio
    async def test_logging_tool_runs_immediately(self, context):
        llm = fake_llm("Logged $45 for groceries.", [TRANSACTION_CALL])
        result = await make_orchestrator(llm).generate_advice("I spent $45 on groceries", context)

        assert [c.name for c in result.tool_calls] == ["add_transaction"]
        assert result.tool_calls[0].arguments["amount"] == 45
        assert result.pending_actions == []

    @pytest.mark.asyncio
    async def test_invalid_tool_calls_dropped(self, context):
        bad = {"name": "delete_account", "args": {}, "id": "call_3"}
        llm = fake_llm("Done.", [bad, TRANSACTION_CALL])
        result = await make_orchestrator(llm).generate_advice("I spent $45 on groceries", context)
        assert [c.name for c in result.tool_calls] == ["add_transaction"]

    @pytest.mark.asyncio
    async def test_unconfigured(self, context, monkeypatch):
        monkeypatch.setattr(settings, "google_api_key", None)
        with pytest.raises(ConfigurationError):
            await AdvisoryOrchestrator(cache=ResponseCache(FifoCacheBackend(10))).generate_advice(
                "Hi", context
            )

    @pytest.mark.asyncio
    async def test_provider_failure(self, context):
        llm = MagicMock()
        llm.bind_tools.return_value.ainvoke = AsyncMock(side_effect=RuntimeError("quota"))
        with pytest.raises(AdvisoryError):
            await make_orchestrator(llm).generate_advice("Hi", context)

    @pytest.mark.asyncio
    async def test_memory_context_included(self, context, storage):
        extract_and_update_memory(storage, "user-1", "I'm saving for a house", "Great goal!")
        llm = fake_llm()
        await make_orchestrator(llm, storage).generate_advice("Any tips?", context, user_id="user-1")

        system = llm.bind_tools.return_value.ainvoke.call_args.args[0][0].content
        assert "REMEMBERED USER CONTEXT" in system
        assert "saving for house" in system


class TestConfirmationGuard:
    """Tests for explain-then-confirm handling of mutating tools."""

    @pytest.mark.asyncio
    async def test_unconfirmed_goal_is_pending(self, context):
        llm = fake_llm("Save $250/month. Want me to add this goal?", [GOAL_CALL])
        result = await make_orchestrator(llm).generate_advice("I want to save for a vacation", context)

        assert result.tool_calls == []
        assert [c.name for c in result.pending_actions] == ["create_financial_goal"]

    @pytest.mark.asyncio
    async def test_confirmed_goal_executes(self, context):
        llm = fake_llm("Added your Vacation goal!", [GOAL_CALL])
        result = await make_orchestrator(llm).generate_advice(
            "Yes, add it", context, proposal_history("create_financial_goal")
        )

        assert [c.name for c in result.tool_calls] == ["create_financial_goal"]
        assert result.pending_actions == []

    @pytest.mark.asyncio
    async def test_confirmation_must_match_proposal(self, context):
        llm = fake_llm("Created.", [GOAL_CALL])
        result = await make_orchestrator(llm).generate_advice(
            "Yes, add it", context, proposal_history("create_group")
        )
        assert [c.name for c in result.pending_actions] == ["create_financial_goal"]

    @pytest.mark.asyncio
    async def test_refusal_keeps_pending(self, context):
        llm = fake_llm("Okay.", [GOAL_CALL])
        result = await make_orchestrator(llm).generate_advice(
            "No, not now", context, proposal_history("create_financial_goal")
        )
        assert result.tool_calls == []

    def test_affirmations(self):
        assert is_affirmation("yes please")
        assert is_affirmation("Sounds good, go ahead")
        assert not is_affirmation("yes but don't add it yet")
        assert not is_affirmation("what would that cost?")

    def test_no_inside_affirmation(self):
        """Test only a leading "no" counts as a refusal."""
        assert is_affirmation("Yes, no problem, add it")
        assert not is_affirmation("No, go ahead later")

    def test_action_intent(self):
        assert needs_action("Remind me to pay rent")
        assert not needs_action("How am I doing?")


class TestAdviceCache:
    """Tests for response caching around the model call."""

    @pytest.mark.asyncio
    async def test_repeat_question_is_cached(self, context):
        llm = fake_llm("Build an emergency fund first.")
        orchestrator = make_orchestrator(llm)

        first = await orchestrator.generate_advice("How should I start?", context)
        second = await orchestrator.generate_advice("how should I start?  ", context)

        assert not first.cached
        assert second.cached
        assert second.response == first.response
        assert llm.bind_tools.return_value.ainvoke.await_count == 1

    @pytest.mark.asyncio
    async def test_tool_replies_not_cached(self, context):
        llm = fake_llm("Logged.", [TRANSACTION_CALL])
        orchestrator = make_orchestrator(llm)

        await orchestrator.generate_advice("I spent $45 on groceries", context)
        await orchestrator.generate_advice("I spent $45 on groceries", context)
        assert llm.bind_tools.return_value.ainvoke.await_count == 2

    @pytest.mark.asyncio
    async def test_cache_skipped_mid_conversation(self, context):
        llm = fake_llm("Sure.")
        orchestrator = make_orchestrator(llm)
        history = proposal_history()

        await orchestrator.generate_advice("What next?", context, history)
        await orchestrator.generate_advice("What next?", context, history)
        assert llm.bind_tools.return_value.ainvoke.await_count == 2

    @pytest.mark.asyncio
    async def test_confirmation_bypasses_cache(self, context):
        """Test a reply to a proposal reaches the model even when the text is cached."""
        llm = fake_llm("Added your Vacation goal!", [GOAL_CALL])
        orchestrator = make_orchestrator(llm)
        orchestrator.cache.set("yes", context, "Sure, what would you like to do?", 8)
        history = [
            ChatMessage(
                role="assistant",
                content="Want me to add this goal?",
                proposed_actions=["create_financial_goal"],
            )
        ]

        result = await orchestrator.generate_advice("yes", context, history)

        assert not result.cached
        assert [c.name for c in result.tool_calls] == ["create_financial_goal"]
        assert llm.bind_tools.return_value.ainvoke.await_count == 1

    @pytest.mark.asyncio
    async def test_confirmation_reply_not_cached(self, context):
        llm = fake_llm("Okay, I won't add it.")
        orchestrator = make_orchestrator(llm)
        history = [
            ChatMessage(role="assistant", content="Add this goal?", proposed_actions=["create_financial_goal"])
        ]

        await orchestrator.generate_advice("ok", context, history)

        assert orchestrator.cache.get("ok", context) is None

    @pytest.mark.asyncio
    async def test_cost_stats(self, context):
        orchestrator = make_orchestrator(fake_llm("A"))
        await orchestrator.generate_advice("Q", context)
        await orchestrator.generate_advice("Q", context)

        stats = orchestrator.get_cost_stats()
        assert stats["cache_stats"]["hits"] == 1
        assert stats["estimated_savings"] == "50.0% cache hit rate"

    def test_estimate_tokens(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcde") == 2


class TestRuleBasedInsight:
    """Tests for the deterministic insight ladder."""

    def test_overspending_first(self):
        ctx = UserFinancialContext(monthly_income=3000, monthly_expenses=3500, total_savings=0)
        assert "$500 more than you earn" in rule_based_insight(ctx)

    def test_no_savings(self):
        ctx = UserFinancialContext(monthly_income=2000, monthly_expenses=1500)
        assert rule_based_insight(ctx).startswith("Start small: set aside $100")

    def test_thin_emergency_fund(self):
        ctx = UserFinancialContext(monthly_income=3000, monthly_expenses=2000, total_savings=1200)
        assert "covers 10% of its $12,000 target" in rule_based_insight(ctx)

    def test_spending_spike(self, recent):
        ctx = recent((230, "Dining", 10), (300, "Shopping", 2))
        assert rule_based_insight(ctx).startswith("Spending jumped to $43/day")

    def test_dominant_category(self, recent):
        ctx = recent((2000, "Shopping", 10))
        assert rule_based_insight(ctx).startswith("Shopping takes 40% of your income")

    def test_income_not_counted_as_spending(self, recent):
        assert rule_based_insight(recent((5000, "Salary", 2))) is None

    def test_strong_saver(self):
        ctx = UserFinancialContext(monthly_income=10000, monthly_expenses=6000, total_savings=50000)
        assert rule_based_insight(ctx).startswith("Excellent 40.0% savings rate")

    def test_good_saver(self):
        ctx = UserFinancialContext(monthly_income=5000, monthly_expenses=3750, total_savings=20000, active_goals=1)
        assert "25.0% savings rate is strong" in rule_based_insight(ctx)

    def test_no_goals(self, context):
        context.active_goals = 0
        assert rule_based_insight(context).startswith("Set 2-3 specific financial goals")

    def test_many_goals(self, context):
        context.active_goals = 4
        assert rule_based_insight(context).startswith("You have 4 active goals")

    def test_nothing_applies(self, context):
        assert rule_based_insight(context) is None


class TestProactiveInsight:
    """Tests for the one-line dashboard insight."""

    @pytest.mark.asyncio
    async def test_rule_short_circuits_model(self):
        llm = fake_llm("tip")
        ctx = UserFinancialContext(monthly_income=2000, monthly_expenses=1500)
        insight = await make_orchestrator(llm).generate_proactive_insight(ctx)

        assert insight.startswith("Start small")
        llm.ainvoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_model_tip_cached(self, context):
        llm = fake_llm("  Automate a transfer on payday.  ")
        orchestrator = make_orchestrator(llm)

        assert await orchestrator.generate_proactive_insight(context) == "Automate a transfer on payday."
        assert await orchestrator.generate_proactive_insight(context) == "Automate a transfer on payday."
        assert llm.ainvoke.await_count == 1

    @pytest.mark.asyncio
    async def test_model_failure_falls_back(self, context):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError("timeout"))
        assert await make_orchestrator(llm).generate_proactive_insight(context) == FALLBACK_INSIGHT

    @pytest.mark.asyncio
    async def test_unconfigured(self, context, monkeypatch):
        monkeypatch.setattr(settings, "google_api_key", None)
        orchestrator = AdvisoryOrchestrator(cache=ResponseCache(FifoCacheBackend(10)))
        assert await orchestrator.generate_proactive_insight(context) == INSIGHT_UNAVAILABLE
