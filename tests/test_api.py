"""Tests for API endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from conftest import USER_ID, make_goal, make_transaction
from main import app
from wealth_coach.agent import AdvisoryOrchestrator
from wealth_coach.api import get_storage
from wealth_coach.api.routes import get_orchestrator
from wealth_coach.cache import FifoCacheBackend, ResponseCache
from wealth_coach.config import settings


def orchestrator_with(llm, storage):
    return AdvisoryOrchestrator(llm=llm, cache=ResponseCache(FifoCacheBackend(10)), storage=storage)


@pytest.fixture
def llm():
    """Chat model double; tests adjust its reply."""
    model = MagicMock()
    reply = AIMessage(content="Build a 6 month emergency fund first.")
    model.bind_tools.return_value.ainvoke = AsyncMock(return_value=reply)
    model.ainvoke = AsyncMock(return_value=AIMessage(content="Automate your savings."))
    return model


@pytest.fixture
def client(storage, llm):
    """Create a test client wired to fresh storage and a fake chat model."""
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator_with(llm, storage)
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_check(self, client):
        """Test health endpoint returns healthy status."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "wealth-coach"}


class TestRootEndpoint:
    """Tests for root endpoint."""

    def test_root_returns_service_info(self, client):
        """Test root endpoint returns service information."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "Wealth Coach"
        assert "version" in data


class TestAdviceEndpoint:
    """Tests for the advisory chat endpoint."""

    def test_advice(self, client):
        response = client.post(
            "/v1/advice",
            json={"message": "How do I start saving?", "context": {"monthly_income": 4000}},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["response"] == "Build a 6 month emergency fund first."
        assert data["tool_calls"] == []
        assert data["cached"] is False

    def test_pending_action_returned(self, client, llm):
        llm.bind_tools.return_value.ainvoke.return_value = AIMessage(
            content="Want me to add this goal?",
            tool_calls=[
                {
                    "name": "create_financial_goal",
                    "args": {"name": "Car", "target_amount": "5,000", "target_date": "2027-05-01"},
                    "id": "call_1",
                }
            ],
        )
        response = client.post("/v1/advice", json={"message": "I want to buy a car"})

        data = response.json()
        assert data["tool_calls"] == []
        assert data["pending_actions"][0]["arguments"]["target_amount"] == 5000

    def test_memory_updated_in_background(self, client):
        response = client.post(
            "/v1/advice", json={"message": "I'm saving for a house", "user_id": USER_ID}
        )
        assert response.status_code == 200

        memory = client.get(f"/v1/users/{USER_ID}/memory").json()
        assert memory["financial_priorities"] == ["saving for house"]
        assert memory["advice_history"][0]["topic"] == "emergency fund"

    def test_empty_message_rejected(self, client):
        response = client.post("/v1/advice", json={"message": ""})
        assert response.status_code == 422

    def test_unconfigured_returns_503(self, client, storage, monkeypatch):
        monkeypatch.setattr(settings, "google_api_key", None)
        app.dependency_overrides[get_orchestrator] = lambda: AdvisoryOrchestrator(
            cache=ResponseCache(FifoCacheBackend(10)), storage=storage
        )
        response = client.post("/v1/advice", json={"message": "Hi"})
        assert response.status_code == 503

    def test_provider_failure_returns_502(self, client, llm):
        llm.bind_tools.return_value.ainvoke.side_effect = RuntimeError("quota exceeded")
        response = client.post("/v1/advice", json={"message": "Hi"})
        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to generate AI response"


class TestInsightEndpoints:
    """Tests for dashboard insight and cost endpoints."""

    def test_insight(self, client):
        context = {"total_savings": 20000, "monthly_income": 5000, "monthly_expenses": 4500, "active_goals": 1}
        response = client.post("/v1/insight", json={"context": context})
        assert response.status_code == 200
        assert response.json()["insight"] == "Automate your savings."

    def test_cost_stats(self, client):
        response = client.get("/v1/cost-stats")
        assert response.status_code == 200
        assert "cache_stats" in response.json()

    def test_proactive_insights(self, client, storage):
        storage.add_transaction(make_transaction(600, category="Dining", days_ago=5))
        response = client.get(f"/v1/users/{USER_ID}/insights")
        assert response.status_code == 200
        assert [i["title"] for i in response.json()] == ["Dining Out Opportunity"]

    def test_weekly_summary(self, client, storage):
        storage.add_transaction(make_transaction(800, type="income", category="Salary", days_ago=1))
        response = client.get(f"/v1/users/{USER_ID}/weekly-summary")
        assert response.status_code == 200
        assert response.json()["cash_flow"] == 800


class TestHealthScoreEndpoint:
    """Tests for the financial health endpoint."""

    def test_new_user(self, client):
        response = client.get(f"/v1/users/{USER_ID}/health")
        assert response.status_code == 200
        assert response.json()["grade"] == "Getting Started"


class TestGoalEndpoints:
    """Tests for goal progress and milestones."""

    def test_progress(self, client, storage):
        storage.add_goal(make_goal(target=1000, current=500))
        response = client.get(f"/v1/users/{USER_ID}/goals/progress")
        assert response.status_code == 200
        assert len(response.json()["events"]) == 2

    def test_milestones(self, client, storage):
        storage.add_goal(make_goal(target=1000, current=500))
        response = client.get("/v1/goals/goal-1/milestones")
        assert response.status_code == 200
        assert len(response.json()["milestones"]) == 4

    def test_milestones_unknown_goal(self, client):
        response = client.get("/v1/goals/missing/milestones")
        assert response.status_code == 404
        assert response.json()["detail"] == "Goal not found: missing"


class TestMemoryEndpoints:
    """Tests for conversation memory endpoints."""

    def test_empty_memory(self, client):
        response = client.get(f"/v1/users/{USER_ID}/memory")
        assert response.status_code == 200
        assert response.json()["financial_priorities"] == []

    def test_advice_outcome(self, client):
        client.post("/v1/advice", json={"message": "How do I start?", "user_id": USER_ID})

        response = client.post(
            f"/v1/users/{USER_ID}/memory/advice-outcome",
            json={"topic": "emergency fund", "outcome": "followed"},
        )
        assert response.status_code == 204
        memory = client.get(f"/v1/users/{USER_ID}/memory").json()
        assert memory["advice_history"][-1]["outcome"] == "followed"

    def test_advice_outcome_unknown_topic(self, client):
        response = client.post(
            f"/v1/users/{USER_ID}/memory/advice-outcome",
            json={"topic": "investing", "outcome": "ignored"},
        )
        assert response.status_code == 404


class TestCategorizeEndpoints:
    """Tests for transaction categorization endpoints."""

    def test_categorize(self, client):
        response = client.post("/v1/categorize", json={"description": "Starbucks coffee", "amount": 5})
        assert response.json() == {"category": "Dining"}

    def test_categorize_income(self, client):
        response = client.post("/v1/categorize", json={"description": "payroll", "type": "income"})
        assert response.json() == {"category": "Salary"}

    def test_suggestions(self, client):
        response = client.post("/v1/categorize/suggestions", json={"description": "uber ride"})
        suggestions = response.json()["suggestions"]
        assert suggestions[0] == {"category": "Transportation", "confidence": "high", "matched_keyword": "uber"}
