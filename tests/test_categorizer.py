"""Tests for keyword transaction categorization."""

import pytest

from wealth_coach.categorizer import (
    available_categories,
    categorize_transaction,
    is_valid_category,
    suggest_categories,
)


class TestCategorizeTransaction:
    """Tests for single-category lookups."""

    @pytest.mark.parametrize(
        "description,expected",
        [
            ("Starbucks coffee", "Dining"),
            ("Uber Eats order", "Dining"),
            ("Uber ride home", "Transportation"),
            ("Whole Foods", "Groceries"),
            ("Netflix", "Entertainment"),
            ("Monthly rent", "Rent"),
            ("Vet visit", "Pets"),
        ],
    )
    def test_expense_keywords(self, description, expected):
        """Test common expense descriptions."""
        assert categorize_transaction(description, 25, "expense") == expected

    def test_income_keywords(self):
        """Test income only searches income categories."""
        assert categorize_transaction("ACME payroll", 5000, "income") == "Salary"
        assert categorize_transaction("Monthly salary deposit", 4000, "income") == "Salary"
        assert categorize_transaction("Upwork client", 800, "income") == "Freelance"
        assert categorize_transaction("Amazon refund", 30, "income") == "Refund"

    def test_income_fallback(self):
        assert categorize_transaction("gift from grandma", 100, "income") == "Other Income"

    def test_expense_fallback(self):
        assert categorize_transaction("zzz unknown", 10, "expense") == "Other"

    def test_empty_description(self):
        """Test blank descriptions fall back to Other."""
        assert categorize_transaction("   ", 10, "income") == "Other"

    def test_expense_never_returns_income_category(self):
        """Test income keywords are ignored for expenses."""
        assert categorize_transaction("salary advance fee", 20, "expense") == "Fees"

    def test_transfer(self):
        assert categorize_transaction("Starbucks", 5, "transfer") == "Other"

    def test_amount_does_not_matter(self):
        assert categorize_transaction("coffee", 1, "expense") == categorize_transaction(
            "coffee", 10_000, "expense"
        )


class TestSuggestCategories:
    """Tests for ranked category suggestions."""

    def test_high_confidence_first(self):
        """Test word-boundary matches rank before substring matches."""
        suggestions = suggest_categories("petrol station", "expense")
        strengths = [s.strength for s in suggestions]
        assert strengths == sorted(strengths, key=lambda s: 0 if s == "high" else 1)
        assert suggestions[0].label == "Transportation"
        assert suggestions[0].strength == "high"

    def test_substring_match_is_medium(self):
        suggestions = suggest_categories("petrolstation", "expense")
        assert ("Transportation", "medium") in [(s.label, s.strength) for s in suggestions]

    def test_empty(self):
        assert suggest_categories("", "expense") == []


class TestAvailableCategories:
    """Tests for category listings."""

    def test_income_categories(self):
        assert available_categories("income") == [
            "Salary", "Freelance", "Investment", "Refund", "Other Income",
        ]

    def test_expense_categories_exclude_income(self):
        categories = available_categories("expense")
        assert "Salary" not in categories
        assert categories[0] == "Dining"
        assert categories[-1] == "Other"

    def test_is_valid_category(self):
        assert is_valid_category("Dining", "expense")
        assert not is_valid_category("Dining", "income")
