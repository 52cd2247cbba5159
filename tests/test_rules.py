"""Tests for ordered rule tables."""

import re

from wealth_coach.rules import RuleTable


class TestRuleTable:
    """Tests for first-match and all-match lookups."""

    def setup_method(self):
        self.table = RuleTable.from_mapping(
            {
                "coffee": ["coffee", "latte"],
                "food": ["food", re.compile(r"\bsnacks?\b")],
                "drinks": ["coffee", "tea"],
            }
        )

    def test_first_match_respects_table_order(self):
        """Test the earliest rule wins when several match."""
        assert self.table.first_match("Morning COFFEE") == "coffee"

    def test_matches_returns_all_labels_in_order(self):
        """Test every matching rule is reported in table order."""
        assert self.table.matches("coffee and a snack") == ["coffee", "food", "drinks"]

    def test_regex_patterns(self):
        """Test compiled patterns are searched instead of substring-matched."""
        assert self.table.first_match("snack bar") == "food"
        assert self.table.first_match("snackbar") is None

    def test_no_match(self):
        """Test text without any pattern."""
        assert self.table.first_match("rent") is None
        assert not self.table.any("rent")
        assert self.table.count("rent") == 0

    def test_subset(self):
        """Test including and excluding labels keeps the remaining order."""
        assert self.table.subset(["drinks", "coffee"]).labels == ["coffee", "drinks"]
        assert self.table.subset(["coffee"], exclude=True).labels == ["food", "drinks"]

    def test_from_pairs(self):
        """Test (pattern, label) construction."""
        table = RuleTable.from_pairs([(re.compile(r"paid off"), "debt"), ("raise", "income")])
        assert table.matches("I paid off my card and got a raise") == ["debt", "income"]
        assert len(table) == 2


class TestMatchStrength:
    """Tests for confidence-ranked matching."""

    def test_word_boundary_is_high(self):
        table = RuleTable.from_mapping({"Transport": ["uber"]})
        [match] = table.match_strength("Uber trip")
        assert match.strength == "high"
        assert match.keyword == "uber"

    def test_substring_is_medium(self):
        table = RuleTable.from_mapping({"Pets": ["pet"]})
        [match] = table.match_strength("petrol")
        assert match.strength == "medium"

    def test_one_match_per_rule(self):
        """Test a rule reports only its first matching pattern."""
        table = RuleTable.from_mapping({"Dining": ["cafe", "coffee"]})
        assert len(table.match_strength("cafe coffee")) == 1
