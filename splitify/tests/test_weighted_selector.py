"""
Unit tests for the weighted selector.
"""

import pytest
from collections import Counter
from concurrent.futures import ThreadPoolExecutor

from prometheus_client import CollectorRegistry

from shared.metrics import MetricsCollector
from splitify.errors import InvalidRuleError, NoEligibleRuleError, NoRulesError
from splitify.models import Rule
from splitify.weighted import WeightedSelector


def pick(selector, times):
    return [selector.next() for _ in range(times)]


class TestWeightedSelector:
    """Test cases for WeightedSelector."""

    @pytest.fixture
    def selector(self):
        """Create WeightedSelector instance."""
        return WeightedSelector(name="test")

    def test_next_ratio_follows_weights(self, selector):
        """Test weights 3 and 97 over 200 picks."""
        selector.add_rule(Rule(handler="a", weight=3))
        selector.add_rule(Rule(handler="b", weight=97))

        counts = Counter(pick(selector, 200))

        assert counts["a"] == 6
        assert counts["b"] == 194
        assert counts["b"] // counts["a"] == 32

    def test_next_exact_counts_per_cycle(self, selector):
        """Test every full cycle honours each weight."""
        selector.add_rule(Rule(handler="a", weight=5))
        selector.add_rule(Rule(handler="b", weight=3))
        selector.add_rule(Rule(handler="c", weight=2))

        counts = Counter(pick(selector, 1000))

        assert counts == {"a": 500, "b": 300, "c": 200}

    def test_next_uses_gcd_for_cycle_length(self, selector):
        """Test weights sharing a divisor shorten the cycle."""
        selector.add_rule(Rule(handler="a", weight=4))
        selector.add_rule(Rule(handler="b", weight=2))

        assert pick(selector, 3) == ["a", "a", "b"]
        assert Counter(pick(selector, 30)) == {"a": 20, "b": 10}

    def test_next_equal_weights_round_robin(self, selector):
        """Test equal weights visit every handler once per cycle in insertion order."""
        for handler in ("a", "b", "c"):
            selector.add_rule(Rule(handler=handler, weight=1))

        assert pick(selector, 3) == ["a", "b", "c"]
        assert pick(selector, 6) == ["a", "b", "c", "a", "b", "c"]

    def test_next_interleaves_picks(self, selector):
        """Test the heavier rule does not take its whole share in one burst."""
        selector.add_rule(Rule(handler="a", weight=2))
        selector.add_rule(Rule(handler="b", weight=1))

        assert pick(selector, 6) == ["a", "a", "b", "a", "a", "b"]

    def test_next_single_rule_shortcut(self, selector):
        """Test a single rule is always returned."""
        selector.add_rule(Rule(handler="only", weight=7))

        assert pick(selector, 5) == ["only"] * 5

    def test_next_single_rule_zero_weight(self, selector):
        """Test a single rule is returned even without weight."""
        selector.add_rule(Rule(handler="only", weight=0))

        assert pick(selector, 3) == ["only"] * 3

    def test_next_empty_table(self, selector):
        """Test selecting from an empty table."""
        with pytest.raises(NoRulesError) as exc_info:
            selector.next()

        assert exc_info.value.code == "NO_RULES"

    def test_next_no_positive_weight(self, selector):
        """Test several rules without a positive weight."""
        selector.add_rule(Rule(handler="a", weight=0))
        selector.add_rule(Rule(handler="b", weight=-2))

        with pytest.raises(NoEligibleRuleError) as exc_info:
            selector.next()

        assert exc_info.value.code == "NO_ELIGIBLE_RULE"
        assert exc_info.value.details == {"rules": 2}
        assert selector.get_stats()["index"] == -1

    def test_zero_weight_rule_never_selected(self, selector):
        """Test zero weight rules are stored but skipped."""
        selector.add_rule(Rule(handler="a", weight=0))
        selector.add_rule(Rule(handler="b", weight=2))
        selector.add_rule(Rule(handler="c", weight=1))

        counts = Counter(pick(selector, 30))

        assert len(selector) == 3
        assert "a" not in counts
        assert counts == {"b": 20, "c": 10}

    def test_next_ignores_argument(self, selector):
        """Test the selection argument is accepted and ignored."""
        selector.add_rule(Rule(handler="a", weight=1))
        selector.add_rule(Rule(handler="b", weight=1))

        assert [selector.next({"user": "u1"}) for _ in range(2)] == ["a", "b"]

    def test_add_rule_tracks_gcd_and_max(self, selector):
        """Test derived state follows positive weights."""
        selector.add_rule(Rule(handler="a", weight=0))
        selector.add_rule(Rule(handler="b", weight=4))
        selector.add_rule(Rule(handler="c", weight=6))

        stats = selector.get_stats()

        assert stats["total_rules"] == 3
        assert stats["eligible_rules"] == 2
        assert stats["gcd"] == 2
        assert stats["max_weight"] == 6
        assert stats["index"] == -1
        assert stats["current_weight"] == 0

    @pytest.mark.parametrize("weight", [1.5, "3", True, None])
    def test_add_rule_rejects_non_integer_weight(self, selector, weight):
        """Test non-integer weights are rejected without touching the table."""
        with pytest.raises(InvalidRuleError):
            selector.add_rule(Rule(handler="a", weight=weight))

        assert len(selector) == 0
        assert selector.get_stats()["gcd"] == 0

    def test_remove_all_rules_resets_state(self, selector):
        """Test clearing restores a fresh selector."""
        selector.add_rule(Rule(handler="a", weight=3))
        selector.add_rule(Rule(handler="b", weight=9))
        pick(selector, 5)

        selector.remove_all_rules()

        stats = selector.get_stats()
        assert stats["total_rules"] == 0
        assert stats["gcd"] == 0
        assert stats["max_weight"] == 0
        assert stats["index"] == -1
        assert stats["current_weight"] == 0
        with pytest.raises(NoRulesError):
            selector.next()

    def test_remove_all_rules_idempotent(self, selector):
        """Test clearing an empty selector leaves it usable."""
        selector.remove_all_rules()
        selector.remove_all_rules()

        selector.add_rule(Rule(handler="x", weight=1))
        selector.add_rule(Rule(handler="y", weight=1))

        assert pick(selector, 4) == ["x", "y", "x", "y"]

    def test_rules_returns_copy(self, selector):
        """Test the rule table cannot be mutated from outside."""
        rule = Rule(handler="a", weight=1)
        selector.add_rule(rule)

        rules = selector.rules
        rules.clear()

        assert selector.rules == [rule]

    def test_rule_edits_after_add_do_not_change_rotation(self, selector):
        """Test weights are fixed at registration, so draining a rule object cannot stall next."""
        a = Rule(handler="a", weight=2)
        b = Rule(handler="b", weight=1)
        selector.add_rule(a)
        selector.add_rule(b)

        a.weight = 0
        b.weight = 0

        with ThreadPoolExecutor(max_workers=1) as executor:
            picks = executor.submit(pick, selector, 6).result(timeout=5)

        assert picks == ["a", "a", "b", "a", "a", "b"]
        assert selector.get_stats()["eligible_rules"] == 2

    def test_from_weights(self):
        """Test building from a handler to weight mapping."""
        selector = WeightedSelector.from_weights({"blue": 1, "green": 3}, name="deploy")

        assert selector.name == "deploy"
        assert Counter(pick(selector, 40)) == {"blue": 10, "green": 30}


class TestWeightedSelectorConcurrency:
    """Concurrent access to one selector."""

    def test_concurrent_next_serializes_cursor(self):
        """Test no pick is lost or repeated across threads."""
        selector = WeightedSelector.from_weights({"a": 1, "b": 1, "c": 1, "d": 1})

        with ThreadPoolExecutor(max_workers=8) as executor:
            batches = list(executor.map(lambda _: pick(selector, 250), range(8)))

        counts = Counter(handler for batch in batches for handler in batch)
        assert counts == {"a": 500, "b": 500, "c": 500, "d": 500}

    def test_concurrent_next_keeps_weight_ratio(self):
        """Test exact weighted totals under contention."""
        selector = WeightedSelector.from_weights({"a": 3, "b": 97})

        with ThreadPoolExecutor(max_workers=10) as executor:
            batches = list(executor.map(lambda _: pick(selector, 100), range(10)))

        counts = Counter(handler for batch in batches for handler in batch)
        assert counts == {"a": 30, "b": 970}

    def test_concurrent_add_and_next(self):
        """Test rule registration while other threads select."""
        selector = WeightedSelector.from_weights({"seed": 1, "other": 1})

        def add(i):
            selector.add_rule(Rule(handler=f"r{i}", weight=i % 5 + 1))

        with ThreadPoolExecutor(max_workers=6) as executor:
            adds = [executor.submit(add, i) for i in range(50)]
            picks = [executor.submit(pick, selector, 20) for _ in range(10)]
            for future in adds + picks:
                future.result()

        assert len(selector) == 52
        assert selector.get_stats()["max_weight"] == 5


class TestWeightedSelectorMetrics:
    """Metrics emitted by the weighted selector."""

    @pytest.fixture
    def registry(self):
        return CollectorRegistry()

    @pytest.fixture
    def selector(self, registry):
        return WeightedSelector(name="api", metrics=MetricsCollector("test", registry))

    def test_selections_counted(self, selector, registry):
        """Test successful picks are counted and timed."""
        selector.add_rule(Rule(handler="a", weight=1))
        selector.add_rule(Rule(handler="b", weight=1))
        pick(selector, 5)

        labels = {"selector": "api", "strategy": "weighted"}
        assert registry.get_sample_value(
            "splitify_selections_total", {**labels, "outcome": "weighted"}
        ) == 5
        assert registry.get_sample_value("splitify_selection_duration_seconds_count", labels) == 5
        assert registry.get_sample_value("splitify_rules", labels) == 2

    def test_failures_counted(self, selector, registry):
        """Test failed picks are counted by outcome."""
        with pytest.raises(NoRulesError):
            selector.next()

        selector.add_rule(Rule(handler="a", weight=0))
        selector.add_rule(Rule(handler="b", weight=0))
        with pytest.raises(NoEligibleRuleError):
            selector.next()

        labels = {"selector": "api", "strategy": "weighted"}
        assert registry.get_sample_value(
            "splitify_selections_total", {**labels, "outcome": "no_rules"}
        ) == 1
        assert registry.get_sample_value(
            "splitify_selections_total", {**labels, "outcome": "no_eligible_rule"}
        ) == 1
        assert registry.get_sample_value(
            "splitify_errors_total", {"error_type": "no_rules", "service": "test"}
        ) == 1

    def test_rule_gauge_reset(self, selector, registry):
        """Test clearing publishes an empty table."""
        selector.add_rule(Rule(handler="a", weight=1))
        selector.remove_all_rules()

        assert registry.get_sample_value(
            "splitify_rules", {"selector": "api", "strategy": "weighted"}
        ) == 0
