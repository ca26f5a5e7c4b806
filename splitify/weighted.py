"""
Weighted selector.

Interleaved weighted round robin, as used by load balancers: over one full
cycle every rule is picked ``weight / gcd`` times, and picks of different
rules are interleaved instead of emitted in one burst per rule.

Cursor state:

- ``_index``: last selected position, -1 before the first pick.
- ``_current_weight``: threshold of the current pass. Lowered by ``_gcd``
  every time the index wraps, reset to ``_max_weight`` once it reaches zero.

A rule is picked when its weight is at least the current threshold. Rules
with a weight of zero or less are stored but never reach a positive
threshold.
"""

import math
import time
from typing import Any, Dict, List, Mapping, Optional

from shared.metrics import MetricsCollector
from .base import Selector, H
from .errors import InvalidRuleError, NoEligibleRuleError, NoRulesError
from .models import Rule


class WeightedSelector(Selector[H]):
    """Smooth weighted round-robin selector."""

    strategy = "weighted"

    def __init__(self, name: str = "default", metrics: Optional[MetricsCollector] = None):
        super().__init__(name, metrics)
        # Weights as registered; later edits to a Rule do not reach the rotation
        self._weights: List[int] = []
        self._reset_state()

    @classmethod
    def from_weights(cls, weights: Mapping[Any, int], **kwargs) -> "WeightedSelector":
        """Build a selector from a ``{handler: weight}`` mapping, in mapping order."""
        selector = cls(**kwargs)
        for handler, weight in weights.items():
            selector.add_rule(Rule(handler=handler, weight=weight))
        return selector

    def _reset_state(self):
        self._gcd = 0
        self._max_weight = 0
        self._index = -1
        self._current_weight = 0

    def add_rule(self, rule: Rule) -> None:
        weight = rule.weight
        if isinstance(weight, bool) or not isinstance(weight, int):
            raise InvalidRuleError(
                "weight must be an integer",
                {"rule": rule.label, "weight": repr(weight)}
            )

        with self._lock:
            if weight > 0:
                if self._gcd == 0:
                    self._gcd = weight
                    self._max_weight = weight
                    self._index = -1
                    self._current_weight = 0
                else:
                    self._gcd = math.gcd(self._gcd, weight)
                    self._max_weight = max(self._max_weight, weight)
            self._rules.append(rule)
            self._weights.append(weight)
            count = len(self._rules)

        self._record_rule_count(count)
        self.logger.info("Rule added", rule=rule.label, weight=weight, rules=count)

    def remove_all_rules(self) -> None:
        with self._lock:
            self._rules.clear()
            self._weights.clear()
            self._reset_state()

        self._record_rule_count(0)
        self.logger.info("All rules cleared")

    def next(self, arg: Any = None) -> H:
        """Return the next handler in the weighted rotation.

        ``arg`` is accepted for interchangeability with other selectors and
        ignored.

        Raises:
            NoRulesError: the table is empty.
            NoEligibleRuleError: several rules, none with a positive weight.
        """
        start_time = time.perf_counter()
        try:
            with self._lock:
                handler = self._advance()
        except NoRulesError:
            self._record_selection("no_rules")
            self._record_error("no_rules")
            raise
        except NoEligibleRuleError:
            self._record_selection("no_eligible_rule")
            self._record_error("no_eligible_rule")
            raise

        self._record_selection("weighted", time.perf_counter() - start_time)
        return handler

    def _advance(self) -> H:
        """Move the cursor to the next pick. Caller holds the lock."""
        count = len(self._rules)
        if count == 0:
            raise NoRulesError()

        if count == 1:
            return self._rules[0].handler

        if self._max_weight == 0:
            raise NoEligibleRuleError(details={"rules": count})

        while True:
            self._index = (self._index + 1) % count
            if self._index == 0:
                self._current_weight -= self._gcd
                if self._current_weight <= 0:
                    self._current_weight = self._max_weight

            if self._weights[self._index] >= self._current_weight:
                return self._rules[self._index].handler

    def get_stats(self) -> Dict[str, Any]:
        """Get selector statistics."""
        with self._lock:
            return {
                "name": self.name,
                "strategy": self.strategy,
                "total_rules": len(self._rules),
                "eligible_rules": len([w for w in self._weights if w > 0]),
                "gcd": self._gcd,
                "max_weight": self._max_weight,
                "index": self._index,
                "current_weight": self._current_weight,
            }
