"""
Conditional selector.

First match wins: rules are evaluated in insertion order, and each rule's
conditions in their own order. The first condition returning a truthy value
selects its rule's handler and stops evaluation. A condition that raises
stops evaluation too; the default handler is then the fallback.
"""

import time
from dataclasses import replace
from typing import Any, Dict, List, Optional

from shared.metrics import MetricsCollector
from .base import Selector, H
from .errors import InvalidRuleError, NoConditionsError, NoRulesError
from .models import Rule, SelectionResult


class ConditionalSelector(Selector[H]):
    """First-match predicate selector with a default handler."""

    strategy = "conditional"

    def __init__(self, default_handler: H, name: str = "default",
                 metrics: Optional[MetricsCollector] = None):
        super().__init__(name, metrics)
        self._default_handler = default_handler

    @property
    def default_handler(self) -> H:
        return self._default_handler

    def add_rule(self, rule: Rule) -> None:
        # Conditions are copied into a list so iterators are evaluated on every call
        try:
            conditions = list(rule.conditions or [])
        except TypeError as e:
            raise InvalidRuleError(
                "conditions must be an iterable of callables",
                {"rule": rule.label}
            ) from e
        if not conditions:
            raise NoConditionsError(details={"rule": rule.label})

        stored = replace(rule, conditions=conditions)
        with self._lock:
            self._rules.append(stored)
            count = len(self._rules)

        self._record_rule_count(count)
        self.logger.info("Rule added", rule=stored.label, conditions=len(conditions), rules=count)

    def remove_all_rules(self) -> None:
        with self._lock:
            self._rules.clear()

        self._record_rule_count(0)
        self.logger.info("All rules cleared")

    def evaluate(self, arg: Any = None) -> SelectionResult:
        """Evaluate the rules against ``arg``.

        A condition error is reported in ``SelectionResult.error`` next to the
        default handler, never raised. The handler is not authoritative when
        ``error`` is set.

        Raises:
            NoRulesError: the table is empty.
        """
        start_time = time.perf_counter()
        rules = self._snapshot()

        for position, rule in enumerate(rules):
            for condition in rule.conditions:
                try:
                    matched = condition(arg)
                except Exception as e:
                    self.logger.warning(
                        "Condition evaluation failed",
                        rule=rule.label,
                        error=str(e),
                        error_type=type(e).__name__
                    )
                    duration = time.perf_counter() - start_time
                    self._record_selection("condition_error", duration)
                    self._record_error(type(e).__name__)
                    return SelectionResult(
                        handler=self._default_handler,
                        error=e,
                        evaluation_time_ms=duration * 1000
                    )

                if matched:
                    duration = time.perf_counter() - start_time
                    self._record_selection("matched", duration)
                    self.logger.debug("Rule matched", rule=rule.label, position=position)
                    return SelectionResult(
                        handler=rule.handler,
                        matched_rule=position,
                        evaluation_time_ms=duration * 1000
                    )

        duration = time.perf_counter() - start_time
        self._record_selection("default", duration)
        return SelectionResult(
            handler=self._default_handler,
            evaluation_time_ms=duration * 1000
        )

    def next(self, arg: Any = None) -> H:
        """Return the handler of the first rule matching ``arg``.

        Falls back to the default handler when nothing matches. An exception
        raised by a condition propagates unchanged; ``default_handler`` is the
        fallback for the caller.

        Raises:
            NoRulesError: the table is empty.
        """
        result = self.evaluate(arg)
        if result.error is not None:
            raise result.error
        return result.handler

    def _snapshot(self) -> List[Rule]:
        # Conditions run outside the lock so a slow one never blocks mutation
        with self._lock:
            if not self._rules:
                rules = None
            else:
                rules = list(self._rules)

        if rules is None:
            self._record_selection("no_rules")
            self._record_error("no_rules")
            raise NoRulesError()
        return rules

    def get_stats(self) -> Dict[str, Any]:
        """Get selector statistics."""
        with self._lock:
            return {
                "name": self.name,
                "strategy": self.strategy,
                "total_rules": len(self._rules),
                "total_conditions": sum(len(r.conditions) for r in self._rules),
                "default_handler": self._default_handler,
            }
