"""
Selector contract shared by every splitting strategy.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .models import Rule

H = TypeVar("H")


class Selector(ABC, Generic[H]):
    """Pick a handler out of a rule table.

    Strategies are interchangeable: callers only rely on ``add_rule``,
    ``remove_all_rules`` and ``next``. Strategies that take no selection
    argument ignore the one passed to ``next``.
    """

    strategy: str = "base"

    def __init__(self, name: str = "default", metrics: Optional[MetricsCollector] = None):
        self.name = name
        self.metrics = metrics
        self.logger = get_logger(f"splitify.{self.strategy}.{name}")
        self._rules: List[Rule] = []
        self._lock = threading.Lock()

    @abstractmethod
    def add_rule(self, rule: Rule) -> None:
        """Append a rule to the table."""

    @abstractmethod
    def remove_all_rules(self) -> None:
        """Empty the table and reset derived state."""

    @abstractmethod
    def next(self, arg: Any = None) -> H:
        """Return the next handler."""

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Get selector statistics."""

    @property
    def rules(self) -> List[Rule]:
        """Copy of the rule table in insertion order."""
        with self._lock:
            return list(self._rules)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)

    def _record_selection(self, outcome: str, duration: Optional[float] = None):
        if self.metrics is not None:
            self.metrics.record_selection(self.name, self.strategy, outcome, duration)

    def _record_rule_count(self, count: int):
        if self.metrics is not None:
            self.metrics.set_rule_count(self.name, self.strategy, count)

    def _record_error(self, error_type: str):
        if self.metrics is not None:
            self.metrics.record_error(error_type)
