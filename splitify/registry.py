"""
Named selector registry.

The registry is an explicit object owned by the application. It wires the
selectors it creates to one metrics collector and one configuration.
"""

import threading
from typing import Any, Dict, List, Optional

from shared.config import SplitifyConfig, get_config
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .base import Selector
from .conditional import ConditionalSelector
from .errors import SelectorConflictError, SelectorNotFoundError
from .weighted import WeightedSelector


class SplitterRegistry:
    """Registry of named selectors."""

    def __init__(self, config: Optional[SplitifyConfig] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.config = config or get_config()
        if metrics is None and self.config.metrics_enabled:
            metrics = MetricsCollector(self.config.service_name)
        self.metrics = metrics
        self.selectors: Dict[str, Selector] = {}
        self._lock = threading.Lock()
        self.logger = get_logger(f"{self.config.service_name}.splitter_registry")

    def weighted(self, name: str) -> WeightedSelector:
        """Get or create a weighted selector."""
        with self._lock:
            selector = self.selectors.get(name)
            if selector is None:
                selector = WeightedSelector(name=name, metrics=self.metrics)
                self.selectors[name] = selector
                self.logger.info("Created selector", name=name, strategy=selector.strategy)
            elif not isinstance(selector, WeightedSelector):
                raise SelectorConflictError(name, selector.strategy, WeightedSelector.strategy)
            return selector

    def conditional(self, name: str, default_handler: Any) -> ConditionalSelector:
        """Get or create a conditional selector.

        ``default_handler`` is used only on creation; an existing selector
        keeps its own.
        """
        with self._lock:
            selector = self.selectors.get(name)
            if selector is None:
                selector = ConditionalSelector(default_handler, name=name, metrics=self.metrics)
                self.selectors[name] = selector
                self.logger.info("Created selector", name=name, strategy=selector.strategy)
            elif not isinstance(selector, ConditionalSelector):
                raise SelectorConflictError(name, selector.strategy, ConditionalSelector.strategy)
            return selector

    def get(self, name: str) -> Selector:
        """Get a registered selector."""
        with self._lock:
            if name not in self.selectors:
                raise SelectorNotFoundError(name)
            return self.selectors[name]

    def remove(self, name: str) -> bool:
        """Remove a selector from the registry."""
        with self._lock:
            selector = self.selectors.pop(name, None)

        if selector is None:
            return False
        self.logger.info("Removed selector", name=name, strategy=selector.strategy)
        return True

    def names(self) -> List[str]:
        with self._lock:
            return list(self.selectors)

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get statistics of all selectors."""
        with self._lock:
            selectors = list(self.selectors.items())
        return {name: selector.get_stats() for name, selector in selectors}
