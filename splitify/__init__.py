"""
Traffic splitting package.

Picks a handler (a route, a backend, a service name...) out of an in-memory
rule table. Two interchangeable strategies share one contract
(``add_rule``, ``remove_all_rules``, ``next``):

- weighted: interleaved weighted round robin over integer weights.
- conditional: first matching predicate wins, with a default handler.

Modules of interest:
- models: Rule and SelectionResult data classes.
- weighted / conditional: the two selectors.
- registry: application-owned collection of named selectors.
"""

from .base import Selector
from .conditional import ConditionalSelector
from .errors import (
    InvalidRuleError,
    NoConditionsError,
    NoEligibleRuleError,
    NoRulesError,
    SelectorConflictError,
    SelectorNotFoundError,
)
from .models import Condition, Rule, SelectionResult
from .registry import SplitterRegistry
from .weighted import WeightedSelector

__all__ = [
    "Condition",
    "ConditionalSelector",
    "InvalidRuleError",
    "NoConditionsError",
    "NoEligibleRuleError",
    "NoRulesError",
    "Rule",
    "SelectionResult",
    "Selector",
    "SelectorConflictError",
    "SelectorNotFoundError",
    "SplitterRegistry",
    "WeightedSelector",
]
