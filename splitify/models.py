"""
Rule data models for the splitting core.
"""

from typing import Any, Callable, List, Optional
from dataclasses import dataclass, field

# A condition takes the caller's argument and returns a truthy value on match.
# Raising signals an evaluation error.
Condition = Callable[[Any], bool]


@dataclass
class Rule:
    """One entry of a selector's policy table."""
    handler: Any
    weight: int = 0
    conditions: Optional[List[Condition]] = field(default_factory=list)
    name: Optional[str] = None

    @property
    def label(self) -> str:
        """Name used in logs and stats."""
        return self.name if self.name is not None else str(self.handler)


@dataclass
class SelectionResult:
    """Result of a conditional evaluation."""
    handler: Any
    error: Optional[BaseException] = None
    matched_rule: Optional[int] = None
    evaluation_time_ms: float = 0.0

    @property
    def is_default(self) -> bool:
        return self.matched_rule is None
