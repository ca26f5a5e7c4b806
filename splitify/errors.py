"""
Error taxonomy for the splitting core.
"""

from typing import Dict, Any, Optional

from shared.errors import SplitifyException, ValidationError, NotFoundError, ConflictError


class NoRulesError(SplitifyException):
    """Selection attempted on an empty rule table."""

    def __init__(self, message: str = "no rules added", details: Optional[Dict[str, Any]] = None):
        super().__init__("NO_RULES", message, details)


class NoEligibleRuleError(SplitifyException):
    """Weighted table holds rules but none with a positive weight."""

    def __init__(self, message: str = "no rule with a positive weight", details: Optional[Dict[str, Any]] = None):
        super().__init__("NO_ELIGIBLE_RULE", message, details)


class NoConditionsError(ValidationError):
    """Conditional rule registered without conditions."""

    def __init__(self, message: str = "no conditions added", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="NO_CONDITIONS")


class InvalidRuleError(ValidationError):
    """Rule rejected at registration."""

    def __init__(self, message: str = "invalid rule", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="INVALID_RULE")


class SelectorNotFoundError(NotFoundError):
    """No selector registered under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"selector '{name}' not found", {"selector": name})


class SelectorConflictError(ConflictError):
    """Name already bound to a selector of another strategy."""

    def __init__(self, name: str, existing: str, requested: str):
        super().__init__(
            f"selector '{name}' is {existing}, not {requested}",
            {"selector": name, "existing": existing, "requested": requested}
        )
