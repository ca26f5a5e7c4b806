"""
Shared utilities for splitify.

This package aggregates common building blocks consumed by the splitting core:

- config: Library configuration via pydantic-settings
- logging: Structured logging with context field correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses

Any cross-cutting logic should live here to avoid import cycles.
Do not import from splitify into shared/.
"""
