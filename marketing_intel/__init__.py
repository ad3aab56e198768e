"""Marketing Intel - multi-module analysis orchestration.

Runs independent analysis modules against a business profile and merges
their outputs into one strategic report:
- Module contract and registry
- Dependency-aware staged execution with per-module timeouts
- Cross-module synthesis (insights, action plan, themes, metrics)
"""

__version__ = "0.1.0"
