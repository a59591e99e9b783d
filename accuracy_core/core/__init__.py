"""Measurement layer (Data-1) of the accuracy pipeline.

This package contains pure, policy-free building blocks:

- ``odds_math``           — implied probabilities, aggregation, vig removal
- ``volatility``          — cross-bookmaker dispersion statistics
- ``quality_flags``       — raw data-quality signals (flags and counts)
- ``calibration_metrics`` — Brier score, log-loss and reliability tables

Nothing in this package imports from ``accuracy_core.interpretation`` or
``accuracy_core.services``.  All modules are side-effect-free and
unit-testable in isolation.
"""
