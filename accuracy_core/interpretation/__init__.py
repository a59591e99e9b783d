"""Interpretation layer (Data-2.5): raw measurements → qualitative judgments.

Policy (penalties, score bands, volatility thresholds) lives here and only
here.  Modules in this package import from ``accuracy_core.core`` but never
from ``accuracy_core.services``.
"""
