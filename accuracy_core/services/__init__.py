"""Orchestration layer (Data-0) of the accuracy pipeline.

- ``pipeline_config`` — thresholds and weights, passed explicitly
- ``team_strength``   — market-independent statistical estimate
- ``pipeline``        — ``run_accuracy_pipeline``: measurement → judgment → result
- ``llm_format``      — ``format_for_llm``: result → prompt text
"""
