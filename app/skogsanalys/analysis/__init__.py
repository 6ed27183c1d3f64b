"""
Financial analyzers for forest properties.

This package is split into:
- resolvers: derived quantities (usable area, volume per ha, price per m3sk)
- metrics: key metrics, risk and value indicators
- harvest: taxed initial harvest and harvest plan
- financing: loan sustainability, interest distribution, cash flow
- summary: the composed summary analyzer
- registry: name-based dispatch
"""

from .registry import (
    ANALYZERS,
    ERROR_UNKNOWN_ANALYZER,
    AnalyzerName,
    list_analyzer_names,
    run_analyzer,
    run_analyzers,
    run_summary,
)

__all__ = [
    "ANALYZERS",
    "ERROR_UNKNOWN_ANALYZER",
    "AnalyzerName",
    "list_analyzer_names",
    "run_analyzer",
    "run_analyzers",
    "run_summary",
]
