"""
Analyzer registry and dispatch.

The set of analyzers is closed: ``AnalyzerName`` enumerates them and
``ANALYZERS`` maps each member to its function. The mapping is checked at
import time so a missing or mistyped entry fails loudly at startup instead
of surfacing as an unknown analyzer at request time.
"""

import logging
from collections.abc import Callable, Iterable
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..models import AnalysisOptions, AnalyzerResult, PropertyRecord, SummaryResult
from .financing import cashflow_dscr, cashflow_loan, interest_distribution_positive, loan_sustainability
from .harvest import harvest_plan, initial_harvest_taxed
from .metrics import key_metrics, risk, value_indicator
from .summary import summary

logger = logging.getLogger(__name__)

ERROR_UNKNOWN_ANALYZER = "unknown_analyzer"

Analyzer = Callable[[PropertyRecord, AnalysisOptions], AnalyzerResult]


class AnalyzerName(str, Enum):
    """Names accepted in the ``analyses`` list of a request."""

    KEY_METRICS = "key_metrics"
    INITIAL_HARVEST_TAXED = "initial_harvest_taxed"
    LOAN_SUSTAINABILITY = "loan_sustainability"
    INTEREST_DISTRIBUTION_POSITIVE = "interest_distribution_positive"
    CASHFLOW_DSCR = "cashflow_dscr"
    SUMMARY = "summary"
    RISK = "risk"
    VALUE_INDICATOR = "value_indicator"
    HARVEST_PLAN = "harvest_plan"
    CASHFLOW_LOAN = "cashflow_loan"


ANALYZERS: MappingProxyType[AnalyzerName, Analyzer] = MappingProxyType(
    {
        AnalyzerName.KEY_METRICS: key_metrics,
        AnalyzerName.INITIAL_HARVEST_TAXED: initial_harvest_taxed,
        AnalyzerName.LOAN_SUSTAINABILITY: loan_sustainability,
        AnalyzerName.INTEREST_DISTRIBUTION_POSITIVE: interest_distribution_positive,
        AnalyzerName.CASHFLOW_DSCR: cashflow_dscr,
        AnalyzerName.SUMMARY: summary,
        AnalyzerName.RISK: risk,
        AnalyzerName.VALUE_INDICATOR: value_indicator,
        AnalyzerName.HARVEST_PLAN: harvest_plan,
        AnalyzerName.CASHFLOW_LOAN: cashflow_loan,
    }
)


def _validate_registry() -> None:
    missing = [name.value for name in AnalyzerName if name not in ANALYZERS]
    if missing:
        raise RuntimeError(f"Analyzers registered without an implementation: {missing}")
    not_callable = [name.value for name, func in ANALYZERS.items() if not callable(func)]
    if not_callable:
        raise RuntimeError(f"Analyzer entries are not callable: {not_callable}")


_validate_registry()


def list_analyzer_names() -> list[str]:
    """Registered analyzer names, in registry order."""
    return [name.value for name in ANALYZERS]


def run_analyzer(
    name: Any,
    base_data: PropertyRecord,
    options: AnalysisOptions | None = None,
) -> AnalyzerResult:
    """
    Run one analyzer by name.

    Never raises: an unknown name or an exception inside the analyzer is
    turned into a failed ``AnalyzerResult``. Names that are not strings
    are unknown.
    """
    if not isinstance(name, str):
        logger.warning("Analyzer name is not a string: %r", name)
        return AnalyzerResult.failure(ERROR_UNKNOWN_ANALYZER)

    try:
        analyzer_name = AnalyzerName(name)
    except ValueError:
        logger.warning("Unknown analyzer requested: %s", name)
        return AnalyzerResult.failure(ERROR_UNKNOWN_ANALYZER)

    if options is None:
        options = AnalysisOptions()

    try:
        return ANALYZERS[analyzer_name](base_data, options)
    except Exception as e:
        logger.exception("Analyzer '%s' failed", name)
        return AnalyzerResult.failure(str(e) or type(e).__name__)


def run_analyzers(
    names: Iterable[Any],
    base_data: PropertyRecord,
    options: AnalysisOptions | None = None,
) -> dict[str, AnalyzerResult]:
    """
    Run each requested analyzer independently; one failure never stops the rest.

    Results are keyed by the requested name, stringified when it is not a string.
    """
    results: dict[str, AnalyzerResult] = {}
    for name in names:
        key = name if isinstance(name, str) else str(name)
        if key in results:
            continue
        results[key] = run_analyzer(name, base_data, options)

    logger.info(
        "Ran %d analyzer(s): %d ok, %d failed",
        len(results),
        sum(1 for r in results.values() if r.ok),
        sum(1 for r in results.values() if not r.ok),
    )
    return results


def run_summary(
    base_data: PropertyRecord,
    options: AnalysisOptions | None = None,
) -> SummaryResult:
    """Run the summary analyzer directly."""
    return summary(base_data, options or AnalysisOptions())
