"""
Summary analyzer composing the core analyses in their fixed order.

Key metrics -> initial harvest -> loan sustainability -> interest
distribution and cash flow. The later steps are defined in terms of the
net proceeds and remaining debt of the earlier ones, so each result is
passed forward explicitly.
"""

from typing import Any

from ..models import AnalysisOptions, PropertyRecord, SummaryResult
from .financing import cashflow_dscr, interest_distribution_positive, loan_sustainability
from .harvest import initial_harvest_taxed
from .metrics import key_metrics
from .resolvers import usable_area_ha, volume_per_ha


def base_facts(record: PropertyRecord) -> dict[str, Any]:
    """Restate the record for display, with usable area and volume per ha derived."""
    facts = record.model_dump(by_alias=True, exclude_none=False)
    facts["usable_area_ha"] = usable_area_ha(record)
    facts["volym_per_ha_m3sk"] = volume_per_ha(record)
    return facts


def summary(record: PropertyRecord, options: AnalysisOptions) -> SummaryResult:
    """Run the core analyzers in order and merge their outputs."""
    metrics = key_metrics(record, options)
    harvest = initial_harvest_taxed(record, options)
    loan = loan_sustainability(record, options, harvest=harvest)
    distribution = interest_distribution_positive(record, options, loan=loan)
    cashflow = cashflow_dscr(record, options, loan=loan)

    sections = {
        "key_metrics": metrics,
        "initial_harvest_taxed": harvest,
        "loan_sustainability": loan,
        "interest_distribution_positive": distribution,
        "cashflow_dscr": cashflow,
    }

    values: dict[str, Any] = {}
    for section in sections.values():
        if section.ok:
            values.update(section.values)

    return SummaryResult(
        ok=True,
        values=values,
        base_facts=base_facts(record),
        sections=sections,
    )
