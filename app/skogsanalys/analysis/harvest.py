"""
Harvest analyzers.

``initial_harvest_taxed`` models cutting all mature volume (S1 + S2) right
after purchase and the cash left after a simplified Swedish forestry tax
treatment: a forest deduction capped at a share of the purchase price, and
a skogskonto deposit that defers tax on part of the remaining income.
The deduction share, deposit share and tax rate are options with defaults,
not statements of tax law.
"""

from ..models import AnalysisOptions, AnalyzerResult, PropertyRecord
from .resolvers import effective_price_per_m3sk, mature_volume_m3sk

ERROR_MISSING_VOLUME = "missing_volym_total_m3sk"
ERROR_MISSING_PRICE_PER_M3SK = "missing_price_per_m3sk"


def initial_harvest_taxed(record: PropertyRecord, options: AnalysisOptions) -> AnalyzerResult:
    """Net cash from harvesting the mature classes, after tax and skogskonto."""
    if record.volym_total_m3sk is None:
        return AnalyzerResult.failure(ERROR_MISSING_VOLUME)

    price_per_m3sk = effective_price_per_m3sk(record, options)
    if price_per_m3sk is None:
        return AnalyzerResult.failure(ERROR_MISSING_PRICE_PER_M3SK)

    price = record.pris_forvantning_sek
    tax_rate = options.tax_rate

    harvest_m3sk = mature_volume_m3sk(record) or 0.0
    gross_revenue = harvest_m3sk * price_per_m3sk

    deduction_cap = options.forest_deduction_share * price if price is not None else 0.0
    forest_deduction = max(0.0, min(gross_revenue, deduction_cap))
    taxable_before_deferral = max(0.0, gross_revenue - forest_deduction)

    skogskonto_deposit = taxable_before_deferral * options.skogskonto_share
    tax_now = (taxable_before_deferral - skogskonto_deposit) * tax_rate

    # The deposit stays the owner's money, earmarked rather than spent
    net_cash_today = gross_revenue - tax_now

    deferred_tax = skogskonto_deposit * tax_rate
    skogskonto_net_of_tax = skogskonto_deposit * (1 - tax_rate)

    debt_paydown_pct = None
    if price is not None and price > 0:
        debt_paydown_pct = 100 * net_cash_today / price

    return AnalyzerResult.success(
        values={
            "harvest_m3sk": harvest_m3sk,
            "gross_revenue_sek": gross_revenue,
            "forest_deduction_cap_sek": deduction_cap,
            "forest_deduction_sek": forest_deduction,
            "taxable_before_deferral_sek": taxable_before_deferral,
            "skogskonto_deposit_sek": skogskonto_deposit,
            "tax_now_sek": tax_now,
            "net_cash_today_sek": net_cash_today,
            "deferred_tax_sek": deferred_tax,
            "skogskonto_net_of_tax_sek": skogskonto_net_of_tax,
            "debt_paydown_pct": debt_paydown_pct,
        },
        assumptions={
            "effective_price_per_m3sk": price_per_m3sk,
            "tax_rate": tax_rate,
            "skogskonto_share": options.skogskonto_share,
            "forest_deduction_share": options.forest_deduction_share,
        },
    )


def harvest_plan(record: PropertyRecord, options: AnalysisOptions) -> AnalyzerResult:
    """Rough split of the standing volume into thinning and final felling."""
    volume = record.volym_total_m3sk
    if volume is None:
        return AnalyzerResult.failure(ERROR_MISSING_VOLUME)

    price_per_m3sk = effective_price_per_m3sk(record, options)
    if price_per_m3sk is None:
        return AnalyzerResult.failure(ERROR_MISSING_PRICE_PER_M3SK)

    thinning = volume * options.thinning_share
    final_felling = volume - thinning

    return AnalyzerResult.success(
        values={
            "thinning_m3sk": thinning,
            "thinning_value_sek": thinning * price_per_m3sk,
            "final_felling_m3sk": final_felling,
            "final_felling_value_sek": final_felling * price_per_m3sk,
        },
        assumptions={
            "effective_price_per_m3sk": price_per_m3sk,
            "thinning_share": options.thinning_share,
        },
    )
