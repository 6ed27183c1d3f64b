"""
Financing analyzers: loan sustainability after the initial harvest,
interest distribution (räntefördelning), and cash-flow based debt capacity.

Analyzers that build on an earlier step take that step's result as an
optional argument. When it is not supplied they recompute it, so each one
can also be run on its own.
"""

import logging

from ..models import AnalysisOptions, AnalyzerResult, PropertyRecord
from ..numbers import safe_ratio
from .harvest import initial_harvest_taxed
from .resolvers import annual_growth_m3sk, effective_price_per_m3sk, usable_area_ha

logger = logging.getLogger(__name__)

ERROR_MISSING_AREA_OR_BONITET = "missing_area_or_bonitet"
ERROR_MISSING_PRICE_PER_M3SK = "missing_price_per_m3sk"


def loan_sustainability(
    record: PropertyRecord,
    options: AnalysisOptions,
    harvest: AnalyzerResult | None = None,
) -> AnalyzerResult:
    """
    Debt left after paying down the purchase loan with the harvest proceeds,
    and how long the skogskonto balance would carry the interest on it.
    """
    if harvest is None:
        harvest = initial_harvest_taxed(record, options)

    if harvest.ok:
        net_cash = harvest.values.get("net_cash_today_sek") or 0.0
        skogskonto_net = harvest.values.get("skogskonto_net_of_tax_sek") or 0.0
    else:
        logger.debug("Initial harvest unavailable (%s), assuming no proceeds", harvest.error)
        net_cash = 0.0
        skogskonto_net = 0.0

    price = record.pris_forvantning_sek
    if options.loan_amount is not None:
        initial_loan = options.loan_amount
    else:
        initial_loan = (price or 0.0) * options.loan_share

    amortization = min(initial_loan, max(0.0, net_cash))
    remaining_debt = initial_loan - amortization
    annual_interest = remaining_debt * options.interest_rate

    years_covered = None
    if annual_interest > 0:
        years_covered = skogskonto_net / annual_interest

    return AnalyzerResult.success(
        values={
            "initial_loan_sek": initial_loan,
            "amortization_from_proceeds_sek": amortization,
            "remaining_debt_sek": remaining_debt,
            "annual_interest_sek": annual_interest,
            "skogskonto_net_of_tax_sek": skogskonto_net,
            "skogskonto_interest_years": years_covered,
        },
        assumptions={
            "loan_amount": options.loan_amount,
            "loan_share": options.loan_share,
            "interest_rate": options.interest_rate,
            "net_cash_today_sek": net_cash,
        },
    )


def _remaining_debt(
    record: PropertyRecord,
    options: AnalysisOptions,
    loan: AnalyzerResult | None,
) -> float:
    if loan is None:
        loan = loan_sustainability(record, options)
    return loan.values.get("remaining_debt_sek") or 0.0


def interest_distribution_positive(
    record: PropertyRecord,
    options: AnalysisOptions,
    loan: AnalyzerResult | None = None,
) -> AnalyzerResult:
    """
    Positive räntefördelning: the share of profit that may be taxed as
    capital income instead of business income, and the indicative saving.
    """
    remaining_debt = _remaining_debt(record, options, loan)
    price = record.pris_forvantning_sek or 0.0

    capital_base = max(0.0, price - remaining_debt)
    distribution_amount = capital_base * options.distribution_rate
    rate_gap = max(0.0, options.business_tax_rate - options.capital_tax_rate)
    tax_saving = distribution_amount * rate_gap

    return AnalyzerResult.success(
        values={
            "capital_base_sek": capital_base,
            "distribution_amount_sek": distribution_amount,
            "tax_saving_sek": tax_saving,
        },
        assumptions={
            "distribution_rate": options.distribution_rate,
            "business_tax_rate": options.business_tax_rate,
            "capital_tax_rate": options.capital_tax_rate,
            "remaining_debt_sek": remaining_debt,
        },
    )


def _growth_income(
    record: PropertyRecord,
    options: AnalysisOptions,
) -> tuple[float, float, float] | str:
    """
    Annual growth volume, price per m3sk and the resulting income, assuming
    harvest equals growth. Returns an error code when inputs are missing.
    """
    if record.tillvaxt_m3sk_per_ar is None and (
        usable_area_ha(record) is None or record.bonitet is None
    ):
        return ERROR_MISSING_AREA_OR_BONITET

    price_per_m3sk = effective_price_per_m3sk(record, options)
    if price_per_m3sk is None:
        return ERROR_MISSING_PRICE_PER_M3SK

    growth = annual_growth_m3sk(record) or 0.0
    return growth, price_per_m3sk, growth * price_per_m3sk


def cashflow_dscr(
    record: PropertyRecord,
    options: AnalysisOptions,
    loan: AnalyzerResult | None = None,
) -> AnalyzerResult:
    """Steady-state income from growth and its interest coverage."""
    growth_income = _growth_income(record, options)
    if isinstance(growth_income, str):
        return AnalyzerResult.failure(growth_income)
    growth, price_per_m3sk, annual_income = growth_income

    rate = options.interest_rate
    price = record.pris_forvantning_sek
    remaining_debt = _remaining_debt(record, options, loan)

    loan_capacity = annual_income / rate if rate > 0 else None

    dscr_remaining = None
    if remaining_debt > 0:
        dscr_remaining = safe_ratio(annual_income, remaining_debt * rate)

    dscr_full_price = None
    if price is not None and price > 0:
        dscr_full_price = safe_ratio(annual_income, price * rate)

    return AnalyzerResult.success(
        values={
            "annual_growth_m3sk": growth,
            "annual_income_sek": annual_income,
            "loan_capacity_sek": loan_capacity,
            "remaining_debt_sek": remaining_debt,
            "dscr_remaining_debt": dscr_remaining,
            "dscr_full_price": dscr_full_price,
        },
        assumptions={
            "effective_price_per_m3sk": price_per_m3sk,
            "interest_rate": rate,
        },
    )


def cashflow_loan(record: PropertyRecord, options: AnalysisOptions) -> AnalyzerResult:
    """
    Loan capacity from growth income over the amortization horizon, and
    its share of the asking price.

    The income is divided by the interest rate plus the annuity factor,
    so interest is counted on top of the annuity payment. A plain annuity
    would give income / annuity factor, a larger loan.
    """
    growth_income = _growth_income(record, options)
    if isinstance(growth_income, str):
        return AnalyzerResult.failure(growth_income)
    _, price_per_m3sk, annual_income = growth_income

    rate = options.interest_rate
    years = options.amortization_years
    if years <= 0 or rate <= -1:
        annuity_factor = None
    elif rate == 0:
        annuity_factor = 1 / years
    else:
        growth_factor = (1 + rate) ** years
        annuity_factor = rate * growth_factor / (growth_factor - 1)

    debt_service_factor = None if annuity_factor is None else rate + annuity_factor
    max_loan = safe_ratio(annual_income, debt_service_factor)

    share_of_price = None
    price = record.pris_forvantning_sek
    if max_loan is not None and price is not None and price > 0:
        share_of_price = max_loan / price

    return AnalyzerResult.success(
        values={
            "annual_income_sek": annual_income,
            "annuity_factor": annuity_factor,
            "max_loan_sek": max_loan,
            "share_of_price": share_of_price,
        },
        assumptions={
            "effective_price_per_m3sk": price_per_m3sk,
            "interest_rate": rate,
            "amortization_years": years,
        },
    )
