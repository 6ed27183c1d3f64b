"""
Descriptive metrics for a forest property: price ratios, growth value,
risk signals and a simple value indicator.
"""

from ..models import AnalysisOptions, AnalyzerResult, PropertyRecord
from ..numbers import safe_ratio
from .resolvers import (
    annual_growth_m3sk,
    mature_volume_m3sk,
    resolve_price_per_m3sk,
    usable_area_ha,
    volume_per_ha,
)

RISK_LEVELS = ("låg", "medel", "hög")

ERROR_MISSING_PRICE_VOLUME_AREA = "missing_price_volume_area"


def key_metrics(record: PropertyRecord, options: AnalysisOptions) -> AnalyzerResult:
    """
    Price, growth and harvest-class ratios for the property.

    Every figure degrades to None on its own when its inputs are missing;
    the analyzer itself always succeeds.
    """
    area = usable_area_ha(record)
    volume = record.volym_total_m3sk
    price = record.pris_forvantning_sek
    price_per_m3sk, price_source = resolve_price_per_m3sk(record, options)

    growth = annual_growth_m3sk(record)
    growth_value = None
    if growth is not None and price_per_m3sk is not None:
        growth_value = growth * price_per_m3sk

    cap_rate_pct = None
    if growth_value is not None and price is not None and price > 0:
        cap_rate_pct = 100 * growth_value / price

    mature_share_pct = None
    mature = mature_volume_m3sk(record)
    if mature is not None and volume is not None and volume > 0:
        mature_share_pct = 100 * mature / volume

    return AnalyzerResult.success(
        values={
            "usable_area_ha": area,
            "volume_total_m3sk": volume,
            "volume_per_ha_m3sk": volume_per_ha(record),
            "price_sek": price,
            "price_per_ha": safe_ratio(price, area),
            "price_per_m3sk": safe_ratio(price, volume),
            "annual_growth_m3sk": growth,
            "annual_growth_value_sek": growth_value,
            "cap_rate_pct": cap_rate_pct,
            "mature_volume_m3sk": mature,
            "mature_share_pct": mature_share_pct,
        },
        assumptions={
            "effective_price_per_m3sk": price_per_m3sk,
            "price_source": price_source,
        },
    )


def risk(record: PropertyRecord, options: AnalysisOptions) -> AnalyzerResult:
    """
    Crude risk signal: one point for thin stocking, one for a high
    broadleaf share.
    """
    v_per_ha = volume_per_ha(record)
    species = record.tradslag_andelar
    broadleaf_pct = species.lov_procent if species is not None else None

    score = 0
    if v_per_ha is not None and v_per_ha < options.low_volume_per_ha:
        score += 1
    if broadleaf_pct is not None and broadleaf_pct > options.high_broadleaf_pct:
        score += 1

    return AnalyzerResult.success(
        values={
            "score": score,
            "level": RISK_LEVELS[min(score, 2)],
            "volume_per_ha_m3sk": v_per_ha,
            "broadleaf_pct": broadleaf_pct,
        },
        assumptions={
            "low_volume_per_ha": options.low_volume_per_ha,
            "high_broadleaf_pct": options.high_broadleaf_pct,
        },
    )


def value_indicator(record: PropertyRecord, options: AnalysisOptions) -> AnalyzerResult:
    """Compare price per m3sk and per hectare against benchmark levels."""
    price = record.pris_forvantning_sek
    volume = record.volym_total_m3sk
    area = usable_area_ha(record)
    if not price or not volume or not area:
        return AnalyzerResult.failure(ERROR_MISSING_PRICE_VOLUME_AREA)

    ppm3 = price / volume
    ppha = price / area
    bench_ppm3 = options.bench_price_per_m3sk
    bench_ppha = options.bench_price_per_ha

    # Benchmarks of zero would divide by zero; treat that half as neutral
    ppm3_gap = (bench_ppm3 - ppm3) / bench_ppm3 if bench_ppm3 else 0.0
    ppha_gap = (bench_ppha - ppha) / bench_ppha if bench_ppha else 0.0
    score = 0.5 * ppm3_gap + 0.5 * ppha_gap

    if score > 0.1:
        signal = "billig"
    elif score < -0.1:
        signal = "dyr"
    else:
        signal = "neutral"

    return AnalyzerResult.success(
        values={
            "price_per_m3sk": ppm3,
            "price_per_ha": ppha,
            "score": score,
            "signal": signal,
        },
        assumptions={
            "bench_price_per_m3sk": bench_ppm3,
            "bench_price_per_ha": bench_ppha,
        },
    )
