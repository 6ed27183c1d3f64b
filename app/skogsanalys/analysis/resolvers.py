"""
Derived quantities shared by the analyzers.

Each helper picks the first available source in a fixed precedence order.
Nothing is cached: analyzers call these on demand so they give the same
answer whether run alone or as part of the summary.
"""

from ..models import AnalysisOptions, PropertyRecord
from ..numbers import safe_ratio

PRICE_SOURCE_WEIGHTED = "weighted_assortment"
PRICE_SOURCE_OPTION = "option"
PRICE_SOURCE_DEFAULT = "default"
PRICE_SOURCE_ASKING_PRICE = "asking_price_per_volume"


def usable_area_ha(record: PropertyRecord) -> float | None:
    """Productive forest land, else total area."""
    if record.skogsmark_ha is not None:
        return record.skogsmark_ha
    return record.areal_total_ha


def volume_per_ha(record: PropertyRecord) -> float | None:
    """Explicit volume per hectare, else total volume over usable area."""
    if record.volym_per_ha_m3sk is not None:
        return record.volym_per_ha_m3sk

    area = usable_area_ha(record)
    if record.volym_total_m3sk is None or area is None or area <= 0:
        return None
    return record.volym_total_m3sk / area


def resolve_price_per_m3sk(
    record: PropertyRecord,
    options: AnalysisOptions,
) -> tuple[float | None, str | None]:
    """
    Resolve the effective price per m3sk and report where it came from.

    Precedence:
        1. Sawlog and pulpwood prices weighted by their percentage shares,
           when both shares are positive.
        2. The general ``price_per_m3sk`` option.
        3. ``default_price_per_m3sk`` (350 unless overridden; <= 0 disables).
        4. Expected price divided by total volume.

    Returns:
        Tuple of (price, source), both None if nothing resolves.
    """
    sawlog = options.sawlog_price_per_m3sk
    pulpwood = options.pulpwood_price_per_m3sk
    sawlog_share = options.sawlog_share_pct or 0.0
    pulpwood_share = options.pulpwood_share_pct or 0.0
    if sawlog is not None and pulpwood is not None and sawlog_share > 0 and pulpwood_share > 0:
        share_total = sawlog_share + pulpwood_share
        weighted = (sawlog * sawlog_share + pulpwood * pulpwood_share) / share_total
        return weighted, PRICE_SOURCE_WEIGHTED

    if options.price_per_m3sk is not None:
        return options.price_per_m3sk, PRICE_SOURCE_OPTION

    if options.default_price_per_m3sk is not None and options.default_price_per_m3sk > 0:
        return options.default_price_per_m3sk, PRICE_SOURCE_DEFAULT

    volume = record.volym_total_m3sk
    if record.pris_forvantning_sek is not None and volume is not None and volume > 0:
        return record.pris_forvantning_sek / volume, PRICE_SOURCE_ASKING_PRICE

    return None, None


def effective_price_per_m3sk(
    record: PropertyRecord,
    options: AnalysisOptions,
) -> float | None:
    """Effective price per m3sk, see ``resolve_price_per_m3sk``."""
    price, _ = resolve_price_per_m3sk(record, options)
    return price


def annual_growth_m3sk(record: PropertyRecord) -> float | None:
    """Explicit annual growth, else site index times usable area."""
    if record.tillvaxt_m3sk_per_ar is not None:
        return record.tillvaxt_m3sk_per_ar

    area = usable_area_ha(record)
    if record.bonitet is None or area is None:
        return None
    return record.bonitet * area


def mature_volume_m3sk(record: PropertyRecord) -> float | None:
    """Volume in the mature classes S1 + S2, None if neither is known."""
    classes = record.huggningsklasser
    if classes is None or (classes.S1_m3sk is None and classes.S2_m3sk is None):
        return None
    return (classes.S1_m3sk or 0.0) + (classes.S2_m3sk or 0.0)


def percent_of(part: float | None, whole: float | None) -> float | None:
    """100 * part / whole, None on a missing or zero denominator."""
    ratio = safe_ratio(part, whole)
    return None if ratio is None else 100 * ratio
