"""
Consistency checks for extracted property records.

The analyzers never reconcile conflicting figures; they prefer explicit
fields over derived ones. These checks only surface suspicious extractions
as warnings so a reader can judge the numbers. They never block analysis.
"""

import logging
import math
from typing import Any

from simpleeval import NameNotDefined, SimpleEval

from ...models import PropertyRecord

logger = logging.getLogger(__name__)

# (rule, relative tolerance). Prospectuses round per-hectare figures,
# so volume checks get more slack than the percentage sum.
CONSISTENCY_RULES: list[tuple[str, float]] = [
    ("volym_total_m3sk == skogsmark_ha * volym_per_ha_m3sk", 0.05),
    ("gran_procent + tall_procent + lov_procent == 100", 0.03),
]

PERCENT_FIELDS = ("gran_procent", "tall_procent", "lov_procent")


def record_numeric_values(record: PropertyRecord) -> dict[str, float]:
    """Flatten the numeric fields of a record (nested ones included) to a name map."""
    values: dict[str, Any] = record.model_dump(exclude={"huggningsklasser", "tradslag_andelar", "byggnader"})
    if record.huggningsklasser is not None:
        values.update(record.huggningsklasser.model_dump())
    if record.tradslag_andelar is not None:
        values.update(record.tradslag_andelar.model_dump())

    return {
        name: value
        for name, value in values.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool)
    }


def evaluate_rule(
    rule: str,
    numeric_values: dict[str, float],
    tolerance: float = 0.01,
) -> tuple[bool, str]:
    """
    Evaluate an ``a == expression`` rule with simpleeval.

    Returns:
        Tuple of (success, message). Rules referencing absent fields pass.
    """
    if "==" not in rule:
        return (True, f"Invalid rule format (no ==): {rule}")

    left_side, right_side = (part.strip() for part in rule.split("==", 1))

    evaluator = SimpleEval()
    evaluator.names = numeric_values
    # No function calls
    evaluator.functions = {}

    try:
        left_value = evaluator.eval(left_side)
        right_value = evaluator.eval(right_side)
    except NameNotDefined:
        return (True, f"Skipped (field missing): {rule}")
    except Exception as e:
        return (True, f"Could not evaluate '{rule}': {e}")

    if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in (left_value, right_value)):
        return (True, f"Skipped (non-numeric result): {rule}")

    allowed = max(abs(left_value) * tolerance, abs(right_value) * tolerance, 0.02)
    if abs(left_value - right_value) <= allowed:
        return (True, f"Rule passed: {rule}")

    return (
        False,
        f"Inconsistent figures: {rule} "
        f"(left={left_value:.2f}, right={right_value:.2f})",
    )


def check_record_consistency(record: PropertyRecord) -> list[str]:
    """Return warnings for implausible or mutually inconsistent figures."""
    numeric_values = record_numeric_values(record)
    warnings: list[str] = []

    for rule, tolerance in CONSISTENCY_RULES:
        success, message = evaluate_rule(rule, numeric_values, tolerance)
        if not success:
            warnings.append(message)
        else:
            logger.debug(message)

    for name in PERCENT_FIELDS:
        value = numeric_values.get(name)
        if value is not None and not 0 <= value <= 100:
            warnings.append(f"Percentage out of range: {name}={value}")

    total = record.areal_total_ha
    productive = record.skogsmark_ha
    if total is not None and productive is not None and productive > total:
        warnings.append(
            f"Productive forest area exceeds total area ({productive} > {total} ha)"
        )

    return warnings
