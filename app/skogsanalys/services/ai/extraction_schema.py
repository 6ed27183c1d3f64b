"""
JSON Schema sent to the model describing the property record to extract.

Field names match ``PropertyRecord``; the model is told to use null for
anything the prospectus does not state.
"""

from typing import Any

_NUMBER = {"type": ["number", "null"]}
_STRING = {"type": ["string", "null"]}


def property_record_schema() -> dict[str, Any]:
    """Build the extraction JSON Schema."""
    return {
        "type": "object",
        "properties": {
            # Identity
            "fastighetsbeteckning": _STRING,
            "kommun": _STRING,
            "lage_beskrivning": _STRING,
            "koordinater": _STRING,
            # Area
            "areal_total_ha": _NUMBER,
            "skogsmark_ha": _NUMBER,
            "impediment_ha": _NUMBER,
            # Volume and growth
            "volym_total_m3sk": _NUMBER,
            "volym_per_ha_m3sk": _NUMBER,
            "medelalder_ar": _NUMBER,
            "bonitet": _NUMBER,
            "tillvaxt_m3sk_per_ar": _NUMBER,
            # Harvest classes, e.g. "S1, S2, G1, K1" plus volume per class
            "huggningsklass": _STRING,
            "huggningsklasser": {
                "type": ["object", "null"],
                "properties": {
                    "S1_m3sk": _NUMBER,
                    "S2_m3sk": _NUMBER,
                    "G1_m3sk": _NUMBER,
                    "G2_m3sk": _NUMBER,
                    "K1_m3sk": _NUMBER,
                    "K2_m3sk": _NUMBER,
                },
            },
            "tradslag_andelar": {
                "type": "object",
                "properties": {
                    "gran_procent": _NUMBER,
                    "tall_procent": _NUMBER,
                    "löv_procent": _NUMBER,
                },
                "required": ["gran_procent", "tall_procent", "löv_procent"],
            },
            "byggnader": {
                "type": ["object", "null"],
                "properties": {
                    "finns": {"type": ["boolean", "null"]},
                    "typer": {"type": ["array", "null"], "items": {"type": "string"}},
                },
                "additionalProperties": True,
            },
            # Economics stated in the prospectus (may be empty)
            "pris_forvantning_sek": _NUMBER,
            "taxeringsvarde_sek": _NUMBER,
        },
        "required": ["fastighetsbeteckning", "kommun", "skogsmark_ha", "volym_total_m3sk"],
        "additionalProperties": True,
    }
