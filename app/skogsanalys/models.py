"""
Pydantic models for the forest prospectus analysis pipeline.

Defines the normalized property record produced by extraction, the
analysis options, analyzer results and the API request/response types.
"""

from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)

from .numbers import coerce_number, parse_currency


# =============================================================================
# Property Record (base data)
# =============================================================================


class HarvestClasses(BaseModel):
    """Standing volume (m3sk) per harvest class (huggningsklass)."""

    model_config = ConfigDict(extra="allow")

    S1_m3sk: float | None = Field(default=None, description="Mature class S1")
    S2_m3sk: float | None = Field(default=None, description="Mature class S2")
    G1_m3sk: float | None = Field(default=None, description="Thinning class G1")
    G2_m3sk: float | None = Field(default=None, description="Thinning class G2")
    K1_m3sk: float | None = Field(default=None, description="Young stand class K1")
    K2_m3sk: float | None = Field(default=None, description="Young stand class K2")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_volumes(cls, v: Any) -> float | None:
        return coerce_number(v)


class SpeciesShares(BaseModel):
    """Tree species composition in percent."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    gran_procent: float | None = Field(default=None, description="Spruce share (%)")
    tall_procent: float | None = Field(default=None, description="Pine share (%)")
    lov_procent: float | None = Field(
        default=None,
        alias="löv_procent",
        description="Broadleaf share (%)",
    )

    @field_validator("*", mode="before")
    @classmethod
    def coerce_percentages(cls, v: Any) -> float | None:
        return coerce_number(v)


class Buildings(BaseModel):
    """Buildings on the property."""

    model_config = ConfigDict(extra="allow")

    finns: bool | None = Field(default=None, description="Whether buildings exist")
    typer: list[str] | None = Field(
        default=None,
        description="Building type tags, e.g. bostad, ekonomibyggnad",
    )

    @field_validator("finns", mode="before")
    @classmethod
    def parse_flag(cls, v: Any) -> bool | None:
        """Accept Swedish and English yes/no strings."""
        if v is None or isinstance(v, bool):
            return v
        if isinstance(v, str):
            lower = v.lower().strip()
            if lower in ("ja", "yes", "true", "1"):
                return True
            if lower in ("nej", "no", "false", "0"):
                return False
        return None

    @field_validator("typer", mode="before")
    @classmethod
    def clean_types(cls, v: Any) -> list[str] | None:
        """Drop null entries from the tag list."""
        if v is None:
            return None
        if isinstance(v, str):
            return [v]
        if not isinstance(v, list):
            return None
        return [str(x) for x in v if x is not None]


_NUMERIC_FIELDS = (
    "areal_total_ha",
    "skogsmark_ha",
    "impediment_ha",
    "volym_total_m3sk",
    "volym_per_ha_m3sk",
    "medelalder_ar",
    "bonitet",
    "tillvaxt_m3sk_per_ar",
)

_CURRENCY_FIELDS = ("pris_forvantning_sek", "taxeringsvarde_sek")

_NESTED_FIELDS = ("huggningsklasser", "tradslag_andelar", "byggnader")


class PropertyRecord(BaseModel):
    """
    Normalized property attributes extracted from a prospectus.

    Every field is optional. Numeric fields are coerced once here, at the
    boundary, so the analyzers only ever see finite floats or None.
    Unknown keys returned by the extraction are kept as extras.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    # Identity
    fastighetsbeteckning: str | None = Field(
        default=None,
        validation_alias=AliasChoices("fastighetsbeteckning", "fastighet"),
        description="Property designation",
    )
    kommun: str | None = Field(default=None, description="Municipality")
    lage_beskrivning: str | None = Field(default=None, description="Location description")
    koordinater: str | None = Field(default=None, description="Coordinates as printed")

    # Area
    areal_total_ha: float | None = Field(default=None, description="Total area (ha)")
    skogsmark_ha: float | None = Field(default=None, description="Productive forest land (ha)")
    impediment_ha: float | None = Field(default=None, description="Unproductive land (ha)")

    # Standing volume and growth
    volym_total_m3sk: float | None = Field(default=None, description="Total standing volume (m3sk)")
    volym_per_ha_m3sk: float | None = Field(default=None, description="Standing volume per ha")
    medelalder_ar: float | None = Field(default=None, description="Mean stand age (years)")
    bonitet: float | None = Field(default=None, description="Site index (m3sk/ha/year)")
    tillvaxt_m3sk_per_ar: float | None = Field(default=None, description="Annual growth (m3sk/year)")

    # Harvest classes and species
    huggningsklass: str | None = Field(default=None, description="Harvest class summary text")
    huggningsklasser: HarvestClasses | None = Field(default=None)
    tradslag_andelar: SpeciesShares | None = Field(default=None)

    byggnader: Buildings | None = Field(default=None)

    # Economics
    pris_forvantning_sek: float | None = Field(default=None, description="Asking/expected price (SEK)")
    taxeringsvarde_sek: float | None = Field(default=None, description="Assessed tax value (SEK)")

    @field_validator(*_NUMERIC_FIELDS, mode="before")
    @classmethod
    def coerce_numeric(cls, v: Any) -> float | None:
        return coerce_number(v)

    @field_validator(*_CURRENCY_FIELDS, mode="before")
    @classmethod
    def coerce_currency(cls, v: Any) -> float | None:
        return parse_currency(v)

    @field_validator(*_NESTED_FIELDS, mode="before")
    @classmethod
    def drop_malformed_objects(cls, v: Any) -> Any:
        """Nested sections that are not objects are treated as missing."""
        if v is None or isinstance(v, (dict, BaseModel)):
            return v
        return None

    @field_validator("fastighetsbeteckning", "kommun", "lage_beskrivning", "koordinater", "huggningsklass", mode="before")
    @classmethod
    def stringify_text(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None


# =============================================================================
# Analysis Options
# =============================================================================


class AnalysisOptions(BaseModel):
    """
    Caller overrides for the assumptions used by the analyzers.

    Every value is coerced like the property record; anything absent or
    non-finite falls back to the documented default. The Swedish option
    names used by earlier clients (ränta, amort_tid, bench_ppm3, ...) are
    accepted as aliases.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    # Price per m3sk resolution
    price_per_m3sk: float | None = Field(default=None, description="General price per m3sk")
    default_price_per_m3sk: float | None = Field(
        default=350.0,
        description="Fallback price per m3sk; zero or negative disables it",
    )
    sawlog_price_per_m3sk: float | None = Field(default=None)
    pulpwood_price_per_m3sk: float | None = Field(default=None)
    sawlog_share_pct: float | None = Field(default=None)
    pulpwood_share_pct: float | None = Field(default=None)

    # Harvest taxation
    tax_rate: float = Field(default=0.30)
    skogskonto_share: float = Field(default=0.60)
    forest_deduction_share: float = Field(
        default=0.50,
        description="Forest deduction cap as a share of the expected price",
    )

    # Financing
    loan_amount: float | None = Field(default=None)
    loan_share: float = Field(default=1.0)
    interest_rate: float = Field(
        default=0.05,
        validation_alias=AliasChoices("interest_rate", "ränta"),
    )
    amortization_years: float = Field(
        default=30.0,
        validation_alias=AliasChoices("amortization_years", "amort_tid"),
    )

    # Interest distribution
    distribution_rate: float = Field(default=0.0862)
    business_tax_rate: float = Field(default=0.45)
    capital_tax_rate: float = Field(default=0.30)

    # Harvest plan
    thinning_share: float = Field(default=0.20)

    # Risk and value indicators
    low_volume_per_ha: float = Field(
        default=70.0,
        validation_alias=AliasChoices("low_volume_per_ha", "low_v_per_ha"),
    )
    high_broadleaf_pct: float = Field(
        default=30.0,
        validation_alias=AliasChoices("high_broadleaf_pct", "high_löv_pct"),
    )
    bench_price_per_m3sk: float = Field(
        default=350.0,
        validation_alias=AliasChoices("bench_price_per_m3sk", "bench_ppm3"),
    )
    bench_price_per_ha: float = Field(
        default=70000.0,
        validation_alias=AliasChoices("bench_price_per_ha", "bench_ppha"),
    )

    @field_validator("*", mode="before")
    @classmethod
    def coerce_or_default(cls, v: Any, info: ValidationInfo) -> Any:
        parsed = coerce_number(v)
        if parsed is None:
            return cls.model_fields[info.field_name].default
        return parsed


# =============================================================================
# Analyzer Results
# =============================================================================


class AnalyzerResult(BaseModel):
    """
    Outcome of a single analyzer.

    On success ``values`` holds the computed figures and ``assumptions`` the
    option values actually used. On failure ``error`` names what was missing.
    """

    ok: bool = Field(..., description="Whether the analyzer produced a result")
    error: str | None = Field(default=None, description="Error code when ok is false")
    values: dict[str, Any] = Field(default_factory=dict)
    assumptions: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def success(
        cls,
        values: dict[str, Any],
        assumptions: dict[str, Any] | None = None,
    ) -> "AnalyzerResult":
        return cls(ok=True, values=values, assumptions=assumptions or {})

    @classmethod
    def failure(cls, error: str) -> "AnalyzerResult":
        return cls(ok=False, error=error)


class SummaryResult(AnalyzerResult):
    """Combined output of the summary analyzer."""

    base_facts: dict[str, Any] = Field(..., description="Restated property facts")
    sections: dict[str, AnalyzerResult] = Field(
        ...,
        description="Results of the composed analyzers, by name",
    )


# =============================================================================
# API Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(default="1.0.0")
    message: str | None = Field(default=None)


class UploadResponse(BaseModel):
    """Response model for the upload endpoint."""

    ok: bool = Field(default=True)
    key: str = Field(..., description="Storage key of the uploaded PDF")
    size_bytes: int = Field(..., ge=0)


class ProcessRequest(BaseModel):
    """Request model for extracting and analyzing a stored prospectus."""

    key: str = Field(..., min_length=1, description="Storage key returned by /upload")
    analyses: list[Any] = Field(default_factory=list, description="Analyzer names to run")
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)
    model: str | None = Field(default=None, description="Override the completion model")
    slice_bytes: int | None = Field(
        default=None,
        description="Bytes of the PDF to send when no text is supplied",
    )
    text: str | None = Field(default=None, description="Text already extracted client side")
    pages: list[int] | None = Field(default=None, description="Pages holding the key figures")
    render_pages: bool = Field(
        default=False,
        description="Render the pages to images instead of sending a byte slice",
    )


class ProcessResponse(BaseModel):
    """Response model for the process endpoint."""

    ok: bool = Field(default=True)
    key: str
    model: str
    input_size_bytes: int = Field(..., ge=0)
    slice_bytes_used: int = Field(..., ge=0)
    partial: bool
    data: PropertyRecord
    analyses: dict[str, SummaryResult | AnalyzerResult] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    raw: str | None = Field(default=None, description="Raw model output")


class AnalyzeRequest(BaseModel):
    """Request model for running analyzers on an already extracted record."""

    base_data: PropertyRecord = Field(default_factory=PropertyRecord)
    analyses: list[Any] = Field(default_factory=list)
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


class AnalyzeResponse(BaseModel):
    """Response model for the analyze endpoint."""

    ok: bool = Field(default=True)
    analyses: dict[str, SummaryResult | AnalyzerResult] = Field(default_factory=dict)


class SummaryRequest(BaseModel):
    """Request model for the summary endpoint."""

    base_data: PropertyRecord = Field(default_factory=PropertyRecord)
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


class AnalyzerListResponse(BaseModel):
    """Registered analyzer names."""

    analyzers: list[str]
