"""
Property data extraction from forest prospectuses.

Builds the extraction prompt around the property record JSON Schema, sends
either client-extracted text, a base64 slice of the PDF or rendered page
images to OpenAI, and parses the JSON that comes back.
"""

import base64
import io
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from PIL import Image
from pydantic import ValidationError

from ...models import PropertyRecord
from .exceptions import AIServiceError, ExtractionParseError
from .extraction_schema import property_record_schema
from .validation import check_record_consistency

logger = logging.getLogger(__name__)


# =============================================================================
# Prompts
# =============================================================================

EXTRACTION_SYSTEM_PROMPT = """You are an extractor for Swedish forest property prospectuses (skogsprospekt).
Return ONLY valid JSON matching the JSON Schema below. Use null where a value is not stated.
No explanations, no markdown blocks, no extra commentary.

## Rules:
1. Numbers must be plain JSON numbers: no units, no thousands separators.
2. Volumes are in m3sk (skogskubikmeter), areas in hectares, prices in SEK.
3. Do not calculate values that the document does not state, except summing
   a table row when the total is printed next to it.
4. DO NOT HALLUCINATE. Missing means null."""

FOCUS_HINT = """FOCUS ON SECTIONS AND TABLES WITH:
- "Sammanställning över fastigheten" (and the 1-2 pages after it),
- virkesförråd (m3sk), m3sk/ha, bonitet (m3sk/ha/år), tillväxt,
- huggningsklasser (S1, S2, G1, G2, K1, K2) in m3sk,
- area breakdown (skogsmark, inägomark, impediment),
- prisidé/prisförväntan (SEK), taxeringsvärde (SEK),
- buildings (byggnader), if any.
IGNORE body text, photos, maps and viewing information."""

TEXT_PAYLOAD_INTRO = "This is text extracted from a Swedish forest prospectus (PDF)."
SLICE_PAYLOAD_INTRO = (
    "This is a base64 slice of a Swedish forest prospectus (PDF). "
    "Focus on tables and summaries according to the schema."
)
IMAGES_PAYLOAD_INTRO = "These are rendered pages of a Swedish forest prospectus (PDF)."

# The escaped property object inside a serialized API response
_INNER_OBJECT_START = re.compile(r'\{\\"(?:fastighetsbeteckning|fastighet)\\"')


@dataclass
class ExtractionPayload:
    """What to send to the model. Text wins over images, images over the byte slice."""

    text: str | None = None
    pdf_base64: str | None = None
    images: list[Image.Image] | None = None
    pages: list[int] | None = None


@dataclass
class ExtractionOutcome:
    """Parsed extraction with the raw model output and consistency warnings."""

    record: PropertyRecord
    raw: str
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# Prompt building
# =============================================================================


def _image_to_base64(image: Image.Image) -> str:
    """Convert PIL Image to base64 string for API."""
    buffer = io.BytesIO()
    # Resize if too large (max 2048px on longest side for efficiency)
    max_size = 2048
    if max(image.size) > max_size:
        ratio = max_size / max(image.size)
        new_size = (int(image.size[0] * ratio), int(image.size[1] * ratio))
        image = image.resize(new_size, Image.Resampling.LANCZOS)

    image.save(buffer, format="PNG", optimize=True)
    buffer.seek(0)
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


def build_system_prompt(pages: list[int] | None = None) -> str:
    """System prompt with the JSON Schema and focus instructions embedded."""
    schema_str = json.dumps(property_record_schema(), ensure_ascii=False)
    instructions = FOCUS_HINT
    if pages:
        page_list = ", ".join(str(p) for p in pages)
        instructions += f"\nPrefer figures from pages: {page_list}."

    return (
        f"{EXTRACTION_SYSTEM_PROMPT}\n\n"
        f"JSON_SCHEMA:\n{schema_str}\n\n"
        f"INSTRUCTIONS:\n{instructions}"
    )


def build_user_content(payload: ExtractionPayload) -> str | list[dict[str, Any]]:
    """
    Build the user message for the chosen payload.

    Raises:
        AIServiceError: If the payload carries nothing to extract from.
    """
    if payload.text and payload.text.strip():
        return f"{TEXT_PAYLOAD_INTRO}\n\n{payload.text.strip()}"

    if payload.images:
        content: list[dict[str, Any]] = [{"type": "text", "text": IMAGES_PAYLOAD_INTRO}]
        for image in payload.images:
            content.append({
                "type": "image_url",
                "image_url": {
                    "url": f"data:image/png;base64,{_image_to_base64(image)}",
                    "detail": "high",
                },
            })
        return content

    if payload.pdf_base64:
        return f"{SLICE_PAYLOAD_INTRO}\n\nPDF_base64:\n{payload.pdf_base64}"

    raise AIServiceError("Nothing to extract from: no text, images or PDF data")


# =============================================================================
# Response parsing
# =============================================================================


def _message_content(response: Any) -> str | None:
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError):
        return None
    return content if isinstance(content, str) else None


def _serialize_response(response: Any) -> str:
    """Stringify the whole API response for the recovery scan."""
    if hasattr(response, "model_dump_json"):
        return response.model_dump_json()
    return json.dumps(
        response,
        default=lambda o: getattr(o, "__dict__", str(o)),
        ensure_ascii=False,
    )


def recover_property_json(raw: str) -> dict[str, Any] | None:
    """
    Find the escaped property object inside a serialized response.

    Looks for ``{\\"fastighet...`` in the raw text, unescapes the enclosing
    JSON string and decodes the first complete object from it.
    """
    match = _INNER_OBJECT_START.search(raw)
    if not match:
        return None

    # Walk to the closing quote of the enclosing JSON string
    start = match.start()
    end = start
    while end < len(raw):
        char = raw[end]
        if char == "\\":
            end += 2
            continue
        if char == '"':
            break
        end += 1

    try:
        inner = json.loads(f'"{raw[start:end]}"')
        obj, _ = json.JSONDecoder().raw_decode(inner)
    except (json.JSONDecodeError, ValueError):
        logger.warning("Recovery found a property object but could not decode it")
        return None

    return obj if isinstance(obj, dict) else None


def parse_extraction_response(response: Any) -> tuple[dict[str, Any], str]:
    """
    Locate the property JSON in an API response.

    Returns:
        Tuple of (data, raw) where raw is the text the data came from.

    Raises:
        ExtractionParseError: If no JSON object can be found.
    """
    content = _message_content(response)
    if content:
        try:
            data = json.loads(content)
            if isinstance(data, dict):
                return data, content
        except json.JSONDecodeError:
            logger.warning("Extraction content is not valid JSON: %s", content[:300])

    raw = _serialize_response(response)
    recovered = recover_property_json(raw)
    if recovered is not None:
        logger.info("Recovered property JSON from raw response")
        return recovered, content or raw

    raise ExtractionParseError("Could not find property JSON in extraction response")


def to_property_record(data: dict[str, Any]) -> PropertyRecord:
    """Validate extracted data into a PropertyRecord."""
    # Some models wrap the object, mirroring the schema layout
    if "properties" in data and isinstance(data["properties"], dict) and "type" in data:
        data = data["properties"]
    try:
        return PropertyRecord.model_validate(data)
    except ValidationError as e:
        raise ExtractionParseError(f"Extracted data does not match the property record: {e}") from e


# =============================================================================
# Main extraction function
# =============================================================================


async def extract_property(
    payload: ExtractionPayload,
    client: Any,  # OpenAI client
    model: str = "gpt-4.1-mini",
    max_output_tokens: int = 1200,
    use_mock: bool = False,
    get_mock_response: Callable[[], dict[str, Any]] | None = None,
) -> ExtractionOutcome:
    """
    Extract a property record from a prospectus.

    Args:
        payload: Text, PDF slice or page images to extract from.
        client: OpenAI client instance.
        model: Model name to use.
        max_output_tokens: Cap on the completion length.
        use_mock: If True, return mock data instead of calling OpenAI.
        get_mock_response: Function returning mock extracted data.

    Returns:
        ExtractionOutcome with the validated record.

    Raises:
        AIServiceError: If the call fails or the response has no usable JSON.
    """
    if use_mock and get_mock_response:
        logger.info("Extracting property data (MOCK MODE)")
        data = get_mock_response()
        raw = json.dumps(data, ensure_ascii=False)
    else:
        messages = [
            {"role": "system", "content": build_system_prompt(payload.pages)},
            {"role": "user", "content": build_user_content(payload)},
        ]
        logger.info(
            "Extracting property data with %s (text=%s, images=%d, slice=%s)",
            model,
            bool(payload.text),
            len(payload.images or []),
            bool(payload.pdf_base64),
        )
        try:
            response = client.chat.completions.create(
                model=model,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=0,
                max_tokens=max_output_tokens,
            )
        except Exception as e:
            logger.exception("Extraction request failed")
            raise AIServiceError(f"Extraction request failed: {e}") from e

        data, raw = parse_extraction_response(response)

    record = to_property_record(data)
    warnings = check_record_consistency(record)
    for warning in warnings:
        logger.warning("Extracted record: %s", warning)

    return ExtractionOutcome(record=record, raw=raw, warnings=warnings)
