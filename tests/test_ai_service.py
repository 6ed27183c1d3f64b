"""Tests for AI extraction service functions."""

import json
from types import SimpleNamespace

import pytest
from PIL import Image

from app.skogsanalys.models import PropertyRecord
from app.skogsanalys.services.ai import (
    MOCK_PROPERTY_DATA,
    AIService,
    AIServiceError,
    ExtractionParseError,
)
from app.skogsanalys.services.ai.extraction import (
    IMAGES_PAYLOAD_INTRO,
    SLICE_PAYLOAD_INTRO,
    TEXT_PAYLOAD_INTRO,
    ExtractionPayload,
    build_system_prompt,
    build_user_content,
    extract_property,
    parse_extraction_response,
    recover_property_json,
    to_property_record,
)
from app.skogsanalys.services.ai.extraction_schema import property_record_schema
from app.skogsanalys.services.ai.validation import (
    check_record_consistency,
    evaluate_rule,
)


def _response(content):
    """Build an object shaped like a chat completion response."""
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeCompletions:
    """Records the request and returns a canned response."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.response


def _client(completions: FakeCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class TestPrompts:
    """Tests for prompt building."""

    def test_system_prompt_embeds_schema(self):
        prompt = build_system_prompt()
        assert "JSON_SCHEMA:" in prompt
        assert "volym_total_m3sk" in prompt
        assert "löv_procent" in prompt
        assert "Prefer figures from pages" not in prompt

    def test_system_prompt_page_hint(self):
        prompt = build_system_prompt([4, 5])
        assert "Prefer figures from pages: 4, 5." in prompt

    def test_schema_lists_record_fields(self):
        schema = property_record_schema()
        assert schema["type"] == "object"
        for name in ("fastighetsbeteckning", "skogsmark_ha", "huggningsklasser", "pris_forvantning_sek"):
            assert name in schema["properties"]


class TestUserContent:
    """Tests for payload selection."""

    def test_text_wins(self):
        image = Image.new("RGB", (10, 10))
        payload = ExtractionPayload(text=" Skogsmark 50 ha ", images=[image], pdf_base64="JVBERi0=")
        content = build_user_content(payload)
        assert content == f"{TEXT_PAYLOAD_INTRO}\n\nSkogsmark 50 ha"

    def test_images(self):
        payload = ExtractionPayload(images=[Image.new("RGB", (10, 10))], pdf_base64="JVBERi0=")
        content = build_user_content(payload)
        assert content[0] == {"type": "text", "text": IMAGES_PAYLOAD_INTRO}
        assert content[1]["image_url"]["url"].startswith("data:image/png;base64,")

    def test_pdf_slice(self):
        content = build_user_content(ExtractionPayload(pdf_base64="JVBERi0="))
        assert content.startswith(SLICE_PAYLOAD_INTRO)
        assert content.endswith("JVBERi0=")

    def test_blank_text_falls_through(self):
        content = build_user_content(ExtractionPayload(text="   ", pdf_base64="JVBERi0="))
        assert content.startswith(SLICE_PAYLOAD_INTRO)

    def test_empty_payload_raises(self):
        with pytest.raises(AIServiceError):
            build_user_content(ExtractionPayload())


class TestParseResponse:
    """Tests for locating the property JSON in a response."""

    def test_plain_json_content(self):
        data, raw = parse_extraction_response(_response('{"skogsmark_ha": 50}'))
        assert data == {"skogsmark_ha": 50}
        assert raw == '{"skogsmark_ha": 50}'

    def test_recovery_from_serialized_response(self):
        """Test finding the escaped object when the content is not usable JSON."""
        inner = json.dumps({"fastighetsbeteckning": "Skogen 1:2", "skogsmark_ha": 50})
        response = {"output": [{"text": inner}], "choices": []}
        data, _ = parse_extraction_response(response)
        assert data["fastighetsbeteckning"] == "Skogen 1:2"
        assert data["skogsmark_ha"] == 50

    def test_nothing_found_raises(self):
        with pytest.raises(ExtractionParseError):
            parse_extraction_response(_response("I could not read the document."))

    def test_recover_property_json(self):
        raw = json.dumps({"text": json.dumps({"fastighet": "Ås 3:1", "bonitet": 6})})
        assert recover_property_json(raw) == {"fastighet": "Ås 3:1", "bonitet": 6}

    def test_recover_without_marker(self):
        assert recover_property_json('{"foo": "bar"}') is None

    def test_unwraps_schema_shaped_answer(self):
        record = to_property_record({"type": "object", "properties": {"skogsmark_ha": "50"}})
        assert record.skogsmark_ha == 50


class TestConsistency:
    """Tests for consistency warnings."""

    def test_consistent_record(self):
        record = PropertyRecord.model_validate(MOCK_PROPERTY_DATA)
        assert check_record_consistency(record) == []

    def test_volume_mismatch(self):
        record = PropertyRecord(volym_total_m3sk=9000, skogsmark_ha=50, volym_per_ha_m3sk=120)
        warnings = check_record_consistency(record)
        assert any("Inconsistent figures" in w for w in warnings)

    def test_rounding_within_tolerance(self):
        record = PropertyRecord(volym_total_m3sk=6100, skogsmark_ha=50, volym_per_ha_m3sk=120)
        assert check_record_consistency(record) == []

    def test_percentages(self):
        record = PropertyRecord.model_validate(
            {"tradslag_andelar": {"gran_procent": 120, "tall_procent": 10, "löv_procent": 5}}
        )
        warnings = check_record_consistency(record)
        assert any("Percentage out of range: gran_procent" in w for w in warnings)
        assert any("Inconsistent figures" in w for w in warnings)

    def test_productive_area_exceeds_total(self):
        record = PropertyRecord(areal_total_ha=40, skogsmark_ha=50)
        warnings = check_record_consistency(record)
        assert any("exceeds total area" in w for w in warnings)

    def test_rule_with_missing_field_passes(self):
        success, message = evaluate_rule("a == b * c", {"a": 1.0, "b": 2.0})
        assert success is True
        assert "Skipped" in message


class TestExtractProperty:
    """Tests for the extraction call."""

    @pytest.mark.asyncio
    async def test_request_and_parsing(self):
        completions = FakeCompletions(_response(json.dumps({"skogsmark_ha": "50", "bonitet": 5})))
        outcome = await extract_property(
            ExtractionPayload(text="Skogsmark 50 ha"),
            client=_client(completions),
            model="gpt-test",
            max_output_tokens=500,
        )

        assert outcome.record.skogsmark_ha == 50
        assert outcome.record.bonitet == 5
        assert completions.kwargs["model"] == "gpt-test"
        assert completions.kwargs["response_format"] == {"type": "json_object"}
        assert completions.kwargs["temperature"] == 0
        assert completions.kwargs["max_tokens"] == 500
        assert completions.kwargs["messages"][0]["role"] == "system"

    @pytest.mark.asyncio
    async def test_request_failure(self):
        completions = FakeCompletions(error=RuntimeError("rate limited"))
        with pytest.raises(AIServiceError) as exc_info:
            await extract_property(ExtractionPayload(text="x"), client=_client(completions))
        assert "rate limited" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_warnings_are_returned(self):
        data = {"volym_total_m3sk": 9000, "skogsmark_ha": 50, "volym_per_ha_m3sk": 120}
        completions = FakeCompletions(_response(json.dumps(data)))
        outcome = await extract_property(ExtractionPayload(text="x"), client=_client(completions))
        assert len(outcome.warnings) == 1


class TestAIServiceMock:
    """Tests for AI service in mock mode."""

    def test_mock_mode_enabled_without_api_key(self):
        """Test that mock mode is enabled without API key."""
        service = AIService(api_key="", use_mock=False)
        assert service.use_mock is True

    def test_mock_mode_enabled_explicitly(self):
        service = AIService(api_key="fake-key", use_mock=True)
        assert service.use_mock is True

    def test_client_requires_key(self):
        service = AIService(api_key="")
        with pytest.raises(AIServiceError):
            service.client

    @pytest.mark.asyncio
    async def test_extract_property_mock(self):
        service = AIService(use_mock=True)
        outcome = await service.extract_property(ExtractionPayload(text="anything"))

        assert outcome.record.fastighetsbeteckning == "MOCK SKOGEN 1:1"
        assert outcome.record.skogsmark_ha == 50
        assert outcome.record.tradslag_andelar.lov_procent == 10
        assert outcome.warnings == []
        assert json.loads(outcome.raw)["volym_total_m3sk"] == 6000
