"""Tests for analyzer registry and dispatch."""

import pytest

from app.skogsanalys.analysis import registry
from app.skogsanalys.analysis.registry import (
    ANALYZERS,
    ERROR_UNKNOWN_ANALYZER,
    AnalyzerName,
    list_analyzer_names,
    run_analyzer,
    run_analyzers,
    run_summary,
)
from app.skogsanalys.models import AnalyzerResult, PropertyRecord, SummaryResult


class TestRegistry:
    """Tests for the registered analyzer set."""

    def test_every_name_has_an_analyzer(self):
        assert set(ANALYZERS) == set(AnalyzerName)

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            ANALYZERS[AnalyzerName.RISK] = lambda record, options: None

    def test_list_names(self):
        names = list_analyzer_names()
        assert names[:6] == [
            "key_metrics",
            "initial_harvest_taxed",
            "loan_sustainability",
            "interest_distribution_positive",
            "cashflow_dscr",
            "summary",
        ]
        assert {"risk", "value_indicator", "harvest_plan", "cashflow_loan"} <= set(names)


class TestRunAnalyzer:
    """Tests for run_analyzer."""

    def test_known_analyzer(self, scenario_record):
        result = run_analyzer("key_metrics", scenario_record)
        assert result.ok is True
        assert result.values["price_per_ha"] == 42000

    def test_unknown_analyzer(self, scenario_record):
        result = run_analyzer("price_metrics", scenario_record)
        assert result.ok is False
        assert result.error == ERROR_UNKNOWN_ANALYZER

    def test_non_string_name(self, scenario_record):
        result = run_analyzer(42, scenario_record)
        assert result.ok is False
        assert result.error == ERROR_UNKNOWN_ANALYZER

    def test_summary_by_name(self, scenario_record):
        result = run_analyzer("summary", scenario_record)
        assert isinstance(result, SummaryResult)
        assert "cashflow_dscr" in result.sections

    def test_exception_becomes_failure(self, scenario_record, monkeypatch):
        """Test that an analyzer raising is reported, not propagated."""

        def broken(record, options):
            raise ZeroDivisionError("division by zero")

        patched = dict(ANALYZERS)
        patched[AnalyzerName.RISK] = broken
        monkeypatch.setattr(registry, "ANALYZERS", patched)

        result = run_analyzer("risk", scenario_record)
        assert result.ok is False
        assert result.error == "division by zero"


class TestRunAnalyzers:
    """Tests for run_analyzers."""

    def test_batch_isolation(self, scenario_record):
        """Test that an unknown name does not stop the rest of the batch."""
        results = run_analyzers(["unknown_name", "key_metrics"], scenario_record)
        assert results["unknown_name"].ok is False
        assert results["unknown_name"].error == ERROR_UNKNOWN_ANALYZER
        assert results["key_metrics"].ok is True

    def test_failure_does_not_stop_batch(self):
        record = PropertyRecord(skogsmark_ha=50, bonitet=5)
        results = run_analyzers(["initial_harvest_taxed", "cashflow_dscr"], record)
        assert results["initial_harvest_taxed"].ok is False
        assert results["cashflow_dscr"].ok is True

    def test_duplicates_run_once(self, scenario_record):
        results = run_analyzers(["risk", "risk"], scenario_record)
        assert list(results) == ["risk"]

    def test_non_string_names_are_unknown(self, scenario_record):
        """Test that non-string names fail individually under their string key."""
        results = run_analyzers([42, None, "risk"], scenario_record)
        assert list(results) == ["42", "None", "risk"]
        assert results["42"].error == ERROR_UNKNOWN_ANALYZER
        assert results["None"].error == ERROR_UNKNOWN_ANALYZER
        assert results["risk"].ok is True

    def test_empty_request(self, scenario_record):
        assert run_analyzers([], scenario_record) == {}


class TestRunSummary:
    """Tests for run_summary."""

    def test_default_options(self, scenario_record):
        result = run_summary(scenario_record)
        assert result.ok is True
        assert result.values["annual_income_sek"] == 87500

    def test_result_types(self, scenario_record):
        result = run_summary(scenario_record)
        assert all(isinstance(section, AnalyzerResult) for section in result.sections.values())
