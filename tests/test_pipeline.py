"""Tests for the enrich-and-score pipeline driver."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from conftest import FakeTextGenerator, make_input
from prospect_engine.engine import CompanyClassificationEngine
from prospect_engine.enrichment import EnrichmentEngine
from prospect_engine.models.pipeline_config import IcpSettings
from prospect_engine.models.schemas import (
    ClassificationType,
    CompanyEnrichmentData,
    CompanyRecord,
    EnrichmentSource,
    IcpScore,
)
from prospect_engine.pipeline import ProspectPipeline, create_pipeline
from prospect_engine.scoring import IcpScorer

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)

SOFTWARE_JSON = json.dumps({
    "employee_count": "51-200",
    "about": "Acme builds developer tools.",
    "industry": "Software Development",
    "specialties": ["devtools"],
})


def _pipeline(responses, enrichment_config):
    generator = FakeTextGenerator(responses)
    # Scoring without an LLM keeps the composite purely quantitative
    return ProspectPipeline(
        classifier=CompanyClassificationEngine(None, None, sleep=lambda s: None),
        enricher=EnrichmentEngine(None, generator, enrichment_config),
        scorer=IcpScorer(None),
    ), generator


@pytest.fixture
def software_icp():
    return IcpSettings(target_industries=["software"])


def test_enclosed_records_are_never_enriched(enrichment_config, software_icp):
    pipeline, generator = _pipeline([], enrichment_config)
    records = [CompanyRecord(name="Stealth", classification=ClassificationType.ENCLOSED)]

    summary = pipeline.enrich_and_score(records, software_icp, now=NOW)

    assert summary.skipped_enclosed == 1
    assert generator.calls == []
    assert records[0].enrichment is None


def test_stale_record_is_enriched_and_scored(enrichment_config, software_icp):
    pipeline, _ = _pipeline([SOFTWARE_JSON], enrichment_config)
    record = CompanyRecord(name="Acme", classification=ClassificationType.COMPANY)

    summary = pipeline.enrich_and_score([record], software_icp, now=NOW)

    assert summary.enriched == 1
    assert summary.scores["very_high"] == 1
    assert summary.promotable == ["Acme"]
    assert record.enrichment.industry == "Software Development"
    assert record.enrichment_source == EnrichmentSource.MEMORY
    assert record.enrichment_updated_at == NOW
    assert record.icp_score == IcpScore.VERY_HIGH


def test_fresh_record_with_score_is_left_alone(enrichment_config, software_icp):
    pipeline, generator = _pipeline([], enrichment_config)
    record = CompanyRecord(
        name="Acme",
        classification=ClassificationType.COMPANY,
        enrichment=CompanyEnrichmentData(industry="Software"),
        enrichment_updated_at=NOW - timedelta(days=3),
        icp_score=IcpScore.LOW,
    )

    summary = pipeline.enrich_and_score([record], software_icp, now=NOW)

    assert summary.skipped_fresh == 1
    assert summary.skipped_unchanged == 1
    assert record.icp_score == IcpScore.LOW
    assert generator.calls == []


def test_fresh_record_without_score_is_scored(enrichment_config, software_icp):
    pipeline, _ = _pipeline([], enrichment_config)
    record = CompanyRecord(
        name="Acme",
        classification=ClassificationType.COMPANY,
        enrichment=CompanyEnrichmentData(industry="Software"),
        enrichment_updated_at=NOW - timedelta(days=3),
    )

    summary = pipeline.enrich_and_score([record], software_icp, now=NOW)

    assert summary.skipped_fresh == 1
    assert summary.scores["very_high"] == 1
    assert record.icp_score == IcpScore.VERY_HIGH


def test_stale_enrichment_is_refreshed_and_rescored(enrichment_config, software_icp):
    pipeline, _ = _pipeline([SOFTWARE_JSON], enrichment_config)
    record = CompanyRecord(
        name="Acme",
        classification=ClassificationType.COMPANY,
        enrichment=CompanyEnrichmentData(industry="Healthcare"),
        enrichment_updated_at=NOW - timedelta(days=45),
        icp_score=IcpScore.LOW,
    )

    summary = pipeline.enrich_and_score([record], software_icp, now=NOW)

    assert summary.enriched == 1
    assert record.icp_score == IcpScore.VERY_HIGH


def test_failed_enrichment_is_counted(enrichment_config, software_icp):
    pipeline, _ = _pipeline(["{}"], enrichment_config)
    record = CompanyRecord(name="Obscure", classification=ClassificationType.COMPANY)

    summary = pipeline.enrich_and_score([record], software_icp, now=NOW)

    assert summary.failed == 1
    assert summary.not_scored == 1
    assert record.enrichment is None


def test_enricher_exception_is_counted_not_raised(enrichment_config, software_icp):
    enricher = MagicMock()
    enricher.enrich.side_effect = RuntimeError("database is locked")
    pipeline = ProspectPipeline(MagicMock(), enricher, IcpScorer(None))

    summary = pipeline.enrich_and_score(
        [CompanyRecord(name="Acme", classification=ClassificationType.COMPANY)],
        software_icp,
        now=NOW,
    )

    assert summary.failed == 1
    enricher.wait.assert_called_once()


def test_no_icp_settings_means_not_scored(enrichment_config):
    pipeline, _ = _pipeline([SOFTWARE_JSON], enrichment_config)
    record = CompanyRecord(name="Acme", classification=ClassificationType.COMPANY)

    summary = pipeline.enrich_and_score([record], None, now=NOW)

    assert summary.enriched == 1
    assert summary.not_scored == 1
    assert record.icp_score is None


def test_enrichment_without_industry_is_not_scored(enrichment_config, software_icp):
    pipeline, _ = _pipeline([json.dumps({"about": "We do things."})], enrichment_config)
    record = CompanyRecord(name="Acme", classification=ClassificationType.COMPANY)

    summary = pipeline.enrich_and_score([record], software_icp, now=NOW)

    assert summary.enriched == 1
    assert summary.not_scored == 1


def test_low_confidence_companies_are_not_promotable(enrichment_config, software_icp):
    pipeline, _ = _pipeline([SOFTWARE_JSON], enrichment_config)
    record = CompanyRecord(name="Acme", classification=ClassificationType.COMPANY, low_confidence=True)

    summary = pipeline.enrich_and_score([record], software_icp, now=NOW)

    assert summary.scores["very_high"] == 1
    assert summary.promotable == []


def test_enrichment_progress(enrichment_config, software_icp):
    pipeline, _ = _pipeline([SOFTWARE_JSON, SOFTWARE_JSON], enrichment_config)
    records = [
        CompanyRecord(name="Acme", classification=ClassificationType.COMPANY),
        CompanyRecord(name="Stealth", classification=ClassificationType.ENCLOSED),
        CompanyRecord(name="Globex", classification=ClassificationType.COMPANY),
    ]
    calls = []

    pipeline.enrich_and_score(records, software_icp, on_progress=lambda *args: calls.append(args), now=NOW)

    assert calls == [("enriching", 1, 2), ("enriching", 2, 2)]


# =============================================================================
# Classification phase
# =============================================================================

def test_build_records_drops_skips(enrichment_config):
    pipeline, _ = _pipeline([], enrichment_config)
    inputs = [
        make_input("Acme Inc", profile_url="https://linkedin.com/in/jane-doe"),
        make_input("ACME INC"),
        make_input("Self-employed"),
        make_input("Stealth"),
        make_input("Globex", industry_hint="energy"),
    ]
    calls = []

    classification = pipeline.classify_records(inputs, on_progress=lambda *args: calls.append(args))
    records = pipeline.build_records(inputs, classification)

    assert set(records) == {"acme inc", "stealth", "globex"}
    assert records["acme inc"].name == "Acme Inc"
    assert records["acme inc"].classification == ClassificationType.COMPANY
    assert records["stealth"].classification == ClassificationType.ENCLOSED
    assert records["globex"].low_confidence is True
    assert records["globex"].industry_hint == "energy"
    assert calls[-1] == ("classifying", 4, 4)


def test_create_pipeline_shares_providers():
    generator = FakeTextGenerator()

    pipeline = create_pipeline(None, generator)

    assert pipeline.classifier.stage2.generator is generator
    assert pipeline.enricher.generator is generator
    assert pipeline.scorer.generator is generator
    assert pipeline.enricher.search_enabled is False
