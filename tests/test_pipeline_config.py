"""Tests for configuration validation."""

import pytest
from pydantic import ValidationError

from prospect_engine.models.pipeline_config import ClassificationConfig, EnrichmentConfig


@pytest.mark.parametrize(
    "field",
    ["confidence_threshold", "title_similarity_threshold", "min_search_score"],
)
@pytest.mark.parametrize("value", [-0.1, 1.5])
def test_classification_thresholds_must_be_fractions(field, value):
    with pytest.raises(ValidationError):
        ClassificationConfig(**{field: value})


def test_classification_threshold_bounds_are_inclusive():
    config = ClassificationConfig(confidence_threshold=1.0, title_similarity_threshold=0.0, min_search_score=1)

    assert config.confidence_threshold == 1.0
    assert config.title_similarity_threshold == 0.0


def test_enrichment_min_search_score_is_bounded():
    with pytest.raises(ValidationError):
        EnrichmentConfig(min_search_score=2)


def test_defaults():
    config = ClassificationConfig()

    assert config.confidence_threshold == 0.7
    assert config.title_similarity_threshold == 0.6
    assert config.llm_batch_size == 15
