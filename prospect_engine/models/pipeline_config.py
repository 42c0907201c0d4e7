"""
Pipeline Configuration Models
"""

from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

from ..config.settings import (
    DEFAULT_CLASSIFICATION,
    DEFAULT_ENRICHMENT,
    DEFAULT_SCORING_WEIGHTS,
    DEFAULT_QUANTITATIVE_WEIGHT_PERCENT,
    NEUTRAL_SCORE,
    ICP_SCORE_MAPPING,
)


class ClassificationConfig(BaseModel):
    """Thresholds and pacing for the classification cascade"""
    search_delay_ms: int = Field(DEFAULT_CLASSIFICATION["search_delay_ms"], ge=0)
    min_search_score: float = Field(DEFAULT_CLASSIFICATION["min_search_score"], ge=0, le=1)
    search_max_results: int = Field(DEFAULT_CLASSIFICATION["search_max_results"], ge=1)
    title_similarity_threshold: float = Field(DEFAULT_CLASSIFICATION["title_similarity_threshold"], ge=0, le=1)
    network_domain: str = DEFAULT_CLASSIFICATION["network_domain"]
    company_path: str = DEFAULT_CLASSIFICATION["company_path"]
    profile_path: str = DEFAULT_CLASSIFICATION["profile_path"]
    llm_batch_size: int = Field(DEFAULT_CLASSIFICATION["llm_batch_size"], ge=1)
    llm_batch_delay_ms: int = Field(DEFAULT_CLASSIFICATION["llm_batch_delay_ms"], ge=0)
    confidence_threshold: float = Field(DEFAULT_CLASSIFICATION["confidence_threshold"], ge=0, le=1)
    llm_max_output_tokens: int = DEFAULT_CLASSIFICATION["llm_max_output_tokens"]


class EnrichmentConfig(BaseModel):
    """Limits for grounded and memory enrichment"""
    call_delay_ms: int = Field(DEFAULT_ENRICHMENT["call_delay_ms"], ge=0)
    stale_threshold_days: int = DEFAULT_ENRICHMENT["stale_threshold_days"]
    max_about_length: int = DEFAULT_ENRICHMENT["max_about_length"]
    max_specialties: int = DEFAULT_ENRICHMENT["max_specialties"]
    max_field_length: int = DEFAULT_ENRICHMENT["max_field_length"]
    max_employee_count_length: int = DEFAULT_ENRICHMENT["max_employee_count_length"]
    max_context_length: int = DEFAULT_ENRICHMENT["max_context_length"]
    min_context_length: int = DEFAULT_ENRICHMENT["min_context_length"]
    min_search_score: float = Field(DEFAULT_ENRICHMENT["min_search_score"], ge=0, le=1)
    network_domain: str = DEFAULT_ENRICHMENT["network_domain"]
    dual_search_max_results: int = DEFAULT_ENRICHMENT["dual_search_max_results"]
    broad_search_max_results: int = DEFAULT_ENRICHMENT["broad_search_max_results"]
    max_output_tokens: int = DEFAULT_ENRICHMENT["max_output_tokens"]


class ScoringWeights(BaseModel):
    """Nominal weights for the quantitative criteria"""
    employee: float = DEFAULT_SCORING_WEIGHTS["employee"]
    industry: float = DEFAULT_SCORING_WEIGHTS["industry"]
    specialties: float = DEFAULT_SCORING_WEIGHTS["specialties"]


class ScoringConfig(BaseModel):
    """Weights and band thresholds for ICP scoring"""
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    threshold_very_high: float = ICP_SCORE_MAPPING[0][0]
    threshold_high: float = ICP_SCORE_MAPPING[1][0]
    threshold_medium: float = ICP_SCORE_MAPPING[2][0]
    neutral_score: float = NEUTRAL_SCORE
    qualitative_max_output_tokens: int = 10


class IcpSettings(BaseModel):
    """User-level Ideal Customer Profile"""
    employee_min: Optional[int] = Field(None, ge=0)
    employee_max: Optional[int] = Field(None, ge=0)
    target_industries: List[str] = Field(default_factory=list)
    target_specialties: List[str] = Field(default_factory=list)
    description: str = ""
    quantitative_weight_percent: int = Field(DEFAULT_QUANTITATIVE_WEIGHT_PERCENT, ge=0, le=100)

    @model_validator(mode="after")
    def _drop_blank_targets(self):
        self.target_industries = [t for t in self.target_industries if t and t.strip()]
        self.target_specialties = [t for t in self.target_specialties if t and t.strip()]
        return self
