"""
Pydantic schemas for the Prospect Engine
"""

from enum import Enum
from typing import List, Dict, Optional, Any, Union, Literal
from pydantic import BaseModel, Field
from datetime import datetime

from .pipeline_config import IcpSettings


# =============================================================================
# ENUMS
# =============================================================================

class ClassificationType(str, Enum):
    """Coarse label assigned to an imported company string"""
    COMPANY = "company"
    ENCLOSED = "enclosed"
    SKIP = "skip"


class EnrichmentSource(str, Enum):
    """Where enrichment data came from"""
    GROUNDED = "grounded"
    MEMORY = "memory"
    LINKEDIN_SCRAPE = "linkedin_scrape"


class IcpScore(str, Enum):
    """Ordinal ICP fit band"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


# =============================================================================
# CLASSIFICATION SCHEMAS
# =============================================================================

def normalize_company_key(name: str) -> str:
    """Normalized key used for deduplication and result lookup"""
    return (name or "").strip().lower()


class ClassificationInput(BaseModel):
    """Raw record from one imported connection"""
    company_name: str
    first_name: str = ""
    last_name: str = ""
    position: str = ""
    profile_url: Optional[str] = None
    industry_hint: Optional[str] = None

    @property
    def key(self) -> str:
        return normalize_company_key(self.company_name)


class DeterministicEvidence(BaseModel):
    kind: Literal["deterministic"] = "deterministic"
    rule: str


class SearchGroundedEvidence(BaseModel):
    kind: Literal["search_grounded"] = "search_grounded"
    url: str = ""
    similarity: Optional[float] = None


class ModelBatchEvidence(BaseModel):
    kind: Literal["model_batch"] = "model_batch"
    label: str
    confidence: float


class FailOpenEvidence(BaseModel):
    kind: Literal["fail_open"] = "fail_open"


Evidence = Union[
    DeterministicEvidence,
    SearchGroundedEvidence,
    ModelBatchEvidence,
    FailOpenEvidence,
]


class ClassificationResult(BaseModel):
    """Outcome for one normalized company name"""
    type: ClassificationType
    reason: str
    stage: Literal[0, 1, 2, 3]
    low_confidence: bool = False
    profile_url: Optional[str] = None
    evidence: Evidence = Field(discriminator="kind")


class ClassificationBatchResult(BaseModel):
    """Result of one orchestrator invocation"""
    results: Dict[str, ClassificationResult] = Field(default_factory=dict)
    stage_counts: Dict[str, int] = Field(default_factory=dict)
    total: int = 0
    processing_time_ms: float = 0


# =============================================================================
# SEARCH SCHEMAS
# =============================================================================

class SearchResult(BaseModel):
    """A single web-search hit"""
    title: str = ""
    url: str = ""
    content: str = ""
    score: float = 0.0


# =============================================================================
# ENRICHMENT SCHEMAS
# =============================================================================

class CompanyEnrichmentData(BaseModel):
    """Structured company attributes; every field may be empty"""
    employee_count: str = ""
    about: str = ""
    industry: str = ""
    specialties: List[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.employee_count or self.about or self.industry or self.specialties)


class EnrichmentResult(BaseModel):
    """Enrichment data together with its provenance"""
    data: CompanyEnrichmentData
    source: EnrichmentSource


# =============================================================================
# SCORING SCHEMAS
# =============================================================================

NOT_APPLICABLE = -1.0


class SubScore(BaseModel):
    """One quantitative criterion with the inputs that produced it"""
    name: str
    score: float
    applicable: bool
    reason: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ScoringAudit(BaseModel):
    """Everything needed to reconstruct an ICP decision"""
    label: str
    employee: SubScore
    industry: SubScore
    specialties: SubScore
    active_weights: Dict[str, float] = Field(default_factory=dict)
    quantitative: float
    quantitative_formula: str
    qualitative: Optional[float] = None
    qualitative_raw: Optional[str] = None
    has_qualitative: bool = False
    quantitative_weight_percent: int
    composite: float
    composite_formula: str
    thresholds: str
    score: IcpScore


class IcpScoreResult(BaseModel):
    """Band plus audit trail"""
    score: IcpScore
    composite: float
    audit: ScoringAudit
    processing_time_ms: float = 0


# =============================================================================
# PIPELINE SCHEMAS
# =============================================================================

class CompanyRecord(BaseModel):
    """Caller-owned company record carried between pipeline phases"""
    name: str
    classification: Optional[ClassificationType] = None
    low_confidence: bool = False
    profile_url: Optional[str] = None
    industry_hint: Optional[str] = None
    enrichment: Optional[CompanyEnrichmentData] = None
    enrichment_source: Optional[EnrichmentSource] = None
    enrichment_updated_at: Optional[datetime] = None
    icp_score: Optional[IcpScore] = None


class PipelineSummary(BaseModel):
    """Counts from one enrich-and-score run"""
    enriched: int = 0
    skipped_fresh: int = 0
    skipped_enclosed: int = 0
    failed: int = 0
    scores: Dict[str, int] = Field(
        default_factory=lambda: {score.value: 0 for score in IcpScore}
    )
    not_scored: int = 0
    skipped_unchanged: int = 0
    promotable: List[str] = Field(default_factory=list)
    processing_time_ms: float = 0


# =============================================================================
# API REQUEST SCHEMAS
# =============================================================================

class ClassifyRequest(BaseModel):
    """Request to classify a batch of imported company strings"""
    inputs: List[ClassificationInput]


class EnrichRequest(BaseModel):
    """Request to enrich one company"""
    company_name: str
    profile_url: Optional[str] = None
    industry_hint: Optional[str] = None


class ScoreRequest(BaseModel):
    """Request to score one enriched company"""
    enrichment: CompanyEnrichmentData
    icp_settings: IcpSettings = Field(default_factory=IcpSettings)
    label: Optional[str] = None
