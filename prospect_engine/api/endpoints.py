"""
FastAPI Endpoints for the Prospect Engine
=========================================
Thin HTTP surface over classification, enrichment and ICP scoring.

Base URL: http://localhost:8000

Endpoints:
- GET  /                 - API info
- GET  /api/health       - Health check
- POST /api/classify     - Classify a batch of imported company strings
- POST /api/enrich       - Enrich one company
- POST /api/score        - Score one enriched company against an ICP
"""

from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables
load_dotenv()

from ..models.schemas import (
    ClassifyRequest,
    ClassificationBatchResult,
    EnrichRequest,
    EnrichmentResult,
    ScoreRequest,
    IcpScoreResult,
)
from ..engine import CompanyClassificationEngine, create_engine
from ..enrichment import EnrichmentEngine
from ..scoring import IcpScorer
from ..providers.search import create_search_provider
from ..providers.llm import create_text_generator


# =============================================================================
# FastAPI App Initialization
# =============================================================================

app = FastAPI(
    title="Prospect Engine API",
    description="""
## Company Resolution, Enrichment & ICP Scoring

### Features:
- **4-Stage Classification**: Deterministic → Search → LLM Batch → Fail Open
- **Grounded Enrichment**: Web-search context with LLM-memory fallback
- **ICP Scoring**: Quantitative formula blended with an LLM fit rating
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Provider & Engine Initialization
# =============================================================================

search_provider = create_search_provider()
text_generator = create_text_generator()

enrichment_engine = EnrichmentEngine(search_provider, text_generator)
icp_scorer = IcpScorer(text_generator)


def get_classification_engine() -> CompanyClassificationEngine:
    """A fresh engine per request; engines are not shared across batches"""
    return create_engine(search_provider, text_generator)


# =============================================================================
# Health & Info Endpoints
# =============================================================================

@app.get("/", tags=["Info"])
async def root():
    """API information and available endpoints"""
    return {
        "service": "Prospect Engine",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "Classify": "POST /api/classify",
            "Enrich": "POST /api/enrich",
            "Score": "POST /api/score",
            "Health": "GET /api/health",
        },
    }


@app.get("/api/health", tags=["Info"])
async def health_check():
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "service": "Prospect Engine",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "search_configured": search_provider is not None and search_provider.is_configured(),
        "llm_configured": text_generator.is_configured(),
    }


# =============================================================================
# Pipeline Endpoints
# =============================================================================

@app.post("/api/classify", response_model=ClassificationBatchResult, tags=["Classification"])
def classify(request: ClassifyRequest):
    """
    Classify every unique company name in the request.

    Results are keyed by normalized (trimmed, lowercased) name.
    """
    return get_classification_engine().classify_batch(request.inputs)


@app.post("/api/enrich", response_model=Optional[EnrichmentResult], tags=["Enrichment"])
def enrich(request: EnrichRequest):
    """
    Enrich one company. Returns null when no data could be found.
    """
    return enrichment_engine.enrich(
        request.company_name,
        profile_url=request.profile_url,
        industry_hint=request.industry_hint,
    )


@app.post("/api/score", response_model=IcpScoreResult, tags=["Scoring"])
def score(request: ScoreRequest):
    """
    Score an enriched company against an ICP, with the full audit trail.
    """
    return icp_scorer.evaluate(request.enrichment, request.icp_settings, label=request.label)
