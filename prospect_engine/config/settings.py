"""
Configuration settings for the Prospect Engine
"""

import os

# =============================================================================
# LLM CONFIGURATION
# =============================================================================

LLM_API_KEY_ENV = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "openai": "OPENAI_API_KEY",
}

_LLM_PROVIDER = os.getenv("LLM_PROVIDER", "anthropic")  # openrouter, openai, anthropic

LLM_CONFIG = {
    "provider": _LLM_PROVIDER,
    "model": os.getenv("LLM_MODEL", "claude-haiku-4-5-20251001"),
    "api_key": os.getenv(LLM_API_KEY_ENV.get(_LLM_PROVIDER, "ANTHROPIC_API_KEY"), ""),
    "base_url": os.getenv("LLM_BASE_URL", "https://openrouter.ai/api/v1"),
    # OpenRouter specific headers
    "site_url": os.getenv("OPENROUTER_SITE_URL", "http://localhost:8000"),
    "app_name": os.getenv("OPENROUTER_APP_NAME", "Prospect Engine"),
}

# =============================================================================
# SEARCH CONFIGURATION (Tavily)
# =============================================================================

SEARCH_CONFIG = {
    "api_key": os.getenv("TAVILY_API_KEY", ""),
    "max_results_cap": 20,
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# =============================================================================
# CLASSIFICATION LEXICONS
# =============================================================================

ENCLOSED_PATTERNS = [
    "stealth", "confidential", "building", "coming soon", "stealth mode",
    "tbd", "undisclosed", "pre-launch", "secret", "stealth startup",
]

NON_COMPANY_PATTERNS = [
    "none", "self-employed", "freelance", "freelancer", "independent",
    "retired", "student", "unemployed", "n/a", "na", "-", ".", "--",
    "looking for opportunities", "open to work", "between roles",
]

COMPANY_SUFFIXES = [
    "inc", "corp", "corporation", "ltd", "llc", "llp", "co", "company",
    "group", "holdings", "partners", "technologies", "solutions", "systems",
    "services", "labs", "studio", "studios", "agency", "consulting",
    "ventures", "capital", "media", "digital", "global", "international",
    "foundation", "institute", "university", "hospital", "bank",
]

COUNTRY_NAMES = [
    "israel", "united states", "united kingdom", "germany", "france",
    "canada", "australia", "india", "china", "japan", "brazil",
    "spain", "italy", "netherlands", "sweden", "norway", "denmark",
    "finland", "switzerland", "austria", "belgium", "portugal",
    "ireland", "new zealand", "singapore", "south korea", "mexico",
    "argentina", "colombia", "chile", "poland", "czech republic",
    "romania", "hungary", "greece", "turkey", "thailand", "vietnam",
    "philippines", "indonesia", "malaysia", "taiwan", "hong kong",
]

# =============================================================================
# DEFAULT CLASSIFICATION THRESHOLDS
# =============================================================================

DEFAULT_CLASSIFICATION = {
    "search_delay_ms": 200,
    "min_search_score": 0.4,
    "search_max_results": 3,
    "title_similarity_threshold": 0.6,
    "network_domain": "linkedin.com",
    "company_path": "/company/",
    "profile_path": "/in/",
    "llm_batch_size": 15,
    "llm_batch_delay_ms": 500,
    "confidence_threshold": 0.7,
    "llm_max_output_tokens": 1000,
}

# =============================================================================
# DEFAULT ENRICHMENT LIMITS
# =============================================================================

DEFAULT_ENRICHMENT = {
    "call_delay_ms": 500,
    "stale_threshold_days": 30,
    "max_about_length": 300,
    "max_specialties": 5,
    "max_field_length": 100,
    "max_employee_count_length": 50,
    "max_context_length": 2000,
    "min_context_length": 50,
    "min_search_score": 0.4,
    "network_domain": "linkedin.com",
    "dual_search_max_results": 3,
    "broad_search_max_results": 5,
    "max_output_tokens": 500,
}

# =============================================================================
# DEFAULT SCORING WEIGHTS
# =============================================================================

DEFAULT_SCORING_WEIGHTS = {
    "employee": 0.40,
    "industry": 0.35,
    "specialties": 0.25,
}

DEFAULT_QUANTITATIVE_WEIGHT_PERCENT = 40
NEUTRAL_SCORE = 0.5

# =============================================================================
# ICP BAND MAPPING
# =============================================================================

ICP_SCORE_MAPPING = [
    (0.75, "very_high"),
    (0.50, "high"),
    (0.25, "medium"),
]
