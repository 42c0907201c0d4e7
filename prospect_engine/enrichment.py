"""
Company Enrichment Engine
=========================
Fills in employee count, about text, industry and specialties for a
classified company.

Preferred path: web search results are assembled into a bounded context and
a language model extracts the four fields from it ("grounded").
Fallback path: the model answers from its own knowledge ("memory") and is
told to return an empty object for companies it does not know.

The engine is stateless across calls. Staleness of stored data is the
caller's concern; ``is_stale`` implements the usual 30-day check.
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import Optional, Any, Callable, Union

from .models.schemas import (
    CompanyEnrichmentData,
    EnrichmentResult,
    EnrichmentSource,
)
from .models.pipeline_config import EnrichmentConfig
from .pacing import CallPacer
from .providers.search import SearchProvider
from .providers.llm import TextGenerator, parse_json_response
from .search_strategy import GroundedSearch

logger = logging.getLogger(__name__)

MEMORY_SYSTEM_PROMPT = """You are a business data assistant. Given a company name, return structured data about that company as JSON.

Return ONLY a JSON object with these fields:
- "employee_count": string — approximate employee count range (e.g., "51-200", "1001-5000", "11-50"). Use LinkedIn-style ranges.
- "about": string — brief company description (max 300 characters)
- "industry": string — primary industry (e.g., "Software Development", "Financial Services", "Healthcare")
- "specialties": array of strings — up to 5 key specialties or focus areas

If you do not know the company or cannot provide reliable data, return an empty object: {}

Do NOT hallucinate or guess. Only return data you are confident about based on well-known companies.
Return ONLY valid JSON, no markdown fences, no explanation."""

GROUNDED_SYSTEM_PROMPT = """You are a business data assistant. Extract structured company data from the provided web search results.

Return ONLY a JSON object with these fields:
- "employee_count": string — employee count range from the search results (e.g., "51-200", "1001-5000", "11-50"). Use LinkedIn-style ranges.
- "about": string — company description synthesized from search results (max 300 characters)
- "industry": string — primary industry (e.g., "Software Development", "Financial Services", "Healthcare")
- "specialties": array of strings — up to 5 key specialties or focus areas

Extract ONLY from the provided search context. If the search results don't contain enough information for a field, leave it as empty string or empty array.
Return ONLY valid JSON, no markdown fences, no explanation."""


# =============================================================================
# Helpers
# =============================================================================

def sanitize_enrichment(
    obj: Any,
    config: Optional[EnrichmentConfig] = None,
) -> Optional[CompanyEnrichmentData]:
    """
    Coerce parsed model output into CompanyEnrichmentData.

    Wrong-typed fields become empty, long fields are truncated, and the
    specialties list is capped. Returns None when nothing usable remains.
    """
    config = config or EnrichmentConfig()
    if not isinstance(obj, dict) or not obj:
        return None

    def text(value: Any, limit: int) -> str:
        return value.strip()[:limit] if isinstance(value, str) else ""

    specialties = obj.get("specialties")
    if isinstance(specialties, list):
        specialties = [
            s.strip()[:config.max_field_length]
            for s in specialties
            if isinstance(s, str) and s.strip()
        ][:config.max_specialties]
    else:
        specialties = []

    data = CompanyEnrichmentData(
        employee_count=text(obj.get("employee_count"), config.max_employee_count_length),
        about=text(obj.get("about"), config.max_about_length),
        industry=text(obj.get("industry"), config.max_field_length),
        specialties=specialties,
    )
    return None if data.is_empty() else data


def is_stale(
    updated_at: Optional[Union[datetime, str]],
    now: Optional[datetime] = None,
    threshold_days: int = 30,
) -> bool:
    """True when enrichment is missing, unreadable or older than the threshold"""
    if not updated_at:
        return True

    if isinstance(updated_at, str):
        try:
            updated_at = datetime.fromisoformat(updated_at.replace("Z", "+00:00"))
        except ValueError:
            return True

    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    return now - updated_at > timedelta(days=threshold_days)


# =============================================================================
# Engine
# =============================================================================

class EnrichmentEngine:
    """
    Grounded enrichment with a parametric-memory fallback.
    """

    def __init__(
        self,
        search_provider: Optional[SearchProvider] = None,
        text_generator: Optional[TextGenerator] = None,
        config: Optional[EnrichmentConfig] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.config = config or EnrichmentConfig()
        self.search_provider = search_provider
        self.generator = text_generator
        self.pacer = CallPacer(self.config.call_delay_ms, sleep)
        self.search = (
            GroundedSearch(
                search_provider,
                network_domain=self.config.network_domain,
                min_score=self.config.min_search_score,
            )
            if search_provider is not None
            else None
        )

    @property
    def search_enabled(self) -> bool:
        return self.search_provider is not None and self.search_provider.is_configured()

    def enrich(
        self,
        company_name: str,
        profile_url: Optional[str] = None,
        industry_hint: Optional[str] = None,
    ) -> Optional[EnrichmentResult]:
        """
        Enrich one company.

        Args:
            company_name: Classified company name
            profile_url: Known professional-network page, selects the dual search
            industry_hint: Vertical used to disambiguate the search and memory prompt

        Returns:
            EnrichmentResult, or None when neither path produced data
        """
        if self.search_enabled:
            context = self.build_search_context(company_name, profile_url, industry_hint)
            if len(context) >= self.config.min_context_length:
                data = self._extract_from_context(company_name, context)
                if data:
                    return EnrichmentResult(data=data, source=EnrichmentSource.GROUNDED)

        data = self._enrich_from_memory(company_name, industry_hint)
        if data:
            return EnrichmentResult(data=data, source=EnrichmentSource.MEMORY)

        logger.info("No enrichment data for %r", company_name[:100])
        return None

    def is_stale(self, updated_at: Optional[Union[datetime, str]], now: Optional[datetime] = None) -> bool:
        return is_stale(updated_at, now=now, threshold_days=self.config.stale_threshold_days)

    def wait(self):
        """Pause between successive enrichment calls"""
        self.pacer.wait()

    # =========================================================================
    # Search context
    # =========================================================================

    def build_search_context(
        self,
        company_name: str,
        profile_url: Optional[str] = None,
        industry_hint: Optional[str] = None,
    ) -> str:
        """
        Concatenate relevant result titles and snippets within the character budget.
        Returns an empty string when search fails or nothing is relevant.
        """
        if not self.search_enabled:
            return ""

        strategy = "network" if profile_url else "broad"
        hint = f" {industry_hint}" if industry_hint else ""
        try:
            results = self.search.gather(
                company_name,
                profile_url=profile_url,
                single_query=f"{company_name}{hint} company about employees industry specialties",
                dual_max_results=self.config.dual_search_max_results,
                single_max_results=self.config.broad_search_max_results,
            )
        except Exception as e:
            logger.warning("Enrichment search failed for %r, falling back: %s", company_name[:100], e)
            return ""

        relevant = self.search.relevant(results)
        if not relevant:
            logger.debug(
                "No relevant search results for %r (total=%d, strategy=%s)",
                company_name[:100],
                len(results),
                strategy,
            )
            return ""

        context = ""
        for r in relevant:
            entry = f"{r.title}\n{r.content}\n\n"
            if len(context) + len(entry) > self.config.max_context_length:
                break
            context += entry

        logger.debug(
            "Search context built for %r (results=%d, length=%d, strategy=%s)",
            company_name[:100],
            len(relevant),
            len(context),
            strategy,
        )
        return context

    # =========================================================================
    # LLM extraction
    # =========================================================================

    def _extract_from_context(self, company_name: str, context: str) -> Optional[CompanyEnrichmentData]:
        """Extract enrichment data from search context"""
        prompt = f'Company: "{company_name}"\n\nSearch Results:\n{context}'
        data = self._generate_enrichment(GROUNDED_SYSTEM_PROMPT, prompt, company_name, "grounded")
        if not data:
            logger.debug("Grounded extraction returned no data for %r", company_name[:100])
        return data

    def _enrich_from_memory(self, company_name: str, industry_hint: Optional[str]) -> Optional[CompanyEnrichmentData]:
        """Enrich from the model's own knowledge"""
        hint = f"\nIndustry context: {industry_hint}" if industry_hint else ""
        prompt = f'Company name: "{company_name}"{hint}'
        data = self._generate_enrichment(MEMORY_SYSTEM_PROMPT, prompt, company_name, "memory")
        if not data:
            logger.debug("Memory enrichment returned no data for %r", company_name[:100])
        return data

    def _generate_enrichment(
        self,
        system: str,
        prompt: str,
        company_name: str,
        path: str,
    ) -> Optional[CompanyEnrichmentData]:
        if self.generator is None or not self.generator.is_configured():
            return None

        try:
            text = self.generator.generate(
                prompt,
                system=system,
                max_output_tokens=self.config.max_output_tokens,
            )
            parsed = parse_json_response(text, expected=dict)
        except Exception as e:
            logger.warning("%s enrichment failed for %r: %s", path.capitalize(), company_name[:100], e)
            return None

        return sanitize_enrichment(parsed, self.config)
