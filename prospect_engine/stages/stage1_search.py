"""
Stage 1: Search-Grounded Resolution
===================================
Looks the name up on the web and decides company-vs-person from the kind of
professional-network pages that come back.

- Company page whose title is similar enough to the name -> company
- Only personal profile pages                            -> skip
- Anything else                                          -> unresolved

Search failures are treated as "no usable results".
"""

import logging
import re
from typing import Optional, List, Callable

from ..models.schemas import (
    ClassificationInput,
    ClassificationResult,
    ClassificationType,
    SearchGroundedEvidence,
    SearchResult,
)
from ..models.pipeline_config import ClassificationConfig
from ..pacing import CallPacer
from ..providers.search import SearchProvider
from ..search_strategy import GroundedSearch

logger = logging.getLogger(__name__)

_PLATFORM_SUFFIX_RE = re.compile(r"\s*[|–·-]\s*LinkedIn.*$", re.IGNORECASE)


def title_similarity(company_name: str, title: str) -> float:
    """
    Word-overlap (Jaccard) similarity between a name and a result title,
    after stripping the platform suffix from the title.
    """
    clean_title = _PLATFORM_SUFFIX_RE.sub("", title or "").strip()

    a_words = set(company_name.lower().split())
    b_words = set(clean_title.lower().split())
    if not a_words or not b_words:
        return 0.0

    union = a_words | b_words
    return len(a_words & b_words) / len(union)


class SearchGroundedStage:
    """
    Stage 1: Classify through professional-network page lookups.
    """

    def __init__(
        self,
        provider: Optional[SearchProvider],
        config: Optional[ClassificationConfig] = None,
        pacer: Optional[CallPacer] = None,
    ):
        self.config = config or ClassificationConfig()
        self.provider = provider
        self.pacer = pacer or CallPacer(self.config.search_delay_ms)
        self.search = (
            GroundedSearch(
                provider,
                network_domain=self.config.network_domain,
                min_score=self.config.min_search_score,
            )
            if provider is not None
            else None
        )

    @property
    def enabled(self) -> bool:
        return self.provider is not None and self.provider.is_configured()

    def process_all(
        self,
        items: List[ClassificationInput],
        on_item: Optional[Callable[[ClassificationInput, Optional[ClassificationResult]], None]] = None,
    ) -> List[ClassificationInput]:
        """
        Resolve what can be resolved; return the rest in input order.

        ``on_item`` is called after every item with its result (or None).
        """
        if not self.enabled:
            return list(items)

        unresolved = []
        for index, item in enumerate(items):
            result = self.process(item)
            if result is None:
                unresolved.append(item)
            if on_item:
                on_item(item, result)
            self.pacer.between(index, len(items))
        return unresolved

    def process(self, item: ClassificationInput) -> Optional[ClassificationResult]:
        """Classify one item; never raises"""
        if not self.enabled:
            return None

        try:
            results = self._lookup(item)
        except Exception as e:
            logger.warning(
                "Search lookup failed for %r, passing to next stage: %s",
                item.company_name[:100],
                e,
            )
            return None

        return self._decide(item.company_name.strip(), self.search.relevant(results))

    def _lookup(self, item: ClassificationInput) -> List[SearchResult]:
        name = item.company_name.strip()
        hint = f" {item.industry_hint}" if item.industry_hint else ""
        return self.search.gather(
            name,
            profile_url=item.profile_url,
            single_query=f'"{name}" company{hint}',
            single_domains=[self.config.network_domain],
            dual_max_results=self.config.search_max_results,
            single_max_results=self.config.search_max_results,
        )

    def _decide(self, company_name: str, results: List[SearchResult]) -> Optional[ClassificationResult]:
        company_pages = [r for r in results if self.config.company_path in r.url]
        profile_pages = [r for r in results if self.config.profile_path in r.url]

        if company_pages:
            best = max(company_pages, key=lambda r: title_similarity(company_name, r.title))
            similarity = title_similarity(company_name, best.title)

            if similarity >= self.config.title_similarity_threshold:
                return ClassificationResult(
                    type=ClassificationType.COMPANY,
                    reason=f"Company page found (similarity: {round(similarity * 100)}%)",
                    stage=1,
                    profile_url=best.url,
                    evidence=SearchGroundedEvidence(url=best.url, similarity=round(similarity, 4)),
                )

        if profile_pages and not company_pages:
            return ClassificationResult(
                type=ClassificationType.SKIP,
                reason="Only personal profiles found",
                stage=1,
                evidence=SearchGroundedEvidence(),
            )

        return None
