"""
Grounded search strategy shared by stage-1 classification and enrichment.

Strategy A (profile URL known): a professional-network search and a general
search run concurrently, results merged network-first.
Strategy B (no URL): a single query, optionally seasoned with an industry hint.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

from .exceptions import ProviderUnavailableError
from .models.schemas import SearchResult
from .providers.search import SearchProvider

logger = logging.getLogger(__name__)


class GroundedSearch:
    """
    Issues the dual or single search for a company name.
    """

    def __init__(
        self,
        provider: SearchProvider,
        network_domain: str = "linkedin.com",
        min_score: float = 0.4,
    ):
        self.provider = provider
        self.network_domain = network_domain
        self.min_score = min_score

    def gather(
        self,
        company_name: str,
        profile_url: Optional[str] = None,
        single_query: Optional[str] = None,
        single_domains: Optional[List[str]] = None,
        dual_max_results: int = 3,
        single_max_results: int = 5,
    ) -> List[SearchResult]:
        """
        Run the strategy selected by ``profile_url``.

        Raises:
            ProviderUnavailableError: every constituent search failed
        """
        if profile_url:
            return self._search_dual(company_name, dual_max_results)

        query = single_query or f"{company_name} company about employees industry specialties"
        return self.provider.search(
            query,
            include_domains=single_domains,
            max_results=single_max_results,
        )

    def relevant(self, results: List[SearchResult]) -> List[SearchResult]:
        """Drop results below the relevance threshold"""
        return [r for r in results if r.score >= self.min_score]

    def _search_dual(self, company_name: str, max_results: int) -> List[SearchResult]:
        calls = [
            (
                "network",
                company_name,
                {"include_domains": [self.network_domain]},
            ),
            (
                "general",
                f"{company_name} company about employees industry",
                {"exclude_domains": [self.network_domain]},
            ),
        ]

        outcomes: List[Tuple[str, Optional[List[SearchResult]], Optional[Exception]]] = []
        with ThreadPoolExecutor(max_workers=2) as executor:
            futures = [
                (label, executor.submit(self.provider.search, query, max_results=max_results, **kwargs))
                for label, query, kwargs in calls
            ]
            for label, future in futures:
                try:
                    outcomes.append((label, future.result(), None))
                except Exception as e:
                    outcomes.append((label, None, e))

        merged: List[SearchResult] = []
        failures = []
        for label, results, error in outcomes:
            if error is not None:
                logger.warning("%s search failed for %r: %s", label, company_name[:100], error)
                failures.append(error)
            else:
                merged.extend(results)

        if len(failures) == len(calls):
            raise ProviderUnavailableError(
                getattr(self.provider, "name", "search"),
                f"all searches failed: {failures[0]}",
            )
        return merged
