"""
Web search providers.

The pipeline only depends on ``SearchProvider``; ``TavilySearchProvider`` is
the production implementation. An absent provider (``None``) or one that
reports ``is_configured() == False`` short-circuits stage 1 and grounded
enrichment.
"""

import logging
import time
from typing import List, Optional

from tavily import TavilyClient

from ..config.settings import SEARCH_CONFIG
from ..exceptions import ProviderUnavailableError
from ..models.schemas import SearchResult

logger = logging.getLogger(__name__)


class SearchProvider:
    """Interface for web search collaborators"""

    name = "search"

    def is_configured(self) -> bool:
        return True

    def search(
        self,
        query: str,
        include_domains: Optional[List[str]] = None,
        exclude_domains: Optional[List[str]] = None,
        max_results: int = 5,
        search_depth: str = "basic",
    ) -> List[SearchResult]:
        raise NotImplementedError


class TavilySearchProvider(SearchProvider):
    """
    Search provider backed by the Tavily API.
    """

    name = "tavily"

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or SEARCH_CONFIG.get("api_key") or ""
        self.max_results_cap = SEARCH_CONFIG.get("max_results_cap", 20)
        self.client = TavilyClient(api_key=self.api_key) if self.api_key else None

        if not self.api_key:
            logger.warning("TavilySearchProvider initialized without API key; set TAVILY_API_KEY")

    def is_configured(self) -> bool:
        return self.client is not None

    def search(
        self,
        query: str,
        include_domains: Optional[List[str]] = None,
        exclude_domains: Optional[List[str]] = None,
        max_results: int = 5,
        search_depth: str = "basic",
    ) -> List[SearchResult]:
        """
        Run one search.

        Raises:
            ProviderUnavailableError: unconfigured client, empty query, or API failure
        """
        if not self.client:
            raise ProviderUnavailableError(self.name, "API key not configured")
        if not query or not query.strip():
            raise ProviderUnavailableError(self.name, "search query cannot be empty")

        start_time = time.time()
        try:
            response = self.client.search(
                query=query.strip(),
                search_depth=search_depth,
                max_results=min(max_results, self.max_results_cap),
                include_domains=include_domains or None,
                exclude_domains=exclude_domains or None,
                include_raw_content=False,
            )
        except Exception as e:
            logger.warning("Tavily search failed for %r: %s", query[:100], e)
            raise ProviderUnavailableError(self.name, str(e)) from e

        results = [
            SearchResult(
                title=r.get("title") or "",
                url=r.get("url") or "",
                content=r.get("content") or "",
                score=float(r.get("score") or 0.0),
            )
            for r in (response or {}).get("results", [])
        ]

        logger.debug(
            "Tavily search completed: query=%r results=%d duration_ms=%.0f",
            query[:100],
            len(results),
            (time.time() - start_time) * 1000,
        )
        return results


def create_search_provider(api_key: Optional[str] = None) -> Optional[SearchProvider]:
    """Build the Tavily provider, or ``None`` when no key is available"""
    key = api_key or SEARCH_CONFIG.get("api_key")
    if not key:
        return None
    return TavilySearchProvider(api_key=key)
