"""Pytest configuration and shared fixtures."""

import pytest

from prospect_engine.exceptions import ProviderUnavailableError
from prospect_engine.models.schemas import ClassificationInput, SearchResult
from prospect_engine.models.pipeline_config import ClassificationConfig, EnrichmentConfig
from prospect_engine.providers.search import SearchProvider


class FakeSearchProvider(SearchProvider):
    """Search provider driven by a handler ``(query, kwargs) -> results``."""

    name = "fake-search"

    def __init__(self, handler=None, configured=True):
        self.handler = handler or (lambda query, kwargs: [])
        self.configured = configured
        self.calls = []

    def is_configured(self):
        return self.configured

    def search(self, query, include_domains=None, exclude_domains=None, max_results=5, search_depth="basic"):
        kwargs = {
            "include_domains": include_domains,
            "exclude_domains": exclude_domains,
            "max_results": max_results,
        }
        self.calls.append((query, kwargs))
        result = self.handler(query, kwargs)
        if isinstance(result, Exception):
            raise result
        return result


class FakeTextGenerator:
    """Text generator that replays scripted responses.

    Each response may be a string, an exception instance (raised), or a
    callable taking the prompt.
    """

    def __init__(self, responses=None, configured=True):
        self.responses = list(responses or [])
        self.configured = configured
        self.calls = []

    def is_configured(self):
        return self.configured

    def generate(self, prompt, system=None, max_output_tokens=500, temperature=0.0):
        self.calls.append({"prompt": prompt, "system": system, "max_output_tokens": max_output_tokens})
        if not self.responses:
            raise ProviderUnavailableError("fake-llm", "no scripted response")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(prompt)
        return response


def make_result(url, title="", content="", score=0.9):
    return SearchResult(title=title, url=url, content=content, score=score)


def make_input(company, first="Jane", last="Doe", position="Engineer", **kwargs):
    return ClassificationInput(
        company_name=company,
        first_name=first,
        last_name=last,
        position=position,
        **kwargs,
    )


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested delays."""
    delays = []

    def sleep(seconds):
        delays.append(seconds)

    sleep.delays = delays
    return sleep


@pytest.fixture
def classification_config() -> ClassificationConfig:
    return ClassificationConfig(search_delay_ms=0, llm_batch_delay_ms=0)


@pytest.fixture
def enrichment_config() -> EnrichmentConfig:
    return EnrichmentConfig(call_delay_ms=0)
