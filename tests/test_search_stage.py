"""Tests for stage-1 search-grounded classification."""

import pytest

from conftest import FakeSearchProvider, make_input, make_result
from prospect_engine.exceptions import ProviderUnavailableError
from prospect_engine.models.schemas import ClassificationType
from prospect_engine.pacing import CallPacer
from prospect_engine.stages.stage1_search import SearchGroundedStage, title_similarity


def _stage(handler, config, configured=True):
    provider = FakeSearchProvider(handler, configured=configured)
    return SearchGroundedStage(provider, config, pacer=CallPacer(0)), provider


# =============================================================================
# title_similarity
# =============================================================================

def test_title_similarity_strips_platform_suffix():
    assert title_similarity("Acme Robotics", "Acme Robotics | LinkedIn") == 1.0
    assert title_similarity("Acme Robotics", "Acme Robotics - LinkedIn Israel") == 1.0
    assert title_similarity("acme robotics", "ACME ROBOTICS · linkedin") == 1.0


def test_title_similarity_is_word_jaccard():
    assert title_similarity("Acme Robotics", "Acme Robotics Europe | LinkedIn") == pytest.approx(2 / 3)
    assert title_similarity("Acme", "Globex | LinkedIn") == 0.0


def test_title_similarity_empty_sides():
    assert title_similarity("", "Acme") == 0.0
    assert title_similarity("Acme", "") == 0.0
    assert title_similarity("Acme", " | LinkedIn") == 0.0


# =============================================================================
# Decisions
# =============================================================================

def test_matching_company_page_resolves_company(classification_config):
    url = "https://www.linkedin.com/company/acme-robotics"
    stage, _ = _stage(
        lambda q, kw: [make_result(url, title="Acme Robotics | LinkedIn", score=0.9)],
        classification_config,
    )

    result = stage.process(make_input("Acme Robotics"))

    assert result.type == ClassificationType.COMPANY
    assert result.stage == 1
    assert result.profile_url == url
    assert result.evidence.kind == "search_grounded"
    assert result.evidence.url == url
    assert result.evidence.similarity == 1.0


def test_best_company_page_is_chosen(classification_config):
    weak = make_result("https://linkedin.com/company/acme-holdings-group", title="Acme Holdings Group | LinkedIn")
    strong = make_result("https://linkedin.com/company/acme-robotics", title="Acme Robotics | LinkedIn")
    stage, _ = _stage(lambda q, kw: [weak, strong], classification_config)

    result = stage.process(make_input("Acme Robotics"))

    assert result.profile_url == strong.url


def test_dissimilar_company_page_is_unresolved(classification_config):
    stage, _ = _stage(
        lambda q, kw: [make_result("https://linkedin.com/company/globex", title="Globex Corporation | LinkedIn")],
        classification_config,
    )

    assert stage.process(make_input("Acme Robotics")) is None


def test_similarity_threshold_is_inclusive(classification_config):
    # 3 shared words out of 5 total = 0.6
    stage, _ = _stage(
        lambda q, kw: [make_result("https://linkedin.com/company/x", title="Acme Blue Robotics Europe Ltd | LinkedIn")],
        classification_config.model_copy(update={"title_similarity_threshold": 0.6}),
    )

    result = stage.process(make_input("Acme Blue Robotics"))

    assert result is not None
    assert result.type == ClassificationType.COMPANY


def test_only_personal_profiles_resolve_skip(classification_config):
    stage, _ = _stage(
        lambda q, kw: [
            make_result("https://linkedin.com/in/jane-doe", title="Jane Doe - Founder | LinkedIn"),
            make_result("https://linkedin.com/in/john-doe", title="John Doe | LinkedIn"),
        ],
        classification_config,
    )

    result = stage.process(make_input("Doe Family"))

    assert result.type == ClassificationType.SKIP
    assert result.stage == 1


def test_low_relevance_results_are_ignored(classification_config):
    stage, _ = _stage(
        lambda q, kw: [make_result("https://linkedin.com/in/jane-doe", title="Jane Doe", score=0.1)],
        classification_config,
    )

    assert stage.process(make_input("Doe Family")) is None


def test_no_results_is_unresolved(classification_config):
    stage, _ = _stage(lambda q, kw: [], classification_config)

    assert stage.process(make_input("Acme")) is None


def test_provider_failure_is_unresolved(classification_config):
    stage, _ = _stage(lambda q, kw: ProviderUnavailableError("fake", "boom"), classification_config)

    assert stage.process(make_input("Acme")) is None


def test_unexpected_provider_error_is_unresolved(classification_config):
    stage, _ = _stage(lambda q, kw: RuntimeError("socket closed"), classification_config)

    assert stage.process(make_input("Acme")) is None


# =============================================================================
# Queries
# =============================================================================

def test_single_query_is_restricted_to_network(classification_config):
    stage, provider = _stage(lambda q, kw: [], classification_config)

    stage.process(make_input("Acme", industry_hint="fintech"))

    assert len(provider.calls) == 1
    query, kwargs = provider.calls[0]
    assert query == '"Acme" company fintech'
    assert kwargs["include_domains"] == ["linkedin.com"]


def test_profile_url_triggers_dual_search(classification_config):
    url = "https://linkedin.com/company/acme-robotics"

    def handler(query, kwargs):
        if kwargs["include_domains"]:
            return [make_result(url, title="Acme Robotics | LinkedIn")]
        return [make_result("https://acme.example", title="Acme Robotics home")]

    stage, provider = _stage(handler, classification_config)

    result = stage.process(make_input("Acme Robotics", profile_url=url))

    assert len(provider.calls) == 2
    include = [kw for _, kw in provider.calls if kw["include_domains"]]
    exclude = [kw for _, kw in provider.calls if kw["exclude_domains"]]
    assert include[0]["include_domains"] == ["linkedin.com"]
    assert exclude[0]["exclude_domains"] == ["linkedin.com"]
    assert result.type == ClassificationType.COMPANY


def test_dual_search_keeps_surviving_half(classification_config):
    url = "https://linkedin.com/company/acme-robotics"

    def handler(query, kwargs):
        if kwargs["exclude_domains"]:
            return RuntimeError("general search down")
        return [make_result(url, title="Acme Robotics | LinkedIn")]

    stage, _ = _stage(handler, classification_config)

    result = stage.process(make_input("Acme Robotics", profile_url=url))

    assert result.type == ClassificationType.COMPANY


# =============================================================================
# Batch processing
# =============================================================================

def test_process_all_returns_unresolved_in_order(classification_config, no_sleep):
    def handler(query, kwargs):
        if "Acme" in query:
            return [make_result("https://linkedin.com/company/acme", title="Acme | LinkedIn")]
        if "Broken" in query:
            return RuntimeError("boom")
        return []

    provider = FakeSearchProvider(handler)
    pacer = CallPacer(200, sleep=no_sleep)
    stage = SearchGroundedStage(provider, classification_config, pacer=pacer)
    items = [make_input("Broken"), make_input("Acme"), make_input("Mystery")]
    seen = []

    unresolved = stage.process_all(items, on_item=lambda item, result: seen.append((item.company_name, result)))

    assert [i.company_name for i in unresolved] == ["Broken", "Mystery"]
    assert [name for name, _ in seen] == ["Broken", "Acme", "Mystery"]
    assert seen[1][1].type == ClassificationType.COMPANY
    assert no_sleep.delays == [0.2, 0.2]


def test_disabled_stage_passes_everything_through(classification_config):
    stage, provider = _stage(lambda q, kw: [], classification_config, configured=False)
    items = [make_input("Acme"), make_input("Globex")]

    assert stage.enabled is False
    assert stage.process_all(items) == items
    assert provider.calls == []


def test_missing_provider_disables_stage(classification_config):
    stage = SearchGroundedStage(None, classification_config)

    assert stage.enabled is False
    assert stage.process(make_input("Acme")) is None
