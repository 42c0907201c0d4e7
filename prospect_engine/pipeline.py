"""
Prospect Pipeline
=================
Drives caller-owned company records through classification, enrichment and
ICP scoring. The pipeline mutates the records it is given and returns counts;
persisting them is left to the caller.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional, List, Callable, Dict

from .engine import CompanyClassificationEngine
from .enrichment import EnrichmentEngine
from .scoring import IcpScorer
from .models.schemas import (
    ClassificationInput,
    ClassificationBatchResult,
    ClassificationType,
    CompanyRecord,
    IcpScore,
    PipelineSummary,
)
from .models.pipeline_config import IcpSettings

logger = logging.getLogger(__name__)

PROMOTABLE_SCORES = {IcpScore.MEDIUM, IcpScore.HIGH, IcpScore.VERY_HIGH}

PhaseProgress = Callable[[str, int, int], None]


class ProspectPipeline:
    """
    Classification -> enrichment -> scoring over a set of company records.
    """

    def __init__(
        self,
        classifier: CompanyClassificationEngine,
        enricher: EnrichmentEngine,
        scorer: IcpScorer,
    ):
        self.classifier = classifier
        self.enricher = enricher
        self.scorer = scorer

    def classify_records(
        self,
        inputs: List[ClassificationInput],
        on_progress: Optional[PhaseProgress] = None,
    ) -> ClassificationBatchResult:
        """Classify imported rows; progress is reported under the "classifying" phase"""
        def forward(current: int, total: int):
            if on_progress:
                on_progress("classifying", current, total)

        return self.classifier.classify_batch(inputs, on_progress=forward)

    def build_records(
        self,
        inputs: List[ClassificationInput],
        classification: ClassificationBatchResult,
    ) -> Dict[str, CompanyRecord]:
        """One record per classified company (skips are dropped)"""
        records: Dict[str, CompanyRecord] = {}
        for item in inputs:
            result = classification.results.get(item.key)
            if result is None or result.type == ClassificationType.SKIP or item.key in records:
                continue
            records[item.key] = CompanyRecord(
                name=item.company_name.strip(),
                classification=result.type,
                low_confidence=result.low_confidence,
                profile_url=result.profile_url or item.profile_url,
                industry_hint=item.industry_hint,
            )
        return records

    def enrich_and_score(
        self,
        companies: List[CompanyRecord],
        icp_settings: Optional[IcpSettings] = None,
        on_progress: Optional[PhaseProgress] = None,
        now: Optional[datetime] = None,
    ) -> PipelineSummary:
        """
        Enrich stale records and score those whose enrichment changed.

        Args:
            companies: Records to process (updated in place)
            icp_settings: Profile to score against; scoring is skipped without one
            on_progress: Called with ("enriching", current, total)
            now: Reference time for staleness and timestamps

        Returns:
            PipelineSummary with per-outcome counts
        """
        start_time = time.time()
        now = now or datetime.now(timezone.utc)
        summary = PipelineSummary()

        enrichable = [c for c in companies if c.classification != ClassificationType.ENCLOSED]
        summary.skipped_enclosed = len(companies) - len(enrichable)

        for index, company in enumerate(enrichable):
            if on_progress:
                on_progress("enriching", index + 1, len(enrichable))

            changed = self._enrich_record(company, summary, now)
            self._score_record(company, changed, icp_settings, summary)

        summary.processing_time_ms = round((time.time() - start_time) * 1000, 2)
        logger.info(
            "Enrich-and-score complete: enriched=%d fresh=%d failed=%d not_scored=%d unchanged=%d scores=%s",
            summary.enriched,
            summary.skipped_fresh,
            summary.failed,
            summary.not_scored,
            summary.skipped_unchanged,
            summary.scores,
        )
        return summary

    def _enrich_record(self, company: CompanyRecord, summary: PipelineSummary, now: datetime) -> bool:
        """Returns True when the record's enrichment changed"""
        if company.enrichment is not None and not self.enricher.is_stale(company.enrichment_updated_at, now=now):
            summary.skipped_fresh += 1
            logger.debug("Enrichment fresh, skipping %r", company.name)
            return False

        try:
            result = self.enricher.enrich(company.name, company.profile_url, company.industry_hint)
        except Exception:
            logger.exception("Enrichment error for %r", company.name)
            summary.failed += 1
            return False
        finally:
            self.enricher.wait()

        if result is None:
            summary.failed += 1
            return False

        company.enrichment = result.data
        company.enrichment_source = result.source
        company.enrichment_updated_at = now
        summary.enriched += 1
        logger.info("Company enriched: %r (source=%s)", company.name, result.source.value)
        return True

    def _score_record(
        self,
        company: CompanyRecord,
        changed: bool,
        icp_settings: Optional[IcpSettings],
        summary: PipelineSummary,
    ):
        has_score = company.icp_score is not None
        eligible = (
            icp_settings is not None
            and company.enrichment is not None
            and bool(company.enrichment.industry)
        )

        if eligible and (changed or not has_score):
            try:
                score = self.scorer.score(company.enrichment, icp_settings, label=company.name)
            except Exception:
                logger.exception("ICP scoring error for %r", company.name)
                summary.not_scored += 1
                return

            company.icp_score = score
            summary.scores[score.value] += 1
            if score in PROMOTABLE_SCORES and not company.low_confidence:
                summary.promotable.append(company.name)
        elif not changed and has_score:
            summary.skipped_unchanged += 1
        else:
            summary.not_scored += 1


# =============================================================================
# Convenience Functions
# =============================================================================

def create_pipeline(search_provider=None, text_generator=None) -> ProspectPipeline:
    """
    Factory function wiring all three components to the same providers.
    """
    return ProspectPipeline(
        classifier=CompanyClassificationEngine(search_provider, text_generator),
        enricher=EnrichmentEngine(search_provider, text_generator),
        scorer=IcpScorer(text_generator),
    )
