"""
Company Classification Engine - Main Orchestrator
=================================================
Orchestrates the four-stage cascade:
  Stage 0: Deterministic → Stage 1: Search-Grounded →
  Stage 2: Batch LLM → Stage 3: Fail Open

Key properties:
- Inputs are deduplicated by normalized name before any stage runs
- Each stage only sees what earlier stages left unresolved
- Every unique name gets exactly one result
- Results accumulate per call, so one engine can serve many batches
"""

import logging
import time
from typing import Optional, List, Dict, Callable, Set

from .models.schemas import (
    ClassificationInput,
    ClassificationResult,
    ClassificationBatchResult,
)
from .models.pipeline_config import ClassificationConfig
from .pacing import CallPacer
from .providers.search import SearchProvider
from .providers.llm import TextGenerator
from .stages.stage0_deterministic import DeterministicStage
from .stages.stage1_search import SearchGroundedStage
from .stages.stage2_llm_batch import BatchLLMStage
from .stages.stage3_fail_open import FailOpenStage

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class CompanyClassificationEngine:
    """
    Main classification engine that drives inputs through all four stages.
    """

    def __init__(
        self,
        search_provider: Optional[SearchProvider] = None,
        text_generator: Optional[TextGenerator] = None,
        config: Optional[ClassificationConfig] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize the classification engine.

        Args:
            search_provider: Web search collaborator (stage 1 is skipped without one)
            text_generator: Language model collaborator (stage 2 is skipped without one)
            config: Thresholds, batch size and pacing
            sleep: Sleep function used for pacing (injectable for tests)
        """
        self.config = config or ClassificationConfig()

        # Initialize stages
        self.stage0 = DeterministicStage()
        self.stage1 = SearchGroundedStage(
            search_provider,
            self.config,
            pacer=CallPacer(self.config.search_delay_ms, sleep),
        )
        self.stage2 = BatchLLMStage(
            text_generator,
            self.config,
            pacer=CallPacer(self.config.llm_batch_delay_ms, sleep),
        )
        self.stage3 = FailOpenStage()

    def classify(self, item: ClassificationInput) -> ClassificationResult:
        """Classify a single input through the full cascade"""
        batch = self.classify_batch([item])
        return batch.results[item.key]

    def classify_batch(
        self,
        inputs: List[ClassificationInput],
        on_progress: Optional[ProgressCallback] = None,
    ) -> ClassificationBatchResult:
        """
        Classify every unique company name in the batch.

        Args:
            inputs: Raw records; the first occurrence per normalized name is
                the representative
            on_progress: Called with (processed so far, total) after every item
                and once more with (total, total) at the end

        Returns:
            ClassificationBatchResult with one result per normalized name
        """
        start_time = time.time()

        unique: Dict[str, ClassificationInput] = {}
        for item in inputs:
            unique.setdefault(item.key, item)

        total = len(unique)
        results: Dict[str, ClassificationResult] = {}
        progress = _Progress(total, on_progress)

        # =====================================================================
        # STAGE 0: Deterministic
        # =====================================================================
        unresolved_after_0: List[ClassificationInput] = []
        for key, item in unique.items():
            result = self.stage0.process(item)
            if result:
                results[key] = result
                progress.advance(key)
            else:
                unresolved_after_0.append(item)
                progress.report()

        self._log_stage(0, total, unresolved_after_0)

        # =====================================================================
        # STAGE 1: Search-Grounded
        # =====================================================================
        def record_stage1(item: ClassificationInput, result: Optional[ClassificationResult]):
            if result:
                results[item.key] = result
            progress.advance(item.key)

        unresolved_after_1 = self.stage1.process_all(unresolved_after_0, on_item=record_stage1)
        if not self.stage1.enabled and unresolved_after_0:
            logger.debug("Stage 1 skipped: no search provider configured")

        self._log_stage(1, len(unresolved_after_0), unresolved_after_1)

        # =====================================================================
        # STAGE 2: Batch LLM
        # =====================================================================
        def record_stage2(batch: List[ClassificationInput], accepted: Dict[str, ClassificationResult]):
            for item in batch:
                if item.key in accepted:
                    results[item.key] = accepted[item.key]
                progress.advance(item.key)

        accepted = self.stage2.process_all(unresolved_after_1, on_batch=record_stage2)
        unresolved_after_2 = []
        for item in unresolved_after_1:
            if item.key in accepted:
                results[item.key] = accepted[item.key]
            else:
                unresolved_after_2.append(item)

        self._log_stage(2, len(unresolved_after_1), unresolved_after_2)

        # =====================================================================
        # STAGE 3: Fail Open
        # =====================================================================
        for item in unresolved_after_2:
            results[item.key] = self.stage3.process(item)

        progress.finish()

        stage_counts = {
            "stage0": total - len(unresolved_after_0),
            "stage1": len(unresolved_after_0) - len(unresolved_after_1),
            "stage2": len(unresolved_after_1) - len(unresolved_after_2),
            "stage3": len(unresolved_after_2),
        }
        total_time = (time.time() - start_time) * 1000

        logger.info(
            "Classification complete: total=%d stage0=%d stage1=%d stage2=%d stage3=%d (%.0fms)",
            total,
            stage_counts["stage0"],
            stage_counts["stage1"],
            stage_counts["stage2"],
            stage_counts["stage3"],
            total_time,
        )

        return ClassificationBatchResult(
            results=results,
            stage_counts=stage_counts,
            total=total,
            processing_time_ms=round(total_time, 2),
        )

    def _log_stage(self, stage: int, entered: int, unresolved: List[ClassificationInput]):
        logger.debug(
            "Stage %d complete: resolved=%d unresolved=%d",
            stage,
            entered - len(unresolved),
            len(unresolved),
        )


class _Progress:
    """
    Processed-so-far against the unique total.

    A name counts once, at the first stage that resolves it or calls a
    provider for it, so the value never decreases and never exceeds the total.
    """

    def __init__(self, total: int, callback: Optional[ProgressCallback]):
        self.total = total
        self.callback = callback
        self.counted: Set[str] = set()

    def advance(self, key: str):
        self.counted.add(key)
        self.report()

    def report(self):
        if self.callback:
            self.callback(len(self.counted), self.total)

    def finish(self):
        if self.callback and self.total:
            self.callback(self.total, self.total)


# =============================================================================
# Convenience Functions
# =============================================================================

def create_engine(
    search_provider: Optional[SearchProvider] = None,
    text_generator: Optional[TextGenerator] = None,
) -> CompanyClassificationEngine:
    """
    Factory function to create a classification engine with default settings.
    """
    return CompanyClassificationEngine(
        search_provider=search_provider,
        text_generator=text_generator,
        config=ClassificationConfig(),
    )
