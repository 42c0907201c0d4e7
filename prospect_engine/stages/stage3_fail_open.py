"""
Stage 3: Fail Open
==================
Anything still unresolved becomes a low-confidence company.
"""

from ..models.schemas import (
    ClassificationInput,
    ClassificationResult,
    ClassificationType,
    FailOpenEvidence,
)


class FailOpenStage:
    """
    Stage 3: Default every remaining name to a low-confidence company.
    """

    def process(self, item: ClassificationInput) -> ClassificationResult:
        return ClassificationResult(
            type=ClassificationType.COMPANY,
            reason="fail-open default",
            stage=3,
            low_confidence=True,
            evidence=FailOpenEvidence(),
        )
