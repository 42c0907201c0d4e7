"""
Stage 2: Batch LLM Classification
=================================
Groups unresolved names into fixed-size batches and asks a language model to
label each one. Only confident answers are accepted; everything else falls
through to the fail-open stage. This stage never raises.
"""

import logging
import math
from typing import Optional, List, Dict, Callable

from ..models.schemas import (
    ClassificationInput,
    ClassificationResult,
    ClassificationType,
    ModelBatchEvidence,
)
from ..models.pipeline_config import ClassificationConfig
from ..pacing import CallPacer
from ..providers.llm import TextGenerator, parse_json_response

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a data classification assistant. Classify company names from "
    "professional-network connection data. Return only JSON."
)

LABEL_MAP = {
    "company": (ClassificationType.COMPANY, "Company"),
    "personal_name": (ClassificationType.SKIP, "Personal name"),
    "enclosed": (ClassificationType.ENCLOSED, "Enclosed company"),
    "non_company": (ClassificationType.SKIP, "Non-company"),
}


class BatchLLMStage:
    """
    Stage 2: Classify remaining names with one model call per batch.
    """

    def __init__(
        self,
        generator: Optional[TextGenerator],
        config: Optional[ClassificationConfig] = None,
        pacer: Optional[CallPacer] = None,
    ):
        self.config = config or ClassificationConfig()
        self.generator = generator
        self.pacer = pacer or CallPacer(self.config.llm_batch_delay_ms)

    @property
    def enabled(self) -> bool:
        return self.generator is not None and self.generator.is_configured()

    def process_all(
        self,
        items: List[ClassificationInput],
        on_batch: Optional[Callable[[List[ClassificationInput], Dict[str, ClassificationResult]], None]] = None,
    ) -> Dict[str, ClassificationResult]:
        """
        Classify items batch by batch.

        Returns:
            Accepted results keyed by normalized name. Items absent from the
            mapping are unresolved.
        """
        results: Dict[str, ClassificationResult] = {}
        if not self.enabled or not items:
            return results

        size = self.config.llm_batch_size
        batches = [items[i:i + size] for i in range(0, len(items), size)]

        for index, batch in enumerate(batches):
            accepted = self.process_batch(batch, offset=index * size)
            results.update(accepted)
            if on_batch:
                on_batch(batch, accepted)
            self.pacer.between(index, len(batches))

        return results

    def process_batch(self, batch: List[ClassificationInput], offset: int = 0) -> Dict[str, ClassificationResult]:
        """Classify one batch; failures leave every item unresolved"""
        try:
            text = self.generator.generate(
                self._generate_prompt(batch),
                system=SYSTEM_PROMPT,
                max_output_tokens=self.config.llm_max_output_tokens,
            )
            entries = parse_json_response(text, expected=list)
            return self._parse_entries(batch, entries)
        except Exception as e:
            logger.warning(
                "LLM batch classification failed (batch_size=%d, offset=%d): %s",
                len(batch),
                offset,
                e,
            )
            return {}

    def _generate_prompt(self, batch: List[ClassificationInput]) -> str:
        """Generate the batch classification prompt"""
        lines = "\n".join(
            f'{idx}. company="{item.company_name}", '
            f'person="{item.first_name} {item.last_name}", '
            f'position="{item.position}"'
            for idx, item in enumerate(batch)
        )

        return f"""Classify each entry below. For each, determine if the "company" field is:
- "company": A real business or organization name
- "personal_name": A person's name (not a company)
- "enclosed": Stealth/undisclosed/confidential placeholder
- "non_company": Generic term, placeholder, job title, or not a company name

Return a JSON array with one object per entry:
[{{ "index": 0, "type": "company", "confidence": 0.95 }}, ...]

Context clues:
- If position is "Founder"/"CEO"/"Owner" and company looks like a person's name, it might be a real company (solo founders name companies after themselves)
- Entries with no position and a person's name as company are likely personal_name
- Well-known tech companies, startups, and organizations should be "company" with high confidence

Entries:
{lines}

Return ONLY a valid JSON array. No markdown fences, no explanation."""

    def _parse_entries(self, batch: List[ClassificationInput], entries: list) -> Dict[str, ClassificationResult]:
        accepted: Dict[str, ClassificationResult] = {}

        for entry in entries:
            if not isinstance(entry, dict):
                continue

            index = entry.get("index")
            label = entry.get("type")
            confidence = entry.get("confidence")

            if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(batch):
                continue
            if not isinstance(label, str) or label not in LABEL_MAP:
                continue
            if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
                continue
            if not math.isfinite(confidence):
                continue
            # Below threshold falls through to fail-open
            if confidence < self.config.confidence_threshold:
                continue

            key = batch[index].key
            if key in accepted:
                continue

            type_, reason_label = LABEL_MAP[label]
            accepted[key] = ClassificationResult(
                type=type_,
                reason=f"LLM: {reason_label} ({round(confidence * 100)}% confidence)",
                stage=2,
                evidence=ModelBatchEvidence(label=label, confidence=float(confidence)),
            )

        return accepted
