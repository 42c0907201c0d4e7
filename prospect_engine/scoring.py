"""
ICP Scoring
===========
Hybrid scoring of an enriched company against an Ideal Customer Profile.

Quantitative (no LLM cost):
- Employee count match (40%)
- Industry match (35%)
- Specialties overlap (25%)
Criteria the profile leaves unconfigured are excluded and the remaining
weights are re-normalized.

Qualitative (LLM):
- Company about text vs. ICP description, rated 0-100
- Only runs when both texts exist

Composite = quantitative * W/100 + qualitative * (1 - W/100)
"""

import logging
import math
import re
import time
from typing import Optional, List

from .models.schemas import (
    CompanyEnrichmentData,
    IcpScore,
    IcpScoreResult,
    ScoringAudit,
    SubScore,
    NOT_APPLICABLE,
)
from .models.pipeline_config import IcpSettings, ScoringConfig
from .providers.llm import TextGenerator, strip_code_fence

logger = logging.getLogger(__name__)

QUALITATIVE_SYSTEM_PROMPT = (
    "You are an ICP (Ideal Customer Profile) scoring assistant. Rate how well a "
    "company matches the user's ICP on a scale of 0-100. Return ONLY a number, nothing else."
)

_RANGE_RE = re.compile(r"^(\d+)[-–](\d+)$")
_PLUS_RE = re.compile(r"^(\d+)\+$")
_LEADING_INT_RE = re.compile(r"^-?\d+")


# =============================================================================
# Pure helpers
# =============================================================================

def parse_employee_count(raw: str) -> Optional[int]:
    """
    Parse an employee-count string to a midpoint.

    "51-200" -> 126, "1001-5000" -> 3001, "500+" -> 500, "50" -> 50
    """
    if not raw:
        return None
    cleaned = re.sub(r"[,\s]", "", raw)

    match = _RANGE_RE.match(cleaned)
    if match:
        low, high = int(match.group(1)), int(match.group(2))
        return math.floor((low + high) / 2 + 0.5)

    match = _PLUS_RE.match(cleaned)
    if match:
        return int(match.group(1))

    match = _LEADING_INT_RE.match(cleaned)
    return int(match.group(0)) if match else None


def map_to_icp_score(score: float, config: Optional[ScoringConfig] = None) -> IcpScore:
    """Map a 0-1 composite to its band"""
    config = config or ScoringConfig()
    if score >= config.threshold_very_high:
        return IcpScore.VERY_HIGH
    if score >= config.threshold_high:
        return IcpScore.HIGH
    if score >= config.threshold_medium:
        return IcpScore.MEDIUM
    return IcpScore.LOW


def score_employee_count(
    employee_count: str,
    employee_min: Optional[int],
    employee_max: Optional[int],
) -> SubScore:
    """1.0 when the parsed midpoint falls in [min, max], else 0.0"""
    if employee_min is None and employee_max is None:
        return SubScore(
            name="employee",
            score=NOT_APPLICABLE,
            applicable=False,
            reason="No min/max criteria configured",
        )

    midpoint = parse_employee_count(employee_count)
    effective_min = employee_min if employee_min is not None else 0
    target_range = f"{effective_min}-{employee_max if employee_max is not None else '∞'}"

    if midpoint is None:
        return SubScore(
            name="employee",
            score=0.0,
            applicable=True,
            reason=f'Could not parse "{employee_count}"',
            details={"raw": employee_count, "target_range": target_range},
        )

    in_range = midpoint >= effective_min and (employee_max is None or midpoint <= employee_max)
    return SubScore(
        name="employee",
        score=1.0 if in_range else 0.0,
        applicable=True,
        reason=f"Midpoint {midpoint} {'within' if in_range else 'outside'} {target_range}",
        details={
            "raw": employee_count,
            "parsed_midpoint": midpoint,
            "target_range": target_range,
            "in_range": in_range,
        },
    )


def score_industry_match(industry: str, target_industries: List[str]) -> SubScore:
    """1.0 on a case-insensitive substring match in either direction"""
    if not target_industries:
        return SubScore(
            name="industry",
            score=NOT_APPLICABLE,
            applicable=False,
            reason="No target industries configured",
        )
    if not industry:
        return SubScore(
            name="industry",
            score=0.0,
            applicable=True,
            reason="No enrichment industry data",
            details={"target_industries": target_industries},
        )

    lower = industry.lower()
    matched = next(
        (t for t in target_industries if t.lower() in lower or lower in t.lower()),
        None,
    )
    return SubScore(
        name="industry",
        score=1.0 if matched else 0.0,
        applicable=True,
        reason=f"Matched target: {matched}" if matched else f"No industry match: {industry}",
        details={
            "industry": industry,
            "target_industries": target_industries,
            "matched_target": matched,
        },
    )


def score_specialties_overlap(specialties: List[str], target_specialties: List[str]) -> SubScore:
    """min(matched / target count, 1.0); each enrichment specialty matches at most one target"""
    if not target_specialties:
        return SubScore(
            name="specialties",
            score=NOT_APPLICABLE,
            applicable=False,
            reason="No target specialties configured",
        )
    if not specialties:
        return SubScore(
            name="specialties",
            score=0.0,
            applicable=True,
            reason="No enrichment specialties data",
            details={"target_specialties": target_specialties},
        )

    targets_lower = [t.lower() for t in target_specialties]
    matched_pairs = []
    for specialty in specialties:
        s = specialty.lower()
        match = next((t for t in targets_lower if t in s or s in t), None)
        if match:
            matched_pairs.append({"enrichment": specialty, "target": match})

    score = min(len(matched_pairs) / len(target_specialties), 1.0)
    formula = f"min({len(matched_pairs)} / {len(target_specialties)}, 1.0)"
    return SubScore(
        name="specialties",
        score=score,
        applicable=True,
        reason=f"{len(matched_pairs)}/{len(target_specialties)} specialties matched",
        details={
            "specialties": specialties,
            "target_specialties": target_specialties,
            "matched_pairs": matched_pairs,
            "formula": formula,
        },
    )


# =============================================================================
# Scorer
# =============================================================================

class IcpScorer:
    """
    Combine quantitative and qualitative signals into an ICP band.
    """

    def __init__(
        self,
        text_generator: Optional[TextGenerator] = None,
        config: Optional[ScoringConfig] = None,
    ):
        self.generator = text_generator
        self.config = config or ScoringConfig()

    def score(
        self,
        enrichment: CompanyEnrichmentData,
        icp_settings: IcpSettings,
        label: Optional[str] = None,
    ) -> IcpScore:
        """Score a company and return only the band"""
        return self.evaluate(enrichment, icp_settings, label).score

    def evaluate(
        self,
        enrichment: CompanyEnrichmentData,
        icp_settings: IcpSettings,
        label: Optional[str] = None,
    ) -> IcpScoreResult:
        """
        Score a company and return the band with its audit trail.

        Args:
            enrichment: Enriched company data
            icp_settings: Profile to score against
            label: Company name used in log lines

        Returns:
            IcpScoreResult
        """
        start_time = time.time()
        label = label or "unknown"
        logger.info("[IcpScoring] %s | scoring started", label)

        # Quantitative
        employee = score_employee_count(
            enrichment.employee_count,
            icp_settings.employee_min,
            icp_settings.employee_max,
        )
        industry = score_industry_match(enrichment.industry, icp_settings.target_industries)
        specialties = score_specialties_overlap(enrichment.specialties, icp_settings.target_specialties)
        for sub in (employee, industry, specialties):
            self._log_sub_score(label, sub)

        quantitative, active_weights, quantitative_formula = self.calculate_quantitative(
            [employee, industry, specialties]
        )
        logger.info(
            "[IcpScoring] %s | quantitative score: %.3f (%s)",
            label,
            quantitative,
            quantitative_formula,
        )

        # Qualitative
        has_qualitative = bool(
            icp_settings.description
            and enrichment.about
            and self.generator is not None
            and self.generator.is_configured()
        )
        qualitative = None
        qualitative_raw = None
        if has_qualitative:
            qualitative, qualitative_raw = self.calculate_qualitative(
                enrichment.about, icp_settings.description, label
            )
        else:
            logger.info(
                "[IcpScoring] %s | qualitative scoring skipped (description=%s, about=%s, llm=%s)",
                label,
                bool(icp_settings.description),
                bool(enrichment.about),
                self.generator is not None and self.generator.is_configured(),
            )

        # Composite
        weight = icp_settings.quantitative_weight_percent / 100
        if has_qualitative:
            composite = quantitative * weight + qualitative * (1 - weight)
            composite_formula = (
                f"{quantitative:.3f} * {weight:.2f} + {qualitative:.3f} * {1 - weight:.2f} = {composite:.3f}"
            )
        else:
            composite = quantitative
            composite_formula = f"{quantitative:.3f} (100% quantitative, no qualitative)"

        band = map_to_icp_score(composite, self.config)
        thresholds = (
            f"very_high>={self.config.threshold_very_high} | high>={self.config.threshold_high} | "
            f"medium>={self.config.threshold_medium} | low<{self.config.threshold_medium}"
        )

        logger.info(
            "[IcpScoring] %s | scoring complete: %s (%s; %s)",
            label,
            band.value,
            composite_formula,
            thresholds,
        )

        audit = ScoringAudit(
            label=label,
            employee=employee,
            industry=industry,
            specialties=specialties,
            active_weights=active_weights,
            quantitative=round(quantitative, 6),
            quantitative_formula=quantitative_formula,
            qualitative=qualitative,
            qualitative_raw=qualitative_raw,
            has_qualitative=has_qualitative,
            quantitative_weight_percent=icp_settings.quantitative_weight_percent,
            composite=round(composite, 6),
            composite_formula=composite_formula,
            thresholds=thresholds,
            score=band,
        )

        return IcpScoreResult(
            score=band,
            composite=composite,
            audit=audit,
            processing_time_ms=round((time.time() - start_time) * 1000, 2),
        )

    def calculate_quantitative(self, sub_scores: List[SubScore]):
        """
        Weighted average over applicable criteria.

        Returns:
            (score, normalized weights by criterion, formula string)
        """
        nominal = self.config.weights.model_dump()
        active = [s for s in sub_scores if s.applicable]

        if not active:
            return (
                self.config.neutral_score,
                {},
                f"{self.config.neutral_score:.2f} (no criteria configured, neutral)",
            )

        total_weight = sum(nominal[s.name] for s in active)
        if total_weight <= 0:
            return self.config.neutral_score, {}, f"{self.config.neutral_score:.2f} (zero total weight, neutral)"

        weights = {s.name: nominal[s.name] / total_weight for s in active}
        score = sum(s.score * weights[s.name] for s in active)
        formula = " + ".join(
            f"{s.name}={s.score:.2f}*{weights[s.name]:.2f}" for s in active
        )
        return score, weights, formula

    def calculate_qualitative(self, company_about: str, icp_description: str, label: str):
        """
        Ask the model for a 0-100 fit rating.

        Returns:
            (normalized score, raw response). Failures and unparseable output
            yield the neutral score.
        """
        neutral = self.config.neutral_score
        try:
            text = self.generator.generate(
                f"ICP Description:\n{icp_description}\n\nCompany Description:\n{company_about}\n\nScore (0-100):",
                system=QUALITATIVE_SYSTEM_PROMPT,
                max_output_tokens=self.config.qualitative_max_output_tokens,
            )
        except Exception as e:
            logger.warning("[IcpScoring] %s | qualitative scoring failed, using %.2f: %s", label, neutral, e)
            return neutral, None

        match = _LEADING_INT_RE.match(strip_code_fence(text))
        value = int(match.group(0)) if match else None
        if value is None or not 0 <= value <= 100:
            logger.warning(
                "[IcpScoring] %s | qualitative score unparseable (%r), using %.2f",
                label,
                text[:50],
                neutral,
            )
            return neutral, text

        logger.info("[IcpScoring] %s | qualitative score: %.2f (raw %d/100)", label, value / 100, value)
        return value / 100, text

    def _log_sub_score(self, label: str, sub: SubScore):
        if not sub.applicable:
            logger.info("[IcpScoring] %s | %s: skipped (%s)", label, sub.name, sub.reason)
        else:
            logger.info("[IcpScoring] %s | %s: %.2f (%s) %s", label, sub.name, sub.score, sub.reason, sub.details)
