"""
Stage 0: Deterministic Classification
=====================================
Zero-cost rule engine. Pattern and lexicon matching only, no I/O.

Rules (first match wins):
- Empty or single character          -> skip
- Digits only                        -> skip
- Non-company term                   -> skip
- Country name                       -> skip
- Company field is the person's name -> skip
- Enclosed/stealth term              -> enclosed
- Known company suffix               -> company
"""

import re
from typing import Optional, Iterable

from ..models.schemas import (
    ClassificationInput,
    ClassificationResult,
    ClassificationType,
    DeterministicEvidence,
)
from ..config.settings import (
    ENCLOSED_PATTERNS,
    NON_COMPANY_PATTERNS,
    COMPANY_SUFFIXES,
    COUNTRY_NAMES,
)

_TRAILING_PUNCT_RE = re.compile(r"[.,]+$")


class DeterministicStage:
    """
    Stage 0: Resolve obvious cases with lexicons.
    """

    def __init__(
        self,
        non_company_patterns: Optional[Iterable[str]] = None,
        country_names: Optional[Iterable[str]] = None,
        enclosed_patterns: Optional[Iterable[str]] = None,
        company_suffixes: Optional[Iterable[str]] = None,
    ):
        self.non_company = frozenset(NON_COMPANY_PATTERNS if non_company_patterns is None else non_company_patterns)
        self.countries = frozenset(COUNTRY_NAMES if country_names is None else country_names)
        self.enclosed = frozenset(ENCLOSED_PATTERNS if enclosed_patterns is None else enclosed_patterns)
        self.suffixes = frozenset(COMPANY_SUFFIXES if company_suffixes is None else company_suffixes)

    def process(self, item: ClassificationInput) -> Optional[ClassificationResult]:
        """
        Apply the rules to one input.

        Returns:
            ClassificationResult, or None when no rule matched
        """
        lower = item.company_name.strip().lower()

        if len(lower) <= 1:
            return self._result(ClassificationType.SKIP, "Empty or single-character name", "empty_or_single_char")

        if lower.isdigit():
            return self._result(ClassificationType.SKIP, "Numbers-only name", "numeric_only")

        if lower in self.non_company:
            return self._result(ClassificationType.SKIP, f"Non-company pattern: {lower}", "non_company_term")

        if lower in self.countries:
            return self._result(ClassificationType.SKIP, f"Country name: {lower}", "country_name")

        if is_personal_name_match(lower, item.first_name, item.last_name):
            return self._result(ClassificationType.SKIP, "Personal name matches connection", "self_name")

        if lower in self.enclosed:
            return self._result(ClassificationType.ENCLOSED, f"Enclosed company pattern: {lower}", "enclosed_term")

        if self._has_company_suffix(lower):
            return self._result(ClassificationType.COMPANY, "Has company suffix", "company_suffix")

        return None

    def _has_company_suffix(self, name_lower: str) -> bool:
        words = _TRAILING_PUNCT_RE.sub("", name_lower).split()
        return bool(words) and words[-1] in self.suffixes

    def _result(self, type_: ClassificationType, reason: str, rule: str) -> ClassificationResult:
        return ClassificationResult(
            type=type_,
            reason=reason,
            stage=0,
            evidence=DeterministicEvidence(rule=rule),
        )


def is_personal_name_match(company_lower: str, first_name: str, last_name: str) -> bool:
    """True when the company string is "first last" or "last first" """
    first = (first_name or "").strip().lower()
    last = (last_name or "").strip().lower()
    if not first or not last:
        return False
    return company_lower in (f"{first} {last}", f"{last} {first}")
