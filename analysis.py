"""
analysis.py — result types and the free-text response parser.

parse_analysis() is the only place that recovers structure from the model's
prose. It never raises: missing or malformed sections come back as empty
lists or the fallback impact message, so the UI always has something to show.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

MAX_ITEMS = 5
MAX_NAME_LENGTH = 50

NO_IMPACT_MESSAGE = (
    "No environmental impact data available. "
    "Try scanning a popular product or one with clearer labeling."
)
ANALYSIS_ERROR_MESSAGE = "No data available due to analysis error."
ANALYSIS_ERROR_TEXT = "Error analyzing the product. Please try again."

_FLAGS = re.IGNORECASE | re.DOTALL
_PROS_RE   = re.compile(r"Pros:(.*?)(?:Cons:|Environmental Impact:|\Z)", _FLAGS)
_CONS_RE   = re.compile(r"Cons:(.*?)(?:Environmental Impact:|\Z)", _FLAGS)
_IMPACT_RE = re.compile(r"Environmental Impact:(.*)", _FLAGS)
_BULLET_RE = re.compile(r"^\s*[-*]")


class Tab(str, Enum):
    PROS        = "pros"
    CONS        = "cons"
    ENVIRONMENT = "environment"


@dataclass(frozen=True)
class RecognitionResult:
    """OCR output for one captured image."""
    raw_text: str
    guessed_name: str

    @classmethod
    def from_text(cls, raw_text: str) -> "RecognitionResult":
        return cls(raw_text=raw_text, guessed_name=guess_product_name(raw_text))


@dataclass
class AnalysisResult:
    """Structured health / environment summary for one product."""
    pros: list[str] = field(default_factory=list)
    cons: list[str] = field(default_factory=list)
    environmental_impact: str = ""

    @classmethod
    def failed(cls) -> "AnalysisResult":
        return cls(pros=[], cons=[], environmental_impact=ANALYSIS_ERROR_MESSAGE)

    @property
    def has_content(self) -> bool:
        return bool(self.pros or self.cons or self.environmental_impact)

    def items_for(self, tab: Tab) -> list[str]:
        if tab == Tab.PROS:
            return self.pros
        if tab == Tab.CONS:
            return self.cons
        return [self.environmental_impact] if self.environmental_impact else []


def guess_product_name(raw_text: str) -> str:
    """First line of the OCR text, capped at 50 chars. Empty when there is no text."""
    return raw_text.split("\n", 1)[0][:MAX_NAME_LENGTH]


def _section_lines(pattern: re.Pattern, text: str) -> list[str]:
    m = pattern.search(text)
    if not m:
        return []
    cleaned = []
    for line in m.group(1).strip().split("\n"):
        line = _BULLET_RE.sub("", line, count=1).strip()
        if line:
            cleaned.append(line)
    return cleaned


def parse_analysis(text: str) -> AnalysisResult:
    """
    Split a response with `Pros:` / `Cons:` / `Environmental Impact:` headers
    into an AnalysisResult.

    Cons that repeat a pro (case-insensitive) are dropped before truncation.
    """
    pros = _section_lines(_PROS_RE, text)[:MAX_ITEMS]

    seen = {p.lower() for p in pros}
    cons = [c for c in _section_lines(_CONS_RE, text) if c.lower() not in seen][:MAX_ITEMS]

    m = _IMPACT_RE.search(text)
    impact = m.group(1).strip() if m else ""

    return AnalysisResult(
        pros=pros,
        cons=cons,
        environmental_impact=impact or NO_IMPACT_MESSAGE,
    )
