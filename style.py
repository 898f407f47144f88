"""
style.py — text rendering for the terminal scanner.

Design language:
  • One header line with an emoji icon per section
  • Unicode box-drawing dividers
  • Tab bar with the active tab in [brackets]

All text printed by main.py should be formatted through this module.
"""
from __future__ import annotations

from typing import Optional

from analysis import AnalysisResult, Tab

# ── Visual constants ──────────────────────────────────────────────────────────

DIV   = "━━━━━━━━━━━━━━━━━━━━━━━━━━"    # thick divider
SDIV  = "┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄"    # subtle divider

TAB_LABELS = {
    Tab.PROS:        "👍 Pros",
    Tab.CONS:        "👎 Cons",
    Tab.ENVIRONMENT: "🍃 Environment",
}
TAB_KEYS = {"1": Tab.PROS, "2": Tab.CONS, "3": Tab.ENVIRONMENT}

ITEM_ICON = {Tab.PROS: "👍", Tab.CONS: "👎"}
EMPTY_MESSAGE = {
    Tab.PROS: "No pros detected",
    Tab.CONS: "No cons detected",
}

ANALYZE_LABEL = "Analyze Product"
ANALYZING_LABEL = "Analyzing..."


# ══════════════════════════════════════════════════════════════════════════════
# START
# ══════════════════════════════════════════════════════════════════════════════

def welcome() -> str:
    return (
        f"🔍 PRODUCT SCANNER\n"
        f"{DIV}\n"
        f"Point the camera at a packaged product and capture it.\n"
        f"The label is read and analysed for health & environmental impact.\n\n"
        f"  c  capture photo\n"
        f"  r  retake\n"
        f"  a  analyze product\n"
        f"  1/2/3  show pros / cons / environment\n"
        f"  q  close\n"
        f"{DIV}"
    )


def camera_unavailable(reason: Optional[str]) -> str:
    detail = f"\n{reason}" if reason else ""
    return f"📷 Camera unavailable, capture is disabled.{detail}"


def captured() -> str:
    return f"📸 Photo captured. Press a to {ANALYZE_LABEL.lower()}, r to retake."


def analyze_button(loading: bool) -> str:
    return ANALYZING_LABEL if loading else ANALYZE_LABEL


# ══════════════════════════════════════════════════════════════════════════════
# RESULTS
# ══════════════════════════════════════════════════════════════════════════════

def tab_bar(active: Tab) -> str:
    parts = []
    for tab, label in TAB_LABELS.items():
        parts.append(f"[{label}]" if tab == active else f" {label} ")
    return "  ".join(parts)


def tab_content(analysis: AnalysisResult, tab: Tab) -> str:
    if tab == Tab.ENVIRONMENT:
        return f"🍃 {analysis.environmental_impact}"
    items = analysis.items_for(tab)
    if not items:
        return EMPTY_MESSAGE[tab]
    icon = ITEM_ICON[tab]
    return "\n".join(f"{icon} {item}" for item in items)


def results_panel(analysis: Optional[AnalysisResult], active: Tab) -> str:
    """Full tabbed panel, or "" when there is nothing to show."""
    if analysis is None or not analysis.has_content:
        return ""
    return (
        f"{DIV}\n"
        f"{tab_bar(active)}\n"
        f"{SDIV}\n"
        f"{tab_content(analysis, active)}\n"
        f"{DIV}"
    )


def detected_text(text: str, limit: int = 300) -> str:
    if not text:
        return ""
    shown = text if len(text) <= limit else text[:limit] + "…"
    return f"📝 Detected text:\n{shown}"
