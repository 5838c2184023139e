"""
Markdown rendering of a ``StockScore`` for inclusion in article bodies.

Kept apart from ``newsroom.scoring.scorer`` so the numeric scorer stays pure
and the presentation can change without touching score tests.
"""

from __future__ import annotations

from newsroom.models.scoring import StockScore
from newsroom.taxonomy.signal_taxonomy import Rating, SignalDirection

_RATING_LABEL: dict[Rating, str] = {
    Rating.BUY: "BUY",
    Rating.HOLD: "HOLD",
    Rating.SELL: "SELL",
}

_SIGNAL_MARK: dict[SignalDirection, str] = {
    SignalDirection.BULLISH: "[+]",
    SignalDirection.NEUTRAL: "[=]",
    SignalDirection.BEARISH: "[-]",
}

DISCLAIMER = (
    "*This rating is generated from technical and news indicators and is "
    "provided for informational purposes only. It is not financial advice.*"
)


def format_signed(score: int) -> str:
    """``+42`` / ``0`` / ``-17``."""
    return f"+{score}" if score > 0 else str(score)


def format_score_for_article(score: StockScore) -> str:
    """Render ``score`` as a markdown section: summary table, breakdown, disclaimer."""
    lines = [
        "## Signal Rating",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| **Overall Rating** | {_RATING_LABEL[score.overall]} |",
        f"| **Score** | {format_signed(score.score)} / 100 |",
        f"| **Confidence** | {score.confidence.value.capitalize()} |",
        "",
        "### Signal Breakdown",
        "",
    ]
    for signal in score.signals:
        lines.append(
            f"- {_SIGNAL_MARK[signal.signal]} **{signal.name}** "
            f"({signal.weight}%): {signal.description}"
        )
    lines += [
        "",
        "### Analysis",
        "",
        score.summary,
        "",
        "---",
        DISCLAIMER,
    ]
    return "\n".join(lines)
