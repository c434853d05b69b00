"""Rich-based terminal output for session state and analysis reports.

Uses ``rich.console.Console`` for all output. Color scheme:
green = positive, red = negative, yellow = caution.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from Stock_Analysis.models.analysis import AnalysisReport, AnalysisResult
from Stock_Analysis.models.enums import Polarity
from Stock_Analysis.models.health import HealthStatus
from Stock_Analysis.models.rate_limit import CountdownState, RateLimitStatus
from Stock_Analysis.models.state import ControllerState, ErrorInfo, Failed, Pending, Succeeded
from Stock_Analysis.reporting.disclaimer import DISCLAIMER_TEXT
from Stock_Analysis.reporting.formatters import (
    COLOR_CAUTION,
    COLOR_NEGATIVE,
    COLOR_POSITIVE,
    FUNDAMENTAL_METRICS,
    MARKET_METRICS,
    MAX_NEWS_ITEMS,
    SCORE_BREAKDOWN,
    confidence_band_color,
    confidence_bar,
    format_countdown,
    format_news_date,
    format_timestamp,
    polarity_color,
    present_metrics,
)

logger = logging.getLogger(__name__)

# Shared console instance for terminal output
console = Console()

COLOR_HEADER: str = "bold cyan"
COLOR_MUTED: str = "dim"
RATE_LIMIT_FALLBACK_MESSAGE: str = "Too many requests. Please wait before analyzing again."


def render_health(status: HealthStatus) -> None:
    """Render the backend connection banner."""
    if status.is_healthy:
        line = f"[{COLOR_POSITIVE}][OK][/{COLOR_POSITIVE}] Backend Connected"
        if status.api_key_configured:
            line += f" [{COLOR_MUTED}](API Key Configured)[/{COLOR_MUTED}]"
        console.print(line)
        return

    console.print(f"[{COLOR_NEGATIVE}][FAIL][/{COLOR_NEGATIVE}] Backend Offline")
    if status.detail:
        console.print(f"  [{COLOR_MUTED}]{escape(status.detail)}[/{COLOR_MUTED}]")


def render_rate_limit(status: RateLimitStatus, countdown: CountdownState) -> None:
    """Render the rate-limit banner. Prints nothing when not limited."""
    if not status.is_limited:
        return

    message = status.message or RATE_LIMIT_FALLBACK_MESSAGE
    lines = [escape(message)]
    if countdown.seconds_left > 0:
        lines.append(f"\n[bold]{format_countdown(countdown.seconds_left)}[/bold]")
    console.print(Panel("\n".join(lines), title="Rate Limit Active", style=COLOR_CAUTION))


def render_failure(error: ErrorInfo) -> None:
    """Render a failed submission's advisory message."""
    console.print(Panel(escape(error.message), title="Analysis Failed", style=COLOR_NEGATIVE))


def render_state(state: ControllerState) -> None:
    """Render whatever the controller currently holds."""
    if isinstance(state, Pending):
        query = escape(state.request.query)
        console.print(f"[{COLOR_MUTED}]Analyzing {query}...[/{COLOR_MUTED}]")
    elif isinstance(state, Failed):
        render_failure(state.error)
    elif isinstance(state, Succeeded):
        render_report(state.report)


def render_report(report: AnalysisReport) -> None:
    """Render a full analysis report to the terminal using Rich.

    Sections, in order: recommendation header, guidance, summary, factors,
    news, metrics, data provenance, disclaimer.
    """
    _render_header(report)
    _render_guidance(report)
    _render_summary(report.result)
    _render_factors(report.result)
    _render_news(report.result)
    _render_metrics(report.result)
    _render_provenance(report.result)
    console.print(f"\n[{COLOR_MUTED}]{DISCLAIMER_TEXT}[/{COLOR_MUTED}]")


# ---------------------------------------------------------------------------
# Report sections
# ---------------------------------------------------------------------------


def _render_header(report: AnalysisReport) -> None:
    result = report.result
    guidance = report.guidance
    color = polarity_color(guidance.polarity)
    meter_color = confidence_band_color(result.confidence)
    marker = "+" if guidance.polarity == Polarity.POSITIVE else "-"

    body = [
        f"[bold {color}]{marker} {escape(result.recommendation)}[/bold {color}]",
        f"Analysis Score: [{meter_color}]{escape(confidence_bar(result.confidence))}"
        f" {result.confidence}/100[/{meter_color}]",
        f"[{color}]{guidance.tier.label} Recommendation[/{color}]",
    ]
    if result.current_price is not None:
        body.append(f"Price: {escape(str(result.current_price))}")

    console.print()
    console.print(
        Panel(
            "\n".join(body),
            title=escape(result.stock_name or "Analysis"),
            style=COLOR_HEADER,
        )
    )


def _render_guidance(report: AnalysisReport) -> None:
    console.print("\n[bold]Recommendation for You[/bold]", style=COLOR_HEADER)

    breakdown = Table(show_header=False, box=None, padding=(0, 2))
    breakdown.add_column("Component", style="bold")
    breakdown.add_column("Weight", justify="right")
    for name, points in SCORE_BREAKDOWN:
        breakdown.add_row(name, f"{points} points")
    console.print(breakdown)

    lines = report.guidance.guidance_lines
    if not lines:
        return
    color = polarity_color(report.guidance.polarity)
    console.print(f"[bold {color}]{lines[0]}[/bold {color}]")
    for line in lines[1:]:
        console.print(f"  - {line}")


def _render_summary(result: AnalysisResult) -> None:
    console.print("\n[bold]Summary[/bold]", style=COLOR_HEADER)
    console.print(escape(result.summary or "Analysis summary not available"))


def _render_factors(result: AnalysisResult) -> None:
    sections: list[tuple[str, list[str], str, str]] = [
        ("Reasons to HOLD/BUY", result.bullish_factors, COLOR_POSITIVE, "+"),
        ("Reasons to SELL", result.bearish_factors, COLOR_NEGATIVE, "x"),
        ("Risk Factors", result.risk_factors, COLOR_CAUTION, "!"),
    ]
    for title, factors, color, marker in sections:
        if not factors:
            continue
        console.print(f"\n[bold {color}]{title}[/bold {color}]")
        for factor in factors:
            console.print(f"  [{color}]{marker}[/{color}] {escape(factor)}")


def _render_news(result: AnalysisResult) -> None:
    if not result.credible_news:
        return
    console.print("\n[bold]Recent News & Updates[/bold]", style=COLOR_HEADER)
    for item in result.credible_news[:MAX_NEWS_ITEMS]:
        title = Text(item.title, style=Style(link=item.url)) if item.url else Text(item.title)
        console.print(Text.assemble("  - ", title))
        meta = [part for part in (item.source, format_news_date(item.published_at)) if part]
        if meta:
            console.print(f"    [{COLOR_MUTED}]{escape(' | '.join(meta))}[/{COLOR_MUTED}]")


def _render_metrics(result: AnalysisResult) -> None:
    for title, fields in (
        ("Market Metrics", MARKET_METRICS),
        ("Fundamental Metrics", FUNDAMENTAL_METRICS),
    ):
        rows = present_metrics(result, fields)
        if not rows:
            continue
        table = Table(title=title, show_header=False)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")
        for label, value in rows:
            table.add_row(label, value)
        console.print()
        console.print(table)


def _render_provenance(result: AnalysisResult) -> None:
    if not result.data_sources_used:
        return
    sources = " • ".join(result.data_sources_used)
    console.print(
        f"\n[{COLOR_MUTED}]Data from: {escape(sources)}"
        f" • API calls used: {result.api_calls_used or 0}[/{COLOR_MUTED}]"
    )
    updated = format_timestamp(result.analysis_timestamp)
    if updated:
        console.print(f"[{COLOR_MUTED}]Last updated: {escape(updated)}[/{COLOR_MUTED}]")
