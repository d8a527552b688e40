"""Render a ReportDocument to a paginated PDF with matplotlib."""

from __future__ import annotations

import logging
from pathlib import Path

from matplotlib.axes import Axes
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from matplotlib.patches import FancyBboxPatch

from salo.reports.document import EventBlock, ReportDocument

logger = logging.getLogger(__name__)

A4 = (8.27, 11.69)
PURPLE = "#6a0dad"
GREY = "#777777"
CARD_BG = "#f9f7ff"
CARD_HEIGHT = 0.205  # four cards per page


def _page(doc: ReportDocument, number: int, total: int) -> Figure:
    fig = Figure(figsize=A4)
    fig.text(0.06, 0.955, doc.title, fontsize=20, color=PURPLE, weight="bold")
    fig.text(0.06, 0.935, doc.subtitle, fontsize=10, color=GREY)
    fig.add_artist(_rule(fig, 0.925))
    fig.text(0.06, 0.03, doc.footer, fontsize=8, color=GREY)
    fig.text(0.94, 0.03, f"Page {number} of {total}", fontsize=8, color=GREY, ha="right")
    return fig


def _rule(fig: Figure, y: float) -> Line2D:
    return Line2D([0.06, 0.94], [y, y], transform=fig.transFigure, color=PURPLE, linewidth=1)


def _set_sparse_xticks(ax: Axes, labels: list[str]) -> None:
    n = len(labels)
    step = max(1, n // 6)
    idxs = list(range(0, n, step))
    ax.set_xticks(idxs)
    ax.set_xticklabels([labels[i] for i in idxs], rotation=45, ha="right", fontsize=7)


def _summary_page(fig: Figure, doc: ReportDocument) -> None:
    heading = "Summary (estimated)" if doc.estimated else "Summary"
    fig.text(0.06, 0.895, heading, fontsize=14, color=PURPLE, weight="bold")

    # Metric grid, three per row
    for i, metric in enumerate(doc.metrics):
        col, row = i % 3, i // 3
        x = 0.06 + col * 0.30
        y = 0.85 - row * 0.07
        fig.text(x, y, metric.value, fontsize=16, weight="bold", color="#111827")
        fig.text(x, y - 0.02, metric.label, fontsize=9, color=GREY)

    y = 0.69
    fig.text(0.06, y, "Participation distribution", fontsize=11, color=PURPLE)
    fig.text(
        0.06, y - 0.025,
        f"Team: {doc.distribution['team']:.1f}%    Solo: {doc.distribution['solo']:.1f}%",
        fontsize=9,
    )
    fig.text(
        0.06, y - 0.045,
        f"Teams registered for events: {doc.team_stats['teams_registered']} of "
        f"{doc.team_stats['teams_total']}",
        fontsize=9,
    )

    ax = fig.add_axes((0.10, 0.30, 0.82, 0.28))
    points = doc.trend.points
    if points:
        values = [p.participants for p in points]
        ax.plot(range(len(values)), values, marker="o", markersize=3, linewidth=1.8, color=PURPLE)
        _set_sparse_xticks(ax, [p.date.strftime("%b %d") for p in points])
        ax.set_ylim(0, doc.trend.max_value * 1.1)
    title = "Participation Trend"
    if doc.trend.is_synthetic:
        title += " (synthetic)"
    ax.set_title(title, fontsize=11, color=PURPLE, pad=8)
    ax.set_ylabel("Participants", fontsize=8)
    ax.grid(alpha=0.35)

    for i, note in enumerate(doc.notes):
        fig.text(0.06, 0.20 - i * 0.025, f"Note: {note}", fontsize=8, color="#b45309")


def _event_card(fig: Figure, block: EventBlock, top: float, height: float) -> None:
    fig.add_artist(FancyBboxPatch(
        (0.06, top - height), 0.88, height - 0.01,
        boxstyle="round,pad=0.004", transform=fig.transFigure,
        facecolor=CARD_BG, edgecolor=PURPLE, linewidth=0.8,
    ))
    fig.text(0.08, top - 0.035, block.name, fontsize=13, weight="bold", color="#111827")
    fig.text(0.92, top - 0.035, block.category, fontsize=9, color=PURPLE, ha="right")
    rows = [
        ("Starts", block.starts),
        ("Ends", block.ends),
        ("Status", block.status),
        (block.capacity_label, block.capacity),
        (block.registered_label, str(block.registered)),
        ("Participants", str(block.participants)),
        ("Referee", block.referee or "-"),
    ]
    for j, (label, value) in enumerate(rows):
        y = top - 0.062 - j * 0.019
        fig.text(0.08, y, f"{label}:", fontsize=9, color=GREY)
        fig.text(0.40, y, value, fontsize=9)


def render_pdf(doc: ReportDocument, path: str | Path) -> int:
    """Write the document to ``path``. Returns the number of pages."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pages = doc.event_pages()
    total = 1 + len(pages)

    with PdfPages(path) as pdf:
        fig = _page(doc, 1, total)
        _summary_page(fig, doc)
        pdf.savefig(fig)

        for n, blocks in enumerate(pages, start=2):
            fig = _page(doc, n, total)
            fig.text(0.06, 0.895, "Event Details", fontsize=14, color=PURPLE, weight="bold")
            if not blocks:
                fig.text(0.06, 0.85, "No events to report.", fontsize=10, color=GREY)
            for k, block in enumerate(blocks):
                _event_card(fig, block, 0.87 - k * CARD_HEIGHT, CARD_HEIGHT)
            pdf.savefig(fig)

        info = pdf.infodict()
        info["Title"] = doc.title
        info["Creator"] = "salo-admin"

    logger.info("Wrote %d-page report to %s", total, path)
    return total
