from __future__ import annotations

import tempfile
from dataclasses import dataclass
from datetime import date
from importlib import metadata
from pathlib import Path
from typing import Any

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .config import as_dict as config_as_dict
from .metrics import exercises_to_dataframe, weekly_minutes_by_type
from .services import AnalysisState, flatten_tree, generate_adherence_plot


@dataclass(frozen=True)
class AdherenceReportStats:
    academia_id: str
    player_id: str
    window_days: int
    generated_on: date
    session_count: int
    total_minutes: float
    flexible_plan: bool
    unplanned: list[str]
    variance_rows: list[dict[str, Any]]
    config_snapshot: dict[str, Any]
    app_version: str


def generate_adherence_report(
    state: AnalysisState,
    *,
    academia_id: str,
    player_id: str,
    window_days: int,
    output_dir: Path = Path("reports"),
) -> Path:
    """
    Build a PDF comparing a player's plan with the training logged in the window.
    """
    if not state.has_plan:
        raise ValueError(state.error or "No training plan found for this player")

    stats = AdherenceReportStats(
        academia_id=academia_id,
        player_id=player_id,
        window_days=window_days,
        generated_on=date.today(),
        session_count=state.total_sessions,
        total_minutes=state.stats.total_minutes if state.stats else 0.0,
        flexible_plan=bool(state.plan.usa_distribucion_flexible) if state.plan else False,
        unplanned=list(state.unplanned),
        variance_rows=flatten_tree(state.tree),
        config_snapshot=config_as_dict(),
        app_version=_app_version(),
    )
    weekly = weekly_minutes_by_type(exercises_to_dataframe(state.sessions))

    output_dir.mkdir(parents=True, exist_ok=True)
    pdf_path = output_dir / f"adherence_{_slugify(player_id)}_{stats.generated_on.isoformat()}.pdf"
    with tempfile.TemporaryDirectory() as tmp_dir:
        chart = None
        if state.tree:
            chart = generate_adherence_plot(
                state.tree,
                Path(tmp_dir) / "adherence.png",
                title=f"Planned vs Actual: {player_id}",
            )
        _build_pdf(pdf_path, stats, chart, weekly)
    return pdf_path


def _slugify(value: str) -> str:
    cleaned = "".join(char.lower() if char.isalnum() else "_" for char in value.strip())
    slug = "_".join(token for token in cleaned.split("_") if token)
    return slug or "player"


def _build_pdf(
    destination: Path,
    stats: AdherenceReportStats,
    chart: Path | None,
    weekly: pd.DataFrame,
) -> None:
    story = []
    styles = getSampleStyleSheet()

    story.append(Paragraph(f"Plan Adherence: {stats.player_id}", styles["Title"]))
    story.append(
        Paragraph(
            f"Academia: <b>{stats.academia_id}</b> | Last {stats.window_days} days "
            f"(generated {stats.generated_on.isoformat()})",
            styles["BodyText"],
        )
    )
    thresholds = stats.config_snapshot.get("thresholds", {})
    story.append(
        Paragraph(
            f"App v{stats.app_version} | Config source: {stats.config_snapshot.get('source')} | "
            f"Optimal gap ≤ {thresholds.get('optimal', 5)} pts",
            styles["BodyText"],
        )
    )
    story.append(Spacer(1, 0.2 * inch))

    summary_data = [
        ["Metric", "Value"],
        ["Sessions analysed", str(stats.session_count)],
        ["Minutes trained", f"{stats.total_minutes:.0f}"],
        ["Flexible distribution", "yes" if stats.flexible_plan else "no"],
        ["Unplanned categories", str(len(stats.unplanned))],
    ]
    summary = Table(summary_data, hAlign="LEFT", colWidths=[2.5 * inch, 3.5 * inch])
    summary.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1F3C88")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
                ("BACKGROUND", (0, 1), (-1, -1), colors.whitesmoke),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ]
        )
    )
    story.append(summary)
    story.append(Spacer(1, 0.3 * inch))

    if stats.variance_rows:
        story.append(Paragraph("Planned vs Actual", styles["Heading2"]))
        variance_data = [["Category", "Planned %", "Actual %", "Gap"]]
        for row in stats.variance_rows:
            indent = "   " * row["depth"]
            label = row["name"] + (" (free)" if row["libre"] else "")
            variance_data.append(
                [
                    indent + label,
                    f"{row['planificado']:.1f}",
                    f"{row['realizado']:.1f}",
                    f"{row['diferencia']:+.1f}",
                ]
            )
        variance = Table(
            variance_data,
            hAlign="LEFT",
            colWidths=[3.0 * inch, 1.1 * inch, 1.1 * inch, 1.0 * inch],
        )
        variance_styles = [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#0B7285")),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ]
        optimal = float(thresholds.get("optimal", 5))
        for idx, row in enumerate(stats.variance_rows, start=1):
            if row["depth"] == 0:
                variance_styles.append(("FONTNAME", (0, idx), (-1, idx), "Helvetica-Bold"))
            if abs(row["diferencia"]) > optimal:
                variance_styles.append(("BACKGROUND", (0, idx), (-1, idx), colors.Color(1.0, 0.95, 0.8)))
        variance.setStyle(TableStyle(variance_styles))
        story.append(variance)
        story.append(Spacer(1, 0.3 * inch))

    if chart is not None:
        story.append(Paragraph("Training Type Distribution", styles["Heading2"]))
        story.append(Image(str(chart), width=6.5 * inch, height=3.5 * inch))
        story.append(Spacer(1, 0.3 * inch))

    if not weekly.empty:
        story.append(Paragraph("Weekly Minutes by Type", styles["Heading2"]))
        weekly_data = [["Week", *weekly.columns]]
        for week, row in weekly.iterrows():
            weekly_data.append([str(week), *(f"{value:.0f}" for value in row.values)])
        weekly_table = Table(weekly_data, hAlign="LEFT")
        weekly_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1F3C88")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
                ]
            )
        )
        story.append(weekly_table)

    if stats.unplanned:
        story.append(Spacer(1, 0.2 * inch))
        story.append(
            Paragraph(
                "<b>Trained but not planned:</b> " + ", ".join(stats.unplanned),
                styles["BodyText"],
            )
        )

    doc = SimpleDocTemplate(str(destination), pagesize=letter, title=f"Plan Adherence {stats.player_id}")
    doc.build(story)


def _app_version() -> str:
    try:
        return metadata.version("academy-tracker")
    except metadata.PackageNotFoundError:  # pragma: no cover - local dev fallback
        return "0.0.0"
