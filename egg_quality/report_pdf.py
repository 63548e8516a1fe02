"""
Egg Quality Report - PDF generator
Builds the quality report (metric overview, per-shed comparison, monthly
averages) for the currently filtered records.
"""
import io
import logging
from datetime import datetime
from xml.sax.saxutils import escape

from reportlab.graphics.charts.barcharts import VerticalBarChart
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from egg_quality.errors import ReportExportError
from egg_quality.quality_engine import calculate_monthly_averages, calculate_stats, count_values, summarize_by
from egg_quality.standards import METRIC_CONFIG, STATUS_COLORS, classify_value

logger = logging.getLogger(__name__)

# Define colors
PRIMARY_COLOR = HexColor("#1e3a8a")
SECONDARY_COLOR = HexColor("#2563eb")
TABLE_HEADER_BG = HexColor("#1e3a8a")
TABLE_ALT_ROW = HexColor("#f1f5f9")


def report_filename(today=None):
    today = today or datetime.now().date()
    return f"Egg_Quality_Report_{today:%Y-%m-%d}.pdf"


def _styles():
    styles = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "ReportTitle",
            parent=styles["Heading1"],
            fontSize=22,
            textColor=PRIMARY_COLOR,
            spaceAfter=12,
            alignment=TA_CENTER,
            fontName="Helvetica-Bold",
        ),
        "heading": ParagraphStyle(
            "ReportHeading",
            parent=styles["Heading2"],
            fontSize=14,
            textColor=SECONDARY_COLOR,
            spaceAfter=8,
            spaceBefore=12,
            fontName="Helvetica-Bold",
        ),
        "body": ParagraphStyle(
            "ReportBody",
            parent=styles["BodyText"],
            fontSize=10,
            spaceAfter=6,
        ),
    }


def _table(data, col_widths=None):
    table = Table(data, colWidths=col_widths, repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), TABLE_HEADER_BG),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
    ]
    for row in range(2, len(data), 2):
        style.append(("BACKGROUND", (0, row), (-1, row), TABLE_ALT_ROW))
    table.setStyle(TableStyle(style))
    return table


def _bar_chart(names, values, color):
    drawing = Drawing(460, 170)
    chart = VerticalBarChart()
    chart.x = 40
    chart.y = 35
    chart.width = 400
    chart.height = 120
    chart.data = [tuple(values)]
    chart.categoryAxis.categoryNames = [str(n) for n in names]
    chart.categoryAxis.labels.fontSize = 7
    chart.categoryAxis.labels.angle = 30 if len(names) > 6 else 0
    chart.categoryAxis.labels.boxAnchor = "ne" if len(names) > 6 else "n"
    chart.valueAxis.labels.fontSize = 7
    chart.bars[0].fillColor = HexColor(color)
    drawing.add(chart)
    return drawing


def _fmt(value):
    return "-" if value != value else f"{value:.2f}"  # NaN check


def overview_rows(records, fields):
    """Metric overview table rows; metrics without valid values read "-" throughout."""
    rows = [["Metric", "Mean", "Std Dev", "Min", "Max", "Status"]]
    for f in fields:
        config = METRIC_CONFIG[f]
        label = f"{config['name']} ({config['unit']})"
        if not count_values(records, f):
            rows.append([label, "-", "-", "-", "-", "-"])
            continue
        stats = calculate_stats(records, f)
        rows.append([
            label,
            _fmt(stats["mean"]), _fmt(stats["std"]), _fmt(stats["min"]), _fmt(stats["max"]),
            classify_value(f, stats["mean"]),
        ])
    return rows


def build_quality_report(records, criteria, fields=None):
    """
    Render the quality report for the filtered records.

    Returns:
        PDF file content as bytes
    """
    fields = list(fields or METRIC_CONFIG)
    styles = _styles()
    story = []

    story.append(Paragraph("Egg Quality Report", styles["title"]))
    story.append(Paragraph(
        f"Period: {criteria.start_date:%Y-%m-%d} to {criteria.end_date:%Y-%m-%d} "
        f"&nbsp;|&nbsp; Verified samples: {len(records)}",
        styles["body"],
    ))
    active = criteria.active_categories()
    if active:
        story.append(Paragraph(
            escape("Filters: " + ", ".join(f"{k} = {v}" for k, v in active.items())),
            styles["body"],
        ))
    story.append(Paragraph(f"Generated: {datetime.now():%B %d, %Y %H:%M}", styles["body"]))
    story.append(Spacer(1, 0.2 * inch))

    # Metric overview
    story.append(Paragraph("Metric Overview", styles["heading"]))
    overview = overview_rows(records, fields)
    overview_table = _table(overview)
    for row, line in enumerate(overview[1:], start=1):
        if line[-1] in STATUS_COLORS:
            overview_table.setStyle(TableStyle([
                ("TEXTCOLOR", (-1, row), (-1, row), HexColor(STATUS_COLORS[line[-1]])),
            ]))
    story.append(overview_table)

    # Per-shed comparison
    by_shed = summarize_by(records, "shed", fields)
    if not by_shed.empty:
        story.append(Paragraph("Comparison by Shed", styles["heading"]))
        means = by_shed.pivot(index="shed", columns="metric", values="mean")
        sheds = list(dict.fromkeys(by_shed["shed"]))
        means = means.reindex(index=sheds, columns=fields)
        for f in fields:
            config = METRIC_CONFIG[f]
            story.append(Paragraph(f"{config['name']} ({config['unit']}) - mean by shed", styles["body"]))
            story.append(_bar_chart(sheds, means[f].tolist(), config["color"]))

        shed_table = [["Shed"] + [METRIC_CONFIG[f]["name"] for f in fields]]
        for shed in sheds:
            shed_table.append([shed] + [_fmt(means.loc[shed, f]) for f in fields])
        story.append(_table(shed_table))

    # Monthly averages
    monthly = calculate_monthly_averages(records, fields)
    if not monthly.empty:
        story.append(Paragraph("Monthly Averages", styles["heading"]))
        month_table = [["Month"] + [METRIC_CONFIG[f]["name"] for f in fields]]
        for _, row in monthly.iterrows():
            month_table.append([row["label"]] + [_fmt(row[f]) for f in fields])
        story.append(_table(month_table))

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.6 * inch,
        leftMargin=0.6 * inch,
        topMargin=0.7 * inch,
        bottomMargin=0.7 * inch,
        title="Egg Quality Report",
    )
    try:
        doc.build(story)
    except Exception as e:
        logger.exception("PDF build failed")
        raise ReportExportError(f"Error generating the PDF: {e}") from e
    return buffer.getvalue()
