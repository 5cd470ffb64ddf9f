"""PDF attendance reports rendered with reportlab."""
from datetime import datetime
from io import BytesIO
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    KeepTogether,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from app.core.config import settings

# ── Colors ────────────────────────────────────────────────────────────
NAVY = colors.HexColor("#1B2A4A")
GRAY = colors.HexColor("#6B7280")
GRAY_LIGHT = colors.HexColor("#F3F4F6")

STATUS_COLORS = {
    "present": colors.HexColor("#22C55E"),
    "late": colors.HexColor("#F5A623"),
    "absent": colors.HexColor("#EF4444"),
    "excused": colors.HexColor("#3B82F6"),
}

_ASSETS_DIR = Path(__file__).parent.parent.parent / "assets"

# ── Margins ───────────────────────────────────────────────────────────
_LEFT_MARGIN = 0.75 * inch
_RIGHT_MARGIN = 0.75 * inch
_BOTTOM_MARGIN = 0.6 * inch
# room for the header drawn on the canvas
_TOP_MARGIN = 1.5 * inch


def _get_logo_path() -> "Path | None":
    for name in ("logo.png", "logo.jpg"):
        path = _ASSETS_DIR / name
        if path.exists():
            return path
    return None


# ── Canvas: header and page number on every page ─────────────────────

def _make_page_callback(report_title: str):
    """Returns a callback drawing the header band and page number."""

    def _draw_page(canvas, doc):
        canvas.saveState()
        page_width, page_height = letter
        left_x = _LEFT_MARGIN
        right_x = page_width - _RIGHT_MARGIN

        logo_w = 0.6 * inch
        logo_h = 0.6 * inch
        top_y = page_height - 0.35 * inch
        logo_y = top_y - logo_h
        logo_path = _get_logo_path()
        if logo_path:
            canvas.drawImage(
                str(logo_path), left_x, logo_y, logo_w, logo_h,
                mask="auto", preserveAspectRatio=True,
            )

        canvas.setFont("Helvetica-Bold", 8)
        canvas.setFillColor(NAVY)
        canvas.drawRightString(right_x, logo_y + (logo_h - 8) / 2, settings.app_name.upper())

        sep_y = logo_y - 5
        canvas.setStrokeColor(NAVY)
        canvas.setLineWidth(1.5)
        canvas.line(left_x, sep_y, right_x, sep_y)

        canvas.setFont("Helvetica-Bold", 15)
        canvas.drawCentredString(page_width / 2, sep_y - 22, report_title)

        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(GRAY)
        canvas.drawRightString(right_x, 0.35 * inch, f"Page {doc.page}")
        canvas.restoreState()

    return _draw_page


def _header(subtitle: str = "", generated_by: str = "") -> list:
    """Subtitle, generation time and author as flowables."""
    styles = getSampleStyleSheet()
    elements = []
    if subtitle:
        elements.append(Paragraph(subtitle, ParagraphStyle(
            "ReportSubtitle", parent=styles["Normal"], fontSize=10, leading=14,
            textColor=GRAY, spaceAfter=6,
        )))
    meta = ParagraphStyle(
        "ReportMeta", parent=styles["Normal"], fontSize=9, leading=14,
        textColor=GRAY, spaceAfter=3,
    )
    elements.append(Paragraph(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}", meta))
    if generated_by:
        elements.append(Paragraph(f"Generated by: {generated_by}", meta))
    elements.append(Spacer(1, 0.25 * inch))
    return elements


def _table(headers: list[str], rows: list[list], col_widths=None, status_col: int | None = None) -> Table:
    """Striped table; ``status_col`` colors that column by attendance status."""
    data = [headers] + rows
    table = Table(data, colWidths=col_widths, repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), NAVY),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 9),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
        ("TOPPADDING", (0, 0), (-1, 0), 8),
        ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 1), (-1, -1), 8),
        ("BOTTOMPADDING", (0, 1), (-1, -1), 5),
        ("TOPPADDING", (0, 1), (-1, -1), 5),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#D1D5DB")),
        *[("BACKGROUND", (0, i), (-1, i), GRAY_LIGHT) for i in range(2, len(data), 2)],
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    if status_col is not None:
        for i, row in enumerate(rows, start=1):
            color = STATUS_COLORS.get(str(row[status_col]).lower())
            if color is not None:
                style.append(("TEXTCOLOR", (status_col, i), (status_col, i), color))
    table.setStyle(TableStyle(style))
    return table


def _section_title(text: str) -> Paragraph:
    return Paragraph(text, ParagraphStyle(
        "SectionTitle", fontSize=12, textColor=NAVY, fontName="Helvetica-Bold",
        spaceBefore=6, spaceAfter=10,
    ))


def _new_doc(buf: BytesIO) -> SimpleDocTemplate:
    return SimpleDocTemplate(
        buf,
        pagesize=letter,
        topMargin=_TOP_MARGIN,
        bottomMargin=_BOTTOM_MARGIN,
        leftMargin=_LEFT_MARGIN,
        rightMargin=_RIGHT_MARGIN,
    )


def _fmt_time(value) -> str:
    if value is None:
        return "-"
    return value.strftime("%H:%M")


# ═════════════════════════════════════════════════════════════════════
# Reports
# ═════════════════════════════════════════════════════════════════════

def generate_session_report(session: dict, summary: dict, students: list[dict], generated_by: str = "") -> bytes:
    """One session: details, status totals and the roster with each student's status."""
    title = f"Session Report: {session.get('title', '')}"
    buf = BytesIO()
    doc = _new_doc(buf)
    page_cb = _make_page_callback(title)
    target = " / ".join(str(session.get(k, "")) for k in ("program", "year", "section"))
    elements = _header(f"{session.get('date', '')} · {target}", generated_by)

    summary_rows = [
        ["Expected", str(summary.get("total_expected", 0))],
        ["Present", str(summary.get("present", 0))],
        ["Late", str(summary.get("late", 0))],
        ["Absent", str(summary.get("absent", 0))],
        ["Excused", str(summary.get("excused", 0))],
        ["Not marked", str(summary.get("unmarked", 0))],
        ["Attendance rate", f"{summary.get('attendance_rate', 0):.1f}%"],
    ]
    elements.append(KeepTogether([
        _section_title("Summary"),
        _table(["Indicator", "Value"], summary_rows, col_widths=[3.5 * inch, 2.5 * inch]),
    ]))
    elements.append(Spacer(1, 0.25 * inch))

    elements.append(_section_title("Roster"))
    if not students:
        elements.append(Paragraph("No students are expected at this session.", getSampleStyleSheet()["Normal"]))
    else:
        rows = [
            [
                s.get("student_id", ""),
                f"{s.get('surname', '')}, {s.get('firstname', '')}",
                s.get("section", ""),
                (s.get("status") or "not marked").capitalize(),
                _fmt_time(s.get("time_in")),
                _fmt_time(s.get("time_out")),
            ]
            for s in students
        ]
        elements.append(_table(
            ["Student ID", "Name", "Section", "Status", "Time in", "Time out"], rows, status_col=3,
        ))

    doc.build(elements, onFirstPage=page_cb, onLaterPages=page_cb)
    return buf.getvalue()


def generate_attendance_summary(sessions: list[dict], period: str = "", generated_by: str = "") -> bytes:
    """Every session in a period with its status totals and attendance rate."""
    title = "Attendance Summary"
    buf = BytesIO()
    doc = _new_doc(buf)
    page_cb = _make_page_callback(title)
    elements = _header(period or "All sessions", generated_by)

    if not sessions:
        elements.append(Paragraph("No sessions found for this period.", getSampleStyleSheet()["Normal"]))
    else:
        rows = [
            [
                str(s.get("date", "")),
                s.get("title", ""),
                str(s.get("total_expected", 0)),
                str(s.get("present", 0)),
                str(s.get("late", 0)),
                str(s.get("absent", 0)),
                str(s.get("excused", 0)),
                f"{s.get('attendance_rate', 0):.1f}%",
            ]
            for s in sessions
        ]
        elements.append(_table(
            ["Date", "Session", "Expected", "Present", "Late", "Absent", "Excused", "Rate"], rows,
        ))

    doc.build(elements, onFirstPage=page_cb, onLaterPages=page_cb)
    return buf.getvalue()
