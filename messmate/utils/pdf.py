"""
PDF rendering for tabular reports.
"""

import io
from typing import Any, Dict, List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle


class PDFGenerator:
    """Builds simple title + summary + table documents in memory."""

    def __init__(self, page_size=landscape(A4), margins=None):
        self.page_size = page_size
        self.margins = margins or {"top": 1.5 * cm, "bottom": 1.5 * cm, "left": 1.5 * cm, "right": 1.5 * cm}
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        self.styles.add(ParagraphStyle(
            name="ReportTitle",
            parent=self.styles["Heading1"],
            fontSize=20,
            textColor=colors.darkblue,
            spaceAfter=18,
            alignment=TA_CENTER,
        ))
        self.styles.add(ParagraphStyle(
            name="ReportNormal",
            parent=self.styles["Normal"],
            fontSize=10,
            spaceAfter=4,
        ))
        self.styles.add(ParagraphStyle(
            name="Cell",
            parent=self.styles["Normal"],
            fontSize=8,
            leading=10,
        ))

    def _create_document(self, buffer: io.BytesIO, title: str) -> SimpleDocTemplate:
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.page_size,
            topMargin=self.margins["top"],
            bottomMargin=self.margins["bottom"],
            leftMargin=self.margins["left"],
            rightMargin=self.margins["right"],
        )
        doc.title = title
        return doc

    def _create_table(self, headers: Sequence[str], rows: List[Sequence[Any]]) -> Table:
        cell = self.styles["Cell"]
        data = [list(headers)]
        data.extend([Paragraph(_text(value), cell) for value in row] for row in rows)
        table = Table(data, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, 0), 9),
            ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.beige]),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
        ]))
        return table

    def table_report(
        self,
        title: str,
        headers: Sequence[str],
        rows: List[Sequence[Any]],
        header_info: Optional[Dict[str, Any]] = None,
    ) -> bytes:
        """Render a report and return the PDF bytes."""
        buffer = io.BytesIO()
        doc = self._create_document(buffer, title)
        story = [Paragraph(title, self.styles["ReportTitle"])]

        for key, value in (header_info or {}).items():
            story.append(Paragraph(f"<b>{_text(key)}:</b> {_text(value)}", self.styles["ReportNormal"]))
        story.append(Spacer(1, 12))

        if rows:
            story.append(self._create_table(headers, rows))
        else:
            story.append(Paragraph("No data available", self.styles["ReportNormal"]))

        doc.build(story)
        return buffer.getvalue()


def _text(value: Any) -> str:
    if value is None:
        return ""
    return (
        str(value)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )
