from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime, timedelta, timezone
from io import BytesIO
from typing import Any
from xml.sax.saxutils import escape as xml_escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.platypus import (
    BaseDocTemplate,
    Frame,
    Image,
    PageTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

from app.core.config import settings
from app.core.ledger import last_signatures
from app.core.report import Report, Role

_FONT = "HYSMyeongJo-Medium"
_FONT_BOLD = "HYGothic-Medium"
_KST = timezone(timedelta(hours=9))
_DATA_URL_RE = re.compile(r"^data:image/[\w.+-]+;base64,")
_SIG_MISSING = "서명 이미지"

_fonts_registered = False


def _register_fonts() -> tuple[str, str]:
    """Register the built-in Korean CID fonts once and return (regular, bold)."""
    global _fonts_registered
    if not _fonts_registered:
        pdfmetrics.registerFont(UnicodeCIDFont(_FONT))
        pdfmetrics.registerFont(UnicodeCIDFont(_FONT_BOLD))
        _fonts_registered = True
    return _FONT, _FONT_BOLD


def _header_footer(canvas, doc, meta: dict[str, str]):
    width, height = getattr(doc, "pagesize", A4)
    canvas.saveState()

    canvas.setFillColor(colors.black)
    canvas.setFont(meta["font_bold"], 16)
    canvas.drawCentredString(width / 2, height - 1.4 * cm, settings.COMPANY_NAME)

    canvas.setFont(meta["font"], 10)
    canvas.drawCentredString(width / 2, height - 2.1 * cm, settings.COMPANY_TAGLINE)
    canvas.setFont(meta["font"], 9)
    canvas.drawCentredString(width / 2, height - 2.6 * cm, settings.COMPANY_ADDRESS)
    canvas.drawCentredString(width / 2, height - 3.05 * cm, settings.COMPANY_CONTACT)

    canvas.setFillColor(colors.HexColor("#0000ff"))
    canvas.drawCentredString(width / 2, height - 3.5 * cm, settings.COMPANY_URL)

    # Header line
    canvas.setStrokeColor(colors.black)
    canvas.setLineWidth(0.8)
    canvas.line(1.8 * cm, height - 4.2 * cm, width - 1.8 * cm, height - 4.2 * cm)

    # Footer
    canvas.line(1.8 * cm, 2.1 * cm, width - 1.8 * cm, 2.1 * cm)
    canvas.setFillColor(colors.HexColor("#333333"))
    canvas.setFont(meta["font"], 8)
    canvas.drawCentredString(width / 2, 1.6 * cm, settings.CERTIFICATE_FOOTER)
    canvas.drawRightString(width - 1.8 * cm, 1.0 * cm, f"{canvas.getPageNumber()}")

    canvas.restoreState()


def _signature_flowable(signature: str | None, style: ParagraphStyle) -> Any:
    """Image for a data-URL signature, the text for a typed one, a placeholder otherwise."""
    if not signature or not signature.strip():
        return Paragraph(_SIG_MISSING, style)
    if not _DATA_URL_RE.match(signature):
        return Paragraph(xml_escape(signature.strip()), style)
    try:
        raw = base64.b64decode(_DATA_URL_RE.sub("", signature), validate=False)
        # decode eagerly so a broken image fails here and not inside doc.build
        ImageReader(BytesIO(raw)).getSize()
    except (binascii.Error, ValueError, OSError):
        return Paragraph(_SIG_MISSING, style)
    return Image(BytesIO(raw), width=3.5 * cm, height=1.4 * cm)


def _label_value(label: str, value: str | None, style: ParagraphStyle, font_bold: str) -> Paragraph:
    return Paragraph(f'<font name="{font_bold}">{xml_escape(label)}</font> {xml_escape(value or "")}', style)


def build_certificate_pdf(report: Report, printed_at: datetime | None = None) -> bytes:
    """Build the damage confirmation certificate for a completed report."""
    font_name, font_bold = _register_fonts()
    printed_at = printed_at or datetime.now(timezone.utc)
    if printed_at.tzinfo is None:
        printed_at = printed_at.replace(tzinfo=timezone.utc)

    styles = getSampleStyleSheet()
    base = ParagraphStyle(
        name="Body",
        parent=styles["Normal"],
        fontName=font_name,
        fontSize=11,
        leading=17,
        alignment=TA_LEFT,
        wordWrap="CJK",
    )
    h1 = ParagraphStyle(
        name="Title",
        parent=base,
        fontName=font_bold,
        fontSize=16,
        leading=22,
        alignment=TA_CENTER,
        spaceAfter=18,
    )
    h2 = ParagraphStyle(
        name="Section",
        parent=base,
        fontName=font_bold,
        spaceBefore=10,
        spaceAfter=4,
        keepWithNext=1,
    )
    small = ParagraphStyle(name="Small", parent=base, fontSize=9, leading=13)

    buff = BytesIO()
    meta = {"font": font_name, "font_bold": font_bold}

    left_m = right_m = 2.4 * cm
    top_m = 5 * cm
    bottom_m = 2.5 * cm
    doc_tpl = BaseDocTemplate(
        buff,
        pagesize=A4,
        leftMargin=left_m,
        rightMargin=right_m,
        topMargin=top_m,
        bottomMargin=bottom_m,
        title=f"DAMAGE_{report.container_no}",
    )
    w, h = A4
    frame = Frame(left_m, bottom_m, w - left_m - right_m, h - top_m - bottom_m, id="F", showBoundary=0)
    doc_tpl.addPageTemplates(
        [PageTemplate(id="certificate", frames=[frame], onPage=lambda c, d: _header_footer(c, d, meta))]
    )
    usable_w = w - left_m - right_m

    story: list[Any] = []
    story.append(Paragraph("컨테이너 DAMAGE 확인서", h1))

    story.append(_label_value("발 신:", report.office_section.staff, base, font_bold))
    story.append(_label_value("제 목:", "컨테이너 DAMAGE의 건", base, font_bold))
    story.append(Spacer(1, 12))

    for label, value in (
        ("Container No.:", report.container_no),
        ("B/L No.:", report.bl_no),
        ("차량 번호:", report.vehicle_no),
        ("운송 기사:", report.driver_name),
        ("운송기사 연락처:", report.driver_phone),
        ("화물 일자:", report.report_date),
    ):
        story.append(_label_value(label, value, base, font_bold))
    story.append(Spacer(1, 14))

    for title, section in (
        ("[운송기사]", report.driver_section),
        ("[현장 책임자]", report.field_section),
        ("[사무실 책임자]", report.office_section),
    ):
        story.append(Paragraph(title, h2))
        story.append(Paragraph(xml_escape(section.damage or "").replace("\n", "<br/>"), base))
    story.append(Spacer(1, 20))

    # Signatures come from the ledger so a resubmission shows the latest one.
    sigs = last_signatures(report.action_history)
    col = usable_w / 2
    sig_table = Table(
        [
            [
                _label_value("운송기사:", report.driver_name, base, font_bold),
                _label_value("현장 책임자:", report.field_section.staff, base, font_bold),
            ],
            [_signature_flowable(sigs[Role.DRIVER], small), _signature_flowable(sigs[Role.FIELD], small)],
            [
                _label_value("사무실 책임자:", report.office_section.staff, base, font_bold),
                Paragraph(f'<font name="{font_bold}">출력일시:</font>', base),
            ],
            [
                _signature_flowable(sigs[Role.OFFICE], small),
                Paragraph(printed_at.astimezone(_KST).strftime("%Y. %m. %d. %H:%M"), base),
            ],
        ],
        colWidths=[col, col],
    )
    sig_table.setStyle(
        TableStyle(
            [
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                ("LEFTPADDING", (0, 0), (-1, -1), 0),
                ("BOTTOMPADDING", (0, 1), (-1, 1), 14),
            ]
        )
    )
    story.append(sig_table)

    doc_tpl.build(story)
    return buff.getvalue()
