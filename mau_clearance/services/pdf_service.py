"""
Clearance certificate PDF rendering
"""

from io import BytesIO
from xml.sax.saxutils import escape
import qrcode
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, Image

PRIMARY = colors.HexColor('#1e3a8a')
ACCENT = colors.HexColor('#1e40af')
TEXT = colors.HexColor('#374151')


def make_qr_png(text: str) -> BytesIO:
    img = qrcode.make(text)
    buf = BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def format_long_date(value) -> str:
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def _draw_frame(canvas, doc):
    """Page background and border"""
    width, height = A4
    canvas.saveState()
    canvas.setFillColor(colors.HexColor('#f8fafc'))
    canvas.rect(0, 0, width, height, stroke=0, fill=1)
    canvas.setStrokeColor(ACCENT)
    canvas.setLineWidth(3)
    canvas.roundRect(30, 30, width - 60, height - 60, 10, stroke=1, fill=0)
    canvas.restoreState()


def render_certificate_pdf(student, certificate, verify_url: str, institution: str,
                           verify_hint: str) -> bytes:
    """
    Render the clearance certificate

    Args:
        student: Student the certificate was issued to
        certificate: Persisted Certificate record
        verify_url: URL encoded in the QR code
        institution: Institution name for the header
        verify_hint: Human readable verification address

    Returns:
        PDF bytes
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=50,
        leftMargin=50,
        topMargin=60,
        bottomMargin=50,
        title=f"Clearance Certificate {certificate.certificate_id}",
    )

    styles = getSampleStyleSheet()
    header_style = ParagraphStyle(
        'InstitutionHeader',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=PRIMARY,
        alignment=TA_CENTER,
        spaceAfter=6,
    )
    title_style = ParagraphStyle(
        'CertificateTitle',
        parent=styles['Heading2'],
        fontSize=16,
        textColor=TEXT,
        alignment=TA_CENTER,
        spaceAfter=18,
    )
    body_style = ParagraphStyle(
        'CertificateBody',
        parent=styles['Normal'],
        fontSize=12,
        leading=16,
        textColor=colors.HexColor('#1f2937'),
        alignment=TA_CENTER,
    )
    name_style = ParagraphStyle(
        'StudentName',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=PRIMARY,
        alignment=TA_CENTER,
        spaceBefore=10,
        spaceAfter=16,
    )
    small_style = ParagraphStyle(
        'VerifyHint',
        parent=body_style,
        fontSize=10,
        leading=13,
    )

    elements = [
        Paragraph(escape(institution.upper()), header_style),
        Paragraph("OFFICIAL CLEARANCE CERTIFICATE", title_style),
        Paragraph("This certifies that:", body_style),
        Paragraph(escape(student.full_name.upper()), name_style),
    ]

    details = Table([
        ['Student ID:', student.student_number],
        ['Department:', student.department],
        ['Year:', f"Year {student.year}"],
    ], colWidths=[1.4 * inch, 4 * inch])
    details.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 12),
        ('TEXTCOLOR', (0, 0), (-1, -1), TEXT),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(details)
    elements.append(Spacer(1, 0.25 * inch))

    elements.append(Paragraph(
        "has successfully completed all academic requirements and clearance procedures "
        "as verified by the university administration.",
        body_style,
    ))
    elements.append(Spacer(1, 0.25 * inch))

    cert_details = Table([
        ['Issue Date:', format_long_date(certificate.issue_date)],
        ['Expiry Date:', format_long_date(certificate.expiry_date)],
        ['Certificate ID:', certificate.certificate_id],
    ], colWidths=[1.4 * inch, 4 * inch])
    cert_details.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 12),
        ('TEXTCOLOR', (0, 0), (-1, -1), TEXT),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    elements.append(cert_details)
    elements.append(Spacer(1, 0.3 * inch))

    elements.append(Paragraph("Scan QR code to verify authenticity:", small_style))
    elements.append(Spacer(1, 0.1 * inch))
    elements.append(Image(make_qr_png(verify_url), width=1.2 * inch, height=1.2 * inch))
    elements.append(Spacer(1, 0.1 * inch))
    elements.append(Paragraph(f"Verify at: {escape(verify_hint)}", small_style))
    elements.append(Paragraph(f"Certificate ID: {certificate.certificate_id}", small_style))

    doc.build(elements, onFirstPage=_draw_frame, onLaterPages=_draw_frame)

    pdf = buffer.getvalue()
    buffer.close()
    return pdf
