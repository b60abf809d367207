"""
PDF Invoice Generator.

Flattens a computed Invoice into a printable document.
Uses fpdf2 (pure Python, no system dependencies).

Sections:
1. Company header (logo, name, subtitle, contact lines)
2. Invoice number + job block
3. Services (per-pound)
4. Custom services
5. Subcontractors
6. Job photos
7. Totals
8. Footer

White-labeled: uses the user's company settings, falling back to defaults.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from fpdf import FPDF
from PIL import Image

from .config import settings
from .invoice import Invoice

logger = logging.getLogger(__name__)

# Image types fpdf2 can embed directly
EMBEDDABLE_IMAGES = {".jpg", ".jpeg", ".png"}

PHOTOS_PER_ROW = 5


def _fmt(amount) -> str:
    """Format a number as $X,XXX.XX"""
    try:
        return f"${float(amount):,.2f}"
    except (ValueError, TypeError):
        return "$0.00"


def _fmt_rate(rate) -> str:
    """Cents per pound, one decimal."""
    try:
        return f"{float(rate):.1f}c/lb"
    except (ValueError, TypeError):
        return "-"


def _fmt_pct(value) -> str:
    """15.0 -> '15', 7.5 -> '7.5'"""
    value = float(value)
    return f"{value:g}"


def _safe(text) -> str:
    """Replace Unicode chars that can't be rendered by built-in PDF fonts (latin-1)."""
    if not text:
        return ""
    return (
        str(text)
        .replace("\u2022", "-")    # bullet
        .replace("\u2014", " - ")  # em dash
        .replace("\u2013", "-")    # en dash
        .replace("\u201c", '"')    # left double quote
        .replace("\u201d", '"')    # right double quote
        .replace("\u2018", "'")    # left single quote
        .replace("\u2019", "'")    # right single quote
        .replace("\u00a2", "c")    # cent sign
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


def _embeddable(path: Optional[Path]) -> bool:
    if path is None or path.suffix.lower() not in EMBEDDABLE_IMAGES or not path.is_file():
        return False
    try:
        with Image.open(path) as img:
            img.verify()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        logger.warning("Skipping undecodable image %s: %s", path, e)
        return False
    return True


class InvoicePDF(FPDF):
    """Custom PDF class for towing invoices."""

    def __init__(self):
        super().__init__()
        self.set_auto_page_break(auto=True, margin=20)

    def header(self):
        pass  # Company header is drawn once, on the first page

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")

    def section_header(self, title):
        self.set_font("Helvetica", "B", 11)
        self.set_fill_color(45, 55, 72)
        self.set_text_color(255, 255, 255)
        self.cell(0, 8, f"  {title}", fill=True, new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)
        self.ln(2)

    def table_header(self, cols):
        """cols: [(label, width), ...]"""
        self.set_font("Helvetica", "B", 8)
        self.set_fill_color(240, 240, 240)
        for label, width in cols:
            align = "R" if label in ("Rate", "Price", "Cost") else "L"
            self.cell(width, 6, label, border="B", fill=True, align=align)
        self.ln()

    def table_row(self, values, widths):
        self.set_font("Helvetica", "", 9)
        for i, (val, width) in enumerate(zip(values, widths)):
            align = "R" if i >= len(widths) - 2 and i > 0 else "L"
            self.cell(width, 5.5, str(val), align=align)
        self.ln()

    def subtotal_row(self, label, amount):
        self.set_font("Helvetica", "B", 9)
        self.cell(140, 6, label, align="R", border="T")
        self.cell(50, 6, _fmt(amount), align="R", border="T")
        self.ln(8)

    def total_line(self, label, amount, bold=False):
        self.set_font("Helvetica", "B" if bold else "", 10)
        self.cell(130, 6, label)
        self.cell(60, 6, _fmt(amount), align="R")
        self.ln()


def generate_invoice_pdf(
    invoice: Invoice,
    company: Optional[dict] = None,
    photo_paths: Iterable[Path] = (),
    logo_path: Optional[Path] = None,
) -> bytes:
    """
    Generate a PDF invoice document.

    Args:
        invoice: computed Invoice
        company: company settings dict (company_name, company_subtitle, address,
                 phone, email, invoice_footer); missing keys use defaults
        photo_paths: local job photo files, shown as a grid
        logo_path: local logo image file

    Returns:
        PDF bytes
    """
    company = company or {}
    company_name = company.get("company_name") or settings.DEFAULT_COMPANY_NAME
    subtitle = company.get("company_subtitle") or settings.DEFAULT_COMPANY_SUBTITLE
    footer_text = company.get("invoice_footer") or settings.DEFAULT_INVOICE_FOOTER
    contact_lines = [company.get(k) for k in ("address", "phone", "email") if company.get(k)]

    pdf = InvoicePDF()
    pdf.alias_nb_pages()
    pdf.add_page()
    pw = pdf.w - pdf.l_margin - pdf.r_margin  # printable width

    # ── SECTION 1: Company header ──
    if _embeddable(logo_path):
        pdf.image(str(logo_path), x=(pdf.w - 20) / 2, w=20, h=20, keep_aspect_ratio=True)
        pdf.ln(2)

    pdf.set_font("Helvetica", "B", 20)
    pdf.cell(pw, 10, _safe(company_name), align="C", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    pdf.set_text_color(100, 100, 100)
    pdf.cell(pw, 5, _safe(subtitle), align="C", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 8)
    for line in contact_lines:
        pdf.cell(pw, 4, _safe(line), align="C", new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)
    pdf.ln(6)

    # ── SECTION 2: Invoice + job ──
    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(pw / 2, 8, "INVOICE")
    pdf.cell(pw / 2, 8, _safe(f"#{invoice.invoice_number}"), align="R", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    job_lines = [
        ("Date", invoice.date),
        ("Customer", invoice.customer_name),
        ("Vehicle", invoice.vehicle_type),
        ("Weight", f"{invoice.vehicle_weight:,} lbs"),
    ]
    for label, value in job_lines:
        pdf.cell(0, 5, _safe(f"{label}: {value}"), new_x="LMARGIN", new_y="NEXT")
    pdf.multi_cell(0, 5, _safe(f"Problem: {invoice.problem_description}"))
    pdf.ln(4)

    # ── SECTION 3: Services ──
    pdf.section_header("SERVICES PROVIDED")
    cols = [("Service", 120), ("Rate", 35), ("Cost", 35)]
    widths = [c[1] for c in cols]
    pdf.table_header(cols)
    for service in invoice.services:
        pdf.table_row([_safe(service.name[:70]), _fmt_rate(service.rate), _fmt(service.cost)], widths)
    pdf.subtotal_row("Services Subtotal", invoice.subtotal)

    # ── SECTION 4: Custom services ──
    if invoice.custom_services:
        pdf.section_header("ADDITIONAL SERVICES")
        cols = [("Item", 155), ("Price", 35)]
        widths = [c[1] for c in cols]
        pdf.table_header(cols)
        for item in invoice.custom_services:
            pdf.table_row([_safe(item.name[:90]), _fmt(item.price)], widths)
        pdf.subtotal_row("Additional Services", invoice.custom_services_total)

    # ── SECTION 5: Subcontractors ──
    if invoice.subcontractors:
        pdf.section_header("SUBCONTRACTORS")
        cols = [("Subcontractor", 60), ("Work Performed", 95), ("Price", 35)]
        widths = [c[1] for c in cols]
        pdf.table_header(cols)
        for sub in invoice.subcontractors:
            pdf.table_row([_safe(sub.name[:35]), _safe(sub.work_performed[:55]), _fmt(sub.price)], widths)
        pdf.subtotal_row("Subcontractor Charges", invoice.subcontractor_total)

    # ── SECTION 6: Photos ──
    photos = [p for p in photo_paths if _embeddable(p)]
    if photos:
        pdf.section_header("JOB PHOTOS")
        size = (pw - (PHOTOS_PER_ROW - 1) * 3) / PHOTOS_PER_ROW
        for i, path in enumerate(photos):
            col = i % PHOTOS_PER_ROW
            if col == 0:
                if i > 0:
                    pdf.ln(size + 3)
                if pdf.get_y() + size > pdf.page_break_trigger:
                    pdf.add_page()
                row_y = pdf.get_y()
            x = pdf.l_margin + col * (size + 3)
            pdf.image(str(path), x=x, y=row_y, w=size, h=size, keep_aspect_ratio=True)
        pdf.ln(size + 6)

    # ── SECTION 7: Totals ──
    pdf.section_header("TOTAL")
    pdf.total_line("Services Subtotal", invoice.subtotal)
    if invoice.custom_services:
        pdf.total_line("Additional Services", invoice.custom_services_total)
    if invoice.subcontractors:
        pdf.total_line("Subcontractor Charges", invoice.subcontractor_total)
    pdf.total_line(f"Fuel Surcharge ({_fmt_pct(invoice.fuel_surcharge)}%)", invoice.fuel_surcharge_amount)

    pdf.ln(1)
    pdf.set_fill_color(45, 55, 72)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(130, 10, "  INVOICE TOTAL", fill=True)
    pdf.cell(60, 10, f"{_fmt(invoice.total)}  ", fill=True, align="R")
    pdf.set_text_color(0, 0, 0)
    pdf.ln(14)

    # ── SECTION 8: Footer ──
    pdf.set_font("Helvetica", "I", 8)
    pdf.set_text_color(100, 100, 100)
    for line in footer_text.split("\n"):
        pdf.set_x(pdf.l_margin)
        pdf.cell(pw, 4, _safe(line), align="C", new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)

    return bytes(pdf.output())
