"""
PDF rendering for tax documents.

Documents are rendered on demand from the stored tax record (or a single
donation) with reportlab's canvas: fixed-position text on US-letter pages.
"""

import io
from datetime import datetime

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from giving.db.enums import TaxDocumentType
from giving.db.models import Donation, TaxRecord


PAGE_WIDTH, PAGE_HEIGHT = letter  # 612 x 792 points
LEFT = 50
AMOUNT_COLUMN = 300
TOP_MARGIN = 50
BOTTOM_LIMIT = 80
LINE_STEP = 20
TITLE_FONT = ("Helvetica-Bold", 16)
BODY_FONT = ("Helvetica", 12)
SMALL_FONT = ("Helvetica", 10)


def _money(value) -> str:
    return f"${float(value or 0):,.2f}"


def _date(value: datetime) -> str:
    return value.strftime("%m/%d/%Y")


class _Page:
    """Tiny cursor over a canvas; y is measured from the bottom like reportlab."""

    def __init__(self, title: str):
        self.buffer = io.BytesIO()
        self.canvas = canvas.Canvas(self.buffer, pagesize=letter)
        self.canvas.setTitle(title)
        self.text(title, PAGE_HEIGHT - TOP_MARGIN, TITLE_FONT)

    def text(self, value: str, y: float, font=BODY_FONT, x: float = LEFT) -> None:
        self.canvas.setFont(*font)
        self.canvas.drawString(x, y, value)

    def new_page(self) -> float:
        self.canvas.showPage()
        return PAGE_HEIGHT - TOP_MARGIN

    def finish(self) -> bytes:
        self.canvas.showPage()
        self.canvas.save()
        return self.buffer.getvalue()


def render_schedule_a(record: TaxRecord) -> bytes:
    page = _Page("Schedule A - Itemized Deductions")
    page.text(f"Tax Year: {record.tax_year}", PAGE_HEIGHT - 80)
    page.text(
        f"Total Charitable Contributions: {_money(record.summary.total_tax_deductible)}",
        PAGE_HEIGHT - 110,
    )

    y = PAGE_HEIGHT - 140
    for item in record.donations:
        if y < BOTTOM_LIMIT:
            y = page.new_page()
        page.text(f"{item.charity_name} ({item.charity_ein})", y, SMALL_FONT)
        page.text(f"{_money(item.amount)} - {_date(item.date)}", y, SMALL_FONT, x=AMOUNT_COLUMN)
        y -= LINE_STEP
    return page.finish()


def render_receipt(record: TaxRecord) -> bytes:
    page = _Page("Charitable Donation Receipt")
    page.text(f"Tax Year: {record.tax_year}", PAGE_HEIGHT - 80)
    page.text(f"Total Donations: {_money(record.summary.total_donations)}", PAGE_HEIGHT - 110)
    page.text(f"Tax Deductible Amount: {_money(record.summary.total_tax_deductible)}", PAGE_HEIGHT - 140)
    return page.finish()


def render_summary(record: TaxRecord) -> bytes:
    page = _Page("Donation Summary")
    page.text(f"Tax Year: {record.tax_year}", PAGE_HEIGHT - 80)
    page.text(f"Total Donations: {_money(record.summary.total_donations)}", PAGE_HEIGHT - 110)
    page.text(f"Number of Donations: {record.summary.donation_count}", PAGE_HEIGHT - 140)
    page.text(f"Unique Charities: {record.summary.unique_charities}", PAGE_HEIGHT - 170)
    return page.finish()


RENDERERS = {
    TaxDocumentType.SCHEDULE_A: render_schedule_a,
    TaxDocumentType.RECEIPT: render_receipt,
    TaxDocumentType.SUMMARY: render_summary,
}


def render_tax_document(record: TaxRecord, document_type: TaxDocumentType) -> bytes:
    return RENDERERS[document_type](record)


def render_donation_receipt(donation: Donation) -> bytes:
    """Receipt for one donation, built from the donation row itself."""
    page = _Page("Charitable Donation Receipt")
    charity = donation.charity
    page.text(f"Date: {_date(donation.created_at)}", PAGE_HEIGHT - 80)
    page.text(f"Charity: {charity.name if charity else 'Unknown'}", PAGE_HEIGHT - 110)
    if charity and charity.ein:
        page.text(f"EIN: {charity.ein}", PAGE_HEIGHT - 130)
    page.text(f"Amount: {_money(donation.amount)}", PAGE_HEIGHT - 160)
    deductible = donation.tax_info.tax_deductible is not False
    page.text(f"Tax Deductible: {'Yes' if deductible else 'No'}", PAGE_HEIGHT - 190)
    page.text(f"Donation ID: {donation.id}", PAGE_HEIGHT - 220, SMALL_FONT)
    return page.finish()
