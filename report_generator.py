import logging
import os
import re
import tempfile
from pathlib import Path
from typing import List, Optional

import pandas as pd
from fpdf import FPDF
from fpdf.enums import XPos, YPos
from fpdf.errors import FPDFUnicodeEncodingException

import config
from billing import grand_total
from models import FarmerStatement

logger = logging.getLogger(__name__)

STATEMENT_COLUMNS = [
    "Date", "Morning Milk", "Morning Fat", "Evening Milk", "Evening Fat",
    "Fat Unit", "Amount", "Remarks"
]

NOT_DEDUCTED = "(Not deducted)"

CORE_FONT = "Helvetica"
UNICODE_FONT = "DairyUnicode"

# cell() keyword sets: stay on the line, or move to the start of the next one
SAME_LINE = {"new_x": XPos.RIGHT, "new_y": YPos.TOP}
NEXT_LINE = {"new_x": XPos.LMARGIN, "new_y": YPos.NEXT}


class ReportError(Exception):
    """A report could not be produced; the message can be shown to the user."""


def find_unicode_font(font_path: Optional[str] = None) -> Optional[str]:
    """Path of a TTF to embed in PDFs, or None to use the Latin-1 core font.

    An explicit path (argument or PDF_FONT_PATH) wins; otherwise the first
    existing entry of PDF_FONT_CANDIDATES is used.
    """
    explicit = font_path or config.PDF_FONT_PATH
    if explicit:
        if Path(explicit).is_file():
            return str(explicit)
        logger.warning("PDF font %s not found, falling back to %s", explicit, CORE_FONT)
        return None
    for candidate in config.PDF_FONT_CANDIDATES:
        if Path(candidate).is_file():
            return str(candidate)
    return None


def format_quantity(value: float) -> str:
    """Milk and fat are shown with one decimal, blank when nothing was recorded."""
    return f"{value:.1f}" if value > 0 else ""


def format_range(start_date: str, end_date: str) -> str:
    """'2081-01-16', '2081-01-31' -> '2081 01 16 To 2081 01 31'"""
    return f"{start_date.replace('-', ' ')} To {end_date.replace('-', ' ')}"


def statement_to_dataframe(statement: FarmerStatement, include_totals: bool = True) -> pd.DataFrame:
    """Tabulate a statement the way it is printed."""
    rows = [
        {
            "Date": entry.date,
            "Morning Milk": format_quantity(entry.morning_milk),
            "Morning Fat": format_quantity(entry.morning_fat),
            "Evening Milk": format_quantity(entry.evening_milk),
            "Evening Fat": format_quantity(entry.evening_fat),
            "Fat Unit": f"{entry.total_fat_units:.2f}",
            "Amount": f"{entry.amount:.2f}",
            "Remarks": entry.remarks or "",
        }
        for entry in statement.entries
    ]

    if include_totals:
        rows.append({
            "Date": "Period Total",
            "Fat Unit": f"{statement.total_fat_units:.2f}",
            "Amount": f"{statement.total_amount:.2f}",
        })
        if statement.pending_advance > 0:
            rows.append({
                "Date": "Pending Advance",
                "Amount": f"{statement.pending_advance:.2f}",
                "Remarks": NOT_DEDUCTED,
            })

    return pd.DataFrame(rows, columns=STATEMENT_COLUMNS).fillna("")


def _sheet_name(statement: FarmerStatement, used: set) -> str:
    # Excel: max 31 chars, no []:*?/\ and unique within the workbook
    base = re.sub(r"[\[\]:*?/\\]", "", f"{statement.farmer.farmer_no} {statement.farmer.name}")[:31]
    name = base or str(statement.farmer.farmer_no)
    suffix = 2
    while name in used:
        tail = f" ({suffix})"
        name = base[:31 - len(tail)] + tail
        suffix += 1
    used.add(name)
    return name


class DairyReportGenerator:
    def __init__(self, dairy_name: str = None, dairy_address: str = None,
                 font_path: Optional[str] = None):
        """Initialize the report generator."""
        self.dairy_name = dairy_name or config.DAIRY_NAME
        self.dairy_address = dairy_address or config.DAIRY_ADDRESS
        self.font_path = find_unicode_font(font_path)

    def _new_pdf(self):
        """Create an A4 document and return it with the font family to use."""
        pdf = FPDF(orientation="P", unit="mm", format="A4")
        pdf.set_auto_page_break(auto=True, margin=15)
        if not self.font_path:
            return pdf, CORE_FONT
        pdf.add_font(UNICODE_FONT, "", self.font_path)
        pdf.add_font(UNICODE_FONT, "B", self.font_path)
        return pdf, UNICODE_FONT

    def _add_statement_page(self, pdf: FPDF, family: str, statement: FarmerStatement):
        pdf.add_page()

        # Dairy header
        pdf.set_font(family, "B", 18)
        pdf.cell(0, 10, self.dairy_name, align="C", **NEXT_LINE)
        pdf.set_font(family, "", 11)
        pdf.cell(0, 6, self.dairy_address, align="C", **NEXT_LINE)
        pdf.line(10, pdf.get_y() + 2, 200, pdf.get_y() + 2)
        pdf.ln(5)

        # Farmer details
        pdf.set_font(family, "", 12)
        pdf.cell(95, 8, f"Farmer Name: {statement.farmer.name}", align="L", **SAME_LINE)
        pdf.set_font(family, "B", 12)
        pdf.cell(95, 8, f"Farmer No: {statement.farmer.farmer_no}", align="R", **NEXT_LINE)

        pdf.set_font(family, "B", 13)
        pdf.cell(0, 10, format_range(statement.start_date, statement.end_date), align="C", **NEXT_LINE)
        pdf.ln(2)

        # Column widths add up to 190 (A4 minus margins)
        date_width = 28
        qty_width = 20
        units_width = 24
        amount_width = 28
        remarks_width = 30

        # Two-row header: shift groups, then milk/fat
        pdf.set_font(family, "B", 10)
        pdf.cell(date_width, 7, "Date", border="LTR", align="C", **SAME_LINE)
        pdf.cell(qty_width * 2, 7, "Morning", border=1, align="C", **SAME_LINE)
        pdf.cell(qty_width * 2, 7, "Evening", border=1, align="C", **SAME_LINE)
        pdf.cell(units_width, 7, "Fat Unit", border="LTR", align="C", **SAME_LINE)
        pdf.cell(amount_width, 7, "Amount", border="LTR", align="C", **SAME_LINE)
        pdf.cell(remarks_width, 7, "Remarks", border="LTR", align="C", **NEXT_LINE)

        pdf.cell(date_width, 7, "", border="LBR", **SAME_LINE)
        for _ in range(2):
            pdf.cell(qty_width, 7, "Milk", border=1, align="C", **SAME_LINE)
            pdf.cell(qty_width, 7, "Fat", border=1, align="C", **SAME_LINE)
        pdf.cell(units_width, 7, "", border="LBR", **SAME_LINE)
        pdf.cell(amount_width, 7, "", border="LBR", **SAME_LINE)
        pdf.cell(remarks_width, 7, "", border="LBR", **NEXT_LINE)

        pdf.set_font(family, "", 9)
        for entry in statement.entries:
            pdf.cell(date_width, 6, entry.date, border=1, align="C", **SAME_LINE)
            pdf.cell(qty_width, 6, format_quantity(entry.morning_milk), border=1, align="C", **SAME_LINE)
            pdf.cell(qty_width, 6, format_quantity(entry.morning_fat), border=1, align="C", **SAME_LINE)
            pdf.cell(qty_width, 6, format_quantity(entry.evening_milk), border=1, align="C", **SAME_LINE)
            pdf.cell(qty_width, 6, format_quantity(entry.evening_fat), border=1, align="C", **SAME_LINE)
            pdf.cell(units_width, 6, f"{entry.total_fat_units:.2f}", border=1, align="C", **SAME_LINE)
            pdf.cell(amount_width, 6, f"{entry.amount:.2f}", border=1, align="C", **SAME_LINE)
            pdf.cell(remarks_width, 6, entry.remarks or "", border=1, align="C", **NEXT_LINE)

        # Period total
        pdf.set_font(family, "B", 10)
        pdf.cell(date_width + qty_width * 4, 8, "Period Total:", border=1, align="R", **SAME_LINE)
        pdf.cell(units_width, 8, f"{statement.total_fat_units:.2f}", border=1, align="C", **SAME_LINE)
        pdf.cell(amount_width, 8, f"{statement.total_amount:.2f}", border=1, align="C", **SAME_LINE)
        pdf.cell(remarks_width, 8, "", border=1, **NEXT_LINE)

        # Advance is shown, never subtracted
        if statement.pending_advance > 0:
            pdf.cell(date_width + qty_width * 4 + units_width, 8, "Pending Advance:",
                     border=1, align="R", **SAME_LINE)
            pdf.cell(amount_width, 8, f"{statement.pending_advance:.2f}", border=1, align="C", **SAME_LINE)
            pdf.set_font(family, "", 8)
            pdf.cell(remarks_width, 8, NOT_DEDUCTED, border=1, align="C", **NEXT_LINE)

        # Signature lines
        pdf.ln(15)
        pdf.line(20, pdf.get_y(), 80, pdf.get_y())
        pdf.line(120, pdf.get_y(), 180, pdf.get_y())
        pdf.ln(2)
        pdf.set_font(family, "", 10)
        pdf.cell(90, 8, "Farmer Signature", align="C", **SAME_LINE)
        pdf.cell(90, 8, "Authorized Signature", align="C", **NEXT_LINE)

    def create_statement_pdf(self, statements: List[FarmerStatement],
                             output_filename: Optional[str] = None,
                             show_grand_total: bool = False) -> str:
        """Write one page per farmer statement and return the PDF path.

        With ``show_grand_total`` and more than one statement, a closing line
        with the total across all farmers is added.

        Raises ReportError when a name cannot be drawn because no Unicode
        font is available.
        """
        pdf, family = self._new_pdf()

        try:
            for statement in statements:
                self._add_statement_page(pdf, family, statement)
        except FPDFUnicodeEncodingException as e:
            logger.warning("Statement PDF needs a Unicode font: %s", e)
            raise ReportError(
                "This statement has text the built-in PDF font cannot print. "
                "Set PDF_FONT_PATH to a Devanagari TTF font, or use the Excel export."
            ) from e

        if show_grand_total and len(statements) > 1:
            pdf.ln(8)
            pdf.set_font(family, "B", 14)
            pdf.cell(0, 10, f"Grand Total (All Farmers): Rs. {grand_total(statements):.2f}",
                     align="C", **NEXT_LINE)

        if not statements:
            pdf.add_page()
            pdf.set_font(family, "", 12)
            pdf.cell(0, 10, "No farmers found for this report.", align="C", **NEXT_LINE)

        # Generate temporary file if no output filename is provided
        if not output_filename:
            temp_dir = tempfile.gettempdir()
            if statements:
                first = statements[0]
                name = f"statement_{first.start_date}_{first.end_date}.pdf"
            else:
                name = "statement_empty.pdf"
            output_filename = os.path.join(temp_dir, name)

        pdf.output(output_filename)
        logger.info("Wrote %d statement(s) to %s", len(statements), output_filename)
        return output_filename

    def export_statements_to_excel(self, statements: List[FarmerStatement],
                                   output_filename: Optional[str] = None) -> str:
        """Export statements to Excel, one sheet per farmer."""
        if not output_filename:
            temp_dir = tempfile.gettempdir()
            output_filename = os.path.join(temp_dir, "statements.xlsx")

        used_names = set()
        with pd.ExcelWriter(output_filename, engine="xlsxwriter") as writer:
            if not statements:
                pd.DataFrame(columns=STATEMENT_COLUMNS).to_excel(writer, sheet_name="Statements", index=False)
            for statement in statements:
                df = statement_to_dataframe(statement)
                df.to_excel(writer, sheet_name=_sheet_name(statement, used_names), index=False)

        logger.info("Exported %d statement(s) to %s", len(statements), output_filename)
        return output_filename
