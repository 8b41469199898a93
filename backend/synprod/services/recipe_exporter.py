"""
Recipe Exporter — production recipe PDF for a scaled order.

Two stages:
  1. build_document() turns a ScaleResult into a RecipeDocument: a plain
     layout value (title, order summary, composition table with Total row,
     ingredient table, footer) holding display strings only.
  2. render_pdf() draws a RecipeDocument onto A4 pages with reportlab,
     repeating header/footer and continuing tables across pages.

Every figure in the document is read from the ScaleResult produced by
RecipeScaler.scale — this module performs no arithmetic on weights beyond
display formatting, so the PDF always matches the interactive calculator.
"""
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Tuple

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas as rl_canvas

from synprod.services.catalogs import get_product_type_info
from synprod.services.recipe_scaler import RecipeScaler, ScaleResult

logger = logging.getLogger("synprod-export")

BRAND_NAME = "SynProd"

TITLE_COLOR = HexColor("#2f3a2a")
SUBTITLE_COLOR = HexColor("#4b5b3f")
MUTED_COLOR = HexColor("#6b7280")
HEADER_FILL = HexColor("#f1f6e8")
HEADER_BORDER = HexColor("#d9e4c2")
ROW_BORDER = HexColor("#e5e7eb")
CHIP_BORDER = HexColor("#b7c792")

# Column widths as fractions of the usable width: name / small / medium
COLUMN_FRACTIONS = (0.55, 0.15, 0.30)

MARGIN = 1.2 * cm
ROW_PADDING = 0.18 * cm
LINE_HEIGHT = 0.42 * cm
BOTTOM_LIMIT = 2.2 * cm


# ── Layout model ──────────────────────────────────────────────────────────────

@dataclass
class RecipeTable:
    title: str
    headers: Tuple[str, str, str]
    rows: List[Tuple[str, str, str]] = field(default_factory=list)
    total_row: Optional[Tuple[str, str, str]] = None


@dataclass
class RecipeDocument:
    title: str
    subtitle: str
    description: Optional[str]
    summary: List[Tuple[str, str]]
    tables: List[RecipeTable]
    footer: str


# ── Formatting helpers ────────────────────────────────────────────────────────

def _fmt_quantity(value: float) -> str:
    """Order quantities: integers without decimals, otherwise up to 2 dp."""
    if value is None:
        return "0"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def _with_notes(name: str, notes: Optional[str]) -> str:
    return f"{name} — {notes}" if notes else name


def _sort_key(pair) -> int:
    line = pair.composition if hasattr(pair, "composition") else pair.ingredient
    return line.sort_order or 0


# ── Exporter ──────────────────────────────────────────────────────────────────

class RecipeExporter:

    def __init__(self, scaler: Optional[RecipeScaler] = None):
        self.scaler = scaler or RecipeScaler()

    def build_document(
        self,
        recipe: Any,
        result: ScaleResult,
        capacity_unit_label: str,
        generated_at: Optional[datetime] = None,
    ) -> RecipeDocument:
        info = get_product_type_info(result.product_type)
        total_weight_display = f"{result.total_weight:.1f}"

        summary = [
            ("Quantity", f"{_fmt_quantity(result.order_quantity)} {capacity_unit_label}".strip()),
            ("Total Weight", f"{total_weight_display}{info.base_weight_unit}"),
        ]
        created_by = getattr(recipe, "created_by_name", None)
        if created_by:
            summary.append(("Created By", created_by))

        tables: List[RecipeTable] = []

        if result.per_composition:
            comp_table = RecipeTable(
                title="Composition",
                headers=("Component", "%", f"Weight ({info.base_weight_unit})"),
            )
            for scaled in sorted(result.per_composition, key=_sort_key):
                c = scaled.composition
                comp_table.rows.append((
                    _with_notes(c.component_name, c.notes),
                    f"{(c.percentage or 0.0):.2f}%",
                    f"{scaled.scaled_weight:.1f}",
                ))
            comp_table.total_row = (
                "Total",
                f"{result.total_percentage:.1f}%",
                total_weight_display,
            )
            tables.append(comp_table)

        if result.per_ingredient:
            ing_table = RecipeTable(
                title="Additional Ingredients",
                headers=("Ingredient", "Base", "Calculated"),
            )
            for scaled in sorted(result.per_ingredient, key=_sort_key):
                i = scaled.ingredient
                ing_table.rows.append((
                    _with_notes(i.ingredient_name, i.notes),
                    f"{(i.quantity or 0.0):g} {i.unit} / {info.base_weight_display}",
                    f"{scaled.scaled_quantity:.2f} {i.unit}",
                ))
            tables.append(ing_table)

        stamp = (generated_at or datetime.now()).strftime("%d %b %Y %H:%M")
        return RecipeDocument(
            title=f"{recipe.name} – Production Recipe",
            subtitle=f"{info.display_name} • Base {info.base_weight_display}",
            description=getattr(recipe, "description", None) or None,
            summary=summary,
            tables=tables,
            footer=f"Generated by {BRAND_NAME} • {stamp}",
        )

    def export(
        self,
        recipe: Any,
        order_quantity: float,
        capacity_unit_key: Optional[str] = None,
        generated_at: Optional[datetime] = None,
    ) -> bytes:
        """Scale ``recipe`` with the shared scaler and render the PDF."""
        result = self.scaler.scale_recipe(recipe, order_quantity, capacity_unit_key)
        document = self.build_document(recipe, result, result.capacity_unit.label, generated_at)
        pdf = self.render_pdf(document)
        logger.info(
            f"Recipe PDF rendered: {recipe.name!r} x{order_quantity} {result.capacity_unit.key} "
            f"({len(pdf)} bytes)",
            extra={"product_id": getattr(recipe, "id", None)},
        )
        return pdf

    # ── PDF rendering ─────────────────────────────────────────────────────────

    def render_pdf(self, document: RecipeDocument) -> bytes:
        buffer = io.BytesIO()
        page_w, page_h = A4
        c = rl_canvas.Canvas(buffer, pagesize=A4)
        c.setTitle(document.title)
        c.setAuthor(BRAND_NAME)

        page_num = 1
        _draw_footer(c, page_w, page_num, document.footer)
        y = self._draw_title_block(c, page_w, page_h, document)

        y -= 0.6 * cm
        y = self._draw_summary(c, page_w, y, document.summary)

        for table in document.tables:
            y -= 0.8 * cm
            if y < BOTTOM_LIMIT + 3 * LINE_HEIGHT:
                page_num = self._new_page(c, page_w, page_num, document.footer)
                y = page_h - MARGIN
            y, page_num = self._draw_table(c, page_w, page_h, y, table, page_num, document.footer)

        c.save()
        return buffer.getvalue()

    def _new_page(self, c, page_w, page_num: int, footer: str) -> int:
        c.showPage()
        page_num += 1
        _draw_footer(c, page_w, page_num, footer)
        return page_num

    def _draw_title_block(self, c, page_w, page_h, document: RecipeDocument) -> float:
        y = page_h - MARGIN - 0.4 * cm
        c.setFillColor(TITLE_COLOR)
        c.setFont("Helvetica-Bold", 18)
        c.drawString(MARGIN, y, document.title)
        y -= 0.6 * cm
        c.setFillColor(SUBTITLE_COLOR)
        c.setFont("Helvetica", 12)
        c.drawString(MARGIN, y, document.subtitle)
        if document.description:
            c.setFillColor(MUTED_COLOR)
            c.setFont("Helvetica", 10)
            for line in simpleSplit(document.description, "Helvetica", 10, page_w - 2 * MARGIN):
                y -= LINE_HEIGHT
                c.drawString(MARGIN, y, line)
        y -= 0.3 * cm
        c.setStrokeColor(HexColor("#cccccc"))
        c.line(MARGIN, y, page_w - MARGIN, y)
        return y

    def _draw_summary(self, c, page_w, y: float, summary: List[Tuple[str, str]]) -> float:
        c.setFillColor(TITLE_COLOR)
        c.setFont("Helvetica-Bold", 12)
        c.drawString(MARGIN, y, "Order Summary")
        y -= 0.6 * cm
        c.setFont("Helvetica", 10)
        for label, value in summary:
            c.setFillColorRGB(0, 0, 0)
            c.drawString(MARGIN, y, label)
            text_w = c.stringWidth(value, "Helvetica", 10)
            c.setStrokeColor(CHIP_BORDER)
            c.roundRect(page_w - MARGIN - text_w - 0.4 * cm, y - 0.12 * cm,
                        text_w + 0.4 * cm, 0.5 * cm, 3, fill=0)
            c.setFillColor(TITLE_COLOR)
            c.drawRightString(page_w - MARGIN - 0.2 * cm, y, value)
            y -= 0.65 * cm
        return y

    def _draw_table(self, c, page_w, page_h, y: float, table: RecipeTable,
                    page_num: int, footer: str) -> Tuple[float, int]:
        usable_w = page_w - 2 * MARGIN
        widths = [usable_w * f for f in COLUMN_FRACTIONS]

        c.setFillColor(TITLE_COLOR)
        c.setFont("Helvetica-Bold", 12)
        c.drawString(MARGIN, y, table.title)
        y -= 0.35 * cm
        y = _draw_row(c, y, widths, table.headers, header=True)

        body = list(table.rows)
        if table.total_row:
            body.append(table.total_row)
        for idx, row in enumerate(body):
            is_total = table.total_row is not None and idx == len(body) - 1
            needed = _row_height(c, widths, row)
            if y - needed < BOTTOM_LIMIT:
                page_num = self._new_page(c, page_w, page_num, footer)
                y = page_h - MARGIN
                c.setFillColor(MUTED_COLOR)
                c.setFont("Helvetica-Oblique", 9)
                c.drawString(MARGIN, y, f"{table.title} (continued)")
                y -= 0.35 * cm
                y = _draw_row(c, y, widths, table.headers, header=True)
            y = _draw_row(c, y, widths, row, bold=is_total)
        return y, page_num


# ── Low-level drawing ─────────────────────────────────────────────────────────

def _row_height(c, widths, cells) -> float:
    lines = simpleSplit(cells[0], "Helvetica", 9, widths[0] - 2 * ROW_PADDING) or [""]
    return len(lines) * LINE_HEIGHT + 2 * ROW_PADDING


def _draw_row(c, y: float, widths, cells, header: bool = False, bold: bool = False) -> float:
    font = "Helvetica-Bold" if (header or bold) else "Helvetica"
    name_lines = simpleSplit(cells[0], font, 9, widths[0] - 2 * ROW_PADDING) or [""]
    height = len(name_lines) * LINE_HEIGHT + 2 * ROW_PADDING
    top = y
    bottom = y - height

    if header:
        c.setFillColor(HEADER_FILL)
        c.setStrokeColor(HEADER_BORDER)
        c.rect(MARGIN, bottom, sum(widths), height, fill=1, stroke=1)
    else:
        c.setStrokeColor(ROW_BORDER)
        c.rect(MARGIN, bottom, sum(widths), height, fill=0, stroke=1)

    c.setFillColorRGB(0.1, 0.1, 0.1)
    c.setFont(font, 9)
    text_y = top - ROW_PADDING - LINE_HEIGHT + 0.1 * cm
    for i, line in enumerate(name_lines):
        c.drawString(MARGIN + ROW_PADDING, text_y - i * LINE_HEIGHT, line)

    x = MARGIN + widths[0]
    for width, cell in zip(widths[1:], cells[1:]):
        c.line(x, bottom, x, top)
        c.drawCentredString(x + width / 2, text_y, cell)
        x += width
    return bottom


def _draw_footer(c, page_w, page_num: int, footer: str):
    c.setFillColor(MUTED_COLOR)
    c.setFont("Helvetica", 8)
    c.drawString(MARGIN, 0.8 * cm, footer)
    c.drawRightString(page_w - MARGIN, 0.8 * cm, f"Page {page_num}")
    c.setStrokeColorRGB(0.8, 0.8, 0.8)
    c.line(MARGIN, 1.2 * cm, page_w - MARGIN, 1.2 * cm)
