"""
Page Layout

A thin cursor-based wrapper around a reportlab canvas. Every document is
a fixed sequence of these primitives; page breaks are placed by the
caller with new_page(), never computed from overflow.

Coordinates are PDF points with the origin at the bottom-left. The
cursor `y` starts TOP_MARGIN below the top edge and moves down.
"""

import base64
import io
import logging
from typing import Iterable, Optional, Tuple

from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..signatures import DATA_URI_PATTERN

logger = logging.getLogger(__name__)

# Colors (RGB 0..1)
BLACK = (0, 0, 0)
LABEL_GREY = (0.3, 0.3, 0.3)
MUTED_GREY = (0.5, 0.5, 0.5)
RULE_GREY = (0.7, 0.7, 0.7)
BAND_GREY = (0.9, 0.9, 0.9)
LIGHT_BAND_GREY = (0.95, 0.95, 0.95)

FONT = 'Helvetica'
FONT_BOLD = 'Helvetica-Bold'


def decode_image(image: Optional[str]) -> Optional[Image.Image]:
    """
    Decode a base64 image data URI with Pillow.

    Returns None for absent or malformed input instead of raising.
    """
    if not image:
        return None

    match = DATA_URI_PATTERN.match(image)
    if not match:
        return None

    try:
        raw = base64.b64decode(match.group(2), validate=False)
        decoded = Image.open(io.BytesIO(raw))
        decoded.load()
    except Exception as e:
        logger.warning(f"Could not decode signature image: {e}")
        return None
    return decoded


class PageLayout:
    """
    Drawing primitives for one PDF document.

    Usage:
        layout = PageLayout(title='Pre-Application')
        layout.title('PRE-APPLICATION', 'Bail Bonds Company')
        layout.section_header('DEFENDANT INFORMATION')
        layout.field('Full Name', 'Jane Doe')
        layout.advance(18)
        pdf_bytes = layout.finish()
    """

    PAGE_SIZE = letter          # 612 x 792 points
    TOP_MARGIN = 50
    MARGIN_X = 40
    COL1 = 50
    COL2 = 320
    ROW = 18                    # Default field row height

    def __init__(self, title: Optional[str] = None, author: Optional[str] = None):
        self.width, self.height = self.PAGE_SIZE
        self._buffer = io.BytesIO()
        # invariant=1 pins creation dates and document ids so output is reproducible
        self.canvas = canvas.Canvas(self._buffer, pagesize=self.PAGE_SIZE, invariant=1)
        if title:
            self.canvas.setTitle(title)
        if author:
            self.canvas.setAuthor(author)
        self.page_count = 1
        self.y = self.height - self.TOP_MARGIN
        self._finished = False

    # =========================================================================
    # CURSOR
    # =========================================================================

    def advance(self, dy: float) -> float:
        """Move the cursor down by dy points and return the new position."""
        self.y -= dy
        return self.y

    def new_page(self) -> None:
        """Close the current page and reset the cursor to the top margin."""
        self.canvas.showPage()
        self.page_count += 1
        self.y = self.height - self.TOP_MARGIN

    # =========================================================================
    # TEXT
    # =========================================================================

    def text(
        self,
        value: str,
        x: float = COL1,
        y: Optional[float] = None,
        size: float = 10,
        bold: bool = False,
        color: Tuple[float, float, float] = BLACK
    ) -> None:
        """Draw one line of text at x on the cursor line (or an explicit y)."""
        self.canvas.setFont(FONT_BOLD if bold else FONT, size)
        self.canvas.setFillColorRGB(*color)
        self.canvas.drawString(x, self.y if y is None else y, value or '')

    def title(self, text: str, subtitle: Optional[str] = None, size: float = 16) -> None:
        """
        Centered document title with an optional grey subtitle, followed
        by a rule. Leaves the cursor ready for the first section.
        """
        self.canvas.setFont(FONT_BOLD, size)
        self.canvas.setFillColorRGB(*BLACK)
        self.canvas.drawCentredString(self.width / 2, self.y, text)

        if subtitle is not None:
            self.advance(15)
            self.canvas.setFont(FONT, 12)
            self.canvas.setFillColorRGB(*LABEL_GREY)
            self.canvas.drawCentredString(self.width / 2, self.y, subtitle)

        self.advance(30)
        self.rule()
        self.advance(20)

    def section_header(self, text: str) -> float:
        """Grey band across the page with a bold label; advances the cursor 25pt."""
        self.canvas.setFillColorRGB(*BAND_GREY)
        self.canvas.rect(
            self.MARGIN_X, self.y - 5,
            self.width - 2 * self.MARGIN_X, 20,
            stroke=0, fill=1,
        )
        self.text(text, x=self.COL1, size=11, bold=True)
        return self.advance(25)

    def band(self, text: str, x: float = COL1, height: float = 18) -> None:
        """Light band with a bold label, used for repeated sub-sections."""
        self.canvas.setFillColorRGB(*LIGHT_BAND_GREY)
        self.canvas.rect(x - 5, self.y - 5, self.width - 90, height, stroke=0, fill=1)
        self.text(text, x=x, size=10, bold=True)

    def field(self, label: str, value: Optional[str], x: float = COL1, label_width: float = 100) -> None:
        """
        Draw 'Label:' in bold grey and the value label_width points to its
        right, both on the cursor line. Does not move the cursor.
        """
        self.text(f"{label}:", x=x, size=9, bold=True, color=LABEL_GREY)
        self.text(value or '', x=x + label_width, size=10)

    def paragraph(self, lines: Iterable[str], size: float = 10, leading: float = 16, x: float = COL1) -> float:
        """Draw pre-broken lines, one per leading step. Blank lines just advance."""
        for line in lines:
            if line:
                self.text(line, x=x, size=size)
            self.advance(leading)
        return self.y

    # =========================================================================
    # RULES AND IMAGES
    # =========================================================================

    def rule(self, y: Optional[float] = None, span: Optional[float] = None) -> None:
        """
        Thin grey horizontal line inset MARGIN_X from both ends of span
        (default: the page width).
        """
        line_y = self.y if y is None else y
        end = (self.width if span is None else span) - self.MARGIN_X
        self.canvas.setStrokeColorRGB(*RULE_GREY)
        self.canvas.setLineWidth(0.5)
        self.canvas.line(self.MARGIN_X, line_y, end, line_y)

    def embed_signature(
        self,
        image: Optional[str],
        x: float,
        y: float,
        max_width: float = 150,
        max_height: float = 40
    ) -> bool:
        """
        Draw a signature image scaled to fit max_width x max_height with its
        aspect ratio preserved. Absent or undecodable images are skipped.

        Returns:
            True if the image was drawn
        """
        decoded = decode_image(image)
        if decoded is None:
            return False

        natural_width, natural_height = decoded.size
        if not natural_width or not natural_height:
            return False

        scale = min(max_width / natural_width, max_height / natural_height)
        try:
            self.canvas.drawImage(
                ImageReader(decoded), x, y,
                width=natural_width * scale,
                height=natural_height * scale,
                mask='auto',
            )
        except Exception as e:
            logger.warning(f"Could not embed signature image: {e}")
            return False
        return True

    def signature_block(
        self,
        label: str,
        image: Optional[str],
        date_text: str,
        image_x: float = COL1 + 10,
        image_drop: float = 40,
        max_width: float = 150,
        max_height: float = 35,
        date_x: float = 300,
        printed_name: Optional[str] = None
    ) -> None:
        """
        Signature line: label, short rule, the image under it, and the date
        to the right. Advances the cursor 60pt, then draws the printed name
        if one is given.
        """
        self.text(label, x=self.COL1, size=9, bold=True, color=LABEL_GREY)
        self.rule(y=self.y - 5, span=280)
        self.embed_signature(image, image_x, self.y - image_drop, max_width, max_height)
        self.text(f"Date: {date_text}", x=date_x, size=9)
        self.advance(60)

        if printed_name is not None:
            self.text(f"Printed Name: {printed_name}", x=self.COL1, size=10)

    # =========================================================================
    # OUTPUT
    # =========================================================================

    def finish(self) -> bytes:
        """Close the document and return the PDF bytes."""
        if not self._finished:
            self.canvas.save()
            self._finished = True
        return self._buffer.getvalue()
