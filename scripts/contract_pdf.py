"""Lay out and render the rental agreement PDF.

Generation happens in two steps:

1. build_contract() turns a ContractRequest into a ContractDocument: pages of
   positioned draw operations (text, lines, fills, the signature image) in
   millimetres, origin top-left. This is where pagination happens.
2. render_pdf() encodes a ContractDocument as PDF bytes with reportlab.

Requests are only built by rental_form.submit_rental(), after the renter
names and the signature have been validated. rent.py is the command line
entry point.
"""

import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Page geometry (millimetres, A4 portrait)
# ---------------------------------------------------------------------------
PAGE_W = 210.0
PAGE_H = 297.0
MARGIN = 20.0
CONTENT_W = PAGE_W - 2 * MARGIN

HEADER_H = 40.0
TERMS_BOTTOM = PAGE_H - 70
CONTENT_BOTTOM = PAGE_H - MARGIN
TERMS_HEADING_H = 16.0
FOOTER_Y = PAGE_H - 15

SIGNATURE_W = 70.0
SIGNATURE_H = 30.0
# rule + heading through the printed date, with the image drawn
SIGNATURE_BLOCK_H = 16 + 2 + 5 + SIGNATURE_H + 5 + 5 + 5

FONT = "Helvetica"
FONT_B = "Helvetica-Bold"

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
HEADER_BG = (30, 30, 30)
RULE_CLR = (200, 200, 200)
FOOTER_CLR = (100, 100, 100)

BRAND = "CONSTRUCTRENT"
SUBTITLE = "Construction Vehicle Rental Agreement"
TITLE = "RENTAL CONTRACT"
SIGNATURE_PLACEHOLDER = "[Signature could not be embedded]"
FOOTER_TEXT = ("This is a digitally generated rental agreement. "
               "For questions, please contact ConstructRent support.")

TERMS = (
    "The renter agrees to use the vehicle only for its intended purpose.",
    "The renter is responsible for any damage to the vehicle during the rental period.",
    "Payment is due upon completion of the rental period.",
    "The vehicle must be returned in the same condition as received.",
    "The renter must have appropriate licenses and certifications to operate the vehicle.",
)

MONTHS = ("January", "February", "March", "April", "May", "June", "July",
          "August", "September", "October", "November", "December")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_last_issued_ms = 0


class EmbeddingError(ValueError):
    """The signature payload could not be decoded as an image."""


# ---------------------------------------------------------------------------
# Request / document model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ContractRequest:
    vehicle_id: str
    vehicle_name: str
    vehicle_category: str
    specifications: tuple  # ((label, value), ...) in catalog order
    daily_rate: float
    first_name: str
    last_name: str
    signature: bytes
    issued_at: datetime

    @classmethod
    def from_vehicle(cls, vehicle, first_name, last_name, signature, issued_at=None):
        return cls(
            vehicle_id=vehicle.id,
            vehicle_name=vehicle.name,
            vehicle_category=vehicle.category,
            specifications=tuple(vehicle.specifications.items()),
            daily_rate=vehicle.daily_rate,
            first_name=first_name,
            last_name=last_name,
            signature=signature,
            issued_at=issued_at or issue_timestamp(),
        )

    @property
    def renter_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class TextOp:
    section: str
    x: float
    y: float
    text: str
    font: str = FONT
    size: float = 11
    color: tuple = BLACK
    align: str = "left"


@dataclass(frozen=True)
class LineOp:
    section: str
    x1: float
    y1: float
    x2: float
    y2: float
    color: tuple = RULE_CLR
    width: float = 0.2


@dataclass(frozen=True)
class FillOp:
    section: str
    x: float
    y: float
    w: float
    h: float
    color: tuple = HEADER_BG


@dataclass(frozen=True)
class ImageOp:
    section: str
    x: float
    y: float
    w: float
    h: float
    png: bytes


@dataclass(frozen=True)
class Page:
    ops: tuple

    def texts(self, section: Optional[str] = None):
        return [op for op in self.ops
                if isinstance(op, TextOp) and (section is None or op.section == section)]

    def images(self):
        return [op for op in self.ops if isinstance(op, ImageOp)]


@dataclass(frozen=True)
class ContractDocument:
    contract_id: str
    filename: str
    title: str
    pages: tuple

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def texts(self, section: Optional[str] = None):
        return [op for page in self.pages for op in page.texts(section)]

    def section_order(self):
        """Sections in the order they first appear in the document."""
        seen = []
        for page in self.pages:
            for op in page.ops:
                if op.section not in seen:
                    seen.append(op.section)
        return seen


# ---------------------------------------------------------------------------
# Identifiers and formatting
# ---------------------------------------------------------------------------

def epoch_millis(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def issue_timestamp(now: Optional[datetime] = None) -> datetime:
    """Issuance time, strictly increasing (ms) within this process."""
    global _last_issued_ms
    ms = epoch_millis(now or datetime.now(timezone.utc))
    if ms <= _last_issued_ms:
        ms = _last_issued_ms + 1
    _last_issued_ms = ms
    return _EPOCH + timedelta(milliseconds=ms)


def contract_id(request: ContractRequest) -> str:
    return f"{request.vehicle_id}-{epoch_millis(request.issued_at)}"


def contract_filename(request: ContractRequest) -> str:
    return f"rental-{request.vehicle_id}-{epoch_millis(request.issued_at)}.pdf"


def format_date(moment: datetime) -> str:
    return f"{MONTHS[moment.month - 1]} {moment.day}, {moment.year}"


def humanize_label(key: str) -> str:
    """camelCase spec key -> "Camel Case" label."""
    label = re.sub(r"([A-Z])", r" \1", key).strip()
    return label[:1].upper() + label[1:]


def decode_signature(payload) -> bytes:
    """Decode PNG bytes or a data: URL and re-encode as a clean RGBA PNG."""
    if isinstance(payload, str):
        _, _, encoded = payload.partition("base64,")
        try:
            payload = base64.b64decode(encoded or payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise EmbeddingError("Signature data URL is not valid base64") from exc
    if not payload:
        raise EmbeddingError("Signature payload is empty")

    try:
        with Image.open(io.BytesIO(payload)) as img:
            img.load()
            rgba = img.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise EmbeddingError(f"Signature image could not be decoded: {exc}") from exc

    buf = io.BytesIO()
    rgba.save(buf, "PNG")
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

class _Layout:
    """Page list plus a running vertical cursor."""

    def __init__(self):
        self.pages = []
        self.ops = []
        self.y = MARGIN

    def new_page(self):
        self.pages.append(Page(tuple(self.ops)))
        self.ops = []
        self.y = MARGIN

    def ensure_room(self, height, bottom):
        if self.y + height > bottom:
            self.new_page()

    def text(self, section, text, x=MARGIN, y=None, **style):
        self.ops.append(TextOp(section, x, self.y if y is None else y, text, **style))

    def rule(self, section, x1=MARGIN, x2=PAGE_W - MARGIN, y=None):
        y = self.y if y is None else y
        self.ops.append(LineOp(section, x1, y, x2, y))

    def finish(self):
        self.pages.append(Page(tuple(self.ops)))
        return tuple(self.pages)


def _section_heading(layout, section, title):
    layout.rule(section)
    layout.y += 8
    layout.text(section, title, font=FONT_B, size=14)
    layout.y += 8


def build_contract(request: ContractRequest, terms=TERMS) -> ContractDocument:
    """Lay out the contract pages for one request. Pure: no clock, no I/O."""
    layout = _Layout()
    cid = contract_id(request)
    date_text = format_date(request.issued_at)

    # Header band
    layout.ops.append(FillOp("header", 0, 0, PAGE_W, HEADER_H))
    layout.text("header", BRAND, y=20, font=FONT_B, size=24, color=WHITE)
    layout.text("header", SUBTITLE, y=30, size=12, color=WHITE)
    layout.y = HEADER_H + 10

    layout.text("title", TITLE, x=PAGE_W / 2, font=FONT_B, size=16, align="center")
    layout.y += 15

    layout.text("meta", f"Date: {date_text}")
    layout.y += 7
    layout.text("meta", f"Contract ID: {cid}")
    layout.y += 15

    # Vehicle
    _section_heading(layout, "vehicle", "VEHICLE INFORMATION")
    layout.text("vehicle", f"Vehicle: {request.vehicle_name}", font=FONT_B)
    layout.y += 7
    layout.text("vehicle", f"Category: {request.vehicle_category}")
    layout.y += 7
    layout.text("vehicle", f"Daily Rental Rate: ${request.daily_rate:.2f}")
    layout.y += 10
    layout.text("vehicle", "Specifications:", font=FONT_B)
    layout.y += 7
    for key, value in request.specifications:
        if not value:
            continue
        layout.text("vehicle", f"  • {humanize_label(key)}: {value}")
        layout.y += 6
    layout.y += 10

    # Renter
    _section_heading(layout, "renter", "RENTER INFORMATION")
    layout.text("renter", f"Name: {request.renter_name}", font=FONT_B)
    layout.y += 7
    layout.text("renter", f"Date of Rental: {date_text}")
    layout.y += 15

    # Terms, paginated line by line
    layout.ensure_room(TERMS_HEADING_H, TERMS_BOTTOM)
    _section_heading(layout, "terms", "TERMS AND CONDITIONS")
    for term in terms:
        for line in simpleSplit(f"• {term}", FONT, 10, (CONTENT_W - 5) * mm):
            layout.ensure_room(0, TERMS_BOTTOM)
            layout.text("terms", line, size=10)
            layout.y += 5
    layout.y += 10

    # Signature
    layout.ensure_room(SIGNATURE_BLOCK_H, CONTENT_BOTTOM)
    _section_heading(layout, "signature", "SIGNATURE")
    layout.y += 2
    layout.text("signature", "Renter Signature:")
    layout.y += 5
    try:
        png = decode_signature(request.signature)
    except EmbeddingError as exc:
        LOGGER.warning("Contract %s: %s", cid, exc)
        layout.text("signature", SIGNATURE_PLACEHOLDER)
        layout.y += 10
    else:
        layout.ops.append(ImageOp("signature", MARGIN, layout.y, SIGNATURE_W, SIGNATURE_H, png))
        layout.y += SIGNATURE_H + 5
    layout.rule("signature", x2=MARGIN + SIGNATURE_W)
    layout.y += 5
    layout.text("signature", request.renter_name, size=10)
    layout.y += 5
    layout.text("signature", date_text, size=10)

    layout.text("footer", FOOTER_TEXT, x=PAGE_W / 2, y=FOOTER_Y, size=9,
                color=FOOTER_CLR, align="center")

    return ContractDocument(
        contract_id=cid,
        filename=contract_filename(request),
        title=f"Rental Contract {cid}",
        pages=layout.finish(),
    )


# ---------------------------------------------------------------------------
# PDF encoding
# ---------------------------------------------------------------------------

def _rgb(color):
    return tuple(v / 255 for v in color)


def _draw_op(c, op):
    if isinstance(op, TextOp):
        c.setFillColorRGB(*_rgb(op.color))
        c.setFont(op.font, op.size)
        x, y = op.x * mm, (PAGE_H - op.y) * mm
        if op.align == "center":
            c.drawCentredString(x, y, op.text)
        elif op.align == "right":
            c.drawRightString(x, y, op.text)
        else:
            c.drawString(x, y, op.text)
    elif isinstance(op, LineOp):
        c.setStrokeColorRGB(*_rgb(op.color))
        c.setLineWidth(op.width * mm)
        c.line(op.x1 * mm, (PAGE_H - op.y1) * mm, op.x2 * mm, (PAGE_H - op.y2) * mm)
    elif isinstance(op, FillOp):
        c.setFillColorRGB(*_rgb(op.color))
        c.rect(op.x * mm, (PAGE_H - op.y - op.h) * mm, op.w * mm, op.h * mm,
               stroke=0, fill=1)
    elif isinstance(op, ImageOp):
        c.drawImage(ImageReader(io.BytesIO(op.png)), op.x * mm, (PAGE_H - op.y - op.h) * mm,
                    width=op.w * mm, height=op.h * mm, mask="auto")
    else:
        raise TypeError(f"Unknown draw operation: {op!r}")


def render_pdf(document: ContractDocument) -> bytes:
    """Encode the document. Invariant mode keeps the output byte-stable."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(PAGE_W * mm, PAGE_H * mm), invariant=1)
    c.setTitle(document.title)
    c.setAuthor("ConstructRent")
    c.setSubject(document.contract_id)

    for page in document.pages:
        for op in page.ops:
            _draw_op(c, op)
        c.showPage()

    c.save()
    return buf.getvalue()


def write_contract(document: ContractDocument, directory) -> Path:
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / document.filename
    with open(path, "wb") as f:
        f.write(render_pdf(document))
    LOGGER.info("Wrote %s (%d pages)", path, document.page_count)
    return path
