"""
PDF helpers built on PyMuPDF (fitz): metadata extraction and the QR
verification stamp added to signed copies.
"""
import io
import logging
from datetime import datetime

import fitz  # PyMuPDF
import qrcode

logger = logging.getLogger(__name__)

QR_SIZE = 100
QR_MARGIN = 50
CAPTION_FONT = "helv"
CAPTION_SIZE = 8
CAPTION_PADDING = 10
QR_POSITIONS = (
    "top-left",
    "top-right",
    "top-center",
    "bottom-left",
    "bottom-right",
    "bottom-center",
)

EMPTY_METADATA = {
    "title": "",
    "author": "",
    "subject": "",
    "keywords": "",
    "creator": "",
    "producer": "",
    "creation_date": None,
    "modification_date": None,
    "page_count": 0,
}


def _open(data: bytes) -> fitz.Document:
    return fitz.open(stream=data, filetype="pdf")


def extract_pdf_metadata(data: bytes) -> dict:
    """Standard info dictionary plus page count; empty defaults when the bytes are not a readable PDF."""
    try:
        with _open(data) as doc:
            info = doc.metadata or {}
            return {
                "title": info.get("title") or "",
                "author": info.get("author") or "",
                "subject": info.get("subject") or "",
                "keywords": info.get("keywords") or "",
                "creator": info.get("creator") or "",
                "producer": info.get("producer") or "",
                "creation_date": info.get("creationDate") or None,
                "modification_date": info.get("modDate") or None,
                "page_count": doc.page_count,
            }
    except (RuntimeError, ValueError) as e:
        logger.info("pdf metadata unavailable: %s", e.__class__.__name__)
        return dict(EMPTY_METADATA)


def qr_png(url: str) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=4,
        border=2,
    )
    qr.add_data(url)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def qr_rect(page_rect: fitz.Rect, position: str) -> fitz.Rect:
    """Where the QR lands on a page (PyMuPDF coordinates, origin top-left)."""
    width, height = page_rect.width, page_rect.height
    if position not in QR_POSITIONS:
        position = "bottom-right"

    if position.endswith("left"):
        x = QR_MARGIN
    elif position.endswith("center"):
        x = (width - QR_SIZE) / 2
    else:
        x = width - QR_SIZE - QR_MARGIN

    if position.startswith("top"):
        y = QR_MARGIN
    else:
        y = height - QR_SIZE - QR_MARGIN

    return fitz.Rect(x, y, x + QR_SIZE, y + QR_SIZE)


def caption_x(page_rect: fitz.Rect, qr: fitz.Rect, caption: str) -> float:
    """Left edge for a caption under the QR, kept fully inside the page."""
    text_width = fitz.get_text_length(caption, fontname=CAPTION_FONT, fontsize=CAPTION_SIZE)
    x = min(qr.x0, page_rect.width - text_width - CAPTION_PADDING)
    return max(x, CAPTION_PADDING)


def stamp_qr_code(
    data: bytes,
    *,
    certificate_id: str,
    verify_url: str,
    position: str = "bottom-right",
    signed_at: datetime | None = None,
) -> bytes:
    """
    Return a copy of the PDF with a verification QR code and caption on its
    last page. Raises on unreadable input; callers decide whether to fall back.
    """
    with _open(data) as doc:
        if doc.page_count == 0:
            raise ValueError("PDF has no pages")
        page = doc[-1]
        rect = qr_rect(page.rect, position)

        shape = page.new_shape()
        shape.draw_rect(fitz.Rect(rect.x0 - 5, rect.y0 - 5, rect.x1 + 5, rect.y1 + 5))
        shape.finish(color=(0.8, 0.8, 0.8), fill=(0.95, 0.95, 0.95), width=1, fill_opacity=0.9)
        shape.commit()

        page.insert_image(rect, stream=qr_png(verify_url))

        stamp_date = (signed_at or datetime.now()).strftime("%Y-%m-%d")
        captions = (f"Verified: {stamp_date}", f"Certificate ID: {certificate_id}")
        for offset, caption in zip((15, 25), captions):
            page.insert_text(
                (caption_x(page.rect, rect, caption), rect.y1 + offset),
                caption,
                fontname=CAPTION_FONT,
                fontsize=CAPTION_SIZE,
                color=(0.2, 0.2, 0.2),
            )

        return doc.tobytes(garbage=3, deflate=True)
