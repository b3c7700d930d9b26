"""Page metadata for uploaded PDFs and images."""
import io
import logging
from dataclasses import dataclass, asdict

import fitz  # PyMuPDF
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


@dataclass
class PageInfo:
    """Dimensions of a single page."""
    page_number: int
    width: float
    height: float
    has_text_layer: bool = False


@dataclass
class PageMetadata:
    """Page count and per-page dimensions of a file."""
    page_count: int
    pages: list[PageInfo]
    
    def pages_as_dicts(self) -> list[dict]:
        return [asdict(p) for p in self.pages]


def read_pdf_pages(data: bytes) -> PageMetadata:
    """Read page sizes and text-layer presence from a PDF."""
    pages: list[PageInfo] = []
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        for page_num in range(len(doc)):
            page = doc[page_num]
            text = page.get_text("text").strip()
            pages.append(PageInfo(
                page_number=page_num + 1,
                width=page.rect.width,
                height=page.rect.height,
                has_text_layer=len(text) > 20,  # Minimal threshold
            ))
    finally:
        doc.close()
    return PageMetadata(page_count=len(pages), pages=pages)


def read_image_page(data: bytes) -> PageMetadata:
    """A single page sized by the image dimensions."""
    with Image.open(io.BytesIO(data)) as img:
        width, height = img.size
    return PageMetadata(page_count=1, pages=[PageInfo(page_number=1, width=width, height=height)])


def read_page_metadata(data: bytes, mime_type: str) -> PageMetadata | None:
    """Page metadata for a PDF or image, None when the file can't be read."""
    try:
        if mime_type == "application/pdf":
            return read_pdf_pages(data)
        if mime_type.startswith("image/"):
            return read_image_page(data)
    except (RuntimeError, UnidentifiedImageError, OSError) as e:
        logger.warning(f"Could not read page metadata ({mime_type}): {e}")
    return None


def extract_pdf_text(data: bytes) -> str:
    """Concatenate the text layer of every page."""
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        return "\n\n".join(doc[i].get_text("text").strip() for i in range(len(doc)))
    finally:
        doc.close()
