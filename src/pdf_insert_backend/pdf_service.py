"""
PDF composition on top of PyMuPDF.

PdfComposer implements the three ways an upload ends up in a PDF:
- insert_into_template: draw one image into the placement box on page 1 of the
  configured template
- images_to_pdf: a new document with one letter-size page per image
- add_images_to_existing_pdf: append one letter-size page per image to an
  uploaded PDF, leaving its existing pages alone

Each call opens or creates its own in-memory document, draws, serializes and
closes it. Nothing is shared between calls apart from the read-only config, so a
single composer can serve concurrent requests.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import fitz

from .compositor import BoxPlacement, PlacementPolicy, TopAnchoredPlacement
from .configuration import AppConfig
from .models import DrawRectangle
from .uploads import DecodedImage

logger = logging.getLogger(__name__)


class CompositionError(Exception):
    """Base class for failures while building the output PDF."""


class TemplateError(CompositionError):
    pass


class TemplateNotFoundError(TemplateError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Template PDF not found. Put your PDF at {path}")
        self.path = path


class TemplateUnreadableError(TemplateError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Template PDF at {path} could not be read: {reason}")
        self.path = path


class EmptyTemplateError(TemplateError):
    def __init__(self) -> None:
        super().__init__("Template PDF has no pages")


class PdfDecodeError(CompositionError):
    pass


def draw_image(page: fitz.Page, image: DecodedImage, rect: DrawRectangle) -> None:
    """
    Draw an image into a bottom-left-origin rectangle on a page.

    The page's transformation matrix maps PDF space into PyMuPDF's top-left
    space, which also accounts for crop box offsets on template pages.
    """
    target = fitz.Rect(rect.x, rect.y, rect.right, rect.top) * page.transformation_matrix
    page.insert_image(target, stream=image.data, keep_proportion=False)


class PdfComposer:
    """
    Builds output PDFs from decoded uploads.

    Attributes:
        config: Application configuration (template path, placement box, page layout)
        template_placement: Policy for the template page
        page_placement: Policy for pages created one per image
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.template_placement: PlacementPolicy = BoxPlacement(config.template.placement_region)
        self.page_placement = TopAnchoredPlacement(
            page_width=config.page.width,
            page_height=config.page.height,
            top_margin=config.page.top_margin,
        )

    @property
    def template_path(self) -> Path:
        return self.config.template.template_path

    def _open_template(self) -> fitz.Document:
        path = self.template_path
        if not path.is_file():
            raise TemplateNotFoundError(path)
        try:
            doc = fitz.open(str(path))
        except Exception as exc:  # noqa: BLE001
            raise TemplateUnreadableError(path, str(exc)) from exc
        if not doc.is_pdf:
            doc.close()
            raise TemplateUnreadableError(path, "not a PDF document")
        if doc.page_count == 0:
            doc.close()
            raise EmptyTemplateError()
        return doc

    def _append_image_pages(self, doc: fitz.Document, images: Sequence[DecodedImage]) -> None:
        width, height = self.page_placement.page_size
        for image in images:
            page = doc.new_page(width=width, height=height)
            rect = self.page_placement.place(image.dimensions)
            logger.debug("Placing %s on page %d at %s", image.filename, page.number + 1, rect)
            draw_image(page, image, rect)

    def insert_into_template(self, image: DecodedImage) -> bytes:
        """
        Draw an image into the placement box on the template's first page.

        Raises:
            TemplateNotFoundError: The configured template file does not exist
            TemplateUnreadableError: The file exists but is not a readable PDF
            EmptyTemplateError: The template has no pages
        """
        doc = self._open_template()
        try:
            page = doc[0]
            rect = self.template_placement.place(image.dimensions)
            logger.info("Inserting %s into template %s at %s", image.filename, self.template_path, rect)
            draw_image(page, image, rect)
            return doc.tobytes(garbage=3, deflate=True)
        finally:
            doc.close()

    def images_to_pdf(self, images: Sequence[DecodedImage]) -> bytes:
        """Create a new PDF with one page per image, in upload order."""
        if not images:
            raise ValueError("images_to_pdf needs at least one image")
        doc = fitz.open()
        try:
            self._append_image_pages(doc, images)
            logger.info("Created PDF with %d image page(s)", doc.page_count)
            return doc.tobytes(garbage=3, deflate=True)
        finally:
            doc.close()

    def add_images_to_existing_pdf(self, pdf_bytes: bytes, images: Sequence[DecodedImage]) -> bytes:
        """
        Append one page per image to an uploaded PDF.

        Raises:
            PdfDecodeError: The uploaded bytes are not a readable PDF
        """
        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as exc:  # noqa: BLE001
            raise PdfDecodeError(f"Could not read uploaded PDF: {exc}") from exc
        try:
            original_pages = doc.page_count
            self._append_image_pages(doc, images)
            logger.info("Appended %d image page(s) to a %d page PDF", len(images), original_pages)
            return doc.tobytes(garbage=3, deflate=True)
        finally:
            doc.close()
