"""
Pytest configuration and fixtures for PDF Image Insert Backend tests.
"""

import os
import shutil
import tempfile
from io import BytesIO
from pathlib import Path

import fitz
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Set test environment variables before importing the app
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="pdf_insert_test_"))
os.environ["TEMPLATE_PDF_PATH"] = str(_TEST_ROOT / "missing-template.pdf")
os.environ.pop("FRONTEND_DIST_DIR", None)
os.environ.pop("PDF_INSERT_CONFIG", None)

from pdf_insert_backend.configuration import load_config
from pdf_insert_backend.main import app, create_app


@pytest.fixture(scope="session", autouse=True)
def test_root():
    """Cleanup the session scratch directory."""
    yield _TEST_ROOT
    shutil.rmtree(_TEST_ROOT, ignore_errors=True)


def _encode_image(width, height, fmt, color=(200, 30, 30)):
    image = Image.new("RGB", (width, height), color)
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_image():
    """Factory returning encoded image bytes of a given size and format."""
    return _encode_image


@pytest.fixture
def jpeg_image():
    return _encode_image(800, 400, "JPEG")


@pytest.fixture
def png_image():
    return _encode_image(300, 600, "PNG", color=(20, 120, 220))


@pytest.fixture
def square_jpeg():
    return _encode_image(1000, 1000, "JPEG")


@pytest.fixture
def template_pdf(tmp_path):
    """A one page 1600x1000 template, large enough for the default placement box."""
    path = tmp_path / "template.pdf"
    doc = fitz.open()
    doc.new_page(width=1600, height=1000)
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def sample_pdf():
    """A two page PDF with a first page of a non-letter size."""
    doc = fitz.open()
    first = doc.new_page(width=595, height=842)
    first.insert_text((72, 72), "Existing page one")
    second = doc.new_page(width=612, height=792)
    second.insert_text((72, 72), "Existing page two")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def client():
    """Test client for the module-level app, whose template does not exist."""
    return TestClient(app)


@pytest.fixture
def make_client():
    """Factory building a client around config overrides."""

    def _make(overrides=None):
        return TestClient(create_app(load_config(overrides or {})))

    return _make


@pytest.fixture
def template_client(make_client, template_pdf):
    return make_client({"template": {"path": str(template_pdf)}})
