"""
Shared fixtures for the preview generator tests
"""
from io import BytesIO

import fitz  # PyMuPDF
import pytest
from PIL import Image

from app.core.config import Settings
from app.services.preview_generator import PreviewGenerator


@pytest.fixture
def settings(tmp_path):
    """Isolated settings rooted in a temporary directory, with no rasterizer binary"""
    settings = Settings(
        _env_file=None,
        base_dir=tmp_path,
        pdftoppm_path=str(tmp_path / "bin" / "pdftoppm-missing"),
    )
    settings.configure_paths()
    return settings


@pytest.fixture
def generator(settings):
    return PreviewGenerator(settings)


@pytest.fixture
def make_image():
    """Factory producing encoded image bytes of a given size"""

    def _make(size=(400, 300), fmt="PNG", mode="RGB", color=(30, 120, 200)):
        if mode == "RGBA" and len(color) == 3:
            color = (*color, 255)
        image = Image.new(mode, size, color)
        buffer = BytesIO()
        image.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def sample_pdf():
    """Three-page A4 PDF with a line of text on each page"""
    document = fitz.open()
    for number in range(1, 4):
        page = document.new_page(width=595, height=842)
        page.insert_text((72, 72), f"Arbeitsblatt Seite {number}", fontsize=24)
    data = document.tobytes()
    document.close()
    return data
