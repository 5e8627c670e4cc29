import os

os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

import fitz  # PyMuPDF
import pytest

from signdesk.config import Settings


def make_pdf(pages: int = 3, width: float = 200, height: float = 300) -> bytes:
    """Build a small PDF in memory with a line of text on each page."""
    doc = fitz.open()
    for index in range(pages):
        page = doc.new_page(width=width, height=height)
        page.insert_text((20, 40), f"Page {index + 1}")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / 'data')


@pytest.fixture
def pdf_bytes():
    return make_pdf()
