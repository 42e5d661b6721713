# backend/tests/conftest.py
import io
import os
import tempfile

import pytest
from docx import Document as DocxDocument

# Point the app at a throwaway database before anything imports db.py
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.mkdtemp(), "test.db")


def make_docx(*paragraphs: str) -> bytes:
    doc = DocxDocument()
    for text in paragraphs:
        doc.add_paragraph(text)
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def lease_docx() -> bytes:
    return make_docx(
        "LEASE FORWARDING",
        "Landlord: .........",
        "Property Reference: ______",
        "This ... day of ... 20....",
    )
