# backend/docx_parser.py
import io
import logging
import re

import mammoth

from config import MAX_UPLOAD_BYTES, MIN_UPLOAD_BYTES
from pattern_scanner import PUNCTUATION_KINDS
from placeholder_engine import detect

logger = logging.getLogger(__name__)

# Heading and title styles keep their weight in the editor
STYLE_MAP = """
p[style-name='Heading 1'] => h1:fresh
p[style-name='Heading 2'] => h2:fresh
p[style-name='Heading 3'] => h3:fresh
p[style-name='Title'] => h1:fresh
p[style-name='Subtitle'] => h2:fresh
r[style-name='Strong'] => strong
r[style-name='Emphasis'] => em
"""

EMPTY_PARAGRAPH = re.compile(r"<p>\s*</p>")
INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


class DocumentParseError(ValueError):
    """Upload could not be turned into editable markup. Message is user-facing."""


def validate_document_file(filename: str, size: int) -> bool:
    name = filename.lower()
    has_valid_extension = name.endswith(".docx") or name.endswith(".doc")
    has_valid_size = MIN_UPLOAD_BYTES <= size <= MAX_UPLOAD_BYTES
    has_valid_name = 0 < len(filename) < 255
    valid = has_valid_extension and has_valid_size and has_valid_name
    logger.debug("Validated %s (%d bytes): %s", filename, size, valid)
    return valid


def detect_file_type(header: bytes) -> str:
    if header[:2] == b"PK":
        return "docx"
    if header[:4] == b"\xd0\xcf\x11\xe0":
        return "doc"
    return "unknown"


def sanitize_file_name(file_name: str) -> str:
    name = re.sub(r"\.[^/.]+$", "", file_name)
    name = INVALID_NAME_CHARS.sub("_", name)
    name = re.sub(r"_+", "_", name)
    name = re.sub(r"^[_\s]+|[_\s]+$", "", name)
    if not name:
        name = "Untitled Document"
    return name[:100]


def parse_word_document(data: bytes) -> str:
    """
    Convert .docx bytes into editor markup with blank spaces already
    wrapped in markers.
    """
    if not data:
        raise DocumentParseError("The document appears to be empty. Please upload a document with content.")
    if detect_file_type(data[:8]) != "docx":
        raise DocumentParseError("This file is not a valid Word document. Please ensure you are uploading a .docx file.")

    try:
        result = mammoth.convert_to_html(io.BytesIO(data), style_map=STYLE_MAP)
    except Exception as e:
        logger.error("Document parsing error: %s", e, exc_info=True)
        raise DocumentParseError(f"Failed to parse document: {e}") from e

    for message in result.messages:
        logger.warning("Document parsing warning: %s", message)

    content = EMPTY_PARAGRAPH.sub("", result.value)
    content = re.sub(r"\n\s*\n", "\n", content).strip()
    if len(content) < 5:
        raise DocumentParseError("Document content is too short or contains no readable text")

    content, spaces = detect(content, kinds=PUNCTUATION_KINDS)
    logger.info("Parsed document: %d chars, %d blank spaces", len(content), len(spaces))
    return content
