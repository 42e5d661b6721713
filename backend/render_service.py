# backend/render_service.py
import html
import io
import logging
import re
from enum import Enum

import mammoth
from docx import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt

from variable_engine import substitute

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\[[^\[\]\n\r]+?\]")
HEADING_CHARS = re.compile(r"^[A-Z\s]+$")
SIGNATURE_WORDS = ("Signature:", "Date:", "Landlord:", "Tenant:")

OUTPUT_FORMATS = ("docx", "text", "html")

# Generated documents only use Normal paragraphs and plain tables
PREVIEW_STYLE_MAP = """
p[style-name='Normal'] => p:fresh
table => table.table
"""


class DocumentGenerationError(RuntimeError):
    """The only failure generation reports; the cause is chained."""

    def __init__(self, message: str = "Failed to generate document"):
        super().__init__(message)


class LineKind(str, Enum):
    HEADING = "heading"
    SECTION_HEADER = "section_header"
    SIGNATURE = "signature"
    PARAGRAPH = "paragraph"
    SPACER = "spacer"


def classify_line(line: str) -> LineKind:
    """First matching rule wins: heading, section header, signature, paragraph."""
    stripped = line.strip()
    if not stripped:
        return LineKind.SPACER

    if (line.upper() == line
            and len(stripped) < 100
            and ":" not in line and "_" not in line and "{{" not in line
            and HEADING_CHARS.match(stripped)):
        return LineKind.HEADING

    if stripped.endswith(":") and len(stripped) < 60 and "{{" not in line:
        return LineKind.SECTION_HEADER

    if "_____" in line or any(w in line for w in SIGNATURE_WORDS):
        return LineKind.SIGNATURE

    return LineKind.PARAGRAPH


def _add_line(doc, line: str, kind: LineKind) -> None:
    p = doc.add_paragraph()
    fmt = p.paragraph_format

    if kind is LineKind.SPACER:
        fmt.space_after = Pt(6)
        return

    if kind is LineKind.HEADING:
        run = p.add_run(line.strip())
        run.bold = True
        run.font.size = Pt(14)
        fmt.space_before, fmt.space_after = Pt(12), Pt(6)
    elif kind is LineKind.SECTION_HEADER:
        run = p.add_run(line.strip())
        run.bold = True
        run.font.size = Pt(12)
        fmt.space_before, fmt.space_after = Pt(10), Pt(5)
    elif kind is LineKind.SIGNATURE:
        run = p.add_run(line)
        run.underline = True
        fmt.space_before, fmt.space_after = Pt(20), Pt(6)
    else:
        run = p.add_run(line)
        run.font.size = Pt(11)
        fmt.space_after = Pt(6)

    if line.strip().startswith("DATED"):
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER


def build_docx(text: str) -> bytes:
    """
    One paragraph per line, styled by classify_line. Empty input gives a
    valid document with an empty body. Any failure while building or
    packaging surfaces as DocumentGenerationError, never partial output.
    """
    try:
        doc = DocxDocument()
        for section in doc.sections:
            section.top_margin = section.bottom_margin = Inches(1)
            section.left_margin = section.right_margin = Inches(1)

        lines = text.replace("\r\n", "\n").split("\n") if text.strip() else []
        for line in lines:
            _add_line(doc, line, classify_line(line))

        buf = io.BytesIO()
        doc.save(buf)
        logger.info("Built document with %d paragraphs", len(lines))
        return buf.getvalue()
    except Exception as e:
        logger.error("Document generation failed: %s", e, exc_info=True)
        raise DocumentGenerationError() from e


def clean_text(content: str) -> str:
    lines = [re.sub(r"[ \t]+", " ", line).rstrip() for line in content.replace("\r\n", "\n").split("\n")]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


def text_to_html(content: str) -> str:
    out = []
    for block in re.split(r"\n\s*\n", clean_text(content)):
        if block.strip():
            lines = [html.escape(line) for line in block.split("\n")]
            out.append("<p>" + "<br>".join(lines) + "</p>")
    return "".join(out)


def generate_document(content: str, variables=None, output_format: str = "docx") -> bytes | str:
    """
    Render filled text as docx bytes, cleaned text or simple HTML.
    `variables` (mapping or TemplateVariable list) are substituted first.
    """
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {output_format}")
    if variables is not None:
        content = substitute(content, variables)

    if output_format == "docx":
        return build_docx(content)
    if output_format == "html":
        return text_to_html(content)
    return clean_text(content)


def _highlight_gap(m: re.Match) -> str:
    gap = m.group(0)
    return f'<span class="ph" data-key="{html.escape(gap, quote=True)}">{gap}</span>'


def docx_to_html(data: bytes) -> str:
    """Render generated docx bytes back to HTML with visible [key] gaps highlighted."""
    result = mammoth.convert_to_html(io.BytesIO(data), style_map=PREVIEW_STYLE_MAP)
    for message in result.messages:
        logger.debug("Preview conversion: %s", message)
    return f'<div class="docx-page">{PLACEHOLDER_RE.sub(_highlight_gap, result.value)}</div>'
