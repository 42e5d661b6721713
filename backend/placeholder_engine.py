# backend/placeholder_engine.py
"""
Blank-space registry.

Blank spaces live in the markup itself as

    <span class="blank-space" data-id="blank-3" data-length="12">..........</span>

and every read re-derives them from the markup, so the list always reflects
the latest text, including edits made directly in the editor. Nothing here
keeps state between calls; ids are the only stable handle.
"""
import html
import logging
import re
from typing import Iterable

from config import BLANK_DISPLAY_WIDTH, BLANK_LENGTH_CAP, BLANK_MIN_LENGTH, DEFAULT_BLANK_LENGTH
from pattern_scanner import BLANK_SPACE_KINDS, TAG_RE, PatternKind, scan
from schemas import BlankSpace

logger = logging.getLogger(__name__)

MARKER_RE = re.compile(
    r'<span class="blank-space(?P<filled> filled)?" data-id="(?P<id>[^"]*)" '
    r'data-length="(?P<length>\d+)"[^>]*>(?P<inner>.*?)</span>',
    re.S,
)
BLANK_ID_RE = re.compile(r'data-id="blank-(\d+)"')
DOTS_ONLY = re.compile(r"^\.+$")


def clamp_length(length: int) -> int:
    return max(BLANK_MIN_LENGTH, min(BLANK_LENGTH_CAP, length))


def render_marker(blank_id: str, length: int) -> str:
    """Unfilled marker; the dotted display never exceeds BLANK_DISPLAY_WIDTH."""
    length = clamp_length(length)
    dots = "." * min(length, BLANK_DISPLAY_WIDTH)
    return f'<span class="blank-space" data-id="{blank_id}" data-length="{length}">{dots}</span>'


def next_blank_id(markup: str) -> int:
    numbers = [int(n) for n in BLANK_ID_RE.findall(markup)]
    return max(numbers, default=0) + 1


def _is_filled(match: re.Match) -> bool:
    if match.group("filled"):
        return True
    inner = match.group("inner")
    # Text typed straight into an unfilled marker counts as a fill
    return bool(inner.strip()) and not DOTS_ONLY.match(inner)


def list_blank_spaces(markup: str) -> list[BlankSpace]:
    spaces = []
    for m in MARKER_RE.finditer(markup):
        filled = _is_filled(m)
        spaces.append(BlankSpace(
            id=m.group("id"),
            position=m.start(),
            length=int(m.group("length")),
            filled=filled,
            content=html.unescape(m.group("inner")) if filled else None,
        ))
    return spaces


def find_blank_space(markup: str, blank_id: str) -> BlankSpace | None:
    for space in list_blank_spaces(markup):
        if space.id == blank_id:
            return space
    return None


def detect(
    markup: str,
    kinds: Iterable[PatternKind] = BLANK_SPACE_KINDS,
) -> tuple[str, list[BlankSpace]]:
    """
    Wrap every placeholder span not already inside a marker in a fresh
    unfilled marker. Returns the annotated markup and all of its blank
    spaces (existing ones included), in document order.

    Ids continue after the highest blank-N already present, so detecting
    the same input twice produces the same ids.
    """
    existing = [m.span() for m in MARKER_RE.finditer(markup)]
    matches = scan(markup, kinds=kinds, exclude=existing)
    if not matches:
        return markup, list_blank_spaces(markup)

    counter = next_blank_id(markup)
    out = []
    last = 0
    for match in matches:
        out.append(markup[last:match.offset])
        out.append(render_marker(f"blank-{counter}", len(match.text)))
        logger.debug("Converted %s %r into blank-%d", match.kind.value, match.text, counter)
        counter += 1
        last = match.end
    out.append(markup[last:])
    annotated = "".join(out)

    spaces = list_blank_spaces(annotated)
    logger.info("Detected %d new blank spaces (%d total)", len(matches), len(spaces))
    return annotated, spaces


def _marker_pattern(blank_id: str) -> re.Pattern:
    return re.compile(
        r'(<span class="blank-space(?: filled)?" data-id="' + re.escape(blank_id) + r'"[^>]*>)(.*?)(</span>)',
        re.S,
    )


def fill(markup: str, blank_id: str, content: str) -> str:
    """
    Put `content` into the marker with `blank_id` and flag it as filled.
    Refilling overwrites the previous content. An unknown id is not an
    error: the markup comes back unchanged.
    """
    def repl(m: re.Match) -> str:
        open_tag = m.group(1)
        if 'class="blank-space filled"' not in open_tag:
            open_tag = open_tag.replace('class="blank-space"', 'class="blank-space filled"', 1)
        return f"{open_tag}{html.escape(content, quote=False)}{m.group(3)}"

    updated, count = _marker_pattern(blank_id).subn(repl, markup, count=1)
    if not count:
        logger.debug("Fill skipped, no blank space with id %s", blank_id)
        return markup
    logger.debug("Filled %s", blank_id)
    return updated


def clear(markup: str, blank_id: str) -> str:
    """Return a marker to its unfilled, dotted state."""
    def repl(m: re.Match) -> str:
        open_tag = m.group(1).replace('class="blank-space filled"', 'class="blank-space"', 1)
        length = re.search(r'data-length="(\d+)"', open_tag)
        width = int(length.group(1)) if length else DEFAULT_BLANK_LENGTH
        return f"{open_tag}{'.' * min(width, BLANK_DISPLAY_WIDTH)}{m.group(3)}"

    updated, count = _marker_pattern(blank_id).subn(repl, markup, count=1)
    if not count:
        logger.debug("Clear skipped, no blank space with id %s", blank_id)
    return updated


def insert_blank_space(
    markup: str,
    position: int,
    length: int = DEFAULT_BLANK_LENGTH,
) -> tuple[str, BlankSpace]:
    """Insert a new unfilled marker at a caller-supplied offset."""
    position = max(0, min(len(markup), position))
    blank_id = f"blank-{next_blank_id(markup)}"
    marker = render_marker(blank_id, length)
    updated = markup[:position] + marker + markup[position:]
    space = BlankSpace(id=blank_id, position=position, length=clamp_length(length))
    logger.debug("Inserted %s at %d", blank_id, position)
    return updated, space


def partition(spaces: list[BlankSpace]) -> tuple[list[BlankSpace], list[BlankSpace]]:
    """(unfilled, filled), each keeping document order."""
    return [s for s in spaces if not s.filled], [s for s in spaces if s.filled]


class BlankSpaceNavigator:
    """
    Wrap-around cursor over the unfilled blank spaces.

    The cursor only keeps an index; callers hand in the current list on
    every move. With nothing left to fill it resets to zero and every
    move returns None.
    """

    def __init__(self, index: int = 0):
        self.index = max(0, index)

    def sync(self, spaces: list[BlankSpace]) -> list[BlankSpace]:
        unfilled, _ = partition(spaces)
        if self.index >= len(unfilled):
            self.index = 0
        return unfilled

    def current(self, spaces: list[BlankSpace]) -> BlankSpace | None:
        unfilled = self.sync(spaces)
        return unfilled[self.index] if unfilled else None

    def next(self, spaces: list[BlankSpace]) -> BlankSpace | None:
        unfilled = self.sync(spaces)
        if not unfilled:
            return None
        self.index = (self.index + 1) % len(unfilled)
        return unfilled[self.index]

    def previous(self, spaces: list[BlankSpace]) -> BlankSpace | None:
        unfilled = self.sync(spaces)
        if not unfilled:
            return None
        self.index = (self.index - 1) % len(unfilled)
        return unfilled[self.index]


def preview_markup(markup: str) -> str:
    """Unfilled markers become underscores, filled ones collapse to their content."""
    def repl(m: re.Match) -> str:
        if _is_filled(m):
            return m.group("inner")
        return "_" * int(m.group("length"))
    return MARKER_RE.sub(repl, markup)


_BLOCK_END = re.compile(r"</(?:p|h[1-6]|li|div|tr)>", re.I)
_BREAK = re.compile(r"<br\s*/?>", re.I)


def extract_plain_text(markup: str) -> str:
    """Plain text for output generation; unfilled markers keep their dots."""
    text = _BREAK.sub("\n", markup)
    text = _BLOCK_END.sub("\n", text)
    text = TAG_RE.sub("", text)
    text = html.unescape(text)
    text = text.replace("\r\n", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
