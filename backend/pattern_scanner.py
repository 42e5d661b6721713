# backend/pattern_scanner.py
"""
Finds fillable regions in document text without modifying it.

Each recognizer is an independent matcher returning ScanMatch tuples.
scan() pools every candidate, keeps the earliest (then longest) one
wherever candidates overlap, and returns the survivors left to right.
"""
import re
from bisect import bisect_right
from enum import Enum
from typing import Callable, Iterable, Iterator, NamedTuple


class PatternKind(str, Enum):
    # Declaration order is the tie-break priority
    DATE_PHRASE = "date_phrase"
    DOT_RUN = "dot_run"
    UNDERSCORE_RUN = "underscore_run"
    DASH_RUN = "dash_run"
    BRACKET = "bracket"
    BRACKETED_RUN = "bracketed_run"
    PAREN = "paren"
    SINGLE_UNDERSCORE = "single_underscore"
    CURLY_VARIABLE = "curly_variable"


class ScanMatch(NamedTuple):
    kind: PatternKind
    text: str
    offset: int

    @property
    def end(self) -> int:
        return self.offset + len(self.text)


_BLANK = r"[.…_ \t\u00a0]*"

PATTERNS = {
    # "This ..... day of ....... 20....." filled as a single date phrase
    PatternKind.DATE_PHRASE: re.compile(
        rf"\b(?:this|the)\b{_BLANK}\bday\s+of\b{_BLANK}20[.…_]+", re.IGNORECASE
    ),
    # 3+ dots, or any dot run containing a unicode ellipsis
    PatternKind.DOT_RUN: re.compile(r"[.…]*…[.…]*|\.{3,}"),
    PatternKind.UNDERSCORE_RUN: re.compile(r"_{3,}"),
    PatternKind.DASH_RUN: re.compile(r"-{3,}"),
    PatternKind.BRACKET: re.compile(r"\[[^\[\]<>\r\n]{1,60}\]"),
    # [.....], [_____] or […] left in forms as a bracketed blank
    PatternKind.BRACKETED_RUN: re.compile(r"\[(?:\.{3,}|_{3,}|…+)\]"),
    PatternKind.PAREN: re.compile(r"\([^()<>\r\n]{1,60}\)"),
    PatternKind.SINGLE_UNDERSCORE: re.compile(r"\b_\b"),
    PatternKind.CURLY_VARIABLE: re.compile(r"\{\{[^{}\r\n]*\}\}"),
}

_PRIORITY = {kind: i for i, kind in enumerate(PatternKind)}

# Kinds whose content sits between delimiters; an empty inside is not a placeholder
_ENCLOSED = {
    PatternKind.BRACKET: 1,
    PatternKind.PAREN: 1,
    PatternKind.CURLY_VARIABLE: 2,
}

BLANK_SPACE_KINDS = frozenset(k for k in PatternKind if k is not PatternKind.CURLY_VARIABLE)
PUNCTUATION_KINDS = frozenset({
    PatternKind.DATE_PHRASE,
    PatternKind.DOT_RUN,
    PatternKind.UNDERSCORE_RUN,
    PatternKind.DASH_RUN,
})
# Runs plus bracketed runs; clause text in brackets or parentheses stays text
PLACEHOLDER_KINDS = PUNCTUATION_KINDS | {PatternKind.BRACKETED_RUN}

TAG_RE = re.compile(r"</?[A-Za-z!][^<>]*>")

Matcher = Callable[[str], Iterator[ScanMatch]]


def _regex_matcher(kind: PatternKind) -> Matcher:
    pattern = PATTERNS[kind]
    strip = _ENCLOSED.get(kind, 0)

    def match(text: str) -> Iterator[ScanMatch]:
        for m in pattern.finditer(text):
            frag = m.group(0)
            inner = frag[strip:len(frag) - strip] if strip else frag
            if not frag.strip() or not inner.strip():
                continue
            yield ScanMatch(kind, frag, m.start())

    return match


MATCHERS: dict[PatternKind, Matcher] = {kind: _regex_matcher(kind) for kind in PatternKind}


def tag_ranges(text: str) -> list[tuple[int, int]]:
    """Spans of markup tags, which are never scanned into."""
    if "<" not in text:
        return []
    return [m.span() for m in TAG_RE.finditer(text)]


def _merge(ranges: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    merged: list[tuple[int, int]] = []
    for a, b in sorted(ranges):
        if merged and a <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], b))
        else:
            merged.append((a, b))
    return merged


def _overlaps(start: int, end: int, ranges: list[tuple[int, int]], starts: list[int]) -> bool:
    i = bisect_right(starts, start) - 1
    if i >= 0 and ranges[i][1] > start:
        return True
    return i + 1 < len(ranges) and ranges[i + 1][0] < end


def scan(
    text: str,
    kinds: Iterable[PatternKind] | None = None,
    exclude: Iterable[tuple[int, int]] = (),
) -> list[ScanMatch]:
    """
    Return non-overlapping placeholder spans in reading order.

    Variable tokens always take part in overlap resolution, so text inside
    a {{variable}} never becomes a blank even when only blank kinds are
    requested. `exclude` holds (start, end) ranges the caller wants left
    alone, e.g. existing markers.
    """
    wanted = set(kinds) if kinds is not None else set(PatternKind)
    competing = wanted | {PatternKind.CURLY_VARIABLE}
    blocked = _merge([*tag_ranges(text), *exclude])
    starts = [a for a, _ in blocked]

    candidates = [
        m for kind in competing for m in MATCHERS[kind](text)
        if not _overlaps(m.offset, m.end, blocked, starts)
    ]
    candidates.sort(key=lambda m: (m.offset, -len(m.text), _PRIORITY[m.kind]))

    accepted: list[ScanMatch] = []
    last_end = 0
    for m in candidates:
        if m.offset < last_end:
            continue
        accepted.append(m)
        last_end = m.end
    return [m for m in accepted if m.kind in wanted]
