# backend/placeholder_hints.py
"""
Detected-placeholder flow for uploaded templates: every placeholder gets a
reading-order number, a category guessed from the words around it, and a
label. The guesses are keyword heuristics; keep them deterministic and
conservative.
"""
import logging
import re
from datetime import date
from typing import Mapping

from autofill import SCHEDULE_BUILDERS, build_schedule
from config import CONTEXT_WINDOW
from pattern_scanner import PLACEHOLDER_KINDS, PatternKind, scan
from schemas import DetectedPlaceholder, FillValidation, PlaceholderCategory

logger = logging.getLogger(__name__)

Category = PlaceholderCategory

# More specific phrases first: on equal distance the earlier entry wins
CONTEXT_KEYWORDS = [
    ("commencement date", Category.DATE, "commencement_date"),
    ("completion date", Category.DATE, "expected_completion_date"),
    ("day of", Category.DATE, "date"),
    ("dated", Category.DATE, "date"),
    ("date", Category.DATE, "date"),
    ("kenya shillings", Category.AMOUNT, "rent"),
    ("k.shs", Category.AMOUNT, "rent"),
    ("deposit", Category.AMOUNT, "deposit"),
    ("rent", Category.AMOUNT, "monthly_rent"),
    ("amount", Category.AMOUNT, "amount"),
    ("price", Category.AMOUNT, "amount"),
    ("title number", Category.REFERENCE, "title_number"),
    ("land reference number", Category.REFERENCE, "title_number"),
    ("reference", Category.REFERENCE, "site_code"),
    ("ref", Category.REFERENCE, "site_code"),
    ("postal address", Category.ADDRESS, "landlord_address"),
    ("p.o. box", Category.ADDRESS, "landlord_address"),
    ("address", Category.ADDRESS, "landlord_address"),
    ("land known as", Category.ADDRESS, "site_location"),
    ("situated", Category.ADDRESS, "site_location"),
    ("landlord", Category.NAME, "landlord_name"),
    ("tenant", Category.NAME, "tenant_name"),
    ("licensee", Category.NAME, "tenant_name"),
    ("name", Category.NAME, "name"),
    ("term", Category.OTHER, "lease_term"),
]

_KEYWORD_RES = [
    (re.compile(rf"(?<!\w){re.escape(word)}(?!\w)", re.I), category, field)
    for word, category, field in CONTEXT_KEYWORDS
]

QUOTE_PAT = re.compile(r"[“\"]([^”\"]+)[”\"]")
LEADING_ARTICLE = re.compile(r"^(?:the|a|an)\s+", re.I)


class IncompleteDocumentError(ValueError):
    """Raised when a document is finalised with placeholders still open."""


def categorize(before: str, after: str = "") -> tuple[PlaceholderCategory, str | None]:
    """
    Pick the keyword closest to the placeholder, looking backwards first
    (labels usually precede the blank), then forwards.
    """
    best = None
    for i, (pattern, category, field) in enumerate(_KEYWORD_RES):
        hits = list(pattern.finditer(before))
        if hits:
            rank = (len(before) - hits[-1].end(), i)
            if best is None or rank < best[0]:
                best = (rank, category, field)
    if best:
        return best[1], best[2]

    for i, (pattern, category, field) in enumerate(_KEYWORD_RES):
        hit = pattern.search(after)
        if hit:
            rank = (hit.start(), i)
            if best is None or rank < best[0]:
                best = (rank, category, field)
    if best:
        return best[1], best[2]
    return Category.OTHER, None


def label_from_context(before: str, after: str) -> str | None:
    """
    Try to find a readable label near the placeholder:
      1) the clause right before it, when it names something we know
      2) a quoted term right after it, e.g. (as the "Landlord")
    """
    tail = before.rstrip().rstrip(":").rstrip()
    chunks = [c.strip() for c in re.split(r"[.;:\n…]", tail)]
    chunks = [c for c in chunks if c]
    if chunks:
        cand = LEADING_ARTICLE.sub("", re.sub(r"\s+", " ", chunks[-1])).strip(" -,(")
        if 2 <= len(cand) <= 60 and any(p.search(cand) for p, _, _ in _KEYWORD_RES):
            return " ".join(w[:1].upper() + w[1:] for w in cand.split())

    for qm in QUOTE_PAT.finditer(after[:120]):
        phrase = qm.group(1).strip()
        if 2 <= len(phrase) <= 60:
            return phrase
    return None


def detect_placeholders(text: str, template_type: str | None = None, today: date | None = None) -> list[DetectedPlaceholder]:
    schedule = build_schedule(template_type, {}, today) if template_type in SCHEDULE_BUILDERS else []
    placeholders = []

    for order, match in enumerate(scan(text, kinds=PLACEHOLDER_KINDS), start=1):
        before = text[max(0, match.offset - CONTEXT_WINDOW):match.offset]
        after = text[match.end:match.end + CONTEXT_WINDOW]

        if match.kind is PatternKind.DATE_PHRASE:
            category, field = Category.DATE, "date"
        else:
            category, field = categorize(before, after)

        mapped = schedule[order - 1] if order <= len(schedule) else None
        description = (mapped.description if mapped else None) or label_from_context(before, after) or f"Placeholder {order}"

        placeholders.append(DetectedPlaceholder(
            id=f"placeholder-{order}",
            order=order,
            position=match.offset,
            original_text=match.text,
            description=description,
            category=category,
            field=(mapped.field if mapped and mapped.field else field),
        ))

    logger.info("Detected %d placeholders (template type: %s)", len(placeholders), template_type or "unknown")
    return placeholders


def fill_placeholder(placeholders: list[DetectedPlaceholder], placeholder_id: str, value: str) -> list[DetectedPlaceholder]:
    """Order never changes on fill; an unknown id leaves the list as it was."""
    out = []
    for p in placeholders:
        if p.id == placeholder_id:
            p = p.model_copy(update={"value": value, "filled": bool(value.strip())})
        out.append(p)
    return out


def fill_from_record(
    placeholders: list[DetectedPlaceholder],
    record: Mapping[str, str],
    template_type: str,
    today: date | None = None,
) -> list[DetectedPlaceholder]:
    schedule = build_schedule(template_type, record, today)
    out = []
    for i, p in enumerate(sorted(placeholders, key=lambda p: p.order)):
        if i < len(schedule):
            field = schedule[i]
            p = p.model_copy(update={"value": field.value, "filled": True, "description": field.description})
        else:
            logger.warning("No field defined for placeholder %d, leaving unfilled", p.order)
        out.append(p)
    return out


def validate_filled(placeholders: list[DetectedPlaceholder]) -> FillValidation:
    unfilled = [p for p in placeholders if not p.filled or not p.value.strip()]
    total = len(placeholders)
    filled_count = total - len(unfilled)
    completion = round(filled_count / total * 100, 1) if total else 100.0
    return FillValidation(
        is_valid=not unfilled,
        total=total,
        filled_count=filled_count,
        unfilled_count=len(unfilled),
        completion=completion,
        unfilled=unfilled,
    )


def require_complete(placeholders: list[DetectedPlaceholder]) -> None:
    result = validate_filled(placeholders)
    if not result.is_valid:
        raise IncompleteDocumentError(
            f"{result.unfilled_count} of {result.total} placeholders are still unfilled"
        )


def apply_placeholders(text: str, placeholders: list[DetectedPlaceholder]) -> str:
    """Write filled values over their spans, right to left so offsets stay valid."""
    for p in sorted(placeholders, key=lambda p: p.position, reverse=True):
        if not p.filled:
            continue
        end = p.position + len(p.original_text)
        if text[p.position:end] != p.original_text:
            logger.warning("Placeholder %s no longer matches the text, skipped", p.id)
            continue
        text = text[:p.position] + p.value + text[end:]
    return text
