# backend/autofill.py
"""
Ordinal auto-fill: blank i of a document receives entry i of its type's
field schedule. The boilerplate templates have a fixed blank order, so no
semantic matching is attempted here. Reordering blanks in a template
breaks the mapping; that is a known limitation of the approach.
"""
import logging
from datetime import date
from typing import Callable, Mapping, NamedTuple

from pattern_scanner import PUNCTUATION_KINDS
from placeholder_engine import detect, fill, list_blank_spaces
from schemas import AutoFillResult

logger = logging.getLogger(__name__)

YEAR_WORDS = ["First", "Second", "Third", "Fourth", "Fifth",
              "Sixth", "Seventh", "Eighth", "Ninth", "Tenth"]


class ScheduleField(NamedTuple):
    description: str
    value: str
    field: str | None = None


FieldSchedule = list[ScheduleField]


def ordinal_suffix(n: int) -> str:
    if 11 <= n % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")


def format_date_phrase(d: date) -> str:
    """date(2024, 4, 3) -> 'This 3rd day of April 2024'"""
    return f"This {d.day}{ordinal_suffix(d.day)} day of {d.strftime('%B')} {d.year}"


def _value(record: Mapping[str, str], key: str, fallback: str) -> str:
    raw = record.get(key)
    raw = str(raw).strip() if raw is not None else ""
    return raw or fallback


def _number(raw, default: float) -> float:
    try:
        return float(raw) if raw not in (None, "") else default
    except (TypeError, ValueError):
        return default


def calculate_rent_schedule(record: Mapping[str, str], years: int = 15) -> list[str]:
    """Yearly rent with compound escalation, Kenya Shilling formatting."""
    base = _number(record.get("monthly_rent"), 0.0)
    rate = _number(record.get("rent_escalation"), 5.0) / 100
    schedule = []
    for year in range(years):
        yearly = round(base * 12 * (1 + rate) ** year)
        schedule.append(f"{yearly:,} (K.Shs. {yearly:,}/=)")
    return schedule


def lease_forwarding_schedule(record: Mapping[str, str], today: date | None = None) -> FieldSchedule:
    today = today or date.today()
    term = _value(record, "lease_term", "[Lease Term]")
    return [
        ScheduleField("Landlord Name", _value(record, "landlord_name", "[Landlord Name]"), "landlord_name"),
        ScheduleField("Property Reference", _value(record, "site_code", "[Property Reference]"), "site_code"),
        ScheduleField("Date", format_date_phrase(today)),
        ScheduleField("Landlord Address", _value(record, "landlord_address", "[Landlord Address]"), "landlord_address"),
        ScheduleField("Commencement Date", _value(record, "commencement_date", "[Commencement Date]"), "commencement_date"),
        ScheduleField("Land Description", _value(record, "site_location", "[Site Location]"), "site_location"),
        ScheduleField("Landlord Postal Address", _value(record, "landlord_address", "[Landlord Postal Address]"), "landlord_address"),
        ScheduleField("Lease Term", f"{term} years", "lease_term"),
        ScheduleField("Consecutive Term", f"{term} years", "lease_term"),
    ]


def agreement_to_lease_schedule(record: Mapping[str, str], today: date | None = None) -> FieldSchedule:
    today = today or date.today()
    landlord = _value(record, "landlord_name", "[Landlord Name]")
    term = _value(record, "lease_term", "[Term]")
    schedule = [
        ScheduleField("Landlord Name", landlord, "landlord_name"),
        ScheduleField("Land Reference Number", _value(record, "title_number", "[Title Number]"), "title_number"),
        ScheduleField("Date", f"{today.day} day of {today.strftime('%B')} {today.year}"),
        ScheduleField("Commencement Date", _value(record, "commencement_date", "[Commencement Date]"), "commencement_date"),
        ScheduleField("Land Description", _value(record, "site_location", "[Site Location]"), "site_location"),
        ScheduleField("Landlord Name (Second Reference)", landlord, "landlord_name"),
        ScheduleField("Postal Address", _value(record, "landlord_address", "[Landlord Address]"), "landlord_address"),
    ]
    for i, rent in enumerate(calculate_rent_schedule(record, years=len(YEAR_WORDS))):
        schedule.append(ScheduleField(f"{YEAR_WORDS[i]} Year Rent", rent))
    schedule += [
        ScheduleField("Lease Term", f"{term} ({term}) Years", "lease_term"),
        ScheduleField("Renewal Option", f"{term} ({term})", "lease_term"),
        ScheduleField("Consecutive Term", f"{term} ({term}) years", "lease_term"),
    ]
    return schedule


def interim_agreement_schedule(record: Mapping[str, str], today: date | None = None) -> FieldSchedule:
    today = today or date.today()
    return [
        ScheduleField("Landlord Name", _value(record, "landlord_name", "[Landlord Name]"), "landlord_name"),
        ScheduleField("Title Number", _value(record, "title_number", "[Title Number]"), "title_number"),
        ScheduleField("Agreement Date", f"{today.day} day of {today.strftime('%B')} {today.year}"),
    ]


def retail_shop_lease_schedule(record: Mapping[str, str], today: date | None = None) -> FieldSchedule:
    today = today or date.today()
    return [
        ScheduleField("Lease Date", f"{today.day} DAY OF {today.strftime('%B').upper()} {today.year}"),
    ]


ScheduleBuilder = Callable[[Mapping[str, str], date | None], FieldSchedule]

SCHEDULE_BUILDERS: dict[str, ScheduleBuilder] = {
    "lease-forwarding": lease_forwarding_schedule,
    "agreement-to-lease": agreement_to_lease_schedule,
    "interim-agreement": interim_agreement_schedule,
    "retail-shop-lease-template": retail_shop_lease_schedule,
}

# First matching keyword wins
TEMPLATE_KEYWORDS = [
    ("agreement to lease", "agreement-to-lease"),
    ("interim agreement", "interim-agreement"),
    ("peppercorn", "lease-peppercorn"),
    ("letter to offer", "letter-to-offer"),
    ("licence agreement", "licence-agreement"),
    ("residential lease", "residential-lease-template"),
    ("retail shop lease", "retail-shop-lease-template"),
    ("forwarding", "lease-forwarding"),
]


def detect_template_type(content: str) -> str | None:
    lowered = content.lower()
    for keyword, template_type in TEMPLATE_KEYWORDS:
        if keyword in lowered:
            return template_type
    return None


def build_schedule(document_type: str, record: Mapping[str, str], today: date | None = None) -> FieldSchedule:
    """Raises KeyError for a document type without a schedule."""
    builder = SCHEDULE_BUILDERS[document_type]
    return builder(record, today)


def autofill(markup: str, schedule: FieldSchedule) -> AutoFillResult:
    unfilled = [s for s in list_blank_spaces(markup) if not s.filled]
    filled_ids, unfilled_ids = [], []

    for i, space in enumerate(unfilled):
        if i < len(schedule):
            markup = fill(markup, space.id, schedule[i].value)
            filled_ids.append(space.id)
            logger.debug("Blank %d (%s) <- %s", i + 1, space.id, schedule[i].description)
        else:
            logger.warning("No field defined for blank space %d (%s), leaving unfilled", i + 1, space.id)
            unfilled_ids.append(space.id)

    if len(schedule) > len(unfilled):
        logger.debug("%d schedule fields had no blank space", len(schedule) - len(unfilled))
    logger.info("Auto-filled %d of %d blank spaces", len(filled_ids), len(unfilled))
    return AutoFillResult(markup=markup, filled_ids=filled_ids, unfilled_ids=unfilled_ids)


def autofill_document(
    markup: str,
    record: Mapping[str, str],
    document_type: str,
    today: date | None = None,
) -> AutoFillResult:
    """Detect punctuation-run blanks, then fill them positionally from the record."""
    schedule = build_schedule(document_type, record, today)
    annotated, _ = detect(markup, kinds=PUNCTUATION_KINDS)
    return autofill(annotated, schedule)
