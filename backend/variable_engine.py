# backend/variable_engine.py
"""
{{key}} substitution for free-form templates.

One pass, case-sensitive keys. A key without a usable value renders as
[key] so a reviewer can spot the gap. Values are not re-scanned, so a value
that itself contains {{...}} comes out verbatim.
"""
import logging
import re
from datetime import date
from typing import Iterable, Mapping

from schemas import TemplateVariable

logger = logging.getLogger(__name__)

VARIABLE_RE = re.compile(r"\{\{\s*([^{}\s][^{}\r\n]*?)\s*\}\}")


def find_variables(text: str) -> list[str]:
    """Distinct keys in order of first appearance."""
    seen = []
    for m in VARIABLE_RE.finditer(text):
        if m.group(1) not in seen:
            seen.append(m.group(1))
    return seen


def _as_mapping(variables: Mapping[str, str | None] | Iterable[TemplateVariable] | None) -> dict:
    if variables is None:
        return {}
    if isinstance(variables, Mapping):
        return dict(variables)
    return {v.key: v.value for v in variables}


def substitute(
    text: str,
    variables: Mapping[str, str | None] | Iterable[TemplateVariable] | None,
) -> str:
    values = _as_mapping(variables)
    gaps = []

    def repl(m: re.Match) -> str:
        key = m.group(1)
        value = values.get(key)
        if value is None or str(value) == "":
            gaps.append(key)
            return f"[{key}]"
        return str(value)

    out = VARIABLE_RE.sub(repl, text)
    if gaps:
        logger.info("Left %d unresolved variables visible: %s", len(gaps), ", ".join(sorted(set(gaps))))
    return out


def _annual(monthly: str | None) -> str:
    try:
        return f"{float(monthly) * 12:.2f}".rstrip("0").rstrip(".") if monthly else ""
    except ValueError:
        return ""


def record_variables(record: Mapping[str, str], today: date | None = None) -> list[TemplateVariable]:
    """
    Standard variable set for instruction-form records, keyed the way the
    built-in templates reference them.
    """
    today = today or date.today()

    def get(key: str, default: str = "") -> str:
        return record.get(key) or default

    site_code = get("site_code")

    pairs = {
        "current_date": today.strftime("%d/%m/%Y"),
        "current_year": str(today.year),
        "commencement_date": get("commencement_date"),
        "site_code": site_code,
        "site_name": get("site_name"),
        "site_location": get("site_location"),
        "county": get("county"),
        "sub_county": get("sub_county"),
        "ward": get("ward"),
        "title_number": get("title_number"),
        "title_type": get("title_type"),
        "registration_section": get("registration_section"),
        "land_area": get("land_area"),
        "land_use": get("land_use"),
        "landlord_name": get("landlord_name"),
        "landlord_type": get("landlord_type"),
        "landlord_address": get("landlord_address"),
        "landlord_phone": get("landlord_phone"),
        "landlord_email": get("landlord_email"),
        "landlord_id": get("landlord_id"),
        "lease_type": get("lease_type"),
        "lease_term": get("lease_term"),
        "monthly_rent": get("monthly_rent"),
        "annual_rent": _annual(record.get("monthly_rent")),
        "deposit": get("deposit"),
        "rent_escalation": get("rent_escalation", "5"),
        "special_conditions": get("special_conditions"),
        "instructing_counsel": get("instructing_counsel"),
        "file_ref": f"{site_code}/{today.year}" if site_code else "",
        "instruction_ref": f"ROF-{today.year}-{site_code}" if site_code else "",
        "tenant_name": get("tenant_name"),
        "tenant_address": get("tenant_address"),
    }
    return [TemplateVariable(key=k, value=v) for k, v in pairs.items()]
