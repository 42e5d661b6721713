# backend/tests/test_placeholder_hints.py
from datetime import date

import pytest

from placeholder_hints import (
    IncompleteDocumentError, apply_placeholders, categorize, detect_placeholders,
    fill_from_record, fill_placeholder, label_from_context, require_complete, validate_filled,
)
from schemas import PlaceholderCategory as Category

TEXT = "Landlord: .........\nThe Commencement Date: ______\nThis ... day of ... 20...."


@pytest.mark.parametrize("before,expected", [
    ("Landlord: ", (Category.NAME, "landlord_name")),
    ("The Commencement Date: ", (Category.DATE, "commencement_date")),
    ("First Year: Kenya Shillings ", (Category.AMOUNT, "rent")),
    ("whose postal address is P.O. BOX ", (Category.ADDRESS, "landlord_address")),
    ("Title Number: ", (Category.REFERENCE, "title_number")),
])
def test_categorize_from_preceding_text(before, expected):
    assert categorize(before) == expected


def test_categorize_falls_back_to_following_text():
    assert categorize("from ", ' (as the "Tenant")') == (Category.NAME, "tenant_name")
    assert categorize("", "") == (Category.OTHER, None)


def test_label_from_context():
    assert label_from_context("The Commencement Date: ", "") == "Commencement Date"
    assert label_from_context("from ", ' (as the "Landlord")') == "Landlord"
    assert label_from_context("blah blah ", "") is None


def test_detect_numbers_in_reading_order():
    found = detect_placeholders(TEXT)
    assert [p.id for p in found] == ["placeholder-1", "placeholder-2", "placeholder-3"]
    assert [p.order for p in found] == [1, 2, 3]
    assert found[0].position < found[1].position < found[2].position
    assert [p.category for p in found] == [Category.NAME, Category.DATE, Category.DATE]
    assert found[0].description == "Landlord"
    assert found[1].description == "Commencement Date"
    assert found[2].description == "Placeholder 3"
    assert found[2].original_text == "This ... day of ... 20...."


def test_detect_uses_template_descriptions():
    found = detect_placeholders(TEXT, "lease-forwarding")
    assert [p.description for p in found] == ["Landlord Name", "Property Reference", "Date"]
    assert found[1].field == "site_code"


def test_fill_keeps_order_and_ignores_unknown_ids():
    found = detect_placeholders(TEXT)
    updated = fill_placeholder(found, "placeholder-2", "1 May 2024")
    assert [p.order for p in updated] == [1, 2, 3]
    assert updated[1].filled and updated[1].value == "1 May 2024"
    assert fill_placeholder(found, "placeholder-9", "x") == found


def test_validation_counts_whitespace_as_unfilled():
    found = detect_placeholders(TEXT)
    found = fill_placeholder(found, "placeholder-1", "Jane Doe")
    found = fill_placeholder(found, "placeholder-2", "   ")
    result = validate_filled(found)
    assert not result.is_valid
    assert (result.total, result.filled_count, result.unfilled_count) == (3, 1, 2)
    assert result.completion == 33.3
    assert [p.id for p in result.unfilled] == ["placeholder-2", "placeholder-3"]


def test_nothing_to_fill_is_complete():
    result = validate_filled([])
    assert result.is_valid and result.completion == 100.0


def test_require_complete():
    found = detect_placeholders(TEXT)
    with pytest.raises(IncompleteDocumentError, match="3 of 3"):
        require_complete(found)


def test_apply_placeholders():
    found = detect_placeholders(TEXT)
    for pid, value in [("placeholder-1", "Jane Doe"), ("placeholder-2", "1 May 2024"),
                       ("placeholder-3", "This 3rd day of April 2024")]:
        found = fill_placeholder(found, pid, value)
    require_complete(found)
    assert apply_placeholders(TEXT, found) == (
        "Landlord: Jane Doe\nThe Commencement Date: 1 May 2024\nThis 3rd day of April 2024"
    )


def test_fill_from_record():
    found = detect_placeholders(TEXT)
    filled = fill_from_record(found, {"landlord_name": "Jane Doe", "site_code": "SC-001"},
                              "lease-forwarding", today=date(2024, 4, 3))
    assert [p.value for p in filled] == ["Jane Doe", "SC-001", "This 3rd day of April 2024"]
    assert validate_filled(filled).is_valid


def test_clause_after_blank_is_not_a_placeholder():
    text = 'from ........ (as the "Landlord")\nProperty Reference: ______'
    found = detect_placeholders(text, "lease-forwarding")
    assert [p.original_text for p in found] == ["........", "______"]

    filled = fill_from_record(found, {"landlord_name": "Jane Doe", "site_code": "SC-001"},
                              "lease-forwarding", today=date(2024, 4, 3))
    assert [p.value for p in filled] == ["Jane Doe", "SC-001"]
    assert apply_placeholders(text, filled) == (
        'from Jane Doe (as the "Landlord")\nProperty Reference: SC-001'
    )


def test_bracketed_run_detected_whole():
    found = detect_placeholders("Monthly rent: [.....] (payable in advance)")
    assert [p.original_text for p in found] == ["[.....]"]
    assert found[0].category == Category.AMOUNT
