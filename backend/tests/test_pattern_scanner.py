# backend/tests/test_pattern_scanner.py
from pattern_scanner import BLANK_SPACE_KINDS, PLACEHOLDER_KINDS, PUNCTUATION_KINDS, PatternKind, scan


def kinds_of(matches):
    return [m.kind for m in matches]


def test_runs_found_in_reading_order():
    matches = scan("Sign: _____ Date: ... Witness ------", kinds=BLANK_SPACE_KINDS)
    assert [(m.kind, m.text, m.offset) for m in matches] == [
        (PatternKind.UNDERSCORE_RUN, "_____", 6),
        (PatternKind.DOT_RUN, "...", 18),
        (PatternKind.DASH_RUN, "------", 30),
    ]


def test_date_phrase_wins_over_inner_dots():
    text = "Landlord: ......... \nThis ... day of ... 20...."
    matches = scan(text, kinds=BLANK_SPACE_KINDS)
    assert kinds_of(matches) == [PatternKind.DOT_RUN, PatternKind.DATE_PHRASE]
    assert matches[0].offset == 10
    assert matches[1].text == "This ... day of ... 20...."


def test_short_runs_are_not_placeholders():
    assert scan("Dr. Smith.. paid -- twice __", kinds=BLANK_SPACE_KINDS) == []


def test_ellipsis_character_counts_as_dot_run():
    matches = scan("from………to", kinds=PUNCTUATION_KINDS)
    assert [m.text for m in matches] == ["………"]


def test_bracket_and_paren_placeholders():
    matches = scan("Pay [Amount] to (the Tenant) today", kinds=BLANK_SPACE_KINDS)
    assert kinds_of(matches) == [PatternKind.BRACKET, PatternKind.PAREN]
    assert matches[0].text == "[Amount]"


def test_empty_enclosures_ignored():
    assert scan("[ ] and ( )", kinds=BLANK_SPACE_KINDS) == []


def test_longest_match_at_same_offset():
    matches = scan("[.....]", kinds=BLANK_SPACE_KINDS)
    assert kinds_of(matches) == [PatternKind.BRACKET]


def test_only_requested_kinds_compete():
    # The dots survive when parentheses are not asked for
    matches = scan("(.....)", kinds=PUNCTUATION_KINDS)
    assert [m.text for m in matches] == ["....."]


def test_single_underscore():
    matches = scan("Name: _ here", kinds=BLANK_SPACE_KINDS)
    assert [(m.kind, m.offset) for m in matches] == [(PatternKind.SINGLE_UNDERSCORE, 6)]


def test_variable_tokens_are_never_blanks():
    assert scan("Tenant: {{___}}", kinds=BLANK_SPACE_KINDS) == []
    assert kinds_of(scan("Tenant: {{tenant_name}}")) == [PatternKind.CURLY_VARIABLE]


def test_markup_tags_are_not_scanned():
    assert scan('<p class="a---b">text</p>', kinds=BLANK_SPACE_KINDS) == []
    matches = scan("<p>Name: .....</p>", kinds=BLANK_SPACE_KINDS)
    assert [m.offset for m in matches] == [9]


def test_exclude_ranges_left_alone():
    text = "..... and ....."
    matches = scan(text, kinds=BLANK_SPACE_KINDS, exclude=[(0, 5)])
    assert [m.offset for m in matches] == [10]


def test_scan_does_not_modify_and_is_repeatable():
    text = "Landlord: ......... Tenant: ______"
    first = scan(text)
    assert scan(text) == first
    assert text == "Landlord: ......... Tenant: ______"


def test_bracketed_run_is_one_placeholder():
    matches = scan("Rent: [.....] per month, paid […] (in advance)", kinds=PLACEHOLDER_KINDS)
    assert [(m.kind, m.text) for m in matches] == [
        (PatternKind.BRACKETED_RUN, "[.....]"),
        (PatternKind.BRACKETED_RUN, "[…]"),
    ]


def test_clause_text_is_not_a_placeholder_kind():
    text = 'from ........ (as the "Landlord") [see Schedule]'
    for kinds in (PUNCTUATION_KINDS, PLACEHOLDER_KINDS):
        assert [m.text for m in scan(text, kinds=kinds)] == ["........"]
