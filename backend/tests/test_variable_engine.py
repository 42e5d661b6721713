# backend/tests/test_variable_engine.py
from datetime import date

from schemas import TemplateVariable
from variable_engine import find_variables, record_variables, substitute


def test_missing_value_left_visible():
    assert substitute("Tenant: {{tenant_name}}", {}) == "Tenant: [tenant_name]"


def test_empty_value_counts_as_missing():
    assert substitute("Rent: {{rent}}", {"rent": ""}) == "Rent: [rent]"
    assert substitute("Rent: {{rent}}", {"rent": None}) == "Rent: [rent]"


def test_every_occurrence_replaced():
    assert substitute("{{a}} and {{a}}", {"a": "x"}) == "x and x"


def test_keys_are_case_sensitive():
    assert substitute("{{Name}}", {"name": "Jane"}) == "[Name]"


def test_inner_whitespace_is_ignored():
    assert substitute("{{ site_code }}", {"site_code": "SC-1"}) == "SC-1"


def test_values_are_not_rescanned():
    out = substitute("{{a}}", {"a": "{{b}}", "b": "nope"})
    assert out == "{{b}}"


def test_accepts_template_variable_list():
    variables = [TemplateVariable(key="landlord_name", value="Jane Doe"), TemplateVariable(key="deposit")]
    out = substitute("{{landlord_name}} pays {{deposit}}", variables)
    assert out == "Jane Doe pays [deposit]"


def test_text_without_variables_unchanged():
    assert substitute("Plain text ...", {"a": "b"}) == "Plain text ..."


def test_find_variables_in_first_appearance_order():
    assert find_variables("{{b}} {{a}} {{b}} {{ c }}") == ["b", "a", "c"]


def test_record_variables():
    record = {"site_code": "SC-001", "monthly_rent": "10000", "landlord_name": "Jane Doe"}
    values = {v.key: v.value for v in record_variables(record, today=date(2024, 4, 3))}
    assert values["current_date"] == "03/04/2024"
    assert values["annual_rent"] == "120000"
    assert values["file_ref"] == "SC-001/2024"
    assert values["instruction_ref"] == "ROF-2024-SC-001"
    assert values["rent_escalation"] == "5"
    assert values["tenant_name"] == ""


def test_record_variables_bad_rent():
    values = {v.key: v.value for v in record_variables({"monthly_rent": "n/a"}, today=date(2024, 1, 1))}
    assert values["annual_rent"] == ""
    assert values["file_ref"] == ""
