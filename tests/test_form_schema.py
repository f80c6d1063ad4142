import pytest

from form_schema import (
    CONFERENCE_FORM_SECTIONS,
    RAW_ANSWERS_LABEL,
    enabled_sections,
    field_label,
    missing_required,
    registration_fields,
    relabel_answers,
    resolve_schema,
    schema_for_target,
    section_fields,
    validate_schema,
)

OWN = [{"id": "own", "label_ar": "خاص", "label_en": "Own", "type": "text", "required": False}]
TEMPLATE = [
    {"id": "t1", "label_ar": "الاسم", "label_en": "Name", "type": "text", "required": True},
    {"id": "t2", "label_ar": "المدينة", "label_en": "City", "type": "select", "required": False,
     "options": ["البصرة"]},
]


@pytest.mark.parametrize("fallback", [None, [], TEMPLATE])
def test_resolve_prefers_non_empty_primary_verbatim(fallback):
    assert resolve_schema(OWN, fallback) is OWN


def test_resolve_falls_back_wholesale():
    assert resolve_schema([], TEMPLATE) is TEMPLATE
    assert resolve_schema(None, TEMPLATE) is TEMPLATE


def test_resolve_empty_fallback():
    empty = []
    assert resolve_schema([], empty) is empty
    assert resolve_schema(None, None) == []


def test_resolve_never_merges():
    result = resolve_schema(OWN, TEMPLATE)
    assert [f["id"] for f in result] == ["own"]


def test_registration_fields_direct_then_conference():
    direct = {"registration_config": OWN, "conference_config": {"registration": {"form_fields": TEMPLATE}}}
    assert registration_fields(direct) == OWN

    conf_only = {"registration_config": [], "conference_config": {"registration": {"form_fields": TEMPLATE}}}
    assert registration_fields(conf_only) == TEMPLATE

    assert registration_fields({"registration_config": None}) == []
    assert registration_fields(None) == []


def test_section_fields_tolerates_odd_shapes():
    assert section_fields({"conference_config": None}, "sponsors") == []
    assert section_fields({"conference_config": {"sponsors": "x"}}, "sponsors") == []
    assert section_fields({"conference_config": {"sponsors": {"form_fields": OWN}}}, "sponsors") == OWN


def test_schema_for_target_uses_template_for_events_only():
    event = {"id": "e2", "registration_config": []}
    template = {"id": "e1", "registration_config": TEMPLATE,
                "conference_config": {"sponsors": {"form_fields": OWN}}}

    assert schema_for_target("event", event, template) == TEMPLATE
    assert schema_for_target("conference", event, template, "sponsors") == OWN
    assert schema_for_target("conference", event, template, "theme") == []
    assert schema_for_target("sector", {"registration_config": []}, template) == []
    assert schema_for_target("partner_category", {"registration_config": OWN}) == OWN


def test_enabled_sections_skips_disabled():
    event = {"conference_config": {"theme": {"enabled": False}, "sponsors": {"enabled": True}}}
    sections = enabled_sections(event)
    assert "theme" not in sections
    assert "sponsors" in sections
    assert len(sections) == len(CONFERENCE_FORM_SECTIONS) - 1


def test_field_label_fallbacks():
    assert field_label({"id": "a", "label_ar": "الاسم", "label_en": "Name"}) == "الاسم"
    assert field_label({"id": "a", "label_ar": "الاسم", "label_en": "Name"}, "en") == "Name"
    assert field_label({"id": "a", "label_ar": "", "label_en": "Name"}) == "Name"
    assert field_label({"id": "a", "label_ar": "الاسم", "label_en": ""}, "en") == "الاسم"
    assert field_label({"id": "a", "label_ar": "", "label_en": ""}) == "a"


def test_missing_required_treats_blank_and_absent_alike(name_schema):
    assert missing_required(name_schema, {}) == ["f1"]
    assert missing_required(name_schema, {"f1": ""}) == ["f1"]
    assert missing_required(name_schema, {"f1": "   "}) == ["f1"]
    assert missing_required(name_schema, {"f1": None}) == ["f1"]
    assert missing_required(name_schema, {"f1": "أحمد"}) == []


def test_missing_required_ignores_optional_fields():
    fields = TEMPLATE
    assert missing_required(fields, {"t1": "x"}) == []


def test_relabel_answers_orders_by_schema_and_keeps_unknown_keys():
    answers = {"old_key": "قديم", "t2": "البصرة", "t1": "أحمد"}
    rows = relabel_answers(answers, TEMPLATE)
    assert rows == [("الاسم", "أحمد"), ("المدينة", "البصرة"), ("old_key", "قديم")]

    rows_en = relabel_answers(answers, TEMPLATE, "en")
    assert rows_en[0] == ("Name", "أحمد")


def test_relabel_answers_without_schema_and_from_json_text():
    assert relabel_answers('{"a": 1, "b": ["x"]}', None) == [("a", "1"), ("b", '["x"]')]
    assert relabel_answers(None, TEMPLATE) == []


def test_validate_schema_reports_problems():
    fields = [
        {"id": "a", "label_ar": "أ", "label_en": "", "type": "text", "required": True},
        {"id": "a", "label_ar": "ب", "label_en": "", "type": "text", "required": True},
        {"id": "", "label_ar": "ج", "label_en": "", "type": "text", "required": False},
        {"id": "c", "label_ar": "", "label_en": "", "type": "color", "required": False},
        {"id": "d", "label_ar": "د", "label_en": "", "type": "select", "required": False},
    ]
    problems = validate_schema(fields)
    assert any("Duplicate field id 'a'" in p for p in problems)
    assert any("has no id" in p for p in problems)
    assert any("unsupported type 'color'" in p for p in problems)
    assert any("no label" in p for p in problems)
    assert any("Select field 'd'" in p for p in problems)


def test_validate_schema_clean_and_non_list():
    assert validate_schema(TEMPLATE) == []
    assert validate_schema([]) == []
    assert validate_schema({"id": "x"}) == ["Form configuration must be a list of fields."]


def test_relabel_answers_with_non_map_column():
    assert relabel_answers(["a", "b"], TEMPLATE) == [(RAW_ANSWERS_LABEL, '["a", "b"]')]
    assert relabel_answers("not json", TEMPLATE) == [(RAW_ANSWERS_LABEL, "not json")]
    assert relabel_answers("[1, 2]", None) == [(RAW_ANSWERS_LABEL, "[1, 2]")]
