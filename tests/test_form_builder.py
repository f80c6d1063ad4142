import copy

import pytest

from form_builder import (
    IRAQ_GOVERNORATES,
    OPTION_PRESETS,
    add_field,
    add_option,
    apply_preset,
    move_field,
    new_field_id,
    remove_field,
    remove_option,
    update_field,
)


def _schema():
    return [
        {"id": "a", "label_ar": "أ", "label_en": "A", "type": "text", "required": True},
        {"id": "b", "label_ar": "ب", "label_en": "B", "type": "select", "required": False, "options": ["A", "B"]},
        {"id": "c", "label_ar": "ج", "label_en": "C", "type": "date", "required": False},
    ]


def test_add_field_on_empty_schema():
    result = add_field([])
    assert len(result) == 1
    field = result[0]
    assert field["type"] == "text"
    assert field["required"] is True
    assert field["label_ar"] == "" and field["label_en"] == ""
    assert field["id"]


def test_add_field_appends_and_keeps_ids_unique():
    schema = _schema()
    before = copy.deepcopy(schema)
    result = add_field(add_field(schema))
    assert schema == before
    assert [f["id"] for f in result[:3]] == ["a", "b", "c"]
    ids = [f["id"] for f in result]
    assert len(set(ids)) == len(ids)


def test_new_field_id_is_unique_across_calls():
    ids = {new_field_id() for _ in range(200)}
    assert len(ids) == 200
    assert all(i.startswith("field_") for i in ids)


def test_remove_field():
    result = remove_field(_schema(), "b")
    assert [f["id"] for f in result] == ["a", "c"]
    assert remove_field(_schema(), "missing") == _schema()


def test_update_field_merges_patch():
    result = update_field(_schema(), "a", {"label_en": "Full name", "required": False})
    assert result[0] == {"id": "a", "label_ar": "أ", "label_en": "Full name", "type": "text", "required": False}
    assert result[1:] == _schema()[1:]


def test_update_field_empty_patch_is_identity():
    assert update_field(_schema(), "b", {}) == _schema()


def test_update_field_unknown_id_is_silent_noop():
    assert update_field(_schema(), "gone", {"label_ar": "x"}) == _schema()


def test_update_field_does_not_mutate_input():
    schema = _schema()
    update_field(schema, "a", {"label_ar": "تغيير"})
    assert schema == _schema()


def test_move_field_is_a_pure_splice():
    result = move_field(_schema(), 2, 0)
    assert [f["id"] for f in result] == ["c", "a", "b"]
    assert sorted(result, key=lambda f: f["id"]) == _schema()


@pytest.mark.parametrize("index,new_index", [(0, 0), (-1, 1), (0, 3), (5, 0)])
def test_move_field_out_of_range_is_noop(index, new_index):
    assert move_field(_schema(), index, new_index) == _schema()


def test_add_option_trims_and_ignores_empty():
    result = add_option(_schema(), "b", "  C  ")
    assert result[1]["options"] == ["A", "B", "C"]
    assert add_option(_schema(), "b", "   ") == _schema()
    assert add_option(_schema(), "b", "") == _schema()


def test_add_option_to_field_without_options():
    result = add_option(_schema(), "a", "X")
    assert result[0]["options"] == ["X"]


def test_add_option_unknown_field_is_noop():
    assert add_option(_schema(), "zzz", "X") == _schema()


def test_remove_option_by_index():
    result = remove_option(_schema(), "b", 0)
    assert result[1]["options"] == ["B"]
    assert remove_option(_schema(), "b", 9) == _schema()


def test_preset_replaces_options():
    fields = [{"id": "gov", "label_ar": "", "label_en": "", "type": "select", "required": True,
               "options": ["A", "B"]}]
    OPTION_PRESETS["_test_preset"] = ["X", "Y", "Z"]
    try:
        result = apply_preset(fields, "gov", "_test_preset")
    finally:
        del OPTION_PRESETS["_test_preset"]
    assert result[0]["options"] == ["X", "Y", "Z"]
    assert fields[0]["options"] == ["A", "B"]


def test_iraq_governorates_preset():
    result = apply_preset(_schema(), "b", "iraq_governorates")
    assert result[1]["options"] == IRAQ_GOVERNORATES
    assert len(result[1]["options"]) == 18
    # The preset list itself is never shared with the schema
    assert result[1]["options"] is not IRAQ_GOVERNORATES


def test_unknown_preset_raises():
    with pytest.raises(KeyError):
        apply_preset(_schema(), "b", "nope")
