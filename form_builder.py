"""
Admin-side form builder.

The pure functions below each take a schema (list of field dicts) and return a
new list; the caller's list is never mutated. render_builder() draws them as a
Streamlit editor and reports every edit through on_change(new_fields).

Exports:
- OPTION_PRESETS
- new_field_id() -> str
- add_field, remove_field, update_field, move_field
- add_option, remove_option, apply_preset
- render_builder(fields, on_change, *, key, lang) -> None
- clear_builder_state(key) -> None
"""

from __future__ import annotations

import secrets
import time
from typing import Any, Callable, Dict, List, Optional

import streamlit as st

from app.ui import wide_button
from data_loader import t
from form_schema import FIELD_TYPES, FieldDefinition, field_label

IRAQ_GOVERNORATES: List[str] = [
    "بغداد", "البصرة", "نينوى", "أربيل", "النجف", "كربلاء", "ذي قار",
    "بابل", "ديالى", "الأنبار", "كركوك", "صلاح الدين", "واسط", "ميسان",
    "المثنى", "القادسية", "دهوك", "السليمانية",
]

# preset key -> option list; label comes from lang "preset.<key>"
OPTION_PRESETS: Dict[str, List[str]] = {
    "iraq_governorates": IRAQ_GOVERNORATES,
}


def new_field_id() -> str:
    return f"field_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def add_field(fields: List[FieldDefinition]) -> List[FieldDefinition]:
    existing = {f.get("id") for f in fields}
    fid = new_field_id()
    while fid in existing:
        fid = new_field_id()
    new_field: FieldDefinition = {
        "id": fid,
        "label_en": "",
        "label_ar": "",
        "type": "text",
        "required": True,
    }
    return [*fields, new_field]


def remove_field(fields: List[FieldDefinition], field_id: str) -> List[FieldDefinition]:
    return [f for f in fields if f.get("id") != field_id]


def update_field(fields: List[FieldDefinition], field_id: str, patch: Dict[str, Any]) -> List[FieldDefinition]:
    """Shallow-merge patch into the matching field. Unknown ids leave the schema as is."""
    return [{**f, **patch} if f.get("id") == field_id else f for f in fields]


def move_field(fields: List[FieldDefinition], index: int, new_index: int) -> List[FieldDefinition]:
    n = len(fields)
    if not (0 <= index < n and 0 <= new_index < n) or index == new_index:
        return list(fields)
    out = list(fields)
    item = out.pop(index)
    out.insert(new_index, item)
    return out


def _options_of(fields: List[FieldDefinition], field_id: str) -> Optional[List[str]]:
    for f in fields:
        if f.get("id") == field_id:
            return list(f.get("options") or [])
    return None


def add_option(fields: List[FieldDefinition], field_id: str, value: str) -> List[FieldDefinition]:
    val = (value or "").strip()
    opts = _options_of(fields, field_id)
    if not val or opts is None:
        return list(fields)
    return update_field(fields, field_id, {"options": [*opts, val]})


def remove_option(fields: List[FieldDefinition], field_id: str, index: int) -> List[FieldDefinition]:
    opts = _options_of(fields, field_id)
    if opts is None or not (0 <= index < len(opts)):
        return list(fields)
    del opts[index]
    return update_field(fields, field_id, {"options": opts})


def apply_preset(fields: List[FieldDefinition], field_id: str, preset_key: str) -> List[FieldDefinition]:
    """Replace the option list wholesale with a named preset."""
    preset = OPTION_PRESETS.get(preset_key)
    if preset is None:
        raise KeyError(f"Unknown option preset '{preset_key}'")
    return update_field(fields, field_id, {"options": list(preset)})


# ---------------- Streamlit editor ----------------


def clear_builder_state(key: str = "builder") -> None:
    """Drop the editor's widget state so it redraws from the given fields."""
    for k in [k for k in st.session_state.keys() if str(k).startswith(f"{key}__")]:
        del st.session_state[k]


def _emit(on_change: Callable[[List[FieldDefinition]], None], new_fields: List[FieldDefinition]) -> None:
    on_change(new_fields)
    st.rerun()


def _render_options(field: FieldDefinition, fields: List[FieldDefinition], on_change, key: str, lang) -> None:
    fid = field["id"]
    head, preset_col = st.columns([3, 1])
    with head:
        st.caption(t(lang, "builder.options", "Dropdown options"))
    with preset_col:
        for preset_key in OPTION_PRESETS:
            if st.button(t(lang, f"preset.{preset_key}", preset_key), key=f"{key}__{fid}__preset_{preset_key}"):
                _emit(on_change, apply_preset(fields, fid, preset_key))

    opts = field.get("options") or []
    if opts:
        chip_cols = st.columns(min(len(opts), 6))
        for i, opt in enumerate(opts):
            with chip_cols[i % len(chip_cols)]:
                if st.button(f"✕ {opt}", key=f"{key}__{fid}__opt_{i}"):
                    _emit(on_change, remove_option(fields, fid, i))

    with st.form(f"{key}__{fid}__add_opt", clear_on_submit=True, border=False):
        c1, c2 = st.columns([3, 1])
        with c1:
            new_opt = st.text_input(
                t(lang, "builder.new_option", "New option"),
                placeholder=t(lang, "builder.new_option_hint", "Add a new option..."),
                label_visibility="collapsed",
            )
        with c2:
            added = st.form_submit_button(t(lang, "builder.add_option", "➕ Add"), use_container_width=True)
    if added and new_opt.strip():
        _emit(on_change, add_option(fields, fid, new_opt))


def render_builder(
    fields: List[FieldDefinition],
    on_change: Callable[[List[FieldDefinition]], None],
    *,
    key: str = "builder",
    lang: Optional[Dict[str, str]] = None,
) -> None:
    """
    Draw an editable list of fields. Each change is reported once through
    on_change(new_fields) followed by a rerun; persisting is the caller's job.
    """
    top_l, top_r = st.columns([3, 1])
    with top_l:
        st.markdown(f"**{t(lang, 'builder.title', 'Registration form fields')}**")
    with top_r:
        if wide_button(t(lang, "builder.add_field", "➕ Add field"), key=f"{key}__add"):
            _emit(on_change, add_field(fields))

    if not fields:
        st.info(t(lang, "builder.empty", "No custom fields. The default fields will be used."))
        return

    for idx, field in enumerate(fields):
        fid = field.get("id")
        if not fid:
            continue
        with st.container(border=True):
            cols = st.columns([0.4, 2.5, 2.5, 1.8, 0.9, 0.5, 0.5, 0.6])
            with cols[0]:
                st.markdown(f"**{idx + 1}**")
            with cols[1]:
                label_ar = st.text_input(
                    t(lang, "builder.label_ar", "Label (Arabic)"),
                    value=field.get("label_ar", ""),
                    key=f"{key}__{fid}__label_ar",
                )
            with cols[2]:
                label_en = st.text_input(
                    t(lang, "builder.label_en", "Label (English)"),
                    value=field.get("label_en", ""),
                    key=f"{key}__{fid}__label_en",
                )
            with cols[3]:
                current_type = field.get("type", "text")
                ftype = st.selectbox(
                    t(lang, "builder.type", "Type"),
                    options=list(FIELD_TYPES),
                    index=FIELD_TYPES.index(current_type) if current_type in FIELD_TYPES else 0,
                    format_func=lambda k: t(lang, f"type.{k}", k),
                    key=f"{key}__{fid}__type",
                )
            with cols[4]:
                required = st.checkbox(
                    t(lang, "builder.required", "Required"),
                    value=bool(field.get("required")),
                    key=f"{key}__{fid}__required",
                )
            with cols[5]:
                if st.button("↑", key=f"{key}__{fid}__up", disabled=idx == 0):
                    _emit(on_change, move_field(fields, idx, idx - 1))
            with cols[6]:
                if st.button("↓", key=f"{key}__{fid}__down", disabled=idx == len(fields) - 1):
                    _emit(on_change, move_field(fields, idx, idx + 1))
            with cols[7]:
                if st.button("🗑️", key=f"{key}__{fid}__delete", help=field_label(field, "en")):
                    _emit(on_change, remove_field(fields, fid))

            patch: Dict[str, Any] = {}
            if label_ar != field.get("label_ar", ""):
                patch["label_ar"] = label_ar
            if label_en != field.get("label_en", ""):
                patch["label_en"] = label_en
            # An unsupported stored type shows as the first option; leave it until the admin picks one
            if ftype != (current_type if current_type in FIELD_TYPES else FIELD_TYPES[0]):
                patch["type"] = ftype
            if required != bool(field.get("required")):
                patch["required"] = required
            if patch:
                _emit(on_change, update_field(fields, fid, patch))

            if field.get("type") == "select":
                _render_options(field, fields, on_change, key, lang)
