"""
Form rendering for schema-driven forms (Streamlit).

FormSession holds everything one in-progress form owns: the answer map, the
in-flight flag and the success / error outcome. render_form() draws a session
with Streamlit widgets; the session itself has no Streamlit dependency.

States: editing -> submitting -> success | editing (with error).
success -> editing only through reset().

Exports:
- FormSession(fields, on_submit, *, submit_label=None, success_message=None)
- get_session(key, fields, on_submit, **kwargs) -> FormSession
- render_form(session, key, *, lang=None, locale="ar") -> None
"""

from __future__ import annotations

import datetime
import logging
from typing import Any, Callable, Dict, List, Optional

import streamlit as st

from data_loader import t
from form_schema import FIELD_TYPES, FieldDefinition, field_label, missing_required
from submissions import SubmissionError

logger = logging.getLogger(__name__)

# Widest range offered by the date picker; Streamlit defaults to today +- 10 years
DATE_MIN = datetime.date(1900, 1, 1)
DATE_MAX = datetime.date(2100, 12, 31)


class FormSession:
    def __init__(
        self,
        fields: List[FieldDefinition],
        on_submit: Callable[[Dict[str, Any]], None],
        *,
        submit_label: Optional[str] = None,
        success_message: Optional[str] = None,
    ):
        self.fields: List[FieldDefinition] = list(fields or [])
        self.on_submit = on_submit
        self.submit_label = submit_label
        self.success_message = success_message
        self.answers: Dict[str, Any] = {}
        self.is_loading = False
        self.success = False
        self.error: Optional[str] = None
        self.missing: List[str] = []

    @property
    def state(self) -> str:
        if self.is_loading:
            return "submitting"
        if self.success:
            return "success"
        return "editing"

    @property
    def editable(self) -> bool:
        return self.state == "editing"

    def set_answer(self, field_id: str, value: Any) -> bool:
        if not self.editable:
            return False
        self.answers[field_id] = value
        return True

    def submit(self) -> bool:
        """
        Run one submission. Returns True only when the answers were stored.
        Re-entrant calls while a submission is in flight are ignored.
        """
        if self.is_loading:
            logger.debug("Ignoring submit: a submission is already in flight")
            return False
        if self.success:
            return False

        self.error = None
        self.missing = missing_required(self.fields, self.answers)
        if self.missing:
            return False

        self.is_loading = True
        try:
            self.on_submit(self.answers)
        except SubmissionError as e:
            self.error = e.user_message
            return False
        finally:
            self.is_loading = False

        self.success = True
        return True

    def reset(self) -> None:
        self.answers = {}
        self.success = False
        self.error = None
        self.missing = []


def get_session(
    key: str,
    fields: List[FieldDefinition],
    on_submit: Callable[[Dict[str, Any]], None],
    **kwargs: Any,
) -> FormSession:
    """One FormSession per form key, kept across reruns until its schema changes."""
    state_key = f"_form_session__{key}"
    session: Optional[FormSession] = st.session_state.get(state_key)
    if session is None or session.fields != list(fields or []):
        session = FormSession(fields, on_submit, **kwargs)
        st.session_state[state_key] = session
    else:
        # Labels follow the current language even when the session is reused
        session.on_submit = on_submit
        session.submit_label = kwargs.get("submit_label")
        session.success_message = kwargs.get("success_message")
    return session


# ---------------- Widgets ----------------
# Each returns the raw value as a string ("" when empty).


def _text(label: str, value: str, field: FieldDefinition, wkey: str, disabled: bool, lang, locale) -> str:
    return st.text_input(label, value=value, key=wkey, disabled=disabled,
                         placeholder=_enter_hint(field, lang, locale))


def _email(label: str, value: str, field: FieldDefinition, wkey: str, disabled: bool, lang, locale) -> str:
    return st.text_input(label, value=value, key=wkey, disabled=disabled,
                         placeholder="name@example.com")


def _textarea(label: str, value: str, field: FieldDefinition, wkey: str, disabled: bool, lang, locale) -> str:
    return st.text_area(label, value=value, key=wkey, disabled=disabled,
                        placeholder=_enter_hint(field, lang, locale), height=100)


def _number(label: str, value: str, field: FieldDefinition, wkey: str, disabled: bool, lang, locale) -> str:
    try:
        current = float(value) if value != "" else None
    except ValueError:
        current = None
    val = st.number_input(label, value=current, key=wkey, disabled=disabled,
                          placeholder=_enter_hint(field, lang, locale))
    if val is None:
        return ""
    return str(int(val)) if float(val).is_integer() else str(val)


def _date(label: str, value: str, field: FieldDefinition, wkey: str, disabled: bool, lang, locale) -> str:
    try:
        current = datetime.date.fromisoformat(value) if value else None
    except ValueError:
        current = None
    val = st.date_input(label, value=current, min_value=DATE_MIN, max_value=DATE_MAX,
                        key=wkey, disabled=disabled)
    return val.isoformat() if isinstance(val, datetime.date) else ""


def _select(label: str, value: str, field: FieldDefinition, wkey: str, disabled: bool, lang, locale) -> str:
    options = [""] + list(field.get("options") or [])
    placeholder = t(lang, "form.choose", "Choose") + f" {field_label(field, locale)}..."
    val = st.selectbox(
        label,
        options=options,
        index=options.index(value) if value in options else 0,
        format_func=lambda o: placeholder if o == "" else o,
        key=wkey,
        disabled=disabled,
    )
    return val or ""


_WIDGETS: Dict[str, Callable[..., str]] = {
    "text": _text,
    "textarea": _textarea,
    "number": _number,
    "email": _email,
    "date": _date,
    "select": _select,
}
if set(_WIDGETS) != set(FIELD_TYPES):
    raise RuntimeError(f"Widget table does not match FIELD_TYPES: {sorted(_WIDGETS)} vs {sorted(FIELD_TYPES)}")


def _enter_hint(field: FieldDefinition, lang, locale: str) -> str:
    return t(lang, "form.enter", "Enter") + f" {field_label(field, locale)}..."


def _widget_key(key: str, field_id: str) -> str:
    return f"{key}__{field_id}"


def _clear_widget_state(key: str, fields: List[FieldDefinition]) -> None:
    for fld in fields:
        st.session_state.pop(_widget_key(key, fld.get("id", "")), None)


def render_form(
    session: FormSession,
    key: str,
    *,
    lang: Optional[Dict[str, str]] = None,
    locale: str = "ar",
) -> None:
    """
    Draw the session's fields inside an st.form and handle the submit button.

    - Required fields get a '*' and, after a blocked submit, a red caption
    - Inputs are disabled while a submission is in flight
    - On success, shows the success message and a button to send another response
    """
    if session.success:
        st.success(session.success_message or t(lang, "form.success", "Submitted successfully"))
        if st.button(t(lang, "form.another", "Submit another response"), key=f"{key}__another"):
            session.reset()
            _clear_widget_state(key, session.fields)
            st.rerun()
        return

    if not session.fields:
        st.info(t(lang, "form.no_fields", "No fields are available for this form."))
        return

    disabled = session.is_loading
    missing = set(session.missing)
    collected: Dict[str, str] = {}

    with st.form(key):
        for field in session.fields:
            fid = field.get("id")
            if not fid:
                continue
            label = field_label(field, locale)
            if field.get("required"):
                label = f"{label} *"
            ftype = field.get("type", "text")
            widget = _WIDGETS.get(ftype)
            if widget is None:
                logger.warning("Field %s has unsupported type %r; drawing it as text", fid, ftype)
                widget = _text
            current = session.answers.get(fid, "")
            collected[fid] = widget(label, current if isinstance(current, str) else str(current),
                                    field, _widget_key(key, fid), disabled, lang, locale)
            if fid in missing:
                st.caption(f":red[{t(lang, 'form.required', 'This field is required.')}]")

        submitted = st.form_submit_button(
            session.submit_label or t(lang, "form.submit", "Submit"),
            type="primary",
            use_container_width=True,
            disabled=disabled,
        )

    if session.error:
        st.error(session.error)

    if submitted:
        for fid, value in collected.items():
            # Only keys the user actually filled, or already had, enter the answer map
            if value != "" or fid in session.answers:
                session.set_answer(fid, value)
        with st.spinner(t(lang, "form.sending", "Sending...")):
            session.submit()
        st.rerun()
