import logging
import os
from typing import Any, Dict, List, Optional

import streamlit as st

from app.ui import apply_direction, current_user
from data_loader import (
    SUPPORTED_LOCALES,
    entity_title,
    find_template_event,
    get_data_version,
    get_store,
    load_entities,
    load_lang,
    read_settings,
    t,
)
from form_renderer import get_session, render_form
from form_schema import (
    enabled_sections,
    registration_fields,
    schema_for_target,
    section_fields,
)
from submissions import SubmissionContext, make_submit_handler

# ---------------- App Config ----------------

logging.basicConfig(
    level=os.getenv("JAZ_LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

st.set_page_config(page_title="JAZ", page_icon="📝", layout="centered")

version = get_data_version()
settings = read_settings()

default_locale = settings["site"].get("default_locale", "ar")
locale = st.sidebar.radio(
    "اللغة / Language",
    options=list(SUPPORTED_LOCALES),
    index=list(SUPPORTED_LOCALES).index(default_locale) if default_locale in SUPPORTED_LOCALES else 0,
    format_func=lambda k: "العربية" if k == "ar" else "English",
    key="locale",
)
lang = load_lang(locale, version)
apply_direction(locale)

st.title(f"📝 {t(lang, 'page.title')}")

user = current_user()
if user:
    st.sidebar.caption(f"{t(lang, 'page.signed_in_as')} {user.get('email') or user['id']}")

FORM_KINDS = ["event", "conference", "sector", "partner_category"]

kind = st.selectbox(
    t(lang, "page.kind"),
    options=FORM_KINDS,
    format_func=lambda k: t(lang, f"kind.{k}", k),
    key="form_kind",
)

# ---------------- Target + schema resolution ----------------

events = load_entities("event", version)
template_event = find_template_event(events, settings["forms"].get("template_event_title", ""))

target: Optional[Dict[str, Any]] = None
section_slug: Optional[str] = None
fields: List[Dict[str, Any]] = []
used_template = False

if kind in ("event", "conference"):
    if events:
        target = st.selectbox(
            t(lang, "page.target"),
            options=events,
            format_func=lambda e: entity_title("event", e, locale),
            key=f"target_{kind}",
        )
    if target is not None and kind == "event":
        fields = schema_for_target("event", target, template_event)
        used_template = bool(fields) and not registration_fields(target)
    elif target is not None:
        # Only tabs that end up with a form (own or borrowed) are offered
        with_forms = [
            s for s in enabled_sections(target)
            if schema_for_target("conference", target, template_event, s)
        ]
        if with_forms:
            section_slug = st.radio(
                t(lang, "page.section"),
                options=with_forms,
                format_func=lambda s: t(lang, f"section.{s}", s),
                horizontal=True,
                key=f"section_{target.get('id')}",
            )
            fields = schema_for_target("conference", target, template_event, section_slug)
            used_template = bool(fields) and not section_fields(target, section_slug)
else:
    entities = load_entities(kind, version)
    if kind == "sector":
        entities = [e for e in entities if e.get("is_active", True)]
    if entities:
        target = st.selectbox(
            t(lang, "page.target"),
            options=entities,
            format_func=lambda e: entity_title(kind, e, locale),
            key=f"target_{kind}",
        )
        fields = schema_for_target(kind, target)

if target is None:
    st.info(t(lang, "page.no_targets"))
    st.stop()

st.subheader(entity_title(kind, target, locale))
if used_template:
    st.caption(t(lang, "page.template_notice"))

# ---------------- Form ----------------

context = SubmissionContext(
    target_kind=kind,
    target_id=target.get("id"),
    user_id=user["id"] if user else None,
    section_slug=section_slug,
)
form_key = f"form_{kind}_{target.get('id')}_{section_slug or 'main'}"
session = get_session(
    form_key,
    fields,
    make_submit_handler(get_store(), context, lang),
    submit_label=t(lang, f"form.submit.{kind}", t(lang, "form.submit")),
    success_message=t(lang, f"form.success.{kind}", t(lang, "form.success")),
)
render_form(session, form_key, lang=lang, locale=locale)
