# File: pages/99_Admin.py
"""
Admin Console for the JAZ forms (Streamlit)

Features
- Form Builder per parent entity (event registration, conference sections,
  sectors, partner categories)
- Submissions review (labels resolved through the form schema, status changes,
  CSV export)
- Settings (template event, default language)
- Maintenance (validate every stored form, bump the data version)

Data backend: JSON tables under ./data/ (see storage.JsonTableStore)
"""
from __future__ import annotations

import copy
import logging
import os
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from app.ui import wide_button
from data_loader import (
    ENTITY_TABLES,
    SUPPORTED_LOCALES,
    bump_data_version,
    entity_title,
    find_template_event,
    get_admin_password,
    get_data_version,
    get_store,
    read_entities,
    load_lang,
    read_settings,
    save_entity_fields,
    save_settings,
    t,
)
from form_builder import clear_builder_state, render_builder
from form_renderer import FormSession, render_form
from form_schema import (
    CONFERENCE_FORM_SECTIONS,
    config_fields,
    registration_fields,
    relabel_answers,
    schema_for_target,
    section_fields,
    validate_schema,
)
from submissions import STATUSES, TARGETS, answers_of, list_submissions, set_status

logging.basicConfig(
    level=os.getenv("JAZ_LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("admin")

st.set_page_config(page_title="JAZ Admin", layout="wide")

PASSWORD = get_admin_password()


def require_admin_password():
    if st.session_state.get("admin_ok"):
        if st.sidebar.button("Log out"):
            st.session_state.pop("admin_ok", None)
            st.rerun()
        return
    st.title("Admin Sign In")
    pwd = st.text_input("Password", type="password", key="admin_pwd")
    if st.button("Sign in", type="primary"):
        if pwd == PASSWORD:
            st.session_state["admin_ok"] = True
            st.rerun()
        else:
            st.error("Invalid password")
    st.stop()


require_admin_password()

# -----------------------------
# Session boot
# -----------------------------
version = get_data_version()
settings = read_settings()
locale = settings["site"].get("default_locale", "ar")
lang = load_lang(locale, version)
store = get_store()

# Admin edits must see the files as they are now, not a cached copy
events = read_entities("event")
sectors = read_entities("sector")
partner_categories = read_entities("partner_category")
template_event = find_template_event(events, settings["forms"].get("template_event_title", ""))

ENTITIES: Dict[str, List[Dict[str, Any]]] = {
    "event": events,
    "conference": events,
    "sector": sectors,
    "partner_category": partner_categories,
}

KIND_LABELS = {
    "event": "Event registration",
    "conference": "Conference section",
    "sector": "Sector partnership",
    "partner_category": "Partner category",
}

st.title("🛠️ Admin Console")
st.caption("Manage registration forms and review what visitors submitted.")

col_a, col_b, col_c, col_d = st.columns(4)
with col_a:
    st.metric("Events", len(events))
with col_b:
    st.metric("Sectors", len(sectors))
with col_c:
    st.metric("Partner categories", len(partner_categories))
with col_d:
    st.metric("Pending submissions", sum(
        1 for kind in TARGETS for r in list_submissions(store, kind) if r.get("status") == "pending"
    ))


def _entity_kind(kind: str) -> str:
    # Conference sections live on events
    return "event" if kind == "conference" else kind


def _by_id(rows: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    return {r.get("id"): r for r in rows}


TAB = st.tabs([
    "Forms",
    "Submissions",
    "Settings",
    "Maintenance",
])

# -----------------------------
# Forms Tab
# -----------------------------
with TAB[0]:
    st.subheader("Form Builder")
    st.write("Fields are stored on the event, sector or partner category they belong to. "
             "Field ids never change once created; rename the label instead.")

    c1, c2, c3 = st.columns(3)
    with c1:
        kind = st.selectbox("Form", options=list(KIND_LABELS), format_func=KIND_LABELS.get, key="fb_kind")
    entities = ENTITIES[kind]
    with c2:
        entity = st.selectbox(
            "Owner",
            options=entities,
            format_func=lambda e: entity_title(_entity_kind(kind), e, locale),
            key=f"fb_entity_{kind}",
        ) if entities else None
    section_slug: Optional[str] = None
    if kind == "conference":
        with c3:
            section_slug = st.selectbox(
                "Section", options=list(CONFERENCE_FORM_SECTIONS),
                format_func=lambda s: t(lang, f"section.{s}", s), key="fb_section",
            )

    if entity is None:
        st.info(f"Add entries to data/{ENTITY_TABLES[_entity_kind(kind)]}.json first.")
    else:
        if kind == "event":
            stored = registration_fields(entity)
        elif kind == "conference":
            stored = section_fields(entity, section_slug)
        else:
            stored = config_fields(entity)

        draft_key = f"_draft__{kind}__{entity.get('id')}__{section_slug or ''}"
        if draft_key not in st.session_state:
            st.session_state[draft_key] = copy.deepcopy(stored)
        draft: List[Dict[str, Any]] = st.session_state[draft_key]

        if kind in ("event", "conference") and not stored and template_event is not None \
                and template_event.get("id") != entity.get("id"):
            st.caption(f"No own fields: visitors see the form of "
                       f"'{entity_title('event', template_event, locale)}'.")

        def _store_draft(new_fields: List[Dict[str, Any]]) -> None:
            st.session_state[draft_key] = new_fields

        builder_key = f"fb__{kind}__{entity.get('id')}__{section_slug or ''}"
        render_builder(draft, _store_draft, key=builder_key, lang=lang)

        dirty = draft != stored
        if dirty:
            st.warning("Unsaved changes.")
        b1, b2, b3 = st.columns(3)
        with b1:
            if wide_button("💾 Save Form", type="primary", disabled=not dirty):
                result = save_entity_fields(store, _entity_kind(kind), entity.get("id"), draft, section_slug)
                if result.error:
                    st.error(f"Could not save: {result.error}")
                else:
                    bump_data_version()
                    st.session_state.pop(draft_key, None)
                    clear_builder_state(builder_key)
                    st.success("Saved.")
                    st.rerun()
        with b2:
            if wide_button("🧪 Validate Form"):
                problems = validate_schema(draft)
                if problems:
                    for p in problems:
                        st.error(p)
                else:
                    st.success("Validation passed.")
        with b3:
            if wide_button("↩️ Discard changes", disabled=not dirty):
                st.session_state.pop(draft_key, None)
                clear_builder_state(builder_key)
                st.rerun()

        with st.expander("Preview (nothing is stored)"):
            preview_key = f"preview__{kind}__{entity.get('id')}__{section_slug or ''}"
            preview = st.session_state.get(f"_preview__{preview_key}")
            if preview is None or preview.fields != draft:
                preview = FormSession(draft, lambda answers: None)
                st.session_state[f"_preview__{preview_key}"] = preview
            render_form(preview, preview_key, lang=lang, locale=locale)

# -----------------------------
# Submissions Tab
# -----------------------------
with TAB[1]:
    st.subheader("Submissions")

    c1, c2 = st.columns(2)
    with c1:
        sub_kind = st.selectbox("Form", options=list(KIND_LABELS), format_func=KIND_LABELS.get, key="sub_kind")
    with c2:
        status_filter = st.multiselect(
            "Status", options=list(STATUSES), default=list(STATUSES),
            format_func=lambda s: t(lang, f"status.{s}", s), key="sub_status",
        )

    owners = _by_id(ENTITIES[sub_kind])
    target = TARGETS[sub_kind]
    records = [r for r in list_submissions(store, sub_kind) if r.get("status") in status_filter]

    def _schema_for(record: Dict[str, Any]) -> List[Dict[str, Any]]:
        owner = owners.get(record.get(target.id_column))
        return schema_for_target(sub_kind, owner, template_event, record.get("section_slug"))

    if not records:
        st.info("No submissions yet.")
    else:
        rows = []
        for r in records:
            owner = owners.get(r.get(target.id_column))
            pairs = relabel_answers(answers_of(sub_kind, r), _schema_for(r), locale)
            rows.append({
                "id": r.get("id"),
                "Owner": entity_title(_entity_kind(sub_kind), owner, locale) if owner else "(deleted)",
                "Section": r.get("section_slug") or "",
                "First answer": pairs[0][1] if pairs else "",
                "Submitter": r.get("user_id") or "guest",
                "Status": t(lang, f"status.{r.get('status')}", r.get("status") or ""),
                "Created": r.get("created_at", ""),
            })
        df = pd.DataFrame(rows)
        st.dataframe(df, hide_index=True, use_container_width=True)

        # Export: one column per answer label
        export_rows = []
        for r, row in zip(records, rows):
            flat = {k: v for k, v in row.items() if k != "First answer"}
            flat["Status"] = r.get("status")
            flat.update(dict(relabel_answers(answers_of(sub_kind, r), _schema_for(r), locale)))
            export_rows.append(flat)
        st.download_button(
            "⬇️ Download CSV",
            data=pd.DataFrame(export_rows).to_csv(index=False).encode("utf-8-sig"),
            file_name=f"{target.table}.csv",
            mime="text/csv",
        )

        st.divider()
        sel_id = st.selectbox("Open submission", options=[r.get("id") for r in records], key="sub_sel")
        record = next(r for r in records if r.get("id") == sel_id)
        for label, value in relabel_answers(answers_of(sub_kind, record), _schema_for(record), locale):
            st.markdown(f"**{label}**")
            st.text(value)

        s1, s2 = st.columns([2, 1])
        with s1:
            current = record.get("status")
            new_status = st.selectbox(
                "Status", options=list(STATUSES),
                index=list(STATUSES).index(current) if current in STATUSES else 0,
                format_func=lambda s: t(lang, f"status.{s}", s), key=f"sub_status_{sel_id}",
            )
        with s2:
            st.write("")
            if wide_button("💾 Save status", disabled=new_status == current):
                try:
                    set_status(store, sub_kind, sel_id, new_status)
                except ValueError as e:
                    logger.error("Status update for %s failed: %s", sel_id, e)
                    st.error(f"Could not update status: {e}")
                else:
                    st.success(f"Updated {sel_id} to {new_status}.")
                    st.rerun()

# -----------------------------
# Settings Tab
# -----------------------------
with TAB[2]:
    st.subheader("Settings")
    with st.form("settings_form"):
        template_title = st.text_input(
            "Template event title (Arabic, partial match)",
            value=settings["forms"].get("template_event_title", ""),
            help="Events and conference sections without their own fields use this event's fields.",
        )
        default_loc = st.selectbox(
            "Default language", options=list(SUPPORTED_LOCALES),
            index=list(SUPPORTED_LOCALES).index(locale) if locale in SUPPORTED_LOCALES else 0,
        )
        saved = st.form_submit_button("💾 Save Settings", type="primary")
    if saved:
        settings["forms"]["template_event_title"] = template_title.strip()
        settings["site"]["default_locale"] = default_loc
        save_settings(settings)
        bump_data_version()
        st.success("Settings saved.")

    found = find_template_event(events, template_title.strip())
    if found:
        st.caption(f"Template event: {entity_title('event', found, locale)} ({found.get('date', '')})")
    else:
        st.caption("No event matches the template title.")

# -----------------------------
# Maintenance Tab
# -----------------------------
with TAB[3]:
    st.subheader("Maintenance")
    if wide_button("🧪 Validate all forms"):
        issues = 0
        for ev in events:
            for problem in validate_schema(registration_fields(ev)):
                st.error(f"{entity_title('event', ev, locale)} / registration: {problem}")
                issues += 1
            for slug in CONFERENCE_FORM_SECTIONS:
                for problem in validate_schema(section_fields(ev, slug)):
                    st.error(f"{entity_title('event', ev, locale)} / {slug}: {problem}")
                    issues += 1
        for ent_kind, rows in (("sector", sectors), ("partner_category", partner_categories)):
            for ent in rows:
                for problem in validate_schema(config_fields(ent)):
                    st.error(f"{entity_title(ent_kind, ent, locale)}: {problem}")
                    issues += 1
        if issues == 0:
            st.success("All forms are valid.")
    if wide_button("🔄 Reload data (bump version)"):
        cur = bump_data_version()
        st.success(f"Data version is now {cur['v']}.")
