from __future__ import annotations

import copy
import json
import logging
import os
import time
from typing import Any, Dict, List, Optional

import streamlit as st

from storage import InsertResult, JsonTableStore, _write_json

logger = logging.getLogger(__name__)

# Parent entities that carry a form schema, keyed by the kind used across the app.
ENTITY_TABLES: Dict[str, str] = {
    "event": "events",
    "sector": "sectors",
    "partner_category": "partner_categories",
}

SUPPORTED_LOCALES = ("ar", "en")

DEFAULT_SETTINGS: Dict[str, Any] = {
    "site": {
        "name": "JAZ",
        "default_locale": "ar",
    },
    "forms": {
        # Events without their own registration fields borrow the latest event whose
        # Arabic title contains this text.
        "template_event_title": "تنفس البصرة 2026",
    },
}


def data_dir() -> str:
    return os.getenv("JAZ_DATA_DIR") or os.path.join(os.getcwd(), "data")


def lang_dir() -> str:
    return os.getenv("JAZ_LANG_DIR") or os.path.join(os.getcwd(), "lang")


def get_store() -> JsonTableStore:
    return JsonTableStore(data_dir())


def _read_json_safe(path: str, default=None):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default if default is not None else {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON in %s: %s", path, e)
        st.warning(f"{os.path.basename(path)} had invalid JSON. Loading defaults.")
        return default if default is not None else {}


def _read_json(path: str) -> Any:
    """Read a required JSON file with a helpful error on failure."""
    if not os.path.exists(path):
        st.error(f"Missing file: {path}. Please add it to continue.")
        raise FileNotFoundError(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except Exception as e:
        st.error(f"Failed to parse JSON file: {path}\nError: {e}")
        raise


def _version_fp() -> str:
    return os.path.join(data_dir(), "version.json")


def get_data_version() -> str:
    """
    Returns a monotonically increasing version string used to bust Streamlit caches.
    If the version file doesn't exist, returns '0-0'.
    """
    v = _read_json_safe(_version_fp(), {"v": 0, "ts": 0})
    return str(v.get("v", 0)) + "-" + str(v.get("ts", 0))


def bump_data_version() -> Dict[str, int]:
    """Increment data/version.json so every version-keyed loader reloads."""
    cur = _read_json_safe(_version_fp(), {"v": 0, "ts": 0})
    cur["v"] = int(cur.get("v", 0)) + 1
    cur["ts"] = int(time.time())
    _write_json(_version_fp(), cur)
    st.cache_data.clear()
    return cur


def _deep_merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (over or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def read_settings() -> Dict[str, Any]:
    raw = _read_json_safe(os.path.join(data_dir(), "settings.json"), {})
    if not isinstance(raw, dict):
        st.error("data/settings.json is not a JSON object.")
        raw = {}
    return _deep_merge(copy.deepcopy(DEFAULT_SETTINGS), raw)


def save_settings(settings: Dict[str, Any]) -> None:
    _write_json(os.path.join(data_dir(), "settings.json"), settings)


def read_entities(kind: str) -> List[Dict[str, Any]]:
    """
    Load the parent entities of one kind (events, sectors, partner categories).
    Tolerates a missing file (no entities yet) and a malformed one (shown as an error).
    """
    table = ENTITY_TABLES[kind]
    rows = _read_json_safe(os.path.join(data_dir(), f"{table}.json"), [])
    if not isinstance(rows, list):
        st.error(f"data/{table}.json must be a list, got {type(rows).__name__}.")
        return []
    return [r for r in rows if isinstance(r, dict)]


@st.cache_data(show_spinner=False)
def load_entities(kind: str, version: str) -> List[Dict[str, Any]]:
    return read_entities(kind)


def entity_title(kind: str, entity: Optional[Dict[str, Any]], locale: str = "ar") -> str:
    e = entity or {}
    if kind == "sector":
        ar, en = e.get("name_ar"), e.get("name")
    else:
        ar, en = e.get("title_ar"), e.get("title_en") or e.get("title")
    if locale == "en":
        return en or ar or str(e.get("id", ""))
    return ar or en or str(e.get("id", ""))


def save_entity_fields(
    store: JsonTableStore,
    kind: str,
    entity_id: str,
    fields: List[Dict[str, Any]],
    section_slug: Optional[str] = None,
) -> InsertResult:
    """
    Store a schema on its parent entity, as given (no normalization).
    With section_slug the schema goes to conference_config[section_slug].form_fields.
    """
    table = ENTITY_TABLES[kind]
    if section_slug:
        entity = store.get(table, entity_id) or {}
        cc = dict(entity.get("conference_config") or {})
        section = dict(cc.get(section_slug) or {})
        section["form_fields"] = fields
        cc[section_slug] = section
        patch: Dict[str, Any] = {"conference_config": cc}
    else:
        patch = {"registration_config": fields}
    result = store.update(table, entity_id, patch)
    if result.error:
        logger.error("Saving form for %s %s failed: %s", kind, entity_id, result.error)
    return result


def find_template_event(events: List[Dict[str, Any]], title: str) -> Optional[Dict[str, Any]]:
    """Latest-dated event whose Arabic title contains `title`."""
    if not title:
        return None
    matches = [e for e in events if title in (e.get("title_ar") or "")]
    if not matches:
        return None
    return max(matches, key=lambda e: str(e.get("date") or ""))


def read_lang(locale: str = "ar") -> Dict[str, str]:
    if locale not in SUPPORTED_LOCALES:
        logger.warning("Unsupported locale %r, using 'ar'", locale)
        locale = "ar"
    return _read_json(os.path.join(lang_dir(), f"{locale}.json"))


@st.cache_data(show_spinner=False)
def load_lang(locale: str = "ar", version: str = "") -> Dict[str, str]:
    return read_lang(locale)


def t(lang: Optional[Dict[str, str]], key: str, default: Optional[str] = None) -> str:
    if lang and key in lang:
        return lang[key]
    return default if default is not None else key


def get_admin_password(default: str = "jaz-admin") -> str:
    # Prefer env var (never throws)
    pwd = os.getenv("ADMIN_PASSWORD")
    if pwd:
        return pwd
    # Try Streamlit secrets, but guard to avoid StreamlitSecretNotFoundError
    try:
        return st.secrets["ADMIN_PASSWORD"]
    except Exception:
        return default
