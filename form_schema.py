"""
Form schema helpers shared by the public forms and the admin console.

A schema is a plain list of field dicts, stored as-is on its parent entity:
  {id, label_ar, label_en, type, required, options?}

Exports:
- FIELD_TYPES, FieldDefinition
- resolve_schema(primary, fallback) -> list[FieldDefinition]
- registration_fields(event), section_fields(event, slug), config_fields(entity)
- enabled_sections(event) -> list[str]
- schema_for_target(kind, entity, template_event=None, section_slug=None)
- field_label(field, locale) -> str
- is_unanswered(value), missing_required(fields, answers) -> list[str]
- relabel_answers(answers, fields, locale) -> list[(label, value)]
- validate_schema(fields) -> list[str]
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple, TypedDict

# Closed set; form_renderer's widget table must cover exactly these.
FIELD_TYPES: Tuple[str, ...] = ("text", "textarea", "number", "email", "date", "select")

# conference_config tabs that can carry a form
CONFERENCE_FORM_SECTIONS: Tuple[str, ...] = (
    "home", "theme", "sponsors", "exhibitors", "partners", "registration",
)

# Row label used when a stored answer column is not a JSON object
RAW_ANSWERS_LABEL = "value"


class _FieldBase(TypedDict):
    id: str
    label_ar: str
    label_en: str
    type: str
    required: bool


class FieldDefinition(_FieldBase, total=False):
    options: List[str]


def resolve_schema(
    primary: Optional[List[FieldDefinition]],
    fallback: Optional[List[FieldDefinition]],
) -> List[FieldDefinition]:
    """
    Pick the entity's own fields when it has any, else the template's fields.
    One list is always taken wholesale; the two are never merged.
    """
    if primary:
        return primary
    return fallback if fallback is not None else []


def _as_field_list(value: Any) -> List[FieldDefinition]:
    return value if isinstance(value, list) else []


def registration_fields(event: Optional[Dict[str, Any]]) -> List[FieldDefinition]:
    """Event registration fields: registration_config, else the conference registration section."""
    if not event:
        return []
    direct = _as_field_list(event.get("registration_config"))
    if direct:
        return direct
    return section_fields(event, "registration")


def section_fields(event: Optional[Dict[str, Any]], section_slug: str) -> List[FieldDefinition]:
    cc = (event or {}).get("conference_config") or {}
    if not isinstance(cc, dict):
        return []
    section = cc.get(section_slug) or {}
    if not isinstance(section, dict):
        return []
    return _as_field_list(section.get("form_fields"))


def enabled_sections(event: Optional[Dict[str, Any]]) -> List[str]:
    """Conference tabs not switched off with enabled: false."""
    cc = (event or {}).get("conference_config") or {}
    if not isinstance(cc, dict):
        return []
    out: List[str] = []
    for slug in CONFERENCE_FORM_SECTIONS:
        section = cc.get(slug)
        if isinstance(section, dict) and section.get("enabled") is False:
            continue
        out.append(slug)
    return out


def config_fields(entity: Optional[Dict[str, Any]]) -> List[FieldDefinition]:
    # Sectors and partner categories
    return _as_field_list((entity or {}).get("registration_config"))


def schema_for_target(
    kind: str,
    entity: Optional[Dict[str, Any]],
    template_event: Optional[Dict[str, Any]] = None,
    section_slug: Optional[str] = None,
) -> List[FieldDefinition]:
    """
    The schema a form of this kind is rendered (and later reviewed) with.
    Events and conference sections fall back to the template event; sectors
    and partner categories only have their own configuration.
    """
    if kind == "event":
        return resolve_schema(registration_fields(entity), registration_fields(template_event))
    if kind == "conference":
        slug = section_slug or ""
        return resolve_schema(section_fields(entity, slug), section_fields(template_event, slug))
    return config_fields(entity)


def field_label(field: Dict[str, Any], locale: str = "ar") -> str:
    ar = (field.get("label_ar") or "").strip()
    en = (field.get("label_en") or "").strip()
    if locale == "en":
        return en or ar or str(field.get("id", ""))
    return ar or en or str(field.get("id", ""))


def is_unanswered(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def missing_required(fields: List[FieldDefinition], answers: Dict[str, Any]) -> List[str]:
    missing: List[str] = []
    for fld in fields or []:
        if not fld.get("required"):
            continue
        if is_unanswered(answers.get(fld.get("id"))):
            missing.append(fld.get("id"))
    return missing


def _display_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def relabel_answers(
    answers: Optional[Dict[str, Any]],
    fields: Optional[List[FieldDefinition]],
    locale: str = "ar",
) -> List[Tuple[str, str]]:
    """
    Turn a stored answer map into (label, value) rows for review.
    Schema fields come first in schema order; keys the schema no longer knows
    keep their raw key and follow in stored order.
    """
    answers = answers or {}
    if isinstance(answers, str):
        try:
            answers = json.loads(answers)
        except ValueError:
            return [(RAW_ANSWERS_LABEL, answers)]
    if not isinstance(answers, dict):
        # Not an answer map; show what was stored as-is
        return [(RAW_ANSWERS_LABEL, _display_value(answers))]
    rows: List[Tuple[str, str]] = []
    seen = set()
    for fld in fields or []:
        fid = fld.get("id")
        if fid in answers:
            rows.append((field_label(fld, locale), _display_value(answers[fid])))
            seen.add(fid)
    for key, value in answers.items():
        if key not in seen:
            rows.append((key, _display_value(value)))
    return rows


def validate_schema(fields: Any) -> List[str]:
    """Collect problems in a stored schema. Informational; rendering never depends on it."""
    if not isinstance(fields, list):
        return ["Form configuration must be a list of fields."]
    problems: List[str] = []
    ids = set()
    for i, fld in enumerate(fields, start=1):
        if not isinstance(fld, dict):
            problems.append(f"Field #{i} is not an object.")
            continue
        fid = fld.get("id")
        if not fid:
            problems.append(f"Field #{i} has no id.")
        elif fid in ids:
            problems.append(f"Duplicate field id '{fid}'.")
        else:
            ids.add(fid)
        ftype = fld.get("type", "text")
        if ftype not in FIELD_TYPES:
            problems.append(
                f"Field '{fid}' has unsupported type '{ftype}'. Allowed types: {list(FIELD_TYPES)}")
        if ftype == "select" and not fld.get("options"):
            problems.append(f"Select field '{fid}' has no options; only the placeholder will show.")
        if not (fld.get("label_ar") or fld.get("label_en")):
            problems.append(f"Field '{fid}' has no label in either language.")
    return problems
