"""
Submission pipeline: turns a finished answer map into one stored record.

Exports:
- SubmissionContext, SubmissionTarget, TARGETS, STATUSES
- SubmissionError
- build_record(context, answers) -> dict
- submit(store, context, answers, *, lang=None) -> dict
- make_submit_handler(store, context, lang=None) -> Callable[[dict], None]
- list_submissions(store, target_kind, target_id=None) -> list[dict]
- answers_of(target_kind, record) -> dict
- set_status(store, target_kind, record_id, status) -> dict
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from data_loader import t
from storage import JsonTableStore

logger = logging.getLogger(__name__)

STATUSES = ("pending", "approved", "rejected", "confirmed")


class SubmissionTarget(NamedTuple):
    table: str
    id_column: str
    data_column: str
    initial_status: str


TARGETS: Dict[str, SubmissionTarget] = {
    "event": SubmissionTarget("registrations", "event_id", "additional_data", "confirmed"),
    "conference": SubmissionTarget("conference_submissions", "event_id", "data", "pending"),
    "sector": SubmissionTarget("sector_registrations", "sector_id", "data", "pending"),
    "partner_category": SubmissionTarget("partner_submissions", "category_id", "data", "pending"),
}


class SubmissionError(Exception):
    """Storage failure already translated into a message safe to show the user."""

    def __init__(self, user_message: str):
        super().__init__(user_message)
        self.user_message = user_message


@dataclass(frozen=True)
class SubmissionContext:
    target_kind: str
    target_id: str
    user_id: Optional[str] = None
    section_slug: Optional[str] = None


def _target(kind: str) -> SubmissionTarget:
    try:
        return TARGETS[kind]
    except KeyError:
        raise ValueError(f"Unknown submission target '{kind}'") from None


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def build_record(context: SubmissionContext, answers: Dict[str, Any]) -> Dict[str, Any]:
    target = _target(context.target_kind)
    record: Dict[str, Any] = {
        target.id_column: context.target_id,
        "user_id": context.user_id,
        target.data_column: dict(answers),
        "status": target.initial_status,
        "created_at": _now_iso(),
    }
    if context.target_kind == "conference":
        record["section_slug"] = context.section_slug
    elif context.target_kind == "partner_category":
        record["opportunity_id"] = None
    return record


def submit(
    store: JsonTableStore,
    context: SubmissionContext,
    answers: Dict[str, Any],
    *,
    lang: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Insert one record for this answer map and return it as stored.
    There is no dedup key: calling twice stores two records.
    """
    target = _target(context.target_kind)
    record = build_record(context, answers)
    message = t(lang, "form.error", "Something went wrong while sending the form. Please try again.")
    try:
        result = store.insert(target.table, record)
    except Exception as e:
        logger.error("Submission to %s for %s failed", target.table, context.target_id, exc_info=e)
        raise SubmissionError(message) from e
    if result.error:
        logger.error("Submission to %s for %s failed: %s", target.table, context.target_id, result.error)
        raise SubmissionError(message)
    logger.info("Stored %s submission %s for %s", context.target_kind, result.data.get("id"), context.target_id)
    return result.data


def make_submit_handler(
    store: JsonTableStore,
    context: SubmissionContext,
    lang: Optional[Dict[str, str]] = None,
) -> Callable[[Dict[str, Any]], None]:
    def _on_submit(answers: Dict[str, Any]) -> None:
        submit(store, context, answers, lang=lang)

    return _on_submit


def list_submissions(
    store: JsonTableStore,
    target_kind: str,
    target_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    target = _target(target_kind)
    filters = {target.id_column: target_id} if target_id is not None else {}
    rows = store.select(target.table, **filters)
    return sorted(rows, key=lambda r: str(r.get("created_at") or ""), reverse=True)


def answers_of(target_kind: str, record: Dict[str, Any]) -> Dict[str, Any]:
    return record.get(_target(target_kind).data_column) or {}


def set_status(store: JsonTableStore, target_kind: str, record_id: str, status: str) -> Dict[str, Any]:
    """Admin review transition. Raises ValueError for an unknown status or storage failure."""
    if status not in STATUSES:
        raise ValueError(f"Unknown status '{status}'. Allowed: {list(STATUSES)}")
    target = _target(target_kind)
    result = store.update(target.table, record_id, {"status": status})
    if result.error:
        raise ValueError(result.error)
    return result.data
