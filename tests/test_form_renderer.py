import pytest

from form_renderer import _WIDGETS, FormSession
from form_schema import FIELD_TYPES
from submissions import SubmissionError


class Recorder:
    def __init__(self, fail_with=None):
        self.calls = []
        self.fail_with = fail_with

    def __call__(self, answers):
        self.calls.append(dict(answers))
        if self.fail_with is not None:
            raise self.fail_with


def test_blocked_submit_never_calls_store(name_schema):
    rec = Recorder()
    session = FormSession(name_schema, rec)
    assert session.submit() is False
    assert rec.calls == []
    assert session.missing == ["f1"]
    assert session.state == "editing"


def test_filled_submit_calls_once_and_succeeds(name_schema):
    rec = Recorder()
    session = FormSession(name_schema, rec)
    session.set_answer("f1", "أحمد")
    assert session.submit() is True
    assert rec.calls == [{"f1": "أحمد"}]
    assert session.state == "success"
    assert session.missing == []


def test_success_is_terminal_until_reset(name_schema):
    rec = Recorder()
    session = FormSession(name_schema, rec)
    session.set_answer("f1", "x")
    session.submit()

    assert session.set_answer("f1", "y") is False
    assert session.submit() is False
    assert len(rec.calls) == 1

    session.reset()
    assert session.state == "editing"
    assert session.answers == {}
    assert session.set_answer("f1", "y") is True


def test_failure_keeps_answers_and_shows_message(name_schema):
    rec = Recorder(fail_with=SubmissionError("تعذر الإرسال"))
    session = FormSession(name_schema, rec)
    session.set_answer("f1", "أحمد")
    assert session.submit() is False
    assert session.error == "تعذر الإرسال"
    assert session.answers == {"f1": "أحمد"}
    assert session.is_loading is False
    assert session.state == "editing"


def test_retry_after_failure_clears_error(name_schema):
    calls = []

    def flaky(answers):
        calls.append(answers)
        if len(calls) == 1:
            raise SubmissionError("try again")

    session = FormSession(name_schema, flaky)
    session.set_answer("f1", "x")
    assert session.submit() is False
    assert session.submit() is True
    assert session.error is None
    assert len(calls) == 2


def test_reentrant_submit_is_ignored(name_schema):
    inner = []

    def on_submit(answers):
        assert session.state == "submitting"
        assert session.set_answer("f1", "changed") is False
        inner.append(session.submit())

    session = FormSession(name_schema, on_submit)
    session.set_answer("f1", "x")
    assert session.submit() is True
    assert inner == [False]
    assert session.answers == {"f1": "x"}


def test_unexpected_errors_propagate_and_clear_loading(name_schema):
    session = FormSession(name_schema, Recorder(fail_with=RuntimeError("boom")))
    session.set_answer("f1", "x")
    with pytest.raises(RuntimeError):
        session.submit()
    assert session.is_loading is False
    assert session.success is False


def test_empty_schema_submits_empty_answers():
    rec = Recorder()
    session = FormSession([], rec)
    assert session.submit() is True
    assert rec.calls == [{}]


def test_optional_fields_do_not_block():
    fields = [{"id": "note", "label_ar": "ملاحظة", "label_en": "Note", "type": "textarea", "required": False}]
    rec = Recorder()
    session = FormSession(fields, rec)
    assert session.submit() is True


def test_every_field_type_has_a_widget():
    assert set(_WIDGETS) == set(FIELD_TYPES)


def test_blocked_submit_clears_previous_error(name_schema):
    session = FormSession(name_schema, Recorder(fail_with=SubmissionError("try again")))
    session.set_answer("f1", "x")
    session.submit()
    assert session.error == "try again"

    session.set_answer("f1", "")
    assert session.submit() is False
    assert session.error is None
    assert session.missing == ["f1"]
