from __future__ import annotations

import json
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    """Every test gets its own empty data directory; language tables come from the repo."""
    monkeypatch.setenv("JAZ_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("JAZ_LANG_DIR", str(ROOT / "lang"))
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
    return tmp_path


@pytest.fixture()
def write_table(data_dir):
    def _write(table: str, rows):
        (data_dir / f"{table}.json").write_text(json.dumps(rows, ensure_ascii=False), encoding="utf-8")
    return _write


@pytest.fixture()
def name_schema():
    return [{"id": "f1", "label_ar": "الاسم", "label_en": "", "type": "text", "required": True}]
