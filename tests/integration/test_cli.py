"""Tests for the actionq-execute and actionq-init-db entry points."""

from __future__ import annotations

import json
import logging

import pytest

from actionq import cli
from actionq.infrastructure.database import reset_pool
from actionq.storage.repository import SQLiteRecordStore


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    # --db writes ACTIONQ_DB_PATH; registering it here restores it afterwards
    monkeypatch.setenv("ACTIONQ_DB_PATH", str(tmp_path / "default.db"))
    monkeypatch.setattr(cli, "ensure_env_loaded", lambda: None)
    monkeypatch.delenv("SMTP_HOST", raising=False)
    yield
    reset_pool()


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "cli.db"
    assert cli.init_db_main(["--db", str(path)]) == 0
    return path


@pytest.fixture
def record_id(db_path):
    return SQLiteRecordStore().create_record("text", "refund request").id


def write_analysis(tmp_path, payload) -> str:
    path = tmp_path / "analysis.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_init_db_creates_file(tmp_path, capsys):
    path = tmp_path / "nested" / "fresh.db"

    assert cli.init_db_main(["--db", str(path)]) == 0

    assert path.exists()
    assert str(path) in capsys.readouterr().out


def test_execute_prints_report(tmp_path, db_path, record_id, capsys):
    source = write_analysis(
        tmp_path,
        {
            "analysis": "refund requested",
            "suggestions": ["issue refund"],
            "confidence": 0.7,
            "actions": [
                {"type": "tag", "target": "billing", "params": {"record_id": record_id, "tag": "refund"}},
                {"type": "bogus", "target": "x", "params": {}},
            ],
        },
    )

    code = cli.main([source, "--db", str(db_path), "--record-id", str(record_id), "--save-analysis"])

    report = json.loads(capsys.readouterr().out)
    assert code == 0
    assert report["attempted"] == 2
    assert report["failed"] == 1
    assert report["outcomes"][1]["error_kind"] == "unresolved_action"
    assert [tag.tag_name for tag in SQLiteRecordStore().get_tags_by_record(record_id)] == ["refund"]


def test_strict_mode_exits_nonzero_on_failure(tmp_path, db_path, capsys):
    source = write_analysis(tmp_path, [{"type": "bogus", "params": {}}])

    assert cli.main([source, "--db", str(db_path), "--strict"]) == 1


def test_unreadable_input_is_bad_input(tmp_path, db_path):
    bad = tmp_path / "bad.json"
    bad.write_text("not json at all", encoding="utf-8")

    assert cli.main([str(bad), "--db", str(db_path)]) == 2
    assert cli.main([str(tmp_path / "missing.json"), "--db", str(db_path)]) == 2


def test_save_analysis_requires_record_id(tmp_path, db_path):
    source = write_analysis(tmp_path, {"actions": []})

    assert cli.main([source, "--db", str(db_path), "--save-analysis"]) == 2


def test_save_analysis_for_unknown_record(tmp_path, db_path):
    source = write_analysis(tmp_path, {"actions": []})

    assert cli.main([source, "--db", str(db_path), "--record-id", "999", "--save-analysis"]) == 2


@pytest.fixture
def restore_root_level():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


def tag_batch(tmp_path, record_id, **envelope) -> str:
    actions = [{"type": "tag", "target": "t", "params": {"record_id": record_id, "tag": "seen"}}]
    return write_analysis(tmp_path, {**envelope, "actions": actions})


def info_records(caplog):
    return [
        record
        for record in caplog.records
        if record.name.startswith("actionq") and record.levelno == logging.INFO
    ]


def test_log_level_option_suppresses_info(tmp_path, db_path, record_id, caplog, restore_root_level):
    source = tag_batch(tmp_path, record_id)

    assert cli.main([source, "--db", str(db_path), "--log-level", "WARNING"]) == 0

    assert info_records(caplog) == []
    assert logging.getLogger("actionq.actions.executor").getEffectiveLevel() == logging.WARNING


def test_log_level_option_enables_info(tmp_path, db_path, record_id, caplog, restore_root_level):
    source = tag_batch(tmp_path, record_id)

    assert cli.main([source, "--db", str(db_path), "--log-level", "INFO"]) == 0

    messages = [record.getMessage() for record in info_records(caplog)]
    assert any(message.startswith("Executing against") for message in messages)


def test_percentage_confidence_does_not_block_actions(tmp_path, db_path, record_id, capsys):
    source = tag_batch(tmp_path, record_id, summary="refund", confidence=92)

    code = cli.main([source, "--db", str(db_path), "--record-id", str(record_id), "--save-analysis"])

    report = json.loads(capsys.readouterr().out)
    assert code == 0
    assert report["succeeded"] == 1
    assert [tag.tag_name for tag in SQLiteRecordStore().get_tags_by_record(record_id)] == ["seen"]


def test_database_that_cannot_be_created_is_bad_input(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    db_arg = str(blocker / "actionq.db")
    source = write_analysis(tmp_path, {"actions": []})

    assert cli.init_db_main(["--db", db_arg]) == 2
    assert cli.main([source, "--db", db_arg]) == 2
