"""
Tests for the irbwiz command-line interface.
"""
import json
import logging

import pytest

from irbwiz.cli import main
from irbwiz.snapshots import SAMPLES_DIR

SURVEY = str(SAMPLES_DIR / "01-exempt-cat2-survey.yaml")
MINORS = str(SAMPLES_DIR / "05-full-board-minors-rct.yaml")


@pytest.fixture(autouse=True)
def restore_logger():
    logger = logging.getLogger("irbwiz")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage: irbwiz" in capsys.readouterr().out


def test_determine_json(capsys):
    assert main(["determine", SURVEY, "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["type"] == "EXEMPT"
    assert payload["category"] == 2


def test_determine_report(capsys):
    assert main(["determine", MINORS]) == 0
    out = capsys.readouterr().out
    assert "DETERMINATION: Full Board Review" in out
    assert "REASONS" in out
    assert "Cooperative Learning Structures" in out


def test_check_sample_has_no_errors(capsys):
    assert main(["check", SURVEY, "--json", "--today", "2025-06-01"]) == 0
    issues = json.loads(capsys.readouterr().out)
    assert [issue for issue in issues if issue["severity"] == "error"] == []


def test_check_reports_errors(tmp_path, capsys):
    path = tmp_path / "study.yaml"
    path.write_text(
        "answers:\n"
        "  subjects:\n"
        "    minAge: 30\n"
        "    maxAge: 20\n",
        encoding="utf-8",
    )
    assert main(["check", str(path), "--json", "--today", "2025-06-01"]) == 1
    issues = json.loads(capsys.readouterr().out)
    assert any(issue["checkId"] == "C01" and issue["severity"] == "error" for issue in issues)


def test_steps(capsys):
    assert main(["steps", SURVEY]) == 0
    out = capsys.readouterr().out
    assert "Pre-Screening" in out
    assert "missing" not in out


def test_samples_all_match(capsys):
    assert main(["samples"]) == 0
    out = capsys.readouterr().out
    assert "6 sample(s), 0 mismatch(es)" in out
    assert "MISMATCH" not in out


def test_citi_unreadable_file(tmp_path, capsys):
    path = tmp_path / "certificate.pdf"
    path.write_text("not a pdf", encoding="utf-8")
    assert main(["citi", str(path)]) == 1
    assert json.loads(capsys.readouterr().out)["confidence"] == "none"


def test_missing_file_is_an_error(tmp_path, capsys):
    assert main(["determine", str(tmp_path / "missing.yaml")]) == 2
    assert "IW_SNAPSHOT_LOAD_ERROR" in capsys.readouterr().err


def test_invalid_today_argument(capsys):
    with pytest.raises(SystemExit):
        main(["check", SURVEY, "--today", "June"])
