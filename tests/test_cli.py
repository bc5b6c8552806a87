"""Tests for the command-line interface."""

import json

import pytest

from sitetrust.cli import build_parser, format_report, main
from sitetrust.models import HeuristicFinding, Severity
from sitetrust.scoring import PROFILE_100PT, ScoreAggregator


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    blocklists = tmp_path / "blocklists"
    blocklists.mkdir()
    (blocklists / "phishing.txt").write_text("phishing-test.tk\n")
    monkeypatch.setenv("BLOCKLIST_DIR", str(blocklists))
    monkeypatch.setenv("REPORTS_DB", str(tmp_path / "reports.db"))
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("CHECK_ACCESSIBILITY", "false")
    monkeypatch.setenv("CHECK_CERTIFICATE", "false")
    monkeypatch.delenv("SITETRUST_SCALE", raising=False)
    monkeypatch.delenv("BLOCKLIST_NAMES", raising=False)
    return tmp_path


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_format_report():
    finding = HeuristicFinding("https", True, 20.0, "✗ Site not secure (HTTP)", Severity.HIGH)
    report = ScoreAggregator(PROFILE_100PT).aggregate([], [finding], [], hostname="example.com")
    text = format_report(report)
    assert text.splitlines()[0].startswith("example.com: 80/100")
    assert "  ✗ Site not secure (HTTP)" in text
    assert "  https: -20" in text


def test_check_json(cli_env, capsys):
    assert main(["check", "http://phishing-test.tk", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["hostname"] == "phishing-test.tk"
    assert payload["score"] == 20
    assert '✗ Matched "Phishing"' in payload["tags"]


def test_check_five_point_scale(cli_env, capsys):
    assert main(["check", "https://example.com", "--scale", "5pt", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["score"] == 5
    assert payload["max_score"] == 5


def test_report_and_unreport(cli_env, capsys):
    assert main(["report", "https://scam.example/login"]) == 0
    assert "Reported scam.example" in capsys.readouterr().out

    assert main(["check", "https://scam.example", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["tags"][0].startswith("⚠ This site was already reported")

    assert main(["unreport", "scam.example"]) == 0
    assert "Removed report for scam.example" in capsys.readouterr().out


def test_invalid_url_exit_code(cli_env):
    assert main(["check", "ftp://example.com"]) == 2


def test_env_file(cli_env, tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("REPORTS_DB", raising=False)
    env_file = tmp_path / "sitetrust.env"
    env_file.write_text(f"REPORTS_DB={tmp_path / 'other.db'}\n")

    assert main(["--env-file", str(env_file), "report", "https://scam.example"]) == 0
    assert (tmp_path / "other.db").exists()
