import json
from pathlib import Path

import pytest

from tightrope.cli import main, run_audit


def _write(directory: Path, name: str, text: str) -> Path:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return path


def test_version_prints_version(capsys):
    assert main(["version"]) == 0
    assert capsys.readouterr().out == "tightrope v0.1.0\n"


def test_unsupported_format_raises(tmp_path):
    with pytest.raises(ValueError, match="unsupported output format: xml"):
        run_audit(str(tmp_path), "xml", False)


def test_missing_path_raises(tmp_path):
    missing = tmp_path / "absent"
    with pytest.raises(FileNotFoundError, match="scan path does not exist"):
        run_audit(str(missing), "json", False)


def test_main_reports_error_for_missing_path(tmp_path, capsys):
    missing = tmp_path / "absent"
    assert main(["audit", "--path", str(missing)]) == 1
    assert "Error: scan path does not exist" in capsys.readouterr().err


def test_main_reports_error_for_bad_format(tmp_path, capsys):
    assert main(["audit", "--path", str(tmp_path), "--format", "xml"]) == 1
    assert "unsupported output format: xml" in capsys.readouterr().err


def test_empty_directory_reports_nothing_found(tmp_path, capsys):
    assert run_audit(str(tmp_path), "json", False) == 0
    assert capsys.readouterr().out == "No configuration files found in the specified path.\n"


def test_clean_file_json_report(tmp_path, capsys):
    _write(tmp_path, "app.yaml", "name: demo\nport: 80\n")
    assert main(["audit", "-p", str(tmp_path), "-f", "json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["files_scanned"] == 1
    assert report["findings"] == []
    assert report["summary"]["total_findings"] == 0
    assert report["scan_path"] == str(tmp_path.resolve())


def test_redundant_values_use_relative_paths(tmp_path, capsys):
    _write(tmp_path, "a.yaml", "port: 80\n")
    _write(tmp_path, "b.json", '{"port": 80}')
    assert run_audit(str(tmp_path), "json", False) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["files_scanned"] == 2
    assert report["summary"]["findings_by_rule"] == {"Redundant Values": 2}
    assert sorted(f["file_path"] for f in report["findings"]) == ["a.yaml", "b.json"]


def test_critical_finding_gives_exit_status_one(tmp_path, capsys):
    _write(tmp_path, "service.yaml", "api_key: placeholder\n")
    assert main(["audit", "--path", str(tmp_path), "--format", "json"]) == 1
    report = json.loads(capsys.readouterr().out)
    rules = [finding["rule"] for finding in report["findings"]]
    assert rules == ["Secrets in Plain Text"]
    assert report["findings"][0]["line_number"] == 1


def test_only_broken_files_raise(tmp_path):
    _write(tmp_path, "broken.json", "{not json")
    with pytest.raises(ValueError, match="no configuration files could be parsed successfully"):
        run_audit(str(tmp_path), "json", False)


def test_broken_files_are_skipped(tmp_path, capsys):
    _write(tmp_path, "broken.json", "{not json")
    _write(tmp_path, "good.toml", 'name = "demo"\n')
    assert run_audit(str(tmp_path), "json", False) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["files_scanned"] == 1


def test_markdown_is_default_format(tmp_path, capsys):
    _write(tmp_path, "app.yaml", "name: demo\n")
    assert main(["audit", "--path", str(tmp_path)]) == 0
    out = capsys.readouterr().out
    assert out.startswith("# 🔍 Tightrope Configuration Audit Report\n\n")
    assert "## ✅ No Issues Found" in out


def test_help_unknown_command(capsys):
    assert main(["help", "bogus"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Unknown command: bogus\n")
    assert "audit" in out


def test_help_for_audit_shows_audit_description(capsys):
    assert main(["help", "audit"]) == 0
    assert "Recursively scan a directory for configuration files" in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "tightrope" in out
    assert "version" in out